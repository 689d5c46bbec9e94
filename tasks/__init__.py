from invoke import Collection, task
from invoke.context import Context

from tasks import api
from tasks.common import project_root


@task(help={"tests": "run the test suite after the pre-commit hooks"})
def check(ctx: Context, tests: bool = True) -> None:
    """Run pre-commit hooks on all files, then the firehost tests"""
    with ctx.cd(project_root):
        ctx.run("pre-commit run --all-files")
    if tests:
        api.run_tests(ctx)


ns = Collection()
ns.add_collection(api)
ns.add_task(check)
