from invoke import task
from invoke.context import Context

from tasks.common import project_root


@task
def init_poetry_env(ctx: Context) -> None:
    """Initialize the firehost local poetry environment"""
    with ctx.cd(project_root):
        print("Initialize firehost local poetry environment")
        ctx.run("poetry install --all-extras")


@task(
    help={
        "init": "initialize poetry environment before running tests",
        "keyword": "only run tests matching the given pytest keyword expression",
    }
)
def run_tests(ctx: Context, init: bool = False, keyword: str = "") -> None:
    """Run firehost tests with poetry"""
    with ctx.cd(project_root):
        if init:
            init_poetry_env(ctx)
        print("Running firehost tests")
        ctx.run(f"poetry run pytest -k '{keyword}'" if keyword else "poetry run pytest")
