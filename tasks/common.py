from pathlib import Path

project_root = Path(__file__).parent.parent.absolute()
