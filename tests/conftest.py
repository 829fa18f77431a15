from pathlib import Path

ASSETS_PATH = Path(__file__).parent / "assets"

# The assets are packages to analyse, not tests to run.
collect_ignore = ["assets"]
