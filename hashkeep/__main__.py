"""Allow running hashkeep as ``python -m hashkeep``."""

from hashkeep.cli import app

if __name__ == "__main__":
    app()
