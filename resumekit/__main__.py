# resumekit/__main__.py
"""Entry point for `python -m resumekit`."""

from resumekit.cli import app

if __name__ == "__main__":
    app()
