"""Allow ``python -m mobsentry``."""

from mobsentry.cli.main import app

if __name__ == "__main__":
    app()
