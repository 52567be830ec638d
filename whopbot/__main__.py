"""Entry point for ``python -m whopbot``."""

from whopbot.cli.commands import app

if __name__ == "__main__":
    app()
