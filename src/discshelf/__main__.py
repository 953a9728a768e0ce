"""Entry point for ``python -m discshelf``."""

from __future__ import annotations

from discshelf.cli.typer_app import app

if __name__ == "__main__":
    app()
