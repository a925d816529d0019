"""Typer based command line entry points for releasehook."""

from __future__ import annotations

import logging

import typer

from releasehook.core.logger import get_logger
from releasehook.services.sentry import sentry_app

app = typer.Typer(help="Publish bundler output to error-tracking releases.")
app.add_typer(sentry_app, name="sentry")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    get_logger().setLevel(level_value)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
