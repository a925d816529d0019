"""Typer CLI entry points for Sentry releases."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from releasehook.core.lifecycle import HookCompiler, compilation_from_directory
from releasehook.core.logger import get_logger

from .config import ReleaseUploaderConfig, resolve_config
from .plugin import ReleaseUploader

LOGGER = get_logger()

app = typer.Typer(name="sentry", help="Publish build output as Sentry releases.")


def _handle_error(exc: Exception) -> None:
    LOGGER.error("sentry operation failed: %s", exc, exc_info=True)
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _resolve(profile: Optional[str], config: Optional[Path], options: dict[str, Any]) -> ReleaseUploaderConfig:
    return resolve_config(options or None, profile=profile, config_path=config)


@app.command("upload")
def cmd_upload(
    directory: Path = typer.Option(..., "--dir", exists=True, file_okay=False, help="Build output directory"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Profile name in releasehook.yaml"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to releasehook.yaml"),
    release: Optional[str] = typer.Option(None, "--release", help="Release version (overrides profile)"),
    build_hash: Optional[str] = typer.Option(None, "--hash", help="Build hash passed to derived versions"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Delete existing release files first"),
    delete_after: bool = typer.Option(False, "--delete-after", help="Delete matching local files afterwards"),
) -> None:
    """Create a release for DIR and upload the selected files."""

    options: dict[str, Any] = {}
    if release:
        options["release"] = release
    if overwrite:
        options["shouldOverwrite"] = True
    if delete_after:
        options["deleteAfterCompile"] = True

    try:
        plugin = ReleaseUploader(_resolve(profile, config, options))
        compilation = compilation_from_directory(directory, build_hash=build_hash)
        compiler = HookCompiler()
        plugin.apply(compiler)
        compiler.run(compilation)
    except Exception as exc:
        if isinstance(exc, typer.Exit):
            raise
        _handle_error(exc)
        return

    for warning in compilation.warnings:
        typer.secho(warning, fg=typer.colors.YELLOW, err=True)
    for error in compilation.errors:
        typer.secho(error, fg=typer.colors.RED, err=True)
    if compilation.errors:
        raise typer.Exit(code=1)
    context = plugin.published.get(compilation.hash)
    if context is None:
        typer.echo("no release published")
        return
    typer.echo(f"release {context.version}: {len(context.files)} file(s) published")


@app.command("files")
def cmd_files(
    directory: Path = typer.Option(..., "--dir", exists=True, file_okay=False, help="Build output directory"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Profile name in releasehook.yaml"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to releasehook.yaml"),
) -> None:
    """List the files that would be uploaded, with their upload names."""

    try:
        plugin = ReleaseUploader(_resolve(profile, config, {}))
        compilation = compilation_from_directory(directory)
        files = plugin.get_files(compilation)
    except Exception as exc:
        if isinstance(exc, typer.Exit):
            raise
        _handle_error(exc)
        return

    if not files:
        typer.echo("<empty>")
    for item in files:
        typer.echo(f"{plugin.config.filename_transform(item.name):40} {item.path}")


__all__ = ["app"]
