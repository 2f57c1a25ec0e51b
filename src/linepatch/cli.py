"""CLI commands for applying line patches to workspace files."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import typer
import yaml

from .config import DEFAULT_CONFIG_NAME, Settings, copy_config_template, write_config
from .tools.change_report import ChangeReporter, format_changes
from .tools.edit_file import EditFileTool
from .tools.file_store import LocalFileStore
from .tools.line_patch import LinePatchError
from .tools.registry import ToolRegistry

APP_HELP = "Address-based line patching for coding agents."

app = typer.Typer(help=APP_HELP)

CONFIG_OPTION_HELP = "Path to the line patch configuration file."


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration from disk and return it as a dictionary."""
    if not config_path.exists():
        raise typer.BadParameter(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        typer.echo(f"Failed to parse config: {error}")
        raise typer.Exit(code=1) from error

    if not isinstance(data, dict):
        typer.echo("Configuration must be a mapping at the top level.")
        raise typer.Exit(code=1)

    return data


def _load_settings(config: str) -> Settings:
    """Resolve settings, falling back to defaults when the default file is absent."""
    config_path = Path(config)
    if config == DEFAULT_CONFIG_NAME and not config_path.exists():
        data: Dict[str, Any] = copy_config_template()
    else:
        data = load_config(config_path)
    settings = Settings.from_mapping(data, base_dir=config_path.resolve().parent)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _read_patches(source: str) -> List[Any]:
    """Read a JSON patch batch from ``source`` (a file path or ``-`` for stdin)."""
    try:
        if source == "-":
            raw = sys.stdin.read()
        else:
            raw = Path(source).read_text(encoding="utf-8")
    except OSError as error:
        typer.echo(f"Unable to read patches: {error}")
        raise typer.Exit(code=1) from error

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        typer.echo(f"Patches must be valid JSON: {error}")
        raise typer.Exit(code=1) from error

    if isinstance(payload, dict):
        payload = payload.get("patches")
    if not isinstance(payload, list):
        typer.echo("Patches must be a JSON array or an object with a 'patches' array.")
        raise typer.Exit(code=1)
    return payload


@app.command()
def init(
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help=CONFIG_OPTION_HELP,
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing configuration file.",
    ),
) -> None:
    """Write the default configuration file."""
    config_path = Path(config)
    if config_path.exists() and not force:
        typer.echo(f"Configuration already exists at {config_path}; use --force to overwrite.")
        raise typer.Exit(code=1)
    write_config(config_path, copy_config_template())
    typer.echo(f"Wrote configuration to {config_path}")


@app.command()
def status(
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help=CONFIG_OPTION_HELP,
    )
) -> None:
    """Report the resolved configuration."""
    settings = _load_settings(config)
    typer.echo(f"Workspace root: {settings.workspace_root.as_posix()}")
    summary = settings.summary_path.as_posix() if settings.summary_path else "disabled"
    typer.echo(f"Step summary: {summary}")
    typer.echo(f"Log level: {logging.getLevelName(settings.log_level)}")


@app.command()
def show(
    path: str = typer.Argument(..., help="File to display, relative to the workspace root."),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Print a file with the addresses patches refer to."""
    settings = _load_settings(config)
    registry = ToolRegistry.for_workspace(settings.workspace_root)
    response = registry.call("readFile", {"path": path})
    if "error" in response:
        typer.echo(f"Error: {response['error']}")
        raise typer.Exit(code=1)
    lines = response["lines"]
    width = len(str(max(len(lines) - 1, 0)))
    for entry in lines:
        typer.echo(f"{entry['address']:>{width}}: {entry['line']}")


@app.command()
def apply(
    path: str = typer.Argument(..., help="File to edit, relative to the workspace root."),
    patches: str = typer.Option(
        ...,
        "--patches",
        "-p",
        help="JSON file holding the patch batch, or '-' to read from stdin.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the diff trail without writing the file.",
    ),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Apply a batch of line patches to a file."""
    settings = _load_settings(config)
    batch = _read_patches(patches)
    reporter = ChangeReporter(summary_path=settings.summary_path, include_request=settings.include_request)
    tool = EditFileTool(LocalFileStore(settings.workspace_root), reporter, dry_run=dry_run)

    try:
        result = tool.run({"path": path, "patches": batch})
    except LinePatchError as error:
        typer.echo(f"Error ({error.kind}): {error}")
        raise typer.Exit(code=1) from error

    typer.echo(format_changes(result.changes))
    verb = "Would edit" if dry_run else "Edited"
    typer.echo(f"{verb} {result.path} ({result.line_count} lines)")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
