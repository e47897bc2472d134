#!/usr/bin/env python3
"""envshelter CLI - mask env files and inspect masking configuration."""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from envshelter.context import ShelterContext
from envshelter.core.config import ShelterSettings, get_runtime_config, is_env_file
from envshelter.core.config_loader import ConfigLoader
from envshelter.core.exceptions import ShelterError
from envshelter.masking.renderer import InMemoryRenderer, render_text
from envshelter.observability.logging import configure_logging, correlation_context

BUFFER_ID = "cli"


def _load_settings(config_path: Optional[str]) -> ShelterSettings:
    runtime = get_runtime_config()
    path = config_path or runtime.config_path
    settings = ConfigLoader().load(path) if path else ShelterSettings()
    return runtime.apply_to(settings)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(),
    help="Path to settings YAML file (default: $ENVSHELTER_CONFIG)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: $ENVSHELTER_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """envshelter - mask secret values in env files without changing layout."""
    ctx.ensure_object(dict)
    runtime = get_runtime_config()
    configure_logging(log_level or runtime.log_level, runtime.log_format)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", "-m", help="Mask every value with this mode")
@click.option("--mask-char", help="Character used for masking")
@click.option(
    "--reveal",
    "-r",
    type=int,
    multiple=True,
    help="Line number to leave unmasked (repeatable)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write masked text to this file instead of stdout",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Print masked text or the overlay spans as JSON",
)
@click.pass_context
def mask(
    ctx: click.Context,
    input_file: str,
    mode: Optional[str],
    mask_char: Optional[str],
    reveal: tuple[int, ...],
    output: Optional[str],
    format: str,
) -> None:
    """Print an env file with its values masked."""
    input_path = Path(input_file)
    try:
        settings = _load_settings(ctx.obj.get("config_path"))
        update: dict[str, Any] = {}
        if mode:
            update.update({"default_mode": mode, "patterns": {}, "sources": {}})
        if mask_char is not None:
            update["mask_char"] = mask_char
        if update:
            settings = ShelterSettings(**{**_explicit_fields(settings), **update})

        if not is_env_file(input_path, settings.env_file_patterns):
            click.echo(
                f"Warning: {input_path.name} does not match env file patterns "
                f"{settings.env_file_patterns}",
                err=True,
            )

        renderer = InMemoryRenderer()
        context = ShelterContext(settings=settings, renderer=renderer)
        content = input_path.read_bytes()
        with correlation_context():
            for line in reveal:
                context.reveal_state.reveal(BUFFER_ID, line)
            spans = context.shelter_buffer(BUFFER_ID, content, str(input_path), sync=True)
    except (ShelterError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if format == "json":
        text = json.dumps(
            [
                {
                    "line": s.line,
                    "start_col": s.start_col,
                    "end_col": s.end_col,
                    "text": s.text,
                    "highlight": s.highlight,
                }
                for s in renderer.overlays(BUFFER_ID)
            ],
            indent=2,
        )
    else:
        lines = content.decode("utf-8", errors="replace").split("\n")
        text = "\n".join(render_text(lines, spans))

    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Saved masked output to: {output}", err=True)
    else:
        click.echo(text, nl=not text.endswith("\n"))


def _explicit_fields(settings: ShelterSettings) -> dict[str, Any]:
    return {name: getattr(settings, name) for name in settings.model_fields_set}


@cli.command()
@click.pass_context
def modes(ctx: click.Context) -> None:
    """List available masking modes."""
    try:
        settings = _load_settings(ctx.obj.get("config_path"))
        context = ShelterContext(settings=settings)
    except ShelterError as e:
        raise click.ClickException(str(e)) from e

    for info in context.info():
        marker = "builtin" if info["builtin"] else "custom"
        click.echo(f"{info['name']:<12} [{marker}] {info['description']}")


@cli.command("check-config")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def check_config(config_file: str) -> None:
    """Validate a settings YAML file."""
    loader = ConfigLoader()
    errors = loader.validate_file(config_file)
    if errors:
        for error in errors:
            click.echo(f"✗ {error}", err=True)
        sys.exit(1)

    try:
        # mode tables are only checked against their schemas once applied
        ShelterContext(settings=loader.load(config_file))
    except ShelterError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ {config_file} is valid")


@cli.command()
def version() -> None:
    """Show envshelter version."""
    from envshelter import __version__

    click.echo(f"envshelter v{__version__}")


def main() -> int:
    """Main entry point."""
    try:
        cli()
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
