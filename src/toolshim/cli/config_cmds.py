# src/toolshim/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from toolshim.cli.utils import logging_options, setup_logging_from_context
from toolshim.config import load_config
from toolshim.exceptions import ConfigurationError
from toolshim.invoker import build_argument_sequence
from toolshim.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=Path("toolshim.toml"),
    show_default=True,
    envvar="TOOLSHIM_CONF",
    help="Path to the toolshim configuration file (env var TOOLSHIM_CONF).",
    show_envvar=True,
)
@click.option("--arguments", "show_arguments", is_flag=True, help="Also print each tool's argument sequence.")
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path, show_arguments: bool, **kwargs):
    """Load, validate, and display the configuration."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    log.info("Executing 'config show' command", config_path=str(config_path))

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem in '{config_path}':\n{e}", err=True)
        ctx.exit(1)
        return

    # Echoed rather than printed through rich so CliRunner can capture it.
    click.echo(pretty_repr(config, expand_all=True))

    if show_arguments:
        for name, tool in config.tools.items():
            click.echo(f"\n[{name}] {tool.executable_name}")
            for argument in build_argument_sequence(tool):
                click.echo(f"  {argument}")

    if not config.tools:
        log.warning("No tools configured.", config_path=str(config_path))
    else:
        log.info("Configuration is valid.", tool_count=len(config.tools))

# 🔼⚙️
