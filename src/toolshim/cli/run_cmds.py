# src/toolshim/cli/run_cmds.py

import sys
from pathlib import Path

import attrs
import click
import structlog

from toolshim.cli.utils import (
    logging_options,
    parse_key_value,
    run_tool,
    setup_logging_from_context,
)
from toolshim.config import ToolConfig, load_config
from toolshim.exceptions import ConfigurationError
from toolshim.presets import NUNIT3_EXECUTABLE, nunit3_config
from toolshim.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")

PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def _setup_logging(ctx: click.Context, kwargs: dict) -> None:
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )


def _config_error(ctx: click.Context, error: ConfigurationError) -> None:
    log.error("Invalid tool configuration", error=str(error))
    click.echo(f"Error: Configuration problem: {error}", err=True)
    ctx.exit(1)


def _finish(exit_code: int) -> None:
    if exit_code != 0:
        sys.exit(exit_code)


@click.command(name="run")
@click.argument("tool_name")
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
@click.option("--timeout", type=click.FloatRange(min=0), default=None, help="Override the configured timeout (seconds).")
@logging_options
@click.pass_context
def run_cli(ctx: click.Context, tool_name: str, config_path: Path, timeout: float | None, **kwargs):
    """Run the tool configured as TOOL_NAME."""
    _setup_logging(ctx, kwargs)
    log.info("Executing 'run' command", tool=tool_name, config_path=str(config_path))

    try:
        config = load_config(config_path)
        if not (kwargs.get("log_level") or (ctx.obj or {}).get("LOG_LEVEL")):
            _setup_logging(ctx, {**kwargs, "log_level": config.global_config.log_level})
        tool_config = config.get_tool(tool_name)
        if timeout is not None:
            tool_config = attrs.evolve(tool_config, timeout=timeout)
    except ConfigurationError as e:
        _config_error(ctx, e)
        return

    _finish(run_tool(tool_config, kill_grace_period=config.global_config.kill_grace_period))


@click.command(name="exec", context_settings=PASSTHROUGH_SETTINGS)
@click.argument("executable")
@click.argument("arguments", nargs=-1, type=click.UNPROCESSED)
@click.option("--flag", "flags", multiple=True, help="Boolean flag emitted verbatim after the arguments. Repeatable.")
@click.option(
    "--switch",
    "switches",
    multiple=True,
    callback=parse_key_value,
    metavar="NAME=VALUE",
    help="Named switch emitted as --NAME=VALUE; blank values are dropped. Repeatable.",
)
@click.option("--tool-path", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory holding the executable; skips PATH lookup.")
@click.option("--search-path", "search_paths", multiple=True, type=click.Path(file_okay=False, path_type=Path), help="Extra directory searched before PATH. Repeatable.")
@click.option("--response-file/--no-response-file", default=False, show_default=True, help="Pass arguments through a temporary response file.")
@click.option("--response-file-prefix", default="@", show_default=True, help="Token prefix the tool uses to read a response file.")
@click.option("--timeout", type=click.FloatRange(min=0), default=None, help="Kill the tool after this many seconds.")
@click.option("--cwd", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None, help="Working directory for the tool.")
@click.option("--env", "env", multiple=True, callback=parse_key_value, metavar="NAME=VALUE", help="Environment override. Repeatable.")
@logging_options
@click.pass_context
def exec_cli(
    ctx: click.Context,
    executable: str,
    arguments: tuple[str, ...],
    flags: tuple[str, ...],
    switches: dict[str, str],
    tool_path: Path | None,
    search_paths: tuple[Path, ...],
    response_file: bool,
    response_file_prefix: str,
    timeout: float | None,
    cwd: Path | None,
    env: dict[str, str],
    **kwargs,
):
    """
    Run EXECUTABLE once with ARGUMENTS.

    Options for toolshim go before EXECUTABLE; everything after it is passed
    to the tool unchanged.
    """
    _setup_logging(ctx, kwargs)
    try:
        tool_config = ToolConfig(
            executable_name=executable,
            tool_path_override=tool_path,
            positional_arguments=arguments,
            boolean_flags=flags,
            named_switches=switches,
            use_response_file=response_file,
            response_file_prefix=response_file_prefix,
            working_directory=cwd,
            environment_overrides=env,
            search_paths=search_paths,
            timeout=timeout,
        )
    except ConfigurationError as e:
        _config_error(ctx, e)
        return

    log.info("Executing 'exec' command", executable=executable)
    _finish(run_tool(tool_config))


@click.command(name="nunit3")
@click.argument("assemblies", nargs=-1, required=True)
@click.option("--result", default=None, help="Result file and options, e.g. 'out.xml;format=nunit2'.")
@click.option("--x86", "force_x86", is_flag=True, default=False, help="Run tests in a 32-bit process.")
@click.option("--framework", default=None, help="Framework version to run under.")
@click.option("--agents", default=None, help="Number of assemblies to run in parallel.")
@click.option("--where", default=None, help="Test selection expression.")
@click.option("--executable", default=NUNIT3_EXECUTABLE, show_default=True, help="Console runner executable name.")
@click.option("--tool-path", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory holding the console runner.")
@click.option("--response-file/--no-response-file", default=True, show_default=True, help="Pass arguments through a temporary response file.")
@click.option("--timeout", type=click.FloatRange(min=0), default=None, help="Kill the runner after this many seconds.")
@logging_options
@click.pass_context
def nunit3_cli(
    ctx: click.Context,
    assemblies: tuple[str, ...],
    result: str | None,
    force_x86: bool,
    framework: str | None,
    agents: str | None,
    where: str | None,
    executable: str,
    tool_path: Path | None,
    response_file: bool,
    timeout: float | None,
    **kwargs,
):
    """Run the NUnit3 console runner against ASSEMBLIES."""
    _setup_logging(ctx, kwargs)
    try:
        tool_config = nunit3_config(
            assemblies,
            result=result,
            force_x86=force_x86,
            framework=framework,
            agents=agents,
            where=where,
            executable_name=executable,
            use_response_file=response_file,
            tool_path_override=tool_path,
            timeout=timeout,
        )
    except ConfigurationError as e:
        _config_error(ctx, e)
        return

    log.info("Executing 'nunit3' command", assembly_count=len(assemblies))
    _finish(run_tool(tool_config))

# 🖥️⚙️
