# src/toolshim/cli/utils.py

import asyncio
import logging

import click
import structlog

from toolshim.config.models import DEFAULT_KILL_GRACE_PERIOD, ToolConfig
from toolshim.invoker import InvocationOutcome, InvocationResult, OutputSink, ToolInvoker
from toolshim.telemetry.logger import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging.getLevelNamesMapping().keys()), case_sensitive=False)

# Shell conventions for outcomes that have no exit code of their own.
OUTCOME_EXIT_CODES = {
    InvocationOutcome.TIMED_OUT: 124,
    InvocationOutcome.LAUNCH_ERROR: 126,
    InvocationOutcome.TOOL_NOT_FOUND: 127,
    InvocationOutcome.CANCELLED: 130,
}


def logging_options(f):
    """Decorator to add logging options to any command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="TOOLSHIM_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="TOOLSHIM_LOG_FILE",
        help="Path to write logs to a file (JSON format).",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="TOOLSHIM_JSON_LOGS",
        help="Output console logs as JSON.",
    )(f)
    return f


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "WARNING",
) -> None:
    """
    Setup logging using context values, allowing local overrides.
    """
    obj = ctx.obj or {}
    log_level_str = local_log_level or obj.get("LOG_LEVEL") or default_log_level
    log_file_path = local_log_file or obj.get("LOG_FILE")
    use_json_logs = local_json_logs if local_json_logs is not None else obj.get("JSON_LOGS", False)

    numeric_level = logging.getLevelNamesMapping().get(log_level_str.upper())
    if numeric_level is None:
        numeric_level = logging.INFO
        log_level_str = "INFO"

    core_setup_logging(
        level=numeric_level,
        json_logs=use_json_logs,
        log_file=log_file_path,
    )

    log.debug(
        "CLI logging initialized via utils",
        level=log_level_str,
        file=log_file_path or "console",
        json=use_json_logs,
    )


def parse_key_value(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    """Click callback turning repeated NAME=VALUE options into an ordered dict."""
    parsed: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected NAME=VALUE, got '{item}'", ctx=ctx, param=param)
        parsed[name] = value
    return parsed


class ClickEchoSink(OutputSink):
    """Echoes tool output verbatim: stdout lines to stdout, stderr lines to stderr."""

    def on_stdout(self, line: str) -> None:
        click.echo(line)

    def on_stderr(self, line: str) -> None:
        click.echo(line, err=True)


def exit_code_for(result: InvocationResult) -> int:
    """Maps an InvocationResult to the exit code of the toolshim process."""
    if result.outcome is InvocationOutcome.SUCCESS:
        return 0
    if result.outcome is InvocationOutcome.TOOL_FAILURE:
        return result.exit_code if 0 < result.exit_code < 256 else 1
    return OUTCOME_EXIT_CODES[result.outcome]


def run_tool(config: ToolConfig, kill_grace_period=DEFAULT_KILL_GRACE_PERIOD) -> int:
    """
    Runs ``config`` with output streamed to the terminal and returns the
    exit code for the CLI.
    """
    invoker = ToolInvoker(sink=ClickEchoSink(), kill_grace_period=kill_grace_period)
    try:
        # Ctrl-C cancels the main task; the invoker kills the tool before re-raising.
        result = asyncio.run(invoker.invoke(config))
    except KeyboardInterrupt:
        log.warning("Invocation interrupted by KeyboardInterrupt (CTRL-C).")
        click.echo("Error: Interrupted.", err=True)
        return OUTCOME_EXIT_CODES[InvocationOutcome.CANCELLED]

    if result.outcome is InvocationOutcome.TOOL_NOT_FOUND:
        click.echo(f"Error: Tool not found: {result.error}", err=True)
    elif result.outcome is InvocationOutcome.LAUNCH_ERROR:
        click.echo(f"Error: Could not start '{result.executable_path}': {result.error}", err=True)
    elif result.outcome is InvocationOutcome.TIMED_OUT:
        click.echo(f"Error: '{config.executable_name}' timed out after {config.timeout}.", err=True)
    elif result.outcome is InvocationOutcome.TOOL_FAILURE:
        log.warning("Tool exited with a failure code", exit_code=result.exit_code)
    return exit_code_for(result)

# ⚙️🛠️
