#
# tests/unit/test_cli.py
#
"""
Tests for the toolshim command line interface.
"""

import logging
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from toolshim.cli.main import cli
from toolshim.cli.utils import exit_code_for
from toolshim.invoker import InvocationOutcome, InvocationResult

PYTHON = Path(sys.executable)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drops the handlers setup_logging bound to CliRunner's streams."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _exec(runner: CliRunner, *args: str):
    return runner.invoke(
        cli, ["exec", "--tool-path", str(PYTHON.parent), *args[:-1], PYTHON.name, "-c", args[-1]]
    )


class TestMainCLI:
    def test_cli_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "toolshim" in result.output.lower()
        for command in ("exec", "run", "nunit3", "config"):
            assert command in result.output

    def test_cli_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "version" in result.output

    def test_invalid_log_level(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--log-level", "INVALID", "config", "show", "--help"])

        assert result.exit_code != 0

    def test_json_logs_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--json-logs", "exec", "--help"])

        assert result.exit_code == 0


class TestExecCommand:
    def test_success_streams_output(self, runner: CliRunner) -> None:
        result = _exec(runner, "print('from the tool')")

        assert result.exit_code == 0
        assert "from the tool" in result.output

    def test_tool_exit_code_is_propagated(self, runner: CliRunner) -> None:
        result = _exec(runner, "import sys; sys.exit(3)")

        assert result.exit_code == 3

    def test_timeout_exit_code(self, runner: CliRunner) -> None:
        result = _exec(runner, "--timeout", "0.3", "import time; time.sleep(30)")

        assert result.exit_code == 124

    def test_tool_not_found(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["exec", "--tool-path", str(tmp_path), "missing-tool"])

        assert result.exit_code == 127
        assert "Tool not found" in result.output

    def test_switch_requires_name_value(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["exec", "--switch", "novalue", "tool"])

        assert result.exit_code == 2
        assert "NAME=VALUE" in result.output

    def test_env_override_reaches_tool(self, runner: CliRunner) -> None:
        result = _exec(
            runner, "--env", "TOOLSHIM_CLI_VAR=hello", "import os; print(os.environ['TOOLSHIM_CLI_VAR'])"
        )

        assert result.exit_code == 0
        assert "hello" in result.output


class TestNunit3Command:
    def test_missing_console_runner(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["nunit3", "A.dll", "--x86", "--result", "out.xml", "--tool-path", str(tmp_path)]
        )

        assert result.exit_code == 127
        assert "nunit3-console.exe" in result.output

    def test_requires_assemblies(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["nunit3"])

        assert result.exit_code == 2


class TestConfigDrivenCommands:
    @pytest.fixture
    def config_path(self, tmp_path: Path) -> Path:
        path = tmp_path / "toolshim.toml"
        path.write_text(
            "[tools.hello]\n"
            f"executable = {PYTHON.name!r}\n"
            f"tool_path = '{PYTHON.parent.as_posix()}'\n"
            "arguments = ['-c', 'import sys; print(\"hello\"); sys.exit(5)']\n"
            "\n"
            "[tools.nunit]\n"
            "preset = 'nunit3'\n"
            "assemblies = ['A.dll', 'B.dll']\n"
            "force_x86 = true\n"
            "result = 'out.xml;format=nunit2'\n"
        )
        return path

    def test_run_configured_tool(self, runner: CliRunner, config_path: Path) -> None:
        result = runner.invoke(cli, ["run", "hello", "-c", str(config_path)])

        assert result.exit_code == 5
        assert "hello" in result.output

    def test_run_unknown_tool(self, runner: CliRunner, config_path: Path) -> None:
        result = runner.invoke(cli, ["run", "missing", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Unknown tool 'missing'" in result.output

    def test_config_show(self, runner: CliRunner, config_path: Path) -> None:
        result = runner.invoke(cli, ["config", "show", "-c", str(config_path), "--arguments"])

        assert result.exit_code == 0
        assert "ToolshimConfig" in result.output
        assert "--result=out.xml;format=nunit2" in result.output

    def test_config_show_invalid(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[tools.t]\ntimeout = 5\n")

        result = runner.invoke(cli, ["config", "show", "-c", str(path)])

        assert result.exit_code == 1
        assert "Configuration problem" in result.output


@pytest.mark.parametrize(
    ("outcome", "exit_code", "expected"),
    [
        (InvocationOutcome.SUCCESS, 0, 0),
        (InvocationOutcome.TOOL_FAILURE, 1, 1),
        (InvocationOutcome.TOOL_FAILURE, -9, 1),
        (InvocationOutcome.TIMED_OUT, -9, 124),
        (InvocationOutcome.LAUNCH_ERROR, -1, 126),
        (InvocationOutcome.TOOL_NOT_FOUND, -1, 127),
        (InvocationOutcome.CANCELLED, -15, 130),
    ],
)
def test_exit_code_for(outcome: InvocationOutcome, exit_code: int, expected: int) -> None:
    assert exit_code_for(InvocationResult(outcome=outcome, exit_code=exit_code)) == expected

# 🧪🔧
