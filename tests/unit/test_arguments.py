#
# tests/unit/test_arguments.py
#
"""
Tests for argument sequence building and response file materialization.
"""

from pathlib import Path

import pytest

from toolshim.config.models import ToolConfig
from toolshim.invoker.arguments import (
    build_argument_sequence,
    format_command_line,
    format_switch,
    materialize_arguments,
)
from toolshim.presets import nunit3_config


class TestBuildArgumentSequence:
    def test_nunit_example_sequence(self) -> None:
        """Assemblies first, then --x86, then --result."""
        config = nunit3_config(
            ["A.dll", "B.dll"], force_x86=True, result="out.xml;format=nunit2"
        )

        assert build_argument_sequence(config) == (
            "A.dll",
            "B.dll",
            "--x86",
            "--result=out.xml;format=nunit2",
        )

    def test_order_positionals_flags_switches(self) -> None:
        config = ToolConfig(
            executable_name="tool",
            named_switches={"zeta": "1", "alpha": "2"},
            boolean_flags=["--verbose", "--quiet"],
            positional_arguments=["in2.txt", "in1.txt"],
        )

        assert build_argument_sequence(config) == (
            "in2.txt",
            "in1.txt",
            "--verbose",
            "--quiet",
            "--zeta=1",
            "--alpha=2",
        )

    def test_deterministic_for_equal_configs(self) -> None:
        def make() -> ToolConfig:
            return ToolConfig(
                executable_name="tool",
                positional_arguments=["a", "b"],
                boolean_flags={"--x": True, "--y": False},
                named_switches={"where": "cat == Fast", "agents": "2"},
            )

        first, second = make(), make()
        assert first == second
        assert build_argument_sequence(first) == build_argument_sequence(second)
        assert build_argument_sequence(first) == build_argument_sequence(first)

    @pytest.mark.parametrize("blank", [None, "", "   ", "\t"])
    def test_blank_switch_is_omitted(self, blank: str | None) -> None:
        config = ToolConfig(
            executable_name="tool",
            named_switches={"agents": blank, "result": "out.xml"},
        )

        sequence = build_argument_sequence(config)

        assert sequence == ("--result=out.xml",)
        assert not any(arg.startswith("--agents") for arg in sequence)

    def test_present_switch_emitted_exactly_once(self) -> None:
        config = ToolConfig(executable_name="tool", named_switches={"framework": "net-4.5"})

        assert build_argument_sequence(config).count("--framework=net-4.5") == 1

    def test_false_flags_are_omitted_and_true_flags_verbatim(self) -> None:
        config = ToolConfig(
            executable_name="tool",
            boolean_flags={"--x86": False, "-noheader": True, "/trace": True},
        )

        assert build_argument_sequence(config) == ("-noheader", "/trace")

    def test_switch_name_dashes_are_normalized(self) -> None:
        assert format_switch("--result", "a.xml") == "--result=a.xml"
        assert format_switch("result", "a.xml") == "--result=a.xml"

    def test_switch_value_kept_verbatim(self) -> None:
        config = ToolConfig(
            executable_name="tool",
            named_switches={"where": "cat == 'Slow' && test =~ /Foo/"},
        )

        assert build_argument_sequence(config) == ("--where=cat == 'Slow' && test =~ /Foo/",)

    def test_empty_config_yields_no_arguments(self) -> None:
        assert build_argument_sequence(ToolConfig(executable_name="tool")) == ()


class TestMaterializeArguments:
    def test_inline_arguments_are_returned_unchanged(self) -> None:
        config = ToolConfig(executable_name="tool")

        with materialize_arguments(("a", "--b=c"), config) as arguments:
            assert arguments == ["a", "--b=c"]

    def test_response_file_contents_and_cleanup(self) -> None:
        config = ToolConfig(executable_name="tool", use_response_file=True)
        sequence = ("A.dll", "My Tests.dll", "--result=out.xml;format=nunit2", "ünïcode")

        with materialize_arguments(sequence, config) as arguments:
            assert len(arguments) == 1
            assert arguments[0].startswith("@")
            response_file = Path(arguments[0][1:])
            assert response_file.exists()
            assert response_file.suffix == ".rsp"
            content = response_file.read_bytes().decode("utf-8")
            assert content.splitlines() == list(sequence)

        assert not response_file.exists()

    def test_response_file_removed_when_block_raises(self) -> None:
        config = ToolConfig(executable_name="tool", use_response_file=True)

        with pytest.raises(RuntimeError):
            with materialize_arguments(("a",), config) as arguments:
                response_file = Path(arguments[0][1:])
                raise RuntimeError("boom")

        assert not response_file.exists()

    def test_each_invocation_gets_its_own_file(self) -> None:
        config = ToolConfig(executable_name="tool", use_response_file=True)

        with materialize_arguments(("a",), config) as first:
            with materialize_arguments(("b",), config) as second:
                assert first != second

    def test_custom_response_file_prefix(self) -> None:
        config = ToolConfig(
            executable_name="tool", use_response_file=True, response_file_prefix="--args-file="
        )

        with materialize_arguments(("a",), config) as arguments:
            assert arguments[0].startswith("--args-file=")
            assert Path(arguments[0].removeprefix("--args-file=")).read_text(encoding="utf-8") == "a\n"


def test_format_command_line_quotes_arguments() -> None:
    assert format_command_line("tool", ["a b", "c"]) == "tool 'a b' c"

# 🧪🔧
