#
# tests/unit/test_presets.py
#
"""
Tests for tool presets.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from toolshim.exceptions import ConfigurationError
from toolshim.invoker import build_argument_sequence
from toolshim.presets import NUNIT3_EXECUTABLE, get_preset, nunit3_config


class TestNunit3Preset:
    def test_defaults(self) -> None:
        config = nunit3_config(["Tests.dll"])

        assert config.executable_name == NUNIT3_EXECUTABLE
        assert config.use_response_file is True
        assert build_argument_sequence(config) == ("Tests.dll",)

    def test_all_switches_in_order(self) -> None:
        config = nunit3_config(
            ["A.dll"],
            result="r.xml",
            force_x86=True,
            framework="net-4.8",
            agents=2,
            where="cat != Slow",
        )

        assert build_argument_sequence(config) == (
            "A.dll",
            "--x86",
            "--agents=2",
            "--framework=net-4.8",
            "--result=r.xml",
            "--where=cat != Slow",
        )

    def test_blank_agents_is_not_unlimited(self) -> None:
        config = nunit3_config(["A.dll"], agents="")

        assert build_argument_sequence(config) == ("A.dll",)

    def test_extra_tool_config_options(self) -> None:
        config = nunit3_config(
            "A.dll", tool_path_override="C:\\tools", timeout=60, use_response_file=False
        )

        assert config.positional_arguments == ("A.dll",)
        assert config.tool_path_override == Path("C:\\tools")
        assert config.timeout == timedelta(minutes=1)
        assert config.use_response_file is False

    def test_assemblies_required(self) -> None:
        with pytest.raises(ConfigurationError, match="assembly"):
            nunit3_config([])


class TestPresetFactory:
    @pytest.mark.parametrize("name", ["nunit3", "NUnit3", "nunit3-console"])
    def test_lookup(self, name: str) -> None:
        assert get_preset(name) is nunit3_config

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError, match="Available presets"):
            get_preset("mstest")

# 🧪🔧
