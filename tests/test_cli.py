"""
Tests for CLI commands — install, upgrade, remove, list, and global options.

The registry is injected through ``ctx.obj`` so commands run against
in-memory sources and a temp install root.
"""

import json
import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from toolshed.core.models.tool import AssetSelector, InlineChecksum
from toolshed.core.services.tool_install.execution.layout import InstallLayout
from toolshed.core.services.tool_install.orchestration.registry import ToolRegistry
from toolshed.main import cli
from tests.tool_install.fake_sources import LINUX_AMD64, FakeSource, github_tool, widget_files


def _tool(name: str):
    return github_tool(name, primary=AssetSelector(exclude=("sha256",)), verification=InlineChecksum(),
                       description=f"The {name} tool")


@pytest.fixture
def sources() -> dict[str, FakeSource]:
    return {
        "alpha": FakeSource("v1.0.0", widget_files()),
        "beta": FakeSource(error="GET 'https://api.github.com/repos/example/beta/releases/latest' returned HTTP 404 Not Found"),
    }


@pytest.fixture
def registry(tmp_path: Path, sources) -> ToolRegistry:
    return ToolRegistry(
        [_tool("alpha"), _tool("beta")],
        layout=InstallLayout(tmp_path / "toolshed"),
        plat=LINUX_AMD64,
        source_factory=lambda tool: sources[tool.name],
    )


def _invoke(registry, *args, env=None):
    runner = CliRunner()
    return runner.invoke(cli, list(args), obj={"registry": registry}, env=env)


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "install" in result.output
        assert "upgrade" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config_exits_1(self, tmp_path: Path):
        config = tmp_path / "config.yml"
        config.write_text("timeout: -1\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "list", "available"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_missing_config_exits_1(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "list", "available"])
        assert result.exit_code == 1

    def test_config_naming_unknown_tool_exits_1(self, tmp_path: Path):
        config = tmp_path / "config.yml"
        config.write_text("tools:\n  not-a-tool:\n    checksum_mismatch: warn\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "list", "available"])
        assert result.exit_code == 1
        assert "not-a-tool" in result.output


class TestInstallCommand:
    def test_batch_continues_past_failure(self, registry):
        result = _invoke(registry, "install", env={"PATH": "/usr/bin"})

        assert result.exit_code == 0
        assert "Installing the following tools:" in result.output
        assert "- alpha v1.0.0" in result.output
        assert "- beta unknown" in result.output
        assert "Encountered error with beta" in result.output
        assert "Skipping..." in result.output
        assert "alpha: installed v1.0.0" in result.output
        assert registry.installed_version(registry.get("alpha")) == "v1.0.0"

    def test_warns_when_latest_dir_not_on_path(self, registry):
        result = _invoke(registry, "install", "alpha", env={"PATH": "/usr/bin"})
        assert "is not in your $PATH" in result.output
        assert f'export PATH="{registry.layout.latest_dir}:$PATH"' in result.output

    def test_no_warning_when_on_path(self, registry):
        path = os.pathsep.join(["/usr/bin", str(registry.layout.latest_dir)])
        result = _invoke(registry, "install", "alpha", env={"PATH": path})
        assert "$PATH" not in result.output

    def test_unknown_tool(self, registry):
        result = _invoke(registry, "install", "gamma")
        assert result.exit_code == 1
        assert "failed to locate 'gamma'" in result.output
        assert "Supported tools: alpha, beta" in result.output


class TestUpgradeCommand:
    def test_nothing_installed(self, registry):
        result = _invoke(registry, "upgrade")
        assert result.exit_code == 0
        assert "No tools are installed" in result.output

    def test_up_to_date_tool_is_not_reinstalled(self, registry, sources):
        _invoke(registry, "install", "alpha")
        downloads = len(sources["alpha"].downloaded)

        result = _invoke(registry, "upgrade")

        assert "alpha is already installed with latest version v1.0.0 and will not be upgraded" in result.output
        assert len(sources["alpha"].downloaded) == downloads

    def test_newer_version_is_installed(self, registry, sources):
        _invoke(registry, "install", "alpha")
        sources["alpha"].tag = "v2.0.0"

        result = _invoke(registry, "upgrade", "alpha", env={"PATH": "/usr/bin"})

        assert "- alpha v1.0.0 -> v2.0.0" in result.output
        assert registry.installed_version(registry.get("alpha")) == "v2.0.0"


class TestRemoveCommand:
    def test_no_names_prints_hint(self, registry):
        result = _invoke(registry, "remove")
        assert result.exit_code == 0
        assert "explicitly specify 'all'" in result.output

    def test_remove_one(self, registry):
        _invoke(registry, "install", "alpha")
        result = _invoke(registry, "remove", "alpha")
        assert result.exit_code == 0
        assert not registry.is_installed(registry.get("alpha"))

    def test_remove_all(self, registry):
        _invoke(registry, "install", "alpha")
        result = _invoke(registry, "remove", "all")
        assert "Successfully removed all tools" in result.output
        assert not registry.layout.root_dir.exists()


class TestListCommands:
    def test_available(self, registry):
        result = _invoke(registry, "list", "available")
        assert result.exit_code == 0
        assert result.output.split() == ["alpha", "beta"]

    def test_available_json(self, registry):
        result = _invoke(registry, "list", "available", "--json")
        data = json.loads(result.output)
        assert data[0] == {"name": "alpha", "executable": "alpha", "description": "The alpha tool"}

    def test_installed(self, registry):
        assert "No tools installed." in _invoke(registry, "list", "installed").output
        _invoke(registry, "install", "alpha")
        result = _invoke(registry, "list", "installed", "--json")
        assert json.loads(result.output) == [{"name": "alpha", "version": "v1.0.0", "error": None}]
