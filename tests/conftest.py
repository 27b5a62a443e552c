"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from toolshed.core.services.tool_install.detection.platform_info import Platform
from toolshed.core.services.tool_install.execution.layout import InstallLayout


@pytest.fixture
def linux_amd64() -> Platform:
    return Platform(os="linux", arch="amd64")


@pytest.fixture
def layout(tmp_path: Path) -> InstallLayout:
    """Install layout rooted in a temp directory."""
    return InstallLayout(tmp_path / "toolshed")
