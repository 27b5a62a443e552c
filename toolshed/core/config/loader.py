"""
Configuration loader — reads config.yml into a Settings model.

The file is optional: with no file every setting has a default.  It
is located by explicit path, then ``TOOLSHED_CONFIG``, then the XDG
config directory.  YAML is parsed with ``safe_load`` and validated
against the pydantic ``Settings`` schema.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolshed.adapters.sources.mirror import DEFAULT_MIRROR_URL
from toolshed.core.errors import ConfigurationError
from toolshed.core.models.tool import MismatchPolicy
from toolshed.core.services.tool_install.data.constants import APP_DIR_NAME, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
CONFIG_ENV_VAR = "TOOLSHED_CONFIG"


class ToolSettings(BaseModel):
    """Per-tool overrides."""

    model_config = ConfigDict(extra="forbid")

    checksum_mismatch: MismatchPolicy | None = None


class Settings(BaseModel):
    """User settings (all optional)."""

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    checksum_mismatch: MismatchPolicy | None = None
    github_token: str | None = None
    mirror_url: str = DEFAULT_MIRROR_URL
    tools: dict[str, ToolSettings] = Field(default_factory=dict)

    def mismatch_policy(self, tool: str, default: MismatchPolicy) -> MismatchPolicy:
        """Effective checksum-mismatch policy: per-tool > global > tool default."""
        override = self.tools.get(tool)
        if override and override.checksum_mismatch:
            return override.checksum_mismatch
        return self.checksum_mismatch or default

    def check_tool_names(self, known: set[str]) -> None:
        """Reject overrides for tools that aren't in the catalog."""
        unknown = sorted(set(self.tools) - known)
        if unknown:
            raise ConfigurationError(
                f"unknown tool(s) in config: {', '.join(unknown)}",
                hint=f"Known tools: {', '.join(sorted(known))}",
            )


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/toolshed/config.yml`` or ``~/.config/...``."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_DIR_NAME / CONFIG_FILE


def find_config_file(path: Path | None = None) -> tuple[Path | None, bool]:
    """Locate the config file.

    Returns:
        ``(path, explicit)``; ``explicit`` is True when the user named
        the file, in which case it must exist.
    """
    if path is not None:
        return path, True
    env = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env:
        return Path(env), True
    candidate = default_config_path()
    return (candidate if candidate.is_file() else None), False


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to config.yml.  If None, searches the
            environment variable and the default location.

    Returns:
        Validated Settings (defaults when no file exists).

    Raises:
        ConfigurationError: If a named file is missing or any file is
            invalid.
    """
    path, explicit = find_config_file(path)

    if path is None:
        logger.debug("No config file, using defaults")
        return Settings()

    if not path.is_file():
        if explicit:
            raise ConfigurationError(f"Config file not found: {path}")
        return Settings()

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s", path)
    return settings
