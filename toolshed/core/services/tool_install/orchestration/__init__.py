"""
L5 Orchestration — ``__init__.py`` re-exports the installer and registry.
"""

from toolshed.core.services.tool_install.orchestration.installer import (  # noqa: F401
    VerifiedInstaller,
)
from toolshed.core.services.tool_install.orchestration.registry import (  # noqa: F401
    ALL,
    ToolRegistry,
    UpgradeCheck,
    build_registry,
)
