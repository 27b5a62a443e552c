"""
L3 Detection — ``__init__.py`` re-exports runtime platform probes.
"""

from toolshed.core.services.tool_install.detection.platform_info import (  # noqa: F401
    Platform,
    current_platform,
    detect_arch,
    detect_os,
)
