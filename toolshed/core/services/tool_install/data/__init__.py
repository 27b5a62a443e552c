"""
L0 Data — ``__init__.py`` re-exports the catalog and constants.
"""

from toolshed.core.services.tool_install.data.catalog import (  # noqa: F401
    TOOL_CATALOG,
    catalog_by_name,
)
from toolshed.core.services.tool_install.data.constants import (  # noqa: F401
    APP_DIR_NAME,
    ARCH_ALIASES,
    DEFAULT_TIMEOUT,
    LATEST_DIR_NAME,
    OS_ALIASES,
)
