"""
Tool installation service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → resolver → detection →
execution → orchestration).

The orchestration layer depends on the source adapters, which in
turn import from the layers below; import it directly::

    from toolshed.core.services.tool_install.orchestration import ToolRegistry
"""

# ── L0: Data ──
from toolshed.core.services.tool_install.data.catalog import TOOL_CATALOG  # noqa: F401

# ── L1: Domain ──
from toolshed.core.services.tool_install.domain.asset_matching import (  # noqa: F401
    select_one,
)

# ── L2: Resolver ──
from toolshed.core.services.tool_install.resolver.release_cache import (  # noqa: F401
    ReleaseCache,
)

# ── L3: Detection ──
from toolshed.core.services.tool_install.detection.platform_info import (  # noqa: F401
    Platform,
    current_platform,
)

# ── L4: Execution ──
from toolshed.core.services.tool_install.execution.layout import (  # noqa: F401
    InstallLayout,
)
