"""
L4 Execution — ``__init__.py`` re-exports filesystem-touching helpers.

Layout and links, archive unpacking, digest and signature checks,
launcher scripts.
"""

from toolshed.core.services.tool_install.execution.archive import (  # noqa: F401
    archive_stem,
    is_archive,
    unpack,
)
from toolshed.core.services.tool_install.execution.layout import (  # noqa: F401
    InstallLayout,
    default_root,
)
from toolshed.core.services.tool_install.execution.signature import (  # noqa: F401
    verify_detached_signature,
)
from toolshed.core.services.tool_install.execution.verify import (  # noqa: F401
    sha256_file,
    verify_checksum,
)
from toolshed.core.services.tool_install.execution.wrapper import (  # noqa: F401
    render_proxy_wrapper,
    write_proxy_wrapper,
)
