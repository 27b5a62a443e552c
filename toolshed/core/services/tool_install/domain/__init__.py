"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from toolshed.core.services.tool_install.domain.asset_matching import (  # noqa: F401
    containing,
    exactly_one,
    excluding_any,
    match_arch,
    match_arch_and_os,
    match_os,
    matching_pattern,
    select,
    select_one,
)
from toolshed.core.services.tool_install.domain.checksum_parsing import (  # noqa: F401
    digests_match,
    expected_digests,
    find_entry,
)
