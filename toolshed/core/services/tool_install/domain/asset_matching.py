"""
L1 Domain — Release asset matching.

Pure, side-effect-free filters over asset lists.  Every filter
accepts plain names or objects with a ``.name`` (ReleaseAsset) and
returns the matching subset in the original order.

Selecting "the binary" or "the checksum" always goes through
:func:`exactly_one`: zero matches raise ``AssetNotFound``, two or
more raise ``AmbiguousAsset``.  Nothing here picks a first match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import TypeVar

from toolshed.core.errors import AmbiguousAsset, AssetNotFound, ConfigurationError
from toolshed.core.models.tool import AssetSelector
from toolshed.core.services.tool_install.data.constants import ARCH_ALIASES, OS_ALIASES
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)

T = TypeVar("T")


def _name(item: object) -> str:
    return item if isinstance(item, str) else item.name  # type: ignore[attr-defined]


def _with_aliases(value: str, table: dict[str, tuple[str, ...]]) -> list[str]:
    value = value.lower()
    return [value, *table.get(value, ())]


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


# ── Platform filters ────────────────────────────────────────────


def match_arch(assets: Sequence[T], arch: str) -> list[T]:
    """Keep assets whose name mentions ``arch`` or one of its aliases.

    Case-insensitive substring test.
    """
    names = _with_aliases(arch, ARCH_ALIASES)
    return [a for a in assets if _contains_any(_name(a).lower(), names)]


def match_os(assets: Sequence[T], os_name: str) -> list[T]:
    """Keep assets whose name mentions ``os_name`` or one of its aliases."""
    names = _with_aliases(os_name, OS_ALIASES)
    return [a for a in assets if _contains_any(_name(a).lower(), names)]


def match_arch_and_os(assets: Sequence[T], plat: Platform | None = None) -> list[T]:
    """Assets matching both the architecture and the OS (AND, not union)."""
    plat = plat or current_platform()
    return match_os(match_arch(assets, plat.arch), plat.os)


# ── Term / pattern filters ──────────────────────────────────────


def containing(assets: Sequence[T], terms: Iterable[str]) -> list[T]:
    """Keep assets whose name contains ALL of ``terms``."""
    terms = list(terms)
    return [a for a in assets if all(t in _name(a) for t in terms)]


def excluding_any(assets: Sequence[T], terms: Iterable[str]) -> list[T]:
    """Keep assets whose name contains NONE of ``terms``."""
    terms = list(terms)
    return [a for a in assets if not _contains_any(_name(a), terms)]


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an asset-name regex.

    Raises:
        ConfigurationError: if the pattern is not a valid regex.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Asset pattern '{pattern}' is not a valid regex: {e}") from e


def matching_pattern(assets: Sequence[T], pattern: str) -> list[T]:
    """Keep assets whose name matches ``pattern`` (``re.search``)."""
    regex = compile_pattern(pattern)
    return [a for a in assets if regex.search(_name(a))]


# ── Selection ───────────────────────────────────────────────────


def select(
    assets: Sequence[T],
    selector: AssetSelector,
    plat: Platform | None = None,
) -> list[T]:
    """Apply every predicate of ``selector`` and return the survivors."""
    matches = list(assets)
    if selector.match_platform:
        matches = match_arch_and_os(matches, plat)
    if selector.include:
        matches = containing(matches, selector.include)
    if selector.exclude:
        matches = excluding_any(matches, selector.exclude)
    if selector.pattern:
        matches = matching_pattern(matches, selector.pattern)
    return matches


def exactly_one(matches: Sequence[T], what: str, *, tool: str | None = None) -> T:
    """Return the single element of ``matches``.

    Raises:
        AssetNotFound: if ``matches`` is empty.
        AmbiguousAsset: if it holds more than one element.
    """
    if not matches:
        raise AssetNotFound(f"failed to find {what} asset", tool=tool)
    if len(matches) > 1:
        names = [_name(m) for m in matches]
        raise AmbiguousAsset(
            f"unexpected number of {what} assets: expected 1, got {len(names)}: "
            + ", ".join(names),
            names,
            tool=tool,
        )
    return matches[0]


def select_one(
    assets: Sequence[T],
    selector: AssetSelector,
    what: str,
    *,
    plat: Platform | None = None,
    tool: str | None = None,
) -> T:
    """:func:`select` followed by :func:`exactly_one`."""
    return exactly_one(select(assets, selector, plat), what, tool=tool)
