"""
L5 Orchestration — Tool registry and batch operations.

The registry is built once per process from the catalog and passed
to the command handlers.  It answers version questions (latest from
the source, installed from the ``latest/`` symlink) and drives batch
install, upgrade and removal.

Batches isolate failures per tool: every tool gets a ToolOutcome and
the loop always moves on to the next one.  A Ctrl-C or a cancelled
token marks the in-flight and remaining tools as ``cancelled``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from toolshed.adapters.sources.base import ReleaseSource
from toolshed.adapters.sources.factory import create_source
from toolshed.core.config.loader import Settings
from toolshed.core.errors import ConfigurationError, InstallCancelled, ToolshedError
from toolshed.core.models.outcome import BatchReport, ToolOutcome
from toolshed.core.models.tool import GpgSignature, InlineChecksum, SharedChecksums, ToolSpec
from toolshed.core.reliability.cancellation import CancellationToken
from toolshed.core.services.tool_install.data.catalog import TOOL_CATALOG
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)
from toolshed.core.services.tool_install.domain.asset_matching import compile_pattern
from toolshed.core.services.tool_install.execution.layout import InstallLayout
from toolshed.core.services.tool_install.orchestration.installer import VerifiedInstaller
from toolshed.core.services.tool_install.resolver.release_cache import ReleaseCache

logger = logging.getLogger(__name__)

ALL = "all"

OnStart = Callable[[ToolSpec], None]
OnResult = Callable[[ToolOutcome], None]


@dataclass(frozen=True)
class UpgradeCheck:
    """Installed vs. latest version of one tool."""

    tool: ToolSpec
    installed: str | None = None
    latest: str | None = None
    error: ToolshedError | None = None

    @property
    def needed(self) -> bool:
        return self.error is None and self.installed != self.latest


class ToolRegistry:
    """Catalog of registered tools plus the operations over them.

    Args:
        tools: Initial tools to register.
        layout: Install root.  Defaults to ``~/.local/bin/toolshed``.
        settings: User settings (timeouts, tokens, policy overrides).
        plat: Target platform.  Defaults to the running one.
        source_factory: Builds a tool's source adapter.  Defaults to
            :func:`create_source` configured from ``settings``.
        key_loader: Passed through to the installer (signing keys).
    """

    def __init__(
        self,
        tools: Iterable[ToolSpec] = (),
        *,
        layout: InstallLayout | None = None,
        settings: Settings | None = None,
        plat: Platform | None = None,
        source_factory: Callable[[ToolSpec], ReleaseSource] | None = None,
        key_loader: Callable[[str], bytes] | None = None,
    ):
        self.layout = layout or InstallLayout()
        self.settings = settings or Settings()
        self.plat = plat or current_platform()
        self._source_factory = source_factory
        self._key_loader = key_loader
        self._tools: dict[str, ToolSpec] = {}
        for tool in tools:
            self.register(tool)

    # ── Catalog ─────────────────────────────────────────────────

    def register(self, tool: ToolSpec) -> None:
        """Add ``tool`` to the catalog.

        Raises:
            ConfigurationError: on a duplicate name or an invalid asset
                pattern.
        """
        if tool.name == ALL:
            raise ConfigurationError(f"'{ALL}' is reserved and cannot be a tool name")
        if tool.name in self._tools:
            raise ConfigurationError(f"tool '{tool.name}' is registered twice", tool=tool.name)
        for selector in _selectors(tool):
            if selector.pattern:
                compile_pattern(selector.pattern)
        self._tools[tool.name] = tool

    def names(self) -> list[str]:
        return sorted(self._tools)

    def tools(self) -> list[ToolSpec]:
        return [self._tools[n] for n in self.names()]

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise ConfigurationError(
                f"failed to locate '{name}' in list of supported tools",
                hint=f"Supported tools: {', '.join(self.names())}",
            ) from None

    def resolve(self, names: Sequence[str]) -> list[ToolSpec]:
        """Tools for CLI arguments; empty or ``all`` means every tool."""
        if not names or ALL in names:
            return self.tools()
        seen: dict[str, ToolSpec] = {}
        for name in names:
            seen.setdefault(name, self.get(name))
        return list(seen.values())

    # ── Versions ────────────────────────────────────────────────

    def source_for(self, tool: ToolSpec) -> ReleaseSource:
        if self._source_factory is not None:
            return self._source_factory(tool)
        return create_source(
            tool,
            plat=self.plat,
            timeout=self.settings.timeout,
            github_token=self.settings.github_token,
            mirror_url=self.settings.mirror_url,
        )

    def new_cache(self) -> ReleaseCache:
        """A fresh release cache for one command."""
        return ReleaseCache(self.source_for)

    def latest_version(self, tool: ToolSpec, cache: ReleaseCache | None = None) -> str:
        return (cache or self.new_cache()).version(tool)

    def installed_version(self, tool: ToolSpec) -> str | None:
        """Version ``latest/<executable>`` points into; None if not installed."""
        return self.layout.installed_version(tool)

    def is_installed(self, tool: ToolSpec) -> bool:
        return self.layout.is_installed(tool)

    def list_installed(self) -> list[tuple[ToolSpec, str | None, ToolshedError | None]]:
        """Installed tools with their linked version (or the lookup error)."""
        result = []
        for tool in self.tools():
            if not self.is_installed(tool):
                continue
            try:
                result.append((tool, self.installed_version(tool), None))
            except ToolshedError as e:
                result.append((tool, None, e))
        return result

    # ── Install / upgrade ───────────────────────────────────────

    def installer(self, cache: ReleaseCache) -> VerifiedInstaller:
        return VerifiedInstaller(
            self.layout, cache,
            plat=self.plat,
            timeout=self.settings.timeout,
            key_loader=self._key_loader,
        )

    def bulk_install(
        self,
        tools: Sequence[ToolSpec],
        *,
        cache: ReleaseCache | None = None,
        cancel: CancellationToken | None = None,
        on_start: OnStart | None = None,
        on_result: OnResult | None = None,
        operation: str = "install",
        previous: dict[str, str | None] | None = None,
    ) -> BatchReport:
        """Install ``tools`` in order, isolating per-tool failures.

        Raises:
            FilesystemError: only if the root/latest directories cannot
                be created, before any tool is attempted.
        """
        cache = cache or self.new_cache()
        cancel = cancel or CancellationToken()
        previous = previous or {}
        self.layout.ensure_dirs()
        installer = self.installer(cache)
        report = BatchReport(operation=operation)

        for tool in tools:
            if cancel.cancelled:
                outcome = ToolOutcome.cancel(tool.name)
            else:
                if on_start:
                    on_start(tool)
                outcome = self._install_one(installer, tool, cancel)
            if tool.name in previous:
                outcome = outcome.model_copy(update={"previous_version": previous[tool.name]})
            report.add(outcome)
            if on_result:
                on_result(outcome)
        return report

    def _install_one(
        self,
        installer: VerifiedInstaller,
        tool: ToolSpec,
        cancel: CancellationToken,
    ) -> ToolOutcome:
        policy = self.settings.mismatch_policy(tool.name, tool.on_checksum_mismatch)
        try:
            return installer.install(tool, on_mismatch=policy, cancel=cancel)
        except InstallCancelled:
            return ToolOutcome.cancel(tool.name)
        except KeyboardInterrupt:
            cancel.cancel("interrupted")
            logger.warning("Interrupted while installing %s", tool.name)
            return ToolOutcome.cancel(tool.name)
        except ToolshedError as e:
            logger.debug("Install of %s failed", tool.name, exc_info=True)
            return ToolOutcome.failure(tool.name, str(e), hint=e.hint)
        except OSError as e:
            logger.debug("Install of %s failed", tool.name, exc_info=True)
            return ToolOutcome.failure(tool.name, f"unexpected filesystem error: {e}")

    def check_upgrades(
        self,
        tools: Sequence[ToolSpec],
        cache: ReleaseCache | None = None,
    ) -> list[UpgradeCheck]:
        """Compare installed and latest versions; never raises per tool."""
        cache = cache or self.new_cache()
        checks = []
        for tool in tools:
            try:
                latest = cache.version(tool)
                installed = self.installed_version(tool)
            except ToolshedError as e:
                e.tool = e.tool or tool.name
                checks.append(UpgradeCheck(tool=tool, error=e))
                continue
            checks.append(UpgradeCheck(tool=tool, installed=installed, latest=latest))
        return checks

    def bulk_upgrade(
        self,
        tools: Sequence[ToolSpec],
        *,
        cache: ReleaseCache | None = None,
        checks: Sequence[UpgradeCheck] | None = None,
        cancel: CancellationToken | None = None,
        on_start: OnStart | None = None,
        on_result: OnResult | None = None,
    ) -> BatchReport:
        """Install the tools whose linked version differs from the latest.

        Up-to-date tools are reported as skipped, tools whose versions
        cannot be determined as failed.
        """
        cache = cache or self.new_cache()
        if checks is None:
            checks = self.check_upgrades(tools, cache)

        report = BatchReport(operation="upgrade")
        pending = []
        for check in checks:
            name = check.tool.name
            if check.error is not None:
                outcome = ToolOutcome.failure(
                    name, f"failed to determine version: {check.error}", hint=check.error.hint,
                )
            elif not check.needed:
                outcome = ToolOutcome.skip(
                    name,
                    f"already installed with latest version {check.latest}",
                    version=check.latest,
                    previous_version=check.installed,
                )
            else:
                pending.append(check)
                continue
            report.add(outcome)
            if on_result:
                on_result(outcome)

        if pending:
            installed = self.bulk_install(
                [c.tool for c in pending],
                cache=cache,
                cancel=cancel,
                on_start=on_start,
                on_result=on_result,
                operation="upgrade",
                previous={c.tool.name: c.installed for c in pending},
            )
            for outcome in installed.outcomes:
                report.add(outcome)

        order = {c.tool.name: i for i, c in enumerate(checks)}
        report.outcomes.sort(key=lambda o: order.get(o.tool, len(order)))
        return report

    # ── Removal ─────────────────────────────────────────────────

    def remove(
        self,
        tools: Sequence[ToolSpec],
        *,
        on_start: OnStart | None = None,
        on_result: OnResult | None = None,
    ) -> BatchReport:
        """Remove each tool's directory and links, isolating failures."""
        report = BatchReport(operation="remove")
        for tool in tools:
            if on_start:
                on_start(tool)
            try:
                self.layout.remove_tool(tool)
                outcome = ToolOutcome.success(tool.name, "removed")
            except ToolshedError as e:
                outcome = ToolOutcome.failure(tool.name, str(e), hint=e.hint)
            report.add(outcome)
            if on_result:
                on_result(outcome)
        return report

    def remove_all(self) -> None:
        """Delete the whole install root (one recursive delete)."""
        logger.info("Removing %s", self.layout.root_dir)
        self.layout.remove_all()


def _selectors(tool: ToolSpec):
    yield tool.primary
    if isinstance(tool.verification, (InlineChecksum, SharedChecksums, GpgSignature)):
        yield tool.verification.selector


def build_registry(
    settings: Settings | None = None,
    *,
    layout: InstallLayout | None = None,
    plat: Platform | None = None,
) -> ToolRegistry:
    """Registry holding the built-in catalog, with config overrides checked.

    Raises:
        ConfigurationError: on a broken catalog entry or config naming
            an unknown tool.
    """
    registry = ToolRegistry(TOOL_CATALOG, layout=layout, settings=settings, plat=plat)
    registry.settings.check_tool_names(set(registry.names()))
    return registry
