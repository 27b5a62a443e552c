"""
L5 Orchestration — Verified installer.

Installs one tool through a fixed, strictly sequential state machine:

    resolve → select → prepare → download → verify → unpack → relink

Each step either completes or raises; nothing is retried.  Assets are
downloaded, verified and unpacked inside a per-run staging directory;
only verified content is moved into the version directory, and the
shared ``latest/`` directory is only touched by the final relink.  A
failure at any earlier step therefore leaves the previously installed
version linked and intact, even when it is the same version.  Version
directories are reused, never wiped.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from toolshed.adapters.sources.base import ReleaseSource
from toolshed.adapters.sources.http import fetch_bytes
from toolshed.core.errors import ChecksumMismatch, FilesystemError, UnarchiveError
from toolshed.core.models.outcome import ToolOutcome
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import (
    GpgSignature,
    InlineChecksum,
    MismatchPolicy,
    NoVerification,
    SharedChecksums,
    ToolSpec,
)
from toolshed.core.reliability.cancellation import CancellationToken
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)
from toolshed.core.services.tool_install.domain.asset_matching import select_one
from toolshed.core.services.tool_install.execution.archive import (
    archive_stem,
    is_archive,
    unpack,
)
from toolshed.core.services.tool_install.execution.layout import InstallLayout
from toolshed.core.services.tool_install.execution.signature import verify_detached_signature
from toolshed.core.services.tool_install.execution.verify import verify_checksum
from toolshed.core.services.tool_install.execution.wrapper import write_proxy_wrapper
from toolshed.core.services.tool_install.resolver.release_cache import ReleaseCache

logger = logging.getLogger(__name__)

# Scratch subdirectories of a staging dir
UNPACKED_DIR_NAME = ".unpacked"
REPLACED_DIR_NAME = ".replaced"


@dataclass
class InstallPlan:
    """What SelectAssets decided for one tool."""

    tool: ToolSpec
    release: Release
    primary: ReleaseAsset
    companion: ReleaseAsset | None = None
    paths: dict[str, Path] = field(default_factory=dict)

    @property
    def version(self) -> str:
        return self.release.tag

    @property
    def assets(self) -> list[ReleaseAsset]:
        return [a for a in (self.primary, self.companion) if a is not None]


class VerifiedInstaller:
    """Installs single tools into an :class:`InstallLayout`.

    Args:
        layout: Install root and link management.
        releases: Request-scoped release cache (also hands out sources).
        plat: Platform to install for.  Defaults to the running one.
        timeout: Timeout for fetching signing keys.
        key_loader: Fetches a public key by URL.  Defaults to an HTTP GET.
    """

    def __init__(
        self,
        layout: InstallLayout,
        releases: ReleaseCache,
        *,
        plat: Platform | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        key_loader: Callable[[str], bytes] | None = None,
    ):
        self.layout = layout
        self.releases = releases
        self.plat = plat or current_platform()
        self.timeout = timeout
        self._key_loader = key_loader or (lambda url: fetch_bytes(url, timeout=self.timeout))
        self._keys: dict[str, bytes] = {}

    def install(
        self,
        tool: ToolSpec,
        *,
        on_mismatch: MismatchPolicy | None = None,
        cancel: CancellationToken | None = None,
    ) -> ToolOutcome:
        """Run the full state machine for ``tool``.

        Returns:
            ``ok`` once the new version is linked, or ``skipped`` when a
            checksum mismatch is tolerated by a ``warn`` policy (the
            downloads are kept in ``<version>/unverified/``, nothing is
            relinked).

        Raises:
            ToolshedError: any terminal failure, including
                ``InstallCancelled``.
        """
        cancel = cancel or CancellationToken()
        policy = on_mismatch or tool.on_checksum_mismatch

        cancel.raise_if_cancelled(tool.name)
        release = self.releases.release(tool)
        logger.info("%s: latest release is %s", tool.name, release.tag)

        plan = self.select_assets(tool, release)

        cancel.raise_if_cancelled(tool.name)
        version_dir = self.layout.prepare_version_dir(tool, plan.version)
        staging = self.layout.staging_dir(version_dir, tool)
        try:
            return self._install_staged(plan, version_dir, staging, policy, cancel)
        finally:
            self.layout.discard(staging)

    def _install_staged(
        self,
        plan: InstallPlan,
        version_dir: Path,
        staging: Path,
        policy: MismatchPolicy,
        cancel: CancellationToken,
    ) -> ToolOutcome:
        tool = plan.tool
        source = self.releases.source(tool)

        cancel.raise_if_cancelled(tool.name)
        self._download(plan, source, staging)

        cancel.raise_if_cancelled(tool.name)
        try:
            self._verify(plan, source)
        except ChecksumMismatch as e:
            e.tool = e.tool or tool.name
            if policy != "warn":
                raise
            kept = self.layout.keep_unverified(staging, version_dir, tool)
            logger.warning("%s: %s; not linking, files left in %s", tool.name, e, kept)
            return ToolOutcome.skip(
                tool.name,
                f"checksum mismatch, not linked: {e}",
                version=plan.version,
                hint=e.hint,
            )

        cancel.raise_if_cancelled(tool.name)
        self._unpack(plan, staging)
        self._promote(plan, staging, version_dir)
        links = self._resolve_links(plan, version_dir)

        cancel.raise_if_cancelled(tool.name)
        for link_name, target in links.items():
            self.layout.relink(tool, target, link_name)
        logger.info("%s: linked %s", tool.name, plan.version)

        return ToolOutcome.success(tool.name, f"installed {plan.version}", version=plan.version)

    # ── SelectAssets ────────────────────────────────────────────

    def select_assets(self, tool: ToolSpec, release: Release) -> InstallPlan:
        """Pick exactly one primary asset and at most one companion."""
        primary = select_one(
            release.assets, tool.primary, "primary", plat=self.plat, tool=tool.name,
        )
        companion = None
        strategy = tool.verification
        if isinstance(strategy, (InlineChecksum, SharedChecksums)):
            companion = select_one(
                release.assets, strategy.selector, "checksum", plat=self.plat, tool=tool.name,
            )
        elif isinstance(strategy, GpgSignature):
            companion = select_one(
                release.assets, strategy.selector, "signature", plat=self.plat, tool=tool.name,
            )
        logger.debug(
            "%s: selected %s%s", tool.name, primary.name,
            f" + {companion.name}" if companion else "",
        )
        return InstallPlan(tool=tool, release=release, primary=primary, companion=companion)

    # ── Download ────────────────────────────────────────────────

    def _download(self, plan: InstallPlan, source: ReleaseSource, staging: Path) -> None:
        logger.info("%s: downloading %s", plan.tool.name, ", ".join(a.name for a in plan.assets))
        paths = source.download(plan.assets, staging)
        plan.paths = {a.name: p for a, p in zip(plan.assets, paths)}

    # ── Verify ──────────────────────────────────────────────────

    def _verify(self, plan: InstallPlan, source: ReleaseSource) -> None:
        strategy = plan.tool.verification
        name = plan.tool.name
        primary_path = plan.paths[plan.primary.name]

        if isinstance(strategy, NoVerification):
            logger.debug("%s: no published checksum, skipping verification", name)
            return

        companion_path = plan.paths[plan.companion.name]
        if isinstance(strategy, GpgSignature):
            verify_detached_signature(
                primary_path, companion_path, self._signing_key(strategy.key_url), tool=name,
            )
            return

        verify_checksum(
            primary_path,
            companion_path,
            multi_format=isinstance(strategy, SharedChecksums) and strategy.multi_format,
            allow_bare=isinstance(strategy, InlineChecksum),
            download_url=source.manual_url(plan.primary),
            tool=name,
        )

    def _signing_key(self, url: str) -> bytes:
        if url not in self._keys:
            logger.debug("Fetching signing key %s", url)
            self._keys[url] = self._key_loader(url)
        return self._keys[url]

    # ── Unpack ──────────────────────────────────────────────────

    def _unpack(self, plan: InstallPlan, staging: Path) -> None:
        if not is_archive(plan.primary.name):
            return
        tool = plan.tool
        unpacked = staging / UNPACKED_DIR_NAME
        try:
            unpacked.mkdir()
        except OSError as e:
            raise FilesystemError(f"failed to create '{unpacked}': {e}", tool=tool.name) from e

        unpack(plan.paths[plan.primary.name], unpacked, tool=tool.name)

        for old, new in tool.renames.items():
            src = self._inside(unpacked, old, tool)
            dst = self._inside(unpacked, new, tool)
            if not src.exists():
                if dst.exists():
                    continue
                raise UnarchiveError(f"expected '{old}' in the unpacked archive", tool=tool.name)
            try:
                os.rename(src, dst)
            except OSError as e:
                raise FilesystemError(f"failed to rename '{src}' to '{dst}': {e}", tool=tool.name) from e

    # ── Promote ─────────────────────────────────────────────────

    def _promote(self, plan: InstallPlan, staging: Path, version_dir: Path) -> None:
        """Move verified downloads and unpacked entries into ``version_dir``."""
        tool = plan.tool
        trash = staging / REPLACED_DIR_NAME
        for name, path in list(plan.paths.items()):
            plan.paths[name] = self.layout.promote(path, version_dir, trash, tool)

        unpacked = staging / UNPACKED_DIR_NAME
        if unpacked.is_dir():
            for entry in sorted(unpacked.iterdir()):
                self.layout.promote(entry, version_dir, trash, tool)
        logger.debug("%s: promoted verified files into %s", tool.name, version_dir)

    # ── Executable and links ────────────────────────────────────

    def template_vars(self, plan: InstallPlan) -> dict[str, str]:
        return {
            "asset": plan.primary.name,
            "stem": archive_stem(plan.primary.name),
            "version": plan.version,
            "os": self.plat.os,
            "arch": self.plat.arch,
            **plan.tool.os_vars.get(self.plat.os, {}),
        }

    def _resolve_links(self, plan: InstallPlan, version_dir: Path) -> dict[str, Path]:
        """Map every link name the tool owns to its target file."""
        tool = plan.tool
        values = self.template_vars(plan)

        executable = self._existing(version_dir, tool.executable_path, values, tool)
        if tool.wrapper is not None:
            executable = write_proxy_wrapper(
                tool.wrapper, version_dir / tool.executable, executable, tool=tool.name,
            )

        links = {tool.executable: executable}
        for link_name, template in tool.extra_links.items():
            links[link_name] = self._existing(version_dir, template, values, tool)
        return links

    def _existing(self, version_dir: Path, template: str, values: dict[str, str], tool: ToolSpec) -> Path:
        try:
            rel = template.format(**values)
        except KeyError as e:
            raise FilesystemError(
                f"path template '{template}' uses unknown field {e} on {self.plat}", tool=tool.name,
            ) from e
        path = self._inside(version_dir, rel, tool)
        if not path.is_file():
            raise FilesystemError(f"expected executable not found at '{path}'", tool=tool.name)
        return path

    @staticmethod
    def _inside(version_dir: Path, rel: str, tool: ToolSpec) -> Path:
        base = Path(os.path.normpath(version_dir))
        path = Path(os.path.normpath(base / rel))
        if base not in path.parents:
            raise FilesystemError(f"'{rel}' points outside '{version_dir}'", tool=tool.name)
        return path

