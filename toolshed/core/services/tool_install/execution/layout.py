"""
L4 Execution — Install directory layout.

The single place that derives on-disk paths::

    $HOME/.local/bin/toolshed/
      latest/
        <executable>  -> symlink into <tool>/<version>/...
      <tool>/
        <version>/
          <downloaded assets>      verified copies only
          <unpacked contents>
          unverified/              kept by a tolerated checksum mismatch
          .staging-*/              one install run, removed when it ends

No other module builds these paths by hand.  Version directories
are only ever deleted by an explicit tool removal.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from functools import lru_cache
from pathlib import Path

from toolshed.core.errors import ConfigurationError, FilesystemError
from toolshed.core.models.tool import ToolSpec
from toolshed.core.services.tool_install.data.constants import (
    APP_DIR_NAME,
    DIR_MODE,
    LATEST_DIR_NAME,
    STAGING_PREFIX,
    UNVERIFIED_DIR_NAME,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def default_root() -> Path:
    """``~/.local/bin/toolshed``, computed once per process.

    Raises:
        ConfigurationError: if the home directory cannot be determined.
    """
    try:
        home = Path.home()
    except (KeyError, RuntimeError) as e:
        raise ConfigurationError(f"failed to determine $HOME directory: {e}") from e
    return home / ".local" / "bin" / APP_DIR_NAME


class InstallLayout:
    """Path derivation and link management under one install root.

    Args:
        root: Install root.  Defaults to :func:`default_root`.
    """

    def __init__(self, root: Path | None = None):
        self._root = Path(root) if root is not None else default_root()

    @property
    def root_dir(self) -> Path:
        return self._root

    @property
    def latest_dir(self) -> Path:
        return self._root / LATEST_DIR_NAME

    def tool_dir(self, tool: ToolSpec) -> Path:
        return self._root / tool.name

    def version_dir(self, tool: ToolSpec, version: str) -> Path:
        if not version or "/" in version or version in (".", ".."):
            raise FilesystemError(f"refusing to use '{version}' as a version directory", tool=tool.name)
        return self.tool_dir(tool) / version

    def symlink_path(self, tool: ToolSpec, link_name: str | None = None) -> Path:
        """Path of ``tool``'s link in the latest directory."""
        return self.latest_dir / (link_name or tool.executable)

    # ── Directory management ────────────────────────────────────

    def ensure_dirs(self) -> None:
        """Create the root and latest directories (idempotent)."""
        for path in (self.root_dir, self.latest_dir):
            try:
                path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"failed to create directory '{path}': {e}") from e

    def prepare_version_dir(self, tool: ToolSpec, version: str) -> Path:
        """Create ``<tool>/<version>/``; an existing one is reused as-is."""
        path = self.version_dir(tool, version)
        try:
            path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"failed to create version-specific directory '{path}': {e}", tool=tool.name,
            ) from e
        return path

    def is_installed(self, tool: ToolSpec) -> bool:
        return self.tool_dir(tool).is_dir()

    # ── Staging ─────────────────────────────────────────────────

    def staging_dir(self, version_dir: Path, tool: ToolSpec) -> Path:
        """Fresh scratch directory inside ``version_dir`` for one install run.

        Living on the same filesystem as the version directory lets
        :meth:`promote` move verified files into place with renames.
        """
        try:
            return Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=version_dir))
        except OSError as e:
            raise FilesystemError(
                f"failed to create staging directory in '{version_dir}': {e}", tool=tool.name,
            ) from e

    def promote(self, src: Path, dest_dir: Path, trash: Path, tool: ToolSpec) -> Path:
        """Move ``src`` to ``dest_dir/<name>``, replacing what is there.

        Files are swapped with a single rename.  A directory already at
        the destination is first renamed into ``trash``, which the
        caller deletes.
        """
        dest = dest_dir / src.name
        try:
            if dest.is_dir() and not dest.is_symlink():
                trash.mkdir(exist_ok=True)
                os.replace(dest, trash / src.name)
            os.replace(src, dest)
        except OSError as e:
            raise FilesystemError(f"failed to move '{src}' to '{dest}': {e}", tool=tool.name) from e
        return dest

    def keep_unverified(self, staging: Path, version_dir: Path, tool: ToolSpec) -> Path:
        """Park a staging dir as ``<version>/unverified/``, replacing any earlier one."""
        dest = version_dir / UNVERIFIED_DIR_NAME
        try:
            if dest.exists():
                shutil.rmtree(dest)
            os.replace(staging, dest)
        except OSError as e:
            raise FilesystemError(f"failed to keep unverified files in '{dest}': {e}", tool=tool.name) from e
        return dest

    def discard(self, path: Path) -> None:
        """Best-effort delete of a scratch directory."""
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove scratch directory %s: %s", path, e)

    # ── Links ───────────────────────────────────────────────────

    def relink(self, tool: ToolSpec, target: Path, link_name: str | None = None) -> Path:
        """Point ``latest/<link_name>`` at ``target`` (remove, then link)."""
        link = self.symlink_path(tool, link_name)
        try:
            link.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"failed to remove existing link '{link}': {e}", tool=tool.name) from e

        try:
            os.symlink(target, link)
        except OSError as e:
            raise FilesystemError(f"failed to link '{target}' to '{link}': {e}", tool=tool.name) from e
        logger.debug("Linked %s -> %s", link, target)
        return link

    def installed_version(self, tool: ToolSpec) -> str | None:
        """Version the tool's latest link currently points into.

        Returns:
            The version directory name, or None when the link is absent.

        Raises:
            FilesystemError: if the link exists but is broken, or points
                outside ``<root>/<tool>/<version>/``.
        """
        link = self.symlink_path(tool)
        if not link.is_symlink():
            if link.exists():
                raise FilesystemError(f"'{link}' exists but is not a symlink", tool=tool.name)
            return None

        try:
            target = link.resolve(strict=True)
            root = self.root_dir.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise FilesystemError(f"failed to resolve symlinked file '{link}': {e}", tool=tool.name) from e

        try:
            parts = target.relative_to(root).parts
        except ValueError as e:
            raise FilesystemError(
                f"'{link}' points outside the install directory: {target}", tool=tool.name,
            ) from e
        if len(parts) < 3:
            raise FilesystemError(f"'{link}' does not point into a version directory: {target}", tool=tool.name)
        return parts[1]

    # ── Removal ─────────────────────────────────────────────────

    def remove_tool(self, tool: ToolSpec) -> None:
        """Delete the tool's whole directory tree and every link it owns."""
        tool_dir = self.tool_dir(tool)
        try:
            shutil.rmtree(tool_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"failed to remove '{tool_dir}': {e}", tool=tool.name) from e

        for name in tool.link_names:
            link = self.symlink_path(tool, name)
            try:
                link.unlink()
            except FileNotFoundError:
                logger.debug("No link at %s", link)
            except OSError as e:
                raise FilesystemError(f"failed to remove symlinked file '{link}': {e}", tool=tool.name) from e

    def remove_all(self) -> None:
        """Delete the entire install root in one recursive delete."""
        try:
            shutil.rmtree(self.root_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"failed to remove '{self.root_dir}': {e}") from e

    def on_path(self, path_env: str | None) -> bool:
        """Whether the latest directory is an entry of ``path_env``."""
        if not path_env:
            return False
        latest = os.path.normpath(str(self.latest_dir))
        return any(os.path.normpath(p) == latest for p in path_env.split(os.pathsep) if p)
