"""
L4 Execution — Archive unpacking.

Extracts ``.tar.gz`` / ``.tgz`` / ``.zip`` release archives into the
version directory, preserving executable bits: directories get the
archive's recorded mode, files their recorded mode or ``0755`` when
the archive records none.  macOS ``.pkg`` bundles are expanded with
``pkgutil``.  Entries that would land outside the destination are
rejected.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tarfile
import zipfile
from pathlib import Path

from toolshed.core.errors import UnarchiveError
from toolshed.core.services.tool_install.data.constants import (
    ARCHIVE_SUFFIXES,
    DIR_MODE,
    FILE_MODE,
)

logger = logging.getLogger(__name__)


def archive_suffix(name: str) -> str | None:
    """Return the archive suffix of ``name``, or None if it isn't one."""
    lower = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lower.endswith(suffix):
            return suffix
    return None


def is_archive(name: str) -> bool:
    return archive_suffix(name) is not None


def archive_stem(name: str) -> str:
    """``tool-1.0-linux-amd64.tar.gz`` → ``tool-1.0-linux-amd64``."""
    suffix = archive_suffix(name)
    return name[: -len(suffix)] if suffix else name


def _safe_target(dest: Path, member_name: str) -> Path:
    root = dest.resolve()
    target = Path(os.path.normpath(root / member_name))
    if target != root and root not in target.parents:
        raise UnarchiveError(f"archive entry '{member_name}' escapes the destination directory")
    return target


def _write_stream(source, target: Path, mode: int) -> None:
    target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    if target.is_symlink():
        target.unlink()
    with open(target, "wb") as out:
        shutil.copyfileobj(source, out)
    os.chmod(target, mode)


# ── tar ─────────────────────────────────────────────────────────


def _untar(archive: Path, dest: Path) -> None:
    with tarfile.open(archive, "r:*") as tar:
        for member in tar:
            target = _safe_target(dest, member.name)
            mode = member.mode & 0o7777

            if member.isdir():
                target.mkdir(mode=mode or DIR_MODE, parents=True, exist_ok=True)
            elif member.isfile() or member.islnk():
                stream = tar.extractfile(member)
                if stream is None:
                    raise UnarchiveError(f"cannot read archive entry '{member.name}'")
                with stream:
                    _write_stream(stream, target, mode or FILE_MODE)
            elif member.issym():
                _safe_target(dest, os.path.join(os.path.dirname(member.name), member.linkname))
                target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
                if target.is_symlink() or target.exists():
                    target.unlink()
                os.symlink(member.linkname, target)
            else:
                logger.debug("Skipping special archive entry %s", member.name)


# ── zip ─────────────────────────────────────────────────────────


def _unzip(archive: Path, dest: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            target = _safe_target(dest, info.filename)
            # Only entries written on Unix carry permission bits
            mode = (info.external_attr >> 16) & 0o7777 if info.create_system == 3 else 0
            if info.is_dir():
                target.mkdir(mode=mode or DIR_MODE, parents=True, exist_ok=True)
                continue
            with zf.open(info) as stream:
                _write_stream(stream, target, mode or FILE_MODE)


# ── pkg ─────────────────────────────────────────────────────────


def _expand_pkg(archive: Path, dest: Path) -> None:
    target = dest / archive_stem(archive.name)
    if target.exists():
        shutil.rmtree(target)
    result = subprocess.run(
        ["pkgutil", "--expand-full", str(archive), str(target)],
        capture_output=True, text=True, timeout=600,
    )
    if result.returncode != 0:
        raise UnarchiveError(
            f"pkgutil failed with exit code {result.returncode}: {result.stderr.strip()}"
        )


def unpack(archive: Path, dest: Path, *, tool: str | None = None) -> None:
    """Extract ``archive`` into ``dest``.

    Raises:
        UnarchiveError: if the archive is unreadable, unsupported, or
            contains entries pointing outside ``dest``.
    """
    suffix = archive_suffix(archive.name)
    logger.info("Unpacking %s into %s", archive.name, dest)
    try:
        if suffix in (".tar.gz", ".tgz"):
            _untar(archive, dest)
        elif suffix == ".zip":
            _unzip(archive, dest)
        elif suffix == ".pkg":
            _expand_pkg(archive, dest)
        else:
            raise UnarchiveError(f"'{archive.name}' is not a supported archive")
    except UnarchiveError as e:
        e.tool = e.tool or tool
        raise
    except (OSError, tarfile.TarError, zipfile.BadZipFile, subprocess.SubprocessError) as e:
        raise UnarchiveError(f"failed to unarchive '{archive}': {e}", tool=tool) from e
