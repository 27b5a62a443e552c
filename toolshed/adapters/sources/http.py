"""
HTTP helpers shared by the source adapters.

Thin wrappers over ``urllib.request`` that always pass an explicit
timeout and translate transport failures into ``SourceUnavailable``.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

from toolshed import __version__
from toolshed.core.errors import FilesystemError, SourceUnavailable
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT, FILE_MODE

logger = logging.getLogger(__name__)

USER_AGENT = f"toolshed/{__version__}"


def join_url(base: str, *parts: str) -> str:
    """Join URL path segments without doubling or dropping slashes."""
    url = base.rstrip("/")
    for part in parts:
        part = part.strip("/")
        if part:
            url = f"{url}/{part}"
    return url


def open_url(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    headers: dict[str, str] | None = None,
):
    """Open ``url`` for reading.  The caller must close the response.

    Raises:
        SourceUnavailable: on HTTP errors, DNS/connection failures and
            timeouts.
    """
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT, **(headers or {})})
    logger.debug("GET %s", url)
    try:
        return urllib.request.urlopen(req, timeout=timeout)
    except urllib.error.HTTPError as e:
        raise SourceUnavailable(f"GET '{url}' returned HTTP {e.code} {e.reason}") from e
    except urllib.error.URLError as e:
        raise SourceUnavailable(f"failed to GET '{url}': {e.reason}") from e
    except (TimeoutError, OSError) as e:
        raise SourceUnavailable(f"failed to GET '{url}': {e}") from e


def fetch_bytes(url: str, *, timeout: float = DEFAULT_TIMEOUT, headers: dict[str, str] | None = None) -> bytes:
    with open_url(url, timeout=timeout, headers=headers) as resp:
        try:
            return resp.read()
        except (TimeoutError, OSError) as e:
            raise SourceUnavailable(f"failed to read response from '{url}': {e}") from e


def fetch_text(url: str, *, timeout: float = DEFAULT_TIMEOUT, headers: dict[str, str] | None = None) -> str:
    return fetch_bytes(url, timeout=timeout, headers=headers).decode("utf-8", errors="replace")


def fetch_json(url: str, *, timeout: float = DEFAULT_TIMEOUT, headers: dict[str, str] | None = None) -> Any:
    raw = fetch_bytes(url, timeout=timeout, headers=headers)
    try:
        return json.loads(raw)
    except ValueError as e:
        raise SourceUnavailable(f"invalid JSON from '{url}': {e}") from e


def download_to(
    url: str,
    path: Path,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    headers: dict[str, str] | None = None,
    mode: int = FILE_MODE,
) -> Path:
    """Stream ``url`` into ``path`` and set its mode."""
    with open_url(url, timeout=timeout, headers=headers) as resp:
        try:
            with open(path, "wb") as out:
                shutil.copyfileobj(resp, out)
        except (TimeoutError, ConnectionError) as e:
            raise SourceUnavailable(f"failed to download '{url}': {e}") from e
        except OSError as e:
            raise FilesystemError(f"failed to write '{path}': {e}") from e
    try:
        os.chmod(path, mode)
    except OSError as e:
        raise FilesystemError(f"failed to set permission on '{path}': {e}") from e
    logger.debug("Downloaded %s -> %s", url, path)
    return path


def file_name_from_url(url: str) -> str:
    return Path(urllib.parse.urlparse(url).path).name
