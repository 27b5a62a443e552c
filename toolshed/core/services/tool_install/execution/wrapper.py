"""
L4 Execution — Launcher wrapper scripts.

Some tools must run behind a proxy.  Instead of linking the real
binary, the installer writes a small bash launcher next to it that
exports the proxy variables, fails fast when the proxy is
unreachable, and ``exec``s the real executable.
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path

from toolshed.core.errors import FilesystemError
from toolshed.core.models.tool import ProxyWrapper
from toolshed.core.services.tool_install.data.constants import FILE_MODE

logger = logging.getLogger(__name__)

_HEADER = """\
#!/usr/bin/env bash
set \\
  -o nounset \\
  -o pipefail \\
  -o errexit
"""

# curl's exit code for an unreachable proxy is surfaced as 5
_PREFLIGHT = """\

if ! command -v curl &> /dev/null
then
  echo "WARN: curl is not installed, cannot preflight the proxy connection. If this command seems to hang you might need to connect to the VPN" 1>&2
else
  if ! curl --connect-timeout 1 {host} > /dev/null 2>&1
  then
    echo "toolshed: proxy {host} unavailable. Are you on the VPN?" 1>&2
    exit 5
  fi
fi
"""


def render_proxy_wrapper(spec: ProxyWrapper, target: Path) -> str:
    """Return the launcher script for ``target``."""
    proxy = shlex.quote(spec.proxy)
    lines = [
        _HEADER,
        f"export HTTPS_PROXY={proxy}\n",
        f"export HTTP_PROXY={proxy}\n",
    ]
    if spec.preflight:
        host = shlex.quote(spec.proxy.rsplit(":", 1)[0])
        lines.append(_PREFLIGHT.format(host=host))
    lines.append(f'\nexec {shlex.quote(str(target))} "$@"\n')
    return "".join(lines)


def write_proxy_wrapper(spec: ProxyWrapper, path: Path, target: Path, *, tool: str | None = None) -> Path:
    """Write the launcher to ``path`` (mode 0755) and return ``path``."""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        path.write_text(render_proxy_wrapper(spec, target), encoding="utf-8")
        os.chmod(path, FILE_MODE)
    except OSError as e:
        raise FilesystemError(f"failed to create launcher '{path}': {e}", tool=tool) from e
    logger.debug("Wrote launcher %s -> %s", path, target)
    return path
