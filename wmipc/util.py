"""Small helpers: fatal errors, path normalisation, directory creation."""

from __future__ import annotations

import os
import re
import sys
from typing import NoReturn

_SLASHES = re.compile(r"/+")


def die(message: str) -> NoReturn:
    """Print *message* to stderr and exit with status 1.

    A message ending in ``':'`` is followed by a description of the error
    currently being handled, in the manner of ``perror``.
    """
    sys.stderr.write(message)
    if message.endswith(":"):
        exc = sys.exc_info()[1]
        if isinstance(exc, OSError) and exc.strerror:
            detail = exc.strerror
        elif exc is not None:
            detail = str(exc)
        else:
            detail = os.strerror(0)
        sys.stderr.write(f" {detail}\n")
    else:
        sys.stderr.write("\n")
    sys.stderr.flush()
    raise SystemExit(1)


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and drop a trailing slash."""
    collapsed = _SLASHES.sub("/", path)
    if collapsed.endswith("/"):
        collapsed = collapsed[:-1]
    return collapsed


def parent_dir(path: str) -> str:
    """Return everything before the last slash of the normalised *path*.

    Raises ValueError when the path holds no slash.
    """
    normal = normalize_path(path)
    index = normal.rfind("/")
    if index < 0:
        raise ValueError(f"path has no parent directory: {path!r}")
    return normal[:index]


def mkdirp(path: str | os.PathLike[str]) -> None:
    """Create *path* and any missing parents with mode 0700.

    Components that already exist are left alone; any other failure to
    inspect or create a component raises OSError.
    """
    normal = normalize_path(os.fspath(path))
    prefix = ""
    for position, part in enumerate(normal.split("/")):
        if position:
            prefix += "/"
        prefix += part
        if not part:
            continue
        try:
            os.stat(prefix)
        except FileNotFoundError:
            os.mkdir(prefix, 0o700)


def null_terminate(data: bytes) -> bytes:
    """Return *data* ending in exactly one added NUL unless it already ends in one."""
    if data.endswith(b"\0"):
        return data
    return data + b"\0"