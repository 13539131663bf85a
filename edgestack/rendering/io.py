"""File I/O operations for rendering."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path


def ensure_parent(path: Path) -> None:
    """Create the parent directories of ``path``; no-op when they exist."""
    path.parent.mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Replace ``path`` with ``text`` through a temporary file in the same directory.

    An existing file is overwritten without confirmation. The permissions are
    applied to the temporary file before the rename so that credential-bearing
    files are never readable with looser permissions.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_name)


def is_empty_dir(path: Path) -> bool:
    """True when ``path`` is missing or has no entries."""
    if not path.exists():
        return True
    return next(path.iterdir(), None) is None
