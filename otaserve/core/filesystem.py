"""Blocking filesystem primitives, run off the event loop by callers.

Bundles are immutable once published, so nothing here locks or writes.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path


def to_iso8601(timestamp: float) -> str:
    """UTC, millisecond precision, ``Z`` suffix."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def creation_time(path: Path) -> str:
    """Birth time of *path* as ISO 8601, falling back to mtime.

    Linux filesystems do not expose birth time through ``os.stat``.
    """
    st = path.stat()
    return to_iso8601(getattr(st, "st_birthtime", st.st_mtime))


def list_subdirectories(path: Path) -> list[str]:
    """Names of the immediate subdirectories of *path*, sorted by name."""
    with os.scandir(path) as entries:
        return sorted(e.name for e in entries if e.is_dir())


def list_entries(path: Path) -> list[str]:
    return sorted(os.listdir(path))
