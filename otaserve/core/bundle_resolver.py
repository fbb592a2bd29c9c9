"""Latest-bundle resolution and update-type classification.

Layout consumed: ``{updates_root}/{runtime_version}/{bundle_dir}/``.

The resolver scans the runtime-version directory on every call. It sits
behind the narrow ``resolve_latest_bundle(runtime_version) -> Path``
interface so an index-backed implementation can replace it without
touching the negotiator.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from otaserve.core.errors import UnsupportedRuntimeVersion
from otaserve.core.filesystem import list_entries, list_subdirectories
from otaserve.models.protocol import UpdateType

logger = logging.getLogger(__name__)

ROLLBACK_MARKER = "rollback"

_NON_DIGITS = re.compile(r"\D")


def bundle_sort_key(dirname: str) -> str:
    """Strip every non-digit character; empty if none remain."""
    return _NON_DIGITS.sub("", dirname)


def _rank(sort_key: str) -> int:
    # An empty key ranks below every numeric key.
    return int(sort_key) if sort_key else -1


def select_latest(dirnames: list[str]) -> str | None:
    """Pick the directory whose cleaned key is numerically largest.

    Ties go to the first name in *dirnames*; callers pass names sorted
    lexicographically so the choice does not depend on the filesystem.
    """
    best: str | None = None
    best_rank = -2
    for name in dirnames:
        rank = _rank(bundle_sort_key(name))
        if rank > best_rank:
            best, best_rank = name, rank
    return best


class UpdateBundleResolver:
    """Locates the bundle directory to serve for a runtime version.

    Parameters
    ----------
    updates_root:
        Directory holding one subdirectory per runtime version.
    """

    def __init__(self, updates_root: Path) -> None:
        self._root = Path(updates_root)

    @property
    def updates_root(self) -> Path:
        return self._root

    def runtime_directory(self, runtime_version: str) -> Path:
        """Directory for *runtime_version*; rejects anything but one path segment."""
        if (
            not runtime_version
            or runtime_version in (".", "..")
            or "/" in runtime_version
            or "\\" in runtime_version
        ):
            raise UnsupportedRuntimeVersion(
                f"Unsupported runtime version: {runtime_version!r}"
            )
        return self._root / runtime_version

    async def resolve_latest_bundle(self, runtime_version: str) -> Path:
        """Return the path of the most recent bundle for *runtime_version*.

        Raises
        ------
        UnsupportedRuntimeVersion
            If the runtime-version directory is missing or holds no bundles.
        """
        runtime_dir = self.runtime_directory(runtime_version)
        if not await asyncio.to_thread(runtime_dir.is_dir):
            raise UnsupportedRuntimeVersion(
                f"Unsupported runtime version: {runtime_version}"
            )

        dirnames = await asyncio.to_thread(list_subdirectories, runtime_dir)
        latest = select_latest(dirnames)
        if latest is None:
            raise UnsupportedRuntimeVersion(
                f"No update bundles published for runtime version: {runtime_version}"
            )

        logger.debug(
            "Resolved runtime %s to bundle %s (of %d)", runtime_version, latest, len(dirnames)
        )
        return runtime_dir / latest


class UpdateTypeClassifier:
    """Labels a resolved bundle as a normal update or a rollback."""

    async def classify(self, bundle_path: Path) -> UpdateType:
        entries = await asyncio.to_thread(list_entries, bundle_path)
        if ROLLBACK_MARKER in entries:
            return UpdateType.ROLLBACK
        return UpdateType.NORMAL_UPDATE
