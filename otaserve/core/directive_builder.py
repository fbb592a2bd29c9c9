"""Rollback and no-update-available directives.

Directives only exist from protocol version 1; gating is the negotiator's
job, these builders do not check it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from otaserve.core.bundle_resolver import ROLLBACK_MARKER
from otaserve.core.errors import RollbackMarkerMissing
from otaserve.core.filesystem import creation_time
from otaserve.models.documents import (
    NoUpdateAvailableDirective,
    RollBackParameters,
    RollBackToEmbeddedDirective,
)


class DirectiveBuilder:
    async def build_rollback(self, bundle_path: Path) -> RollBackToEmbeddedDirective:
        """Directive whose ``commitTime`` is the rollback marker's creation time."""
        marker = bundle_path / ROLLBACK_MARKER
        try:
            commit_time = await asyncio.to_thread(creation_time, marker)
        except OSError as exc:
            raise RollbackMarkerMissing(f"No rollback found. Error: {exc}") from exc
        return RollBackToEmbeddedDirective(
            parameters=RollBackParameters(commit_time=commit_time)
        )

    def build_no_update_available(self) -> NoUpdateAvailableDirective:
        return NoUpdateAvailableDirective()
