"""Manifest construction from a published bundle.

Reads ``metadata.json`` (identity, creation time, per-platform files) and
``expoConfig.json`` (embedded verbatim under ``extra.expoClient``), then
describes every asset of the requested platform.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from otaserve.core.asset_metadata import AssetMetadataBuilder
from otaserve.core.errors import ExpoConfigNotFound, MetadataNotFound
from otaserve.core.filesystem import creation_time
from otaserve.core.hasher import compute_update_id
from otaserve.models.bundle import BundleMetadata, BundleMetadataDocument
from otaserve.models.documents import Manifest, ManifestExtra, ManifestMetadata

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
EXPO_CONFIG_FILENAME = "expoConfig.json"


def _load_metadata(path: Path) -> BundleMetadataDocument:
    raw = path.read_bytes()
    return BundleMetadataDocument(
        raw=raw,
        metadata=BundleMetadata.model_validate_json(raw),
        created_at=creation_time(path),
        update_id=compute_update_id(raw),
    )


def _load_json(path: Path) -> Any:
    document = json.loads(path.read_bytes().decode("utf-8"))
    # json.loads accepts lone surrogate escapes; they cannot be sent as UTF-8.
    json.dumps(document, ensure_ascii=False).encode("utf-8")
    return document


def update_timestamp(bundle_path: Path) -> str:
    return bundle_path.name


def update_relative_path(bundle_path: Path) -> str:
    """Last three path segments, ``/``-joined: ``updates/<rv>/<bundle>``."""
    return "/".join(bundle_path.parts[-3:])


class ManifestBuilder:
    """Builds the ``Manifest`` served for a normal update.

    Parameters
    ----------
    assets:
        Builder used for every asset, launch asset included.
    """

    def __init__(self, assets: AssetMetadataBuilder) -> None:
        self._assets = assets

    async def read_metadata(
        self, bundle_path: Path, runtime_version: str = ""
    ) -> BundleMetadataDocument:
        """Read ``metadata.json`` and derive the update id from its exact bytes.

        Raises
        ------
        MetadataNotFound
            If the document is absent, not JSON, or lacks ``fileMetadata``.
        """
        path = bundle_path / METADATA_FILENAME
        try:
            return await asyncio.to_thread(_load_metadata, path)
        except (OSError, ValidationError) as exc:
            raise MetadataNotFound(
                f"No update found with runtime version: {runtime_version}. Error: {exc}"
            ) from exc

    async def read_expo_config(
        self, bundle_path: Path, runtime_version: str = ""
    ) -> Any:
        path = bundle_path / EXPO_CONFIG_FILENAME
        try:
            return await asyncio.to_thread(_load_json, path)
        except (OSError, ValueError) as exc:
            raise ExpoConfigNotFound(
                f"No expo config json found with runtime version: {runtime_version}. "
                f"Error: {exc}"
            ) from exc

    async def build(
        self,
        bundle_path: Path,
        runtime_version: str,
        platform: str,
        metadata: BundleMetadataDocument | None = None,
    ) -> Manifest:
        """Assemble the full manifest.

        *metadata* may be passed in when the caller already read it (the
        negotiator does, to compare update ids first). Assets are hashed
        concurrently; any failure aborts the whole build.
        """
        if metadata is None:
            metadata = await self.read_metadata(bundle_path, runtime_version)

        platform_files = metadata.metadata.file_metadata.get(platform)
        if platform_files is None:
            raise MetadataNotFound(
                f"No {platform} files in update for runtime version: {runtime_version}"
            )

        expo_config = await self.read_expo_config(bundle_path, runtime_version)

        descriptors = [*platform_files.descriptors(), platform_files.launch_descriptor()]
        described = await asyncio.gather(
            *(
                self._assets.build(
                    bundle_path, d, runtime_version=runtime_version, platform=platform
                )
                for d in descriptors
            )
        )

        manifest = Manifest(
            id=metadata.update_id,
            created_at=metadata.created_at,
            runtime_version=runtime_version,
            assets=list(described[:-1]),
            launch_asset=described[-1],
            metadata=ManifestMetadata(
                update_timestamp=update_timestamp(bundle_path),
                update_relative_path=update_relative_path(bundle_path),
            ),
            extra=ManifestExtra(expo_client=expo_config),
        )
        logger.debug(
            "Built manifest %s for %s/%s with %d assets",
            manifest.id,
            runtime_version,
            platform,
            len(manifest.assets),
        )
        return manifest
