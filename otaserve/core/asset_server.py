"""Serving of individual asset files referenced by manifest URLs.

Only files the latest bundle's metadata lists for the platform are served;
anything else is not found, never read.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from otaserve.core.asset_metadata import (
    LAUNCH_ASSET_CONTENT_TYPE,
    content_type_for_extension,
)
from otaserve.core.bundle_resolver import UpdateBundleResolver
from otaserve.core.errors import AssetNotFound, AssetReadFailure
from otaserve.core.manifest_builder import ManifestBuilder
from otaserve.models.response import ServedAsset

logger = logging.getLogger(__name__)


class AssetServer:
    """Loads one asset of the latest bundle for a runtime version.

    Parameters
    ----------
    resolver:
        Same resolver the negotiator uses, so URLs stay valid for the
        bundle that was last advertised.
    manifests:
        Used to read the bundle's ``metadata.json``.
    """

    def __init__(self, resolver: UpdateBundleResolver, manifests: ManifestBuilder) -> None:
        self._resolver = resolver
        self._manifests = manifests

    async def load(self, asset: str, runtime_version: str, platform: str) -> ServedAsset:
        """Return the bytes and content type of *asset*.

        *asset* is the value of the ``asset`` query parameter:
        ``<bundle path>/<relative path>``.

        Raises
        ------
        UnsupportedRuntimeVersion
            No bundle for *runtime_version*.
        MetadataNotFound
            The bundle's ``metadata.json`` is unreadable.
        AssetNotFound
            *asset* is not a file the bundle lists for *platform*, or the
            file is gone.
        AssetReadFailure
            The file exists but cannot be read, or its extension maps to
            no content type.
        """
        bundle_path = await self._resolver.resolve_latest_bundle(runtime_version)
        document = await self._manifests.read_metadata(bundle_path, runtime_version)

        prefix = f"{bundle_path.as_posix()}/"
        relative_path = asset[len(prefix):] if asset.startswith(prefix) else asset

        platform_files = document.metadata.file_metadata.get(platform)
        descriptor = platform_files.find(relative_path) if platform_files else None
        if descriptor is None:
            raise AssetNotFound(f'Asset "{asset}" does not exist.')

        file_path = bundle_path / descriptor.relative_path
        if not await asyncio.to_thread(_is_within, file_path, bundle_path):
            raise AssetNotFound(f'Asset "{asset}" does not exist.')

        try:
            content = await asyncio.to_thread(file_path.read_bytes)
        except FileNotFoundError as exc:
            raise AssetNotFound(f'Asset "{asset}" does not exist.') from exc
        except OSError as exc:
            logger.error("Failed to read asset %s: %s", file_path, exc)
            raise AssetReadFailure(str(exc)) from exc

        if descriptor.is_launch_asset:
            content_type = LAUNCH_ASSET_CONTENT_TYPE
        else:
            content_type = content_type_for_extension(descriptor.extension)
            if content_type is None:
                raise AssetReadFailure(
                    f'No content type known for extension "{descriptor.extension}"'
                )

        return ServedAsset(content=content, content_type=content_type)


def _is_within(path: Path, root: Path) -> bool:
    return path.resolve().is_relative_to(root.resolve())
