"""Per-asset content-addressed metadata for manifests."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path

from otaserve.core.errors import AssetNotFound, AssetReadFailure
from otaserve.core.hasher import asset_hash, md5_hex
from otaserve.models.bundle import AssetDescriptor
from otaserve.models.documents import AssetMetadata

LAUNCH_ASSET_EXTENSION = "bundle"
LAUNCH_ASSET_CONTENT_TYPE = "application/javascript"

# Built-in table only; the host's mime.types files are not consulted.
_MIME_TYPES = mimetypes.MimeTypes()


def content_type_for_extension(extension: str | None) -> str | None:
    """MIME type for a bare extension (``"png"``), or ``None`` if unknown."""
    if not extension:
        return None
    content_type, _ = _MIME_TYPES.guess_type(f"asset.{extension.lstrip('.')}", strict=False)
    return content_type


def asset_url(
    base_url: str,
    bundle_path: Path,
    relative_path: str,
    runtime_version: str,
    platform: str,
) -> str:
    return (
        f"{base_url}/assets?asset={bundle_path.as_posix()}/{relative_path}"
        f"&runtimeVersion={runtime_version}&platform={platform}"
    )


def _hash_file(path: Path) -> tuple[str, str]:
    data = path.read_bytes()
    return asset_hash(data), md5_hex(data)


class AssetMetadataBuilder:
    """Computes ``AssetMetadata`` for one file of a bundle.

    Parameters
    ----------
    base_url:
        ``{protocol}://{host}[:{port}]`` of this server, prefixed to asset URLs.
    """

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url.rstrip("/")

    async def build(
        self,
        bundle_path: Path,
        descriptor: AssetDescriptor,
        *,
        runtime_version: str,
        platform: str,
    ) -> AssetMetadata:
        """Read the whole file and describe it.

        ``contentType`` is ``None`` for an unrecognised extension; unlike
        the asset-serving path, nothing guards that here.

        Raises
        ------
        AssetNotFound
            If the file does not exist. The caller's manifest build aborts.
        AssetReadFailure
            If the path exists but cannot be read as a file.
        """
        file_path = bundle_path / descriptor.relative_path
        try:
            file_hash, key = await asyncio.to_thread(_hash_file, file_path)
        except FileNotFoundError as exc:
            raise AssetNotFound(
                f"Asset {descriptor.relative_path} missing from bundle {bundle_path}"
            ) from exc
        except OSError as exc:
            raise AssetReadFailure(
                f"Asset {descriptor.relative_path} of bundle {bundle_path} "
                f"could not be read: {exc}"
            ) from exc

        if descriptor.is_launch_asset:
            extension = LAUNCH_ASSET_EXTENSION
            content_type: str | None = LAUNCH_ASSET_CONTENT_TYPE
        else:
            extension = descriptor.extension
            content_type = content_type_for_extension(descriptor.extension)

        return AssetMetadata(
            hash=file_hash,
            key=key,
            file_extension=f".{extension}" if extension else "",
            content_type=content_type,
            url=asset_url(
                self._base_url,
                bundle_path,
                descriptor.relative_path,
                runtime_version,
                platform,
            ),
        )
