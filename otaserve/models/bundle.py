"""Published bundle models — the shape of ``metadata.json`` and its derivatives.

Bundles are written by an external publishing process and are read-only
for the lifetime of a request. These models never leave the server.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AssetDescriptor(BaseModel):
    """Identifies one file within a bundle as referenced by bundle metadata."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    extension: str | None = None
    is_launch_asset: bool = False


class AssetEntry(BaseModel):
    """One secondary asset listed in a platform's file metadata."""

    model_config = ConfigDict(frozen=True)

    path: str
    ext: str | None = None


class PlatformFileMetadata(BaseModel):
    """File metadata for one platform: launch bundle plus secondary assets."""

    model_config = ConfigDict(frozen=True)

    bundle: str
    assets: list[AssetEntry] = []

    def descriptors(self) -> list[AssetDescriptor]:
        """Secondary assets in listing order, as descriptors."""
        return [
            AssetDescriptor(relative_path=a.path, extension=a.ext, is_launch_asset=False)
            for a in self.assets
        ]

    def launch_descriptor(self) -> AssetDescriptor:
        return AssetDescriptor(relative_path=self.bundle, extension=None, is_launch_asset=True)

    def find(self, relative_path: str) -> AssetDescriptor | None:
        """Look up a file of this platform by its bundle-relative path."""
        if relative_path == self.bundle:
            return self.launch_descriptor()
        for descriptor in self.descriptors():
            if descriptor.relative_path == relative_path:
                return descriptor
        return None


class BundleMetadata(BaseModel):
    """Parsed ``metadata.json``.

    Only ``fileMetadata`` is consumed; ``version``, ``bundler`` and any
    other top-level keys the exporter writes are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_metadata: dict[str, PlatformFileMetadata] = Field(alias="fileMetadata")


class BundleMetadataDocument(BaseModel):
    """``metadata.json`` as read from disk, with its derived identity.

    ``update_id`` is a pure function of ``raw`` — the sha256 of the exact
    bytes, formatted as a UUID.
    """

    model_config = ConfigDict(frozen=True)

    raw: bytes
    metadata: BundleMetadata
    created_at: str
    update_id: str

