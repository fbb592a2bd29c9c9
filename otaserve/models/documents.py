"""Wire documents — the manifest and the directives sent to clients.

Serialized with camelCase keys in declaration order. ``to_wire_json()`` is
the single serializer: the string it returns is what gets signed and what
gets transmitted.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireDocument(BaseModel):
    """Base for every document that goes out in a multipart response."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_wire_json(self) -> str:
        """Compact JSON, key order preserved, non-ASCII kept as-is."""
        return json.dumps(
            self.to_wire_dict(), separators=(",", ":"), ensure_ascii=False
        )


class AssetMetadata(WireDocument):
    """Content-addressed description of one asset file.

    ``hash`` and ``key`` depend only on the file bytes.
    """

    hash: str  # base64url(sha256), unpadded
    key: str  # hex(md5)
    file_extension: str
    content_type: str | None
    url: str


class ManifestMetadata(WireDocument):
    update_timestamp: str
    update_relative_path: str


class ManifestExtra(WireDocument):
    expo_client: Any = None


class Manifest(WireDocument):
    """A new update and every asset the client needs to launch it."""

    id: str
    created_at: str
    runtime_version: str
    assets: list[AssetMetadata]
    launch_asset: AssetMetadata
    metadata: ManifestMetadata
    extra: ManifestExtra

    def all_assets(self) -> list[AssetMetadata]:
        """Secondary assets followed by the launch asset."""
        return [*self.assets, self.launch_asset]


class RollBackParameters(WireDocument):
    commit_time: str


class RollBackToEmbeddedDirective(WireDocument):
    """Instructs the client to drop downloaded updates and run its embedded build."""

    type: Literal["rollBackToEmbedded"] = "rollBackToEmbedded"
    parameters: RollBackParameters


class NoUpdateAvailableDirective(WireDocument):
    """Tells the client that what it is running is already current."""

    type: Literal["noUpdateAvailable"] = "noUpdateAvailable"


Directive = RollBackToEmbeddedDirective | NoUpdateAvailableDirective
