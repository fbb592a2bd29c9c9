"""Multipart framing of manifests and directives.

Part bodies are the exact strings that were signed; the framer never
re-serializes a document.
"""

from __future__ import annotations

import json
from collections.abc import Mapping

from urllib3.fields import RequestField
from urllib3.filepost import choose_boundary, encode_multipart_formdata

from otaserve.models.documents import Manifest
from otaserve.models.response import FramedResponse, ResponsePart

DOCUMENT_CONTENT_TYPE = "application/json; charset=utf-8"
EXTENSIONS_CONTENT_TYPE = "application/json"
SIGNATURE_HEADER = "expo-signature"

# Directives do not exist before protocol version 1.
DIRECTIVE_PROTOCOL_VERSION = 1


def _request_field(part: ResponsePart) -> RequestField:
    field = RequestField(name=part.name, data=part.body, headers=dict(part.headers))
    field.make_multipart(content_type=part.content_type)
    return field


def document_part(name: str, body: str, signature: str | None = None) -> ResponsePart:
    headers = {SIGNATURE_HEADER: signature} if signature else {}
    return ResponsePart(
        name=name, content_type=DOCUMENT_CONTENT_TYPE, body=body, headers=headers
    )


def extensions_part(
    manifest: Manifest, asset_request_headers: Mapping[str, str]
) -> ResponsePart:
    """``{"assetRequestHeaders": {<asset key>: {...}}}`` for every asset."""
    headers_by_key = {
        asset.key: dict(asset_request_headers) for asset in manifest.all_assets()
    }
    body = json.dumps(
        {"assetRequestHeaders": headers_by_key},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return ResponsePart(name="extensions", content_type=EXTENSIONS_CONTENT_TYPE, body=body)


class ResponseFramer:
    """Assembles the multipart body and response headers."""

    def __init__(self, boundary_factory=choose_boundary) -> None:
        self._boundary_factory = boundary_factory

    def frame_manifest(
        self,
        manifest_json: str,
        manifest: Manifest,
        *,
        protocol_version: int,
        signature: str | None = None,
        asset_request_headers: Mapping[str, str] | None = None,
    ) -> FramedResponse:
        parts = [
            document_part("manifest", manifest_json, signature),
            extensions_part(manifest, asset_request_headers or {}),
        ]
        return self._frame(parts, protocol_version)

    def frame_directive(
        self, directive_json: str, *, signature: str | None = None
    ) -> FramedResponse:
        parts = [document_part("directive", directive_json, signature)]
        return self._frame(parts, DIRECTIVE_PROTOCOL_VERSION)

    def _frame(self, parts: list[ResponsePart], protocol_version: int) -> FramedResponse:
        boundary = self._boundary_factory()
        body, _ = encode_multipart_formdata(
            [_request_field(p) for p in parts], boundary=boundary
        )
        headers = {
            "expo-protocol-version": str(protocol_version),
            "expo-sfv-version": "0",
            "cache-control": "private, max-age=0",
            "content-type": f"multipart/mixed; boundary={boundary}",
        }
        return FramedResponse(status_code=200, headers=headers, parts=parts, body=body)
