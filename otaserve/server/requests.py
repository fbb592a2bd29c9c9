"""Parsing of protocol request headers and query parameters."""

from __future__ import annotations

from collections.abc import Mapping

from starlette.datastructures import Headers

from otaserve.core.errors import InvalidUpdateRequest
from otaserve.models.protocol import (
    SUPPORTED_PLATFORMS,
    SUPPORTED_PROTOCOL_VERSIONS,
    UpdateRequest,
)

PROTOCOL_VERSION_HEADER = "expo-protocol-version"
PLATFORM_HEADER = "expo-platform"
RUNTIME_VERSION_HEADER = "expo-runtime-version"
CURRENT_UPDATE_ID_HEADER = "expo-current-update-id"
EMBEDDED_UPDATE_ID_HEADER = "expo-embedded-update-id"
EXPECT_SIGNATURE_HEADER = "expo-expect-signature"


def parse_protocol_version(headers: Headers) -> int:
    values = headers.getlist(PROTOCOL_VERSION_HEADER)
    error = InvalidUpdateRequest("Unsupported protocol version. Expected either 0 or 1.")
    if len(values) > 1:
        raise error
    raw = values[0] if values else "0"
    try:
        version = int(raw.strip())
    except ValueError:
        raise error from None
    if version not in SUPPORTED_PROTOCOL_VERSIONS:
        raise error
    return version


def parse_update_request(headers: Headers, query: Mapping[str, str]) -> UpdateRequest:
    """Build an ``UpdateRequest`` from a ``GET /manifest`` request.

    Headers win over query parameters for platform and runtime version.

    Raises
    ------
    InvalidUpdateRequest
        For a bad protocol version, an unsupported platform, or a missing
        runtime version.
    """
    protocol_version = parse_protocol_version(headers)

    platform = headers.get(PLATFORM_HEADER)
    if platform is None:
        platform = query.get("platform")
    if platform not in SUPPORTED_PLATFORMS:
        raise InvalidUpdateRequest("Unsupported platform. Expected either ios or android.")

    runtime_version = headers.get(RUNTIME_VERSION_HEADER)
    if runtime_version is None:
        runtime_version = query.get("runtime-version")
    if not runtime_version:
        raise InvalidUpdateRequest("No runtimeVersion provided.")

    return UpdateRequest(
        runtime_version=runtime_version,
        platform=platform,
        protocol_version=protocol_version,
        current_update_id=headers.get(CURRENT_UPDATE_ID_HEADER),
        embedded_update_id=headers.get(EMBEDDED_UPDATE_ID_HEADER),
        expect_signature=bool(headers.get(EXPECT_SIGNATURE_HEADER)),
    )


def parse_asset_query(query: Mapping[str, str]) -> tuple[str, str, str]:
    """Return ``(asset, runtime_version, platform)`` for ``GET /assets``."""
    asset = query.get("asset")
    if not asset:
        raise InvalidUpdateRequest("No asset name provided.")
    platform = query.get("platform")
    if platform not in SUPPORTED_PLATFORMS:
        raise InvalidUpdateRequest('No platform provided. Expected "ios" or "android".')
    runtime_version = query.get("runtimeVersion")
    if not runtime_version:
        raise InvalidUpdateRequest("No runtimeVersion provided.")
    return asset, runtime_version, platform
