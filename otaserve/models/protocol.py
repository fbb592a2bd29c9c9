"""Protocol negotiation models — request facts and the outcome variants."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

from otaserve.models.documents import (
    Manifest,
    NoUpdateAvailableDirective,
    RollBackToEmbeddedDirective,
)

SUPPORTED_PLATFORMS: tuple[str, ...] = ("ios", "android")
SUPPORTED_PROTOCOL_VERSIONS: tuple[int, ...] = (0, 1)


class UpdateType(str, Enum):
    """What a resolved bundle represents."""

    NORMAL_UPDATE = "normal_update"
    ROLLBACK = "rollback"


class NegotiationState(str, Enum):
    """Terminal states of the negotiator's state machine."""

    SERVING_MANIFEST = "serving_manifest"
    SERVING_ROLLBACK = "serving_rollback"
    SERVING_NO_UPDATE_AVAILABLE = "serving_no_update_available"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    UNSUPPORTED_RUNTIME_VERSION = "unsupported_runtime_version"
    METADATA_NOT_FOUND = "metadata_not_found"
    EXPO_CONFIG_NOT_FOUND = "expo_config_not_found"
    ROLLBACK_MARKER_MISSING = "rollback_marker_missing"
    MISSING_EMBEDDED_UPDATE_ID_HEADER = "missing_embedded_update_id_header"
    ROLLBACK_UNSUPPORTED_IN_PROTOCOL_0 = "rollback_unsupported_in_protocol_0"
    SIGNING_KEY_MISSING = "signing_key_missing"
    INVALID_REQUEST = "invalid_request"
    ASSET_NOT_FOUND = "asset_not_found"
    ASSET_READ_FAILURE = "asset_read_failure"


class UpdateRequest(BaseModel):
    """The facts a client declares when asking for an update."""

    model_config = ConfigDict(frozen=True)

    runtime_version: str
    platform: Literal["ios", "android"]
    protocol_version: Literal[0, 1] = 0
    current_update_id: str | None = None
    embedded_update_id: str | None = None
    expect_signature: bool = False


class ServingManifest(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal[NegotiationState.SERVING_MANIFEST] = NegotiationState.SERVING_MANIFEST
    manifest: Manifest


class ServingRollback(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal[NegotiationState.SERVING_ROLLBACK] = NegotiationState.SERVING_ROLLBACK
    directive: RollBackToEmbeddedDirective


class ServingNoUpdateAvailable(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal[NegotiationState.SERVING_NO_UPDATE_AVAILABLE] = (
        NegotiationState.SERVING_NO_UPDATE_AVAILABLE
    )
    directive: NoUpdateAvailableDirective = NoUpdateAvailableDirective()


class Rejected(BaseModel):
    """The request cannot be served; carries what the host needs to answer."""

    model_config = ConfigDict(frozen=True)

    state: Literal[NegotiationState.REJECTED] = NegotiationState.REJECTED
    reason: RejectionReason
    message: str
    status_code: int


NegotiationOutcome = ServingManifest | ServingRollback | ServingNoUpdateAvailable | Rejected


class NegotiationTrace(BaseModel):
    """An outcome together with the bundle it was decided on.

    ``bundle_path`` and ``update_type`` stay ``None`` when negotiation was
    rejected before reaching them.
    """

    model_config = ConfigDict(frozen=True)

    bundle_path: Path | None = None
    update_type: UpdateType | None = None
    outcome: NegotiationOutcome
