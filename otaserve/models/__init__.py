"""otaserve data models — all Pydantic v2, all frozen (immutable)."""

from otaserve.models.bundle import (
    AssetDescriptor,
    AssetEntry,
    BundleMetadata,
    BundleMetadataDocument,
    PlatformFileMetadata,
)
from otaserve.models.documents import (
    AssetMetadata,
    Directive,
    Manifest,
    ManifestExtra,
    ManifestMetadata,
    NoUpdateAvailableDirective,
    RollBackParameters,
    RollBackToEmbeddedDirective,
    WireDocument,
)
from otaserve.models.protocol import (
    SUPPORTED_PLATFORMS,
    SUPPORTED_PROTOCOL_VERSIONS,
    NegotiationOutcome,
    NegotiationState,
    NegotiationTrace,
    Rejected,
    RejectionReason,
    ServingManifest,
    ServingNoUpdateAvailable,
    ServingRollback,
    UpdateRequest,
    UpdateType,
)
from otaserve.models.response import FramedResponse, ResponsePart, ServedAsset

__all__ = [
    # bundle
    "AssetDescriptor",
    "AssetEntry",
    "BundleMetadata",
    "BundleMetadataDocument",
    "PlatformFileMetadata",
    # documents
    "WireDocument",
    "AssetMetadata",
    "Manifest",
    "ManifestMetadata",
    "ManifestExtra",
    "RollBackParameters",
    "RollBackToEmbeddedDirective",
    "NoUpdateAvailableDirective",
    "Directive",
    # protocol
    "SUPPORTED_PLATFORMS",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "UpdateType",
    "NegotiationState",
    "RejectionReason",
    "UpdateRequest",
    "ServingManifest",
    "ServingRollback",
    "ServingNoUpdateAvailable",
    "Rejected",
    "NegotiationOutcome",
    "NegotiationTrace",
    # response
    "ResponsePart",
    "FramedResponse",
    "ServedAsset",
]
