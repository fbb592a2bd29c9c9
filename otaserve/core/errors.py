"""Typed failures raised by the core.

Every failure carries the HTTP status and the ``RejectionReason`` the host
needs; the host maps them to ``{"msg": ...}`` bodies. "No update available"
is deliberately absent here — it is a negotiation outcome, not an error.
"""

from __future__ import annotations

from typing import ClassVar

from otaserve.models.protocol import Rejected, RejectionReason


class UpdateServerError(RuntimeError):
    """Base for all client- or server-visible failures of the core."""

    status_code: ClassVar[int] = 500
    reason: ClassVar[RejectionReason]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_rejection(self) -> Rejected:
        return Rejected(
            reason=self.reason, message=self.message, status_code=self.status_code
        )


class UnsupportedRuntimeVersion(UpdateServerError):
    """No bundle directory exists for the requested runtime version."""

    status_code = 404
    reason = RejectionReason.UNSUPPORTED_RUNTIME_VERSION


class MetadataNotFound(UpdateServerError):
    """``metadata.json`` is missing or unreadable as bundle metadata."""

    status_code = 404
    reason = RejectionReason.METADATA_NOT_FOUND


class ExpoConfigNotFound(UpdateServerError):
    status_code = 404
    reason = RejectionReason.EXPO_CONFIG_NOT_FOUND


class RollbackMarkerMissing(UpdateServerError):
    status_code = 404
    reason = RejectionReason.ROLLBACK_MARKER_MISSING


class MissingEmbeddedUpdateIdHeader(UpdateServerError):
    status_code = 400
    reason = RejectionReason.MISSING_EMBEDDED_UPDATE_ID_HEADER


class RollbackUnsupportedInProtocol0(UpdateServerError):
    status_code = 400
    reason = RejectionReason.ROLLBACK_UNSUPPORTED_IN_PROTOCOL_0


class SigningKeyMissing(UpdateServerError):
    """Signing was requested but the server has no private key."""

    status_code = 400
    reason = RejectionReason.SIGNING_KEY_MISSING


class InvalidUpdateRequest(UpdateServerError):
    """Request headers or query parameters are malformed."""

    status_code = 400
    reason = RejectionReason.INVALID_REQUEST


class AssetNotFound(UpdateServerError):
    status_code = 404
    reason = RejectionReason.ASSET_NOT_FOUND


class AssetReadFailure(UpdateServerError):
    status_code = 500
    reason = RejectionReason.ASSET_READ_FAILURE


_ERRORS_BY_REASON: dict[RejectionReason, type[UpdateServerError]] = {
    cls.reason: cls
    for cls in (
        UnsupportedRuntimeVersion,
        MetadataNotFound,
        ExpoConfigNotFound,
        RollbackMarkerMissing,
        MissingEmbeddedUpdateIdHeader,
        RollbackUnsupportedInProtocol0,
        SigningKeyMissing,
        InvalidUpdateRequest,
        AssetNotFound,
        AssetReadFailure,
    )
}


def error_from_rejection(rejection: Rejected) -> UpdateServerError:
    """Rebuild the typed error a ``Rejected`` outcome stands for."""
    return _ERRORS_BY_REASON[rejection.reason](rejection.message)
