"""Unit tests for the protocol negotiator state machine."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from otaserve.bridge.crypto_bridge import verify_data
from otaserve.bridge.structured_fields import parse_dictionary
from otaserve.core.errors import (
    MissingEmbeddedUpdateIdHeader,
    RollbackUnsupportedInProtocol0,
    SigningKeyMissing,
    UnsupportedRuntimeVersion,
)
from otaserve.core.hasher import compute_update_id
from otaserve.core.negotiator import ProtocolNegotiator
from otaserve.models.protocol import (
    NegotiationState,
    Rejected,
    RejectionReason,
    ServingManifest,
    ServingNoUpdateAvailable,
    ServingRollback,
    UpdateRequest,
    UpdateType,
)


def _request(**overrides) -> UpdateRequest:
    fields = {"runtime_version": "1", "platform": "ios", "protocol_version": 1}
    fields.update(overrides)
    return UpdateRequest(**fields)


def _update_id(bundle: Path) -> str:
    return compute_update_id((bundle / "metadata.json").read_bytes())


# ---------------------------------------------------------------------------
# Test: Normal updates
# ---------------------------------------------------------------------------


class TestNormalUpdate:
    @pytest.mark.asyncio
    async def test_serves_manifest(self, negotiator, bundle: Path):
        outcome = await negotiator.negotiate(_request())

        assert isinstance(outcome, ServingManifest)
        assert outcome.state == NegotiationState.SERVING_MANIFEST
        assert outcome.manifest.id == _update_id(bundle)

    @pytest.mark.asyncio
    async def test_current_update_gets_no_update_available(self, negotiator, bundle: Path):
        outcome = await negotiator.negotiate(_request(current_update_id=_update_id(bundle)))

        assert isinstance(outcome, ServingNoUpdateAvailable)
        assert outcome.directive.type == "noUpdateAvailable"

    @pytest.mark.asyncio
    async def test_stale_update_gets_manifest(self, negotiator, bundle: Path):
        outcome = await negotiator.negotiate(
            _request(current_update_id="00000000-0000-0000-0000-000000000000")
        )
        assert isinstance(outcome, ServingManifest)

    @pytest.mark.asyncio
    async def test_protocol_0_always_reserves_manifest(self, negotiator, bundle: Path):
        outcome = await negotiator.negotiate(
            _request(protocol_version=0, current_update_id=_update_id(bundle))
        )
        assert isinstance(outcome, ServingManifest)

    @pytest.mark.asyncio
    async def test_latest_bundle_wins(self, negotiator, make_bundle):
        make_bundle(name="1699999999999")
        newest = make_bundle(name="1700000000000")

        outcome = await negotiator.negotiate(_request())

        assert outcome.manifest.metadata.update_timestamp == newest.name


# ---------------------------------------------------------------------------
# Test: Rollbacks
# ---------------------------------------------------------------------------


class TestRollback:
    @pytest.mark.asyncio
    async def test_serves_rollback_directive(self, negotiator, make_bundle):
        make_bundle(rollback=True)

        outcome = await negotiator.negotiate(
            _request(embedded_update_id="embedded", current_update_id="downloaded")
        )

        assert isinstance(outcome, ServingRollback)
        assert outcome.directive.type == "rollBackToEmbedded"

    @pytest.mark.asyncio
    async def test_already_on_embedded(self, negotiator, make_bundle):
        make_bundle(rollback=True)

        outcome = await negotiator.negotiate(
            _request(embedded_update_id="embedded", current_update_id="embedded")
        )

        assert isinstance(outcome, ServingNoUpdateAvailable)

    @pytest.mark.asyncio
    async def test_missing_embedded_id(self, negotiator, make_bundle):
        make_bundle(rollback=True)

        outcome = await negotiator.negotiate(_request(current_update_id="x"))

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectionReason.MISSING_EMBEDDED_UPDATE_ID_HEADER
        assert outcome.status_code == 400

    @pytest.mark.asyncio
    async def test_protocol_0_rejected(self, negotiator, make_bundle):
        make_bundle(rollback=True)

        outcome = await negotiator.negotiate(
            _request(protocol_version=0, embedded_update_id="embedded")
        )

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectionReason.ROLLBACK_UNSUPPORTED_IN_PROTOCOL_0
        assert outcome.message == "Rollbacks not supported on protocol version 0"

    @pytest.mark.asyncio
    async def test_protocol_check_precedes_embedded_id_check(self, negotiator, make_bundle):
        make_bundle(rollback=True)

        with pytest.raises(RollbackUnsupportedInProtocol0):
            await negotiator.respond(_request(protocol_version=0))

        with pytest.raises(MissingEmbeddedUpdateIdHeader):
            await negotiator.respond(_request(protocol_version=1))


# ---------------------------------------------------------------------------
# Test: Rejections
# ---------------------------------------------------------------------------


class TestRejections:
    @pytest.mark.asyncio
    async def test_unknown_runtime_version(self, negotiator, bundle: Path):
        outcome = await negotiator.negotiate(_request(runtime_version="99"))

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectionReason.UNSUPPORTED_RUNTIME_VERSION
        assert outcome.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_metadata(self, negotiator, bundle: Path):
        (bundle / "metadata.json").unlink()

        outcome = await negotiator.negotiate(_request())

        assert outcome.reason == RejectionReason.METADATA_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unreadable_asset_is_rejected(self, negotiator, make_bundle):
        make_bundle(
            metadata={
                "fileMetadata": {
                    "ios": {
                        "bundle": "bundles/ios-abc123.js",
                        "assets": [{"path": "assets", "ext": "png"}],
                    }
                }
            }
        )

        outcome = await negotiator.negotiate(_request())

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectionReason.ASSET_READ_FAILURE
        assert outcome.status_code == 500

    @pytest.mark.asyncio
    async def test_respond_raises_typed_error(self, negotiator, bundle: Path):
        with pytest.raises(UnsupportedRuntimeVersion):
            await negotiator.respond(_request(runtime_version="99"))


# ---------------------------------------------------------------------------
# Test: Trace
# ---------------------------------------------------------------------------


class TestTrace:
    @pytest.mark.asyncio
    async def test_reports_bundle_and_type(self, negotiator, bundle: Path):
        trace = await negotiator.trace(_request())

        assert trace.bundle_path == bundle
        assert trace.update_type == UpdateType.NORMAL_UPDATE
        assert isinstance(trace.outcome, ServingManifest)

    @pytest.mark.asyncio
    async def test_reports_rollback_type(self, negotiator, make_bundle):
        bundle = make_bundle(rollback=True)

        trace = await negotiator.trace(_request(embedded_update_id="embedded"))

        assert trace.bundle_path == bundle
        assert trace.update_type == UpdateType.ROLLBACK
        assert isinstance(trace.outcome, ServingRollback)

    @pytest.mark.asyncio
    async def test_rejected_before_resolution(self, negotiator, bundle: Path):
        trace = await negotiator.trace(_request(runtime_version="99"))

        assert trace.bundle_path is None
        assert trace.update_type is None
        assert trace.outcome.reason == RejectionReason.UNSUPPORTED_RUNTIME_VERSION

    @pytest.mark.asyncio
    async def test_rejected_after_resolution_keeps_bundle(self, negotiator, bundle: Path):
        (bundle / "metadata.json").unlink()

        trace = await negotiator.trace(_request())

        assert trace.bundle_path == bundle
        assert trace.update_type == UpdateType.NORMAL_UPDATE
        assert isinstance(trace.outcome, Rejected)


# ---------------------------------------------------------------------------
# Test: Framing and signing
# ---------------------------------------------------------------------------


class TestRespond:
    @pytest.mark.asyncio
    async def test_manifest_response(self, negotiator, bundle: Path, parse_multipart):
        framed = await negotiator.respond(_request(protocol_version=0))

        assert framed.headers["expo-protocol-version"] == "0"
        parts = parse_multipart(framed.body, framed.headers["content-type"])
        manifest = json.loads(parts["manifest"][1])
        assert manifest["id"] == _update_id(bundle)
        assert list(manifest) == [
            "id",
            "createdAt",
            "runtimeVersion",
            "assets",
            "launchAsset",
            "metadata",
            "extra",
        ]
        extensions = json.loads(parts["extensions"][1])
        assert set(extensions["assetRequestHeaders"]) == {
            a["key"] for a in [*manifest["assets"], manifest["launchAsset"]]
        }

    @pytest.mark.asyncio
    async def test_no_update_directive_always_protocol_1(self, negotiator, bundle: Path):
        framed = await negotiator.respond(_request(current_update_id=_update_id(bundle)))

        assert framed.headers["expo-protocol-version"] == "1"
        assert framed.part("directive").body == '{"type":"noUpdateAvailable"}'

    @pytest.mark.asyncio
    async def test_signed_manifest_verifies(
        self, signing_negotiator, bundle: Path, keypair, parse_multipart
    ):
        framed = await signing_negotiator.respond(_request(expect_signature=True))

        headers, payload = parse_multipart(framed.body, framed.headers["content-type"])["manifest"]
        signature = parse_dictionary(headers["expo-signature"])
        assert signature["keyid"] == "main"
        assert verify_data(payload, signature["sig"], keypair[1])

    @pytest.mark.asyncio
    async def test_signed_rollback_verifies(
        self, signing_negotiator, make_bundle, keypair
    ):
        make_bundle(rollback=True)

        framed = await signing_negotiator.respond(
            _request(embedded_update_id="e", current_update_id="c", expect_signature=True)
        )

        part = framed.part("directive")
        signature = parse_dictionary(part.headers["expo-signature"])
        assert verify_data(part.body.encode("utf-8"), signature["sig"], keypair[1])

    @pytest.mark.asyncio
    async def test_unsigned_when_not_expected(self, signing_negotiator, bundle: Path):
        framed = await signing_negotiator.respond(_request())
        assert framed.part("manifest").headers == {}

    @pytest.mark.asyncio
    async def test_signature_expected_without_key(self, negotiator, bundle: Path):
        with pytest.raises(SigningKeyMissing):
            await negotiator.respond(_request(expect_signature=True))

    @pytest.mark.asyncio
    async def test_asset_request_headers_from_config(self, config, bundle: Path):
        configured = config.model_copy(update={"asset_request_headers": {"x-team": "mobile"}})
        framed = await ProtocolNegotiator.from_config(configured).respond(_request())

        extensions = json.loads(framed.part("extensions").body)
        assert all(v == {"x-team": "mobile"} for v in extensions["assetRequestHeaders"].values())
