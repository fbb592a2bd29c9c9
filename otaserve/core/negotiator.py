"""Protocol negotiator — decides what a client gets and frames it.

State machine
-------------
1. Resolve the latest bundle for the runtime version.
2. Classify it (normal update or rollback).
3. Normal update: protocol 1 with ``current_update_id`` equal to the
   bundle's update id -> no update available; otherwise the manifest.
   Protocol 0 always re-serves the manifest.
4. Rollback: protocol 0 is rejected; ``embedded_update_id`` is required;
   ``current_update_id == embedded_update_id`` -> no update available;
   otherwise the rollback directive.

Every typed core failure along the way becomes ``Rejected``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from otaserve.config import ServerConfig
from otaserve.core.asset_metadata import AssetMetadataBuilder
from otaserve.core.bundle_resolver import UpdateBundleResolver, UpdateTypeClassifier
from otaserve.core.directive_builder import DirectiveBuilder
from otaserve.core.errors import (
    MissingEmbeddedUpdateIdHeader,
    RollbackUnsupportedInProtocol0,
    UpdateServerError,
    error_from_rejection,
)
from otaserve.core.manifest_builder import ManifestBuilder
from otaserve.core.response_framer import ResponseFramer
from otaserve.core.signature import SignatureProvider
from otaserve.models.protocol import (
    NegotiationOutcome,
    NegotiationTrace,
    Rejected,
    ServingManifest,
    ServingNoUpdateAvailable,
    ServingRollback,
    UpdateRequest,
    UpdateType,
)
from otaserve.models.response import FramedResponse

logger = logging.getLogger(__name__)


class ProtocolNegotiator:
    """Top-level orchestrator for manifest requests.

    Parameters
    ----------
    resolver:
        Finds the bundle to serve.
    classifier:
        Tells normal updates from rollbacks.
    manifests, directives:
        Document builders.
    signer:
        Used only for requests that expect a signature.
    framer:
        Produces the multipart response.
    asset_request_headers:
        Headers advertised in the ``extensions`` part for every asset.
    """

    def __init__(
        self,
        resolver: UpdateBundleResolver,
        classifier: UpdateTypeClassifier,
        manifests: ManifestBuilder,
        directives: DirectiveBuilder,
        signer: SignatureProvider,
        framer: ResponseFramer | None = None,
        *,
        asset_request_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.resolver = resolver
        self.classifier = classifier
        self.manifests = manifests
        self.directives = directives
        self.signer = signer
        self.framer = framer or ResponseFramer()
        self._asset_request_headers = dict(asset_request_headers or {})

    @classmethod
    def from_config(
        cls, config: ServerConfig, private_key_pem: str | None = None
    ) -> ProtocolNegotiator:
        """Wire every component from one explicit configuration value."""
        return cls(
            resolver=UpdateBundleResolver(config.updates_root),
            classifier=UpdateTypeClassifier(),
            manifests=ManifestBuilder(AssetMetadataBuilder(config.asset_base_url)),
            directives=DirectiveBuilder(),
            signer=SignatureProvider(private_key_pem),
            asset_request_headers=config.asset_request_headers,
        )

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    async def negotiate(self, request: UpdateRequest) -> NegotiationOutcome:
        """Run the state machine; never raises for protocol-level failures."""
        return (await self.trace(request)).outcome

    async def trace(self, request: UpdateRequest) -> NegotiationTrace:
        """Like ``negotiate``, also reporting the bundle and its type."""
        bundle_path: Path | None = None
        update_type: UpdateType | None = None
        try:
            bundle_path = await self.resolver.resolve_latest_bundle(request.runtime_version)
            update_type = await self.classifier.classify(bundle_path)
            logger.debug("Bundle %s classified as %s", bundle_path, update_type.value)

            if update_type == UpdateType.ROLLBACK:
                outcome = await self._negotiate_rollback(request, bundle_path)
            else:
                outcome = await self._negotiate_update(request, bundle_path)
        except UpdateServerError as exc:
            outcome = exc.to_rejection()

        if isinstance(outcome, Rejected):
            logger.warning(
                "Rejected %s/%s (protocol %d): %s",
                request.runtime_version,
                request.platform,
                request.protocol_version,
                outcome.message,
            )
        else:
            logger.info(
                "Negotiated %s for %s/%s (protocol %d)",
                outcome.state.value,
                request.runtime_version,
                request.platform,
                request.protocol_version,
            )
        return NegotiationTrace(
            bundle_path=bundle_path, update_type=update_type, outcome=outcome
        )

    async def _negotiate_update(
        self, request: UpdateRequest, bundle_path: Path
    ) -> NegotiationOutcome:
        metadata = await self.manifests.read_metadata(bundle_path, request.runtime_version)
        if request.protocol_version == 1 and request.current_update_id == metadata.update_id:
            return ServingNoUpdateAvailable(
                directive=self.directives.build_no_update_available()
            )
        manifest = await self.manifests.build(
            bundle_path, request.runtime_version, request.platform, metadata
        )
        return ServingManifest(manifest=manifest)

    async def _negotiate_rollback(
        self, request: UpdateRequest, bundle_path: Path
    ) -> NegotiationOutcome:
        if request.protocol_version == 0:
            raise RollbackUnsupportedInProtocol0(
                "Rollbacks not supported on protocol version 0"
            )
        if not request.embedded_update_id:
            raise MissingEmbeddedUpdateIdHeader(
                "Invalid Expo-Embedded-Update-ID request header specified."
            )
        if request.current_update_id == request.embedded_update_id:
            return ServingNoUpdateAvailable(
                directive=self.directives.build_no_update_available()
            )
        directive = await self.directives.build_rollback(bundle_path)
        return ServingRollback(directive=directive)

    # ------------------------------------------------------------------
    # Response
    # ------------------------------------------------------------------

    async def respond(self, request: UpdateRequest) -> FramedResponse:
        """Negotiate, sign if asked, and frame.

        Raises
        ------
        UpdateServerError
            The typed error behind a ``Rejected`` outcome, or
            ``SigningKeyMissing`` when a signature cannot be produced.
        """
        outcome = await self.negotiate(request)
        return await self.frame(request, outcome)

    async def frame(
        self, request: UpdateRequest, outcome: NegotiationOutcome
    ) -> FramedResponse:
        if isinstance(outcome, Rejected):
            raise error_from_rejection(outcome)

        if isinstance(outcome, ServingManifest):
            body = outcome.manifest.to_wire_json()
            signature = await self._maybe_sign(request, body)
            return self.framer.frame_manifest(
                body,
                outcome.manifest,
                protocol_version=request.protocol_version,
                signature=signature,
                asset_request_headers=self._asset_request_headers,
            )

        body = outcome.directive.to_wire_json()
        signature = await self._maybe_sign(request, body)
        return self.framer.frame_directive(body, signature=signature)

    async def _maybe_sign(self, request: UpdateRequest, body: str) -> str | None:
        if not request.expect_signature:
            return None
        return await self.signer.sign(body)
