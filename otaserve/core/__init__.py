"""Protocol core: bundle resolution, document construction, signing, framing."""

from otaserve.core.asset_server import AssetServer
from otaserve.core.negotiator import ProtocolNegotiator

__all__ = ["AssetServer", "ProtocolNegotiator"]
