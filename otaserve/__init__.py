"""otaserve: server side of the Expo Updates over-the-air protocol.

Resolves the latest published bundle for a client's runtime version and
answers with a signed multipart manifest, a rollback directive, or a
no-update-available directive:
  - Protocol versions 0 and 1 (directives from 1 onward)
  - Content-addressed asset metadata (sha256 hash, md5 key)
  - Update ids derived from the bundle's metadata bytes
  - RSA-SHA256 code signing over the exact transmitted JSON
  - FastAPI host, env-driven config, Typer CLI
"""

__version__ = "0.1.0"
__description__ = "Over-the-air update server for the Expo Updates protocol"

from otaserve.config import ServerConfig
from otaserve.core.negotiator import ProtocolNegotiator

__all__ = ["ProtocolNegotiator", "ServerConfig", "__version__"]
