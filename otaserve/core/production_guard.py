"""Startup checks for production deployments of the update server.

Clients pin the certificate they verify manifests against, and fetch assets
from the URLs the manifest advertises. A production server that cannot sign
or advertises plain-http URLs is therefore refused before it binds a port,
rather than discovered by the first client request.
"""

from __future__ import annotations

import logging

from otaserve.bridge.crypto_bridge import (
    SigningKeyError,
    load_private_key,
    read_private_key_pem,
)
from otaserve.config import ServerConfig

logger = logging.getLogger(__name__)


class ProductionConfigError(RuntimeError):
    """The configuration is unsafe to serve production clients with.

    Lists every problem found, one per line.
    """


def _signing_key_problem(config: ServerConfig) -> str | None:
    if config.private_key_path is None:
        return "No code signing key configured. Set OTASERVE_PRIVATE_KEY_PATH."
    if not config.private_key_path.is_file():
        return f"Code signing key not found at {config.private_key_path}."
    try:
        load_private_key(read_private_key_pem(config.private_key_path))
    except (OSError, UnicodeDecodeError, SigningKeyError) as exc:
        return f"Code signing key at {config.private_key_path} is unusable: {exc}"
    return None


def enforce_production_constraints(config: ServerConfig) -> None:
    """Check a production config; no-op for any other environment.

    Checks
    ------
    - ``debug`` is off.
    - Asset URLs use ``https``.
    - A private key file for code signing exists and holds an RSA key.

    Raises
    ------
    ProductionConfigError
        Listing every failed check.
    """
    if not config.is_production:
        return

    problems = []
    if config.debug:
        problems.append("Debug mode is on. Set OTASERVE_DEBUG=false.")
    if config.http_protocol != "https":
        problems.append(
            f"Asset URLs would use {config.http_protocol!r}. "
            "Set OTASERVE_HTTP_PROTOCOL=https."
        )
    key_problem = _signing_key_problem(config)
    if key_problem:
        problems.append(key_problem)

    if problems:
        report = "Refusing to start in production:\n" + "\n".join(
            f"  * {p}" for p in problems
        )
        logger.critical(report)
        raise ProductionConfigError(report)

    logger.info("Production checks passed for %s", config.asset_base_url)
