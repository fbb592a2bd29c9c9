"""Server configuration — env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
OTASERVE_* environment variables. The core never reads the process
environment itself: the host builds one ``ServerConfig`` and threads the
values it needs (updates root, asset base URL, key material) into each
component.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """Update server configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export OTASERVE_UPDATES_ROOT=/srv/updates
        export OTASERVE_HOST=updates.example.com
        export OTASERVE_HTTP_PROTOCOL=https
        export OTASERVE_PORT=443
        export OTASERVE_PRIVATE_KEY_PATH=/run/secrets/private-key.pem

    Or via .env file::

        OTASERVE_ENVIRONMENT=production
        OTASERVE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="OTASERVE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Published bundles: <updates_root>/<runtimeVersion>/<bundleDirName>/
    updates_root: Path = Path("updates")

    # Public base URL of this server, used to build asset URLs
    http_protocol: str = "http"
    host: str = "localhost"
    port: int | None = 3000

    # Code signing: PEM-encoded RSA private key
    private_key_path: Path | None = None

    # Headers the client must send when fetching each asset
    asset_request_headers: dict[str, str] = {}

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def asset_base_url(self) -> str:
        """``{protocol}://{host}[:{port}]`` prefix for asset URLs."""
        base = f"{self.http_protocol}://{self.host}"
        if self.port:
            base = f"{base}:{self.port}"
        return base
