"""FastAPI host for the update protocol.

Routes: ``GET /`` (liveness), ``GET /manifest`` and ``GET /assets``. Every
``UpdateServerError`` raised by the core becomes a ``{"msg": ...}`` body
with the error's status code.
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from otaserve.bridge.crypto_bridge import read_private_key_pem
from otaserve.config import ServerConfig
from otaserve.core.asset_server import AssetServer
from otaserve.core.errors import UpdateServerError
from otaserve.core.negotiator import ProtocolNegotiator
from otaserve.core.production_guard import enforce_production_constraints
from otaserve.server.requests import parse_asset_query, parse_update_request

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """Build the HTTP app around one negotiator and asset server.

    The production guard runs first; the signing key, if configured, is
    read and parsed once here, so an unusable key raises
    ``SigningKeyError`` before any request is served.
    """
    config = config or ServerConfig()
    enforce_production_constraints(config)

    private_key_pem = read_private_key_pem(config.private_key_path)
    negotiator = ProtocolNegotiator.from_config(config, private_key_pem)
    asset_server = AssetServer(negotiator.resolver, negotiator.manifests)

    app = FastAPI(title="otaserve", debug=config.debug)
    app.state.config = config
    app.state.negotiator = negotiator
    app.state.asset_server = asset_server

    @app.middleware("http")
    async def log_exchange(request: Request, call_next):
        if request.url.path == "/":
            return await call_next(request)
        logger.info(
            "Request [%s][%s] headers %s",
            request.method,
            request.url,
            json.dumps(dict(request.headers)),
        )
        response = await call_next(request)
        logger.info(
            "Response [%s][%s] status %d",
            request.method,
            request.url,
            response.status_code,
        )
        return response

    @app.exception_handler(UpdateServerError)
    async def handle_update_server_error(
        request: Request, exc: UpdateServerError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})

    @app.get("/")
    async def index() -> dict[str, str]:
        return {"hello": "world"}

    @app.get("/manifest")
    async def manifest(request: Request) -> Response:
        update_request = parse_update_request(request.headers, request.query_params)
        framed = await negotiator.respond(update_request)
        return Response(
            content=framed.body,
            status_code=framed.status_code,
            headers=framed.headers,
        )

    @app.get("/assets")
    async def assets(request: Request) -> Response:
        asset, runtime_version, platform = parse_asset_query(request.query_params)
        served = await asset_server.load(asset, runtime_version, platform)
        return Response(content=served.content, media_type=served.content_type)

    return app
