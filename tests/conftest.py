"""Shared test fixtures for otaserve."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from otaserve.bridge.crypto_bridge import generate_keypair
from otaserve.config import ServerConfig
from otaserve.core.negotiator import ProtocolNegotiator

IOS_BUNDLE = b"// ios launch bundle\nconsole.log('ios');\n"
ANDROID_BUNDLE = b"// android launch bundle\nconsole.log('android');\n"
ICON_PNG = b"\x89PNG\r\n\x1a\nfake-icon-bytes"
FONT_TTF = b"fake-font-bytes"

EXPO_CONFIG: dict[str, Any] = {
    "name": "demo",
    "slug": "demo",
    "runtimeVersion": "1",
    "updates": {"url": "http://localhost:3000/manifest"},
}


@pytest.fixture
def updates_root(tmp_path: Path) -> Path:
    """Provide an empty ``updates`` directory."""
    root = tmp_path / "updates"
    root.mkdir()
    return root


# ---------------------------------------------------------------------------
# Bundle factory — writes a published bundle the way an exporter would
# ---------------------------------------------------------------------------


@pytest.fixture
def make_bundle(updates_root: Path) -> Callable[..., Path]:
    """Factory fixture: write a bundle directory and return its path.

    By default the bundle has a launch bundle per platform, a png and a
    ttf asset for iOS, a png for Android, and an ``expoConfig.json``.
    """

    def _factory(
        runtime_version: str = "1",
        name: str = "1700000000000",
        *,
        rollback: bool = False,
        metadata: dict[str, Any] | None = None,
        expo_config: Any = EXPO_CONFIG,
        write_expo_config: bool = True,
        skip_files: tuple[str, ...] = (),
    ) -> Path:
        bundle = updates_root / runtime_version / name
        bundle.mkdir(parents=True)

        if rollback:
            (bundle / "rollback").write_text("")
            return bundle

        files = {
            "bundles/ios-abc123.js": IOS_BUNDLE,
            "bundles/android-def456.js": ANDROID_BUNDLE,
            "assets/4f1cb2cac2370cd5050681232e8575a8": ICON_PNG,
            "assets/b06871f281fee6b241d60582ae9369b9": FONT_TTF,
        }
        for rel, data in files.items():
            if rel in skip_files:
                continue
            path = bundle / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        if metadata is None:
            metadata = {
                "version": 0,
                "bundler": "metro",
                "fileMetadata": {
                    "ios": {
                        "bundle": "bundles/ios-abc123.js",
                        "assets": [
                            {"path": "assets/4f1cb2cac2370cd5050681232e8575a8", "ext": "png"},
                            {"path": "assets/b06871f281fee6b241d60582ae9369b9", "ext": "ttf"},
                        ],
                    },
                    "android": {
                        "bundle": "bundles/android-def456.js",
                        "assets": [
                            {"path": "assets/4f1cb2cac2370cd5050681232e8575a8", "ext": "png"},
                        ],
                    },
                },
            }
        (bundle / "metadata.json").write_text(json.dumps(metadata))
        if write_expo_config:
            (bundle / "expoConfig.json").write_text(json.dumps(expo_config))
        return bundle

    return _factory


@pytest.fixture
def bundle(make_bundle: Callable[..., Path]) -> Path:
    """Provide one default bundle for runtime version ``1``."""
    return make_bundle()


# ---------------------------------------------------------------------------
# Keys and configuration
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def keypair() -> tuple[str, str]:
    """Provide one RSA key pair ``(private_pem, public_pem)`` per session."""
    return generate_keypair()


@pytest.fixture
def private_key_file(tmp_path: Path, keypair: tuple[str, str]) -> Path:
    """Provide the session private key written to a PEM file."""
    path = tmp_path / "private-key.pem"
    path.write_text(keypair[0])
    return path


@pytest.fixture
def config(updates_root: Path) -> ServerConfig:
    """Provide a development config rooted at the temp updates directory."""
    return ServerConfig(
        _env_file=None,
        environment="development",
        updates_root=updates_root,
        http_protocol="http",
        host="localhost",
        port=3000,
    )


@pytest.fixture
def negotiator(config: ServerConfig) -> ProtocolNegotiator:
    """Provide a negotiator without a signing key."""
    return ProtocolNegotiator.from_config(config)


@pytest.fixture
def signing_negotiator(
    config: ServerConfig, keypair: tuple[str, str]
) -> ProtocolNegotiator:
    """Provide a negotiator holding the session private key."""
    return ProtocolNegotiator.from_config(config, keypair[0])


# ---------------------------------------------------------------------------
# Multipart parsing
# ---------------------------------------------------------------------------


def split_multipart(body: bytes, content_type: str) -> dict[str, tuple[dict[str, str], bytes]]:
    """Split a multipart body into ``{name: (headers, payload)}``."""
    boundary = content_type.split("boundary=", 1)[1].encode("ascii")
    parts: dict[str, tuple[dict[str, str], bytes]] = {}
    chunks = body.split(b"--" + boundary)
    assert chunks[-1].strip() == b"--"
    for chunk in chunks[1:-1]:
        raw_headers, payload = chunk.strip(b"\r\n").split(b"\r\n\r\n", 1)
        headers = {}
        for line in raw_headers.decode("utf-8").split("\r\n"):
            key, value = line.split(":", 1)
            headers[key.strip().lower()] = value.strip()
        name = headers["content-disposition"].split('name="', 1)[1].split('"', 1)[0]
        parts[name] = (headers, payload)
    return parts


@pytest.fixture
def parse_multipart() -> Callable[[bytes, str], dict[str, tuple[dict[str, str], bytes]]]:
    """Provide ``split_multipart`` to test modules."""
    return split_multipart
