"""HTTP host for the update protocol."""

from otaserve.server.app import create_app

__all__ = ["create_app"]
