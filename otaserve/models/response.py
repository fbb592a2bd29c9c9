"""Framed wire responses and served assets."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ResponsePart(BaseModel):
    """One named part of a multipart/mixed body."""

    model_config = ConfigDict(frozen=True)

    name: str  # "manifest" | "directive" | "extensions"
    content_type: str
    body: str
    headers: dict[str, str] = {}  # extra part headers, e.g. expo-signature


class FramedResponse(BaseModel):
    """A complete protocol response, ready for the host to send."""

    model_config = ConfigDict(frozen=True)

    status_code: int = 200
    headers: dict[str, str]
    parts: list[ResponsePart]
    body: bytes

    def part(self, name: str) -> ResponsePart | None:
        return next((p for p in self.parts if p.name == name), None)


class ServedAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str
