"""Failures that end a render request."""

from __future__ import annotations


class RenderError(Exception):
    """A countdown could not be produced. No partial output exists.

    Attributes:
        profile: "still" or "animated", for diagnostics.
    """

    def __init__(self, message: str, profile: str = "still") -> None:
        super().__init__(message)
        self.profile = profile


class RasterizeError(RenderError):
    """A scene could not be turned into pixels."""


class EncodeError(RenderError):
    """Pixel buffers could not be encoded."""
