from typing import Optional


class UnpackError(Exception):
    """Base class for every failure raised while unpacking an atlas.

    ``sheet`` and ``texture`` name the sheet image and texture the error
    concerns, when there is one.
    """

    def __init__(self, message: str, sheet: Optional[str] = None, texture: Optional[str] = None):
        super().__init__(message)
        self.sheet = sheet
        self.texture = texture


class ManifestError(UnpackError):
    """The manifest document is malformed. Raised before any extraction."""


class DecodeError(UnpackError):
    """A sheet image could not be read or decoded."""


class GeometryError(UnpackError):
    """A texture's regions fall outside the image or disagree in extent."""


class WriteError(UnpackError):
    """An output directory or file could not be created."""
