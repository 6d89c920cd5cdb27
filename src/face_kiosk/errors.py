"""Error types raised by the kiosk agent.

None of these are fatal to a running agent: the capture loop and the
catalogue sync timer log them and carry on with the next iteration.
"""

from typing import Optional


class KioskError(Exception):
    """Base class for kiosk agent errors."""


class FaceKeySyntaxError(KioskError, ValueError):
    """Raised when a string cannot be parsed as a face key."""


class ConfigError(KioskError, ValueError):
    """Raised for missing or invalid configuration values."""


class RemoteCallError(KioskError):
    """Raised when a call to the remote recognition service fails."""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        self.operation = operation
        self.code = code
        super().__init__(f"{operation}: {message}")


class StorageError(KioskError):
    """Raised when reading or writing the image store fails."""


class ImageNotFoundError(StorageError):
    """Raised when a catalogue image does not exist."""


class CameraError(KioskError):
    """Raised when a frame cannot be captured."""
