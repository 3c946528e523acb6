"""
Engine Exceptions - Error kinds raised by the spectral engine

Both errors are raised before any output is produced, so a failing
effect never hands back a partially written buffer.
"""

from typing import Optional


class SpectralEngineError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"{type(self).__name__}: {self.message}"
        if self.details:
            msg += f" - {self.details}"
        return msg


class InvalidTransformSize(SpectralEngineError, ValueError):
    """Raised when a transform is requested on a non-power-of-two length."""

    def __init__(self, size: int, details: Optional[str] = None):
        self.size = size
        super().__init__(f"transform size must be a power of two, got {size}", details)


class InsufficientSamples(SpectralEngineError):
    """Raised when a buffer is shorter than one analysis frame."""

    def __init__(self, length: int, frame_size: int, details: Optional[str] = None):
        self.length = length
        self.frame_size = frame_size
        super().__init__(
            f"{length} samples is shorter than one {frame_size}-sample frame",
            details,
        )
