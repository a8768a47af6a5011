"""Error taxonomy for auto-detecting stream decoding.

Detection failures are not represented here: they are absorbed by the encoding
resolver and turned into the configured fallback encoding. Everything below is
terminal for the stream that raised it.
"""

from typing import Any, Optional


class DecoderError(Exception):
    """Base exception for all stream decoding errors."""


class InvalidInputError(DecoderError, TypeError):
    """Raised when a chunk that is not binary data reaches the decoder."""

    def __init__(self, chunk: Any) -> None:
        self.received_type = type(chunk).__name__
        super().__init__(
            f"Decoding stream needs bytes-like chunks as its input, "
            f"got {self.received_type}"
        )


class UnknownEncodingError(DecoderError, LookupError):
    """Raised when no decoder can be obtained for the resolved encoding."""

    def __init__(self, encoding: str, reason: Optional[str] = None) -> None:
        self.encoding = encoding
        self.reason = reason
        message = f"Unknown encoding: {encoding!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MalformedInputError(DecoderError, ValueError):
    """Raised when the decoder rejects bytes under a non-replacing error handler."""

    def __init__(self, encoding: str, position: Optional[int] = None) -> None:
        self.encoding = encoding
        self.position = position
        message = f"Malformed {encoding} input"
        if position is not None:
            message = f"{message} near byte {position}"
        super().__init__(message)


class StreamStateError(DecoderError):
    """Raised when a finished or failed stream receives more input."""


class UpstreamError(DecoderError):
    """Wraps an exception raised by the source feeding a stream."""
