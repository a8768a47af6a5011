"""Shared utilities for auto-detecting stream decoding.

This module provides the configuration record, error taxonomy, result types,
and logging helpers used across all layers.
"""

from .config import ConfigError, ConfigValidationError, DecoderConfig
from .errors import (
    DecoderError,
    InvalidInputError,
    MalformedInputError,
    StreamStateError,
    UnknownEncodingError,
    UpstreamError,
)
from .logging import CorrelationLogger, get_logger
from .result import DecodeResult, StreamStatistics

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DecoderConfig",
    "DecoderError",
    "InvalidInputError",
    "MalformedInputError",
    "StreamStateError",
    "UnknownEncodingError",
    "UpstreamError",
    "CorrelationLogger",
    "get_logger",
    "DecodeResult",
    "StreamStatistics",
]
