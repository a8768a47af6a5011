"""Character layer for auto-detecting stream decoding.

This module provides charset detection, incremental decoders, and the decoding
stream that ties them together.
"""

from .decoding import IncrementalTextDecoder, get_decoder
from .encoding import (
    ChardetDetector,
    CharsetDetector,
    DetectionMethod,
    DetectionResult,
    DetectorGuess,
    EncodingResolver,
    minimum_confidence,
)
from .stream import (
    AutoDetectDecoderStream,
    StreamState,
    aiter_decode,
    iter_chunks,
    iter_decode,
)

__all__ = [
    # Detection
    "ChardetDetector",
    "CharsetDetector",
    "DetectionMethod",
    "DetectionResult",
    "DetectorGuess",
    "EncodingResolver",
    "minimum_confidence",
    # Decoding
    "IncrementalTextDecoder",
    "get_decoder",
    # Streams
    "AutoDetectDecoderStream",
    "StreamState",
    "aiter_decode",
    "iter_chunks",
    "iter_decode",
]
