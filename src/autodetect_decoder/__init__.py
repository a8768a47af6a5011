"""Auto-detecting stream decoder.

Turns byte streams of unknown encoding into text on the fly: a short prefix is
inspected once by a charset detector, then every byte is decoded with the
detected (or fallback) encoding without buffering the whole input.

Progressive API Disclosure:
- Level 1: Simple functions - decode(), decode_file(), collect()
- Level 2: Configured decoder - AutoDetectDecoder class
- Level 3: Streaming - AutoDetectDecoderStream, iter_decode(), aiter_decode()
"""

__version__ = "0.1.0"
__author__ = "Autodetect Decoder Team"

from .api import AutoDetectDecoder, collect, decode, decode_file
from .character.stream import AutoDetectDecoderStream, aiter_decode, iter_decode
from .shared.config import DecoderConfig
from .shared.errors import (
    DecoderError,
    InvalidInputError,
    UnknownEncodingError,
)
from .shared.result import DecodeResult

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple decoding functions
    "decode",
    "decode_file",
    "collect",

    # Level 2: Configured decoder
    "AutoDetectDecoder",

    # Level 3: Streaming
    "AutoDetectDecoderStream",
    "iter_decode",
    "aiter_decode",

    # Configuration, results and errors
    "DecoderConfig",
    "DecodeResult",
    "DecoderError",
    "InvalidInputError",
    "UnknownEncodingError",
]
