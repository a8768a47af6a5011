"""Public decoding API for auto-detecting stream decoding."""

from .decoder import AutoDetectDecoder, collect, decode, decode_file

__all__ = [
    "AutoDetectDecoder",
    "collect",
    "decode",
    "decode_file",
]
