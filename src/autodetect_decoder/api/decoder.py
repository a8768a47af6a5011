"""Decoding API with progressive disclosure.

Level 1 offers module functions that decode a whole input in one call; level 2
is the reusable ``AutoDetectDecoder`` for callers that decode many streams with
the same configuration and detector.
"""

from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from autodetect_decoder.character.encoding import CharsetDetector
from autodetect_decoder.character.stream import (
    DEFAULT_READ_SIZE,
    AutoDetectDecoderStream,
    BytesLike,
    CollectCallback,
    iter_chunks,
)
from autodetect_decoder.shared.config import DecoderConfig
from autodetect_decoder.shared.logging import get_logger
from autodetect_decoder.shared.result import DecodeResult

# Type definitions for input data
InputType = Union[bytes, bytearray, memoryview, Iterable[BytesLike]]
PathType = Union[str, Path]


class AutoDetectDecoder:
    """Reusable factory of auto-detecting decoder streams.

    Examples:
        >>> decoder = AutoDetectDecoder(DecoderConfig(default_encoding="latin-1"))
        >>> decoder.decode(b"caf\\xe9").text
        'café'
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        detector: Optional[CharsetDetector] = None,
    ) -> None:
        self.config = config or DecoderConfig()
        self.detector = detector
        self.logger = get_logger(__name__, None, "decoder_api")

    def stream(self, correlation_id: Optional[str] = None) -> AutoDetectDecoderStream:
        """Create a new stream sharing this decoder's configuration."""
        return AutoDetectDecoderStream(self.config, self.detector, correlation_id)

    def iter_decode(
        self, chunks: Iterable[BytesLike], correlation_id: Optional[str] = None
    ) -> Iterator[str]:
        """Yield text fragments of ``chunks`` as they are decoded."""
        return self.stream(correlation_id).iter_decode(chunks)

    def decode(
        self, data: InputType, correlation_id: Optional[str] = None
    ) -> DecodeResult:
        """Decode bytes, or an iterable of byte chunks, completely.

        Raises:
            DecoderError: If the stream fails
        """
        if isinstance(data, (bytes, bytearray, memoryview)):
            chunks: Iterable[BytesLike] = [data]
        else:
            chunks = data

        stream = self.stream(correlation_id)
        text = "".join(stream.iter_decode(chunks))
        return stream.result(text)

    def decode_file(
        self,
        path: PathType,
        read_size: int = DEFAULT_READ_SIZE,
        correlation_id: Optional[str] = None,
    ) -> DecodeResult:
        """Decode a file, reading it ``read_size`` bytes at a time."""
        file_path = Path(path)
        self.logger.debug(
            "Decoding file",
            extra={"file": str(file_path), "read_size": read_size},
        )
        with file_path.open("rb") as file_obj:
            return self.decode(iter_chunks(file_obj, read_size), correlation_id)


def decode(
    data: InputType, config: Optional[DecoderConfig] = None, **overrides: object
) -> DecodeResult:
    """Decode bytes of unknown encoding in one call.

    Examples:
        >>> decode(b"Test", default_encoding="ascii").text
        'Test'
    """
    config = (config or DecoderConfig()).override(**overrides)
    return AutoDetectDecoder(config).decode(data)


def decode_file(
    path: PathType,
    config: Optional[DecoderConfig] = None,
    read_size: int = DEFAULT_READ_SIZE,
    **overrides: object,
) -> DecodeResult:
    """Decode a file of unknown encoding in one call."""
    config = (config or DecoderConfig()).override(**overrides)
    return AutoDetectDecoder(config).decode_file(path, read_size)


def collect(
    chunks: Iterable[BytesLike],
    callback: CollectCallback,
    config: Optional[DecoderConfig] = None,
    **overrides: object,
) -> AutoDetectDecoderStream:
    """Decode ``chunks`` and deliver the whole text to ``callback(error, text)``."""
    stream = AutoDetectDecoderStream(config, **overrides)
    return stream.collect(chunks, callback)
