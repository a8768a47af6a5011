"""Auto-detecting decoder stream.

This module provides the buffering-then-decoding state machine that turns a byte
stream of unknown encoding into text:

1. Chunks are buffered until ``consume_size`` bytes arrived or the input ended
2. The charset detector runs exactly once on that prefix
3. A decoder is created for the detected (or fallback) encoding
4. The prefix is replayed through the decoder
5. Every later chunk goes straight to the same decoder, which is flushed at the end

A stream never re-runs detection and never reverts to buffering.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    AsyncIterable,
    AsyncIterator,
    BinaryIO,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Union,
)

from autodetect_decoder.character.decoding import IncrementalTextDecoder, get_decoder
from autodetect_decoder.character.encoding import (
    CharsetDetector,
    DetectionResult,
    EncodingResolver,
)
from autodetect_decoder.shared.config import DecoderConfig
from autodetect_decoder.shared.errors import (
    InvalidInputError,
    StreamStateError,
    UpstreamError,
)
from autodetect_decoder.shared.logging import get_logger
from autodetect_decoder.shared.result import DecodeResult, StreamStatistics

# Type definitions for input data
BytesLike = Union[bytes, bytearray, memoryview]
CollectCallback = Callable[[Optional[BaseException], Optional[str]], None]

DEFAULT_READ_SIZE = 8192


class StreamState(Enum):
    """Observable lifecycle states of a decoder stream."""
    BUFFERING = "buffering"
    DECODING = "decoding"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass
class _Buffering:
    prefix: bytearray = field(default_factory=bytearray)


@dataclass
class _Decoding:
    decoder: IncrementalTextDecoder


@dataclass
class _Finished:
    pass


@dataclass
class _Failed:
    error: BaseException


class AutoDetectDecoderStream:
    """Streaming decoder that infers the encoding from the first bytes.

    Examples:
        >>> stream = AutoDetectDecoderStream(default_encoding="ascii")
        >>> stream.write(b"Test") + stream.end()
        'Test'
        >>> stream.encoding
        'ascii'
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        detector: Optional[CharsetDetector] = None,
        correlation_id: Optional[str] = None,
        **overrides: object,
    ) -> None:
        """Initialize the stream.

        Args:
            config: Decoder configuration, defaults to ``DecoderConfig()``
            detector: Charset detector, defaults to the chardet-backed detector
            correlation_id: Identifier attached to every log record of the stream
            **overrides: Individual ``DecoderConfig`` fields to override
        """
        config = config or DecoderConfig()
        if overrides:
            config = config.override(**overrides)
        self.config = config
        self.correlation_id = correlation_id or uuid.uuid4().hex[:12]
        self.logger = get_logger(__name__, self.correlation_id, "decoder_stream")
        self.statistics = StreamStatistics()
        self._resolver = EncodingResolver(
            config.default_encoding,
            min_confidence=config.min_confidence,
            detector=detector,
            logger=self.logger.bind(stage="detection"),
        )
        self._detection: Optional[DetectionResult] = None
        self._phase: Union[_Buffering, _Decoding, _Finished, _Failed] = _Buffering()

    @property
    def state(self) -> StreamState:
        """Current lifecycle state."""
        if isinstance(self._phase, _Buffering):
            return StreamState.BUFFERING
        if isinstance(self._phase, _Decoding):
            return StreamState.DECODING
        if isinstance(self._phase, _Finished):
            return StreamState.FINISHED
        return StreamState.FAILED

    @property
    def detection(self) -> Optional[DetectionResult]:
        """Outcome of the detection pass, None until it ran."""
        return self._detection

    @property
    def encoding(self) -> Optional[str]:
        """Encoding the stream is decoded with, None until it is resolved."""
        return self._detection.encoding if self._detection else None

    @property
    def error(self) -> Optional[BaseException]:
        """Error that terminated the stream, if any."""
        return self._phase.error if isinstance(self._phase, _Failed) else None

    def write(self, chunk: BytesLike) -> str:
        """Feed one chunk and return the text it produced (possibly empty).

        Raises:
            InvalidInputError: If ``chunk`` is not bytes-like
            UnknownEncodingError: If the resolved encoding has no decoder
            MalformedInputError: If the decoder rejects the bytes
            StreamStateError: If the stream already ended or failed
        """
        self._ensure_open()
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            error = InvalidInputError(chunk)
            self._fail(error)
            raise error

        data = bytes(chunk)
        self.statistics.record_chunk(len(data))
        try:
            if isinstance(self._phase, _Decoding):
                text = self._phase.decoder.write(data)
            else:
                text = self._consume_for_detection(data)
        except Exception as e:
            self._fail(e)
            raise

        self.statistics.record_output(text)
        return text

    def end(self) -> str:
        """Signal end of input and return the remaining text.

        Runs the detection pass first if the input never reached
        ``consume_size``, then flushes the decoder.
        """
        self._ensure_open()
        try:
            text = ""
            if isinstance(self._phase, _Buffering):
                text = self._consume_for_detection(None)
            decoding = self._phase
            if not isinstance(decoding, _Decoding):
                raise StreamStateError("Stream has no decoder to flush")
            text += decoding.decoder.end()
        except Exception as e:
            self._fail(e)
            raise

        self._phase = _Finished()
        self.statistics.record_output(text)
        self.logger.debug("Stream finished", extra=self.statistics.to_dict())
        return text

    def abort(self, error: Optional[BaseException] = None) -> None:
        """Stop the stream without flushing; used when the source fails."""
        if isinstance(self._phase, (_Finished, _Failed)):
            return
        self._fail(error or StreamStateError("Stream aborted"))

    def collect(
        self, chunks: Iterable[BytesLike], callback: CollectCallback
    ) -> "AutoDetectDecoderStream":
        """Decode every chunk and report the whole text through ``callback``.

        ``callback`` is invoked exactly once, either as ``callback(None, text)``
        or as ``callback(error, None)``. Failures of the ``chunks`` iterator are
        reported as ``UpstreamError``.
        """
        try:
            text = "".join(self._pump(chunks, wrap_upstream=True))
        except Exception as e:
            callback(e, None)
        else:
            callback(None, text)
        return self

    def result(self, text: str) -> DecodeResult:
        """Bundle ``text`` decoded by this stream with its metadata."""
        return DecodeResult(
            text=text,
            encoding=self.encoding or self.config.default_encoding,
            detection=self._detection,
            statistics=self.statistics,
        )

    def iter_decode(self, chunks: Iterable[BytesLike]) -> Iterator[str]:
        """Decode ``chunks``, yielding non-empty text fragments in order."""
        return self._pump(chunks, wrap_upstream=False)

    async def aiter_decode(
        self, chunks: AsyncIterable[BytesLike]
    ) -> AsyncIterator[str]:
        """Asynchronous counterpart of ``iter_decode``."""
        iterator = chunks.__aiter__()
        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                self.abort(e)
                raise
            text = self.write(chunk)
            if text:
                yield text

        text = self.end()
        if text:
            yield text

    def _pump(self, chunks: Iterable[BytesLike], wrap_upstream: bool) -> Iterator[str]:
        iterator = iter(chunks)
        try:
            while True:
                try:
                    chunk = next(iterator)
                except StopIteration:
                    break
                except Exception as e:
                    self.abort(e)
                    if wrap_upstream:
                        raise UpstreamError(f"Upstream source failed: {e}") from e
                    raise
                text = self.write(chunk)
                if text:
                    yield text

            text = self.end()
            if text:
                yield text
        except GeneratorExit:
            self.abort()
            raise

    def _consume_for_detection(self, chunk: Optional[bytes]) -> str:
        """Buffer ``chunk``; at the threshold or end of input, resolve and replay."""
        phase = self._phase
        if not isinstance(phase, _Buffering):
            raise StreamStateError("Encoding already resolved for this stream")

        if chunk:
            phase.prefix.extend(chunk)

        if chunk is not None and len(phase.prefix) < self.config.consume_size:
            if self.logger.is_enabled_for(logging.DEBUG):
                self.logger.debug(
                    "Buffering for detection",
                    extra={
                        "buffered": len(phase.prefix),
                        "consume_size": self.config.consume_size,
                    },
                )
            return ""

        prefix = bytes(phase.prefix)
        self.statistics.detection_calls += 1
        self.statistics.detection_buffer_size = len(prefix)
        self._detection = self._resolver.resolve(prefix)

        decoder = get_decoder(
            self._detection.encoding,
            strip_bom=self.config.strip_bom,
            errors=self.config.errors,
        )
        self._begin_decoding(decoder)

        self.logger.info(
            "Resolved stream encoding",
            extra={
                "encoding": self._detection.encoding,
                "method": self._detection.method.value,
                "confidence": self._detection.confidence,
                "prefix_size": len(prefix),
            },
        )
        return decoder.write(prefix)

    def _begin_decoding(self, decoder: IncrementalTextDecoder) -> None:
        """The only transition out of buffering; it releases the prefix."""
        if not isinstance(self._phase, _Buffering):
            raise StreamStateError("Stream left the buffering phase already")
        self._phase = _Decoding(decoder)

    def _ensure_open(self) -> None:
        if isinstance(self._phase, _Finished):
            raise StreamStateError("Stream already ended")
        if isinstance(self._phase, _Failed):
            raise StreamStateError("Stream failed earlier") from self._phase.error

    def _fail(self, error: BaseException) -> None:
        self._phase = _Failed(error)
        self.logger.error(
            "Stream terminated by error",
            extra={"error_type": type(error).__name__, "error_message": str(error)},
            exc_info=False,
        )


def iter_chunks(file_obj: BinaryIO, read_size: int = DEFAULT_READ_SIZE) -> Iterator[bytes]:
    """Read ``file_obj`` in chunks of at most ``read_size`` bytes."""
    if read_size <= 0:
        raise ValueError("read_size must be > 0")
    while True:
        chunk = file_obj.read(read_size)
        if not chunk:
            break
        yield chunk


def iter_decode(
    chunks: Iterable[BytesLike],
    config: Optional[DecoderConfig] = None,
    detector: Optional[CharsetDetector] = None,
    **overrides: object,
) -> Iterator[str]:
    """Decode an iterable of byte chunks with a fresh stream."""
    stream = AutoDetectDecoderStream(config, detector, **overrides)
    return stream.iter_decode(chunks)


async def aiter_decode(
    chunks: AsyncIterable[BytesLike],
    config: Optional[DecoderConfig] = None,
    detector: Optional[CharsetDetector] = None,
    **overrides: object,
) -> AsyncIterator[str]:
    """Decode an asynchronous iterable of byte chunks with a fresh stream."""
    stream = AutoDetectDecoderStream(config, detector, **overrides)
    async for text in stream.aiter_decode(chunks):
        yield text
