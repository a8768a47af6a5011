"""Result objects and statistics for auto-detecting stream decoding."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from autodetect_decoder.character.encoding import DetectionResult


@dataclass
class StreamStatistics:
    """Counters describing the traffic that went through one stream."""

    bytes_received: int = 0
    chunks_received: int = 0
    detection_calls: int = 0
    detection_buffer_size: int = 0
    fragments_emitted: int = 0
    characters_emitted: int = 0

    @property
    def average_chunk_size(self) -> float:
        """Average size of the received chunks in bytes."""
        if self.chunks_received == 0:
            return 0.0
        return self.bytes_received / self.chunks_received

    def record_chunk(self, size: int) -> None:
        """Account for one received chunk."""
        self.chunks_received += 1
        self.bytes_received += size

    def record_output(self, text: str) -> None:
        """Account for one emitted text fragment; empty text is not a fragment."""
        if text:
            self.fragments_emitted += 1
            self.characters_emitted += len(text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary format."""
        return {
            "bytes_received": self.bytes_received,
            "chunks_received": self.chunks_received,
            "detection_calls": self.detection_calls,
            "detection_buffer_size": self.detection_buffer_size,
            "fragments_emitted": self.fragments_emitted,
            "characters_emitted": self.characters_emitted,
            "average_chunk_size": self.average_chunk_size,
        }


@dataclass
class DecodeResult:
    """Complete decoded text of a stream together with how it was decoded.

    Attributes:
        text: Concatenation of every fragment the stream produced
        encoding: Encoding the whole stream was decoded with
        detection: Detection outcome that selected the encoding
        statistics: Traffic counters of the stream
    """

    text: str
    encoding: str
    detection: Optional["DetectionResult"] = None
    statistics: StreamStatistics = field(default_factory=StreamStatistics)

    @property
    def used_fallback(self) -> bool:
        """Whether the configured default encoding was used instead of a guess."""
        return self.detection is not None and self.detection.is_fallback
