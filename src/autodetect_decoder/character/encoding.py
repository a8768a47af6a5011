"""Encoding detection and resolution with graceful fallback.

This module adapts the statistical charset detector (chardet) to the decoding
stream and implements the policy that turns a detector guess into the single
encoding a stream is decoded with:

1. Install the configured minimum confidence on the detector's shared threshold
2. Ask the detector for a guess on the buffered prefix
3. Restore the previous threshold
4. Accept the guess unless it is missing, "ascii", or the detector raised;
   otherwise fall back to the configured default encoding
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

import chardet

from autodetect_decoder.shared.logging import CorrelationLogger, get_logger

# Labels that never count as a decision
ASCII_LABEL = "ascii"

# Guards the save/set/detect/restore sequence on the shared threshold
_THRESHOLD_LOCK = threading.Lock()


class DetectionMethod(Enum):
    """How the encoding of a stream was chosen."""
    DETECTED = "detected"
    FALLBACK = "fallback"


@dataclass
class DetectorGuess:
    """Raw answer of a charset detector.

    Attributes:
        encoding: Best-guess label, None when the detector has no answer
        confidence: Detector confidence from 0.0 to 1.0
    """
    encoding: Optional[str]
    confidence: float = 0.0


@dataclass
class DetectionResult:
    """Outcome of the one-time detection pass of a stream.

    Attributes:
        encoding: Encoding name the stream is decoded with
        confidence: Confidence of the detector guess (0.0 for fallbacks without one)
        method: Whether the guess was accepted or the default was used
        label: Label returned by the detector, if any
        issues: Reasons the guess was rejected
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    label: Optional[str] = None
    issues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )

    @property
    def is_fallback(self) -> bool:
        """Whether the default encoding replaced the detector's answer."""
        return self.method is DetectionMethod.FALLBACK


class CharsetDetector:
    """Interface of the charset detector consumed by decoding streams.

    ``minimum_threshold`` is shared, process-wide state: changing it on one
    instance changes it for every user of the underlying detector.
    """

    @property
    def minimum_threshold(self) -> float:
        raise NotImplementedError

    @minimum_threshold.setter
    def minimum_threshold(self, value: float) -> None:
        raise NotImplementedError

    def detect(self, data: bytes) -> DetectorGuess:
        """Return the best guess for ``data``."""
        raise NotImplementedError


class ChardetDetector(CharsetDetector):
    """Detector backed by the chardet package.

    The threshold lives on ``chardet.UniversalDetector.MINIMUM_THRESHOLD``. It is
    also enforced here, since not every chardet release consults it in
    ``chardet.detect``: a guess is accepted only when its confidence is strictly
    greater than the threshold.
    """

    @property
    def minimum_threshold(self) -> float:
        return chardet.UniversalDetector.MINIMUM_THRESHOLD

    @minimum_threshold.setter
    def minimum_threshold(self, value: float) -> None:
        chardet.UniversalDetector.MINIMUM_THRESHOLD = value

    def detect(self, data: bytes) -> DetectorGuess:
        if not data:
            return DetectorGuess(encoding=None, confidence=0.0)

        info = chardet.detect(data)
        encoding = info.get("encoding")
        confidence = float(info.get("confidence") or 0.0)

        if not encoding or confidence <= self.minimum_threshold:
            return DetectorGuess(encoding=None, confidence=confidence)
        return DetectorGuess(encoding=encoding.lower(), confidence=confidence)


@contextmanager
def minimum_confidence(
    detector: CharsetDetector, threshold: Optional[float]
) -> Iterator[CharsetDetector]:
    """Temporarily install ``threshold`` as the detector's shared minimum.

    The previous value is restored on every exit path. ``None`` leaves the
    detector's own threshold untouched.
    """
    with _THRESHOLD_LOCK:
        previous = detector.minimum_threshold
        if threshold is not None:
            detector.minimum_threshold = threshold
        try:
            yield detector
        finally:
            detector.minimum_threshold = previous


class EncodingResolver:
    """Resolves the encoding of a stream from its buffered prefix.

    Never raises for detection problems: a missing, "ascii" or failed guess
    resolves to ``default_encoding``.
    """

    def __init__(
        self,
        default_encoding: str,
        min_confidence: Optional[float] = None,
        detector: Optional[CharsetDetector] = None,
        logger: Optional[CorrelationLogger] = None,
    ) -> None:
        self.default_encoding = default_encoding
        self.min_confidence = min_confidence
        self.detector = detector or ChardetDetector()
        self.logger = logger or get_logger(__name__, None, "encoding_resolver")

    def resolve(self, prefix: bytes) -> DetectionResult:
        """Run the detector once on ``prefix`` and apply the fallback policy."""
        try:
            with minimum_confidence(self.detector, self.min_confidence):
                guess = self.detector.detect(prefix)
        except Exception as e:
            self.logger.warning(
                "Charset detector failed, using fallback encoding",
                extra={"prefix_size": len(prefix)},
                exc_info=True,
            )
            return self._fallback(f"Detector error: {e}")

        self.logger.debug(
            "Detector guess",
            extra={
                "label": guess.encoding,
                "confidence": guess.confidence,
                "prefix_size": len(prefix),
            },
        )
        return self.apply_policy(guess)

    def apply_policy(self, guess: DetectorGuess) -> DetectionResult:
        """Turn a detector guess into the stream's encoding."""
        confidence = min(1.0, max(0.0, guess.confidence))
        if not guess.encoding:
            return self._fallback("No encoding detected", confidence=confidence)

        if guess.encoding.lower() == ASCII_LABEL:
            return self._fallback(
                "Recognized as ASCII, not enough evidence",
                confidence=confidence,
                label=guess.encoding,
            )

        return DetectionResult(
            encoding=guess.encoding,
            confidence=confidence,
            method=DetectionMethod.DETECTED,
            label=guess.encoding,
        )

    def _fallback(
        self, reason: str, confidence: float = 0.0, label: Optional[str] = None
    ) -> DetectionResult:
        return DetectionResult(
            encoding=self.default_encoding,
            confidence=confidence,
            method=DetectionMethod.FALLBACK,
            label=label,
            issues=[reason],
        )
