"""Comprehensive tests for encoding detection and resolution."""

from unittest.mock import Mock

import chardet
import pytest

from autodetect_decoder.character.encoding import (
    ChardetDetector,
    CharsetDetector,
    DetectionMethod,
    DetectionResult,
    DetectorGuess,
    EncodingResolver,
    minimum_confidence,
)


class FixedDetector(CharsetDetector):
    """Detector with a private threshold and a fixed answer."""

    def __init__(self, guess=None, error=None):
        self.guess = guess or DetectorGuess("utf-8", 0.9)
        self.error = error
        self.threshold = 0.2
        self.seen = []

    @property
    def minimum_threshold(self):
        return self.threshold

    @minimum_threshold.setter
    def minimum_threshold(self, value):
        self.threshold = value

    def detect(self, data):
        self.seen.append(self.threshold)
        if self.error is not None:
            raise self.error
        return self.guess


class TestDetectionResult:
    """Test DetectionResult dataclass."""

    def test_valid_confidence_range(self):
        """Test that confidence must be between 0.0 and 1.0."""
        result = DetectionResult("utf-8", 0.0, DetectionMethod.FALLBACK)
        assert result.confidence == 0.0

        result = DetectionResult("utf-8", 1.0, DetectionMethod.DETECTED)
        assert result.confidence == 1.0

    def test_invalid_confidence_range(self):
        """Test that invalid confidence values raise ValueError."""
        with pytest.raises(ValueError, match="Confidence must be between 0.0 and 1.0"):
            DetectionResult("utf-8", -0.1, DetectionMethod.DETECTED)

        with pytest.raises(ValueError, match="Confidence must be between 0.0 and 1.0"):
            DetectionResult("utf-8", 1.1, DetectionMethod.DETECTED)

    def test_is_fallback(self):
        """Test the fallback flag follows the method."""
        assert DetectionResult("utf8", 0.0, DetectionMethod.FALLBACK).is_fallback
        assert not DetectionResult("cp1252", 0.7, DetectionMethod.DETECTED).is_fallback


class TestMinimumConfidence:
    """Test the temporary threshold installation."""

    def test_threshold_installed_and_restored(self):
        """Test the threshold is visible inside the block and restored after."""
        detector = FixedDetector()

        with minimum_confidence(detector, 0.75):
            assert detector.minimum_threshold == 0.75

        assert detector.minimum_threshold == 0.2

    def test_none_keeps_existing_threshold(self):
        """Test that an unset minimum leaves the detector threshold alone."""
        detector = FixedDetector()
        detector.threshold = 0.33

        with minimum_confidence(detector, None):
            assert detector.minimum_threshold == 0.33

        assert detector.minimum_threshold == 0.33

    def test_threshold_restored_on_exception(self):
        """Test the previous threshold survives an error inside the block."""
        detector = FixedDetector()

        with pytest.raises(RuntimeError):
            with minimum_confidence(detector, 0.9):
                raise RuntimeError("boom")

        assert detector.minimum_threshold == 0.2


class TestEncodingResolver:
    """Test the fallback policy applied to detector guesses."""

    def test_confident_guess_is_accepted(self):
        """Test that a usable label becomes the stream encoding."""
        resolver = EncodingResolver("utf8", detector=FixedDetector(DetectorGuess("windows-1252", 0.73)))

        result = resolver.resolve(b"\x93hi\x94")

        assert result.encoding == "windows-1252"
        assert result.method == DetectionMethod.DETECTED
        assert result.label == "windows-1252"
        assert result.confidence == pytest.approx(0.73)
        assert result.issues == []

    def test_missing_guess_falls_back(self):
        """Test that no label resolves to the default encoding."""
        resolver = EncodingResolver("latin-1", detector=FixedDetector(DetectorGuess(None, 0.1)))

        result = resolver.resolve(b"\xbf")

        assert result.encoding == "latin-1"
        assert result.method == DetectionMethod.FALLBACK
        assert result.label is None
        assert result.issues == ["No encoding detected"]

    @pytest.mark.parametrize("label", ["ascii", "ASCII", "Ascii"])
    def test_ascii_guess_falls_back(self, label):
        """Test that an ASCII label is never treated as a decision."""
        resolver = EncodingResolver("cp1252", detector=FixedDetector(DetectorGuess(label, 1.0)))

        result = resolver.resolve(b"Test")

        assert result.encoding == "cp1252"
        assert result.is_fallback
        assert result.label == label
        assert "ASCII" in result.issues[0]

    def test_detector_error_falls_back(self):
        """Test that a failing detector never fails resolution."""
        detector = FixedDetector(error=RuntimeError("detector crashed"))
        logger = Mock()
        resolver = EncodingResolver("utf8", detector=detector, logger=logger)

        result = resolver.resolve(b"data")

        assert result.encoding == "utf8"
        assert result.is_fallback
        assert result.issues == ["Detector error: detector crashed"]
        logger.warning.assert_called_once()

    def test_detector_error_restores_threshold(self):
        """Test the threshold is restored when the detector raises."""
        detector = FixedDetector(error=ValueError("bad"))
        resolver = EncodingResolver("utf8", min_confidence=0.8, detector=detector)

        resolver.resolve(b"data")

        assert detector.seen == [0.8]
        assert detector.minimum_threshold == 0.2

    def test_min_confidence_visible_during_detection(self):
        """Test the configured minimum is installed only while detecting."""
        detector = FixedDetector()
        resolver = EncodingResolver("utf8", min_confidence=0.6, detector=detector)

        resolver.resolve(b"abc")

        assert detector.seen == [0.6]
        assert detector.minimum_threshold == 0.2

    def test_out_of_range_confidence_is_clamped(self):
        """Test that odd detector confidences do not break the result."""
        resolver = EncodingResolver("utf8", detector=FixedDetector(DetectorGuess("utf-8", 1.5)))

        result = resolver.resolve(b"abc")

        assert result.confidence == 1.0

    def test_default_detector_is_chardet(self):
        """Test that chardet backs the resolver unless told otherwise."""
        resolver = EncodingResolver("utf8")

        assert isinstance(resolver.detector, ChardetDetector)


class TestChardetDetector:
    """Test the chardet adapter."""

    def test_threshold_maps_to_universal_detector(self):
        """Test the threshold is chardet's shared class attribute."""
        detector = ChardetDetector()
        previous = chardet.UniversalDetector.MINIMUM_THRESHOLD
        try:
            detector.minimum_threshold = 0.55
            assert chardet.UniversalDetector.MINIMUM_THRESHOLD == 0.55
            assert ChardetDetector().minimum_threshold == 0.55
        finally:
            chardet.UniversalDetector.MINIMUM_THRESHOLD = previous

    def test_empty_input_has_no_label(self):
        """Test that empty input never yields a guess."""
        guess = ChardetDetector().detect(b"")

        assert guess.encoding is None
        assert guess.confidence == 0.0

    def test_plain_ascii_is_labelled_ascii(self):
        """Test that pure 7-bit input is reported as ASCII."""
        guess = ChardetDetector().detect(b"Hello, world")

        assert guess.encoding == "ascii"

    def test_unreachable_threshold_rejects_every_guess(self):
        """Test that a guess must be strictly above the threshold."""
        detector = ChardetDetector()

        with minimum_confidence(detector, 1.0):
            guess = detector.detect(b"Hello, world")

        assert guess.encoding is None

    def test_labels_are_lower_case(self):
        """Test labels are normalized to lower case."""
        data = ("Привет, как дела? Это проверка кодировки. " * 10).encode("utf-8")

        guess = ChardetDetector().detect(data)

        assert guess.encoding == guess.encoding.lower()
        assert guess.confidence > 0.2
