"""Configuration objects for auto-detecting stream decoding.

This module provides the immutable configuration record read by every decoding
stream, together with presets and JSON/dict serialization helpers.
"""

import codecs
import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Defaults
DEFAULT_ENCODING = "utf8"
DEFAULT_CONSUME_SIZE = 128
DEFAULT_ERRORS = "replace"

# Preset detection sizes
LOW_LATENCY_CONSUME_SIZE = 32
THOROUGH_CONSUME_SIZE = 4096
STRICT_MIN_CONFIDENCE = 0.5


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class DecoderConfig:
    """Configuration for an auto-detecting decoder stream.

    Thread-safe due to frozen dataclass implementation; a single instance can be
    shared by any number of streams.

    Attributes:
        default_encoding: Encoding used whenever detection yields no usable result;
            an empty value means the utf8 default
        min_confidence: Minimum detector confidence, None keeps the detector's own
        consume_size: Byte count that triggers the one-time detection pass
        strip_bom: Whether a leading byte-order mark is removed from decoded text
        errors: codecs error handler used for undecodable bytes
    """

    default_encoding: str = DEFAULT_ENCODING
    min_confidence: Optional[float] = None
    consume_size: int = DEFAULT_CONSUME_SIZE
    strip_bom: bool = True
    errors: str = DEFAULT_ERRORS

    def __post_init__(self) -> None:
        """Validate decoder configuration."""
        if self.default_encoding is None or self.default_encoding == "":
            object.__setattr__(self, "default_encoding", DEFAULT_ENCODING)
        if not isinstance(self.default_encoding, str):
            raise ConfigValidationError(
                "default_encoding must be an encoding name",
                field_name="default_encoding",
                suggestions=[f"Use {DEFAULT_ENCODING!r}"],
            )
        if self.min_confidence is not None and not (
            0.0 <= self.min_confidence <= 1.0
        ):
            raise ConfigValidationError(
                "min_confidence must be between 0.0 and 1.0 or None",
                field_name="min_confidence",
            )
        if (
            isinstance(self.consume_size, bool)
            or not isinstance(self.consume_size, int)
            or self.consume_size <= 0
        ):
            raise ConfigValidationError(
                "consume_size must be an integer > 0",
                field_name="consume_size",
                suggestions=[f"Use the default of {DEFAULT_CONSUME_SIZE} bytes"],
            )
        try:
            codecs.lookup_error(self.errors)
        except LookupError as e:
            raise ConfigValidationError(
                f"Unknown codecs error handler: {self.errors!r}",
                field_name="errors",
                suggestions=["replace", "strict", "ignore", "backslashreplace"],
            ) from e

    def override(self, **kwargs: Any) -> "DecoderConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = DecoderConfig().override(default_encoding="latin-1")
            >>> config.default_encoding
            'latin-1'
        """
        unknown = set(kwargs) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(sorted(unknown))}",
                field_name=sorted(unknown)[0],
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecoderConfig":
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, json_str: str) -> "DecoderConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "DecoderConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        return cls.from_json(content)

    # Preset factory methods
    @classmethod
    def low_latency(cls) -> "DecoderConfig":
        """Inspect as few bytes as possible before committing to an encoding."""
        return cls(consume_size=LOW_LATENCY_CONSUME_SIZE)

    @classmethod
    def balanced(cls) -> "DecoderConfig":
        """Default configuration."""
        return cls()

    @classmethod
    def thorough(cls) -> "DecoderConfig":
        """Inspect a larger prefix for better detection on short-lived ambiguity."""
        return cls(consume_size=THOROUGH_CONSUME_SIZE)

    @classmethod
    def strict(cls) -> "DecoderConfig":
        """Require a confident guess and fail on undecodable bytes."""
        return cls(min_confidence=STRICT_MIN_CONFIDENCE, errors="strict")
