"""Command-line interface module for the auto-detecting decoder.

This module provides the autodetect-decode tool for decoding files of unknown
encoding and reporting the encodings detected for them.
"""

from .main import main

__all__ = ["main"]
