"""Main CLI entry point for the autodetect-decode command-line tool.

Decodes files of unknown encoding to UTF-8 text and reports which encoding the
detector settled on for each of them.
"""

import argparse
import io
import json
import logging
import sys
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, TextIO

from autodetect_decoder import __version__
from autodetect_decoder.character.stream import (
    DEFAULT_READ_SIZE,
    AutoDetectDecoderStream,
    iter_chunks,
)
from autodetect_decoder.shared.config import ConfigError, DecoderConfig
from autodetect_decoder.shared.errors import DecoderError
from autodetect_decoder.shared.logging import get_logger

STDIN_PATH = "-"

logger = get_logger(__name__, None, "cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="autodetect-decode",
        description="Decode byte streams of unknown encoding to UTF-8 text"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    decoder_options = argparse.ArgumentParser(add_help=False)
    decoder_options.add_argument(
        "paths",
        nargs="+",
        help="Files to decode ('-' reads standard input)"
    )
    decoder_options.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )
    decoder_options.add_argument(
        "--default-encoding",
        help="Encoding used when detection is inconclusive (default: utf8)"
    )
    decoder_options.add_argument(
        "--min-confidence",
        type=float,
        help="Minimum detector confidence between 0 and 1"
    )
    decoder_options.add_argument(
        "--consume-size",
        type=int,
        help="Bytes inspected before committing to an encoding (default: 128)"
    )
    decoder_options.add_argument(
        "--keep-bom",
        action="store_true",
        help="Keep a leading byte-order mark in the decoded text"
    )
    decoder_options.add_argument(
        "--errors",
        help="codecs error handler for undecodable bytes (default: replace)"
    )
    decoder_options.add_argument(
        "--read-size",
        type=int,
        default=DEFAULT_READ_SIZE,
        help=f"Chunk size used to read input (default: {DEFAULT_READ_SIZE})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    decode_parser = subparsers.add_parser(
        "decode", parents=[decoder_options], help="Decode files to UTF-8 text"
    )
    decode_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    detect_parser = subparsers.add_parser(
        "detect", parents=[decoder_options], help="Report the encoding of files"
    )
    detect_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    return parser


def build_config(args: argparse.Namespace) -> DecoderConfig:
    """Load the configuration file, then apply command-line overrides."""
    config = DecoderConfig.from_file(args.config) if args.config else DecoderConfig()

    overrides: Dict[str, Any] = {}
    if args.default_encoding is not None:
        overrides["default_encoding"] = args.default_encoding
    if args.min_confidence is not None:
        overrides["min_confidence"] = args.min_confidence
    if args.consume_size is not None:
        overrides["consume_size"] = args.consume_size
    if args.keep_bom:
        overrides["strip_bom"] = False
    if args.errors is not None:
        overrides["errors"] = args.errors

    return config.override(**overrides)


def _open_input(path: str) -> BinaryIO:
    if path == STDIN_PATH:
        return sys.stdin.buffer
    return open(path, "rb")


def _decode_path(
    path: str, config: DecoderConfig, read_size: int
) -> Iterator[str]:
    """Yield the text fragments of one input."""
    file_obj = _open_input(path)
    try:
        stream = AutoDetectDecoderStream(config, correlation_id=path)
        yield from stream.iter_decode(iter_chunks(file_obj, read_size))
    finally:
        if path != STDIN_PATH:
            file_obj.close()


def detect_path(path: str, config: DecoderConfig, read_size: int) -> Dict[str, Any]:
    """Decode one input and describe how it was decoded."""
    stream = AutoDetectDecoderStream(config, correlation_id=path)
    try:
        file_obj = _open_input(path)
    except OSError as e:
        return {"file": path, "success": False, "error": str(e)}

    try:
        for _ in stream.iter_decode(iter_chunks(file_obj, read_size)):
            pass
    except (DecoderError, OSError) as e:
        logger.debug("Detection failed", extra={"file": path}, exc_info=True)
        return {"file": path, "success": False, "error": str(e)}
    finally:
        if path != STDIN_PATH:
            file_obj.close()

    detection = stream.detection
    return {
        "file": path,
        "success": True,
        "encoding": stream.encoding,
        "method": detection.method.value if detection else None,
        "label": detection.label if detection else None,
        "confidence": detection.confidence if detection else 0.0,
        "bytes": stream.statistics.bytes_received,
        "characters": stream.statistics.characters_emitted,
    }


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format detection results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    for result in results:
        if result.get("success", False):
            lines.append(
                f"{result['file']}: {result['encoding']} "
                f"({result['method']}, confidence {result['confidence']:.2f}, "
                f"{result['bytes']} bytes, {result['characters']} characters)"
            )
        else:
            lines.append(f"{result['file']}: error: {result.get('error', '')}")
    return "\n".join(lines)


def _write_text(paths: List[str], config: DecoderConfig, read_size: int,
                output: TextIO) -> int:
    failures = 0
    for path in paths:
        try:
            for fragment in _decode_path(path, config, read_size):
                output.write(fragment)
        except (DecoderError, OSError) as e:
            print(f"Failed to decode {path}: {e}", file=sys.stderr)
            failures += 1
    output.flush()
    return failures


def cmd_decode(args: argparse.Namespace) -> int:
    """Handle decode command."""
    config = build_config(args)

    if args.output:
        with args.output.open("w", encoding="utf-8", newline="") as output:
            failures = _write_text(args.paths, config, args.read_size, output)
    else:
        sys.stdout.flush()
        output = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", newline="")
        try:
            failures = _write_text(args.paths, config, args.read_size, output)
        finally:
            output.detach()

    return 0 if failures == 0 else 1


def cmd_detect(args: argparse.Namespace) -> int:
    """Handle detect command."""
    config = build_config(args)
    results = [detect_path(path, config, args.read_size) for path in args.paths]
    print(format_results(results, args.format))

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    if args.read_size <= 0:
        print("--read-size must be > 0", file=sys.stderr)
        return 1

    try:
        if args.command == "decode":
            return cmd_decode(args)
        if args.command == "detect":
            return cmd_detect(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
