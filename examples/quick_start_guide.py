#!/usr/bin/env python3
"""
Quick Start Guide for the Autodetect Decoder.

This example walks through one-call decoding, incremental streams, the
callback-style collector and asynchronous sources.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from autodetect_decoder import AutoDetectDecoderStream, DecoderConfig, collect, decode
from autodetect_decoder.character.stream import aiter_decode


SAMPLES = {
    "utf-8": "Größenwahn, naïve café, 日本語のテキスト。".encode("utf-8") * 4,
    "koi8-r": "Съешь же ещё этих мягких французских булок.".encode("koi8-r") * 4,
    "ascii": b"Plain ASCII text carries no evidence about its encoding.",
}


def quick_start_example():
    """Quick start example showing basic usage."""

    print("QUICK START - Autodetect Decoder")
    print("=" * 45)

    # Step 1: Decode whole byte strings
    print("\nStep 1: One-call decoding")
    print("-" * 30)

    for name, data in SAMPLES.items():
        result = decode(data, default_encoding="latin-1")
        print(f"{name:>7}: {result.encoding} ({result.detection.method.value}, "
              f"confidence {result.detection.confidence:.2f})")
        print(f"         {result.text[:40]!r}")

    # Step 2: Feed a stream chunk by chunk
    print("\nStep 2: Incremental stream")
    print("-" * 30)

    stream = AutoDetectDecoderStream(DecoderConfig.low_latency())
    data = SAMPLES["utf-8"]
    for offset in range(0, len(data), 16):
        text = stream.write(data[offset:offset + 16])
        print(f"  wrote 16 bytes, state={stream.state.value}, got {len(text)} characters")
    stream.end()
    print(f"Resolved encoding: {stream.encoding}")
    print(f"Statistics: {stream.statistics.to_dict()}")

    # Step 3: Collect the whole text through a callback
    print("\nStep 3: Callback collector")
    print("-" * 30)

    def on_done(error, text):
        if error is not None:
            print(f"Failed: {error}")
        else:
            print(f"Collected {len(text)} characters")

    collect([SAMPLES["koi8-r"][:10], SAMPLES["koi8-r"][10:]], on_done, default_encoding="utf8")

    # Step 4: Asynchronous sources
    print("\nStep 4: Asynchronous source")
    print("-" * 30)

    async def source():
        for line in SAMPLES["utf-8"].splitlines(keepends=True) or [SAMPLES["utf-8"]]:
            await asyncio.sleep(0)
            yield line

    async def run():
        return "".join([text async for text in aiter_decode(source())])

    print(f"Decoded {len(asyncio.run(run()))} characters asynchronously")


if __name__ == "__main__":
    quick_start_example()
