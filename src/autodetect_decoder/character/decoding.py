"""Incremental text decoders keyed by encoding name.

Wraps the ``codecs`` incremental decoder registry so that a decoding stream can
write raw chunks and receive text, leaving multi-byte sequences that straddle
chunk boundaries to the codec's own carry-over state.
"""

import codecs
from typing import ClassVar, Dict, Optional, Tuple

from autodetect_decoder.shared.config import DEFAULT_ERRORS
from autodetect_decoder.shared.errors import MalformedInputError, UnknownEncodingError

BOM_CHARACTER = "\ufeff"

# Codecs that consume their own byte-order mark, with the codec that keeps the
# mark in the text for each leading signature
BOM_PRESERVING_CODECS: Dict[str, Tuple[Tuple[bytes, str], ...]] = {
    "utf-8-sig": ((b"", "utf-8"),),
    "utf-16": (
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
    ),
    "utf-32": (
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
    ),
}


class EncodingAliases:
    """Normalization of encoding spellings that Python's codec registry lacks."""

    ALIASES: ClassVar[Dict[str, str]] = {
        "binary": "latin-1",
        "ucs2": "utf-16-le",
        "ucs-2": "utf-16-le",
        "win1250": "cp1250",
        "win1251": "cp1251",
        "win1252": "cp1252",
        "win1253": "cp1253",
        "win1254": "cp1254",
        "win1255": "cp1255",
        "win1256": "cp1256",
        "win1257": "cp1257",
        "win1258": "cp1258",
        "x-mac-cyrillic": "mac-cyrillic",
        "maccyrillic": "mac-cyrillic",
    }

    @classmethod
    def normalize(cls, encoding: str) -> str:
        """Return the codec-registry spelling of ``encoding``."""
        key = encoding.strip().lower()
        return cls.ALIASES.get(key, key)


def lookup_text_codec(encoding: str) -> codecs.CodecInfo:
    """Find the text codec for ``encoding``.

    Raises:
        UnknownEncodingError: If the name is unknown or names a bytes-to-bytes
            codec such as ``hex`` or ``base64``
    """
    try:
        info = codecs.lookup(EncodingAliases.normalize(encoding))
    except LookupError as e:
        raise UnknownEncodingError(encoding) from e

    if not getattr(info, "_is_text_encoding", True):
        raise UnknownEncodingError(encoding, "not a text encoding")
    return info


class IncrementalTextDecoder:
    """Stateful decoder with a ``write``/``end`` contract.

    With ``strip_bom`` disabled, codecs that would swallow the byte-order mark
    (``utf-8-sig``, ``utf-16``, ``utf-32``) are swapped for their explicit
    counterpart once the leading bytes are known, so U+FEFF stays in the text.

    Attributes:
        encoding: Encoding name as requested
        codec_name: Canonical name of the codec doing the decoding
        strip_bom: Whether one leading byte-order mark is removed
    """

    def __init__(
        self, encoding: str, strip_bom: bool = True, errors: str = DEFAULT_ERRORS
    ) -> None:
        info = lookup_text_codec(encoding)
        self.encoding = encoding
        self.codec_name = info.name
        self.errors = errors
        self.strip_bom = strip_bom and self.codec_name.startswith("utf")
        self._info = info
        self._signatures = () if strip_bom else BOM_PRESERVING_CODECS.get(info.name, ())
        self._signature_size = max((len(sig) for sig, _ in self._signatures), default=0)
        self._pending = b""
        self._decoder: Optional[codecs.IncrementalDecoder] = None
        self._bytes_decoded = 0
        self._started = False
        if self._signature_size == 0:
            self._open(b"")

    def write(self, data: bytes) -> str:
        """Decode ``data``; bytes of an incomplete character are kept for later."""
        if self._decoder is None:
            self._pending += data
            if len(self._pending) < self._signature_size:
                return ""
            data = self._release_pending()
        return self._strip_leading_bom(self._decode(data, final=False))

    def end(self) -> str:
        """Flush the residual state of the decoder."""
        data = self._release_pending() if self._decoder is None else b""
        return self._strip_leading_bom(self._decode(data, final=True))

    def _open(self, prefix: bytes) -> None:
        info = self._info
        for signature, name in self._signatures:
            if prefix.startswith(signature):
                info = codecs.lookup(name)
                break
        self.codec_name = info.name
        self._decoder = info.incrementaldecoder(errors=self.errors)

    def _release_pending(self) -> bytes:
        data, self._pending = self._pending, b""
        self._open(data)
        return data

    def _buffered_size(self) -> int:
        buffered = self._decoder.getstate()[0]
        return len(buffered) if isinstance(buffered, bytes) else 0

    def _decode(self, data: bytes, final: bool) -> str:
        # e.start counts from the carried-over bytes, not from ``data``
        offset = self._bytes_decoded - self._buffered_size()
        try:
            text = self._decoder.decode(data, final)
        except UnicodeDecodeError as e:
            raise MalformedInputError(self.encoding, offset + e.start) from e
        self._bytes_decoded += len(data)
        return text

    def _strip_leading_bom(self, text: str) -> str:
        if self._started or not text:
            return text
        self._started = True
        if self.strip_bom and text.startswith(BOM_CHARACTER):
            return text[1:]
        return text


def get_decoder(
    encoding: str, strip_bom: bool = True, errors: str = DEFAULT_ERRORS
) -> IncrementalTextDecoder:
    """Create a fresh incremental decoder for ``encoding``.

    Raises:
        UnknownEncodingError: If no text codec is registered under the name
    """
    return IncrementalTextDecoder(encoding, strip_bom=strip_bom, errors=errors)
