"""Tests for incremental text decoders."""

import pytest

from autodetect_decoder.character.decoding import (
    EncodingAliases,
    IncrementalTextDecoder,
    get_decoder,
    lookup_text_codec,
)
from autodetect_decoder.shared.errors import MalformedInputError, UnknownEncodingError


class TestEncodingLookup:
    """Test codec lookup and alias normalization."""

    @pytest.mark.parametrize("name,codec", [
        ("utf8", "utf-8"),
        ("UTF-8", "utf-8"),
        ("latin1", "iso8859-1"),
        ("win1252", "cp1252"),
        ("binary", "iso8859-1"),
        ("ucs2", "utf-16-le"),
        ("maccyrillic", "mac-cyrillic"),
    ])
    def test_known_names(self, name, codec):
        """Test that common spellings resolve to registry codecs."""
        assert lookup_text_codec(name).name == codec

    def test_normalize_strips_and_lowercases(self):
        """Test alias normalization of free-form names."""
        assert EncodingAliases.normalize("  Win1251 ") == "cp1251"
        assert EncodingAliases.normalize("KOI8-R") == "koi8-r"

    def test_unknown_name(self):
        """Test that unregistered names raise UnknownEncodingError."""
        with pytest.raises(UnknownEncodingError) as excinfo:
            lookup_text_codec("cp99999")

        assert excinfo.value.encoding == "cp99999"
        assert isinstance(excinfo.value, LookupError)

    @pytest.mark.parametrize("name", ["hex", "base64", "rot13"])
    def test_non_text_codecs_rejected(self, name):
        """Test that transform codecs are not accepted as text encodings."""
        with pytest.raises(UnknownEncodingError) as excinfo:
            get_decoder(name)

        assert excinfo.value.reason == "not a text encoding"


class TestIncrementalTextDecoder:
    """Test the write/end contract."""

    def test_split_multibyte_character(self):
        """Test a character split across writes is emitted once complete."""
        decoder = get_decoder("utf-8")

        parts = [decoder.write(b"\xe6"), decoder.write(b"\x97"), decoder.write(b"\xa5!")]
        parts.append(decoder.end())

        assert parts == ["", "", "日!", ""]

    def test_end_flushes_incomplete_sequence(self):
        """Test a dangling partial character becomes a replacement character."""
        decoder = get_decoder("utf-8")

        first = decoder.write(b"ok\xe6\x97")
        last = decoder.end()

        assert first == "ok"
        assert last == "\ufffd"

    def test_strict_errors_raise_malformed_input(self):
        """Test the strict handler reports the failing byte offset."""
        decoder = get_decoder("utf-8", errors="strict")
        decoder.write(b"abc")

        with pytest.raises(MalformedInputError) as excinfo:
            decoder.write(b"d\xffe")

        assert excinfo.value.encoding == "utf-8"
        assert excinfo.value.position == 4
        assert isinstance(excinfo.value, ValueError)

    def test_single_byte_encoding(self):
        """Test a single-byte codec decodes every chunk immediately."""
        decoder = get_decoder("win1251")

        text = decoder.write("привет".encode("cp1251")) + decoder.end()

        assert text == "привет"
        assert decoder.codec_name == "cp1251"
        assert decoder.encoding == "win1251"


class TestByteOrderMark:
    """Test leading byte-order mark handling."""

    def test_utf8_bom_stripped(self):
        """Test one leading UTF-8 BOM is removed."""
        decoder = get_decoder("utf-8")

        assert decoder.write(b"\xef\xbb\xbfabc") == "abc"

    def test_only_first_bom_stripped(self):
        """Test a second BOM is part of the text."""
        decoder = get_decoder("utf-8")

        text = decoder.write(b"\xef\xbb\xbf\xef\xbb\xbfabc")

        assert text == "\ufeffabc"

    def test_bom_after_text_kept(self):
        """Test a BOM that is not at the very start is preserved."""
        decoder = get_decoder("utf-8")
        decoder.write(b"a")

        assert decoder.write(b"\xef\xbb\xbf") == "\ufeff"

    def test_keep_bom(self):
        """Test BOM removal can be disabled."""
        decoder = get_decoder("utf-8", strip_bom=False)

        assert decoder.write(b"\xef\xbb\xbfabc") == "\ufeffabc"

    def test_utf16_bom(self):
        """Test UTF-16 input with a BOM decodes without it."""
        decoder = get_decoder("utf-16")

        text = decoder.write("hi".encode("utf-16")) + decoder.end()

        assert text == "hi"

    def test_utf16le_bom_stripped(self):
        """Test explicit-endian UTF-16 drops its leading BOM too."""
        decoder = get_decoder("utf-16-le")

        text = decoder.write(b"\xff\xfeh\x00i\x00") + decoder.end()

        assert text == "hi"

    def test_non_unicode_codecs_never_strip(self):
        """Test BOM handling applies to Unicode codecs only."""
        decoder = IncrementalTextDecoder("latin-1")

        assert decoder.strip_bom is False
        assert decoder.write(b"\xef\xbb\xbf") == "\xef\xbb\xbf"

    def test_keep_bom_with_utf8_sig(self):
        """Test the signature-consuming UTF-8 codec keeps the BOM on request."""
        decoder = get_decoder("utf-8-sig", strip_bom=False)

        text = decoder.write(b"\xef\xbb\xbfabc") + decoder.end()

        assert text == "\ufeffabc"
        assert decoder.codec_name == "utf-8"

    @pytest.mark.parametrize("encoding,data,codec,expected", [
        ("utf-16", b"\xff\xfeh\x00i\x00", "utf-16-le", "\ufeffhi"),
        ("utf-16", b"\xfe\xff\x00h\x00i", "utf-16-be", "\ufeffhi"),
        ("utf-32", b"\xff\xfe\x00\x00h\x00\x00\x00", "utf-32-le", "\ufeffh"),
        ("utf-32", b"\x00\x00\xfe\xff\x00\x00\x00h", "utf-32-be", "\ufeffh"),
    ])
    def test_keep_bom_picks_explicit_byte_order(self, encoding, data, codec, expected):
        """Test BOM-consuming codecs keep the mark split over several writes."""
        decoder = get_decoder(encoding, strip_bom=False)

        parts = [decoder.write(data[i:i + 1]) for i in range(len(data))]
        text = "".join(parts) + decoder.end()

        assert text == expected
        assert decoder.codec_name == codec

    def test_keep_bom_short_input_flushed_at_end(self):
        """Test input shorter than a signature is decoded at end."""
        decoder = get_decoder("utf-32", strip_bom=False)

        first = decoder.write(b"\xff\xfe")
        last = decoder.end()

        assert first == ""
        assert last == "\ufffd"


class TestMalformedInputPosition:
    """Test byte offsets reported for undecodable input."""

    def test_position_accounts_for_carried_bytes(self):
        """Test an invalid sequence split across writes points at its first byte."""
        decoder = get_decoder("utf-8", errors="strict")
        decoder.write(b"abc\xe6")

        with pytest.raises(MalformedInputError) as excinfo:
            decoder.write(b"\x97x")

        assert excinfo.value.position == 3

    def test_position_at_end_of_stream(self):
        """Test a dangling sequence flushed at end reports where it began."""
        decoder = get_decoder("utf-8", errors="strict")
        decoder.write(b"ok\xe6\x97")

        with pytest.raises(MalformedInputError) as excinfo:
            decoder.end()

        assert excinfo.value.position == 2
