"""Tests for mpdkit response parsing."""

from __future__ import annotations

import math

import pytest

from mpdkit.protocol.errors import MalformedResponseError
from mpdkit.protocol.parser import (
    ENTRY_KEYS,
    STATUS_FIELDS,
    TRACK_FIELDS,
    FieldKind,
    coerce,
    parse_binary_chunk,
    parse_changed,
    parse_flat_list,
    parse_grouped_list,
    parse_record,
    parse_typed_list,
    parse_values,
)


class TestCoerce:
    """Tests for field coercion."""

    def test_number(self):
        """Test integers, floats and non-numbers."""
        assert coerce(FieldKind.NUMBER, "3") == 3
        assert coerce(FieldKind.NUMBER, "3.5") == 3.5
        assert math.isnan(coerce(FieldKind.NUMBER, "abc"))

    def test_flag_and_tristate(self):
        """Test flag and tristate values."""
        assert coerce(FieldKind.FLAG, "1") == 1
        assert coerce(FieldKind.FLAG, "0") == 0
        assert coerce(FieldKind.TRISTATE, "0") == 0
        assert coerce(FieldKind.TRISTATE, "oneshot") == "oneshot"

    def test_string_list(self):
        """Test single values become lists and lists stay flat."""
        assert coerce(FieldKind.STRING_LIST, "Rock") == ["Rock"]
        assert coerce(FieldKind.STRING_LIST, ["Rock", "Pop"]) == ["Rock", "Pop"]

    def test_repeated_number(self):
        """Test repeated values are coerced element-wise."""
        assert coerce(FieldKind.NUMBER, ["1", "2"]) == [1, 2]


class TestParseRecord:
    """Tests for single-record parsing."""

    def test_raw(self):
        """Test all keys are kept as strings without a table."""
        assert parse_record("volume: 5\nstate: play\nOK\n") == {"volume": "5", "state": "play"}

    def test_value_with_delimiter(self):
        """Test only the first delimiter splits."""
        assert parse_record("Title: a: b\n") == {"Title": "a: b"}

    def test_typed_drops_unknown(self):
        """Test unknown keys are dropped unless allowed."""
        text = "volume: -1\nmixrampdelay: nan\nfoo: bar\n"
        record = parse_record(text, STATUS_FIELDS)

        assert record["volume"] == -1
        assert math.isnan(record["mixrampdelay"])
        assert "foo" not in record
        assert parse_record(text, STATUS_FIELDS, allow_unknown=True)["foo"] == "bar"

    def test_list_field_accumulates(self):
        """Test repeated list fields accumulate into one flat list."""
        record = parse_record("Genre: Rock\nGenre: Pop\nTitle: X\n", TRACK_FIELDS)
        assert record == {"Genre": ["Rock", "Pop"], "Title": "X"}


class TestParseLists:
    """Tests for list parsing."""

    def test_separator(self):
        """Test each separator opens a record."""
        text = "file: a\nTitle: A\nfile: b\nTitle: B\nOK\n"
        assert parse_flat_list(text, "file") == [
            {"file": "a", "Title": "A"},
            {"file": "b", "Title": "B"},
        ]

    def test_first_key_is_default_separator(self):
        """Test the first key is used without a separator."""
        text = "playlist: x\nLast-Modified: t\nplaylist: y\n"
        assert parse_flat_list(text) == [
            {"playlist": "x", "Last-Modified": "t"},
            {"playlist": "y"},
        ]

    def test_case_insensitive_separator(self):
        """Test separators match regardless of case."""
        assert parse_flat_list("Album: X\nAlbum: Y\n", "album") == [{"Album": "X"}, {"Album": "Y"}]

    def test_lines_before_separator_dropped(self):
        """Test leading lines without a record are ignored."""
        assert parse_flat_list("volume: 1\nfile: a\n", "file") == [{"file": "a"}]

    def test_repeated_key_flat_list(self):
        """Test keys repeated in a record collect into one flat list."""
        text = "file: a\nGenre: Rock\nGenre: Pop\nGenre: Jazz\n"
        assert parse_flat_list(text, "file") == [
            {"file": "a", "Genre": ["Rock", "Pop", "Jazz"]}
        ]

    def test_multiple_separators(self):
        """Test any of several keys can open a record."""
        text = "directory: d\nfile: d/a\nTitle: T\nplaylist: p.m3u\n"
        assert parse_flat_list(text, ENTRY_KEYS) == [
            {"directory": "d"},
            {"file": "d/a", "Title": "T"},
            {"playlist": "p.m3u"},
        ]

    def test_grouped(self):
        """Test grouped responses."""
        text = "AlbumArtist: A\nAlbum: X\nAlbum: Y\nAlbumArtist: B\nAlbum: Z\nOK\n"
        assert parse_grouped_list(text, "albumartist") == [
            {"group": "A", "values": ["X", "Y"]},
            {"group": "B", "values": ["Z"]},
        ]

    def test_typed_list(self):
        """Test typed lists coerce per field."""
        text = "file: a\nPos: 3\nGenre: Rock\nX-Custom: 1\nfile: b\nGenre: Pop\nGenre: Jazz\n"

        tracks = parse_typed_list(text, TRACK_FIELDS, "file")

        assert tracks == [
            {"file": "a", "Pos": 3, "Genre": ["Rock"]},
            {"file": "b", "Genre": ["Pop", "Jazz"]},
        ]
        assert parse_typed_list(text, TRACK_FIELDS, "file", allow_unknown=True)[0]["X-Custom"] == "1"

    def test_values_and_changed(self):
        """Test value collection."""
        assert parse_values("command: play\ncommand: stop\nOK\n", "command") == ["play", "stop"]
        assert parse_changed("changed: player\nchanged: mixer\nOK\n") == ["player", "mixer"]
        assert parse_changed("OK\n") == []


class TestBinaryChunk:
    """Tests for binary chunk parsing."""

    def test_parse(self):
        """Test headers and payload are separated."""
        headers, payload = parse_binary_chunk(b"size: 10\ntype: image/jpeg\nbinary: 3\nabc\nOK\n")

        assert headers == {"size": 10, "binary": 3, "type": "image/jpeg"}
        assert payload == b"abc"

    def test_missing_marker(self):
        """Test responses without binary header are malformed."""
        with pytest.raises(MalformedResponseError):
            parse_binary_chunk(b"size: 10\nOK\n")

    def test_non_numeric(self):
        """Test non-numeric sizes are malformed."""
        with pytest.raises(MalformedResponseError):
            parse_binary_chunk(b"size: big\nbinary: 1\na\nOK\n")

    def test_truncated(self):
        """Test payloads shorter than announced are malformed."""
        with pytest.raises(MalformedResponseError):
            parse_binary_chunk(b"size: 10\nbinary: 8\nabc")
