"""Tests for mpdkit protocol filters, commands and errors."""

from __future__ import annotations

import pytest

from mpdkit.protocol.commands import (
    build_command,
    build_query,
    command_list,
    format_range,
    format_relative,
    split_command_list_ok,
)
from mpdkit.protocol.errors import ACKError, ErrorCode, check_ack
from mpdkit.protocol.filters import Filter, compile_filter, quote
from mpdkit.protocol.messages import BinaryMeta, BinaryResponse, CompareMethod, Tag


class TestQuote:
    """Tests for argument quoting."""

    def test_wraps(self):
        """Test a bare value is wrapped in double quotes."""
        assert quote("abc") == '"abc"'

    def test_idempotent(self):
        """Test already-quoted input is unchanged."""
        assert quote('"abc"') == '"abc"'
        assert quote(quote("abc")) == quote("abc")

    def test_escapes_on_wrap(self):
        """Test backslashes and quote characters are escaped when wrapping."""
        assert quote('say "hi"') == '"say \\"hi\\""'
        assert quote("a\\b") == '"a\\\\b"'

    def test_single_quote_char(self):
        """Test quoting with single quotes."""
        assert quote("x", quote_char="'") == "'x'"

    def test_lone_quote_is_not_delimited(self):
        """Test a single quote character is treated as content."""
        assert quote('"') == '"\\""'


class TestCompileFilter:
    """Tests for filter compilation."""

    def test_single_filter(self):
        """Test a filter compiles to a quoted expression."""
        assert compile_filter(Filter("track", "some song")) == "\"(track == 'some song')\""

    def test_enum_tag_and_compare(self):
        """Test enum members render as their wire values."""
        result = compile_filter(Filter(Tag.ALBUM, "Blue", CompareMethod.CONTAINS))
        assert result == "\"(album contains 'Blue')\""

    def test_list_preserves_order(self):
        """Test filter lists are joined by single spaces in order."""
        result = compile_filter([Filter("artist", "A"), Filter("album", "B")])
        assert result == "\"(artist == 'A')\" \"(album == 'B')\""

    def test_raw_string(self):
        """Test raw expressions are quoted once."""
        assert compile_filter("(artist == 'A')") == "\"(artist == 'A')\""
        assert compile_filter("\"(artist == 'A')\"") == "\"(artist == 'A')\""

    def test_empty(self):
        """Test missing filters compile to nothing."""
        assert compile_filter(None) == ""
        assert compile_filter([]) == ""
        assert compile_filter("") == ""

    def test_value_with_apostrophe(self):
        """Test apostrophes are escaped for both quoting levels."""
        result = compile_filter(Filter("artist", "Guns N' Roses"))
        assert result == '"(artist == ' + "'Guns N\\\\' Roses'" + ')"'


class TestCommands:
    """Tests for command serialization."""

    def test_format_range(self):
        """Test ranges and indexes."""
        assert format_range((1, 5)) == "1:5"
        assert format_range((3, None)) == "3:"
        assert format_range(4) == "4"

    def test_format_relative(self):
        """Test relative positions."""
        assert format_relative(None) == ""
        assert format_relative(2) == "2"
        assert format_relative(2, "+") == "+2"

    def test_build_command_skips_empty(self):
        """Test None and empty arguments are dropped."""
        assert build_command("play", None) == "play"
        assert build_command("seek", 1, 30.5) == "seek 1 30.5"
        assert build_command("play", 0) == "play 0"
        assert build_command("add", '"a.mp3"', "") == 'add "a.mp3"'

    def test_query_clause_order(self):
        """Test query clauses follow the protocol order."""
        line = build_query(
            "find", Filter(Tag.ARTIST, "A"), sort=Tag.DATE, descending=True, window=(0, 5)
        )
        assert line == "find \"(artist == 'A')\" sort -date window 0:5"

    def test_query_position(self):
        """Test findadd position clause."""
        line = build_query("findadd", Filter("album", "B"), position=2, relative="+")
        assert line == "findadd \"(album == 'B')\" position +2"

    def test_query_prefix_and_group(self):
        """Test prefix arguments come before the filter."""
        assert (
            build_query("searchaddpl", Filter("genre", "Jazz"), prefix=['"mix"'])
            == "searchaddpl \"mix\" \"(genre == 'Jazz')\""
        )
        assert build_query("count", Filter("artist", "A"), group=Tag.ALBUM) == (
            "count \"(artist == 'A')\" group album"
        )

    def test_command_list(self):
        """Test command-list blocks."""
        assert command_list(["play", "stop"]) == (
            "command_list_begin\nplay\nstop\ncommand_list_end"
        )
        assert command_list(["play"], ok=True).startswith("command_list_ok_begin\n")

    def test_split_command_list_ok(self):
        """Test responses split per command, keeping empty results."""
        assert split_command_list_ok("a: 1\nlist_OK\nlist_OK\nOK\n") == ["a: 1\n", ""]


class TestErrors:
    """Tests for ACK detection."""

    def test_plain_ack(self):
        """Test an ACK line raises with the line as message."""
        with pytest.raises(ACKError) as exc_info:
            check_ack("ACK some error\n")

        assert exc_info.value.message == "ACK some error\n"
        assert str(exc_info.value) == "ACK some error\n"
        assert exc_info.value.code is None

    def test_structured_ack(self):
        """Test code, index, command and text are parsed."""
        err = ACKError("ACK [50@0] {albumart} No file exists\n")

        assert err.code == ErrorCode.NO_EXIST
        assert err.list_index == 0
        assert err.command == "albumart"
        assert err.description == "No file exists"

    def test_unknown_code(self):
        """Test unknown codes are kept as integers."""
        assert ACKError("ACK [99@0] {x} y").code == 99

    def test_ack_after_output(self):
        """Test an ACK following list output is detected."""
        with pytest.raises(ACKError) as exc_info:
            check_ack("list_OK\nACK [50@1] {load} No such playlist\n")

        assert exc_info.value.list_index == 1

    def test_ok_passthrough(self):
        """Test non-ACK responses are returned unchanged."""
        assert check_ack("volume: 5\nOK\n") == "volume: 5\nOK\n"


class TestMessages:
    """Tests for message dataclasses."""

    def test_binary_response_to_dict(self):
        """Test binary payloads are summarized."""
        resp = BinaryResponse(BinaryMeta(size=3, type="image/png"), b"abc")

        assert resp.to_dict() == {"meta": {"size": 3, "type": "image/png"}, "length": 3}
