"""
Unit tests for raw HTTP response parsing.
"""

import pytest

from httpfuture.http.headers import HeaderPair
from httpfuture.http.response import ResponseParser, parse_response
from httpfuture.http.status import (
    HTTPResult,
    MalformedResult,
    ParseErrorKind,
    ParseResponseStatus,
)


class TestResponseParser:
    """Tests for ResponseParser.parse()."""

    def test_parse_simple_response(self, simple_response: bytes):
        """Test the basic status / headers / body split."""
        result = parse_response(simple_response)

        assert isinstance(result, HTTPResult)
        assert result.status_code == 200
        assert result.body == b"hello"
        assert result.headers == [("Content-Type", "text/plain")]

    def test_equals_expected_result(self, simple_response: bytes):
        """Test structural equality with a hand-built result."""
        assert parse_response(simple_response) == HTTPResult(
            200, b"hello", [HeaderPair("Content-Type", "text/plain")]
        )

    def test_bare_lf_framing(self):
        """Test responses using LF instead of CRLF."""
        result = parse_response(b"HTTP/1.0 404 Not Found\nServer: x\n\nmissing")

        assert result.status_code == 404
        assert result.headers == [("Server", "x")]
        assert result.body == b"missing"

    def test_no_headers(self):
        """Test a status line followed directly by the blank line."""
        result = parse_response(b"HTTP/1.1 204 No Content\r\n\r\n")

        assert result.status_code == 204
        assert result.body == b""
        assert result.headers == []

    def test_body_keeps_blank_lines(self):
        """Test that only the FIRST blank line splits head from body."""
        result = parse_response(b"HTTP/1.1 200 OK\r\n\r\nline1\r\n\r\nline2")

        assert result.body == b"line1\r\n\r\nline2"

    def test_binary_body_untouched(self):
        """Test that body bytes are returned exactly."""
        body = bytes(range(256))
        result = parse_response(b"HTTP/1.1 200 OK\r\n\r\n" + body)

        assert result.body == body

    def test_headers_in_original_order(self):
        """Test that duplicate headers survive in order."""
        raw = (
            b"HTTP/1.1 200 OK\r\n"
            b"Set-Cookie: a=1\r\n"
            b"Content-Type: text/plain\r\n"
            b"Set-Cookie: b=2\r\n"
            b"\r\n"
        )
        result = parse_response(raw)

        assert result.headers == [
            ("Set-Cookie", "a=1"),
            ("Content-Type", "text/plain"),
            ("Set-Cookie", "b=2"),
        ]

    def test_malformed_header_line_tolerated(self):
        """Test that a header without a colon does not fail the parse."""
        result = parse_response(b"HTTP/1.1 200 OK\r\nnonsense\r\n\r\nok")

        assert isinstance(result, HTTPResult)
        assert result.headers == [HeaderPair("nonsense", None)]

    def test_empty_reason_phrase(self):
        """Test a status line with an empty reason phrase."""
        result = parse_response(b"HTTP/1.1 500 \r\n\r\n")

        assert result.status_code == 500

    def test_str_input(self):
        """Test that str input is accepted."""
        result = parse_response("HTTP/1.1 200 OK\r\n\r\nhi")

        assert result.body == b"hi"


class TestContinueResponses:
    """Tests for 100 Continue unwrapping."""

    def test_unwraps_continue_blocks(self, continue_response: bytes):
        """Test that interim responses are discarded."""
        result = parse_response(continue_response)

        assert result.status_code == 201
        assert result.body == b'{"id": 7}'
        assert result.headers == [
            ("Location", "/items/7"),
            ("Content-Type", "application/json"),
        ]

    def test_continue_without_final_response(self):
        """Test that a lone 100 Continue is malformed."""
        raw = b"HTTP/1.1 100 Continue\r\n\r\n"
        result = parse_response(raw)

        assert isinstance(result, MalformedResult)
        assert result.raw_response == raw

    def test_continue_followed_by_garbage(self):
        """Test that a bad body after 100 reports the ORIGINAL bytes."""
        raw = b"HTTP/1.1 100 Continue\r\n\r\nnot http at all\r\n\r\n"
        result = parse_response(raw)

        assert isinstance(result, MalformedResult)
        assert result.raw_response == raw

    def test_continue_limit(self):
        """Test that too many continue blocks give up."""
        parser = ResponseParser(max_continue_responses=2)
        final = b"HTTP/1.1 200 OK\r\n\r\ndone"

        assert parser.parse(b"HTTP/1.1 100 Continue\r\n\r\n" * 2 + final).status_code == 200

        raw = b"HTTP/1.1 100 Continue\r\n\r\n" * 3 + final
        result = parser.parse(raw)
        assert isinstance(result, MalformedResult)
        assert result.raw_response == raw

    def test_other_1xx_not_unwrapped(self):
        """Test that only code 100 is treated as a continuation."""
        result = parse_response(b"HTTP/1.1 101 Switching Protocols\r\nUpgrade: websocket\r\n\r\n")

        assert result.status_code == 101


class TestMalformedResponses:
    """Tests for the malformed-result fallback."""

    @pytest.mark.parametrize("raw", [
        b"",
        b"HTTP/1.1 200 OK",
        b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n",
    ])
    def test_no_blank_line(self, raw: bytes):
        """Test that a response without a head/body boundary is malformed."""
        result = parse_response(raw)

        assert isinstance(result, MalformedResult)
        assert result.raw_response == raw

    @pytest.mark.parametrize("raw", [
        b"<html>oops</html>\r\n\r\nbody",
        b"HTTP/1.1 OK\r\n\r\n",
        b"HTTP/1.1 20 OK\r\n\r\n",
        b"HTTP/1.1 2000 OK\r\n\r\n",
        b"HTTP/1.1 200\r\n\r\n",
        b"http/1.1 200 OK\r\n\r\n",
        b"SSH-2.0-OpenSSH\r\n\r\n",
    ])
    def test_bad_status_line(self, raw: bytes):
        """Test that an unrecognized status line is malformed."""
        result = parse_response(raw)

        assert isinstance(result, MalformedResult)
        assert result.raw_response == raw

    def test_malformed_result_shape(self):
        """Test that malformed results destructure like any other result."""
        status, body, headers = parse_response(b"garbage")

        assert isinstance(status, ParseResponseStatus)
        assert status.kind is ParseErrorKind.MALFORMED_RESPONSE
        assert status.raw_response == b"garbage"
        assert status.is_error() is True
        assert status.is_timeout() is False
        assert body is None
        assert headers == []
