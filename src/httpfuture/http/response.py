"""
=============================================================================
HTTP RESPONSE PARSER
=============================================================================

Turns the raw bytes of one complete HTTP exchange into a result object.
The transport has already read everything the server sent; this module
does no I/O at all.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\r\n                 ─┐
    Content-Type: text/plain\r\n         ├── head
    Content-Length: 5\r\n               ─┘
    \r\n                                 ◄── blank line (head/body boundary)
    hello                                ◄── body (everything after)

=============================================================================
100 CONTINUE
=============================================================================

Some servers (HTTPS front-ends especially) send one or more interim
"100 Continue" responses before the real one. On the wire they are just
stacked in front of it:

    HTTP/1.1 100 Continue\r\n
    \r\n
    HTTP/1.1 200 OK\r\n
    Content-Type: text/plain\r\n
    \r\n
    hello

The parser peels these off: when the head says 100, the "body" is really
the next response, so it starts over on that. The number of peels is
capped (max_continue_responses) so a hostile server cannot keep us
looping.

=============================================================================
NEVER RAISES
=============================================================================

Anything that does not fit the framing degrades to a MalformedResult
holding the ORIGINAL bytes, untouched, so the caller can log exactly
what the server sent.

=============================================================================
"""

import logging
import re
from typing import Union

from .headers import parse_headers
from .status import HTTPResult, MalformedResult
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


DEFAULT_MAX_CONTINUE_RESPONSES = 10


ParsedResponse = Union[HTTPResult, MalformedResult]


class ResponseParser:
    """
    Parses raw HTTP response bytes into HTTPResult / MalformedResult.

    ==========================================================================
    REGEX PATTERNS EXPLAINED
    ==========================================================================

    BASE_PATTERN: ^(?P<head>.*?)\\r?\\n\\r?\\n(?P<body>.*)$   (DOTALL)

        (?P<head>.*?)   - Shortest possible head...
        \\r?\\n\\r?\\n      - ...ending at the FIRST blank line (CR optional)
        (?P<body>.*)    - Body: every remaining byte, newlines included

    STATUS_PATTERN: ^HTTP/\\S+ (?P<code>\\d{3}) [^\\r\\n]*(?:\\r?\\n(?P<headers>.*))?$

        HTTP/\\S+        - Protocol and version ("HTTP/1.1", "HTTP/1.0")
        (?P<code>\\d{3}) - Exactly three digits, followed by a space
        [^\\r\\n]*       - Reason phrase (ignored, may be empty)
        (?:...)?        - Optional header block on the following lines

    ==========================================================================
    """

    BASE_PATTERN = re.compile(rb"^(?P<head>.*?)\r?\n\r?\n(?P<body>.*)$", re.DOTALL)
    STATUS_PATTERN = re.compile(
        rb"^HTTP/\S+ (?P<code>\d{3}) [^\r\n]*(?:\r?\n(?P<headers>.*))?$",
        re.DOTALL,
    )

    def __init__(self, max_continue_responses: int = DEFAULT_MAX_CONTINUE_RESPONSES):
        """
        Args:
            max_continue_responses: How many leading "100 Continue" blocks
                                    to unwrap before giving up and calling
                                    the response malformed.
        """
        self.max_continue_responses = max_continue_responses

    def parse(self, raw_response: Union[bytes, str]) -> ParsedResponse:
        """
        Parse one complete raw response.

        =====================================================================
        PARSING ALGORITHM
        =====================================================================

        1. Split at the first blank line into head and body
           └── no blank line → malformed
        2. Match the status line at the top of the head
           └── no match → malformed
        3. Code 100? The body is the next response: go back to 1
           └── too many of them → malformed
        4. Tokenize the header lines and build the result

        =====================================================================

        Args:
            raw_response: Everything the server sent. str input is encoded
                          as ISO-8859-1 so each character maps to one byte.

        Returns:
            HTTPResult on success, MalformedResult otherwise.
        """
        if isinstance(raw_response, str):
            raw_response = raw_response.encode("iso-8859-1")

        response = raw_response
        continues = 0

        while True:
            # STEP 1: head / body split
            base = self.BASE_PATTERN.match(response)
            if not base:
                return self._malformed(raw_response, "no blank line after the head")

            head = base.group("head")
            body = base.group("body")

            # STEP 2: status line
            status = self.STATUS_PATTERN.match(head)
            if not status:
                return self._malformed(raw_response, "unrecognized status line")

            code = int(status.group("code"))

            # STEP 3: interim "100 Continue", the real response follows
            if code == HTTPStatus.CONTINUE:
                continues += 1
                if continues > self.max_continue_responses:
                    return self._malformed(
                        raw_response,
                        f"more than {self.max_continue_responses} continue responses",
                    )
                response = body
                continue

            # STEP 4: final response
            headers = parse_headers(status.group("headers"))
            return HTTPResult(code, body, headers)

    def _malformed(self, raw_response: bytes, reason: str) -> MalformedResult:
        logger.debug(f"Malformed response ({reason}), {len(raw_response)} bytes")
        return MalformedResult(raw_response)


_default_parser = ResponseParser()


def parse_response(raw_response: Union[bytes, str]) -> ParsedResponse:
    """
    Parse a raw response with the default settings.

    Example:
        result = parse_response(b"HTTP/1.1 200 OK\\r\\n\\r\\nhello")
        result.status_code  # 200
        result.body         # b"hello"
    """
    return _default_parser.parse(raw_response)
