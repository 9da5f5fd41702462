"""
=============================================================================
HEADER TOKENIZER
=============================================================================

Splits the header block of an HTTP response into (name, value) pairs.

    Content-Type: text/plain\r\n          HeaderPair("Content-Type", "text/plain")
    Set-Cookie: a=1\r\n           ──►     HeaderPair("Set-Cookie", "a=1")
    Set-Cookie: b=2\r\n                   HeaderPair("Set-Cookie", "b=2")
    garbage-without-colon\r\n             HeaderPair("garbage-without-colon", None)

=============================================================================
TOLERANCE RULES
=============================================================================

Unlike the request side of a server, a client has no one to send a
"400 Bad Request" to, so the tokenizer never rejects input:

1. ORDER IS KEPT: pairs come out in the order the lines came in.
2. NO DEDUPLICATION: repeated headers (Set-Cookie!) are all kept.
3. NAMES KEEP THEIR CASE: lookups are case-insensitive instead.
4. MALFORMED LINES SURVIVE: a line with no ":" becomes a pair whose
   value is None and whose name is the whole line.
5. LINE ENDINGS: both "\r\n" and bare "\n" separate lines.

=============================================================================
"""

import re
from typing import NamedTuple, Optional, Union


class HeaderPair(NamedTuple):
    """
    One header line.

    value is None when the line had no colon separator; name then holds
    the raw line.
    """
    name: str
    value: Optional[str]


# Non-greedy name: split on the FIRST colon, so "X-Time: 12:30" keeps "12:30".
HEADER_PATTERN = re.compile(r"^(?P<name>.*?):\s*(?P<value>.*)$")
LINE_BREAK_PATTERN = re.compile(r"\r?\n")

# Header bytes are ISO-8859-1 by RFC 7230, which also maps every byte
# to exactly one character, so decoding can never fail.
HEADER_ENCODING = "iso-8859-1"


def parse_headers(raw: Union[str, bytes, None]) -> list[HeaderPair]:
    """
    Tokenize a raw header block.

    Args:
        raw: Header lines (without the status line), or None.

    Returns:
        List of HeaderPair in input order. Empty input yields [].
    """
    if not raw:
        return []

    if isinstance(raw, bytes):
        raw = raw.decode(HEADER_ENCODING)

    headers = []
    for line in LINE_BREAK_PATTERN.split(raw):
        if not line:
            continue

        match = HEADER_PATTERN.match(line)
        if match:
            headers.append(HeaderPair(match.group("name"), match.group("value")))
        else:
            headers.append(HeaderPair(line, None))

    return headers


def get_header_list(headers: list[HeaderPair], name: str) -> list[Optional[str]]:
    """All values of headers called `name` (case-insensitive), in order."""
    wanted = name.lower()
    return [value for header_name, value in headers if header_name.lower() == wanted]


def get_header(
    headers: list[HeaderPair],
    name: str,
    default: Optional[str] = None
) -> Optional[str]:
    """
    First value of the header called `name` (case-insensitive).

    Example:
        get_header(result.headers, "content-type")  # "text/plain"
    """
    values = get_header_list(headers, name)
    return values[0] if values else default
