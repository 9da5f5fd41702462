"""
=============================================================================
HTTP PROTOCOL PIECES
=============================================================================

Everything here is pure: no sockets, no threads, no shared state. The
parser and tokenizer can be called from any number of threads at once.

    request.py       RequestDescriptor: what to send
    headers.py       parse_headers(): header block → [HeaderPair, ...]
    response.py      ResponseParser: raw bytes → HTTPResult / MalformedResult
    status.py        Statuses and result variants
    status_codes.py  HTTPStatus enum and reason phrases

=============================================================================
"""

from .headers import HeaderPair, get_header, get_header_list, parse_headers
from .request import ConfigurationError, HTTPMethod, RequestDescriptor
from .response import ParsedResponse, ResponseParser, parse_response
from .status import (
    HTTPResponseStatus,
    HTTPResult,
    MalformedResult,
    ParseErrorKind,
    ParseResponseStatus,
    Resolution,
    ResponseStatus,
    TransportErrorKind,
    TransportErrorResult,
    TransportResponseStatus,
)
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    # Request configuration
    "RequestDescriptor",
    "HTTPMethod",
    "ConfigurationError",

    # Parsing
    "ResponseParser",
    "ParsedResponse",
    "parse_response",
    "HeaderPair",
    "parse_headers",
    "get_header",
    "get_header_list",

    # Results and statuses
    "Resolution",
    "HTTPResult",
    "MalformedResult",
    "TransportErrorResult",
    "ResponseStatus",
    "HTTPResponseStatus",
    "ParseResponseStatus",
    "TransportResponseStatus",
    "ParseErrorKind",
    "TransportErrorKind",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
]
