"""
=============================================================================
HTTPFUTURE - Deferred HTTP Requests
=============================================================================

Describe a request, hand it to a runner, and collect the result later
with a single blocking call.

    from httpfuture import FutureRunner, RequestDescriptor

    request = (RequestDescriptor("https://example.com/api")
        .set_method("POST")
        .set_data({"q": "widgets"})
        .set_timeout(15.0))

    with FutureRunner() as runner:
        future = runner.submit(request)
        ...
        status, body, headers = future.resolve()

    if status.is_timeout():
        ...

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpfuture/
    ├── __init__.py          # This file - package exports
    ├── config.py            # FutureConfig dataclass, logging setup
    ├── log.py               # Per-exchange structured log records
    ├── http/                # Pure protocol code (no I/O)
    │   ├── request.py       # RequestDescriptor
    │   ├── headers.py       # Header tokenizer
    │   ├── response.py      # Raw response parser
    │   ├── status.py        # Statuses and result variants
    │   └── status_codes.py  # HTTPStatus enum
    └── core/                # Runtime
        ├── transport.py     # Plain and TLS socket transports
        ├── thread_pool.py   # Worker threads
        └── future.py        # HTTPFuture, FutureRunner, as_completed

=============================================================================
"""

__version__ = "1.0.0"

from .config import FutureConfig, configure_logging
from .core import (
    FutureRunner,
    HTTPFuture,
    PlainTransport,
    TLSTransport,
    Transport,
    TransportError,
    as_completed,
)
from .http import (
    ConfigurationError,
    HeaderPair,
    HTTPMethod,
    HTTPResponseStatus,
    HTTPResult,
    MalformedResult,
    ParseResponseStatus,
    RequestDescriptor,
    ResponseParser,
    ResponseStatus,
    TransportErrorKind,
    TransportErrorResult,
    TransportResponseStatus,
    parse_headers,
    parse_response,
)

__all__ = [
    "FutureConfig",
    "configure_logging",
    "HTTPFuture",
    "FutureRunner",
    "as_completed",
    "Transport",
    "TransportError",
    "PlainTransport",
    "TLSTransport",
    "RequestDescriptor",
    "HTTPMethod",
    "ConfigurationError",
    "ResponseParser",
    "parse_response",
    "parse_headers",
    "HeaderPair",
    "HTTPResult",
    "MalformedResult",
    "TransportErrorResult",
    "ResponseStatus",
    "HTTPResponseStatus",
    "ParseResponseStatus",
    "TransportResponseStatus",
    "TransportErrorKind",
    "__version__",
]
