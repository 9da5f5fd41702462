"""
=============================================================================
RESULT / STATUS MODEL
=============================================================================

Every resolved future produces exactly one result, and every result
carries a status describing what happened:

    ┌──────────────────────────┬──────────────────────────┬───────────────┐
    │ Result variant           │ Status                   │ Produced by   │
    ├──────────────────────────┼──────────────────────────┼───────────────┤
    │ HTTPResult               │ HTTPResponseStatus       │ parser        │
    │ MalformedResult          │ ParseResponseStatus      │ parser        │
    │ TransportErrorResult     │ TransportResponseStatus  │ runtime       │
    └──────────────────────────┴──────────────────────────┴───────────────┘

=============================================================================
UNIFORM SHAPE
=============================================================================

All three variants iterate as the same (status, body, headers) triple,
so callers can destructure without knowing which one they got:

    status, body, headers = future.resolve()
    if status.is_error():
        ...

For error variants body is None and headers is [].

=============================================================================
STATUSES ARE EXCEPTIONS
=============================================================================

ResponseStatus subclasses Exception. resolve() returns it as a value;
resolve_or_raise() raises the very same object, so an except block gets
the code, kind and diagnostics without any wrapping:

    try:
        body, headers = future.resolve_or_raise()
    except ResponseStatus as status:
        if status.is_timeout():
            ...

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional

from .headers import HeaderPair, get_header
from .status_codes import reason_phrase


# How much of an error response body ends up in the exception message.
BODY_EXCERPT_LENGTH = 512


class ParseErrorKind(Enum):
    """Why the parser could not make sense of a response."""
    MALFORMED_RESPONSE = "malformed-response"


class TransportErrorKind(Enum):
    """Why the exchange never produced a complete response."""
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection-refused"
    CONNECTION_ABORTED = "connection-aborted"
    CONNECTION_FAILED = "connection-failed"


_TRANSPORT_MESSAGES = {
    TransportErrorKind.TIMEOUT: "The request took too long to complete.",
    TransportErrorKind.CONNECTION_REFUSED: "The remote host refused the connection.",
    TransportErrorKind.CONNECTION_ABORTED: "The remote host closed the connection before the request completed.",
    TransportErrorKind.CONNECTION_FAILED: "Connection to the remote host failed.",
}


class ResponseStatus(Exception):
    """
    Base class for every status a future can resolve with.

    Subclasses decide their own is_error() policy; is_timeout() is only
    ever true for transport timeouts.
    """

    error_type = "Unknown"

    def __init__(self, status_code, message: str):
        super().__init__(f"[{self.error_type}/{status_code}] {message}")
        self.status_code = status_code
        self.message = message

    def is_error(self) -> bool:
        return True

    def is_timeout(self) -> bool:
        return False


class HTTPResponseStatus(ResponseStatus):
    """
    Status of an exchange that produced a well-formed HTTP response.

    Any code outside 2xx counts as an error unless `expected` is given,
    in which case exactly the codes listed there are treated as success
    (e.g. expected=[200, 404] for an existence check).
    """

    error_type = "HTTP"

    def __init__(
        self,
        status_code: int,
        body: Optional[bytes] = b"",
        expected: Optional[Iterable[int]] = None,
    ):
        message = reason_phrase(status_code)
        excerpt = _excerpt(body)
        if excerpt:
            message = f"{message}\n{excerpt}"

        super().__init__(status_code, message)
        self.expected = frozenset(expected) if expected is not None else None

    def is_error(self) -> bool:
        if self.expected is not None:
            return self.status_code not in self.expected
        return not 200 <= self.status_code < 300


class ParseResponseStatus(ResponseStatus):
    """The response bytes did not look like HTTP. Keeps them for diagnostics."""

    error_type = "Parse"

    def __init__(self, kind: ParseErrorKind, raw_response: bytes):
        super().__init__(kind.value, "The remote host sent a malformed response.")
        self.kind = kind
        self.raw_response = raw_response


class TransportResponseStatus(ResponseStatus):
    """The request never completed: timeout, refused or dropped connection."""

    error_type = "Transport"

    def __init__(self, kind: TransportErrorKind, message: Optional[str] = None):
        super().__init__(kind.value, message or _TRANSPORT_MESSAGES[kind])
        self.kind = kind

    def is_timeout(self) -> bool:
        return self.kind is TransportErrorKind.TIMEOUT


def _excerpt(body: Optional[bytes]) -> str:
    if not body:
        return ""
    text = body[:BODY_EXCERPT_LENGTH].decode("utf-8", errors="replace")
    if len(body) > BODY_EXCERPT_LENGTH:
        text += "..."
    return text


# =============================================================================
# RESULT VARIANTS
# =============================================================================


class Resolution:
    """
    Common behaviour of the three result variants.

    Subclasses provide `status`, `body` and `headers`.
    """

    status: ResponseStatus
    body: Optional[bytes]
    headers: list[HeaderPair]

    def __iter__(self) -> Iterator:
        return iter((self.status, self.body, self.headers))

    def is_error(self) -> bool:
        return self.status.is_error()

    def is_timeout(self) -> bool:
        return self.status.is_timeout()


@dataclass(frozen=True)
class HTTPResult(Resolution):
    """A complete response: final status code, body bytes and headers."""

    status_code: int
    body: bytes
    headers: list[HeaderPair] = field(default_factory=list)
    status: HTTPResponseStatus = field(init=False, repr=False, compare=False)

    # headers is a list
    __hash__ = None

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ for the derived field
        object.__setattr__(self, "status", HTTPResponseStatus(self.status_code, self.body))

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return get_header(self.headers, name, default)


@dataclass(frozen=True)
class MalformedResult(Resolution):
    """The parser could not find valid HTTP framing in `raw_response`."""

    raw_response: bytes
    status: ParseResponseStatus = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "status",
            ParseResponseStatus(ParseErrorKind.MALFORMED_RESPONSE, self.raw_response),
        )

    @property
    def body(self) -> None:
        return None

    @property
    def headers(self) -> list[HeaderPair]:
        return []


@dataclass(frozen=True)
class TransportErrorResult(Resolution):
    """The transport failed before a full response arrived."""

    kind: TransportErrorKind
    message: Optional[str] = None
    status: TransportResponseStatus = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "status", TransportResponseStatus(self.kind, self.message))

    @property
    def body(self) -> None:
        return None

    @property
    def headers(self) -> list[HeaderPair]:
        return []

    @classmethod
    def timeout(cls, seconds: float) -> "TransportErrorResult":
        return cls(
            TransportErrorKind.TIMEOUT,
            f"The request took too long to complete (timeout: {seconds:g}s).",
        )
