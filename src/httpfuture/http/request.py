"""
=============================================================================
REQUEST DESCRIPTOR
=============================================================================

Everything needed to perform one HTTP request, collected before anything
touches the network:

    request = (RequestDescriptor("https://api.example.com/items")
        .set_method("POST")
        .set_data({"name": "widget", "tag": ["a", "b"]})
        .add_header("Accept-Language", "en")
        .set_timeout(10.0))

=============================================================================
LIFECYCLE
=============================================================================

    CONFIGURING ──── freeze() ────► FROZEN ──── to_bytes() ────► wire
      setters ok                   setters raise ConfigurationError

A descriptor is handed to the runtime exactly once. The runtime freezes
it first, so a worker thread serializing the request can never observe a
half-applied change from the caller's thread.

=============================================================================
PAYLOADS
=============================================================================

    str / bytes        → sent as-is (str is UTF-8 encoded)
    mapping / pairs    → form-encoded, Content-Type:
                         application/x-www-form-urlencoded
                         {"tag": ["a", "b"]} → tag=a&tag=b

For GET requests a form payload goes into the query string instead of
the body.

=============================================================================
"""

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Union
from urllib.parse import urlencode, urlsplit


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

DEFAULT_TIMEOUT = 300.0

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


class ConfigurationError(ValueError):
    """
    Raised when a request is configured with an invalid value.

    Configuration errors are raised immediately by the setter that
    received the bad value, never later at resolution time.
    """


class HTTPMethod(str, Enum):
    """The request methods a future can send."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


Payload = Union[str, bytes, Mapping, list, tuple]


class RequestDescriptor:
    """
    Configuration of a single HTTP request.

    Setters return self so calls can be chained. Headers are an ordered
    list of (name, value) pairs; adding the same name twice sends the
    header twice.
    """

    def __init__(self, uri: str, data: Optional[Payload] = None):
        self._method = HTTPMethod.GET
        self._timeout = DEFAULT_TIMEOUT
        self._headers: list[tuple[str, str]] = []
        self._frozen = False
        self._uri = ""
        self._data: Payload = {}

        self.set_uri(uri)
        self.set_data({} if data is None else data)

    def __repr__(self) -> str:
        return f"RequestDescriptor({self._method.value} {self._uri})"

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def set_uri(self, uri: str) -> "RequestDescriptor":
        self._check_mutable()
        self._uri = str(uri)
        return self

    def get_uri(self) -> str:
        return self._uri

    def set_method(self, method: Union[str, HTTPMethod]) -> "RequestDescriptor":
        """
        Select the HTTP method. Only GET, POST and PUT are supported.

        Raises:
            ConfigurationError: for any other method.
        """
        self._check_mutable()
        try:
            self._method = HTTPMethod(method)
        except ValueError:
            supported = ", ".join(m.value for m in HTTPMethod)
            raise ConfigurationError(
                f"The HTTP method '{method}' is not supported. "
                f"Supported HTTP methods are: {supported}."
            ) from None
        return self

    def get_method(self) -> str:
        return self._method.value

    def set_data(self, data: Payload) -> "RequestDescriptor":
        """
        Set the payload: a raw str/bytes body, or a multi-map to form-encode.

        A multi-map is either a mapping (values may be lists for repeated
        keys) or a sequence of (key, value) pairs.

        Raises:
            ConfigurationError: for any other type.
        """
        self._check_mutable()
        if not isinstance(data, (str, bytes, Mapping)) and not _is_pair_sequence(data):
            raise ConfigurationError(
                "Data parameter must be a string, bytes, a mapping or a "
                "sequence of (key, value) pairs."
            )
        self._data = data
        return self

    def get_data(self) -> Payload:
        return self._data

    def set_timeout(self, timeout: float) -> "RequestDescriptor":
        """
        Maximum number of seconds the whole exchange may take.

        If the request has not finished by then, the future resolves with
        a status whose is_timeout() is true.
        """
        self._check_mutable()
        if (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout)
            or timeout <= 0
        ):
            raise ConfigurationError(f"Timeout must be a positive finite number, got {timeout!r}.")
        self._timeout = float(timeout)
        return self

    def get_timeout(self) -> float:
        return self._timeout

    def add_header(self, name: str, value: str) -> "RequestDescriptor":
        """Append a header. Existing headers with the same name are kept."""
        self._check_mutable()
        self._headers.append((name, value))
        return self

    def get_headers(self, filter: Optional[str] = None) -> list[tuple[str, str]]:
        """
        Headers that will be sent, optionally only those named `filter`.

        Example:
            request.get_headers()                  # all of them
            request.get_headers("accept-language") # matches "Accept-Language" too
        """
        if not filter:
            return list(self._headers)
        wanted = filter.lower()
        return [header for header in self._headers if header[0].lower() == wanted]

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def freeze(self) -> "RequestDescriptor":
        """Make the descriptor read-only. Called when it is handed off."""
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self):
        if self._frozen:
            raise ConfigurationError(
                "This request has already been sent and can no longer be changed."
            )

    # =========================================================================
    # URI COMPONENTS
    # =========================================================================

    @property
    def scheme(self) -> str:
        return urlsplit(self._uri).scheme.lower()

    @property
    def host(self) -> str:
        return urlsplit(self._uri).hostname or ""

    @property
    def port(self) -> Optional[int]:
        """Explicit port from the URI, else the scheme's default."""
        explicit = urlsplit(self._uri).port
        if explicit is not None:
            return explicit
        return DEFAULT_PORTS.get(self.scheme)

    @property
    def target(self) -> str:
        """Request target for the request line: path plus query string."""
        parts = urlsplit(self._uri)
        target = parts.path or "/"

        query = parts.query
        if self._method is HTTPMethod.GET and self.is_form_data:
            encoded = self.encode_form()
            if encoded:
                query = f"{query}&{encoded}" if query else encoded

        return f"{target}?{query}" if query else target

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    @property
    def is_form_data(self) -> bool:
        return not isinstance(self._data, (str, bytes))

    def encode_form(self) -> str:
        """urlencode a multi-map payload; list values repeat the key."""
        return urlencode(_as_pairs(self._data), doseq=True)

    def encode_body(self) -> bytes:
        """Body bytes to send after the head (empty for GET form data)."""
        if isinstance(self._data, bytes):
            return self._data
        if isinstance(self._data, str):
            return self._data.encode("utf-8")
        if self._method is HTTPMethod.GET:
            return b""
        return self.encode_form().encode("ascii")

    def to_bytes(self, user_agent: Optional[str] = None) -> bytes:
        """
        Serialize as an HTTP/1.0 request ready to be written to a socket.

        HTTP/1.0 keeps the response simple to read: no chunked encoding,
        and the server closes the connection when the body is complete.

        Example output:
            POST /items HTTP/1.0\\r\\n
            Host: api.example.com\\r\\n
            Content-Type: application/x-www-form-urlencoded\\r\\n
            Content-Length: 11\\r\\n
            Connection: close\\r\\n
            \\r\\n
            name=widget
        """
        body = self.encode_body()

        lines = [f"{self._method.value} {self.target} HTTP/1.0"]
        if not self.get_headers("Host"):
            lines.append(f"Host: {self._host_header()}")
        lines.extend(f"{name}: {value}" for name, value in self._headers)
        if user_agent and not self.get_headers("User-Agent"):
            lines.append(f"User-Agent: {user_agent}")
        if body and self.is_form_data and not self.get_headers("Content-Type"):
            lines.append(f"Content-Type: {FORM_CONTENT_TYPE}")
        if body or self._method is not HTTPMethod.GET:
            lines.append(f"Content-Length: {len(body)}")
        lines.append("Connection: close")

        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("iso-8859-1") + body

    def _host_header(self) -> str:
        host = self.host
        if ":" in host:
            host = f"[{host}]"  # IPv6 literal
        explicit = urlsplit(self._uri).port
        if explicit is not None and explicit != DEFAULT_PORTS.get(self.scheme):
            return f"{host}:{explicit}"
        return host


def _is_pair_sequence(data: Any) -> bool:
    if not isinstance(data, (list, tuple)):
        return False
    return all(isinstance(item, (list, tuple)) and len(item) == 2 for item in data)


def _as_pairs(data) -> list[tuple[str, Any]]:
    if isinstance(data, Mapping):
        return list(data.items())
    return [tuple(item) for item in data]
