"""
=============================================================================
TRANSPORTS
=============================================================================

A transport performs the actual network exchange for one request and
hands back every byte the server sent. It knows nothing about HTTP
responses; parsing happens afterwards in ResponseParser.

    ┌───────────────────┐  to_bytes()   ┌───────────────┐
    │ RequestDescriptor │ ────────────► │   Transport   │ ──► raw bytes
    └───────────────────┘               │  .exchange()  │ ──► TransportError
                                        └───────┬───────┘
                                  ┌─────────────┴─────────────┐
                                  │                           │
                          PlainTransport                TLSTransport
                          (http://, TCP)          (https://, TCP + TLS)

=============================================================================
READING THE RESPONSE
=============================================================================

Requests go out as HTTP/1.0 with "Connection: close", so the server
marks the end of the response by closing the connection. We keep
calling recv() until it returns b"" (EOF).

=============================================================================
TIME BUDGET
=============================================================================

Every request has a deadline. Before each blocking socket call the
remaining budget becomes the socket timeout, so the whole exchange
(connect + send + every recv) can never take longer than the request's
timeout, even when the caller has already given up waiting.

=============================================================================
"""

import logging
import socket
import ssl
import time
from abc import ABC, abstractmethod
from typing import Optional

from ..http.request import ConfigurationError, RequestDescriptor
from ..http.status import TransportErrorKind


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """
    The exchange failed before a complete response was received.

    Carries a TransportErrorKind so the future can turn it into a
    TransportErrorResult without inspecting the message.
    """

    def __init__(self, kind: TransportErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


class Transport(ABC):
    """
    Capability to exchange one request for its raw response bytes.

    Subclasses only decide how the connected socket is created; sending,
    receiving and error mapping are shared.
    """

    scheme = ""
    default_port = 0

    def __init__(self, buffer_size: int = 8192, user_agent: Optional[str] = None):
        self.buffer_size = buffer_size
        self.user_agent = user_agent

    @abstractmethod
    def _open(self, host: str, port: int, timeout: float) -> socket.socket:
        """Return a connected socket ready for the request bytes."""

    def exchange(self, request: RequestDescriptor, deadline: float) -> bytes:
        """
        Send `request` and read the complete response.

        Args:
            request: The (frozen) request to send.
            deadline: time.monotonic() value by which we must be done.

        Returns:
            Every byte the server sent before closing the connection.

        Raises:
            TransportError: on timeout or any connection failure.
        """
        host = request.host
        port = request.port or self.default_port
        if not host:
            raise TransportError(
                TransportErrorKind.CONNECTION_FAILED,
                f"No host in URI '{request.get_uri()}'.",
            )

        payload = request.to_bytes(user_agent=self.user_agent)

        try:
            sock = self._open(host, port, _remaining(deadline))
        except socket.timeout:
            raise TransportError(
                TransportErrorKind.TIMEOUT,
                f"Timed out connecting to {host}:{port}.",
            ) from None
        except OSError as e:
            raise _map_os_error(e, host, port) from e

        with sock:
            try:
                sock.settimeout(_remaining(deadline))
                sock.sendall(payload)
                logger.debug(f"Sent {len(payload)} bytes to {host}:{port}")
                return self._read_all(sock, deadline)
            except socket.timeout:
                raise TransportError(
                    TransportErrorKind.TIMEOUT,
                    f"Timed out waiting for {host}:{port}.",
                ) from None
            except OSError as e:
                raise _map_os_error(e, host, port) from e

    def _read_all(self, sock: socket.socket, deadline: float) -> bytes:
        chunks = []
        while True:
            sock.settimeout(_remaining(deadline))
            chunk = sock.recv(self.buffer_size)
            if not chunk:
                break  # server closed the connection: response complete
            chunks.append(chunk)

        data = b"".join(chunks)
        logger.debug(f"Received {len(data)} bytes")
        return data


class PlainTransport(Transport):
    """Unencrypted HTTP over a TCP socket."""

    scheme = "http"
    default_port = 80

    def _open(self, host: str, port: int, timeout: float) -> socket.socket:
        return socket.create_connection((host, port), timeout=timeout)


class TLSTransport(Transport):
    """
    HTTPS: a TCP socket wrapped in TLS.

    Certificate and hostname verification use ssl.create_default_context()
    unless a context is supplied (e.g. one trusting a private CA).
    """

    scheme = "https"
    default_port = 443

    def __init__(
        self,
        buffer_size: int = 8192,
        user_agent: Optional[str] = None,
        context: Optional[ssl.SSLContext] = None,
    ):
        super().__init__(buffer_size=buffer_size, user_agent=user_agent)
        self.context = context or ssl.create_default_context()

    def _open(self, host: str, port: int, timeout: float) -> socket.socket:
        raw = socket.create_connection((host, port), timeout=timeout)
        try:
            return self.context.wrap_socket(raw, server_hostname=host)
        except BaseException:
            raw.close()
            raise


TRANSPORTS = {
    PlainTransport.scheme: PlainTransport,
    TLSTransport.scheme: TLSTransport,
}


def transport_for(
    scheme: str,
    buffer_size: int = 8192,
    user_agent: Optional[str] = None,
) -> Transport:
    """
    Pick the transport implementation for a URI scheme.

    Raises:
        ConfigurationError: if the scheme is neither http nor https.
    """
    transport_class = TRANSPORTS.get(scheme.lower())
    if transport_class is None:
        supported = ", ".join(sorted(TRANSPORTS))
        raise ConfigurationError(
            f"URI scheme '{scheme}' is not supported. Supported schemes are: {supported}."
        )
    return transport_class(buffer_size=buffer_size, user_agent=user_agent)


def _remaining(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise socket.timeout("request deadline exceeded")
    return remaining


def _map_os_error(error: OSError, host: str, port: int) -> TransportError:
    if isinstance(error, ConnectionRefusedError):
        kind = TransportErrorKind.CONNECTION_REFUSED
    elif isinstance(error, (ConnectionResetError, ConnectionAbortedError, BrokenPipeError)):
        kind = TransportErrorKind.CONNECTION_ABORTED
    else:
        kind = TransportErrorKind.CONNECTION_FAILED
    return TransportError(kind, f"{host}:{port}: {error}")
