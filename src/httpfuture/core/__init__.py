"""
Runtime pieces: transports that talk to the network, the worker pool
that runs exchanges in the background, and the futures tying them to
the parser.
"""

from .future import FutureRunner, HTTPFuture, as_completed
from .thread_pool import ExchangePool
from .transport import (
    PlainTransport,
    TLSTransport,
    Transport,
    TransportError,
    transport_for,
)

__all__ = [
    "HTTPFuture",
    "FutureRunner",
    "as_completed",
    "ExchangePool",
    "Transport",
    "TransportError",
    "PlainTransport",
    "TLSTransport",
    "transport_for",
]
