"""
=============================================================================
EXCHANGE LOGGING
=============================================================================

One structured record per resolved future, emitted on the
"httpfuture.exchange" logger:

    TEXT (default):
    GET https://example.com/items -> HTTP/200 1532B 84.21ms

    JSON (for log aggregators):
    {"method": "GET", "uri": "https://example.com/items",
     "status": "HTTP/200", "is_error": false, "body_bytes": 1532,
     "duration_ms": 84.21, "timestamp": "2024-01-01T12:00:00"}

Successful exchanges log at INFO, error statuses at WARNING. Configure the
logger by name to route or silence these records:

    logging.getLogger("httpfuture.exchange").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass


logger = logging.getLogger("httpfuture.exchange")


@dataclass
class ExchangeLog:
    """Structured log entry for one resolved request."""

    method: str
    uri: str
    status: str
    is_error: bool
    body_bytes: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "uri": self.uri,
            "status": self.status,
            "is_error": self.is_error,
            "body_bytes": self.body_bytes,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f"{self.method} {self.uri} -> {self.status} "
            f"{self.body_bytes}B {self.duration_ms:.2f}ms"
        )


def log_exchange(request, resolution, duration: float, log_format: str = "text") -> ExchangeLog:
    """
    Build and emit the log record for a resolved future.

    Args:
        request: The RequestDescriptor that was sent.
        resolution: The result the future resolved with.
        duration: Seconds from start to resolution.
        log_format: "text" or "json".
    """
    status = resolution.status
    entry = ExchangeLog(
        method=request.get_method(),
        uri=request.get_uri(),
        status=f"{status.error_type}/{status.status_code}",
        is_error=status.is_error(),
        body_bytes=len(resolution.body or b""),
        duration_ms=duration * 1000,
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%S"),
    )

    level = logging.WARNING if entry.is_error else logging.INFO
    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())

    return entry
