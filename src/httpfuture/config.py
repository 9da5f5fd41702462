"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized settings for the future runtime: worker pool sizing, socket
buffers, parser limits and logging.

    Priority (highest to lowest):

    1. Values passed to FutureConfig(...) in code
    2. Environment variables (FutureConfig.from_env())
    3. Defaults in this dataclass

Per-request settings (method, headers, timeout) live on the
RequestDescriptor instead; default_timeout is only what new descriptors
get when a runner builds them for you.

=============================================================================
"""

import logging
import math
import os
from dataclasses import dataclass

from .http.request import DEFAULT_TIMEOUT
from .http.response import DEFAULT_MAX_CONTINUE_RESPONSES


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class FutureConfig:
    """
    Configuration for FutureRunner and the futures it creates.

    Example:
        config = FutureConfig(max_workers=32, log_format="json")
        with FutureRunner(config) as runner:
            ...
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUESTS
    # ─────────────────────────────────────────────────────────────────────

    default_timeout: float = DEFAULT_TIMEOUT
    """Seconds before an unfinished request resolves as a timeout."""

    user_agent: str = "httpfuture/1.0"
    """Sent as User-Agent unless the request sets its own."""

    # ─────────────────────────────────────────────────────────────────────
    # TRANSPORT / PARSER
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 8192
    """Bytes read from the socket per recv() call."""

    max_continue_responses: int = DEFAULT_MAX_CONTINUE_RESPONSES
    """How many "100 Continue" preambles the parser unwraps."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 2
    max_workers: int = 8
    queue_size: int = 100

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """'text' for humans, 'json' for log aggregators."""

    @classmethod
    def from_env(cls) -> "FutureConfig":
        """
        Build a configuration from environment variables.

            HTTPFUTURE_TIMEOUT       Default request timeout (seconds)
            HTTPFUTURE_USER_AGENT    User-Agent header
            HTTPFUTURE_WORKERS       Max worker threads
            HTTPFUTURE_MAX_CONTINUE  100-Continue unwrap limit
            HTTPFUTURE_LOG_LEVEL     DEBUG, INFO, WARNING, ...
            HTTPFUTURE_LOG_FORMAT    text or json
        """
        return cls(
            default_timeout=float(os.getenv("HTTPFUTURE_TIMEOUT", str(DEFAULT_TIMEOUT))),
            user_agent=os.getenv("HTTPFUTURE_USER_AGENT", "httpfuture/1.0"),
            max_workers=int(os.getenv("HTTPFUTURE_WORKERS", "8")),
            max_continue_responses=int(
                os.getenv("HTTPFUTURE_MAX_CONTINUE", str(DEFAULT_MAX_CONTINUE_RESPONSES))
            ),
            log_level=os.getenv("HTTPFUTURE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTPFUTURE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """Fail fast on values that would only break later, inside a worker."""
        if not math.isfinite(self.default_timeout) or self.default_timeout <= 0:
            raise ValueError("default_timeout must be a finite number > 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_continue_responses < 0:
            raise ValueError("max_continue_responses must be >= 0")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}. Use 'text' or 'json'.")


def configure_logging(config: FutureConfig) -> None:
    """Set up root logging and the httpfuture logger level from config."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )

    logging.getLogger("httpfuture").setLevel(level)
