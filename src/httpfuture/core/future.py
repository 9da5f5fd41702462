"""
=============================================================================
HTTP FUTURES
=============================================================================

A future is a handle to a request that may still be in flight:

    with FutureRunner() as runner:
        future = runner.submit(RequestDescriptor("https://example.com/"))
        ...                                  # do other work
        status, body, headers = future.resolve()

=============================================================================
FUTURE LIFECYCLE
=============================================================================

    CREATED ──start()──► RUNNING ──exchange done──► RESOLVED
                            │                          ▲
                            └──── deadline passed ─────┘
                                  (TransportErrorResult TIMEOUT)

- Creating a future freezes its RequestDescriptor. A frozen descriptor
  cannot back a second future.
- start() fixes the deadline (now + request timeout) and, with a runner,
  queues the exchange on the worker pool without waiting. If the queue is
  full the future resolves at once with CONNECTION_FAILED.
- resolve() is the single blocking call. It returns whichever happens
  first: the exchange finishing, or the deadline. The first result wins;
  a worker that finishes after the deadline has its result discarded.
- Without a runner the exchange runs inline, inside resolve().

=============================================================================
TWO WAYS TO RESOLVE
=============================================================================

    resolve()           → result; never raises for HTTP, parse or
                          transport problems, they are in the status
    resolve_or_raise()  → (body, headers); raises the status itself
                          when status.is_error()

=============================================================================
"""

import logging
import queue
import threading
import time
from typing import Callable, Iterable, Iterator, Optional, Union

from ..config import FutureConfig
from ..http.request import ConfigurationError, RequestDescriptor
from ..http.response import ResponseParser
from ..http.status import Resolution, TransportErrorKind, TransportErrorResult
from ..log import log_exchange
from .thread_pool import ExchangePool
from .transport import Transport, TransportError, transport_for


logger = logging.getLogger(__name__)


class HTTPFuture:
    """
    Deferred result of one HTTP request.

    Args:
        request: A RequestDescriptor, or a URI string for a plain GET.
        transport: Transport to use; picked from the URI scheme if omitted.
        parser: ResponseParser to use; built from config if omitted.
        runner: FutureRunner whose pool runs the exchange. None means the
                exchange runs inline when resolve() is called.
        config: Settings for user agent, buffer size, parser limits and
                log format.

    Raises:
        ConfigurationError: if the request was already handed to another
            future, or no transport handles the URI scheme.
    """

    def __init__(
        self,
        request: Union[RequestDescriptor, str],
        transport: Optional[Transport] = None,
        parser: Optional[ResponseParser] = None,
        runner: Optional["FutureRunner"] = None,
        config: Optional[FutureConfig] = None,
    ):
        if isinstance(request, str):
            request = RequestDescriptor(request)
        if request.is_frozen:
            raise ConfigurationError(
                f"Request for '{request.get_uri()}' was already sent; "
                "build a new RequestDescriptor for each future."
            )

        self.config = config or FutureConfig()
        self._transport = transport or transport_for(
            request.scheme,
            buffer_size=self.config.buffer_size,
            user_agent=self.config.user_agent,
        )
        self.request = request.freeze()
        self._parser = parser or ResponseParser(self.config.max_continue_responses)
        self._runner = runner

        self._lock = threading.Lock()
        self._inline_lock = threading.Lock()
        self._done = threading.Event()
        self._resolution: Optional[Resolution] = None
        self._callbacks: list[Callable[["HTTPFuture"], None]] = []
        self._started_at: Optional[float] = None
        self._deadline: Optional[float] = None

    def __repr__(self) -> str:
        state = "resolved" if self._done.is_set() else "pending"
        return f"<HTTPFuture {self.request.get_method()} {self.request.get_uri()} {state}>"

    # =========================================================================
    # STARTING
    # =========================================================================

    def start(self) -> "HTTPFuture":
        """Begin the exchange. Calling it again has no effect."""
        with self._lock:
            if self._started_at is not None:
                return self
            self._started_at = time.monotonic()
            self._deadline = self._started_at + self.request.get_timeout()

        if self._runner is not None:
            if not self._runner._schedule(self):
                self._complete(TransportErrorResult(
                    TransportErrorKind.CONNECTION_FAILED,
                    "Worker queue is full; the request was not sent.",
                ))
        return self

    @property
    def deadline(self) -> Optional[float]:
        """time.monotonic() value at which the future times out."""
        return self._deadline

    def is_ready(self) -> bool:
        """True once resolve() would return without blocking."""
        if self._done.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    # =========================================================================
    # RESOLVING
    # =========================================================================

    def resolve(self) -> Resolution:
        """
        Block until the request completes or times out.

        Returns:
            HTTPResult, MalformedResult or TransportErrorResult; each one
            unpacks as (status, body, headers).
        """
        self.start()

        if self._runner is None:
            with self._inline_lock:
                if not self._done.is_set():
                    self._run()
        else:
            remaining = max(0.0, self._deadline - time.monotonic())
            if not self._done.wait(remaining):
                self._complete(TransportErrorResult.timeout(self.request.get_timeout()))

        return self._resolution

    def resolve_or_raise(self) -> tuple:
        """
        Exception-oriented resolve().

        Returns:
            (body, headers) when the status is not an error.

        Raises:
            ResponseStatus: the status object itself when status.is_error().
        """
        status, body, headers = self.resolve()
        if status.is_error():
            raise status
        return body, headers

    def add_done_callback(self, callback: Callable[["HTTPFuture"], None]):
        """Call callback(future) once resolved (immediately if already)."""
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _run(self):
        """Perform the exchange and record its result. Runs on a worker."""
        try:
            raw_response = self._transport.exchange(self.request, self._deadline)
        except TransportError as e:
            resolution = TransportErrorResult(e.kind, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during exchange with {self.request.get_uri()}")
            resolution = TransportErrorResult(TransportErrorKind.CONNECTION_FAILED, str(e))
        else:
            resolution = self._parser.parse(raw_response)

        self._complete(resolution)

    def _complete(self, resolution: Resolution):
        with self._lock:
            if self._resolution is not None:
                logger.debug(f"Discarding late result for {self.request.get_uri()}")
                return
            self._resolution = resolution
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []

        log_exchange(
            self.request,
            resolution,
            time.monotonic() - self._started_at,
            self.config.log_format,
        )

        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Future callback failed")


class FutureRunner:
    """
    Schedules HTTP futures on a pool of worker threads.

    Example:
        with FutureRunner(FutureConfig(max_workers=4)) as runner:
            futures = [runner.submit(runner.request(uri)) for uri in uris]
            for future in as_completed(futures):
                status, body, headers = future.resolve()
    """

    def __init__(
        self,
        config: Optional[FutureConfig] = None,
        transport: Optional[Transport] = None,
    ):
        self.config = config or FutureConfig()
        self.config.validate()

        self._transport = transport
        self._parser = ResponseParser(self.config.max_continue_responses)
        self._pool = ExchangePool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

    def start(self) -> "FutureRunner":
        self._pool.start()
        return self

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        self._pool.shutdown(wait=wait, timeout=timeout)

    def __enter__(self) -> "FutureRunner":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    @property
    def stats(self) -> dict:
        return self._pool.stats

    def request(self, uri: str, data=None) -> RequestDescriptor:
        """New descriptor carrying this runner's default timeout."""
        return RequestDescriptor(uri, data).set_timeout(self.config.default_timeout)

    def submit(
        self,
        request: Union[RequestDescriptor, str],
        transport: Optional[Transport] = None,
    ) -> HTTPFuture:
        """
        Freeze `request`, start its exchange in the background and return
        the future for it.
        """
        if not self._pool.is_running:
            self.start()

        future = HTTPFuture(
            request,
            transport=transport or self._transport,
            parser=self._parser,
            runner=self,
            config=self.config,
        )
        return future.start()

    def _schedule(self, future: HTTPFuture) -> bool:
        return self._pool.submit(future._run, block=False)


def as_completed(futures: Iterable[HTTPFuture]) -> Iterator[HTTPFuture]:
    """
    Start every future and yield each one as soon as it is ready.

    Futures that time out are yielded when their deadline passes, so the
    loop never waits longer than the longest timeout.

    Example:
        for future in as_completed(futures):
            status, body, headers = future.resolve()  # does not block
    """
    completed: "queue.Queue[HTTPFuture]" = queue.Queue()
    pending: dict = {}  # insertion-ordered set

    for future in futures:
        future.start()
        pending[future] = None
        future.add_done_callback(completed.put)

    while pending:
        # Futures without a runner only make progress when resolved here.
        inline = [f for f in pending if f._runner is None and not f._done.is_set()]
        if inline:
            future = inline[0]
            future.resolve()
            del pending[future]
            yield future
            continue

        nearest = min(f.deadline for f in pending)
        try:
            future = completed.get(timeout=max(0.0, nearest - time.monotonic()))
        except queue.Empty:
            for expired in [f for f in pending if f.is_ready()]:
                del pending[expired]
                yield expired
            continue

        if future in pending:
            del pending[future]
            yield future
