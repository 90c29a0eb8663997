# aski: Streaming response aggregator. Pulls text deltas on a worker thread, folds them into one buffer, and stops on end-of-stream, error or user interrupt.

import queue
import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional

from .context import Context
from .errors import TransportError


class StreamState(str, Enum):
    idle = "idle"
    requesting = "requesting"
    streaming = "streaming"
    completed = "completed"
    cancelled = "cancelled"
    failed = "failed"


TERMINAL_STATES = (StreamState.completed, StreamState.cancelled, StreamState.failed)


@dataclass
class StreamResult:
    state: StreamState
    content: str

    @property
    def cancelled(self) -> bool:
        return self.state == StreamState.cancelled


class CancelToken:
    """
    One-shot cancellation signal for a single request.

    cancel() may be called from any thread or from a signal handler; callbacks
    run exactly once, on the first call.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, fn: Callable[[], None]) -> None:
        """Register fn to run on cancellation; runs immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def cancel(self) -> bool:
        """Trigger cancellation. Returns False if it had already been triggered."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn()
        return True


@contextmanager
def interrupt_scope(token: CancelToken) -> Iterator[CancelToken]:
    """
    Route the first Ctrl-C during the block to token.cancel().

    The handler uninstalls itself after firing, so a second Ctrl-C reaches the
    previous handler (normally KeyboardInterrupt). Signal handlers can only be
    installed from the main thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    previous = signal.getsignal(signal.SIGINT)
    installed = True

    def _handler(signum, frame):
        nonlocal installed
        signal.signal(signal.SIGINT, previous)
        installed = False
        # Runs on the main thread, often while it is blocked in the aggregator queue.
        token.cancel()

    signal.signal(signal.SIGINT, _handler)
    try:
        yield token
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous)


_CHUNK = "chunk"
_END = "end"
_ERROR = "error"
_CANCEL = "cancel"


class StreamingAggregator:
    """
    Consume one model reply and fold it into a single string.

    States: idle -> requesting -> streaming -> completed | cancelled | failed.
    The worker thread and the cancel token feed the same queue, so the
    consumer waits on a single get() for whichever comes first.
    """

    def __init__(self, ctx: Context, echo: bool = True) -> None:
        self.ctx = ctx
        self.echo = echo
        self.state = StreamState.idle
        self.history: List[StreamState] = [StreamState.idle]
        self._buffer: List[str] = []

    @property
    def content(self) -> str:
        return "".join(self._buffer)

    def _enter(self, state: StreamState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"aggregator already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)

    def run(self, open_stream: Callable[[], Iterable[str]], token: Optional[CancelToken] = None) -> StreamResult:
        """
        Open the stream and aggregate it until a terminal state.

        Returns a StreamResult for completed and cancelled streams. A failure
        raises TransportError with the cause chained and the partial text in
        .partial.
        """
        if self.state != StreamState.idle:
            raise RuntimeError("aggregator can only run once")
        token = token or CancelToken()
        # SimpleQueue.put is reentrant, so the SIGINT handler can cancel while
        # this thread is blocked in get().
        events: "queue.SimpleQueue" = queue.SimpleQueue()

        def _produce() -> None:
            try:
                for delta in open_stream():
                    if token.cancelled:
                        return
                    events.put((_CHUNK, delta))
                events.put((_END, None))
            except Exception as e:
                events.put((_ERROR, e))

        self._enter(StreamState.requesting)
        token.add_callback(lambda: events.put((_CANCEL, None)))
        worker = threading.Thread(target=_produce, name="aski-stream", daemon=True)
        worker.start()

        while True:
            kind, payload = events.get()
            if kind == _CHUNK:
                if self.state == StreamState.requesting:
                    self._enter(StreamState.streaming)
                if not payload:
                    continue
                self._buffer.append(payload)
                if self.echo:
                    self.ctx.write(payload)
            elif kind == _END:
                self._enter(StreamState.completed)
                self.ctx.log(f"stream completed ({len(self.content)} chars)")
                return StreamResult(StreamState.completed, self.content)
            elif kind == _CANCEL:
                self._enter(StreamState.cancelled)
                self.ctx.log(f"stream cancelled after {len(self.content)} chars")
                return StreamResult(StreamState.cancelled, self.content)
            else:
                self._enter(StreamState.failed)
                if isinstance(payload, TransportError):
                    payload.partial = self.content
                    raise payload
                raise TransportError(f"{type(payload).__name__}: {payload}", partial=self.content) from payload
