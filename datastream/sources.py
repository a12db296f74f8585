"""Sources that emit a single computed value or the items of a sequence."""

from __future__ import annotations

import threading
from abc import abstractmethod
from concurrent.futures import CancelledError
from typing import Callable, Iterable, Optional, TypeVar

from datastream.primitives import Channel, ChannelClosed, Context, Flow, Sink, Source

T = TypeVar("T")


class SourceAlreadyActive(Exception):
    """Raised when a source is connected downstream more than once."""


def _stream_to(context: Context, source: Channel, target: Channel) -> None:
    """Forward every value from ``source`` to ``target`` in the background, then close it."""

    def run() -> None:
        try:
            for value in source:
                target.send(value, context)
        except (CancelledError, ChannelClosed):
            pass
        finally:
            try:
                target.close()
            except ChannelClosed:
                pass

    threading.Thread(target=run, daemon=True).start()


class _StreamingSource(Source[T]):
    """Emits values on its outlet from a background thread, started on creation."""

    def __init__(self, context: Optional[Context], capacity: int) -> None:
        self._context = context if context is not None else Context()
        self._out: Channel[T] = Channel(capacity)
        self._activated = False
        self._activation_lock = threading.Lock()
        threading.Thread(target=self._run, daemon=True).start()

    def _connect(self, target: Channel[T]) -> None:
        with self._activation_lock:
            if self._activated:
                raise SourceAlreadyActive(
                    f"{type(self).__name__} is already streaming, "
                    "cannot be used as a source again"
                )
            self._activated = True
        _stream_to(self._context, self._out, target)

    def _run(self) -> None:
        try:
            self._emit()
        except CancelledError:
            pass
        finally:
            self._out.close()

    @abstractmethod
    def _emit(self) -> None:
        """Send this source's values to the outlet."""


class SingleSource(_StreamingSource[T]):
    """Emits the one value returned by ``get``, then closes its outlet.

    If ``get`` raises, no value is emitted and the exception is passed to
    ``error_handler`` when one is given.
    """

    def __init__(
        self,
        get: Callable[[], T],
        *,
        context: Optional[Context] = None,
        error_handler: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._get = get
        self._error_handler = error_handler
        super().__init__(context, 1)

    def out(self) -> Channel[T]:
        """Return the channel the value is emitted on."""
        return self._out

    def to_flow(self, flow: Flow[T, T]) -> Flow[T, T]:
        """Stream the value into ``flow``; exclusive with ``to_sink``."""
        self._connect(flow.inlet())
        return flow

    def to_sink(self, sink: Sink[T]) -> Sink[T]:
        """Stream the value into ``sink``; exclusive with ``to_flow``."""
        self._connect(sink.inlet())
        return sink

    def _emit(self) -> None:
        if self._context.cancelled():
            return
        try:
            value = self._get()
        except Exception as err:  # noqa: BLE001 - reported to the handler
            if self._error_handler is not None:
                self._error_handler(err)
            return
        self._out.send(value, self._context)


class SliceSource(_StreamingSource[T]):
    """Emits the given items in order, then closes its outlet.

    Emission stops early when the context is cancelled.
    """

    def __init__(
        self,
        items: Iterable[T],
        *,
        context: Optional[Context] = None,
        buffer_size: int = 0,
    ) -> None:
        self._items = items
        super().__init__(context, buffer_size)

    def out(self) -> Channel[T]:
        """Return the channel the values are emitted on."""
        return self._out

    def to_flow(self, flow: Flow[T, T]) -> Flow[T, T]:
        """Stream the values into ``flow``; exclusive with ``to_sink``."""
        self._connect(flow.inlet())
        return flow

    def to_sink(self, sink: Sink[T]) -> Sink[T]:
        """Stream the values into ``sink``; exclusive with ``to_flow``."""
        self._connect(sink.inlet())
        return sink

    def _emit(self) -> None:
        for value in self._items:
            if self._context.cancelled():
                return
            self._out.send(value, self._context)