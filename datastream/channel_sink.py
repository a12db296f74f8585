"""A sink that forwards every value it receives to a caller-owned channel."""

from __future__ import annotations

import threading
from abc import abstractmethod
from concurrent.futures import CancelledError
from typing import Iterator, Optional, TypeVar

from datastream.primitives import Channel, ChannelClosed, Context, WaitableSink

T = TypeVar("T")


class _BackgroundSink(WaitableSink[T]):
    """A sink whose inlet is drained by a thread started on creation."""

    def __init__(self, context: Optional[Context], buffer_size: int) -> None:
        self._context = context if context is not None else Context()
        self._in: Channel[T] = Channel(buffer_size)
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _received(self) -> Iterator[T]:
        """Yield inlet values until it is closed or the context is cancelled."""
        while True:
            try:
                value = self._in.receive(self._context)
            except (ChannelClosed, CancelledError):
                return
            yield value

    @abstractmethod
    def _run(self) -> None:
        """Process the values received on the inlet."""


class ChannelSink(_BackgroundSink[T]):
    """Passes values from its inlet to ``channel`` in order.

    ``channel`` is closed when the inlet is closed and drained, or when the
    context is cancelled.
    """

    def __init__(
        self,
        channel: Channel[T],
        *,
        context: Optional[Context] = None,
        buffer_size: int = 0,
    ) -> None:
        self._out = channel
        super().__init__(context, buffer_size)

    def inlet(self) -> Channel[T]:
        """Return the channel values are sent into."""
        return self._in

    def wait(self) -> None:
        """Block until every value has been passed on to the output channel."""
        self._thread.join()

    def _run(self) -> None:
        try:
            for value in self._received():
                self._out.send(value, self._context)
        except CancelledError:
            pass
        finally:
            self._out.close()