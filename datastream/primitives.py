"""Channels, cancellation contexts and the interfaces shared by stream stages."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import CancelledError
from typing import Deque, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")
IN = TypeVar("IN")
OUT = TypeVar("OUT")

_POLL_INTERVAL = 0.01


class ChannelClosed(Exception):
    """Raised when a closed channel is sent to, closed again, or read past its end."""


class Context:
    """A cancellation signal shared between the stages of a pipeline."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Signal cancellation to everything watching this context."""
        self._event.set()

    def cancelled(self) -> bool:
        """Return True once the context has been cancelled."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or until ``timeout`` elapses; return whether cancelled."""
        return self._event.wait(timeout)


class Channel(Generic[T]):
    """A thread-safe FIFO channel.

    A capacity of zero makes the channel unbuffered: a send only completes when
    a receiver has taken the value.
    """

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("capacity cannot be negative")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()
        self._sent = 0
        self._received = 0

    def _wait(self, context: Optional[Context]) -> None:
        self._cond.wait(_POLL_INTERVAL if context is not None else None)

    def send(self, value: T, context: Optional[Context] = None) -> None:
        """Put ``value`` on the channel, blocking while it is full.

        Raises ChannelClosed if the channel is closed and CancelledError if the
        context is cancelled before the value is delivered.
        """
        slots = max(self._capacity, 1)
        with self._cond:
            while True:
                if self._closed:
                    raise ChannelClosed("send on closed channel")
                if context is not None and context.cancelled():
                    raise CancelledError()
                if len(self._items) < slots:
                    break
                self._wait(context)
            self._items.append(value)
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            if self._capacity:
                return
            while self._received < ticket:
                if self._closed or (context is not None and context.cancelled()):
                    # Only one value is ever pending on an unbuffered channel.
                    self._items.pop()
                    self._sent -= 1
                    self._cond.notify_all()
                    if self._closed:
                        raise ChannelClosed("send on closed channel")
                    raise CancelledError()
                self._wait(context)

    def receive(self, context: Optional[Context] = None) -> T:
        """Take the next value, blocking while the channel is empty.

        Raises ChannelClosed once the channel is closed and drained, and
        CancelledError if the context is cancelled.
        """
        with self._cond:
            while True:
                if context is not None and context.cancelled():
                    raise CancelledError()
                if self._items:
                    break
                if self._closed:
                    raise ChannelClosed("receive from closed channel")
                self._wait(context)
            value = self._items.popleft()
            self._received += 1
            self._cond.notify_all()
            return value

    def close(self) -> None:
        """Close the channel; values already queued can still be received."""
        with self._cond:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def closed(self) -> bool:
        """Return True once the channel has been closed."""
        with self._cond:
            return self._closed

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return


class Inlet(ABC, Generic[T]):
    """Something that accepts values through a channel."""

    @abstractmethod
    def inlet(self) -> Channel[T]:
        """Return the channel values are sent into; always the same one."""


class Outlet(ABC, Generic[T]):
    """Something that emits values through a channel."""

    @abstractmethod
    def out(self) -> Channel[T]:
        """Return the channel values are read from; closed when emission ends."""


class Sink(Inlet[T]):
    """A terminal stage that consumes values."""


class WaitableSink(Sink[T]):
    """A sink whose completion can be awaited."""

    @abstractmethod
    def wait(self) -> None:
        """Block until the sink has processed every value."""


class Source(Outlet[T]):
    """A stage that produces values for downstream stages."""

    @abstractmethod
    def to_flow(self, flow: "Flow[T, T]") -> "Flow[T, T]":
        """Stream the values into ``flow`` and return it."""

    @abstractmethod
    def to_sink(self, sink: Sink[T]) -> Sink[T]:
        """Stream the values into ``sink`` and return it."""


class Flow(Inlet[IN], Outlet[OUT]):
    """A stage that receives values of one type and emits values of another."""

    @abstractmethod
    def to_flow(self, flow: "Flow[OUT, OUT]") -> "Flow[OUT, OUT]":
        """Stream the emitted values into ``flow`` and return it."""

    @abstractmethod
    def to_sink(self, sink: Sink[OUT]) -> None:
        """Stream the emitted values into ``sink``."""