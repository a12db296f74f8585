"""A sink that folds every value it receives into a single result."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

from datastream.channel_sink import _BackgroundSink
from datastream.primitives import Channel, Context

IN = TypeVar("IN")
OUT = TypeVar("OUT")

ReduceFn = Callable[[OUT, IN, int], OUT]
ErrorHandler = Callable[[Exception, int, IN, OUT], None]


class ReduceSink(_BackgroundSink[IN], Generic[IN, OUT]):
    """Reduces the values from its inlet with ``fn(result, value, index)``.

    The result starts at ``initial``. If ``fn`` raises, processing stops and
    the exception is passed to ``error_handler`` together with the index, the
    value and the result so far, when a handler is given.
    """

    def __init__(
        self,
        fn: ReduceFn,
        initial: OUT,
        *,
        context: Optional[Context] = None,
        buffer_size: int = 0,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        if fn is None:
            raise ValueError("fn cannot be None")
        self._fn = fn
        self._result = initial
        self._error_handler = error_handler
        self._lock = threading.Lock()
        super().__init__(context, buffer_size)

    def inlet(self) -> Channel[IN]:
        """Return the channel values are sent into."""
        return self._in

    def result(self) -> OUT:
        """Return the result of the reduction as of now."""
        with self._lock:
            return self._result

    def wait(self) -> None:
        """Block until the sink has stopped processing values."""
        self._thread.join()

    def _run(self) -> None:
        for index, value in enumerate(self._received()):
            with self._lock:
                try:
                    self._result = self._fn(self._result, value, index)
                    continue
                except Exception as err:  # noqa: BLE001 - reported to the handler
                    failure, current = err, self._result
            if self._error_handler is not None:
                self._error_handler(failure, index, value, current)
            return