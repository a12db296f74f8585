"""A sink that writes every chunk of bytes it receives to a binary writer."""

from __future__ import annotations

from typing import BinaryIO, Callable, Optional

from datastream.channel_sink import _BackgroundSink
from datastream.primitives import Channel, Context


class WriterSink(_BackgroundSink[bytes]):
    """Writes each received chunk to ``writer``.

    A failing write is reported to ``error_handler`` when one is given, and
    processing carries on with the next chunk either way.
    """

    def __init__(
        self,
        writer: BinaryIO,
        *,
        context: Optional[Context] = None,
        buffer_size: int = 0,
        error_handler: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._writer = writer
        self._error_handler = error_handler
        super().__init__(context, buffer_size)

    def inlet(self) -> Channel[bytes]:
        """Return the channel chunks are sent into."""
        return self._in

    def wait(self) -> None:
        """Block until the sink has stopped writing chunks."""
        self._thread.join()

    def _run(self) -> None:
        for chunk in self._received():
            try:
                self._writer.write(chunk)
            except Exception as err:  # noqa: BLE001 - reported to the handler
                if self._error_handler is not None:
                    self._error_handler(err)