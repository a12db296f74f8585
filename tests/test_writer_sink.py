import io
import threading
import time

import pytest

from datastream.primitives import Context
from datastream.writer_sink import WriterSink


def _feed(sink, values, *, pause=0.0, on_sent=lambda position: None):
    inlet = sink.inlet()

    def run():
        for position, value in enumerate(values):
            inlet.send(bytes([value]))
            on_sent(position)
            time.sleep(pause)
        time.sleep(pause)
        inlet.close()

    threading.Thread(target=run, daemon=True).start()


class _FailingWriter:
    def __init__(self):
        self.attempts = 0

    def write(self, data):
        self.attempts += 1
        raise OSError("write failed")


def test_streams_all_values_to_writer_without_closing():
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=1)
    expected = bytes([1, 2, 3, 4, 5])
    for number in expected:
        sink.inlet().send(bytes([number]))

    deadline = time.monotonic() + 2.0
    while buffer.getvalue() != expected and time.monotonic() < deadline:
        time.sleep(0.01)
    assert buffer.getvalue() == expected


@pytest.mark.parametrize(
    "values, buffer_size",
    [
        ((1, 2, 3, 4, 5), 1),
        ((), 1),
        ((42,), 1),
        ((1, 2, 3, 4, 5), 10),
    ],
)
def test_wait_for_completion(values, buffer_size):
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=buffer_size)
    _feed(sink, values)
    sink.wait()

    assert buffer.getvalue() == bytes(values)


@pytest.mark.parametrize(
    "cancel_at, buffer_size, limit",
    [
        pytest.param(None, 0, 0, id="before-processing"),
        pytest.param(1, 1, 2, id="during-processing"),
    ],
)
def test_cancellation_limits_what_is_written(cancel_at, buffer_size, limit):
    buffer = io.BytesIO()
    context = Context()
    if cancel_at is None:
        context.cancel()
    sink = WriterSink(buffer, context=context, buffer_size=buffer_size)
    _feed(
        sink,
        (1, 2, 3, 4, 5),
        on_sent=lambda position: position == cancel_at and context.cancel(),
    )
    sink.wait()

    written = buffer.getvalue()
    assert len(written) <= limit
    assert bytes([1, 2]).startswith(written)


def test_wait_blocks_until_completion():
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=1)
    _feed(sink, (1, 2, 3, 4, 5), pause=0.01)
    start = time.monotonic()
    sink.wait()

    assert time.monotonic() - start >= 0.04
    assert buffer.getvalue() == bytes([1, 2, 3, 4, 5])


def test_wait_multiple_calls():
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=1)
    _feed(sink, (1, 2, 3))
    for _ in range(3):
        sink.wait()

    assert buffer.getvalue() == bytes([1, 2, 3])


def test_wait_with_concurrent_senders():
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=10)
    senders = [
        threading.Thread(target=sink.inlet().send, args=(bytes([n]),), daemon=True)
        for n in range(1, 11)
    ]
    for sender in senders:
        sender.start()
    for sender in senders:
        sender.join()
    sink.inlet().close()
    sink.wait()

    assert sorted(buffer.getvalue()) == list(range(1, 11))


def test_error_handler_not_called_on_success():
    buffer = io.BytesIO()
    errors = []
    sink = WriterSink(buffer, error_handler=errors.append)
    _feed(sink, (1, 2, 3, 4, 5))
    sink.wait()

    assert buffer.getvalue() == bytes([1, 2, 3, 4, 5])
    assert errors == []


@pytest.mark.parametrize("with_handler", [True, False])
def test_write_errors_do_not_stop_processing(with_handler):
    writer = _FailingWriter()
    errors = []
    sink = WriterSink(writer, error_handler=errors.append if with_handler else None)
    _feed(sink, (1, 2, 3))
    sink.wait()

    assert writer.attempts == 3
    assert [str(err) for err in errors] == (["write failed"] * 3 if with_handler else [])


def test_inlet_is_always_the_same_channel():
    buffer = io.BytesIO()
    sink = WriterSink(buffer, buffer_size=1)
    first = sink.inlet()
    first.send(b"x")
    sink.inlet().close()
    sink.wait()

    assert sink.inlet() is first
    assert first.closed() is True
    assert buffer.getvalue() == b"x"