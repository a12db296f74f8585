# datastream

Small building blocks for moving values from producers to consumers that run
in separate threads. Values travel through channels. Any stage that watches a
`Context` stops when that context is cancelled.

```python
from datastream.sources import SliceSource
from datastream.reduce_sink import ReduceSink

total = ReduceSink(lambda result, value, index: result + value, 0)
SliceSource([1, 2, 3, 4, 5]).to_sink(total)
total.wait()
print(total.result())  # 15
```

## Primitives

`datastream.primitives` holds the shared pieces.

- `Channel(capacity=0)` is a thread-safe FIFO channel. With capacity 0 it is
  unbuffered, and `send` returns only after a receiver has taken the value.
  - `send(value, context=None)` blocks while the channel is full.
  - `receive(context=None)` blocks while the channel is empty.
  - `close()` closes the channel. Values already queued can still be
    received.
  - `closed()` reports whether the channel has been closed.
  - Iterating over a channel yields values until it is closed and drained.

  The channel raises `ChannelClosed` when you send on a closed channel, close
  it a second time, or receive from it after it is closed and drained. When a
  `context` is passed and gets cancelled, `send` and `receive` raise
  `concurrent.futures.CancelledError`. A negative capacity raises
  `ValueError`.
- `Context` is a cancellation signal with `cancel()`, `cancelled()` and
  `wait(timeout=None)`. `wait` returns whether the context was cancelled.
- `Inlet`, `Outlet`, `Sink`, `WaitableSink`, `Source` and `Flow` are the
  abstract interfaces for stages. `inlet()` returns the channel that values go
  into. `out()` returns the channel that values are read from.
  `WaitableSink.wait()` blocks until the sink has finished.

## Sources

Each source in `datastream.sources` starts emitting in a background thread as
soon as it is created. It closes its `out()` channel when it is done.

- `SliceSource(items, *, context=None, buffer_size=0)` emits the items in
  order. `buffer_size` sets the capacity of its output channel.
- `SingleSource(get, *, context=None, error_handler=None)` calls `get()` once
  and emits the result. If `get` raises, nothing is emitted, and the exception
  is passed to `error_handler` when one is given. If the context is already
  cancelled, `get` is not called at all.

You can read a source's `out()` channel directly:

```python
from datastream.sources import SliceSource

print(list(SliceSource([1, 2, 3]).out()))  # [1, 2, 3]
```

You can also connect a source to exactly one downstream stage with
`to_sink(sink)` or `to_flow(flow)`. Each returns the stage it was given. The
values are forwarded to the stage's inlet, and the inlet is then closed for
you, so do not close it yourself. A second connection attempt raises
`SourceAlreadyActive`.

## Sinks

Every sink starts a background thread that reads its `inlet()` channel. The
thread stops when the inlet is closed and drained, or when the sink's context
is cancelled. `wait()` blocks until that thread has stopped, and it can be
called any number of times.

- `datastream.channel_sink.ChannelSink(channel, *, context=None, buffer_size=0)`
  passes each value on to `channel` in order. It closes `channel` when it
  stops.

  ```python
  from datastream.primitives import Channel
  from datastream.channel_sink import ChannelSink
  from datastream.sources import SliceSource

  out = Channel(10)
  SliceSource([1, 2, 3]).to_sink(ChannelSink(out))
  print(list(out))  # [1, 2, 3]
  ```

- `datastream.writer_sink.WriterSink(writer, *, context=None, buffer_size=0, error_handler=None)`
  writes each `bytes` value to a binary writer, such as `io.BytesIO` or a file
  opened in binary mode. When a write raises, the exception is passed to
  `error_handler` if one is given, and writing continues with the next value.
- `datastream.reduce_sink.ReduceSink(fn, initial, *, context=None, buffer_size=0, error_handler=None)`
  folds the values into one result with `fn(result, value, index)`, starting
  from `initial`. `index` counts values from 0. `result()` returns the result
  as it stands. If `fn` raises, the sink stops, and the result keeps its last
  good value. When an `error_handler` is given, it is called with
  `(exception, index, value, result)`. Passing `None` as `fn` raises
  `ValueError`.

In every sink, `buffer_size` sets the capacity of the inlet channel.

## Cancellation

Pass a `Context` to a stage and call `cancel()` on it to stop the stage early.
Values that were already delivered stay delivered. Sources stop emitting and
close their output channel. Sinks stop reading, and `ChannelSink` closes its
output channel.

## What is not included

`Flow` is only an interface. The package has no ready-made flow stages, such
as map or filter, to place between a source and a sink. To use `to_flow`, you
supply your own `Flow` implementation. There is no command-line tool.

## Requirements

Python 3.10 or later. The package uses only the standard library. Install the
`test` extra to run the tests with pytest.