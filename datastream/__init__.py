"""Sources and sinks that stream values between threads through cancellable channels."""

__version__ = "0.1.0"

__all__ = ["primitives", "sources", "channel_sink", "writer_sink", "reduce_sink"]