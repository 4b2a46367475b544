"""A lightweight threaded TCP server framework with message framing, routing and a worker pool."""

__version__ = "1.9.0"