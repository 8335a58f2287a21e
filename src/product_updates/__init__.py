"""Product Updates — a real-time product catalog.

An in-memory product list served over HTTP, with every change pushed
to connected clients over a WebSocket hub.
"""

__version__ = "0.1.0"
