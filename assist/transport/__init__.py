"""
Transports delivering pipeline run events.

This module provides:
- Transport: Abstract subscribe/call interface
- WebSocketTransport: Authenticated WebSocket client
"""

from .base import EventListener, Transport, Unsubscribe
from .websocket import WebSocketTransport

__all__ = [
    "EventListener",
    "Transport",
    "Unsubscribe",
    "WebSocketTransport",
]
