"""
Transport setup shared by the remote commands.
"""

from typing import Optional

from ..config import Settings
from ..transport import WebSocketTransport


def build_transport(url: Optional[str] = None, token: Optional[str] = None) -> WebSocketTransport:
    """WebSocketTransport from explicit options, falling back to ASSIST_* environment."""
    settings = Settings.from_env()
    return WebSocketTransport(
        url or settings.url,
        token if token is not None else settings.token,
        call_timeout=settings.call_timeout_seconds,
    )
