"""
Runtime configuration read from the environment.

Environment Variables:
    ASSIST_URL: WebSocket API endpoint - default: ws://localhost:8123/api/websocket
    ASSIST_TOKEN: Long-lived access token - default: empty
    ASSIST_CALL_TIMEOUT_SECONDS: Timeout for one-shot calls - default: 10
    ASSIST_METRICS_ENABLED: "1" starts the Prometheus endpoint - default: 0
    ASSIST_METRICS_PORT: Port of the Prometheus endpoint - default: 9108
"""

import os
from dataclasses import dataclass

DEFAULT_URL = "ws://localhost:8123/api/websocket"


def _env_float(key: str, default: float) -> float:
    val = os.getenv(key)
    if not val:
        return default
    try:
        parsed = float(val)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _env_int(key: str, default: int) -> int:
    val = os.getenv(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    url: str = DEFAULT_URL
    token: str = ""
    call_timeout_seconds: float = 10.0
    metrics_enabled: bool = False
    metrics_port: int = 9108

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            url=os.getenv("ASSIST_URL", DEFAULT_URL),
            token=os.getenv("ASSIST_TOKEN", ""),
            call_timeout_seconds=_env_float("ASSIST_CALL_TIMEOUT_SECONDS", 10.0),
            metrics_enabled=os.getenv("ASSIST_METRICS_ENABLED", "0") == "1",
            metrics_port=_env_int("ASSIST_METRICS_PORT", 9108),
        )
