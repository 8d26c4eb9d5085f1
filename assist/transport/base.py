"""
Transport abstract interface.

Defines the contract the run orchestrator and pipeline API rely on.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Mapping

# Push listener: receives one wire event per call, in arrival order
EventListener = Callable[[Dict[str, Any]], None]

# Ends a subscription; safe to call more than once
Unsubscribe = Callable[[], Awaitable[None]]


class Transport(ABC):
    """
    Bidirectional message channel.

    All implementations must guarantee:
    - In-order delivery of pushes for a single subscription
    - No listener calls after the subscription's unsubscribe completed
    - Close listeners called once when the connection is lost
    """

    @abstractmethod
    async def subscribe(self, payload: Mapping[str, Any], on_event: EventListener) -> Unsubscribe:
        """
        Register a push listener.

        Args:
            payload: Subscribe request (must include "type")
            on_event: Called synchronously with each pushed event

        Returns:
            Coroutine function ending the subscription

        Raises:
            TransportError: If the server rejects the subscription
        """
        ...

    @abstractmethod
    async def call(self, payload: Mapping[str, Any]) -> Any:
        """
        One-shot request/response.

        Raises:
            TransportError: If the server answers with an error
        """
        ...

    def add_close_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback for connection loss.

        Transports without a connection to lose keep this default and
        never call back.

        Returns:
            Function removing the callback again
        """
        return lambda: None
