"""
WebSocket transport for the assist pipeline API.

Protocol (JSON over WS):
  Recv:  {"type": "auth_required"}
  Send:  {"type": "auth", "access_token": "..."}
  Recv:  {"type": "auth_ok"} | {"type": "auth_invalid", "message": "..."}
  Send:  {"id": N, "type": "...", ...}
  Recv:  {"id": N, "type": "result", "success": true, "result": ...}
         {"id": N, "type": "result", "success": false, "error": {"code": "...", "message": "..."}}
         {"id": N, "type": "event", "event": {...}}

Every outgoing message gets the next id; result frames resolve the call
with that id, event frames go to the subscription registered under it.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import websockets
from websockets.exceptions import ConnectionClosed

from ..core.errors import AuthenticationError, TransportError
from .base import EventListener, Transport, Unsubscribe

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """
    Transport over a single authenticated WebSocket connection.

    Usage:
        async with WebSocketTransport(url, token) as transport:
            pipelines = await transport.call({"type": "assist_pipeline/pipeline/list"})
    """

    def __init__(
        self,
        url: str,
        access_token: str,
        call_timeout: float = 10.0,
        connect: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.url = url
        self.call_timeout = call_timeout
        self._access_token = access_token
        self._connect = connect or websockets.connect
        self._ws: Optional[Any] = None
        self._reader: Optional[asyncio.Task] = None
        self._next_id = 1
        self._pending: Dict[int, asyncio.Future] = {}
        self._subscriptions: Dict[int, EventListener] = {}
        self._close_listeners: List[Callable[[], None]] = []

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._reader is not None and not self._reader.done()

    async def __aenter__(self) -> "WebSocketTransport":
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # -- Connection lifecycle --

    async def connect(self) -> None:
        """
        Open the socket and authenticate.

        Raises:
            AuthenticationError: If the server rejects the access token
            TransportError: If the handshake does not follow the protocol
        """
        logger.info("Connecting to %s", self.url)
        self._ws = await self._connect(self.url, open_timeout=self.call_timeout)

        msg = await self._recv_json()
        if msg.get("type") != "auth_required":
            await self._abort()
            raise TransportError("handshake_failed", f"expected auth_required, got {msg.get('type')!r}")

        await self._ws.send(json.dumps({"type": "auth", "access_token": self._access_token}))
        msg = await self._recv_json()
        if msg.get("type") == "auth_invalid":
            await self._abort()
            raise AuthenticationError("invalid_auth", msg.get("message", "invalid access token"))
        if msg.get("type") != "auth_ok":
            await self._abort()
            raise TransportError("handshake_failed", f"expected auth_ok, got {msg.get('type')!r}")

        logger.info("Authenticated (server version %s)", msg.get("ha_version", "unknown"))
        self._reader = asyncio.create_task(self._read_loop())

    async def close(self) -> None:
        """Stop the reader, fail pending calls and close the socket."""
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._reader = None
        self._fail_pending(TransportError("connection_closed", "transport closed"))
        await self._abort()

    async def _abort(self) -> None:
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()

    async def _recv_json(self) -> Dict[str, Any]:
        raw = await self._ws.recv()
        return json.loads(raw)

    # -- Message routing --

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Dropping undecodable frame")
                    continue
                # Servers may coalesce several messages into one frame
                for item in msg if isinstance(msg, list) else [msg]:
                    if not isinstance(item, dict):
                        logger.warning("Dropping non-object message: %r", item)
                        continue
                    self._dispatch(item)
        except ConnectionClosed as e:
            logger.warning("Connection lost: %s", e)
        finally:
            self._subscriptions.clear()
            self._fail_pending(TransportError("connection_lost", "connection closed by server"))
            self._notify_closed()

    def _dispatch(self, msg: Mapping[str, Any]) -> None:
        msg_id = msg.get("id")
        msg_type = msg.get("type")

        if msg_type == "result":
            future = self._pending.pop(msg_id, None)
            if future is None or future.done():
                logger.debug("Result for unknown message id %s", msg_id)
                return
            if msg.get("success"):
                future.set_result(msg.get("result"))
            else:
                err = msg.get("error") or {}
                future.set_exception(
                    TransportError(err.get("code", "unknown_error"), err.get("message", ""))
                )
        elif msg_type == "event":
            listener = self._subscriptions.get(msg_id)
            if listener is None:
                logger.debug("Event for inactive subscription %s", msg_id)
                return
            try:
                listener(msg.get("event"))
            except Exception:
                logger.exception("Listener for subscription %s failed", msg_id)
        elif msg_type != "pong":
            logger.debug("Ignoring message type %r", msg_type)

    def _notify_closed(self) -> None:
        listeners, self._close_listeners = self._close_listeners, []
        for callback in listeners:
            try:
                callback()
            except Exception:
                logger.exception("Close listener failed")

    def _fail_pending(self, error: TransportError) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    async def _send(self, payload: Mapping[str, Any]) -> Tuple[int, asyncio.Future]:
        if not self.connected:
            raise TransportError("not_connected", "transport is not connected")
        msg_id = self._next_id
        self._next_id += 1
        future = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future
        await self._ws.send(json.dumps({**payload, "id": msg_id}))
        return msg_id, future

    async def _wait(self, msg_id: int, future: asyncio.Future) -> Any:
        try:
            return await asyncio.wait_for(future, timeout=self.call_timeout)
        except asyncio.TimeoutError:
            self._pending.pop(msg_id, None)
            raise TransportError("timeout", f"no result for message {msg_id} in {self.call_timeout}s")

    # -- Transport interface --

    async def call(self, payload: Mapping[str, Any]) -> Any:
        msg_id, future = await self._send(payload)
        return await self._wait(msg_id, future)

    async def subscribe(self, payload: Mapping[str, Any], on_event: EventListener) -> Unsubscribe:
        msg_id = self._next_id
        # Registered before sending: events can follow the result in the same read
        self._subscriptions[msg_id] = on_event
        try:
            sent_id, future = await self._send(payload)
            await self._wait(sent_id, future)
        except TransportError:
            self._subscriptions.pop(msg_id, None)
            raise

        async def unsubscribe() -> None:
            if self._subscriptions.pop(msg_id, None) is None:
                return
            await self.call({"type": "unsubscribe_events", "subscription": msg_id})

        return unsubscribe

    def add_close_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._close_listeners.append(callback)

        def remove() -> None:
            if callback in self._close_listeners:
                self._close_listeners.remove(callback)

        return remove
