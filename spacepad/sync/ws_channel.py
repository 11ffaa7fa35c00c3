"""
WebSocket client for the relay in relay.py.

Uses the blocking websockets client so the whole controller stays on one
thread: poll() waits at most `timeout` seconds for a frame and dispatches
everything that has arrived to the subscriber callbacks.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from spacepad.core.types import Status
from spacepad.sync.channel import (
    BroadcastCallback, Channel, ChannelError, PresenceCallback, PresenceEvent,
    PresenceState, Record, StatusCallback,
)

logger = logging.getLogger(__name__)


class WebSocketChannel(Channel):
    def __init__(self, url: str, name: str, key: str, open_timeout: float = 5.0) -> None:
        self.url = url
        self.name = name
        self.key = key
        self.open_timeout = open_timeout
        self._ws: Optional[ClientConnection] = None
        self._state: PresenceState = {}
        self._on_presence: PresenceCallback | None = None
        self._on_broadcast: BroadcastCallback | None = None
        self._on_status: StatusCallback | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def subscribe(self, on_presence, on_broadcast=None, on_status=None) -> None:
        self._on_presence = on_presence
        self._on_broadcast = on_broadcast
        self._on_status = on_status
        try:
            self._ws = connect(self.url, open_timeout=self.open_timeout)
            self._ws.send(json.dumps({"op": "join", "channel": self.name, "key": self.key}))
        except (OSError, TimeoutError, WebSocketException) as e:
            self._ws = None
            raise ChannelError(f"cannot reach {self.url}: {e}") from e
        logger.info("connected to %s (channel %s as %s)", self.url, self.name, self.key)

    def track(self, record: Record) -> None:
        self._send({"op": "track", "payload": record})

    def untrack(self) -> None:
        self._send({"op": "untrack"})

    def send(self, event: str, payload: Dict[str, Any]) -> bool:
        return self._send({"op": "broadcast", "event": event, "payload": payload})

    def presence_state(self) -> PresenceState:
        return dict(self._state)

    def poll(self, timeout: float = 0.0) -> None:
        """Dispatch incoming frames; waits up to `timeout` for the first one."""
        wait = timeout
        while self._ws is not None:
            try:
                raw = self._ws.recv(timeout=wait)
            except TimeoutError:
                return
            except ConnectionClosed as e:
                self._lost(f"connection closed: {e}")
                return
            wait = 0.0
            self._dispatch(raw)

    def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is None:
            return
        try:
            ws.close()
        except WebSocketException as e:
            logger.debug("close: %s", e)
        if self._on_status is not None:
            self._on_status(Status.INACTIVE)

    # ---------------------- internals ----------------------

    def _send(self, msg: Dict[str, Any]) -> bool:
        if self._ws is None:
            return False
        try:
            self._ws.send(json.dumps(msg))
        except ConnectionClosed as e:
            self._lost(f"connection closed: {e}")
            return False
        return True

    def _lost(self, reason: str) -> None:
        logger.warning("channel lost: %s", reason)
        self._ws = None
        if self._on_status is not None:
            self._on_status(Status.ERROR)

    def _dispatch(self, raw: Any) -> None:
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("ignoring non-JSON frame")
            return
        if not isinstance(msg, dict):
            return

        op = msg.get("op")
        if op == "status":
            if msg.get("status") == "subscribed" and self._on_status is not None:
                self._on_status(Status.GRANTED)
        elif op in ("sync", "join", "leave"):
            state = msg.get("state")
            if isinstance(state, dict):
                self._state = state
            if self._on_presence is not None:
                self._on_presence(PresenceEvent(op), msg.get("key"), dict(self._state))
        elif op == "broadcast":
            if self._on_broadcast is not None and isinstance(msg.get("payload"), dict):
                self._on_broadcast(str(msg.get("event")), msg["payload"])
        else:
            logger.debug("unknown relay op %r", op)
