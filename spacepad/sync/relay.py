"""
Minimal coordination relay.

Channel-scoped presence with whole-record replace, sync/join/leave fan-out
and best-effort broadcast to the other members. No persistence, no
ordering guarantees beyond what a single asyncio loop gives for free.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)


@dataclass
class _Room:
    members: Dict[str, ServerConnection] = field(default_factory=dict)
    records: Dict[str, Any] = field(default_factory=dict)


class Relay:
    def __init__(self) -> None:
        self.rooms: Dict[str, _Room] = {}

    async def handler(self, ws: ServerConnection) -> None:
        room_name: str | None = None
        key: str | None = None
        try:
            async for raw in ws:
                try:
                    msg = json.loads(raw)
                except ValueError:
                    logger.warning("non-JSON frame from %s", ws.remote_address)
                    continue
                if not isinstance(msg, dict):
                    continue

                op = msg.get("op")
                if op == "join":
                    room_name, key = str(msg.get("channel")), str(msg.get("key"))
                    room = self.rooms.setdefault(room_name, _Room())
                    room.members[key] = ws
                    logger.info("%s joined %s", key, room_name)
                    await ws.send(json.dumps({"op": "status", "status": "subscribed"}))
                    await ws.send(json.dumps({"op": "sync", "state": room.records}))
                elif room_name is None or key is None:
                    logger.debug("%s before join; ignored", op)
                elif op == "track":
                    room = self.rooms[room_name]
                    room.records[key] = msg.get("payload")
                    await self._fanout(room, {"op": "join", "key": key, "state": room.records})
                elif op == "untrack":
                    await self._untrack(room_name, key)
                elif op == "broadcast":
                    out = {"op": "broadcast", "event": msg.get("event"), "payload": msg.get("payload")}
                    await self._fanout(self.rooms[room_name], out, skip=key)
        except ConnectionClosed:
            pass
        finally:
            if room_name is not None and key is not None:
                room = self.rooms.get(room_name)
                if room is not None and room.members.get(key) is ws:
                    del room.members[key]
                    await self._untrack(room_name, key)
                logger.info("%s left %s", key, room_name)

    async def _untrack(self, room_name: str, key: str) -> None:
        room = self.rooms[room_name]
        if room.records.pop(key, None) is not None:
            await self._fanout(room, {"op": "leave", "key": key, "state": room.records})

    async def _fanout(self, room: _Room, msg: Dict[str, Any], skip: str | None = None) -> None:
        data = json.dumps(msg)
        for k, peer in list(room.members.items()):
            if k == skip:
                continue
            try:
                await peer.send(data)
            except ConnectionClosed:
                logger.debug("dropped frame to %s (closed)", k)


async def serve_forever(host: str, port: int) -> None:
    relay = Relay()
    async with serve(relay.handler, host, port) as server:
        logger.info("relay listening on ws://%s:%d", host, port)
        await server.serve_forever()


def run_relay(host: str = "0.0.0.0", port: int = 8765) -> None:
    print(f"[SpacePad] relay on ws://{host}:{port}. Ctrl+C to exit.")
    try:
        asyncio.run(serve_forever(host, port))
    except KeyboardInterrupt:
        print("\n[SpacePad] relay stopped")
