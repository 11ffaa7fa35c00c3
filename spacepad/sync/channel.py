"""
Coordination channel contract.

A channel gives every member three things:
  - a presence record per member, replaced whole on every track()
  - sync / join / leave notifications over the set of records
  - unordered, at-most-once broadcast to the other members

LocalHub implements the contract in memory (single process, synchronous
delivery). The network implementation lives in ws_channel.py.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Optional

from spacepad.core.types import Status

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
PresenceState = Dict[str, Record]

PresenceCallback = Callable[["PresenceEvent", Optional[str], PresenceState], None]
BroadcastCallback = Callable[[str, Dict[str, Any]], None]
StatusCallback = Callable[[Status], None]


class PresenceEvent(str, Enum):
    SYNC = "sync"
    JOIN = "join"
    LEAVE = "leave"


class ChannelError(Exception):
    """The coordination service could not be reached or refused us."""


class Channel(ABC):
    """One member's handle on a named channel."""

    key: str

    @abstractmethod
    def subscribe(self,
                  on_presence: PresenceCallback,
                  on_broadcast: BroadcastCallback | None = None,
                  on_status: StatusCallback | None = None) -> None:
        """Join the channel. May raise ChannelError."""

    @abstractmethod
    def track(self, record: Record) -> None:
        """Announce (or replace) this member's presence record."""

    @abstractmethod
    def untrack(self) -> None:
        ...

    @abstractmethod
    def send(self, event: str, payload: Dict[str, Any]) -> bool:
        """Fire-and-forget broadcast. Returns False if it was not handed off."""

    @abstractmethod
    def presence_state(self) -> PresenceState:
        ...

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...

    def poll(self, timeout: float = 0.0) -> None:
        """Deliver pending incoming traffic. Synchronous channels have none."""

    @abstractmethod
    def close(self) -> None:
        ...


class LocalHub:
    """In-memory coordination service shared by LocalChannel members."""

    def __init__(self) -> None:
        # channel name -> key -> member
        self._members: Dict[str, Dict[str, "LocalChannel"]] = {}
        # channel name -> key -> record
        self._records: Dict[str, PresenceState] = {}

    def channel(self, name: str, key: str) -> "LocalChannel":
        return LocalChannel(self, name, key)

    def state(self, name: str) -> PresenceState:
        return copy.deepcopy(self._records.get(name, {}))

    # ---------------------- used by LocalChannel ----------------------

    def _join(self, member: "LocalChannel") -> None:
        self._members.setdefault(member.name, {})[member.key] = member

    def _leave(self, member: "LocalChannel") -> None:
        members = self._members.get(member.name, {})
        if members.get(member.key) is member:
            del members[member.key]

    def _track(self, member: "LocalChannel", record: Record) -> None:
        logger.debug("%s tracked in %s", member.key, member.name)
        self._records.setdefault(member.name, {})[member.key] = copy.deepcopy(record)
        self._notify(member.name, PresenceEvent.JOIN, member.key)

    def _untrack(self, member: "LocalChannel") -> None:
        records = self._records.get(member.name, {})
        if member.key in records:
            del records[member.key]
            self._notify(member.name, PresenceEvent.LEAVE, member.key)

    def _broadcast(self, sender: "LocalChannel", event: str, payload: Dict[str, Any]) -> None:
        for m in list(self._members.get(sender.name, {}).values()):
            if m is not sender:
                m._deliver_broadcast(event, copy.deepcopy(payload))

    def _notify(self, name: str, event: PresenceEvent, key: Optional[str]) -> None:
        for m in list(self._members.get(name, {}).values()):
            m._deliver_presence(event, key, self.state(name))


class LocalChannel(Channel):
    def __init__(self, hub: LocalHub, name: str, key: str) -> None:
        self.hub = hub
        self.name = name
        self.key = key
        self._connected = False
        self._on_presence: PresenceCallback | None = None
        self._on_broadcast: BroadcastCallback | None = None
        self._on_status: StatusCallback | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    def subscribe(self, on_presence, on_broadcast=None, on_status=None) -> None:
        self._on_presence = on_presence
        self._on_broadcast = on_broadcast
        self._on_status = on_status
        self.hub._join(self)
        self._connected = True
        if on_status is not None:
            on_status(Status.GRANTED)
        self._deliver_presence(PresenceEvent.SYNC, None, self.hub.state(self.name))

    def track(self, record: Record) -> None:
        if not self._connected:
            raise ChannelError("track on a closed channel")
        self.hub._track(self, record)

    def untrack(self) -> None:
        self.hub._untrack(self)

    def send(self, event: str, payload: Dict[str, Any]) -> bool:
        if not self._connected:
            return False
        self.hub._broadcast(self, event, payload)
        return True

    def presence_state(self) -> PresenceState:
        return self.hub.state(self.name)

    def drop(self) -> None:
        """Simulate a transport loss: the hub forgets us and we stop receiving."""
        self.hub._leave(self)
        self._connected = False
        self.hub._untrack(self)
        if self._on_status is not None:
            self._on_status(Status.ERROR)

    def close(self) -> None:
        if not self._connected:
            return
        self.hub._leave(self)
        self._connected = False
        self.hub._untrack(self)
        if self._on_status is not None:
            self._on_status(Status.INACTIVE)

    def _deliver_presence(self, event: PresenceEvent, key: Optional[str], state: PresenceState) -> None:
        if self._connected and self._on_presence is not None:
            self._on_presence(event, key, state)

    def _deliver_broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        if self._connected and self._on_broadcast is not None:
            self._on_broadcast(event, payload)
