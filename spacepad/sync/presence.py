"""
Presence client: announce ourselves, watch everybody else, follow one host.

Election is "newest sessionStartTime wins" among records announcing the
host role, which assumes roughly synchronised clocks. Equal start times
fall back to the lowest presence key so the result does not depend on
arrival order.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Callable, Iterable, Mapping, Optional

from spacepad.core.control import StatusBoard
from spacepad.core.types import ClientIdentity, PresenceRecord, Role, SharedSessionState, Status
from spacepad.sync.channel import Channel, ChannelError, PresenceEvent, PresenceState

logger = logging.getLogger(__name__)

_LIST_FIELDS = {
    "selectedItemIds": "selected_item_ids",
    "highlightedItemIds": "highlighted_item_ids",
    "currentCollectionItems": "current_collection_items",
    "availableTags": "available_tags",
}
_STR_FIELDS = {
    "currentCollectionId": "current_collection_id",
    "currentScreenId": "current_screen_id",
    "searchQuery": "search_query",
}


def _is_number(v: Any) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, bool)


def parse_shared(raw: Any) -> Optional[SharedSessionState]:
    """Host sub-state or None. Anything malformed is rejected as a whole."""
    if not isinstance(raw, Mapping):
        return None
    host_id = raw.get("hostId")
    start = raw.get("sessionStartTime")
    if not isinstance(host_id, str) or not host_id or not _is_number(start):
        return None

    kwargs: dict[str, Any] = {}
    for wire, attr in _LIST_FIELDS.items():
        v = raw.get(wire)
        if v is None:
            continue
        if not isinstance(v, list):
            return None
        kwargs[attr] = tuple(v)
    for wire, attr in _STR_FIELDS.items():
        v = raw.get(wire)
        if v is not None and not isinstance(v, str):
            return None
        kwargs[attr] = v
    return SharedSessionState(host_id=host_id, session_start_ms=start, **kwargs)


def parse_record(key: str, raw: Any) -> Optional[PresenceRecord]:
    if not isinstance(raw, Mapping):
        return None
    client_id = raw.get("clientId")
    start = raw.get("startTime")
    try:
        role = Role(raw.get("clientType"))
    except ValueError:
        return None
    if not isinstance(client_id, str) or not _is_number(start):
        return None
    name = raw.get("clientName")
    query = raw.get("searchQuery")
    identity = ClientIdentity(
        client_id=client_id,
        role=role,
        display_name=name if isinstance(name, str) else "",
        session_start_ms=start,
    )
    return PresenceRecord(
        key=key,
        identity=identity,
        search_query=query if isinstance(query, str) else None,
        shared=parse_shared(raw.get("shared")),
        raw=dict(raw),
    )


def parse_state(state: PresenceState) -> dict[str, PresenceRecord]:
    out: dict[str, PresenceRecord] = {}
    for key, raw in state.items():
        rec = parse_record(key, raw)
        if rec is None:
            logger.debug("ignoring malformed presence record %s", key)
            continue
        out[key] = rec
    return out


def elect_host(records: Iterable[PresenceRecord]) -> Optional[PresenceRecord]:
    best: Optional[PresenceRecord] = None
    for r in records:
        if r.identity.role != Role.HOST:
            continue
        if best is None:
            best = r
            continue
        a, b = r.identity.session_start_ms, best.identity.session_start_ms
        if a > b or (a == b and r.key < best.key):
            best = r
    return best


class PresenceClient:
    """
    Mirrors the elected host's shared state for one controller.

    Every sync / join / leave replaces the mirror wholesale. A host whose
    sub-state is missing or malformed counts as no host at all.
    """

    def __init__(self,
                 identity: ClientIdentity,
                 channel: Channel,
                 status: StatusBoard | None = None,
                 on_state: Callable[[Optional[SharedSessionState]], None] | None = None) -> None:
        self.identity = identity
        self.channel = channel
        self.status = status if status is not None else StatusBoard()
        self.on_state = on_state

        self.records: dict[str, PresenceRecord] = {}
        self.host: Optional[PresenceRecord] = None
        self.shared: Optional[SharedSessionState] = None
        self.search_query: Optional[str] = None

    @property
    def host_id(self) -> Optional[str]:
        return None if self.host is None else self.host.identity.client_id

    def connect(self) -> bool:
        self.status.set("connection", Status.PENDING)
        try:
            self.channel.subscribe(self._on_presence, on_status=self._on_status)
        except ChannelError as e:
            logger.error("connect failed: %s", e)
            self.status.set("connection", Status.ERROR, str(e))
            return False
        return True

    def announce(self) -> bool:
        if not self.channel.connected:
            logger.debug("not connected; announcement deferred to next subscribe")
            return False
        try:
            self.channel.track(self.identity.to_record(self.search_query))
        except Exception as e:
            logger.error("announce failed: %s", e)
            self.status.set("connection", Status.ERROR, str(e))
            return False
        return True

    def set_search_query(self, query: Optional[str]) -> bool:
        """Search text reaches the host through our presence record, never as a message."""
        self.search_query = query or None
        return self.announce()

    def others(self) -> list[PresenceRecord]:
        return [r for r in self.records.values() if r.identity.client_id != self.identity.client_id]

    # ---------------------- channel callbacks ----------------------

    def _on_status(self, value: Status) -> None:
        self.status.set("connection", value)
        if value == Status.GRANTED:
            # fresh subscription: we are unknown to the channel until we announce again
            self.announce()
        elif value == Status.ERROR:
            logger.warning("channel lost; host state is stale until the next sync")

    def _on_presence(self, event: PresenceEvent, key: Optional[str], state: PresenceState) -> None:
        try:
            self.apply_state(state)
        except Exception as e:
            logger.exception("presence %s handling failed", event.value)
            self.status.set("connection", Status.ERROR, str(e))

    def apply_state(self, state: PresenceState) -> None:
        self.records = parse_state(state)
        elected = elect_host(self.records.values())
        if elected is not None and elected.shared is None:
            logger.warning("host %s has no usable shared state; treating as no host", elected.identity.client_id)
            elected = None

        old_id = self.host_id
        self.host = elected
        new_id = self.host_id
        if old_id != new_id:
            if new_id is None:
                logger.info("host gone (was %s)", old_id)
            else:
                logger.info("host changed: %s -> %s (%s)", old_id, new_id, elected.identity.display_name)

        self.shared = None if elected is None else elected.shared
        if self.on_state is not None:
            self.on_state(self.shared)
