from __future__ import annotations

import logging
from typing import Any, Dict

from spacepad.core.control import StatusBoard
from spacepad.core.types import Action, ClientIdentity, Status
from spacepad.sync.channel import Channel
from spacepad.sync.presence import PresenceClient

logger = logging.getLogger(__name__)


class UpdateChannel:
    """
    Addressed, fire-and-forget actions to the elected host.

    No acknowledgement and no retry: the next gesture or sample supersedes
    a lost one. While there is no host or no connection, actions are dropped.
    """

    def __init__(self, identity: ClientIdentity, channel: Channel, presence: PresenceClient,
                 status: StatusBoard | None = None) -> None:
        self.identity = identity
        self.channel = channel
        self.presence = presence
        self.status = status if status is not None else presence.status
        self.sent = 0
        self.dropped = 0

    def envelope(self, action: Action, target_host_id: str) -> Dict[str, Any]:
        msg: Dict[str, Any] = {
            "senderId": self.identity.client_id,
            "senderRole": self.identity.role.value,
            "senderName": self.identity.display_name,
            "targetHostId": target_host_id,
        }
        msg.update(action.payload())
        return msg

    def send(self, action: Action) -> bool:
        host_id = self.presence.host_id
        if host_id is None:
            self.dropped += 1
            logger.debug("no host; dropped %s", action.type.value)
            return False
        if not self.channel.connected:
            self.dropped += 1
            logger.debug("disconnected; dropped %s", action.type.value)
            return False

        try:
            ok = self.channel.send(action.type.value, self.envelope(action, host_id))
        except Exception as e:
            logger.exception("send %s failed", action.type.value)
            self.status.set("connection", Status.ERROR, str(e))
            self.dropped += 1
            return False

        if ok:
            self.sent += 1
        else:
            self.dropped += 1
        return ok

    def send_all(self, actions: list[Action]) -> int:
        return sum(1 for a in actions if self.send(a))
