from __future__ import annotations

import json
import logging
import queue
import sys
import threading
import time
from typing import Callable, Iterable, Optional, Union

from spacepad.core.config import Preset
from spacepad.core.control import StatusBoard
from spacepad.core.types import (
    Action, ClientIdentity, MotionSample, OrientationSample, PointerEvent, SharedSessionState,
    Status, WheelEvent,
)
from spacepad.interpreter.controller import ControllerEngine
from spacepad.runtime.recorder import SessionRecorder
from spacepad.sync.channel import Channel
from spacepad.sync.commands import Command, CommandParser
from spacepad.sync.presence import PresenceClient
from spacepad.sync.search import filter_items, filter_tags
from spacepad.sync.updates import UpdateChannel

logger = logging.getLogger(__name__)

InputEvent = Union[PointerEvent, WheelEvent, MotionSample, OrientationSample]


def now_ms() -> int:
    return int(time.monotonic() * 1000)


class ControllerRuntime:
    """
    Owns one engine, one presence client and one update channel, and
    drives them from a single thread.

    Other threads (pynput listeners, the stdin reader) only put things on
    `inbox`; step() drains it, polls the sources and pumps the channel.
    The runtime, not the engine, decides when to reconnect.
    """

    def __init__(self,
                 identity: ClientIdentity,
                 preset: Preset,
                 channel_factory: Callable[[], Channel],
                 recorder: Optional[SessionRecorder] = None,
                 clock: Callable[[], int] = now_ms) -> None:
        self.identity = identity
        self.preset = preset
        self.channel_factory = channel_factory
        self.recorder = recorder
        self.clock = clock

        self.status = StatusBoard()
        self.engine = ControllerEngine(identity, preset, self.status)
        self.parser = CommandParser()
        self.inbox: "queue.Queue[Union[InputEvent, Command, str]]" = queue.Queue()

        self.channel: Channel = channel_factory()
        self.presence = PresenceClient(identity, self.channel, self.status, on_state=self._on_shared)
        self.updates = UpdateChannel(identity, self.channel, self.presence, self.status)

        self.pollers: list[Callable[[int], Iterable[InputEvent]]] = []
        self._retry_at_ms: Optional[int] = None
        self._diag_at_ms: Optional[int] = None

    # ---------------------- connection ----------------------

    def connect(self) -> bool:
        ok = self.presence.connect()
        if not ok:
            self._schedule_retry()
        return ok

    def _schedule_retry(self) -> None:
        delay_ms = int(self.preset.channel.reconnect_delay_s * 1000)
        self._retry_at_ms = self.clock() + delay_ms
        logger.info("reconnecting in %.1fs", self.preset.channel.reconnect_delay_s)

    def _maybe_reconnect(self, t_ms: int) -> None:
        if self.channel.connected:
            return
        if self._retry_at_ms is None:
            self._schedule_retry()
            return
        if t_ms < self._retry_at_ms:
            return
        self._retry_at_ms = None
        # a fresh channel; presence state stays stale until its first sync
        self.channel = self.channel_factory()
        self.presence.channel = self.channel
        self.updates.channel = self.channel
        self.connect()

    # ---------------------- input ----------------------

    def feed(self, item: InputEvent) -> list[Action]:
        if self.recorder is not None:
            self.recorder.record(item)
        if isinstance(item, PointerEvent):
            actions = self.engine.process_pointer(item)
        elif isinstance(item, WheelEvent):
            actions = self.engine.process_wheel(item)
        elif isinstance(item, MotionSample):
            actions = self.engine.process_motion(item)
        elif isinstance(item, OrientationSample):
            actions = self.engine.process_orientation(item)
        else:
            raise TypeError(f"unexpected input {type(item).__name__}")
        self.dispatch(actions)
        return actions

    def dispatch(self, actions: list[Action]) -> None:
        for a in actions:
            if self.recorder is not None:
                self.recorder.record(a)
            self.updates.send(a)

    def handle_text(self, text: str, t_ms: int) -> Optional[Command]:
        """Commands first; anything else becomes the search query."""
        if self.recorder is not None:
            self.recorder.note(text, t_ms)
        cmd = self.parser.parse(text)
        if cmd is None:
            self.presence.set_search_query(text.strip())
            self._log_search()
            return None
        self.handle_command(cmd, t_ms)
        return cmd

    def handle_command(self, cmd: Command, t_ms: int) -> None:
        logger.info("command: %s", cmd.value)
        if cmd == Command.CONFIRM:
            self.dispatch(self.engine.confirm(t_ms))
        elif cmd == Command.CANCEL:
            self.presence.set_search_query(None)
        elif cmd == Command.DIAGNOSTICS:
            if self.engine.toggle_diagnostics():
                self.log_diagnostics()
        elif cmd == Command.TILT:
            self.dispatch(self.engine.toggle_tilt(t_ms))
        elif cmd == Command.SHAKE:
            self.engine.set_shake_enabled(not self.engine.shake.enabled)

    def log_diagnostics(self) -> None:
        logger.info("diagnostics %s", json.dumps(self.engine.diagnostics()))

    # ---------------------- loop ----------------------

    def step(self) -> None:
        t_ms = self.clock()
        self._maybe_reconnect(t_ms)

        while True:
            try:
                item = self.inbox.get_nowait()
            except queue.Empty:
                break
            if isinstance(item, Command):
                self.handle_command(item, t_ms)
            elif isinstance(item, str):
                self.handle_text(item, t_ms)
            else:
                self.feed(item)

        for poll in list(self.pollers):
            try:
                events = list(poll(t_ms))
            except OSError as e:
                logger.error("input source lost: %s", e)
                self.status.set("input", Status.UNAVAILABLE, str(e))
                self.pollers.remove(poll)
                continue
            except Exception as e:
                logger.exception("input source failed")
                self.status.set("input", Status.ERROR, str(e))
                self.pollers.remove(poll)
                continue
            for ev in events:
                self.feed(ev)

        if self.engine.diagnostics_enabled and (self._diag_at_ms is None or t_ms - self._diag_at_ms >= 1000):
            self._diag_at_ms = t_ms
            self.log_diagnostics()

        self.channel.poll(self.preset.channel.poll_timeout_s)

    def run(self) -> None:
        self.connect()
        try:
            while True:
                self.step()
        except KeyboardInterrupt:
            print("\n[SpacePad] exiting")
        finally:
            self.dispatch(self.engine.disable_tilt(self.clock()))
            self.channel.close()
            if self.recorder is not None:
                self.recorder.close()

    # ---------------------- shared state ----------------------

    def _on_shared(self, shared: Optional[SharedSessionState]) -> None:
        if shared is None:
            logger.debug("no host")
            return
        logger.info("host %s: screen=%s collection=%s items=%d selected=%s peers=%d",
                    shared.host_id, shared.current_screen_id, shared.current_collection_id,
                    len(shared.current_collection_items), list(shared.selected_item_ids),
                    len(self.presence.others()))

    def _log_search(self) -> None:
        shared = self.presence.shared
        if shared is None:
            return
        q = self.presence.search_query
        items = filter_items(shared.current_collection_items, q)
        tags = filter_tags(shared.available_tags, q)
        logger.info("search %r: %d items, tags %s", q, len(items), tags[:10])


def start_stdin_reader(inbox: "queue.Queue") -> threading.Thread:
    """Each line typed on stdin is a command or a search query."""

    def read():
        for line in sys.stdin:
            line = line.strip()
            if line:
                inbox.put(line)

    th = threading.Thread(target=read, daemon=True)
    th.start()
    return th


def motion_poller(runtime: ControllerRuntime, source) -> Callable[[int], list[InputEvent]]:
    """Wraps an IIO source; a read failure disables shake and tilt instead of raising."""

    def poll(t_ms: int) -> list[InputEvent]:
        if not runtime.status.motion_usable():
            return []
        try:
            motion, orientation = source.sample(t_ms)
        except PermissionError as e:
            runtime.dispatch(runtime.engine.set_motion_status(t_ms, Status.DENIED, str(e)))
            return []
        except (OSError, ValueError) as e:
            runtime.dispatch(runtime.engine.set_motion_status(t_ms, Status.UNAVAILABLE, str(e)))
            return []
        return [motion, orientation]

    return poll
