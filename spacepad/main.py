from __future__ import annotations

import argparse
import logging
import os
import time
import uuid
from pathlib import Path

from spacepad.core.config import PRESETS, PresetName
from spacepad.core.types import ClientIdentity, Role, Status
from spacepad.runtime.profile import UserProfile, apply_profile, load_or_create
from spacepad.sync.commands import Command


def _identity(role: Role, name: str | None) -> tuple[ClientIdentity, UserProfile]:
	profile = load_or_create()
	ident = ClientIdentity(
		client_id=f"{role.value}-{profile.client_id[:8]}-{uuid.uuid4().hex[:6]}",
		role=role,
		display_name=name or profile.display_name,
		session_start_ms=int(time.time() * 1000),
	)
	return ident, profile


def run_controller(args: argparse.Namespace) -> None:
	from dataclasses import replace

	from spacepad.runtime.recorder import SessionRecorder, default_path
	from spacepad.runtime.run_loop import ControllerRuntime, start_stdin_reader
	from spacepad.sync.ws_channel import WebSocketChannel

	role = Role(args.role)
	identity, profile = _identity(role, args.name)

	preset = apply_profile(PRESETS[PresetName(args.preset)], profile)
	preset = replace(preset, channel=replace(preset.channel, url=args.url, channel_name=args.channel))

	recorder = None
	record_to = args.record or os.environ.get("SPACEPAD_RECORD")
	if record_to:
		path = default_path() if record_to == "auto" else Path(record_to).expanduser()
		recorder = SessionRecorder(path)
		print(f"[SpacePad] recording session to {path}")

	def channel_factory():
		return WebSocketChannel(preset.channel.url, preset.channel.channel_name, identity.client_id)

	rt = ControllerRuntime(identity, preset, channel_factory, recorder=recorder)

	if args.replay:
		from spacepad.sensor.replay import replay

		rt.engine.set_motion_status(0, Status.GRANTED)
		rt.status.set("input", Status.GRANTED)
		for ev in replay(Path(args.replay).expanduser()):
			rt.inbox.put(ev)
	else:
		_attach_sources(rt, args)

	if args.stdin:
		start_stdin_reader(rt.inbox)

	print(f"[SpacePad] {identity.display_name} ({role.value}) -> {preset.channel.url} #{preset.channel.channel_name}")
	print("[SpacePad] Type a search, or one of these commands. Ctrl+C to exit.")
	for cmd in (Command.CONFIRM, Command.CANCEL, Command.TILT, Command.SHAKE):
		print(f"[SpacePad]   {cmd.value}: {', '.join(rt.parser.words(cmd))}")
	rt.run()


def _attach_sources(rt, args: argparse.Namespace) -> None:
	from spacepad.runtime.run_loop import motion_poller

	if args.touch:
		from spacepad.sensor.touchscreen import TouchscreenSource

		touch = TouchscreenSource.open()
		if touch is not None:
			rt.pollers.append(touch.poll)
			rt.status.set("input", Status.GRANTED)
		else:
			rt.status.set("input", Status.UNAVAILABLE, "no touchscreen")

	if args.desktop:
		from spacepad.sensor.desktop import DesktopSource
		from spacepad.ui.hotkeys import start_hotkeys

		desk = DesktopSource()
		desk.start()
		rt.pollers.append(lambda t_ms: desk.drain())
		rt.status.set("input", Status.GRANTED)
		start_hotkeys(rt.inbox)

	if args.motion:
		from spacepad.sensor.iio_motion import IIOMotionSource

		src, status, reason = IIOMotionSource.open()
		rt.engine.set_motion_status(0, status, reason)
		if src is not None:
			rt.pollers.append(motion_poller(rt, src))


def build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="spacepad", description="SpacePad controller and relay")
	p.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ...")
	sub = p.add_subparsers(dest="cmd", required=True)

	c = sub.add_parser("controller", help="run a controller client")
	c.add_argument("--role", choices=[r.value for r in Role if r != Role.HOST], default=Role.NAVIGATOR.value)
	c.add_argument("--preset", choices=[n.value for n in PresetName], default=PresetName.DEFAULT.value)
	c.add_argument("--url", default=os.environ.get("SPACEPAD_URL", "ws://localhost:8765"))
	c.add_argument("--channel", default=os.environ.get("SPACEPAD_CHANNEL", "spacecraft"))
	c.add_argument("--name", default=None, help="display name for this session (default: from profile)")
	c.add_argument("--touch", action="store_true", help="read the first evdev multitouch device")
	c.add_argument("--desktop", action="store_true", help="mouse drag / wheel / Ctrl+wheel via pynput")
	c.add_argument("--motion", action="store_true", help="IIO accelerometer for shake and tilt")
	c.add_argument("--no-stdin", dest="stdin", action="store_false", help="do not read commands from stdin")
	c.add_argument("--record", default=None, help="JSONL session log path, or 'auto'")
	c.add_argument("--replay", default=None, help="feed a recorded session instead of live sources")

	r = sub.add_parser("relay", help="run the coordination relay")
	r.add_argument("--host", default="0.0.0.0")
	r.add_argument("--port", type=int, default=8765)
	return p


def main(argv: list[str] | None = None) -> None:
	args = build_parser().parse_args(argv)
	logging.basicConfig(
		level=getattr(logging, str(args.log_level).upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	if args.cmd == "relay":
		from spacepad.sync.relay import run_relay

		run_relay(args.host, args.port)
	else:
		run_controller(args)


if __name__ == "__main__":
	main()
