from __future__ import annotations

import queue

from pynput import keyboard

from spacepad.sync.commands import Command


def start_hotkeys(commands: "queue.Queue[Command]") -> keyboard.Listener:
    """
    Global hotkeys (X11), queued for the run loop:
    - Ctrl+Alt+T:     toggle tilt
    - Ctrl+Alt+S:     toggle shake tracking
    - Ctrl+Alt+D:     toggle diagnostics
    - Ctrl+Alt+Enter: confirm
    - Ctrl+Alt+Esc:   cancel (clears the search)
    """

    pressed = set()

    CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
    ALT_KEYS = {keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r}
    CHARS = {"t": Command.TILT, "s": Command.SHAKE, "d": Command.DIAGNOSTICS}

    def is_ctrl():
        return any(k in pressed for k in CTRL_KEYS)

    def is_alt():
        return any(k in pressed for k in ALT_KEYS)

    def on_press(k):
        pressed.add(k)
        if not (is_ctrl() and is_alt()):
            return
        if k == keyboard.Key.enter:
            commands.put(Command.CONFIRM)
        elif k == keyboard.Key.esc:
            commands.put(Command.CANCEL)
        else:
            ch = getattr(k, "char", None)
            if ch and ch.lower() in CHARS:
                commands.put(CHARS[ch.lower()])

    def on_release(k):
        pressed.discard(k)

    listener = keyboard.Listener(on_press=on_press, on_release=on_release)
    listener.start()
    return listener
