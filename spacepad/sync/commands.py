from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Mapping, Optional

_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


class Command(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    DIAGNOSTICS = "diagnostics"
    TILT = "tilt"
    SHAKE = "shake"


DEFAULT_SYNONYMS: Mapping[Command, tuple[str, ...]] = {
    Command.CONFIRM: ("yes", "yeah", "yep", "yup", "sure", "ok", "okay", "affirmative", "do it"),
    Command.CANCEL: ("no", "nope", "nah", "negative", "cancel", "never mind"),
    # hidden trigger words
    Command.DIAGNOSTICS: ("xyzzy", "plugh", "plover", "abracadabra", "open sesame"),
    Command.TILT: ("tilt", "tilt mode", "toggle tilt"),
    Command.SHAKE: ("shake", "shake mode", "toggle shake"),
}


def canonicalize(text: str) -> str:
    """Lower-case, trim, drop punctuation, collapse whitespace."""
    t = _PUNCT.sub("", text.lower())
    return _SPACES.sub(" ", t).strip()


class CommandParser:
    """
    Maps free text onto a side-channel command by exact match of its
    canonical form. Text that matches nothing is the caller's search query.
    """

    def __init__(self, synonyms: Mapping[Command, Iterable[str]] = DEFAULT_SYNONYMS) -> None:
        self._table: dict[str, Command] = {}
        for command, words in synonyms.items():
            for w in words:
                key = canonicalize(w)
                if key in self._table and self._table[key] != command:
                    raise ValueError(f"{w!r} maps to both {self._table[key].value} and {command.value}")
                self._table[key] = command

    def parse(self, text: str) -> Optional[Command]:
        return self._table.get(canonicalize(text))

    def words(self, command: Command) -> list[str]:
        return sorted(k for k, v in self._table.items() if v == command)
