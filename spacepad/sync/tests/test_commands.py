import pytest

from spacepad.sync.commands import DEFAULT_SYNONYMS, Command, CommandParser, canonicalize


@pytest.mark.parametrize("text", ["xyzzy", "plugh", "plover", "abracadabra", "open sesame", "  Open, Sesame!! ", "XYZZY."])
def test_trigger_words_share_one_command(text):
    assert CommandParser().parse(text) == Command.DIAGNOSTICS


@pytest.mark.parametrize("text", ["find rockets", "yes please", "", "xyz zy"])
def test_unmatched_text_is_no_command(text):
    assert CommandParser().parse(text) is None


def test_every_synonym_maps_back():
    p = CommandParser()
    for command, words in DEFAULT_SYNONYMS.items():
        for w in words:
            assert p.parse(w) == command


def test_confirm_and_cancel():
    p = CommandParser()
    assert p.parse("Yes!") == Command.CONFIRM
    assert p.parse("do   it") == Command.CONFIRM
    assert p.parse("Never mind.") == Command.CANCEL
    assert p.parse("toggle tilt") == Command.TILT


def test_canonicalize():
    assert canonicalize("  Never   MIND. ") == "never mind"
    assert canonicalize("O.K.?") == "ok"
    assert canonicalize("\tshake\nmode ") == "shake mode"


def test_conflicting_table_rejected():
    with pytest.raises(ValueError):
        CommandParser({Command.CONFIRM: ["ok"], Command.CANCEL: ["OK!"]})


def test_words_lists_canonical_synonyms():
    assert CommandParser().words(Command.TILT) == ["tilt", "tilt mode", "toggle tilt"]
