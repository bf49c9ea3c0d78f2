from reviewquiz.keys import (
    RESIZE_KEY,
    Key,
    MoveFocus,
    Quit,
    Resize,
    SelectLetter,
    Submit,
    ToggleCurrent,
    Unknown,
    decode_keys,
    dispatch,
)
from reviewquiz.session import FocusDirection


def test_decode_plain_and_control_keys() -> None:
    assert decode_keys(b"a \r\x03\x04") == [
        Key(char="a"),
        Key(name="space"),
        Key(name="enter"),
        Key(name="ctrl-c"),
        Key(name="ctrl-d"),
    ]


def test_decode_arrow_sequences() -> None:
    assert decode_keys(b"\x1b[A\x1b[B\x1bOA") == [Key(name="up"), Key(name="down"), Key(name="up")]


def test_decode_lone_escape_and_unknown_sequence() -> None:
    assert decode_keys(b"\x1b") == [Key(name="escape")]
    assert decode_keys(b"\x1b[5~") == [Key(name="unknown")]
    assert decode_keys(b"\x1b[") == [Key(name="unknown")]


def test_dispatch_navigation_and_commands() -> None:
    assert dispatch(Key(name="up"), 4) == MoveFocus(FocusDirection.UP)
    assert dispatch(Key(name="down"), 4) == MoveFocus(FocusDirection.DOWN)
    assert dispatch(Key(name="space"), 4) == ToggleCurrent()
    assert dispatch(Key(name="enter"), 4) == Submit()
    assert dispatch(RESIZE_KEY, 4) == Resize()


def test_dispatch_quit_keys() -> None:
    for name in ("escape", "ctrl-c", "ctrl-d"):
        assert dispatch(Key(name=name), 4) == Quit()


def test_letters_are_case_insensitive_and_bounded() -> None:
    assert dispatch(Key(char="a"), 4) == SelectLetter(0)
    assert dispatch(Key(char="D"), 4) == SelectLetter(3)
    assert dispatch(Key(char="e"), 4) == Unknown()
    assert dispatch(Key(char="q"), 4) == Unknown()
    assert dispatch(Key(char="J"), 10) == SelectLetter(9)


def test_non_letters_are_unknown() -> None:
    assert dispatch(Key(char="1"), 4) == Unknown()
    assert dispatch(Key(char="é"), 4) == Unknown()
    assert dispatch(Key(name="left"), 4) == Unknown()
    assert dispatch(Key(name="tab"), 4) == Unknown()
