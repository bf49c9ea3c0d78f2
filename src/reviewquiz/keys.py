"""Raw key decoding and mapping to semantic quiz actions."""

from __future__ import annotations

from dataclasses import dataclass

from .session import FocusDirection

CTRL_C = "\x03"
CTRL_D = "\x04"
ESCAPE = "\x1b"

_CSI_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}


@dataclass(frozen=True)
class Key:
    """One decoded key event.

    Special keys carry a ``name`` (``"up"``, ``"enter"``, ``"resize"``...),
    printable keys carry the typed ``char``.
    """

    name: str = ""
    char: str = ""


RESIZE_KEY = Key(name="resize")


@dataclass(frozen=True)
class MoveFocus:
    direction: FocusDirection


@dataclass(frozen=True)
class ToggleCurrent:
    pass


@dataclass(frozen=True)
class SelectLetter:
    index: int


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Resize:
    pass


@dataclass(frozen=True)
class Unknown:
    pass


Action = MoveFocus | ToggleCurrent | SelectLetter | Submit | Quit | Resize | Unknown


def decode_keys(data: bytes) -> list[Key]:
    """Split one raw terminal read into key events."""
    text = data.decode("utf-8", errors="replace")
    keys: list[Key] = []
    position = 0
    while position < len(text):
        char = text[position]
        if char == ESCAPE:
            if text.startswith("[", position + 1) or text.startswith("O", position + 1):
                end = position + 2
                while end < len(text) and not ("@" <= text[end] <= "~"):
                    end += 1
                if end < len(text):
                    final = text[end]
                    keys.append(Key(name=_CSI_KEYS.get(final, "unknown")))
                    position = end + 1
                    continue
                keys.append(Key(name="unknown"))
                break
            keys.append(Key(name="escape"))
            position += 1
            continue
        if char in ("\r", "\n"):
            keys.append(Key(name="enter"))
        elif char == CTRL_C:
            keys.append(Key(name="ctrl-c"))
        elif char == CTRL_D:
            keys.append(Key(name="ctrl-d"))
        elif char == "\t":
            keys.append(Key(name="tab"))
        elif char == " ":
            keys.append(Key(name="space"))
        elif char.isprintable():
            keys.append(Key(char=char))
        else:
            keys.append(Key(name="unknown"))
        position += 1
    return keys


def dispatch(key: Key, option_count: int) -> Action:
    """Map a key event to a quiz action for a question with ``option_count`` options."""
    match key.name:
        case "up":
            return MoveFocus(FocusDirection.UP)
        case "down":
            return MoveFocus(FocusDirection.DOWN)
        case "space":
            return ToggleCurrent()
        case "enter":
            return Submit()
        case "escape" | "ctrl-c" | "ctrl-d":
            return Quit()
        case "resize":
            return Resize()
        case "":
            return _dispatch_char(key.char, option_count)
    return Unknown()


def _dispatch_char(char: str, option_count: int) -> Action:
    if len(char) != 1 or not ("a" <= char.lower() <= "z"):
        return Unknown()
    index = ord(char.lower()) - ord("a")
    if index >= option_count:
        return Unknown()
    return SelectLetter(index)
