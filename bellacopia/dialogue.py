"""A dialogue box: one block of text with optional enumerated choices."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from .modal import Modal

CHOICE_LIMIT = 8
CURSOR_MARGIN = 20
MARGIN_LEFT = 3
MARGIN_RIGHT = 3
MARGIN_TOP = 3
MARGIN_BOTTOM = 2  # The font has some foot room of its own.
FOOT_SPACE = 4  # Below the box.
BOX_COLOR = 0x000000FF
CURSOR_TILE = 0x25

Measure = Callable[[str, int, "int | None"], "tuple[int, int]"]
Sound = Callable[[str], None]
DrawOp = tuple


class Button(enum.IntFlag):
    """Gamepad button bits."""

    LEFT = 0x0001
    RIGHT = 0x0002
    UP = 0x0004
    DOWN = 0x0008
    SOUTH = 0x0010
    WEST = 0x0020
    EAST = 0x0040
    NORTH = 0x0080
    L1 = 0x0100
    R1 = 0x0200
    L2 = 0x0400
    R2 = 0x0800
    AUX1 = 0x1000
    AUX2 = 0x2000
    AUX3 = 0x4000


_BLACKOUT_MASK = Button.LEFT | Button.RIGHT | Button.UP | Button.DOWN | Button.SOUTH | Button.WEST


def pressed(current: int, previous: int, button: int) -> bool:
    """True if ``button`` went down between ``previous`` and ``current``."""
    return bool(current & button) and not previous & button


@dataclass
class Choice:
    """One selectable answer. Positions are in framebuffer pixels."""

    text: str
    choice_id: int
    w: int = 0
    h: int = 0
    x: int = 0
    y: int = 0


class DialogueModal(Modal):
    """A box of text near the bottom of the screen, with an optional menu of choices.

    ``measure(text, max_width, max_height)`` returns the rendered size of a text;
    ``max_height`` is None for a single line. ``sound(name)`` plays a UI sound.
    The callback gets the chosen id, 0 when acknowledged without choices,
    or -1 when cancelled. It is called at most once.
    """

    def __init__(
        self,
        measure: Measure,
        framebuffer_size: tuple[int, int] = (320, 180),
        sound: Sound | None = None,
    ) -> None:
        super().__init__()
        self.opaque = False
        self.interactive = True
        self._measure = measure
        self.fbw, self.fbh = framebuffer_size
        self._sound = sound
        self.text = ""
        self.texw = self.texh = 0
        self.texx = self.texy = 0
        self.choices: list[Choice] = []
        self.choicep = 0
        self._callback: Callable[[int], object] | None = None
        self.bounds_dirty = True
        self.boxx = self.boxy = self.boxw = self.boxh = 0
        self.input_blackout = True

    def _play(self, name: str) -> None:
        if self._sound is not None:
            self._sound(name)

    def set_text(self, text: str | None) -> None:
        """Replace the message."""
        self.text = text or ""
        wlimit = (self.fbw * 3) // 4
        hlimit = self.fbh // 3
        self.texw, self.texh = self._measure(self.text, wlimit, hlimit)
        self.bounds_dirty = True

    def set_callback(self, callback: Callable[[int], object] | None) -> None:
        self._callback = callback

    def _unused_choice_id(self) -> int:
        return max((choice.choice_id for choice in self.choices), default=0) + 1

    def add_choice(self, text: str, choice_id: int = 0) -> int:
        """Append a choice and return its id; an id below 1 is made up."""
        if len(self.choices) >= CHOICE_LIMIT:
            raise ValueError(f"a dialogue holds at most {CHOICE_LIMIT} choices")
        if choice_id < 1:
            choice_id = self._unused_choice_id()
        w, h = self._measure(text, self.fbw, None)
        self.choices.append(Choice(text, choice_id, w, h))
        self.bounds_dirty = True
        return choice_id

    def layout(self) -> None:
        """Size and place the box, the message and the choices."""
        inw = self.texw
        inh = self.texh
        for choice in self.choices:
            inw = max(inw, CURSOR_MARGIN + choice.w)
            inh += choice.h
        self.boxw = MARGIN_LEFT + inw + MARGIN_RIGHT
        self.boxh = MARGIN_TOP + inh + MARGIN_BOTTOM
        self.boxx = (self.fbw >> 1) - (self.boxw >> 1)
        self.boxy = self.fbh - FOOT_SPACE - self.boxh
        self.texx = self.boxx + MARGIN_LEFT
        self.texy = self.boxy + MARGIN_TOP
        y = self.texy + self.texh
        for choice in self.choices:
            choice.x = self.boxx + MARGIN_LEFT + CURSOR_MARGIN
            choice.y = y
            y += choice.h
        self.bounds_dirty = False

    def move(self, d: int) -> None:
        """Move the cursor by ``d`` choices, wrapping at the ends."""
        if not self.choices:
            return
        self._play("uimotion")
        self.choicep += d
        if self.choicep < 0:
            self.choicep = len(self.choices) - 1
        elif self.choicep >= len(self.choices):
            self.choicep = 0

    def _finish(self, choice_id: int) -> None:
        self.defunct = True
        callback, self._callback = self._callback, None
        if callback is not None:
            callback(choice_id)

    def activate(self) -> None:
        """Accept the highlighted choice, or acknowledge a plain message."""
        if self.choices:
            if not 0 <= self.choicep < len(self.choices):
                return
            self._play("uiactivate")
            self._finish(self.choices[self.choicep].choice_id)
        else:
            self._play("uiactivate")
            self._finish(0)

    def cancel(self) -> None:
        self._play("uicancel")
        self._finish(-1)

    def handle_input(self, current: int, previous: int) -> None:
        """React to the player's buttons; held buttons are ignored until released."""
        if self.input_blackout:
            if not current & _BLACKOUT_MASK:
                self.input_blackout = False
            return
        if current == previous:
            return
        if pressed(current, previous, Button.UP):
            self.move(-1)
        elif pressed(current, previous, Button.DOWN):
            self.move(-1)
        if pressed(current, previous, Button.SOUTH):
            self.activate()
        elif pressed(current, previous, Button.WEST):
            self.cancel()

    def update(self, elapsed: float) -> None:
        if self.bounds_dirty:
            self.layout()

    def render(self) -> list[DrawOp]:
        """Draw operations: ("fill", x, y, w, h, rgba), ("text", text, x, y, w, h)
        and ("tile", image, x, y, tileid, xform)."""
        ops: list[DrawOp] = [
            ("fill", self.boxx, self.boxy, self.boxw, self.boxh, BOX_COLOR),
            ("text", self.text, self.texx, self.texy, self.texw, self.texh),
        ]
        for choice in self.choices:
            ops.append(("text", choice.text, choice.x, choice.y, choice.w, choice.h))
        if self.choices and 0 <= self.choicep < len(self.choices):
            choice = self.choices[self.choicep]
            ops.append(("tile", "pause", choice.x - 10, choice.y + (choice.h >> 1), CURSOR_TILE, 0))
        return ops