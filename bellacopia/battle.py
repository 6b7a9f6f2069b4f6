"""The battle modal: framing around a minigame, from surprise flash to outcome."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .dialogue import Button, DrawOp, Measure, pressed
from .modal import Modal

LABEL_LIMIT = 8
SURPRISE_TIME = 1.0
OUTCOME_IN_PROGRESS = -2
INTRO_COLOR = 0x000000FF
FINAL_COLOR = 0x603010FF
LABEL_COLOR = 0xFFFFFFFF


class Minigame(Protocol):
    def update(self, elapsed: float) -> None: ...

    def render(self) -> object: ...


MinigameFactory = Callable[[int, int, Callable[[int], None]], "Minigame | None"]


class BattleStage(enum.IntEnum):
    SURPRISE = 1  # Screen flashes.
    INTRO = 2  # Generic introduction.
    PLAY = 3  # The minigame takes over.
    FINAL = 4  # Generic denouement.


@dataclass
class _Label:
    text: str
    w: int
    h: int
    x: int = 0
    y: int = 0


class BattleModal(Modal):
    """Runs one minigame.

    ``game(player_count, handicap, finish)`` starts the minigame, which calls
    ``finish(outcome)`` when done: outcome <0 player one wins, 0 draw,
    >0 player two or the computer wins.
    """

    def __init__(
        self,
        game: MinigameFactory,
        player_count: int,
        handicap: int,
        intro_text: str,
        measure: Measure,
        framebuffer_size: tuple[int, int] = (320, 180),
    ) -> None:
        super().__init__()
        if player_count not in (1, 2):
            raise ValueError(f"player count must be 1 or 2, got {player_count}")
        self.opaque = False  # Becomes opaque once the surprise stage completes.
        self.interactive = True
        self.player_count = player_count
        self.handicap = handicap
        self._measure = measure
        self.fbw, self.fbh = framebuffer_size
        self.outcome = OUTCOME_IN_PROGRESS
        self.stage = BattleStage.SURPRISE
        self.stageclock = SURPRISE_TIME
        self.labels: list[_Label] = []
        self._callback: Callable[[int], object] | None = None
        self.ctx = game(player_count, handicap, self.finish)
        if self.ctx is None:
            raise ValueError("minigame failed to start")
        if player_count >= 2:
            self.stage = BattleStage.INTRO
        self._add_label(intro_text)
        self._pack_labels()

    def _add_label(self, text: str) -> _Label | None:
        if len(self.labels) >= LABEL_LIMIT:
            return None
        w, h = self._measure(text, self.fbw, None)
        label = _Label(text, w, h)
        self.labels.append(label)
        return label

    def _pack_labels(self) -> None:
        total = sum(label.h for label in self.labels)
        y = (self.fbh >> 1) - (total >> 1)
        for label in self.labels:
            label.x = (self.fbw >> 1) - (label.w >> 1)
            label.y = y
            y += label.h

    def set_callback(self, callback: Callable[[int], object] | None) -> None:
        self._callback = callback

    def finish(self, outcome: int) -> None:
        """Record the minigame's outcome and move to the final stage."""
        self.outcome = outcome
        self.stage = BattleStage.FINAL
        self.labels.clear()
        mark = "+" if outcome > 0 else "-" if outcome < 0 else "?"
        self._add_label(f"outcome: {mark}")
        self._pack_labels()
        callback, self._callback = self._callback, None
        if callback is not None:
            callback(outcome)

    def handle_input(self, current: int, previous: int) -> None:
        if self.ctx is None:
            return
        if not pressed(current, previous, Button.SOUTH):
            return
        if self.stage == BattleStage.INTRO:
            self.stage = BattleStage.PLAY
        elif self.stage == BattleStage.FINAL:
            self.defunct = True

    def update(self, elapsed: float) -> None:
        if self.ctx is None:
            return
        if self.stage == BattleStage.SURPRISE:
            self.stageclock -= elapsed
            if self.stageclock <= 0.0:
                self.stage = BattleStage.INTRO
                self.opaque = True
        elif self.stage == BattleStage.PLAY:
            self.ctx.update(elapsed)

    def surprise_alpha(self) -> int:
        """Alpha of the flashing overlay during the surprise stage, 0..255."""
        adjp = self.stageclock * 3.0
        whole = max(int(adjp), 0)
        alpha = int((adjp - whole) * 255.0)
        return max(0, min(alpha, 0xFF))

    def _label_ops(self) -> list[DrawOp]:
        return [("text", label.text, label.x, label.y, label.w, label.h) for label in self.labels]

    def render(self) -> list[DrawOp]:
        """Draw operations, as for the dialogue; the minigame draws itself while playing."""
        full = (0, 0, self.fbw, self.fbh)
        if self.stage == BattleStage.SURPRISE:
            return [("fill", *full, 0xFF000000 | self.surprise_alpha())]
        if self.stage == BattleStage.INTRO:
            return [("fill", *full, INTRO_COLOR), *self._label_ops()]
        if self.stage == BattleStage.PLAY:
            if self.ctx is not None:
                self.ctx.render()
                return []
            return [("fill", *full, INTRO_COLOR)]
        return [("fill", *full, FINAL_COLOR), *self._label_ops()]

    def close(self) -> None:
        closer = getattr(self.ctx, "close", None)
        if closer is not None:
            closer()
        self.labels.clear()