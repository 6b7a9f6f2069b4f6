"""Modal layers and the stack that updates and renders them."""

from __future__ import annotations

import abc
from collections.abc import Callable, Iterator

MODAL_LIMIT = 16


class ModalStackError(Exception):
    """Raised when a modal cannot be pushed."""


class Modal(abc.ABC):
    """One layer of the user interface.

    ``opaque`` hides layers below from rendering and updating.
    ``interactive`` demotes layers below to background updates.
    """

    def __init__(self) -> None:
        self.defunct = False
        self.opaque = False
        self.interactive = False
        self.foreground_time = 0.0
        self.background_time = 0.0

    def update(self, elapsed: float) -> None:
        """Foreground update, for the topmost interactive modal and all above it."""
        self.foreground_time += elapsed

    def update_background(self, elapsed: float) -> None:
        """Update while visible but below an interactive modal."""
        self.background_time += elapsed

    @abc.abstractmethod
    def render(self) -> None:
        """Draw this modal."""

    def close(self) -> None:
        """Release resources when the modal is dropped."""
        self.defunct = True


class ModalStack:
    """Ordered stack of modals, bottom first."""

    def __init__(self, limit: int = MODAL_LIMIT, blackout: Callable[[], None] | None = None) -> None:
        self._limit = limit
        self._blackout = blackout
        self._modals: list[Modal] = []

    def __len__(self) -> int:
        return len(self._modals)

    def __iter__(self) -> Iterator[Modal]:
        return iter(self._modals)

    def __contains__(self, modal: object) -> bool:
        return self.index(modal) is not None

    def push(self, modal: Modal) -> None:
        if modal.defunct:
            raise ModalStackError("refusing to push a defunct modal")
        if len(self._modals) >= self._limit:
            raise ModalStackError("modal stack is full")
        if modal in self:
            raise ModalStackError("modal is already stacked")
        self._modals.append(modal)

    def pull(self, modal: Modal) -> None:
        """Remove a modal without closing it; absent modals are ignored."""
        index = self.index(modal)
        if index is not None:
            del self._modals[index]

    def index(self, modal: object) -> int | None:
        return next((i for i, item in enumerate(self._modals) if item is modal), None)

    def top_of_type(self, modal_type: type) -> Modal | None:
        return next((m for m in reversed(self._modals) if isinstance(m, modal_type)), None)

    def bottom_of_type(self, modal_type: type) -> Modal | None:
        return next((m for m in self._modals if isinstance(m, modal_type)), None)

    def update_all(self, elapsed: float) -> None:
        """Update visible modals from the top down, then any pushed meanwhile."""
        foreground = True
        initial = list(self._modals)
        for modal in reversed(initial):
            if modal.defunct:
                continue
            if foreground:
                modal.update(elapsed)
                if modal.interactive:
                    foreground = False
            else:
                modal.update_background(elapsed)
            if modal.opaque:
                break
        for modal in self._modals[len(initial):]:
            if not modal.defunct:
                modal.update(elapsed)

    def render_all(self) -> None:
        """Render from the topmost opaque modal upward, blacking out if none is opaque."""
        start = next(
            (i for i in range(len(self._modals) - 1, -1, -1) if self._modals[i].opaque),
            None,
        )
        if start is None:
            if self._blackout is not None:
                self._blackout()
            start = 0
        for modal in self._modals[start:]:
            modal.render()

    def drop_defunct(self) -> None:
        """Remove and close every defunct modal."""
        for modal in reversed(list(self._modals)):
            if modal.defunct:
                self.pull(modal)
                modal.close()