"""Bubble state machine for bubbles.

States cycle on every flip:

    initial -> started -> done -> aborted -> initial

A bubble with no persisted row is implicitly initial, but its first flip
goes straight to started. Unknown persisted values are read as initial.

Import advance() from here. Do not duplicate this logic.
"""

from enum import Enum


class BubbleState(str, Enum):
    INITIAL = "initial"
    STARTED = "started"
    DONE = "done"
    ABORTED = "aborted"

    @classmethod
    def from_persisted(cls, value: str | None) -> "BubbleState":
        """Read a stored state value; anything unrecognized is INITIAL."""
        try:
            return cls(value)
        except ValueError:
            return cls.INITIAL

    def next(self) -> "BubbleState":
        return _CYCLE[self]

    @property
    def fill_color(self) -> str | None:
        """Graphviz fill color, or None for an unfilled node."""
        return _FILL_COLORS.get(self)


_CYCLE = {
    BubbleState.INITIAL: BubbleState.STARTED,
    BubbleState.STARTED: BubbleState.DONE,
    BubbleState.DONE: BubbleState.ABORTED,
    BubbleState.ABORTED: BubbleState.INITIAL,
}

_FILL_COLORS = {
    BubbleState.STARTED: "yellow",
    BubbleState.DONE: "lightgreen",
    BubbleState.ABORTED: "red",
}


def advance(persisted: str | None, exists: bool = True) -> BubbleState:
    """Return the state a flip moves to from the persisted value.

    With no row at all (``exists=False``) the result is STARTED.
    """
    if not exists:
        return BubbleState.STARTED
    return BubbleState.from_persisted(persisted).next()
