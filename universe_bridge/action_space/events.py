"""Wire-level input events: the vocabulary sent to the remote environment.

Every event is an immutable, slotted dataclass. An *action* is the ordered
list of events produced for one decision step: key events first (in key
layout order), then at most one pointer event.

Wire encoding
-------------
The remote binding consumes plain lists tagged by a string discriminator::

    ["KeyEvent", "ArrowUp", True]
    ["PointerEvent", 412, 233, 1.0]

``to_wire()`` produces that encoding; nothing upstream depends on it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List

# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Event(ABC):
    """Base class for all wire-level events."""

    @abstractmethod
    def to_wire(self) -> List[Any]:
        """Encode the event for the remote environment binding."""


@dataclass(frozen=True, slots=True)
class KeyEvent(Event):
    """Key press or release.

    Parameters
    ----------
    name : str
        Key name as understood by the remote environment (``"ArrowUp"``).
    pressed : bool
        True holds the key down, False releases it.
    """

    name: str
    pressed: bool

    def to_wire(self) -> List[Any]:
        return ["KeyEvent", self.name, self.pressed]


@dataclass(frozen=True, slots=True)
class PointerEvent(Event):
    """Pointer move with a click flag.

    Parameters
    ----------
    x, y : int
        Screen position in pixels (top-left origin).
    click : float
        Button mask in [0, 1]; 0 moves without clicking.
    """

    x: int
    y: int
    click: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.click <= 1.0:
            raise ValueError(f"click must be in [0, 1], got {self.click}")

    def to_wire(self) -> List[Any]:
        return ["PointerEvent", self.x, self.y, self.click]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def action_to_wire(events: Iterable[Event]) -> List[List[Any]]:
    """Encode a full action, preserving event order."""
    return [event.to_wire() for event in events]
