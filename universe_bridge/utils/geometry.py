"""Screen-space rectangles for pointer legality.

Provides:
    - Region: integer axis-aligned rectangle (x, y, width, height)
    - Half-open point containment and inclusive point clamping
    - any_contains(): test a point against a list of regions

Used by:
    - Action space: bounding region for pointer events, forbidden click zones
    - Config loader: conversion from the environments.v1 schema

All coordinates are integer screen pixels, origin at the top-left, +Y down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True, slots=True)
class Region:
    """Axis-aligned screen rectangle.

    Parameters
    ----------
    x, y : int
        Top-left corner in pixels.
    width, height : int
        Size in pixels, >= 0. Zero-sized regions are legal: they contain
        no points and clip every point to the corner.
    """

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Region size must be non-negative, got {self.width}x{self.height}"
            )

    @classmethod
    def from_xywh(cls, xywh: Iterable[int]) -> Region:
        x, y, width, height = (int(v) for v in xywh)
        return cls(x=x, y=y, width=width, height=height)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        """Return (xmin, ymin, xmax, ymax) with exclusive max bounds."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def contains(self, x: int, y: int) -> bool:
        """Check if a point is inside the rectangle.

        Intervals are half-open: x in [x0, x0+w), y in [y0, y0+h).
        """
        return (
            self.x <= x < self.x + self.width
            and self.y <= y < self.y + self.height
        )

    def clip(self, x: int, y: int) -> Tuple[int, int]:
        """Clamp a point into the rectangle's inclusive bounds.

        Parameters
        ----------
        x, y : int
            Point to clamp

        Returns
        -------
        Tuple[int, int]
            Point in [x0, x0+w-1] x [y0, y0+h-1]

        Notes
        -----
        Each axis is clamped independently. The lower bound wins when the
        upper bound falls below it, so a zero-sized axis collapses to x0 (y0).
        """
        new_x = max(min(x, self.x + self.width - 1), self.x)
        new_y = max(min(y, self.y + self.height - 1), self.y)
        return new_x, new_y


def any_contains(regions: Iterable[Region], x: int, y: int) -> bool:
    """Return True if any region contains the point (x, y)."""
    return any(region.contains(x, y) for region in regions)
