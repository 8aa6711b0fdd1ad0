"""
Axis-aligned rectangles in model coordinates.

An :class:`Extent` is the clip rectangle given on the command line, as well
as the declared extent of every clipped file.
"""

import math
from typing import Iterable, Tuple

from imodclip.exceptions import ExtentError


class Extent:
    """
    Rectangle ``(llx, lly, urx, ury)``.

    Parameters
    ----------
    llx, lly : float
        Lower left corner.
    urx, ury : float
        Upper right corner.

    Raises
    ------
    ExtentError
        When ``llx > urx`` or ``lly > ury``, or when a coordinate is not finite.
    """

    __slots__ = ("llx", "lly", "urx", "ury")

    def __init__(self, llx: float, lly: float, urx: float, ury: float):
        llx, lly, urx, ury = (float(v) for v in (llx, lly, urx, ury))
        if not all(math.isfinite(v) for v in (llx, lly, urx, ury)):
            raise ExtentError(
                f"Extent coordinates must be finite, received ({llx}, {lly}, {urx}, {ury})"
            )
        if llx > urx or lly > ury:
            raise ExtentError(
                f"Invalid extent: lower left ({llx}, {lly}) lies beyond "
                f"upper right ({urx}, {ury})"
            )
        self.llx = llx
        self.lly = lly
        self.urx = urx
        self.ury = ury

    @classmethod
    def parse(cls, text: str) -> "Extent":
        """Parse ``"llx,lly,urx,ury"``; the values may also be space separated."""
        parts = text.replace(",", " ").split()
        if len(parts) != 4:
            raise ExtentError(
                f"Extent should have four values llx,lly,urx,ury, received: {text!r}"
            )
        try:
            values = [float(part) for part in parts]
        except ValueError as e:
            raise ExtentError(f"Could not parse extent {text!r}: {e}") from e
        return cls(*values)

    @classmethod
    def from_points(cls, x: Iterable[float], y: Iterable[float]) -> "Extent":
        """Bounding box of the coordinates."""
        x = list(x)
        y = list(y)
        if not x or not y:
            raise ValueError("Cannot compute the extent of zero points")
        return cls(min(x), min(y), max(x), max(y))

    @property
    def width(self) -> float:
        return self.urx - self.llx

    @property
    def height(self) -> float:
        return self.ury - self.lly

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.llx, self.lly, self.urx, self.ury)

    def union(self, other: "Extent") -> "Extent":
        return Extent(
            min(self.llx, other.llx),
            min(self.lly, other.lly),
            max(self.urx, other.urx),
            max(self.ury, other.ury),
        )

    def clip(self, other: "Extent") -> "Extent":
        """
        Intersection with another extent.

        When the extents do not intersect, the upper right corner collapses
        onto the lower left corner and a zero-area extent is returned.
        """
        llx = max(self.llx, other.llx)
        lly = max(self.lly, other.lly)
        urx = min(self.urx, other.urx)
        ury = min(self.ury, other.ury)
        return Extent(llx, lly, max(llx, urx), max(lly, ury))

    def intersects(self, other: "Extent") -> bool:
        """True when the intersection has a positive area."""
        return not (
            self.urx <= other.llx
            or self.ury <= other.lly
            or self.llx >= other.urx
            or self.lly >= other.ury
        )

    def overlaps(self, other: "Extent") -> bool:
        """True when the (closed) rectangles share at least one point."""
        return not (
            self.urx < other.llx
            or self.ury < other.lly
            or self.llx > other.urx
            or self.lly > other.ury
        )

    def contains(self, x: float, y: float) -> bool:
        """Point-in-rectangle test, boundaries included."""
        return self.llx <= x <= self.urx and self.lly <= y <= self.ury

    def contains_extent(self, other: "Extent") -> bool:
        return (
            self.llx <= other.llx
            and self.lly <= other.lly
            and other.urx <= self.urx
            and other.ury <= self.ury
        )

    def snap(
        self,
        xcellsize: float,
        ycellsize: float = None,
        enlarge: bool = False,
        xorigin: float = 0.0,
        yorigin: float = 0.0,
    ) -> "Extent":
        """
        Snap the corners to the grid lines ``origin + i * cellsize``.

        Without ``enlarge``, corners move to the nearest grid line; with
        ``enlarge``, the lower left corner moves down and the upper right
        corner up, so the snapped extent contains the original.
        """
        if ycellsize is None:
            ycellsize = xcellsize
        if xcellsize <= 0.0 or ycellsize <= 0.0:
            raise ValueError(
                f"Cell sizes must be positive, received {xcellsize} and {ycellsize}"
            )
        if enlarge:
            lower = math.floor
            upper = math.ceil
        else:
            lower = upper = round

        def snapped(value, origin, cellsize, rounding):
            n = (value - origin) / cellsize
            # a quotient like 2.9999999999999996 lies on a grid line
            if abs(n - round(n)) < 1.0e-9:
                n = round(n)
            return origin + rounding(n) * cellsize

        return Extent(
            snapped(self.llx, xorigin, xcellsize, lower),
            snapped(self.lly, yorigin, ycellsize, lower),
            snapped(self.urx, xorigin, xcellsize, upper),
            snapped(self.ury, yorigin, ycellsize, upper),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Extent):
            return NotImplemented
        return self.bounds == other.bounds

    def __hash__(self) -> int:
        return hash(self.bounds)

    def __iter__(self):
        return iter(self.bounds)

    def __repr__(self) -> str:
        return f"Extent(llx={self.llx}, lly={self.lly}, urx={self.urx}, ury={self.ury})"

    def __str__(self) -> str:
        return f"[({self.llx:.12g},{self.lly:.12g}),({self.urx:.12g},{self.ury:.12g})]"
