"""
Clipping of vertex arrays to an axis-aligned rectangle.

Vertex arrays have shape ``(n, 2)`` or ``(n, 3)``; a z coordinate is
interpolated linearly along with x and y.
"""

from typing import List, Optional

import numpy as np

from imodclip.extent import Extent


def signed_area(xy: np.ndarray) -> float:
    """Shoelace formula; positive for counter-clockwise rings."""
    x = xy[:, 0]
    y = xy[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def _boundaries(extent: Extent):
    # (axis, value, keep greater side): left, right, bottom, top
    return (
        (0, extent.llx, True),
        (0, extent.urx, False),
        (1, extent.lly, True),
        (1, extent.ury, False),
    )


def _intersect(p: np.ndarray, q: np.ndarray, axis: int, value: float) -> np.ndarray:
    t = (value - p[axis]) / (q[axis] - p[axis])
    point = p + t * (q - p)
    point[axis] = value
    return point


def _clip_ring(ring: np.ndarray, axis: int, value: float, keep_greater: bool):
    def inside(p):
        return p[axis] >= value if keep_greater else p[axis] <= value

    out = []
    previous = ring[-1]
    for current in ring:
        if inside(current):
            if not inside(previous):
                out.append(_intersect(previous, current, axis, value))
            out.append(current)
        elif inside(previous):
            out.append(_intersect(previous, current, axis, value))
        previous = current
    return out


def _drop_repeated(vertices: np.ndarray) -> np.ndarray:
    keep = np.ones(len(vertices), dtype=bool)
    keep[1:] = np.any(vertices[1:, :2] != vertices[:-1, :2], axis=1)
    return vertices[keep]


def clip_polygon(vertices: np.ndarray, extent: Extent) -> Optional[np.ndarray]:
    """
    Sutherland-Hodgman clipping of a closed ring (first vertex equals last).

    Returns the clipped, closed ring with the orientation of the input, or
    None when the clipped polygon has no area.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    ring = list(vertices[:-1])
    for axis, value, keep_greater in _boundaries(extent):
        if not ring:
            return None
        ring = _clip_ring(np.asarray(ring), axis, value, keep_greater)
    if len(ring) < 3:
        return None

    ring = _drop_repeated(np.asarray(ring))
    if len(ring) > 1 and np.array_equal(ring[0, :2], ring[-1, :2]):
        ring = ring[:-1]
    if len(ring) < 3:
        return None
    area = signed_area(ring)
    if area == 0.0:
        return None
    if np.sign(area) != np.sign(signed_area(vertices[:-1])):
        ring = ring[::-1]
    return np.vstack([ring, ring[:1]])


def clip_segment(p: np.ndarray, q: np.ndarray, extent: Extent):
    """
    Liang-Barsky clipping of the segment ``p-q``.

    Returns the clipped ``(start, end)`` vertices, or None when the segment
    lies outside the extent.
    """
    d = q - p
    t0 = 0.0
    t1 = 1.0
    for pk, qk in (
        (-d[0], p[0] - extent.llx),
        (d[0], extent.urx - p[0]),
        (-d[1], p[1] - extent.lly),
        (d[1], extent.ury - p[1]),
    ):
        if pk == 0.0:
            if qk < 0.0:
                return None
            continue
        t = qk / pk
        if pk < 0.0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    start = p if t0 == 0.0 else p + t0 * d
    end = q if t1 == 1.0 else p + t1 * d
    return start, end


def clip_line(vertices: np.ndarray, extent: Extent) -> List[np.ndarray]:
    """
    Clip a polyline. A line leaving and re-entering the extent results in
    multiple parts; parts without length are dropped.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    parts = []
    current: List[np.ndarray] = []

    def close():
        if len(current) > 1:
            part = _drop_repeated(np.asarray(current))
            if len(part) > 1:
                parts.append(part)

    for p, q in zip(vertices[:-1], vertices[1:]):
        clipped = clip_segment(p, q, extent)
        if clipped is None:
            close()
            current = []
            continue
        start, end = clipped
        if current and np.array_equal(current[-1], start):
            current.append(end)
        else:
            close()
            current = [start, end]
    close()
    return parts
