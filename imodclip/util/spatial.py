"""
Cell geometry of rasters: cell edges and cell center coordinates.

Grids are stored top row first, so y edges and y coordinates decrease.
"""

from typing import Any, Dict, Union

import numpy as np

CellSize = Union[float, np.ndarray]


def is_equidistant(cellsize: CellSize) -> bool:
    return np.ndim(cellsize) == 0


def cell_edges(start: float, end: float, cellsize: CellSize, n: int) -> np.ndarray:
    """
    The ``n + 1`` edges of ``n`` cells from ``start`` towards ``end``.

    ``cellsize`` is a float for equidistant cells, or an array of ``n``
    (positive) sizes. For decreasing edges, pass ``start > end``. The last
    edge is set to ``end`` exactly, so it does not accumulate rounding errors.
    """
    sign = 1.0 if end >= start else -1.0
    if is_equidistant(cellsize):
        edges = start + sign * float(cellsize) * np.arange(n + 1, dtype=np.float64)
    else:
        sizes = np.abs(np.asarray(cellsize, dtype=np.float64))
        edges = np.empty(n + 1, dtype=np.float64)
        edges[0] = start
        edges[1:] = start + sign * np.cumsum(sizes)
    edges[-1] = end
    return edges


def _xycoords(bounds, cellsizes, shape) -> Dict[str, Any]:
    """
    Based on bounds, cellsizes and shape, construct coords with spatial
    information for a ``("y", "x")`` DataArray.

    Parameters
    ----------
    bounds : tuple
        (xmin, xmax, ymin, ymax)
    cellsizes : tuple
        (dx, dy), positive floats, or arrays for nonequidistant grids.
    shape : tuple
        (nrow, ncol)
    """
    xmin, xmax, ymin, ymax = bounds
    dx, dy = cellsizes
    nrow, ncol = shape
    xedges = cell_edges(xmin, xmax, dx, ncol)
    yedges = cell_edges(ymax, ymin, dy, nrow)
    coords: Dict[str, Any] = {}
    coords["x"] = 0.5 * (xedges[:-1] + xedges[1:])
    coords["y"] = 0.5 * (yedges[:-1] + yedges[1:])
    # dy is negative, consistent with the decreasing y coordinate
    if is_equidistant(dx):
        coords["dx"] = np.array(float(dx))
    else:
        coords["dx"] = ("x", np.asarray(dx, dtype=np.float64))
    if is_equidistant(dy):
        coords["dy"] = np.array(-float(dy))
    else:
        coords["dy"] = ("y", -np.asarray(dy, dtype=np.float64))
    return coords


def overlapping_cells(
    edges: np.ndarray, lower: float, upper: float, tolerance: float
) -> np.ndarray:
    """
    Indices of the cells overlapping the interval ``[lower, upper]`` by more
    than ``tolerance``.

    ``edges`` may be increasing or decreasing.
    """
    a = np.minimum(edges[:-1], edges[1:])
    b = np.maximum(edges[:-1], edges[1:])
    overlap = np.minimum(b, upper) - np.maximum(a, lower)
    return np.nonzero(overlap > tolerance)[0]
