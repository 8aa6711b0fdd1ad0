"""
Reading and writing ESRI ASCII rasters (ASC).

An ASC file has six ``KEY value`` header lines, followed by the values row by
row, starting at the top row::

    NCOLS        3
    NROWS        2
    XLLCORNER    0.0
    YLLCORNER    0.0
    CELLSIZE     1.0
    NODATA_VALUE -9999
    1 2 3
    4 5 -9999

Keys, values and numbers may be separated by spaces, tabs or commas. Clipping
is done by converting to a :class:`imodclip.formats.idf.GridFile`, so that
IDF and ASC files are clipped identically.
"""

import pathlib
import re
from typing import Optional

import numpy as np

from imodclip.exceptions import FileInUseError, FormatError
from imodclip.extent import Extent
from imodclip.formats.idf import GridFile
from imodclip.outcome import ClipOutcome, NonEmpty
from imodclip.util.context import removed_on_error

HEADER_KEYS = ("ncols", "nrows", "xllcorner", "yllcorner", "cellsize", "nodata_value")
# Cell center variants of the corner keys
CENTER_KEYS = {"xllcorner": "xllcenter", "yllcorner": "yllcenter"}
_SEPARATORS = re.compile(r"[\s,]+")


def _format_value(value) -> str:
    # shortest representation that round-trips, without a trailing ".0"
    text = str(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


class AsciiGridFile:
    """
    An ASC raster.

    Parameters
    ----------
    values : numpy.ndarray
        Array of shape (nrows, ncols), top row first. Nodata cells hold
        ``nodata``.
    xll, yll : float
        Lower left corner.
    cellsize : float
    nodata : float
    path : Path, optional
        File the raster was read from.
    """

    def __init__(
        self,
        values: np.ndarray,
        xll: float,
        yll: float,
        cellsize: float,
        nodata: float,
        path: Optional[pathlib.Path] = None,
    ):
        values = np.asarray(values)
        if values.ndim != 2:
            raise ValueError(f"values must be 2D, received shape {values.shape}")
        if not cellsize > 0.0:
            raise ValueError(f"cellsize must be positive, received {cellsize}")
        self.values = values
        self.xll = float(xll)
        self.yll = float(yll)
        self.cellsize = float(cellsize)
        self.nodata = float(nodata)
        self.path = path

    @property
    def nrows(self) -> int:
        return self.values.shape[0]

    @property
    def ncols(self) -> int:
        return self.values.shape[1]

    @property
    def extent(self) -> Extent:
        return Extent(
            self.xll,
            self.yll,
            self.xll + self.ncols * self.cellsize,
            self.yll + self.nrows * self.cellsize,
        )

    @classmethod
    def read(cls, path) -> "AsciiGridFile":
        """
        Read an ASC file.

        Raises
        ------
        FormatError
            On a missing or malformed header line, an unparsable value, or a
            number of values that does not match ``ncols * nrows``.
        """
        path = pathlib.Path(path)
        with open(path) as f:
            header = {}
            for lineno, key in enumerate(HEADER_KEYS, start=1):
                line = f.readline()
                parts = _SEPARATORS.split(line.strip())
                name = parts[0].lower()
                if len(parts) < 2 or name not in (key, CENTER_KEYS.get(key)):
                    raise FormatError(
                        f"Expected ASC header line {key.upper()}, found: {line.strip()!r}",
                        path,
                        lineno,
                        unit="line",
                    )
                try:
                    header[name] = float(parts[1])
                except ValueError as e:
                    raise FormatError(
                        f"Invalid value for {key.upper()}: {parts[1]!r}",
                        path,
                        lineno,
                        unit="line",
                    ) from e
            text = f.read()

        ncols = int(header["ncols"])
        nrows = int(header["nrows"])
        if ncols < 1 or nrows < 1:
            raise FormatError(
                f"Invalid ASC dimensions: ncols={ncols}, nrows={nrows}", path, 1, "line"
            )
        tokens = _SEPARATORS.split(text.strip()) if text.strip() else []
        expected = ncols * nrows
        if len(tokens) > expected:
            raise FormatError(
                f"Too many values found in ASC-file: expected {expected}, found "
                f"{len(tokens)}; check the decimal separator",
                path,
                len(HEADER_KEYS) + 1,
                unit="line",
            )
        if len(tokens) < expected:
            raise FormatError(
                f"Too few values found in ASC-file: expected {expected}, found {len(tokens)}",
                path,
                len(HEADER_KEYS) + 1,
                unit="line",
            )
        try:
            values = np.array(tokens, dtype=np.float64).reshape(nrows, ncols)
        except ValueError as e:
            raise FormatError(
                f"Invalid value in ASC-file: {e}", path, len(HEADER_KEYS) + 1, "line"
            ) from e

        cellsize = header["cellsize"]
        for corner, center in CENTER_KEYS.items():
            if center in header:
                header[corner] = header.pop(center) - 0.5 * cellsize

        if not cellsize > 0.0:
            raise FormatError(f"Invalid ASC cellsize: {cellsize}", path, 5, "line")
        return cls(
            values,
            header["xllcorner"],
            header["yllcorner"],
            cellsize,
            header["nodata_value"],
            path=path,
        )

    def write(self, path) -> None:
        """
        Write to an ASC file.

        Raises
        ------
        FileInUseError
            If the file cannot be opened for writing.
        """
        path = pathlib.Path(path)
        try:
            f = open(path, "w")
        except PermissionError as e:
            raise FileInUseError(path, "ASC-file") from e
        with removed_on_error(path), f:
            f.write(f"NCOLS        {self.ncols}\n")
            f.write(f"NROWS        {self.nrows}\n")
            f.write(f"XLLCORNER    {_format_value(self.xll)}\n")
            f.write(f"YLLCORNER    {_format_value(self.yll)}\n")
            f.write(f"CELLSIZE     {_format_value(self.cellsize)}\n")
            f.write(f"NODATA_VALUE {_format_value(self.nodata)}\n")
            values = np.where(np.isnan(self.values), self.nodata, self.values)
            for row in values:
                f.write(" ".join(_format_value(v) for v in row))
                f.write("\n")

    def to_grid(self) -> GridFile:
        """Convert to a GridFile, with NaN for nodata cells."""
        values = self.values.astype(np.float64)
        if not np.isnan(self.nodata):
            values = np.where(np.isclose(values, self.nodata), np.nan, values)
        return GridFile(
            values,
            self.extent,
            self.cellsize,
            self.cellsize,
            self.nodata,
            dtype=np.float64,
            path=self.path,
        )

    @classmethod
    def from_grid(cls, grid: GridFile) -> "AsciiGridFile":
        """
        Convert a GridFile. ASC files only support equidistant, square cells.
        """
        if not grid.is_equidistant or not np.isclose(grid.xcellsize, grid.ycellsize):
            raise ValueError(
                "Only grids with equidistant, square cells can be stored as ASC, "
                f"received xcellsize={grid.xcellsize}, ycellsize={grid.ycellsize}"
            )
        values = grid.values.fillna(grid.nodata).values
        return cls(
            values,
            grid.extent.llx,
            grid.extent.lly,
            float(grid.xcellsize),
            grid.nodata,
            path=grid.path,
        )

    def clip(self, extent: Extent) -> ClipOutcome:
        """Clip to an extent, with the rules of :meth:`GridFile.clip`."""
        outcome = self.to_grid().clip(extent)
        if isinstance(outcome, NonEmpty):
            return NonEmpty(AsciiGridFile.from_grid(outcome.file))
        return outcome

    def placeholder(self, extent: Extent) -> "AsciiGridFile":
        """A nodata raster over ``extent``, aligned with the cells of this raster."""
        return AsciiGridFile.from_grid(self.to_grid().placeholder(extent))

    def reset_to_nodata(self) -> None:
        self.values = np.full(self.values.shape, self.nodata, dtype=self.values.dtype)

    def has_data_values(self) -> bool:
        """True when any cell holds a value other than nodata."""
        return self.to_grid().has_data_values()

    def __repr__(self) -> str:
        return (
            f"AsciiGridFile(ncols={self.ncols}, nrows={self.nrows}, xll={self.xll}, "
            f"yll={self.yll}, cellsize={self.cellsize}, nodata={self.nodata})"
        )


def read(path) -> AsciiGridFile:
    """Read an ASC file, see :meth:`AsciiGridFile.read`."""
    return AsciiGridFile.read(path)


def write(path, grid: AsciiGridFile) -> None:
    """Write an AsciiGridFile, see :meth:`AsciiGridFile.write`."""
    grid.write(path)
