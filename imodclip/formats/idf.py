"""
Reading, clipping and writing iMOD Data Files (IDFs).

An IDF is a binary raster: a header with the number of columns and rows, the
extent, the cell sizes and the nodata value, followed by the values row by
row, starting at the top row. Single precision files store 4 byte integers
and floats, double precision files 8 byte ones.

The primary class is :class:`GridFile`; :func:`header` is available as a
lower level function.
"""

import os
import pathlib
import struct
from typing import Any, Dict, Optional

import dask
import dask.array
import numpy as np
import xarray as xr

from imodclip.exceptions import ExtentError, FileInUseError, FormatError
from imodclip.extent import Extent
from imodclip.outcome import ClipOutcome, Empty, NonEmpty
from imodclip.util import spatial
from imodclip.util.context import ignore_warnings, removed_on_error

# Lahey record length identifiers
SINGLE_PRECISION = 1271
DOUBLE_PRECISION = 2295
# 2296 was a typo in the iMOD manual. Some IDFs may have been written with it.
DOUBLE_PRECISION_TYPO = 2296

# Fraction of a cell that must overlap the clip extent for the cell to be kept
CELL_OVERLAP_TOLERANCE = 1.0e-6


def _unpack(f, fmt: str, path):
    size = struct.calcsize(fmt)
    offset = f.tell()
    data = f.read(size)
    if len(data) < size:
        raise FormatError("Unexpected end of IDF header", path, offset)
    return struct.unpack(fmt, data)[0]


def _read_array(f, dtype, count: int, path) -> np.ndarray:
    offset = f.tell()
    a = np.fromfile(f, dtype, count)
    if a.size < count:
        raise FormatError("Unexpected end of IDF header", path, offset)
    return a


def header(path) -> Dict[str, Any]:
    """
    Read the IDF header information into a dictionary.

    Raises
    ------
    FormatError
        If the record length identifier is not supported, the header is
        truncated or describes an impossible grid.
    """
    with open(path, "rb") as f:
        reclen_id = _unpack(f, "<i", path)
        if reclen_id == SINGLE_PRECISION:
            floatformat = "<f"
            intformat = "<i"
            dtype = np.dtype("<f4")
            doubleprecision = False
        elif reclen_id in (DOUBLE_PRECISION, DOUBLE_PRECISION_TYPO):
            floatformat = "<d"
            intformat = "<q"
            dtype = np.dtype("<f8")
            doubleprecision = True
        else:
            raise FormatError(
                "Not a supported IDF file: record length identifier should be "
                f"{SINGLE_PRECISION} or {DOUBLE_PRECISION}, received {reclen_id} instead.",
                path,
                0,
            )

        # Header is fully doubled in size in case of double precision,
        # integers take 8 bytes as well and padding is required.
        if doubleprecision:
            f.read(4)  # not used

        attrs: Dict[str, Any] = {"reclen_id": reclen_id}
        ncol = _unpack(f, intformat, path)
        nrow = _unpack(f, intformat, path)
        attrs["xmin"] = _unpack(f, floatformat, path)
        attrs["xmax"] = _unpack(f, floatformat, path)
        attrs["ymin"] = _unpack(f, floatformat, path)
        attrs["ymax"] = _unpack(f, floatformat, path)
        # dmin and dmax are recomputed during writing
        attrs["dmin"] = _unpack(f, floatformat, path)
        attrs["dmax"] = _unpack(f, floatformat, path)
        attrs["nodata"] = _unpack(f, floatformat, path)
        # flip definition here such that True means equidistant
        ieq = not _unpack(f, "?", path)
        itb = _unpack(f, "?", path)
        f.read(2)  # not used
        if doubleprecision:
            f.read(4)  # not used

        if ncol < 1 or nrow < 1:
            raise FormatError(
                f"Invalid IDF dimensions: ncol={ncol}, nrow={nrow}", path, 4
            )

        if ieq:
            attrs["dx"] = _unpack(f, floatformat, path)
            attrs["dy"] = _unpack(f, floatformat, path)
            if not (attrs["dx"] > 0.0 and attrs["dy"] > 0.0):
                raise FormatError(
                    f"Invalid IDF cell sizes: dx={attrs['dx']}, dy={attrs['dy']}",
                    path,
                    f.tell(),
                )

        if itb:
            attrs["top"] = _unpack(f, floatformat, path)
            attrs["bot"] = _unpack(f, floatformat, path)

        if not ieq:
            # dx and dy arrays are stored positive
            attrs["dx"] = _read_array(f, dtype, ncol, path).astype(np.float64)
            attrs["dy"] = _read_array(f, dtype, nrow, path).astype(np.float64)

        attrs["headersize"] = f.tell()
        attrs["ncol"] = ncol
        attrs["nrow"] = nrow
        attrs["dtype"] = dtype

    return attrs


def _to_nan(a: np.ndarray, nodata: float) -> np.ndarray:
    """Change all nodata values in the array to NaN"""
    # it needs to be NaN for xarray to deal with it properly
    if np.isnan(nodata):
        return a
    isnodata = np.isclose(a, nodata)
    a[isnodata] = np.nan
    return a


def _read(path, headersize, nrow, ncol, nodata, dtype) -> np.ndarray:
    """
    Read the values of a single IDF file to a numpy.ndarray of shape
    (nrow, ncol). Nodata values are changed to NaN.
    """
    with open(path, "rb") as f:
        f.seek(headersize)
        a = np.reshape(np.fromfile(f, dtype, nrow * ncol), (nrow, ncol))
    return _to_nan(a, nodata)


def _dask(path, attrs) -> dask.array.Array:
    """Lazily read the values of an IDF."""
    a = dask.delayed(_read)(
        path,
        attrs["headersize"],
        attrs["nrow"],
        attrs["ncol"],
        attrs["nodata"],
        attrs["dtype"],
    )
    return dask.array.from_delayed(
        a, shape=(attrs["nrow"], attrs["ncol"]), dtype=attrs["dtype"]
    )


def _check_body(path, attrs) -> None:
    expected = attrs["headersize"] + attrs["nrow"] * attrs["ncol"] * attrs["dtype"].itemsize
    actual = os.path.getsize(path)
    if actual < expected:
        raise FormatError(
            f"IDF values are truncated: expected {expected} bytes for "
            f"{attrs['nrow']} rows and {attrs['ncol']} columns, file has {actual}",
            path,
            actual,
        )


class GridFile:
    """
    An IDF raster: header and lazily loaded values.

    The values are an ``xarray.DataArray`` with dimensions ``("y", "x")``,
    the top row first. Nodata cells are NaN. The header fields are kept
    separately from the coordinates, so that writing an unmodified grid
    reproduces the header exactly.

    Parameters
    ----------
    values : xarray.DataArray or numpy.ndarray, optional
        Cell values of shape (nrows, ncols), with NaN for nodata. None for a
        grid that was read with ``header_only=True``.
    extent : Extent
    xcellsize, ycellsize : float or numpy.ndarray
        Positive cell sizes; arrays of ncols and nrows values respectively
        for nonequidistant grids.
    nodata : float
    dtype : numpy dtype, optional
        Precision used when writing: float32 (default) or float64.
    top, bot : float, optional
        Vertical extent stored in the header.
    ncols, nrows : int, optional
        Required when ``values`` is None.
    path : Path, optional
        File the grid was read from.
    """

    def __init__(
        self,
        values,
        extent: Extent,
        xcellsize,
        ycellsize,
        nodata: float,
        dtype=np.float32,
        top: Optional[float] = None,
        bot: Optional[float] = None,
        ncols: Optional[int] = None,
        nrows: Optional[int] = None,
        path: Optional[pathlib.Path] = None,
    ):
        self.extent = extent
        self.xcellsize = xcellsize
        self.ycellsize = ycellsize
        self.nodata = float(nodata)
        self.dtype = np.dtype(dtype)
        if self.dtype not in (np.float32, np.float64):
            raise ValueError("Invalid dtype, IDF allows only np.float32 and np.float64")
        self.top = top
        self.bot = bot
        self.path = path
        self.dmin: Optional[float] = None
        self.dmax: Optional[float] = None
        self._attrs: Optional[Dict[str, Any]] = None

        if values is None:
            if ncols is None or nrows is None:
                raise ValueError("ncols and nrows are required when values is None")
            self.ncols = int(ncols)
            self.nrows = int(nrows)
            self._values = None
        else:
            self.nrows, self.ncols = values.shape
            self._values = self._as_dataarray(values)
        self._check_shape()

    def _check_shape(self):
        if spatial.is_equidistant(self.xcellsize):
            expected = round(self.extent.width / self.xcellsize)
        else:
            expected = len(self.xcellsize)
        if expected != self.ncols:
            raise ValueError(
                f"Number of columns {self.ncols} does not match extent width "
                f"{self.extent.width} and cell size {self.xcellsize}"
            )
        if spatial.is_equidistant(self.ycellsize):
            expected = round(self.extent.height / self.ycellsize)
        else:
            expected = len(self.ycellsize)
        if expected != self.nrows:
            raise ValueError(
                f"Number of rows {self.nrows} does not match extent height "
                f"{self.extent.height} and cell size {self.ycellsize}"
            )

    def _as_dataarray(self, values) -> xr.DataArray:
        if isinstance(values, xr.DataArray):
            data = values.data
        else:
            data = values
        coords = spatial._xycoords(
            (self.extent.llx, self.extent.urx, self.extent.lly, self.extent.ury),
            (self.xcellsize, self.ycellsize),
            data.shape,
        )
        return xr.DataArray(data, coords=coords, dims=("y", "x"))

    @classmethod
    def read(cls, path, header_only: bool = False) -> "GridFile":
        """
        Read an IDF file. The values are read lazily.

        Parameters
        ----------
        path : str or Path
        header_only : bool
            Only read the header. Values can be loaded later with
            :meth:`load`.

        Raises
        ------
        FormatError
            On an unsupported identifier, or a truncated header or body.
        """
        path = pathlib.Path(path)
        attrs = header(path)
        _check_body(path, attrs)
        try:
            extent = Extent(attrs["xmin"], attrs["ymin"], attrs["xmax"], attrs["ymax"])
            grid = cls(
                None,
                extent,
                attrs["dx"],
                attrs["dy"],
                attrs["nodata"],
                dtype=attrs["dtype"],
                top=attrs.get("top"),
                bot=attrs.get("bot"),
                ncols=attrs["ncol"],
                nrows=attrs["nrow"],
                path=path,
            )
        except (ExtentError, ValueError) as e:
            raise FormatError(f"Inconsistent IDF header: {e}", path) from e
        grid.dmin = attrs["dmin"]
        grid.dmax = attrs["dmax"]
        grid._attrs = attrs
        if not header_only:
            grid._values = grid._as_dataarray(_dask(path, attrs))
        return grid

    @classmethod
    def nodata_grid(
        cls,
        extent: Extent,
        xcellsize: float,
        ycellsize: float,
        nodata: float,
        dtype=np.float32,
        xorigin: float = 0.0,
        yorigin: float = 0.0,
    ) -> "GridFile":
        """
        A grid with only nodata values, covering ``extent`` snapped outward
        onto the grid lines through ``(xorigin, yorigin)``. At least one cell
        is created.
        """
        snapped = extent.snap(
            xcellsize, ycellsize, enlarge=True, xorigin=xorigin, yorigin=yorigin
        )
        ncols = max(1, round(snapped.width / xcellsize))
        nrows = max(1, round(snapped.height / ycellsize))
        snapped = Extent(
            snapped.llx,
            snapped.lly,
            snapped.llx + ncols * xcellsize,
            snapped.lly + nrows * ycellsize,
        )
        values = np.full((nrows, ncols), np.nan, dtype=dtype)
        return cls(values, snapped, xcellsize, ycellsize, nodata, dtype=dtype)

    @property
    def is_equidistant(self) -> bool:
        return spatial.is_equidistant(self.xcellsize) and spatial.is_equidistant(
            self.ycellsize
        )

    @property
    def values(self) -> xr.DataArray:
        if self._values is None:
            raise ValueError(
                f"Values of {self.path} have not been read, call load() first"
            )
        return self._values

    def load(self) -> "GridFile":
        """Read the values into memory."""
        if self._values is None:
            if self._attrs is None:
                raise ValueError("Grid has no values and was not read from a file")
            self._values = self._as_dataarray(_dask(self.path, self._attrs))
        with ignore_warnings():
            self._values.load()
        return self

    def xedges(self) -> np.ndarray:
        return spatial.cell_edges(
            self.extent.llx, self.extent.urx, self.xcellsize, self.ncols
        )

    def yedges(self) -> np.ndarray:
        """Row edges, from the top down."""
        return spatial.cell_edges(
            self.extent.ury, self.extent.lly, self.ycellsize, self.nrows
        )

    def _min_cellsize(self) -> float:
        return float(min(np.min(self.xcellsize), np.min(self.ycellsize)))

    def clip(self, extent: Extent) -> ClipOutcome:
        """
        Clip to an extent.

        Every cell that overlaps the extent is kept, also when the overlap is
        partial, so the extent of the result snaps outward to cell
        boundaries. Cells that only touch the extent at an edge are not kept.

        Returns
        -------
        ClipOutcome
            ``NonEmpty`` with a new GridFile, or ``Empty`` when no cell
            overlaps. The grid itself is not modified.
        """
        tolerance = CELL_OVERLAP_TOLERANCE * self._min_cellsize()
        xedges = self.xedges()
        yedges = self.yedges()
        cols = spatial.overlapping_cells(xedges, extent.llx, extent.urx, tolerance)
        rows = spatial.overlapping_cells(yedges, extent.lly, extent.ury, tolerance)
        if cols.size == 0 or rows.size == 0:
            return Empty(overlaps=self.extent.intersects(extent))

        c0, c1 = int(cols[0]), int(cols[-1]) + 1
        r0, r1 = int(rows[0]), int(rows[-1]) + 1
        clipped_extent = Extent(xedges[c0], yedges[r1], xedges[c1], yedges[r0])
        xcellsize = self.xcellsize
        if not spatial.is_equidistant(xcellsize):
            xcellsize = xcellsize[c0:c1]
        ycellsize = self.ycellsize
        if not spatial.is_equidistant(ycellsize):
            ycellsize = ycellsize[r0:r1]
        values = self.values.isel(x=slice(c0, c1), y=slice(r0, r1))
        clipped = GridFile(
            values,
            clipped_extent,
            xcellsize,
            ycellsize,
            self.nodata,
            dtype=self.dtype,
            top=self.top,
            bot=self.bot,
        )
        return NonEmpty(clipped)

    def placeholder(self, extent: Extent) -> "GridFile":
        """
        A nodata grid over ``extent``, aligned with the cells of this grid,
        with the same cell size, nodata value and precision.
        """
        return GridFile.nodata_grid(
            extent,
            float(np.min(self.xcellsize)),
            float(np.min(self.ycellsize)),
            self.nodata,
            dtype=self.dtype,
            xorigin=self.extent.llx,
            yorigin=self.extent.lly,
        )

    def reset_to_nodata(self) -> None:
        """Set all cells to nodata."""
        self._values = self._as_dataarray(
            np.full((self.nrows, self.ncols), np.nan, dtype=self.dtype)
        )

    def set_value(self, row: int, col: int, value: float) -> None:
        """Set a single cell; a value equal to nodata makes it a nodata cell."""
        self.load()
        if np.isclose(value, self.nodata) or np.isnan(value):
            value = np.nan
        self._values.values[row, col] = value

    def has_data_values(self) -> bool:
        """True when any cell holds a value other than nodata."""
        with ignore_warnings():
            return bool(self.values.notnull().any())

    def write(self, path) -> None:
        """
        Write to an IDF file, in the precision of :attr:`dtype`.

        dmin and dmax are computed over the data cells; a grid without data
        stores the nodata value for both.

        Raises
        ------
        FileInUseError
            If the file cannot be opened for writing.
        """
        path = pathlib.Path(path)
        with ignore_warnings():
            a = self.values.fillna(self.nodata).astype(self.dtype).values
            data = self.values.values
            finite = data[~np.isnan(data)]
        if finite.size > 0:
            dmin = float(finite.min())
            dmax = float(finite.max())
        else:
            dmin = dmax = self.nodata

        if self.dtype == np.float64:
            reclen_id = DOUBLE_PRECISION
            floatformat = "<d"
            intformat = "<q"
            doubleprecision = True
        else:
            reclen_id = SINGLE_PRECISION
            floatformat = "<f"
            intformat = "<i"
            doubleprecision = False

        try:
            f = open(path, "wb")
        except PermissionError as e:
            raise FileInUseError(path, "IDF-file") from e
        with removed_on_error(path), f:
            f.write(struct.pack("<i", reclen_id))  # Lahey RecordLength Ident.
            if doubleprecision:
                f.write(struct.pack("<i", reclen_id))
            f.write(struct.pack(intformat, self.ncols))
            f.write(struct.pack(intformat, self.nrows))
            f.write(struct.pack(floatformat, self.extent.llx))
            f.write(struct.pack(floatformat, self.extent.urx))
            f.write(struct.pack(floatformat, self.extent.lly))
            f.write(struct.pack(floatformat, self.extent.ury))
            f.write(struct.pack(floatformat, dmin))
            f.write(struct.pack(floatformat, dmax))
            f.write(struct.pack(floatformat, self.nodata))

            ieq = self.is_equidistant
            itb = self.top is not None and self.bot is not None
            f.write(struct.pack("?", not ieq))
            f.write(struct.pack("?", itb))
            f.write(struct.pack("xx"))  # not used
            if doubleprecision:
                f.write(struct.pack("xxxx"))  # not used

            if ieq:
                f.write(struct.pack(floatformat, self.xcellsize))
                f.write(struct.pack(floatformat, self.ycellsize))
            if itb:
                f.write(struct.pack(floatformat, self.top))
                f.write(struct.pack(floatformat, self.bot))
            if not ieq:
                dx = np.broadcast_to(np.abs(self.xcellsize), (self.ncols,))
                dy = np.broadcast_to(np.abs(self.ycellsize), (self.nrows,))
                dx.astype(self.dtype.newbyteorder("<")).tofile(f)
                dy.astype(self.dtype.newbyteorder("<")).tofile(f)
            a.astype(self.dtype.newbyteorder("<")).tofile(f)

    def __repr__(self) -> str:
        return (
            f"GridFile(ncols={self.ncols}, nrows={self.nrows}, extent={self.extent}, "
            f"xcellsize={self.xcellsize}, ycellsize={self.ycellsize}, nodata={self.nodata})"
        )


def read(path, header_only: bool = False) -> GridFile:
    """Read an IDF file, see :meth:`GridFile.read`."""
    return GridFile.read(path, header_only)


def write(path, grid: GridFile) -> None:
    """Write a GridFile to an IDF file, see :meth:`GridFile.write`."""
    grid.write(path)
