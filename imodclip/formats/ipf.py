"""
Reading, clipping and writing iMOD Point Files (IPFs).

An IPF holds one record per point::

    2
    4
    x
    y
    id
    "filter top"
    3,txt
    100.0,200.0,A1000,-5.0
    150.0,250.0,A1001,-7.5

The first line is the number of records, the second the number of columns,
followed by the column names. The line ``3,txt`` defines associated files:
the value of column 3 (1-based) of each record, with extension ``txt``, is the
name of a file next to the IPF holding e.g. a timeseries. ``0,txt`` means no
associated files. Records are comma or whitespace separated.

Record values are kept as the original text, so an unmodified record is
written exactly as it was read.
"""

import collections
import csv
import io
import pathlib
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

import numpy as np
import pandas as pd

from imodclip.exceptions import FileInUseError, FormatError
from imodclip.extent import Extent
from imodclip.logging import logger
from imodclip.outcome import ClipOutcome, Empty, NonEmpty
from imodclip.util.context import removed_on_error
from imodclip.util.path import copy_file, find_case_insensitive


def _infer_delimiter(line: str, ncol: int) -> str:
    """Comma, tab or space, based on the first record."""
    n_elem = len(next(csv.reader([line])))
    if n_elem == ncol:
        return ","
    if n_elem == 1:
        if "\t" in line:
            return "\t"
        return " "
    logger.warning(
        f"Inconsistent IPF: header states {ncol} columns, first line contains {n_elem}"
    )
    return ","


def _split_line(line: str) -> List[str]:
    try:
        # csv.reader catches commas in quotes
        parts = next(csv.reader([line]))
    except StopIteration:
        return []
    if len(parts) == 1:
        parts = next(csv.reader([line.strip()], delimiter=" ", skipinitialspace=True))
    return [part.strip() for part in parts]


def _read_table(lines: List[str], colnames: List[str], **kwargs) -> pd.DataFrame:
    """
    Parse comma or whitespace separated lines with pandas. Whitespace
    separated lines are stripped and tabs replaced, as pandas expects a
    single character delimiter to respect quotes.
    """
    delimiter = _infer_delimiter(lines[0], len(colnames))
    if delimiter != ",":
        lines = [line.strip().replace("\t", " ") for line in lines]
        delimiter = " "
    return pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=delimiter,
        header=None,
        names=colnames,
        skipinitialspace=True,
        index_col=False,
        quotechar='"',
        **kwargs,
    )


def _read_records(lines: List[str], colnames: List[str]) -> pd.DataFrame:
    return _read_table(
        lines, colnames, dtype=str, keep_default_na=False, na_filter=False
    )


def _quote(value: str) -> str:
    if any(c in value for c in (" ", ",", "\t")):
        return f'"{value}"'
    return value


@dataclass(frozen=True)
class PointSelection:
    """
    Records kept by a clip, and the associated files that were only
    referenced by removed records.
    """

    kept: FrozenSet[int]
    dropped_companions: FrozenSet[pathlib.Path] = field(default_factory=frozenset)


class PointFile:
    """
    An IPF: a table of records with x and y coordinates.

    Parameters
    ----------
    df : pandas.DataFrame
        The records, one column per IPF column, values as strings.
    indexcol : int
        1-based number of the column naming the associated files; 0 when
        there are none.
    assoc_ext : str
        Extension of the associated files.
    xcol, ycol : int
        0-based numbers of the x and y columns.
    path : Path, optional
        File the records were read from. Associated files are resolved
        relative to its directory.
    """

    def __init__(
        self,
        df: pd.DataFrame,
        indexcol: int = 0,
        assoc_ext: str = "txt",
        xcol: int = 0,
        ycol: int = 1,
        path: Optional[pathlib.Path] = None,
    ):
        ncol = df.shape[1]
        if ncol < 2:
            raise ValueError(f"An IPF requires at least 2 columns, received {ncol}")
        if not 0 <= indexcol <= ncol:
            raise ValueError(
                f"Associated file column {indexcol} is not within the {ncol} columns"
            )
        self.df = df.reset_index(drop=True)
        self.indexcol = indexcol
        self.assoc_ext = assoc_ext
        self.xcol = xcol
        self.ycol = ycol
        self.path = path
        self._associated: Dict[int, pd.DataFrame] = {}
        self._x: Optional[np.ndarray] = None
        self._y: Optional[np.ndarray] = None

    @classmethod
    def read(cls, path, lazy_associated: bool = True) -> "PointFile":
        """
        Read an IPF file.

        Parameters
        ----------
        path : str or Path
        lazy_associated : bool
            If False, all associated files are read immediately; otherwise
            only when requested with :meth:`associated`.

        Raises
        ------
        FormatError
            On a malformed header, a different number of records than
            declared, or non-numeric coordinates.
        """
        path = pathlib.Path(path)
        with open(path) as f:
            lineno = 1
            try:
                nrow = int(f.readline().strip())
                lineno += 1
                ncol = int(f.readline().strip())
            except ValueError as e:
                raise FormatError(
                    f"Invalid IPF header: {e}", path, lineno, unit="line"
                ) from e
            if nrow < 0 or ncol < 2:
                raise FormatError(
                    f"Invalid IPF header: {nrow} records, {ncol} columns",
                    path,
                    lineno,
                    unit="line",
                )
            colnames = [f.readline().strip().strip("'").strip('"') for _ in range(ncol)]
            lineno += ncol + 1
            parts = _split_line(f.readline())
            try:
                indexcol = int(parts[0])
            except (IndexError, ValueError) as e:
                raise FormatError(
                    f"Invalid IPF associated file definition: {parts}",
                    path,
                    lineno,
                    unit="line",
                ) from e
            ext = parts[1] if len(parts) > 1 and parts[1] else "txt"

            lines = [line for line in f.read().splitlines() if line.strip()][:nrow]

        if len(lines) != nrow:
            raise FormatError(
                f"IPF declares {nrow} records, found {len(lines)}",
                path,
                lineno + len(lines) + 1,
                unit="line",
            )
        if nrow > 0:
            try:
                df = _read_records(lines, colnames)
            except (pd.errors.ParserError, ValueError) as e:
                raise FormatError(
                    f"Invalid IPF records: {e}", path, lineno + 1, unit="line"
                ) from e
        else:
            df = pd.DataFrame(columns=colnames, dtype=object)

        try:
            ipf = cls(df, indexcol, ext, path=path)
            ipf._coordinates()
        except ValueError as e:
            raise FormatError(f"Invalid IPF: {e}", path) from e

        if not lazy_associated:
            for i in range(len(ipf)):
                ipf.associated(i)
        return ipf

    def __len__(self) -> int:
        return len(self.df)

    @property
    def columns(self) -> List[str]:
        return list(self.df.columns)

    @property
    def has_associated_files(self) -> bool:
        return self.indexcol > 0

    def _coordinates(self):
        if self._x is None:
            self._x = pd.to_numeric(self.df.iloc[:, self.xcol]).to_numpy(dtype=np.float64)
            self._y = pd.to_numeric(self.df.iloc[:, self.ycol]).to_numpy(dtype=np.float64)
        return self._x, self._y

    @property
    def x(self) -> np.ndarray:
        return self._coordinates()[0]

    @property
    def y(self) -> np.ndarray:
        return self._coordinates()[1]

    @property
    def extent(self) -> Optional[Extent]:
        """Bounding box of the points; None without records."""
        if len(self) == 0:
            return None
        return Extent.from_points(*self._coordinates())

    def associated_name(self, i: int) -> Optional[str]:
        """File name referenced by record ``i``, relative to the IPF."""
        if not self.has_associated_files:
            return None
        value = str(self.df.iat[i, self.indexcol - 1]).strip().strip('"').strip("'")
        if not value:
            return None
        return f"{value}.{self.assoc_ext}".replace("\\", "/")

    def associated_path(self, i: int) -> Optional[pathlib.Path]:
        """
        Path of the associated file of record ``i``. The name is matched case
        insensitively; None if there is no associated file definition.
        """
        name = self.associated_name(i)
        if name is None or self.path is None:
            return None
        path = self.path.parent / name
        found = find_case_insensitive(path)
        if found is None:
            return path
        return found

    def associated(self, i: int) -> pd.DataFrame:
        """Read (once) and return the associated file of record ``i``."""
        if i not in self._associated:
            path = self.associated_path(i)
            if path is None:
                raise ValueError(f"Record {i} has no associated file")
            try:
                self._associated[i] = read_associated(path)
            except Exception as e:
                raise type(e)(
                    f'{e}\nWhile reading associated file "{path}" of IPF file "{self.path}"'
                ) from e
        return self._associated[i]

    def companions(self) -> Set[pathlib.Path]:
        """Existing associated files of all records."""
        paths = set()
        for i in range(len(self)):
            path = self.associated_path(i)
            if path is not None and path.exists():
                paths.add(path)
        return paths

    def select(self, extent: Extent) -> PointSelection:
        """
        Records with ``llx <= x <= urx`` and ``lly <= y <= ury``.

        An associated file is dropped only if no kept record references it.
        """
        x, y = self._coordinates()
        inside = (
            (x >= extent.llx) & (x <= extent.urx) & (y >= extent.lly) & (y <= extent.ury)
        )
        kept = frozenset(int(i) for i in np.nonzero(inside)[0])
        dropped: Set[pathlib.Path] = set()
        if self.has_associated_files:
            referenced = set()
            for i in range(len(self)):
                path = self.associated_path(i)
                if path is None:
                    continue
                if i in kept:
                    referenced.add(path)
                else:
                    dropped.add(path)
            dropped -= referenced
        return PointSelection(kept, frozenset(dropped))

    def subset(self, indices) -> "PointFile":
        """New PointFile with the records at ``indices``, in file order."""
        indices = sorted(indices)
        ipf = PointFile(
            self.df.iloc[indices],
            self.indexcol,
            self.assoc_ext,
            self.xcol,
            self.ycol,
            self.path,
        )
        for new, old in enumerate(indices):
            if old in self._associated:
                ipf._associated[new] = self._associated[old]
        return ipf

    def clip(self, extent: Extent) -> ClipOutcome:
        """
        Clip to an extent, boundaries included.

        Returns
        -------
        ClipOutcome
            ``NonEmpty`` with the kept records, or ``Empty``. Both carry the
            associated files that are no longer referenced.
        """
        selection = self.select(extent)
        if not selection.kept:
            source_extent = self.extent
            overlaps = source_extent is not None and source_extent.overlaps(extent)
            return Empty(overlaps, selection.dropped_companions)
        return NonEmpty(self.subset(selection.kept), selection.dropped_companions)

    def placeholder(self, extent: Extent = None) -> "PointFile":
        """A PointFile without records, with the same columns."""
        return self.subset([])

    def associated_target(self, source: pathlib.Path, path) -> pathlib.Path:
        """
        Output path of associated file ``source`` for this IPF written to
        ``path``: the same path relative to the IPF, or next to the output
        for a reference outside the directory of the IPF.
        """
        path = pathlib.Path(path)
        if self.path is not None:
            try:
                return path.parent / source.relative_to(self.path.parent)
            except ValueError:
                pass
        return path.parent / source.name

    def write(self, path, write_associated: bool = True) -> Set[pathlib.Path]:
        """
        Write to an IPF file.

        Parameters
        ----------
        path : str or Path
        write_associated : bool
            Copy the associated file of every record next to the output,
            keeping its path relative to the IPF.

        Returns
        -------
        set of Path
            The source paths of the copied associated files.

        Raises
        ------
        FileInUseError
            If the file cannot be opened for writing.
        """
        path = pathlib.Path(path)
        nrecords, nfields = self.df.shape
        try:
            f = open(path, "w")
        except PermissionError as e:
            raise FileInUseError(path, "IPF-file") from e
        copied = set()
        with removed_on_error(path) as outputs:
            with f:
                f.write(f"{nrecords}\n{nfields}\n")
                for colname in self.df.columns:
                    colname = str(colname)
                    if "," in colname or " " in colname:
                        colname = '"' + colname + '"'
                    f.write(f"{colname}\n")
                f.write(f"{self.indexcol},{self.assoc_ext}\n")
                for row in self.df.itertuples(index=False, name=None):
                    f.write(",".join(_quote(str(value)) for value in row))
                    f.write("\n")

            if write_associated and self.has_associated_files and self.path is not None:
                for i in range(nrecords):
                    source = self.associated_path(i)
                    if source is None or source in copied:
                        continue
                    if not source.exists():
                        logger.warning(
                            f'Associated file "{source}" of IPF file "{self.path}" does not exist'
                        )
                        continue
                    target = self.associated_target(source, path)
                    if target.resolve() != source.resolve():
                        outputs.append(target)
                        copy_file(source, target, "associated file")
                    copied.add(source)
        return copied

    def __repr__(self) -> str:
        return (
            f"PointFile(records={len(self)}, columns={self.columns}, "
            f"indexcol={self.indexcol}, assoc_ext={self.assoc_ext!r})"
        )


def read_associated(path) -> pd.DataFrame:
    """
    Read an IPF associated file (TXT).

    The file starts with the number of records, a line ``ncol,itype`` (the
    itype is optional), then per column a line ``name,nodata``, followed by
    the records. Nodata values become NaN.

    Parameters
    ----------
    path : pathlib.Path or str
        Path to associated file.

    Returns
    -------
    pandas.DataFrame
    """
    with open(path) as f:
        nrow = int(f.readline().strip())
        parts = _split_line(f.readline())
        ncol = int(parts[0])

        na_values = collections.OrderedDict()
        colnames = []
        for _ in range(ncol):
            definition = _split_line(f.readline())
            colname = definition[0]
            colnames.append(colname)
            nodata = [definition[1]] if len(definition) > 1 else []
            na_values[colname] = nodata + ["-"]  # "-" seems common enough to ignore

        lines = [line for line in f.read().splitlines() if line.strip()][:nrow]

    if nrow == 0:
        return pd.DataFrame(columns=colnames)
    return _read_table(lines, colnames, na_values=na_values)


def read(path, lazy_associated: bool = True) -> PointFile:
    """Read an IPF file, see :meth:`PointFile.read`."""
    return PointFile.read(path, lazy_associated)


def write(path, ipf: PointFile, write_associated: bool = True) -> Set[pathlib.Path]:
    """Write an IPF file, see :meth:`PointFile.write`."""
    return ipf.write(path, write_associated)
