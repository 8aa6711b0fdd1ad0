"""
Reading, clipping and writing ASCII GEN files, with their DAT attribute table.

A GEN file lists features, each an id line, one vertex per line and ``END``.
A final ``END`` closes the file::

    1
    0.0,0.0
    10.0,0.0
    10.0,10.0
    0.0,0.0
    END
    2
    20.0,5.0
    30.0,5.0
    END
    END

A feature whose first vertex equals its last vertex is a polygon, a single
vertex a point, anything else a line. Vertices may have a z coordinate.
Point GEN files have one ``id,x,y`` line per point instead.

The DAT file has the same name with the extension ``.DAT``. The first line
holds the column names, the first column the feature id.
"""

import io
import pathlib
import re
from typing import List, Optional, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely.geometry as sg

from imodclip.exceptions import FileInUseError, FormatError
from imodclip.extent import Extent
from imodclip.logging import logger
from imodclip.outcome import ClipOutcome, Empty, NonEmpty
from imodclip.util.context import removed_on_error
from imodclip.util.geometry import clip_line, clip_polygon
from imodclip.util.path import siblings

SOURCE_ID_COLUMN = "SourceID"
_SEPARATORS = re.compile(r"[\s,]+")


def _split(line: str) -> List[str]:
    return _SEPARATORS.split(line.strip())


def _format_coordinate(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _is_binary(path: pathlib.Path) -> bool:
    with open(path, "rb") as f:
        return b"\x00" in f.read(1024)


def _is_point_format(lines: List[Tuple[int, str]]) -> bool:
    # "id,x,y" on the first line, instead of an id line
    if not lines:
        return False
    parts = _split(lines[0][1])
    if len(parts) != 3:
        return False
    try:
        float(parts[1])
        float(parts[2])
    except ValueError:
        return False
    return True


def _coordinates(geometry) -> np.ndarray:
    if isinstance(geometry, sg.Polygon):
        return np.asarray(geometry.exterior.coords)
    return np.asarray(geometry.coords)


def _geometry(vertices: np.ndarray):
    if len(vertices) == 1:
        return sg.Point(vertices[0])
    if len(vertices) >= 4 and np.array_equal(vertices[0], vertices[-1]):
        return sg.Polygon(vertices)
    return sg.LineString(vertices)


def _bounds(vertices: np.ndarray) -> Extent:
    return Extent(
        vertices[:, 0].min(), vertices[:, 1].min(), vertices[:, 0].max(), vertices[:, 1].max()
    )


def parse_ascii_points(lines: List[Tuple[int, str]], path) -> Tuple[List[str], list]:
    fids = []
    geometries = []
    for lineno, line in lines:
        if line.lower() == "end":
            break
        parts = _split(line)
        try:
            fid, x, y = parts[0], float(parts[1]), float(parts[2])
        except (IndexError, ValueError) as e:
            raise FormatError(
                f"Invalid GEN point: {line!r}", path, lineno, unit="line"
            ) from e
        fids.append(fid)
        geometries.append(sg.Point(x, y))
    return fids, geometries


def parse_ascii_segments(lines: List[Tuple[int, str]], path) -> Tuple[List[str], list]:
    fids = []
    geometries = []
    vertices: List[List[float]] = []
    fid = None
    fid_lineno = 0
    for lineno, line in lines:
        if line.lower() == "end":
            if fid is None:
                # final END of the file
                break
            if not vertices:
                raise FormatError(
                    f"GEN feature {fid} has no vertices", path, fid_lineno, unit="line"
                )
            fids.append(fid)
            geometries.append(_geometry(np.array(vertices, dtype=np.float64)))
            fid = None
            vertices = []
        elif fid is None:
            fid = _split(line)[0].strip("'\"")
            fid_lineno = lineno
        else:
            parts = _split(line)
            try:
                vertex = [float(v) for v in parts]
            except ValueError as e:
                raise FormatError(
                    f"Invalid GEN vertex: {line!r}", path, lineno, unit="line"
                ) from e
            if len(vertex) not in (2, 3) or (vertices and len(vertex) != len(vertices[0])):
                raise FormatError(
                    f"Invalid GEN vertex: {line!r}", path, lineno, unit="line"
                )
            vertices.append(vertex)
    if fid is not None:
        raise FormatError(
            f"GEN feature {fid} is not terminated by END", path, fid_lineno, unit="line"
        )
    return fids, geometries


def read_dat(path) -> pd.DataFrame:
    """
    Read a DAT attribute table: column names on the first line, comma
    separated if the first line contains a comma, otherwise whitespace
    separated. Values may be quoted with single or double quotes. All values
    are read as strings.
    """
    with open(path) as f:
        text = f.read()
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise FormatError("DAT file has no header", path, 1, unit="line")
    quotechar = '"' if text.count('"') > text.count("'") else "'"
    if "," in lines[0]:
        sep = ","
    else:
        sep = " "
        lines = [line.strip().replace("\t", " ") for line in lines]
    try:
        return pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=sep,
            quotechar=quotechar,
            skipinitialspace=True,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
        )
    except (pd.errors.ParserError, ValueError) as e:
        raise FormatError(f"Invalid DAT file: {e}", path) from e


def _correct_string(value) -> str:
    value = str(value)
    if any(c in value for c in (" ", "\t", ",")):
        value = "'" + value.strip("'") + "'"
    return value


def write_dat(path, df: pd.DataFrame) -> None:
    """Write a DAT attribute table, comma separated."""
    try:
        f = open(path, "w")
    except PermissionError as e:
        raise FileInUseError(path, "DAT-file") from e
    with removed_on_error(path), f:
        f.write(",".join(_correct_string(c) for c in df.columns))
        f.write("\n")
        for row in df.itertuples(index=False, name=None):
            f.write(",".join(_correct_string(v) for v in row))
            f.write("\n")


def _unique_column_name(columns, name: str) -> str:
    unique = name
    n = 2
    while unique in columns:
        unique = f"{name}{n}"
        n += 1
    return unique


class VectorFile:
    """
    A GEN file: features with an ``id`` column in a GeoDataFrame, and an
    optional DAT attribute table.

    Parameters
    ----------
    features : geopandas.GeoDataFrame
        With an ``id`` column (strings) and a geometry column of points,
        lines and polygons.
    dat : pandas.DataFrame, optional
        Attribute table, the first column holds the feature ids.
    path : Path, optional
        File the features were read from.
    point_format : bool
        Write ``id,x,y`` lines, as in point GEN files.
    """

    def __init__(
        self,
        features: gpd.GeoDataFrame,
        dat: Optional[pd.DataFrame] = None,
        path: Optional[pathlib.Path] = None,
        point_format: bool = False,
    ):
        if "id" not in features.columns:
            raise ValueError("features require an id column")
        self.features = features.reset_index(drop=True)
        self.dat = None if dat is None else dat.reset_index(drop=True)
        self.path = path
        self.point_format = point_format

    @staticmethod
    def _geodataframe(fids, geometries) -> gpd.GeoDataFrame:
        return gpd.GeoDataFrame(
            {"id": pd.Series(fids, dtype=object)},
            geometry=gpd.GeoSeries(geometries),
        )

    @classmethod
    def from_geometries(cls, fids, geometries, dat=None, **kwargs) -> "VectorFile":
        return cls(cls._geodataframe(list(fids), list(geometries)), dat, **kwargs)

    @classmethod
    def read(cls, path) -> "VectorFile":
        """
        Read an ASCII GEN file, and its DAT file if present.

        Raises
        ------
        FormatError
            For binary GEN files, malformed features or vertices, and
            duplicate feature ids.
        """
        path = pathlib.Path(path)
        if _is_binary(path):
            raise FormatError("Binary GEN files are not supported", path, 0)
        with open(path, "r") as f:
            lines = [
                (lineno, line.strip())
                for lineno, line in enumerate(f, start=1)
                if line.strip() != ""
            ]

        point_format = _is_point_format(lines)
        if point_format:
            fids, geometries = parse_ascii_points(lines, path)
        else:
            fids, geometries = parse_ascii_segments(lines, path)

        seen = set()
        for fid in fids:
            if fid in seen:
                raise FormatError(f"Duplicate GEN feature id: {fid}", path)
            seen.add(fid)

        dat = None
        dat_paths = siblings(path, ".dat")
        if dat_paths:
            dat = read_dat(dat_paths[0])
            if len(dat) != len(fids):
                logger.warning(
                    f'DAT file "{dat_paths[0]}" has {len(dat)} rows for {len(fids)} features'
                )

        return cls.from_geometries(
            fids, geometries, dat, path=path, point_format=point_format
        )

    def __len__(self) -> int:
        return len(self.features)

    def has_dat_file(self) -> bool:
        return self.dat is not None

    @property
    def extent(self) -> Optional[Extent]:
        """Bounding box of all vertices; None without features."""
        if len(self) == 0:
            return None
        return Extent(*self.features.total_bounds)

    def _dat_rows(self, fids: List[str], source_ids: List[str], split: bool):
        if self.dat is None:
            return None
        idcol = self.dat.columns[0]
        dat_ids = self.dat[idcol].astype(str).str.strip()
        index = {fid: i for i, fid in reversed(list(enumerate(dat_ids)))}
        rows = [index[sid] for sid in source_ids if sid in index]
        dat = self.dat.iloc[rows].reset_index(drop=True)
        if split:
            dat[idcol] = [fid for fid, sid in zip(fids, source_ids) if sid in index]
            column = _unique_column_name(dat.columns, SOURCE_ID_COLUMN)
            dat[column] = [sid for sid in source_ids if sid in index]
        return dat

    def clip(self, extent: Extent) -> ClipOutcome:
        """
        Clip to an extent.

        Features within the extent are kept unchanged, features outside are
        dropped. Polygons are clipped with Sutherland-Hodgman, keeping their
        orientation; polygons without area are dropped. Lines are clipped per
        segment; a line split into multiple parts results in features
        ``{id}_1``, ``{id}_2``, ..., and a SourceID column in the DAT table.
        Numbers giving an id already in use are skipped.
        Points are kept when within the extent, boundaries included.
        """
        source_extent = self.extent
        if source_extent is None:
            return Empty(overlaps=False)
        if extent.contains_extent(source_extent):
            return NonEmpty(self.subset(range(len(self))))

        fids = []
        source_ids = []
        geometries = []
        split = False
        # ids of split parts may not collide with source ids or earlier parts
        taken = set(self.features["id"])
        for fid, geometry in zip(self.features["id"], self.features.geometry):
            vertices = _coordinates(geometry)
            bounds = _bounds(vertices)
            if extent.contains_extent(bounds):
                fids.append(fid)
                source_ids.append(fid)
                geometries.append(geometry)
                continue
            if not extent.overlaps(bounds):
                continue

            if isinstance(geometry, sg.Point):
                clipped = [geometry] if extent.contains(geometry.x, geometry.y) else []
            elif isinstance(geometry, sg.Polygon):
                ring = clip_polygon(vertices, extent)
                clipped = [] if ring is None else [sg.Polygon(ring)]
            else:
                clipped = [sg.LineString(part) for part in clip_line(vertices, extent)]

            if len(clipped) == 1:
                fids.append(fid)
                source_ids.append(fid)
                geometries.append(clipped[0])
            elif len(clipped) > 1:
                split = True
                n = 1
                for part in clipped:
                    while f"{fid}_{n}" in taken:
                        n += 1
                    part_id = f"{fid}_{n}"
                    taken.add(part_id)
                    fids.append(part_id)
                    source_ids.append(fid)
                    geometries.append(part)

        if not geometries:
            return Empty(overlaps=source_extent.overlaps(extent))
        clipped_file = VectorFile.from_geometries(
            fids,
            geometries,
            self._dat_rows(fids, source_ids, split),
            path=self.path,
            point_format=self.point_format,
        )
        return NonEmpty(clipped_file)

    def subset(self, indices) -> "VectorFile":
        indices = list(indices)
        features = self.features.iloc[indices]
        fids = list(features["id"])
        return VectorFile(
            features,
            self._dat_rows(fids, fids, split=False),
            path=self.path,
            point_format=self.point_format,
        )

    def placeholder(self, extent: Extent = None) -> "VectorFile":
        """A VectorFile without features; with an empty DAT table if present."""
        return self.subset([])

    def dat_path(self, path) -> pathlib.Path:
        """DAT file belonging to a GEN file, with the case of its extension."""
        path = pathlib.Path(path)
        suffix = ".DAT" if path.suffix.isupper() else ".dat"
        return path.with_suffix(suffix)

    def write(self, path, write_dat: bool = True) -> Optional[pathlib.Path]:
        """
        Write to an ASCII GEN file, and the DAT file if present.

        Returns
        -------
        Path or None
            The written DAT file.
        """
        path = pathlib.Path(path)
        try:
            f = open(path, "w")
        except PermissionError as e:
            raise FileInUseError(path, "GEN-file") from e
        with removed_on_error(path) as outputs:
            with f:
                all_points = all(isinstance(g, sg.Point) for g in self.features.geometry)
                for fid, geometry in zip(self.features["id"], self.features.geometry):
                    vertices = _coordinates(geometry)
                    if self.point_format and all_points:
                        x, y = vertices[0][:2]
                        f.write(f"{fid},{_format_coordinate(x)},{_format_coordinate(y)}\n")
                        continue
                    f.write(f"{fid}\n")
                    for vertex in vertices:
                        f.write(",".join(_format_coordinate(v) for v in vertex))
                        f.write("\n")
                    f.write("END\n")
                f.write("END\n")

            if write_dat and self.dat is not None:
                dat_path = self.dat_path(path)
                outputs.append(dat_path)
                globals()["write_dat"](dat_path, self.dat)
                return dat_path
        return None

    def __repr__(self) -> str:
        return f"VectorFile(features={len(self)}, dat={self.has_dat_file()})"


def read(path) -> VectorFile:
    """Read a GEN file, see :meth:`VectorFile.read`."""
    return VectorFile.read(path)


def write(path, gen: VectorFile, write_dat: bool = True) -> Optional[pathlib.Path]:
    """Write a GEN file, see :meth:`VectorFile.write`."""
    return gen.write(path, write_dat)
