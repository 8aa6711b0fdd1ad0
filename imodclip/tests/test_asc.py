import numpy as np
import pytest

from imodclip.exceptions import FormatError
from imodclip.extent import Extent
from imodclip.formats import asc
from imodclip.formats.asc import AsciiGridFile
from imodclip.outcome import Empty, NonEmpty

from .fixtures.files_fixture import make_grid, write_text


def test_read(asc_path):
    grid = asc.read(asc_path)
    assert (grid.nrows, grid.ncols) == (2, 4)
    assert grid.cellsize == 2.5
    assert grid.nodata == -9999.0
    assert grid.extent == Extent(0.0, 0.0, 10.0, 5.0)
    assert grid.values[1, 2] == -9999.0
    assert grid.has_data_values()


def test_round_trip(tmp_path, asc_path):
    grid = asc.read(asc_path)
    path = tmp_path / "out.asc"
    asc.write(path, grid)
    lines = path.read_text().splitlines()
    assert lines[0] == "NCOLS        4"
    assert lines[5] == "NODATA_VALUE -9999"
    assert lines[6] == "1 2 3 4"
    assert lines[7] == "5 6 -9999 8"
    back = asc.read(path)
    assert np.array_equal(back.values, grid.values)
    assert back.extent == grid.extent


def test_read_center_keys(tmp_path):
    path = write_text(
        tmp_path / "center.asc",
        """\
        ncols 2
        nrows 1
        xllcenter 0.5
        yllcenter 10.5
        cellsize 1
        nodata_value -1
        1 2
        """,
    )
    grid = asc.read(path)
    assert grid.xll == 0.0
    assert grid.yll == 10.0


def test_read_comma_separated(tmp_path):
    path = write_text(
        tmp_path / "comma.asc",
        """\
        NCOLS,2
        NROWS,2
        XLLCORNER,0
        YLLCORNER,0
        CELLSIZE,1
        NODATA_VALUE,-9999
        1,2
        3,4
        """,
    )
    assert asc.read(path).values.sum() == 10.0


def test_read_decimal_comma(tmp_path):
    path = write_text(
        tmp_path / "decimal.asc",
        """\
        NCOLS 2
        NROWS 1
        XLLCORNER 0
        YLLCORNER 0
        CELLSIZE 1
        NODATA_VALUE -9999
        1,5 2,5
        """,
    )
    with pytest.raises(FormatError, match="decimal separator"):
        asc.read(path)


def test_read_too_few_values(tmp_path):
    path = write_text(
        tmp_path / "few.asc",
        """\
        NCOLS 2
        NROWS 2
        XLLCORNER 0
        YLLCORNER 0
        CELLSIZE 1
        NODATA_VALUE -9999
        1 2 3
        """,
    )
    with pytest.raises(FormatError, match="Too few values"):
        asc.read(path)


def test_read_invalid_header(tmp_path):
    path = write_text(
        tmp_path / "header.asc",
        """\
        NCOLS 2
        XLLCORNER 0
        """,
    )
    with pytest.raises(FormatError, match="NROWS") as excinfo:
        asc.read(path)
    assert excinfo.value.offset == 2
    assert excinfo.value.unit == "line"


def test_read_invalid_value(tmp_path):
    path = write_text(
        tmp_path / "value.asc",
        """\
        NCOLS 2
        NROWS 1
        XLLCORNER 0
        YLLCORNER 0
        CELLSIZE 1
        NODATA_VALUE -9999
        1 a
        """,
    )
    with pytest.raises(FormatError, match="Invalid value"):
        asc.read(path)


def test_clip_matches_idf(asc_path):
    grid = asc.read(asc_path)
    extent = Extent(3.0, 1.0, 6.0, 4.0)
    outcome = grid.clip(extent)
    assert isinstance(outcome, NonEmpty)
    clipped = outcome.file
    assert isinstance(clipped, AsciiGridFile)
    assert clipped.extent == Extent(2.5, 0.0, 7.5, 5.0)
    assert np.array_equal(clipped.values, [[2.0, 3.0], [6.0, -9999.0]])
    expected = grid.to_grid().clip(extent).file
    assert clipped.extent == expected.extent


def test_clip_outside(asc_path):
    outcome = asc.read(asc_path).clip(Extent(100.0, 100.0, 110.0, 110.0))
    assert isinstance(outcome, Empty)
    assert not outcome.overlaps


def test_clip_only_nodata(asc_path):
    clipped = asc.read(asc_path).clip(Extent(5.5, 0.5, 6.5, 1.5)).file
    assert not clipped.has_data_values()


def test_placeholder(asc_path):
    placeholder = asc.read(asc_path).placeholder(Extent(20.0, 20.0, 24.0, 21.0))
    assert placeholder.extent == Extent(20.0, 20.0, 25.0, 22.5)
    assert np.all(placeholder.values == -9999.0)


def test_reset_to_nodata(asc_path):
    grid = asc.read(asc_path)
    grid.reset_to_nodata()
    assert not grid.has_data_values()


def test_from_grid_requires_square_cells():
    grid = make_grid()
    grid.ycellsize = 2.0
    with pytest.raises(ValueError, match="square"):
        AsciiGridFile.from_grid(grid)
