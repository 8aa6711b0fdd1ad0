import textwrap

import numpy as np
import pytest

from imodclip.extent import Extent
from imodclip.formats.idf import GridFile

IPF_TEXT = """\
4
4
x
y
id
"filter top"
3,txt
1.0,1.0,A,0.5
5.0,5.0,B,1.5
20.0,20.0,C,2.5
8.0,2.0,B,3.5
"""

TXT_TEXT = """\
2
2,1
time,-999
head,-999
20200101,1.0
20200102,-999
"""

GEN_TEXT = """\
1
2.0,2.0
6.0,2.0
6.0,6.0
2.0,2.0
END
2
5.0,5.0
15.0,5.0
END
3
20.0,20.0
30.0,20.0
30.0,30.0
20.0,20.0
END
END
"""

DAT_TEXT = """\
id,name,area
1,'first polygon',8.0
2,line,0.0
3,outside,50.0
"""


def write_text(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


def make_grid(
    nrows=10, ncols=10, cellsize=1.0, xmin=0.0, ymin=0.0, nodata=-9999.0, dtype=np.float32
):
    values = np.arange(nrows * ncols, dtype=dtype).reshape(nrows, ncols)
    extent = Extent(xmin, ymin, xmin + ncols * cellsize, ymin + nrows * cellsize)
    return GridFile(values, extent, cellsize, cellsize, nodata, dtype=dtype)


@pytest.fixture(scope="function")
def grid():
    """10 x 10 grid, cell size 1.0, extent (0, 0, 10, 10)."""
    return make_grid()


@pytest.fixture(scope="function")
def idf_path(tmp_path, grid):
    path = tmp_path / "input" / "head.idf"
    path.parent.mkdir(parents=True)
    grid.write(path)
    return path


@pytest.fixture(scope="function")
def asc_path(tmp_path):
    return write_text(
        tmp_path / "input" / "dem.asc",
        """\
        NCOLS        4
        NROWS        2
        XLLCORNER    0
        YLLCORNER    0
        CELLSIZE     2.5
        NODATA_VALUE -9999
        1 2 3 4
        5 6 -9999 8
        """,
    )


@pytest.fixture(scope="function")
def ipf_path(tmp_path):
    path = write_text(tmp_path / "input" / "wells.ipf", IPF_TEXT)
    for name in ("A", "B", "C"):
        write_text(path.parent / f"{name}.txt", TXT_TEXT)
    return path


@pytest.fixture(scope="function")
def gen_path(tmp_path):
    path = write_text(tmp_path / "input" / "features.gen", GEN_TEXT)
    write_text(path.parent / "features.dat", DAT_TEXT)
    return path


@pytest.fixture(scope="function")
def model_dir(tmp_path, idf_path, asc_path, ipf_path, gen_path):
    """
    Input directory with all clippable formats, a MET file, an unrelated
    file and a subdirectory.
    """
    indir = idf_path.parent
    write_text(indir / "head.met", "meta\n")
    write_text(indir / "readme.txt", "readme\n")
    write_text(indir / "model.run", "run\n")
    far = make_grid(xmin=100.0, ymin=100.0)
    (indir / "sub").mkdir()
    far.write(indir / "sub" / "far.idf")
    write_text(indir / "sub" / "notes.txt", "notes\n")
    return indir
