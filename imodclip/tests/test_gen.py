import numpy as np
import pandas as pd
import pytest
import shapely.geometry as sg

from imodclip.exceptions import FileInUseError, FormatError
from imodclip.extent import Extent
from imodclip.formats import gen
from imodclip.formats.gen import VectorFile
from imodclip.outcome import Empty, NonEmpty

from .fixtures.files_fixture import write_text


def test_read(gen_path):
    vectors = gen.read(gen_path)
    assert len(vectors) == 3
    assert list(vectors.features["id"]) == ["1", "2", "3"]
    geometries = list(vectors.features.geometry)
    assert isinstance(geometries[0], sg.Polygon)
    assert isinstance(geometries[1], sg.LineString)
    assert isinstance(geometries[2], sg.Polygon)
    assert vectors.extent == Extent(2.0, 2.0, 30.0, 30.0)
    assert vectors.has_dat_file()
    assert list(vectors.dat.columns) == ["id", "name", "area"]
    assert vectors.dat["name"].iloc[0] == "first polygon"


def test_read_points_and_z(tmp_path):
    path = write_text(
        tmp_path / "z.gen",
        """\
        A
        1.0,2.0,3.0
        END
        B
        0.0 0.0 1.0
        4.0 0.0 2.0
        END
        END
        """,
    )
    vectors = gen.read(path)
    point, line = vectors.features.geometry
    assert isinstance(point, sg.Point)
    assert point.has_z
    assert isinstance(line, sg.LineString)
    assert not vectors.has_dat_file()


def test_read_point_format(tmp_path):
    path = write_text(tmp_path / "points.gen", "1,10.0,20.0\n2,30.0,40.0\nEND\n")
    vectors = gen.read(path)
    assert vectors.point_format
    assert vectors.extent == Extent(10.0, 20.0, 30.0, 40.0)
    out = tmp_path / "out.gen"
    vectors.write(out)
    assert out.read_text() == "1,10,20\n2,30,40\nEND\n"


def test_read_empty(tmp_path):
    path = write_text(tmp_path / "empty.gen", "END\n")
    vectors = gen.read(path)
    assert len(vectors) == 0
    assert vectors.extent is None
    assert isinstance(vectors.clip(Extent(0.0, 0.0, 1.0, 1.0)), Empty)


@pytest.mark.parametrize(
    "text, message",
    [
        ("1\n0.0,0.0\n1.0,a\nEND\nEND\n", "Invalid GEN vertex"),
        ("1\n0.0,0.0\n1.0,1.0\n", "not terminated by END"),
        ("1\nEND\nEND\n", "has no vertices"),
        ("1\n0.0,0.0\nEND\n1\n1.0,1.0\nEND\nEND\n", "Duplicate GEN feature id"),
    ],
)
def test_read_invalid(tmp_path, text, message):
    path = write_text(tmp_path / "invalid.gen", text)
    with pytest.raises(FormatError, match=message):
        gen.read(path)


def test_read_binary(tmp_path):
    path = tmp_path / "binary.gen"
    path.write_bytes(b"\x01\x00\x00\x00" * 16)
    with pytest.raises(FormatError, match="Binary GEN"):
        gen.read(path)


def test_read_dat_space_separated(tmp_path):
    path = write_text(tmp_path / "space.dat", 'id name\n1 "a name"\n2 b\n')
    df = gen.read_dat(path)
    assert list(df.columns) == ["id", "name"]
    assert list(df["name"]) == ["a name", "b"]


def test_dat_count_mismatch_warns(tmp_path, gen_path):
    write_text(gen_path.parent / "features.dat", "id,name\n1,a\n")
    with pytest.MonkeyPatch.context() as mp:
        messages = []
        mp.setattr("imodclip.formats.gen.logger.warning", messages.append)
        gen.read(gen_path)
    assert len(messages) == 1
    assert "1 rows for 3 features" in messages[0]


def test_clip_containing_extent_keeps_geometry(gen_path):
    vectors = gen.read(gen_path)
    outcome = vectors.clip(Extent(0.0, 0.0, 100.0, 100.0))
    assert isinstance(outcome, NonEmpty)
    clipped = outcome.file
    for a, b in zip(clipped.features.geometry, vectors.features.geometry):
        assert a.equals_exact(b, 0.0)
    assert clipped.dat.equals(vectors.dat)


def test_clip(gen_path):
    vectors = gen.read(gen_path)
    extent = Extent(0.0, 0.0, 10.0, 10.0)
    clipped = vectors.clip(extent).file
    assert list(clipped.features["id"]) == ["1", "2"]
    polygon, line = clipped.features.geometry
    # Polygon lies within the extent and is unchanged
    assert polygon.equals_exact(vectors.features.geometry[0], 0.0)
    assert np.allclose(np.asarray(line.coords), [[5.0, 5.0], [10.0, 5.0]])
    assert list(clipped.dat["id"]) == ["1", "2"]
    assert "SourceID" not in clipped.dat.columns


def test_clip_polygon_keeps_orientation():
    ring = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0)]
    vectors = VectorFile.from_geometries(["1"], [sg.Polygon(ring)])
    clipped = vectors.clip(Extent(5.0, 5.0, 15.0, 15.0)).file
    polygon = clipped.features.geometry[0]
    assert polygon.area == pytest.approx(25.0)
    assert not polygon.exterior.is_ccw
    assert Extent(*polygon.bounds) == Extent(5.0, 5.0, 10.0, 10.0)


def test_clip_line_split():
    line = sg.LineString([(0.0, 2.0), (4.0, 2.0), (4.0, 8.0), (0.0, 8.0)])
    dat = pd.DataFrame({"id": ["7"], "name": ["ditch"]})
    vectors = VectorFile.from_geometries(["7"], [line], dat)
    clipped = vectors.clip(Extent(-10.0, 0.0, 2.0, 10.0)).file
    assert list(clipped.features["id"]) == ["7_1", "7_2"]
    first, second = clipped.features.geometry
    assert np.allclose(np.asarray(first.coords), [[0.0, 2.0], [2.0, 2.0]])
    assert np.allclose(np.asarray(second.coords), [[2.0, 8.0], [0.0, 8.0]])
    assert list(clipped.dat["id"]) == ["7_1", "7_2"]
    assert list(clipped.dat["SourceID"]) == ["7", "7"]
    assert list(clipped.dat["name"]) == ["ditch", "ditch"]


def test_clip_line_within_extent_is_not_split():
    line = sg.LineString([(0.0, 2.0), (4.0, 2.0), (4.0, 8.0), (0.0, 8.0)])
    clipped = VectorFile.from_geometries(["7"], [line]).clip(Extent(2.0, 0.0, 10.0, 10.0)).file
    assert list(clipped.features["id"]) == ["7"]
    assert np.allclose(
        np.asarray(clipped.features.geometry[0].coords),
        [[2.0, 2.0], [4.0, 2.0], [4.0, 8.0], [2.0, 8.0]],
    )


def test_clip_line_split_skips_existing_ids(tmp_path):
    line = sg.LineString([(0.0, 2.0), (4.0, 2.0), (4.0, 8.0), (0.0, 8.0)])
    other = sg.LineString([(-5.0, 5.0), (-1.0, 5.0)])
    dat = pd.DataFrame({"id": ["1", "1_1"], "name": ["ditch", "drain"]})
    vectors = VectorFile.from_geometries(["1", "1_1"], [line, other], dat)
    clipped = vectors.clip(Extent(-10.0, 0.0, 2.0, 10.0)).file
    assert list(clipped.features["id"]) == ["1_2", "1_3", "1_1"]
    assert list(clipped.dat["SourceID"]) == ["1", "1", "1_1"]
    assert list(clipped.dat["name"]) == ["ditch", "ditch", "drain"]

    path = tmp_path / "clipped.gen"
    clipped.write(path)
    assert list(gen.read(path).features["id"]) == ["1_2", "1_3", "1_1"]


def test_write_dat_failure_removes_gen(tmp_path, gen_path, monkeypatch):
    def locked(path, df):
        raise FileInUseError(path, "DAT-file")

    monkeypatch.setattr(gen, "write_dat", locked)
    path = tmp_path / "out.gen"
    with pytest.raises(FileInUseError):
        gen.read(gen_path).write(path)
    assert not path.exists()


def test_clip_outside(gen_path):
    outcome = gen.read(gen_path).clip(Extent(100.0, 100.0, 110.0, 110.0))
    assert isinstance(outcome, Empty)
    assert not outcome.overlaps


def test_clip_overlapping_without_features(gen_path):
    outcome = gen.read(gen_path).clip(Extent(16.0, 16.0, 18.0, 18.0))
    assert isinstance(outcome, Empty)
    assert outcome.overlaps


def test_clip_polygon_without_area_is_dropped():
    ring = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 0.0)]
    vectors = VectorFile.from_geometries(["1"], [sg.Polygon(ring)])
    outcome = vectors.clip(Extent(8.0, 1.0, 20.0, 2.0))
    assert isinstance(outcome, NonEmpty)
    outcome = vectors.clip(Extent(10.0, -5.0, 20.0, 5.0))
    assert isinstance(outcome, Empty)


def test_write(tmp_path, gen_path):
    vectors = gen.read(gen_path)
    path = tmp_path / "out.GEN"
    dat_path = vectors.write(path)
    assert dat_path == tmp_path / "out.DAT"
    text = path.read_text()
    assert text.startswith("1\n2,2\n6,2\n6,6\n2,2\nEND\n2\n")
    assert text.endswith("END\nEND\n")
    assert dat_path.read_text().splitlines()[1] == "1,'first polygon',8.0"
    back = gen.read(path)
    assert len(back) == 3
    assert back.dat.equals(vectors.dat)


def test_placeholder(tmp_path, gen_path):
    placeholder = gen.read(gen_path).placeholder()
    assert len(placeholder) == 0
    path = tmp_path / "empty.gen"
    dat_path = placeholder.write(path)
    assert path.read_text() == "END\n"
    assert dat_path.read_text() == "id,name,area\n"


def test_vectorfile_requires_id():
    with pytest.raises(ValueError):
        VectorFile(VectorFile.from_geometries([], []).features.drop(columns="id"))
