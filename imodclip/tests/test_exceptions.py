import pickle
from pathlib import Path

from imodclip.exceptions import ExtentError, FileInUseError, FormatError, ImodClipError
from imodclip.outcome import Empty, NonEmpty


def test_format_error_message():
    error = FormatError("Invalid IDF identifier", "head.idf", 0)
    assert str(error) == 'Invalid IDF identifier\nIn file "head.idf" at byte 0'
    assert str(FormatError("Invalid GEN vertex", "a.gen", 3, unit="line")).endswith(
        "at line 3"
    )
    assert str(FormatError("No path")) == "No path"


def test_format_error_pickle():
    error = pickle.loads(pickle.dumps(FormatError("Truncated", "head.idf", 52)))
    assert isinstance(error, FormatError)
    assert error.path == Path("head.idf")
    assert error.offset == 52


def test_file_in_use_error():
    error = FileInUseError("head.idf", "IDF-file")
    assert isinstance(error, OSError)
    assert isinstance(error, ImodClipError)
    assert str(error).startswith('IDF-file "head.idf" cannot be written')
    restored = pickle.loads(pickle.dumps(error))
    assert restored.kind == "IDF-file"


def test_extent_error_is_value_error():
    assert issubclass(ExtentError, ValueError)


def test_outcome():
    empty = Empty(overlaps=False)
    assert empty.is_empty
    assert empty.dropped_companions == frozenset()
    full = NonEmpty(file=None, dropped_companions=frozenset({Path("A.txt")}))
    assert not full.is_empty
    assert full.overlaps
