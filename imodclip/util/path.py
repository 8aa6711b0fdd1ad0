"""
Path helpers. iMOD files originate from Windows, where file names are case
insensitive; these helpers resolve references like ``"A1000.TXT"`` on case
sensitive file systems as well.
"""

import os
import pathlib
import shutil
import stat
from typing import List, Optional, Union

from imodclip.exceptions import FileInUseError


def find_case_insensitive(path: Union[str, pathlib.Path]) -> Optional[pathlib.Path]:
    """
    Return ``path`` if it exists, otherwise a file in the same directory
    whose name matches case insensitively. None if neither exists.
    """
    path = pathlib.Path(path)
    if path.exists():
        return path
    parent = path.parent
    if not parent.is_dir():
        return None
    name = path.name.lower()
    for candidate in sorted(parent.iterdir()):
        if candidate.name.lower() == name:
            return candidate
    return None


def siblings(path: Union[str, pathlib.Path], suffix: str) -> List[pathlib.Path]:
    """
    Files in the directory of ``path`` with the same stem and the given
    suffix, compared case insensitively.
    """
    path = pathlib.Path(path)
    stem = path.stem.lower()
    suffix = suffix.lower()
    return [
        p
        for p in sorted(path.parent.iterdir())
        if p.is_file() and p.stem.lower() == stem and p.suffix.lower() == suffix
    ]


def is_read_only(path: Union[str, pathlib.Path]) -> bool:
    path = pathlib.Path(path)
    return path.exists() and not (os.stat(path).st_mode & stat.S_IWUSR)


def copy_file(
    source: Union[str, pathlib.Path],
    target: Union[str, pathlib.Path],
    kind: str = "file",
) -> pathlib.Path:
    """
    Copy a file including its timestamps. A permission error on the target is
    raised as :class:`imodclip.exceptions.FileInUseError`.
    """
    target = pathlib.Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copy2(source, target)
    except PermissionError as e:
        raise FileInUseError(target, kind) from e
    return target


def copy_timestamp(
    source: Union[str, pathlib.Path], target: Union[str, pathlib.Path]
) -> None:
    """Set the access and modification times of ``target`` to those of ``source``."""
    st = os.stat(source)
    os.utime(target, ns=(st.st_atime_ns, st.st_mtime_ns))


def relative_to(path: pathlib.Path, root: pathlib.Path) -> str:
    """Path relative to ``root`` for log messages, or the full path."""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)
