"""
Settings of a clip run, validated on construction. Built by the command line
interface, or directly when clipping from Python.
"""

from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ConfigDict, field_validator, model_validator
from pydantic.dataclasses import dataclass

from imodclip.extent import Extent


class EmptyFileMethod(IntEnum):
    """
    What to do with a file of which nothing remains after clipping.

    * ``WRITE_EMPTY``: write an empty file (a nodata grid, or a point or
      vector file without records); output folders left empty are removed.
    * ``WRITE_EMPTY_KEEP_FOLDER``: write an empty file; keep empty folders.
    * ``SKIP``: write nothing; output folders left empty are removed.
    * ``COPY_SOURCE``: copy the source file as is, when it lies completely
      outside the extent. An overlapping file without remaining data is
      written empty, as with ``WRITE_EMPTY_KEEP_FOLDER``.
    """

    WRITE_EMPTY = 0
    WRITE_EMPTY_KEEP_FOLDER = 1
    SKIP = 2
    COPY_SOURCE = 3

    @property
    def removes_empty_folders(self) -> bool:
        return self in (EmptyFileMethod.WRITE_EMPTY, EmptyFileMethod.SKIP)


_CONFIG = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


@dataclass(config=_CONFIG)
class ClipSettings:
    """
    Settings of a clip run.

    Parameters
    ----------
    input_path: Path
        Directory or single file to clip.
    output_path: Path
        Output directory. For a single input file, a path with a suffix is
        taken as the output file name.
    extent: Extent, optional
        Clip extent. Without extent, all files are copied.
    keep_timestamp: bool, default False
        Give written files the modification time of their source.
    overwrite: bool, default False
        Overwrite existing output files.
    recursive: bool, default False
        Process subdirectories.
    skip_clip_substrings: tuple of str
        Files with a path containing one of these are copied, not clipped.
    skip_copy_substrings: tuple of str
        Files with a path containing one of these are not copied.
    exclude_extensions: tuple of str
        Files with these extensions are skipped.
    empty_file_method: EmptyFileMethod, default WRITE_EMPTY
    skip_nodata: bool, default False
        Do not write grids without data values.
    stop_on_error: bool, default False
        Stop the run at the first file that fails; otherwise the source is
        copied and the run continues.

    Examples
    --------
    >>> settings = ClipSettings("models/base", "models/clipped", Extent(0, 0, 1000, 1000))
    """

    input_path: Path
    output_path: Path
    extent: Optional[Extent] = None
    keep_timestamp: bool = False
    overwrite: bool = False
    recursive: bool = False
    skip_clip_substrings: Tuple[str, ...] = ()
    skip_copy_substrings: Tuple[str, ...] = ()
    exclude_extensions: Tuple[str, ...] = ()
    empty_file_method: EmptyFileMethod = EmptyFileMethod.WRITE_EMPTY
    skip_nodata: bool = False
    stop_on_error: bool = False

    @field_validator("input_path")
    @classmethod
    def _input_exists(cls, path: Path) -> Path:
        if not path.exists():
            raise ValueError(f"Input path does not exist: {path}")
        return path

    @field_validator("skip_clip_substrings", "skip_copy_substrings")
    @classmethod
    def _drop_blank(cls, substrings: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(s.strip() for s in substrings if s.strip())

    @field_validator("exclude_extensions")
    @classmethod
    def _normalize_extensions(cls, extensions: Tuple[str, ...]) -> Tuple[str, ...]:
        normalized = []
        for ext in extensions:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            normalized.append(ext)
        return tuple(normalized)

    @model_validator(mode="after")
    def _output_differs(self) -> "ClipSettings":
        if self.input_path.resolve() == self.output_path.resolve():
            raise ValueError(
                f"Output path should differ from input path: {self.output_path}"
            )
        return self

    @property
    def single_file(self) -> bool:
        return self.input_path.is_file()

    def excludes_extension(self, path: Path) -> bool:
        return path.suffix.lower() in self.exclude_extensions

    def skips_clip(self, path: Path) -> bool:
        text = str(path).lower()
        return any(s.lower() in text for s in self.skip_clip_substrings)

    def skips_copy(self, path: Path) -> bool:
        text = str(path).lower()
        return any(s.lower() in text for s in self.skip_copy_substrings)
