"""
Clipping of a single file: read, clip, apply the empty file policy, write.

The :class:`ClipEngine` is used by :class:`imodclip.walker.DirectoryWalker`
for every IDF, ASC, IPF and GEN file, but can be used on its own as well:

>>> settings = ClipSettings("input", "output", Extent(0.0, 0.0, 100.0, 100.0))
>>> engine = ClipEngine(settings, RunStatistics())
>>> engine.clip_file(FileKind.IDF, Path("input/head.idf"), Path("output/head.idf"))
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Set

from imodclip.exceptions import ExtentError, FileInUseError, FormatError
from imodclip.formats import asc, gen, idf, ipf
from imodclip.logging import logger
from imodclip.outcome import Empty
from imodclip.settings import ClipSettings, EmptyFileMethod
from imodclip.util.context import removed_on_error
from imodclip.util.path import copy_file, copy_timestamp, siblings

__all__ = [
    "ClipEngine",
    "EmptyFileMethod",
    "FileKind",
    "FileResult",
    "FileStatus",
    "RunStatistics",
]


class FileKind(Enum):
    IDF = ".idf"
    ASC = ".asc"
    IPF = ".ipf"
    GEN = ".gen"

    @classmethod
    def from_path(cls, path: Path) -> Optional["FileKind"]:
        """Kind of file by its extension, case insensitive; None if not clippable."""
        try:
            return cls(path.suffix.lower())
        except ValueError:
            return None

    @property
    def is_grid(self) -> bool:
        return self in (FileKind.IDF, FileKind.ASC)

    @property
    def label(self) -> str:
        return f"{self.name}-file"

    @property
    def reader(self) -> Callable:
        return _READERS[self]


_READERS: Dict[FileKind, Callable] = {
    FileKind.IDF: idf.read,
    FileKind.ASC: asc.read,
    FileKind.IPF: ipf.read,
    FileKind.GEN: gen.read,
}


class FileStatus(Enum):
    CLIPPED = "clipped"
    PLACEHOLDER = "placeholder"
    SKIPPED_EMPTY = "skipped_empty"
    SKIPPED_NODATA = "skipped_nodata"
    COPIED_EMPTY = "copied_empty"
    ERROR = "error"


@dataclass(frozen=True)
class FileResult:
    """
    Result of :meth:`ClipEngine.clip_file`.

    ``written`` holds the associated files that were written or copied along,
    ``dropped`` the associated files that are no longer referenced. Both are
    source paths.
    """

    status: FileStatus
    written: FrozenSet[Path] = field(default_factory=frozenset)
    dropped: FrozenSet[Path] = field(default_factory=frozenset)


@dataclass
class RunStatistics:
    """Counters of a single run."""

    input: int = 0
    clipped: int = 0
    skipped_existing: int = 0
    skipped_empty: int = 0
    skipped_nodata: int = 0
    created_nodata: int = 0
    copied_empty: int = 0
    copied_other: int = 0
    error: int = 0

    def summary(self) -> List[str]:
        lines = [
            f"Number of input files:            {self.input}",
            f"Clipped files:                    {self.clipped}",
            f"Skipped existing files:           {self.skipped_existing}",
            f"Skipped empty files:              {self.skipped_empty}",
            f"Skipped nodata grids:             {self.skipped_nodata}",
            f"Created nodata grids:             {self.created_nodata}",
            f"Copied files outside extent:      {self.copied_empty}",
            f"Copied other files:               {self.copied_other}",
        ]
        if self.error > 0:
            lines.append(f"Files with errors:                {self.error}")
        return lines

    def __add__(self, other: "RunStatistics") -> "RunStatistics":
        return RunStatistics(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )


class ClipEngine:
    """
    Clips single files with the settings of a run, and counts the results in
    ``statistics``.

    Parameters
    ----------
    settings: ClipSettings
        Settings with an extent.
    statistics: RunStatistics
    """

    def __init__(self, settings: ClipSettings, statistics: RunStatistics):
        if settings.extent is None:
            raise ExtentError("Clipping requires an extent")
        self.settings = settings
        self.statistics = statistics

    @property
    def extent(self):
        return self.settings.extent

    def clip_file(self, kind: FileKind, source: Path, target: Path) -> FileResult:
        """
        Clip ``source`` and write the result to ``target``.

        A malformed source or an output that cannot be written is logged and
        counted as error. Any other failure is logged as well, after which
        the source is copied as is; with ``stop_on_error`` it is raised
        instead.

        Raises
        ------
        ExtentError
            Always raised: the run cannot continue with an invalid extent.
        """
        try:
            return self._clip_file(kind, source, target)
        except ExtentError:
            raise
        except (FormatError, FileInUseError) as e:
            self.statistics.error += 1
            logger.error(f"Could not clip {kind.label} {source}: {e}")
            if self.settings.stop_on_error:
                raise
            return FileResult(FileStatus.ERROR)
        except Exception as e:
            self.statistics.error += 1
            if self.settings.stop_on_error:
                logger.error(
                    f"{type(e).__name__} while clipping {kind.label} {source}: {e}"
                )
                raise
            logger.error(
                f"{type(e).__name__} while clipping {kind.label} {source}: {e}\n"
                "The source file is copied instead."
            )
            self._copy_after_error(kind, source, target)
            return FileResult(FileStatus.ERROR)

    def _clip_file(self, kind: FileKind, source: Path, target: Path) -> FileResult:
        logger.debug(f"Reading {kind.label} {source}")
        file = kind.reader(source)
        outcome = file.clip(self.extent)
        dropped = frozenset(outcome.dropped_companions)
        if isinstance(outcome, Empty):
            return self._handle_empty(kind, file, outcome, source, target)

        clipped = outcome.file
        if kind.is_grid and self.settings.skip_nodata and not clipped.has_data_values():
            logger.info(f"Skipped {kind.label} without data within extent: {source}")
            self.statistics.skipped_nodata += 1
            return FileResult(FileStatus.SKIPPED_NODATA, dropped=dropped)

        written = self._write(kind, clipped, source, target)
        self.statistics.clipped += 1
        logger.info(f"Clipped {kind.label}: {target}")
        return FileResult(FileStatus.CLIPPED, written, dropped)

    def _handle_empty(
        self, kind: FileKind, file, outcome: Empty, source: Path, target: Path
    ) -> FileResult:
        method = self.settings.empty_file_method
        dropped = frozenset(outcome.dropped_companions)

        if method == EmptyFileMethod.COPY_SOURCE and not outcome.overlaps:
            written = self._copy_source(kind, file, source, target)
            self.statistics.copied_empty += 1
            logger.info(f"{kind.label} outside extent, copied source: {source}")
            return FileResult(FileStatus.COPIED_EMPTY, written)

        if method == EmptyFileMethod.SKIP:
            self.statistics.skipped_empty += 1
            logger.info(f"Skipped {kind.label} without data within extent: {source}")
            return FileResult(FileStatus.SKIPPED_EMPTY, dropped=dropped)

        if kind.is_grid and self.settings.skip_nodata:
            self.statistics.skipped_nodata += 1
            logger.info(f"Skipped {kind.label} without data within extent: {source}")
            return FileResult(FileStatus.SKIPPED_NODATA, dropped=dropped)

        placeholder = file.placeholder(self.extent)
        written = self._write(kind, placeholder, source, target)
        if kind.is_grid:
            self.statistics.created_nodata += 1
            logger.info(f"Created nodata {kind.label}: {target}")
        else:
            self.statistics.clipped += 1
            logger.info(f"Created empty {kind.label}: {target}")
        return FileResult(FileStatus.PLACEHOLDER, written, dropped)

    def _write(self, kind: FileKind, file, source: Path, target: Path) -> FrozenSet[Path]:
        """
        Write ``file`` with its companions. On failure, everything written so
        far is removed.
        """
        target.parent.mkdir(parents=True, exist_ok=True)
        written: Set[Path] = set()
        stamped = [target]
        with removed_on_error(target) as outputs:
            if kind == FileKind.IPF:
                written = file.write(target)
                for companion in written:
                    companion_target = file.associated_target(companion, target)
                    if companion_target.resolve() != companion.resolve():
                        outputs.append(companion_target)
            elif kind == FileKind.GEN:
                dat_path = file.write(target)
                if dat_path is not None:
                    outputs.append(dat_path)
                    stamped.append(dat_path)
            else:
                file.write(target)

            if self.settings.keep_timestamp:
                for output in stamped:
                    copy_timestamp(source, output)
            self._copy_sidecars(source, target, ".met", "MET-file", outputs)
        return frozenset(written)

    def _copy_source(self, kind: FileKind, file, source: Path, target: Path) -> FrozenSet[Path]:
        written = set()
        with removed_on_error(target) as outputs:
            copy_file(source, target, kind.label)
            if kind == FileKind.IPF:
                for companion in file.companions():
                    companion_target = file.associated_target(companion, target)
                    if companion_target.resolve() != companion.resolve():
                        outputs.append(companion_target)
                        copy_file(companion, companion_target, "associated file")
                    written.add(companion)
            elif kind == FileKind.GEN:
                self._copy_sidecars(source, target, ".dat", "DAT-file", outputs)
            self._copy_sidecars(source, target, ".met", "MET-file", outputs)
        return frozenset(written)

    def _copy_after_error(self, kind: FileKind, source: Path, target: Path) -> None:
        try:
            copy_file(source, target, kind.label)
            if kind == FileKind.GEN:
                self._copy_sidecars(source, target, ".dat", "DAT-file", [])
        except OSError as e:
            logger.error(f"Could not copy {source} to {target}: {e}")

    @staticmethod
    def _copy_sidecars(
        source: Path, target: Path, suffix: str, label: str, outputs: List[Path]
    ) -> None:
        for sidecar in siblings(source, suffix):
            sidecar_target = target.with_suffix(sidecar.suffix)
            outputs.append(sidecar_target)
            copy_file(sidecar, sidecar_target, label)
