"""
Walking an input directory and clipping or copying every file to the output
directory, keeping the directory structure.
"""

from pathlib import Path
from typing import List, Optional, Set

from imodclip.clip import ClipEngine, FileKind, RunStatistics
from imodclip.exceptions import FormatError
from imodclip.formats import ipf
from imodclip.logging import logger, standard_log_decorator
from imodclip.settings import ClipSettings
from imodclip.util.path import copy_file, is_read_only, relative_to, siblings

__all__ = ["DirectoryWalker", "RunStatistics"]


class DirectoryWalker:
    """
    Clips all IDF, ASC, IPF and GEN files of a directory (or a single file)
    and copies the other files.

    Companion files follow their owner: an IPF writes its associated files,
    a GEN file its DAT file, and every written or copied file its MET file.
    Associated files that are no longer referenced after clipping an IPF are
    not copied.

    Parameters
    ----------
    settings: ClipSettings

    Examples
    --------
    >>> settings = ClipSettings("input", "output", Extent(0.0, 0.0, 100.0, 100.0), recursive=True)
    >>> statistics = DirectoryWalker(settings).run()
    >>> statistics.clipped
    12
    """

    def __init__(self, settings: ClipSettings):
        self.settings = settings
        self.statistics = RunStatistics()
        self._engine: Optional[ClipEngine] = None
        if settings.extent is not None:
            self._engine = ClipEngine(settings, self.statistics)
        # Resolved source paths of associated files, over the whole run
        self._written: Set[Path] = set()
        self._dropped: Set[Path] = set()

    @standard_log_decorator()
    def run(self) -> RunStatistics:
        """
        Process the input path.

        Returns
        -------
        RunStatistics
            The counters of this run; also logged as summary.

        Raises
        ------
        FileNotFoundError
            If the input path does not exist.
        """
        settings = self.settings
        if not settings.input_path.exists():
            raise FileNotFoundError(f"Input path does not exist: {settings.input_path}")
        if settings.extent is None:
            logger.info(
                f"No extent given, copying {settings.input_path} to {settings.output_path}"
            )
        else:
            logger.info(
                f"Clipping {settings.input_path} to {settings.output_path} "
                f"with extent {settings.extent}"
            )

        if settings.single_file:
            self._process_single_file()
        else:
            settings.output_path.mkdir(parents=True, exist_ok=True)
            self._process_directory(settings.input_path, settings.output_path)

        for line in self.statistics.summary():
            logger.info(line)
        return self.statistics

    def _process_single_file(self) -> None:
        source = self.settings.input_path
        output = self.settings.output_path
        if output.suffix:
            target = output
        else:
            target = output / source.name
        self.statistics.input += 1
        if self._process_file(source, target):
            self._copy(source, target)

    def _process_directory(self, indir: Path, outdir: Path) -> None:
        logger.info(f"Processing directory {relative_to(indir, self.settings.input_path)}")
        outdir.mkdir(parents=True, exist_ok=True)
        entries = sorted(indir.iterdir())
        files = [p for p in entries if p.is_file()]
        subdirs = [p for p in entries if p.is_dir()]

        deferred = []
        for source in files:
            self.statistics.input += 1
            if self._process_file(source, outdir / source.name):
                deferred.append(source)
        self._copy_others(deferred, files, outdir)

        if self.settings.recursive:
            output_root = self.settings.output_path.resolve()
            for subdir in subdirs:
                if subdir.resolve() == output_root:
                    continue
                self._process_directory(subdir, outdir / subdir.name)

        if self.settings.empty_file_method.removes_empty_folders:
            self._remove_if_empty(outdir)

    def _target_available(self, source: Path, target: Path) -> bool:
        if not target.exists():
            return True
        if not self.settings.overwrite:
            logger.debug(f"Skipped existing output file {target}")
            self.statistics.skipped_existing += 1
            return False
        if is_read_only(target):
            logger.error(
                f"Output file {target} is read-only and cannot be overwritten, "
                f"skipped {source}"
            )
            self.statistics.error += 1
            return False
        return True

    def _process_file(self, source: Path, target: Path) -> bool:
        """
        Clip a single file. Returns True if the file should be copied after
        the other files of its directory are processed.
        """
        settings = self.settings
        if settings.excludes_extension(source):
            logger.debug(f"Skipped excluded file {source}")
            return False

        kind = FileKind.from_path(source)
        if kind is None or self._engine is None:
            return True

        if settings.skips_clip(source):
            if settings.skips_copy(source):
                logger.debug(f"Skipped file {source}")
            else:
                self._copy(source, target)
                for met in siblings(source, ".met"):
                    self._copy(met, target.with_suffix(met.suffix))
            return False

        if not self._target_available(source, target):
            if kind == FileKind.IPF:
                self._skip_associated(source)
            return False

        logger.info(
            f"Processing {kind.label} {relative_to(source, settings.input_path)}"
        )
        result = self._engine.clip_file(kind, source, target)
        self._written.update(p.resolve() for p in result.written)
        self._dropped.update(p.resolve() for p in result.dropped)
        return False

    def _skip_associated(self, source: Path) -> None:
        # Associated files of a skipped IPF are not copied on their own
        try:
            companions = ipf.read(source).companions()
        except FormatError as e:
            logger.warning(f"Could not read associated files of {source}: {e}")
            return
        self._written.update(p.resolve() for p in companions)

    def _is_owned(self, source: Path, files: List[Path]) -> bool:
        # Without extent, owners are copied and their companions with them
        if self._engine is None:
            return False
        suffix = source.suffix.lower()
        stem = source.stem.lower()
        if suffix == ".met":
            owners = [p for p in files if FileKind.from_path(p) is not None]
        elif suffix == ".dat":
            owners = [p for p in files if FileKind.from_path(p) == FileKind.GEN]
        else:
            return False
        return any(
            p.stem.lower() == stem and not self.settings.excludes_extension(p)
            for p in owners
        )

    def _copy_others(self, deferred: List[Path], files: List[Path], outdir: Path) -> None:
        for source in deferred:
            if self.settings.skips_copy(source):
                logger.debug(f"Skipped file {source}")
                continue
            if self._is_owned(source, files):
                continue
            resolved = source.resolve()
            if resolved in self._written:
                continue
            if resolved in self._dropped:
                logger.debug(f"Skipped associated file outside extent: {source}")
                self.statistics.skipped_empty += 1
                continue
            self._copy(source, outdir / source.name)

    def _copy(self, source: Path, target: Path) -> None:
        if not self._target_available(source, target):
            return
        try:
            copy_file(source, target)
        except OSError as e:
            self.statistics.error += 1
            logger.error(f"Could not copy {source} to {target}: {e}")
            if self.settings.stop_on_error:
                raise
            return
        logger.debug(f"Copied {source}")
        self.statistics.copied_other += 1

    def _remove_if_empty(self, outdir: Path) -> None:
        if outdir == self.settings.output_path:
            return
        if outdir.is_dir() and not any(outdir.iterdir()):
            logger.debug(f"Removed empty output directory {outdir}")
            outdir.rmdir()
