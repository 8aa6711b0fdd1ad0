"""
Command line interface::

    imodclip inpath outpath [llx lly urx ury] [options]

Without extent, the input is copied to the output. Returns exit code 0 when
all files were processed, 1 otherwise.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

import imodclip
from imodclip.exceptions import ExtentError, ImodClipError
from imodclip.extent import Extent
from imodclip.logging import LoggerType, LogLevel, logger
from imodclip.settings import ClipSettings, EmptyFileMethod
from imodclip.walker import DirectoryWalker


def _comma_separated(value: str) -> Tuple[str, ...]:
    return tuple(part for part in value.split(",") if part.strip())


def setup_arguments() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imodclip",
        description=(
            "Clip iMOD files (IDF, ASC, IPF, GEN) in a directory to an extent, "
            "and copy all other files."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("inpath", type=Path, help="Input directory or file.")
    parser.add_argument("outpath", type=Path, help="Output directory or file.")
    parser.add_argument(
        "extent",
        nargs="*",
        type=float,
        metavar="llx lly urx ury",
        help="Clip extent. Without extent, all files are copied.",
    )
    parser.add_argument(
        "-k",
        "--keep-time",
        action="store_true",
        help="Give output files the modification time of their source.",
    )
    parser.add_argument(
        "-o", "--overwrite", action="store_true", help="Overwrite existing output files."
    )
    parser.add_argument(
        "-r", "--recursive", action="store_true", help="Process subdirectories."
    )
    parser.add_argument(
        "-s",
        "--skip-clip",
        type=_comma_separated,
        default=(),
        metavar="SUBSTR,...",
        help="Copy files with a path containing one of these substrings, instead of clipping.",
    )
    parser.add_argument(
        "-c",
        "--skip-copy",
        type=_comma_separated,
        default=(),
        metavar="SUBSTR,...",
        help="Do not copy files with a path containing one of these substrings.",
    )
    parser.add_argument(
        "-x",
        "--exclude-ext",
        type=_comma_separated,
        default=(),
        metavar="EXT,...",
        help="Skip files with these extensions.",
    )
    parser.add_argument(
        "-e",
        "--empty-method",
        type=int,
        choices=[method.value for method in EmptyFileMethod],
        default=EmptyFileMethod.WRITE_EMPTY.value,
        help=(
            "Files without data within the extent: 0 write empty file and remove "
            "empty folders, 1 write empty file, 2 skip, 3 copy files outside extent."
        ),
    )
    parser.add_argument(
        "-n",
        "--skip-nodata",
        action="store_true",
        help="Do not write grids without data within the extent.",
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Stop at the first error, instead of copying the failing file.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=[level.name for level in LogLevel],
        type=str.upper,
    )
    parser.add_argument(
        "--log-file", type=Path, default=None, help="Also write the log to this file."
    )
    parser.add_argument("--logger", default="python", choices=["python", "loguru"])
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {imodclip.__version__}"
    )
    return parser


def _extent(values: List[float]) -> Optional[Extent]:
    if not values:
        return None
    if len(values) != 4:
        raise ExtentError(
            f"Extent requires four values llx lly urx ury, received {len(values)}"
        )
    return Extent(*values)


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_arguments()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code in (0, None) else 1

    log_file = args.log_file if args.log_file is not None else "imodclip.log"
    imodclip.logging.configure(
        LoggerType(args.logger),
        LogLevel.from_name(args.log_level),
        add_default_stream_handler=True,
        add_default_file_handler=args.log_file is not None,
        log_file=log_file,
    )

    try:
        settings = ClipSettings(
            input_path=args.inpath,
            output_path=args.outpath,
            extent=_extent(args.extent),
            keep_timestamp=args.keep_time,
            overwrite=args.overwrite,
            recursive=args.recursive,
            skip_clip_substrings=args.skip_clip,
            skip_copy_substrings=args.skip_copy,
            exclude_extensions=args.exclude_ext,
            empty_file_method=EmptyFileMethod(args.empty_method),
            skip_nodata=args.skip_nodata,
            stop_on_error=args.stop_on_error,
        )
    except (ExtentError, ValidationError) as e:
        logger.error(f"Invalid arguments: {e}")
        return 1

    try:
        statistics = DirectoryWalker(settings).run()
    except ImodClipError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected {type(e).__name__}, clipping stopped: {e}")
        return 1

    if statistics.error > 0:
        logger.warning(f"{statistics.error} file(s) could not be processed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
