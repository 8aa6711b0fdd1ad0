import contextlib
import pathlib
import warnings
from typing import Union


@contextlib.contextmanager
def ignore_warnings():
    """
    Contextmanager to ignore RuntimeWarnings as they are frequently
    raised by the Dask delayed scheduler, e.g. on comparisons with NaN.

    Examples
    --------
    >>> with imodclip.util.context.ignore_warnings():
            function_that_throws_warnings()

    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        yield


@contextlib.contextmanager
def removed_on_error(*paths: Union[str, pathlib.Path]):
    """
    Contextmanager for writing files: if the with block raises, the files at
    ``paths`` are removed before the exception propagates. The yielded list
    holds these paths; append the outputs written within the block to have
    them removed as well.

    Examples
    --------
    >>> with imodclip.util.context.removed_on_error("out.gen") as outputs:
            write_gen("out.gen")
            outputs.append(pathlib.Path("out.dat"))
            write_dat("out.dat")

    """
    outputs = [pathlib.Path(path) for path in paths]
    try:
        yield outputs
    except BaseException:
        for path in reversed(outputs):
            if path.is_file():
                path.unlink()
        raise
