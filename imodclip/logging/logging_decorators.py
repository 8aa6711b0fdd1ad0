from functools import wraps
from time import time
from typing import Callable, ParamSpec, TypeVar

from imodclip.logging.loglevel import LogLevel

T = TypeVar("T")
P = ParamSpec("P")


def standard_log_decorator(
    start_level: LogLevel = LogLevel.INFO, end_level: LogLevel = LogLevel.INFO
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for methods: logs the start of the call, and its end with the
    elapsed time.
    """

    def decorator(fun: Callable[P, T]) -> Callable[P, T]:
        @wraps(fun)
        def wrapper(*args: P.args, **kwargs: P.kwargs):
            from imodclip.logging import logger

            object_name = type(args[0]).__name__
            logger.log(
                start_level,
                f"Starting {object_name}.{fun.__name__} ...",
                additional_depth=2,
            )
            start_time = time()
            return_value = fun(*args, **kwargs)
            elapsed = time() - start_time
            logger.log(
                end_level,
                f"Finished {object_name}.{fun.__name__} in {elapsed:.2f} seconds",
                additional_depth=2,
            )
            return return_value

        return wrapper

    return decorator
