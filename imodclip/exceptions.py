from pathlib import Path
from typing import Optional, Union


class ImodClipError(Exception):
    """Base class for the errors raised by imodclip."""


class FormatError(ImodClipError):
    """
    A file could not be decoded: wrong identifier, malformed or truncated.

    Parameters
    ----------
    message : str
    path : str or Path, optional
        The offending file.
    offset : int, optional
        Byte offset (binary formats) or line number (text formats) at which
        decoding failed.
    unit : str
        ``"byte"`` or ``"line"``, describing ``offset``.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        offset: Optional[int] = None,
        unit: str = "byte",
    ):
        self.message = message
        self.path = None if path is None else Path(path)
        self.offset = offset
        self.unit = unit
        super().__init__(str(self))

    def __str__(self) -> str:
        text = self.message
        if self.path is not None:
            text += f'\nIn file "{self.path}"'
            if self.offset is not None:
                text += f" at {self.unit} {self.offset}"
        return text

    def __reduce__(self):
        return (type(self), (self.message, self.path, self.offset, self.unit))


class ExtentError(ImodClipError, ValueError):
    """Invalid extent, such as a lower left corner beyond the upper right corner."""


class FileInUseError(ImodClipError, OSError):
    """An output file cannot be written, because it is locked or read-only."""

    def __init__(self, path: Union[str, Path], kind: str = "file"):
        self.path = Path(path)
        self.kind = kind
        super().__init__(
            f'{kind} "{self.path}" cannot be written: it is in use by another '
            "process or write protected. Close it and try again."
        )

    def __reduce__(self):
        return (type(self), (self.path, self.kind))
