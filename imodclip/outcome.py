"""
Result of clipping a file to an extent.

Every format returns a :data:`ClipOutcome` from its ``clip`` method: either
:class:`NonEmpty`, wrapping the clipped file, or :class:`Empty`, telling
whether the declared extent of the source overlapped the clip extent at all.
The latter drives the empty file policy in :mod:`imodclip.clip`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Union


@dataclass(frozen=True)
class Empty:
    """
    Nothing of the source survived the clip.

    Parameters
    ----------
    overlaps : bool
        Whether the declared extent of the source overlapped the clip extent.
        False means the file lies completely outside.
    dropped_companions : frozenset of Path
        Associated files only referenced by removed records.
    """

    overlaps: bool
    dropped_companions: FrozenSet[Path] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return True


@dataclass(frozen=True)
class NonEmpty:
    """
    The clipped file, with at least one cell, record or feature.

    Parameters
    ----------
    file : GridFile, AsciiGridFile, PointFile or VectorFile
    dropped_companions : frozenset of Path
        Associated files only referenced by removed records.
    """

    file: Any
    dropped_companions: FrozenSet[Path] = field(default_factory=frozenset)

    @property
    def overlaps(self) -> bool:
        return True

    @property
    def is_empty(self) -> bool:
        return False


ClipOutcome = Union[Empty, NonEmpty]
