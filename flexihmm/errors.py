"""
Error types raised by the flexihmm core.

Training problems surface as DataError, decoding problems as a DecodeError
subclass. The core never recovers from either; callers decide what to do.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class DataError(ValueError):
    """Malformed training or evaluation input."""

    def __init__(
        self,
        message: str,
        *,
        index: Optional[int] = None,
        path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.index = index
        self.path = Path(path) if path is not None else None
        prefix = ""
        if self.path is not None:
            prefix = f"{self.path}: "
        if index is not None:
            prefix += f"sentence {index + 1}: "
        super().__init__(prefix + message)


class DecodeError(Exception):
    """The decoder could not produce a tag sequence for a sentence."""

    def __init__(self, message: str, *, position: Optional[int] = None) -> None:
        self.position = position
        super().__init__(message)


class EmptyInputError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Cannot decode an empty sentence")


class NoReachableStateError(DecodeError):
    """No tag is reachable at ``position`` through the transition table."""

    def __init__(self, position: int, word: str) -> None:
        self.word = word
        super().__init__(
            f"No reachable tag at position {position} (word '{word}'); "
            "the previous tags have no outgoing transitions",
            position=position,
        )
