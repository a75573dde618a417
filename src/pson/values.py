"""
Input-side markers understood by the encoder.

- ``UNDEFINED``: stands for a value that is present but undefined, which
  plain Python data has no spelling for.
- ``Frozen``: wraps a value so that no object below it may add keys to
  the dictionary, regardless of the encoder's own frozen flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class _Undefined:
    """Singleton type of ``UNDEFINED``."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class Frozen:
    """Marks a subtree as frozen.

    Every object inside ``value`` (at any depth) emits unseen keys as
    literal strings instead of interning them. Keys already in the
    dictionary are still emitted as references.

    Example:
        >>> encoder.encode({"meta": Frozen({"one_off_key": 1})})
    """

    value: Any
