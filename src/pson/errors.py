"""Exception types raised by pson."""

from __future__ import annotations


class UnsupportedValueError(TypeError):
    """Value cannot be represented by any value node.

    Only raised when the encoder runs in strict mode; otherwise such
    values are encoded as absent (null) nodes.
    """

    def __init__(self, value: object, reason: str = "") -> None:
        self.value = value
        type_name = type(value).__name__
        super().__init__(reason or f"Cannot encode value of type {type_name}")


class WireFormatError(ValueError):
    """Binary message is malformed or truncated."""
