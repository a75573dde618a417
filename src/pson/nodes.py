"""
Value nodes: the typed intermediate tree handed to the message layer.

Each input value is transformed into exactly one node. The set of node
types is closed; the message codec must handle every one of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class NodeKind(str, Enum):
    """Kind of value node."""

    NULL = "null"
    UNDEFINED = "undefined"
    STRING = "string"
    REF = "ref"
    INTEGER = "integer"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class NullNode:
    """Absent value (null, or a value that could not be encoded)."""

    kind = NodeKind.NULL


@dataclass(frozen=True)
class UndefinedNode:
    """Undefined value."""

    kind = NodeKind.UNDEFINED


@dataclass(frozen=True)
class StringNode:
    """Literal string carried inline."""

    value: str
    kind = NodeKind.STRING


@dataclass(frozen=True)
class RefNode:
    """Reference to a dictionary entry by id."""

    id: int
    kind = NodeKind.REF


@dataclass(frozen=True)
class IntegerNode:
    """Signed 64-bit integer."""

    value: int
    kind = NodeKind.INTEGER


@dataclass(frozen=True)
class DoubleNode:
    """IEEE-754 double."""

    value: float
    kind = NodeKind.DOUBLE


@dataclass(frozen=True)
class BooleanNode:
    value: bool
    kind = NodeKind.BOOLEAN


@dataclass(frozen=True)
class ArrayNode:
    """Ordered sequence of value nodes."""

    items: tuple[ValueNode, ...] = ()
    kind = NodeKind.ARRAY


# Object keys are either dictionary references or literal strings
KeySlot = Union[RefNode, StringNode]


@dataclass(frozen=True)
class ObjectPair:
    key: KeySlot
    value: ValueNode


@dataclass(frozen=True)
class ObjectNode:
    """Ordered (key-slot, value) pairs, in source enumeration order."""

    pairs: tuple[ObjectPair, ...] = ()
    kind = NodeKind.OBJECT


ValueNode = Union[
    NullNode,
    UndefinedNode,
    StringNode,
    RefNode,
    IntegerNode,
    DoubleNode,
    BooleanNode,
    ArrayNode,
    ObjectNode,
]


def to_plain(node: ValueNode) -> Any:
    """Render a node tree as plain, JSON-serialisable Python data.

    Scalars become ``{"kind": value}`` single-entry dicts so references
    and literals stay distinguishable; used by ``pson inspect``.

    Args:
        node: Root of the tree to render.

    Returns:
        Nested dicts and lists describing the tree.
    """
    if isinstance(node, (NullNode, UndefinedNode)):
        return {node.kind.value: True}
    if isinstance(node, RefNode):
        return {"ref": node.id}
    if isinstance(node, (StringNode, IntegerNode, DoubleNode, BooleanNode)):
        return {node.kind.value: node.value}
    if isinstance(node, ArrayNode):
        return {"array": [to_plain(item) for item in node.items]}
    if isinstance(node, ObjectNode):
        return {
            "object": [
                {"key": to_plain(pair.key), "value": to_plain(pair.value)}
                for pair in node.pairs
            ]
        }
    raise TypeError(f"Not a value node: {type(node).__name__}")
