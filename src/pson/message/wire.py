"""
Protocol-buffers compatible wire codec.

Layout (field number, type):

    Message: 1 dict (repeated string), 2 data (Value)
    Value:   1 ref (uint32), 2 str (string), 3 itg (sint64, zig-zag),
             4 dbl (double), 5 bln (bool), 6 arr (Array), 7 obj (Object),
             8 udf (bool)
    Array:   1 val (repeated Value)
    Object:  1 pair (repeated Pair)
    Pair:    1 ref (uint32), 2 key (string), 3 val (Value)

An absent (null) value is an empty Value. Unknown fields are skipped on
parse so that newer writers stay readable.
"""

from __future__ import annotations

import struct
from typing import Optional

from pson.errors import WireFormatError
from pson.message.base import Message, MessageCodec
from pson.nodes import (
    ArrayNode,
    BooleanNode,
    DoubleNode,
    IntegerNode,
    KeySlot,
    NullNode,
    ObjectNode,
    ObjectPair,
    RefNode,
    StringNode,
    UndefinedNode,
    ValueNode,
)

# Wire types
VARINT = 0
FIXED64 = 1
LENGTH_DELIMITED = 2
FIXED32 = 5

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT32_MAX = 2**32 - 1


def _tag(field_number: int, wire_type: int) -> int:
    return (field_number << 3) | wire_type


def _write_varint(result: bytearray, value: int) -> None:
    """Append an unsigned base-128 varint."""
    if value < 0:
        raise WireFormatError(f"varint must be non-negative: {value}")
    while True:
        bits = value & 0x7F
        value >>= 7
        if value == 0:
            result.append(bits)
            return
        result.append(bits | 0x80)


def _read_varint(blob: bytes, offset: int) -> tuple[int, int]:
    """Read an unsigned varint at offset.

    Returns:
        Tuple of (value, new offset).
    """
    value = 0
    shift = 0
    while True:
        if offset >= len(blob):
            raise WireFormatError("Unexpected end of data in varint")
        byte = blob[offset]
        offset += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, offset
        shift += 7
        if shift >= 70:
            raise WireFormatError("Varint too long")


def _read_key(blob: bytes, offset: int) -> tuple[int, int, int]:
    """Read a field key.

    Returns:
        Tuple of (field number, wire type, new offset).
    """
    key, offset = _read_varint(blob, offset)
    return key >> 3, key & 0x07, offset


def _zigzag(value: int) -> int:
    return (value << 1) ^ (value >> 63)


def _unzigzag(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def _write_bytes(result: bytearray, field_number: int, data: bytes) -> None:
    _write_varint(result, _tag(field_number, LENGTH_DELIMITED))
    _write_varint(result, len(data))
    result.extend(data)


def _read_bytes(blob: bytes, offset: int) -> tuple[bytes, int]:
    length, offset = _read_varint(blob, offset)
    end = offset + length
    if end > len(blob):
        raise WireFormatError("Length-delimited field exceeds data")
    return bytes(blob[offset:end]), end


def _decode_str(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WireFormatError(f"Invalid UTF-8 in string field: {e}") from e


def _skip_field(blob: bytes, offset: int, wire_type: int) -> int:
    """Skip over an unknown field's payload, returning the new offset."""
    if wire_type == VARINT:
        _, offset = _read_varint(blob, offset)
        return offset
    if wire_type == LENGTH_DELIMITED:
        _, offset = _read_bytes(blob, offset)
        return offset
    if wire_type == FIXED64:
        offset += 8
    elif wire_type == FIXED32:
        offset += 4
    else:
        raise WireFormatError(f"Unsupported wire type: {wire_type}")
    if offset > len(blob):
        raise WireFormatError("Unexpected end of data")
    return offset


class WireCodec(MessageCodec):
    """Default codec producing protobuf-compatible messages.

    Example:
        >>> codec = WireCodec()
        >>> blob = codec.serialize(Message(["x"], RefNode(0)))
        >>> codec.parse(blob)
        Message(dict=['x'], data=RefNode(id=0))
    """

    def serialize(self, message: Message) -> bytes:
        result = bytearray()
        for token in message.dict:
            _write_bytes(result, 1, token.encode("utf-8"))
        _write_bytes(result, 2, self._encode_value(message.data))
        return bytes(result)

    def parse(self, blob: bytes) -> Message:
        message = Message()
        offset = 0
        while offset < len(blob):
            field_number, wire_type, offset = _read_key(blob, offset)
            if wire_type != LENGTH_DELIMITED or field_number not in (1, 2):
                offset = _skip_field(blob, offset, wire_type)
                continue
            data, offset = _read_bytes(blob, offset)
            if field_number == 1:
                message.dict.append(_decode_str(data))
            else:
                message.data = self._decode_value(data)
        return message

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _encode_value(self, node: ValueNode) -> bytes:
        """Encode one node as the payload of a Value message."""
        result = bytearray()
        if isinstance(node, NullNode):
            pass
        elif isinstance(node, RefNode):
            self._encode_ref(node, result)
        elif isinstance(node, StringNode):
            _write_bytes(result, 2, node.value.encode("utf-8"))
        elif isinstance(node, IntegerNode):
            if not INT64_MIN <= node.value <= INT64_MAX:
                raise WireFormatError(
                    f"Integer outside signed 64-bit range: {node.value}"
                )
            _write_varint(result, _tag(3, VARINT))
            _write_varint(result, _zigzag(node.value))
        elif isinstance(node, DoubleNode):
            _write_varint(result, _tag(4, FIXED64))
            result.extend(struct.pack("<d", node.value))
        elif isinstance(node, BooleanNode):
            _write_varint(result, _tag(5, VARINT))
            result.append(1 if node.value else 0)
        elif isinstance(node, ArrayNode):
            items = bytearray()
            for item in node.items:
                _write_bytes(items, 1, self._encode_value(item))
            _write_bytes(result, 6, bytes(items))
        elif isinstance(node, ObjectNode):
            pairs = bytearray()
            for pair in node.pairs:
                _write_bytes(pairs, 1, self._encode_pair(pair))
            _write_bytes(result, 7, bytes(pairs))
        elif isinstance(node, UndefinedNode):
            _write_varint(result, _tag(8, VARINT))
            result.append(1)
        else:
            raise TypeError(f"Not a value node: {type(node).__name__}")
        return bytes(result)

    def _encode_ref(self, node: RefNode, result: bytearray) -> None:
        if not 0 <= node.id <= UINT32_MAX:
            raise WireFormatError(f"Reference id out of range: {node.id}")
        _write_varint(result, _tag(1, VARINT))
        _write_varint(result, node.id)

    def _encode_pair(self, pair: ObjectPair) -> bytes:
        result = bytearray()
        if isinstance(pair.key, RefNode):
            self._encode_ref(pair.key, result)
        else:
            _write_bytes(result, 2, pair.key.value.encode("utf-8"))
        _write_bytes(result, 3, self._encode_value(pair.value))
        return bytes(result)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def _decode_value(self, blob: bytes) -> ValueNode:
        """Decode the payload of a Value message; last known field wins."""
        node: ValueNode = NullNode()
        offset = 0
        while offset < len(blob):
            field_number, wire_type, offset = _read_key(blob, offset)
            if field_number == 1 and wire_type == VARINT:
                value, offset = _read_varint(blob, offset)
                node = RefNode(value)
            elif field_number == 2 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                node = StringNode(_decode_str(data))
            elif field_number == 3 and wire_type == VARINT:
                value, offset = _read_varint(blob, offset)
                node = IntegerNode(_unzigzag(value))
            elif field_number == 4 and wire_type == FIXED64:
                if offset + 8 > len(blob):
                    raise WireFormatError("Unexpected end of data")
                value = struct.unpack("<d", blob[offset : offset + 8])[0]
                node = DoubleNode(value)
                offset += 8
            elif field_number == 5 and wire_type == VARINT:
                value, offset = _read_varint(blob, offset)
                node = BooleanNode(bool(value))
            elif field_number == 6 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                node = self._decode_array(data)
            elif field_number == 7 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                node = self._decode_object(data)
            elif field_number == 8 and wire_type == VARINT:
                value, offset = _read_varint(blob, offset)
                if value:
                    node = UndefinedNode()
            else:
                offset = _skip_field(blob, offset, wire_type)
        return node

    def _decode_array(self, blob: bytes) -> ArrayNode:
        items: list[ValueNode] = []
        offset = 0
        while offset < len(blob):
            field_number, wire_type, offset = _read_key(blob, offset)
            if field_number == 1 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                items.append(self._decode_value(data))
            else:
                offset = _skip_field(blob, offset, wire_type)
        return ArrayNode(tuple(items))

    def _decode_object(self, blob: bytes) -> ObjectNode:
        pairs: list[ObjectPair] = []
        offset = 0
        while offset < len(blob):
            field_number, wire_type, offset = _read_key(blob, offset)
            if field_number == 1 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                pairs.append(self._decode_pair(data))
            else:
                offset = _skip_field(blob, offset, wire_type)
        return ObjectNode(tuple(pairs))

    def _decode_pair(self, blob: bytes) -> ObjectPair:
        key: Optional[KeySlot] = None
        value: ValueNode = NullNode()
        offset = 0
        while offset < len(blob):
            field_number, wire_type, offset = _read_key(blob, offset)
            if field_number == 1 and wire_type == VARINT:
                token_id, offset = _read_varint(blob, offset)
                key = RefNode(token_id)
            elif field_number == 2 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                key = StringNode(_decode_str(data))
            elif field_number == 3 and wire_type == LENGTH_DELIMITED:
                data, offset = _read_bytes(blob, offset)
                value = self._decode_value(data)
            else:
                offset = _skip_field(blob, offset, wire_type)
        if key is None:
            raise WireFormatError("Object pair without a key")
        return ObjectPair(key, value)
