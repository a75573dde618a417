"""
Encoder: turns JSON-like values into compact binary messages.

Object keys are interned into a dictionary that persists across encode
calls, so a key costs its full length only the first time it is sent;
afterwards it is sent as a small integer id. Each message declares the
entries added while building it, in id order, so a decoder that appends
declarations as it reads them stays in step.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pson.config import EncoderConfig
from pson.dictionary import Dictionary
from pson.errors import UnsupportedValueError
from pson.message import Message, MessageCodec, WireCodec
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
from pson.values import UNDEFINED, Frozen

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Largest magnitude below which every integral float is exact
MAX_SAFE_INTEGER = 2**53


def _key_text(key: Any) -> str:
    """Spell a mapping key the way json.dumps does."""
    if isinstance(key, str):
        return key
    if key is True:
        return "true"
    if key is False:
        return "false"
    if key is None:
        return "null"
    return str(key)


class Encoder:
    """Stateful encoder with a session-persistent key dictionary.

    Not safe for concurrent use: use one encoder per connection, or
    serialise calls externally.

    Attributes:
        config: Encoding options.
        codec: Message layer used to produce bytes.
        stats: Counters of encoded messages and degraded values.

    Example:
        >>> encoder = Encoder()
        >>> blob = encoder.encode({"x": 1, "y": "hi"})
        >>> encoder.dictionary.tokens()
        ['x', 'y']
    """

    def __init__(
        self,
        values: Optional[Iterable[str]] = None,
        config: Optional[EncoderConfig] = None,
        codec: Optional[MessageCodec] = None,
    ) -> None:
        """Initialise the encoder.

        Args:
            values: Optional seed strings, assigned ids 0, 1, 2... in order.
                The decoder must be seeded with the same list.
            config: Encoding options (defaults to EncoderConfig()).
            codec: Message codec (defaults to WireCodec()).
        """
        self._dictionary = Dictionary(values)
        self.config = config or EncoderConfig()
        self.codec = codec or WireCodec()
        self.stats: dict[str, int] = {"messages": 0, "unsupported": 0}

    @property
    def dictionary(self) -> Dictionary:
        """The dictionary state owned by this encoder."""
        return self._dictionary

    @property
    def frozen(self) -> bool:
        """Whether the whole dictionary is frozen."""
        return self._dictionary.frozen

    def freeze(self) -> None:
        """Freeze the dictionary, preventing any keys being added to it."""
        self._dictionary.frozen = True

    def unfreeze(self) -> None:
        """Unfreeze the dictionary, allowing keys to be added again."""
        self._dictionary.frozen = False

    def encode(self, value: Any) -> bytes:
        """Encode a value to a binary message.

        Args:
            value: JSON-like data, optionally containing UNDEFINED and
                Frozen markers.

        Returns:
            Serialised message including any new dictionary entries.
        """
        return self.codec.serialize(self.encode_message(value))

    def encode_message(self, value: Any) -> Message:
        """Encode a value to a Message without serialising it.

        Drains the pending dictionary additions into the message.
        """
        data = self.encode_value(value)
        message = Message(dict=list(self._dictionary.drain()), data=data)
        self.stats["messages"] += 1
        logger.debug(
            f"Encoded message with {len(message.dict)} dictionary "
            f"addition(s), dictionary size {len(self._dictionary)}"
        )
        return message

    def encode_value(self, value: Any) -> ValueNode:
        """Encode a value to a node tree.

        New keys are interned and queued, but the queue is left for the
        next ``encode`` or ``encode_message`` call to drain.
        """
        return self._encode_value(value, self._dictionary.frozen)

    def _encode_value(self, value: Any, frozen: bool) -> ValueNode:
        """Recursively encode a single value.

        Args:
            value: Value to encode.
            frozen: Whether an enclosing object or the encoder is frozen.

        Returns:
            The value node. Unsupported values become NullNode unless the
            encoder is strict.
        """
        if value is None:
            return NullNode()
        if value is UNDEFINED:
            return UndefinedNode()
        if isinstance(value, Frozen):
            return self._encode_value(value.value, True)
        if isinstance(value, str):
            token_id = self._dictionary.lookup(value)
            if token_id is not None:
                return RefNode(token_id)
            # String values never grow the dictionary, only keys do
            return StringNode(value)
        if isinstance(value, bool):
            # Must check bool before int (bool is subclass of int)
            return BooleanNode(value)
        if isinstance(value, int):
            return self._encode_int(value)
        if isinstance(value, float):
            return self._encode_float(value)
        if isinstance(value, (list, tuple)):
            return ArrayNode(
                tuple(self._encode_value(item, frozen) for item in value)
            )
        if isinstance(value, Mapping):
            return self._encode_object(value, frozen)
        return self._unsupported(value)

    def _encode_int(self, value: int) -> ValueNode:
        if INT64_MIN <= value <= INT64_MAX:
            return IntegerNode(value)
        if self.config.strict:
            raise UnsupportedValueError(
                value, f"Integer outside signed 64-bit range: {value}"
            )
        logger.debug(f"Integer {value} exceeds 64 bits, encoding as double")
        try:
            return DoubleNode(float(value))
        except OverflowError:
            return self._unsupported(value)

    def _encode_float(self, value: float) -> ValueNode:
        if (
            self.config.integral_floats_as_integers
            and math.isfinite(value)
            and value.is_integer()
            and abs(value) <= MAX_SAFE_INTEGER
        ):
            return IntegerNode(int(value))
        return DoubleNode(value)

    def _encode_object(self, value: Mapping, frozen: bool) -> ObjectNode:
        """Encode a mapping, interning unseen keys unless frozen.

        Args:
            value: Mapping to encode; keys are visited in iteration order.
            frozen: Whether new keys must be emitted literally.

        Returns:
            ObjectNode with one pair per key.
        """
        pairs = []
        for key, item in value.items():
            pairs.append(
                ObjectPair(
                    self._encode_key(_key_text(key), frozen),
                    self._encode_value(item, frozen),
                )
            )
        return ObjectNode(tuple(pairs))

    def _encode_key(self, key: str, frozen: bool) -> KeySlot:
        # Always use the reference if it already exists
        token_id = self._dictionary.lookup(key)
        if token_id is not None:
            return RefNode(token_id)
        if frozen or self._is_full():
            return StringNode(key)
        return RefNode(self._dictionary.intern(key))

    def _is_full(self) -> bool:
        limit = self.config.max_dictionary_size
        return limit is not None and len(self._dictionary) >= limit

    def _unsupported(self, value: Any) -> NullNode:
        if self.config.strict:
            raise UnsupportedValueError(value)
        self.stats["unsupported"] += 1
        logger.debug(
            f"Cannot encode value of type {type(value).__name__}, "
            f"encoding as null"
        )
        return NullNode()
