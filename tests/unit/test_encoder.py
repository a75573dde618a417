"""
Unit tests for Encoder.

Tests cover:
- Construction and seeding
- Scalar, array and object encoding
- Freezing (encoder-wide and per subtree)
- Unsupported values and message assembly
"""

import math

import pytest

from pson import UNDEFINED, Encoder, EncoderConfig, Frozen
from pson.errors import UnsupportedValueError
from pson.message import Message, WireCodec
from pson.nodes import (
    ArrayNode,
    BooleanNode,
    DoubleNode,
    IntegerNode,
    NullNode,
    ObjectNode,
    ObjectPair,
    RefNode,
    StringNode,
    UndefinedNode,
)

# ============================================================================
# Construction tests
# ============================================================================


# Test seed strings take sequential ids from 0
def test_seed_values_assigned_in_order() -> None:
    """Verify seeds are assigned ids in sequence order."""
    encoder = Encoder(["a", "b", "c"])
    assert encoder.dictionary.lookup("a") == 0
    assert encoder.dictionary.lookup("c") == 2
    assert encoder.dictionary.next_id == 3


# Test seed strings are not declared in the first message
def test_seed_values_not_declared() -> None:
    """Verify seeded keys are referenced without being declared."""
    encoder = Encoder(["x"])
    message = encoder.encode_message({"x": 1})
    assert message.dict == []
    assert message.data == ObjectNode(
        (ObjectPair(RefNode(0), IntegerNode(1)),)
    )


# Test encoder starts unfrozen with an empty dictionary
def test_new_encoder_defaults() -> None:
    """Verify a new encoder is unfrozen, empty and uses WireCodec."""
    encoder = Encoder()
    assert not encoder.frozen
    assert len(encoder.dictionary) == 0
    assert isinstance(encoder.codec, WireCodec)


# ============================================================================
# Scalar tests
# ============================================================================


# Test None encodes to an absent node
def test_encode_none() -> None:
    """Verify None becomes NullNode."""
    assert Encoder().encode_value(None) == NullNode()


# Test UNDEFINED encodes to a pure undefined node
def test_encode_undefined() -> None:
    """Verify UNDEFINED at top level yields only an undefined node."""
    encoder = Encoder()
    message = encoder.encode_message(UNDEFINED)
    assert message.data == UndefinedNode()
    assert message.dict == []


# Test booleans encode as boolean nodes, not integers
def test_encode_booleans() -> None:
    """Verify bool is checked before int."""
    encoder = Encoder()
    assert encoder.encode_value(True) == BooleanNode(True)
    assert encoder.encode_value(False) == BooleanNode(False)


# Test integers take the integer path
def test_encode_integer() -> None:
    """Verify ints within 64 bits become integer nodes."""
    encoder = Encoder()
    assert encoder.encode_value(7) == IntegerNode(7)
    assert encoder.encode_value(-12345) == IntegerNode(-12345)
    assert encoder.encode_value(2**53) == IntegerNode(2**53)


# Test fractional floats take the double path
def test_encode_fractional_float() -> None:
    """Verify 3.5 becomes a double node."""
    assert Encoder().encode_value(3.5) == DoubleNode(3.5)


# Test integral floats collapse to integer nodes
def test_encode_integral_float_as_integer() -> None:
    """Verify 7.0 becomes an integer node holding an int."""
    node = Encoder().encode_value(7.0)
    assert node == IntegerNode(7)
    assert isinstance(node.value, int)


# Test integral floats stay doubles when the option is disabled
def test_encode_integral_float_kept_as_double() -> None:
    """Verify integral_floats_as_integers=False keeps 7.0 a double."""
    config = EncoderConfig(integral_floats_as_integers=False)
    assert Encoder(config=config).encode_value(7.0) == DoubleNode(7.0)


# Test integral floats beyond 2**53 stay doubles
def test_encode_large_float_as_double() -> None:
    """Verify floats beyond the exact-integer range stay doubles."""
    assert Encoder().encode_value(1e20) == DoubleNode(1e20)


# Test non-finite floats take the double path
def test_encode_non_finite_floats() -> None:
    """Verify infinity and NaN become double nodes."""
    encoder = Encoder()
    assert encoder.encode_value(math.inf) == DoubleNode(math.inf)
    node = encoder.encode_value(math.nan)
    assert isinstance(node, DoubleNode)
    assert math.isnan(node.value)


# Test integers beyond 64 bits degrade to doubles
def test_encode_huge_integer_as_double() -> None:
    """Verify oversized ints become doubles in non-strict mode."""
    assert Encoder().encode_value(2**70) == DoubleNode(float(2**70))


# Test strict mode rejects integers beyond 64 bits
def test_encode_huge_integer_strict() -> None:
    """Verify oversized ints raise in strict mode."""
    encoder = Encoder(config=EncoderConfig(strict=True))
    with pytest.raises(UnsupportedValueError):
        encoder.encode_value(2**70)


# ============================================================================
# String tests
# ============================================================================


# Test unseen string values are emitted literally
def test_encode_unseen_string_literal() -> None:
    """Verify unknown strings become literal string nodes."""
    encoder = Encoder()
    assert encoder.encode_value("hello") == StringNode("hello")
    assert len(encoder.dictionary) == 0


# Test string values never grow the dictionary
def test_string_values_not_interned() -> None:
    """Verify only object keys are interned."""
    encoder = Encoder()
    encoder.encode(["a", "b"])
    encoder.encode("a")
    assert len(encoder.dictionary) == 0


# Test interned strings used as values become references
def test_encode_interned_string_values_as_refs() -> None:
    """Verify repeated interned values share one id."""
    encoder = Encoder()
    encoder.encode({"a": 1})
    message = encoder.encode_message(["a", "a"])
    assert message.data == ArrayNode((RefNode(0), RefNode(0)))
    assert message.dict == []
    assert encoder.dictionary.next_id == 1


# ============================================================================
# Array tests
# ============================================================================


# Test arrays preserve element order and types
def test_encode_array() -> None:
    """Verify mixed arrays encode element by element in order."""
    node = Encoder().encode_value([1, "x", None, 2.5, [True]])
    assert node == ArrayNode(
        (
            IntegerNode(1),
            StringNode("x"),
            NullNode(),
            DoubleNode(2.5),
            ArrayNode((BooleanNode(True),)),
        )
    )


# Test tuples encode as arrays
def test_encode_tuple_as_array() -> None:
    """Verify tuples are treated like lists."""
    assert Encoder().encode_value((1, 2)) == ArrayNode(
        (IntegerNode(1), IntegerNode(2))
    )


# Test empty array encodes as an empty array node
def test_encode_empty_array() -> None:
    """Verify [] becomes an empty ArrayNode."""
    assert Encoder().encode_value([]) == ArrayNode(())


# ============================================================================
# Object tests
# ============================================================================


# Test two keys are interned in order
def test_encode_object_interns_keys_in_order() -> None:
    """Verify {x: 1, y: "hi"} declares x then y with matching refs."""
    encoder = Encoder([])
    message = encoder.encode_message({"x": 1, "y": "hi"})
    assert encoder.dictionary.lookup("x") == 0
    assert encoder.dictionary.lookup("y") == 1
    assert message.dict == ["x", "y"]
    assert message.data == ObjectNode(
        (
            ObjectPair(RefNode(0), IntegerNode(1)),
            ObjectPair(RefNode(1), StringNode("hi")),
        )
    )


# Test a key used across two encode calls is declared once
def test_key_interned_once_across_calls() -> None:
    """Verify the second message references the existing id."""
    encoder = Encoder()
    first = encoder.encode_message({"name": "a"})
    second = encoder.encode_message({"name": "b"})
    assert first.dict == ["name"]
    assert second.dict == []
    assert second.data.pairs[0].key == RefNode(0)


# Test a key repeated in nested objects is interned once per message
def test_key_repeated_in_same_message() -> None:
    """Verify a key repeated within one message is declared once."""
    encoder = Encoder()
    message = encoder.encode_message([{"id": 1}, {"id": 2}])
    assert message.dict == ["id"]
    assert message.data.items[1].pairs[0].key == RefNode(0)


# Test nested keys are declared in depth-first visiting order
def test_nested_keys_declared_depth_first() -> None:
    """Verify declaration order matches id assignment order."""
    encoder = Encoder()
    message = encoder.encode_message({"a": {"b": 1}, "c": 2})
    assert message.dict == ["a", "b", "c"]


# Test an object key becomes a reference for its own string value
def test_key_then_string_value_reference() -> None:
    """Verify the key is interned before its value is encoded."""
    encoder = Encoder()
    message = encoder.encode_message({"type": "type"})
    assert message.data == ObjectNode(
        (ObjectPair(RefNode(0), RefNode(0)),)
    )


# Test numeric keys are coerced to strings
def test_numeric_keys_coerced() -> None:
    """Verify int and float keys use their str() spelling."""
    encoder = Encoder()
    message = encoder.encode_message({1: "one", 2.5: "two"})
    assert message.dict == ["1", "2.5"]


# Test bool and None keys use their JSON spellings
def test_bool_and_none_keys_use_json_spelling() -> None:
    """Verify True, False and None keys match json.dumps output."""
    encoder = Encoder()
    message = encoder.encode_message({True: 1, False: 2, None: 3})
    assert message.dict == ["true", "false", "null"]


# Test empty object encodes as an empty object node
def test_encode_empty_object() -> None:
    """Verify {} becomes an empty ObjectNode."""
    assert Encoder().encode_value({}) == ObjectNode(())


# ============================================================================
# Freezing tests
# ============================================================================


# Test freeze emits unseen keys literally without advancing ids
def test_frozen_encoder_emits_literal_keys() -> None:
    """Verify a frozen encoder leaves the id counter untouched."""
    encoder = Encoder()
    encoder.freeze()
    message = encoder.encode_message({"new": 1})
    assert encoder.frozen
    assert message.dict == []
    assert message.data == ObjectNode(
        (ObjectPair(StringNode("new"), IntegerNode(1)),)
    )
    assert encoder.dictionary.next_id == 0


# Test frozen encoder still references existing keys
def test_frozen_encoder_uses_existing_refs() -> None:
    """Verify known keys stay references while frozen."""
    encoder = Encoder(["known"])
    encoder.freeze()
    message = encoder.encode_message({"known": 1, "unknown": 2})
    assert message.data == ObjectNode(
        (
            ObjectPair(RefNode(0), IntegerNode(1)),
            ObjectPair(StringNode("unknown"), IntegerNode(2)),
        )
    )


# Test unfreeze allows interning again
def test_unfreeze_resumes_interning() -> None:
    """Verify keys are interned again after unfreeze."""
    encoder = Encoder()
    encoder.freeze()
    encoder.encode({"k": 1})
    encoder.unfreeze()
    message = encoder.encode_message({"k": 1})
    assert not encoder.frozen
    assert message.dict == ["k"]


# Test a Frozen subtree forces literal keys for all descendants
def test_frozen_subtree_propagates() -> None:
    """Verify nested objects inherit frozen status without a marker."""
    encoder = Encoder()
    message = encoder.encode_message(
        {"outer": Frozen({"inner": {"deep": [{"deeper": 1}]}})}
    )
    assert message.dict == ["outer"]
    inner = message.data.pairs[0].value
    assert inner.pairs[0].key == StringNode("inner")
    deep = inner.pairs[0].value
    assert deep.pairs[0].key == StringNode("deep")
    deeper = deep.pairs[0].value.items[0]
    assert deeper.pairs[0].key == StringNode("deeper")


# Test interned keys stay references inside a Frozen subtree
def test_frozen_subtree_uses_existing_refs() -> None:
    """Verify an existing id wins over a literal key when frozen."""
    encoder = Encoder()
    encoder.encode({"id": 0})
    message = encoder.encode_message(
        Frozen({"id": 1, "extra": {"id": 2, "more": 3}})
    )
    assert message.dict == []
    assert message.data == ObjectNode(
        (
            ObjectPair(RefNode(0), IntegerNode(1)),
            ObjectPair(
                StringNode("extra"),
                ObjectNode(
                    (
                        ObjectPair(RefNode(0), IntegerNode(2)),
                        ObjectPair(StringNode("more"), IntegerNode(3)),
                    )
                ),
            ),
        )
    )
    assert encoder.dictionary.next_id == 1


# Test a Frozen subtree does not affect its siblings
def test_frozen_subtree_does_not_leak_to_siblings() -> None:
    """Verify frozen status applies only below the marker."""
    encoder = Encoder()
    message = encoder.encode_message([Frozen({"a": 1}), {"b": 2}])
    assert message.dict == ["b"]


# Test Frozen at top level freezes the whole value
def test_frozen_top_level() -> None:
    """Verify a top-level Frozen adds nothing to the dictionary."""
    encoder = Encoder()
    message = encoder.encode_message(Frozen({"a": {"b": 1}}))
    assert message.dict == []
    assert len(encoder.dictionary) == 0


# Test Frozen around a scalar encodes the scalar unchanged
def test_frozen_scalar() -> None:
    """Verify Frozen(5) encodes as 5."""
    assert Encoder().encode_value(Frozen(5)) == IntegerNode(5)


# Test max_dictionary_size stops interning once reached
def test_max_dictionary_size() -> None:
    """Verify keys beyond the limit are emitted literally."""
    encoder = Encoder(config=EncoderConfig(max_dictionary_size=1))
    message = encoder.encode_message({"a": 1, "b": 2})
    assert message.dict == ["a"]
    assert message.data.pairs[1].key == StringNode("b")


# ============================================================================
# Unsupported value tests
# ============================================================================


# Test unsupported values degrade to null and are counted
def test_unsupported_value_becomes_null() -> None:
    """Verify callables and opaque objects become NullNode."""
    encoder = Encoder()
    node = encoder.encode_value({"f": print, "o": object()})
    assert node.pairs[0].value == NullNode()
    assert node.pairs[1].value == NullNode()
    assert encoder.stats["unsupported"] == 2


# Test strict mode raises on unsupported values
def test_unsupported_value_strict() -> None:
    """Verify strict mode raises UnsupportedValueError."""
    encoder = Encoder(config=EncoderConfig(strict=True))
    with pytest.raises(UnsupportedValueError, match="set"):
        encoder.encode({1, 2})


# Test sets are not treated as arrays
def test_set_is_unsupported() -> None:
    """Verify sets become NullNode."""
    assert Encoder().encode_value({1, 2}) == NullNode()


# ============================================================================
# Message tests
# ============================================================================


# Test encode_value leaves additions queued for the next message
def test_encode_value_keeps_pending() -> None:
    """Verify the next encode_message drains earlier additions first."""
    encoder = Encoder()
    encoder.encode_value({"a": 1})
    assert encoder.dictionary.pending == ("a",)
    message = encoder.encode_message({"b": 2})
    assert message.dict == ["a", "b"]
    assert encoder.dictionary.pending == ()


# Test encode returns the serialised message
def test_encode_returns_bytes() -> None:
    """Verify encode output parses back to the built message."""
    encoder = Encoder()
    blob = encoder.encode({"x": 1})
    assert isinstance(blob, bytes)
    assert WireCodec().parse(blob) == Message(
        ["x"], ObjectNode((ObjectPair(RefNode(0), IntegerNode(1)),))
    )
    assert encoder.stats["messages"] == 1


# Test a custom codec receives the built message
def test_custom_codec() -> None:
    """Verify the injected codec serialises the message."""

    class RecordingCodec(WireCodec):
        def __init__(self):
            self.messages = []

        def serialize(self, message):
            self.messages.append(message)
            return b"ok"

    codec = RecordingCodec()
    encoder = Encoder(codec=codec)
    assert encoder.encode({"k": None}) == b"ok"
    assert codec.messages[0].dict == ["k"]


# Test encoders do not share dictionary state
def test_encoders_are_independent() -> None:
    """Verify each encoder owns its own dictionary."""
    first = Encoder()
    second = Encoder()
    first.encode({"a": 1})
    assert second.encode_message({"a": 1}).dict == ["a"]
    assert "a" not in Encoder().dictionary
