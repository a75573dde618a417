"""
Message layer: serialises value-node trees to bytes.

The encoder builds a Message (dictionary additions plus one value tree)
and hands it to a MessageCodec for final byte production.
"""

from pson.message.base import Message, MessageCodec
from pson.message.wire import WireCodec

__all__ = ["Message", "MessageCodec", "WireCodec"]
