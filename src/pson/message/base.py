"""
Message container and abstract base class for message codecs.

Codecs own the binary layout entirely; the encoder only depends on this
interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pson.nodes import NullNode, ValueNode


@dataclass
class Message:
    """One encoded message.

    Attributes:
        dict: Dictionary additions declared by this message, in id order.
            A decoder appends them to its own dictionary before resolving
            any reference in ``data``.
        data: Root of the value-node tree.
    """

    dict: list[str] = field(default_factory=list)
    data: ValueNode = field(default_factory=NullNode)


class MessageCodec(ABC):
    """Abstract base class for message serialisation.

    Example:
        >>> class ReprCodec(MessageCodec):
        ...     def serialize(self, message):
        ...         return repr(message).encode()
        ...     def parse(self, blob):
        ...         raise NotImplementedError
    """

    @abstractmethod
    def serialize(self, message: Message) -> bytes:
        """Serialise a message to bytes.

        Args:
            message: Message to serialise.

        Returns:
            Binary representation.
        """
        ...

    @abstractmethod
    def parse(self, blob: bytes) -> Message:
        """Parse bytes back into a message.

        References are not resolved; that requires the peer dictionary.

        Args:
            blob: Binary data produced by ``serialize``.

        Returns:
            The parsed message.
        """
        ...
