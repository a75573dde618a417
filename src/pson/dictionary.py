"""
Dictionary: append-only string to id table with a pending-additions queue.

The encoder and every decoder reading its output keep a copy of this
table. Ids are assigned sequentially and each new entry is queued; the
queue is drained into the next outgoing message in the same order, so a
decoder appending declarations as it reads them ends up with identical
ids.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


class Dictionary:
    """Growth state owned by a single encoder.

    Attributes:
        frozen: When True no new entries may be created while encoding.

    Example:
        >>> d = Dictionary(["id", "name"])
        >>> d.lookup("name")
        1
        >>> d.intern("email")
        2
        >>> list(d.drain())
        ['email']
    """

    def __init__(self, values: Optional[Iterable[str]] = None) -> None:
        """Initialise the dictionary, seeding it with initial values.

        Seed strings take ids 0, 1, 2... in order and are not queued: the
        peer is expected to be seeded with the same list. A duplicate seed
        overwrites the earlier lookup entry but still consumes an id, so
        the counter stays in step with a peer seeded from the same list.

        Args:
            values: Optional ordered seed strings.
        """
        self._token_to_id: dict[str, int] = {}
        self._id_to_token: dict[int, str] = {}
        self._pending: deque[str] = deque()
        self._next = 0
        self.frozen = False
        for value in values or ():
            if value in self._token_to_id:
                logger.warning(
                    f"Duplicate seed string {value!r}: id "
                    f"{self._token_to_id[value]} replaced by {self._next}"
                )
            self._token_to_id[value] = self._next
            self._id_to_token[self._next] = value
            self._next += 1

    def __len__(self) -> int:
        return self._next

    def __contains__(self, token: object) -> bool:
        return token in self._token_to_id

    @property
    def next_id(self) -> int:
        """Id the next interned string will receive."""
        return self._next

    @property
    def pending(self) -> tuple[str, ...]:
        """Strings interned since the last drain, oldest first."""
        return tuple(self._pending)

    def lookup(self, token: str) -> Optional[int]:
        """Get the id of an interned string.

        Args:
            token: String to look up.

        Returns:
            The id, or None if the string has not been interned.
        """
        return self._token_to_id.get(token)

    def token(self, token_id: int) -> Optional[str]:
        """Get the string for an id, or None if unassigned."""
        return self._id_to_token.get(token_id)

    def tokens(self) -> list[str]:
        """All strings in id order."""
        return [self._id_to_token[i] for i in sorted(self._id_to_token)]

    def intern(self, token: str) -> int:
        """Assign the next id to a string and queue it for declaration.

        Callers must check ``lookup`` first; interning an existing string
        would declare it twice.

        Args:
            token: String not yet in the dictionary.

        Returns:
            The newly assigned id.
        """
        token_id = self._next
        self._token_to_id[token] = token_id
        self._id_to_token[token_id] = token
        self._pending.append(token)
        self._next += 1
        logger.debug(f"Interned {token!r} as {token_id}")
        return token_id

    def drain(self) -> Iterator[str]:
        """Remove and yield pending additions in the order they were added.

        Entries stay in the dictionary; only the queue is emptied.
        """
        while self._pending:
            yield self._pending.popleft()
