# aski: Append-only message store keyed by content hash, with prefix resolution over a sorted key list.

import bisect
from typing import Dict, Iterator, List

from .errors import AmbiguousPrefixError, DuplicateHashError, NotFoundError
from .models import MessageNode


class MessageStore:
    """
    Every turn ever created in the session, addressed by sha1.

    Nodes are never mutated or removed. Insertion order is kept for persistence;
    a parallel sorted key list makes prefix lookups a bisect instead of a scan.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, MessageNode] = {}
        self._sorted: List[str] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, sha1: object) -> bool:
        return sha1 in self._nodes

    def __iter__(self) -> Iterator[MessageNode]:
        return iter(self._nodes.values())

    def nodes(self) -> List[MessageNode]:
        """All nodes in insertion order."""
        return list(self._nodes.values())

    def put(self, node: MessageNode) -> MessageNode:
        """
        Insert a node and return the stored instance.

        Re-inserting an identical node is a no-op. A different node under an
        existing hash raises DuplicateHashError and leaves the store untouched.
        """
        existing = self._nodes.get(node.sha1)
        if existing is not None:
            if not existing.same_fields(node):
                raise DuplicateHashError(node.sha1)
            return existing
        self._nodes[node.sha1] = node
        bisect.insort(self._sorted, node.sha1)
        return node

    def get(self, sha1: str) -> MessageNode:
        try:
            return self._nodes[sha1]
        except KeyError:
            raise NotFoundError(sha1) from None

    def resolve_prefix(self, partial: str) -> MessageNode:
        """Return the single node whose hash starts with partial."""
        partial = partial.strip().lower()
        # Every key starting with partial sorts inside [partial, partial + U+FFFF).
        lo = bisect.bisect_left(self._sorted, partial)
        hi = bisect.bisect_left(self._sorted, partial + "\uffff", lo)
        matches = self._sorted[lo:hi]
        if not matches:
            raise NotFoundError(partial)
        if len(matches) > 1:
            raise AmbiguousPrefixError(partial, matches)
        return self._nodes[matches[0]]
