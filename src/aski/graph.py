# aski: Conversation history graph: the message store plus the single movable HEAD. All node access goes through hashes.

from typing import Dict, Iterable, List, Optional

from .errors import AskiError, DuplicateHashError, EmptyInputError, NotFoundError
from .fs import message_sha1
from .models import MessageNode, Role
from .store import MessageStore


class ConversationGraph:
    """
    Append-only DAG of turns with one HEAD pointer.

    The only mutations are append_turn (child of HEAD) and change_head
    (relocate HEAD to an existing node). Branches left behind by change_head
    stay in the store and remain addressable.
    """

    def __init__(self) -> None:
        self.store = MessageStore()
        self.head: str = ""
        # Set by the summarizer; the graph never recomputes it.
        self.summary: str = ""

    @classmethod
    def restore(cls, nodes: Iterable[MessageNode], head: str, summary: str = "") -> "ConversationGraph":
        """
        Rebuild a graph from persisted nodes.

        Each node's hash is recomputed and every parent must be present, so a
        hand-edited or truncated history file is rejected instead of loaded.
        """
        graph = cls()
        nodes = list(nodes)
        for node in nodes:
            expected = message_sha1(node.role.value, node.content, node.parent_sha1)
            if expected != node.sha1:
                raise DuplicateHashError(node.sha1)
            graph.store.put(node)
        for node in nodes:
            if node.parent_sha1 and node.parent_sha1 not in graph.store:
                raise AskiError(f"message {node.short} references missing parent {node.parent_sha1[:6]}")
        if nodes:
            if not head:
                raise EmptyInputError("persisted conversation has messages but no head")
            graph.store.get(head)
        elif head:
            raise NotFoundError(head)
        graph.head = head
        graph.summary = summary
        return graph

    def __len__(self) -> int:
        return len(self.store)

    def head_node(self) -> Optional[MessageNode]:
        if not self.head:
            return None
        return self.store.get(self.head)

    def is_head(self, node: MessageNode) -> bool:
        return node.sha1 == self.head

    def append_turn(self, role: str, content: str) -> MessageNode:
        """
        Append a child of HEAD and advance HEAD to it.

        The hash is a pure function of (role, content, HEAD), so appending the
        same content under the same HEAD lands on the stored node. Submitting
        the exact turn HEAD already holds is treated as a duplicate submission
        and returns HEAD without adding anything.
        """
        role = Role(role)
        current = self.head_node()
        if current is not None and current.role == role and current.content == content:
            return current
        node = MessageNode(
            sha1=message_sha1(role.value, content, self.head),
            parent_sha1=self.head,
            role=role,
            content=content,
        )
        stored = self.store.put(node)
        self.head = stored.sha1
        return stored

    def change_head(self, partial: str) -> MessageNode:
        """Move HEAD to the unique node whose hash starts with partial. HEAD is unchanged on failure."""
        if not partial or not partial.strip():
            raise EmptyInputError("no hash prefix provided")
        node = self.store.resolve_prefix(partial)
        self.head = node.sha1
        return node

    def active_path(self) -> List[MessageNode]:
        """Turns from the root to HEAD, in conversation order."""
        path: List[MessageNode] = []
        sha1 = self.head
        while sha1:
            node = self.store.get(sha1)
            path.append(node)
            sha1 = node.parent_sha1
        path.reverse()
        return path

    def to_messages(self) -> List[Dict[str, str]]:
        """Active path in the role/content shape provider APIs expect."""
        return [{"role": n.role.value, "content": n.content} for n in self.active_path()]
