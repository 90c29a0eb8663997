# aski: Turn committer: the only place user input and model replies become graph nodes.

from typing import Optional

from .errors import TransportError
from .graph import ConversationGraph
from .models import MessageNode
from .streaming import StreamResult, StreamState


class TurnCommitter:
    """Wraps ConversationGraph.append_turn with the commit policy for each stream outcome."""

    def __init__(self, graph: ConversationGraph) -> None:
        self.graph = graph

    def commit_user(self, content: str) -> MessageNode:
        return self.graph.append_turn("user", content)

    def commit_reply(self, result: StreamResult) -> Optional[MessageNode]:
        """
        Commit an aggregated reply as an assistant turn.

        Completed replies are always committed; cancelled replies only when
        something was received before the interrupt.
        """
        if result.state == StreamState.completed:
            return self.graph.append_turn("assistant", result.content)
        if result.state == StreamState.cancelled and result.content:
            return self.graph.append_turn("assistant", result.content)
        return None

    def commit_partial(self, error: TransportError) -> Optional[MessageNode]:
        """Keep the text streamed before a transport failure (opt-in via keep_partial_on_error)."""
        if not error.partial:
            return None
        return self.graph.append_turn("assistant", error.partial)
