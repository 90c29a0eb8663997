# aski: Conversation persistence. A session is saved as one JSON file holding every node, HEAD, the summary and the profile name.

import pathlib
from typing import Optional, Tuple

from pydantic import ValidationError

from . import config
from .errors import AskiError
from .fs import read_json, slugify, timestamp_slug, write_json
from .graph import ConversationGraph
from .models import MessageNode, PersistedConversation, PersistedMessage


class Storage:
    """
    Save and load conversations under <ASKI_HOME>/history.

    All nodes are written, including branches unreachable from HEAD, so a
    resumed session can still move back to them.
    """

    def __init__(self, root: Optional[pathlib.Path] = None) -> None:
        self.root = root or (config.ASKI_HOME / "history")

    def path_for(self, graph: ConversationGraph) -> pathlib.Path:
        slug = slugify(graph.summary)
        name = f"{timestamp_slug()}_{slug}.json" if slug else f"{timestamp_slug()}.json"
        return self.root / name

    def save(self, graph: ConversationGraph, profile_name: str, path: Optional[pathlib.Path] = None) -> pathlib.Path:
        doc = PersistedConversation(
            profile=profile_name,
            summary=graph.summary,
            head=graph.head,
            messages=[PersistedMessage(**n.model_dump()) for n in graph.store.nodes()],
        )
        path = path or self.path_for(graph)
        write_json(path, doc.model_dump(mode="json"))
        return path

    def load(self, path: pathlib.Path) -> Tuple[ConversationGraph, str]:
        """Return (graph, profile_name). Integrity is re-checked by ConversationGraph.restore."""
        try:
            raw = read_json(path, None)
        except ValueError as e:
            raise AskiError(f"{path}: invalid JSON: {e}") from e
        if raw is None:
            raise AskiError(f"no saved conversation at {path}")
        try:
            doc = PersistedConversation.model_validate(raw)
        except ValidationError as e:
            raise AskiError(f"{path}: not a valid aski conversation: {e}") from e
        nodes = [MessageNode(**m.model_dump()) for m in doc.messages]
        graph = ConversationGraph.restore(nodes, doc.head, summary=doc.summary)
        return graph, doc.profile
