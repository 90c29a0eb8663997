# aski: Interactive session. Wires graph, committer, aggregator, transport and dispatcher together and runs the REPL loop.

import pathlib
from typing import Callable, Iterable, Optional

from .client import CompletionClient
from .commands import CommandDispatcher
from .committer import TurnCommitter
from .context import Context
from .editor import edit
from .errors import AskiError, TransportError
from .graph import ConversationGraph
from .models import AppConfig, MessageNode, Profile
from .settings import open_config_dir
from .storage import Storage
from .streaming import CancelToken, StreamingAggregator, interrupt_scope
from .summarizer import Summarizer


def new_graph(profile: Profile, system_override: Optional[str] = None) -> ConversationGraph:
    """Fresh conversation: the system turn, then any seed turns the profile defines."""
    graph = ConversationGraph()
    system = system_override if system_override is not None else profile.system_context
    graph.append_turn("system", system)
    for seed in profile.messages:
        graph.append_turn(seed.role.value, seed.content)
    return graph


class Aski:
    """
    One conversation per process.

    Responsibilities:
      - Turning user input into committed turns and model replies
      - Routing ':' commands to the dispatcher
      - Saving the conversation on exit
    """

    def __init__(
        self,
        ctx: Context,
        app_config: AppConfig,
        profile: Profile,
        graph: Optional[ConversationGraph] = None,
        rest_mode: bool = False,
        client: Optional[CompletionClient] = None,
        storage: Optional[Storage] = None,
        editor: Callable = edit,
    ) -> None:
        self.ctx = ctx
        self.app_config = app_config
        self.profile = profile
        self.rest_mode = rest_mode
        self.graph = graph if graph is not None else new_graph(profile)
        self.committer = TurnCommitter(self.graph)
        self.client = client or CompletionClient(ctx, app_config)
        self.storage = storage or Storage()
        self.summarizer = Summarizer(ctx, self.client, profile)
        self.dispatcher = CommandDispatcher(
            ctx,
            self.graph,
            summarize=self.summarizer.summarize,
            edit=editor,
            open_config=open_config_dir,
        )
        self.saved_path: Optional[pathlib.Path] = None

    def _open_stream(self, token: CancelToken) -> Callable[[], Iterable[str]]:
        messages = self.graph.to_messages()
        if self.rest_mode:
            return lambda: [self.client.complete(messages, self.profile)]
        return lambda: self.client.stream(messages, self.profile, token)

    def retrieve_response(self) -> Optional[MessageNode]:
        """
        Send the active path and commit the reply.

        Ctrl-C during the request keeps whatever arrived so far. Transport
        failures commit nothing unless keep_partial_on_error is set, and are
        re-raised.
        """
        token = CancelToken()
        aggregator = StreamingAggregator(self.ctx)
        with interrupt_scope(token):
            try:
                result = aggregator.run(self._open_stream(token), token)
            except TransportError as e:
                self.ctx.write("\n")
                if self.app_config.keep_partial_on_error:
                    self.committer.commit_partial(e)
                raise
        self.ctx.write("\n")
        return self.committer.commit_reply(result)

    def submit(self, text: str) -> Optional[MessageNode]:
        self.committer.commit_user(text)
        return self.retrieve_response()

    def handle_user_input(self, text: str) -> bool:
        """Handle one line of input. Returns False when the session should end."""
        if self.dispatcher.is_command(text):
            result = self.dispatcher.dispatch(text)
            if result.exit:
                return False
            if result.user_input is None:
                return True
            text = result.user_input
        self.submit(text)
        return True

    def save(self) -> Optional[pathlib.Path]:
        """Persist the conversation if it has anything beyond the seeded turns."""
        if not any(n.role.value == "assistant" for n in self.graph.store):
            return None
        if not self.graph.summary:
            try:
                self.graph.summary = self.summarizer.summarize(self.graph.active_path())
            except AskiError as e:
                self.ctx.log(f"summary skipped: {e}")
        self.saved_path = self.storage.save(self.graph, self.profile.name, self.saved_path)
        return self.saved_path

    def run(self, initial_content: Optional[str] = None) -> None:
        """Start the interactive REPL loop."""
        self.ctx.send_to_user(f"aski: profile {self.profile.name} ({self.profile.model}). Type :exit to quit, Ctrl-C interrupts a reply.")
        pending = initial_content
        try:
            while True:
                if pending is not None:
                    text, pending = pending, None
                else:
                    try:
                        text = input("> ").strip()
                    except (EOFError, KeyboardInterrupt):
                        self.ctx.send_to_user("")
                        break
                if not text:
                    continue
                try:
                    if not self.handle_user_input(text):
                        break
                except AskiError as e:
                    self.ctx.error_message(str(e))
                except KeyboardInterrupt:
                    # Second Ctrl-C during a reply, or Ctrl-C inside a command.
                    self.ctx.send_to_user("\nInterrupted.")
        finally:
            path = self.save()
            if path is not None:
                self.ctx.send_to_user(f"Conversation saved to {path}")
