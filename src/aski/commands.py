# aski: ':'-prefixed meta-commands. Tokens match a fixed table by unambiguous prefix; ambiguous or unknown tokens are rejected with the help table.

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .config import COMMAND_PREFIX, SHORT_HASH_LEN
from .context import Context
from .errors import EmptyInputError, UnknownCommandError
from .graph import ConversationGraph
from .models import MessageNode


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    usage: str = ""


COMMANDS: Tuple[Command, ...] = (
    Command("history", "Show conversation history."),
    Command("summary", "Show conversation summary."),
    Command("move", "Change HEAD to another message.", "<sha1-prefix>"),
    Command("config", "Open configuration directory."),
    Command("editor", "Open an external text editor."),
    Command("exit", "Exit the program."),
)


def help_text(table: Sequence[Command] = COMMANDS) -> str:
    out = "unknown command.\n\n"
    for cmd in table:
        out += f"  {COMMAND_PREFIX + cmd.name:<8} - {cmd.description}\n"
    return out


def match_command(token: str, table: Sequence[Command] = COMMANDS) -> Command:
    """Return the only command whose name starts with token; never guesses between several."""
    matches = [cmd for cmd in table if cmd.name.startswith(token)]
    if len(matches) != 1:
        raise UnknownCommandError(help_text(table))
    return matches[0]


@dataclass
class CommandResult:
    # Text to submit as the next user turn (from :editor).
    user_input: Optional[str] = None
    exit: bool = False


class CommandDispatcher:
    """
    Runs meta-commands against the conversation graph.

    Collaborators are plain callables so the dispatcher does not depend on the
    transport or the terminal:
      summarize(path) -> str
      edit(path, head_sha1) -> (text, modified)
      open_config() -> None
    """

    def __init__(
        self,
        ctx: Context,
        graph: ConversationGraph,
        summarize: Callable[[List[MessageNode]], str],
        edit: Callable[[List[MessageNode], str], Tuple[str, bool]],
        open_config: Callable[[], None],
        table: Sequence[Command] = COMMANDS,
    ) -> None:
        self.ctx = ctx
        self.graph = graph
        self.summarize = summarize
        self.edit = edit
        self.open_config = open_config
        self.table = table

    @staticmethod
    def is_command(text: str) -> bool:
        return text.lstrip().startswith(COMMAND_PREFIX)

    def dispatch(self, line: str) -> CommandResult:
        parts = line.strip().split()
        token = parts[0][len(COMMAND_PREFIX):] if parts else ""
        cmd = match_command(token, self.table)
        handler = getattr(self, f"cmd_{cmd.name}", None)
        if handler is None:
            raise UnknownCommandError(help_text(self.table))
        self.ctx.log(f"command :{cmd.name} args={parts[1:]}")
        return handler(parts[1:]) or CommandResult()

    # ---------- Rendering ----------

    def _render_node(self, node: MessageNode, with_parent: bool) -> None:
        head = "Head" if self.graph.is_head(node) else ""
        if with_parent:
            label = f"{node.sha1[:SHORT_HASH_LEN]} -> {node.parent_sha1[:SHORT_HASH_LEN]} [{node.role.value}]"
        else:
            label = f"{node.sha1[:SHORT_HASH_LEN]} [{node.role.value}]"
        self.ctx.send_to_user(f"{label} {head}".rstrip())
        for line in node.content.split("\n"):
            self.ctx.send_to_user(f"  {line}")

    # ---------- Commands ----------

    def cmd_history(self, args: List[str]) -> None:
        for node in self.graph.active_path():
            self._render_node(node, with_parent=True)
            self.ctx.send_to_user("")

    def cmd_summary(self, args: List[str]) -> None:
        if not self.graph.summary:
            self.graph.summary = self.summarize(self.graph.active_path())
        self.ctx.send_to_user(self.graph.summary or "(no summary yet)")

    def cmd_move(self, args: List[str]) -> None:
        if not args:
            raise EmptyInputError(f"usage: {COMMAND_PREFIX}move <sha1-prefix>")
        node = self.graph.change_head(args[0])
        self._render_node(node, with_parent=False)

    def cmd_config(self, args: List[str]) -> None:
        self.open_config()

    def cmd_editor(self, args: List[str]) -> CommandResult:
        text, modified = self.edit(self.graph.active_path(), self.graph.head)
        if not modified:
            self.ctx.send_to_user("Editor closed without input.")
            return CommandResult()
        return CommandResult(user_input=text)

    def cmd_exit(self, args: List[str]) -> CommandResult:
        return CommandResult(exit=True)
