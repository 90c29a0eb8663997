# aski: $EDITOR round trip for composing long input. The active path is shown as '#' comment lines; whatever the user writes above them becomes the next user turn.

import os
import pathlib
import subprocess
import sys
import tempfile
from typing import Callable, List, Optional, Tuple

from .config import SHORT_HASH_LEN
from .errors import AskiError
from .models import MessageNode


def pick_editor() -> str:
    editor = os.environ.get("EDITOR", "").strip()
    if editor:
        return editor
    return "notepad.exe" if sys.platform.startswith("win") else "vim"


def editor_command(editor: str, file: str) -> List[str]:
    # VS Code returns immediately unless told to wait for the tab to close.
    if "code" in editor:
        return [editor, "--wait", file]
    return [editor, file]


def render_comment_block(path: List[MessageNode], head: str) -> str:
    """Active path as comment lines, HEAD first, after two blank lines for the user to type into."""
    out = "\n\n"
    for node in reversed(path):
        marker = "Head" if node.sha1 == head else ""
        out += f"#\n# {node.sha1[:SHORT_HASH_LEN]} -> {node.parent_sha1[:SHORT_HASH_LEN]} [{node.role.value}] {marker}\n"
        for line in node.content.split("\n"):
            out += f"#   {line}\n"
    return out


def strip_comments(text: str) -> str:
    return "".join(line + "\n" for line in text.split("\n") if not line.startswith("#"))


def edit(path: List[MessageNode], head: str, run: Optional[Callable[[List[str]], None]] = None) -> Tuple[str, bool]:
    """
    Open the editor on the active path and return (text, modified).

    modified is False when nothing but comments and whitespace remains.
    """
    fd, name = tempfile.mkstemp(prefix="aski-editor-", suffix=".md")
    tmp = pathlib.Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_comment_block(path, head))

        cmd = editor_command(pick_editor(), name)
        if run is None:
            try:
                subprocess.run(cmd, check=True)
            except (OSError, subprocess.CalledProcessError) as e:
                raise AskiError(f"failed to open editor: {e}") from e
        else:
            run(cmd)

        result = strip_comments(tmp.read_text(encoding="utf-8"))
    finally:
        tmp.unlink(missing_ok=True)

    if not result.strip():
        return "", False
    return result, True
