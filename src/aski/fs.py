# aski: Filesystem, time and hashing helpers shared by storage, settings and the editor bridge.

import hashlib
import json
import pathlib
from datetime import datetime
from typing import Any


def timestamp_slug() -> str:
    """Return a sortable local timestamp for file names, e.g. 20240501-142233."""
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def message_sha1(role: str, content: str, parent_sha1: str) -> str:
    """
    Content address of a turn.

    Fields are NUL-separated so that ("ab", "c") and ("a", "bc") never hash alike.
    """
    h = hashlib.sha1()
    h.update(parent_sha1.encode("utf-8"))
    h.update(b"\x00")
    h.update(role.encode("utf-8"))
    h.update(b"\x00")
    h.update(content.encode("utf-8"))
    return h.hexdigest()


def read_json(path: pathlib.Path, default: Any) -> Any:
    """Read JSON from path; return default if the file is missing."""
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: pathlib.Path, obj: Any) -> None:
    """Atomically write a JSON object to path (UTF-8, pretty-printed)."""
    tmp = path.with_suffix(".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    tmp.replace(path)


def write_text(path: pathlib.Path, text: str) -> None:
    """Atomically write UTF-8 text, creating parent directories."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


def slugify(text: str, max_len: int = 40) -> str:
    """Reduce a free-form title to a file-name-safe slug ("" if nothing usable remains)."""
    out = []
    for ch in text.strip():
        if ch.isalnum():
            out.append(ch)
        elif ch in " -_" and out and out[-1] != "-":
            out.append("-")
    return "".join(out).strip("-")[:max_len]
