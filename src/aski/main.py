# aski: CLI entrypoint for the `aski` console script. Minimal argv parsing; the REPL lives in session.py.

import pathlib
import sys
from typing import Dict, List, Optional

from .context import Context
from .errors import AskiError, ConfigError
from .settings import config_path, ensure_config, load_config, select_profile, set_current_profile
from .session import Aski, new_graph
from .storage import Storage

USAGE = """Usage: aski [options]
       aski profile [NAME]

aski is a very small and user-friendly ChatGPT/Claude client.

Options:
  -p, --profile NAME    Profile from config.yaml to use for this conversation.
  -c, --content TEXT    Input text to start the dialog from the command line.
  -s, --system TEXT     Override the profile's system context.
  -r, --rest            Use a single non-streaming request instead of streaming.
  -l, --load FILE       Resume a saved conversation.
  -h, --help            Show this help.

Environment:
  OPENAI_API_KEY, ANTHROPIC_API_KEY, ASKI_HOME, ASKI_SUMMARY_MODEL, ASKI_VERBOSE"""

_VALUE_FLAGS = {
    "-p": "profile", "--profile": "profile",
    "-c": "content", "--content": "content",
    "-s": "system", "--system": "system",
    "-l": "load", "--load": "load",
}


def parse_args(args: List[str]) -> Dict[str, object]:
    """
    Parse argv into an options dict.

    Supports "-p NAME", "--profile NAME" and "--profile=NAME". The first
    non-flag argument is the subcommand; anything after it is its arguments.
    Raises ValueError with a printable message on bad input.
    """
    opts: Dict[str, object] = {"rest": False, "help": False, "command": None, "command_args": []}
    i = 0
    while i < len(args):
        a = args[i]
        if opts["command"] is not None:
            opts["command_args"].append(a)
            i += 1
            continue
        if a in ("-h", "--help"):
            opts["help"] = True
            i += 1
            continue
        if a in ("-r", "--rest"):
            opts["rest"] = True
            i += 1
            continue
        if "=" in a and a.split("=", 1)[0] in _VALUE_FLAGS and a.startswith("--"):
            flag, value = a.split("=", 1)
            opts[_VALUE_FLAGS[flag]] = value
            i += 1
            continue
        if a in _VALUE_FLAGS:
            if i + 1 >= len(args):
                raise ValueError(f"{a} requires an argument")
            opts[_VALUE_FLAGS[a]] = args[i + 1]
            i += 2
            continue
        if a.startswith("-"):
            raise ValueError(f"unknown option: {a}")
        opts["command"] = a
        i += 1
    return opts


def cmd_profile(ctx: Context, names: List[str]) -> int:
    """List profiles (current marked with *), or make NAME the current profile."""
    path = ensure_config()
    if names:
        set_current_profile(names[0], path)
        ctx.send_to_user(f"Current profile set to {names[0]}.")
        return 0
    app_config = load_config(path)
    for p in app_config.profiles:
        mark = "*" if p.name == app_config.current_profile else " "
        ctx.send_to_user(f"{mark} {p.name:<16} {p.model}")
    ctx.send_to_user(f"\nProfiles are defined in {path}")
    return 0


def run_chat(ctx: Context, opts: Dict[str, object]) -> int:
    app_config = load_config(ensure_config())
    graph = None
    load_path: Optional[pathlib.Path] = None
    profile_name: Optional[str] = opts.get("profile")
    if opts.get("load"):
        load_path = pathlib.Path(str(opts["load"])).expanduser()
        graph, saved_profile = Storage().load(load_path)
        profile_name = profile_name or saved_profile
        if opts.get("system") is not None:
            ctx.error_message("--system is ignored when resuming a saved conversation.")
    profile = select_profile(app_config, profile_name)
    if graph is None:
        graph = new_graph(profile, opts.get("system"))
    session = Aski(ctx, app_config, profile, graph=graph, rest_mode=bool(opts["rest"]))
    # Resumed conversations are saved back to the file they came from.
    session.saved_path = load_path
    session.run(initial_content=opts.get("content"))
    return 0


def main() -> None:
    ctx = Context()
    try:
        opts = parse_args(sys.argv[1:])
    except ValueError as e:
        ctx.error_message(str(e))
        print(USAGE)
        sys.exit(2)
    if opts["help"]:
        print(USAGE)
        return

    try:
        if opts["command"] == "profile":
            code = cmd_profile(ctx, opts["command_args"])
        elif opts["command"] is None:
            code = run_chat(ctx, opts)
        else:
            ctx.error_message(f"unknown command: {opts['command']}")
            print(USAGE)
            code = 2
    except ConfigError as e:
        ctx.error_message(f"{e}\n(configuration: {config_path()})")
        code = 1
    except AskiError as e:
        ctx.error_message(str(e))
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
