"""Interactive hcp-sync shell built on prompt_toolkit."""

import os
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import handle_diagnose, handle_list, handle_replicate
from cli.completer import HcpSyncCompleter
from cli.constants import (
    COMMAND_USAGE,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import DiagnoseCommand, ListCommand, ReplicateCommand
from cli.parser import ParseError, parse_command
from common.exceptions import HCPError


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    """Print the logo and the command overview."""
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def help_text(topic: Optional[str] = None) -> str:
    """
    Help for one command, or the full command list.

    Args:
        topic: Command name ("list", "replicate", "diagnose"); None for everything

    Returns:
        Text to print
    """
    if not topic:
        return HELP_TEXT
    usage = COMMAND_USAGE.get(topic.lower())
    if usage is None:
        return f"No help for '{topic}'. Commands with flags: {', '.join(COMMAND_USAGE)}"
    return usage


def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, ListCommand):
        return handle_list(cmd_obj)
    if isinstance(cmd_obj, ReplicateCommand):
        return handle_replicate(cmd_obj)
    if isinstance(cmd_obj, DiagnoseCommand):
        return handle_diagnose(cmd_obj)
    return f"Unknown command type: {type(cmd_obj)}"


def repl_loop() -> None:
    """Read command lines until 'exit' or end of input."""
    session: PromptSession = PromptSession(
        completer=HcpSyncCompleter(), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            line = session.prompt([("class:prompt", PROMPT_TEXT)])
            words = line.split()
            if not words:
                continue

            if words[0] == "exit":
                print("Goodbye!")
                break
            if words[0] == "help":
                print(help_text(words[1] if len(words) > 1 else None))
                continue
            if words[0] == "clear":
                clear_screen()
                show_welcome()
                continue

            print(dispatch_command(parse_command(line)))

        except (ParseError, HCPError) as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
