"""Command parser for CLI input."""

import re
import shlex
from typing import Callable, Optional, Sequence

from cli.constants import BOOLEAN_FLAGS, COMMAND_FLAGS
from cli.models import (
    CommandRequest,
    ConnectionOptions,
    DiagnoseCommand,
    ListCommand,
    ReplicateCommand,
)

_NODE_SEPARATORS = re.compile(r'[,\s]+')


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of List/Replicate/Diagnose)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    return parse_tokens(tokens)


def parse_tokens(tokens: Sequence[str]) -> CommandRequest:
    """Parse an already split command line (e.g. sys.argv[1:])."""
    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = list(tokens[1:])

    if command_name == "list":
        return _parse_list(args)
    elif command_name == "replicate":
        return _parse_replicate(args)
    elif command_name == "diagnose":
        return _parse_diagnose(args)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_flags(command_name: str, args: list[str]) -> dict[str, object]:
    """
    Collect "--flag value", "--flag=value" and boolean "--flag" arguments.

    Returns:
        Mapping of flag name without dashes ("page_size") to its raw value
    """
    allowed = COMMAND_FLAGS[command_name]
    values: dict[str, object] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if not arg.startswith("--"):
            raise ParseError(f"{command_name}: unexpected argument '{arg}'")

        flag, eq, inline_value = arg.partition("=")
        if flag not in allowed:
            raise ParseError(f"{command_name}: unknown flag {flag}")
        name = flag[2:].replace("-", "_")

        if flag in BOOLEAN_FLAGS:
            if eq:
                raise ParseError(f"{command_name}: {flag} takes no value")
            values[name] = True
            i += 1
            continue

        if eq:
            value = inline_value
            i += 1
        else:
            if i + 1 >= len(args) or args[i + 1].startswith("--"):
                raise ParseError(f"{command_name}: {flag} requires a value")
            value = args[i + 1]
            i += 2
        values[name] = value
    return values


def _require(command_name: str, values: dict, name: str) -> str:
    value = values.get(name)
    if not value:
        raise ParseError(f"{command_name} requires --{name.replace('_', '-')}")
    return str(value)


def _node_list(command_name: str, values: dict, name: str) -> tuple[str, ...]:
    raw = _require(command_name, values, name)
    nodes = tuple(n for n in _NODE_SEPARATORS.split(raw) if n)
    if not nodes:
        raise ParseError(f"{command_name} requires at least one node in --{name}")
    return nodes


def _number(command_name: str, values: dict, name: str, kind: Callable) -> Optional[float]:
    raw = values.get(name)
    if raw is None:
        return None
    try:
        return kind(raw)
    except ValueError:
        raise ParseError(f"{command_name}: --{name.replace('_', '-')} expects a number, got '{raw}'")


def _connection(command_name: str, values: dict) -> ConnectionOptions:
    return ConnectionOptions(
        tenant=values.get("tenant"),
        domain=values.get("domain"),
        token=values.get("token"),
        timeout=_number(command_name, values, "timeout", float),
        insecure=bool(values.get("insecure", False)),
    )


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list --namespace NS --nodes N1,N2 [...]' command."""
    values = _parse_flags("list", args)
    return ListCommand(
        namespace=_require("list", values, "namespace"),
        nodes=_node_list("list", values, "nodes"),
        connection=_connection("list", values),
        page_size=_number("list", values, "page_size", int),
        suffix=values.get("suffix"),
        workers=_number("list", values, "workers", int),
        out_dir=values.get("out_dir"),
        debug=bool(values.get("debug", False)),
    )


def _parse_replicate(args: list[str]) -> ReplicateCommand:
    """Parse 'replicate --list-file FILE --target NODE --sources N1,N2 [...]' command."""
    values = _parse_flags("replicate", args)
    return ReplicateCommand(
        list_file=_require("replicate", values, "list_file"),
        target=_require("replicate", values, "target"),
        sources=_node_list("replicate", values, "sources"),
        connection=_connection("replicate", values),
        target_namespace=values.get("target_namespace"),
        retries=_number("replicate", values, "retries", int),
        retry_delay=_number("replicate", values, "retry_delay", float),
        workers=_number("replicate", values, "workers", int),
        out_dir=values.get("out_dir"),
        dry_run=bool(values.get("dry_run", False)),
        debug=bool(values.get("debug", False)),
    )


def _parse_diagnose(args: list[str]) -> DiagnoseCommand:
    """Parse 'diagnose --path NS/KEY --target NODE --nodes N1,N2' command."""
    values = _parse_flags("diagnose", args)
    return DiagnoseCommand(
        path=_require("diagnose", values, "path"),
        target=_require("diagnose", values, "target"),
        nodes=_node_list("diagnose", values, "nodes"),
        connection=_connection("diagnose", values),
    )
