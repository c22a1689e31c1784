"""Custom completer for hcp-sync CLI with flag and list-file completion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMAND_FLAGS, COMMANDS, LIST_FILE_SUFFIXES


class HcpSyncCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Flag completion for list/replicate/diagnose
    - Path completion for the value of --list-file
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        flags = COMMAND_FLAGS.get(command)
        if flags is None:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        previous = tokens[-1] if is_typing_new_token else (tokens[-2] if len(tokens) > 1 else "")

        if previous == "--list-file":
            yield from self._complete_list_files(current_word)
            return

        if current_word == "" or current_word.startswith("-"):
            used = set(tokens[1:])
            for flag in flags:
                if flag in used and flag != current_word:
                    continue
                if flag.startswith(current_word):
                    yield Completion(flag, start_position=-len(current_word))

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_list_files(self, partial: str) -> Iterable[Completion]:
        """
        Complete job files (.tsv/.txt) relative to the current directory.

        Directories are offered too so nested run directories can be walked.
        """
        if partial == "" or partial.endswith("/"):
            directory = Path.cwd() / partial
            prefix = ""
        else:
            base = Path(partial)
            directory = Path.cwd() / base.parent
            prefix = base.name

        if not directory.is_dir():
            return

        head = partial[: len(partial) - len(prefix)]
        for item in sorted(directory.iterdir()):
            if not item.name.startswith(prefix):
                continue
            if item.is_dir():
                yield Completion(f"{head}{item.name}/", start_position=-len(partial))
            elif item.name.lower().endswith(LIST_FILE_SUFFIXES):
                yield Completion(f"{head}{item.name}", start_position=-len(partial))
