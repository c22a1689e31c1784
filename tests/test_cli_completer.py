"""Tests for HcpSyncCompleter."""

import pytest

from prompt_toolkit.document import Document

from cli.completer import HcpSyncCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a HcpSyncCompleter instance."""
    return HcpSyncCompleter()


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        assert get_completions_list(completer, "re") == ["replicate"]

    def test_unknown_command_has_no_argument_completion(self, completer):
        assert get_completions_list(completer, "exit ") == []


class TestFlagCompletion:
    """Tests for per-command flag completion."""

    def test_flags_for_command(self, completer):
        completions = get_completions_list(completer, "diagnose ")
        assert "--path" in completions
        assert "--target" in completions
        assert "--dry-run" not in completions

    def test_partial_flag(self, completer):
        completions = get_completions_list(completer, "replicate --ta")
        assert completions == ["--target", "--target-namespace"]

    def test_used_flags_not_repeated(self, completer):
        completions = get_completions_list(completer, "list --namespace ns1 ")
        assert "--namespace" not in completions
        assert "--nodes" in completions

    def test_no_flag_completion_for_values(self, completer):
        assert get_completions_list(completer, "list --namespace n") == []


class TestListFileCompletion:
    """Tests for --list-file path completion."""

    @pytest.fixture
    def run_tree(self, tmp_path, monkeypatch):
        run_dir = tmp_path / "output" / "20240101_120000"
        run_dir.mkdir(parents=True)
        (run_dir / "results_found.tsv").write_text("path\tnodes\n")
        (run_dir / "scan.log").write_text("")
        (tmp_path / "jobs.txt").write_text("")
        monkeypatch.chdir(tmp_path)
        return tmp_path

    def test_lists_cwd(self, completer, run_tree):
        completions = get_completions_list(completer, "replicate --list-file ")
        assert completions == ["jobs.txt", "output/"]

    def test_walks_directories(self, completer, run_tree):
        completions = get_completions_list(completer, "replicate --list-file output/20240101_120000/")
        assert completions == ["output/20240101_120000/results_found.tsv"]

    def test_partial_name(self, completer, run_tree):
        completions = get_completions_list(completer, "replicate --list-file jo")
        assert completions == ["jobs.txt"]
