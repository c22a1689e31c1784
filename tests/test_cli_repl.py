"""Tests for the interactive shell helpers."""

from unittest.mock import Mock

import pytest

from cli import repl
from cli.constants import COMMAND_USAGE, HELP_TEXT
from cli.models import DiagnoseCommand, ListCommand, ReplicateCommand


def test_help_without_topic_lists_everything():
    assert repl.help_text() == HELP_TEXT


@pytest.mark.parametrize('topic', ['list', 'replicate', 'diagnose', 'REPLICATE'])
def test_help_for_each_command(topic):
    text = repl.help_text(topic)

    assert text == COMMAND_USAGE[topic.lower()]
    assert text.startswith(topic.lower())


def test_help_for_unknown_topic():
    assert "No help for 'frobnicate'" in repl.help_text('frobnicate')


def test_welcome_names_every_command(capsys):
    repl.show_welcome()

    out = capsys.readouterr().out
    for command in COMMAND_USAGE:
        assert command in out
    assert "help <command>" in out


@pytest.mark.parametrize('cmd, handler', [
    (ListCommand(namespace='ns1', nodes=('hcp1',)), 'handle_list'),
    (ReplicateCommand(list_file='jobs.tsv', target='hcp3', sources=('hcp1',)), 'handle_replicate'),
    (DiagnoseCommand(path='ns1/a.ccf', target='hcp3', nodes=('hcp1',)), 'handle_diagnose'),
])
def test_dispatch_command_routes_to_handler(monkeypatch, cmd, handler):
    mock = Mock(return_value='done')
    monkeypatch.setattr(repl, handler, mock)

    assert repl.dispatch_command(cmd) == 'done'
    mock.assert_called_once_with(cmd)


def test_dispatch_unknown_command_type():
    assert repl.dispatch_command(object()).startswith('Unknown command type')
