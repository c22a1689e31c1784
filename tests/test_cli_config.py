"""Tests for CLI configuration module."""

import json
import pytest
from pathlib import Path
from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.hcpsync' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['timeout'] == 30.0
    assert config.data['retries'] == 2
    assert config.data['page_size'] == 1000
    assert config.data['object_suffix'] == '.ccf'
    assert config.data['out_dir'] == './output'
    assert config.data['token'] is None


def test_config_never_writes_token_from_environment(tmp_path, monkeypatch):
    """A token taken from HCPSYNC_TOKEN is used but not persisted."""
    monkeypatch.setenv('HCPSYNC_TOKEN', 'from-env-token')
    config_path = tmp_path / '.hcpsync' / 'config.json'

    config = Config(config_path)
    config.set('tenant', 'tn')

    assert config.get('token') == 'from-env-token'
    with open(config_path) as f:
        data = json.load(f)
    assert 'token' not in data
    assert data['tenant'] == 'tn'


def test_config_environment_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv('HCPSYNC_TENANT', 'tenant1')
    monkeypatch.setenv('HCPSYNC_WORKERS', '9')

    config = Config(tmp_path / '.hcpsync' / 'config.json')

    assert config.get('tenant') == 'tenant1'
    assert config.get('workers') == 9


def test_config_loads_existing_file(tmp_path, monkeypatch):
    """Test loading existing config file; file values win over environment defaults."""
    monkeypatch.setenv('HCPSYNC_DOMAIN', 'env.example.net')
    config_path = tmp_path / '.hcpsync' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'tenant': 'archive',
        'domain': 'hcp.example.com',
        'token': 'stored-token',
        'workers': 16,
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.data['tenant'] == 'archive'
    assert config.data['domain'] == 'hcp.example.com'
    assert config.data['workers'] == 16
    assert config.data['retries'] == 2

    config.save()
    with open(config_path) as f:
        assert json.load(f)['token'] == 'stored-token'


def test_config_get_override_wins(temp_config):
    assert temp_config.get('page_size') == 1000
    assert temp_config.get('page_size', 50) == 50
    assert temp_config.get('missing') is None


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.hcpsync' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)
    assert config.data['page_size'] == 1000

    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()


def test_config_rejects_non_object_json(tmp_path):
    config_path = tmp_path / '.hcpsync' / 'config.json'
    config_path.parent.mkdir(parents=True)
    config_path.write_text('[1, 2, 3]')

    config = Config(config_path)
    assert config.data['retries'] == 2


def test_config_directory_created_if_missing(tmp_path):
    """Test that config directory is created if it doesn't exist."""
    config_path = tmp_path / 'nested' / 'deep' / '.hcpsync' / 'config.json'

    assert not config_path.parent.exists()

    config = Config(config_path)
    assert config_path.parent.exists()
    assert config_path.exists()
