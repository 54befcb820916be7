"""Tests for CLI configuration module."""

import json

import pytest

from cli.config import Config


@pytest.fixture
def fresh_defaults(monkeypatch):
    """No GALLERY_* environment variables set."""
    monkeypatch.delenv('GALLERY_API_URL', raising=False)
    monkeypatch.delenv('GALLERY_API_KEY', raising=False)


def test_config_creates_default_file(tmp_path, fresh_defaults):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.gallery-uploader' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['api_url'] == 'http://localhost:8787'
    assert config.data['auth_header'] == 'X-Upload-Key'
    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3
    assert config.data['retry_backoff_multiplier'] == 2
    assert config.data['default_categories'] == ['Library']
    assert config.get_api_key() is None
    assert config.is_configured() is False


def test_config_loads_existing_file(tmp_path, fresh_defaults):
    """Test loading existing config file."""
    config_path = tmp_path / '.gallery-uploader' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'api_key': 'secret-key',
        'api_url': 'https://uploads.example.workers.dev/',
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.get_api_key() == 'secret-key'
    assert config.get_base_url() == 'https://uploads.example.workers.dev'
    assert config.is_configured() is True

    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3


def test_config_save_and_get_api_key(tmp_path, fresh_defaults):
    """Test saving and retrieving API key."""
    config = Config(tmp_path / 'config.json')
    assert config.get_api_key() is None

    config.set_api_key('abc123')

    assert config.get_api_key() == 'abc123'
    with open(config.config_path, 'r') as f:
        data = json.load(f)
    assert data['api_key'] == 'abc123'


def test_environment_key_is_used_but_never_written(tmp_path, monkeypatch):
    """GALLERY_API_KEY configures the client without landing in config.json."""
    monkeypatch.setenv('GALLERY_API_URL', 'https://uploads.example.workers.dev')
    monkeypatch.setenv('GALLERY_API_KEY', 'env-secret')
    config_path = tmp_path / '.gallery-uploader' / 'config.json'

    config = Config(config_path)
    config.save()

    assert config.get_api_key() == 'env-secret'
    assert config.get_base_url() == 'https://uploads.example.workers.dev'
    assert config.is_configured() is True
    assert 'env-secret' not in config_path.read_text()
    assert 'uploads.example.workers.dev' not in config_path.read_text()


def test_environment_overrides_file_values(tmp_path, monkeypatch):
    config_path = tmp_path / 'config.json'
    config_path.write_text(json.dumps({'api_key': 'file-key', 'api_url': 'http://file.test'}))
    monkeypatch.setenv('GALLERY_API_KEY', 'env-key')
    monkeypatch.delenv('GALLERY_API_URL', raising=False)

    config = Config(config_path)

    assert config.get_api_key() == 'env-key'
    assert config.get_base_url() == 'http://file.test'

    config.set_api_key('typed-key')

    assert config.get_api_key() == 'typed-key'
    assert json.loads(config_path.read_text())['api_key'] == 'typed-key'


def test_config_handles_corrupted_file(tmp_path, fresh_defaults):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.gallery-uploader' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)
    assert config.data['api_url'] == 'http://localhost:8787'

    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()


def test_config_get_base_url(temp_config):
    """Test base URL normalisation."""
    assert temp_config.get_base_url() == 'http://localhost:8787'

    temp_config.data['api_url'] = 'https://example.com/api/'
    assert temp_config.get_base_url() == 'https://example.com/api'

    temp_config.data['api_url'] = ''
    assert temp_config.get_base_url() is None
    assert temp_config.is_configured() is False


def test_config_get_auth_header(temp_config):
    assert temp_config.get_auth_header() == 'X-Upload-Key'

    temp_config.data['auth_header'] = 'Authorization'
    assert temp_config.get_auth_header() == 'Authorization'


def test_config_get_timeout(temp_config):
    """Test timeout retrieval."""
    assert temp_config.get_timeout() == 30

    temp_config.data['timeout'] = 60
    assert temp_config.get_timeout() == 60


def test_config_get_retry_config(temp_config):
    """Test retry configuration retrieval."""
    retry_config = temp_config.get_retry_config()

    assert retry_config['max_retries'] == 3
    assert retry_config['retry_backoff_multiplier'] == 2

    temp_config.data['max_retries'] = 5
    temp_config.data['retry_backoff_multiplier'] = 3

    retry_config = temp_config.get_retry_config()
    assert retry_config['max_retries'] == 5
    assert retry_config['retry_backoff_multiplier'] == 3


def test_config_default_categories(temp_config):
    assert temp_config.get_default_categories() == ['Library']

    temp_config.data['default_categories'] = ['Travel', 'Food']
    assert temp_config.get_default_categories() == ['Travel', 'Food']


def test_config_static_entries(temp_config):
    """Static entries become immutable records, invalid ones are skipped."""
    temp_config.data['static_entries'] = [
        {'key': 'static/hero.jpg', 'url': 'https://cdn.test/hero.jpg', 'categories': ['Library'], 'name': 'Hero'},
        {'key': 'static/no-url.jpg'},
        'not-a-dict',
        {'key': 'static/logo.png', 'url': 'https://cdn.test/logo.png', 'thumbnailUrl': 'https://cdn.test/t/logo.png'},
    ]

    entries = temp_config.get_static_entries()

    assert [e.key for e in entries] == ['static/hero.jpg', 'static/logo.png']
    assert all(e.is_immutable for e in entries)
    assert entries[0].thumbnail_url == 'https://cdn.test/hero.jpg'
    assert entries[0].display_name == 'Hero'
    assert entries[0].categories == ('Library',)
    assert entries[1].thumbnail_url == 'https://cdn.test/t/logo.png'
    assert entries[1].size is None


def test_config_directory_created_if_missing(tmp_path):
    """Test that config directory is created if it doesn't exist."""
    config_path = tmp_path / 'nested' / 'deep' / '.gallery-uploader' / 'config.json'

    assert not config_path.parent.exists()

    Config(config_path)
    assert config_path.parent.exists()
    assert config_path.exists()
