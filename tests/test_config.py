import os
from pathlib import Path

import pytest

from luxcars.config import DEFAULT_QUERY_URL, Settings, load_env_file
from luxcars.errors import ConfigError


def test_defaults_without_env():
    s = Settings.from_env({})
    assert s.query_url == DEFAULT_QUERY_URL
    assert s.db_backend == 'sqlite'
    assert s.port == 5000
    assert s.cloudflare_api_token is None
    assert s.cities_dir == s.data_dir / 'cities'


def test_values_from_env(tmp_path):
    s = Settings.from_env({
        'LUXCARS_API_TOKEN': 'tok',
        'DATA_DIR': str(tmp_path),
        'R2_PUBLIC_BASE': 'https://media.example.com/',
        'DB_BACKEND': 'D1',
        'CLOUDFLARE_EMAIL': '',
        'PORT': '8080',
    })
    assert s.api_token == 'tok'
    assert s.data_dir == Path(tmp_path)
    assert s.r2_public_base == 'https://media.example.com'
    assert s.db_backend == 'd1'
    # empty values fall back to defaults
    assert s.cloudflare_email is None
    assert s.port == 8080


def test_bad_port():
    with pytest.raises(ConfigError):
        Settings.from_env({'PORT': 'eighty'})


def test_env_file_does_not_override(tmp_path, monkeypatch):
    monkeypatch.setenv('LUXCARS_TEST_KEEP', 'from-env')
    monkeypatch.delenv('LUXCARS_TEST_NEW', raising=False)
    (tmp_path / '.env.local').write_text('LUXCARS_TEST_KEEP=from-file\nLUXCARS_TEST_NEW=loaded\n', encoding='utf-8')
    assert load_env_file(tmp_path)
    assert os.environ['LUXCARS_TEST_KEEP'] == 'from-env'
    assert os.environ['LUXCARS_TEST_NEW'] == 'loaded'
    monkeypatch.delenv('LUXCARS_TEST_NEW')
    assert not load_env_file(tmp_path / 'missing')
