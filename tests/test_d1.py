import pytest

from fakes import FakeResponse, FakeSession
from luxcars import d1
from luxcars.config import Settings
from luxcars.d1 import D1Client, auth_headers, is_already_exists, split_sql_statements
from luxcars.errors import ConfigError, RemoteDatabaseError


def ok(result=None):
    return FakeResponse(json_data={'success': True, 'result': result if result is not None else []})


def _client(responses, **auth):
    auth = auth or {'api_token': 'tok'}
    return D1Client('acct', 'db-1', session=FakeSession(responses), **auth)


def test_auth_headers_prefers_token():
    assert auth_headers('a@b.c', 'key', 'tok') == {'Authorization': 'Bearer tok'}
    assert auth_headers('a@b.c', 'key', None) == {'X-Auth-Email': 'a@b.c', 'X-Auth-Key': 'key'}
    with pytest.raises(ConfigError):
        auth_headers('a@b.c', None, None)


def test_from_settings_credential_preference():
    s = Settings(cloudflare_api_token='tok', cloudflare_email='a@b.c', cloudflare_global_key='key')
    assert not D1Client.from_settings(s).uses_token
    assert D1Client.from_settings(s, prefer_global_key=False).uses_token


def test_split_sql_statements_drops_comments():
    text = "-- header\nCREATE TABLE a (x INT); -- trailing\n\nCREATE INDEX i ON a(x);\n"
    assert split_sql_statements(text) == ['CREATE TABLE a (x INT)', 'CREATE INDEX i ON a(x)']


def test_is_already_exists():
    assert is_already_exists('table used_cars already exists')
    assert is_already_exists('Duplicate column')
    assert not is_already_exists('syntax error')


def test_query_posts_sql_and_params():
    client = _client([ok([{'results': [{'test': 1}]}])])
    assert client.rows('SELECT ?', [1]) == [{'test': 1}]
    call = client.session.calls[0]
    assert call.method == 'POST'
    assert call.url.endswith('/accounts/acct/d1/database/db-1/query')
    assert call.json == {'sql': 'SELECT ?', 'params': [1]}
    assert call.headers['Authorization'] == 'Bearer tok'


def test_query_requires_database_id():
    client = D1Client('acct', None, api_token='tok', session=FakeSession())
    with pytest.raises(ConfigError):
        client.query('SELECT 1')


def test_success_false_raises():
    client = _client([FakeResponse(json_data={'success': False, 'errors': [{'code': 1, 'message': 'bad'}]})])
    with pytest.raises(RemoteDatabaseError) as ei:
        client.query('SELECT 1')
    assert ei.value.code == 1


def test_unauthorized_adds_hint():
    client = _client([FakeResponse(status_code=401, json_data={'errors': []})])
    with pytest.raises(RemoteDatabaseError) as ei:
        client.test_connection()
    assert ei.value.status == 401
    assert 'Authentication failed' in str(ei.value)


def test_apply_schema_skips_existing(tmp_path):
    schema = tmp_path / 'schema.sql'
    schema.write_text('CREATE TABLE a (x INT);\nCREATE TABLE b (y INT);\n', encoding='utf-8')
    exists = FakeResponse(status_code=400, text='table a already exists', json_data=None)
    client = _client([exists, ok()])
    assert client.apply_schema(schema) == 1


def test_apply_schema_reraises_other_errors(tmp_path):
    schema = tmp_path / 'schema.sql'
    schema.write_text('CREATE TABLE a (x INT);', encoding='utf-8')
    client = _client([FakeResponse(status_code=400, text='syntax error', json_data=None)])
    with pytest.raises(RemoteDatabaseError):
        client.apply_schema(schema)


def test_create_database_sets_id():
    client = _client([ok({'uuid': 'new-id', 'name': 'cars'})])
    assert client.create_database('cars') == {'uuid': 'new-id', 'name': 'cars'}
    assert client.database_id == 'new-id'


def test_create_database_already_exists_looks_up_by_name():
    exists = FakeResponse(status_code=400, json_data={'success': False, 'errors': [{'code': 7502, 'message': 'x'}]})
    listing = ok([{'uuid': 'other', 'name': 'x'}, {'uuid': 'found', 'name': 'cars'}])
    client = _client([exists, listing], email='a@b.c', global_key='key')
    assert client.create_database('cars') == {'uuid': 'found', 'name': 'cars'}


def test_create_database_token_401_uses_wrangler(monkeypatch):
    monkeypatch.setattr(d1, 'create_database_via_wrangler', lambda name: {'uuid': 'w-id', 'name': name})
    client = _client([FakeResponse(status_code=401, json_data={})])
    assert client.create_database('cars') == {'uuid': 'w-id', 'name': 'cars'}


def test_get_database_by_name_missing():
    client = _client([ok([])])
    with pytest.raises(RemoteDatabaseError, match='not found'):
        client.get_database_by_name('cars')
