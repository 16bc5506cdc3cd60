import sqlite3

import pytest

from app import create_app
from app.db import adapter, open_store
from app.db.d1 import D1ContactStore
from app.db.sqlite import SqliteContactStore
from fakes import FakeCarsClient
from luxcars.config import Settings
from luxcars.contact import ContactValidationError, validate_contact
from luxcars.dealers import DealerIndex
from luxcars.errors import LuxCarsError


VALID = {'name': 'Asha', 'phone_number': '9876543210', 'car_name': 'BMW X5', 'is_sell': True}


class BrokenStore:

    def insert_contact(self, submission):
        raise RuntimeError('disk full')


def _client(tmp_path, store):
    settings = Settings(data_dir=tmp_path / 'data')
    app = create_app({
        'SETTINGS': settings,
        'DEALER_INDEX': DealerIndex(tmp_path / 'data' / 'cities'),
        'CARS_CLIENT': FakeCarsClient(),
        'CONTACT_STORE': store,
        'BRANDS': [],
    })
    return app.test_client()


def test_validate_contact():
    sub = validate_contact({'name': 'Asha', 'phone_number': '1', 'email': ''})
    assert sub.email is None and sub.is_sell is False
    with pytest.raises(ContactValidationError, match='Name and phone number are required'):
        validate_contact({'name': 'Asha'})
    with pytest.raises(ContactValidationError):
        validate_contact(['not', 'a', 'dict'])


def test_submit_stores_row(tmp_path):
    store = SqliteContactStore(tmp_path / 'contact.db')
    resp = _client(tmp_path, store).post('/rest/contact_form', json=VALID)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['message'] == 'Resource created successfully'
    assert body['data']['car_name'] == 'BMW X5'
    conn = sqlite3.connect(tmp_path / 'contact.db')
    try:
        row = conn.execute('SELECT name, phone_number, is_sell FROM contact_form').fetchone()
    finally:
        conn.close()
    assert row == ('Asha', '9876543210', 1)


def test_submit_missing_fields(tmp_path):
    resp = _client(tmp_path, BrokenStore()).post('/rest/contact_form', json={'name': 'Asha'})
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Name and phone number are required'}


def test_submit_non_json_body(tmp_path):
    resp = _client(tmp_path, BrokenStore()).post('/rest/contact_form', data='name=Asha', content_type='text/plain')
    assert resp.status_code == 500
    assert resp.get_json()['error'] == 'Failed to submit contact form'


def test_submit_without_store(tmp_path):
    resp = _client(tmp_path, None).post('/rest/contact_form', json=VALID)
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Database not available'}


def test_submit_store_failure(tmp_path):
    resp = _client(tmp_path, BrokenStore()).post('/rest/contact_form', json=VALID)
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Failed to submit contact form', 'message': 'disk full'}


def test_d1_store_returns_last_row_id():

    class FakeD1:
        def query(self, sql, params):
            self.call = (sql, params)
            return {'success': True, 'result': [{'meta': {'last_row_id': 42}}]}

    client = FakeD1()
    assert D1ContactStore(client).insert_contact(validate_contact(VALID)) == 42
    assert client.call[1] == ['Asha', '9876543210', None, 'BMW X5', None, 1]


def test_backend_selection(tmp_path):
    with pytest.raises(LuxCarsError):
        adapter('mysql')
    store = open_store(Settings(db_backend='sqlite', sqlite_db=tmp_path / 'x.db'))
    assert isinstance(store, SqliteContactStore)
    # d1 without any credentials cannot be opened
    assert open_store(Settings(db_backend='d1')) is None
