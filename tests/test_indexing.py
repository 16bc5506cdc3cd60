import pytest
import requests

from fakes import FakeResponse, FakeSession
from luxcars.errors import IndexingError
from luxcars.indexing import (
    PUBLISH_URL,
    IndexingClient,
    SubmissionStore,
    chunked,
    describe_error,
    fetch_sitemap,
    parse_sitemap,
)


SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc> https://indianluxurycars.com/ </loc></url>
  <url><loc>https://indianluxurycars.com/contact</loc></url>
  <url><loc></loc></url>
</urlset>
"""


def test_parse_sitemap_namespaced():
    assert parse_sitemap(SITEMAP) == ['https://indianluxurycars.com/', 'https://indianluxurycars.com/contact']


def test_parse_sitemap_plain_and_empty():
    assert parse_sitemap('<urlset><url><loc>https://a/</loc></url></urlset>') == ['https://a/']
    assert parse_sitemap('') == []


def test_fetch_sitemap_errors():
    with pytest.raises(IndexingError, match='404'):
        fetch_sitemap('https://a/sitemap.xml', session=FakeSession([FakeResponse(status_code=404, reason='Not Found')]))
    session = FakeSession([FakeResponse(text=SITEMAP)])
    assert fetch_sitemap('https://a/sitemap.xml', session=session) == SITEMAP


def test_submission_store(tmp_path):
    with SubmissionStore(tmp_path / 'gsc.db') as store:
        assert store.submitted() == set()
        store.mark('https://a/1')
        store.mark('https://a/2', 'failed')
        store.mark('https://a/2', 'submitted')
        assert store.submitted() == {'https://a/1', 'https://a/2'}
        assert store.status('https://a/2') == 'submitted'
        assert store.status('https://a/3') is None


def test_describe_error():
    assert describe_error(403, 'x').startswith('Permission denied')
    assert describe_error(429, 'x').startswith('Rate limit exceeded')
    assert describe_error(500, 'boom') == 'HTTP 500: boom'
    assert describe_error(None, 'boom') == 'HTTP unknown: boom'


def test_submit_url_success_and_payload():
    session = FakeSession([FakeResponse(json_data={'urlNotificationMetadata': {}})])
    result = IndexingClient(session=session).submit_url('https://a/1')
    assert result.success and result.error is None
    call = session.calls[0]
    assert call.url == PUBLISH_URL
    assert call.json == {'url': 'https://a/1', 'type': 'URL_UPDATED'}


def test_submit_url_failures():
    session = FakeSession([
        FakeResponse(status_code=403, json_data={'error': {'message': 'denied'}}),
        FakeResponse(status_code=400, json_data={'error': {'message': 'bad url'}}),
        requests.ConnectionError('offline'),
    ])
    client = IndexingClient(session=session)
    assert client.submit_url('https://a/1').error.startswith('Permission denied')
    assert client.submit_url('https://a/2').error == 'HTTP 400: bad url'
    assert client.submit_url('https://a/3').error == 'HTTP unknown: offline'


def test_submit_batch_keeps_order():
    session = FakeSession(handler=lambda m, u, **kw: FakeResponse(
        status_code=429 if kw['json']['url'].endswith('2') else 200, json_data={}))
    results = IndexingClient(session=session, concurrency=3).submit_batch(['https://a/1', 'https://a/2', 'https://a/3'])
    assert [r.url for r in results] == ['https://a/1', 'https://a/2', 'https://a/3']
    assert [r.success for r in results] == [True, False, True]


def test_missing_service_account(tmp_path):
    with pytest.raises(IndexingError, match='not found'):
        IndexingClient(tmp_path / 'service.json')


def test_chunked():
    assert chunked(['a', 'b', 'c'], 2) == [['a', 'b'], ['c']]
    assert chunked([], 2) == []
