from __future__ import annotations
"""Search Console Indexing API submission with a local sqlite ledger.

URLs come from the live sitemap. Every URL already recorded in
``submitted_urls`` is skipped, whatever its status, so reruns only send
URLs that are new to the sitemap.
"""
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from lxml import etree

from .client import make_session
from .errors import IndexingError
from .logger import Logger
from .pool import map_with_concurrency


log = Logger.bind(__name__)

SCOPES = ['https://www.googleapis.com/auth/indexing']
PUBLISH_URL = 'https://indexing.googleapis.com/v3/urlNotifications:publish'
SITEMAP_NS = 'http://www.sitemaps.org/schemas/sitemap/0.9'

SETUP_HELP = (
    "Please download your service account JSON key from Google Cloud Console:\n"
    "1. Go to https://console.cloud.google.com/\n"
    "2. Create a project or select existing one\n"
    "3. Enable \"Indexing API\"\n"
    "4. Create a service account\n"
    "5. Download the JSON key file\n"
    "6. Save it as \"service.json\" in the scripts directory\n"
    "7. Add the service account email to your Search Console property as an owner"
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS submitted_urls (
    url TEXT PRIMARY KEY,
    submitted_at TEXT,
    status TEXT
)
"""


class SubmissionStore:

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.conn = sqlite3.connect(self.path, timeout=30.0, check_same_thread=False, isolation_level=None)
        self.conn.execute(SCHEMA_SQL)

    def submitted(self) -> Set[str]:
        return {row[0] for row in self.conn.execute('SELECT url FROM submitted_urls')}

    def mark(self, url: str, status: str = 'submitted') -> None:
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute(
            'INSERT OR REPLACE INTO submitted_urls (url, submitted_at, status) VALUES (?, ?, ?)',
            (url, now, status),
        )

    def status(self, url: str) -> Optional[str]:
        row = self.conn.execute('SELECT status FROM submitted_urls WHERE url = ?', (url, )).fetchone()
        return row[0] if row else None

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_sitemap(url: str, session: Optional[requests.Session] = None) -> str:
    session = session or make_session()
    log.info(f"fetching sitemap url={url}")
    try:
        resp = session.get(url, timeout=30)
    except requests.RequestException as e:
        raise IndexingError(f"Failed to fetch sitemap: {e}") from e
    if not resp.ok:
        raise IndexingError(f"Failed to fetch sitemap: {resp.status_code} {resp.reason}")
    return resp.text


def parse_sitemap(xml: str | bytes) -> List[str]:
    """``<loc>`` values in document order, trimmed, empties dropped."""
    data = xml.encode('utf-8') if isinstance(xml, str) else xml
    if not data.strip():
        return []
    parser = etree.XMLParser(recover=True, resolve_entities=False)
    root = etree.fromstring(data, parser=parser)
    if root is None:
        return []
    urls = []
    for el in root.iter('{%s}loc' % SITEMAP_NS, 'loc'):
        text = (el.text or '').strip()
        if text:
            urls.append(text)
    return urls


@dataclass
class SubmitResult:
    url: str
    success: bool
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


def describe_error(status: Optional[int], message: str) -> str:
    if status == 403:
        return 'Permission denied. Make sure the service account has access to the property in Search Console.'
    if status == 429:
        return 'Rate limit exceeded. Please wait before retrying.'
    return f"HTTP {status or 'unknown'}: {message}"


class IndexingClient:

    def __init__(self, service_account_file: Path | str | None = None, *, session=None, concurrency: int = 10):
        if session is None:
            path = Path(service_account_file or '')
            if not path.is_file():
                raise IndexingError(f"Service account file '{path}' not found.\n{SETUP_HELP}")
            credentials = service_account.Credentials.from_service_account_file(str(path), scopes=SCOPES)
            session = AuthorizedSession(credentials)
        self.session = session
        self.concurrency = concurrency

    def submit_url(self, url: str) -> SubmitResult:
        try:
            resp = self.session.post(PUBLISH_URL, json={'url': url, 'type': 'URL_UPDATED'}, timeout=30)
        except (requests.RequestException, GoogleAuthError) as e:
            log.error(f"indexing publish failed url={url} error={e}")
            return SubmitResult(url, False, describe_error(None, str(e)))
        if not resp.ok:
            message = resp.text
            try:
                message = (resp.json().get('error') or {}).get('message') or message
            except (ValueError, AttributeError):
                pass
            log.error(f"indexing publish rejected url={url} status={resp.status_code}")
            return SubmitResult(url, False, describe_error(resp.status_code, message))
        try:
            data = resp.json()
        except ValueError:
            data = None
        return SubmitResult(url, True, None, data)

    def submit_batch(self, urls: Sequence[str]) -> List[SubmitResult]:
        return map_with_concurrency(list(urls), self.concurrency, lambda url, _idx: self.submit_url(url))


def chunked(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


__all__ = [
    "SubmissionStore",
    "IndexingClient",
    "SubmitResult",
    "fetch_sitemap",
    "parse_sitemap",
    "describe_error",
    "chunked",
]
