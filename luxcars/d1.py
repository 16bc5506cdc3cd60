from __future__ import annotations
"""Cloudflare D1 HTTP API client (database admin + raw SQL queries).

Authentication is either an API token (``Authorization: Bearer``) or the
account email + global key pair. Every call raises ``RemoteDatabaseError``
on a non-2xx status or a ``success: false`` body.
"""
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .client import HttpClient, HttpClientConfig
from .errors import ConfigError, RemoteDatabaseError
from .logger import Logger


log = Logger.bind(__name__)

API_BASE = 'https://api.cloudflare.com/client/v4'
SCHEMA_PATH = Path(__file__).resolve().parent / 'schema.sql'
ALREADY_EXISTS_CODE = 7502

AUTH_HINT = (
    "\n\nAuthentication failed. Please check:"
    "\n1. CLOUDFLARE_API_TOKEN is set correctly"
    "\n2. The token has D1 database permissions"
    "\n3. The token is not expired"
    "\n\nGet a token at: https://developers.cloudflare.com/fundamentals/api/get-started/create-token/"
)

_RE_WRANGLER_ID = re.compile(r'database_id[:\s="]+([a-f0-9-]+)', re.IGNORECASE)


def auth_headers(email: Optional[str], global_key: Optional[str], api_token: Optional[str]) -> Dict[str, str]:
    if api_token:
        return {'Authorization': f"Bearer {api_token}"}
    if email and global_key:
        return {'X-Auth-Email': email, 'X-Auth-Key': global_key}
    raise ConfigError('Either CLOUDFLARE_API_TOKEN or both CLOUDFLARE_EMAIL and CLOUDFLARE_GLOBAL_KEY must be set')


def split_sql_statements(text: str) -> List[str]:
    """Drop ``--`` comments and split a schema file into single statements."""
    lines = []
    for line in text.split('\n'):
        idx = line.find('--')
        lines.append(line[:idx] if idx >= 0 else line)
    return [s.strip() for s in '\n'.join(lines).split(';') if s.strip()]


def is_already_exists(message: str) -> bool:
    m = message.lower()
    return 'already exists' in m or 'duplicate' in m or ('table' in m and 'exists' in m)


def create_database_via_wrangler(name: str) -> Dict[str, str]:
    try:
        proc = subprocess.run(['npx', 'wrangler', 'd1', 'create', name], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise RemoteDatabaseError(f"Failed to create database via wrangler: {e}") from e
    m = _RE_WRANGLER_ID.search(proc.stdout or '')
    if not m:
        raise RemoteDatabaseError('Could not parse database ID from wrangler output')
    log.info(f"database created via wrangler id={m.group(1)}")
    return {'uuid': m.group(1), 'name': name}


class D1Client(HttpClient):

    def __init__(self, account_id: str, database_id: Optional[str] = None, *, api_token: Optional[str] = None,
                 email: Optional[str] = None, global_key: Optional[str] = None,
                 config: Optional[HttpClientConfig] = None, session: Optional[requests.Session] = None):
        super().__init__(config=config or HttpClientConfig(timeout=60.0, retry_methods=("GET", )), session=session)
        self.account_id = account_id
        self.database_id = database_id
        self.api_token = api_token
        self.email = email
        self.global_key = global_key
        # validate eagerly so scripts fail before any work
        self._headers = auth_headers(email, global_key, api_token)

    @classmethod
    def from_settings(cls, settings, *, prefer_global_key: bool = True) -> "D1Client":
        token = settings.cloudflare_api_token
        if prefer_global_key and settings.cloudflare_email and settings.cloudflare_global_key:
            token = None
        return cls(
            settings.cloudflare_account_id,
            settings.cloudflare_database_id,
            api_token=token,
            email=settings.cloudflare_email,
            global_key=settings.cloudflare_global_key,
        )

    @property
    def uses_token(self) -> bool:
        return bool(self.api_token)

    @property
    def databases_url(self) -> str:
        return f"{API_BASE}/accounts/{self.account_id}/d1/database"

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {**self._headers, 'Content-Type': 'application/json'}
        try:
            resp = self.session.request(method, url, json=payload, headers=headers, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise RemoteDatabaseError(f"D1 request failed: {e}") from e
        if not resp.ok:
            text = resp.text
            errors: list = []
            try:
                errors = (resp.json() or {}).get('errors') or []
            except ValueError:
                pass
            message = f"D1 API error ({resp.status_code}): {text}"
            if resp.status_code == 401:
                message += AUTH_HINT
            raise RemoteDatabaseError(message, status=resp.status_code, errors=errors)
        try:
            result = resp.json()
        except ValueError as e:
            raise RemoteDatabaseError(f"D1 API returned invalid JSON: {e}", status=resp.status_code) from e
        if not result.get('success'):
            errors = result.get('errors') or []
            raise RemoteDatabaseError(f"D1 request failed: {errors or result}", status=resp.status_code, errors=errors)
        return result

    # ---- queries ----
    def query(self, sql: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        if not self.database_id:
            raise ConfigError('CLOUDFLARE_DATABASE_ID is not set')
        url = f"{self.databases_url}/{self.database_id}/query"
        return self._request('POST', url, {'sql': sql, 'params': params or []})

    def rows(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Rows of the first statement's result set."""
        result = self.query(sql, params).get('result') or []
        if result and isinstance(result[0], dict):
            return result[0].get('results') or []
        return []

    def test_connection(self) -> bool:
        try:
            self.query('SELECT 1 as test;')
        except RemoteDatabaseError as e:
            if e.status == 401:
                raise RemoteDatabaseError(
                    "Authentication failed. Your API token may be invalid, expired, or missing D1 permissions.\n"
                    "Create a token with \"Account.Cloudflare D1:Edit\" permission and update "
                    "CLOUDFLARE_API_TOKEN in .env.local", status=401, errors=e.errors) from e
            raise
        return True

    def apply_schema(self, path: Path = SCHEMA_PATH) -> int:
        """Run every statement of ``path``; returns the count executed."""
        statements = split_sql_statements(Path(path).read_text(encoding='utf-8'))
        executed = 0
        for statement in statements:
            try:
                self.query(statement + ';')
                executed += 1
            except RemoteDatabaseError as e:
                if is_already_exists(str(e)):
                    log.info(f"skipping (already exists): {statement[:50]}...")
                    continue
                raise
        log.info(f"D1 schema applied statements={executed}")
        return executed

    # ---- database admin ----
    def list_databases(self) -> List[Dict[str, Any]]:
        return self._request('GET', self.databases_url).get('result') or []

    def get_database_by_name(self, name: str) -> Dict[str, str]:
        for db in self.list_databases():
            if db.get('name') == name:
                log.info(f"found existing database name={name} id={db.get('uuid')}")
                return {'uuid': db.get('uuid'), 'name': db.get('name')}
        raise RemoteDatabaseError(f'Database "{name}" not found')

    def create_database(self, name: str) -> Dict[str, str]:
        try:
            result = self._request('POST', self.databases_url, {'name': name})
        except RemoteDatabaseError as e:
            if e.status == 401 and self.uses_token:
                log.info('API token auth failed, trying wrangler...')
                return create_database_via_wrangler(name)
            if e.code == ALREADY_EXISTS_CODE or 'already exists' in str(e):
                log.info('database already exists, fetching existing database...')
                return self.get_database_by_name(name)
            raise
        db = result.get('result') or {}
        self.database_id = db.get('uuid') or self.database_id
        return {'uuid': db.get('uuid'), 'name': db.get('name', name)}


__all__ = [
    "D1Client",
    "auth_headers",
    "split_sql_statements",
    "is_already_exists",
    "create_database_via_wrangler",
    "SCHEMA_PATH",
]
