from __future__ import annotations
"""Mirror remote images into S3-compatible object storage (Cloudflare R2).

Objects are content addressed: ``<prefix>/<sha256>.<ext>``. The public URL
is ``<public_base>/<key>``. A JSON cache maps source URL -> public URL so
reruns skip work already done.
"""
import hashlib
import json
import re
import threading
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import boto3
import requests
from botocore.exceptions import ClientError

from .client import IMAGE_ACCEPT, make_session, HttpClientConfig
from .config import Settings, normalize_public_base
from .errors import ConfigError, StorageError
from .logger import Logger


log = Logger.bind(__name__)

MIGRATOR_USER_AGENT = 'indianluxurycars-image-migrator/1.0'
CACHE_CONTROL = 'public, max-age=31536000, immutable'

_CONTENT_TYPE_EXT = (
    ('image/jpeg', 'jpg'),
    ('image/png', 'png'),
    ('image/webp', 'webp'),
    ('image/gif', 'gif'),
)
_URL_EXT = (
    ('.jpg', 'jpg'),
    ('.jpeg', 'jpg'),
    ('.png', 'png'),
    ('.webp', 'webp'),
    ('.gif', 'gif'),
)


def is_http_url(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def ext_from_content_type(content_type: Optional[str]) -> Optional[str]:
    s = (content_type or '').lower()
    for marker, ext in _CONTENT_TYPE_EXT:
        if marker in s:
            return ext
    return None


def ext_from_url(url: str) -> Optional[str]:
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return None
    for suffix, ext in _URL_EXT:
        if path.endswith(suffix):
            return ext
    return None


def make_s3_client(settings: Settings):
    if not settings.r2_access_key_id or not settings.r2_secret_access_key:
        raise ConfigError('Missing credentials. Set R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY env vars.')
    return boto3.client(
        's3',
        region_name='auto',
        endpoint_url=settings.r2_endpoint,
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
    )


def load_json_cache(path: Path) -> Dict:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log.warn(f"cache unreadable, starting empty path={path} error={e}")
        return {}
    return data if isinstance(data, dict) else {}


def save_json_cache(path: Path, cache: Dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cache, ensure_ascii=False, indent=2) + '\n', encoding='utf-8')


class ImageMirror:
    """Download an image once, upload it under a content hash, remember the URL.

    With ``apply=False`` the public URL is computed (and cached) but nothing
    is written to the bucket.
    """

    def __init__(self, bucket: str, public_base: str, prefix: str, *, client=None,
                 session: Optional[requests.Session] = None, apply: bool = False,
                 user_agent: str = MIGRATOR_USER_AGENT, cache: Optional[Dict[str, str]] = None):
        if apply and client is None:
            raise ConfigError('an object storage client is required when applying uploads')
        self.bucket = bucket
        self.public_base = normalize_public_base(public_base)
        self.prefix = prefix.strip('/')
        self.client = client
        self.apply = apply
        self.session = session or make_session(HttpClientConfig(user_agent=user_agent))
        self.timeout = 30.0
        self.cache: Dict[str, str] = cache if cache is not None else {}
        self._lock = threading.Lock()

    def load_cache(self, path: Path) -> Dict[str, str]:
        self.cache.update(load_json_cache(path))
        return self.cache

    def save_cache(self, path: Path) -> None:
        with self._lock:
            snapshot = dict(self.cache)
        save_json_cache(path, snapshot)

    def is_mirrored(self, url: str) -> bool:
        return url.startswith(self.public_base + '/')

    def fetch(self, source_url: str):
        try:
            resp = self.session.get(
                source_url,
                headers={'Accept': IMAGE_ACCEPT},
                allow_redirects=True,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageError(f"Fetch failed for {source_url}: {e}") from e
        if not resp.ok:
            raise StorageError(f"Fetch failed ({resp.status_code}) for {source_url}")
        body = resp.content
        if not body:
            raise StorageError(f"Empty body for {source_url}")
        return body, resp.headers.get('Content-Type') or ''

    def object_key(self, body: bytes, content_type: str, source_url: str = '', prefix: Optional[str] = None) -> str:
        digest = hashlib.sha256(body).hexdigest()
        ext = ext_from_content_type(content_type) or ext_from_url(source_url) or 'jpg'
        return re.sub(r"/+", "/", f"{prefix or self.prefix}/{digest}.{ext}")

    def public_url(self, key: str) -> str:
        return f"{self.public_base}/{key}"

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get('Error', {}).get('Code', ''))
            if code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            raise StorageError(f"head failed key={key}: {e}") from e

    def put(self, key: str, body: bytes, content_type: str) -> None:
        extra = {'ContentType': content_type} if content_type else {}
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                CacheControl=CACHE_CONTROL,
                **extra,
            )
        except ClientError as e:
            raise StorageError(f"upload failed key={key}: {e}") from e

    def ensure_uploaded(self, source_url: str, prefix: Optional[str] = None) -> str:
        with self._lock:
            cached = self.cache.get(source_url)
        if cached:
            return cached

        body, content_type = self.fetch(source_url)
        key = self.object_key(body, content_type, source_url, prefix)
        out_url = self.public_url(key)

        if self.apply:
            if not self.exists(key):
                self.put(key, body, content_type)
                log.debug(f"uploaded key={key} bytes={len(body)}")
            else:
                log.debug(f"already stored key={key}")

        with self._lock:
            self.cache[source_url] = out_url
        return out_url


__all__ = [
    "ImageMirror",
    "make_s3_client",
    "is_http_url",
    "ext_from_content_type",
    "ext_from_url",
    "load_json_cache",
    "save_json_cache",
    "CACHE_CONTROL",
]
