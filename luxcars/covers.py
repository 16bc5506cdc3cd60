from __future__ import annotations
"""City cover photos: Unsplash search -> R2 mirror -> ``city-covers.json``."""
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .client import HttpClient, HttpClientConfig
from .errors import LuxCarsError, PhotoSearchError
from .logger import Logger
from .normalize import infer_city_from_address, write_json
from .pool import map_with_concurrency
from .slug import safe_text
from .storage import ImageMirror, load_json_cache, save_json_cache


log = Logger.bind(__name__)

UNSPLASH_SEARCH_URL = 'https://api.unsplash.com/search/photos'
COVER_USER_AGENT = 'indianluxurycars-city-cover/1.0'
COVERS_NAME = 'city-covers.json'
CACHE_NAME = 'unsplash-cover-cache.json'


def main_city_only(city: Any) -> str:
    """``"Mumbai, Thane"`` -> ``"Mumbai"``."""
    s = safe_text(city)
    if not s:
        return ''
    return s.split(',')[0].strip()


def titleize_from_slug(slug: str) -> str:
    return ' '.join(w[:1].upper() + w[1:] for w in slug.split('-') if w)


def cover_query(records: Any, city_slug: str) -> str:
    first = records[0] if isinstance(records, list) and records and isinstance(records[0], dict) else {}
    return (main_city_only(first.get('city'))
            or infer_city_from_address(first.get('address'))
            or titleize_from_slug(city_slug))


class UnsplashClient(HttpClient):

    def __init__(self, access_key: str, config: Optional[HttpClientConfig] = None,
                 session: Optional[requests.Session] = None):
        # a 429 must reach the caller, not be retried away
        super().__init__(config=config or HttpClientConfig(max_retries=0), session=session)
        self.access_key = access_key

    def search(self, query: str) -> Dict[str, Any]:
        params = {
            'query': query,
            'orientation': 'landscape',
            'per_page': '1',
            'content_filter': 'high',
            'client_id': self.access_key,
        }
        try:
            resp = self.session.get(UNSPLASH_SEARCH_URL, params=params, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise PhotoSearchError(f"Unsplash search failed: {e}") from e
        if resp.status_code == 429:
            raise PhotoSearchError('Unsplash rate limited (429)')
        if not resp.ok:
            raise PhotoSearchError(f"Unsplash search failed ({resp.status_code})")
        try:
            return resp.json() or {}
        except ValueError as e:
            raise PhotoSearchError(f"Unsplash returned invalid JSON: {e}") from e

    def first_photo_url(self, query: str) -> str:
        results = self.search(query).get('results') or []
        if not results:
            raise PhotoSearchError(f"No Unsplash result for {query}")
        url = safe_text((results[0].get('urls') or {}).get('regular'))
        if not url:
            raise PhotoSearchError('Missing urls.regular')
        return url


@dataclass
class CoversReport:
    cities: int = 0
    selected: int = 0
    targets: int = 0
    ok: int = 0
    failed: int = 0
    updated: int = 0


class CityCovers:

    def __init__(self, cities_dir: Path, covers_path: Path, cache_path: Path, *,
                 search: UnsplashClient, mirror: ImageMirror,
                 limit: int = 10, concurrency: int = 2, sleep_ms: int = 1000, overwrite: bool = False):
        self.cities_dir = Path(cities_dir)
        self.covers_path = Path(covers_path)
        self.cache_path = Path(cache_path)
        self.search = search
        self.mirror = mirror
        self.limit = limit
        self.concurrency = max(1, concurrency)
        self.sleep_ms = sleep_ms
        self.overwrite = overwrite
        self.covers: Dict[str, str] = load_json_cache(self.covers_path)
        self.cache: Dict[str, Dict[str, str]] = load_json_cache(self.cache_path)

    def city_slugs(self) -> List[str]:
        return [p.stem for p in sorted(self.cities_dir.glob('*.json'))]

    def select_targets(self, slugs: List[str]) -> List[str]:
        if self.overwrite:
            return list(slugs)
        return [s for s in slugs if not self.covers.get(s) and not self.cache.get(s)]

    def fetch_cover(self, city_slug: str) -> Dict[str, str]:
        records = json.loads((self.cities_dir / f"{city_slug}.json").read_text(encoding='utf-8'))
        query = cover_query(records, city_slug)
        if self.sleep_ms:
            time.sleep(self.sleep_ms / 1000.0)
        photo_url = self.search.first_photo_url(query)
        out_url = self.mirror.ensure_uploaded(photo_url, prefix=f"covers/cities/{city_slug}")
        return {'url': out_url, 'query': query}

    def run(self, apply: bool = False) -> CoversReport:
        report = CoversReport()
        all_slugs = self.city_slugs()
        selected = all_slugs[:self.limit] if self.limit > 0 else all_slugs
        targets = self.select_targets(selected)
        report.cities, report.selected, report.targets = len(all_slugs), len(selected), len(targets)
        log.info(f"cities={report.cities} selected={report.selected} to_fetch={report.targets} "
                 f"mode={'apply' if apply else 'dry-run'} concurrency={self.concurrency}")

        def _one(city_slug: str, _idx: int) -> bool:
            try:
                entry = self.fetch_cover(city_slug)
            except (LuxCarsError, OSError, ValueError) as e:
                log.warn(f"[{city_slug}] {e}")
                return False
            self.cache[city_slug] = entry
            return True

        results = map_with_concurrency(targets, self.concurrency, _one)
        report.ok = sum(1 for ok in results if ok)
        report.failed = len(results) - report.ok
        save_json_cache(self.cache_path, self.cache)

        if not apply:
            log.info(f"dry-run complete ok={report.ok} fail={report.failed}. "
                     f"Re-run with --apply to upload + write {COVERS_NAME}")
            return report

        for slug, entry in self.cache.items():
            url = entry.get('url') if isinstance(entry, dict) else None
            if not url:
                continue
            if not self.overwrite and self.covers.get(slug):
                continue
            self.covers[slug] = url
            report.updated += 1
        write_json(self.covers_path, self.covers)
        log.info(f"done ok={report.ok} fail={report.failed} updated_covers={report.updated}")
        return report


__all__ = [
    "main_city_only",
    "titleize_from_slug",
    "cover_query",
    "UnsplashClient",
    "CityCovers",
    "CoversReport",
]
