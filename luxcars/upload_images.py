from __future__ import annotations
"""Move dealer ``imageUrl``s from third-party hosts into our bucket.

Three modes:
  dry-run        count URLs only
  dry-run-fetch  download, hash and fill the cache; no upload, no rewrite
  apply          upload, then rewrite the city files from the cache
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .errors import LuxCarsError
from .logger import Logger
from .normalize import write_json
from .pool import map_with_concurrency
from .storage import ImageMirror, is_http_url


log = Logger.bind(__name__)

IMAGE_PREFIX = 'google'
CACHE_NAME = 'image-url-map.json'


@dataclass
class UploadReport:
    found: int = 0
    selected: int = 0
    cache_hits: int = 0
    ok: int = 0
    failed: int = 0
    replaced: int = 0
    touched_files: int = 0


def load_city_files(cities_dir: Path) -> Dict[Path, List[Dict[str, Any]]]:
    per_file: Dict[Path, List[Dict[str, Any]]] = {}
    for path in sorted(Path(cities_dir).glob('*.json')):
        records = json.loads(path.read_text(encoding='utf-8'))
        if isinstance(records, list):
            per_file[path] = records
    return per_file


def collect_image_urls(per_file: Dict[Path, List[Dict[str, Any]]], public_base: str) -> List[str]:
    """Unique http(s) ``imageUrl``s in file order, skipping ones already mirrored."""
    seen: Dict[str, None] = {}
    for records in per_file.values():
        for r in records:
            u = r.get('imageUrl') if isinstance(r, dict) else None
            if not is_http_url(u) or u.startswith(public_base + '/'):
                continue
            seen.setdefault(u, None)
    return list(seen)


def rewrite_image_urls(per_file: Dict[Path, List[Dict[str, Any]]], mapping: Dict[str, str]) -> tuple[int, int]:
    """Swap cached URLs into the records; returns ``(replaced, touched_files)``."""
    replaced = touched = 0
    for path, records in per_file.items():
        changed = False
        for r in records:
            u = r.get('imageUrl') if isinstance(r, dict) else None
            if not isinstance(u, str):
                continue
            mapped = mapping.get(u)
            if mapped and mapped != u:
                r['imageUrl'] = mapped
                changed = True
                replaced += 1
        if changed:
            touched += 1
            write_json(path, records)
    return replaced, touched


def migrate_dealer_images(cities_dir: Path, mirror: ImageMirror, cache_path: Path, *,
                          limit: int = 0, concurrency: int = 8, fetch: bool = False) -> UploadReport:
    """Run the migration; ``fetch`` without ``mirror.apply`` is the dry-run-fetch mode."""
    per_file = load_city_files(cities_dir)
    urls = collect_image_urls(per_file, mirror.public_base)
    selected = urls[:limit] if limit > 0 else urls
    mirror.load_cache(cache_path)
    todo = [u for u in selected if u not in mirror.cache]
    report = UploadReport(found=len(urls), selected=len(selected), cache_hits=len(selected) - len(todo))
    log.info(f"found {report.found} unique imageUrl(s) selected={report.selected} "
             f"mode={'apply' if mirror.apply else 'dry-run'} concurrency={concurrency}")
    log.info(f"cache hits={report.cache_hits} to_process={len(todo)}")

    if not mirror.apply and not fetch:
        log.info('dry-run: not fetching, not uploading, not rewriting files. Use --apply to perform the migration.')
        return report

    def _one(url: str, _idx: int) -> bool:
        try:
            mirror.ensure_uploaded(url)
            return True
        except LuxCarsError as e:
            log.warn(str(e))
            return False

    results = map_with_concurrency(todo, concurrency, _one)
    report.ok = sum(1 for ok in results if ok)
    report.failed = len(results) - report.ok
    mirror.save_cache(cache_path)

    if not mirror.apply:
        log.info('dry-run fetch complete: cache updated, JSON not rewritten. Re-run with --apply to upload + rewrite JSON.')
        return report

    report.replaced, report.touched_files = rewrite_image_urls(per_file, mirror.cache)
    log.info(f"done ok={report.ok} fail={report.failed} replaced={report.replaced} files={report.touched_files}")
    return report


__all__ = [
    "collect_image_urls",
    "rewrite_image_urls",
    "load_city_files",
    "migrate_dealer_images",
    "UploadReport",
]
