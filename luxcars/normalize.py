from __future__ import annotations
"""Normalize raw dealer exports into one JSON file per city.

Input files are the raw place-listing exports (any file name, one array per
file). Output is ``<data_dir>/cities/<city-slug>.json`` with duplicates
removed and records sorted by title. Originals are moved into
``<data_dir>/raw`` on the first run so later runs read from there and stay
idempotent.
"""
import json
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .dealers import dedupe_key, guess_city_from_path
from .logger import Logger
from .slug import safe_text, slugify


log = Logger.bind(__name__)

_RE_POSTAL = re.compile(r'\d{5,6}')
MAX_CITY_LEN = 48
# site data living next to the raw exports, never treated as dealer input
RESERVED_FILES = ('luxury-brands.json', 'city-covers.json', 'lux-cars.json')


@dataclass
class NormalizeSummary:
    input_dir: Path
    files_read: int = 0
    files_skipped: int = 0
    records_kept: int = 0
    duplicates: int = 0
    cities_written: int = 0
    moved_to_raw: int = 0


def infer_city_from_address(address: Any) -> Optional[str]:
    """Pick ``<city>`` from ``"..., <city>, <state> <postal>, India"`` style addresses."""
    a = safe_text(address)
    if not a:
        return None
    parts = [p.strip() for p in a.split(',') if p.strip()]
    if len(parts) < 3:
        return None
    candidate = parts[-3]
    if not candidate:
        return None
    if _RE_POSTAL.search(candidate):
        return None
    if len(candidate) > MAX_CITY_LEN:
        return None
    return candidate


def city_name_from_record_or_file(record: Dict[str, Any], filename: str) -> str:
    return (safe_text(record.get('city'))
            or infer_city_from_address(record.get('address'))
            or guess_city_from_path(filename)
            or 'India')


def _json_files(directory: Path) -> List[Path]:
    return sorted(p for p in directory.iterdir()
                  if p.is_file() and p.suffix.lower() == '.json' and p.name.lower() not in RESERVED_FILES)


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + '\n', encoding='utf-8')


def normalize_data(data_dir: str | Path) -> NormalizeSummary:
    data_dir = Path(data_dir)
    out_dir = data_dir / 'cities'
    raw_dir = data_dir / 'raw'
    out_dir.mkdir(parents=True, exist_ok=True)

    input_dir = raw_dir if raw_dir.is_dir() else data_dir
    raw_dir.mkdir(parents=True, exist_ok=True)
    summary = NormalizeSummary(input_dir=input_dir)

    for old in _json_files(out_dir):
        old.unlink()

    files = _json_files(input_dir)
    if not files:
        log.info(f"no JSON files found dir={input_dir}")
        return summary

    grouped: Dict[str, Dict[str, Any]] = {}
    seen = set()
    for path in files:
        try:
            records = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError):
            log.warn(f"skipping invalid JSON file={path.name}")
            summary.files_skipped += 1
            continue
        if not isinstance(records, list):
            log.warn(f"skipping non-array JSON file={path.name}")
            summary.files_skipped += 1
            continue
        summary.files_read += 1

        for r in records:
            if not isinstance(r, dict):
                continue
            city_name = city_name_from_record_or_file(r, path.name)
            city_slug = slugify(city_name or 'india')
            if not city_slug:
                continue
            key = dedupe_key(r, city_slug)
            if key in seen:
                summary.duplicates += 1
                continue
            seen.add(key)
            grouped.setdefault(city_slug, {'city_name': city_name, 'records': []})['records'].append(r)
            summary.records_kept += 1

    for city_slug in sorted(grouped):
        records = grouped[city_slug]['records']
        records.sort(key=lambda rec: safe_text(rec.get('title')))
        write_json(out_dir / f"{city_slug}.json", records)
    summary.cities_written = len(grouped)

    if input_dir == data_dir:
        for path in files:
            shutil.move(str(path), str(raw_dir / path.name))
            summary.moved_to_raw += 1
        log.info(f"moved {summary.moved_to_raw} original file(s) into {raw_dir}")
    else:
        log.info(f"using existing raw inputs files={len(files)} dir={raw_dir}")

    log.info(f"created {summary.cities_written} city file(s) in {out_dir}")
    return summary


__all__ = [
    "NormalizeSummary",
    "infer_city_from_address",
    "city_name_from_record_or_file",
    "normalize_data",
    "write_json",
]
