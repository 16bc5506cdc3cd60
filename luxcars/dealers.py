from __future__ import annotations
"""Dealer index built from the per-city JSON files under ``data/cities``.

Records are scraped place listings (one JSON array per file). The index
assigns every dealer a city slug and a dealer slug, drops duplicates within
a city and exposes slug-keyed lookups for the page views. Everything is
computed once per ``DealerIndex`` instance and treated as read-only.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any, Dict, Iterable, List, Optional

from .logger import Logger
from .slug import safe_text, slugify


log = Logger.bind(__name__)

LUXURY_DEALER_MARKERS = (
    'used car dealer',
    'car dealer',
    'motor vehicle dealer',
    'audi dealer',
    'bmw dealer',
    'mercedes-benz dealer',
    'land rover dealer',
    'jaguar dealer',
    'volvo dealer',
)

_RE_SEPARATORS = re.compile(r'[-_]+')
_RE_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')
_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


@dataclass
class OpeningHours:
    day: Optional[str] = None
    hours: Optional[str] = None


@dataclass
class DealerRecord:
    """One scraped dealer listing. Unknown JSON keys are kept in ``raw``."""
    title: Optional[str] = None
    sub_title: Optional[str] = None
    category_name: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    state: Optional[str] = None
    country_code: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    phone_unformatted: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    total_score: Optional[float] = None
    reviews_count: Optional[int] = None
    images_count: Optional[int] = None
    opening_hours: List[OpeningHours] = field(default_factory=list)
    image_url: Optional[str] = None
    url: Optional[str] = None
    place_id: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    permanently_closed: bool = False
    temporarily_closed: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)

    _KEYS = {
        'title': 'title',
        'subTitle': 'sub_title',
        'categoryName': 'category_name',
        'address': 'address',
        'neighborhood': 'neighborhood',
        'street': 'street',
        'city': 'city',
        'postalCode': 'postal_code',
        'state': 'state',
        'countryCode': 'country_code',
        'website': 'website',
        'phone': 'phone',
        'phoneUnformatted': 'phone_unformatted',
        'totalScore': 'total_score',
        'reviewsCount': 'reviews_count',
        'imagesCount': 'images_count',
        'imageUrl': 'image_url',
        'url': 'url',
        'placeId': 'place_id',
    }

    @classmethod
    def field_values(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {attr: data.get(key) for key, attr in cls._KEYS.items()}
        loc = data.get('location')
        if isinstance(loc, dict):
            values['lat'] = loc.get('lat')
            values['lng'] = loc.get('lng')
        hours = data.get('openingHours')
        if isinstance(hours, list):
            values['opening_hours'] = [OpeningHours(day=h.get('day'), hours=h.get('hours')) for h in hours if isinstance(h, dict)]
        cats = data.get('categories')
        if isinstance(cats, list):
            values['categories'] = [c for c in cats if isinstance(c, str)]
        values['permanently_closed'] = bool(data.get('permanentlyClosed'))
        values['temporarily_closed'] = bool(data.get('temporarilyClosed'))
        values['raw'] = dict(data)
        return values

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DealerRecord":
        return cls(**cls.field_values(data))

    @property
    def score(self) -> float:
        """Rating used for ordering; missing or non-numeric ratings sort last."""
        v = self.total_score
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return float(v)
        return -1.0


@dataclass
class Dealer(DealerRecord):
    city_name: str = ''
    city_slug: str = ''
    dealer_slug: str = ''


@dataclass
class CityIndex:
    city_name: str
    city_slug: str
    count: int


def guess_city_from_path(path: str | Path) -> Optional[str]:
    base = re.sub(r'\.json$', '', Path(path).name, flags=re.IGNORECASE)
    if not base:
        return None
    first = base.split(',')[0]
    cleaned = _RE_SEPARATORS.sub(' ', first).strip()
    return cleaned or None


def city_name_from_record_or_path(record: Dict[str, Any], path: str | Path) -> str:
    from_record = safe_text(record.get('city'))
    if from_record:
        return from_record
    return guess_city_from_path(path) or 'India'


def short_id(text: Any) -> str:
    s = _RE_NON_ALNUM.sub('', safe_text(text, 'unknown'))
    if len(s) <= 8:
        return s.lower()
    return s[-8:].lower()


def _to_int32(n: int) -> int:
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def _base36(n: int) -> str:
    if n == 0:
        return '0'
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_BASE36[rem])
    return ''.join(reversed(out))


def hash_id(text: str) -> str:
    """Small deterministic id (djb2-xor over UTF-16 code units, base 36, 8 chars max)."""
    data = text.encode('utf-16-le')
    h = 5381
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 33) ^ unit
    return _base36(h & 0xFFFFFFFF)[:8]


def build_dealer_slug(title: str, place_id: Any, address: Any = None) -> str:
    t = slugify(title or 'dealer')
    pid = safe_text(place_id)
    if pid:
        return f"{t}-{short_id(pid)}"
    return f"{t}-{hash_id(f'{title}|{safe_text(address)}')}"


def dedupe_key(record: Dict[str, Any], city_slug: str) -> str:
    place_id = safe_text(record.get('placeId'))
    if place_id:
        return f"{city_slug}:{place_id}"
    return f"{city_slug}:{safe_text(record.get('title'))}:{safe_text(record.get('address'))}"


def is_likely_used_luxury_dealer(record: DealerRecord | Dict[str, Any]) -> bool:
    if isinstance(record, DealerRecord):
        category, cats = record.category_name, record.categories
    else:
        category, cats = record.get('categoryName'), record.get('categories') or []
    parts = [safe_text(category).lower()] + [safe_text(c).lower() for c in cats]
    combined = ' '.join(parts)
    return any(marker in combined for marker in LUXURY_DEALER_MARKERS)


def read_records(path: Path) -> List[Dict[str, Any]]:
    """Return the JSON array stored at ``path`` or an empty list when unusable."""
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log.warn(f"dealer file skipped path={path} error={e}")
        return []
    if not isinstance(data, list):
        log.warn(f"dealer file skipped (not an array) path={path}")
        return []
    return [r for r in data if isinstance(r, dict)]


class DealerIndex:
    """Slug-keyed, lazily built view over ``<cities_dir>/*.json``."""

    def __init__(self, cities_dir: str | Path):
        self.cities_dir = Path(cities_dir)
        self._all: Optional[List[Dealer]] = None
        self._cities: Optional[List[CityIndex]] = None
        self._by_city: Optional[Dict[str, List[Dealer]]] = None

    def _files(self) -> Iterable[Path]:
        if not self.cities_dir.is_dir():
            log.warn(f"cities dir not found path={self.cities_dir}")
            return []
        return sorted(p for p in self.cities_dir.iterdir() if p.is_file() and p.suffix.lower() == '.json')

    def all_dealers(self) -> List[Dealer]:
        if self._all is not None:
            return self._all
        done = Logger.time_block('dealer index load')
        seen = set()
        out: List[Dealer] = []
        for path in self._files():
            for r in read_records(path):
                place_id = safe_text(r.get('placeId'))
                title = safe_text(r.get('title')) or 'Dealer'
                city_name = city_name_from_record_or_path(r, path)
                city_slug = slugify(city_name or 'india')
                if not city_slug:
                    continue
                key = dedupe_key(r, city_slug)
                if key in seen:
                    continue
                seen.add(key)
                out.append(Dealer(
                    **DealerRecord.field_values(r),
                    city_name=city_name,
                    city_slug=city_slug,
                    dealer_slug=build_dealer_slug(title, place_id, r.get('address')),
                ))
        done()
        log.debug(f"dealer index loaded dealers={len(out)} dir={self.cities_dir}")
        self._all = out
        return out

    def cities(self) -> List[CityIndex]:
        if self._cities is not None:
            return self._cities
        by_city: Dict[str, CityIndex] = {}
        for d in self.all_dealers():
            prev = by_city.get(d.city_slug)
            if prev is None:
                by_city[d.city_slug] = CityIndex(city_name=d.city_name, city_slug=d.city_slug, count=1)
            else:
                prev.count += 1
        self._cities = sorted(by_city.values(), key=lambda c: (-c.count, c.city_name))
        return self._cities

    def city(self, city_slug: str) -> Optional[CityIndex]:
        for c in self.cities():
            if c.city_slug == city_slug:
                return c
        return None

    def dealers_by_city_slug(self, city_slug: str) -> List[Dealer]:
        if self._by_city is None:
            grouped: Dict[str, List[Dealer]] = {}
            for d in self.all_dealers():
                grouped.setdefault(d.city_slug, []).append(d)
            for dealers in grouped.values():
                dealers.sort(key=lambda d: (-d.score, safe_text(d.title)))
            self._by_city = grouped
        return self._by_city.get(city_slug, [])

    def find_dealer(self, city_slug: str, dealer_slug: str) -> Optional[Dealer]:
        for d in self.dealers_by_city_slug(city_slug):
            if d.dealer_slug == dealer_slug:
                return d
        return None


__all__ = [
    "DealerRecord",
    "Dealer",
    "CityIndex",
    "DealerIndex",
    "guess_city_from_path",
    "city_name_from_record_or_path",
    "short_id",
    "hash_id",
    "build_dealer_slug",
    "dedupe_key",
    "is_likely_used_luxury_dealer",
    "read_records",
]
