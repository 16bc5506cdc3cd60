from __future__ import annotations
"""Used-car inventory client for the SQL-over-HTTP query endpoint.

The endpoint takes ``{"query": sql, "params": [...]}`` with a bearer token
and answers ``{"success": bool, "results": [row, ...], "meta": {...}}``.
Read paths never raise: failures are logged and an empty value is returned
so pages can still render.
"""
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from .client import HttpClient, HttpClientConfig
from .logger import Logger
from .models import FetchCarsOptions, FetchCarsResult, FilterOptions, UsedCar
from .pool import map_with_concurrency
from .slug import slugify


log = Logger.bind(__name__)

DEFAULT_LIMIT = 24

ALL_CARS_SQL = """
    SELECT c.*, i.image_url, i.is_primary
    FROM used_cars c
    LEFT JOIN car_images i ON c.used_car_id = i.used_car_id
    ORDER BY c.created_at DESC, i.is_primary DESC
"""

CARS_BASE_SQL = """
    SELECT c.*, i.image_url
    FROM used_cars c
    LEFT JOIN car_images i ON c.used_car_id = i.used_car_id AND i.is_primary = 1
"""

_CAR_WITH_IMAGES_SQL = """
    SELECT c.*, i.image_url
    FROM used_cars c
    LEFT JOIN car_images i ON c.used_car_id = i.used_car_id
    WHERE c.{column} = ?
    ORDER BY i.is_primary DESC, i.image_order ASC
"""
CAR_DETAILS_SQL = _CAR_WITH_IMAGES_SQL.format(column='used_car_id')
# car slugs end in the row id, not the source id
CAR_BY_ID_SQL = _CAR_WITH_IMAGES_SQL.format(column='id')

FILTER_SQL = {
    'oem': 'SELECT DISTINCT oem FROM used_cars ORDER BY oem ASC',
    'city': 'SELECT DISTINCT city FROM used_cars ORDER BY city ASC',
    'body_type': "SELECT DISTINCT body_type FROM used_cars WHERE body_type IS NOT NULL AND body_type != '' ORDER BY body_type ASC",
    'fuel_type': "SELECT DISTINCT fuel_type FROM used_cars WHERE fuel_type IS NOT NULL AND fuel_type != '' ORDER BY fuel_type ASC",
}

_EXACT_FILTERS = ('oem', 'model', 'body_type', 'fuel_type')
_RE_SLUG_ID = re.compile(r'-(\d+)$')


class QueryError(Exception):
    """Non-2xx answer from the query endpoint (internal to this module)."""


def build_cars_query(options: Optional[FetchCarsOptions] = None) -> Tuple[str, List[Any]]:
    """Return ``(sql, params)`` for a filtered, sorted, paginated inventory page."""
    options = options or FetchCarsOptions()
    sql = CARS_BASE_SQL
    where: List[str] = []
    params: List[Any] = []

    if options.city:
        # pages pass "Delhi" while rows may say "New Delhi"
        where.append("(LOWER(c.city) = LOWER(?) OR LOWER(c.city) LIKE '%' || LOWER(?) || '%')")
        params.extend([options.city, options.city])
    for col in _EXACT_FILTERS:
        value = getattr(options, col)
        if value:
            where.append(f"c.{col} = ?")
            params.append(value)

    if where:
        sql += ' WHERE ' + ' AND '.join(where)

    sort_col = 'c.price' if options.sort_by == 'price' else 'c.created_at'
    sort_order = 'ASC' if options.order == 'asc' else 'DESC'
    sql += f" ORDER BY {sort_col} {sort_order}"

    sql += ' LIMIT ? OFFSET ?'
    params.extend([options.limit or DEFAULT_LIMIT, options.offset or 0])
    return sql, params


def group_car_rows(rows: Sequence[Dict[str, Any]]) -> List[UsedCar]:
    """Fold one-row-per-image join output into cars with an ``images`` list."""
    cars: Dict[Any, UsedCar] = {}
    for row in rows:
        key = row.get('id')
        car = cars.get(key)
        if car is None:
            base = {k: v for k, v in row.items() if k not in ('image_url', 'is_primary')}
            car = UsedCar.from_row(base)
            cars[key] = car
        url = row.get('image_url')
        if url and url not in car.images:
            car.images.append(url)
    return list(cars.values())


def generate_car_slug(car: UsedCar) -> str:
    """``make-model-year-city-id``, e.g. ``kia-sonet-2024-rajkot-365``."""
    parts = [car.oem, car.model, str(car.myear), car.city, str(car.id)]
    return slugify(' '.join(str(p or '') for p in parts))


def parse_car_slug(slug: str) -> Optional[int]:
    m = _RE_SLUG_ID.search(slug or '')
    if not m:
        return None
    return int(m.group(1))


class CarsClient(HttpClient):

    def __init__(self, query_url: str, token: str, config: Optional[HttpClientConfig] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(config=config, session=session)
        self.query_url = query_url
        self.token = token

    @classmethod
    def from_settings(cls, settings) -> "CarsClient":
        return cls(settings.query_url, settings.api_token)

    def _post_query(self, sql: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        log.debug(f"query start sql={' '.join(sql.split())[:120]} params={params}")
        resp = self.session.post(
            self.query_url,
            json={'query': sql, 'params': params or []},
            headers={
                'Authorization': f"Bearer {self.token}",
                'Content-Type': 'application/json',
            },
            timeout=self.config.timeout,
        )
        if not resp.ok:
            raise QueryError(f"{resp.status_code} {resp.reason}")
        return resp.json() or {}

    def get_all_used_cars(self) -> List[UsedCar]:
        try:
            data = self._post_query(ALL_CARS_SQL)
        except (requests.RequestException, QueryError, ValueError) as e:
            log.error(f"fetch all cars failed error={e}")
            return []
        return group_car_rows(data.get('results') or [])

    def get_cars(self, options: Optional[FetchCarsOptions] = None) -> FetchCarsResult:
        sql, params = build_cars_query(options)
        try:
            data = self._post_query(sql, params)
        except (requests.RequestException, QueryError, ValueError) as e:
            log.error(f"fetch cars failed error={e}")
            return FetchCarsResult(success=False)
        rows = data.get('results') or []
        return FetchCarsResult(
            success=bool(data.get('success')),
            results=[UsedCar.from_row(r) for r in rows],
            meta=data.get('meta') or {},
        )

    def get_filter_options(self) -> FilterOptions:
        columns = list(FILTER_SQL)

        def _run(col: str, _idx: int) -> List[Any]:
            data = self._post_query(FILTER_SQL[col])
            return [r.get(col) for r in data.get('results') or []]

        try:
            values = map_with_concurrency(columns, len(columns), _run)
        except (requests.RequestException, QueryError, ValueError) as e:
            log.error(f"fetch filter options failed error={e}")
            return FilterOptions()
        by_col = {col: [v for v in vals if v] for col, vals in zip(columns, values)}
        return FilterOptions(
            oems=by_col['oem'],
            cities=by_col['city'],
            body_types=by_col['body_type'],
            fuel_types=by_col['fuel_type'],
        )

    def get_car_details(self, used_car_id: int) -> Optional[UsedCar]:
        """Car by its source id (``used_car_id``) with every image."""
        return self._car_with_images(CAR_DETAILS_SQL, 'used_car_id', used_car_id)

    def get_car_by_id(self, car_id: int) -> Optional[UsedCar]:
        """Car by row ``id``, the number that ends a car slug."""
        return self._car_with_images(CAR_BY_ID_SQL, 'id', car_id)

    def _car_with_images(self, sql: str, column: str, value: int) -> Optional[UsedCar]:
        try:
            data = self._post_query(sql, [value])
        except (requests.RequestException, QueryError, ValueError) as e:
            log.error(f"fetch car details failed {column}={value} error={e}")
            return None
        rows = data.get('results') or []
        if not rows:
            return None
        base = {k: v for k, v in rows[0].items() if k != 'image_url'}
        car = UsedCar.from_row(base)
        for row in rows:
            url = row.get('image_url')
            if url and url not in car.images:
                car.images.append(url)
        return car


__all__ = [
    "CarsClient",
    "build_cars_query",
    "group_car_rows",
    "generate_car_slug",
    "parse_car_slug",
]
