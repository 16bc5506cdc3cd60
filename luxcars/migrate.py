from __future__ import annotations
"""Move scraped car inventory (``lux-cars.json``) into D1, images into R2."""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .d1 import D1Client
from .errors import LuxCarsError
from .logger import Logger
from .pool import map_with_concurrency
from .storage import ImageMirror, is_http_url


log = Logger.bind(__name__)

MAX_IMAGES = 5
IMAGE_PREFIX = 'used-cars'
CACHE_NAME = 'lux-cars-image-cache.json'
INPUT_NAME = 'lux-cars.json'

CAR_COLUMNS = (
    'used_car_id', 'used_car_sku_id', 'price', 'formatted_price', 'msp', 'myear',
    'model', 'variant_name', 'oem', 'km', 'fuel_type', 'transmission_type',
    'city', 'city_id', 'locality', 'location', 'body_type', 'owner', 'owner_slug',
    'dealer_id', 'active', 'inventory_status', 'inventory_type_label',
    'car_type', 'corporate_id', 'store_id', 'utype', 'vlink', 'from_url',
)

INSERT_CAR_SQL = (
    f"INSERT OR REPLACE INTO used_cars ({', '.join(CAR_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in CAR_COLUMNS)});"
)
DELETE_IMAGES_SQL = 'DELETE FROM car_images WHERE used_car_id = ?;'


def extract_images(car: Dict[str, Any]) -> List[str]:
    images: List[str] = []
    pi = car.get('pi')
    if is_http_url(pi):
        images.append(pi)
    tabs = (car.get('gallery_dto') or {}).get('tabs')
    if isinstance(tabs, list):
        for tab in tabs:
            entries = tab.get('list') if isinstance(tab, dict) else None
            if not isinstance(entries, list):
                continue
            for url in entries:
                if is_http_url(url) and url not in images:
                    images.append(url)
    return images[:MAX_IMAGES]


def car_row_params(car: Dict[str, Any]) -> List[Any]:
    """Positional values for ``INSERT_CAR_SQL``; source rows use short keys
    (``ft``, ``tt``, ``loc``, ``bt``) for a few columns."""
    g = car.get
    return [
        g('used_car_id'),
        g('used_car_sku_id') or '',
        g('price') or 0,
        g('formatted_price') or '',
        g('msp'),
        g('myear'),
        g('model') or '',
        g('variant_name'),
        g('oem') or '',
        g('km'),
        g('ft'),
        g('tt'),
        g('city') or '',
        g('city_id'),
        g('locality'),
        g('loc'),
        g('bt'),
        g('owner'),
        g('owner_slug'),
        g('dealer_id') or 0,
        0 if g('active') is False else 1,
        g('inventory_status') or 1,
        g('inventory_type_label'),
        g('car_type'),
        g('corporate_id'),
        g('store_id'),
        g('utype'),
        g('vlink'),
        g('from_url'),
    ]


def insert_car(client: D1Client, car: Dict[str, Any], image_urls: Sequence[str]) -> None:
    client.query(INSERT_CAR_SQL, car_row_params(car))
    if not image_urls:
        return
    used_car_id = car.get('used_car_id')
    client.query(DELETE_IMAGES_SQL, [used_car_id])
    placeholders = ', '.join('(?, ?, ?, ?)' for _ in image_urls)
    params: List[Any] = []
    for i, url in enumerate(image_urls):
        params.extend([used_car_id, url, i, 1 if i == 0 else 0])
    client.query(
        f"INSERT INTO car_images (used_car_id, image_url, image_order, is_primary) VALUES {placeholders};",
        params,
    )


def load_cars(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if not isinstance(data, list):
        raise LuxCarsError(f"{Path(path).name} must be an array")
    return data


@dataclass
class MigrationReport:
    total: int = 0
    processed: int = 0
    images_found: int = 0
    uploaded: int = 0
    upload_failed: int = 0
    inserted: int = 0
    insert_failed: int = 0


class CarMigration:
    """One migration run. ``client`` and ``mirror`` are only needed when applying."""

    def __init__(self, cars: Sequence[Dict[str, Any]], *, mirror: Optional[ImageMirror] = None,
                 client: Optional[D1Client] = None, concurrency: int = 4, limit: int = 0):
        self.all_cars = list(cars)
        self.cars = self.all_cars[:limit] if limit and limit > 0 else self.all_cars
        self.mirror = mirror
        self.client = client
        self.concurrency = concurrency
        self.report = MigrationReport(total=len(self.all_cars), processed=len(self.cars))
        self.image_map: Dict[Any, List[str]] = {}

    def collect_images(self) -> List[str]:
        pending: List[str] = []
        for car in self.cars:
            if not car.get('used_car_id'):
                continue
            images = extract_images(car)
            if not images:
                continue
            self.image_map[car['used_car_id']] = images
            for url in images:
                if self.mirror and self.mirror.is_mirrored(url):
                    continue
                if url not in pending:
                    pending.append(url)
        self.report.images_found = len(pending)
        log.info(f"found {len(pending)} unique images to upload")
        return pending

    def upload_images(self, urls: Sequence[str]) -> None:
        if self.mirror is None:
            return
        todo = [u for u in urls if u not in self.mirror.cache]
        log.info(f"uploading {len(todo)} images ({len(urls) - len(todo)} cached)...")

        def _upload(url: str, _idx: int) -> bool:
            try:
                self.mirror.ensure_uploaded(url)
                return True
            except LuxCarsError as e:
                log.warn(f"failed to upload url={url} error={e}")
                return False

        results = map_with_concurrency(todo, self.concurrency, _upload)
        self.report.uploaded = sum(1 for ok in results if ok)
        self.report.upload_failed = len(results) - self.report.uploaded
        log.info(f"image upload complete uploaded={self.report.uploaded} failed={self.report.upload_failed}")

    def insert_all(self) -> None:
        # D1 writes go one at a time
        cache = self.mirror.cache if self.mirror else {}
        for car in self.cars:
            used_car_id = car.get('used_car_id')
            if not used_car_id:
                continue
            images = [cache.get(u, u) for u in self.image_map.get(used_car_id, [])]
            try:
                insert_car(self.client, car, images)
                self.report.inserted += 1
                if self.report.inserted % 100 == 0:
                    log.info(f"inserted {self.report.inserted}/{len(self.cars)} cars...")
            except LuxCarsError as e:
                self.report.insert_failed += 1
                log.warn(f"failed to insert car used_car_id={used_car_id} error={e}")
        log.info(f"migration complete inserted={self.report.inserted} failed={self.report.insert_failed}")

    def run(self, apply: bool = False) -> MigrationReport:
        urls = self.collect_images()
        if apply:
            if self.client is None:
                raise LuxCarsError('a D1 client is required when applying')
            self.upload_images(urls)
            self.insert_all()
        else:
            log.info('dry-run complete. Use --apply to perform the migration.')
        return self.report


__all__ = [
    "extract_images",
    "car_row_params",
    "insert_car",
    "load_cars",
    "CarMigration",
    "MigrationReport",
    "CAR_COLUMNS",
]
