from __future__ import annotations
"""sitemap.xml and robots.txt bodies."""
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin

from .cars import CarsClient, generate_car_slug
from .dealers import DealerIndex
from .slug import slugify


PREFIXES = ('pre-owned-luxury-cars', 'second-hand-luxury-cars')
SELL_TOP_CITIES = 80

_XML_ESCAPES = (
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('"', '&quot;'),
    ("'", '&apos;'),
)


def absolute(site: Optional[str], path: str) -> str:
    if not site:
        return path
    return urljoin(site, path)


def xml_escape(text: str) -> str:
    for raw, escaped in _XML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def build_sitemap_paths(dealers: DealerIndex, cars_client: Optional[CarsClient], brands: Sequence[str]) -> List[str]:
    """Site-relative paths, in sitemap order."""
    paths = ['/', '/contact'] + [f"/{p}" for p in PREFIXES]

    if cars_client is not None:
        filters = cars_client.get_filter_options()
        body_types, fuel_types = filters.body_types, filters.fuel_types
    else:
        body_types, fuel_types = [], []
    facet_slugs = [slugify(v) for v in (*brands, *body_types, *fuel_types)]

    cities = dealers.cities()
    for city in cities:
        paths.extend(f"/{p}/{city.city_slug}" for p in PREFIXES)
        for slug in facet_slugs:
            paths.extend(f"/{p}/{city.city_slug}/{slug}" for p in PREFIXES)

    for dealer in dealers.all_dealers():
        paths.append(f"/{PREFIXES[0]}/{dealer.city_slug}/{dealer.dealer_slug}")

    if cars_client is not None:
        for car in cars_client.get_all_used_cars():
            paths.append(f"/cars/{generate_car_slug(car)}")

    paths.append('/sell')
    top = sorted(cities, key=lambda c: -c.count)[:SELL_TOP_CITIES]
    for city in top:
        paths.append(f"/sell/luxury-cars-in-{city.city_slug}")
        for brand in brands:
            paths.append(f"/sell/{slugify(brand)}-in-{city.city_slug}")
    return paths


def build_sitemap_urls(site: Optional[str], dealers: DealerIndex, cars_client: Optional[CarsClient],
                       brands: Sequence[str]) -> List[str]:
    return [absolute(site, p) for p in build_sitemap_paths(dealers, cars_client, brands)]


def render_sitemap(urls: Iterable[str]) -> str:
    lines = [f"  <url><loc>{xml_escape(u)}</loc></url>" for u in urls]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + '\n'.join(lines)
        + '\n</urlset>\n'
    )


def render_robots(site: Optional[str]) -> str:
    lines = [
        'User-agent: *',
        'Allow: /',
        f"Sitemap: {absolute(site, '/sitemap.xml')}",
        '',
    ]
    return '\n'.join(lines)


__all__ = [
    "absolute",
    "xml_escape",
    "build_sitemap_paths",
    "build_sitemap_urls",
    "render_sitemap",
    "render_robots",
    "PREFIXES",
]
