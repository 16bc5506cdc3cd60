from __future__ import annotations
from flask import abort, current_app, render_template, request
from typing import Any, Dict, List, Optional, Tuple

from luxcars.models import FetchCarsOptions, FilterOptions
from luxcars.sitemap import PREFIXES
from luxcars.slug import slugify


PAGE_SIZE = 24
HOME_CITIES = 12
HOME_CARS = 8
SELL_CITIES = 80
LISTING_FILTERS = ('city', 'oem', 'model', 'body_type', 'fuel_type')


def _ext(name: str):
    return current_app.extensions[name]


def _page_arg() -> int:
    try:
        return max(1, int(request.args.get('page', 1)))
    except (TypeError, ValueError):
        return 1


def listing_options(args, page: int, **fixed: Any) -> FetchCarsOptions:
    """Inventory query from request args; ``fixed`` values win over args."""
    values = {k: (args.get(k) or None) for k in LISTING_FILTERS}
    values.update({k: v for k, v in fixed.items() if v})
    sort_by = args.get('sort_by') if args.get('sort_by') in ('price', 'created_at') else None
    order = args.get('order') if args.get('order') in ('asc', 'desc') else None
    return FetchCarsOptions(
        limit=PAGE_SIZE,
        offset=(page - 1) * PAGE_SIZE,
        sort_by=sort_by,
        order=order,
        **values,
    )


def resolve_facet(slug: str, brands: List[str], filters: FilterOptions) -> Optional[Tuple[str, str, str]]:
    """Map a city sub-page slug to ``(column, value, label)``."""
    for brand in brands:
        if slugify(brand) == slug:
            oem = next((o for o in filters.oems if slugify(o) == slug), brand)
            return 'oem', oem, brand
    for body in filters.body_types:
        if slugify(body) == slug:
            return 'body_type', body, body
    for fuel in filters.fuel_types:
        if slugify(fuel) == slug:
            return 'fuel_type', fuel, fuel
    return None


def parse_sell_slug(slug: str) -> Optional[Tuple[str, str]]:
    """``luxury-cars-in-delhi`` / ``bmw-in-delhi`` -> ``(what, city_slug)``."""
    what, sep, city_slug = slug.partition('-in-')
    if not sep or not what or not city_slug:
        return None
    return what, city_slug


def register(bp):

    @bp.route('/')
    def home():
        dealers = _ext('dealers')
        latest = _ext('cars').get_cars(FetchCarsOptions(limit=HOME_CARS))
        return render_template(
            'index.html',
            cities=dealers.cities()[:HOME_CITIES],
            cars=latest.results,
            covers=_ext('city_covers'),
        )

    def listing(prefix: str):
        page = _page_arg()
        cars = _ext('cars')
        result = cars.get_cars(listing_options(request.args, page))
        return render_template(
            'listing.html',
            prefix=prefix,
            cities=_ext('dealers').cities(),
            covers=_ext('city_covers'),
            result=result,
            filters=cars.get_filter_options(),
            selected={k: request.args.get(k, '') for k in LISTING_FILTERS + ('sort_by', 'order')},
            page=page,
            page_size=PAGE_SIZE,
        )

    def city_page(prefix: str, city_slug: str):
        city = _ext('dealers').city(city_slug)
        if city is None:
            abort(404)
        page = _page_arg()
        result = _ext('cars').get_cars(listing_options(request.args, page, city=city.city_name))
        return render_template(
            'city.html',
            prefix=prefix,
            city=city,
            cover=_ext('city_covers').get(city_slug),
            dealers=_ext('dealers').dealers_by_city_slug(city_slug),
            result=result,
            page=page,
            page_size=PAGE_SIZE,
        )

    def city_sub_page(prefix: str, city_slug: str, slug: str):
        dealers = _ext('dealers')
        city = dealers.city(city_slug)
        if city is None:
            abort(404)
        dealer = dealers.find_dealer(city_slug, slug)
        if dealer is not None:
            return render_template('dealer.html', prefix=prefix, city=city, dealer=dealer)

        cars = _ext('cars')
        facet = resolve_facet(slug, _ext('brands'), cars.get_filter_options())
        if facet is None:
            abort(404)
        column, value, label = facet
        page = _page_arg()
        result = cars.get_cars(listing_options(request.args, page, city=city.city_name, **{column: value}))
        return render_template(
            'facet.html',
            prefix=prefix,
            city=city,
            facet=column,
            label=label,
            result=result,
            page=page,
            page_size=PAGE_SIZE,
        )

    for prefix in PREFIXES:
        key = prefix.replace('-', '_')
        bp.add_url_rule(f'/{prefix}', f'listing_{key}', listing, defaults={'prefix': prefix})
        bp.add_url_rule(f'/{prefix}/<city_slug>', f'city_{key}', city_page, defaults={'prefix': prefix})
        bp.add_url_rule(f'/{prefix}/<city_slug>/<slug>', f'city_sub_{key}', city_sub_page,
                        defaults={'prefix': prefix})

    @bp.route('/sell')
    def sell():
        return render_template('sell.html', cities=_ext('dealers').cities()[:SELL_CITIES], city=None, brand=None)

    @bp.route('/sell/<slug>')
    def sell_in_city(slug: str):
        parsed = parse_sell_slug(slug)
        if parsed is None:
            abort(404)
        what, city_slug = parsed
        city = _ext('dealers').city(city_slug)
        if city is None:
            abort(404)
        brand = None
        if what != 'luxury-cars':
            brand = next((b for b in _ext('brands') if slugify(b) == what), None)
            if brand is None:
                abort(404)
        return render_template('sell.html', cities=[], city=city, brand=brand)

    @bp.route('/contact')
    def contact():
        prefill: Dict[str, str] = {
            'car_name': request.args.get('car_name', ''),
            'location': request.args.get('location', ''),
        }
        return render_template('contact.html', prefill=prefill, is_sell=request.args.get('sell') == '1')
