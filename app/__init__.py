from __future__ import annotations
from flask import Flask, render_template
import json
from pathlib import Path
from typing import Any, Dict, List

from luxcars.cars import CarsClient, generate_car_slug
from luxcars.config import Settings
from luxcars.dealers import DealerIndex
from luxcars.logger import Logger
from luxcars.slug import slugify


log = Logger.bind(__name__)

BRANDS_FILE = 'luxury-brands.json'
COVERS_FILE = 'city-covers.json'


def load_brands(data_dir: Path) -> List[str]:
    path = Path(data_dir) / BRANDS_FILE
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log.warn(f"brands unavailable path={path} error={e}")
        return []
    return [b for b in data if isinstance(b, str) and b.strip()] if isinstance(data, list) else []


def load_city_covers(data_dir: Path) -> Dict[str, str]:
    path = Path(data_dir) / COVERS_FILE
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log.warn(f"city covers unreadable path={path} error={e}")
        return {}
    return {k: v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}


def create_app(config: Dict[str, Any] | None = None) -> Flask:
    """Build the site.

    ``config`` may carry ready-made collaborators (``SETTINGS``,
    ``DEALER_INDEX``, ``CARS_CLIENT``, ``CONTACT_STORE``); anything missing
    is built from the environment.
    """
    config = dict(config or {})
    # Explicit template folder path (project root/templates)
    base_dir = Path(__file__).resolve().parent.parent
    template_dir = base_dir / 'templates'
    app = Flask(__name__, template_folder=str(template_dir), static_folder=str(base_dir / 'static'))
    if not template_dir.exists():
        log.warn(f"template dir not found: {template_dir}")
    else:
        log.debug(f"template dir: {template_dir}")

    settings: Settings = config.pop('SETTINGS', None) or Settings.from_env()
    app.config.update(SECRET_KEY=settings.app_secret, SITE_URL=settings.site_url)
    app.config.update(config)

    dealers = config.get('DEALER_INDEX') or DealerIndex(settings.cities_dir)
    cars = config.get('CARS_CLIENT') or CarsClient.from_settings(settings)
    if 'CONTACT_STORE' in config:
        contact_store = config['CONTACT_STORE']
    else:
        from .db import open_store
        contact_store = open_store(settings)

    app.extensions['settings'] = settings
    app.extensions['dealers'] = dealers
    app.extensions['cars'] = cars
    app.extensions['contact_store'] = contact_store
    app.extensions['brands'] = config.get('BRANDS') if 'BRANDS' in config else load_brands(settings.data_dir)
    app.extensions['city_covers'] = load_city_covers(settings.data_dir)

    from .views import bp  # noqa: WPS433 (late import to avoid circular)
    app.register_blueprint(bp)

    app.add_template_filter(slugify, 'slug')

    @app.errorhandler(404)
    def not_found(_e):
        return render_template('404.html'), 404

    @app.context_processor
    def site_globals():
        return {
            'site_url': settings.site_url,
            'brands': app.extensions['brands'],
            'car_slug': generate_car_slug,
        }

    @app.cli.command('build')
    def build_command():  # pragma: no cover - CLI helper
        from luxcars.build import build_site
        from luxcars.sitemap import build_sitemap_paths
        paths = build_sitemap_paths(dealers, cars, app.extensions['brands'])
        report = build_site(app, base_dir / 'dist', paths)
        print(f"Generated: {len(report.written)} files, failed: {len(report.failed)}")

    return app
