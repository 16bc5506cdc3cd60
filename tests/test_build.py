from app import create_app
from fakes import FakeCarsClient, used_car
from luxcars.build import build_site, output_path
from luxcars.config import Settings
from luxcars.dealers import DealerIndex
from luxcars.sitemap import build_sitemap_paths


def test_output_path(tmp_path):
    assert output_path(tmp_path, '/') == tmp_path / 'index.html'
    assert output_path(tmp_path, 'https://x.com/sell') == tmp_path / 'sell' / 'index.html'
    assert output_path(tmp_path, '/robots.txt') == tmp_path / 'robots.txt'


def test_build_site_writes_pages(tmp_path, cities_dir):
    index = DealerIndex(cities_dir)
    cars = FakeCarsClient([used_car(7)])
    app = create_app({
        'SETTINGS': Settings(data_dir=cities_dir.parent),
        'DEALER_INDEX': index,
        'CARS_CLIENT': cars,
        'CONTACT_STORE': None,
        'BRANDS': ['BMW'],
    })
    out = tmp_path / 'dist'
    paths = build_sitemap_paths(index, cars, ['BMW']) + ['/pre-owned-luxury-cars/atlantis']
    report = build_site(app, out, paths)

    assert report.failed == ['/pre-owned-luxury-cars/atlantis']
    assert (out / 'index.html').is_file()
    assert (out / 'cars' / 'bmw-x5-2021-pune-7' / 'index.html').is_file()
    assert (out / 'sell' / 'bmw-in-pune' / 'index.html').is_file()
    assert (out / 'sitemap.xml').read_text(encoding='utf-8').startswith('<?xml')
    assert (out / 'robots.txt').is_file()
    assert (out / 'static' / 'site.css').is_file()
