import pytest

from app import create_app
from fakes import FakeCarsClient, FakeResponse, FakeSession, used_car
from luxcars.cars import CarsClient
from luxcars.config import Settings
from luxcars.dealers import DealerIndex


@pytest.fixture
def cars():
    return FakeCarsClient([used_car(7), used_car(8, oem='Audi', model='Q7', city='New Delhi')])


@pytest.fixture
def app(cities_dir, cars):
    settings = Settings(data_dir=cities_dir.parent, site_url='https://indianluxurycars.com')
    app = create_app({
        'SETTINGS': settings,
        'DEALER_INDEX': DealerIndex(cities_dir),
        'CARS_CLIENT': cars,
        'CONTACT_STORE': None,
        'BRANDS': ['BMW', 'Land Rover'],
        'TESTING': True,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_home_lists_cities_and_cars(client):
    resp = client.get('/')
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert 'New Delhi' in body and 'Pune' in body
    assert '/cars/bmw-x5-2021-pune-7' in body


def test_listing_passes_filters(client, cars):
    resp = client.get('/second-hand-luxury-cars?oem=BMW&sort_by=price&order=asc&page=2')
    assert resp.status_code == 200
    options = cars.requests[-1]
    assert options.oem == 'BMW'
    assert (options.sort_by, options.order) == ('price', 'asc')
    assert options.offset == 24


def test_listing_ignores_unknown_sort(client, cars):
    client.get('/pre-owned-luxury-cars?sort_by=drop&page=abc')
    options = cars.requests[-1]
    assert options.sort_by is None
    assert options.offset == 0


def test_city_page(client, cars):
    resp = client.get('/pre-owned-luxury-cars/pune')
    assert resp.status_code == 200
    assert 'Deccan Premium Cars' in resp.get_data(as_text=True)
    assert cars.requests[-1].city == 'Pune'


def test_unknown_city_is_404(client):
    resp = client.get('/pre-owned-luxury-cars/atlantis')
    assert resp.status_code == 404
    assert 'Page not found' in resp.get_data(as_text=True)


def test_dealer_page(client, cities_dir):
    dealer = DealerIndex(cities_dir).dealers_by_city_slug('pune')[0]
    resp = client.get(f'/second-hand-luxury-cars/pune/{dealer.dealer_slug}')
    assert resp.status_code == 200
    assert dealer.title in resp.get_data(as_text=True)


def test_brand_facet_page(client, cars):
    resp = client.get('/pre-owned-luxury-cars/new-delhi/land-rover')
    assert resp.status_code == 200
    options = cars.requests[-1]
    assert (options.city, options.oem) == ('New Delhi', 'Land Rover')


def test_unknown_facet_is_404(client):
    assert client.get('/pre-owned-luxury-cars/pune/spaceship').status_code == 404


def test_car_page(client):
    resp = client.get('/cars/bmw-x5-2021-pune-7')
    assert resp.status_code == 200
    assert '2021 BMW X5' in resp.get_data(as_text=True)
    assert client.get('/cars/bmw-x5-2021-pune-999').status_code == 404
    assert client.get('/cars/no-id-here').status_code == 404


@pytest.mark.parametrize('path, status', [
    ('/sell', 200),
    ('/sell/luxury-cars-in-pune', 200),
    ('/sell/land-rover-in-new-delhi', 200),
    ('/sell/ferrari-in-pune', 404),
    ('/sell/luxury-cars-in-atlantis', 404),
    ('/sell/pune', 404),
])
def test_sell_pages(client, path, status):
    assert client.get(path).status_code == status


def test_contact_page_prefill(client):
    resp = client.get('/contact?car_name=BMW+X5&location=Pune&sell=1')
    body = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'value="BMW X5"' in body
    assert 'Sell your car' in body


def test_sitemap_and_robots(client):
    resp = client.get('/sitemap.xml')
    assert resp.status_code == 200
    assert resp.mimetype == 'application/xml'
    body = resp.get_data(as_text=True)
    assert '<loc>https://indianluxurycars.com/</loc>' in body
    assert '<loc>https://indianluxurycars.com/cars/audi-q7-2021-new-delhi-8</loc>' in body
    robots = client.get('/robots.txt')
    assert robots.mimetype == 'text/plain'
    assert 'Sitemap: https://indianluxurycars.com/sitemap.xml' in robots.get_data(as_text=True)


def test_car_page_resolves_row_id_through_real_client(cities_dir):
    row = {'id': 3, 'used_car_id': 918273, 'oem': 'BMW', 'model': 'X5', 'myear': 2021, 'city': 'Pune',
           'image_url': 'https://img.example/x5.jpg'}

    def handler(method, url, json=None, **kw):
        if 'WHERE c.id = ?' in json['query'] and json['params'] == [row['id']]:
            return FakeResponse(json_data={'success': True, 'results': [row]})
        return FakeResponse(json_data={'success': True, 'results': []})

    app = create_app({
        'SETTINGS': Settings(data_dir=cities_dir.parent, site_url='https://indianluxurycars.com'),
        'DEALER_INDEX': DealerIndex(cities_dir),
        'CARS_CLIENT': CarsClient('https://api.example/query', 'tok', session=FakeSession(handler=handler)),
        'CONTACT_STORE': None,
        'BRANDS': [],
    })
    client = app.test_client()
    resp = client.get('/cars/bmw-x5-2021-pune-3')
    assert resp.status_code == 200
    assert 'https://img.example/x5.jpg' in resp.get_data(as_text=True)
    assert client.get('/cars/bmw-x5-2021-pune-918273').status_code == 404


def test_car_page_canonical_uses_current_slug(client):
    body = client.get('/cars/old-name-7').get_data(as_text=True)
    assert '<link rel="canonical" href="https://indianluxurycars.com/cars/bmw-x5-2021-pune-7">' in body
    assert 'cars/old-name-7"' not in body
