import json
from types import SimpleNamespace


class FakeResponse(SimpleNamespace):
    """Just enough of ``requests.Response`` for the clients under test."""

    def __init__(self, status_code=200, json_data=None, content=b'', headers=None, text=None, reason='OK'):
        super().__init__(
            status_code=status_code,
            _json=json_data,
            content=content,
            headers=headers or {},
            reason=reason,
            text=text if text is not None else (json.dumps(json_data) if json_data is not None else ''),
        )

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError('no json')
        return self._json


class FakeSession:
    """Records calls and answers from a list or a callable."""

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []

    def _answer(self, method, url, **kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, **kwargs))
        if self.handler is not None:
            return self.handler(method, url, **kwargs)
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._answer('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._answer('POST', url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._answer(method, url, **kwargs)

    def close(self):
        pass


def dealer(title, place_id=None, city=None, address=None, score=None, **extra):
    rec = {'title': title}
    if place_id is not None:
        rec['placeId'] = place_id
    if city is not None:
        rec['city'] = city
    if address is not None:
        rec['address'] = address
    if score is not None:
        rec['totalScore'] = score
    rec.update(extra)
    return rec




class FakeCarsClient:
    """Stands in for ``CarsClient`` in app and sitemap tests."""

    def __init__(self, cars=(), filters=None):
        from luxcars.models import FilterOptions
        self.cars = list(cars)
        self.filters = filters or FilterOptions()
        self.requests = []

    def get_all_used_cars(self):
        return list(self.cars)

    def get_cars(self, options=None):
        from luxcars.models import FetchCarsResult
        self.requests.append(options)
        return FetchCarsResult(success=True, results=list(self.cars), meta={'total': len(self.cars)})

    def get_filter_options(self):
        return self.filters

    def get_car_details(self, used_car_id):
        return next((c for c in self.cars if c.used_car_id == used_car_id), None)

    def get_car_by_id(self, car_id):
        return next((c for c in self.cars if c.id == car_id), None)


def used_car(id, used_car_id=None, **extra):
    from luxcars.models import UsedCar
    values = {'oem': 'BMW', 'model': 'X5', 'myear': 2021, 'city': 'Pune', 'price': 5500000,
              'formatted_price': '55 Lakh', 'fuel_type': 'Diesel', 'body_type': 'SUV'}
    values.update(extra)
    # source ids live in a different range from row ids
    return UsedCar(id=id, used_car_id=used_car_id if used_car_id is not None else 900000 + id, **values)
