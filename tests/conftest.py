import json
from pathlib import Path
import sys

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fakes import dealer  # noqa: E402


@pytest.fixture
def cities_dir(tmp_path):
    d = tmp_path / 'data' / 'cities'
    d.mkdir(parents=True)
    (d / 'pune.json').write_text(json.dumps([
        dealer('Prestige Luxury Motors', 'ChIJprestige01', 'Pune', score=4.6),
        dealer('Deccan Premium Cars', 'ChIJdeccan02', 'Pune', score=4.8),
        dealer('Deccan Premium Cars', 'ChIJdeccan02', 'Pune', score=4.8),
    ]), encoding='utf-8')
    (d / 'new-delhi.json').write_text(json.dumps([
        dealer('Capital Cars', 'ChIJcapital01', 'New Delhi', score=4.1),
        dealer('Big Boy Toyz', 'ChIJbigboy002', 'New Delhi'),
        dealer('Luxe Wheels', None, 'New Delhi', address='Okhla, New Delhi, Delhi 110020, India'),
    ]), encoding='utf-8')
    return d
