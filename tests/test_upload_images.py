import json

from fakes import FakeResponse, FakeSession
from luxcars.storage import ImageMirror
from luxcars.upload_images import collect_image_urls, load_city_files, migrate_dealer_images, rewrite_image_urls


PUBLIC = 'https://media.example.com'


def _write_city(d, name, records):
    (d / f"{name}.json").write_text(json.dumps(records), encoding='utf-8')


def _mirror(apply=False, s3=None):
    session = FakeSession(handler=lambda m, u, **kw: (
        FakeResponse(status_code=404) if 'broken' in u
        else FakeResponse(content=u.encode(), headers={'Content-Type': 'image/webp'})))
    return ImageMirror('pics', PUBLIC, 'google', client=s3, session=session, apply=apply)


class FakeS3:

    def __init__(self):
        self.keys = []

    def head_object(self, Bucket, Key):
        from botocore.exceptions import ClientError
        raise ClientError({'Error': {'Code': 'NoSuchKey'}}, 'HeadObject')

    def put_object(self, **kwargs):
        self.keys.append(kwargs['Key'])


def test_collect_skips_mirrored_and_duplicates(tmp_path):
    _write_city(tmp_path, 'a', [
        {'imageUrl': 'https://lh3.example/1'},
        {'imageUrl': f'{PUBLIC}/google/x.webp'},
        {'imageUrl': 'https://lh3.example/1'},
        {'imageUrl': None},
    ])
    _write_city(tmp_path, 'b', [{'imageUrl': 'https://lh3.example/2'}])
    per_file = load_city_files(tmp_path)
    assert collect_image_urls(per_file, PUBLIC) == ['https://lh3.example/1', 'https://lh3.example/2']


def test_rewrite_only_touches_changed_files(tmp_path):
    _write_city(tmp_path, 'a', [{'imageUrl': 'https://lh3.example/1'}])
    _write_city(tmp_path, 'b', [{'imageUrl': 'https://lh3.example/2'}])
    per_file = load_city_files(tmp_path)
    replaced, touched = rewrite_image_urls(per_file, {'https://lh3.example/1': f'{PUBLIC}/google/1.webp'})
    assert (replaced, touched) == (1, 1)
    assert json.loads((tmp_path / 'a.json').read_text(encoding='utf-8'))[0]['imageUrl'] == f'{PUBLIC}/google/1.webp'


def test_dry_run_counts_without_fetching(tmp_path, cities_dir):
    _write_city(cities_dir, 'goa', [{'title': 'Goa Cars', 'imageUrl': 'https://lh3.example/g'}])
    mirror = _mirror()
    report = migrate_dealer_images(cities_dir, mirror, tmp_path / 'map.json')
    assert report.found == 1
    assert mirror.session.calls == []
    assert not (tmp_path / 'map.json').exists()


def test_dry_run_fetch_fills_cache_but_keeps_files(tmp_path, cities_dir):
    _write_city(cities_dir, 'goa', [{'imageUrl': 'https://lh3.example/g'}, {'imageUrl': 'https://lh3.example/broken'}])
    report = migrate_dealer_images(cities_dir, _mirror(), tmp_path / 'map.json', fetch=True)
    assert (report.ok, report.failed, report.replaced) == (1, 1, 0)
    cache = json.loads((tmp_path / 'map.json').read_text(encoding='utf-8'))
    assert list(cache) == ['https://lh3.example/g']
    assert json.loads((cities_dir / 'goa.json').read_text(encoding='utf-8'))[0]['imageUrl'] == 'https://lh3.example/g'


def test_apply_uploads_and_rewrites(tmp_path, cities_dir):
    _write_city(cities_dir, 'goa', [{'imageUrl': 'https://lh3.example/g'}])
    s3 = FakeS3()
    report = migrate_dealer_images(cities_dir, _mirror(apply=True, s3=s3), tmp_path / 'map.json', limit=5)
    assert report.ok == 1
    assert report.replaced == 1 and report.touched_files == 1
    assert s3.keys[0].startswith('google/') and s3.keys[0].endswith('.webp')
    rewritten = json.loads((cities_dir / 'goa.json').read_text(encoding='utf-8'))[0]['imageUrl']
    assert rewritten == f"{PUBLIC}/{s3.keys[0]}"
