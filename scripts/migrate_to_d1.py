"""Migrate data/lux-cars.json into D1 (used_cars + car_images) and R2.

Usage:
  python scripts/migrate_to_d1.py                      # dry-run
  python scripts/migrate_to_d1.py --apply --limit 100
  python scripts/migrate_to_d1.py --apply --create-db --db used-cars-db

Auth: CLOUDFLARE_EMAIL + CLOUDFLARE_GLOBAL_KEY (preferred when both are set)
or CLOUDFLARE_API_TOKEN; R2_ACCESS_KEY_ID / R2_SECRET_ACCESS_KEY for images.

Exit codes:
  0 success
  1 runtime error (connection, schema)
  2 missing credentials / bad input file
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.d1 import D1Client  # noqa: E402
from luxcars.errors import ConfigError, LuxCarsError  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402
from luxcars.migrate import CACHE_NAME, IMAGE_PREFIX, INPUT_NAME, CarMigration, load_cars  # noqa: E402
from luxcars.storage import ImageMirror, make_s3_client  # noqa: E402


log = Logger.bind('migrate_to_d1')


def connect(settings: Settings, create_db: bool, db_name: str) -> D1Client:
    client = D1Client.from_settings(settings, prefer_global_key=True)
    if client.uses_token:
        token = client.api_token
        log.info(f"API token: {token[:10]}...{token[-4:]}")
    else:
        log.info(f"using global API key authentication (email: {settings.cloudflare_email})")
    if create_db:
        log.info(f"creating new D1 database: {db_name}...")
        db = client.create_database(db_name)
        client.database_id = db['uuid']
        print(f"Database created: {db_name} (ID: {db['uuid']})")
        print(f'Update your wrangler.jsonc with this database_id:\n  "database_id": "{db["uuid"]}"')
    log.info(f"using account={client.account_id} database={client.database_id}")
    log.info('testing D1 connection...')
    client.test_connection()
    log.info('D1 connection successful, creating tables...')
    client.apply_schema()
    return client


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--apply', action='store_true')
    ap.add_argument('--dry-run', action='store_true', help='(default)')
    ap.add_argument('--limit', type=int, default=0)
    ap.add_argument('--concurrency', type=int, default=4)
    ap.add_argument('--db', type=str, default=None, help='database name for --create-db')
    ap.add_argument('--create-db', action='store_true')
    ap.add_argument('--input', type=Path, default=None, help=f"defaults to <DATA_DIR>/{INPUT_NAME}")
    args = ap.parse_args(argv)
    setup_logging()

    settings = Settings.from_env()
    input_path = args.input or settings.data_dir / INPUT_NAME
    try:
        cars = load_cars(input_path)
    except (OSError, ValueError, LuxCarsError) as e:
        log.error(f"cannot load cars path={input_path} error={e}")
        return 2

    client = None
    mirror = None
    if args.apply:
        try:
            s3 = make_s3_client(settings)
            client = connect(settings, args.create_db, args.db or settings.d1_database_name)
        except ConfigError as e:
            log.error(str(e))
            return 2
        except LuxCarsError as e:
            log.error(f"D1 setup failed: {e}")
            return 1
        mirror = ImageMirror(settings.r2_bucket, settings.r2_public_base, IMAGE_PREFIX, client=s3, apply=True)
    else:
        mirror = ImageMirror(settings.r2_bucket, settings.r2_public_base, IMAGE_PREFIX)

    cache_path = settings.scripts_dir / CACHE_NAME
    mirror.load_cache(cache_path)
    migration = CarMigration(cars, mirror=mirror, client=client, concurrency=max(1, args.concurrency),
                             limit=args.limit)
    log.info(f"processing {len(migration.cars)} cars (out of {len(cars)} total) mode={'apply' if args.apply else 'dry-run'}")
    report = migration.run(apply=args.apply)
    if args.apply:
        mirror.save_cache(cache_path)
    print(f"images={report.images_found} uploaded={report.uploaded} upload_failed={report.upload_failed} "
          f"inserted={report.inserted} insert_failed={report.insert_failed}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
