"""Pick a cover photo per city from Unsplash, mirror it to R2, record it.

Usage:
  python scripts/city_covers_from_unsplash.py                  # dry-run, 10 cities
  python scripts/city_covers_from_unsplash.py --apply --limit 0 --sleep-ms 1500
  python scripts/city_covers_from_unsplash.py --apply --overwrite

Writes <DATA_DIR>/city-covers.json on --apply; progress is cached in
scripts/unsplash-cover-cache.json.
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.covers import CACHE_NAME, COVER_USER_AGENT, COVERS_NAME, CityCovers, UnsplashClient  # noqa: E402
from luxcars.errors import ConfigError  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402
from luxcars.storage import ImageMirror, make_s3_client  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--apply', action='store_true')
    ap.add_argument('--dry-run', action='store_true', help='(default)')
    ap.add_argument('--concurrency', type=int, default=2)
    ap.add_argument('--limit', type=int, default=10, help='0 = all cities')
    ap.add_argument('--sleep-ms', type=int, default=1000)
    ap.add_argument('--overwrite', action='store_true')
    args = ap.parse_args(argv)
    setup_logging()

    settings = Settings.from_env()
    if not settings.unsplash_access_key:
        Logger.error('UNSPLASH_ACCESS_KEY is not set')
        return 2
    try:
        s3 = make_s3_client(settings) if args.apply else None
    except ConfigError as e:
        Logger.error(str(e))
        return 2

    mirror = ImageMirror(settings.r2_bucket, settings.r2_public_base, 'covers/cities',
                         client=s3, apply=args.apply, user_agent=COVER_USER_AGENT)
    job = CityCovers(
        settings.cities_dir,
        settings.data_dir / COVERS_NAME,
        settings.scripts_dir / CACHE_NAME,
        search=UnsplashClient(settings.unsplash_access_key),
        mirror=mirror,
        limit=args.limit,
        concurrency=args.concurrency,
        sleep_ms=args.sleep_ms,
        overwrite=args.overwrite,
    )
    report = job.run(apply=args.apply)
    print(f"ok={report.ok} fail={report.failed} updated={report.updated}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
