"""Mirror dealer imageUrl values into R2 and rewrite the city JSON files.

Usage:
  python scripts/upload_images_to_r2.py                 # dry-run: counts only
  python scripts/upload_images_to_r2.py --dry-run-fetch # download + fill cache
  python scripts/upload_images_to_r2.py --apply --concurrency 8 --limit 500

Cache: scripts/image-url-map.json (source URL -> public URL).

Exit codes:
  0 success
  2 missing R2 credentials
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.errors import ConfigError  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402
from luxcars.storage import ImageMirror, make_s3_client  # noqa: E402
from luxcars.upload_images import CACHE_NAME, IMAGE_PREFIX, migrate_dealer_images  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--apply', action='store_true', help='upload and rewrite city files')
    ap.add_argument('--dry-run', action='store_true', help='(default) report counts only')
    ap.add_argument('--dry-run-fetch', action='store_true', help='download and cache without uploading')
    ap.add_argument('--limit', type=int, default=0)
    ap.add_argument('--concurrency', type=int, default=8)
    args = ap.parse_args(argv)
    setup_logging()

    settings = Settings.from_env()
    try:
        client = make_s3_client(settings) if args.apply else None
    except ConfigError as e:
        Logger.error(str(e))
        return 2

    mirror = ImageMirror(settings.r2_bucket, settings.r2_public_base, IMAGE_PREFIX, client=client, apply=args.apply)
    cache_path = settings.scripts_dir / CACHE_NAME
    report = migrate_dealer_images(
        settings.cities_dir,
        mirror,
        cache_path,
        limit=args.limit,
        concurrency=max(1, args.concurrency),
        fetch=args.dry_run_fetch,
    )
    print(f"found={report.found} selected={report.selected} cached={report.cache_hits} ok={report.ok} "
          f"fail={report.failed} replaced={report.replaced} files={report.touched_files}")
    if args.apply or args.dry_run_fetch:
        print(f"Cache saved to {cache_path}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
