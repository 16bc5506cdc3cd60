"""Regroup raw dealer JSON dumps into one file per city.

Usage:
  python scripts/normalize_data.py
  python scripts/normalize_data.py --data-dir path/to/data

Reads <data>/raw/*.json when that folder exists, otherwise the loose
<data>/*.json files (which are then moved into raw/). Writes
<data>/cities/<city-slug>.json, de-duplicated and sorted by title.
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402
from luxcars.normalize import normalize_data  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--data-dir', type=Path, default=None, help='defaults to DATA_DIR / data')
    args = ap.parse_args(argv)
    setup_logging()

    data_dir = args.data_dir or Settings.from_env().data_dir
    if not data_dir.is_dir():
        Logger.error(f"data dir not found: {data_dir}")
        return 2
    summary = normalize_data(data_dir)
    print(f"files={summary.files_read} skipped={summary.files_skipped} kept={summary.records_kept} "
          f"duplicates={summary.duplicates} cities={summary.cities_written}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
