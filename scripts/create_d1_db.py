"""Create the D1 database with wrangler and print the follow-up steps.

Usage:
  python scripts/create_d1_db.py [--db used-cars-db]
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.d1 import create_database_via_wrangler  # noqa: E402
from luxcars.errors import RemoteDatabaseError  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--db', type=str, default=None)
    args = ap.parse_args(argv)
    setup_logging()

    name = args.db or Settings.from_env().d1_database_name
    Logger.info(f"creating D1 database: {name}")
    try:
        db = create_database_via_wrangler(name)
    except RemoteDatabaseError as e:
        Logger.error(str(e))
        print("Make sure wrangler is installed and you are logged in: npx wrangler login")
        return 1
    print(f"Database created: {name} (ID: {db['uuid']})")
    print("Next steps:")
    print(f'  1. Set "database_id": "{db["uuid"]}" in wrangler.jsonc')
    print(f"  2. Set CLOUDFLARE_DATABASE_ID={db['uuid']} in .env.local")
    print("  3. Run: python scripts/migrate_to_d1.py --apply")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
