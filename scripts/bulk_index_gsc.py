"""Submit every sitemap URL not yet sent to the Search Console Indexing API.

Usage:
  python scripts/bulk_index_gsc.py
  python scripts/bulk_index_gsc.py --sitemap https://indianluxurycars.com/sitemap.xml

Needs a service account key (GSC_SERVICE_ACCOUNT_FILE, default
scripts/service.json) whose email is an owner of the Search Console
property. Submitted URLs are tracked in GSC_DB_FILE (sqlite).

Exit codes:
  0 success
  1 sitemap / authentication failure
"""
from __future__ import annotations
import argparse
from pathlib import Path
import sys
import time


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from luxcars.config import Settings  # noqa: E402
from luxcars.errors import IndexingError  # noqa: E402
from luxcars.indexing import IndexingClient, SubmissionStore, chunked, fetch_sitemap, parse_sitemap  # noqa: E402
from luxcars.logger import Logger, setup_logging  # noqa: E402
from luxcars.sitemap import absolute  # noqa: E402


BATCH_SIZE = 100
BATCH_DELAY = 1.0


def submit_all(client: IndexingClient, store: SubmissionStore, urls, batch_size: int = BATCH_SIZE,
               delay: float = BATCH_DELAY):
    ok = err = 0
    batches = chunked(list(urls), batch_size)
    Logger.info(f"processing {len(batches)} batch(es) of up to {batch_size} URLs each")
    for i, batch in enumerate(batches, start=1):
        Logger.info(f"batch {i}/{len(batches)} urls={len(batch)}")
        for result in client.submit_batch(batch):
            if result.success:
                store.mark(result.url, 'submitted')
                ok += 1
            else:
                store.mark(result.url, f"error: {result.error}")
                err += 1
                Logger.warn(f"{result.url} {result.error}")
        if i < len(batches) and delay:
            time.sleep(delay)
    return ok, err


def main(argv=None) -> int:
    settings = Settings.from_env()
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--sitemap', type=str, default=absolute(settings.site_url, '/sitemap.xml'))
    ap.add_argument('--batch-size', type=int, default=BATCH_SIZE)
    args = ap.parse_args(argv)
    setup_logging()

    if not settings.gsc_service_account_file.is_file():
        Logger.error(f"{settings.gsc_service_account_file} not found")
        return 1

    with SubmissionStore(settings.gsc_db_file) as store:
        done = store.submitted()
        Logger.info(f"found {len(done)} previously submitted URLs")
        try:
            all_urls = parse_sitemap(fetch_sitemap(args.sitemap))
        except IndexingError as e:
            Logger.error(str(e))
            return 1
        todo = [u for u in all_urls if u not in done]
        Logger.info(f"sitemap urls={len(all_urls)} to_submit={len(todo)}")
        if not todo:
            print('All URLs have already been submitted!')
            return 0
        try:
            client = IndexingClient(settings.gsc_service_account_file)
        except (IndexingError, ValueError) as e:
            Logger.error(f"authentication failed: {e}")
            return 1
        ok, err = submit_all(client, store, todo, batch_size=max(1, args.batch_size))
    print(f"Successfully submitted: {ok}")
    print(f"Errors: {err}")
    print(f"Total processed: {ok + err}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
