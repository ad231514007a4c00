# migrate_to_postgres.py
"""Import links.json into the Postgres links table (safe to re-run)."""

import argparse
import logging
import os
import sys

from link_dispenser.errors import StorageFailure
from link_dispenser.migration import migrate_file
from link_dispenser.storage.db_store import PostgresLinkStore


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--file", default=os.path.join(os.getcwd(), "links.json"), help="links.json to import")
    ap.add_argument("--dsn", default=os.getenv("DATABASE_URL", ""), help="Postgres DSN (default: $DATABASE_URL)")
    ap.add_argument("--sslmode", default=os.getenv("DB_SSLMODE") or None)
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.dsn:
        print("Set DATABASE_URL (or pass --dsn) before running this script", file=sys.stderr)
        return 1

    store = PostgresLinkStore(dsn=args.dsn, min_size=1, max_size=1, sslmode=args.sslmode)
    try:
        store.open()
        inserted = migrate_file(args.file, store)
    except StorageFailure as exc:
        print(f"Migration failed: {exc}", file=sys.stderr)
        return 1
    finally:
        store.close()

    print(f"Migration complete. Links inserted: {inserted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
