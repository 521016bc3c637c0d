"""CLI script to add catalog categories or list the existing ones.
Usage: python scripts/add_category.py [--list] [NAME ...]
"""
import sys
import argparse
import pathlib
from typing import List
# Ensure `backend/` is on sys.path so `softwarestore` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from softwarestore.database import engine, create_db_and_tables
from softwarestore import services
from softwarestore.errors import PersistenceFailure


def main(names: List[str], list_only: bool = False) -> int:
    """Create each category in `names` that does not exist yet.

    Results are printed to stdout for a quick CLI feedback loop; the
    return value is the number of categories that could not be added.
    """
    create_db_and_tables()
    failures = 0
    with Session(engine) as session:
        store = services.CatalogStore(session)
        existing = {c.name for c in store.get_all_categories()}
        for name in names:
            name = name.strip()
            if not name or name in existing:
                print(f'Skipping {name!r}: empty or already present')
                continue
            try:
                created = store.add_category(name)
            except PersistenceFailure as e:
                print(f'Error adding {name!r}: {e}')
                failures += 1
                continue
            existing.add(name)
            print(f'Added category {created.id}: {created.name}')
        if list_only or not names:
            for c in store.get_all_categories():
                print(f'{c.id}\t{c.name}')
    return failures


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('names', nargs='*', help='Category names to add')
    parser.add_argument('--list', action='store_true', help='Print all categories afterwards')
    args = parser.parse_args()
    sys.exit(1 if main(args.names, list_only=args.list) else 0)
