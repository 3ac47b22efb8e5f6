#!/usr/bin/env python
# check_catalog.py - Script to check the catalog data file

import sys
from pathlib import Path

# Add the parent directory to the path so we can import our modules
parent_dir = str(Path(__file__).parent)
if parent_dir not in sys.path:
    sys.path.append(parent_dir)

from product_management.services.datastore import DataStore
from product_management.storage.file_store import default_data_file

def check_catalog(data_file=None):
    """Load the data file and report structural problems."""
    path = Path(data_file) if data_file else default_data_file()
    print(f"\n=== Checking Catalog Data: {path} ===")

    store = DataStore()
    if not store.load(path):
        print("  Data file could not be loaded (see logs/storage.log)")
        return False

    stats = store.statistics()
    print(f"  Categories: {stats.total_categories}")
    print(f"  Subgroups: {stats.total_subgroups}")
    print(f"  Products: {stats.total_products}")
    print(f"  Next IDs:")
    print(f"    Category: {store.next_category_id}")
    print(f"    Subgroup: {store.next_subgroup_id}")
    print(f"    Product: {store.next_product_id}")

    for category in store.categories:
        print(f"\nCategory: {category.name} (ID: {category.id})")
        print(f"  Subgroups: {category.subgroup_count} / capacity {category.subgroup_capacity}")
        for subgroup in category.subgroups:
            print(f"  Subgroup: {subgroup.name} (ID: {subgroup.id})")
            print(f"    Products: {subgroup.product_count} / capacity {subgroup.product_capacity}")
            print(f"    Quantity: {subgroup.total_quantity()}")
            print(f"    Value: {subgroup.total_value():.2f}")

    problems = store.check_integrity()
    print(f"\nProblems found: {len(problems)}")
    for problem in problems:
        print(f"  - {problem}")

    return not problems

if __name__ == "__main__":
    # Check the file given on the command line, or the configured one
    ok = check_catalog(sys.argv[1] if len(sys.argv) > 1 else None)
    sys.exit(0 if ok else 1)
