"""
Tests for the DataStore root aggregate.
"""
import gc
import tempfile
import unittest
import weakref
from pathlib import Path

from product_management.models import Category, Subgroup, Product
from product_management.services.datastore import DataStore
from product_management.utils.date_utils import NEVER
from product_management.tests.fixtures import build_store


class TestDataStoreLifecycle(unittest.TestCase):
    """Construction, counters and the modified flag."""

    def test_initial_state(self):
        store = DataStore()
        self.assertEqual(store.category_count, 0)
        self.assertEqual(store.category_capacity, 10)
        self.assertEqual(
            (store.next_category_id, store.next_subgroup_id, store.next_product_id), (1, 1, 1)
        )
        self.assertFalse(store.is_modified)
        self.assertEqual(store.last_saved, NEVER)

    def test_factories_issue_sequential_ids(self):
        store = build_store()
        self.assertEqual(store.next_category_id, 3)
        self.assertEqual(store.next_subgroup_id, 4)
        self.assertEqual(store.next_product_id, 6)
        self.assertTrue(store.is_modified)

    def test_failed_create_does_not_consume_id(self):
        store = build_store()
        self.assertIsNone(store.create_product(1, "X", "", "", 1.0, 1))
        self.assertIsNone(store.create_product(999, "X", "Name", "", 1.0, 1))
        self.assertIsNone(store.create_category(""))
        self.assertEqual(store.next_product_id, 6)
        self.assertEqual(store.next_category_id, 3)
        self.assertEqual(store.create_product(1, "X", "Name", "", 1.0, 1).id, 6)

    def test_add_rejects_store_wide_duplicates(self):
        store = build_store()
        self.assertFalse(store.add_category(Category.create(1, "Again")))
        self.assertFalse(store.add_subgroup(2, Subgroup.create(1, 2, "Moved")))
        duplicate = Product.create(4, 3, "DUP", "Copy", "", 1.0, 1)
        self.assertFalse(store.add_product(3, duplicate))

    def test_values_beyond_stored_range_are_rejected(self):
        store = build_store()
        self.assertIsNone(store.create_product(1, "BIG", "Too many", "", 1.0, 2 ** 31))
        self.assertEqual(store.next_product_id, 6)
        self.assertFalse(store.add_category(Category.create(2 ** 31 - 1, "Last")))
        self.assertFalse(store.add_category(Category.create(2 ** 31, "Beyond")))
        self.assertEqual(store.next_category_id, 3)

    def test_largest_values_survive_save(self):
        store = DataStore()
        self.assertTrue(store.add_category(Category.create(2 ** 31 - 2, "Last")))
        self.assertEqual(store.next_category_id, 2 ** 31 - 1)
        subgroup = store.create_subgroup(2 ** 31 - 2, "Bulk")
        product = store.create_product(subgroup.id, "MAX", "Bulk", "", 0.5, 2 ** 31 - 1)
        self.assertIsNotNone(product)

        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "products.dat"
            self.assertTrue(store.save(path))
            store.mark_modified()
            self.assertTrue(store.save(path))

            loaded = DataStore()
            self.assertTrue(loaded.load(path))

        self.assertEqual(loaded.find_product_by_id(product.id).quantity, 2 ** 31 - 1)
        self.assertEqual(loaded.next_category_id, 2 ** 31 - 1)

    def test_add_with_explicit_id_advances_counter(self):
        store = DataStore()
        self.assertTrue(store.add_category(Category.create(7, "Seven")))
        self.assertEqual(store.next_category_id, 8)
        self.assertEqual(store.create_category("Next").id, 8)

    def test_add_rejects_parent_mismatch(self):
        store = build_store()
        self.assertFalse(store.add_subgroup(1, Subgroup.create(10, 2, "Mismatch")))
        self.assertFalse(store.add_product(1, Product.create(10, 2, "M", "Mismatch", "", 1.0, 1)))

    def test_release_resets_store(self):
        store = build_store()
        self.assertEqual(store.release(), (2, 3, 5))
        self.assertEqual(store.category_count, 0)
        self.assertEqual(store.next_product_id, 1)
        self.assertFalse(store.is_modified)


class TestDataStoreRemoval(unittest.TestCase):
    """Cascading removal and stale lookups."""

    def setUp(self):
        self.store = build_store()

    def test_remove_category_cascades(self):
        hardware = self.store.find_category_by_id(1)
        refs = [weakref.ref(hardware)]
        refs += [weakref.ref(s) for s in hardware.subgroups]
        refs += [weakref.ref(p) for s in hardware.subgroups for p in s.products]
        self.assertEqual(len(refs), 1 + 2 + 3)
        del hardware

        self.assertTrue(self.store.remove_category(1))
        gc.collect()

        self.assertTrue(all(ref() is None for ref in refs))
        for product_id in (1, 2, 3):
            self.assertIsNone(self.store.find_product_by_id(product_id))
        for subgroup_id in (1, 2):
            self.assertIsNone(self.store.find_subgroup_by_id(subgroup_id))
        self.assertIsNone(self.store.find_category_by_id(1))
        self.assertEqual(self.store.statistics().total_products, 2)

    def test_remove_subgroup_cascades(self):
        self.assertTrue(self.store.remove_subgroup(1))
        self.assertIsNone(self.store.find_subgroup_by_id(1))
        self.assertIsNone(self.store.find_product_by_id(1))
        self.assertIsNone(self.store.find_product_by_id(2))
        self.assertIsNotNone(self.store.find_product_by_id(3))

    def test_remove_product(self):
        self.store.is_modified = False
        self.assertTrue(self.store.remove_product(4))
        self.assertTrue(self.store.is_modified)
        self.assertIsNone(self.store.find_product_by_id(4))
        self.assertIsNone(self.store.find_subgroup_of_product(4))

    def test_remove_missing_entities(self):
        self.store.is_modified = False
        self.assertFalse(self.store.remove_category(99))
        self.assertFalse(self.store.remove_subgroup(99))
        self.assertFalse(self.store.remove_product(99))
        self.assertFalse(self.store.is_modified)

    def test_ids_are_not_reused_after_removal(self):
        self.store.remove_product(5)
        product = self.store.create_product(3, "PL-3", "Tulip", "", 2.0, 10)
        self.assertEqual(product.id, 6)

    def test_counts_within_capacity(self):
        self.store.remove_subgroup(3)
        self.store.remove_product(3)
        for category in self.store.categories:
            self.assertLessEqual(category.subgroup_count, category.subgroup_capacity)
            for subgroup in category.subgroups:
                self.assertLessEqual(subgroup.product_count, subgroup.product_capacity)
        self.assertEqual(self.store.check_integrity(), [])


class TestDataStoreUpdates(unittest.TestCase):
    """All-or-nothing updates through the store."""

    def setUp(self):
        self.store = build_store()
        self.store.is_modified = False

    def test_update_product_fields(self):
        self.assertTrue(self.store.update_product(1, name="Framing Hammer", price=18.5))
        product = self.store.find_product_by_id(1)
        self.assertEqual(product.name, "Framing Hammer")
        self.assertEqual(product.price, 18.5)
        self.assertTrue(self.store.is_modified)

    def test_rejected_update_changes_nothing(self):
        self.assertFalse(self.store.update_product(1, name="New Name", quantity=-1))
        product = self.store.find_product_by_id(1)
        self.assertEqual(product.name, "Claw Hammer")
        self.assertEqual(product.quantity, 4)
        self.assertFalse(self.store.is_modified)

    def test_update_missing_product(self):
        self.assertFalse(self.store.update_product(99, price=1.0))

    def test_update_groups(self):
        self.assertTrue(self.store.update_category(1, name="Tools"))
        self.assertTrue(self.store.update_subgroup(3, description="Indoor and outdoor"))
        self.assertFalse(self.store.update_subgroup(3, name=""))
        self.assertEqual(self.store.find_category_by_id(1).name, "Tools")
        self.assertEqual(self.store.find_subgroup_by_id(3).description, "Indoor and outdoor")
        self.assertEqual(self.store.find_subgroup_by_id(3).name, "Plants")

    def test_found_reference_is_live(self):
        self.store.find_product_by_id(2).update_quantity(7)
        self.assertEqual(self.store.search_products_by_name("saw")[0].quantity, 7)


class TestDataStoreSearch(unittest.TestCase):
    """Search, low stock and statistics."""

    def setUp(self):
        self.store = build_store()

    def test_search_by_name_is_case_insensitive_in_traversal_order(self):
        results = self.store.search_products_by_name("HAMMER")
        self.assertEqual([p.name for p in results], ["Claw Hammer", "Hammer Fern"])

    def test_empty_name_matches_everything(self):
        self.assertEqual(len(self.store.search_products_by_name("")), 5)

    def test_search_results_are_snapshots(self):
        result = self.store.search_products_by_name("Rose")[0]
        result.update_price(100.0)
        self.assertEqual(self.store.find_product_by_id(5).price, 9.5)

    def test_price_range_is_inclusive(self):
        store = DataStore()
        category = store.create_category("C")
        subgroup = store.create_subgroup(category.id, "S")
        for price in (5.0, 15.0, 20.0, 25.0):
            store.create_product(subgroup.id, f"P{price}", "Item", "", price, 1)

        results = store.search_products_by_price(10.0, 20.0)

        self.assertEqual(sorted(p.price for p in results), [15.0, 20.0])

    def test_inverted_range_is_empty(self):
        self.assertEqual(self.store.search_products_by_price(30.0, 10.0), [])
        self.assertEqual(self.store.search_products_by_quantity(10, 0), [])

    def test_quantity_range(self):
        results = self.store.search_products_by_quantity(0, 4)
        self.assertEqual([p.id for p in results], [1, 2, 5])

    def test_low_stock_is_strictly_below_threshold(self):
        results = self.store.low_stock_products(4)
        self.assertEqual([p.id for p in results], [2, 5])

    def test_statistics_average_is_unit_price(self):
        store = DataStore()
        category = store.create_category("C")
        subgroup = store.create_subgroup(category.id, "S")
        store.create_product(subgroup.id, "A", "A", "", 10.0, 2)
        store.create_product(subgroup.id, "B", "B", "", 20.0, 1)

        stats = store.statistics()

        self.assertEqual(stats.total_quantity, 3)
        self.assertEqual(stats.total_value, 40.0)
        self.assertEqual(stats.average_price, 15.0)
        self.assertEqual(stats, store.statistics())

    def test_statistics_of_empty_store(self):
        stats = DataStore().statistics()
        self.assertEqual(stats.total_products, 0)
        self.assertEqual(stats.average_price, 0.0)

    def test_integrity_detects_parent_mismatch(self):
        self.store.find_product_by_id(1).subgroup_id = 3
        self.store.next_product_id = 2
        problems = self.store.check_integrity()
        self.assertTrue(any("Product 1 points to subgroup 3" in p for p in problems))
        self.assertTrue(any("Next product ID" in p for p in problems))


if __name__ == '__main__':
    unittest.main()
