"""
Tests for the growable entity collection.
"""
import unittest
from unittest.mock import patch
from types import SimpleNamespace

from product_management.core.collection import EntityCollection, INITIAL_CAPACITY


def item(item_id):
    return SimpleNamespace(id=item_id)


class TestEntityCollection(unittest.TestCase):
    """Growth, removal and reclaim policy."""

    def setUp(self):
        self.collection = EntityCollection()

    def assert_bounds(self):
        self.assertTrue(0 <= self.collection.count <= self.collection.capacity)

    def test_initial_state(self):
        self.assertEqual(self.collection.count, 0)
        self.assertEqual(self.collection.capacity, INITIAL_CAPACITY)
        self.assertTrue(self.collection.is_empty())

    def test_capacity_doubles_when_full(self):
        for i in range(1, 11):
            self.assertTrue(self.collection.append(item(i)))
        self.assertEqual(self.collection.capacity, 10)

        self.collection.append(item(11))
        self.assertEqual(self.collection.count, 11)
        self.assertEqual(self.collection.capacity, 20)
        self.assert_bounds()

    def test_swap_remove_moves_last_into_gap(self):
        for i in (1, 2, 3):
            self.collection.append(item(i))

        removed = self.collection.swap_remove(1)

        self.assertEqual(removed.id, 1)
        self.assertEqual([x.id for x in self.collection], [3, 2])
        self.assert_bounds()

    def test_swap_remove_missing_id(self):
        self.collection.append(item(1))
        self.assertIsNone(self.collection.swap_remove(42))
        self.assertEqual(self.collection.count, 1)

    def test_emptying_releases_storage_and_reseeds(self):
        self.collection.append(item(1))
        self.collection.swap_remove(1)
        self.assertEqual(self.collection.capacity, 0)
        self.assert_bounds()

        self.collection.append(item(2))
        self.assertEqual(self.collection.capacity, INITIAL_CAPACITY)

    def test_reserve_uses_larger_of_count_and_initial(self):
        collection = EntityCollection(capacity=0)
        self.assertTrue(collection.reserve(3))
        self.assertEqual(collection.capacity, INITIAL_CAPACITY)
        self.assertTrue(collection.reserve(25))
        self.assertEqual(collection.capacity, 25)

    def test_lookup(self):
        self.collection.append(item(7))
        self.assertEqual(self.collection.index_of(7), 0)
        self.assertEqual(self.collection.index_of(8), -1)
        self.assertTrue(self.collection.contains(7))
        self.assertIsNone(self.collection.get(8))
        self.assertEqual(self.collection[-1].id, 7)
        with self.assertRaises(IndexError):
            self.collection[1]

    @patch('product_management.core.collection._allocate_slots', side_effect=MemoryError)
    def test_failed_growth_leaves_collection_unchanged(self, mock_allocate):
        for i in range(1, 11):
            self.collection.append(item(i))

        self.assertFalse(self.collection.append(item(11)))

        self.assertEqual(self.collection.count, 10)
        self.assertEqual(self.collection.capacity, 10)
        self.assertEqual([x.id for x in self.collection], list(range(1, 11)))

    def test_clear_returns_items(self):
        for i in (1, 2):
            self.collection.append(item(i))
        items = self.collection.clear()
        self.assertEqual([x.id for x in items], [1, 2])
        self.assertEqual(self.collection.count, 0)
        self.assertEqual(self.collection.capacity, 0)


if __name__ == '__main__':
    unittest.main()
