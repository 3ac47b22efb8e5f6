# product_management/core/collection.py
"""Growable entity array used at every level of the catalog tree.

The backing list is kept at exactly ``capacity`` slots, ``count`` of which
are occupied, so the growth and reclaim policy is observable:

* inserts double the capacity when full (seeded at ``INITIAL_CAPACITY``),
* removals use swap-and-pop, so iteration order is not stable,
* emptying the collection releases the backing storage (capacity 0).
"""
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

from product_management.exceptions import CapacityError
from product_management.logging_setup import get_logger

logger = get_logger('catalog')

INITIAL_CAPACITY = 10

T = TypeVar('T')

def _allocate_slots(size: int) -> list:
    """Allocate ``size`` empty slots."""
    return [None] * size

class EntityCollection(Generic[T]):
    """Ordered, ID-keyed collection with capacity doubling."""

    def __init__(self, capacity: int = INITIAL_CAPACITY, key: Callable[[T], int] = None):
        """Initialize an empty collection.

        Args:
            capacity: Initial number of slots
            key: Function returning the ID of an element (defaults to ``.id``)
        """
        self._slots = _allocate_slots(max(capacity, 0))
        self._count = 0
        self._key = key or (lambda item: item.id)

    @property
    def count(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        for index in range(self._count):
            yield self._slots[index]

    def __getitem__(self, index: int) -> T:
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError('collection index out of range')
        return self._slots[index]

    def is_empty(self) -> bool:
        return self._count == 0

    def _grow(self, new_capacity: int) -> None:
        """Expand capacity to ``new_capacity`` slots.

        Raises:
            CapacityError: If the new slots cannot be allocated. The
                collection is left exactly as it was.
        """
        try:
            extra = _allocate_slots(new_capacity - self.capacity)
        except MemoryError as e:
            raise CapacityError(
                f"Failed to expand collection to {new_capacity} slots",
                details={'capacity': self.capacity, 'requested': new_capacity}
            ) from e
        self._slots.extend(extra)

    def reserve(self, size: int) -> bool:
        """Ensure room for ``size`` elements, never below the initial capacity.

        Returns:
            True if the capacity is sufficient, False if allocation failed
        """
        wanted = max(size, INITIAL_CAPACITY)
        if wanted <= self.capacity:
            return True
        try:
            self._grow(wanted)
        except CapacityError as e:
            logger.error(str(e))
            return False
        return True

    def append(self, item: T) -> bool:
        """Append an element, doubling the capacity when full.

        Returns:
            True on success, False if the collection could not grow
        """
        if self._count >= self.capacity:
            try:
                self._grow(max(self.capacity * 2, INITIAL_CAPACITY))
            except CapacityError as e:
                logger.error(str(e))
                return False

        self._slots[self._count] = item
        self._count += 1
        return True

    def index_of(self, item_id: int) -> int:
        """Linear search by ID. Returns -1 when absent."""
        for index in range(self._count):
            if self._key(self._slots[index]) == item_id:
                return index
        return -1

    def get(self, item_id: int) -> Optional[T]:
        """Return the element with the given ID, or None."""
        index = self.index_of(item_id)
        return self._slots[index] if index >= 0 else None

    def contains(self, item_id: int) -> bool:
        return self.index_of(item_id) >= 0

    def swap_remove(self, item_id: int) -> Optional[T]:
        """Remove an element by ID using swap-and-pop.

        The last element is moved into the freed slot. When the collection
        becomes empty its backing storage is released.

        Returns:
            The removed element, or None if no element has that ID
        """
        index = self.index_of(item_id)
        if index < 0:
            return None

        removed = self._slots[index]
        last = self._count - 1
        if index < last:
            self._slots[index] = self._slots[last]
        self._slots[last] = None
        self._count -= 1

        if self._count == 0:
            self._slots = []
        return removed

    def clear(self) -> List[T]:
        """Drop every element and release the backing storage.

        Returns:
            The elements that were held, in collection order
        """
        items = list(self)
        self._slots = []
        self._count = 0
        return items

    def to_list(self) -> List[T]:
        return list(self)
