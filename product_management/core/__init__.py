from .collection import EntityCollection, INITIAL_CAPACITY
from .search import (
    iter_tree, collect_products, search_by_name, search_by_price,
    search_by_quantity, filter_low_stock
)
from .statistics import Statistics, calculate_statistics

__all__ = [
    'EntityCollection',
    'INITIAL_CAPACITY',
    'iter_tree',
    'collect_products',
    'search_by_name',
    'search_by_price',
    'search_by_quantity',
    'filter_low_stock',
    'Statistics',
    'calculate_statistics'
]
