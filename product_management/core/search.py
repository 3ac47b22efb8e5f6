# product_management/core/search.py
from typing import Callable, Iterable, Iterator, List, Tuple, TYPE_CHECKING

from product_management.utils.text_utils import clean_text, contains_ignore_case

if TYPE_CHECKING:
    from product_management.models import Category, Subgroup, Product

def iter_tree(categories: Iterable['Category']) -> Iterator[Tuple['Category', 'Subgroup', 'Product']]:
    """Walk every product in traversal order.

    Order is category index, then subgroup index, then product index.

    Yields:
        Tuples of (category, subgroup, product)
    """
    for category in categories:
        for subgroup in category.subgroups:
            for product in subgroup.products:
                yield category, subgroup, product

def collect_products(
    categories: Iterable['Category'],
    predicate: Callable[['Product'], bool]
) -> List['Product']:
    """Single pass over the tree collecting snapshots of matching products."""
    return [product.snapshot() for _, _, product in iter_tree(categories) if predicate(product)]

def search_by_name(categories: Iterable['Category'], text: str) -> List['Product']:
    """Products whose name contains ``text`` (case-insensitive).

    An empty search text matches every product.
    """
    needle = clean_text(text)
    return collect_products(categories, lambda p: contains_ignore_case(p.name, needle))

def search_by_price(categories: Iterable['Category'], min_price: float, max_price: float) -> List['Product']:
    """Products priced within ``[min_price, max_price]`` inclusive."""
    return collect_products(categories, lambda p: min_price <= p.price <= max_price)

def search_by_quantity(categories: Iterable['Category'], min_qty: int, max_qty: int) -> List['Product']:
    """Products with quantity within ``[min_qty, max_qty]`` inclusive."""
    return collect_products(categories, lambda p: min_qty <= p.quantity <= max_qty)

def filter_low_stock(categories: Iterable['Category'], threshold: int) -> List['Product']:
    """Products whose quantity is strictly below ``threshold``."""
    return collect_products(categories, lambda p: p.quantity < threshold)
