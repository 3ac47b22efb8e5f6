# product_management/core/statistics.py
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from product_management.models import Category

@dataclass(frozen=True)
class Statistics:
    """Store-wide totals.

    ``average_price`` is the mean *unit price* over products, not
    ``total_value / total_quantity``.
    """

    total_categories: int = 0
    total_subgroups: int = 0
    total_products: int = 0
    total_quantity: int = 0
    total_value: float = 0.0
    average_price: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)

def calculate_statistics(categories: Iterable['Category']) -> Statistics:
    """Compute store statistics in one pass over the tree.

    Args:
        categories: Categories of a store

    Returns:
        Statistics record
    """
    total_categories = 0
    total_subgroups = 0
    total_products = 0
    total_quantity = 0
    total_value = 0.0
    price_sum = 0.0

    for category in categories:
        total_categories += 1
        for subgroup in category.subgroups:
            total_subgroups += 1
            for product in subgroup.products:
                total_products += 1
                total_quantity += product.quantity
                total_value += product.price * product.quantity
                price_sum += product.price

    average_price = price_sum / total_products if total_products > 0 else 0.0

    return Statistics(
        total_categories=total_categories,
        total_subgroups=total_subgroups,
        total_products=total_products,
        total_quantity=total_quantity,
        total_value=total_value,
        average_price=average_price
    )
