import math
from typing import Any, Dict, TYPE_CHECKING

from product_management.utils.text_utils import clean_text

if TYPE_CHECKING:
    from product_management.models import Product, Subgroup, Category

# Integer fields are stored as signed 32-bit values on disk. IDs stop one short
# of the maximum so the next-ID counter always fits as well.
INT32_MAX = 2 ** 31 - 1
MAX_ID = INT32_MAX - 1

def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

def validate_id(value: Any) -> bool:
    """IDs are positive integers below the storable maximum."""
    return _is_integer(value) and 0 < value <= MAX_ID

def validate_price(price: Any) -> bool:
    """Prices are finite, non-negative numbers."""
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return False
    try:
        return math.isfinite(price) and price >= 0
    except OverflowError:
        return False

def validate_quantity(quantity: Any) -> bool:
    """Quantities are non-negative integers that fit the stored field."""
    return _is_integer(quantity) and 0 <= quantity <= INT32_MAX

def validate_required_text(value: Any) -> bool:
    """Required text must be non-empty after trimming."""
    return isinstance(value, str) and bool(clean_text(value))

def product_field_errors(**fields) -> Dict[str, str]:
    """Validate a subset of product fields.

    Only the keyword arguments that are passed are checked, so the same
    function serves the factory and the single-field updates.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for key in ('id', 'subgroup_id'):
        if key in fields and not validate_id(fields[key]):
            errors[key] = f'{key} must be a positive integer up to {MAX_ID}'

    if 'code' in fields and not validate_required_text(fields['code']):
        errors['code'] = 'Product code is required'

    if 'name' in fields and not validate_required_text(fields['name']):
        errors['name'] = 'Product name is required'

    if 'description' in fields and fields['description'] is not None \
            and not isinstance(fields['description'], str):
        errors['description'] = 'Description must be text'

    if 'price' in fields and not validate_price(fields['price']):
        errors['price'] = 'Price must be a finite non-negative number'

    if 'quantity' in fields and not validate_quantity(fields['quantity']):
        errors['quantity'] = f'Quantity must be a non-negative integer up to {INT32_MAX}'

    return errors

def group_field_errors(**fields) -> Dict[str, str]:
    """Validate a subset of category/subgroup fields."""
    errors = {}

    for key in ('id', 'category_id'):
        if key in fields and not validate_id(fields[key]):
            errors[key] = f'{key} must be a positive integer up to {MAX_ID}'

    if 'name' in fields and not validate_required_text(fields['name']):
        errors['name'] = 'Name is required'

    if 'description' in fields and fields['description'] is not None \
            and not isinstance(fields['description'], str):
        errors['description'] = 'Description must be text'

    return errors

def _collection_errors(collection, label: str) -> Dict[str, str]:
    errors = {}
    if collection.count < 0 or collection.capacity < 0:
        errors[label] = f'{label} count and capacity must be non-negative'
    elif collection.count > collection.capacity:
        errors[label] = f'{label} count exceeds capacity'
    return errors

def validate_product(product: 'Product') -> Dict[str, str]:
    """Validate a product.

    Args:
        product: Product to validate

    Returns:
        Dictionary with validation errors
    """
    return product_field_errors(
        id=product.id,
        subgroup_id=product.subgroup_id,
        code=product.code,
        name=product.name,
        price=product.price,
        quantity=product.quantity
    )

def validate_subgroup(subgroup: 'Subgroup') -> Dict[str, str]:
    """Validate a subgroup.

    Args:
        subgroup: Subgroup to validate

    Returns:
        Dictionary with validation errors
    """
    errors = group_field_errors(
        id=subgroup.id,
        category_id=subgroup.category_id,
        name=subgroup.name
    )
    errors.update(_collection_errors(subgroup.products, 'products'))
    return errors

def validate_category(category: 'Category') -> Dict[str, str]:
    """Validate a category.

    Args:
        category: Category to validate

    Returns:
        Dictionary with validation errors
    """
    errors = group_field_errors(id=category.id, name=category.name)
    errors.update(_collection_errors(category.subgroups, 'subgroups'))
    return errors
