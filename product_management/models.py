# product_management/models.py
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from product_management.core.collection import EntityCollection
from product_management.logging_setup import get_logger
from product_management.utils.date_utils import current_timestamp
from product_management.utils.text_utils import bounded_text, contains_ignore_case
from product_management.utils.validation import (
    product_field_errors, group_field_errors,
    validate_product, validate_subgroup, validate_category
)

logger = get_logger('catalog')

INVALID_ID = -1

# Fixed buffer sizes of the persisted layout, in bytes
CODE_SIZE = 20
PRODUCT_NAME_SIZE = 100
GROUP_NAME_SIZE = 50
DESCRIPTION_SIZE = 200
TIMESTAMP_SIZE = 20


@dataclass
class Product:
    """Leaf inventory record.

    Instances returned by ``find_*`` lookups are the stored objects and may
    be mutated in place through the ``update_*`` methods.
    """

    id: int
    subgroup_id: int
    code: str
    name: str
    description: str = ''
    price: float = 0.0
    quantity: int = 0
    created_at: str = ''
    updated_at: str = ''

    @classmethod
    def create(
        cls,
        id: int,
        subgroup_id: int,
        code: str,
        name: str,
        description: Optional[str] = '',
        price: float = 0.0,
        quantity: int = 0
    ) -> 'Product':
        """Create a validated product stamped with the current time.

        Args:
            id: Product ID (positive)
            subgroup_id: Parent subgroup ID (positive)
            code: Product code / SKU
            name: Product name
            description: Optional free text
            price: Unit price (>= 0)
            quantity: Quantity on hand (>= 0)

        Returns:
            The new product, or an invalid sentinel (``id == INVALID_ID``)
            if any field fails validation
        """
        errors = product_field_errors(
            id=id, subgroup_id=subgroup_id, code=code, name=name,
            description=description, price=price, quantity=quantity
        )
        if errors:
            logger.warning(f"Rejected product {id!r}: {errors}")
            return cls.invalid()

        timestamp = current_timestamp()
        return cls(
            id=id,
            subgroup_id=subgroup_id,
            code=bounded_text(code, CODE_SIZE),
            name=bounded_text(name, PRODUCT_NAME_SIZE),
            description=bounded_text(description, DESCRIPTION_SIZE),
            price=float(price),
            quantity=quantity,
            created_at=timestamp,
            updated_at=timestamp
        )

    @classmethod
    def invalid(cls) -> 'Product':
        """Sentinel returned by a failed ``create``."""
        return cls(id=INVALID_ID, subgroup_id=INVALID_ID, code='', name='')

    def is_valid(self) -> bool:
        return not validate_product(self)

    @property
    def total_value(self) -> float:
        return self.price * self.quantity

    def touch(self) -> None:
        """Refresh the updated timestamp."""
        self.updated_at = current_timestamp()

    def update_code(self, code: str) -> bool:
        if product_field_errors(code=code):
            return False
        self.code = bounded_text(code, CODE_SIZE)
        self.touch()
        return True

    def update_name(self, name: str) -> bool:
        if product_field_errors(name=name):
            return False
        self.name = bounded_text(name, PRODUCT_NAME_SIZE)
        self.touch()
        return True

    def update_description(self, description: Optional[str]) -> bool:
        if product_field_errors(description=description):
            return False
        self.description = bounded_text(description, DESCRIPTION_SIZE)
        self.touch()
        return True

    def update_price(self, price: float) -> bool:
        if product_field_errors(price=price):
            return False
        self.price = float(price)
        self.touch()
        return True

    def update_quantity(self, quantity: int) -> bool:
        if product_field_errors(quantity=quantity):
            return False
        self.quantity = quantity
        self.touch()
        return True

    def snapshot(self) -> 'Product':
        """Detached copy, safe to keep across mutations of the store."""
        return replace(self)


@dataclass(eq=False)
class Subgroup:
    """Mid-level group owning an ordered collection of products."""

    id: int
    category_id: int
    name: str
    description: str = ''
    products: EntityCollection = field(default_factory=EntityCollection, repr=False)

    @classmethod
    def create(
        cls,
        id: int,
        category_id: int,
        name: str,
        description: Optional[str] = ''
    ) -> 'Subgroup':
        """Create an empty subgroup.

        Returns:
            The new subgroup, or an invalid sentinel (``id == INVALID_ID``)
        """
        errors = group_field_errors(
            id=id, category_id=category_id, name=name, description=description
        )
        if errors:
            logger.warning(f"Rejected subgroup {id!r}: {errors}")
            return cls(id=INVALID_ID, category_id=INVALID_ID, name='')

        return cls(
            id=id,
            category_id=category_id,
            name=bounded_text(name, GROUP_NAME_SIZE),
            description=bounded_text(description, DESCRIPTION_SIZE)
        )

    @property
    def product_count(self) -> int:
        return self.products.count

    @property
    def product_capacity(self) -> int:
        return self.products.capacity

    def is_valid(self) -> bool:
        return not validate_subgroup(self)

    def is_empty(self) -> bool:
        return self.products.is_empty()

    def update_name(self, name: str) -> bool:
        if group_field_errors(name=name):
            return False
        self.name = bounded_text(name, GROUP_NAME_SIZE)
        return True

    def update_description(self, description: Optional[str]) -> bool:
        if group_field_errors(description=description):
            return False
        self.description = bounded_text(description, DESCRIPTION_SIZE)
        return True

    def add_product(self, product: Product) -> bool:
        """Append a product.

        Rejected without mutation if the product is invalid, belongs to
        another subgroup, or its ID is already present here.
        """
        if not product.is_valid():
            logger.warning(f"Invalid product data for subgroup {self.id}")
            return False

        if product.subgroup_id != self.id:
            logger.warning(
                f"Product {product.id} belongs to subgroup {product.subgroup_id}, not {self.id}"
            )
            return False

        if self.products.contains(product.id):
            logger.warning(f"Product ID {product.id} already exists in subgroup {self.id}")
            return False

        return self.products.append(product)

    def remove_product(self, product_id: int) -> bool:
        """Remove a product by ID (swap-and-pop; order is not preserved)."""
        removed = self.products.swap_remove(product_id)
        if removed is None:
            logger.warning(f"Product ID {product_id} not found in subgroup {self.id}")
            return False
        return True

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        return self.products.get(product_id)

    def product_exists(self, product_id: int) -> bool:
        return self.products.contains(product_id)

    def find_products_by_name(self, text: str) -> List[Product]:
        """Products whose name contains ``text``, ignoring case."""
        return [p for p in self.products if contains_ignore_case(p.name, text)]

    def total_value(self) -> float:
        return sum(p.price * p.quantity for p in self.products)

    def total_quantity(self) -> int:
        return sum(p.quantity for p in self.products)

    def release(self) -> int:
        """Drop every product and the backing storage.

        Returns:
            Number of products released
        """
        return len(self.products.clear())


@dataclass(eq=False)
class Category:
    """Top-level group owning an ordered collection of subgroups."""

    id: int
    name: str
    description: str = ''
    subgroups: EntityCollection = field(default_factory=EntityCollection, repr=False)

    @classmethod
    def create(cls, id: int, name: str, description: Optional[str] = '') -> 'Category':
        """Create an empty category.

        Returns:
            The new category, or an invalid sentinel (``id == INVALID_ID``)
        """
        errors = group_field_errors(id=id, name=name, description=description)
        if errors:
            logger.warning(f"Rejected category {id!r}: {errors}")
            return cls(id=INVALID_ID, name='')

        return cls(
            id=id,
            name=bounded_text(name, GROUP_NAME_SIZE),
            description=bounded_text(description, DESCRIPTION_SIZE)
        )

    @property
    def subgroup_count(self) -> int:
        return self.subgroups.count

    @property
    def subgroup_capacity(self) -> int:
        return self.subgroups.capacity

    def is_valid(self) -> bool:
        return not validate_category(self)

    def is_empty(self) -> bool:
        return self.subgroups.is_empty()

    def update_name(self, name: str) -> bool:
        if group_field_errors(name=name):
            return False
        self.name = bounded_text(name, GROUP_NAME_SIZE)
        return True

    def update_description(self, description: Optional[str]) -> bool:
        if group_field_errors(description=description):
            return False
        self.description = bounded_text(description, DESCRIPTION_SIZE)
        return True

    def add_subgroup(self, subgroup: Subgroup) -> bool:
        """Append a subgroup; rejected without mutation when invalid or duplicate."""
        if not subgroup.is_valid():
            logger.warning(f"Invalid subgroup data for category {self.id}")
            return False

        if subgroup.category_id != self.id:
            logger.warning(
                f"Subgroup {subgroup.id} belongs to category {subgroup.category_id}, not {self.id}"
            )
            return False

        if self.subgroups.contains(subgroup.id):
            logger.warning(f"Subgroup ID {subgroup.id} already exists in category {self.id}")
            return False

        return self.subgroups.append(subgroup)

    def remove_subgroup(self, subgroup_id: int) -> bool:
        """Remove a subgroup and every product it owns."""
        removed = self.subgroups.swap_remove(subgroup_id)
        if removed is None:
            logger.warning(f"Subgroup ID {subgroup_id} not found in category {self.id}")
            return False

        released = removed.release()
        logger.debug(f"Removed subgroup {subgroup_id} with {released} products")
        return True

    def find_subgroup_by_id(self, subgroup_id: int) -> Optional[Subgroup]:
        return self.subgroups.get(subgroup_id)

    def find_subgroup_by_name(self, name: str) -> Optional[Subgroup]:
        """First subgroup whose name equals ``name`` ignoring case."""
        wanted = name.strip().casefold()
        for subgroup in self.subgroups:
            if subgroup.name.casefold() == wanted:
                return subgroup
        return None

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        for subgroup in self.subgroups:
            product = subgroup.find_product_by_id(product_id)
            if product is not None:
                return product
        return None

    def total_value(self) -> float:
        return sum(s.total_value() for s in self.subgroups)

    def total_product_count(self) -> int:
        return sum(s.product_count for s in self.subgroups)

    def total_quantity(self) -> int:
        return sum(s.total_quantity() for s in self.subgroups)

    def release(self) -> Tuple[int, int]:
        """Drop every subgroup (and their products).

        Returns:
            Tuple of (subgroups released, products released)
        """
        subgroups = self.subgroups.clear()
        products = sum(s.release() for s in subgroups)
        return len(subgroups), products
