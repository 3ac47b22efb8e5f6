# product_management/services/datastore.py
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
import os

from product_management.config import config
from product_management.core.collection import EntityCollection
from product_management.core.search import (
    iter_tree, search_by_name, search_by_price, search_by_quantity, filter_low_stock
)
from product_management.core.statistics import Statistics, calculate_statistics
from product_management.exceptions import PMSError
from product_management.logging_setup import logger as log_manager, get_logger, log_exception
from product_management.models import Category, Subgroup, Product
from product_management.storage.file_store import save_catalog, load_catalog, default_data_file
from product_management.utils.date_utils import current_timestamp, NEVER
from product_management.utils.validation import (
    product_field_errors, group_field_errors,
    validate_category, validate_subgroup, validate_product
)

logger = get_logger('datastore')

PathLike = Union[str, os.PathLike]


class DataStore:
    """Root aggregate of the catalog: Category -> Subgroup -> Product.

    The store owns every entity. References returned by the ``find_*``
    methods are live and may be mutated in place, but they are only valid
    until the next call that removes that entity or one of its ancestors.
    Mutations made through the store mark it modified; direct mutations of
    a found entity should be followed by ``mark_modified()``.
    """

    def __init__(self):
        """Initialize an empty store."""
        self.categories: EntityCollection = EntityCollection()
        self.next_category_id = 1
        self.next_subgroup_id = 1
        self.next_product_id = 1
        self.is_modified = False
        self.last_saved = NEVER

    def __repr__(self):
        return (
            f"DataStore(categories={self.category_count}, "
            f"modified={self.is_modified}, last_saved={self.last_saved!r})"
        )

    @property
    def category_count(self) -> int:
        return self.categories.count

    @property
    def category_capacity(self) -> int:
        return self.categories.capacity

    def mark_modified(self) -> None:
        self.is_modified = True

    def release(self) -> Tuple[int, int, int]:
        """Free the whole tree and return the store to its initial state.

        Returns:
            Tuple of (categories, subgroups, products) released
        """
        categories = self.categories.clear()
        subgroups = products = 0
        for category in categories:
            released_subgroups, released_products = category.release()
            subgroups += released_subgroups
            products += released_products

        self.categories = EntityCollection()
        self.next_category_id = 1
        self.next_subgroup_id = 1
        self.next_product_id = 1
        self.is_modified = False
        self.last_saved = NEVER

        return len(categories), subgroups, products

    def clear(self) -> None:
        """Remove every entity; same as ``release`` without the counts."""
        self.release()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_category_by_id(self, category_id: int) -> Optional[Category]:
        return self.categories.get(category_id)

    def find_subgroup_by_id(self, subgroup_id: int) -> Optional[Subgroup]:
        for category in self.categories:
            subgroup = category.find_subgroup_by_id(subgroup_id)
            if subgroup is not None:
                return subgroup
        return None

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        for category in self.categories:
            product = category.find_product_by_id(product_id)
            if product is not None:
                return product
        return None

    def find_category_of_subgroup(self, subgroup_id: int) -> Optional[Category]:
        for category in self.categories:
            if category.subgroups.contains(subgroup_id):
                return category
        return None

    def find_subgroup_of_product(self, product_id: int) -> Optional[Subgroup]:
        for subgroup in self.iter_subgroups():
            if subgroup.product_exists(product_id):
                return subgroup
        return None

    def iter_subgroups(self) -> Iterator[Subgroup]:
        for category in self.categories:
            yield from category.subgroups

    def iter_products(self) -> Iterator[Tuple[Category, Subgroup, Product]]:
        return iter_tree(self.categories)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, category: Category) -> bool:
        """Insert a category built by the caller.

        Returns:
            True on success, False if invalid, duplicate, or out of memory
        """
        if not category.is_valid():
            logger.warning(f"Invalid category data: {validate_category(category)}")
            return False

        if self.categories.contains(category.id):
            logger.warning(f"Category ID {category.id} already exists")
            return False

        if not self.categories.append(category):
            return False

        self.next_category_id = max(self.next_category_id, category.id + 1)
        self.mark_modified()
        logger.info(f"Added category {category.id} '{category.name}'")
        return True

    def create_category(self, name: str, description: Optional[str] = '') -> Optional[Category]:
        """Create a category with the next free ID.

        Returns:
            The stored category, or None if it was rejected
        """
        category = Category.create(self.next_category_id, name, description)
        return category if self.add_category(category) else None

    def remove_category(self, category_id: int) -> bool:
        """Remove a category, its subgroups and their products."""
        category = self.categories.swap_remove(category_id)
        if category is None:
            logger.warning(f"Category ID {category_id} not found")
            return False

        subgroups, products = category.release()
        self.mark_modified()
        logger.info(f"Removed category {category_id} ({subgroups} subgroups, {products} products)")
        return True

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> bool:
        """Update category fields; ``None`` keeps the current value.

        Every supplied value is validated before any is applied.
        """
        category = self.find_category_by_id(category_id)
        if category is None:
            logger.warning(f"Category ID {category_id} not found")
            return False

        return self._update_group(category, name, description)

    # ------------------------------------------------------------------
    # Subgroups
    # ------------------------------------------------------------------

    def add_subgroup(self, category_id: int, subgroup: Subgroup) -> bool:
        """Insert a subgroup into an existing category.

        Subgroup IDs are unique across the whole store.
        """
        category = self.find_category_by_id(category_id)
        if category is None:
            logger.warning(f"Category ID {category_id} not found")
            return False

        if not subgroup.is_valid():
            logger.warning(f"Invalid subgroup data: {validate_subgroup(subgroup)}")
            return False

        if self.find_subgroup_by_id(subgroup.id) is not None:
            logger.warning(f"Subgroup ID {subgroup.id} already exists")
            return False

        if not category.add_subgroup(subgroup):
            return False

        self.next_subgroup_id = max(self.next_subgroup_id, subgroup.id + 1)
        self.mark_modified()
        logger.info(f"Added subgroup {subgroup.id} '{subgroup.name}' to category {category_id}")
        return True

    def create_subgroup(
        self,
        category_id: int,
        name: str,
        description: Optional[str] = ''
    ) -> Optional[Subgroup]:
        """Create a subgroup with the next free ID inside a category."""
        subgroup = Subgroup.create(self.next_subgroup_id, category_id, name, description)
        return subgroup if self.add_subgroup(category_id, subgroup) else None

    def remove_subgroup(self, subgroup_id: int) -> bool:
        """Remove a subgroup and its products from whichever category owns it."""
        category = self.find_category_of_subgroup(subgroup_id)
        if category is None:
            logger.warning(f"Subgroup ID {subgroup_id} not found")
            return False

        if not category.remove_subgroup(subgroup_id):
            return False

        self.mark_modified()
        logger.info(f"Removed subgroup {subgroup_id} from category {category.id}")
        return True

    def update_subgroup(
        self,
        subgroup_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> bool:
        """Update subgroup fields; ``None`` keeps the current value."""
        subgroup = self.find_subgroup_by_id(subgroup_id)
        if subgroup is None:
            logger.warning(f"Subgroup ID {subgroup_id} not found")
            return False

        return self._update_group(subgroup, name, description)

    def _update_group(self, group: Union[Category, Subgroup], name, description) -> bool:
        fields = {k: v for k, v in (('name', name), ('description', description)) if v is not None}
        errors = group_field_errors(**fields)
        if errors:
            logger.warning(f"Rejected update of {type(group).__name__} {group.id}: {errors}")
            return False

        if not fields:
            return True

        if name is not None:
            group.update_name(name)
        if description is not None:
            group.update_description(description)

        self.mark_modified()
        return True

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def add_product(self, subgroup_id: int, product: Product) -> bool:
        """Insert a product into an existing subgroup.

        Product IDs are unique across the whole store.
        """
        subgroup = self.find_subgroup_by_id(subgroup_id)
        if subgroup is None:
            logger.warning(f"Subgroup ID {subgroup_id} not found")
            return False

        if not product.is_valid():
            logger.warning(f"Invalid product data: {validate_product(product)}")
            return False

        if self.find_product_by_id(product.id) is not None:
            logger.warning(f"Product ID {product.id} already exists")
            return False

        if not subgroup.add_product(product):
            return False

        self.next_product_id = max(self.next_product_id, product.id + 1)
        self.mark_modified()
        logger.info(f"Added product {product.id} '{product.name}' to subgroup {subgroup_id}")
        return True

    def create_product(
        self,
        subgroup_id: int,
        code: str,
        name: str,
        description: Optional[str] = '',
        price: float = 0.0,
        quantity: int = 0
    ) -> Optional[Product]:
        """Create a product with the next free ID inside a subgroup."""
        product = Product.create(
            self.next_product_id, subgroup_id, code, name, description, price, quantity
        )
        return product if self.add_product(subgroup_id, product) else None

    def remove_product(self, product_id: int) -> bool:
        subgroup = self.find_subgroup_of_product(product_id)
        if subgroup is None:
            logger.warning(f"Product ID {product_id} not found")
            return False

        if not subgroup.remove_product(product_id):
            return False

        self.mark_modified()
        logger.info(f"Removed product {product_id} from subgroup {subgroup.id}")
        return True

    def update_product(
        self,
        product_id: int,
        code: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[float] = None,
        quantity: Optional[int] = None
    ) -> bool:
        """Update product fields; ``None`` keeps the current value.

        All supplied values are validated first, so a rejected update
        changes nothing.
        """
        product = self.find_product_by_id(product_id)
        if product is None:
            logger.warning(f"Product ID {product_id} not found")
            return False

        fields = {
            key: value for key, value in (
                ('code', code), ('name', name), ('description', description),
                ('price', price), ('quantity', quantity)
            ) if value is not None
        }
        errors = product_field_errors(**fields)
        if errors:
            logger.warning(f"Rejected update of product {product_id}: {errors}")
            return False

        if not fields:
            return True

        setters = {
            'code': product.update_code,
            'name': product.update_name,
            'description': product.update_description,
            'price': product.update_price,
            'quantity': product.update_quantity
        }
        for key, value in fields.items():
            setters[key](value)

        self.mark_modified()
        return True

    # ------------------------------------------------------------------
    # Search and statistics
    # ------------------------------------------------------------------

    def search_products_by_name(self, text: str) -> List[Product]:
        """Case-insensitive substring search over product names.

        Returns:
            Snapshot copies of matching products in traversal order
        """
        return search_by_name(self.categories, text)

    def search_products_by_price(self, min_price: float, max_price: float) -> List[Product]:
        return search_by_price(self.categories, min_price, max_price)

    def search_products_by_quantity(self, min_qty: int, max_qty: int) -> List[Product]:
        return search_by_quantity(self.categories, min_qty, max_qty)

    def low_stock_products(self, threshold: Optional[int] = None) -> List[Product]:
        """Products with quantity below the threshold (default from config)."""
        if threshold is None:
            threshold = config.catalog_config['low_stock_threshold']
        return filter_low_stock(self.categories, threshold)

    def statistics(self) -> Statistics:
        return calculate_statistics(self.categories)

    def check_integrity(self) -> List[str]:
        """Verify structural and referential invariants of the tree.

        Returns:
            List of problems; empty when the store is consistent
        """
        problems = []
        seen = {'category': set(), 'subgroup': set(), 'product': set()}

        def note_id(kind, entity_id):
            if entity_id in seen[kind]:
                problems.append(f"Duplicate {kind} ID {entity_id}")
            seen[kind].add(entity_id)

        if self.categories.count > self.categories.capacity:
            problems.append("Category count exceeds capacity")

        for category in self.categories:
            note_id('category', category.id)
            for message in validate_category(category).values():
                problems.append(f"Category {category.id}: {message}")

            for subgroup in category.subgroups:
                note_id('subgroup', subgroup.id)
                if subgroup.category_id != category.id:
                    problems.append(
                        f"Subgroup {subgroup.id} points to category {subgroup.category_id} "
                        f"but is stored in category {category.id}"
                    )
                for message in validate_subgroup(subgroup).values():
                    problems.append(f"Subgroup {subgroup.id}: {message}")

                for product in subgroup.products:
                    note_id('product', product.id)
                    if product.subgroup_id != subgroup.id:
                        problems.append(
                            f"Product {product.id} points to subgroup {product.subgroup_id} "
                            f"but is stored in subgroup {subgroup.id}"
                        )
                    for message in validate_product(product).values():
                        problems.append(f"Product {product.id}: {message}")

        for kind, counter in (
            ('category', self.next_category_id),
            ('subgroup', self.next_subgroup_id),
            ('product', self.next_product_id)
        ):
            if seen[kind] and counter <= max(seen[kind]):
                problems.append(f"Next {kind} ID {counter} would reuse an existing ID")

        return problems

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Optional[PathLike] = None) -> bool:
        """Save the whole store atomically.

        The modified flag and ``last_saved`` only change after the new file
        is in place.

        Args:
            path: Data file path (defaults to configuration)

        Returns:
            True on success, False if the save was aborted
        """
        target = Path(path) if path is not None else default_data_file()
        log_info = log_manager.operation_start_log('save', {'path': str(target)})

        try:
            size = save_catalog(
                target, self.categories,
                self.next_category_id, self.next_subgroup_id, self.next_product_id
            )
        except (PMSError, OSError) as e:
            log_exception('storage', e, f"Failed to save {target}")
            log_manager.operation_end_log(log_info, success=False)
            return False

        self.last_saved = current_timestamp()
        self.is_modified = False
        log_manager.operation_end_log(log_info, result_info={'bytes': size})
        return True

    def load(self, path: Optional[PathLike] = None) -> bool:
        """Replace the store contents with the data file.

        A missing file yields an empty store and counts as success. On any
        read or validation failure the store is left empty and the call
        returns False.

        Args:
            path: Data file path (defaults to configuration)

        Returns:
            True on success, False on failure
        """
        target = Path(path) if path is not None else default_data_file()
        log_info = log_manager.operation_start_log('load', {'path': str(target)})

        try:
            snapshot = load_catalog(target)
        except (PMSError, OSError) as e:
            log_exception('storage', e, f"Failed to load {target}")
            self.release()
            log_manager.operation_end_log(log_info, success=False)
            return False

        self.release()
        if snapshot is None:
            logger.info("No existing data file found. Starting with an empty store.")
            log_manager.operation_end_log(log_info, result_info={'categories': 0})
            return True

        self.categories = snapshot.categories
        self.next_category_id = snapshot.next_category_id
        self.next_subgroup_id = snapshot.next_subgroup_id
        self.next_product_id = snapshot.next_product_id
        self.last_saved = current_timestamp()
        self.is_modified = False

        log_manager.operation_end_log(log_info, result_info={
            'categories': self.category_count,
            'next_ids': (self.next_category_id, self.next_subgroup_id, self.next_product_id)
        })
        return True
