# product_management/storage/codec.py
"""Fixed-layout binary format of the catalog file.

Little-endian throughout, no padding between fields::

    header    magic[4] version:u16 reserved:u16
              category_count:i32 next_category_id:i32
              next_subgroup_id:i32 next_product_id:i32
    category  id:i32 name[50] description[200] subgroup_count:i32
    subgroup  id:i32 category_id:i32 name[50] description[200] product_count:i32
    product   id:i32 subgroup_id:i32 code[20] name[100] description[200]
              price:f64 quantity:i32 created_at[20] updated_at[20]

Strings are UTF-8 and NUL padded. Each category record is followed by its
subgroups, each subgroup record by its products. Changing any field size
requires a new format version.
"""
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Set

from product_management.core.collection import EntityCollection
from product_management.exceptions import CorruptDataError, StorageError
from product_management.logging_setup import get_logger
from product_management.models import (
    Category, Subgroup, Product,
    CODE_SIZE, PRODUCT_NAME_SIZE, GROUP_NAME_SIZE, DESCRIPTION_SIZE, TIMESTAMP_SIZE
)
from product_management.utils.text_utils import ENCODING

logger = get_logger('storage')

MAGIC = b'PMSD'
FORMAT_VERSION = 1
DEFAULT_MAX_ENTRIES = 100000

HEADER = struct.Struct('<4sHHiiii')
CATEGORY_RECORD = struct.Struct(f'<i{GROUP_NAME_SIZE}s{DESCRIPTION_SIZE}si')
SUBGROUP_RECORD = struct.Struct(f'<ii{GROUP_NAME_SIZE}s{DESCRIPTION_SIZE}si')
PRODUCT_RECORD = struct.Struct(
    f'<ii{CODE_SIZE}s{PRODUCT_NAME_SIZE}s{DESCRIPTION_SIZE}sdi{TIMESTAMP_SIZE}s{TIMESTAMP_SIZE}s'
)


@dataclass
class CatalogSnapshot:
    """Everything a catalog file holds."""

    categories: EntityCollection
    next_category_id: int = 1
    next_subgroup_id: int = 1
    next_product_id: int = 1


def pack_text(value: str, size: int) -> bytes:
    """Encode text into a NUL padded buffer, keeping room for the terminator."""
    return (value or '').encode(ENCODING)[:size - 1].ljust(size, b'\x00')

def unpack_text(raw: bytes, field_name: str) -> str:
    """Decode a NUL padded buffer."""
    try:
        return raw.split(b'\x00', 1)[0].decode(ENCODING)
    except UnicodeDecodeError as e:
        raise CorruptDataError(f"Undecodable text in field '{field_name}'") from e


# ----------------------------------------------------------------------------
# Writing
# ----------------------------------------------------------------------------

def write_catalog(
    fh: BinaryIO,
    categories: Iterable[Category],
    next_category_id: int,
    next_subgroup_id: int,
    next_product_id: int
) -> int:
    """Write the whole tree to a binary stream.

    Args:
        fh: Writable binary stream
        categories: Categories in store order
        next_category_id: Category ID counter
        next_subgroup_id: Subgroup ID counter
        next_product_id: Product ID counter

    Returns:
        Number of bytes written

    Raises:
        StorageError: If a value does not fit the fixed layout
    """
    categories = list(categories)
    try:
        written = fh.write(HEADER.pack(
            MAGIC, FORMAT_VERSION, 0, len(categories),
            next_category_id, next_subgroup_id, next_product_id
        ))

        for category in categories:
            written += fh.write(CATEGORY_RECORD.pack(
                category.id,
                pack_text(category.name, GROUP_NAME_SIZE),
                pack_text(category.description, DESCRIPTION_SIZE),
                category.subgroup_count
            ))

            for subgroup in category.subgroups:
                written += fh.write(SUBGROUP_RECORD.pack(
                    subgroup.id,
                    subgroup.category_id,
                    pack_text(subgroup.name, GROUP_NAME_SIZE),
                    pack_text(subgroup.description, DESCRIPTION_SIZE),
                    subgroup.product_count
                ))

                for product in subgroup.products:
                    written += fh.write(pack_product(product))
    except struct.error as e:
        raise StorageError(f"Value does not fit the file layout: {str(e)}") from e

    return written

def pack_product(product: Product) -> bytes:
    """Pack one product into its fixed-size record."""
    return PRODUCT_RECORD.pack(
        product.id,
        product.subgroup_id,
        pack_text(product.code, CODE_SIZE),
        pack_text(product.name, PRODUCT_NAME_SIZE),
        pack_text(product.description, DESCRIPTION_SIZE),
        product.price,
        product.quantity,
        pack_text(product.created_at, TIMESTAMP_SIZE),
        pack_text(product.updated_at, TIMESTAMP_SIZE)
    )


# ----------------------------------------------------------------------------
# Reading
# ----------------------------------------------------------------------------

def _read_record(fh: BinaryIO, record: struct.Struct, what: str) -> tuple:
    data = fh.read(record.size)
    if len(data) != record.size:
        raise CorruptDataError(
            f"Unexpected end of file while reading {what}",
            details={'expected': record.size, 'received': len(data)}
        )
    return record.unpack(data)

def _check_count(count: int, what: str, max_entries: int) -> None:
    if count < 0 or count > max_entries:
        raise CorruptDataError(
            f"Invalid {what} count {count}",
            details={'max_entries': max_entries}
        )

def _check_new_id(entity_id: int, seen: Set[int], what: str) -> None:
    if entity_id in seen:
        raise CorruptDataError(f"Duplicate {what} ID {entity_id}")
    seen.add(entity_id)

def _reserve(collection: EntityCollection, count: int, what: str) -> None:
    if not collection.reserve(count):
        raise StorageError(f"Could not allocate room for {count} {what}")

def unpack_product(data: tuple) -> Product:
    """Build a product from an unpacked product record."""
    (product_id, subgroup_id, code, name, description,
     price, quantity, created_at, updated_at) = data
    return Product(
        id=product_id,
        subgroup_id=subgroup_id,
        code=unpack_text(code, 'code'),
        name=unpack_text(name, 'name'),
        description=unpack_text(description, 'description'),
        price=price,
        quantity=quantity,
        created_at=unpack_text(created_at, 'created_at'),
        updated_at=unpack_text(updated_at, 'updated_at')
    )

def read_catalog(fh: BinaryIO, max_entries: int = DEFAULT_MAX_ENTRIES) -> CatalogSnapshot:
    """Read and validate a whole catalog from a binary stream.

    Every level is validated before it is attached: counts must lie in
    ``[0, max_entries]``, every entity must be valid, child parent IDs must
    match their container, and IDs must be unique store-wide. Nothing is
    returned unless the complete file parses.

    Args:
        fh: Readable binary stream positioned at the start of the file
        max_entries: Sanity ceiling for every count field

    Returns:
        CatalogSnapshot with the decoded tree and ID counters

    Raises:
        CorruptDataError: If the stream does not hold a valid catalog
        StorageError: If memory for a level cannot be reserved
    """
    (magic, version, _reserved, category_count,
     next_category_id, next_subgroup_id, next_product_id) = _read_record(fh, HEADER, 'header')

    if magic != MAGIC:
        raise CorruptDataError("Not a product catalog file", details={'magic': magic})

    if version != FORMAT_VERSION:
        raise CorruptDataError(f"Unsupported format version {version}")

    _check_count(category_count, 'category', max_entries)
    for counter in (next_category_id, next_subgroup_id, next_product_id):
        if counter < 1:
            raise CorruptDataError(f"Invalid ID counter {counter} in header")

    categories = EntityCollection(capacity=0)
    _reserve(categories, category_count, 'categories')

    category_ids: Set[int] = set()
    subgroup_ids: Set[int] = set()
    product_ids: Set[int] = set()

    for _ in range(category_count):
        category_id, name, description, subgroup_count = _read_record(fh, CATEGORY_RECORD, 'category')
        _check_count(subgroup_count, 'subgroup', max_entries)
        _check_new_id(category_id, category_ids, 'category')

        category = Category(
            id=category_id,
            name=unpack_text(name, 'name'),
            description=unpack_text(description, 'description')
        )
        if not category.is_valid():
            raise CorruptDataError(f"Invalid category record {category_id}")
        _reserve(category.subgroups, subgroup_count, 'subgroups')

        for _ in range(subgroup_count):
            (subgroup_id, parent_id, sub_name, sub_description,
             product_count) = _read_record(fh, SUBGROUP_RECORD, 'subgroup')
            _check_count(product_count, 'product', max_entries)
            _check_new_id(subgroup_id, subgroup_ids, 'subgroup')

            subgroup = Subgroup(
                id=subgroup_id,
                category_id=parent_id,
                name=unpack_text(sub_name, 'name'),
                description=unpack_text(sub_description, 'description')
            )
            _reserve(subgroup.products, product_count, 'products')

            for _ in range(product_count):
                product = unpack_product(_read_record(fh, PRODUCT_RECORD, 'product'))
                _check_new_id(product.id, product_ids, 'product')
                if not subgroup.add_product(product):
                    raise CorruptDataError(
                        f"Invalid product record {product.id} in subgroup {subgroup_id}"
                    )

            if not category.add_subgroup(subgroup):
                raise CorruptDataError(
                    f"Invalid subgroup record {subgroup_id} in category {category_id}"
                )

        if not categories.append(category):
            raise StorageError(f"Could not attach category {category_id}")

    if fh.read(1):
        raise CorruptDataError("Trailing data after the last record")

    snapshot = CatalogSnapshot(
        categories=categories,
        next_category_id=next_category_id,
        next_subgroup_id=next_subgroup_id,
        next_product_id=next_product_id
    )
    _advance_counters(snapshot, category_ids, subgroup_ids, product_ids)
    return snapshot

def _advance_counters(
    snapshot: CatalogSnapshot,
    category_ids: Set[int],
    subgroup_ids: Set[int],
    product_ids: Set[int]
) -> None:
    """Move ID counters past the highest stored ID so IDs are never reused."""
    for attr, ids in (
        ('next_category_id', category_ids),
        ('next_subgroup_id', subgroup_ids),
        ('next_product_id', product_ids)
    ):
        if ids and getattr(snapshot, attr) <= max(ids):
            logger.warning(f"{attr} {getattr(snapshot, attr)} is behind stored IDs, advancing to {max(ids) + 1}")
            setattr(snapshot, attr, max(ids) + 1)
