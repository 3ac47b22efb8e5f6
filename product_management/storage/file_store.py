# product_management/storage/file_store.py
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from product_management.config import config
from product_management.exceptions import ConfigError, StorageError
from product_management.logging_setup import get_logger
from product_management.models import Category
from product_management.storage.codec import CatalogSnapshot, read_catalog, write_catalog

logger = get_logger('storage')

PathLike = Union[str, os.PathLike]

def default_data_file() -> Path:
    """Data file path from configuration."""
    return Path(config.storage_config['data_file'])

def max_entries() -> int:
    """Sanity ceiling applied to every count read from disk."""
    value = config.storage_config['max_entries']
    if value is None or value <= 0:
        raise ConfigError(f"STORAGE.max_entries must be a positive integer, got {value!r}")
    return value

def companion_paths(path: PathLike) -> Tuple[Path, Path, Path]:
    """Resolve the target, temporary and backup paths of a data file.

    The suffixes are appended to the full file name, so companions never
    coincide with the target whatever its own suffix is:
    ``data/products.dat`` -> (``data/products.dat``,
    ``data/products.dat.tmp``, ``data/products.dat.bak``).

    Raises:
        ConfigError: If the temporary and backup suffixes are unusable
    """
    settings = config.storage_config
    temp_suffix = settings['temp_suffix']
    backup_suffix = settings['backup_suffix']
    if not temp_suffix or not backup_suffix or temp_suffix == backup_suffix:
        raise ConfigError(
            "STORAGE.temp_suffix and STORAGE.backup_suffix must be distinct and non-empty",
            details={'temp_suffix': temp_suffix, 'backup_suffix': backup_suffix}
        )

    target = Path(path)
    temp = target.with_name(target.name + temp_suffix)
    backup = target.with_name(target.name + backup_suffix)
    return target, temp, backup

def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {str(e)}")

def save_catalog(
    path: PathLike,
    categories: Iterable[Category],
    next_category_id: int,
    next_subgroup_id: int,
    next_product_id: int
) -> int:
    """Save the catalog atomically.

    The tree is written to a temporary file and synced. The current file,
    if any, is then copied to the backup path and the temporary file is
    renamed over it. On any failure the temporary file is removed and the
    existing data file is left untouched.

    Args:
        path: Data file path
        categories: Categories in store order
        next_category_id: Category ID counter
        next_subgroup_id: Subgroup ID counter
        next_product_id: Product ID counter

    Returns:
        Size of the written file in bytes

    Raises:
        StorageError: If any step fails
        ConfigError: If the companion suffixes are unusable
    """
    target, temp, backup = companion_paths(path)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)

        with open(temp, 'wb') as fh:
            size = write_catalog(fh, categories, next_category_id, next_subgroup_id, next_product_id)
            fh.flush()
            os.fsync(fh.fileno())

        if target.exists():
            shutil.copy2(target, backup)
            logger.debug(f"Backed up {target} to {backup}")

        os.replace(temp, target)
    except (OSError, StorageError) as e:
        _discard(temp)
        if isinstance(e, StorageError):
            raise
        raise StorageError(f"Cannot write {target}: {str(e)}", details={'path': str(target)}) from e

    logger.info(f"Saved {size} bytes to {target}")
    return size

def load_catalog(path: PathLike, entry_limit: Optional[int] = None) -> Optional[CatalogSnapshot]:
    """Load and validate a catalog file.

    Args:
        path: Data file path
        entry_limit: Sanity ceiling for counts (defaults to configuration)

    Returns:
        CatalogSnapshot, or None if the file does not exist

    Raises:
        CorruptDataError: If the file does not parse or fails validation
        StorageError: If the file cannot be read
    """
    target = Path(path)
    limit = entry_limit if entry_limit is not None else max_entries()

    try:
        with open(target, 'rb') as fh:
            return read_catalog(fh, limit)
    except FileNotFoundError:
        logger.info(f"No data file at {target}")
        return None
    except OSError as e:
        raise StorageError(f"Cannot read {target}: {str(e)}", details={'path': str(target)}) from e
