from .codec import CatalogSnapshot, read_catalog, write_catalog, MAGIC, FORMAT_VERSION
from .file_store import save_catalog, load_catalog, companion_paths, default_data_file

__all__ = [
    'CatalogSnapshot',
    'read_catalog',
    'write_catalog',
    'MAGIC',
    'FORMAT_VERSION',
    'save_catalog',
    'load_catalog',
    'companion_paths',
    'default_data_file'
]
