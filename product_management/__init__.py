from .config import config
from .logging_setup import logger, get_logger
from .exceptions import PMSError, StorageError, CorruptDataError, CapacityError, ReportingError
from .models import Category, Subgroup, Product
from .services import DataStore, ReportingService

__all__ = [
    'config',
    'logger',
    'get_logger',
    'PMSError',
    'StorageError',
    'CorruptDataError',
    'CapacityError',
    'ReportingError',
    'Category',
    'Subgroup',
    'Product',
    'DataStore',
    'ReportingService'
]
