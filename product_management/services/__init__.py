from .datastore import DataStore
from .reporting_service import ReportingService

__all__ = [
    'DataStore',
    'ReportingService'
]
