from .date_utils import current_timestamp, parse_timestamp, is_valid_timestamp
from .text_utils import clean_text, bounded_text, contains_ignore_case
from .validation import validate_product, validate_subgroup, validate_category

__all__ = [
    'current_timestamp',
    'parse_timestamp',
    'is_valid_timestamp',
    'clean_text',
    'bounded_text',
    'contains_ignore_case',
    'validate_product',
    'validate_subgroup',
    'validate_category'
]
