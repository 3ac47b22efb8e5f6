# product_management/utils/text_utils.py
from typing import Optional

ENCODING = 'utf-8'

def clean_text(value: Optional[str]) -> str:
    """Trim surrounding whitespace; ``None`` becomes an empty string."""
    if value is None:
        return ''
    return str(value).strip()

def truncate_to_bytes(value: str, size: int) -> str:
    """Truncate text so its UTF-8 form fits a fixed buffer of ``size`` bytes.

    One byte of the buffer is reserved for the terminating NUL of the
    fixed-width file layout, so at most ``size - 1`` bytes are kept. A
    multi-byte character is never split.

    Args:
        value: Text to truncate
        size: Buffer size in bytes

    Returns:
        Possibly shortened text
    """
    limit = max(size - 1, 0)
    encoded = value.encode(ENCODING)
    if len(encoded) <= limit:
        return value
    return encoded[:limit].decode(ENCODING, 'ignore')

def bounded_text(value: Optional[str], size: int) -> str:
    """Trim, truncate silently to the buffer size, then trim the tail again."""
    return truncate_to_bytes(clean_text(value), size).rstrip()

def contains_ignore_case(haystack: str, needle: str) -> bool:
    """Case-insensitive substring test. An empty needle matches everything."""
    return needle.casefold() in haystack.casefold()
