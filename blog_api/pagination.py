from typing import Optional, Tuple
from .errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_MAX_ID = 2 ** 32 - 1
_MAX_PAGE = 2 ** 31 - 1


def _to_int(raw) -> Optional[int]:
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    # out of int32 range counts as unparsable
    if abs(value) > _MAX_PAGE:
        return None
    return value


def normalize(
    raw_page,
    raw_page_size,
    default_page: int = DEFAULT_PAGE,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Tuple[int, int]:
    """Turn raw page/pageSize query values into a usable (page, page_size).

    Anything unparsable or out of range falls back to the defaults.
    """
    page = _to_int(raw_page)
    page_size = _to_int(raw_page_size)

    if page is None or page < 1:
        page = default_page
    if page_size is None or page_size < 1 or page_size > max_page_size:
        page_size = default_page_size
    return page, page_size


def total_pages(total: int, page_size: int) -> int:
    pages = total // page_size
    if total % page_size > 0:
        pages += 1
    return pages


def offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def parse_id(raw: str, message: str) -> int:
    if raw is None or not (raw.isascii() and raw.isdigit()):
        raise ValidationError(message)
    value = int(raw)
    if value > _MAX_ID:
        raise ValidationError(message)
    return value
