"""Query-string paging and ordering parameters.

Paging parameters arrive as raw strings and are normalized, never rejected:
- page_no is 1-based; missing, unparsable, zero or negative -> first page
- on_page missing, unparsable, zero or negative -> the default page size

order_by is an enum and IS rejected when unknown.
"""

from audioshare.errors import ApiErrorCode, InvalidRequestError
from audioshare.stores.visibility import ListOrder

DEFAULT_ORDER = ListOrder.OWNER

# Larger values count as unparsable; keeps OFFSET within a 64-bit integer.
MAX_PAGE_VALUE = 2**31 - 1


def _parse_positive(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if 0 < parsed <= MAX_PAGE_VALUE else None


def normalize_page(
    page_no: str | None, on_page: str | None, default_size: int
) -> tuple[int, int]:
    """Convert raw page_no/on_page values into an (offset, limit) window."""
    page = _parse_positive(page_no) or 1
    limit = _parse_positive(on_page) or default_size
    return (page - 1) * limit, limit


def parse_order(order_by: str | None) -> ListOrder:
    """Resolve the order_by parameter.

    Raises:
        InvalidRequestError: E_INVALID_ORDER_BY for values other than
            "user" and "track".
    """
    if order_by is None:
        return DEFAULT_ORDER
    try:
        return ListOrder(order_by)
    except ValueError:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_ORDER_BY, "bad parameter order_by"
        ) from None
