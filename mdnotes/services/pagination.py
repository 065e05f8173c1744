"""Page/limit/order normalization shared by every listing.

File listing, search, trash listing and group listing all go through
``normalize_page_params`` and ``paginate`` so clamping rules and the
pagination envelope are identical everywhere.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Query

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 20
DEFAULT_ORDER_BY = "created_at"
ORDER_DIRECTIONS = ("asc", "desc")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class PageParams:
    """Normalized pagination request. Always valid once constructed."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    order_by: str = DEFAULT_ORDER_BY
    order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


@dataclass
class Page:
    """One page of results plus its pagination metadata."""
    data: List[Any]
    pagination: PaginationMeta


def _to_int(value: Any) -> Optional[int]:
    """Integer prefix of *value* (``"10abc"`` -> 10, ``"2.5"`` -> 2); ``None`` when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_page_params(
    page: Any = None,
    limit: Any = None,
    order_by: Any = None,
    order: Any = None,
    allowed_order_by: Iterable[str] = (DEFAULT_ORDER_BY,),
    default_order_by: str = DEFAULT_ORDER_BY,
) -> PageParams:
    """Clamp arbitrary user input into a valid ``PageParams``.

    - page: integer >= 1; missing, non-numeric, zero or negative becomes 1.
    - limit: missing, non-numeric or zero becomes 10; negative becomes 1;
      anything above 20 is capped at 20.
    - order: ``asc`` or ``desc`` (case-insensitive); anything else is ``desc``.
    - order_by: must be one of *allowed_order_by*, else *default_order_by*.
    """
    parsed_page = _to_int(page)
    if not parsed_page or parsed_page < 1:
        parsed_page = DEFAULT_PAGE

    parsed_limit = _to_int(limit)
    if not parsed_limit:
        parsed_limit = DEFAULT_LIMIT
    parsed_limit = min(MAX_LIMIT, max(1, parsed_limit))

    direction = str(order).strip().lower() if order is not None else ""
    if direction not in ORDER_DIRECTIONS:
        direction = "desc"

    column = str(order_by).strip() if order_by is not None else ""
    if column not in set(allowed_order_by):
        column = default_order_by

    return PageParams(page=parsed_page, limit=parsed_limit, order_by=column, order=direction)


def build_pagination_meta(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def paginate(query: Query, params: PageParams, order_clause=None) -> Page:
    """Run *query* for one page.

    Ordering comes from *order_clause* when given, otherwise from
    ``params.order_by`` / ``params.order`` resolved against the query's
    primary entity.
    """
    total = query.order_by(None).count()

    if order_clause is None:
        entity = query.column_descriptions[0]["entity"]
        column = getattr(entity, params.order_by)
        order_clause = column.asc() if params.order == "asc" else column.desc()

    items = (
        query.order_by(order_clause)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return Page(data=items, pagination=build_pagination_meta(total, params.page, params.limit))
