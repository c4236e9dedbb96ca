from typing import Any, Dict, List, Tuple
import math

from sqlalchemy.orm import Query

DEFAULT_SORT = ("created_at", "DESC")

ALLOWED_ORDER = {
    "asc": "ASC",
    "ASC": "ASC",
    "desc": "DESC",
    "DESC": "DESC",
}


def resolve_sort(sort_by: str, order: str, allowed_columns) -> Tuple[str, str]:
    """
    Validate a caller supplied sort column and direction against an allow-list.
    Unknown values fall back to created_at DESC instead of raising.
    """
    column, direction = DEFAULT_SORT
    if sort_by in allowed_columns:
        column = sort_by
    if order in ALLOWED_ORDER:
        direction = ALLOWED_ORDER[order]
    return column, direction


def apply_sort(query: Query, model, sort_by: str, order: str, allowed_columns) -> Query:
    column, direction = resolve_sort(sort_by, order, allowed_columns)
    attr = getattr(model, column)
    return query.order_by(attr.asc() if direction == "ASC" else attr.desc())


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def paginate(query: Query, page: int, page_size: int) -> Tuple[List[Any], int]:
    """Count the filtered query, then fetch one 1-based page of it."""
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total


def page_response(data: List[Any], total: int, page: int, page_size: int) -> Dict[str, Any]:
    return {
        "data": data,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages(total, page_size),
    }
