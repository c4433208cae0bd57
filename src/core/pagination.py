"""
Core pagination utilities for list endpoints.
"""
from typing import TypeVar, Generic, List, Optional, Sequence, Any
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Query as SQLAlchemyQuery
import math

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class PageResponse(BaseModel, Generic[T]):
    """
    Paginated response model.

    Attributes:
        items: List of items for the current page
        total: Total number of items
        page: Current page number
        limit: Number of items per page
        pages: Total number of pages
        has_next: Whether there is a next page
        has_prev: Whether there is a previous page
    """
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


def paginate(
    query: SQLAlchemyQuery,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    search_fields: Sequence[Any] = (),
    order_by: Sequence[Any] = (),
    schema_class=None,
) -> PageResponse:
    """
    Paginate a SQLAlchemy query with optional free-text search and ordering.

    Args:
        query: Query already carrying its scope filters and loader options
        page: Page number (1-indexed, clamped to >= 1)
        limit: Items per page (clamped to 1..100)
        search: Text matched case-insensitively against any of search_fields
        search_fields: Column attributes to search
        order_by: Order-by clauses applied before slicing
        schema_class: Optional Pydantic model to convert items to

    Returns:
        PageResponse: Paginated response
    """
    page = max(1, int(page))
    limit = max(1, min(MAX_PAGE_SIZE, int(limit)))

    if search and search_fields:
        # Search text is matched literally
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(or_(*[field.ilike(pattern, escape="\\") for field in search_fields]))

    total = query.count()
    if order_by:
        query = query.order_by(*order_by)
    items = query.offset((page - 1) * limit).limit(limit).all()

    # Convert to Pydantic models if schema_class is provided
    if schema_class:
        items = [schema_class.model_validate(item) for item in items]

    pages = math.ceil(total / limit) if total > 0 else 0

    return PageResponse(
        items=items,
        total=total,
        page=page,
        limit=limit,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1
    )
