"""
Page slicing over an ordered SQLAlchemy ``Select``.

Usage:
    page = PagedList(select(Product).order_by(Product.product_id), 2, 25)
    return jsonify(page.to_dict(products_schema))
"""

from __future__ import annotations

import math
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from sqlalchemy import func, select
from sqlalchemy.sql import Select

from adventureworks.extensions import db

T = TypeVar("T")


def clamp_page(
    number: Optional[int],
    size: Optional[int],
    *,
    default_size: int = 10,
    max_size: int = 100,
) -> Tuple[int, int]:
    """
    Normalise a requested page position.

    ``None`` falls back to page 1 / ``default_size``. Numbers below 1 are
    raised to 1 and sizes are bounded to ``[1, max_size]``.
    """

    page_number = 1 if number is None else max(1, number)
    page_size = default_size if size is None else size
    page_size = max(1, min(page_size, max_size))
    return page_number, page_size


class PagedList(Generic[T]):
    """One page of an ordered query together with its position in the full set."""

    def __init__(self, query: Select, page_number: int, page_size: int, *, session=None) -> None:
        if page_number < 1:
            raise ValueError("page_number must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        session = session or db.session
        self.page_number = page_number
        self.page_size = page_size
        self.total_count: int = session.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        ).scalar_one()
        offset = (page_number - 1) * page_size
        self.items: List[T] = list(session.execute(query.offset(offset).limit(page_size)).scalars())

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def to_dict(self, schema=None) -> Dict[str, Any]:
        """Page envelope; ``schema`` (a ``many=True`` schema) serialises the items."""

        items = schema.dump(self.items) if schema is not None else self.items
        return {
            "items": items,
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_previous_page": self.has_previous_page,
            "has_next_page": self.has_next_page,
        }
