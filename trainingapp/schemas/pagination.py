"""Shared pagination schema for page-based list endpoints."""

import math

from pydantic import BaseModel


class PageInfo(BaseModel):
    """Page cursor info returned alongside list items."""

    current_page: int
    total_pages: int
    total: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PageInfo":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
