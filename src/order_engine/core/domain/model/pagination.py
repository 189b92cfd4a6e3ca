from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @staticmethod
    def normalize(
        page: int | None, limit: int | None, default_limit: int, max_limit: int
    ) -> "PageRequest":
        """Out-of-range values fall back to page 1 / the default page size."""
        if page is None or page <= 0:
            page = 1
        if limit is None or limit <= 0 or limit > max_limit:
            limit = default_limit
        return PageRequest(page=page, limit=limit)


@dataclass(frozen=True)
class PageMeta:
    total: int
    per_page: int
    current_page: int
    next: int | None = None
    prev: int | None = None

    @staticmethod
    def build(total: int, request: PageRequest) -> "PageMeta":
        has_next = request.page * request.limit < total
        return PageMeta(
            total=total,
            per_page=request.limit,
            current_page=request.page,
            next=request.page + 1 if has_next else None,
            prev=request.page - 1 if request.page > 1 else None,
        )
