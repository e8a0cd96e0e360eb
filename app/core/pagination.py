"""Validated paging and sorting parameters shared by the list endpoints.

Sort fields are checked against a per-endpoint allow-list so request input
never reaches ``ORDER BY`` unchecked. Invalid values fall back to the
endpoint defaults instead of failing the request.
"""

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200

T = TypeVar("T")
U = TypeVar("U")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: str | None) -> "SortDirection | None":
        if raw is None or not raw.strip():
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class SortOrder:
    field: str
    direction: SortDirection


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int
    size: int
    orders: tuple[SortOrder, ...]

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(slots=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    def map(self, mapper: Callable[[T], U]) -> "Page[U]":
        return Page(
            items=[mapper(item) for item in self.items],
            total=self.total,
            page=self.page,
            size=self.size,
        )


class PaginationHelper:
    def __init__(
        self,
        allowed_sort_fields: Iterable[str],
        default_sort_field: str,
        default_direction: SortDirection,
    ) -> None:
        self.allowed_sort_fields = frozenset(allowed_sort_fields)
        if default_sort_field not in self.allowed_sort_fields:
            raise ValueError(
                f"Default sort field '{default_sort_field}' is not an allowed sort field"
            )
        self.default_sort_field = default_sort_field
        self.default_direction = default_direction

    def create_page_request(
        self,
        page: int | None = None,
        size: int | None = None,
        sort: Sequence[str] | None = None,
        order_by: str | None = None,
        direction: str | None = None,
    ) -> PageRequest:
        page_number = page if page is not None and page >= 0 else 0
        page_size = size if size is not None and size > 0 else DEFAULT_PAGE_SIZE
        page_size = min(page_size, MAX_PAGE_SIZE)
        return PageRequest(
            page=page_number,
            size=page_size,
            orders=self._create_orders(sort, order_by, direction),
        )

    def _create_orders(
        self,
        sort: Sequence[str] | None,
        order_by: str | None,
        direction: str | None,
    ) -> tuple[SortOrder, ...]:
        if sort:
            return tuple(self._parse_sort_spec(spec) for spec in sort)

        if order_by is not None and order_by.strip():
            return (
                SortOrder(
                    field=self._validate_field(order_by),
                    direction=self._validate_direction(direction),
                ),
            )

        return (SortOrder(field=self.default_sort_field, direction=self.default_direction),)

    def _parse_sort_spec(self, spec: str) -> SortOrder:
        field_name, _, raw_direction = spec.partition(",")
        return SortOrder(
            field=self._validate_field(field_name),
            direction=self._validate_direction(raw_direction or None),
        )

    def _validate_field(self, field_name: str | None) -> str:
        if field_name is None or not field_name.strip():
            return self.default_sort_field

        cleaned = field_name.strip()
        if cleaned not in self.allowed_sort_fields:
            logger.warning(
                "invalid_sort_field",
                requested=cleaned,
                default=self.default_sort_field,
            )
            return self.default_sort_field
        return cleaned

    def _validate_direction(self, raw: str | None) -> SortDirection:
        parsed = SortDirection.parse(raw)
        if parsed is None:
            if raw is not None and raw.strip():
                logger.warning(
                    "invalid_sort_direction",
                    requested=raw,
                    default=self.default_direction.value,
                )
            return self.default_direction
        return parsed
