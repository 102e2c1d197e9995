"""Split report rows across pages of fixed row capacity.

The first page usually holds a document header block, and the last page must
leave room for totals or signatures, so the three page kinds get separate
capacities. Every page is padded with filler rows so printed tables keep a
constant height.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaginationConfig:
    first_page_size: int
    regular_page_size: int
    last_page_reserve_rows: int = 0

    def __post_init__(self):
        if self.first_page_size <= 0 or self.regular_page_size <= 0:
            raise ValueError("Page sizes must be positive")
        if self.last_page_reserve_rows < 0:
            raise ValueError("last_page_reserve_rows cannot be negative")
        if self.last_page_reserve_rows >= min(self.first_page_size, self.regular_page_size):
            raise ValueError("last_page_reserve_rows must be smaller than every page size")

    @property
    def single_page_capacity(self) -> int:
        return self.first_page_size - self.last_page_reserve_rows

    @property
    def last_page_capacity(self) -> int:
        return self.regular_page_size - self.last_page_reserve_rows


@dataclass
class NumberedItem:
    line_number: int  # 1-based across all pages
    item: Any


@dataclass
class PageData:
    index: int
    items: list[NumberedItem] = field(default_factory=list)
    filler_rows: int = 0
    is_first: bool = False
    is_last: bool = False
    offset: int = 0
    capacity: int = 0


@dataclass
class PaginationResult:
    pages: list[PageData]
    total_items: int

    @property
    def total_pages(self) -> int:
        return len(self.pages)


def _make_page(items: Sequence, index: int, offset: int, capacity: int, is_first: bool, is_last: bool) -> PageData:
    return PageData(
        index=index,
        items=[NumberedItem(line_number=offset + i + 1, item=item) for i, item in enumerate(items)],
        filler_rows=max(capacity - len(items), 0),
        is_first=is_first,
        is_last=is_last,
        offset=offset,
        capacity=capacity,
    )


def paginate(items: Sequence, config: PaginationConfig) -> PaginationResult:
    if items is None:
        raise ValueError("items cannot be None")
    items = list(items)
    total = len(items)

    logger.debug(
        f"Paginating {total} items: first={config.first_page_size}, "
        f"regular={config.regular_page_size}, reserved={config.last_page_reserve_rows}"
    )

    if total <= config.single_page_capacity:
        page = _make_page(items, 0, 0, config.single_page_capacity, is_first=True, is_last=True)
        logger.debug(f"Single page with {page.filler_rows} filler rows")
        return PaginationResult(pages=[page], total_items=total)

    pages = []
    first_count = min(config.first_page_size, total)
    pages.append(_make_page(items[:first_count], 0, 0, config.first_page_size, is_first=True, is_last=False))
    offset = first_count

    # Whatever does not fit on the last page goes to full regular pages
    remaining = total - offset
    regular_pages = 0
    if remaining > config.last_page_capacity:
        regular_pages = math.ceil((remaining - config.last_page_capacity) / config.regular_page_size)

    for _ in range(regular_pages):
        chunk = items[offset:offset + config.regular_page_size]
        pages.append(_make_page(chunk, len(pages), offset, config.regular_page_size, is_first=False, is_last=False))
        offset += len(chunk)

    pages.append(_make_page(items[offset:], len(pages), offset, config.last_page_capacity, is_first=False, is_last=True))

    logger.debug(f"{len(pages)} pages: {first_count} on first, {regular_pages} regular, {total - offset} on last")
    return PaginationResult(pages=pages, total_items=total)
