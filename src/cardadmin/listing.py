"""Client-side list helpers: pagination, search filtering, page buttons.

The card, offer and activity lists all page and search the same way;
these are the shared pure functions behind them.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from cardadmin.models.activity import ActivityLog
from cardadmin.models.offer import Offer

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageSlice(Generic[T]):
    """One page of a client-side list.

    ``first_index``/``last_index`` are 1-based positions for
    "Showing X to Y of Z" captions (both ``0`` for an empty list).
    """

    items: tuple[T, ...]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def first_index(self) -> int:
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        if not self.items:
            return 0
        return self.first_index + len(self.items) - 1

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int, page_size: int) -> PageSlice[T]:
    """Slice *items* into the requested 1-based *page*.

    Out-of-range pages are clamped to the first or last page.

    Raises
    ------
    ValueError
        If *page_size* is less than 1.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total = len(items)
    total_pages = math.ceil(total / page_size)
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * page_size
    return PageSlice(
        items=tuple(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
    )


def filter_by_search(items: Iterable[T], predicate: Callable[[T], bool]) -> list[T]:
    """Keep the items matching *predicate*, preserving order."""
    return [item for item in items if predicate(item)]


def text_matcher(query: str, *getters: Callable[[T], str | None]) -> Callable[[T], bool]:
    """Build a case-insensitive substring predicate over optional text fields.

    A blank *query* matches every item.
    """
    needle = query.strip().lower()

    def _matches(item: T) -> bool:
        if not needle:
            return True
        for getter in getters:
            value = getter(item)
            if value and needle in value.lower():
                return True
        return False

    return _matches


def filter_offers(offers: Iterable[Offer], search: str = "", card_id: str | None = None) -> list[Offer]:
    """Filter the all-offers list.

    A non-blank *search* (bonus text, internal label, card name or
    issuer) takes precedence; otherwise *card_id* narrows to one card.
    """
    if search.strip():
        return filter_by_search(
            offers,
            text_matcher(
                search,
                lambda o: o.sign_up_bonus,
                lambda o: o.internal_label,
                lambda o: o.card.name if o.card else None,
                lambda o: o.card.issuer if o.card else None,
            ),
        )
    if card_id:
        return [offer for offer in offers if offer.card_id == card_id]
    return list(offers)


def filter_activity(logs: Iterable[ActivityLog], search: str = "") -> list[ActivityLog]:
    return filter_by_search(
        logs,
        text_matcher(
            search,
            lambda log: log.description,
            lambda log: log.admin.name if log.admin else None,
            lambda log: log.admin.email if log.admin else None,
            lambda log: log.action,
            lambda log: log.entity_type,
        ),
    )


def page_window(current: int, total: int, *, max_buttons: int = 7) -> list[int | None]:
    """Page numbers to render as buttons; ``None`` marks an ellipsis.

    Up to *max_buttons* pages are listed in full.  Beyond that the first
    and last page are always shown together with the neighbours of
    *current*, e.g. ``[1, None, 4, 5, 6, None, 10]``.
    """
    if total < 1:
        return []
    current = min(max(current, 1), total)
    if total <= max_buttons:
        return list(range(1, total + 1))

    window: list[int | None] = [1]
    if current > 3:
        window.append(None)
    for number in range(max(2, current - 1), min(total - 1, current + 1) + 1):
        window.append(number)
    if current < total - 2:
        window.append(None)
    window.append(total)
    return window
