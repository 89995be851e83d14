from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Sequence

from api import HubApi, RequestError
from domain import DecodeError, Work

from .requests import RequestGeneration

logger = logging.getLogger(__name__)

PAGE_SIZE = 12
DEFAULT_TAGS = ("Website", "Art", "Cars", "Tech", "Nature", "Animals")
PLACEHOLDER_IMAGE = (
    "https://images.unsplash.com/photo-1528372444006-1bfc81acab02?q=80&w=1200&auto=format&fit=crop"
)


@dataclass(frozen=True)
class Card:
    work_id: str
    title: str
    image: str
    tags: tuple[str, ...]


@dataclass(frozen=True)
class Page:
    items: list[Work]
    number: int
    total_pages: int
    total_items: int

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages


def to_card(work: Work) -> Card:
    return Card(
        work_id=work.work_id,
        title=work.title,
        image=work.thumbnail or PLACEHOLDER_IMAGE,
        tags=tuple(work.tag_names),
    )


def tag_pool(works: Sequence[Work]) -> list[str]:
    names = {name for work in works for name in work.tag_names}
    if not names:
        return list(DEFAULT_TAGS)
    return sorted(names)


def filter_works(works: Sequence[Work], tag: str | None, query: str) -> list[Work]:
    data = list(works)
    if tag:
        data = [work for work in data if tag in work.tag_names]
    needle = query.strip().lower()
    if needle:
        data = [work for work in data if needle in work.title.lower()]
    return data


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, count: int, page_size: int = PAGE_SIZE) -> int:
    return min(max(1, page), total_pages(count, page_size))


def paginate(items: Sequence[Work], page: int, page_size: int = PAGE_SIZE) -> Page:
    number = clamp_page(page, len(items), page_size)
    start = (number - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        number=number,
        total_pages=total_pages(len(items), page_size),
        total_items=len(items),
    )


class GalleryView:
    """Home page state: loaded works, single active tag, title query, page."""

    def __init__(self, api: HubApi, page_size: int = PAGE_SIZE) -> None:
        self.api = api
        self.page_size = page_size
        self.works: list[Work] = []
        self.loading = False
        self.error: str | None = None
        self.active_tag: str | None = None
        self.query = ""
        self._page = 1
        self._generation = RequestGeneration()

    async def load(self) -> None:
        token = self._generation.next()
        self.loading = True
        self.error = None
        try:
            works = await self.api.list_works()
        except (RequestError, DecodeError) as exc:
            if self._generation.is_current(token):
                logger.info("gallery.load.failed error=%s", exc)
                self.error = str(exc) or "Failed to load"
                self.loading = False
            return
        if not self._generation.is_current(token):
            return
        self.works = works
        self.loading = False

    def close(self) -> None:
        self._generation.invalidate()

    @property
    def tags(self) -> list[str]:
        return tag_pool(self.works)

    @property
    def filtered(self) -> list[Work]:
        return filter_works(self.works, self.active_tag, self.query)

    @property
    def page(self) -> Page:
        return paginate(self.filtered, self._page, self.page_size)

    @property
    def cards(self) -> list[Card]:
        return [to_card(work) for work in self.page.items]

    def select_tag(self, tag: str) -> None:
        self.active_tag = None if self.active_tag == tag else tag
        self._page = 1

    def clear_tag(self) -> None:
        self.active_tag = None
        self._page = 1

    def set_query(self, query: str) -> None:
        self.query = query
        self._page = 1

    def next_page(self) -> None:
        current = self.page
        self._page = min(current.total_pages, current.number + 1)

    def previous_page(self) -> None:
        self._page = max(1, self.page.number - 1)

    def go_to(self, number: int) -> None:
        self._page = clamp_page(number, len(self.filtered), self.page_size)
