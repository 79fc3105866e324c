"""Linearise composed sections into planned pages.

The assembler walks sections in order with an immutable :class:`LayoutCursor`.
Every placement returns a new cursor, so a planning pass never leaks state
into another request.  Page-break rules:

* a section flagged ``page_break_before`` (and every :class:`PageBreak`)
  starts on a fresh page, without emitting blank pages;
* a block that does not fit the remaining height of a non-fresh page, or a
  detail block beyond the per-page cap, moves to a new page;
* a :class:`GroupHeader` is kept with the block that follows it;
* a block taller than a full page is placed alone and allowed to overflow;
  the pages it spills onto are reserved so later page numbers stay right.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .blocks import Block, Cover, DetailBlock, Divider, DocumentSection, GroupHeader, PageBreak
from .pdf_layout import PageGeometry, block_height

LOGGER = logging.getLogger(__name__)

DEFAULT_DETAILS_PER_PAGE = 2


@dataclass(frozen=True, slots=True)
class LayoutCursor:
    """Position on the page currently being filled."""

    page: int = 0
    used: float = 0.0
    details_on_page: int = 0
    fresh: bool = True
    span: int = 1

    def next_page(self) -> LayoutCursor:
        return LayoutCursor(page=self.page + self.span)

    def place(self, height: float, capacity: float, *, detail: bool = False) -> LayoutCursor:
        details = self.details_on_page + (1 if detail else 0)
        if height > capacity:
            return replace(
                self,
                used=capacity,
                details_on_page=details,
                fresh=False,
                span=math.ceil(height / capacity),
            )
        return replace(self, used=self.used + height, details_on_page=details, fresh=False)

    def fits(self, height: float, capacity: float) -> bool:
        return self.used + height <= capacity


@dataclass(frozen=True, slots=True)
class Page:
    number: int
    span: int
    section_kind: str
    blocks: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class AssembledDocument:
    pages: tuple[Page, ...]
    total_pages: int
    # (section title, first page) for sections listed in the contents.
    section_pages: tuple[tuple[str, int], ...]
    # First page of every section kind.
    kind_pages: tuple[tuple[str, int], ...]
    geometry: PageGeometry

    def page_of(self, kind: str) -> int | None:
        for name, number in self.kind_pages:
            if name == kind:
                return number
        return None


@dataclass(slots=True)
class _PageDraft:
    number: int
    section_kind: str
    blocks: list[Block]
    span: int = 1

    def freeze(self) -> Page:
        return Page(self.number, self.span, self.section_kind, tuple(self.blocks))


def _open_page(
    drafts: list[_PageDraft],
    cursor: LayoutCursor,
    kind: str,
) -> LayoutCursor:
    if drafts and cursor.fresh:
        # Reuse the empty page instead of emitting a blank one.
        drafts[-1].section_kind = kind
        return cursor
    cursor = cursor.next_page()
    drafts.append(_PageDraft(number=cursor.page, section_kind=kind, blocks=[]))
    return cursor


def _needs_new_page(
    cursor: LayoutCursor,
    height: float,
    capacity: float,
    *,
    detail: bool,
    details_per_page: int,
) -> bool:
    if cursor.fresh:
        return False
    if detail and cursor.details_on_page >= details_per_page:
        return True
    return not cursor.fits(height, capacity)


def assemble(
    sections: Sequence[DocumentSection],
    geometry: PageGeometry,
    *,
    details_per_page: int = DEFAULT_DETAILS_PER_PAGE,
) -> AssembledDocument:
    """Plan pages for *sections* in order."""
    if details_per_page < 1:
        raise ValueError("details_per_page must be >= 1")
    capacity = geometry.content_height
    width = geometry.content_width
    drafts: list[_PageDraft] = []
    cursor = LayoutCursor()
    section_pages: list[tuple[str, int]] = []
    kind_pages: dict[str, int] = {}

    for section in sections:
        if section.page_break_before or not drafts:
            cursor = _open_page(drafts, cursor, section.kind)
        first_page: int | None = None
        blocks = section.blocks
        for index, block in enumerate(blocks):
            if isinstance(block, PageBreak):
                if not cursor.fresh:
                    cursor = _open_page(drafts, cursor, section.kind)
                continue
            height = block_height(block, width, capacity)
            needed = height
            if isinstance(block, GroupHeader) and index + 1 < len(blocks):
                follower = block_height(blocks[index + 1], width, capacity)
                if height + follower <= capacity:
                    needed = height + follower
            is_detail = isinstance(block, DetailBlock)
            full_page = isinstance(block, (Cover, Divider))
            if full_page and not cursor.fresh:
                cursor = _open_page(drafts, cursor, section.kind)
            elif _needs_new_page(
                cursor,
                needed,
                capacity,
                detail=is_detail,
                details_per_page=details_per_page,
            ):
                cursor = _open_page(drafts, cursor, section.kind)
            if height > capacity and not full_page:
                LOGGER.debug(
                    "Block %s on page %d overflows (%.0fpt > %.0fpt).",
                    block.kind,
                    cursor.page,
                    height,
                    capacity,
                )
            if first_page is None:
                first_page = cursor.page
            drafts[-1].blocks.append(block)
            cursor = cursor.place(height, capacity, detail=is_detail)
            drafts[-1].span = cursor.span
        if first_page is None:
            first_page = cursor.page
        kind_pages.setdefault(section.kind, first_page)
        if section.title:
            section_pages.append((section.title, first_page))

    pages = tuple(d.freeze() for d in drafts if d.blocks)
    total = pages[-1].number + pages[-1].span - 1 if pages else 0
    return AssembledDocument(
        pages=pages,
        total_pages=total,
        section_pages=tuple(section_pages),
        kind_pages=tuple(kind_pages.items()),
        geometry=geometry,
    )
