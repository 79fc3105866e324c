"""Page geometry and block-height arithmetic for PDF report layout.

Pure-maths utilities shared by the assembler (to decide page breaks) and
the canvas renderer (to draw).  Both sides wrap text with :func:`wrap_lines`
and measure blocks with :func:`block_height`, so planned and drawn heights
agree.
"""

from __future__ import annotations

import math
import textwrap
from dataclasses import dataclass

from reportlab.lib.pagesizes import A3, A4, LETTER, landscape, portrait
from reportlab.lib.units import mm

from .blocks import (
    Block,
    ChartRow,
    Cover,
    DetailBlock,
    Divider,
    GroupHeader,
    Heading,
    KeyValueTable,
    PageBreak,
    StatGrid,
    Table,
    TextBlock,
)

PAGE_SIZES = {"A4": A4, "A3": A3, "LETTER": LETTER}

# ---------------------------------------------------------------------------
# Style tokens (shared by measuring and drawing)
# ---------------------------------------------------------------------------

FS_TITLE = 16
FS_H2 = 11
FS_BODY = 9
FS_SMALL = 7
FS_LABEL = 6.5

BLOCK_GAP = 4 * mm
CELL_PAD = 3
HEADER_BAND = 12 * mm
FOOTER_BAND = 10 * mm

HEADING_H = FS_TITLE + 8
SUBTITLE_H = FS_BODY + 5
KV_LABEL_RATIO = 0.35
STAT_TILE_H = 17 * mm
GROUP_HEADER_H = 16 * mm
DETAIL_TITLE_H = 7 * mm
DETAIL_PAD = 3 * mm
DETAIL_COLUMNS = 3
PHOTO_H = 34 * mm
PHOTOS_PER_ROW = 4
COMMENT_GAP = 2 * mm
CHART_GAP = 4 * mm


def leading(font_size: float) -> float:
    return font_size + 2


def wrap_lines(text: str, width_pt: float, font_size: float) -> list[str]:
    avg_char_w = font_size * 0.48
    max_chars = max(10, int(width_pt / avg_char_w))
    lines: list[str] = []
    for paragraph in str(text).split("\n"):
        lines.extend(textwrap.wrap(paragraph, width=max_chars) or [""])
    return lines


def text_height(text: str, width_pt: float, font_size: float) -> float:
    """Return the total height consumed by wrapped text."""
    return max(len(wrap_lines(text, width_pt, font_size)), 1) * leading(font_size)


# ---------------------------------------------------------------------------
# Page geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PageGeometry:
    page_size: str = "A4"
    orientation: str = "portrait"
    margin: float = 12 * mm

    def __post_init__(self) -> None:
        if self.page_size.upper() not in PAGE_SIZES:
            raise ValueError(f"Unsupported page size: {self.page_size!r}")
        if self.orientation not in ("portrait", "landscape"):
            raise ValueError(f"Unsupported orientation: {self.orientation!r}")

    @property
    def size(self) -> tuple[float, float]:
        base = PAGE_SIZES[self.page_size.upper()]
        return landscape(base) if self.orientation == "landscape" else portrait(base)

    @property
    def width(self) -> float:
        return self.size[0]

    @property
    def height(self) -> float:
        return self.size[1]

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_top(self) -> float:
        return self.height - self.margin - HEADER_BAND

    @property
    def content_bottom(self) -> float:
        return self.margin + FOOTER_BAND

    @property
    def content_height(self) -> float:
        return self.content_top - self.content_bottom


# ---------------------------------------------------------------------------
# Per-block measurement
# ---------------------------------------------------------------------------


def column_widths(table: Table, width: float) -> list[float]:
    weights = table.weights()
    total = sum(weights) or 1.0
    return [width * w / total for w in weights]


def table_row_height(texts: list[str], widths: list[float], font_size: float) -> float:
    lines = 1
    for text, w in zip(texts, widths, strict=True):
        lines = max(lines, len(wrap_lines(text, max(w - 2 * CELL_PAD, 1), font_size)))
    return lines * leading(font_size) + 2 * CELL_PAD


def table_layout(table: Table, width: float) -> tuple[float, list[float]]:
    """Return ``(header_height, row_heights)`` for *table* at *width*."""
    widths = column_widths(table, width)
    header_h = table_row_height(list(table.header), widths, table.font_size)
    row_heights: list[float] = []
    for row in table.rows:
        h = table_row_height([cell.text for cell in row], widths, table.font_size)
        if table.row_height is not None:
            h = max(h, table.row_height)
        row_heights.append(h)
    return header_h, row_heights


def kv_row_heights(table: KeyValueTable, width: float) -> list[float]:
    label_w = width * KV_LABEL_RATIO
    value_w = width - label_w
    return [
        max(
            text_height(label, label_w - 2 * CELL_PAD, FS_SMALL + 1),
            text_height(value, value_w - 2 * CELL_PAD, FS_SMALL + 1),
        )
        + 2 * CELL_PAD
        for label, value in table.rows
    ]


def detail_field_rows(block: DetailBlock, width: float) -> list[float]:
    col_w = (width - 2 * DETAIL_PAD) / DETAIL_COLUMNS
    heights: list[float] = []
    for start in range(0, len(block.fields), DETAIL_COLUMNS):
        chunk = block.fields[start : start + DETAIL_COLUMNS]
        value_h = max(text_height(f.value, col_w - 2 * CELL_PAD, FS_BODY) for f in chunk)
        heights.append(leading(FS_LABEL) + value_h + CELL_PAD)
    return heights


def comment_box_height(text: str, width: float) -> float:
    inner_w = width - 2 * DETAIL_PAD - 2 * CELL_PAD
    return leading(FS_LABEL) + text_height(text, inner_w, FS_BODY) + 2 * CELL_PAD


def photo_rows(count: int) -> int:
    return math.ceil(count / PHOTOS_PER_ROW) if count else 0


def chart_row_layout(row: ChartRow, width: float) -> tuple[float, float]:
    """Return ``(chart_width, row_height)``."""
    n = max(len(row.charts), 1)
    chart_w = (width - CHART_GAP * (n - 1)) / n
    height = max((chart_w / max(c.aspect, 0.1) for c in row.charts), default=0.0)
    return chart_w, height


def block_height(block: Block, width: float, page_height: float) -> float:
    """Estimated vertical space *block* needs, including its trailing gap."""
    if isinstance(block, (Cover, Divider)):
        return page_height
    if isinstance(block, PageBreak):
        return 0.0
    if isinstance(block, Heading):
        return HEADING_H + (SUBTITLE_H if block.subtitle else 0.0) + BLOCK_GAP
    if isinstance(block, TextBlock):
        h = 0.0
        for paragraph in block.paragraphs:
            h += text_height(paragraph, width, block.font_size) + 4
        for item in block.bullets:
            h += text_height(item, width - 10, block.font_size) + 2
        return h + BLOCK_GAP
    if isinstance(block, KeyValueTable):
        title_h = leading(FS_H2) + 2 if block.title else 0.0
        return title_h + sum(kv_row_heights(block, width)) + BLOCK_GAP
    if isinstance(block, Table):
        title_h = leading(FS_H2) + 2 if block.title else 0.0
        header_h, rows = table_layout(block, width)
        return title_h + header_h + sum(rows) + BLOCK_GAP
    if isinstance(block, StatGrid):
        return STAT_TILE_H + BLOCK_GAP
    if isinstance(block, ChartRow):
        return chart_row_layout(block, width)[1] + BLOCK_GAP
    if isinstance(block, GroupHeader):
        return GROUP_HEADER_H + BLOCK_GAP
    if isinstance(block, DetailBlock):
        h = DETAIL_TITLE_H + DETAIL_PAD + sum(detail_field_rows(block, width))
        rows = photo_rows(len(block.photo_urls))
        if rows:
            h += rows * (PHOTO_H + COMMENT_GAP)
        for box in block.comments:
            h += comment_box_height(box.text, width) + COMMENT_GAP
        return h + DETAIL_PAD + BLOCK_GAP
    raise TypeError(f"Unknown block type: {type(block).__name__}")


# ---------------------------------------------------------------------------
# Aspect-ratio protection
# ---------------------------------------------------------------------------


def fit_rect_preserve_aspect(
    src_w: float,
    src_h: float,
    box_x: float,
    box_y: float,
    box_w: float,
    box_h: float,
) -> tuple[float, float, float, float]:
    """Return (x, y, w, h) fitted inside box while preserving src aspect."""
    if src_w <= 0 or src_h <= 0:
        return box_x, box_y, box_w, box_h
    src_ratio = src_w / src_h
    box_ratio = box_w / box_h if box_h else src_ratio
    if box_ratio > src_ratio:
        h = box_h
        w = h * src_ratio
        x = box_x + (box_w - w) / 2
        y = box_y
    else:
        w = box_w
        h = w / src_ratio
        x = box_x
        y = box_y + (box_h - h) / 2
    return x, y, w, h
