"""PDF report builder – direct drawing on a ReportLab Canvas.

Walks the pages planned by the assembler and draws each block top-down,
tracking the Y position the way the layout helpers measured it.  Running
footers need the final page count, so finished pages are buffered and
stamped with ``Page N of M`` when the canvas is saved.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen.canvas import Canvas

from ..report_theme import REPORT_COLORS
from .assembler import AssembledDocument, Page
from .blocks import (
    Cell,
    ChartRow,
    CommentBox,
    Cover,
    DetailBlock,
    Divider,
    GroupHeader,
    Heading,
    KeyValueTable,
    PageBreak,
    RunningText,
    StatGrid,
    Table,
    TextBlock,
)
from .errors import RenderBackendError
from .formatting import truncate
from .pdf_layout import (
    BLOCK_GAP,
    CELL_PAD,
    CHART_GAP,
    COMMENT_GAP,
    DETAIL_COLUMNS,
    DETAIL_PAD,
    DETAIL_TITLE_H,
    FOOTER_BAND,
    FS_BODY,
    FS_H2,
    FS_LABEL,
    FS_SMALL,
    FS_TITLE,
    GROUP_HEADER_H,
    HEADER_BAND,
    HEADING_H,
    KV_LABEL_RATIO,
    PHOTO_H,
    PHOTOS_PER_ROW,
    STAT_TILE_H,
    SUBTITLE_H,
    chart_row_layout,
    column_widths,
    comment_box_height,
    detail_field_rows,
    fit_rect_preserve_aspect,
    kv_row_heights,
    leading,
    photo_rows,
    table_layout,
    wrap_lines,
)

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Style tokens
# ---------------------------------------------------------------------------

TEXT_CLR = REPORT_COLORS["text_primary"]
SUB_CLR = REPORT_COLORS["text_secondary"]
MUTED_CLR = REPORT_COLORS["text_muted"]
LINE_CLR = REPORT_COLORS["border"]
PRIMARY_CLR = REPORT_COLORS["primary"]
SOFT_BG = REPORT_COLORS["surface"]
ALT_BG = REPORT_COLORS["surface_alt"]
ZEBRA_BG = REPORT_COLORS["table_zebra_bg"]

FONT = "Helvetica"
FONT_B = "Helvetica-Bold"
R_CARD = 4
STAT_GAP = 2 * mm
PLACEHOLDER_TEXT = "Image unavailable"


# ---------------------------------------------------------------------------
# Low-level drawing helpers
# ---------------------------------------------------------------------------


def _hex(c: str) -> colors.Color:
    return colors.HexColor(c)


def _safe(v: str | None, fallback: str = "—") -> str:
    return str(v).strip() if v and str(v).strip() else fallback


def _draw_panel(
    c: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    fill: str = "#ffffff",
    border: str = LINE_CLR,
    radius: float = R_CARD,
) -> None:
    c.setFillColor(_hex(fill))
    c.setStrokeColor(_hex(border))
    if radius:
        c.roundRect(x, y, w, h, radius, stroke=1, fill=1)
    else:
        c.rect(x, y, w, h, stroke=1, fill=1)


def _draw_lines(
    c: Canvas,
    x: float,
    y_top: float,
    lines: list[str],
    *,
    font: str = FONT,
    size: float = FS_BODY,
    color: str = TEXT_CLR,
) -> float:
    """Draw pre-wrapped lines top-down.  Returns the y after the last line."""
    c.setFillColor(_hex(color))
    c.setFont(font, size)
    y = y_top
    for line in lines:
        c.drawString(x, y - size, line)
        y -= leading(size)
    return y


def _draw_badge(c: Canvas, x: float, y_top: float, text: str, color: str) -> float:
    """Draw a filled status/risk pill.  Returns its width."""
    size = FS_BODY - 1
    w = stringWidth(text, FONT_B, size) + 8
    h = size + 4
    c.setFillColor(_hex(color))
    c.setStrokeColor(_hex(color))
    c.roundRect(x, y_top - h, w, h, h / 2, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont(FONT_B, size)
    c.drawString(x + 4, y_top - h + 3, text)
    return w


def _draw_image_placeholder(c: Canvas, x: float, y: float, w: float, h: float) -> None:
    _draw_panel(c, x, y, w, h, fill=REPORT_COLORS["placeholder_bg"], radius=0)
    c.setFillColor(_hex(REPORT_COLORS["placeholder_text"]))
    c.setFont(FONT, FS_SMALL)
    c.drawCentredString(x + w / 2, y + h / 2 - FS_SMALL / 2, PLACEHOLDER_TEXT)


def _image_reader(data: bytes | None) -> ImageReader | None:
    if not data:
        return None
    try:
        reader = ImageReader(BytesIO(data))
        reader.getSize()
    except Exception:
        LOGGER.warning("Undecodable image data (%d bytes); using placeholder.", len(data))
        return None
    return reader


# ---------------------------------------------------------------------------
# Deferred footer canvas
# ---------------------------------------------------------------------------


class _NumberedCanvas(Canvas):
    """Canvas that buffers pages so footers can show the final page count."""

    def __init__(
        self,
        *args: object,
        footer: Callable[[Canvas, int, int], None],
        **kwargs: object,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []
        self._footer = footer

    def showPage(self) -> None:  # noqa: N802 - ReportLab API
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._footer(self, self._pageNumber, total)
            Canvas.showPage(self)
        Canvas.save(self)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class _PageWriter:
    """Draws planned pages onto one canvas; lives for a single render call."""

    def __init__(
        self,
        c: Canvas,
        document: AssembledDocument,
        running: RunningText,
        images: Mapping[str, bytes],
    ) -> None:
        self.c = c
        self.geo = document.geometry
        self.running = running
        self.images = images
        self.x = self.geo.margin
        self.width = self.geo.content_width
        self.y = self.geo.content_top
        self._kind = ""
        self._started = False
        self._readers: dict[str, ImageReader | None] = {}
        # Planned page number -> page number actually drawn.
        self.page_starts: dict[int, int] = {}

    # -- Page management ------------------------------------------------------

    def begin_page(self, kind: str) -> None:
        if self._started:
            self.c.showPage()
        self._started = True
        self._kind = kind
        self.y = self.geo.content_top
        if kind != "cover":
            self._draw_header()

    def ensure(self, height: float) -> None:
        """Continue on a new page when *height* no longer fits below ``y``."""
        at_top = self.y >= self.geo.content_top - 0.5
        if not at_top and self.y - height < self.geo.content_bottom - 0.5:
            self.begin_page(self._kind)

    def _draw_header(self) -> None:
        c = self.c
        top = self.geo.height - self.geo.margin
        c.setFillColor(_hex(PRIMARY_CLR))
        c.setFont(FONT_B, FS_H2)
        c.drawString(self.x, top - FS_H2, _safe(self.running.header_title, ""))
        c.setFont(FONT, FS_SMALL)
        c.setFillColor(_hex(SUB_CLR))
        line_y = top - FS_SMALL
        for line in self.running.header_lines[:3]:
            c.drawRightString(self.x + self.width, line_y, _safe(line))
            line_y -= leading(FS_SMALL)
        c.setStrokeColor(_hex(LINE_CLR))
        c.setLineWidth(0.6)
        rule_y = top - HEADER_BAND + 2 * mm
        c.line(self.x, rule_y, self.x + self.width, rule_y)

    def draw_footer(self, c: Canvas, page_num: int, total: int) -> None:
        y = self.geo.margin + FOOTER_BAND - 4 * mm
        c.setStrokeColor(_hex(LINE_CLR))
        c.setLineWidth(0.6)
        c.line(self.x, y + 3 * mm, self.x + self.width, y + 3 * mm)
        c.setFont(FONT, FS_LABEL)
        c.setFillColor(_hex(MUTED_CLR))
        c.drawString(self.x, y, truncate(self.running.footer_left, 140))
        c.drawString(self.x, y - leading(FS_LABEL), truncate(self.running.footer_center, 140))
        c.setFont(FONT_B, FS_SMALL)
        c.setFillColor(_hex(TEXT_CLR))
        c.drawRightString(self.x + self.width, y, f"Page {page_num} of {total}")

    # -- Images ---------------------------------------------------------------

    def _reader(self, url: str | None) -> ImageReader | None:
        if not url:
            return None
        if url not in self._readers:
            self._readers[url] = _image_reader(self.images.get(url))
        return self._readers[url]

    def _draw_image(
        self,
        source: str | bytes | None,
        x: float,
        y: float,
        w: float,
        h: float,
    ) -> None:
        reader = _image_reader(source) if isinstance(source, bytes) else self._reader(source)
        if reader is None:
            _draw_image_placeholder(self.c, x, y, w, h)
            return
        src_w, src_h = reader.getSize()
        dx, dy, dw, dh = fit_rect_preserve_aspect(src_w, src_h, x, y, w, h)
        self.c.drawImage(reader, dx, dy, dw, dh, mask="auto")

    # -- Pages ----------------------------------------------------------------

    def draw_page(self, page: Page) -> None:
        self.begin_page(page.section_kind)
        self.page_starts[page.number] = self.c.getPageNumber()
        for block in page.blocks:
            self.draw_block(block)

    def draw_block(self, block) -> None:  # noqa: C901
        if isinstance(block, Cover):
            self._draw_cover(block)
        elif isinstance(block, Divider):
            self._draw_divider(block)
        elif isinstance(block, Heading):
            self._draw_heading(block)
        elif isinstance(block, TextBlock):
            self._draw_text_block(block)
        elif isinstance(block, KeyValueTable):
            self._draw_kv_table(block)
        elif isinstance(block, Table):
            self._draw_table(block)
        elif isinstance(block, StatGrid):
            self._draw_stat_grid(block)
        elif isinstance(block, ChartRow):
            self._draw_chart_row(block)
        elif isinstance(block, GroupHeader):
            self._draw_group_header(block)
        elif isinstance(block, DetailBlock):
            self._draw_detail(block)
        elif isinstance(block, PageBreak):
            return
        else:
            raise TypeError(f"Unknown block type: {type(block).__name__}")

    # -- Full-page blocks -----------------------------------------------------

    def _draw_cover(self, cover: Cover) -> None:
        c = self.c
        page_w, page_h = self.geo.width, self.geo.height
        band_h = 0.22 * page_h
        c.setFillColor(_hex(PRIMARY_CLR))
        c.rect(0, page_h - band_h, page_w, band_h, stroke=0, fill=1)
        if cover.logo_url:
            self._draw_image(
                cover.logo_url,
                self.x,
                page_h - band_h + 8 * mm,
                45 * mm,
                band_h - 16 * mm,
            )
        c.setFillColor(colors.white)
        c.setFont(FONT_B, 30)
        c.drawRightString(self.x + self.width, page_h - band_h / 2 - 10, cover.title)

        mid = page_h * 0.58
        c.setFillColor(_hex(TEXT_CLR))
        c.setFont(FONT_B, 22)
        c.drawCentredString(page_w / 2, mid, _safe(cover.client_name))
        c.setFont(FONT, 14)
        c.setFillColor(_hex(SUB_CLR))
        asset_line = f"{_safe(cover.asset_name)} · {_safe(cover.rig_name)}"
        c.drawCentredString(page_w / 2, mid - 26, asset_line)
        c.setFont(FONT_B, 16)
        c.setFillColor(_hex(PRIMARY_CLR))
        c.drawCentredString(page_w / 2, mid - 60, cover.cover_date)

        if cover.revision_header:
            table = Table(
                header=cover.revision_header,
                rows=(tuple(Cell(_safe(v)) for v in cover.revision_row),),
            )
            self.y = mid - 90
            self._draw_table(table)

        c.setFont(FONT_B, FS_H2)
        c.setFillColor(_hex(TEXT_CLR))
        c.drawCentredString(page_w / 2, self.geo.margin + 14 * mm, cover.company_line)
        c.setFont(FONT, FS_BODY)
        c.setFillColor(_hex(SUB_CLR))
        c.drawCentredString(page_w / 2, self.geo.margin + 8 * mm, cover.contact_line)
        self.y = self.geo.content_bottom

    def _draw_divider(self, divider: Divider) -> None:
        c = self.c
        mid = (self.geo.content_top + self.geo.content_bottom) / 2
        c.setFillColor(_hex(PRIMARY_CLR))
        c.setFont(FONT_B, 26)
        c.drawCentredString(self.geo.width / 2, mid + 10, divider.title)
        if divider.subtitle:
            c.setFont(FONT, FS_TITLE)
            c.setFillColor(_hex(SUB_CLR))
            c.drawCentredString(self.geo.width / 2, mid - 18, divider.subtitle)
        self.y = self.geo.content_bottom

    # -- Flow blocks ----------------------------------------------------------

    def _draw_heading(self, block: Heading) -> None:
        c = self.c
        y0 = self.y
        c.setFillColor(_hex(PRIMARY_CLR))
        c.setFont(FONT_B, FS_TITLE)
        c.drawString(self.x, y0 - FS_TITLE, block.title)
        c.setStrokeColor(_hex(REPORT_COLORS["accent"]))
        c.setLineWidth(1.2)
        c.line(self.x, y0 - HEADING_H + 3, self.x + 30 * mm, y0 - HEADING_H + 3)
        y = y0 - HEADING_H
        if block.subtitle:
            c.setFillColor(_hex(SUB_CLR))
            c.setFont(FONT_B, FS_BODY)
            c.drawString(self.x, y - FS_BODY - 2, block.subtitle)
            y -= SUBTITLE_H
        self.y = y - BLOCK_GAP

    def _draw_text_block(self, block: TextBlock) -> None:
        c = self.c
        size = block.font_size
        step = leading(size)
        c.setFont(FONT, size)
        for paragraph in block.paragraphs:
            for line in wrap_lines(paragraph, self.width, size):
                self.ensure(step)
                c.setFillColor(_hex(TEXT_CLR))
                c.setFont(FONT, size)
                if block.align == "center":
                    c.drawCentredString(self.x + self.width / 2, self.y - size, line)
                else:
                    c.drawString(self.x, self.y - size, line)
                self.y -= step
            self.y -= 4
        for item in block.bullets:
            lines = wrap_lines(item, self.width - 10, size)
            for index, line in enumerate(lines):
                self.ensure(step)
                c.setFillColor(_hex(TEXT_CLR))
                c.setFont(FONT, size)
                if index == 0:
                    c.drawString(self.x + 2, self.y - size, "•")
                c.drawString(self.x + 10, self.y - size, line)
                self.y -= step
            self.y -= 2
        self.y -= BLOCK_GAP

    def _block_title(self, title: str | None) -> None:
        if not title:
            return
        self.ensure(leading(FS_H2) + 2)
        self.c.setFillColor(_hex(PRIMARY_CLR))
        self.c.setFont(FONT_B, FS_H2)
        self.c.drawString(self.x, self.y - FS_H2, title)
        self.y -= leading(FS_H2) + 2

    def _draw_kv_table(self, block: KeyValueTable) -> None:
        c = self.c
        self._block_title(block.title)
        label_w = self.width * KV_LABEL_RATIO
        size = FS_SMALL + 1
        for (label, value), h in zip(block.rows, kv_row_heights(block, self.width), strict=True):
            self.ensure(h)
            y_bottom = self.y - h
            _draw_panel(c, self.x, y_bottom, label_w, h, fill=ALT_BG, radius=0)
            _draw_panel(c, self.x + label_w, y_bottom, self.width - label_w, h, radius=0)
            _draw_lines(
                c,
                self.x + CELL_PAD,
                self.y - CELL_PAD,
                wrap_lines(label, label_w - 2 * CELL_PAD, size),
                font=FONT_B,
                size=size,
                color=SUB_CLR,
            )
            _draw_lines(
                c,
                self.x + label_w + CELL_PAD,
                self.y - CELL_PAD,
                wrap_lines(_safe(value), self.width - label_w - 2 * CELL_PAD, size),
                size=size,
            )
            self.y = y_bottom
        self.y -= BLOCK_GAP

    def _draw_table_row(
        self,
        cells: tuple[Cell, ...],
        widths: list[float],
        h: float,
        size: float,
        *,
        header: bool = False,
        zebra: bool = False,
    ) -> None:
        c = self.c
        x = self.x
        y_bottom = self.y - h
        for cell, w in zip(cells, widths, strict=True):
            if header:
                fill = REPORT_COLORS["table_header_bg"]
            else:
                fill = ZEBRA_BG if zebra else "#ffffff"
            _draw_panel(c, x, y_bottom, w, h, fill=fill, border=LINE_CLR, radius=0)
            if cell.image_url:
                self._draw_image(
                    cell.image_url,
                    x + CELL_PAD,
                    y_bottom + CELL_PAD,
                    w - 2 * CELL_PAD,
                    h - 2 * CELL_PAD,
                )
            elif cell.badge and cell.color:
                _draw_badge(c, x + CELL_PAD, self.y - CELL_PAD, cell.text, cell.color)
            else:
                if header:
                    color = REPORT_COLORS["table_header_text"]
                else:
                    color = cell.color or TEXT_CLR
                _draw_lines(
                    c,
                    x + CELL_PAD,
                    self.y - CELL_PAD,
                    wrap_lines(cell.text, max(w - 2 * CELL_PAD, 1), size),
                    font=FONT_B if (header or cell.bold) else FONT,
                    size=size,
                    color=color,
                )
            x += w
        self.y = y_bottom

    def _draw_table(self, table: Table) -> None:
        self._block_title(table.title)
        widths = column_widths(table, self.width)
        header_h, row_heights = table_layout(table, self.width)
        header_cells = tuple(Cell(text) for text in table.header)
        self.ensure(header_h + (row_heights[0] if row_heights else 0))
        self._draw_table_row(header_cells, widths, header_h, table.font_size, header=True)
        for index, (row, h) in enumerate(zip(table.rows, row_heights, strict=True)):
            page_before = self.c.getPageNumber()
            self.ensure(h)
            if self.c.getPageNumber() != page_before:
                # Repeat the header on continuation pages.
                self._draw_table_row(header_cells, widths, header_h, table.font_size, header=True)
            self._draw_table_row(row, widths, h, table.font_size, zebra=index % 2 == 1)
        self.y -= BLOCK_GAP

    def _draw_stat_grid(self, block: StatGrid) -> None:
        c = self.c
        n = max(len(block.cells), 1)
        tile_w = (self.width - STAT_GAP * (n - 1)) / n
        y_bottom = self.y - STAT_TILE_H
        x = self.x
        for cell in block.cells:
            _draw_panel(c, x, y_bottom, tile_w, STAT_TILE_H, fill=SOFT_BG)
            c.setFillColor(_hex(cell.color))
            c.rect(x, y_bottom + STAT_TILE_H - 2, tile_w, 2, stroke=0, fill=1)
            c.setFont(FONT_B, 18)
            c.drawCentredString(x + tile_w / 2, y_bottom + STAT_TILE_H / 2 - 2, str(cell.value))
            c.setFillColor(_hex(SUB_CLR))
            c.setFont(FONT, FS_SMALL)
            c.drawCentredString(x + tile_w / 2, y_bottom + 3 * mm, cell.label.upper())
            x += tile_w + STAT_GAP
        self.y = y_bottom - BLOCK_GAP

    def _draw_chart_row(self, row: ChartRow) -> None:
        chart_w, row_h = chart_row_layout(row, self.width)
        self.ensure(row_h)
        x = self.x
        for chart in row.charts:
            self._draw_image(chart.png, x, self.y - row_h, chart_w, row_h)
            x += chart_w + CHART_GAP
        self.y -= row_h + BLOCK_GAP

    def _draw_group_header(self, block: GroupHeader) -> None:
        c = self.c
        y_bottom = self.y - GROUP_HEADER_H
        _draw_panel(
            c, self.x, y_bottom, self.width, GROUP_HEADER_H, fill=PRIMARY_CLR, border=PRIMARY_CLR
        )
        c.setFillColor(colors.white)
        c.setFont(FONT_B, FS_H2 + 1)
        title_y = y_bottom + GROUP_HEADER_H - 6 * mm
        c.drawString(self.x + 4 * mm, title_y, f"{block.label}: {block.name}")
        s = block.stats
        summary = (
            f"Total {s.total}   Pass {s.pass_count}   Fail {s.fail_count}   "
            f"Critical {s.critical_count}   Major {s.major_count}   Minor {s.minor_count}"
        )
        c.setFont(FONT, FS_SMALL + 1)
        c.drawString(self.x + 4 * mm, y_bottom + 3.5 * mm, summary)
        self.y = y_bottom - BLOCK_GAP

    def _draw_detail(self, block: DetailBlock) -> None:
        c = self.c
        inner_x = self.x + DETAIL_PAD
        inner_w = self.width - 2 * DETAIL_PAD

        self.ensure(DETAIL_TITLE_H)
        _draw_panel(c, self.x, self.y - DETAIL_TITLE_H, self.width, DETAIL_TITLE_H, fill=ALT_BG)
        c.setFillColor(_hex(PRIMARY_CLR))
        c.setFont(FONT_B, FS_BODY + 1)
        c.drawString(inner_x, self.y - DETAIL_TITLE_H + 2.3 * mm, truncate(block.title, 120))
        self.y -= DETAIL_TITLE_H + DETAIL_PAD

        col_w = inner_w / DETAIL_COLUMNS
        for row_index, row_h in enumerate(detail_field_rows(block, self.width)):
            self.ensure(row_h)
            start = row_index * DETAIL_COLUMNS
            for col, field in enumerate(block.fields[start : start + DETAIL_COLUMNS]):
                fx = inner_x + col * col_w
                c.setFillColor(_hex(MUTED_CLR))
                c.setFont(FONT, FS_LABEL)
                c.drawString(fx, self.y - FS_LABEL, field.label.upper())
                value_top = self.y - leading(FS_LABEL)
                if field.badge_color:
                    _draw_badge(c, fx, value_top, field.value, field.badge_color)
                else:
                    _draw_lines(
                        c,
                        fx,
                        value_top,
                        wrap_lines(field.value, col_w - 2 * CELL_PAD, FS_BODY),
                    )
            self.y -= row_h

        rows = photo_rows(len(block.photo_urls))
        photo_w = (inner_w - COMMENT_GAP * (PHOTOS_PER_ROW - 1)) / PHOTOS_PER_ROW
        for r in range(rows):
            self.ensure(PHOTO_H + COMMENT_GAP)
            urls = block.photo_urls[r * PHOTOS_PER_ROW : (r + 1) * PHOTOS_PER_ROW]
            for i, url in enumerate(urls):
                px = inner_x + i * (photo_w + COMMENT_GAP)
                self._draw_image(url, px, self.y - PHOTO_H, photo_w, PHOTO_H)
            self.y -= PHOTO_H + COMMENT_GAP

        for box in block.comments:
            self._draw_comment_box(box)
        self.y -= DETAIL_PAD + BLOCK_GAP

    def _draw_comment_box(self, box: CommentBox) -> None:
        c = self.c
        h = comment_box_height(box.text, self.width)
        box_x = self.x + DETAIL_PAD
        box_w = self.width - 2 * DETAIL_PAD
        lines = wrap_lines(box.text, box_w - 2 * CELL_PAD, FS_BODY)
        if h > self.geo.content_height:
            # Taller than a page: flow line by line without a frame.
            self.ensure(leading(FS_LABEL))
            c.setFillColor(_hex(SUB_CLR))
            c.setFont(FONT_B, FS_LABEL)
            c.drawString(box_x, self.y - FS_LABEL, box.label.upper())
            self.y -= leading(FS_LABEL)
            for line in lines:
                self.ensure(leading(FS_BODY))
                self.y = _draw_lines(c, box_x + CELL_PAD, self.y, [line])
            self.y -= COMMENT_GAP
            return
        self.ensure(h)
        _draw_panel(c, box_x, self.y - h, box_w, h, fill=SOFT_BG, radius=2)
        c.setFillColor(_hex(SUB_CLR))
        c.setFont(FONT_B, FS_LABEL)
        c.drawString(box_x + CELL_PAD, self.y - CELL_PAD - FS_LABEL, box.label.upper())
        _draw_lines(c, box_x + CELL_PAD, self.y - CELL_PAD - leading(FS_LABEL), lines)
        self.y -= h + COMMENT_GAP


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class CanvasBackend:
    """Direct-drawing render backend."""

    name = "canvas"

    def __init__(
        self,
        running: RunningText,
        *,
        images: Mapping[str, bytes] | None = None,
        title: str = "DROPS Inspection Report",
        author: str = "",
    ) -> None:
        self._running = running
        self._images = dict(images or {})
        self._title = title
        self._author = author
        self._cancelled = threading.Event()
        # Filled by render(): planned page number -> page number drawn.
        self.page_starts: dict[int, int] = {}

    def cancel(self) -> None:
        """Stop an in-flight render at the next page boundary."""
        self._cancelled.set()

    def render(self, document: AssembledDocument) -> bytes:
        try:
            return self._render(document)
        except RenderBackendError:
            LOGGER.info("PDF render cancelled before completion.")
            raise
        except Exception as exc:
            LOGGER.error("PDF generation failed.", exc_info=True)
            raise RenderBackendError(f"PDF generation failed: {exc}") from exc

    def _render(self, document: AssembledDocument) -> bytes:
        buf = BytesIO()
        try:
            writer: _PageWriter | None = None

            def _footer(c: Canvas, page_num: int, total: int) -> None:
                assert writer is not None
                writer.draw_footer(c, page_num, total)

            c = _NumberedCanvas(
                buf,
                pagesize=document.geometry.size,
                pageCompression=0,
                invariant=1,
                footer=_footer,
            )
            c.setTitle(self._title)
            c.setAuthor(self._author)
            c.setCreator("dropsreport")
            writer = _PageWriter(c, document, self._running, self._images)
            for page in document.pages:
                if self._cancelled.is_set():
                    raise RenderBackendError("PDF render cancelled")
                writer.draw_page(page)
            c.showPage()
            c.save()
            self.page_starts = dict(writer.page_starts)
            return buf.getvalue()
        finally:
            buf.close()
