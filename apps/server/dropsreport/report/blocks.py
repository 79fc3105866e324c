"""Backend-neutral document model.

Composers emit these frozen blocks; the assembler paginates them and both
render backends draw them.  Nothing here knows about ReportLab or HTML.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .aggregation import AggregateStats


@dataclass(frozen=True, slots=True)
class Cover:
    kind: ClassVar[str] = "cover"
    title: str
    cover_date: str
    client_name: str
    asset_name: str
    rig_name: str
    report_title: str
    company_line: str
    contact_line: str
    logo_url: str | None = None
    revision_header: tuple[str, ...] = ()
    revision_row: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Heading:
    kind: ClassVar[str] = "heading"
    title: str
    subtitle: str | None = None


@dataclass(frozen=True, slots=True)
class TextBlock:
    kind: ClassVar[str] = "text"
    paragraphs: tuple[str, ...]
    bullets: tuple[str, ...] = ()
    align: str = "left"
    font_size: int = 9


@dataclass(frozen=True, slots=True)
class KeyValueTable:
    kind: ClassVar[str] = "key_value"
    rows: tuple[tuple[str, str], ...]
    title: str | None = None


@dataclass(frozen=True, slots=True)
class Cell:
    text: str
    color: str | None = None
    bold: bool = False
    badge: bool = False
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class Table:
    kind: ClassVar[str] = "table"
    header: tuple[str, ...]
    rows: tuple[tuple[Cell, ...], ...]
    col_weights: tuple[float, ...] = ()
    row_height: float | None = None
    font_size: int = 8
    title: str | None = None

    def weights(self) -> tuple[float, ...]:
        if self.col_weights and len(self.col_weights) == len(self.header):
            return self.col_weights
        return tuple(1.0 for _ in self.header)


@dataclass(frozen=True, slots=True)
class StatCell:
    label: str
    value: int
    color: str


@dataclass(frozen=True, slots=True)
class StatGrid:
    kind: ClassVar[str] = "stat_grid"
    cells: tuple[StatCell, ...]


@dataclass(frozen=True, slots=True)
class ChartImage:
    key: str
    title: str
    png: bytes
    aspect: float


@dataclass(frozen=True, slots=True)
class ChartRow:
    kind: ClassVar[str] = "chart_row"
    charts: tuple[ChartImage, ...]


@dataclass(frozen=True, slots=True)
class GroupHeader:
    kind: ClassVar[str] = "group_header"
    name: str
    stats: AggregateStats
    label: str = "Area"


@dataclass(frozen=True, slots=True)
class DetailField:
    label: str
    value: str
    badge_color: str | None = None


@dataclass(frozen=True, slots=True)
class CommentBox:
    label: str
    text: str


@dataclass(frozen=True, slots=True)
class DetailBlock:
    kind: ClassVar[str] = "detail"
    ordinal: int
    title: str
    fields: tuple[DetailField, ...]
    photo_urls: tuple[str, ...] = ()
    comments: tuple[CommentBox, ...] = ()


@dataclass(frozen=True, slots=True)
class Divider:
    kind: ClassVar[str] = "divider"
    title: str
    subtitle: str | None = None


@dataclass(frozen=True, slots=True)
class PageBreak:
    kind: ClassVar[str] = "page_break"


Block = (
    Cover
    | Heading
    | TextBlock
    | KeyValueTable
    | Table
    | StatGrid
    | ChartRow
    | GroupHeader
    | DetailBlock
    | Divider
    | PageBreak
)

SECTION_KINDS: tuple[str, ...] = (
    "cover",
    "qa",
    "info",
    "disclaimer",
    "definitions",
    "toc",
    "workscope",
    "statistics",
    "summary",
    "charts",
    "appendix",
    "detail",
    "closing",
)


@dataclass(frozen=True, slots=True)
class DocumentSection:
    kind: str
    blocks: tuple[Block, ...]
    page_break_before: bool = True
    # Sections with a title are listed in the table of contents.
    title: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in SECTION_KINDS:
            raise ValueError(f"Unknown section kind: {self.kind!r}")


@dataclass(frozen=True, slots=True)
class RunningText:
    """Header and footer strings repeated on every non-cover page."""

    header_title: str
    header_lines: tuple[str, ...]
    footer_left: str
    footer_center: str
