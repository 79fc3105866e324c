"""Report generation pipeline.

One parameterised pipeline serves every layout::

    records -> context -> stats/groups -> charts -> sections
            -> assemble (twice, for contents page numbers) -> render

Each call builds its own context, cursor, canvas and buffers, so concurrent
requests share nothing but the photo-fetch thread pool.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from reportlab.lib.units import mm

from ..inspection import InspectionRecord
from ..worker_pool import WorkerPool
from .aggregation import (
    GROUP_BY_VALUES,
    AggregateStats,
    compute_stats,
    group_records,
    grouped_stats,
)
from .assembler import AssembledDocument, assemble
from .blocks import Cover, DetailBlock, DocumentSection, RunningText, Table
from .charts import ChartSpec, build_chart_specs, render_charts
from .errors import NoInspectionDataError, RenderBackendError
from .html_builder import HtmlBackend
from .pdf_builder import CanvasBackend
from .pdf_layout import PageGeometry
from .photos import local_file_url, prefetch_images, request_asset_url
from .report_data import ProjectOverrides, ReportContext, build_report_context, running_text
from .sections import (
    compose_appendix_divider,
    compose_charts,
    compose_closing,
    compose_cover,
    compose_definitions,
    compose_details,
    compose_disclaimer,
    compose_inspected_items,
    compose_qa,
    compose_report_info,
    compose_statistics,
    compose_summary,
    compose_toc,
    compose_workscope,
)

if TYPE_CHECKING:
    from ..config import BrandingConfig, ReportConfig

LOGGER = logging.getLogger(__name__)

LAYOUTS: tuple[str, ...] = ("single", "batch", "survey")
DEFAULT_GROUP_BY: dict[str, str] = {"single": "none", "batch": "area", "survey": "area"}
GROUP_LABELS: dict[str, str] = {"area": "Area", "location": "Location", "none": "Group"}
BACKENDS: tuple[str, ...] = ("canvas", "html")


class RenderBackend(Protocol):
    name: str
    # Planned page number -> drawn page number, filled by render().
    page_starts: dict[int, int]

    def render(self, document: AssembledDocument) -> bytes: ...

    def cancel(self) -> None: ...


@dataclass(frozen=True, slots=True)
class ReportOptions:
    """One report request, independent of the transport it arrived on."""

    records: Sequence[InspectionRecord | Mapping[str, Any]]
    host_base: str
    group_by: str | None = None
    layout: str = "batch"
    overrides: ProjectOverrides = field(default_factory=ProjectOverrides)

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {self.layout!r}")
        if self.group_by is not None and self.group_by not in GROUP_BY_VALUES:
            raise ValueError(
                f"group_by must be one of {GROUP_BY_VALUES}, got {self.group_by!r}"
            )

    @property
    def effective_group_by(self) -> str:
        return self.group_by or DEFAULT_GROUP_BY[self.layout]


@dataclass(frozen=True, slots=True)
class _ReportInputs:
    ctx: ReportContext
    groups: dict[str, list[InspectionRecord]]
    overall: AggregateStats
    grouped: list[tuple[str, AggregateStats]]
    specs: list[ChartSpec]
    chart_images: dict[str, bytes]
    host_base: str
    group_by: str

    @property
    def group_label(self) -> str:
        return GROUP_LABELS[self.group_by]


# ---------------------------------------------------------------------------
# Layout sequences
# ---------------------------------------------------------------------------


def compose_layout(
    layout: str,
    inputs: _ReportInputs,
    *,
    settings: ReportConfig,
    toc_entries: Sequence[tuple[str, int]] = (),
    qa_page: int | None = None,
) -> list[DocumentSection]:
    """Ordered sections for *layout*; pure apart from the inputs it is given."""
    ctx = inputs.ctx
    label = inputs.group_label
    if layout == "single":
        return [
            compose_cover(ctx),
            compose_qa(ctx, qa_page),
            compose_definitions(),
            *compose_details(
                inputs.groups,
                inputs.host_base,
                grouped=inputs.group_by != "none",
                group_label=label,
            ),
        ]
    if layout == "batch":
        return [
            compose_cover(ctx),
            compose_qa(ctx, qa_page),
            compose_definitions(),
            compose_toc(toc_entries),
            compose_statistics(inputs.overall, inputs.grouped, group_label=label),
            compose_charts(inputs.specs, inputs.chart_images),
            *compose_details(
                inputs.groups,
                inputs.host_base,
                grouped=inputs.group_by != "none",
                group_label=label,
            ),
            compose_closing(ctx),
        ]
    if layout == "survey":
        return [
            compose_cover(ctx, with_revision=True),
            compose_report_info(ctx),
            compose_disclaimer(ctx),
            compose_toc(toc_entries),
            compose_workscope(ctx),
            compose_summary(ctx, inputs.overall, inputs.grouped),
            compose_charts(inputs.specs, inputs.chart_images),
            compose_appendix_divider(),
            *compose_inspected_items(
                inputs.groups,
                ctx,
                inputs.host_base,
                rows_per_page=settings.survey_rows_per_page,
                group_label=label,
            ),
            compose_closing(ctx),
        ]
    raise ValueError(f"Unknown layout: {layout!r}")


def assemble_layout(
    layout: str,
    inputs: _ReportInputs,
    *,
    settings: ReportConfig,
    geometry: PageGeometry,
    toc_entries: Sequence[tuple[str, int]] = (),
    qa_page: int | None = None,
) -> AssembledDocument:
    sections = compose_layout(
        layout, inputs, settings=settings, toc_entries=toc_entries, qa_page=qa_page
    )
    return assemble(sections, geometry, details_per_page=settings.details_per_page)


def plan_document(
    layout: str,
    inputs: _ReportInputs,
    *,
    settings: ReportConfig,
    geometry: PageGeometry,
) -> AssembledDocument:
    """Assemble until contents and QA page numbers are known.

    The first pass discovers the section titles.  The second lays the
    contents out with placeholder page numbers, which occupy the same rows
    as real ones, so the final pass paginates identically.
    """
    kwargs = {"settings": settings, "geometry": geometry}
    titles = assemble_layout(layout, inputs, **kwargs).section_pages
    draft = assemble_layout(
        layout, inputs, toc_entries=tuple((title, 0) for title, _ in titles), **kwargs
    )
    return assemble_layout(
        layout,
        inputs,
        toc_entries=draft.section_pages,
        qa_page=draft.page_of("qa"),
        **kwargs,
    )


def drawn_page_numbers(
    document: AssembledDocument,
    page_starts: Mapping[int, int],
) -> tuple[tuple[tuple[str, int], ...], int | None] | None:
    """Contents entries and QA page as actually drawn.

    *page_starts* maps planned page numbers to drawn ones.  Returns ``None``
    when nothing moved, otherwise the corrected ``(toc_entries, qa_page)``.
    """
    if not page_starts:
        return None
    toc = tuple((title, page_starts.get(page, page)) for title, page in document.section_pages)
    planned_qa = document.page_of("qa")
    qa = page_starts.get(planned_qa, planned_qa) if planned_qa else None
    if toc == document.section_pages and qa == planned_qa:
        return None
    return toc, qa


def collect_image_urls(document: AssembledDocument) -> list[str]:
    """Every photo and logo URL the document draws, in first-use order."""
    urls: list[str] = []
    for page in document.pages:
        for block in page.blocks:
            if isinstance(block, Cover) and block.logo_url:
                urls.append(block.logo_url)
            elif isinstance(block, DetailBlock):
                urls.extend(block.photo_urls)
            elif isinstance(block, Table):
                urls.extend(c.image_url for row in block.rows for c in row if c.image_url)
    return list(dict.fromkeys(urls))


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


def create_backend(
    name: str,
    running: RunningText,
    *,
    images: Mapping[str, bytes] | None = None,
    title: str = "DROPS Inspection Report",
    timeout_s: float = 10.0,
) -> RenderBackend:
    if name == "canvas":
        return CanvasBackend(running, images=images, title=title)
    if name == "html":
        return HtmlBackend(running, images=images, title=title, timeout_s=timeout_s)
    raise ValueError(f"backend must be one of {BACKENDS}, got {name!r}")


def geometry_from_settings(settings: ReportConfig) -> PageGeometry:
    return PageGeometry(
        page_size=settings.page_size,
        orientation=settings.orientation,
        margin=settings.margin_mm * mm,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _prefetch(
    urls: Iterable[str],
    pool: WorkerPool | None,
    settings: ReportConfig,
    trusted: Collection[str] = (),
) -> dict[str, bytes]:
    urls = list(urls)
    if not urls:
        return {}
    kwargs = {"timeout_s": settings.photo_timeout_s, "trusted": trusted}
    if pool is not None:
        return await asyncio.to_thread(prefetch_images, urls, pool, **kwargs)
    with WorkerPool(max_workers=settings.max_fetch_workers) as own_pool:
        return await asyncio.to_thread(prefetch_images, urls, own_pool, **kwargs)


async def _render(
    renderer: RenderBackend,
    document: AssembledDocument,
    *,
    deadline: float,
    settings: ReportConfig,
) -> bytes:
    remaining = max(deadline - asyncio.get_running_loop().time(), 0.0)
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(renderer.render, document), timeout=remaining
        )
    except TimeoutError as exc:
        renderer.cancel()
        LOGGER.error("PDF render exceeded %.0fs.", settings.render_timeout_s)
        raise RenderBackendError(
            f"PDF render exceeded {settings.render_timeout_s:.0f}s"
        ) from exc


async def generate_report(
    options: ReportOptions,
    *,
    settings: ReportConfig,
    branding: BrandingConfig,
    backend: str | None = None,
    pool: WorkerPool | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    """Produce the PDF bytes for *options*.

    Raises :class:`NoInspectionDataError` for an empty record set before any
    other work, :class:`ChartRenderError` when charts cannot be drawn and
    :class:`RenderBackendError` when rendering fails or exceeds
    ``settings.render_timeout_s``.

    When the drawn pages diverge from the plan (a block broke across pages
    differently than estimated) the contents and QA page numbers are
    corrected from the drawn layout and the document is drawn once more.
    """
    if not options.records:
        raise NoInspectionDataError()
    backend_name = backend or settings.backend
    if backend_name not in BACKENDS:
        raise ValueError(f"backend must be one of {BACKENDS}, got {backend_name!r}")

    records = [InspectionRecord.coerce(r) for r in options.records]
    group_by = options.effective_group_by
    config_logo = local_file_url(branding.logo_path)
    config_placeholder = local_file_url(branding.placeholder_photo_path)
    overrides = replace(
        options.overrides,
        logo_url=request_asset_url(options.host_base, options.overrides.logo_url),
    )
    ctx = build_report_context(
        records,
        overrides=overrides,
        branding=branding,
        generated_at=generated_at or datetime.now(UTC).replace(tzinfo=None),
        logo_url=config_logo,
        placeholder_photo_url=config_placeholder,
    )
    groups = group_records(records, group_by)
    overall = compute_stats(records)
    grouped = grouped_stats(groups)

    specs: list[ChartSpec] = []
    chart_images: dict[str, bytes] = {}
    if options.layout in ("batch", "survey"):
        specs = build_chart_specs(grouped, overall, group_label=GROUP_LABELS[group_by])
        chart_images = await render_charts(specs)

    inputs = _ReportInputs(
        ctx=ctx,
        groups=groups,
        overall=overall,
        grouped=grouped,
        specs=specs,
        chart_images=chart_images,
        host_base=options.host_base,
        group_by=group_by,
    )
    geometry = geometry_from_settings(settings)
    document = plan_document(options.layout, inputs, settings=settings, geometry=geometry)
    LOGGER.info(
        "Planned %s report: %d records, %d groups, %d pages.",
        options.layout,
        len(records),
        len(groups),
        document.total_pages,
    )

    trusted = [url for url in (config_logo, config_placeholder) if url]
    images = await _prefetch(collect_image_urls(document), pool, settings, trusted)
    renderer = create_backend(
        backend_name,
        running_text(ctx),
        images=images,
        title=ctx.document_title,
        timeout_s=settings.photo_timeout_s,
    )
    deadline = asyncio.get_running_loop().time() + settings.render_timeout_s
    pdf = await _render(renderer, document, deadline=deadline, settings=settings)

    drawn = drawn_page_numbers(document, renderer.page_starts)
    if drawn is None:
        return pdf
    toc_entries, qa_page = drawn
    LOGGER.info("Drawn pagination differs from plan; renumbering contents.")
    document = assemble_layout(
        options.layout,
        inputs,
        settings=settings,
        geometry=geometry,
        toc_entries=toc_entries,
        qa_page=qa_page,
    )
    return await _render(renderer, document, deadline=deadline, settings=settings)
