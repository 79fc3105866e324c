"""Statistical chart specs and PNG rasterisation.

Charts are drawn with matplotlib's object-oriented API on an Agg canvas so
parallel renders never share pyplot state.  Figure size, dpi, legend
placement and colours are fixed and PNG metadata is stripped, so identical
stats always yield identical bytes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO

from ..report_theme import CHART_RISK_SERIES, CHART_STATUS_SERIES, NEUTRAL_BADGE, REPORT_COLORS
from .aggregation import AggregateStats
from .errors import ChartRenderError

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chart geometry tokens
# ---------------------------------------------------------------------------

CHART_DPI = 150
BAR_FIGSIZE = (8.0, 3.6)
PIE_FIGSIZE = (4.0, 3.6)
FONT_SIZE = 8
TITLE_SIZE = 10


@dataclass(frozen=True, slots=True)
class StackedBarSpec:
    key: str
    title: str
    categories: tuple[str, ...]
    # (label, colour, values per category)
    series: tuple[tuple[str, str, tuple[int, ...]], ...]
    axis_label: str = "Count"

    @property
    def aspect(self) -> float:
        return BAR_FIGSIZE[0] / BAR_FIGSIZE[1]


@dataclass(frozen=True, slots=True)
class PieSpec:
    key: str
    title: str
    labels: tuple[str, ...]
    values: tuple[int, ...]
    colors: tuple[str, ...]
    doughnut: bool = False

    @property
    def aspect(self) -> float:
        return PIE_FIGSIZE[0] / PIE_FIGSIZE[1]


ChartSpec = StackedBarSpec | PieSpec


def build_chart_specs(
    grouped: Sequence[tuple[str, AggregateStats]],
    overall: AggregateStats,
    *,
    group_label: str = "Area",
) -> list[ChartSpec]:
    """The three analytics charts, in page order."""
    categories = tuple(name for name, _ in grouped) or ("All Items",)
    group_stats = [stats for _, stats in grouped] or [overall]
    risk_attrs = ("critical_count", "major_count", "minor_count", "observation_count")
    series = tuple(
        (label, color, tuple(getattr(s, attr) for s in group_stats))
        for (label, color), attr in zip(CHART_RISK_SERIES, risk_attrs, strict=True)
    )
    return [
        StackedBarSpec(
            key="risk_by_group",
            title=f"Risk Classification by {group_label}",
            categories=categories,
            series=series,
        ),
        PieSpec(
            key="status_distribution",
            title="Overall Status Distribution",
            labels=tuple(label for label, _ in CHART_STATUS_SERIES),
            values=(overall.pass_count, overall.fail_count, overall.pending_count),
            colors=tuple(color for _, color in CHART_STATUS_SERIES),
        ),
        PieSpec(
            key="risk_distribution",
            title="Risk Level Distribution",
            labels=tuple(label for label, _ in CHART_RISK_SERIES[:3]),
            values=(overall.critical_count, overall.major_count, overall.minor_count),
            colors=tuple(color for _, color in CHART_RISK_SERIES[:3]),
            doughnut=True,
        ),
    ]


# ---------------------------------------------------------------------------
# Rasterisation
# ---------------------------------------------------------------------------


def _new_figure(figsize: tuple[float, float]):
    try:
        from matplotlib.backends.backend_agg import FigureCanvasAgg
        from matplotlib.figure import Figure
    except ImportError as exc:
        raise ChartRenderError("matplotlib is required to render report charts") from exc
    fig = Figure(figsize=figsize, dpi=CHART_DPI)
    FigureCanvasAgg(fig)
    return fig


def _draw_stacked_bar(spec: StackedBarSpec) -> bytes:
    from matplotlib.ticker import MaxNLocator

    fig = _new_figure(BAR_FIGSIZE)
    ax = fig.add_subplot(1, 1, 1)
    positions = list(range(len(spec.categories)))
    left = [0] * len(spec.categories)
    for label, color, values in spec.series:
        ax.barh(positions, values, left=left, color=color, label=label, height=0.6)
        left = [a + b for a, b in zip(left, values, strict=True)]
    ax.set_yticks(positions)
    ax.set_yticklabels(spec.categories, fontsize=FONT_SIZE)
    ax.invert_yaxis()
    ax.set_xlabel(spec.axis_label, fontsize=FONT_SIZE)
    ax.set_xlim(0, max(1, max(left, default=0)))
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.tick_params(axis="x", labelsize=FONT_SIZE)
    ax.set_title(spec.title, fontsize=TITLE_SIZE, color=REPORT_COLORS["ink"])
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    ax.legend(
        loc="upper center",
        bbox_to_anchor=(0.5, -0.18),
        ncol=4,
        fontsize=FONT_SIZE,
        frameon=False,
    )
    fig.tight_layout()
    return _to_png(fig)


def _draw_pie(spec: PieSpec) -> bytes:
    fig = _new_figure(PIE_FIGSIZE)
    ax = fig.add_subplot(1, 1, 1)
    wedge_props = {"width": 0.45} if spec.doughnut else {}
    wedge_props["edgecolor"] = "white"
    if sum(spec.values) <= 0:
        ax.pie([1], colors=[NEUTRAL_BADGE], wedgeprops=wedge_props, startangle=90)
        ax.text(
            0,
            0,
            "No data",
            ha="center",
            va="center",
            fontsize=FONT_SIZE,
            color=REPORT_COLORS["text_muted"],
        )
    else:
        ax.pie(
            spec.values,
            colors=spec.colors,
            startangle=90,
            counterclock=False,
            wedgeprops=wedge_props,
            autopct=lambda pct: f"{pct:.0f}%" if pct > 0 else "",
            pctdistance=0.78 if spec.doughnut else 0.6,
            textprops={"fontsize": FONT_SIZE, "color": "white"},
        )
    ax.set_aspect("equal")
    ax.set_title(spec.title, fontsize=TITLE_SIZE, color=REPORT_COLORS["ink"])
    ax.legend(
        handles=_legend_handles(spec),
        labels=[f"{label} ({value})" for label, value in zip(spec.labels, spec.values)],
        loc="upper center",
        bbox_to_anchor=(0.5, 0.0),
        ncol=len(spec.labels),
        fontsize=FONT_SIZE - 1,
        frameon=False,
    )
    fig.tight_layout()
    return _to_png(fig)


def _legend_handles(spec: PieSpec) -> list:
    from matplotlib.patches import Patch

    return [Patch(facecolor=color) for color in spec.colors]


def _to_png(fig) -> bytes:
    buf = BytesIO()
    try:
        fig.savefig(buf, format="png", dpi=CHART_DPI, metadata={"Software": None})
        return buf.getvalue()
    finally:
        buf.close()


def render_chart(spec: ChartSpec) -> bytes:
    """Rasterise *spec* to PNG bytes; any failure is a :class:`ChartRenderError`."""
    try:
        if isinstance(spec, StackedBarSpec):
            return _draw_stacked_bar(spec)
        return _draw_pie(spec)
    except ChartRenderError:
        raise
    except Exception as exc:
        LOGGER.error("Chart %s failed to render.", spec.key, exc_info=True)
        raise ChartRenderError(f"Chart {spec.key!r} failed to render: {exc}") from exc


async def render_charts(specs: Sequence[ChartSpec]) -> dict[str, bytes]:
    """Render all charts concurrently; the result follows *specs* order."""
    images = await asyncio.gather(*(asyncio.to_thread(render_chart, spec) for spec in specs))
    return {spec.key: image for spec, image in zip(specs, images, strict=True)}
