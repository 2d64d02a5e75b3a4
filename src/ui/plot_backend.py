"""
Interactive Chart Backend — QtCharts views for the dashboard.

Every chart is a live widget: hovering shows the exact count, clicking a
bar or slice calls the supplied on_select(label), which the dashboard turns
into a goal filter.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from PySide6.QtCore import Qt, QMargins
from PySide6.QtGui import QBrush, QColor, QCursor, QFont, QPainter
from PySide6.QtWidgets import QToolTip
from PySide6.QtCharts import (
    QBarCategoryAxis, QBarSet, QChart, QChartView, QHorizontalStackedBarSeries,
    QPieSeries, QPieSlice, QStackedBarSeries, QValueAxis,
)

from src.ui import styles

logger = logging.getLogger(__name__)

Counts = Sequence[Tuple[str, int]]
OnSelect = Optional[Callable[[str], None]]

# Soft accents, one per series value
INDIGO = "#5b5bd6"
TEAL = "#2fa4a9"
CORAL = "#e5736a"
AMBER = "#e3a93b"
SAGE = "#6aa86f"
LILAC = "#a07cc5"

PALETTE = [INDIGO, TEAL, CORAL, AMBER, SAGE, LILAC]

# Fixed colors for the fixed-vocabulary charts
LEVEL_COLORS = {"Easy": SAGE, "Medium": AMBER, "Hard": CORAL}
PRIORITY_COLORS = {"High": CORAL, "Medium": AMBER, "Low": TEAL}
STATUS_COLORS = {"Completed": SAGE, "Active": INDIGO}


def _base_chart(title: str = "") -> QChart:
    chart = QChart()
    chart.setBackgroundBrush(QBrush(QColor(styles.SURFACE)))
    chart.setBackgroundRoundness(0)
    chart.setMargins(QMargins(6, 6, 6, 6))
    if title:
        chart.setTitle(title)
        chart.setTitleFont(QFont("Segoe UI", 10, QFont.Weight.DemiBold))
        chart.setTitleBrush(QBrush(QColor(styles.MUTED)))
    chart.legend().setVisible(False)
    chart.setAnimationOptions(QChart.AnimationOption.SeriesAnimations)
    chart.setAnimationDuration(300)
    return chart


def _value_axis(max_value: int) -> QValueAxis:
    axis = QValueAxis()
    axis.setLabelFormat("%d")
    axis.setRange(0, max(1, max_value) * 1.15)
    axis.setTickCount(min(6, max(2, max_value + 1)))
    axis.setLabelsColor(QColor(styles.MUTED))
    axis.setLabelsFont(QFont("Segoe UI", 8))
    axis.setGridLineColor(QColor(styles.BORDER))
    axis.setLineVisible(False)
    axis.setMinorGridLineVisible(False)
    return axis


def _cat_axis(categories: List[str]) -> QBarCategoryAxis:
    axis = QBarCategoryAxis()
    axis.append(categories)
    axis.setLabelsColor(QColor(styles.INK))
    axis.setLabelsFont(QFont("Segoe UI", 8))
    axis.setGridLineVisible(False)
    axis.setLineVisible(False)
    return axis


def make_chart_view(chart: QChart) -> QChartView:
    view = QChartView(chart)
    view.setRenderHint(QPainter.RenderHint.Antialiasing)
    view.setStyleSheet("background: transparent; border: none;")
    view.setMinimumHeight(220)
    view.setCursor(Qt.CursorShape.PointingHandCursor)
    return view


def _empty(chart: QChart, title: str) -> QChartView:
    chart.setTitle(f"{title} (no goals yet)")
    return make_chart_view(chart)


# ── Public chart functions ───────────────────────────────────────────────────

def plot_bars(title: str, counts: Counts, on_select: OnSelect = None,
              colors: Optional[dict] = None, horizontal: bool = False) -> QChartView:
    """One bar per label; each bar gets its own set so it can be colored."""
    chart = _base_chart(title)
    if not counts or not any(c for _, c in counts):
        return _empty(chart, title)

    labels = [label for label, _ in counts]
    series = QHorizontalStackedBarSeries() if horizontal else QStackedBarSeries()
    # Set i only has a value at slot i, so each bar keeps its own color
    for i, (label, count) in enumerate(counts):
        bar_set = QBarSet(label)
        for j in range(len(counts)):
            bar_set.append(count if i == j else 0)
        color = (colors or {}).get(label, PALETTE[i % len(PALETTE)])
        bar_set.setColor(QColor(color))
        bar_set.setBorderColor(QColor(0, 0, 0, 0))
        series.append(bar_set)
    series.setBarWidth(0.6)

    def _hover(status: bool, idx: int, barset: QBarSet) -> None:
        if status and barset.at(idx):
            n = int(barset.at(idx))
            QToolTip.showText(QCursor.pos(), f"{barset.label()}: {n} goal{'s' if n != 1 else ''}")

    def _click(idx: int, barset: QBarSet) -> None:
        if on_select is not None:
            on_select(barset.label())

    series.hovered.connect(_hover)
    series.clicked.connect(_click)
    chart.addSeries(series)

    value_axis = _value_axis(max(c for _, c in counts))
    cat_axis = _cat_axis(labels)
    if horizontal:
        chart.addAxis(value_axis, Qt.AlignmentFlag.AlignBottom)
        chart.addAxis(cat_axis, Qt.AlignmentFlag.AlignLeft)
    else:
        chart.addAxis(cat_axis, Qt.AlignmentFlag.AlignBottom)
        chart.addAxis(value_axis, Qt.AlignmentFlag.AlignLeft)
    series.attachAxis(cat_axis)
    series.attachAxis(value_axis)
    return make_chart_view(chart)


def plot_pie(title: str, counts: Counts, on_select: OnSelect = None,
             colors: Optional[dict] = None) -> QChartView:
    """Donut chart; zero slices are left out."""
    chart = _base_chart(title)
    counts = [(label, n) for label, n in counts if n > 0]
    if not counts:
        return _empty(chart, title)

    chart.legend().setVisible(True)
    chart.legend().setAlignment(Qt.AlignmentFlag.AlignRight)
    chart.legend().setLabelColor(QColor(styles.INK))
    chart.legend().setFont(QFont("Segoe UI", 8))

    series = QPieSeries()
    series.setHoleSize(0.45)
    for i, (label, count) in enumerate(counts):
        pie_slice = series.append(label, count)
        pie_slice.setColor(QColor((colors or {}).get(label, PALETTE[i % len(PALETTE)])))
        pie_slice.setBorderColor(QColor(styles.SURFACE))

    def _hover(pie_slice: QPieSlice, state: bool) -> None:
        pie_slice.setExploded(state)
        if state:
            QToolTip.showText(QCursor.pos(),
                              f"{pie_slice.label()}: {int(pie_slice.value())} "
                              f"({pie_slice.percentage() * 100:.0f}%)")

    def _click(pie_slice: QPieSlice) -> None:
        if on_select is not None:
            on_select(pie_slice.label())

    series.hovered.connect(_hover)
    series.clicked.connect(_click)
    chart.addSeries(series)
    return make_chart_view(chart)
