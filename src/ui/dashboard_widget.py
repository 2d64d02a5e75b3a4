"""
Dashboard Widget — headline numbers plus four clickable charts.

Clicking a bar or slice emits filter_requested with the matching
GoalFilter; the main window applies it and jumps to the goal list. Layout
preferences (boards vs grid, collapsed, pinned charts, chart order) are
cosmetic and stored through the gateway.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from PySide6.QtCore import Signal, Slot
from PySide6.QtWidgets import (
    QFrame, QGridLayout, QHBoxLayout, QLabel, QPushButton, QScrollArea,
    QSizePolicy, QVBoxLayout, QWidget,
)
from PySide6.QtCharts import QChartView

from src.data.gateway import (
    DASHBOARD_COLLAPSED_KEY, DASHBOARD_VIEW_KEY, PINNED_WIDGETS_KEY,
    WIDGET_ORDER_KEY, PersistenceGateway,
)
from src.data.models import Goal
from src.services.analytics import GoalStats, compute_stats
from src.services.encouragement import Quote
from src.services.view_engine import FilterType, GoalFilter
from src.ui import plot_backend, styles

logger = logging.getLogger(__name__)

LIFE_FOCUS = "LIFE_FOCUS"
EXECUTION = "EXECUTION"
DIFFICULTY = "DIFFICULTY"
PRIORITY = "PRIORITY"
DEFAULT_WIDGET_ORDER = [LIFE_FOCUS, EXECUTION, DIFFICULTY, PRIORITY]

VIEW_BOARDS = "CAROUSEL"
VIEW_GRID = "GRID"

WIDGET_TITLES = {
    LIFE_FOCUS: "Life focus",
    EXECUTION: "Completion rate",
    DIFFICULTY: "Goals intensity",
    PRIORITY: "Priority goals",
}


class MetricCard(QFrame):
    """Big number over a small caption."""

    def __init__(self, label: str, accent: str = styles.ACCENT,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setFixedHeight(68)
        self.setStyleSheet(f"""
            MetricCard {{
                background-color: {styles.SURFACE};
                border: 1px solid {styles.BORDER};
                border-radius: 12px;
            }}
        """)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 8, 14, 8)
        layout.setSpacing(0)

        self.value_label = QLabel("-")
        self.value_label.setStyleSheet(f"font-size: 20px; font-weight: 700; color: {accent};")
        name = QLabel(label)
        name.setObjectName("subtitle")
        layout.addWidget(self.value_label)
        layout.addWidget(name)

    def set_value(self, text: str) -> None:
        self.value_label.setText(text)


class ChartCard(QFrame):
    """One chart with its pin and reorder controls."""

    pin_toggled = Signal(str)
    move_requested = Signal(str, int)

    def __init__(self, widget_id: str, pinned: bool,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.widget_id = widget_id
        border = styles.ACCENT if pinned else styles.BORDER
        self.setStyleSheet(f"""
            ChartCard {{
                background-color: {styles.SURFACE};
                border: {2 if pinned else 1}px solid {border};
                border-radius: 14px;
            }}
        """)
        self.setMinimumWidth(300)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 8)
        layout.setSpacing(4)

        header = QHBoxLayout()
        title = QLabel(WIDGET_TITLES[widget_id])
        title.setStyleSheet("font-weight: 700;")
        header.addWidget(title)
        header.addStretch()
        for text, delta in (("◀", -1), ("▶", 1)):
            btn = QPushButton(text)
            btn.setObjectName("link")
            btn.setToolTip("Move this chart")
            btn.clicked.connect(lambda _=False, d=delta: self.move_requested.emit(self.widget_id, d))
            header.addWidget(btn)
        pin = QPushButton("Unpin" if pinned else "Pin")
        pin.setObjectName("link")
        pin.clicked.connect(lambda: self.pin_toggled.emit(self.widget_id))
        header.addWidget(pin)
        layout.addLayout(header)

    def set_chart(self, view: QChartView) -> None:
        self.layout().addWidget(view)


class DashboardWidget(QWidget):
    """Goal analytics: metric cards and the four charts."""

    filter_requested = Signal(object)

    def __init__(self, gateway: PersistenceGateway,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.gateway = gateway
        self._goals: List[Goal] = []
        self._area_order: List[str] = []
        self.load_preferences()
        self._setup_ui()

    # ── Preferences ─────────────────────────────────────────────────────

    def load_preferences(self) -> None:
        view = self.gateway.get_json(DASHBOARD_VIEW_KEY, VIEW_BOARDS)
        self.view_mode = view if view in (VIEW_BOARDS, VIEW_GRID) else VIEW_BOARDS
        self.collapsed = bool(self.gateway.get_json(DASHBOARD_COLLAPSED_KEY, False))

        pins = self.gateway.get_json(PINNED_WIDGETS_KEY, [])
        self.pinned = [p for p in pins if p in DEFAULT_WIDGET_ORDER] if isinstance(pins, list) else []

        order = self.gateway.get_json(WIDGET_ORDER_KEY, DEFAULT_WIDGET_ORDER)
        if not isinstance(order, list):
            order = []
        order = [w for w in order if w in DEFAULT_WIDGET_ORDER]
        self.widget_order = order + [w for w in DEFAULT_WIDGET_ORDER if w not in order]

    def reload_preferences(self) -> None:
        """Re-read layout preferences, e.g. after the data was reset."""
        self.load_preferences()
        self._sync_header()

    # ── UI Construction ─────────────────────────────────────────────────

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(16, 12, 16, 12)
        outer.setSpacing(10)

        self.quote_label = QLabel("")
        self.quote_label.setObjectName("quote")
        self.quote_label.setWordWrap(True)
        outer.addWidget(self.quote_label)

        cards = QHBoxLayout()
        cards.setSpacing(8)
        self.card_total = MetricCard("goals on the board")
        self.card_active = MetricCard("in progress", styles.WARNING)
        self.card_done = MetricCard("completed", styles.SUCCESS)
        self.card_rate = MetricCard("completion rate")
        for c in (self.card_total, self.card_active, self.card_done, self.card_rate):
            cards.addWidget(c)
        outer.addLayout(cards)

        # Header: collapse toggle + view switch
        header = QHBoxLayout()
        self.btn_collapse = QPushButton()
        self.btn_collapse.setObjectName("link")
        self.btn_collapse.clicked.connect(self._on_toggle_collapse)
        header.addWidget(self.btn_collapse)
        header.addStretch()
        self.btn_boards = QPushButton("Boards")
        self.btn_boards.clicked.connect(lambda: self._set_view(VIEW_BOARDS))
        self.btn_grid = QPushButton("Grid")
        self.btn_grid.clicked.connect(lambda: self._set_view(VIEW_GRID))
        header.addWidget(self.btn_boards)
        header.addWidget(self.btn_grid)
        outer.addLayout(header)

        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        outer.addWidget(self.scroll, 1)

        hint = QLabel("Tip: click any bar or slice to filter your goals.")
        hint.setObjectName("subtitle")
        outer.addWidget(hint)

        self._sync_header()

    def _sync_header(self) -> None:
        self.btn_collapse.setText("▸ Goals analytics" if self.collapsed else "▾ Goals analytics")
        self.btn_boards.setObjectName("primary" if self.view_mode == VIEW_BOARDS else "")
        self.btn_grid.setObjectName("primary" if self.view_mode == VIEW_GRID else "")
        for btn in (self.btn_boards, self.btn_grid):
            btn.setVisible(not self.collapsed)
            btn.style().unpolish(btn)
            btn.style().polish(btn)
        self.scroll.setVisible(not self.collapsed)

    # ── Data ────────────────────────────────────────────────────────────

    def refresh(self, goals: Iterable[Goal], area_order: Sequence[str]) -> None:
        """Recompute stats for the given (non-archived) goals and redraw."""
        self._goals = list(goals)
        self._area_order = list(area_order)
        stats = compute_stats(self._goals, self._area_order)

        self.card_total.set_value(str(stats.total))
        self.card_active.set_value(str(stats.active))
        self.card_done.set_value(str(stats.completed))
        self.card_rate.set_value(f"{stats.completion_rate}%")

        self._rebuild_charts(stats)
        logger.debug("Dashboard refreshed: %d goals", stats.total)

    def set_quote(self, quote: Quote) -> None:
        self.quote_label.setText(f"“{quote.text}”  — {quote.author}")

    def _rebuild_charts(self, stats: GoalStats) -> None:
        container = QWidget()
        if self.view_mode == VIEW_GRID:
            grid = QGridLayout(container)
            grid.setSpacing(10)
            for i, widget_id in enumerate(self.widget_order):
                grid.addWidget(self._make_card(widget_id, stats), i // 2, i % 2)
        else:
            row = QHBoxLayout(container)
            row.setSpacing(10)
            for widget_id in self.widget_order:
                row.addWidget(self._make_card(widget_id, stats))
        self.scroll.setWidget(container)

    def _make_card(self, widget_id: str, stats: GoalStats) -> ChartCard:
        card = ChartCard(widget_id, widget_id in self.pinned)
        card.pin_toggled.connect(self._on_pin_toggled)
        card.move_requested.connect(self._on_move_requested)
        card.set_chart(self._make_chart(widget_id, stats))
        return card

    def _make_chart(self, widget_id: str, stats: GoalStats) -> QChartView:
        if widget_id == LIFE_FOCUS:
            return plot_backend.plot_pie(
                "Goals per life area", stats.by_area,
                on_select=lambda v: self._emit_filter(FilterType.AREA, v))
        if widget_id == EXECUTION:
            return plot_backend.plot_pie(
                f"{stats.completion_rate}% done", stats.by_status,
                on_select=lambda v: self._emit_filter(FilterType.STATUS, v),
                colors=plot_backend.STATUS_COLORS)
        if widget_id == DIFFICULTY:
            return plot_backend.plot_bars(
                "By difficulty", stats.by_difficulty,
                on_select=lambda v: self._emit_filter(FilterType.DIFFICULTY, v),
                colors=plot_backend.LEVEL_COLORS)
        return plot_backend.plot_bars(
            "By priority", stats.by_priority,
            on_select=lambda v: self._emit_filter(FilterType.PRIORITY, v),
            colors=plot_backend.PRIORITY_COLORS, horizontal=True)

    def _emit_filter(self, kind: FilterType, value: str) -> None:
        logger.info("Dashboard filter picked: %s=%s", kind.value, value)
        self.filter_requested.emit(GoalFilter(kind, value))

    # ── Slots ───────────────────────────────────────────────────────────

    @Slot()
    def _on_toggle_collapse(self) -> None:
        self.collapsed = not self.collapsed
        self.gateway.set_json(DASHBOARD_COLLAPSED_KEY, self.collapsed)
        self._sync_header()

    def _set_view(self, mode: str) -> None:
        if mode == self.view_mode:
            return
        self.view_mode = mode
        self.gateway.set_json(DASHBOARD_VIEW_KEY, mode)
        self._sync_header()
        self.refresh(self._goals, self._area_order)

    @Slot(str)
    def _on_pin_toggled(self, widget_id: str) -> None:
        if widget_id in self.pinned:
            self.pinned = [p for p in self.pinned if p != widget_id]
        else:
            self.pinned = self.pinned + [widget_id]
        self.gateway.set_json(PINNED_WIDGETS_KEY, self.pinned)
        self.refresh(self._goals, self._area_order)

    @Slot(str, int)
    def _on_move_requested(self, widget_id: str, delta: int) -> None:
        order = list(self.widget_order)
        i = order.index(widget_id)
        j = max(0, min(len(order) - 1, i + delta))
        if i == j:
            return
        order.insert(j, order.pop(i))
        self.widget_order = order
        self.gateway.set_json(WIDGET_ORDER_KEY, order)
        self.refresh(self._goals, self._area_order)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The analytics tab. Four numbers at the top, then four charts (area
#   pie, completion donut, difficulty bars, priority bars) that double as
#   filter pickers for the goal list.
#
# Key design decisions:
#   - The widget never reads goals itself. The window passes the
#     non-archived set in refresh(), the same one the goal list groups.
#   - Charts are rebuilt on every refresh instead of updated in place:
#     the data is tiny and rebuilding keeps the code straightforward.
#   - Layout preferences go through the gateway like everything else, so
#     "Reset all data" clears them too.
