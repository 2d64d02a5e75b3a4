"""
Main Window — the central hub of Vision Tracker.

Contains:
  - Header: greeting, countdown to the horizon, headline counts, bell
  - Goals tab: search / sort / filter chip and the goal tree grouped by area
  - Dashboard, Archive, Notifications, Strategist and Settings tabs
  - The toast strip and the undo button for removed steps
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Optional, Set, Tuple

from PySide6.QtCore import QPoint, Qt, QThreadPool, QTimer, QUrl, Slot
from PySide6.QtGui import QCloseEvent, QDesktopServices
from PySide6.QtWidgets import (
    QApplication, QComboBox, QDialog, QFrame, QHBoxLayout, QHeaderView,
    QInputDialog, QLabel, QLineEdit, QListWidget, QListWidgetItem, QMainWindow,
    QMenu, QMessageBox, QProgressBar, QPushButton, QTabWidget, QTreeWidget,
    QTreeWidgetItem, QVBoxLayout, QWidget,
)

from src.context import AppContext
from src.data.models import AppNotification, Goal, SubTask
from src.exceptions import VisionTrackerError
from src.services import view_engine as views
from src.services.analytics import headline_counts
from src.services.encouragement import (
    CELEBRATION_TITLE, DEFAULT_GREETING, TIP_FALLBACK, greeting_line,
    pick_celebration,
)
from src.services.notification_service import scan
from src.services.scheduler import Scheduler
from src.ui.chat_widget import ChatWidget
from src.ui.dashboard_widget import DashboardWidget
from src.ui.goal_form import GoalFormDialog
from src.ui.settings_widget import SettingsWidget
from src.ui.welcome_dialog import WelcomeDialog
from src.ui.workers import AdvisoryWorker, submit

logger = logging.getLogger(__name__)

ITEM_ROLE = Qt.ItemDataRole.UserRole

GREETING_CHANNEL = "greeting"
QUOTE_CHANNEL = "quote"
SCAN_CHANNEL = "scan"
ADVICE_CHANNEL = "advice"
TIP_CHANNEL = "tip"

TAB_GOALS = 0
TAB_NOTIFICATIONS = 3


def run_onboarding(ctx: AppContext, parent: Optional[QWidget] = None) -> bool:
    """Show the welcome dialog until it is accepted or cancelled."""
    dialog = WelcomeDialog(parent)
    if dialog.exec() != QDialog.DialogCode.Accepted:
        return False
    ctx.repo.complete_onboarding(dialog.name, dialog.categories)
    return True


class MainWindow(QMainWindow):
    """The main application window."""

    def __init__(self, ctx: AppContext) -> None:
        super().__init__()
        self.ctx = ctx
        self.repo = ctx.repo
        self.view_state = views.ViewState()
        self.setWindowTitle("Vision Tracker")
        self.setMinimumSize(960, 680)
        self.resize(1180, 800)

        self._greeting = DEFAULT_GREETING
        self._expanded_goals: Set[str] = set()
        self._collapsed_areas: Set[str] = set()
        self._pending_undo: Optional[Tuple[str, str]] = None
        self._refreshing = False

        # ── Timers ──────────────────────────────────────────────────────
        cfg = ctx.config
        self.scheduler = Scheduler(
            on_scan=self._run_scan,
            on_tick=self._update_countdown,
            on_toast_expired=self._hide_toast,
            scan_delay_ms=cfg.scan_delay_ms,
            countdown_interval_ms=cfg.countdown_interval_ms,
            toast_duration_ms=cfg.toast_duration_ms,
        )
        self._undo_timer = QTimer(self)
        self._undo_timer.setSingleShot(True)
        self._undo_timer.timeout.connect(self._expire_undo)

        # ── Build UI ────────────────────────────────────────────────────
        self._build_ui()
        self.repo.subscribe(self._on_repo_changed)

        self._refresh_all()
        self._update_countdown()
        self.scheduler.start()
        self._request_greeting()
        self._request_quote()

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(16, 12, 16, 8)
        main_layout.setSpacing(8)

        main_layout.addLayout(self._build_header())
        main_layout.addWidget(self._build_toast())

        self.tabs = QTabWidget()
        main_layout.addWidget(self.tabs, 1)

        self.tabs.addTab(self._build_goals_tab(), "Goals")

        self.dashboard = DashboardWidget(self.ctx.gateway)
        self.dashboard.filter_requested.connect(self._on_filter_requested)
        self.tabs.addTab(self.dashboard, "Dashboard")

        self.archive_list = QListWidget()
        self.archive_list.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.archive_list.customContextMenuRequested.connect(self._on_archive_menu)
        self.tabs.addTab(self.archive_list, "Archive")

        self.tabs.addTab(self._build_notifications_tab(), "Notifications")

        self.chat = ChatWidget(self.ctx.advisory, self.ctx.requests,
                               lambda: self.repo.goals)
        self.tabs.addTab(self.chat, "Strategist")

        self.settings_widget = SettingsWidget(self.repo, self.ctx.gateway)
        self.settings_widget.reset_requested.connect(self._on_reset_requested)
        self.tabs.addTab(self.settings_widget, "Settings")

        # Undo for removed steps lives in the status bar
        self.btn_undo = QPushButton("Undo")
        self.btn_undo.setObjectName("link")
        self.btn_undo.clicked.connect(self._on_undo)
        self.btn_undo.hide()
        self.statusBar().addPermanentWidget(self.btn_undo)

    def _build_header(self) -> QHBoxLayout:
        header = QHBoxLayout()
        left = QVBoxLayout()
        self.greeting_label = QLabel("")
        self.greeting_label.setObjectName("greeting")
        self.greeting_label.setWordWrap(True)
        left.addWidget(self.greeting_label)
        self.counts_label = QLabel("")
        self.counts_label.setObjectName("subtitle")
        left.addWidget(self.counts_label)
        header.addLayout(left, 1)

        self.countdown_label = QLabel("")
        self.countdown_label.setObjectName("countdown")
        header.addWidget(self.countdown_label)

        self.btn_bell = QPushButton("🔔 0")
        self.btn_bell.setToolTip("Notifications")
        self.btn_bell.clicked.connect(lambda: self.tabs.setCurrentIndex(TAB_NOTIFICATIONS))
        header.addWidget(self.btn_bell)
        return header

    def _build_toast(self) -> QFrame:
        self.toast = QFrame()
        self.toast.setObjectName("toast")
        layout = QHBoxLayout(self.toast)
        layout.setContentsMargins(14, 8, 8, 8)
        text_col = QVBoxLayout()
        self.toast_title = QLabel("")
        self.toast_title.setStyleSheet("font-weight: 700;")
        self.toast_message = QLabel("")
        self.toast_message.setWordWrap(True)
        text_col.addWidget(self.toast_title)
        text_col.addWidget(self.toast_message)
        layout.addLayout(text_col, 1)
        close_btn = QPushButton("✕")
        close_btn.setObjectName("link")
        close_btn.clicked.connect(self._hide_toast)
        layout.addWidget(close_btn)
        self.toast.hide()
        return self.toast

    def _build_goals_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(0, 8, 0, 0)

        toolbar = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search goals...")
        self.search_input.setClearButtonEnabled(True)
        self.search_input.textChanged.connect(self._on_search_changed)
        toolbar.addWidget(self.search_input, 1)

        toolbar.addWidget(QLabel("Sort:"))
        self.sort_combo = QComboBox()
        for mode in views.SortMode:
            self.sort_combo.addItem(mode.value, mode)
        self.sort_combo.setCurrentText(views.SortMode.MANUAL.value)
        self.sort_combo.currentIndexChanged.connect(self._on_sort_changed)
        toolbar.addWidget(self.sort_combo)

        self.filter_chip = QPushButton("")
        self.filter_chip.setObjectName("chip")
        self.filter_chip.setToolTip("Clear this filter")
        self.filter_chip.clicked.connect(self._on_clear_filter)
        self.filter_chip.hide()
        toolbar.addWidget(self.filter_chip)

        reset_btn = QPushButton("Reset view")
        reset_btn.setObjectName("link")
        reset_btn.clicked.connect(self._on_reset_view)
        toolbar.addWidget(reset_btn)

        new_btn = QPushButton("New goal")
        new_btn.setObjectName("primary")
        new_btn.clicked.connect(lambda: self._open_goal_form())
        toolbar.addWidget(new_btn)
        layout.addLayout(toolbar)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(5)
        self.tree.setHeaderLabels(["Goal", "Progress", "Priority", "Difficulty", "Deadline"])
        self.tree.header().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        for col in range(1, 5):
            self.tree.header().setSectionResizeMode(col, QHeaderView.ResizeMode.ResizeToContents)
        self.tree.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._on_tree_menu)
        self.tree.itemChanged.connect(self._on_item_changed)
        self.tree.itemDoubleClicked.connect(self._on_item_double_clicked)
        self.tree.itemExpanded.connect(lambda item: self._remember_expansion(item, True))
        self.tree.itemCollapsed.connect(lambda item: self._remember_expansion(item, False))
        layout.addWidget(self.tree)
        return widget

    def _build_notifications_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        self.notification_list = QListWidget()
        layout.addWidget(self.notification_list)
        row = QHBoxLayout()
        row.addStretch()
        dismiss_btn = QPushButton("Dismiss")
        dismiss_btn.clicked.connect(self._on_dismiss_notification)
        row.addWidget(dismiss_btn)
        clear_btn = QPushButton("Clear all")
        clear_btn.clicked.connect(self._on_clear_notifications)
        row.addWidget(clear_btn)
        layout.addLayout(row)
        return widget

    # ── Refresh ─────────────────────────────────────────────────────────

    def _on_repo_changed(self, _repo) -> None:
        self._refresh_all()
        self.scheduler.schedule_scan()

    def _refresh_all(self) -> None:
        goals = self.repo.goals
        counts = headline_counts(goals)
        self.counts_label.setText(
            f"{counts['active']} active goals · {counts['completed']} completed"
        )
        self._update_greeting()
        self._refresh_goals()
        self._refresh_archive()
        self._refresh_notifications()
        self.dashboard.refresh([g for g in goals if not g.archived], self.repo.area_order)
        self.settings_widget.refresh()

    def _refresh_goals(self) -> None:
        state = self.view_state
        grouped = views.group_for_view(self.repo.goals, self.repo.area_order, state)
        now = datetime.now()

        self.filter_chip.setVisible(state.goal_filter is not None)
        if state.goal_filter is not None:
            self.filter_chip.setText(f"✕ {state.goal_filter.label()}")

        self._refreshing = True
        self.tree.setUpdatesEnabled(False)
        try:
            self.tree.clear()
            for area, bucket in grouped.items():
                self._add_area_item(area, bucket, now)
        finally:
            self.tree.setUpdatesEnabled(True)
            self._refreshing = False

    def _add_area_item(self, area: str, bucket, now: datetime) -> None:
        summary = views.area_summary(bucket)
        item = QTreeWidgetItem([area])
        item.setData(0, ITEM_ROLE, ("area", area, None))
        item.setToolTip(0, f"Goals {summary.total} · Progress {summary.in_progress} "
                           f"· Done {summary.done}")
        item.setText(1, f"{summary.total} goals · {summary.in_progress} moving")
        font = item.font(0)
        font.setBold(True)
        font.setPointSize(font.pointSize() + 1)
        item.setFont(0, font)
        self.tree.addTopLevelItem(item)

        for goal in bucket:
            self._add_goal_item(item, goal, now)
        item.setExpanded(area not in self._collapsed_areas)

    def _add_goal_item(self, parent: QTreeWidgetItem, goal: Goal, now: datetime) -> None:
        snap = views.progress_snapshot(goal, now)
        title = ("📌 " if goal.pinned else "") + goal.title
        item = QTreeWidgetItem(parent, [title, "", goal.priority.value, goal.level.value,
                                        self._deadline_text(goal, now)])
        item.setData(0, ITEM_ROLE, ("goal", goal.id, None))
        if goal.description:
            item.setToolTip(0, goal.description)
        if views.matches_filter(goal, self.view_state.goal_filter):
            font = item.font(0)
            font.setBold(True)
            item.setFont(0, font)

        bar = QProgressBar()
        bar.setRange(0, 100)
        bar.setValue(snap.displayed)
        label = f"{snap.displayed}%"
        if snap.steps_total:
            label += f"  ({snap.steps_done}/{snap.steps_total})"
        if snap.ahead_of_schedule:
            label += "  ahead of schedule"
            bar.setToolTip(f"{snap.raw}% of where the calendar says you should be")
        bar.setFormat(label)
        bar.setMaximumHeight(16)
        self.tree.setItemWidget(item, 1, bar)

        for task in goal.active_sub_tasks:
            self._add_subtask_item(item, goal, task)
        item.setExpanded(goal.id in self._expanded_goals)

    def _add_subtask_item(self, parent: QTreeWidgetItem, goal: Goal, task: SubTask) -> None:
        progress = f"{task.current_progress}/{task.effective_target}" if task.target_progress > 1 else ""
        item = QTreeWidgetItem(parent, [task.text, progress, "", task.level.value, ""])
        item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
        item.setCheckState(0, Qt.CheckState.Checked if task.completed else Qt.CheckState.Unchecked)
        item.setData(0, ITEM_ROLE, ("subtask", goal.id, task.id))
        if task.tip:
            item.setToolTip(0, task.tip)

    @staticmethod
    def _deadline_text(goal: Goal, now: datetime) -> str:
        days = views.days_left(goal, now)
        if days is None:
            return ""
        if days < 0:
            return "Overdue"
        if days == 0:
            return "Due today"
        return f"{days} day{'s' if days != 1 else ''} left"

    def _refresh_archive(self) -> None:
        self.archive_list.clear()
        for goal in views.archived_goals(self.repo.goals):
            if goal.completed and goal.completed_at:
                status = f"completed {goal.completed_at:%b %d, %Y}"
            else:
                status = "archived"
            item = QListWidgetItem(f"{goal.title}  ·  {goal.area}  ·  {status}")
            item.setData(ITEM_ROLE, goal.id)
            self.archive_list.addItem(item)

    def _refresh_notifications(self) -> None:
        center = self.ctx.notifications
        self.notification_list.clear()
        for n in center.items:
            item = QListWidgetItem(f"{n.title}\n{n.message}")
            item.setData(ITEM_ROLE, n.id)
            self.notification_list.addItem(item)
        self.btn_bell.setText(f"🔔 {len(center)}")

    def _update_greeting(self) -> None:
        self.greeting_label.setText(greeting_line(self.repo.profile.name, self._greeting))

    @Slot()
    def _update_countdown(self) -> None:
        left = views.countdown(self.ctx.config.horizon)
        self.countdown_label.setText(
            f"{left.days}d {left.hours}h {left.mins}m left in {self.ctx.config.horizon.year}"
        )

    def _remember_expansion(self, item: QTreeWidgetItem, expanded: bool) -> None:
        if self._refreshing:
            return
        kind, key, _ = item.data(0, ITEM_ROLE)
        if kind == "goal":
            (self._expanded_goals.add if expanded else self._expanded_goals.discard)(key)
        elif kind == "area":
            (self._collapsed_areas.discard if expanded else self._collapsed_areas.add)(key)

    # ── View state ──────────────────────────────────────────────────────

    @Slot(str)
    def _on_search_changed(self, text: str) -> None:
        self.view_state.query = text
        self._refresh_goals()

    @Slot(int)
    def _on_sort_changed(self, _index: int) -> None:
        self.view_state.sort_mode = self.sort_combo.currentData()
        self._refresh_goals()

    @Slot(object)
    def _on_filter_requested(self, goal_filter: views.GoalFilter) -> None:
        self.view_state.goal_filter = goal_filter
        self._refresh_goals()
        self.tabs.setCurrentIndex(TAB_GOALS)

    @Slot()
    def _on_clear_filter(self) -> None:
        self.view_state.goal_filter = None
        self._refresh_goals()

    @Slot()
    def _on_reset_view(self) -> None:
        self.view_state.reset()
        self.search_input.blockSignals(True)
        self.search_input.clear()
        self.search_input.blockSignals(False)
        self.sort_combo.blockSignals(True)
        self.sort_combo.setCurrentText(self.view_state.sort_mode.value)
        self.sort_combo.blockSignals(False)
        self._refresh_goals()

    # ── Goal actions ────────────────────────────────────────────────────

    def _guard(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a repository call; show validation problems instead of raising."""
        try:
            return fn(*args, **kwargs)
        except VisionTrackerError as exc:
            logger.warning("Action failed: %s", exc)
            QMessageBox.warning(self, "Vision Tracker", str(exc))
            return None

    def _open_goal_form(self, goal: Optional[Goal] = None,
                        default_area: Optional[str] = None) -> None:
        dialog = GoalFormDialog(
            self.repo.profile.categories, self.ctx.advisory, self.ctx.requests,
            goal=goal, default_area=default_area, parent=self,
        )
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        values = dialog.values()
        if goal is None:
            self._guard(self.repo.add_goal, **values)
        else:
            self._guard(self.repo.update_goal, goal.id, **values)

    def _complete_goal(self, goal_id: str) -> None:
        done = self._guard(self.repo.toggle_complete, goal_id)
        if done:
            QMessageBox.information(self, CELEBRATION_TITLE, pick_celebration())

    def _delete_goal(self, goal: Goal) -> None:
        reply = QMessageBox.question(
            self, "Delete goal",
            f'Delete "{goal.title}" for good?',
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self._guard(self.repo.delete_goal, goal.id)

    def _add_step(self, goal: Goal) -> None:
        text, ok = QInputDialog.getText(self, "New step", f"Next step for \"{goal.title}\":")
        if ok and text.strip():
            self._expanded_goals.add(goal.id)
            self._guard(self.repo.add_subtask, goal.id, text)

    def _open_calendar(self, goal: Goal) -> None:
        url = views.calendar_event_url(goal)
        if url:
            QDesktopServices.openUrl(QUrl(url))

    def _remove_step(self, goal_id: str, subtask_id: str) -> None:
        if self._pending_undo and self._pending_undo[0] != goal_id:
            self._expire_undo()
        if self._guard(self.repo.remove_subtask, goal_id, subtask_id) is None:
            return
        self._pending_undo = (goal_id, subtask_id)
        self.statusBar().showMessage("Step removed.", self.ctx.config.toast_duration_ms)
        self.btn_undo.show()
        self._undo_timer.start(self.ctx.config.toast_duration_ms)

    @Slot()
    def _on_undo(self) -> None:
        if self._pending_undo is None:
            return
        goal_id, subtask_id = self._pending_undo
        self._pending_undo = None
        self._undo_timer.stop()
        self.btn_undo.hide()
        self.statusBar().clearMessage()
        self._guard(self.repo.restore_subtask, goal_id, subtask_id)

    @Slot()
    def _expire_undo(self) -> None:
        pending, self._pending_undo = self._pending_undo, None
        self._undo_timer.stop()
        self.btn_undo.hide()
        if pending is not None:
            self._guard(self.repo.compact_subtasks, pending[0])

    # ── Tree interaction ────────────────────────────────────────────────

    @Slot(QTreeWidgetItem, int)
    def _on_item_changed(self, item: QTreeWidgetItem, column: int) -> None:
        if self._refreshing or column != 0:
            return
        kind, goal_id, subtask_id = item.data(0, ITEM_ROLE)
        if kind == "subtask":
            # Rebuilding the tree inside itemChanged is unsafe; defer it
            QTimer.singleShot(0, lambda: self._guard(self.repo.toggle_subtask, goal_id, subtask_id))

    @Slot(QTreeWidgetItem, int)
    def _on_item_double_clicked(self, item: QTreeWidgetItem, _column: int) -> None:
        kind, goal_id, _ = item.data(0, ITEM_ROLE)
        if kind == "goal":
            self._open_goal_form(self.repo.get_goal(goal_id))

    @Slot(QPoint)
    def _on_tree_menu(self, pos: QPoint) -> None:
        item = self.tree.itemAt(pos)
        if item is None:
            return
        kind, key, subtask_id = item.data(0, ITEM_ROLE)
        menu = QMenu(self)
        if kind == "area":
            self._fill_area_menu(menu, key)
        elif kind == "goal":
            self._fill_goal_menu(menu, self.repo.get_goal(key))
        else:
            goal = self.repo.get_goal(key)
            task = next(t for t in goal.sub_tasks if t.id == subtask_id)
            self._fill_subtask_menu(menu, goal, task)
        menu.exec(self.tree.viewport().mapToGlobal(pos))

    def _fill_area_menu(self, menu: QMenu, area: str) -> None:
        menu.addAction("New goal here...", lambda: self._open_goal_form(default_area=area))
        index = self.repo.area_order.index(area)
        menu.addAction("Move area up", lambda: self._guard(self.repo.move_area, area, index - 1))
        menu.addAction("Move area down", lambda: self._guard(self.repo.move_area, area, index + 1))

    def _fill_goal_menu(self, menu: QMenu, goal: Goal) -> None:
        menu.addAction("Edit...", lambda: self._open_goal_form(goal))
        menu.addAction("Add step...", lambda: self._add_step(goal))
        menu.addAction("Unpin" if goal.pinned else "Pin",
                       lambda: self._guard(self.repo.toggle_pinned, goal.id))
        menu.addAction("Ask for advice", lambda: self._request_advice(goal))
        if goal.deadline is not None:
            menu.addAction("Add to Google Calendar", lambda: self._open_calendar(goal))
        menu.addSeparator()
        menu.addAction("Mark complete", lambda: self._complete_goal(goal.id))
        menu.addAction("Archive", lambda: self._guard(self.repo.toggle_archived, goal.id))
        menu.addAction("Delete...", lambda: self._delete_goal(goal))

    def _fill_subtask_menu(self, menu: QMenu, goal: Goal, task: SubTask) -> None:
        menu.addAction("Mark not done" if task.completed else "Mark done",
                       lambda: self._guard(self.repo.toggle_subtask, goal.id, task.id))
        if task.target_progress > 1:
            menu.addAction("+1 check-in",
                           lambda: self._guard(self.repo.adjust_subtask_progress, goal.id, task.id, 1))
            menu.addAction("-1 check-in",
                           lambda: self._guard(self.repo.adjust_subtask_progress, goal.id, task.id, -1))
        menu.addAction("Get a tip", lambda: self._request_tip(goal, task))
        menu.addSeparator()
        menu.addAction("Remove step", lambda: self._remove_step(goal.id, task.id))

    # ── Archive & notifications ─────────────────────────────────────────

    @Slot(QPoint)
    def _on_archive_menu(self, pos: QPoint) -> None:
        item = self.archive_list.itemAt(pos)
        if item is None:
            return
        goal = self.repo.get_goal(item.data(ITEM_ROLE))
        menu = QMenu(self)
        if goal.completed:
            menu.addAction("Reactivate", lambda: self._guard(self.repo.toggle_complete, goal.id))
        else:
            menu.addAction("Restore", lambda: self._guard(self.repo.toggle_archived, goal.id))
        menu.addAction("Delete...", lambda: self._delete_goal(goal))
        menu.exec(self.archive_list.viewport().mapToGlobal(pos))

    @Slot()
    def _on_dismiss_notification(self) -> None:
        item = self.notification_list.currentItem()
        if item is not None:
            self.ctx.notifications.dismiss(item.data(ITEM_ROLE))
            self._refresh_notifications()

    @Slot()
    def _on_clear_notifications(self) -> None:
        self.ctx.notifications.clear()
        self._hide_toast()
        self._refresh_notifications()

    def _show_toast(self, notification: AppNotification) -> None:
        self.toast_title.setText(notification.title)
        self.toast_message.setText(notification.message)
        self.toast.show()
        self.scheduler.show_toast()

    @Slot()
    def _hide_toast(self) -> None:
        self.scheduler.cancel_toast()
        self.toast.hide()

    # ── Advisory (background) ───────────────────────────────────────────

    def _submit(self, channel: str, fn: Callable[..., Any], *args, **kwargs) -> None:
        token = self.ctx.requests.begin(channel)
        worker = AdvisoryWorker(channel, token, fn, *args, **kwargs)
        worker.signals.finished.connect(self._on_advisory_done)
        worker.signals.failed.connect(self._on_advisory_failed)
        submit(worker)

    def _request_greeting(self) -> None:
        name = self.repo.profile.name
        if name:
            self._submit(GREETING_CHANNEL, self.ctx.advisory.daily_greeting, name)

    def _request_quote(self) -> None:
        self._submit(QUOTE_CHANNEL, self.ctx.advisory.daily_quote)

    def _request_advice(self, goal: Goal) -> None:
        self.statusBar().showMessage(f'Thinking about "{goal.title}"...')
        self._submit(ADVICE_CHANNEL, self.ctx.advisory.goal_advice,
                     goal.title, goal.description,
                     fallback="The assistant is resting right now. Try again in a bit.")

    def _request_tip(self, goal: Goal, task: SubTask) -> None:
        self._submit(TIP_CHANNEL, self._fetch_tip, goal.id, task.id, task.text)

    def _fetch_tip(self, goal_id: str, subtask_id: str, text: str) -> Tuple[str, str, str]:
        return goal_id, subtask_id, self.ctx.advisory.single_task_tip(text, fallback=TIP_FALLBACK)

    @Slot()
    def _run_scan(self) -> None:
        goals = list(self.repo.goals)
        now = datetime.now()
        nudge = self.ctx.advisory.friendly_nudge
        self._submit(SCAN_CHANNEL, scan, goals, now, nudge_writer=nudge)

    @Slot(str, int, object)
    def _on_advisory_done(self, channel: str, token: int, result: object) -> None:
        if not self.ctx.requests.is_current(channel, token):
            return
        if channel == GREETING_CHANNEL:
            self._greeting = str(result)
            self._update_greeting()
        elif channel == QUOTE_CHANNEL:
            self.dashboard.set_quote(result)
        elif channel == SCAN_CHANNEL:
            fresh = self.ctx.notifications.merge(result)
            self._refresh_notifications()
            if self.ctx.notifications.toast_candidate is not None and fresh:
                self._show_toast(self.ctx.notifications.toast_candidate)
        elif channel == ADVICE_CHANNEL:
            self.statusBar().clearMessage()
            QMessageBox.information(self, "A few ideas", str(result))
        elif channel == TIP_CHANNEL:
            goal_id, subtask_id, tip = result
            self._save_tip(goal_id, subtask_id, tip)

    @Slot(str, int, str)
    def _on_advisory_failed(self, channel: str, token: int, message: str) -> None:
        if not self.ctx.requests.is_current(channel, token):
            return
        self.statusBar().showMessage("The assistant is unavailable right now.", 5000)

    def _save_tip(self, goal_id: str, subtask_id: str, tip: str) -> None:
        try:
            goal = self.repo.get_goal(goal_id)
        except VisionTrackerError:
            return
        tasks = [replace(t, tip=tip) if t.id == subtask_id else t
                 for t in goal.sub_tasks]
        self._guard(self.repo.update_goal, goal_id, sub_tasks=tasks)
        self.statusBar().showMessage(f"Tip: {tip}", 10000)

    # ── Reset / close ───────────────────────────────────────────────────

    @Slot()
    def _on_reset_requested(self) -> None:
        self._expire_undo()
        self.ctx.reset()
        self.view_state.reset()
        self.dashboard.reload_preferences()
        self._greeting = DEFAULT_GREETING
        if not run_onboarding(self.ctx, self):
            self.close()
            return
        self._refresh_all()
        self._request_greeting()

    def closeEvent(self, event: QCloseEvent) -> None:
        self._expire_undo()
        self.scheduler.stop_all()
        self.ctx.requests.invalidate(SCAN_CHANNEL)
        QThreadPool.globalInstance().waitForDone(3000)
        self.ctx.close()
        logger.info("Main window closed.")
        event.accept()
        QApplication.quit()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The window the user lives in. It renders what the view engine derives
#   from the repository and turns clicks into repository operations.
#
# Data flow:
#   click → GoalRepository operation → persisted → listeners notified →
#   _on_repo_changed() rebuilds the tree, archive, dashboard and settings
#   and re-arms the notification scan (5 s after the last change).
#
# Interviewer-friendly talking points:
#   1. The window holds no goal state of its own; it only holds the
#      transient ViewState (search, filter, sort) and UI niceties like which
#      tree nodes are expanded.
#   2. Network calls run on QThreadPool workers. Each request takes a token
#      from RequestTracker; late or superseded answers are dropped.
#   3. Removing a step is a soft delete with an Undo button; once the undo
#      window closes the tombstone is purged.
