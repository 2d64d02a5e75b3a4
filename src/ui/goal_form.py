"""
Goal Form — create / edit dialog with AI helpers.

The "Break it down" and "Polish description" buttons run on the thread
pool; answers that arrive after the user closed the dialog or asked again
are discarded through the shared RequestTracker.
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QDate, Qt, Slot
from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QDateEdit, QDialog, QDialogButtonBox,
    QDoubleSpinBox, QFormLayout, QHBoxLayout, QLabel, QLineEdit, QListWidget,
    QListWidgetItem, QMessageBox, QPushButton, QSpinBox, QTextEdit,
    QVBoxLayout, QWidget,
)

from src.data.models import Goal, GoalLevel, GoalPriority, SubTask
from src.services.advisory import AdvisoryClient, RequestTracker
from src.ui.workers import AdvisoryWorker, submit

logger = logging.getLogger(__name__)

BREAKDOWN_CHANNEL = "form.breakdown"
DESCRIPTION_CHANNEL = "form.description"


class GoalFormDialog(QDialog):
    """Edits every user-facing field of a goal, including its steps."""

    def __init__(
        self,
        areas: List[str],
        advisory: AdvisoryClient,
        requests: RequestTracker,
        goal: Optional[Goal] = None,
        default_area: Optional[str] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.advisory = advisory
        self.requests = requests
        self.goal = goal
        self.setWindowTitle("Edit goal" if goal else "New goal")
        self.setMinimumWidth(520)
        self._build_ui(areas, default_area)
        if goal is not None:
            self._load(goal)

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self, areas: List[str], default_area: Optional[str]) -> None:
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.title_input = QLineEdit()
        self.title_input.setPlaceholderText("e.g. Run a half marathon")
        form.addRow("Title:", self.title_input)

        desc_col = QVBoxLayout()
        self.desc_input = QTextEdit()
        self.desc_input.setPlaceholderText("Why does this matter? How will you start?")
        self.desc_input.setFixedHeight(80)
        desc_col.addWidget(self.desc_input)
        self.btn_describe = QPushButton("Polish description with AI")
        self.btn_describe.setObjectName("link")
        self.btn_describe.clicked.connect(self._on_suggest_description)
        desc_col.addWidget(self.btn_describe, 0, Qt.AlignmentFlag.AlignRight)
        form.addRow("Description:", desc_col)

        self.area_combo = QComboBox()
        self.area_combo.addItems(areas)
        if default_area and default_area in areas:
            self.area_combo.setCurrentText(default_area)
        form.addRow("Life area:", self.area_combo)

        self.level_combo = QComboBox()
        for lvl in GoalLevel:
            self.level_combo.addItem(lvl.value, lvl)
        self.level_combo.setCurrentText(GoalLevel.MEDIUM.value)
        form.addRow("Difficulty:", self.level_combo)

        self.priority_combo = QComboBox()
        for p in GoalPriority:
            self.priority_combo.addItem(p.value, p)
        self.priority_combo.setCurrentText(GoalPriority.MEDIUM.value)
        form.addRow("Priority:", self.priority_combo)

        deadline_row = QHBoxLayout()
        self.deadline_check = QCheckBox("Has a deadline")
        self.deadline_edit = QDateEdit()
        self.deadline_edit.setCalendarPopup(True)
        self.deadline_edit.setDate(QDate.currentDate().addMonths(1))
        self.deadline_edit.setEnabled(False)
        self.deadline_check.toggled.connect(self.deadline_edit.setEnabled)
        deadline_row.addWidget(self.deadline_check)
        deadline_row.addWidget(self.deadline_edit)
        deadline_row.addStretch()
        form.addRow("Deadline:", deadline_row)

        self.cost_input = QDoubleSpinBox()
        self.cost_input.setRange(0, 10_000_000)
        self.cost_input.setDecimals(2)
        form.addRow("Estimated cost:", self.cost_input)

        self.pinned_check = QCheckBox("Pin to the top of its area")
        form.addRow("", self.pinned_check)
        layout.addLayout(form)

        # ── Steps ───────────────────────────────────────────────────
        steps_header = QHBoxLayout()
        steps_header.addWidget(QLabel("Steps"))
        steps_header.addStretch()
        self.btn_breakdown = QPushButton("Break it down with AI")
        self.btn_breakdown.clicked.connect(self._on_breakdown)
        steps_header.addWidget(self.btn_breakdown)
        layout.addLayout(steps_header)

        self.steps_list = QListWidget()
        self.steps_list.setMinimumHeight(140)
        layout.addWidget(self.steps_list)

        add_row = QHBoxLayout()
        self.step_input = QLineEdit()
        self.step_input.setPlaceholderText("Add a step...")
        self.step_input.returnPressed.connect(self._on_add_step)
        add_row.addWidget(self.step_input)
        add_row.addWidget(QLabel("times:"))
        self.step_target = QSpinBox()
        self.step_target.setRange(1, 999)
        add_row.addWidget(self.step_target)
        add_btn = QPushButton("Add")
        add_btn.clicked.connect(self._on_add_step)
        add_row.addWidget(add_btn)
        remove_btn = QPushButton("Remove")
        remove_btn.clicked.connect(self._on_remove_step)
        add_row.addWidget(remove_btn)
        layout.addLayout(add_row)

        self.status_label = QLabel("")
        self.status_label.setObjectName("subtitle")
        layout.addWidget(self.status_label)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load(self, goal: Goal) -> None:
        self.title_input.setText(goal.title)
        self.desc_input.setPlainText(goal.description)
        if self.area_combo.findText(goal.area) < 0:
            self.area_combo.addItem(goal.area)
        self.area_combo.setCurrentText(goal.area)
        self.level_combo.setCurrentText(goal.level.value)
        self.priority_combo.setCurrentText(goal.priority.value)
        if goal.deadline is not None:
            self.deadline_check.setChecked(True)
            self.deadline_edit.setDate(QDate(goal.deadline.year, goal.deadline.month,
                                             goal.deadline.day))
        self.cost_input.setValue(goal.estimated_cost)
        self.pinned_check.setChecked(goal.pinned)
        for task in goal.active_sub_tasks:
            self._append_step(task)

    def _append_step(self, task: SubTask) -> None:
        label = task.text
        if task.target_progress > 1:
            label += f"  (x{task.target_progress})"
        if task.completed:
            label = "✓ " + label
        item = QListWidgetItem(label)
        item.setData(Qt.ItemDataRole.UserRole, task)
        if task.tip:
            item.setToolTip(task.tip)
        self.steps_list.addItem(item)

    # ── Results ─────────────────────────────────────────────────────────

    def steps(self) -> List[SubTask]:
        tasks = [self.steps_list.item(i).data(Qt.ItemDataRole.UserRole)
                 for i in range(self.steps_list.count())]
        if self.goal is not None:
            # Keep tombstones so a pending undo still works
            tasks += [t for t in self.goal.sub_tasks if t.deleted]
        return tasks

    def values(self) -> Dict[str, Any]:
        deadline = None
        if self.deadline_check.isChecked():
            deadline = datetime.combine(self.deadline_edit.date().toPython(),
                                        time(23, 59, 59))
        return {
            "title": self.title_input.text().strip(),
            "description": self.desc_input.toPlainText().strip(),
            "area": self.area_combo.currentText(),
            "level": self.level_combo.currentData(),
            "priority": self.priority_combo.currentData(),
            "deadline": deadline,
            "estimated_cost": self.cost_input.value(),
            "pinned": self.pinned_check.isChecked(),
            "sub_tasks": self.steps(),
        }

    # ── Slots ───────────────────────────────────────────────────────────

    @Slot()
    def _on_add_step(self) -> None:
        text = self.step_input.text().strip()
        if not text:
            return
        self._append_step(SubTask(text=text, target_progress=self.step_target.value()))
        self.step_input.clear()
        self.step_target.setValue(1)

    @Slot()
    def _on_remove_step(self) -> None:
        row = self.steps_list.currentRow()
        if row >= 0:
            self.steps_list.takeItem(row)

    @Slot()
    def _on_breakdown(self) -> None:
        title = self.title_input.text().strip()
        if not title:
            QMessageBox.information(self, "Breakdown", "Give the goal a title first.")
            return
        token = self.requests.begin(BREAKDOWN_CHANNEL)
        self.btn_breakdown.setEnabled(False)
        self.status_label.setText("Thinking of small steps...")
        self._start(AdvisoryWorker(BREAKDOWN_CHANNEL, token, self.advisory.breakdown_task,
                                   title, self.desc_input.toPlainText().strip()))

    @Slot()
    def _on_suggest_description(self) -> None:
        title = self.title_input.text().strip()
        if not title:
            QMessageBox.information(self, "Description", "Give the goal a title first.")
            return
        token = self.requests.begin(DESCRIPTION_CHANNEL)
        self.btn_describe.setEnabled(False)
        self.status_label.setText("Polishing...")
        self._start(AdvisoryWorker(
            DESCRIPTION_CHANNEL, token, self.advisory.suggest_description,
            title, self.desc_input.toPlainText().strip() or None,
            fallback=self.desc_input.toPlainText(),
        ))

    def _start(self, worker: AdvisoryWorker) -> None:
        worker.signals.finished.connect(self._on_advice_ready)
        worker.signals.failed.connect(self._on_advice_failed)
        submit(worker)

    @Slot(str, int, object)
    def _on_advice_ready(self, channel: str, token: int, result: object) -> None:
        if not self.requests.is_current(channel, token):
            return
        self.status_label.setText("")
        if channel == BREAKDOWN_CHANNEL:
            self.btn_breakdown.setEnabled(True)
            if not result:
                self.status_label.setText("No suggestions right now. Try again later.")
                return
            for suggestion in result:
                self._append_step(suggestion.to_subtask())
        elif channel == DESCRIPTION_CHANNEL:
            self.btn_describe.setEnabled(True)
            if result:
                self.desc_input.setPlainText(str(result))

    @Slot(str, int, str)
    def _on_advice_failed(self, channel: str, token: int, message: str) -> None:
        if not self.requests.is_current(channel, token):
            return
        self.btn_breakdown.setEnabled(True)
        self.btn_describe.setEnabled(True)
        self.status_label.setText("The assistant is unavailable right now.")

    @Slot()
    def _on_accept(self) -> None:
        if not self.title_input.text().strip():
            QMessageBox.warning(self, "Missing Info", "Please enter a title.")
            return
        self.accept()

    def done(self, result: int) -> None:
        # Late answers must not touch a closed dialog
        self.requests.invalidate(BREAKDOWN_CHANNEL)
        self.requests.invalidate(DESCRIPTION_CHANNEL)
        super().done(result)
