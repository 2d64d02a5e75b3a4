"""
Settings Panel — life areas, data export / import, reset.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Signal, Slot
from PySide6.QtWidgets import (
    QFileDialog, QGroupBox, QHBoxLayout, QInputDialog, QLabel, QListWidget,
    QMessageBox, QPushButton, QVBoxLayout, QWidget,
)

from src.data.gateway import PersistenceGateway
from src.exceptions import VisionTrackerError
from src.services.goal_repository import GoalRepository

logger = logging.getLogger(__name__)


class SettingsWidget(QWidget):
    """Life-area management and data tools."""

    reset_requested = Signal()

    def __init__(
        self,
        repo: GoalRepository,
        gateway: PersistenceGateway,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.repo = repo
        self.gateway = gateway
        self._setup_ui()
        self.refresh()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(20, 16, 20, 20)

        self.profile_label = QLabel("")
        self.profile_label.setObjectName("greeting")
        layout.addWidget(self.profile_label)

        # ── Life areas ──────────────────────────────────────────────────
        areas_group = QGroupBox("Life areas")
        areas_layout = QHBoxLayout(areas_group)

        self.area_list = QListWidget()
        areas_layout.addWidget(self.area_list, 1)

        buttons = QVBoxLayout()
        for text, handler in (
            ("Add area...", self._on_add_area),
            ("Move up", lambda: self._on_move(-1)),
            ("Move down", lambda: self._on_move(1)),
            ("Archive area", self._on_archive_area),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            buttons.addWidget(btn)
        buttons.addStretch()
        areas_layout.addLayout(buttons)
        layout.addWidget(areas_group)

        self.archived_label = QLabel("")
        self.archived_label.setObjectName("subtitle")
        self.archived_label.setWordWrap(True)
        layout.addWidget(self.archived_label)

        # ── Data ────────────────────────────────────────────────────────
        data_group = QGroupBox("Your data")
        data_layout = QHBoxLayout(data_group)

        export_btn = QPushButton("Export goals (JSON)")
        export_btn.clicked.connect(self._export_json)
        data_layout.addWidget(export_btn)

        import_btn = QPushButton("Import goals...")
        import_btn.clicked.connect(self._import_json)
        data_layout.addWidget(import_btn)

        data_layout.addStretch()

        reset_btn = QPushButton("Reset All Data")
        reset_btn.setStyleSheet("color: #d64545;")
        reset_btn.clicked.connect(self._reset_data)
        data_layout.addWidget(reset_btn)
        layout.addWidget(data_group)

        layout.addStretch()

    def refresh(self) -> None:
        profile = self.repo.profile
        self.profile_label.setText(f"{profile.name}'s settings" if profile.name else "Settings")
        current = self.area_list.currentRow()
        self.area_list.clear()
        self.area_list.addItems(self.repo.area_order)
        if 0 <= current < self.area_list.count():
            self.area_list.setCurrentRow(current)
        archived = profile.archived_categories
        self.archived_label.setText(
            "Archived areas: " + ", ".join(archived) if archived else ""
        )

    # ── Life areas ──────────────────────────────────────────────────────

    def _selected_area(self) -> Optional[str]:
        item = self.area_list.currentItem()
        return item.text() if item else None

    @Slot()
    def _on_add_area(self) -> None:
        name, ok = QInputDialog.getText(self, "New life area", "Name:")
        if not ok:
            return
        try:
            self.repo.add_category(name)
        except VisionTrackerError as exc:
            QMessageBox.warning(self, "Life area", str(exc))

    def _on_move(self, delta: int) -> None:
        area = self._selected_area()
        if area is None:
            return
        index = self.repo.area_order.index(area) + delta
        self.repo.move_area(area, index)
        self.area_list.setCurrentRow(max(0, min(self.area_list.count() - 1, index)))

    @Slot()
    def _on_archive_area(self) -> None:
        area = self._selected_area()
        if area is None:
            return
        reply = QMessageBox.question(
            self, "Archive area",
            f'Archive "{area}"? Its goals move to the archive.',
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            count = self.repo.archive_category(area)
        except VisionTrackerError as exc:
            QMessageBox.warning(self, "Life area", str(exc))
            return
        QMessageBox.information(self, "Archive area",
                                f'"{area}" archived along with {count} goal(s).')

    # ── Data ────────────────────────────────────────────────────────────

    @Slot()
    def _export_json(self) -> None:
        if not self.repo.goals:
            QMessageBox.information(self, "Export", "No goals to export yet.")
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Save goals", "vision_goals.json", "JSON files (*.json)"
        )
        if path:
            Path(path).write_text(self.gateway.export_goals_json(), encoding="utf-8")
            logger.info("Exported goals to %s", path)
            QMessageBox.information(self, "Export", f"Goals exported to {path}")

    @Slot()
    def _import_json(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Import goals", "", "JSON files (*.json)"
        )
        if not path:
            return
        try:
            added = self.repo.import_goals(Path(path).read_text(encoding="utf-8"))
        except (OSError, VisionTrackerError) as exc:
            QMessageBox.warning(self, "Import", f"Could not import: {exc}")
            return
        QMessageBox.information(self, "Import", f"Imported {added} goal(s).")

    @Slot()
    def _reset_data(self) -> None:
        reply = QMessageBox.warning(
            self, "Reset All Data",
            "This will permanently delete your profile, goals and preferences.\n"
            "This action cannot be undone.\n\nAre you sure?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.reset_requested.emit()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The settings tab: reorder / add / archive life areas, export the goal
#   collection as JSON, import an export, and wipe everything.
#
# Key design decisions:
#   - Every change goes through GoalRepository, which notifies the window;
#     the window calls refresh() here, so this panel never re-reads on
#     its own.
#   - Reset is only confirmed here. The window performs it because it also
#     has to rerun onboarding afterwards.
#   - The reset confirmation defaults to No.
