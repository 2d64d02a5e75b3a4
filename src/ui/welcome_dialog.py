"""
Welcome Dialog — first-run onboarding: the user's name and life areas.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QCheckBox, QDialog, QDialogButtonBox, QGroupBox, QHBoxLayout, QLabel,
    QLineEdit, QMessageBox, QPushButton, QVBoxLayout, QWidget,
)

from src.data.models import DEFAULT_AREAS

logger = logging.getLogger(__name__)


class WelcomeDialog(QDialog):
    """Collects the name and the starting set of life areas."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Welcome to Vision Tracker")
        self.setMinimumWidth(420)
        self._area_boxes: List[QCheckBox] = []
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(24, 20, 24, 20)

        title = QLabel("Let's plan your best year.")
        title.setObjectName("greeting")
        layout.addWidget(title)

        layout.addWidget(QLabel("What should we call you?"))
        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText("Your name")
        layout.addWidget(self.name_input)

        group = QGroupBox("Which parts of life do you want to grow?")
        self._areas_layout = QVBoxLayout(group)
        for area in DEFAULT_AREAS:
            self._add_area_box(area, checked=True)
        layout.addWidget(group)

        # Custom area row
        row = QHBoxLayout()
        self.custom_input = QLineEdit()
        self.custom_input.setPlaceholderText("Add your own area...")
        self.custom_input.returnPressed.connect(self._on_add_custom)
        row.addWidget(self.custom_input)
        add_btn = QPushButton("Add")
        add_btn.clicked.connect(self._on_add_custom)
        row.addWidget(add_btn)
        layout.addLayout(row)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Get started")
        buttons.button(QDialogButtonBox.StandardButton.Ok).setObjectName("primary")
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _add_area_box(self, name: str, checked: bool) -> None:
        box = QCheckBox(name)
        box.setChecked(checked)
        self._area_boxes.append(box)
        self._areas_layout.addWidget(box)

    # ── Results ─────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.name_input.text().strip()

    @property
    def categories(self) -> List[str]:
        return [b.text() for b in self._area_boxes if b.isChecked()]

    # ── Slots ───────────────────────────────────────────────────────────

    @Slot()
    def _on_add_custom(self) -> None:
        name = self.custom_input.text().strip()
        if not name:
            return
        if any(b.text() == name for b in self._area_boxes):
            QMessageBox.information(self, "Already there", f'"{name}" is already listed.')
            return
        self._add_area_box(name, checked=True)
        self.custom_input.clear()

    @Slot()
    def _on_accept(self) -> None:
        if not self.name:
            QMessageBox.warning(self, "Missing Info", "Please tell us your name.")
            self.name_input.setFocus(Qt.FocusReason.OtherFocusReason)
            return
        if not self.categories:
            QMessageBox.warning(self, "Missing Info", "Pick at least one life area.")
            return
        logger.info("Onboarding accepted with %d areas", len(self.categories))
        self.accept()
