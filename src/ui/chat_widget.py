"""
Strategist chat tab — ask the assistant about your goals.
"""

from __future__ import annotations

import html
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QHBoxLayout, QLabel, QLineEdit, QPushButton, QTextBrowser, QVBoxLayout,
    QWidget,
)

from src.data.models import Goal
from src.services.advisory import AdvisoryClient, RequestTracker
from src.services.encouragement import CHAT_FALLBACK, CHAT_STARTERS
from src.ui import styles
from src.ui.workers import AdvisoryWorker, submit

logger = logging.getLogger(__name__)

CHAT_CHANNEL = "chat"


class ChatWidget(QWidget):
    def __init__(
        self,
        advisory: AdvisoryClient,
        requests: RequestTracker,
        goals_provider: Callable[[], Iterable[Goal]],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.advisory = advisory
        self.requests = requests
        self.goals_provider = goals_provider
        self._history: List[Tuple[str, str]] = []
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)

        intro = QLabel("Vision Strategist: a friendly coach who knows your goals.")
        intro.setObjectName("subtitle")
        layout.addWidget(intro)

        self.transcript = QTextBrowser()
        layout.addWidget(self.transcript, 1)

        starters = QHBoxLayout()
        for text in CHAT_STARTERS:
            btn = QPushButton(text)
            btn.setObjectName("chip")
            btn.clicked.connect(lambda _=False, t=text: self.send(t))
            starters.addWidget(btn)
        starters.addStretch()
        layout.addLayout(starters)

        row = QHBoxLayout()
        self.input = QLineEdit()
        self.input.setPlaceholderText("Ask anything about your goals...")
        self.input.returnPressed.connect(self._on_send)
        row.addWidget(self.input)
        self.btn_send = QPushButton("Send")
        self.btn_send.setObjectName("primary")
        self.btn_send.clicked.connect(self._on_send)
        row.addWidget(self.btn_send)
        layout.addLayout(row)

    # ── Public API ──────────────────────────────────────────────────────

    def send(self, message: str) -> None:
        message = message.strip()
        if not message:
            return
        self._append("you", message)
        token = self.requests.begin(CHAT_CHANNEL)
        self.btn_send.setEnabled(False)
        worker = AdvisoryWorker(CHAT_CHANNEL, token, self.advisory.chat,
                                list(self.goals_provider()), message)
        worker.signals.finished.connect(self._on_reply)
        worker.signals.failed.connect(self._on_failed)
        submit(worker)

    # ── Slots ───────────────────────────────────────────────────────────

    @Slot()
    def _on_send(self) -> None:
        text = self.input.text()
        self.input.clear()
        self.send(text)

    @Slot(str, int, object)
    def _on_reply(self, channel: str, token: int, reply: object) -> None:
        if not self.requests.is_current(channel, token):
            return
        self.btn_send.setEnabled(True)
        self._append("strategist", str(reply))

    @Slot(str, int, str)
    def _on_failed(self, channel: str, token: int, message: str) -> None:
        if not self.requests.is_current(channel, token):
            return
        self.btn_send.setEnabled(True)
        self._append("strategist", CHAT_FALLBACK)

    def _append(self, role: str, text: str) -> None:
        self._history.append((role, text))
        color = styles.ACCENT if role == "you" else styles.INK
        body = html.escape(text).replace("\n", "<br>")
        self.transcript.append(
            f'<p><b style="color:{color}">{role.title()}</b><br>{body}</p>'
        )
