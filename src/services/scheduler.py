"""
Scheduler — the three timers behind the window's background behaviour.

  * scan timer: one-shot, restarted every time the goals change, so the
    notification scan runs once the collection has been quiet for a while.
  * countdown timer: repeating tick that refreshes the countdown display.
  * toast timer: one-shot that hides the toast after a few seconds.

QTimers fire on the Qt event loop, so the callbacks may touch widgets.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QTimer

from src.config import COUNTDOWN_INTERVAL_MS, SCAN_DELAY_MS, TOAST_DURATION_MS

logger = logging.getLogger(__name__)


class Scheduler:
    """Owns the timers; the window supplies what happens when they fire."""

    def __init__(
        self,
        on_scan: Optional[Callable[[], None]] = None,
        on_tick: Optional[Callable[[], None]] = None,
        on_toast_expired: Optional[Callable[[], None]] = None,
        scan_delay_ms: int = SCAN_DELAY_MS,
        countdown_interval_ms: int = COUNTDOWN_INTERVAL_MS,
        toast_duration_ms: int = TOAST_DURATION_MS,
    ) -> None:
        self.on_scan = on_scan
        self.on_tick = on_tick
        self.on_toast_expired = on_toast_expired

        self.scan_delay_ms = scan_delay_ms
        self.countdown_interval_ms = countdown_interval_ms
        self.toast_duration_ms = toast_duration_ms

        self._scan_timer = QTimer()
        self._scan_timer.setSingleShot(True)
        self._scan_timer.timeout.connect(self._fire_scan)

        self._countdown_timer = QTimer()
        self._countdown_timer.timeout.connect(self._fire_tick)

        self._toast_timer = QTimer()
        self._toast_timer.setSingleShot(True)
        self._toast_timer.timeout.connect(self._fire_toast_expired)

    # ── Public API ──────────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin the countdown tick and queue a first scan."""
        self._countdown_timer.start(self.countdown_interval_ms)
        self.schedule_scan()
        logger.info("Scheduler started (scan after %d ms, tick every %d ms)",
                    self.scan_delay_ms, self.countdown_interval_ms)

    def schedule_scan(self) -> None:
        """(Re)arm the scan; a pending one is cancelled first."""
        self._scan_timer.start(self.scan_delay_ms)

    def show_toast(self) -> None:
        self._toast_timer.start(self.toast_duration_ms)

    def cancel_toast(self) -> None:
        self._toast_timer.stop()

    def stop_all(self) -> None:
        self._scan_timer.stop()
        self._countdown_timer.stop()
        self._toast_timer.stop()

    # ── Timer callbacks ─────────────────────────────────────────────────────

    def _fire_scan(self) -> None:
        if self.on_scan:
            self.on_scan()

    def _fire_tick(self) -> None:
        if self.on_tick:
            self.on_tick()

    def _fire_toast_expired(self) -> None:
        if self.on_toast_expired:
            self.on_toast_expired()
