"""
Notification Scanner — deadline alerts and the neglect nudge.

scan() is a pure pass over the goals; the only outside call is the nudge
writer (normally AdvisoryClient.friendly_nudge), and a failure there just
means no nudge this time. NotificationCenter keeps the list the user sees
and drops anything whose id is already present, so running the scan again
never surfaces the same alert twice.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from src.data.models import AppNotification, Goal, NotificationKind
from src.exceptions import AdvisoryError

logger = logging.getLogger(__name__)

DEADLINE_WINDOW_DAYS = 3
NEGLECT_AFTER = timedelta(days=4)

DEADLINE_TITLE = "Deadline approaching"
NUDGE_TITLE = "A gentle nudge"

NudgeWriter = Callable[[str, str], str]


def deadline_key(goal_id: str) -> str:
    return f"deadline-{goal_id}"


def nudge_key(goal_id: str) -> str:
    return f"nudge-{goal_id}"


def open_goals(goals: Iterable[Goal]) -> List[Goal]:
    """Goals the scanner cares about: neither completed nor archived."""
    return [g for g in goals if not g.completed and not g.archived]


def deadline_alerts(goals: Iterable[Goal], now: datetime) -> List[AppNotification]:
    alerts = []
    for g in open_goals(goals):
        if g.deadline is None:
            continue
        days = (g.deadline - now).total_seconds() / 86400.0
        if 0 < days <= DEADLINE_WINDOW_DAYS:
            alerts.append(AppNotification(
                id=deadline_key(g.id),
                kind=NotificationKind.DEADLINE,
                title=DEADLINE_TITLE,
                message=f'Your goal "{g.title}" ends soon. Take a small step today!',
                timestamp=now,
            ))
    return alerts


def most_neglected(goals: Iterable[Goal], now: datetime) -> Optional[Goal]:
    """The open goal untouched the longest, if it crossed the neglect line."""
    candidates = open_goals(goals)
    if not candidates:
        return None
    oldest = min(candidates, key=lambda g: g.last_interaction_at)
    if now - oldest.last_interaction_at > NEGLECT_AFTER:
        return oldest
    return None


def scan(goals: Iterable[Goal], now: datetime,
         nudge_writer: Optional[NudgeWriter] = None) -> List[AppNotification]:
    """Return this run's candidate alerts: deadlines first, then one nudge."""
    goals = list(goals)
    alerts = deadline_alerts(goals, now)

    neglected = most_neglected(goals, now)
    if neglected is not None and nudge_writer is not None:
        try:
            message = nudge_writer(neglected.title, neglected.area)
        except AdvisoryError as exc:
            logger.warning("Skipping nudge for goal %s: %s", neglected.id, exc)
        else:
            alerts.append(AppNotification(
                id=nudge_key(neglected.id),
                kind=NotificationKind.NUDGE,
                title=NUDGE_TITLE,
                message=message,
                timestamp=now,
            ))
    return alerts


class NotificationCenter:
    """The user's notification list, newest first, deduplicated by id."""

    def __init__(self) -> None:
        self._items: List[AppNotification] = []
        self.toast_candidate: Optional[AppNotification] = None

    @property
    def items(self) -> List[AppNotification]:
        return list(self._items)

    def merge(self, alerts: Iterable[AppNotification]) -> List[AppNotification]:
        """Add alerts whose id is new; returns just those."""
        existing = {n.id for n in self._items}
        fresh = []
        for a in alerts:
            if a.id in existing:
                continue
            existing.add(a.id)
            fresh.append(a)
        self._items = fresh + self._items
        self.toast_candidate = fresh[0] if fresh else None
        if fresh:
            logger.info("%d new notification(s)", len(fresh))
        return fresh

    def dismiss(self, notification_id: str) -> None:
        self._items = [n for n in self._items if n.id != notification_id]
        if self.toast_candidate and self.toast_candidate.id == notification_id:
            self.toast_candidate = None

    def clear(self) -> None:
        self._items = []
        self.toast_candidate = None

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Looks over the open goals a few seconds after the goal list changes
#   and produces two kinds of alerts: "deadline within 3 days" for each
#   goal that qualifies, and at most ONE friendly nudge for the goal the
#   user has ignored longest (more than 4 days).
#
# Key design decisions:
#   - The alert id is derived from the goal id ("deadline-<id>",
#     "nudge-<id>"), which makes re-scans idempotent for free.
#   - scan() doesn't know about Qt, timers or HTTP. The nudge text comes
#     from an injected callable, so tests pass a lambda.
#   - A failed nudge is logged and skipped: a notification is a nicety,
#     never worth an error dialog.
