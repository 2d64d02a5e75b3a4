"""
Derived View Engine — pure functions from goals + view state to what the
window shows.

Nothing in here touches storage or Qt. The main window calls these on every
refresh with the repository's current goals and the transient search /
filter / sort state, so the results are always consistent with the data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

from src.data.models import Goal, GoalLevel, GoalPriority


class SortMode(str, Enum):
    NEWEST = "Newest"
    PRIORITY = "Priority"
    DIFFICULTY = "Difficulty"
    DEADLINE = "Deadline"
    MANUAL = "Manual"


class FilterType(str, Enum):
    DIFFICULTY = "difficulty"
    PRIORITY = "priority"
    STATUS = "status"
    AREA = "area"


STATUS_COMPLETED = "Completed"
STATUS_ACTIVE = "Active"

PRIORITY_SCORE = {GoalPriority.HIGH: 3, GoalPriority.MEDIUM: 2, GoalPriority.LOW: 1}
DIFFICULTY_SCORE = {GoalLevel.HARD: 3, GoalLevel.MEDIUM: 2, GoalLevel.EASY: 1}

# Below this elapsed/total ratio the schedule term stops growing
MIN_TIME_RATIO = 0.0001
MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class GoalFilter:
    """A single-dimension filter picked from the dashboard."""
    type: FilterType
    value: str

    def label(self) -> str:
        return f"{self.type.value}: {self.value}"


@dataclass
class ViewState:
    """Transient search / filter / sort state; never persisted."""
    query: str = ""
    goal_filter: Optional[GoalFilter] = None
    sort_mode: SortMode = SortMode.MANUAL

    def reset(self) -> None:
        self.query = ""
        self.goal_filter = None
        self.sort_mode = SortMode.MANUAL


@dataclass
class ProgressSnapshot:
    raw: int
    displayed: int
    ahead_of_schedule: bool
    steps_done: int
    steps_total: int


@dataclass
class AreaSummary:
    total: int = 0
    active: int = 0
    in_progress: int = 0
    done: int = 0
    in_progress_pct: float = 0.0


@dataclass
class Countdown:
    days: int = 0
    hours: int = 0
    mins: int = 0


# ── Filtering ───────────────────────────────────────────────────────────────

def matches_query(goal: Goal, query: str) -> bool:
    """Case-insensitive substring match on title or description."""
    if not query:
        return True
    needle = query.lower()
    return needle in goal.title.lower() or needle in (goal.description or "").lower()


def matches_filter(goal: Goal, goal_filter: Optional[GoalFilter]) -> bool:
    if goal_filter is None:
        return False
    kind, value = goal_filter.type, goal_filter.value
    if kind == FilterType.DIFFICULTY:
        return goal.level == value
    if kind == FilterType.PRIORITY:
        return goal.priority == value
    if kind == FilterType.STATUS:
        return goal.completed == (value == STATUS_COMPLETED)
    if kind == FilterType.AREA:
        return goal.area == value
    return False


# ── Sorting ─────────────────────────────────────────────────────────────────

def _mode_key(goal: Goal, mode: SortMode):
    if mode == SortMode.NEWEST:
        return -goal.created_at.timestamp()
    if mode == SortMode.PRIORITY:
        return -PRIORITY_SCORE[goal.priority]
    if mode == SortMode.DIFFICULTY:
        return -DIFFICULTY_SCORE[goal.level]
    if mode == SortMode.DEADLINE:
        return goal.deadline.timestamp() if goal.deadline else math.inf
    # Manual: open before done, pinned before unpinned, then the order field
    return (goal.completed, not goal.pinned, goal.order)


def sort_goals(
    goals: Iterable[Goal],
    sort_mode: SortMode = SortMode.MANUAL,
    goal_filter: Optional[GoalFilter] = None,
) -> List[Goal]:
    """
    Order one bucket. Goals matching the active filter come first as a
    block; inside each block sort_mode decides. The sort is stable, so
    full ties keep collection order.
    """
    sort_mode = SortMode(sort_mode)
    if goal_filter is None:
        return sorted(goals, key=lambda g: _mode_key(g, sort_mode))
    return sorted(
        goals,
        key=lambda g: (0 if matches_filter(g, goal_filter) else 1, _mode_key(g, sort_mode)),
    )


def group_active_goals(
    goals: Iterable[Goal],
    area_order: Sequence[str],
    query: str = "",
    goal_filter: Optional[GoalFilter] = None,
    sort_mode: SortMode = SortMode.MANUAL,
) -> Dict[str, List[Goal]]:
    """
    Non-archived goals matching query, bucketed by area in area_order.

    Every area in area_order gets a bucket (possibly empty); goals whose
    area is not listed are left out of this view.
    """
    grouped: Dict[str, List[Goal]] = {area: [] for area in area_order}
    for goal in goals:
        if goal.archived or not matches_query(goal, query):
            continue
        bucket = grouped.get(goal.area)
        if bucket is not None:
            bucket.append(goal)
    return {
        area: sort_goals(bucket, sort_mode, goal_filter)
        for area, bucket in grouped.items()
    }


def group_for_view(goals: Iterable[Goal], area_order: Sequence[str],
                   state: ViewState) -> Dict[str, List[Goal]]:
    return group_active_goals(goals, area_order, state.query,
                              state.goal_filter, state.sort_mode)


def archived_goals(goals: Iterable[Goal]) -> List[Goal]:
    """Archived goals, most recently completed first; never-completed last."""
    return sorted(
        (g for g in goals if g.archived),
        key=lambda g: g.completed_at.timestamp() if g.completed_at else -math.inf,
        reverse=True,
    )


# ── Progress ────────────────────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _ms(delta: timedelta) -> float:
    return delta.total_seconds() * 1000.0


def compute_progress(goal: Goal, now: Optional[datetime] = None) -> int:
    """
    Progress percentage blending step completion against elapsed time.

    Without a deadline this is plain completion. With one, completion is
    divided by the share of the created→deadline window already used, so
    being ahead of schedule yields more than 100. The raw value is
    returned; use displayed_progress() for a bar width.
    """
    if goal.completed:
        return 100
    tasks = goal.active_sub_tasks
    if not tasks:
        return 0

    total_target = sum(t.effective_target for t in tasks)
    total_current = sum(t.current_progress for t in tasks)
    if total_target == 0:
        return 0
    completion_ratio = total_current / total_target

    if goal.deadline is None:
        pct = completion_ratio * 100
    else:
        now = now or datetime.now()
        total_duration = max(1.0, _ms(goal.deadline - goal.created_at))
        elapsed = max(1.0, _ms(now - goal.created_at))
        time_ratio = max(MIN_TIME_RATIO, min(1.0, elapsed / total_duration))
        pct = (completion_ratio / time_ratio) * 100
    return max(0, _round_half_up(pct))


def displayed_progress(raw: int) -> int:
    return max(0, min(100, raw))


def is_ahead_of_schedule(raw: int) -> bool:
    return raw > 100


def progress_snapshot(goal: Goal, now: Optional[datetime] = None) -> ProgressSnapshot:
    raw = compute_progress(goal, now)
    tasks = goal.active_sub_tasks
    return ProgressSnapshot(
        raw=raw,
        displayed=displayed_progress(raw),
        ahead_of_schedule=not goal.completed and is_ahead_of_schedule(raw),
        steps_done=sum(1 for t in tasks if t.completed),
        steps_total=len(tasks),
    )


# ── Small display helpers ───────────────────────────────────────────────────

def days_left(goal: Goal, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until the deadline, rounded up; None without a deadline."""
    if goal.deadline is None:
        return None
    now = now or datetime.now()
    return math.ceil(_ms(goal.deadline - now) / MS_PER_DAY)


def area_summary(bucket: Sequence[Goal]) -> AreaSummary:
    done = sum(1 for g in bucket if g.completed)
    in_progress = sum(
        1 for g in bucket
        if not g.completed and any(
            (t.completed or t.current_progress > 0) and not t.deleted for t in g.sub_tasks
        )
    )
    total = len(bucket)
    return AreaSummary(
        total=total,
        active=total - done,
        in_progress=in_progress,
        done=done,
        in_progress_pct=(in_progress / total) * 100 if total else 0.0,
    )


def countdown(horizon: datetime, now: Optional[datetime] = None) -> Countdown:
    """Days / hours / minutes left until the horizon; zeros once it passed."""
    now = now or datetime.now()
    diff = (horizon - now).total_seconds()
    if diff <= 0:
        return Countdown()
    return Countdown(
        days=int(diff // 86400),
        hours=int((diff // 3600) % 24),
        mins=int((diff // 60) % 60),
    )


def calendar_event_url(goal: Goal) -> Optional[str]:
    """Google Calendar "add event" link on the goal's deadline."""
    if goal.deadline is None:
        return None
    stamp = goal.deadline.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return (
        "https://calendar.google.com/calendar/render?action=TEMPLATE"
        f"&text={quote(goal.title, safe='')}"
        f"&dates={stamp}/{stamp}"
        f"&details={quote(goal.description or '', safe='')}"
    )
