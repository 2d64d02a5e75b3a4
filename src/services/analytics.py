"""
Aggregate statistics for the dashboard charts.

Straight tallies over a goal set. The window passes the non-archived goals,
the same set the grouped view is built from.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.data.models import Goal, GoalLevel, GoalPriority
from src.services.view_engine import STATUS_ACTIVE, STATUS_COMPLETED


@dataclass
class GoalStats:
    total: int = 0
    completed: int = 0
    active: int = 0
    completion_rate: int = 0
    # Each list is (label, count) in display order
    by_area: List[Tuple[str, int]] = field(default_factory=list)
    by_difficulty: List[Tuple[str, int]] = field(default_factory=list)
    by_priority: List[Tuple[str, int]] = field(default_factory=list)
    by_status: List[Tuple[str, int]] = field(default_factory=list)


def compute_stats(goals: Iterable[Goal],
                  area_order: Optional[Sequence[str]] = None) -> GoalStats:
    """Counts by status, area, difficulty and priority for a goal set."""
    goals = list(goals)
    total = len(goals)
    completed = sum(1 for g in goals if g.completed)
    rate = int(completed / total * 100 + 0.5) if total else 0

    area_counts = Counter(g.area for g in goals)
    ordered_areas: List[str] = [a for a in (area_order or []) if a in area_counts]
    for g in goals:
        if g.area not in ordered_areas:
            ordered_areas.append(g.area)

    level_counts = Counter(g.level for g in goals)
    priority_counts = Counter(g.priority for g in goals)

    return GoalStats(
        total=total,
        completed=completed,
        active=total - completed,
        completion_rate=rate,
        by_area=[(a, area_counts[a]) for a in ordered_areas if area_counts[a] > 0],
        by_difficulty=[(lvl.value, level_counts[lvl])
                       for lvl in (GoalLevel.EASY, GoalLevel.MEDIUM, GoalLevel.HARD)],
        by_priority=[(p.value, priority_counts[p])
                     for p in (GoalPriority.HIGH, GoalPriority.MEDIUM, GoalPriority.LOW)],
        by_status=[(STATUS_COMPLETED, completed), (STATUS_ACTIVE, total - completed)],
    )


def headline_counts(goals: Iterable[Goal]) -> Dict[str, int]:
    """The two numbers under the countdown: open goals and all-time wins."""
    goals = list(goals)
    return {
        "active": sum(1 for g in goals if not g.archived and not g.completed),
        "completed": sum(1 for g in goals if g.completed),
    }
