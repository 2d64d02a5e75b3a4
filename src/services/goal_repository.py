"""
Goal Repository — owns the goal collection and the user profile.

Every change goes through one of the named operations below. Each operation
builds the new state, swaps it in, writes it through the PersistenceGateway
and notifies subscribers. Goals touched by an operation get their
last_interaction_at stamped, which is what the neglect nudge looks at.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from src.data.gateway import AREA_ORDER_KEY, GOALS_KEY, PROFILE_KEY, PersistenceGateway
from src.data.models import Goal, GoalLevel, GoalPriority, SubTask, UserProfile
from src.exceptions import (
    CategoryError, GoalNotFoundError, SubTaskNotFoundError, ValidationError,
)

logger = logging.getLogger(__name__)

# Fields update_goal() is allowed to touch
EDITABLE_FIELDS = {
    "title", "description", "level", "priority", "area", "deadline",
    "estimated_cost", "pinned", "sub_tasks", "order",
}

ChangeListener = Callable[["GoalRepository"], None]


class GoalRepository:
    """In-memory goal collection, synchronized to storage on every change."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gateway = gateway
        self.clock = clock
        self._goals: List[Goal] = []
        self._profile: Optional[UserProfile] = None
        self._area_order: List[str] = []
        self._listeners: List[ChangeListener] = []

    # ── Loading ─────────────────────────────────────────────────────────────

    def load(self) -> None:
        """Read profile, goals and area order; anything missing or broken defaults."""
        raw_profile = self.gateway.get_json(PROFILE_KEY)
        self._profile = UserProfile.from_dict(raw_profile) if isinstance(raw_profile, dict) else None

        raw_goals = self.gateway.get_json(GOALS_KEY, [])
        if not isinstance(raw_goals, list):
            logger.warning("Stored goals are not a list; starting empty.")
            raw_goals = []
        self._goals = [
            Goal.from_dict(g, index=i) for i, g in enumerate(raw_goals) if isinstance(g, dict)
        ]

        raw_order = self.gateway.get_json(AREA_ORDER_KEY, [])
        if isinstance(raw_order, list) and raw_order:
            self._area_order = [str(a) for a in raw_order]
        elif self._profile is not None:
            self._area_order = list(self._profile.categories)
        else:
            self._area_order = []

        logger.info("Loaded %d goals (onboarded=%s)", len(self._goals), self.is_onboarded)

    # ── Read access ─────────────────────────────────────────────────────────

    @property
    def goals(self) -> Tuple[Goal, ...]:
        return tuple(self._goals)

    @property
    def profile(self) -> UserProfile:
        return self._profile or UserProfile()

    @property
    def is_onboarded(self) -> bool:
        return self._profile is not None

    @property
    def area_order(self) -> List[str]:
        return list(self._area_order)

    def get_goal(self, goal_id: str) -> Goal:
        for g in self._goals:
            if g.id == goal_id:
                return g
        raise GoalNotFoundError(goal_id)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    # ── Goal lifecycle ──────────────────────────────────────────────────────

    def add_goal(
        self,
        title: str,
        area: str,
        description: str = "",
        level: GoalLevel = GoalLevel.MEDIUM,
        priority: GoalPriority = GoalPriority.MEDIUM,
        deadline: Optional[datetime] = None,
        estimated_cost: float = 0.0,
        pinned: bool = False,
        sub_tasks: Optional[Iterable[SubTask]] = None,
    ) -> Goal:
        """Create a goal at the top of the collection."""
        title = (title or "").strip()
        if not title:
            raise ValidationError("title", "a goal needs a title")
        if estimated_cost < 0:
            raise ValidationError("estimated_cost", "cost cannot be negative")
        if self.is_onboarded and area not in self.profile.categories:
            raise CategoryError(area, "not one of your life areas")

        now = self.clock()
        goal = Goal(
            title=title,
            description=description or "",
            level=GoalLevel(level),
            priority=GoalPriority(priority),
            area=area,
            deadline=deadline,
            estimated_cost=float(estimated_cost),
            pinned=pinned,
            order=len(self._goals),
            created_at=now,
            last_interaction_at=now,
            sub_tasks=[self._check_subtask(t).normalize() for t in (sub_tasks or [])],
        )
        self._commit([goal] + self._goals)
        logger.info("Added goal %s (%s)", goal.id, goal.area)
        return goal

    def update_goal(self, goal_id: str, **changes) -> Goal:
        """Apply field edits from the goal form."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "not an editable field")
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()
            if not changes["title"]:
                raise ValidationError("title", "a goal needs a title")
        if changes.get("estimated_cost", 0) < 0:
            raise ValidationError("estimated_cost", "cost cannot be negative")
        if "area" in changes and self.is_onboarded and changes["area"] not in self.profile.categories:
            raise CategoryError(changes["area"], "not one of your life areas")
        if "level" in changes:
            changes["level"] = GoalLevel(changes["level"])
        if "priority" in changes:
            changes["priority"] = GoalPriority(changes["priority"])
        if "sub_tasks" in changes:
            changes["sub_tasks"] = [self._check_subtask(t).normalize() for t in changes["sub_tasks"]]

        updated = self._modify(goal_id, lambda g: replace(g, **changes))
        logger.info("Updated goal %s (%s)", goal_id, ", ".join(sorted(changes)))
        return updated

    def toggle_pinned(self, goal_id: str) -> Goal:
        return self._modify(goal_id, lambda g: replace(g, pinned=not g.pinned))

    def toggle_archived(self, goal_id: str) -> Goal:
        def flip(g: Goal) -> Goal:
            if g.completed and g.archived:
                # A completed goal stays archived; reactivate it instead
                return g
            return replace(g, archived=not g.archived)
        goal = self._modify(goal_id, flip)
        logger.info("Goal %s archived=%s", goal_id, goal.archived)
        return goal

    def toggle_complete(self, goal_id: str) -> bool:
        """Complete (and archive) or reactivate a goal; returns the new state."""
        now = self.clock()

        def flip(g: Goal) -> Goal:
            done = not g.completed
            return replace(
                g,
                completed=done,
                archived=done,
                completed_at=now if done else None,
            )

        goal = self._modify(goal_id, flip)
        logger.info("Goal %s completed=%s", goal_id, goal.completed)
        return goal.completed

    def delete_goal(self, goal_id: str) -> None:
        """Remove a goal for good. The UI asks for confirmation first."""
        self.get_goal(goal_id)
        self._commit([g for g in self._goals if g.id != goal_id])
        logger.info("Deleted goal %s", goal_id)

    def import_goals(self, text: str) -> int:
        """Append goals from a JSON export; returns how many were added."""
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ValidationError("import", f"not valid JSON ({exc})") from exc
        if not isinstance(data, list):
            raise ValidationError("import", "expected a list of goals")

        known = {g.id for g in self._goals}
        incoming = []
        for i, raw in enumerate(data):
            if not isinstance(raw, dict):
                continue
            goal = Goal.from_dict(raw, index=len(self._goals) + i)
            if goal.id in known:
                continue
            known.add(goal.id)
            incoming.append(goal)
        if incoming:
            self._commit(self._goals + incoming)
        logger.info("Imported %d goals", len(incoming))
        return len(incoming)

    # ── Sub-tasks ───────────────────────────────────────────────────────────

    def add_subtask(
        self,
        goal_id: str,
        text: str,
        target_progress: int = 1,
        level: GoalLevel = GoalLevel.MEDIUM,
        priority: GoalPriority = GoalPriority.MEDIUM,
        deadline: Optional[datetime] = None,
        tip: Optional[str] = None,
    ) -> SubTask:
        task = self._check_subtask(SubTask(
            text=(text or "").strip(), target_progress=target_progress,
            level=level, priority=priority, deadline=deadline, tip=tip,
        )).normalize()
        if not task.text:
            raise ValidationError("text", "a step needs a description")
        self._modify(goal_id, lambda g: replace(g, sub_tasks=g.sub_tasks + [task]))
        return task

    def toggle_subtask(self, goal_id: str, subtask_id: str) -> SubTask:
        """Flip a step; done means progress jumps to its target, undone to 0."""
        def flip(t: SubTask) -> SubTask:
            done = not t.completed
            return replace(t, completed=done,
                           current_progress=t.effective_target if done else 0)
        return self._modify_subtask(goal_id, subtask_id, flip)

    def adjust_subtask_progress(self, goal_id: str, subtask_id: str, delta: int) -> SubTask:
        """Add or remove check-ins, clamped to [0, target]."""
        def step(t: SubTask) -> SubTask:
            progress = max(0, min(t.effective_target, t.current_progress + delta))
            return replace(t, current_progress=progress,
                           completed=progress >= t.effective_target)
        return self._modify_subtask(goal_id, subtask_id, step)

    def remove_subtask(self, goal_id: str, subtask_id: str) -> SubTask:
        """Soft delete: the step is hidden and ignored by progress, but kept."""
        return self._modify_subtask(goal_id, subtask_id, lambda t: replace(t, deleted=True))

    def restore_subtask(self, goal_id: str, subtask_id: str) -> SubTask:
        return self._modify_subtask(goal_id, subtask_id, lambda t: replace(t, deleted=False))

    def compact_subtasks(self, goal_id: Optional[str] = None) -> int:
        """Purge deleted steps (one goal or all); returns how many went away."""
        if goal_id is not None:
            self.get_goal(goal_id)
        purged = 0
        new_goals = []
        for g in self._goals:
            if goal_id is None or g.id == goal_id:
                kept = [t for t in g.sub_tasks if not t.deleted]
                purged += len(g.sub_tasks) - len(kept)
                g = replace(g, sub_tasks=kept)
            new_goals.append(g)
        if purged:
            self._commit(new_goals)
            logger.info("Purged %d deleted steps", purged)
        return purged

    # ── Profile & life areas ────────────────────────────────────────────────

    def complete_onboarding(self, name: str, categories: List[str]) -> UserProfile:
        name = (name or "").strip()
        cats = []
        for c in categories:
            c = (c or "").strip()
            if c and c not in cats:
                cats.append(c)
        if not name:
            raise ValidationError("name", "please tell us your name")
        if not cats:
            raise ValidationError("categories", "pick at least one life area")

        self._profile = UserProfile(name=name, categories=cats, archived_categories=[])
        self._area_order = list(cats)
        self._save_profile()
        logger.info("Onboarding complete with %d areas", len(cats))
        return self._profile

    def add_category(self, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise CategoryError(name, "name cannot be blank")
        profile = self.profile
        if name in profile.categories:
            raise CategoryError(name, "already exists")

        self._profile = UserProfile(
            name=profile.name,
            categories=profile.categories + [name],
            archived_categories=[c for c in profile.archived_categories if c != name],
        )
        self._area_order = self._area_order + [name]
        self._save_profile()
        logger.info("Added category %r", name)

    def archive_category(self, name: str) -> int:
        """Retire a life area and archive its goals; returns goals archived."""
        profile = self.profile
        if name not in profile.categories:
            raise CategoryError(name, "not an active life area")

        self._profile = UserProfile(
            name=profile.name,
            categories=[c for c in profile.categories if c != name],
            archived_categories=profile.archived_categories + [name],
        )
        self._area_order = [a for a in self._area_order if a != name]
        self._save_profile()

        affected = [g.id for g in self._goals if g.area == name and not g.archived]
        if affected:
            self._commit([replace(g, archived=True) if g.area == name else g
                          for g in self._goals])
        logger.info("Archived category %r (%d goals)", name, len(affected))
        return len(affected)

    def move_area(self, name: str, new_index: int) -> List[str]:
        """Reorder the life areas shown in the grouped view."""
        if name not in self._area_order:
            raise CategoryError(name, "not in the area order")
        order = [a for a in self._area_order if a != name]
        new_index = max(0, min(len(order), new_index))
        order.insert(new_index, name)
        self._area_order = order
        self._save_profile()
        return self.area_order

    # ── internal ────────────────────────────────────────────────────────────

    def _modify(self, goal_id: str, change: Callable[[Goal], Goal]) -> Goal:
        """Replace one goal with change(goal), stamped and normalized."""
        now = self.clock()
        found: Optional[Goal] = None
        new_goals = []
        for g in self._goals:
            if g.id == goal_id:
                g = replace(change(g), last_interaction_at=now).normalize()
                found = g
            new_goals.append(g)
        if found is None:
            raise GoalNotFoundError(goal_id)
        self._commit(new_goals)
        return found

    def _modify_subtask(
        self, goal_id: str, subtask_id: str, change: Callable[[SubTask], SubTask]
    ) -> SubTask:
        goal = self.get_goal(goal_id)
        if not any(t.id == subtask_id for t in goal.sub_tasks):
            raise SubTaskNotFoundError(goal_id, subtask_id)
        holder: Dict[str, SubTask] = {}

        def apply(g: Goal) -> Goal:
            tasks = []
            for t in g.sub_tasks:
                if t.id == subtask_id:
                    t = change(t)
                    holder["task"] = t
                tasks.append(t)
            return replace(g, sub_tasks=tasks)

        self._modify(goal_id, apply)
        return holder["task"]

    @staticmethod
    def _check_subtask(task: SubTask) -> SubTask:
        if task.target_progress < 0 or task.current_progress < 0:
            raise ValidationError("target_progress", "progress cannot be negative")
        return task

    def _commit(self, goals: List[Goal]) -> None:
        """Swap in the new collection, persist it, tell listeners."""
        self._goals = goals
        self.gateway.set_json(GOALS_KEY, [g.to_dict() for g in goals])
        self._notify()

    def _save_profile(self) -> None:
        self.gateway.set_json(PROFILE_KEY, self.profile.to_dict())
        self.gateway.set_json(AREA_ORDER_KEY, self._area_order)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The one writer of application state. The UI never edits a Goal object
#   directly; it calls toggle_complete(), adjust_subtask_progress() and
#   friends, and the repository persists after each one.
#
# Key design decisions:
#   - Replace-whole-collection-then-persist: _commit() swaps the list and
#     writes it in one go, so a reader never sees half an update.
#   - dataclasses.replace() builds a new Goal instead of mutating the old
#     one; anything holding the previous tuple from .goals is unaffected.
#   - The clock is injected, which makes "stamps last_interaction_at" and
#     "completion sets completed_at" trivial to test.
#
# Data flow:
#   UI action → repo.operation() → _modify()/_commit() → gateway.set_json()
#   → listeners (main window re-renders, scanner reschedules)
