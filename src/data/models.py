"""
Data models for Vision Tracker.

Plain dataclasses shared by every layer. They know how to turn themselves
into JSON-ready dicts and back; from_dict() is forgiving because the stored
blobs may come from an older version or a browser export, so missing or odd
fields fall back to sane defaults instead of raising.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class GoalLevel(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class GoalPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class LifeArea(str, Enum):
    """Built-in life areas offered during onboarding."""
    HEALTH = "Health & Wellness"
    RELATIONSHIPS = "Relationships"
    CAREER = "Career & Finances"
    GROWTH = "Personal Growth"
    TRAVEL = "Fun & Travels"
    OTHERS = "Others"


DEFAULT_AREAS: List[str] = [a.value for a in LifeArea]


class NotificationKind(str, Enum):
    DEADLINE = "deadline"
    NUDGE = "nudge"


def new_id() -> str:
    return str(uuid.uuid4())


# ── (de)serialization helpers ───────────────────────────────────────────────

def _parse_ts(value) -> Optional[datetime]:
    """ISO string or epoch milliseconds → datetime; anything else → None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0)
        except (OverflowError, OSError, ValueError):
            logger.warning("Dropping out-of-range timestamp %r", value)
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Dropping malformed timestamp %r", value)
            return None
        # Everything else runs on naive local time
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    return None


def _fmt_ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _level(value) -> GoalLevel:
    try:
        return GoalLevel(value)
    except ValueError:
        return GoalLevel.MEDIUM


def _priority(value) -> GoalPriority:
    try:
        return GoalPriority(value)
    except ValueError:
        return GoalPriority.MEDIUM


def _int(value, default: int = 0) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return default


def _float(value, default: float = 0.0) -> float:
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return default


# ── Entities ────────────────────────────────────────────────────────────────

@dataclass
class SubTask:
    """
    A measurable step of a goal.

    target_progress is the number of check-ins required; 0 or 1 means a
    plain done/not-done step. deleted marks a tombstone kept for restore.
    """
    id: str = field(default_factory=new_id)
    text: str = ""
    completed: bool = False
    current_progress: int = 0
    target_progress: int = 0
    level: GoalLevel = GoalLevel.MEDIUM
    priority: GoalPriority = GoalPriority.MEDIUM
    deadline: Optional[datetime] = None
    tip: Optional[str] = None
    deleted: bool = False

    @property
    def effective_target(self) -> int:
        return max(1, self.target_progress)

    def normalize(self) -> "SubTask":
        """Re-establish completed <=> current_progress >= effective_target."""
        if self.completed and self.current_progress < self.effective_target:
            self.current_progress = self.effective_target
        self.current_progress = max(0, self.current_progress)
        self.completed = self.current_progress >= self.effective_target
        return self

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "currentProgress": self.current_progress,
            "targetProgress": self.target_progress,
            "level": self.level.value,
            "priority": self.priority.value,
            "deadline": _fmt_ts(self.deadline),
            "tip": self.tip,
            "deleted": self.deleted,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SubTask":
        task = cls(
            id=str(data.get("id") or new_id()),
            text=str(data.get("text") or ""),
            completed=bool(data.get("completed", False)),
            current_progress=_int(data.get("currentProgress")),
            target_progress=_int(data.get("targetProgress")),
            level=_level(data.get("level")),
            priority=_priority(data.get("priority")),
            deadline=_parse_ts(data.get("deadline")),
            tip=data.get("tip") or None,
            deleted=bool(data.get("deleted", False)),
        )
        return task.normalize()


@dataclass
class Goal:
    """A top-level objective living in one life area."""
    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    level: GoalLevel = GoalLevel.MEDIUM
    priority: GoalPriority = GoalPriority.MEDIUM
    area: str = LifeArea.OTHERS.value
    deadline: Optional[datetime] = None
    estimated_cost: float = 0.0
    sub_tasks: List[SubTask] = field(default_factory=list)
    completed: bool = False
    archived: bool = False
    pinned: bool = False
    order: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    last_interaction_at: datetime = field(default_factory=datetime.now)

    @property
    def active_sub_tasks(self) -> List[SubTask]:
        """Steps that count for progress and display (tombstones excluded)."""
        return [t for t in self.sub_tasks if not t.deleted]

    def normalize(self) -> "Goal":
        """Completion always archives and carries a completion time."""
        if self.completed:
            self.archived = True
            if self.completed_at is None:
                self.completed_at = self.last_interaction_at or datetime.now()
        else:
            self.completed_at = None
        return self

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "level": self.level.value,
            "priority": self.priority.value,
            "area": self.area,
            "deadline": _fmt_ts(self.deadline),
            "estimatedCost": self.estimated_cost,
            "subTasks": [t.to_dict() for t in self.sub_tasks],
            "completed": self.completed,
            "archived": self.archived,
            "pinned": self.pinned,
            "order": self.order,
            "createdAt": _fmt_ts(self.created_at),
            "completedAt": _fmt_ts(self.completed_at),
            "lastInteractionAt": _fmt_ts(self.last_interaction_at),
        }

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Goal":
        """Build a goal from a stored dict; index is the fallback order."""
        created = _parse_ts(data.get("createdAt")) or datetime.now()
        last = _parse_ts(data.get("lastInteractionAt")) or created
        raw_tasks = data.get("subTasks") or []
        order = data.get("order")
        goal = cls(
            id=str(data.get("id") or new_id()),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            level=_level(data.get("level")),
            priority=_priority(data.get("priority")),
            area=str(data.get("area") or LifeArea.OTHERS.value),
            deadline=_parse_ts(data.get("deadline")),
            estimated_cost=_float(data.get("estimatedCost")),
            sub_tasks=[SubTask.from_dict(t) for t in raw_tasks if isinstance(t, dict)],
            completed=bool(data.get("completed", False)),
            archived=bool(data.get("archived", False)),
            pinned=bool(data.get("pinned", False)),
            order=index if order is None else _int(order, index),
            created_at=created,
            completed_at=_parse_ts(data.get("completedAt")),
            last_interaction_at=last,
        )
        return goal.normalize()


@dataclass
class AppNotification:
    """An in-app alert. Never persisted; the id doubles as the dedup key."""
    id: str
    kind: NotificationKind
    title: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class UserProfile:
    name: str = ""
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_AREAS))
    archived_categories: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "categories": list(self.categories),
            "archivedCats": list(self.archived_categories),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        categories = data.get("categories")
        archived = data.get("archivedCats") or []
        return cls(
            name=str(data.get("name") or ""),
            categories=[str(c) for c in categories] if isinstance(categories, list) else list(DEFAULT_AREAS),
            archived_categories=[str(c) for c in archived] if isinstance(archived, list) else [],
        )


@dataclass
class TaskSuggestion:
    """One AI-proposed step for a goal."""
    text: str
    level: GoalLevel = GoalLevel.MEDIUM
    tip: str = ""

    def to_subtask(self) -> SubTask:
        return SubTask(text=self.text, level=self.level, tip=self.tip or None,
                       target_progress=1)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the shapes every layer agrees on: Goal with its SubTasks, the
#   transient AppNotification, the UserProfile and AI TaskSuggestions.
#
# Key decisions:
#   - normalize() on Goal and SubTask: the two invariants (completion
#     archives a goal; a step is complete exactly when its progress reaches
#     its target) are restored every time data is loaded, so a hand-edited
#     or older blob can't put the UI into an impossible state.
#   - JSON keys stay camelCase so a browser export loads unchanged.
#   - Timestamps accept ISO strings or epoch milliseconds for the same
#     reason.
#
# Data flow:
#   kv_store JSON → Goal.from_dict() → GoalRepository → views/UI
#   GoalRepository change → Goal.to_dict() → kv_store JSON
