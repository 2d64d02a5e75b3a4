from .database import Database
from .gateway import PersistenceGateway
from .models import (
    AppNotification, Goal, GoalLevel, GoalPriority, LifeArea,
    NotificationKind, SubTask, TaskSuggestion, UserProfile,
)

__all__ = [
    "Database", "PersistenceGateway", "AppNotification", "Goal", "GoalLevel",
    "GoalPriority", "LifeArea", "NotificationKind", "SubTask",
    "TaskSuggestion", "UserProfile",
]
