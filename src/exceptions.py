"""
Custom exceptions for Vision Tracker.

Repository operations raise these for bad input or unknown ids; the UI
catches VisionTrackerError at the interaction boundary. Advisory failures
are raised as AdvisoryError and turned into fallback text by the callers.
"""


class VisionTrackerError(Exception):
    """Base exception for the application"""
    pass


class GoalNotFoundError(VisionTrackerError):
    """Raised when a goal id is not in the collection"""
    def __init__(self, goal_id: str):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class SubTaskNotFoundError(VisionTrackerError):
    """Raised when a sub-task id is not part of its goal"""
    def __init__(self, goal_id: str, subtask_id: str):
        self.goal_id = goal_id
        self.subtask_id = subtask_id
        super().__init__(f"Step {subtask_id} not found in goal {goal_id}")


class CategoryError(VisionTrackerError):
    """Raised when a life area cannot be added or archived"""
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Category '{name}': {reason}")


class ValidationError(VisionTrackerError):
    """Raised when user input fails validation"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class AdvisoryError(VisionTrackerError):
    """Raised when the AI advisory service cannot produce an answer"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Advisory {operation} failed: {details}")
