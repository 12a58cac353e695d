from trainingapp.models.user import User
from trainingapp.models.user_stats import UserStats
from trainingapp.models.workout import Workout, WorkoutComment, WorkoutLike
from trainingapp.models.achievement import Achievement
from trainingapp.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserStats",
    "Workout",
    "WorkoutLike",
    "WorkoutComment",
    "Achievement",
    "AuditLog",
]
