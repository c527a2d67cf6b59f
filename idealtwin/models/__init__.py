"""State models shared by the gamification engine and the services"""
from idealtwin.models.base import TwinModel
from idealtwin.models.habit import Habit
from idealtwin.models.plan import ActivityType, DayPlan, TimeBlock
from idealtwin.models.user import (
    AggregatedHealthData,
    AvatarConfig,
    DailyContext,
    HealthSyncConfig,
    InboxMessage,
    UserPreferences,
    UserState,
)

__all__ = [
    "TwinModel",
    "Habit",
    "ActivityType",
    "DayPlan",
    "TimeBlock",
    "AggregatedHealthData",
    "AvatarConfig",
    "DailyContext",
    "HealthSyncConfig",
    "InboxMessage",
    "UserPreferences",
    "UserState",
]
