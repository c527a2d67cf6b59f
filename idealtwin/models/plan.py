"""Day plan models"""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from idealtwin.models.base import TwinModel


class ActivityType(str, Enum):
    """Kinds of time blocks"""
    WORK = "work"
    REST = "rest"
    HABIT = "habit"
    EXERCISE = "exercise"
    SOCIAL = "social"
    HEALTH = "health"
    OTHER = "other"


class TimeBlock(TwinModel):
    """A planned or actual block of the day; times are HH:MM (24h)"""
    id: str
    title: str
    start_time: str
    end_time: str
    type: ActivityType = ActivityType.WORK
    is_completed: bool = False
    notes: Optional[str] = None


class DayPlan(TwinModel):
    """
    Planned vs. actual blocks for one day.

    actual_blocks start as copies of planned_blocks but carry their own
    completion flags and can be deleted independently.
    """
    date: str
    planned_blocks: List[TimeBlock] = Field(default_factory=list)
    actual_blocks: List[TimeBlock] = Field(default_factory=list)
