"""Habit model"""
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from idealtwin.models.base import TwinModel


class Habit(TwinModel):
    """
    Tracked habit.

    completed_dates is logically a set of ISO dates; it is kept as a list
    for the stored payload but never holds duplicates.
    """
    id: str
    title: str
    frequency: Literal["daily", "weekly"] = "daily"
    streak: int = Field(default=0, ge=0)
    completed_dates: List[str] = Field(default_factory=list)
    category: str = "productivity"

    @field_validator("completed_dates")
    @classmethod
    def dedupe_dates(cls, v: List[str]) -> List[str]:
        """Drop repeated dates, keeping first occurrence order"""
        return list(dict.fromkeys(v))

    def is_completed_on(self, iso_date: str) -> bool:
        return iso_date in self.completed_dates

    @property
    def last_completed(self) -> Optional[str]:
        """Latest completion date (ISO dates sort lexicographically)"""
        return max(self.completed_dates) if self.completed_dates else None
