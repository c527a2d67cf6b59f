"""
Centralized Pydantic Input Validation Layer

Validates user input before any state transition so that a rejected
action never leaves the aggregate partially updated.

Validation Categories:
1. Habit input - non-empty title, known frequency
2. Time block input - non-empty title, HH:MM times, known activity type
3. Registration form - all fields required, e-mail shape, ISO birth date
"""

import logging
import re
from datetime import date
from typing import Any, Literal, Type, TypeVar

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from idealtwin.exceptions import ValidationError
from idealtwin.models.plan import ActivityType

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _strip_required(v: str) -> str:
    trimmed = v.strip()
    if not trimmed:
        raise ValueError("cannot be empty")
    return trimmed


# ============================================================================
# HABITS
# ============================================================================

class HabitInput(BaseModel):
    """New habit form"""
    title: str = Field(..., max_length=200)
    frequency: Literal["daily", "weekly"] = "daily"

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _strip_required(v)


# ============================================================================
# TIME BLOCKS
# ============================================================================

class TimeBlockInput(BaseModel):
    """
    New time block form

    Constraints:
    - Title required (trimmed)
    - start_time/end_time in 24h HH:MM so they compare lexicographically
    """
    title: str = Field(..., max_length=200)
    start_time: str
    end_time: str
    type: ActivityType = ActivityType.WORK

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not TIME_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid HH:MM time")
        return v


# ============================================================================
# REGISTRATION
# ============================================================================

class RegistrationForm(BaseModel):
    """Sign-up form; every field is required"""
    username: str
    password: str
    first_name: str
    last_name: str
    email: str
    date_of_birth: str

    @field_validator("username", "password", "first_name", "last_name")
    @classmethod
    def validate_required(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = _strip_required(v)
        if not EMAIL_PATTERN.match(v):
            raise ValueError("is not a valid e-mail address")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_birth_date(cls, v: str) -> str:
        v = _strip_required(v)
        try:
            born = date.fromisoformat(v)
        except ValueError:
            raise ValueError("must be an ISO date (YYYY-MM-DD)")
        if born > date.today():
            raise ValueError("cannot be in the future")
        return v


def validate_input(model: Type[M], **data: Any) -> M:
    """
    Validate raw input with a Pydantic model.

    Raises:
        ValidationError: first failing field, with a user-facing message
    """
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or None
        logger.debug(f"{model.__name__} rejected: {e}")
        raise ValidationError(
            message=first["msg"],
            field=field,
            value=first.get("input"),
        )
