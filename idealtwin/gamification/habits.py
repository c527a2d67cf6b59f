"""
Habit Tracker

Creates, deletes and completes habits, keeping streaks and applying XP,
energy and inbox side effects.

Streak logic:
- Completing today when the latest completion was yesterday: streak + 1
- Any other case (first completion, gap of 2+ days): streak = 1
- Completing twice on the same day: no-op
- Reaching exactly 3 days awards a one-time bonus and an achievement message
"""

from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from idealtwin.exceptions import HabitNotFoundError
from idealtwin.gamification.inbox import append_message, level_up_message, streak_message
from idealtwin.gamification.leveling import MAX_HABITS_PER_DAY, XP_VALUES, new_unlocks
from idealtwin.gamification.progression import (
    Notice,
    Transition,
    award_xp,
    nudge_energy,
    refill_energy,
)
from idealtwin.i18n.translations import t
from idealtwin.models import Habit, UserState
from idealtwin.validators import HabitInput, validate_input

logger = logging.getLogger(__name__)

STREAK_BONUS_DAYS = 3
STREAK_BADGE_MIN = 3
HABIT_ENERGY_NUDGE = 2


def _new_habit_id(habits: List[Habit], now: datetime) -> str:
    """Millisecond timestamp id, bumped until unique"""
    existing = {h.id for h in habits}
    stamp = int(now.timestamp() * 1000)
    while str(stamp) in existing:
        stamp += 1
    return str(stamp)


def find_habit(state: UserState, habit_id: str) -> Habit:
    for habit in state.habits:
        if habit.id == habit_id:
            return habit
    raise HabitNotFoundError(habit_id, username=state.name, operation="find_habit")


def create_habit(
    state: UserState,
    title: str,
    frequency: str = "daily",
    now: Optional[datetime] = None
) -> Transition:
    """
    Add a new habit and award the creation XP (never capped)

    Raises:
        ValidationError: empty title or unknown frequency
    """
    habit_input = validate_input(HabitInput, title=title, frequency=frequency)
    if now is None:
        now = datetime.now()

    habit = Habit(
        id=_new_habit_id(state.habits, now),
        title=habit_input.title,
        frequency=habit_input.frequency,
        streak=0,
        completed_dates=[],
        category="productivity",
    )
    state = state.model_copy(update={"habits": [*state.habits, habit]})

    xp = XP_VALUES["CREATE_HABIT"]
    result = award_xp(state, xp, "create_habit")
    lang = state.preferences.language

    logger.info(f"Created habit '{habit.title}' ({habit.id}) for {state.name}")

    return Transition(
        state=result["state"],
        xp_awarded=xp,
        leveled_up=result["leveled_up"],
        notices=[Notice("xp", t("notice.habit_created", lang, xp=xp))],
    )


def delete_habit(state: UserState, habit_id: str) -> Transition:
    """Remove a habit permanently; earned XP is kept"""
    find_habit(state, habit_id)
    habits = [h for h in state.habits if h.id != habit_id]
    logger.info(f"Deleted habit {habit_id} for {state.name}")
    return Transition(state=state.model_copy(update={"habits": habits}))


def toggle_habit_complete(
    state: UserState,
    habit_id: str,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> Transition:
    """
    Mark a habit completed for today

    Args:
        state: Current user state
        habit_id: Habit to complete
        today: Calendar day of the completion (defaults to today)
        now: Timestamp for generated messages (defaults to now)

    Returns:
        Transition with the new state; unchanged state if already done today
    """
    habit = find_habit(state, habit_id)
    if today is None:
        today = date.today()

    today_iso = today.isoformat()
    if habit.is_completed_on(today_iso):
        logger.debug(f"Habit {habit_id} already completed on {today_iso}")
        return Transition(state=state)

    yesterday_iso = (today - timedelta(days=1)).isoformat()
    if habit.last_completed == yesterday_iso:
        new_streak = habit.streak + 1
    else:
        new_streak = 1

    updated = habit.model_copy(update={
        "streak": new_streak,
        "completed_dates": [*habit.completed_dates, today_iso],
    })
    state = state.model_copy(update={
        "habits": [updated if h.id == habit_id else h for h in state.habits],
    })

    lang = state.preferences.language
    notices: List[Notice] = []
    xp = 0

    if state.daily_habit_count < MAX_HABITS_PER_DAY:
        xp += XP_VALUES["COMPLETE_HABIT"]
    else:
        logger.info(f"{state.name} reached daily habit limit ({MAX_HABITS_PER_DAY}), no XP")
        notices.append(Notice("warning", t("notice.habit_limit", lang)))

    if new_streak == STREAK_BONUS_DAYS:
        bonus = XP_VALUES["STREAK_3_DAYS"]
        xp += bonus
        state = append_message(state, streak_message(habit.title, bonus, lang, now))
        logger.info(f"{state.name} reached a {STREAK_BONUS_DAYS}-day streak on '{habit.title}'")

    if xp:
        notices.append(Notice("xp", t("notice.xp", lang, xp=xp)))

    result = award_xp(state, xp, "complete_habit")
    state = result["state"]

    if result["leveled_up"]:
        state = refill_energy(state)
        unlocks = new_unlocks(result["new_level"])
        state = append_message(state, level_up_message(state, result["level_info"], unlocks, now))
        notices.append(Notice("lvl", t("notice.level_up", lang, level=result["new_level"])))
    else:
        state = nudge_energy(state, HABIT_ENERGY_NUDGE)

    # Counted even over the cap; only the reward is gated
    state = state.model_copy(update={"daily_habit_count": state.daily_habit_count + 1})

    return Transition(
        state=state,
        xp_awarded=xp,
        leveled_up=result["leveled_up"],
        notices=notices,
    )


def streak_badge(habit: Habit) -> Optional[int]:
    """Streak to show as a badge, or None below 3 days"""
    return habit.streak if habit.streak >= STREAK_BADGE_MIN else None
