"""
Gamification engine for IdealTwin

This package implements the twin's progression:
- XP and leveling model
- Time-of-day energy and avatar mood model
- Habit tracker with streaks
- Day plan tracker (planned vs. actual blocks)
- Inbox notifications and dashboard summary
"""

from idealtwin.gamification.leveling import level_from_xp, xp_for_block_type, XP_VALUES
from idealtwin.gamification.energy import compute_energy, avatar_state
from idealtwin.gamification.habits import create_habit, delete_habit, toggle_habit_complete
from idealtwin.gamification.planner import (
    add_block,
    clear_all,
    delete_block,
    generate_from_goals,
    toggle_actual_completion,
)
from idealtwin.gamification.progression import Notice, Transition

__all__ = [
    "level_from_xp",
    "xp_for_block_type",
    "XP_VALUES",
    "compute_energy",
    "avatar_state",
    "create_habit",
    "delete_habit",
    "toggle_habit_complete",
    "add_block",
    "clear_all",
    "delete_block",
    "generate_from_goals",
    "toggle_actual_completion",
    "Notice",
    "Transition",
]
