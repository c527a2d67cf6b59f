"""
Dashboard summary

Derives the presentational values shown on the dashboard from the current
state. Nothing here is stored; it is recomputed on every render.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional
import logging

from idealtwin.gamification.energy import avatar_state, compute_energy
from idealtwin.gamification.inbox import unread_count
from idealtwin.gamification.leveling import clamp_percent, level_from_xp
from idealtwin.gamification.planner import day_progress
from idealtwin.models import DailyContext, DayPlan, UserState

logger = logging.getLogger(__name__)


def dashboard_summary(
    state: UserState,
    plan: Optional[DayPlan] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Build the dashboard view model

    Returns:
        {
            'level': int,
            'title': str,
            'xp': int,
            'xp_to_next_level': int,
            'level_progress': float (clamped 0-100),
            'energy': int (real-time score),
            'avatar': dict from avatar_state,
            'plan_progress': float (clamped 0-100),
            'unread_messages': int,
            'unlocked_assets': list
        }
    """
    if now is None:
        now = datetime.now()
    today = now.date().isoformat()

    level_info = level_from_xp(state.xp)
    health = state.health_data.get(today)
    context = state.daily_context.get(today) or DailyContext(stress_level=0.2, is_ill=state.is_sick)
    energy = compute_energy(health, context, now)

    return {
        "level": level_info["level"],
        "title": level_info["title"],
        "xp": state.xp,
        "xp_to_next_level": level_info["xp_to_next_level"],
        "level_progress": clamp_percent(level_info["progress_percent"]),
        "energy": energy,
        "avatar": avatar_state(energy, now),
        "plan_progress": clamp_percent(day_progress(plan)) if plan else 0.0,
        "unread_messages": unread_count(state),
        "unlocked_assets": level_info["unlocked_assets"],
    }
