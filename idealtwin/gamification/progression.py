"""
Shared XP side effects for the habit and planner trackers

Every transition returns a Transition: the new state value plus the
notices the UI should show. Level fields are always recomputed from xp,
never stored independently.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional
import logging

from idealtwin.gamification.leveling import level_from_xp
from idealtwin.models import DayPlan, UserState

logger = logging.getLogger(__name__)

MAX_ENERGY = 100


@dataclass(frozen=True)
class Notice:
    """Non-blocking user feedback (toast/alert)"""
    kind: Literal["xp", "lvl", "warning", "info"]
    text: str


@dataclass(frozen=True)
class Transition:
    """Result of applying one user action"""
    state: UserState
    plan: Optional[DayPlan] = None
    xp_awarded: int = 0
    leveled_up: bool = False
    notices: List[Notice] = field(default_factory=list)


def award_xp(state: UserState, amount: int, source_type: str) -> Dict[str, Any]:
    """
    Add XP to a user state and recompute derived level fields

    Args:
        state: Current user state
        amount: XP to add (0 allowed)
        source_type: Activity that earned the XP (for logging)

    Returns:
        {
            'state': UserState (energy untouched),
            'xp_awarded': int,
            'leveled_up': bool,
            'old_level': int,
            'new_level': int,
            'level_info': dict from level_from_xp
        }
    """
    new_total_xp = state.xp + amount
    level_info = level_from_xp(new_total_xp)
    old_level = level_from_xp(state.xp)["level"]
    new_level = level_info["level"]

    new_state = state.model_copy(update={
        "xp": new_total_xp,
        "twin_level": new_level,
        "level_title": level_info["title"],
        "xp_to_next_level": level_info["xp_to_next_level"],
    })

    if amount:
        logger.info(
            f"Awarded {amount} XP to {state.name} for {source_type}. "
            f"Total: {new_total_xp} XP, Level: {new_level}"
        )
    if new_level > old_level:
        logger.info(f"{state.name} leveled up from {old_level} to {new_level}!")

    return {
        "state": new_state,
        "xp_awarded": amount,
        "leveled_up": new_level > old_level,
        "old_level": old_level,
        "new_level": new_level,
        "level_info": level_info,
    }


def nudge_energy(state: UserState, amount: int) -> UserState:
    """Raise the persisted energy gauge, capped at 100"""
    return state.model_copy(update={"energy": min(MAX_ENERGY, state.energy + amount)})


def refill_energy(state: UserState) -> UserState:
    return state.model_copy(update={"energy": MAX_ENERGY})
