"""
XP and Leveling Model

Pure functions mapping cumulative XP to level, title and progress.

Leveling Curve:
- XP needed to go from level L to L+1 is 500 + (L - 1) * 250
  (level 1: 500, level 2: 750, level 3: 1000, ...)

Titles:
- Level 1-4: Novice Twin
- Level 5-9: Master Twin
- Level 10+: Ascended Twin

XP Award Rules:
- Planning the day (once per day): 50 XP
- Completing a work/exercise/habit block: 15 XP
- Completing a rest/social/health block: 5 XP
- Tracking any other block: 2 XP
- Creating a habit: 10 XP
- Completing a habit: 15 XP
- 3-day streak bonus: 30 XP
- At most 12 block and 8 habit completions per day earn XP
"""

from typing import Any, Dict, List
import logging

from idealtwin.models.plan import ActivityType

logger = logging.getLogger(__name__)


XP_VALUES: Dict[str, int] = {
    "PLAN_DAY": 50,
    "COMPLETE_WORK_BLOCK": 15,
    "COMPLETE_REST_BLOCK": 5,
    "TRACK_REALITY": 2,
    "CREATE_HABIT": 10,
    "COMPLETE_HABIT": 15,
    "STREAK_3_DAYS": 30,
    # Defined but not awarded by any action yet
    "STREAK_7_DAYS": 70,
    "PERFECT_DAY_BONUS": 100,
}

MAX_BLOCKS_PER_DAY = 12
MAX_HABITS_PER_DAY = 8

BASE_LEVEL_XP = 500
LEVEL_XP_STEP = 250

# Activity type -> XP reward key
BLOCK_XP_TABLE: Dict[ActivityType, str] = {
    ActivityType.WORK: "COMPLETE_WORK_BLOCK",
    ActivityType.EXERCISE: "COMPLETE_WORK_BLOCK",
    ActivityType.HABIT: "COMPLETE_WORK_BLOCK",
    ActivityType.REST: "COMPLETE_REST_BLOCK",
    ActivityType.SOCIAL: "COMPLETE_REST_BLOCK",
    ActivityType.HEALTH: "COMPLETE_REST_BLOCK",
    ActivityType.OTHER: "TRACK_REALITY",
}

# Cosmetic rewards unlocked by level
ASSET_STORE: List[Dict[str, Any]] = [
    {
        "id": "hat_level_2",
        "name": "Cap of Ambition",
        "category": "headwear",
        "requirement_level": 2,
        "icon": "🧢",
        "prompt_modifier": "wearing a cool blue baseball cap",
    },
    {
        "id": "glasses_level_3",
        "name": "Focus Glasses",
        "category": "accessory",
        "requirement_level": 3,
        "icon": "👓",
        "prompt_modifier": "wearing smart reading glasses",
    },
    {
        "id": "headphones_level_4",
        "name": "Deep Work Headset",
        "category": "accessory",
        "requirement_level": 4,
        "icon": "🎧",
        "prompt_modifier": "wearing high-tech noise-canceling headphones",
    },
    {
        "id": "aura_level_5",
        "name": "Golden Aura",
        "category": "effect",
        "requirement_level": 5,
        "icon": "✨",
        "prompt_modifier": "surrounded by a glowing mystical golden aura",
    },
]


def threshold_for_level(level: int) -> int:
    """XP needed to advance from `level` to `level + 1`"""
    return BASE_LEVEL_XP + (level - 1) * LEVEL_XP_STEP


def title_for_level(level: int) -> str:
    if level >= 10:
        return "Ascended Twin"
    if level >= 5:
        return "Master Twin"
    return "Novice Twin"


def level_from_xp(total_xp: int) -> Dict[str, Any]:
    """
    Calculate level and progress from total XP

    Returns:
        {
            'level': int,
            'current_level_xp': int (XP earned inside the current level),
            'progress_percent': float (not clamped),
            'title': str,
            'xp_to_next_level': int (size of the current level),
            'unlocked_assets': list of asset dicts
        }
    """
    level = 1
    xp_remaining = max(0, total_xp)

    while xp_remaining >= threshold_for_level(level):
        xp_remaining -= threshold_for_level(level)
        level += 1

    level_size = threshold_for_level(level)

    return {
        "level": level,
        "current_level_xp": xp_remaining,
        "progress_percent": xp_remaining / level_size * 100,
        "title": title_for_level(level),
        "xp_to_next_level": level_size,
        "unlocked_assets": [a for a in ASSET_STORE if level >= a["requirement_level"]],
    }


def new_unlocks(level: int) -> List[Dict[str, Any]]:
    """Assets that become available exactly at `level`"""
    return [a for a in ASSET_STORE if a["requirement_level"] == level]


def xp_for_block_type(block_type: ActivityType) -> int:
    """XP for completing a block of the given type"""
    return XP_VALUES[BLOCK_XP_TABLE[ActivityType(block_type)]]


def clamp_percent(value: float) -> float:
    """Clamp a percentage for display (progress rings, bars)"""
    return max(0.0, min(100.0, value))
