"""
Energy and Mood Model

Simulates the twin's energy over the day and maps it to an avatar state.

Energy:
- Starts at 100 (75 after less than 6 hours of sleep)
- Decays from 07:00 at 4.5 points per hour
- Decay x1.6 under high stress (> 0.6), x1.25 with average heart rate > 90 bpm
- Capped at 15 during the night (23:00 - 07:00)
"""

from typing import Any, Dict, Optional
from datetime import datetime

from idealtwin.models.user import AggregatedHealthData, DailyContext

FULL_ENERGY = 100
SHORT_SLEEP_ENERGY = 75
SHORT_SLEEP_MINUTES = 360
DAY_START_HOUR = 7
NIGHT_START_HOUR = 23
DECAY_PER_HOUR = 4.5
HIGH_STRESS_THRESHOLD = 0.6
HIGH_STRESS_MULTIPLIER = 1.6
HIGH_HEART_RATE_BPM = 90
HIGH_HEART_RATE_MULTIPLIER = 1.25
NIGHT_ENERGY_CAP = 15


def compute_energy(
    health: Optional[AggregatedHealthData] = None,
    context: Optional[DailyContext] = None,
    now: Optional[datetime] = None
) -> int:
    """
    Compute current energy score

    Args:
        health: Today's aggregated health sample (optional)
        context: Today's daily context (optional)
        now: Wall-clock time (defaults to now)

    Returns:
        Integer energy in [0, 100]
    """
    if now is None:
        now = datetime.now()

    start_energy = FULL_ENERGY
    if health is not None and health.sleep_minutes < SHORT_SLEEP_MINUTES:
        start_energy = SHORT_SLEEP_ENERGY

    current_hour = now.hour + now.minute / 60
    hours_active = max(0.0, current_hour - DAY_START_HOUR)

    decay_rate = DECAY_PER_HOUR
    if context is not None and context.stress_level > HIGH_STRESS_THRESHOLD:
        decay_rate *= HIGH_STRESS_MULTIPLIER
    if health is not None and health.avg_heart_rate is not None and health.avg_heart_rate > HIGH_HEART_RATE_BPM:
        decay_rate *= HIGH_HEART_RATE_MULTIPLIER

    energy = start_energy - hours_active * decay_rate

    if now.hour >= NIGHT_START_HOUR or now.hour < DAY_START_HOUR:
        energy = min(energy, NIGHT_ENERGY_CAP)

    energy = max(0.0, min(100.0, energy))
    # round half up; built-in round() uses banker's rounding
    return int(energy + 0.5)


def avatar_state(energy: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Map energy and time of day to the avatar's expression and animation

    Sleeping (by clock or exhaustion) takes precedence over everything else.

    Returns:
        {
            'expression': str (sleeping/sleepy/happy),
            'glow': bool,
            'opacity': float,
            'animation_speed': float
        }
    """
    if now is None:
        now = datetime.now()
    hour = now.hour

    if hour >= 22 or hour < 6 or energy < 15:
        return {"expression": "sleeping", "glow": False, "opacity": 0.8, "animation_speed": 0.5}
    if energy < 30:
        return {"expression": "sleepy", "glow": False, "opacity": 0.95, "animation_speed": 0.75}
    if energy >= 80:
        return {"expression": "happy", "glow": True, "opacity": 1.0, "animation_speed": 1.2}
    return {"expression": "happy", "glow": False, "opacity": 1.0, "animation_speed": 1.0}
