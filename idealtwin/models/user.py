"""User state aggregate and related Pydantic models"""
from typing import Dict, List, Literal, Optional

from pydantic import Field

from idealtwin.models.base import TwinModel
from idealtwin.models.habit import Habit


class HealthSyncConfig(TwinModel):
    """Health-device sync settings (device integration itself is stubbed)"""
    enabled: bool = False
    provider: Optional[str] = None
    sync_steps: bool = True
    sync_heart_rate: bool = True
    sync_hrv: bool = False
    sync_sleep: bool = True
    sync_workouts: bool = False
    sync_calories: bool = False
    auto_sync: bool = False


class UserPreferences(TwinModel):
    """User preference settings"""
    theme: Literal["light", "dark", "system"] = "system"
    language: Literal["sk", "en"] = "sk"
    notifications_email: bool = True
    notifications_push: bool = True
    bio: Optional[str] = None
    health_sync: HealthSyncConfig = Field(default_factory=HealthSyncConfig)


class AvatarConfig(TwinModel):
    """Avatar customization choices"""
    gender: Literal["Male", "Female"] = "Male"
    skin: str = "Light"
    hair_color: str = "Brown"
    hair_style: str = "Short"
    eye_color: str = "Brown"
    glasses: str = "None"
    headwear: str = "None"
    top_type: str = "T-Shirt"
    top_color: str = "Blue"
    bottom_type: str = "Jeans"
    bottom_color: str = "Denim"
    shoes_type: str = "Sneakers"
    shoes_color: str = "White"


class AggregatedHealthData(TwinModel):
    """Health sample aggregated for one day"""
    steps: int = 0
    sleep_minutes: int = 0
    hrv: Optional[float] = None
    avg_heart_rate: Optional[float] = None


class DailyContext(TwinModel):
    """Self-reported context for one day"""
    stress_level: float = Field(default=0.2, ge=0.0, le=1.0)
    is_ill: bool = False
    cycle_day: Optional[int] = Field(default=None, ge=1, le=31)


class InboxMessage(TwinModel):
    """Inbox notification; subject/body may be localization keys"""
    id: str
    sender: str
    subject: str
    body: str
    date: str
    read: bool = False
    type: Literal["achievement", "welcome", "system"] = "system"


class UserState(TwinModel):
    """
    Consolidated user record.

    twin_level, level_title and xp_to_next_level are derived from xp and are
    only ever written together with it (see gamification.progression).
    """
    name: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    goals: List[str] = Field(default_factory=list)

    preferences: UserPreferences = Field(default_factory=UserPreferences)

    avatar_url: Optional[str] = None
    avatar_config: Optional[AvatarConfig] = None

    # Gamification
    xp: int = Field(default=0, ge=0)
    twin_level: int = 1
    level_title: str = "Novice Twin"
    xp_to_next_level: int = 500
    energy: int = Field(default=100, ge=0, le=100)

    # Health status
    is_sick: bool = False
    is_health_synced: bool = False
    stress_level: int = Field(default=0, ge=0, le=10)

    # Daily reward eligibility
    last_activity_date: Optional[str] = None
    daily_habit_count: int = 0
    daily_block_count: int = 0
    daily_plan_created: bool = False

    messages: List[InboxMessage] = Field(default_factory=list)
    habits: List[Habit] = Field(default_factory=list)

    health_data: Dict[str, AggregatedHealthData] = Field(default_factory=dict)
    daily_context: Dict[str, DailyContext] = Field(default_factory=dict)
