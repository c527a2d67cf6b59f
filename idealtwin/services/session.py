"""
Session controller

Owns the single in-memory UserState/DayPlan pair for the signed-in user,
applies tracker transitions to it and schedules a debounced save after
every change.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging

from idealtwin.config import DEFAULT_LANGUAGE, SAVE_DEBOUNCE_SECONDS
from idealtwin.exceptions import AuthenticationError, BlockNotFoundError
from idealtwin.gamification import habits, inbox, planner
from idealtwin.gamification.dashboards import dashboard_summary
from idealtwin.gamification.progression import Notice, Transition
from idealtwin.models import ActivityType, DayPlan, UserPreferences, UserState
from idealtwin.services.persistence import (
    VERIFICATION_REQUIRED,
    AuthResult,
    PersistenceService,
    SaveResult,
    build_payload,
)
from idealtwin.services.suggestion_service import AvatarPreview, HabitSuggestions, SuggestionService
from idealtwin.services.sync import DebouncedSaver

logger = logging.getLogger(__name__)


def new_user_state(
    name: str,
    email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    date_of_birth: Optional[str] = None,
    language: str = DEFAULT_LANGUAGE,
    now: Optional[datetime] = None
) -> UserState:
    """Fresh account: level 1, no XP, no habits, one welcome message"""
    return UserState(
        name=name,
        email=email,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        preferences=UserPreferences(language=language),
        messages=[inbox.welcome_message(now)],
    )


class TwinSession:
    """
    Application-level facade over the trackers and services.

    Every mutating action returns the notices to show and leaves a save
    pending; logout() flushes it before signing out.
    """

    def __init__(
        self,
        persistence: PersistenceService,
        suggestions: SuggestionService,
        save_delay: float = SAVE_DEBOUNCE_SECONDS
    ):
        self.persistence = persistence
        self.suggestions = suggestions
        self.saver = DebouncedSaver(self._save, delay=save_delay)
        self.username: Optional[str] = None
        self.state: Optional[UserState] = None
        self.plan: Optional[DayPlan] = None
        self.last_save: Optional[SaveResult] = None

    @property
    def is_active(self) -> bool:
        return self.state is not None and self.username is not None

    def _require_state(self) -> UserState:
        if not self.is_active:
            raise AuthenticationError(message="No active session")
        return self.state

    def _set(self, username: str, state: UserState, plan: Optional[DayPlan]) -> None:
        self.username = username
        self.state = state
        self.plan = plan or planner.new_day_plan()

    def _commit(self, transition: Transition) -> List[Notice]:
        self.state = transition.state
        if transition.plan is not None:
            self.plan = transition.plan
        self.saver.schedule()
        return transition.notices

    async def _save(self) -> SaveResult:
        if not self.is_active:
            return SaveResult(success=False)
        result = await self.persistence.save_user_data(self.username, build_payload(self.state, self.plan))
        self.last_save = result
        if not result.success:
            logger.warning(f"Save for {self.username} failed: {result.message}")
        return result

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def restore(self) -> bool:
        """Resume the previous session at startup"""
        result = await self.persistence.get_session()
        if not result.success or result.state is None:
            return False
        self._set(result.username, result.state, result.plan)
        if result.is_stale:
            logger.info(f"Restored stale cached state for {result.username}")
        return True

    async def login(self, identifier: str, secret: str) -> AuthResult:
        result = await self.persistence.login(identifier, secret)
        if not result.success:
            return result

        if result.state is None:
            email = identifier if "@" in identifier else None
            self._set(result.username, new_user_state(result.username, email=email), None)
            self.saver.schedule()
        else:
            self._set(result.username, result.state, result.plan)
        return result

    async def register(self, fields: Dict[str, Any]) -> AuthResult:
        """
        Create an account; when no e-mail confirmation is needed the new
        user is signed in straight away.
        """
        result = await self.persistence.register(fields)
        if not result.success or result.message == VERIFICATION_REQUIRED:
            return result

        state = new_user_state(
            fields["username"].strip(),
            email=fields["email"].strip(),
            first_name=fields["first_name"].strip(),
            last_name=fields["last_name"].strip(),
            date_of_birth=fields["date_of_birth"].strip(),
            language=fields.get("language", DEFAULT_LANGUAGE),
        )
        self._set(result.username, state, None)
        self.saver.schedule()
        return result

    async def logout(self) -> None:
        await self.saver.flush()
        await self.persistence.logout()
        logger.info(f"Logged out {self.username}")
        self.username = None
        self.state = None
        self.plan = None

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    def create_habit(self, title: str, frequency: str = "daily") -> List[Notice]:
        return self._commit(habits.create_habit(self._require_state(), title, frequency))

    def delete_habit(self, habit_id: str) -> List[Notice]:
        return self._commit(habits.delete_habit(self._require_state(), habit_id))

    def complete_habit(self, habit_id: str, today: Optional[date] = None) -> List[Notice]:
        return self._commit(habits.toggle_habit_complete(self._require_state(), habit_id, today=today))

    # ------------------------------------------------------------------
    # Day plan
    # ------------------------------------------------------------------

    def add_block(
        self,
        title: str,
        start_time: str,
        end_time: str,
        block_type: ActivityType = ActivityType.WORK
    ) -> List[Notice]:
        state = self._require_state()
        return self._commit(planner.add_block(state, self.plan, title, start_time, end_time, block_type))

    async def generate_plan(self, goals: List[str], preferences: str) -> List[Notice]:
        """Replace today's plan with a generated one; raises on failure"""
        state = self._require_state()
        transition = await planner.generate_from_goals(state, self.plan, goals, preferences, self.suggestions)
        return self._commit(transition)

    def toggle_block(self, block_id: str) -> List[Notice]:
        state = self._require_state()
        block = next((b for b in self.plan.actual_blocks if b.id == block_id), None)
        if block is None:
            raise BlockNotFoundError(block_id, username=state.name, operation="toggle_block")
        return self._commit(
            planner.toggle_actual_completion(state, self.plan, block_id, block.type, block.is_completed)
        )

    def delete_block(self, block_id: str) -> None:
        self._require_state()
        self.plan = planner.delete_block(self.plan, block_id)
        self.saver.schedule()

    def clear_plan(self, confirmed: bool = False) -> None:
        self._require_state()
        self.plan = planner.clear_all(self.plan, confirmed=confirmed)
        self.saver.schedule()

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def inbox(self) -> List[Dict[str, Any]]:
        state = self._require_state()
        return [inbox.render_message(m, state) for m in inbox.sorted_messages(state)]

    def mark_message_read(self, message_id: str) -> None:
        self.state = inbox.mark_read(self._require_state(), message_id)
        self.saver.schedule()

    def delete_message(self, message_id: str) -> None:
        self.state = inbox.delete_message(self._require_state(), message_id)
        self.saver.schedule()

    # ------------------------------------------------------------------
    # Read-only views and suggestions
    # ------------------------------------------------------------------

    def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return dashboard_summary(self._require_state(), self.plan, now)

    async def suggest_habits(self, query: str) -> HabitSuggestions:
        state = self._require_state()
        return await self.suggestions.suggest_habits(query, state.preferences.language)

    async def avatar_preview(self) -> AvatarPreview:
        return await self.suggestions.render_avatar_preview(self._require_state())
