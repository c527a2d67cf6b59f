"""
Persistence Service

Loads and saves the user-state blob. The local cache is always written
first; the remote profile store is used whenever the device is online.

Payload shape at this boundary:
    {"user": {...}, "habits": [...], "dayPlan": {...}}

Older payloads nest habits/dayPlan inside "user"; normalize_payload()
accepts both and always returns one canonical (UserState, DayPlan).
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from idealtwin.config import SESSION_CACHE_TTL_SECONDS
from idealtwin.exceptions import (
    AuthenticationError,
    MalformedPayloadError,
    RemoteStoreError,
)
from idealtwin.gamification.leveling import level_from_xp
from idealtwin.models import DayPlan, UserState
from idealtwin.resilience.fallback import FallbackStrategy, execute_with_fallbacks
from idealtwin.services.local_cache import LocalCache
from idealtwin.services.remote_store import RemoteProfileStore
from idealtwin.validators import RegistrationForm, validate_input

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIRMED = "email_not_confirmed"
VERIFICATION_REQUIRED = "verification_required"
OFFLINE = "offline"
SAVED_LOCALLY = "saved_locally"
SESSION_EXPIRED = "session_expired"


@dataclass
class SessionResult:
    success: bool
    username: Optional[str] = None
    state: Optional[UserState] = None
    plan: Optional[DayPlan] = None
    is_from_cache: bool = False
    is_stale: bool = False


@dataclass
class AuthResult:
    success: bool
    username: Optional[str] = None
    state: Optional[UserState] = None
    plan: Optional[DayPlan] = None
    message: Optional[str] = None
    is_from_cache: bool = False


@dataclass
class SaveResult:
    success: bool
    message: Optional[str] = None


# ============================================================================
# Payload normalization
# ============================================================================

def normalize_payload(raw: Any, today: Optional[date] = None) -> Tuple[UserState, DayPlan]:
    """
    Turn a stored payload into the canonical in-memory shape

    Derived level fields are recomputed from xp. A payload without a
    usable user record is rejected as a whole.

    Raises:
        MalformedPayloadError: missing "user"/"name" or invalid fields
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("user"), dict):
        raise MalformedPayloadError("Payload has no user record", missing_field="user")

    user = raw["user"]
    if not user.get("name"):
        raise MalformedPayloadError("User record has no name", missing_field="name")

    habits = raw.get("habits") or user.get("habits")
    day_plan = raw.get("dayPlan") or user.get("dayPlan")
    user_fields = {k: v for k, v in user.items() if k not in ("habits", "dayPlan")}

    try:
        state = UserState.model_validate({**user_fields, "habits": habits or []})
        if day_plan:
            plan = DayPlan.model_validate(day_plan)
        else:
            plan = DayPlan(date=(today or date.today()).isoformat())
    except PydanticValidationError as e:
        raise MalformedPayloadError(f"Payload failed validation: {e.error_count()} errors", cause=e)

    level_info = level_from_xp(state.xp)
    state = state.model_copy(update={
        "twin_level": level_info["level"],
        "level_title": level_info["title"],
        "xp_to_next_level": level_info["xp_to_next_level"],
    })
    return state, plan


def build_payload(state: UserState, plan: DayPlan) -> Dict[str, Any]:
    """Serialize state and plan into the stored payload shape"""
    return {
        "user": state.model_dump(mode="json", by_alias=True, exclude={"habits"}),
        "habits": [h.model_dump(mode="json", by_alias=True) for h in state.habits],
        "dayPlan": plan.model_dump(mode="json", by_alias=True),
    }


# ============================================================================
# Service
# ============================================================================

class PersistenceService:
    """
    Session, authentication and state-blob storage.

    Responsibilities:
    - Restore the active session (remote first, local cache as fallback)
    - Login / register / logout against the remote store
    - Save the whole state blob (cache always, remote when online)
    """

    def __init__(
        self,
        cache: LocalCache,
        remote: Optional[RemoteProfileStore] = None,
        is_online: Callable[[], bool] = lambda: True,
        cache_ttl: int = SESSION_CACHE_TTL_SECONDS
    ):
        self.cache = cache
        self.remote = remote
        self.is_online = is_online
        self.cache_ttl = cache_ttl
        logger.debug("PersistenceService initialized")

    def _online(self) -> bool:
        return self.remote is not None and self.is_online()

    def _from_cache(self, username: str, payload: Dict[str, Any]) -> SessionResult:
        try:
            state, plan = normalize_payload(payload)
        except MalformedPayloadError:
            return SessionResult(success=False, username=username)
        return SessionResult(
            success=True,
            username=username,
            state=state,
            plan=plan,
            is_from_cache=True,
            is_stale=self.cache.age_seconds(payload) > self.cache_ttl,
        )

    async def _load_remote_session(self) -> SessionResult:
        user = await self.remote.get_session()
        if not user or not user.get("email_confirmed_at"):
            return SessionResult(success=False)

        profile = await self.remote.fetch_profile(user["id"])
        if not profile or not profile.get("data"):
            return SessionResult(success=False)

        username = profile.get("username") or user.get("email")
        self.cache.set(username, profile["data"])
        try:
            state, plan = normalize_payload(profile["data"])
        except MalformedPayloadError:
            return SessionResult(success=False, username=username)
        return SessionResult(success=True, username=username, state=state, plan=plan)

    async def get_session(self) -> SessionResult:
        """
        Resolve the signed-in user and their state

        Falls back to the cached copy when offline or when the remote store
        fails; cached data older than the TTL is flagged as stale.
        """
        session = self.cache.get_session_info() or {}
        active_user = session.get("username")
        cached = self.cache.get(active_user) if active_user else None

        async def _load_cached() -> SessionResult:
            if cached is None:
                return SessionResult(success=False, username=active_user)
            return self._from_cache(active_user, cached)

        if not self._online():
            return await _load_cached()

        if session.get("token") and not self.remote.access_token:
            self.remote.access_token = session["token"]

        return await execute_with_fallbacks([
            FallbackStrategy("remote_store", self._load_remote_session, priority=1),
            FallbackStrategy("local_cache", _load_cached, priority=2),
        ])

    async def login(self, identifier: str, secret: str) -> AuthResult:
        """
        Log in with e-mail (or cached username) and password

        Offline users with a cached copy are logged in from the cache.
        """
        cached = self.cache.get(identifier)
        if not self.is_online() and cached is not None:
            self.cache.set_active_user(identifier)
            loaded = self._from_cache(identifier, cached)
            return AuthResult(
                success=loaded.success,
                username=identifier,
                state=loaded.state,
                plan=loaded.plan,
                is_from_cache=True,
            )
        if not self._online():
            return AuthResult(success=False, message=OFFLINE)

        try:
            user = await self.remote.sign_in(identifier, secret)
        except AuthenticationError as e:
            if "not confirmed" in e.message.lower():
                return AuthResult(success=False, message=EMAIL_NOT_CONFIRMED)
            return AuthResult(success=False, message=e.message)
        except RemoteStoreError as e:
            return AuthResult(success=False, message=e.user_message)

        if not user.get("email_confirmed_at"):
            await self.remote.sign_out()
            return AuthResult(success=False, message=EMAIL_NOT_CONFIRMED)

        profile = await self.remote.fetch_profile(user["id"]) or {}
        username = (
            profile.get("username")
            or (user.get("user_metadata") or {}).get("username")
            or identifier
        )
        data = profile.get("data") or self.cache.get(username)
        self.cache.set_active_user(username, token=self.remote.access_token)

        if not data:
            return AuthResult(success=True, username=username)

        self.cache.set(username, data)
        try:
            state, plan = normalize_payload(data)
        except MalformedPayloadError:
            return AuthResult(success=True, username=username)

        logger.info(f"Logged in {username}")
        return AuthResult(success=True, username=username, state=state, plan=plan)

    async def register(self, fields: Dict[str, Any]) -> AuthResult:
        """
        Create an account

        Returns:
            AuthResult; message is VERIFICATION_REQUIRED when the e-mail
            must be confirmed before the first login

        Raises:
            ValidationError: incomplete or invalid form
        """
        form = validate_input(RegistrationForm, **fields)
        if not self._online():
            return AuthResult(success=False, message=OFFLINE)

        try:
            user = await self.remote.sign_up(
                form.email,
                form.password,
                {
                    "username": form.username,
                    "firstName": form.first_name,
                    "lastName": form.last_name,
                    "dateOfBirth": form.date_of_birth,
                },
            )
        except (AuthenticationError, RemoteStoreError) as e:
            return AuthResult(success=False, message=e.message)

        logger.info(f"Registered {form.username}")
        if user and not user.get("email_confirmed_at"):
            return AuthResult(success=True, username=form.username, message=VERIFICATION_REQUIRED)

        self.cache.set_active_user(form.username, token=self.remote.access_token)
        return AuthResult(success=True, username=form.username)

    async def save_user_data(self, username: str, payload: Dict[str, Any]) -> SaveResult:
        """
        Upsert the whole state blob (idempotent)

        The local cache is written before anything else; the remote copy is
        updated only when online and signed in.
        """
        self.cache.set(username, payload)
        if not self._online():
            return SaveResult(success=True, message=SAVED_LOCALLY)

        try:
            user = await self.remote.get_session()
            if not user or not user.get("email_confirmed_at"):
                return SaveResult(success=False, message=SESSION_EXPIRED)
            await self.remote.upsert_profile(user["id"], username, payload)
        except RemoteStoreError as e:
            return SaveResult(success=False, message=e.message)

        logger.debug(f"Saved state for {username} to remote store")
        return SaveResult(success=True)

    async def logout(self) -> None:
        """Forget the active session locally and sign out remotely"""
        self.cache.clear_active_user()
        if self.remote is not None:
            try:
                await self.remote.sign_out()
            except RemoteStoreError as e:
                logger.warning(f"Remote sign-out failed, local session cleared: {e.message}")
