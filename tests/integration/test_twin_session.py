"""End-to-end tests for the session controller (idealtwin/services/session.py)"""
import json
import pytest
from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from idealtwin.exceptions import AuthenticationError, SuggestionServiceError
from idealtwin.models import ActivityType
from idealtwin.services.persistence import VERIFICATION_REQUIRED, PersistenceService
from idealtwin.services.remote_store import RemoteProfileStore
from idealtwin.services.session import TwinSession, new_user_state
from idealtwin.services.suggestion_service import SuggestionService


REGISTRATION = {
    "username": "jana",
    "password": "secret123",
    "first_name": "Jana",
    "last_name": "Nová",
    "email": "jana@example.com",
    "date_of_birth": "1995-04-02",
}


def make_session(local_cache, fake_store, client=None):
    if client is None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=RuntimeError("offline"))
    remote = RemoteProfileStore("https://store.test", transport=fake_store.transport)
    persistence = PersistenceService(local_cache, remote)
    return TwinSession(persistence, SuggestionService(client=client), save_delay=0.01)


def plan_client(blocks):
    content = json.dumps({"blocks": blocks})
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    )
    return client


@pytest.fixture
def registered(local_cache, fake_store):
    fake_store.confirm_on_signup = True
    return make_session(local_cache, fake_store)


# ============================================================================
# Registration and Habit Flow
# ============================================================================

@pytest.mark.asyncio
async def test_register_and_build_streak(registered, local_cache, fake_store):
    """Test registration, habit creation and a 3-day streak end to end"""
    result = await registered.register(REGISTRATION)
    assert result.success is True

    state = registered.state
    assert state.xp == 0
    assert state.twin_level == 1
    assert [m.type for m in state.messages] == ["welcome"]

    registered.create_habit("Read")
    habit_id = registered.state.habits[0].id

    start = date(2024, 5, 13)
    for offset in range(3):
        registered.complete_habit(habit_id, today=start + timedelta(days=offset))

    state = registered.state
    assert state.xp == 85
    assert state.habits[0].streak == 3
    assert [m.type for m in state.messages] == ["welcome", "achievement"]

    await registered.logout()

    user_id = fake_store.users["jana@example.com"]["id"]
    stored = fake_store.profiles[user_id]["data"]
    assert stored["user"]["xp"] == 85
    assert stored["habits"][0]["streak"] == 3
    assert registered.state is None
    assert local_cache.get_active_user() is None


@pytest.mark.asyncio
async def test_state_survives_logout_and_login(registered, local_cache, fake_store):
    """Test a later login restores the saved state"""
    await registered.register(REGISTRATION)
    registered.create_habit("Stretch")
    await registered.logout()

    again = make_session(local_cache, fake_store)
    result = await again.login("jana@example.com", "secret123")

    assert result.success is True
    assert again.username == "jana"
    assert again.state.xp == 10
    assert again.state.habits[0].title == "Stretch"


@pytest.mark.asyncio
async def test_register_with_verification(local_cache, fake_store):
    """Test accounts needing e-mail confirmation are not signed in"""
    session = make_session(local_cache, fake_store)
    result = await session.register(REGISTRATION)

    assert result.message == VERIFICATION_REQUIRED
    assert session.is_active is False


@pytest.mark.asyncio
async def test_first_login_creates_state(local_cache, fake_store):
    """Test the first login of an account without profile starts fresh"""
    user_id = fake_store.add_user("peter@example.com", "pw", username="peter")
    session = make_session(local_cache, fake_store)

    await session.login("peter@example.com", "pw")

    assert session.state.name == "peter"
    assert session.state.email == "peter@example.com"
    assert len(session.state.messages) == 1

    await session.saver.flush()
    assert fake_store.profiles[user_id]["data"]["user"]["name"] == "peter"


@pytest.mark.asyncio
async def test_restore_after_restart(registered, local_cache, fake_store):
    """Test a new app instance picks up the signed-in user"""
    await registered.register(REGISTRATION)
    registered.create_habit("Journal")
    await registered.saver.flush()

    restarted = make_session(local_cache, fake_store)
    assert await restarted.restore() is True
    assert restarted.username == "jana"
    assert restarted.state.habits[0].title == "Journal"


# ============================================================================
# Planner Flow
# ============================================================================

@pytest.mark.asyncio
async def test_generate_and_complete_plan(local_cache, fake_store):
    """Test plan generation bonus and block completion"""
    fake_store.confirm_on_signup = True
    client = plan_client([
        {"title": "Focus", "startTime": "09:00", "endTime": "11:00", "type": "work"},
        {"title": "Walk", "startTime": "12:00", "endTime": "12:30", "type": "rest"},
    ])
    session = make_session(local_cache, fake_store, client=client)
    await session.register(REGISTRATION)

    notices = await session.generate_plan(["focus"], "mornings")
    assert any(n.kind == "info" for n in notices)
    assert session.state.xp == 50

    session.toggle_block("ai-0")
    assert session.state.xp == 65

    # Un-completing never takes XP back
    session.toggle_block("ai-0")
    assert session.state.xp == 65
    assert session.plan.actual_blocks[0].is_completed is False

    session.add_block("Gym", "18:00", "19:00", ActivityType.EXERCISE)
    assert session.state.xp == 65
    assert [b.start_time for b in session.plan.planned_blocks] == ["09:00", "12:00", "18:00"]

    summary = session.dashboard()
    assert summary["xp"] == 65
    await session.logout()


@pytest.mark.asyncio
async def test_failed_generation_keeps_plan(registered):
    """Test a failed generation leaves state and plan as they were"""
    await registered.register(REGISTRATION)
    registered.add_block("Emails", "08:00", "09:00")
    before_state, before_plan = registered.state, registered.plan

    with pytest.raises(SuggestionServiceError):
        await registered.generate_plan(["focus"], "")

    assert registered.state == before_state
    assert registered.plan == before_plan
    await registered.logout()



@pytest.mark.asyncio
async def test_generated_plan_with_bad_times_rejected(local_cache, fake_store):
    """Test blocks with non HH:MM times reject the whole generated plan"""
    fake_store.confirm_on_signup = True
    client = plan_client([
        {"title": "Focus", "startTime": "9:00", "endTime": "noon", "type": "work"},
        {"title": "Walk", "startTime": "12:00", "endTime": "13:00", "type": "rest"},
    ])
    session = make_session(local_cache, fake_store, client=client)
    await session.register(REGISTRATION)
    session.add_block("Emails", "08:00", "09:00")
    before_state, before_plan = session.state, session.plan

    with pytest.raises(SuggestionServiceError):
        await session.generate_plan(["focus"], "")

    assert session.state == before_state
    assert session.plan == before_plan
    await session.logout()

# ============================================================================
# Inbox and Guards
# ============================================================================

@pytest.mark.asyncio
async def test_inbox_render_and_read(registered):
    await registered.register({**REGISTRATION, "language": "sk"})
    inbox = registered.inbox()

    assert inbox[0]["subject"] == "Vitaj, jana!"
    registered.mark_message_read(inbox[0]["id"])
    assert registered.dashboard()["unread_messages"] == 0

    registered.delete_message(inbox[0]["id"])
    assert registered.inbox() == []
    await registered.logout()


def test_actions_require_session(local_cache, fake_store):
    session = make_session(local_cache, fake_store)
    with pytest.raises(AuthenticationError):
        session.create_habit("Read")


def test_new_user_state_defaults():
    state = new_user_state("jana", email="jana@example.com", language="en")

    assert state.xp == 0
    assert state.twin_level == 1
    assert state.habits == []
    assert state.preferences.language == "en"
    assert [m.type for m in state.messages] == ["welcome"]
