"""Global test fixtures and utilities for idealtwin tests"""
import json
import pytest
import httpx
from datetime import date, datetime

from idealtwin.models import DayPlan, Habit, TimeBlock, UserState
from idealtwin.resilience.circuit_breaker import PERSISTENCE_BREAKER, SUGGESTION_BREAKER
from idealtwin.services.local_cache import LocalCache
from idealtwin.services.remote_store import RemoteProfileStore


# ============================================================================
# Resilience
# ============================================================================

@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Reset all circuit breakers before each test"""
    for breaker in [SUGGESTION_BREAKER, PERSISTENCE_BREAKER]:
        breaker.close()
    yield


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed calendar day used by tracker tests"""
    return date(2024, 5, 15)


@pytest.fixture
def now():
    """Fixed wall-clock time (noon) on the test day"""
    return datetime(2024, 5, 15, 12, 0)


# ============================================================================
# State Fixtures
# ============================================================================

@pytest.fixture
def user_state():
    """Fresh level-1 user speaking English"""
    return UserState(
        name="Jana",
        email="jana@example.com",
        preferences={"language": "en"},
    )


@pytest.fixture
def habit():
    """Daily habit with no completions"""
    return Habit(id="h1", title="Read 10 pages")


@pytest.fixture
def user_with_habit(user_state, habit):
    return user_state.model_copy(update={"habits": [habit]})


@pytest.fixture
def day_plan(today):
    """Plan with one work and one rest block"""
    blocks = [
        TimeBlock(id="b1", title="Deep work", start_time="09:00", end_time="11:00", type="work"),
        TimeBlock(id="b2", title="Walk", start_time="12:00", end_time="12:30", type="rest"),
    ]
    return DayPlan(
        date=today.isoformat(),
        planned_blocks=blocks,
        actual_blocks=[b.model_copy() for b in blocks],
    )


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def local_cache(tmp_path):
    """Local cache rooted in a temporary directory"""
    return LocalCache(tmp_path)


class FakeProfileStore:
    """
    In-memory profile store served through httpx.MockTransport

    Set `confirm_on_signup` to skip e-mail verification and `outage` to
    answer every request with 503.
    """

    def __init__(self):
        self.users = {}
        self.profiles = {}
        self.tokens = {}
        self.confirm_on_signup = False
        self.outage = False
        self.requests = []

    @property
    def transport(self):
        return httpx.MockTransport(self.handle)

    def add_user(self, email, password, confirmed=True, username=None):
        user_id = f"user-{len(self.users) + 1}"
        self.users[email] = {
            "id": user_id,
            "email": email,
            "password": password,
            "email_confirmed_at": "2024-05-01T10:00:00Z" if confirmed else None,
            "user_metadata": {"username": username} if username else {},
        }
        return user_id

    def _public(self, user):
        return {k: v for k, v in user.items() if k != "password"}

    def _current_user(self, request):
        auth = request.headers.get("Authorization", "")
        email = self.tokens.get(auth.replace("Bearer ", ""))
        return self.users.get(email)

    def handle(self, request):
        self.requests.append((request.method, request.url.path))
        if self.outage:
            return httpx.Response(503, json={"error": "unavailable"})

        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if request.method == "POST" and path == "/auth/signup":
            if body["email"] in self.users:
                return httpx.Response(400, json={"error": "User already registered"})
            user_id = self.add_user(
                body["email"],
                body["password"],
                confirmed=self.confirm_on_signup,
                username=body["data"].get("username"),
            )
            answer = {"user": self._public(self.users[body["email"]])}
            if self.confirm_on_signup:
                answer["access_token"] = f"token-{user_id}"
                self.tokens[answer["access_token"]] = body["email"]
            return httpx.Response(200, json=answer)

        if request.method == "POST" and path == "/auth/login":
            user = self.users.get(body["email"])
            if user is None or user["password"] != body["password"]:
                return httpx.Response(400, json={"error": "Invalid login credentials"})
            if not user["email_confirmed_at"]:
                return httpx.Response(400, json={"error": "Email not confirmed"})
            token = f"token-{user['id']}"
            self.tokens[token] = user["email"]
            return httpx.Response(200, json={"access_token": token, "user": self._public(user)})

        if request.method == "POST" and path == "/auth/logout":
            return httpx.Response(204)

        user = self._current_user(request)
        if user is None:
            return httpx.Response(401, json={"error": "Not authenticated"})

        if request.method == "GET" and path == "/auth/session":
            return httpx.Response(200, json={"user": self._public(user)})

        if path.startswith("/profiles/"):
            user_id = path.rsplit("/", 1)[-1]
            if request.method == "GET":
                profile = self.profiles.get(user_id)
                if profile is None:
                    return httpx.Response(404, json={"error": "Not found"})
                return httpx.Response(200, json=profile)
            if request.method == "PUT":
                self.profiles[user_id] = {"username": body["username"], "data": body["data"]}
                return httpx.Response(200, json={})

        return httpx.Response(404, json={"error": "Unknown route"})


@pytest.fixture
def fake_store():
    return FakeProfileStore()


@pytest.fixture
def remote_store(fake_store):
    """Remote profile store client wired to the fake backend"""
    return RemoteProfileStore("https://store.test", transport=fake_store.transport)
