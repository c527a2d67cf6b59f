"""Unit tests for the Suggestion Service (idealtwin/services/suggestion_service.py)"""
import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from idealtwin.exceptions import SuggestionServiceError
from idealtwin.models import ActivityType
from idealtwin.services.suggestion_service import (
    SuggestionService,
    placeholder_avatar_url,
)


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def mock_client(content=None, side_effect=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion(content), side_effect=side_effect)
    return client


PLAN_JSON = json.dumps({"blocks": [
    {"title": "Deep work", "startTime": "09:00", "endTime": "11:00", "type": "work", "reason": "Peak focus"},
    {"title": "Nap", "startTime": "14:00", "endTime": "14:20", "type": "siesta"},
]})


# ============================================================================
# Plan Generation Tests
# ============================================================================

@pytest.mark.asyncio
async def test_generate_plan_parses_blocks():
    """Test camelCase blocks are parsed and unknown types become 'other'"""
    client = mock_client(PLAN_JSON)
    service = SuggestionService(client=client)

    plan = await service.generate_plan(["focus"], "mornings", "en")

    assert len(plan.blocks) == 2
    assert plan.blocks[0].start_time == "09:00"
    assert plan.blocks[0].reason == "Peak focus"
    assert plan.blocks[1].type == ActivityType.OTHER

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "focus" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_generate_plan_strips_code_fences():
    service = SuggestionService(client=mock_client(f"```json\n{PLAN_JSON}\n```"))
    plan = await service.generate_plan(["focus"], "", "sk")
    assert len(plan.blocks) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [
    "not json",
    "{}",
    '{"blocks": [{"title": "x"}]}',
    "",
    '{"blocks": [{"title": "Focus", "startTime": "9:00", "endTime": "noon"}]}',
])
async def test_generate_plan_malformed_response(content):
    """Test missing or malformed blocks raise SuggestionServiceError"""
    service = SuggestionService(client=mock_client(content))
    with pytest.raises(SuggestionServiceError):
        await service.generate_plan(["focus"], "", "en")


@pytest.mark.asyncio
async def test_generate_plan_api_error():
    service = SuggestionService(client=mock_client(side_effect=RuntimeError("rate limited")))
    with pytest.raises(SuggestionServiceError):
        await service.generate_plan(["focus"], "", "en")


@pytest.mark.asyncio
async def test_generate_plan_without_client():
    """Test a service without API key fails cleanly"""
    with patch("idealtwin.services.suggestion_service.OPENAI_API_KEY", ""):
        service = SuggestionService()
    with pytest.raises(SuggestionServiceError):
        await service.generate_plan(["focus"], "", "en")


@pytest.mark.asyncio
async def test_circuit_opens_after_repeated_failures():
    """Test the breaker fails fast once the API keeps failing"""
    client = mock_client(side_effect=RuntimeError("down"))
    service = SuggestionService(client=client)

    for _ in range(5):
        with pytest.raises(SuggestionServiceError):
            await service.generate_plan(["focus"], "", "en")

    with pytest.raises(SuggestionServiceError, match="circuit is open"):
        await service.generate_plan(["focus"], "", "en")
    assert client.chat.completions.create.await_count == 5


# ============================================================================
# Habit Suggestion Tests
# ============================================================================

@pytest.mark.asyncio
async def test_suggest_habits():
    client = mock_client("  Walk 20 minutes after lunch.  ")
    service = SuggestionService(client=client)

    result = await service.suggest_habits("sleep", "en")

    assert result.text == "Walk 20 minutes after lunch."
    assert result.sources == []
    assert "response_format" not in client.chat.completions.create.call_args.kwargs


# ============================================================================
# Avatar Tests
# ============================================================================

@pytest.mark.asyncio
async def test_avatar_default_is_placeholder(user_state):
    """Test the base-avatar sentinel yields the placeholder URL"""
    preview = await SuggestionService(client=None).render_avatar_preview(user_state)

    assert preview.is_placeholder is True
    assert preview.url == placeholder_avatar_url(user_state)


@pytest.mark.asyncio
async def test_avatar_rendered_url(user_state):
    renderer = AsyncMock(return_value="https://img.test/jana.png")
    preview = await SuggestionService(client=None, avatar_renderer=renderer).render_avatar_preview(user_state)

    assert preview.url == "https://img.test/jana.png"
    assert preview.is_placeholder is False


@pytest.mark.asyncio
async def test_avatar_renderer_failure_falls_back(user_state):
    renderer = AsyncMock(side_effect=RuntimeError("quota"))
    preview = await SuggestionService(client=None, avatar_renderer=renderer).render_avatar_preview(user_state)
    assert preview.is_placeholder is True


def test_placeholder_deterministic_and_evolving(user_state):
    """Test same state gives same URL and the look changes with level"""
    assert placeholder_avatar_url(user_state) == placeholder_avatar_url(user_state)
    assert "seed=Jana" in placeholder_avatar_url(user_state)

    # Level 10 needs 500 + 750 + ... + 2500 = 13500 XP
    veteran = user_state.model_copy(update={"xp": 13500})
    assert placeholder_avatar_url(veteran) != placeholder_avatar_url(user_state)
    assert "hoodie" in placeholder_avatar_url(veteran)

