"""
Suggestion Service

AI-generated day plans and habit ideas, plus avatar previews.

Failures never produce partial results: a missing or malformed plan is
reported as SuggestionServiceError and the caller keeps its old plan.
Calls are not retried.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import pybreaker
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from idealtwin.config import OPENAI_API_KEY, SUGGESTION_MODEL
from idealtwin.exceptions import SuggestionServiceError
from idealtwin.gamification.leveling import level_from_xp
from idealtwin.models import ActivityType, UserState
from idealtwin.resilience.circuit_breaker import SUGGESTION_BREAKER, with_circuit_breaker
from idealtwin.validators import TIME_PATTERN

logger = logging.getLogger(__name__)

PLACEHOLDER_AVATAR_BASE = "https://api.dicebear.com/7.x/avataaars/svg"

LANGUAGE_NAMES = {"sk": "Slovak", "en": "English"}


class SuggestedBlock(BaseModel):
    """One block proposed by the model"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    start_time: str
    end_time: str
    type: ActivityType = ActivityType.OTHER
    reason: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        """Unknown activity types are tracked as 'other'"""
        values = {t.value for t in ActivityType}
        return v if v in values else ActivityType.OTHER

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not TIME_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid HH:MM time")
        return v


class GeneratedPlan(BaseModel):
    blocks: List[SuggestedBlock]


class HabitSuggestions(BaseModel):
    text: str
    sources: List[Dict[str, str]] = Field(default_factory=list)


class AvatarPreview(BaseModel):
    url: str
    is_placeholder: bool = False


AvatarRenderer = Callable[[UserState], Awaitable[Union[str, Dict[str, Any]]]]


def _strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def placeholder_avatar_url(state: UserState) -> str:
    """
    Deterministic base avatar that evolves with level

    Same name and level always give the same URL.
    """
    level = level_from_xp(state.xp)["level"]
    if level < 10:
        evolution = "&top[]=bob&mouth[]=smile&eyebrows[]=default"
    elif level < 20:
        evolution = "&top[]=shortHair&mouth[]=smile&clothing[]=hoodie"
    else:
        evolution = "&top[]=longHair&mouth[]=smile&clothing[]=blazer&accessories[]=shades"

    return f"{PLACEHOLDER_AVATAR_BASE}?seed={quote(state.name)}{evolution}"


async def _base_avatar_renderer(state: UserState) -> Dict[str, Any]:
    """Image generation is not available; always ask for the base avatar"""
    return {"useBaseAvatar": True}


class SuggestionService:
    """
    Client for plan/habit suggestions and avatar previews.

    Without an OpenAI key every suggestion call fails with
    SuggestionServiceError; avatar previews always work.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: str = SUGGESTION_MODEL,
        avatar_renderer: Optional[AvatarRenderer] = None
    ):
        if client is None and OPENAI_API_KEY:
            client = AsyncOpenAI(api_key=OPENAI_API_KEY)
        self.client = client
        self.model = model
        self.avatar_renderer = avatar_renderer or _base_avatar_renderer
        logger.debug("SuggestionService initialized")

    @with_circuit_breaker(SUGGESTION_BREAKER)
    async def _complete(self, prompt: str, json_mode: bool) -> str:
        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    async def _ask(self, prompt: str, operation: str, json_mode: bool = False) -> str:
        if self.client is None:
            raise SuggestionServiceError(
                message="Suggestion service is not configured (no API key)",
                operation=operation,
            )
        try:
            return await self._complete(prompt, json_mode)
        except pybreaker.CircuitBreakerError as e:
            raise SuggestionServiceError(message="Suggestion circuit is open", operation=operation, cause=e)
        except Exception as e:
            raise SuggestionServiceError(message=f"{operation} failed: {e}", operation=operation, cause=e)

    async def generate_plan(self, goals: List[str], preferences: str, locale: str = "sk") -> GeneratedPlan:
        """
        Propose an ideal day for the given goals

        Blocks may overlap or leave gaps; no coverage is guaranteed.

        Raises:
            SuggestionServiceError: service failure or response without blocks
        """
        language = LANGUAGE_NAMES.get(locale, "English")
        prompt = (
            f"Design an ideal daily plan for a user with these goals: {', '.join(goals) or 'none'}. "
            f"Preferences: {preferences}. Write titles and reasons in {language}. "
            'Reply only with JSON: {"blocks": [{"title": "...", "startTime": "HH:MM", '
            '"endTime": "HH:MM", "type": "work|rest|habit|exercise|social|health|other", '
            '"reason": "why this block helps"}]}'
        )
        text = await self._ask(prompt, "generate_plan", json_mode=True)

        try:
            data = json.loads(_strip_code_fences(text))
            plan = GeneratedPlan.model_validate(data)
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise SuggestionServiceError(message=f"Malformed plan response: {e}", operation="generate_plan", cause=e)

        logger.info(f"Generated plan with {len(plan.blocks)} blocks for goals {goals}")
        return plan

    async def suggest_habits(self, query: str, locale: str = "sk") -> HabitSuggestions:
        """Free-text, evidence-based habit ideas for an area of life"""
        language = LANGUAGE_NAMES.get(locale, "English")
        prompt = f"Suggest science-backed habits for improving: {query}. Answer in {language}."
        text = await self._ask(prompt, "suggest_habits")
        return HabitSuggestions(text=text.strip(), sources=[])

    async def render_avatar_preview(self, state: UserState) -> AvatarPreview:
        """
        Preview image for the user's avatar

        A `{"useBaseAvatar": True}` answer or a renderer failure yields the
        deterministic placeholder avatar.
        """
        try:
            result = await self.avatar_renderer(state)
        except Exception as e:
            logger.warning(f"Avatar rendering failed, using base avatar: {e}")
            result = {"useBaseAvatar": True}

        if isinstance(result, str) and result:
            return AvatarPreview(url=result)
        return AvatarPreview(url=placeholder_avatar_url(state), is_placeholder=True)
