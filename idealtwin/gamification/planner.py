"""
Day Plan Tracker

Maintains planned vs. actual time blocks for the current day and applies
the planning and block-completion rewards.

Rules:
- Planned blocks stay sorted by start time; every insert re-derives the
  actual track from the planned one (completion flags start over)
- Planning the day (manually or by generation) pays PLAN_DAY once
- Completing a block pays by activity type, up to 12 rewarded blocks a day
- Un-completing is always allowed and never takes XP back
"""

from datetime import date, datetime
from typing import List, Optional, Sequence, TYPE_CHECKING
import logging

from idealtwin.exceptions import (
    BlockNotFoundError,
    ConfirmationRequiredError,
    SuggestionServiceError,
)
from idealtwin.gamification.leveling import MAX_BLOCKS_PER_DAY, XP_VALUES, xp_for_block_type
from idealtwin.gamification.progression import Notice, Transition, award_xp, refill_energy
from idealtwin.i18n.translations import t
from idealtwin.models import ActivityType, DayPlan, TimeBlock, UserState
from idealtwin.validators import TimeBlockInput, validate_input

if TYPE_CHECKING:
    from idealtwin.services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)


def new_day_plan(today: Optional[date] = None) -> DayPlan:
    return DayPlan(date=(today or date.today()).isoformat())


def _new_block_id(blocks: Sequence[TimeBlock], now: datetime) -> str:
    existing = {b.id for b in blocks}
    stamp = int(now.timestamp() * 1000)
    while str(stamp) in existing:
        stamp += 1
    return str(stamp)


def _sorted_by_start(blocks: Sequence[TimeBlock]) -> List[TimeBlock]:
    return sorted(blocks, key=lambda b: b.start_time)


def _clone_blocks(blocks: Sequence[TimeBlock]) -> List[TimeBlock]:
    return [b.model_copy() for b in blocks]


def _award_plan_bonus(state: UserState) -> Transition:
    """One-time PLAN_DAY reward, gated by daily_plan_created"""
    if state.daily_plan_created:
        return Transition(state=state)

    xp = XP_VALUES["PLAN_DAY"]
    result = award_xp(state, xp, "plan_day")
    lang = state.preferences.language
    notices = [Notice("xp", t("notice.plan_bonus", lang, xp=xp))]
    if result["leveled_up"]:
        notices.append(Notice("lvl", t("notice.level_up", lang, level=result["new_level"])))

    return Transition(
        state=result["state"].model_copy(update={"daily_plan_created": True}),
        xp_awarded=xp,
        leveled_up=result["leveled_up"],
        notices=notices,
    )


def add_block(
    state: UserState,
    plan: DayPlan,
    title: str,
    start_time: str,
    end_time: str,
    block_type: ActivityType = ActivityType.WORK,
    now: Optional[datetime] = None
) -> Transition:
    """
    Insert a planned block and re-derive the actual track

    Raises:
        ValidationError: empty title, bad HH:MM time or unknown type
    """
    block_input = validate_input(
        TimeBlockInput,
        title=title,
        start_time=start_time,
        end_time=end_time,
        type=block_type,
    )
    if now is None:
        now = datetime.now()

    block = TimeBlock(
        id=_new_block_id([*plan.planned_blocks, *plan.actual_blocks], now),
        title=block_input.title,
        start_time=block_input.start_time,
        end_time=block_input.end_time,
        type=block_input.type,
        is_completed=False,
    )
    planned = _sorted_by_start([*plan.planned_blocks, block])
    plan = plan.model_copy(update={
        "planned_blocks": planned,
        "actual_blocks": _clone_blocks(planned),
    })

    logger.info(f"Added block '{block.title}' {block.start_time}-{block.end_time} for {state.name}")

    bonus = _award_plan_bonus(state)
    return Transition(
        state=bonus.state,
        plan=plan,
        xp_awarded=bonus.xp_awarded,
        leveled_up=bonus.leveled_up,
        notices=bonus.notices,
    )


async def generate_from_goals(
    state: UserState,
    plan: DayPlan,
    goals: List[str],
    preferences: str,
    suggestions: "SuggestionService",
    locale: Optional[str] = None
) -> Transition:
    """
    Replace the plan with one proposed by the suggestion service

    A failed, empty or malformed response leaves state and plan untouched.

    Raises:
        SuggestionServiceError: generation failed
    """
    locale = locale or state.preferences.language
    try:
        generated = await suggestions.generate_plan(goals, preferences, locale)
    except SuggestionServiceError:
        raise
    except Exception as e:
        raise SuggestionServiceError(
            message=f"Plan generation failed: {e}",
            username=state.name,
            operation="generate_from_goals",
            cause=e,
        )

    if not generated.blocks:
        raise SuggestionServiceError(
            message="Suggestion service returned no blocks",
            username=state.name,
            operation="generate_from_goals",
        )

    blocks = [
        TimeBlock(
            id=f"ai-{idx}",
            title=b.title,
            start_time=b.start_time,
            end_time=b.end_time,
            type=b.type,
            is_completed=False,
            notes=b.reason,
        )
        for idx, b in enumerate(generated.blocks)
    ]
    planned = _sorted_by_start(blocks)
    plan = plan.model_copy(update={
        "planned_blocks": planned,
        "actual_blocks": _clone_blocks(planned),
    })

    logger.info(f"Generated plan with {len(planned)} blocks for {state.name}")

    bonus = _award_plan_bonus(state)
    lang = state.preferences.language
    return Transition(
        state=bonus.state,
        plan=plan,
        xp_awarded=bonus.xp_awarded,
        leveled_up=bonus.leveled_up,
        notices=[Notice("info", t("plan.success_gen", lang)), *bonus.notices],
    )


def toggle_actual_completion(
    state: UserState,
    plan: DayPlan,
    block_id: str,
    block_type: ActivityType,
    currently_completed: bool
) -> Transition:
    """
    Flip the completion flag of an actual block

    Completing pays XP by activity type while under the daily cap; over the
    cap the block is still marked done. Un-completing is free.
    """
    if not any(b.id == block_id for b in plan.actual_blocks):
        raise BlockNotFoundError(block_id, username=state.name, operation="toggle_actual_completion")

    def _with_flag(flag: bool) -> DayPlan:
        return plan.model_copy(update={
            "actual_blocks": [
                b.model_copy(update={"is_completed": flag}) if b.id == block_id else b
                for b in plan.actual_blocks
            ],
        })

    if currently_completed:
        return Transition(state=state, plan=_with_flag(False))

    lang = state.preferences.language
    notices: List[Notice] = []
    xp = 0

    if state.daily_block_count >= MAX_BLOCKS_PER_DAY:
        logger.info(f"{state.name} reached daily block limit ({MAX_BLOCKS_PER_DAY}), no XP")
        notices.append(Notice("warning", t("notice.block_limit", lang)))
    else:
        xp = xp_for_block_type(block_type)

    plan = _with_flag(True)

    if not xp:
        return Transition(state=state, plan=plan, notices=notices)

    result = award_xp(state, xp, f"complete_{ActivityType(block_type).value}_block")
    new_state = result["state"].model_copy(update={
        "daily_block_count": state.daily_block_count + 1,
    })
    notices.append(Notice("xp", t("notice.xp", lang, xp=xp)))

    if result["leveled_up"]:
        new_state = refill_energy(new_state)
        notices.append(Notice("lvl", t("notice.level_up", lang, level=result["new_level"])))

    return Transition(
        state=new_state,
        plan=plan,
        xp_awarded=xp,
        leveled_up=result["leveled_up"],
        notices=notices,
    )


def clear_all(plan: DayPlan, confirmed: bool = False) -> DayPlan:
    """
    Empty both tracks of the plan

    Raises:
        ConfirmationRequiredError: unless confirmed=True
    """
    if not confirmed:
        raise ConfirmationRequiredError(
            message="Clearing the day plan requires confirmation",
            action="clear_all",
        )
    logger.info(f"Cleared day plan {plan.date}")
    return plan.model_copy(update={"planned_blocks": [], "actual_blocks": []})


def delete_block(plan: DayPlan, block_id: str) -> DayPlan:
    """Remove a block from both tracks"""
    planned = [b for b in plan.planned_blocks if b.id != block_id]
    actual = [b for b in plan.actual_blocks if b.id != block_id]
    if len(planned) == len(plan.planned_blocks) and len(actual) == len(plan.actual_blocks):
        raise BlockNotFoundError(block_id, operation="delete_block")
    return plan.model_copy(update={"planned_blocks": planned, "actual_blocks": actual})


def day_progress(plan: DayPlan) -> float:
    """Share of actual blocks completed, in percent"""
    if not plan.actual_blocks:
        return 0.0
    done = sum(1 for b in plan.actual_blocks if b.is_completed)
    return done / len(plan.actual_blocks) * 100
