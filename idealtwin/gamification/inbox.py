"""
Inbox notifications

Builds welcome, streak and level-up messages and applies read/delete
actions. Welcome messages store translation keys (rendered later with
{name}/{email}); achievement messages store text rendered in the user's
language at the moment they were earned.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from idealtwin.i18n.translations import resolve_text, t
from idealtwin.models import InboxMessage, UserState

logger = logging.getLogger(__name__)


def _now_iso(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def welcome_message(now: Optional[datetime] = None) -> InboxMessage:
    return InboxMessage(
        id=str(uuid4()),
        sender="msg.welcome.sender",
        subject="msg.welcome.subject",
        body="msg.welcome.body",
        date=_now_iso(now),
        read=False,
        type="welcome",
    )


def streak_message(habit_title: str, bonus_xp: int, lang: str, now: Optional[datetime] = None) -> InboxMessage:
    return InboxMessage(
        id=str(uuid4()),
        sender=t("msg.system.sender", lang),
        subject=t("msg.streak3.subject", lang),
        body=t("msg.streak3.body", lang, habit=habit_title, xp=bonus_xp),
        date=_now_iso(now),
        type="achievement",
    )


def level_up_message(
    state: UserState,
    level_info: Dict[str, Any],
    unlocks: List[Dict[str, Any]],
    now: Optional[datetime] = None
) -> InboxMessage:
    """Level-up notification; mentions newly unlocked rewards if any"""
    lang = state.preferences.language
    body = t("msg.levelup.body", lang, name=state.name, title=level_info["title"])
    if unlocks:
        names = ", ".join(a["name"] for a in unlocks)
        body += "\n" + t("msg.levelup.unlocks", lang, unlocks=names)

    return InboxMessage(
        id=str(uuid4()),
        sender=t("msg.system.sender", lang),
        subject=t("msg.levelup.subject", lang, level=level_info["level"]),
        body=body,
        date=_now_iso(now),
        type="achievement",
    )


def append_message(state: UserState, message: InboxMessage) -> UserState:
    return state.model_copy(update={"messages": [*state.messages, message]})


def mark_read(state: UserState, message_id: str) -> UserState:
    messages = [
        m.model_copy(update={"read": True}) if m.id == message_id else m
        for m in state.messages
    ]
    return state.model_copy(update={"messages": messages})


def delete_message(state: UserState, message_id: str) -> UserState:
    messages = [m for m in state.messages if m.id != message_id]
    if len(messages) == len(state.messages):
        logger.debug(f"Message {message_id} not found, nothing deleted")
    return state.model_copy(update={"messages": messages})


def sorted_messages(state: UserState) -> List[InboxMessage]:
    """Messages newest first"""
    return sorted(state.messages, key=lambda m: m.date, reverse=True)


def unread_count(state: UserState) -> int:
    return sum(1 for m in state.messages if not m.read)


def render_message(message: InboxMessage, state: UserState) -> Dict[str, Any]:
    """Resolve keys and placeholders of a message for display"""
    lang = state.preferences.language
    name = state.name
    email = state.email or ""
    return {
        "id": message.id,
        "sender": resolve_text(message.sender, lang, name=name, email=email),
        "subject": resolve_text(message.subject, lang, name=name, email=email),
        "body": resolve_text(message.body, lang, name=name, email=email),
        "date": message.date,
        "read": message.read,
        "type": message.type,
    }
