"""
Translations for messages, notices and labels.

Simple dictionary approach: language_code -> {key: translated_string}.
Inbox messages store keys instead of text so they render in the
user's current language.
"""
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

TRANSLATIONS: Dict[str, Dict[str, Any]] = {
    "en": {
        # Inbox: welcome
        "msg.welcome.sender": "Your Ideal Twin",
        "msg.welcome.subject": "Welcome, {name}!",
        "msg.welcome.body": "Hi {name}, I'm your twin. Plan your day, build habits and we'll grow together. Updates go to {email}.",

        # Inbox: achievements
        "msg.system.sender": "IdealTwin",
        "msg.streak3.subject": "3-day streak!",
        "msg.streak3.body": "You completed \"{habit}\" three days in a row. Bonus +{xp} XP!",
        "msg.levelup.subject": "Level up! You reached level {level}",
        "msg.levelup.body": "Congratulations {name}, you are now a {title}.",
        "msg.levelup.unlocks": "New rewards unlocked: {unlocks}",

        # Notices (toasts)
        "notice.xp": "+{xp} XP",
        "notice.level_up": "LEVEL UP! Level {level}",
        "notice.habit_created": "Habit added! +{xp} XP",
        "notice.habit_limit": "Daily habit reward limit reached. Completion saved without XP.",
        "notice.block_limit": "Daily block reward limit reached. Completion saved without XP.",
        "notice.plan_bonus": "Day planned! +{xp} XP",

        # Planner
        "plan.success_gen": "Plan generated!",
        "plan.error_gen": "Plan generation failed. Your current plan was kept.",
        "plan.confirm_clear": "Really clear the whole plan?",

        # Inbox
        "inbox.title": "Inbox",
        "inbox.new": "new",
        "inbox.empty": "No messages",

        # Auth
        "auth.fill_all": "Please fill in all fields.",
        "auth.verification_required": "Check your e-mail to verify your account.",
        "auth.email_not_confirmed": "Your e-mail has not been confirmed yet.",
        "auth.offline": "Offline mode active",
        "auth.saved_locally": "Saved locally",
        "auth.session_expired": "Session expired or e-mail not confirmed",
    },
    "sk": {
        "msg.welcome.sender": "Tvoj Ideálny Twin",
        "msg.welcome.subject": "Vitaj, {name}!",
        "msg.welcome.body": "Ahoj {name}, som tvoj twin. Naplánuj si deň, buduj návyky a budeme rásť spolu. Novinky posielame na {email}.",

        "msg.system.sender": "IdealTwin",
        "msg.streak3.subject": "3-dňová séria!",
        "msg.streak3.body": "Návyk \"{habit}\" si splnil tri dni po sebe. Bonus +{xp} XP!",
        "msg.levelup.subject": "Level up! Dosiahol si úroveň {level}",
        "msg.levelup.body": "Gratulujeme {name}, teraz si {title}.",
        "msg.levelup.unlocks": "Nové odmeny odomknuté: {unlocks}",

        "notice.xp": "+{xp} XP",
        "notice.level_up": "LEVEL UP! Úroveň {level}",
        "notice.habit_created": "Návyk pridaný! +{xp} XP",
        "notice.habit_limit": "Denný limit odmien za návyky dosiahnutý. Splnenie uložené bez XP.",
        "notice.block_limit": "Denný limit odmien za bloky dosiahnutý. Splnenie uložené bez XP.",
        "notice.plan_bonus": "Deň naplánovaný! +{xp} XP",

        "plan.success_gen": "Plán vygenerovaný!",
        "plan.error_gen": "Generovanie plánu zlyhalo. Tvoj aktuálny plán zostal.",
        "plan.confirm_clear": "Naozaj vymazať celý plán?",

        "inbox.title": "Schránka",
        "inbox.new": "nové",
        "inbox.empty": "Žiadne správy",

        "auth.fill_all": "Prosím vyplňte všetky polia.",
        "auth.verification_required": "Skontrolujte si e-mail a overte účet.",
        "auth.email_not_confirmed": "Váš e-mail ešte nebol potvrdený.",
        "auth.offline": "Offline režim aktívny",
        "auth.saved_locally": "Uložené lokálne",
        "auth.session_expired": "Relácia vypršala alebo email nie je potvrdený",
    },
}


def t(key: str, lang: str = 'en', **kwargs) -> str:
    """
    Translate a key to the specified language with optional formatting.

    Args:
        key: Translation key (e.g., 'notice.xp', 'msg.welcome.subject')
        lang: Language code (defaults to 'en')
        **kwargs: Format arguments for string formatting

    Returns:
        Translated and formatted string. Falls back to English if key not found.

    Examples:
        t('notice.xp', lang='sk', xp=15)
        t('msg.levelup.subject', level=3)
    """
    lang_dict = TRANSLATIONS.get(lang, TRANSLATIONS['en'])

    translated = lang_dict.get(key, TRANSLATIONS['en'].get(key, f"[MISSING: {key}]"))

    if kwargs:
        try:
            return translated.format(**kwargs)
        except KeyError as e:
            logger.error(f"Translation formatting error for key '{key}': {e}")
            return translated

    return translated


def is_translation_key(value: str) -> bool:
    return value in TRANSLATIONS['en']


def resolve_text(
    value: str,
    lang: str = 'en',
    name: Optional[str] = None,
    email: Optional[str] = None
) -> str:
    """
    Resolve a stored message field for display.

    `value` is either literal text or a translation key. After lookup the
    {name} and {email} placeholders are substituted; other braces are left
    untouched so literal text never fails to render.
    """
    text = t(value, lang) if is_translation_key(value) else value
    if name is not None:
        text = text.replace("{name}", name)
    if email is not None:
        text = text.replace("{email}", email)
    return text


def get_supported_languages() -> list[str]:
    """Return list of supported language codes"""
    return list(TRANSLATIONS.keys())
