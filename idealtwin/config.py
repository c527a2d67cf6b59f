"""Configuration management"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Remote profile store (generic profile-blob upsert/fetch)
PERSISTENCE_API_URL: str = os.getenv("PERSISTENCE_API_URL", "")
PERSISTENCE_API_KEY: str = os.getenv("PERSISTENCE_API_KEY", "")

# AI suggestions
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
SUGGESTION_MODEL: str = os.getenv("SUGGESTION_MODEL", "gpt-4o-mini")

# Storage (local cache of the user-state blob)
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Sync
SAVE_DEBOUNCE_SECONDS: float = float(os.getenv("SAVE_DEBOUNCE_SECONDS", "2.0"))
SESSION_CACHE_TTL_SECONDS: int = int(os.getenv("SESSION_CACHE_TTL_SECONDS", "300"))
API_TIMEOUT: float = float(os.getenv("API_TIMEOUT", "10.0"))

# Localization
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "sk")


# Validation
def validate_config() -> None:
    """Validate configuration"""
    if SAVE_DEBOUNCE_SECONDS < 0:
        raise ValueError("SAVE_DEBOUNCE_SECONDS must not be negative")
    if SESSION_CACHE_TTL_SECONDS <= 0:
        raise ValueError("SESSION_CACHE_TTL_SECONDS must be positive")
    if DEFAULT_LANGUAGE not in ("sk", "en"):
        raise ValueError("DEFAULT_LANGUAGE must be 'sk' or 'en'")
    # Remote store and OpenAI key are optional: without them the app runs offline
