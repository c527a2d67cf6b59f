"""Local cache of the user-state payload

Keeps one JSON file per user under DATA_PATH/cache plus a marker file for
the active session, so the app can start and save while offline.
"""
import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Dict, Optional

from idealtwin.config import DATA_PATH
from idealtwin.exceptions import CacheError

logger = logging.getLogger(__name__)

CACHE_PREFIX = "ideal_twin_local_cache_v1"
SESSION_FILE = "session_active.json"
TIMESTAMP_KEY = "_timestamp"


class LocalCache:
    """File-backed cache of user payloads"""

    def __init__(self, data_path: Path = DATA_PATH):
        self.cache_dir = Path(data_path) / "cache"

    def _user_file(self, username: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.@-]", "_", username)
        return self.cache_dir / f"{CACHE_PREFIX}_{safe}.json"

    def _write_json(self, path: Path, content: Dict[str, Any]) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(content, ensure_ascii=False))
            tmp.replace(path)
        except OSError as e:
            raise CacheError(f"Cache write failed: {e}", path=str(path), cause=e)

    def set(self, username: str, payload: Dict[str, Any]) -> None:
        """Store payload with a timestamp and mark the user as active"""
        self._write_json(self._user_file(username), {**payload, TIMESTAMP_KEY: time.time()})
        self.set_active_user(username)
        logger.debug(f"Cached payload for {username}")

    def get(self, username: str) -> Optional[Dict[str, Any]]:
        """Cached payload, or None if missing or unreadable"""
        path = self._user_file(username)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache for {username}: {e}")
            return None

    # Session marker

    def set_active_user(self, username: str, token: Optional[str] = None) -> None:
        session = self.get_session_info() or {}
        if session.get("username") != username:
            session = {}
        session["username"] = username
        if token is not None:
            session["token"] = token
        self._write_json(self.cache_dir / SESSION_FILE, session)

    def get_session_info(self) -> Optional[Dict[str, Any]]:
        path = self.cache_dir / SESSION_FILE
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session marker: {e}")
            return None

    def get_active_user(self) -> Optional[str]:
        session = self.get_session_info()
        return session.get("username") if session else None

    def clear_active_user(self) -> None:
        (self.cache_dir / SESSION_FILE).unlink(missing_ok=True)

    @staticmethod
    def age_seconds(payload: Dict[str, Any]) -> float:
        """Seconds since the payload was cached (inf when unknown)"""
        stamp = payload.get(TIMESTAMP_KEY)
        if stamp is None:
            return float("inf")
        return time.time() - float(stamp)
