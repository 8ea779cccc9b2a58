import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from config.settings import Config


logger = logging.getLogger(__name__)


def normalize_handle(handle: Optional[str]) -> str:
    """Lower-case a Telegram handle and strip the leading '@'."""
    if not handle:
        return ''
    return handle.strip().lstrip('@').lower()


class AllowListStore(Protocol):
    def read(self) -> List[str]: ...

    def add(self, handle: str) -> bool: ...

    def contains(self, handle: str) -> bool: ...


class InMemoryAllowListStore:
    """Allow-list held in a set. Used in tests and when no file is wanted."""

    def __init__(self, handles: Iterable[str] = ()):
        self._handles = {normalize_handle(h) for h in handles if normalize_handle(h)}

    def read(self) -> List[str]:
        return sorted(self._handles)

    def add(self, handle: str) -> bool:
        handle = normalize_handle(handle)
        if not handle or handle in self._handles:
            return False
        self._handles.add(handle)
        return True

    def contains(self, handle: str) -> bool:
        return normalize_handle(handle) in self._handles


class JsonAllowListStore:
    """
    Allow-list persisted as {"allowed": [...]} in a JSON file.

    The file is read on every check and rewritten in full on every add, so
    edits made by hand are picked up without a restart. Concurrent adds are
    not coordinated; the last write wins.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or Config.ALLOWED_FILE)
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])
            logger.info(f"Created empty allow-list at {self.path}")

    def _write(self, handles: List[str]) -> None:
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump({"allowed": handles}, f, indent=2, ensure_ascii=False)

    def read(self) -> List[str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read allow-list {self.path}: {e}")
            return []

        allowed = data.get("allowed", []) if isinstance(data, dict) else []
        return [normalize_handle(h) for h in allowed if isinstance(h, str) and normalize_handle(h)]

    def add(self, handle: str) -> bool:
        handle = normalize_handle(handle)
        if not handle:
            return False
        handles = self.read()
        if handle in handles:
            return False
        handles.append(handle)
        self._write(handles)
        return True

    def contains(self, handle: str) -> bool:
        handle = normalize_handle(handle)
        return bool(handle) and handle in self.read()


class AccessGate:
    """Decides whether an incoming Telegram user may talk to the bot."""

    def __init__(self, store: AllowListStore, admin_ids: Optional[Iterable[int]] = None):
        self.store = store
        self.admin_ids = frozenset(Config.ADMIN_IDS if admin_ids is None else admin_ids)

    def is_admin(self, user_id: Optional[int]) -> bool:
        return user_id is not None and user_id in self.admin_ids

    def is_allowed(self, user_id: Optional[int], username: Optional[str]) -> bool:
        if self.is_admin(user_id):
            return True
        return bool(username) and self.store.contains(username)

    def add_handle(self, handle: str) -> bool:
        """Add a handle. Returns False if it is empty or already present."""
        added = self.store.add(handle)
        if added:
            logger.info(f"Added @{normalize_handle(handle)} to the allow-list")
        return added
