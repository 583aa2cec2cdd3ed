"""Client-local key-value storage for the lead-capture session flag."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

SESSION_ID_KEY = "user_session_id"
ENQUIRY_SUBMITTED_KEY = "enquiry_submitted"
logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySessionStorage:
    """Storage that lives as long as the owning process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileSessionStorage:
    """Storage persisted as a flat JSON object on disk.

    A missing, unreadable or corrupted file reads as empty storage; the next
    write replaces it with a well-formed document.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def _load(self) -> dict[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as read_error:
            logger.warning(
                "Failed to read session storage",
                extra={"path": str(self.path)},
                exc_info=read_error,
            )
            return {}

        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupted session storage", extra={"path": str(self.path)})
            return {}
        if not isinstance(parsed, dict):
            logger.warning("Discarding non-object session storage", extra={"path": str(self.path)})
            return {}
        return parsed

    def _dump(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)


def read_enquiry_flag(storage: SessionStorage) -> bool | None:
    """Return the cached submission flag, or None when absent or malformed."""
    raw = storage.get(ENQUIRY_SUBMITTED_KEY)
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if isinstance(value, bool):
        return value
    return None


def write_enquiry_flag(storage: SessionStorage, value: bool) -> None:
    storage.set(ENQUIRY_SUBMITTED_KEY, json.dumps(value))
