"""Typed persistence for course data.

Every entity is stored under a ``StoreKey`` that carries both the raw key name
and the Python type of its value. ``CourseRepository`` encodes values to JSON
compatible data with pydantic on the way in and validates them on the way out,
so callers never handle raw dictionaries or ad-hoc key strings.

Two backends ship with the app: ``MemoryStore`` for tests and previews, and
``JsonFileStore`` which keeps one JSON document on disk (the desktop
counterpart of browser local storage).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Generic, Iterator, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from course_app.constants.course_constants import (
    DEFAULT_SCHOOL_NAME,
    DEFAULT_SUPPORT_EMAIL,
    DEFAULT_SUPPORT_PHONE,
)
from course_app.core.models import (
    Comment,
    CourseModule,
    CourseRating,
    ExamResult,
    LiveEvent,
    Question,
    SchoolSettings,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StoreKey(Generic[T]):
    """Name plus value type of one stored entity."""

    name: str
    value_type: Any
    default: Callable[[], T]

    def adapter(self) -> TypeAdapter[T]:
        return _adapter_for(self.value_type)


@lru_cache(maxsize=None)
def _adapter_for(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


def _default_school_settings() -> SchoolSettings:
    return SchoolSettings(
        school_name=DEFAULT_SCHOOL_NAME,
        support_email=DEFAULT_SUPPORT_EMAIL,
        support_phone=DEFAULT_SUPPORT_PHONE,
    )


QUESTION_BANK: StoreKey[list[Question]] = StoreKey("question_bank", list[Question], list)
MODULES: StoreKey[list[CourseModule]] = StoreKey("modules", list[CourseModule], list)
COMMENTS: StoreKey[list[Comment]] = StoreKey("comments", list[Comment], list)
RATINGS: StoreKey[list[CourseRating]] = StoreKey("ratings", list[CourseRating], list)
SCHOOL_SETTINGS: StoreKey[SchoolSettings] = StoreKey("school_settings", SchoolSettings, _default_school_settings)
LIVE_EVENT: StoreKey[LiveEvent | None] = StoreKey("live_event", LiveEvent | None, lambda: None)


def exam_result_key(user_id: str) -> StoreKey[ExamResult | None]:
    return StoreKey(f"exam_result/{user_id}", ExamResult | None, lambda: None)


def video_progress_key(user_id: str, lesson_id: str) -> StoreKey[float]:
    return StoreKey(f"video_progress/{user_id}/{lesson_id}", float, lambda: 0.0)


def completed_lessons_key(user_id: str) -> StoreKey[list[str]]:
    return StoreKey(f"completed_lessons/{user_id}", list[str], list)


class KeyValueStore(Protocol):
    """Raw JSON-compatible storage backend."""

    def read(self, name: str) -> Any:
        """Return the stored value or raise ``KeyError``."""

    def write(self, name: str, value: Any) -> None:
        ...

    def delete(self, name: str) -> None:
        ...

    def names(self) -> Iterator[str]:
        ...


class MemoryStore:
    """Dictionary-backed store."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def read(self, name: str) -> Any:
        return self._data[name]

    def write(self, name: str, value: Any) -> None:
        self._data[name] = value

    def delete(self, name: str) -> None:
        self._data.pop(name, None)

    def names(self) -> Iterator[str]:
        return iter(list(self._data))


class JsonFileStore:
    """Keeps every key in a single JSON document, rewritten on each change."""

    def __init__(self, file_path: Path) -> None:
        self._path = Path(file_path)
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def read(self, name: str) -> Any:
        return self._data[name]

    def write(self, name: str, value: Any) -> None:
        self._data[name] = value
        self._flush()

    def delete(self, name: str) -> None:
        if name in self._data:
            del self._data[name]
            self._flush()

    def names(self) -> Iterator[str]:
        return iter(list(self._data))

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s, starting with empty storage: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring %s: root is not a JSON object", self._path)
            return {}
        return raw

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_name(self._path.name + ".tmp")
        staging.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")
        staging.replace(self._path)


class CourseRepository:
    """Typed access to course data on top of a raw key/value store."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store: KeyValueStore = store if store is not None else MemoryStore()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def get(self, key: StoreKey[T]) -> T:
        """Return the stored value, or the key's default when missing or unreadable."""
        try:
            raw = self._store.read(key.name)
        except KeyError:
            return key.default()
        try:
            return key.adapter().validate_python(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable value for %s: %s", key.name, exc)
            return key.default()

    def put(self, key: StoreKey[T], value: T) -> None:
        """Store ``value``, overwriting whatever was there."""
        self._store.write(key.name, key.adapter().dump_python(value, mode="json"))

    def delete(self, key: StoreKey[Any]) -> None:
        self._store.delete(key.name)

    def has(self, key: StoreKey[Any]) -> bool:
        return key.name in set(self._store.names())
