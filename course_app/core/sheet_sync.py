"""Best-effort sync with a spreadsheet-backed web endpoint.

The endpoint accepts ``POST`` bodies of the form
``{"type": ..., "sheetName": ..., "payload": ...}`` (sent as ``text/plain`` so
the script host does not require a CORS preflight) and answers
``GET ?action=read`` with a JSON object holding the current sheets.

Remote data uses camelCase field names. The ``_Wire*`` models translate
between that shape and the domain dataclasses.

Sync never raises: network and decoding problems are logged and reported as
``False``/``None`` so the app keeps working from local storage.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from course_app.constants.network_constants import (
    SHEET_COMMENTS,
    SHEET_CONFIG,
    SHEET_CONTENT,
    SHEET_EXAM_RESULTS,
    SHEET_LIVE_EVENT,
    SHEET_QUESTION_BANK,
    SHEET_RATINGS,
    SYNC_TIMEOUT_SECONDS,
)
from course_app.core.models import (
    Comment,
    CourseModule,
    CourseRating,
    ExamResult,
    Lesson,
    LiveEvent,
    Question,
    SchoolSettings,
)
from course_app.core.services.question_bank import QuestionBank
from course_app.core.services.rating_board import RatingBoard
from course_app.core.storage import (
    LIVE_EVENT,
    MODULES,
    QUESTION_BANK,
    RATINGS,
    SCHOOL_SETTINGS,
    CourseRepository,
)

logger = logging.getLogger(__name__)

CONFIG_SCHOOL_NAME = "schoolName"
CONFIG_SUPPORT_INFO = "supportInfo"
CONFIG_SIDEBAR_LINK = "sidebarLink"

_ROW_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class _WireRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class _WireLesson(_WireRecord):
    id: str
    title: str
    description: str = ""
    duration: str = ""
    video_url: str = ""
    thumbnail: str = ""

    def to_model(self) -> Lesson:
        return Lesson(**self.model_dump())


class _WireModule(_WireRecord):
    id: str
    title: str
    lessons: list[_WireLesson] = []
    is_visible: bool = True

    def to_model(self) -> CourseModule:
        return CourseModule(
            id=self.id,
            title=self.title,
            lessons=[lesson.to_model() for lesson in self.lessons],
            is_visible=self.is_visible,
        )


class _WireQuestion(_WireRecord):
    id: str = ""
    text: str
    options: list[str]
    correct_answer: int

    def to_model(self) -> Question:
        return Question(**self.model_dump())


class _WireRating(_WireRecord):
    id: str
    user_id: str
    user_name: str
    rating: int
    comment: str = ""
    created_at: datetime

    def to_model(self) -> CourseRating:
        return CourseRating(**self.model_dump())


class _WireLiveEvent(_WireRecord):
    id: str = ""
    title: str
    meet_url: str
    date: datetime
    active: bool = False

    def to_model(self) -> LiveEvent:
        return LiveEvent(**self.model_dump())


@dataclass(slots=True)
class RemoteSnapshot:
    """Parsed answer of a read request."""

    config: dict[str, str] = field(default_factory=dict)
    modules: list[CourseModule] = field(default_factory=list)
    questions: list[Question] = field(default_factory=list)
    ratings: list[CourseRating] | None = None
    live_event: LiveEvent | None = None


def parse_snapshot(data: Any) -> RemoteSnapshot:
    """Turn the endpoint's JSON into a snapshot. Raises ``ValueError`` on bad shapes."""

    if not isinstance(data, dict):
        raise ValueError("Sync endpoint did not return a JSON object.")

    config_rows = data.get("config")
    if not isinstance(config_rows, list):
        config_rows = data.get("ConfigApp")
    config = _latest_config_values(config_rows if isinstance(config_rows, list) else [])

    raw_modules = data.get("modules")
    modules = [_WireModule.model_validate(item).to_model() for item in raw_modules] if isinstance(raw_modules, list) else []

    questions: list[Question] = []
    quizzes = data.get("quizzes")
    if isinstance(quizzes, dict) and isinstance(quizzes.get("questions"), list):
        questions = [_WireQuestion.model_validate(item).to_model() for item in quizzes["questions"]]

    raw_ratings = data.get("ratings")
    ratings = [_WireRating.model_validate(item).to_model() for item in raw_ratings] if isinstance(raw_ratings, list) else None

    raw_live = data.get("liveEvent")
    live_event = _WireLiveEvent.model_validate(raw_live).to_model() if isinstance(raw_live, dict) else None

    return RemoteSnapshot(
        config=config,
        modules=modules,
        questions=questions,
        ratings=ratings,
        live_event=live_event,
    )


def _latest_config_values(rows: list[Any]) -> dict[str, str]:
    # The config sheet is an append-only log, so later rows win.
    values: dict[str, str] = {}
    for row in rows:
        if isinstance(row, dict):
            key, value = row.get("key"), row.get("value")
        elif isinstance(row, list) and len(row) >= 2:
            key, value = row[0], row[1]
        else:
            continue
        if key and value:
            values[str(key)] = str(value)
    return values


class SheetSyncClient:
    """Pushes rows and documents to the sheet endpoint and reads snapshots back."""

    def __init__(
        self,
        endpoint_url: str | None,
        client: httpx.Client | None = None,
        timeout: float = SYNC_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._endpoint_url = (endpoint_url or "").strip()
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._owns_client = client is None
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self._endpoint_url)

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def push(self, sheet_name: str, payload: Any, kind: str = "save_data") -> bool:
        if not self.enabled:
            return False
        body = {"type": kind, "sheetName": sheet_name, "payload": payload}
        try:
            response = self._client.post(
                self._endpoint_url,
                content=json.dumps(body, ensure_ascii=False),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to push %s to sync endpoint: %s", sheet_name, exc)
            return False
        logger.debug("Pushed %s (%s)", sheet_name, kind)
        return True

    def pull(self) -> RemoteSnapshot | None:
        if not self.enabled:
            return None
        try:
            response = self._client.get(
                self._endpoint_url,
                params={"action": "read", "t": int(self._clock() * 1000)},
                headers={"Cache-Control": "no-store"},
                follow_redirects=True,
            )
            response.raise_for_status()
            snapshot = parse_snapshot(response.json())
        except httpx.HTTPError as exc:
            logger.error("Sync read failed: %s", exc)
            return None
        except ValueError as exc:
            # Covers malformed JSON and pydantic ValidationError.
            logger.error("Sync endpoint returned unusable data: %s", exc)
            return None
        logger.info(
            "Pulled snapshot: %d modules, %d questions, %s ratings",
            len(snapshot.modules),
            len(snapshot.questions),
            "no" if snapshot.ratings is None else len(snapshot.ratings),
        )
        return snapshot

    def apply_snapshot(self, repository: CourseRepository, snapshot: RemoteSnapshot) -> list[CourseModule]:
        """Overwrite local data with whatever the remote side holds.

        Returns the local modules the caller should push back when the remote
        outline is empty. Nothing is sent from here.
        """

        modules_to_push: list[CourseModule] = []
        if snapshot.modules:
            repository.put(MODULES, snapshot.modules)
        else:
            modules_to_push = repository.get(MODULES)

        if snapshot.questions:
            try:
                bank = QuestionBank(snapshot.questions)
            except ValueError as exc:
                logger.warning("Ignoring remote question bank: %s", exc)
            else:
                repository.put(QUESTION_BANK, bank.get_questions())

        if snapshot.ratings is not None:
            try:
                board = RatingBoard(snapshot.ratings)
            except ValueError as exc:
                logger.warning("Ignoring remote ratings: %s", exc)
            else:
                repository.put(RATINGS, board.get_ratings())

        if snapshot.live_event is not None:
            repository.put(LIVE_EVENT, snapshot.live_event)

        if snapshot.config:
            settings = repository.get(SCHOOL_SETTINGS)
            repository.put(SCHOOL_SETTINGS, _merge_config(settings, snapshot.config))
        return modules_to_push

    def push_modules(self, modules: list[CourseModule]) -> bool:
        payload = [_WireModule.model_validate(module).model_dump(by_alias=True) for module in modules]
        return self.push(SHEET_CONTENT, payload)

    def push_question_bank(self, questions: list[Question]) -> bool:
        payload = {
            "questions": [_WireQuestion.model_validate(q).model_dump(by_alias=True) for q in questions]
        }
        return self.push(SHEET_QUESTION_BANK, payload)

    def push_exam_result(self, learner_name: str, learner_email: str, result: ExamResult) -> bool:
        row = [
            learner_name,
            learner_email,
            result.score,
            result.total,
            "PASSED" if result.passed else "FAILED",
            _local_time(result.date),
        ]
        return self.push(SHEET_EXAM_RESULTS, row, kind="save_exam_result")

    def push_comment(self, comment: Comment) -> bool:
        row = [_local_time(comment.created_at), comment.user_name, comment.lesson_id, comment.text]
        return self.push(SHEET_COMMENTS, row)

    def push_rating(self, rating: CourseRating) -> bool:
        row = [_local_time(rating.created_at), rating.user_name, rating.rating, rating.comment]
        return self.push(SHEET_RATINGS, row)

    def push_live_event(self, event: LiveEvent | None) -> bool:
        payload = None if event is None else _WireLiveEvent.model_validate(event).model_dump(by_alias=True, mode="json")
        return self.push(SHEET_LIVE_EVENT, payload)

    def push_setting(self, key: str, value: str) -> bool:
        return self.push(SHEET_CONFIG, [key, value, datetime.now(timezone.utc).isoformat()])

    def push_school_settings(self, settings: SchoolSettings) -> bool:
        pushed = [
            self.push_setting(CONFIG_SCHOOL_NAME, settings.school_name),
            self.push_setting(
                CONFIG_SUPPORT_INFO,
                json.dumps({"email": settings.support_email, "phone": settings.support_phone}),
            ),
            self.push_setting(
                CONFIG_SIDEBAR_LINK,
                json.dumps({"label": settings.sidebar_link_label, "url": settings.sidebar_link_url}),
            ),
        ]
        return all(pushed)


def _merge_config(settings: SchoolSettings, config: dict[str, str]) -> SchoolSettings:
    merged = SchoolSettings(
        school_name=settings.school_name,
        support_email=settings.support_email,
        support_phone=settings.support_phone,
        sidebar_link_label=settings.sidebar_link_label,
        sidebar_link_url=settings.sidebar_link_url,
    )
    if CONFIG_SCHOOL_NAME in config:
        merged.school_name = config[CONFIG_SCHOOL_NAME]

    support = _decode_json_object(config.get(CONFIG_SUPPORT_INFO), CONFIG_SUPPORT_INFO)
    if support is not None:
        merged.support_email = str(support.get("email", ""))
        merged.support_phone = str(support.get("phone", ""))

    link = _decode_json_object(config.get(CONFIG_SIDEBAR_LINK), CONFIG_SIDEBAR_LINK)
    if link is not None:
        merged.sidebar_link_label = str(link.get("label", ""))
        merged.sidebar_link_url = str(link.get("url", ""))
    return merged


def _decode_json_object(raw: str | None, key: str) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed %s config value", key)
        return None
    if not isinstance(value, dict):
        logger.warning("Ignoring %s config value: not an object", key)
        return None
    return value


def _local_time(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(_ROW_TIME_FORMAT)
