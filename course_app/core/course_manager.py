"""Business logic for course state shared between the admin console and the API."""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from threading import Lock
from typing import Callable
from uuid import uuid4

from course_app.constants.course_constants import COURSE_HOURS_LABEL
from course_app.constants.playback_constants import DEFAULT_SEEK_TOLERANCE_SECONDS
from course_app.core.models import (
    CertificateInfo,
    Comment,
    CourseModule,
    CourseRating,
    ExamResult,
    Learner,
    Lesson,
    LiveEvent,
    Question,
    SchoolSettings,
)
from course_app.core.services.comment_board import CommentBoard
from course_app.core.services.exam_session import ExamOutcome, ExamSession, start_exam
from course_app.core.services.lesson_progression import LessonLocked, LessonProgression
from course_app.core.services.playback_gate import PlaybackGate, PlaybackState, PositionVerdict
from course_app.core.services.question_bank import QuestionBank
from course_app.core.services.rating_board import RatingBoard
from course_app.core.sheet_sync import SheetSyncClient
from course_app.core.storage import (
    COMMENTS,
    LIVE_EVENT,
    MODULES,
    QUESTION_BANK,
    RATINGS,
    SCHOOL_SETTINGS,
    CourseRepository,
    completed_lessons_key,
    exam_result_key,
    video_progress_key,
)

logger = logging.getLogger(__name__)


class CourseManager:
    """Facade over the course services, the repository and the sheet sync.

    Every public method takes the internal lock, so the Qt thread and the API
    server thread can share one instance. Pushes to the sync endpoint happen
    after the lock is released.
    """

    def __init__(
        self,
        repository: CourseRepository | None = None,
        sync: SheetSyncClient | None = None,
        seek_tolerance: float = DEFAULT_SEEK_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self._lock = Lock()
        self._repository = repository if repository is not None else CourseRepository()
        self._sync = sync
        self._seek_tolerance = seek_tolerance
        self._clock = clock
        self._rng = rng

        # Services
        self._bank = QuestionBank(self._repository.get(QUESTION_BANK))
        self._progression = LessonProgression(self._repository.get(MODULES))
        self._comments = CommentBoard(self._repository.get(COMMENTS))
        self._ratings = RatingBoard(self._repository.get(RATINGS))

        # Per-learner sessions, keyed by user id
        self._exams: dict[str, ExamSession] = {}
        self._gates: dict[str, PlaybackGate] = {}

        with self._lock:
            self._purge_comments()

    @property
    def repository(self) -> CourseRepository:
        return self._repository

    @property
    def seek_tolerance(self) -> float:
        return self._seek_tolerance

    # --- Question Bank ---

    def get_questions(self) -> list[Question]:
        with self._lock:
            return self._bank.get_questions()

    def get_question_count(self) -> int:
        with self._lock:
            return self._bank.get_question_count()

    def get_question_at_index(self, index: int) -> Question:
        with self._lock:
            return self._bank.get_question_at_index(index)

    def add_question(self, question: Question) -> Question:
        with self._lock:
            prepared = self._bank.add_question(question)
            questions = self._save_bank()
        self._push_bank(questions)
        return prepared

    def update_question(self, index: int, question: Question) -> Question:
        with self._lock:
            prepared = self._bank.update_question(index, question)
            questions = self._save_bank()
        self._push_bank(questions)
        return prepared

    def delete_question(self, index: int) -> None:
        with self._lock:
            self._bank.delete_question(index)
            questions = self._save_bank()
        self._push_bank(questions)

    def replace_questions(self, questions: list[Question]) -> int:
        """Swap the whole bank, e.g. after a file import. Returns the new size."""
        with self._lock:
            self._bank.load_questions(questions)
            saved = self._save_bank()
        logger.info("Question bank replaced with %d questions", len(saved))
        self._push_bank(saved)
        return len(saved)

    # --- Course Outline ---

    def get_modules(self) -> list[CourseModule]:
        with self._lock:
            return self._progression.get_modules()

    def add_module(self, title: str) -> CourseModule:
        cleaned = title.strip()
        if not cleaned:
            raise ValueError("Module title must not be empty.")
        module = CourseModule(id=uuid4().hex, title=cleaned)
        with self._lock:
            self._progression.set_modules([*self._progression.get_modules(), module])
            modules = self._save_modules()
        self._push_modules(modules)
        return module

    def update_module(self, module_id: str, title: str | None = None, is_visible: bool | None = None) -> CourseModule:
        with self._lock:
            module = self._require_module(module_id)
            if title is not None:
                if not title.strip():
                    raise ValueError("Module title must not be empty.")
                module.title = title.strip()
            if is_visible is not None:
                module.is_visible = is_visible
            modules = self._save_modules()
        self._push_modules(modules)
        return module

    def add_lesson(
        self,
        module_id: str,
        title: str,
        description: str = "",
        duration: str = "",
        video_url: str = "",
        thumbnail: str = "",
    ) -> Lesson:
        cleaned = title.strip()
        if not cleaned:
            raise ValueError("Lesson title must not be empty.")
        lesson = Lesson(
            id=uuid4().hex,
            title=cleaned,
            description=description,
            duration=duration,
            video_url=video_url,
            thumbnail=thumbnail,
        )
        with self._lock:
            self._require_module(module_id).lessons.append(lesson)
            modules = self._save_modules()
        self._push_modules(modules)
        return lesson

    def update_lesson(
        self,
        lesson_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        duration: str | None = None,
        video_url: str | None = None,
        thumbnail: str | None = None,
    ) -> Lesson:
        """Change only the given lesson fields."""
        with self._lock:
            lesson = self._require_lesson(lesson_id)
            if title is not None:
                if not title.strip():
                    raise ValueError("Lesson title must not be empty.")
                lesson.title = title.strip()
            if description is not None:
                lesson.description = description
            if duration is not None:
                lesson.duration = duration
            if video_url is not None:
                lesson.video_url = video_url
            if thumbnail is not None:
                lesson.thumbnail = thumbnail
            modules = self._save_modules()
        self._push_modules(modules)
        return lesson

    def delete_lesson(self, lesson_id: str) -> None:
        with self._lock:
            module = self._require_module_of(lesson_id)
            module.lessons = [lesson for lesson in module.lessons if lesson.id != lesson_id]
            modules = self._save_modules()
        self._push_modules(modules)

    # --- Progress ---

    def get_visible_modules(self, learner: Learner) -> list[CourseModule]:
        with self._lock:
            return self._progression.visible_modules(learner.role)

    def get_lesson(self, lesson_id: str) -> Lesson:
        with self._lock:
            return self._require_lesson(lesson_id)

    def get_completed_lessons(self, user_id: str) -> set[str]:
        with self._lock:
            return self._completed(user_id)

    def is_lesson_locked(self, learner: Learner, lesson_id: str) -> bool:
        with self._lock:
            return self._progression.is_lesson_locked(lesson_id, self._completed(learner.user_id), learner.role)

    def get_progress(self, learner: Learner) -> float:
        with self._lock:
            return self._progression.progress_percentage(self._completed(learner.user_id), learner.role)

    def can_start_exam(self, learner: Learner) -> bool:
        with self._lock:
            return self._progression.can_start_exam(self._completed(learner.user_id), learner.role)

    def get_resume_position(self, user_id: str, lesson_id: str) -> float:
        with self._lock:
            return self._repository.get(video_progress_key(user_id, lesson_id))

    def first_lesson(self, learner: Learner) -> Lesson | None:
        with self._lock:
            return self._progression.first_lesson(learner.role)

    # --- Playback ---

    def open_lesson(self, learner: Learner, lesson_id: str) -> Lesson:
        """Load a lesson into the learner's playback gate at its resume position."""
        with self._lock:
            lesson = self._require_lesson(lesson_id)
            if self._progression.is_lesson_locked(lesson_id, self._completed(learner.user_id), learner.role):
                raise LessonLocked("Finish the previous lesson to unlock this one.")
            gate = self._gate_for(learner)
            gate.allow_skip = learner.is_admin
            gate.load(lesson_id, self._repository.get(video_progress_key(learner.user_id, lesson_id)))
            return lesson

    def start_playback(self, learner: Learner) -> PlaybackState:
        with self._lock:
            gate = self._require_gate(learner)
            gate.start()
            return gate.state

    def report_position(self, learner: Learner, position: float) -> PositionVerdict:
        with self._lock:
            gate = self._require_gate(learner)
            verdict = gate.report_position(position)
            if verdict.accepted:
                self._repository.put(video_progress_key(learner.user_id, gate.lesson_id), verdict.position)
            return verdict

    def get_playback_state(self, learner: Learner) -> PlaybackState:
        with self._lock:
            return self._require_gate(learner).state

    def finish_lesson(self, learner: Learner, duration: float | None = None) -> Lesson | None:
        """Mark the loaded lesson as ended. Returns the lesson to auto-advance to.

        Raises ``RuntimeError`` while the learner has not played the lesson
        through to ``duration``.
        """
        with self._lock:
            gate = self._require_gate(learner)
            if not gate.can_end(duration):
                raise RuntimeError("Watch the lesson to the end before finishing it.")
            gate.mark_ended(duration)
            return self._progression.next_lesson(gate.lesson_id, learner.role)

    # --- Final Exam ---

    def start_exam(self, learner: Learner) -> ExamSession:
        with self._lock:
            self._progression.ensure_exam_unlocked(self._completed(learner.user_id), learner.role)
            session = start_exam(self._bank.get_questions(), learner.role, self._rng)
            self._exams[learner.user_id] = session
            return session

    def get_exam(self, user_id: str) -> ExamSession:
        with self._lock:
            return self._require_exam(user_id)

    def select_answer(self, user_id: str, question_index: int, option_index: int) -> None:
        with self._lock:
            self._require_exam(user_id).select_answer(question_index, option_index)

    def advance_exam(self, learner: Learner) -> ExamOutcome | None:
        """Advance the learner's exam. On the last question the result is stored."""
        with self._lock:
            session = self._require_exam(learner.user_id)
            outcome = session.advance()
            if outcome is None:
                return None
            result = outcome.to_result()
            self._repository.put(exam_result_key(learner.user_id), result)
            del self._exams[learner.user_id]
        if self._sync is not None:
            self._sync.push_exam_result(learner.display_name, learner.email, result)
        return outcome

    def cancel_exam(self, user_id: str) -> bool:
        with self._lock:
            return self._exams.pop(user_id, None) is not None

    def get_exam_result(self, user_id: str) -> ExamResult | None:
        with self._lock:
            return self._repository.get(exam_result_key(user_id))

    def certificate_for(self, user_id: str, learner_name: str | None = None) -> CertificateInfo | None:
        with self._lock:
            result = self._repository.get(exam_result_key(user_id))
            if result is None or not result.passed:
                return None
            settings = self._repository.get(SCHOOL_SETTINGS)
        return CertificateInfo(
            learner_name=learner_name or user_id,
            school_name=settings.school_name,
            course_hours=COURSE_HOURS_LABEL,
            score=result.score,
            total=result.total,
            issued_on=result.date,
        )

    # --- Comments ---

    def add_comment(self, learner: Learner, lesson_id: str, text: str) -> Comment:
        with self._lock:
            self._require_lesson(lesson_id)
            comment = self._comments.add_comment(lesson_id, learner.user_id, learner.display_name, text)
            self._repository.put(COMMENTS, self._comments.get_comments())
        if self._sync is not None:
            self._sync.push_comment(comment)
        return comment

    def get_lesson_comments(self, lesson_id: str) -> list[Comment]:
        with self._lock:
            return self._comments.get_lesson_comments(lesson_id)

    def get_all_comments(self) -> list[Comment]:
        with self._lock:
            return self._comments.get_comments()

    def get_unread_comments(self) -> list[Comment]:
        with self._lock:
            return self._comments.get_unread()

    def mark_comments_read(self, comment_ids: list[str]) -> int:
        with self._lock:
            changed = self._comments.mark_read(comment_ids)
            if changed:
                self._repository.put(COMMENTS, self._comments.get_comments())
            return changed

    def purge_old_comments(self, now: datetime | None = None) -> int:
        with self._lock:
            return self._purge_comments(now)

    # --- Ratings ---

    def can_rate(self, learner: Learner) -> bool:
        with self._lock:
            return RatingBoard.is_unlocked(learner.role, self._repository.get(exam_result_key(learner.user_id)))

    def submit_rating(self, learner: Learner, stars: int, comment: str = "") -> CourseRating:
        with self._lock:
            result = self._repository.get(exam_result_key(learner.user_id))
            if not RatingBoard.is_unlocked(learner.role, result):
                raise PermissionError("Pass the final exam to rate the course.")
            rating = self._ratings.submit(learner.user_id, learner.display_name, stars, comment)
            self._repository.put(RATINGS, self._ratings.get_ratings())
        if self._sync is not None:
            self._sync.push_rating(rating)
        return rating

    def get_ratings(self) -> list[CourseRating]:
        with self._lock:
            return self._ratings.get_ratings()

    def get_user_rating(self, user_id: str) -> CourseRating | None:
        with self._lock:
            return self._ratings.get_user_rating(user_id)

    def get_average_rating(self) -> float:
        with self._lock:
            return self._ratings.average()

    # --- Live Event ---

    def get_live_event(self) -> LiveEvent | None:
        with self._lock:
            return self._repository.get(LIVE_EVENT)

    def save_live_event(self, title: str, meet_url: str, date: datetime, active: bool = False) -> LiveEvent:
        """Schedule the live class, replacing the current one but keeping its id."""
        title = title.strip()
        meet_url = meet_url.strip()
        if not title:
            raise ValueError("Live event title must not be empty.")
        if not meet_url.startswith(("http://", "https://")):
            raise ValueError("Live event link must be an http(s) URL.")
        with self._lock:
            current = self._repository.get(LIVE_EVENT)
            event = LiveEvent(
                id=current.id if current is not None else uuid4().hex,
                title=title,
                meet_url=meet_url,
                date=date,
                active=active,
            )
            self._repository.put(LIVE_EVENT, event)
        logger.info("Live event '%s' saved (active=%s)", title, active)
        if self._sync is not None:
            self._sync.push_live_event(event)
        return event

    def clear_live_event(self) -> bool:
        with self._lock:
            if self._repository.get(LIVE_EVENT) is None:
                return False
            self._repository.put(LIVE_EVENT, None)
        logger.info("Live event removed")
        if self._sync is not None:
            self._sync.push_live_event(None)
        return True

    # --- School Settings ---

    def get_school_settings(self) -> SchoolSettings:
        with self._lock:
            return self._repository.get(SCHOOL_SETTINGS)

    def update_school_settings(self, settings: SchoolSettings) -> None:
        if not settings.school_name.strip():
            raise ValueError("School name must not be empty.")
        settings.school_name = settings.school_name.strip()
        with self._lock:
            self._repository.put(SCHOOL_SETTINGS, settings)
        if self._sync is not None:
            self._sync.push_school_settings(settings)

    # --- Sync ---

    def is_sync_enabled(self) -> bool:
        return self._sync is not None and self._sync.enabled

    def sync_now(self) -> bool:
        """Pull the remote snapshot and overwrite local data with it."""
        if not self.is_sync_enabled():
            return False
        snapshot = self._sync.pull()
        if snapshot is None:
            return False
        with self._lock:
            modules_to_push = self._sync.apply_snapshot(self._repository, snapshot)
            self._bank.load_questions(self._repository.get(QUESTION_BANK))
            self._progression.set_modules(self._repository.get(MODULES))
            self._ratings.load_ratings(self._repository.get(RATINGS))
            self._purge_comments()
        if modules_to_push:
            logger.info("Remote outline is empty; pushing %d local modules", len(modules_to_push))
            self._sync.push_modules(modules_to_push)
        logger.info("Sync finished")
        return True

    # --- Internal helpers (call with the lock held) ---

    def _completed(self, user_id: str) -> set[str]:
        return set(self._repository.get(completed_lessons_key(user_id)))

    def _mark_completed(self, user_id: str, lesson_id: str | None) -> None:
        if lesson_id is None:
            return
        key = completed_lessons_key(user_id)
        completed = self._repository.get(key)
        if lesson_id not in completed:
            completed.append(lesson_id)
            self._repository.put(key, completed)

    def _gate_for(self, learner: Learner) -> PlaybackGate:
        gate = self._gates.get(learner.user_id)
        if gate is None:
            user_id = learner.user_id
            gate = PlaybackGate(
                tolerance=self._seek_tolerance,
                clock=self._clock,
                on_complete=lambda lesson_id: self._mark_completed(user_id, lesson_id),
            )
            self._gates[user_id] = gate
        return gate

    def _require_gate(self, learner: Learner) -> PlaybackGate:
        gate = self._gates.get(learner.user_id)
        if gate is None or gate.lesson_id is None:
            raise RuntimeError("No lesson is open for playback.")
        return gate

    def _require_exam(self, user_id: str) -> ExamSession:
        session = self._exams.get(user_id)
        if session is None:
            raise RuntimeError("No exam in progress.")
        return session

    def _require_module(self, module_id: str) -> CourseModule:
        for module in self._progression.get_modules():
            if module.id == module_id:
                return module
        raise KeyError(f"Unknown module: {module_id}")

    def _require_lesson(self, lesson_id: str) -> Lesson:
        found = self._progression.find_lesson(lesson_id)
        if found is None:
            raise KeyError(f"Unknown lesson: {lesson_id}")
        return found[1]

    def _require_module_of(self, lesson_id: str) -> CourseModule:
        found = self._progression.find_lesson(lesson_id)
        if found is None:
            raise KeyError(f"Unknown lesson: {lesson_id}")
        return found[0]

    def _save_bank(self) -> list[Question]:
        questions = self._bank.get_questions()
        self._repository.put(QUESTION_BANK, questions)
        return questions

    def _save_modules(self) -> list[CourseModule]:
        modules = self._progression.get_modules()
        self._repository.put(MODULES, modules)
        return modules

    def _purge_comments(self, now: datetime | None = None) -> int:
        removed = self._comments.purge_older_than(now or datetime.now(timezone.utc))
        if removed:
            logger.info("Removed %d comments past the retention window", removed)
            self._repository.put(COMMENTS, self._comments.get_comments())
        return removed

    def _push_bank(self, questions: list[Question]) -> None:
        if self._sync is not None:
            self._sync.push_question_bank(questions)

    def _push_modules(self, modules: list[CourseModule]) -> None:
        if self._sync is not None:
            self._sync.push_modules(modules)
