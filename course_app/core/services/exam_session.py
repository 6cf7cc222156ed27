"""Final exam assembly, answer tracking and grading."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from course_app.constants.exam_constants import (
    ADMIN_MIN_QUESTIONS,
    MAX_EXAM_QUESTIONS,
    PASS_RATIO,
    STUDENT_MIN_QUESTIONS,
)
from course_app.core.models import ExamResult, Question, UserRole

logger = logging.getLogger(__name__)


class ExamError(Exception):
    """Base class for recoverable exam flow errors."""


class InsufficientQuestionPool(ExamError):
    """Raised when the bank is too small to assemble an exam for a role."""

    def __init__(self, role: UserRole, available: int, required: int) -> None:
        self.role = role
        self.available = available
        self.required = required
        if role is UserRole.ADMIN:
            message = "Add at least 1 question to the question bank to test the exam."
        else:
            message = (
                f"The question bank has {available} of the {required} questions needed "
                "to generate the exam. Contact the administrator."
            )
        super().__init__(message)


class UnansweredAdvance(ExamError):
    """Raised when the taker tries to move on without answering."""

    def __init__(self, question_index: int) -> None:
        self.question_index = question_index
        super().__init__(f"Question {question_index + 1} must be answered before continuing.")


@dataclass(frozen=True)
class ExamOutcome:
    """Graded result of a finished session."""

    score: int
    total: int
    passed: bool

    def to_result(self, when: datetime | None = None) -> ExamResult:
        return ExamResult(
            score=self.score,
            total=self.total,
            passed=self.passed,
            date=when or datetime.now(timezone.utc),
        )


def minimum_required(role: UserRole) -> int:
    """Smallest bank that can produce an exam for this role."""
    return ADMIN_MIN_QUESTIONS if role is UserRole.ADMIN else STUDENT_MIN_QUESTIONS


def passing_score(total: int) -> int:
    """Correct answers needed to pass, rounded up."""
    # Round before ceil so float noise in total * PASS_RATIO cannot lift an exact bar by one.
    return math.ceil(round(total * PASS_RATIO, 9))


def grade(questions: Sequence[Question], answers: Sequence[int | None]) -> ExamOutcome:
    score = sum(
        1
        for question, answer in zip(questions, answers)
        if answer is not None and answer == question.correct_answer
    )
    total = len(questions)
    return ExamOutcome(score=score, total=total, passed=score >= passing_score(total))


def start_exam(
    questions: Sequence[Question],
    role: UserRole,
    rng: random.Random | None = None,
) -> "ExamSession":
    """Draw a bounded, uniformly shuffled exam from the bank.

    Raises:
        InsufficientQuestionPool: the bank is smaller than the role minimum.
    """
    required = minimum_required(role)
    if len(questions) < required:
        raise InsufficientQuestionPool(role, len(questions), required)

    pool = list(questions)
    # random.shuffle is Fisher-Yates: every permutation equally likely.
    (rng or random.Random()).shuffle(pool)
    selected = tuple(pool[: min(len(pool), MAX_EXAM_QUESTIONS)])
    logger.info("Exam assembled for %s: %d of %d questions", role.value, len(selected), len(questions))
    return ExamSession(selected)


class ExamSession:
    """One exam attempt. Discarded after completion or cancellation."""

    def __init__(self, selected_questions: Sequence[Question]) -> None:
        if not selected_questions:
            raise ValueError("An exam needs at least one question.")
        self._questions: tuple[Question, ...] = tuple(selected_questions)
        self._answers: list[int | None] = [None] * len(self._questions)
        self._current_index: int = 0
        self._outcome: ExamOutcome | None = None

    @property
    def selected_questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def is_finished(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> ExamOutcome | None:
        return self._outcome

    def current_question(self) -> Question:
        return self._questions[self._current_index]

    def is_last_question(self) -> bool:
        return self._current_index == len(self._questions) - 1

    def get_answers(self) -> list[int | None]:
        return list(self._answers)

    def get_answer(self, question_index: int) -> int | None:
        self._check_question_index(question_index)
        return self._answers[question_index]

    def select_answer(self, question_index: int, option_index: int) -> None:
        """Record or overwrite the chosen option for a question."""
        self._ensure_open()
        self._check_question_index(question_index)
        options = self._questions[question_index].options
        if not 0 <= option_index < len(options):
            raise ValueError(f"Option index {option_index} out of range")
        self._answers[question_index] = option_index

    def advance(self) -> ExamOutcome | None:
        """Move to the next question, or grade the exam after the last one."""
        self._ensure_open()
        if self._answers[self._current_index] is None:
            raise UnansweredAdvance(self._current_index)
        if self.is_last_question():
            self._outcome = self.score()
            logger.info("Exam finished: %d/%d passed=%s", self._outcome.score, self._outcome.total, self._outcome.passed)
            return self._outcome
        self._current_index += 1
        return None

    def score(self) -> ExamOutcome:
        """Grade the answers recorded so far. Pure; safe to call repeatedly."""
        return grade(self._questions, self._answers)

    def _ensure_open(self) -> None:
        if self._outcome is not None:
            raise RuntimeError("Exam session already finished.")

    def _check_question_index(self, question_index: int) -> None:
        if not 0 <= question_index < len(self._questions):
            raise IndexError(f"Question index {question_index} out of range")
