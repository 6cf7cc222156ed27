from __future__ import annotations

from collections.abc import Callable

import pytest

from course_app.core.models import CourseModule, Lesson, Question


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_question(number: int, correct: int = 0) -> Question:
    return Question(
        id=f"q{number}",
        text=f"Question {number}?",
        options=[f"{number}-a", f"{number}-b", f"{number}-c", f"{number}-d"],
        correct_answer=correct,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_questions() -> Callable[[int], list[Question]]:
    def factory(count: int) -> list[Question]:
        return [build_question(number, correct=number % 4) for number in range(1, count + 1)]

    return factory


@pytest.fixture
def course_modules() -> list[CourseModule]:
    """Intro (2 lessons), a hidden bonus module, then Advanced (1 lesson)."""
    return [
        CourseModule(
            id="m1",
            title="Intro",
            lessons=[
                Lesson(id="l1", title="Welcome", description="Hello **world**"),
                Lesson(id="l2", title="Setup"),
            ],
        ),
        CourseModule(
            id="m2",
            title="Bonus",
            lessons=[Lesson(id="l3", title="Extra")],
            is_visible=False,
        ),
        CourseModule(id="m3", title="Advanced", lessons=[Lesson(id="l4", title="Deep dive")]),
    ]
