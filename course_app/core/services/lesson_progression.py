"""Service for sequential lesson unlocking and course completion."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from course_app.core.models import CourseModule, Lesson, UserRole


class CourseNotCompleted(PermissionError):
    """Raised when a student asks for the exam before finishing every lesson."""


class LessonLocked(PermissionError):
    """Raised when a student opens a lesson whose predecessor is not completed."""


class LessonProgression:
    """Walks the course outline in order. Students see visible modules only."""

    def __init__(self, modules: Sequence[CourseModule] = ()) -> None:
        self._modules: list[CourseModule] = list(modules)

    def set_modules(self, modules: Sequence[CourseModule]) -> None:
        self._modules = list(modules)

    def get_modules(self) -> list[CourseModule]:
        return list(self._modules)

    def visible_modules(self, role: UserRole) -> list[CourseModule]:
        if role is UserRole.ADMIN:
            return list(self._modules)
        return [module for module in self._modules if module.is_visible]

    def visible_lessons(self, role: UserRole) -> list[Lesson]:
        return [lesson for module in self.visible_modules(role) for lesson in module.lessons]

    def find_lesson(self, lesson_id: str) -> tuple[CourseModule, Lesson] | None:
        for module in self._modules:
            for lesson in module.lessons:
                if lesson.id == lesson_id:
                    return module, lesson
        return None

    def first_lesson(self, role: UserRole) -> Lesson | None:
        lessons = self.visible_lessons(role)
        return lessons[0] if lessons else None

    def next_lesson(self, lesson_id: str, role: UserRole) -> Lesson | None:
        """Lesson to auto-advance to after ``lesson_id`` completes."""
        lessons = self.visible_lessons(role)
        for index, lesson in enumerate(lessons):
            if lesson.id == lesson_id:
                return lessons[index + 1] if index + 1 < len(lessons) else None
        return None

    def is_lesson_locked(self, lesson_id: str, completed: Iterable[str], role: UserRole) -> bool:
        if role is UserRole.ADMIN:
            return False
        lessons = self.visible_lessons(role)
        index = next((i for i, lesson in enumerate(lessons) if lesson.id == lesson_id), -1)
        if index == -1:
            # Lessons inside hidden modules are not reachable for students.
            return self.find_lesson(lesson_id) is not None
        if index == 0:
            return False
        return lessons[index - 1].id not in set(completed)

    def progress_percentage(self, completed: Iterable[str], role: UserRole) -> float:
        lessons = self.visible_lessons(role)
        if not lessons:
            return 0.0
        done = set(completed)
        finished = sum(1 for lesson in lessons if lesson.id in done)
        return (finished / len(lessons)) * 100

    def is_course_complete(self, completed: Iterable[str], role: UserRole) -> bool:
        lessons = self.visible_lessons(role)
        if not lessons:
            return False
        done = set(completed)
        return all(lesson.id in done for lesson in lessons)

    def can_start_exam(self, completed: Iterable[str], role: UserRole) -> bool:
        return role is UserRole.ADMIN or self.is_course_complete(completed, role)

    def ensure_exam_unlocked(self, completed: Iterable[str], role: UserRole) -> None:
        if not self.can_start_exam(completed, role):
            raise CourseNotCompleted("Complete every lesson to unlock the final exam.")
