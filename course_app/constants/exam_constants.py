"""Exam assembly and grading rules shared by core, API and admin UI."""

MAX_EXAM_QUESTIONS: int = 20
STUDENT_MIN_QUESTIONS: int = 20
ADMIN_MIN_QUESTIONS: int = 1
PASS_RATIO: float = 0.7
OPTIONS_PER_QUESTION: int = 4
