"""Service for managing the final exam question bank."""

from __future__ import annotations

from uuid import uuid4

from course_app.constants.exam_constants import OPTIONS_PER_QUESTION
from course_app.core.models import Question


class QuestionBank:
    """Holds authored questions. The exam flow only ever reads from it."""

    def __init__(self, questions: list[Question] | None = None) -> None:
        self._questions: list[Question] = []
        if questions:
            self.load_questions(questions)

    def load_questions(self, questions: list[Question]) -> None:
        """Replace the whole bank. An empty list clears it."""
        previous = self._questions
        self._questions = []
        try:
            for question in questions:
                self._questions.append(self._prepare_question(question))
        except ValueError:
            self._questions = previous
            raise

    def get_questions(self) -> list[Question]:
        """Return a copy of all questions in authoring order."""
        return list(self._questions)

    def has_questions(self) -> bool:
        return bool(self._questions)

    def get_question_count(self) -> int:
        return len(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def get_question_at_index(self, index: int) -> Question:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"Question index {index} out of range")
        return self._questions[index]

    def add_question(self, question: Question) -> Question:
        prepared = self._prepare_question(question)
        self._questions.append(prepared)
        return prepared

    def update_question(self, index: int, question: Question) -> Question:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"Question index {index} out of range")

        prepared = self._prepare_question(question)
        # Replacement keeps the original id
        prepared.id = self._questions[index].id
        self._questions[index] = prepared
        return prepared

    def delete_question(self, index: int) -> None:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"Question index {index} out of range")
        self._questions.pop(index)

    def clear(self) -> None:
        self._questions = []

    def _prepare_question(self, question: Question) -> Question:
        """Validate and normalize a question before storage."""
        options = self._validate_options(question.options)
        if not isinstance(question.correct_answer, int) or not 0 <= question.correct_answer < OPTIONS_PER_QUESTION:
            raise ValueError("Correct answer index must be between 0 and 3.")

        cleaned_text = question.text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")

        question_id = (question.id or "").strip() or self._next_question_id()
        if any(existing.id == question_id for existing in self._questions):
            question_id = self._next_question_id()

        return Question(
            id=question_id,
            text=cleaned_text,
            options=options,
            correct_answer=question.correct_answer,
        )

    @staticmethod
    def _next_question_id() -> str:
        return uuid4().hex

    @staticmethod
    def _validate_options(options: list[str]) -> list[str]:
        if len(options) != OPTIONS_PER_QUESTION:
            raise ValueError("Each question must have exactly four options.")
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise ValueError("Option text cannot be empty.")
        return cleaned
