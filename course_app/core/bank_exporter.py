"""Write the question bank in the plain-text format read by the importer."""

from __future__ import annotations

from pathlib import Path

from course_app.core.models import Question

_OPTION_LETTERS = ("A", "B", "C", "D")


def save_bank_to_file(file_path: Path, questions: list[Question]) -> None:
    if not questions:
        raise ValueError("Cannot export an empty question bank.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_bank(questions), encoding="utf-8")


def serialize_bank(questions: list[Question]) -> str:
    blocks = [_serialize_question(question) for question in questions]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    text_lines = question.text.splitlines() or [""]
    lines = [f"Q: {text_lines[0]}", *text_lines[1:]]

    for letter, option_text in zip(_OPTION_LETTERS, question.options):
        option_lines = option_text.splitlines() or [""]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {_OPTION_LETTERS[question.correct_answer]}")
    return "\n".join(lines)
