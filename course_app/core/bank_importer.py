"""Import exam questions from a plain-text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D

Every exam question is graded, so CORRECT is mandatory.

Example:

    Q: Which protocol resolves host names?
    A: DHCP
    B: DNS
    C: ARP
    D: NTP
    CORRECT: B
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from course_app.core.models import Question


class BankImportError(Exception):
    """Raised when a question bank file cannot be parsed."""


@dataclass(slots=True)
class ImportedBank:
    """Questions read from one source file."""

    source_path: Path
    questions: list[Question]


_OPTION_LETTERS = ["A", "B", "C", "D"]


def load_bank_from_file(file_path: Path) -> ImportedBank:
    text = file_path.read_text(encoding="utf-8")
    questions = parse_bank_text(text)
    if not questions:
        raise BankImportError("File did not contain any questions.")
    return ImportedBank(source_path=file_path, questions=questions)


def parse_bank_text(text: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[Question] = []
    for number, block in enumerate(blocks, start=1):
        try:
            questions.append(_parse_block(block))
        except BankImportError as exc:
            raise BankImportError(f"Question {number}: {exc}") from exc
    return questions


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) >= 2 and line[0].upper() in _OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_LETTERS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise BankImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise BankImportError("Question text missing (Q: ...)")
    if len(options) != 4:
        raise BankImportError("Each question must define exactly four options (A-D).")

    option_list = [options[letter].strip() for letter in _OPTION_LETTERS]
    if any(not option for option in option_list):
        raise BankImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise BankImportError("CORRECT line missing.")
    if correct_letter not in _OPTION_LETTERS:
        raise BankImportError("CORRECT must be one of A, B, C, or D.")

    return Question(
        id="",  # assigned by QuestionBank when loaded
        text=question_text,
        options=option_list,
        correct_answer=_OPTION_LETTERS.index(correct_letter),
    )
