import pytest

from course_app.core.bank_exporter import save_bank_to_file, serialize_bank
from course_app.core.bank_importer import BankImportError, load_bank_from_file, parse_bank_text
from course_app.core.models import Question

SAMPLE = """\
Q: Which protocol resolves host names?
A: DHCP
B: DNS
C: ARP
D: NTP
CORRECT: b

---

q: Evaluate $x^2$ at x = 3.
   Show your work.
a: 6
b: 9
c: 12
d: 3
correct: B
"""


def test_parse_reads_every_block() -> None:
    questions = parse_bank_text(SAMPLE)

    assert len(questions) == 2
    assert questions[0].options == ["DHCP", "DNS", "ARP", "NTP"]
    assert questions[0].correct_answer == 1
    assert questions[1].text == "Evaluate $x^2$ at x = 3.\nShow your work."
    assert all(q.id == "" for q in questions)


def test_blank_lines_also_separate_blocks() -> None:
    text = "Q: one\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: A\n\nQ: two\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: D\n"
    questions = parse_bank_text(text)
    assert [q.correct_answer for q in questions] == [0, 3]


@pytest.mark.parametrize(
    "block, message",
    [
        ("A: 1\nB: 2\nC: 3\nD: 4\nCORRECT: A", "Question text missing"),
        ("Q: x\nA: 1\nB: 2\nC: 3\nCORRECT: A", "exactly four options"),
        ("Q: x\nA: 1\nB: 2\nC: 3\nD:\nCORRECT: A", "cannot be empty"),
        ("Q: x\nA: 1\nB: 2\nC: 3\nD: 4", "CORRECT line missing"),
        ("Q: x\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: E", "one of A, B, C, or D"),
        ("stray text\nQ: x", "outside of a known section"),
    ],
)
def test_malformed_blocks_report_question_number(block, message) -> None:
    valid = "Q: ok\nA: 1\nB: 2\nC: 3\nD: 4\nCORRECT: A"
    with pytest.raises(BankImportError, match=message) as excinfo:
        parse_bank_text(f"{valid}\n---\n{block}")
    assert str(excinfo.value).startswith("Question 2:")


def test_empty_file_is_rejected(tmp_path) -> None:
    path = tmp_path / "empty.txt"
    path.write_text("\n\n---\n", encoding="utf-8")
    with pytest.raises(BankImportError, match="did not contain any questions"):
        load_bank_from_file(path)


def test_exported_file_imports_back(tmp_path, make_questions) -> None:
    questions = make_questions(3)
    path = tmp_path / "out" / "bank.txt"

    save_bank_to_file(path, questions)
    imported = load_bank_from_file(path)

    assert imported.source_path == path
    assert [(q.text, q.options, q.correct_answer) for q in imported.questions] == [
        (q.text, q.options, q.correct_answer) for q in questions
    ]


def test_serialize_format() -> None:
    text = serialize_bank([Question(id="q", text="Pick", options=["a", "b", "c", "d"], correct_answer=2)])
    assert text == "Q: Pick\nA: a\nB: b\nC: c\nD: d\nCORRECT: C\n"


def test_export_refuses_empty_bank(tmp_path) -> None:
    with pytest.raises(ValueError, match="empty question bank"):
        save_bank_to_file(tmp_path / "bank.txt", [])
