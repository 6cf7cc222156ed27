import pytest

from course_app.core.models import Question
from course_app.core.services.question_bank import QuestionBank


def _question(**overrides) -> Question:
    values = {"id": "", "text": "What is 2 + 2?", "options": ["1", "2", "3", "4"], "correct_answer": 3}
    values.update(overrides)
    return Question(**values)


def test_add_question_assigns_id_and_strips_text() -> None:
    bank = QuestionBank()
    added = bank.add_question(_question(text="  What is 2 + 2?  ", options=[" 1", "2 ", "3", "4"]))

    assert added.id
    assert added.text == "What is 2 + 2?"
    assert added.options == ["1", "2", "3", "4"]
    assert bank.get_question_count() == 1
    assert len(bank) == 1


def test_update_question_keeps_original_id() -> None:
    bank = QuestionBank()
    original = bank.add_question(_question(id="keep-me"))

    updated = bank.update_question(0, _question(id="other", text="Changed?"))

    assert updated.id == original.id == "keep-me"
    assert bank.get_question_at_index(0).text == "Changed?"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"options": ["a", "b", "c"]}, "exactly four options"),
        ({"options": ["a", "b", " ", "d"]}, "cannot be empty"),
        ({"correct_answer": 4}, "between 0 and 3"),
        ({"correct_answer": -1}, "between 0 and 3"),
        ({"text": "   "}, "must not be empty"),
    ],
)
def test_invalid_questions_are_rejected(overrides, message) -> None:
    bank = QuestionBank()
    with pytest.raises(ValueError, match=message):
        bank.add_question(_question(**overrides))
    assert not bank.has_questions()


def test_load_questions_is_all_or_nothing() -> None:
    bank = QuestionBank([_question(id="a")])

    with pytest.raises(ValueError):
        bank.load_questions([_question(id="b"), _question(id="c", options=["x"])])

    assert [q.id for q in bank.get_questions()] == ["a"]


def test_load_questions_keeps_ids_and_fixes_duplicates() -> None:
    bank = QuestionBank([_question(id="a")])

    bank.load_questions([_question(id="a"), _question(id="a"), _question(id="b")])

    ids = [q.id for q in bank.get_questions()]
    assert ids[0] == "a"
    assert ids[2] == "b"
    assert len(set(ids)) == 3


def test_index_errors_for_missing_questions() -> None:
    bank = QuestionBank()
    with pytest.raises(IndexError):
        bank.get_question_at_index(0)
    with pytest.raises(IndexError):
        bank.update_question(0, _question())
    with pytest.raises(IndexError):
        bank.delete_question(0)


def test_get_questions_returns_copy() -> None:
    bank = QuestionBank([_question()])
    questions = bank.get_questions()
    questions.clear()
    assert bank.get_question_count() == 1
