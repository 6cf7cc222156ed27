import random

import pytest

from course_app.core.models import UserRole
from course_app.core.services.exam_session import (
    ExamSession,
    InsufficientQuestionPool,
    UnansweredAdvance,
    grade,
    minimum_required,
    passing_score,
    start_exam,
)


def _answer_all(session: ExamSession, correct_count: int):
    outcome = None
    for index, question in enumerate(session.selected_questions):
        wrong = (question.correct_answer + 1) % 4
        session.select_answer(index, question.correct_answer if index < correct_count else wrong)
        outcome = session.advance()
    return outcome


@pytest.mark.parametrize("bank_size", [20, 21, 25, 60])
def test_student_exam_draws_twenty_unique_questions(make_questions, bank_size) -> None:
    bank = make_questions(bank_size)
    session = start_exam(bank, UserRole.STUDENT, random.Random(bank_size))

    selected = session.selected_questions
    assert len(selected) == min(bank_size, 20)
    assert len({q.id for q in selected}) == len(selected)
    assert all(q in bank for q in selected)


@pytest.mark.parametrize("bank_size", [0, 1, 19])
def test_student_exam_rejected_below_minimum(make_questions, bank_size) -> None:
    with pytest.raises(InsufficientQuestionPool) as excinfo:
        start_exam(make_questions(bank_size), UserRole.STUDENT)
    assert excinfo.value.available == bank_size
    assert excinfo.value.required == 20
    assert "Contact the administrator" in str(excinfo.value)


def test_admin_exam_uses_whole_small_bank(make_questions) -> None:
    bank = make_questions(10)
    session = start_exam(bank, UserRole.ADMIN, random.Random(1))
    assert session.total == 10
    assert {q.id for q in session.selected_questions} == {q.id for q in bank}


def test_admin_exam_rejected_on_empty_bank() -> None:
    with pytest.raises(InsufficientQuestionPool, match="at least 1 question"):
        start_exam([], UserRole.ADMIN)


def test_minimum_required_per_role() -> None:
    assert minimum_required(UserRole.ADMIN) == 1
    assert minimum_required(UserRole.STUDENT) == 20


def test_start_exam_does_not_mutate_bank(make_questions) -> None:
    bank = make_questions(25)
    before = [q.id for q in bank]
    start_exam(bank, UserRole.STUDENT, random.Random(7))
    assert [q.id for q in bank] == before


def test_shuffle_reaches_every_question_position(make_questions) -> None:
    bank = make_questions(3)
    rng = random.Random(1234)
    first_picks = {start_exam(bank, UserRole.ADMIN, rng).selected_questions[0].id for _ in range(200)}
    assert first_picks == {"q1", "q2", "q3"}


@pytest.mark.parametrize(
    "total, required",
    [(1, 1), (2, 2), (3, 3), (5, 4), (10, 7), (15, 11), (20, 14)],
)
def test_passing_score_rounds_up(total, required) -> None:
    assert passing_score(total) == required


def test_passing_score_matches_ratio_for_all_exam_sizes() -> None:
    for total in range(1, 21):
        bar = passing_score(total)
        assert bar >= total * 0.7 - 1e-9
        assert bar - 1 < total * 0.7 - 1e-9


def test_student_scenario_fifteen_of_twenty_passes(make_questions) -> None:
    session = start_exam(make_questions(25), UserRole.STUDENT, random.Random(3))
    outcome = _answer_all(session, correct_count=15)

    assert (outcome.score, outcome.total, outcome.passed) == (15, 20, True)
    assert session.is_finished
    assert session.outcome == outcome


def test_admin_scenario_six_of_ten_fails(make_questions) -> None:
    session = start_exam(make_questions(10), UserRole.ADMIN, random.Random(3))
    outcome = _answer_all(session, correct_count=6)
    assert (outcome.score, outcome.total, outcome.passed) == (6, 10, False)


def test_thirteen_of_twenty_fails(make_questions) -> None:
    session = ExamSession(make_questions(20))
    outcome = _answer_all(session, correct_count=13)
    assert outcome.passed is False


def test_advance_requires_answer(make_questions) -> None:
    session = ExamSession(make_questions(3))
    with pytest.raises(UnansweredAdvance) as excinfo:
        session.advance()
    assert excinfo.value.question_index == 0
    assert session.current_index == 0


def test_advance_moves_forward_until_last(make_questions) -> None:
    session = ExamSession(make_questions(2))
    session.select_answer(0, 1)
    assert session.advance() is None
    assert session.current_index == 1
    assert session.is_last_question()
    session.select_answer(1, 0)
    assert session.advance() is not None


def test_select_answer_overwrites_previous_choice(make_questions) -> None:
    session = ExamSession(make_questions(1))
    session.select_answer(0, 0)
    session.select_answer(0, 2)
    assert session.get_answer(0) == 2
    assert session.get_answers() == [2]


def test_select_answer_bounds(make_questions) -> None:
    session = ExamSession(make_questions(2))
    with pytest.raises(IndexError):
        session.select_answer(2, 0)
    with pytest.raises(ValueError):
        session.select_answer(0, 4)


def test_finished_session_rejects_changes(make_questions) -> None:
    session = ExamSession(make_questions(1))
    session.select_answer(0, 0)
    session.advance()
    with pytest.raises(RuntimeError):
        session.select_answer(0, 1)
    with pytest.raises(RuntimeError):
        session.advance()


def test_rescoring_is_idempotent(make_questions) -> None:
    session = start_exam(make_questions(20), UserRole.STUDENT, random.Random(9))
    _answer_all(session, correct_count=17)
    assert session.score() == session.score() == session.outcome


def test_grade_ignores_unanswered(make_questions) -> None:
    questions = make_questions(4)
    outcome = grade(questions, [questions[0].correct_answer, None, None, questions[3].correct_answer])
    assert outcome.score == 2
    assert outcome.passed is False


def test_outcome_to_result_keeps_score(make_questions) -> None:
    session = ExamSession(make_questions(1))
    session.select_answer(0, session.current_question().correct_answer)
    result = session.advance().to_result()
    assert (result.score, result.total, result.passed) == (1, 1, True)
    assert result.date.tzinfo is not None


def test_empty_session_is_invalid() -> None:
    with pytest.raises(ValueError):
        ExamSession([])
