import random
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from course_app.core.course_manager import CourseManager
from course_app.core.storage import MODULES, QUESTION_BANK, CourseRepository
from course_app.server.api_server import create_api_app

STUDENT_HEADERS = {"X-User-Id": "u1", "X-User-Name": "Ana"}
ADMIN_HEADERS = {"X-User-Id": "boss", "X-User-Role": "admin"}


@pytest.fixture
def repository(course_modules, make_questions) -> CourseRepository:
    repository = CourseRepository()
    repository.put(MODULES, course_modules)
    repository.put(QUESTION_BANK, make_questions(25))
    return repository


@pytest.fixture
def manager(repository, clock) -> CourseManager:
    return CourseManager(repository=repository, clock=clock, rng=random.Random(11))


@pytest.fixture
def client(manager) -> TestClient:
    return TestClient(create_api_app(manager))


def _watch(client: TestClient, lesson_id: str, headers=STUDENT_HEADERS) -> dict:
    assert client.post("/playback/open", json={"lesson_id": lesson_id}, headers=headers).status_code == 200
    client.post("/playback/start", headers=headers)
    client.post("/playback/position", json={"position": 0.5}, headers=headers)
    response = client.post("/playback/ended", json={"duration": 1.2}, headers=headers)
    assert response.status_code == 200
    return response.json()


def _run_exam(client: TestClient, headers, answers_correct: int, bank) -> dict:
    by_id = {q.id: q for q in bank}
    question = client.post("/exam/start", headers=headers).json()
    for index in range(question["total"]):
        correct = by_id[question["question_id"]].correct_answer
        option = correct if index < answers_correct else (correct + 1) % 4
        client.post("/exam/answer", json={"question_index": index, "option_index": option}, headers=headers)
        body = client.post("/exam/advance", headers=headers).json()
        if body["finished"]:
            return body
        question = body["question"]
    raise AssertionError("exam never finished")


def test_missing_identity_is_unauthorized(client) -> None:
    response = client.get("/course")
    assert response.status_code == 401


def test_course_overview_for_student(client) -> None:
    body = client.get("/course", headers=STUDENT_HEADERS).json()

    assert body["school_name"] == "Online Learning Platform"
    assert body["first_lesson_id"] == "l1"
    assert body["progress"] == 0.0
    assert body["can_start_exam"] is False
    assert [m["id"] for m in body["modules"]] == ["m1", "m3"]
    lessons = body["modules"][0]["lessons"]
    assert [(l["id"], l["locked"], l["completed"]) for l in lessons] == [("l1", False, False), ("l2", True, False)]


def test_admin_sees_hidden_modules(client) -> None:
    body = client.get("/course", headers=ADMIN_HEADERS).json()
    assert [m["id"] for m in body["modules"]] == ["m1", "m2", "m3"]
    assert body["can_start_exam"] is True


def test_lesson_detail_renders_markdown(client) -> None:
    body = client.get("/lessons/l1", headers=STUDENT_HEADERS).json()
    assert "<strong>world</strong>" in body["description_html"]
    assert body["resume_position"] == 0.0


def test_locked_and_unknown_lessons(client) -> None:
    assert client.get("/lessons/l2", headers=STUDENT_HEADERS).status_code == 403
    assert client.post("/playback/open", json={"lesson_id": "l2"}, headers=STUDENT_HEADERS).status_code == 403
    assert client.get("/lessons/nope", headers=STUDENT_HEADERS).status_code == 404


def test_position_reports_are_gated(client) -> None:
    client.post("/playback/open", json={"lesson_id": "l1"}, headers=STUDENT_HEADERS)
    client.post("/playback/start", headers=STUDENT_HEADERS)

    ok = client.post("/playback/position", json={"position": 0.9}, headers=STUDENT_HEADERS).json()
    skip = client.post("/playback/position", json={"position": 45}, headers=STUDENT_HEADERS).json()

    assert ok["accepted"] is True
    assert skip == {"accepted": False, "corrected": True, "position": 0.9, "max_watched": 0.9, "locked": True}


def test_playback_without_open_lesson_conflicts(client) -> None:
    response = client.post("/playback/position", json={"position": 1}, headers=STUDENT_HEADERS)
    assert response.status_code == 409


def test_ended_unlocks_next_lesson(client) -> None:
    body = _watch(client, "l1")
    assert body["next_lesson_id"] == "l2"
    assert body["progress"] == pytest.approx(33.3)
    assert client.get("/lessons/l2", headers=STUDENT_HEADERS).status_code == 200


def test_ended_without_playing_conflicts(client) -> None:
    client.post("/playback/open", json={"lesson_id": "l1"}, headers=STUDENT_HEADERS)
    assert client.post("/playback/ended", json={"duration": 600}, headers=STUDENT_HEADERS).status_code == 409

    client.post("/playback/start", headers=STUDENT_HEADERS)
    assert client.post("/playback/ended", json={"duration": 600}, headers=STUDENT_HEADERS).status_code == 409

    lessons = client.get("/course", headers=STUDENT_HEADERS).json()["modules"][0]["lessons"]
    assert lessons[1]["locked"] is True


def test_exam_locked_until_course_complete(client) -> None:
    assert client.post("/exam/start", headers=STUDENT_HEADERS).status_code == 403


def test_exam_flow_and_certificate(client, repository) -> None:
    for lesson_id in ("l1", "l2", "l4"):
        _watch(client, lesson_id)
    assert client.get("/certificate", headers=STUDENT_HEADERS).status_code == 403

    result = _run_exam(client, STUDENT_HEADERS, 15, repository.get(QUESTION_BANK))

    assert result == {"finished": True, "score": 15, "total": 20, "passed": True}
    stored = client.get("/exam/result", headers=STUDENT_HEADERS).json()
    assert stored["passed"] is True
    certificate = client.get("/certificate", headers=STUDENT_HEADERS).json()
    assert certificate["learner_name"] == "Ana"
    assert certificate["course_hours"] == "40 Hours"


def test_advance_without_answer_is_unprocessable(client) -> None:
    client.post("/exam/start", headers=ADMIN_HEADERS)
    response = client.post("/exam/advance", headers=ADMIN_HEADERS)
    assert response.status_code == 422
    assert "must be answered" in response.json()["detail"]


def test_exam_start_returns_first_question(client) -> None:
    response = client.post("/exam/start", headers=ADMIN_HEADERS)
    assert response.status_code == 201
    body = response.json()
    assert body["index"] == 0
    assert body["total"] == 20
    assert body["selected_option_index"] is None
    assert len(body["options"]) == 4
    assert client.post("/exam/cancel", headers=ADMIN_HEADERS).json() == {"cancelled": True}
    assert client.post("/exam/advance", headers=ADMIN_HEADERS).status_code == 409


def test_insufficient_pool_conflicts(repository, clock, make_questions) -> None:
    repository.put(QUESTION_BANK, make_questions(5))
    client = TestClient(create_api_app(CourseManager(repository=repository, clock=clock)))
    for lesson_id in ("l1", "l2", "l4"):
        _watch(client, lesson_id)

    response = client.post("/exam/start", headers=STUDENT_HEADERS)

    assert response.status_code == 409
    assert "Contact the administrator" in response.json()["detail"]


def test_no_result_yet(client) -> None:
    assert client.get("/exam/result", headers=STUDENT_HEADERS).status_code == 404


def test_comments_round_trip(client) -> None:
    created = client.post("/lessons/l1/comments", json={"text": "Loved it"}, headers=STUDENT_HEADERS)
    assert created.status_code == 201
    listed = client.get("/lessons/l1/comments", headers=STUDENT_HEADERS).json()

    assert [c["text"] for c in listed] == ["Loved it"]
    assert listed[0]["user_name"] == "Ana"
    assert client.post("/lessons/l1/comments", json={"text": " "}, headers=STUDENT_HEADERS).status_code == 422
    assert client.get("/lessons/nope/comments", headers=STUDENT_HEADERS).status_code == 404


def test_ratings_require_passed_exam(client) -> None:
    assert client.post("/ratings", json={"stars": 5}, headers=STUDENT_HEADERS).status_code == 403

    created = client.post("/ratings", json={"stars": 4, "comment": "Solid"}, headers=ADMIN_HEADERS)
    assert created.status_code == 201
    assert client.post("/ratings", json={"stars": 9}, headers=ADMIN_HEADERS).status_code == 422

    body = client.get("/ratings", headers=ADMIN_HEADERS).json()
    assert body["average"] == 4.0
    assert body["can_rate"] is True
    assert body["my_rating"]["comment"] == "Solid"
    assert client.get("/ratings", headers=STUDENT_HEADERS).json()["can_rate"] is False


def test_live_event_only_shown_while_active(client, manager) -> None:
    assert client.get("/live", headers=STUDENT_HEADERS).status_code == 404

    starts = datetime(2026, 5, 4, 19, 0, tzinfo=timezone.utc)
    manager.save_live_event("Q&A", "https://meet.example.com/abc", starts)
    assert client.get("/live", headers=STUDENT_HEADERS).status_code == 404

    manager.save_live_event("Q&A", "https://meet.example.com/abc", starts, active=True)
    body = client.get("/live", headers=STUDENT_HEADERS).json()
    assert body["title"] == "Q&A"
    assert body["meet_url"] == "https://meet.example.com/abc"
    assert body["date"] == "2026-05-04T19:00:00+00:00"
    assert body["active"] is True

    manager.clear_live_event()
    assert client.get("/live", headers=STUDENT_HEADERS).status_code == 404
