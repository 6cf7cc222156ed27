import json
from datetime import datetime, timezone

import httpx
import pytest

from course_app.core.models import CourseModule, CourseRating, ExamResult, Lesson, LiveEvent, Question
from course_app.core.sheet_sync import SheetSyncClient, parse_snapshot
from course_app.core.storage import LIVE_EVENT, MODULES, QUESTION_BANK, RATINGS, SCHOOL_SETTINGS, CourseRepository

ENDPOINT = "https://sheets.example.com/exec"


class Recorder:
    """MockTransport handler that keeps every request it answers."""

    def __init__(self, read_body=None, status_code: int = 200) -> None:
        self.requests: list[httpx.Request] = []
        self.read_body = read_body if read_body is not None else {}
        self.status_code = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            return httpx.Response(self.status_code, json=self.read_body)
        return httpx.Response(self.status_code, text="ok")

    def posted(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


def _client(recorder: Recorder, endpoint: str | None = ENDPOINT) -> SheetSyncClient:
    return SheetSyncClient(endpoint, client=httpx.Client(transport=httpx.MockTransport(recorder)), clock=lambda: 1700.0)


def _pull_and_apply(recorder: Recorder, repository: CourseRepository) -> list[CourseModule]:
    client = _client(recorder)
    snapshot = client.pull()
    assert snapshot is not None
    return client.apply_snapshot(repository, snapshot)


def _remote_question(number: int) -> dict:
    return {
        "id": f"r{number}",
        "text": f"Remote {number}",
        "options": ["a", "b", "c", "d"],
        "correctAnswer": number % 4,
    }


def test_disabled_client_sends_nothing() -> None:
    recorder = Recorder()
    client = _client(recorder, endpoint="  ")

    assert not client.enabled
    assert client.push("ContentApp", []) is False
    assert client.pull() is None
    assert recorder.requests == []


def test_push_posts_plain_text_envelope() -> None:
    recorder = Recorder()
    client = _client(recorder)

    assert client.push_question_bank(
        [Question(id="q1", text="Pick", options=["a", "b", "c", "d"], correct_answer=2)]
    )

    request = recorder.requests[0]
    assert request.headers["content-type"] == "text/plain;charset=utf-8"
    assert recorder.posted() == [
        {
            "type": "save_data",
            "sheetName": "QuestionBankApp",
            "payload": {
                "questions": [{"id": "q1", "text": "Pick", "options": ["a", "b", "c", "d"], "correctAnswer": 2}]
            },
        }
    ]


def test_push_modules_uses_camel_case() -> None:
    recorder = Recorder()
    module = CourseModule(id="m1", title="Intro", lessons=[Lesson(id="l1", title="Hi", video_url="v.mp4")])

    _client(recorder).push_modules([module])

    payload = recorder.posted()[0]["payload"]
    assert payload[0]["isVisible"] is True
    assert payload[0]["lessons"][0]["videoUrl"] == "v.mp4"


def test_exam_result_row() -> None:
    recorder = Recorder()
    result = ExamResult(score=15, total=20, passed=True, date=datetime(2024, 1, 2, 3, 4, 5))

    _client(recorder).push_exam_result("Ana", "ana@example.com", result)

    body = recorder.posted()[0]
    assert body["type"] == "save_exam_result"
    assert body["sheetName"] == "ExamResults"
    assert body["payload"] == ["Ana", "ana@example.com", 15, 20, "PASSED", "2024-01-02 03:04:05"]


def test_push_failure_is_reported_not_raised() -> None:
    recorder = Recorder(status_code=500)
    assert _client(recorder).push("ContentApp", []) is False


def test_pull_sends_cache_busting_read() -> None:
    recorder = Recorder(read_body={"modules": []})
    snapshot = _client(recorder).pull()

    assert snapshot is not None
    params = recorder.requests[0].url.params
    assert params["action"] == "read"
    assert params["t"] == "1700000"


def test_pull_returns_none_on_bad_payload() -> None:
    assert _client(Recorder(read_body=["not", "an", "object"])).pull() is None
    assert _client(Recorder(status_code=503)).pull() is None


def test_parse_snapshot_keeps_latest_config_value() -> None:
    snapshot = parse_snapshot(
        {
            "config": [
                ["schoolName", "Old School", "2024-01-01"],
                {"key": "schoolName", "value": "New School"},
                ["supportInfo", ""],
            ],
            "modules": [{"id": "m1", "title": "Intro", "isVisible": False, "lessons": [{"id": "l1", "title": "A"}]}],
            "quizzes": {"questions": [_remote_question(1)]},
        }
    )

    assert snapshot.config == {"schoolName": "New School"}
    assert snapshot.modules[0].is_visible is False
    assert snapshot.modules[0].lessons[0].title == "A"
    assert snapshot.questions[0].correct_answer == 1
    assert snapshot.ratings is None


def test_parse_snapshot_rejects_non_object() -> None:
    with pytest.raises(ValueError):
        parse_snapshot([1, 2])


def test_sync_overwrites_local_data() -> None:
    repository = CourseRepository()
    recorder = Recorder(
        read_body={
            "ConfigApp": [
                ["schoolName", "Remote Academy"],
                ["supportInfo", json.dumps({"email": "help@remote.test", "phone": "123"})],
            ],
            "modules": [{"id": "m9", "title": "Remote"}],
            "quizzes": {"questions": [_remote_question(n) for n in range(3)]},
            "ratings": [
                {
                    "id": "r1",
                    "userId": "u1",
                    "userName": "Ana",
                    "rating": 5,
                    "comment": "",
                    "createdAt": "2024-05-01T10:00:00Z",
                }
            ],
        }
    )

    assert _pull_and_apply(recorder, repository) == []

    assert [m.id for m in repository.get(MODULES)] == ["m9"]
    assert [q.id for q in repository.get(QUESTION_BANK)] == ["r0", "r1", "r2"]
    assert repository.get(RATINGS)[0].created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    settings = repository.get(SCHOOL_SETTINGS)
    assert settings.school_name == "Remote Academy"
    assert settings.support_email == "help@remote.test"
    assert settings.support_phone == "123"


def test_empty_remote_outline_returns_local_modules_to_push() -> None:
    repository = CourseRepository()
    repository.put(MODULES, [CourseModule(id="m1", title="Local")])
    recorder = Recorder(read_body={"modules": []})

    to_push = _pull_and_apply(recorder, repository)

    assert [m.id for m in to_push] == ["m1"]
    assert [m.id for m in repository.get(MODULES)] == ["m1"]
    assert recorder.posted() == []


def test_invalid_remote_bank_is_ignored() -> None:
    repository = CourseRepository()
    repository.put(QUESTION_BANK, [Question(id="keep", text="x", options=["a", "b", "c", "d"], correct_answer=0)])
    broken = dict(_remote_question(1), options=["a", "b"])
    recorder = Recorder(read_body={"quizzes": {"questions": [broken]}})

    _pull_and_apply(recorder, repository)
    assert [q.id for q in repository.get(QUESTION_BANK)] == ["keep"]


def _remote_rating(rating_id: str, stars: int) -> dict:
    return {
        "id": rating_id,
        "userId": f"user-{rating_id}",
        "userName": "Remote",
        "rating": stars,
        "createdAt": "2024-05-01T10:00:00Z",
    }


def test_out_of_range_remote_ratings_are_ignored() -> None:
    repository = CourseRepository()
    local = CourseRating(
        id="keep",
        user_id="u1",
        user_name="Ana",
        rating=4,
        comment="",
        created_at=datetime(2024, 4, 1, tzinfo=timezone.utc),
    )
    repository.put(RATINGS, [local])
    recorder = Recorder(read_body={"ratings": [_remote_rating("r1", 5), _remote_rating("r2", 9)]})

    _pull_and_apply(recorder, repository)

    assert [r.id for r in repository.get(RATINGS)] == ["keep"]


def test_valid_remote_ratings_replace_local_ones() -> None:
    repository = CourseRepository()
    recorder = Recorder(read_body={"ratings": [_remote_rating("r1", 1), _remote_rating("r2", 5)]})

    _pull_and_apply(recorder, repository)

    assert [r.rating for r in repository.get(RATINGS)] == [1, 5]


def test_remote_live_event_is_stored() -> None:
    repository = CourseRepository()
    recorder = Recorder(
        read_body={
            "liveEvent": {
                "id": "1714849200000",
                "title": "Q&A",
                "meetUrl": "https://meet.example.com/abc",
                "date": "2024-05-04T19:00:00.000Z",
                "active": True,
            }
        }
    )

    _pull_and_apply(recorder, repository)

    event = repository.get(LIVE_EVENT)
    assert event.meet_url == "https://meet.example.com/abc"
    assert event.date == datetime(2024, 5, 4, 19, tzinfo=timezone.utc)
    assert event.active


def test_missing_remote_live_event_keeps_local_one() -> None:
    repository = CourseRepository()
    local = LiveEvent(
        id="e1",
        title="Local",
        meet_url="https://meet.example.com/x",
        date=datetime(2024, 5, 4, tzinfo=timezone.utc),
    )
    repository.put(LIVE_EVENT, local)

    _pull_and_apply(Recorder(read_body={"liveEvent": None}), repository)

    assert repository.get(LIVE_EVENT) == local


def test_push_live_event_uses_camel_case() -> None:
    recorder = Recorder()
    event = LiveEvent(
        id="e1",
        title="Q&A",
        meet_url="https://youtu.be/xyz",
        date=datetime(2024, 5, 4, 19, tzinfo=timezone.utc),
        active=True,
    )

    assert _client(recorder).push_live_event(event)
    assert _client(recorder).push_live_event(None)

    first, cleared = recorder.posted()
    assert first["sheetName"] == "LiveEventApp"
    assert first["payload"]["meetUrl"] == "https://youtu.be/xyz"
    assert first["payload"]["date"].startswith("2024-05-04T19:00:00")
    assert cleared["payload"] is None
