"""FastAPI server that exposes learner endpoints."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Thread
from typing import Iterator

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel
import uvicorn

from course_app.constants.about import APP_NAME, APP_VERSION
from course_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from course_app.core.course_manager import CourseManager
from course_app.core.markdown_renderer import renderer
from course_app.core.models import Comment, CourseRating, Learner, UserRole
from course_app.core.services.exam_session import ExamError, ExamSession, InsufficientQuestionPool


class OpenLessonPayload(BaseModel):
    """Payload schema for loading a lesson into the player."""

    lesson_id: str


class PositionPayload(BaseModel):
    """Playback position reported by the player, in seconds."""

    position: float


class EndedPayload(BaseModel):
    """Natural end of playback. ``duration`` is the media length when known."""

    duration: float | None = None


class AnswerPayload(BaseModel):
    """Payload schema for exam answers."""

    question_index: int
    option_index: int


class CommentPayload(BaseModel):
    text: str


class RatingPayload(BaseModel):
    stars: int
    comment: str = ""


@contextmanager
def _http_errors() -> Iterator[None]:
    """Translate domain errors into HTTP responses."""
    try:
        yield
    except InsufficientQuestionPool as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ExamError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found") from exc
    except (ValueError, IndexError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


def current_learner(
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Learner:
    """Identity comes from the client; login happens outside this service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header.")
    user_id = x_user_id.strip()
    return Learner(
        user_id=user_id,
        display_name=(x_user_name or "").strip() or user_id,
        role=UserRole.parse(x_user_role),
        email=(x_user_email or "").strip(),
    )


def _get_course_manager_dependency(course_manager: CourseManager):
    def dependency() -> CourseManager:
        return course_manager

    return dependency


def _iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def _exam_question_payload(session: ExamSession) -> dict[str, object]:
    index = session.current_index
    question = session.current_question()
    return {
        "index": index,
        "total": session.total,
        "question_id": question.id,
        "question_html": renderer.render_fragment(question.text),
        "options": list(question.options),
        "selected_option_index": session.get_answer(index),
        "is_last": session.is_last_question(),
    }


def _comment_payload(comment: Comment) -> dict[str, object]:
    return {
        "id": comment.id,
        "lesson_id": comment.lesson_id,
        "user_name": comment.user_name,
        "text": comment.text,
        "created_at": _iso(comment.created_at),
    }


def _rating_payload(rating: CourseRating) -> dict[str, object]:
    return {
        "id": rating.id,
        "user_name": rating.user_name,
        "rating": rating.rating,
        "comment": rating.comment,
        "created_at": _iso(rating.created_at),
    }


def create_api_app(course_manager: CourseManager) -> FastAPI:
    """Create a FastAPI application wired to the provided course manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    course_manager_dep = _get_course_manager_dependency(course_manager)

    @app.get("/course")
    def get_course(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        completed = manager.get_completed_lessons(learner.user_id)
        settings = manager.get_school_settings()
        first = manager.first_lesson(learner)
        modules = []
        for module in manager.get_visible_modules(learner):
            lessons = [
                {
                    "id": lesson.id,
                    "title": lesson.title,
                    "duration": lesson.duration,
                    "thumbnail": lesson.thumbnail,
                    "completed": lesson.id in completed,
                    "locked": manager.is_lesson_locked(learner, lesson.id),
                }
                for lesson in module.lessons
            ]
            modules.append(
                {
                    "id": module.id,
                    "title": module.title,
                    "is_visible": module.is_visible,
                    "lessons": lessons,
                }
            )
        return {
            "school_name": settings.school_name,
            "support_email": settings.support_email,
            "support_phone": settings.support_phone,
            "progress": round(manager.get_progress(learner), 1),
            "can_start_exam": manager.can_start_exam(learner),
            "first_lesson_id": first.id if first else None,
            "modules": modules,
        }

    @app.get("/lessons/{lesson_id}")
    def get_lesson(
        lesson_id: str,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            lesson = manager.get_lesson(lesson_id)
        if manager.is_lesson_locked(learner, lesson_id):
            raise HTTPException(status_code=403, detail="Finish the previous lesson to unlock this one.")
        return {
            "id": lesson.id,
            "title": lesson.title,
            "duration": lesson.duration,
            "video_url": lesson.video_url,
            "thumbnail": lesson.thumbnail,
            "description_html": renderer.render_fragment(lesson.description),
            "resume_position": manager.get_resume_position(learner.user_id, lesson_id),
            "completed": lesson_id in manager.get_completed_lessons(learner.user_id),
        }

    @app.post("/playback/open")
    def open_lesson(
        payload: OpenLessonPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            lesson = manager.open_lesson(learner, payload.lesson_id)
            state = manager.get_playback_state(learner)
        return {
            "lesson_id": lesson.id,
            "resume_position": manager.get_resume_position(learner.user_id, lesson.id),
            "state": state.name.lower(),
            "allow_skip": learner.is_admin,
        }

    @app.post("/playback/start")
    def start_playback(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            state = manager.start_playback(learner)
        return {"state": state.name.lower()}

    @app.post("/playback/position")
    def report_position(
        payload: PositionPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            verdict = manager.report_position(learner, payload.position)
        return {
            "accepted": verdict.accepted,
            "corrected": verdict.corrected,
            "position": verdict.position,
            "max_watched": verdict.max_watched,
            "locked": verdict.locked,
        }

    @app.post("/playback/ended")
    def finish_lesson(
        payload: EndedPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            next_lesson = manager.finish_lesson(learner, payload.duration)
        return {
            "progress": round(manager.get_progress(learner), 1),
            "next_lesson_id": next_lesson.id if next_lesson else None,
            "can_start_exam": manager.can_start_exam(learner),
        }

    @app.post("/exam/start", status_code=201)
    def start_exam(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            session = manager.start_exam(learner)
        return _exam_question_payload(session)

    @app.post("/exam/answer")
    def select_answer(
        payload: AnswerPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            manager.select_answer(learner.user_id, payload.question_index, payload.option_index)
        return {"question_index": payload.question_index, "option_index": payload.option_index}

    @app.post("/exam/advance")
    def advance_exam(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            outcome = manager.advance_exam(learner)
            if outcome is None:
                return {"finished": False, "question": _exam_question_payload(manager.get_exam(learner.user_id))}
        return {
            "finished": True,
            "score": outcome.score,
            "total": outcome.total,
            "passed": outcome.passed,
        }

    @app.post("/exam/cancel")
    def cancel_exam(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        return {"cancelled": manager.cancel_exam(learner.user_id)}

    @app.get("/exam/result")
    def get_exam_result(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        result = manager.get_exam_result(learner.user_id)
        if result is None:
            raise HTTPException(status_code=404, detail="No exam result yet.")
        return {
            "score": result.score,
            "total": result.total,
            "passed": result.passed,
            "date": _iso(result.date),
        }

    @app.get("/certificate")
    def get_certificate(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        certificate = manager.certificate_for(learner.user_id, learner.display_name)
        if certificate is None:
            raise HTTPException(status_code=403, detail="Pass the final exam to receive a certificate.")
        return {
            "learner_name": certificate.learner_name,
            "school_name": certificate.school_name,
            "course_hours": certificate.course_hours,
            "score": certificate.score,
            "total": certificate.total,
            "issued_on": _iso(certificate.issued_on),
        }

    @app.get("/lessons/{lesson_id}/comments")
    def list_comments(
        lesson_id: str,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> list[dict[str, object]]:
        with _http_errors():
            manager.get_lesson(lesson_id)
        return [_comment_payload(comment) for comment in manager.get_lesson_comments(lesson_id)]

    @app.post("/lessons/{lesson_id}/comments", status_code=201)
    def add_comment(
        lesson_id: str,
        payload: CommentPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            comment = manager.add_comment(learner, lesson_id, payload.text)
        return _comment_payload(comment)

    @app.get("/ratings")
    def list_ratings(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        mine = manager.get_user_rating(learner.user_id)
        return {
            "average": manager.get_average_rating(),
            "can_rate": manager.can_rate(learner),
            "my_rating": _rating_payload(mine) if mine else None,
            "ratings": [_rating_payload(rating) for rating in manager.get_ratings()],
        }

    @app.post("/ratings", status_code=201)
    def submit_rating(
        payload: RatingPayload,
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        with _http_errors():
            rating = manager.submit_rating(learner, payload.stars, payload.comment)
        return _rating_payload(rating)

    @app.get("/live")
    def get_live_event(
        learner: Learner = Depends(current_learner),
        manager: CourseManager = Depends(course_manager_dep),
    ) -> dict[str, object]:
        event = manager.get_live_event()
        if event is None or not event.active:
            raise HTTPException(status_code=404, detail="No live class right now.")
        return {
            "id": event.id,
            "title": event.title,
            "meet_url": event.meet_url,
            "date": _iso(event.date),
            "active": event.active,
        }

    return app


def start_api_server(
    course_manager: CourseManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(course_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="CourseApiServer", daemon=True)
    thread.start()
    return thread
