"""Domain models for the course application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """Client-trusted role attached to every learner request."""

    STUDENT = "student"
    ADMIN = "admin"

    @classmethod
    def parse(cls, raw: str | None) -> "UserRole":
        if raw and raw.strip().lower() in ("admin", "administrator"):
            return cls.ADMIN
        return cls.STUDENT


@dataclass(slots=True)
class Learner:
    """Identity of whoever is watching lessons or taking the exam."""

    user_id: str
    display_name: str
    role: UserRole = UserRole.STUDENT
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


@dataclass(slots=True)
class Question:
    """Multiple-choice exam question with exactly four options."""

    id: str
    text: str
    options: list[str]
    correct_answer: int


@dataclass(slots=True)
class Lesson:
    """Single video lesson."""

    id: str
    title: str
    description: str = ""
    duration: str = ""
    video_url: str = ""
    thumbnail: str = ""


@dataclass(slots=True)
class CourseModule:
    """Ordered group of lessons. Hidden modules are skipped for students."""

    id: str
    title: str
    lessons: list[Lesson] = field(default_factory=list)
    is_visible: bool = True


@dataclass(slots=True)
class ExamResult:
    """Outcome of the latest exam attempt for one learner."""

    score: int
    total: int
    passed: bool
    date: datetime


@dataclass(slots=True)
class Comment:
    """Learner comment attached to a lesson."""

    id: str
    lesson_id: str
    user_id: str
    user_name: str
    text: str
    created_at: datetime
    is_read: bool = False


@dataclass(slots=True)
class CourseRating:
    """One learner's star rating of the course."""

    id: str
    user_id: str
    user_name: str
    rating: int
    comment: str
    created_at: datetime


@dataclass(slots=True)
class LiveEvent:
    """Scheduled live class announced to every learner.

    ``active`` marks the event as happening right now; otherwise it is only
    scheduled for ``date``.
    """

    id: str
    title: str
    meet_url: str
    date: datetime
    active: bool = False


@dataclass(slots=True)
class SchoolSettings:
    """Branding and support contact shown to learners."""

    school_name: str
    support_email: str = ""
    support_phone: str = ""
    sidebar_link_label: str = ""
    sidebar_link_url: str = ""


@dataclass(slots=True)
class CertificateInfo:
    """Data a certificate renderer needs for a learner who passed."""

    learner_name: str
    school_name: str
    course_hours: str
    score: int
    total: int
    issued_on: datetime
