"""Service for course star ratings."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from course_app.constants.course_constants import MAX_RATING_STARS, MIN_RATING_STARS
from course_app.core.models import CourseRating, ExamResult, UserRole


class RatingBoard:
    """One rating per learner; resubmitting replaces the earlier rating."""

    def __init__(self, ratings: list[CourseRating] | None = None) -> None:
        self._ratings: list[CourseRating] = []
        if ratings:
            self.load_ratings(ratings)

    def load_ratings(self, ratings: list[CourseRating]) -> None:
        """Replace all ratings. Raises ``ValueError`` if any is out of range."""
        for entry in ratings:
            self._check_stars(entry.rating)
        self._ratings = list(ratings)

    def submit(self, user_id: str, user_name: str, rating: int, comment: str = "") -> CourseRating:
        self._check_stars(rating)
        entry = CourseRating(
            id=uuid4().hex,
            user_id=user_id,
            user_name=user_name,
            rating=rating,
            comment=comment.strip(),
            created_at=datetime.now(timezone.utc),
        )
        self._ratings = [existing for existing in self._ratings if existing.user_id != user_id]
        self._ratings.append(entry)
        return entry

    def get_ratings(self) -> list[CourseRating]:
        return list(self._ratings)

    def get_user_rating(self, user_id: str) -> CourseRating | None:
        return next((r for r in self._ratings if r.user_id == user_id), None)

    def average(self) -> float:
        if not self._ratings:
            return 0.0
        return round(sum(r.rating for r in self._ratings) / len(self._ratings), 1)

    @staticmethod
    def is_unlocked(role: UserRole, result: ExamResult | None) -> bool:
        """Only admins and learners who passed the exam may rate."""
        return role is UserRole.ADMIN or (result is not None and result.passed)

    @staticmethod
    def _check_stars(rating: int) -> None:
        if not MIN_RATING_STARS <= rating <= MAX_RATING_STARS:
            raise ValueError(f"Rating must be between {MIN_RATING_STARS} and {MAX_RATING_STARS} stars.")
