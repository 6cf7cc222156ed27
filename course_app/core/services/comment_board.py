"""Service for lesson comments and the admin comment inbox."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from course_app.constants.course_constants import COMMENT_RETENTION_DAYS
from course_app.core.models import Comment


class CommentBoard:
    """Keeps comments in posting order."""

    def __init__(self, comments: list[Comment] | None = None) -> None:
        self._comments: list[Comment] = list(comments or [])

    def load_comments(self, comments: list[Comment]) -> None:
        self._comments = list(comments)

    def add_comment(self, lesson_id: str, user_id: str, user_name: str, text: str) -> Comment:
        cleaned = text.strip()
        if not cleaned:
            raise ValueError("Comment text must not be empty.")
        comment = Comment(
            id=uuid4().hex,
            lesson_id=lesson_id,
            user_id=user_id,
            user_name=user_name,
            text=cleaned,
            created_at=datetime.now(timezone.utc),
            is_read=False,
        )
        self._comments.append(comment)
        return comment

    def get_comments(self) -> list[Comment]:
        return list(self._comments)

    def get_lesson_comments(self, lesson_id: str) -> list[Comment]:
        return [comment for comment in self._comments if comment.lesson_id == lesson_id]

    def get_unread(self) -> list[Comment]:
        return [comment for comment in self._comments if not comment.is_read]

    def mark_read(self, comment_ids: list[str]) -> int:
        """Flag comments as read. Returns how many changed."""
        targets = set(comment_ids)
        changed = 0
        for comment in self._comments:
            if comment.id in targets and not comment.is_read:
                comment.is_read = True
                changed += 1
        return changed

    def purge_older_than(self, now: datetime | None = None, days: int = COMMENT_RETENTION_DAYS) -> int:
        """Drop comments past the retention window. Returns how many were removed."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        kept = [comment for comment in self._comments if _as_utc(comment.created_at) >= cutoff]
        removed = len(self._comments) - len(kept)
        self._comments = kept
        return removed


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
