from datetime import datetime, timedelta, timezone

import pytest

from course_app.core.models import Comment
from course_app.core.services.comment_board import CommentBoard


def _comment(comment_id: str, created_at: datetime, lesson_id: str = "l1", is_read: bool = False) -> Comment:
    return Comment(
        id=comment_id,
        lesson_id=lesson_id,
        user_id="u1",
        user_name="Ana",
        text=f"comment {comment_id}",
        created_at=created_at,
        is_read=is_read,
    )


def test_add_comment_strips_and_starts_unread() -> None:
    board = CommentBoard()
    comment = board.add_comment("l1", "u1", "Ana", "  Great lesson  ")

    assert comment.text == "Great lesson"
    assert not comment.is_read
    assert comment.created_at.tzinfo is not None
    assert board.get_unread() == [comment]


def test_blank_comment_is_rejected() -> None:
    with pytest.raises(ValueError):
        CommentBoard().add_comment("l1", "u1", "Ana", "   ")


def test_lesson_filter_keeps_posting_order() -> None:
    board = CommentBoard()
    first = board.add_comment("l1", "u1", "Ana", "one")
    board.add_comment("l2", "u1", "Ana", "other lesson")
    second = board.add_comment("l1", "u2", "Ben", "two")

    assert board.get_lesson_comments("l1") == [first, second]


def test_mark_read_counts_changes() -> None:
    now = datetime.now(timezone.utc)
    board = CommentBoard([_comment("a", now), _comment("b", now, is_read=True), _comment("c", now)])

    assert board.mark_read(["a", "b", "missing"]) == 1
    assert [c.id for c in board.get_unread()] == ["c"]


def test_purge_drops_comments_past_retention() -> None:
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    board = CommentBoard(
        [
            _comment("old", now - timedelta(days=40)),
            _comment("edge", now - timedelta(days=30)),
            _comment("naive", datetime(2024, 5, 25)),
            _comment("new", now - timedelta(days=1)),
        ]
    )

    removed = board.purge_older_than(now, days=30)

    assert removed == 1
    assert [c.id for c in board.get_comments()] == ["edge", "naive", "new"]
