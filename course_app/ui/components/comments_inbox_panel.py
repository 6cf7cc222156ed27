"""Admin inbox listing learner comments that have not been read yet."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from course_app.constants.ui_constants import INBOX_MARK_READ_BUTTON
from course_app.core.course_manager import CourseManager
from course_app.styling import Theme
from course_app.styling.styles import Styles


class CommentsInboxPanel(QWidget):
    def __init__(self, course_manager: CourseManager, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.course_manager = course_manager
        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        self.unread_label = QLabel(self)
        self.unread_label.setStyleSheet(Styles.get_unread_badge_style())
        header_row.addWidget(self.unread_label)
        header_row.addStretch()
        self.mark_read_button = QPushButton(INBOX_MARK_READ_BUTTON, self)
        self.mark_read_button.clicked.connect(self._handle_mark_all_read)
        header_row.addWidget(self.mark_read_button)
        layout.addLayout(header_row)

        self.comment_list = QListWidget(self)
        layout.addWidget(self.comment_list)

    def refresh(self) -> int:
        """Reload unread comments. Returns how many are unread."""
        self.course_manager.purge_old_comments()
        unread = self.course_manager.get_unread_comments()
        titles = {
            lesson.id: lesson.title
            for module in self.course_manager.get_modules()
            for lesson in module.lessons
        }
        self.comment_list.clear()
        for comment in sorted(unread, key=lambda c: c.created_at, reverse=True):
            lesson_title = titles.get(comment.lesson_id, comment.lesson_id)
            stamp = comment.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
            item = QListWidgetItem(f"[{stamp}] {comment.user_name} on '{lesson_title}':\n{comment.text}")
            self.comment_list.addItem(item)
        self.unread_label.setText(f"{len(unread)} unread comments" if unread else "No unread comments")
        self.mark_read_button.setEnabled(bool(unread))
        return len(unread)

    def _handle_mark_all_read(self) -> None:
        ids = [comment.id for comment in self.course_manager.get_unread_comments()]
        self.course_manager.mark_comments_read(ids)
        self.refresh()

    def apply_theme(self, theme: Theme, ui_font_size: int) -> None:
        self.unread_label.setStyleSheet(Styles.get_unread_badge_style(theme))
        self.mark_read_button.setStyleSheet(f"font-size: {ui_font_size}pt;")
