"""Helper functions for common dialog patterns in the admin console."""

from __future__ import annotations

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QMessageBox, QWidget


def _apply_optional_font(widget: QWidget, font_point_size: int | None) -> None:
    if font_point_size is None or font_point_size <= 0:
        return

    font: QFont = widget.font()
    font.setPointSize(font_point_size)
    widget.setFont(font)


def _ask(parent: QWidget, title: str, message: str) -> bool:
    reply = QMessageBox.question(
        parent,
        title,
        message,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def confirm_delete_question(parent: QWidget, question_number: int) -> bool:
    """Ask before deleting a question.

    Args:
        parent: Parent widget for the dialog
        question_number: The question number to display (1-indexed)
    """
    return _ask(parent, "Confirm Delete", f"Are you sure you want to delete question {question_number}?")


def confirm_delete_lesson(parent: QWidget, lesson_title: str) -> bool:
    return _ask(
        parent,
        "Confirm Delete",
        f"Delete the lesson '{lesson_title}'? Learner progress for it stays in storage but is no longer shown.",
    )


def confirm_import_bank(parent: QWidget, current_count: int) -> bool:
    """Ask before an import replaces a non-empty bank."""
    return _ask(
        parent,
        "Confirm Import",
        f"Importing will replace the {current_count} questions currently in the bank. Continue?",
    )


def confirm_remove_live_event(parent: QWidget, title: str) -> bool:
    return _ask(parent, "Confirm Remove", f"Remove the scheduled live class '{title}'?")


def check_unsaved_changes(parent: QWidget) -> bool | None:
    """Ask what to do with an unsaved question.

    Returns:
        True if user wants to save, False if discard, None if cancelled
    """
    reply = QMessageBox.question(
        parent,
        "Unsaved Changes",
        "Question is not saved. Do you want to save the question?",
        QMessageBox.Yes | QMessageBox.No | QMessageBox.Cancel,
        QMessageBox.Yes,
    )

    if reply == QMessageBox.Yes:
        return True
    if reply == QMessageBox.No:
        return False
    return None


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(
    parent: QWidget,
    title: str,
    message: str,
    *,
    font_point_size: int | None = None,
) -> None:
    """Show an information dialog, optionally with a larger font."""
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Information)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)
    msg_box.setStandardButtons(QMessageBox.Ok)
    _apply_optional_font(msg_box, font_point_size)
    if font_point_size is not None and font_point_size > 0:
        msg_box.setStyleSheet(
            f"QLabel {{ font-size: {font_point_size}pt; }}\n"
            f"QPushButton {{ font-size: {font_point_size}pt; }}"
        )
    msg_box.exec()


def show_warning(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.warning(parent, title, message)
