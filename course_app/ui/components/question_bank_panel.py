"""Component for authoring the final exam question bank."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QButtonGroup,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QRadioButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from course_app.constants.exam_constants import MAX_EXAM_QUESTIONS, STUDENT_MIN_QUESTIONS
from course_app.constants.ui_constants import (
    BANK_DELETE_BUTTON,
    BANK_INSERT_BUTTON,
    BANK_NEXT_BUTTON,
    BANK_PREV_BUTTON,
    BANK_SAVE_BUTTON,
    PLACEHOLDER_QUESTION,
)
from course_app.core.course_manager import CourseManager
from course_app.core.models import Question
from course_app.ui.dialog_helpers import (
    check_unsaved_changes,
    confirm_delete_question,
    show_error,
    show_info,
    show_warning,
)
from course_app.ui.question_renderer import render_question_with_options

_OPTION_LETTERS = ("A", "B", "C", "D")
_LIST_PREVIEW_CHARS = 60
_NEW_ROW = -1


class QuestionBankPanel(QWidget):
    """Question list on the left, editor and rendered preview on the right.

    ``_editing_row`` is the bank index being edited, or ``_NEW_ROW`` while a
    new question is being drafted.
    """

    def __init__(self, course_manager: CourseManager, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.course_manager = course_manager
        self._editing_row: int = _NEW_ROW
        self._dirty: bool = False
        self._loading: bool = False
        self._preview_font_size: int = 14

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        splitter = QSplitter(Qt.Horizontal, self)
        splitter.addWidget(self._build_list_column())
        splitter.addWidget(self._build_editor_column())
        splitter.setStretchFactor(1, 2)
        layout.addWidget(splitter)

        self.status_label = QLabel("No questions yet.", self)
        layout.addWidget(self.status_label)

    def _build_list_column(self) -> QWidget:
        column = QWidget(self)
        column_layout = QVBoxLayout()
        column.setLayout(column_layout)

        self.pool_label = QLabel(column)
        self.pool_label.setWordWrap(True)
        column_layout.addWidget(self.pool_label)

        self.question_list = QListWidget(column)
        self.question_list.currentRowChanged.connect(self._handle_row_changed)
        column_layout.addWidget(self.question_list)

        nav_row = QHBoxLayout()
        self.prev_button = QPushButton(BANK_PREV_BUTTON, column)
        self.prev_button.clicked.connect(lambda: self._step(-1))
        nav_row.addWidget(self.prev_button)
        self.next_button = QPushButton(BANK_NEXT_BUTTON, column)
        self.next_button.clicked.connect(lambda: self._step(1))
        nav_row.addWidget(self.next_button)
        column_layout.addLayout(nav_row)
        return column

    def _build_editor_column(self) -> QWidget:
        column = QWidget(self)
        column_layout = QVBoxLayout()
        column.setLayout(column_layout)

        action_row = QHBoxLayout()
        self.insert_button = QPushButton(BANK_INSERT_BUTTON, column)
        self.insert_button.clicked.connect(self._handle_new_question)
        action_row.addWidget(self.insert_button)
        self.save_button = QPushButton(BANK_SAVE_BUTTON, column)
        self.save_button.clicked.connect(self._handle_save_question)
        action_row.addWidget(self.save_button)
        self.delete_button = QPushButton(BANK_DELETE_BUTTON, column)
        self.delete_button.clicked.connect(self._handle_delete_question)
        action_row.addWidget(self.delete_button)
        action_row.addStretch()
        column_layout.addLayout(action_row)

        self.question_input = QPlainTextEdit(column)
        self.question_input.setPlaceholderText(PLACEHOLDER_QUESTION)
        self.question_input.textChanged.connect(self._mark_dirty)
        column_layout.addWidget(self.question_input)

        # One row per option: radio button marks the correct answer.
        options_grid = QGridLayout()
        self.correct_group = QButtonGroup(column)
        self.correct_group.setExclusive(True)
        self.option_inputs: list[QLineEdit] = []
        for row, letter in enumerate(_OPTION_LETTERS):
            radio = QRadioButton(letter, column)
            self.correct_group.addButton(radio, row)
            options_grid.addWidget(radio, row, 0)

            option_input = QLineEdit(column)
            option_input.setPlaceholderText(f"Option {letter}")
            option_input.textChanged.connect(self._mark_dirty)
            options_grid.addWidget(option_input, row, 1)
            self.option_inputs.append(option_input)
        self.correct_group.idToggled.connect(lambda _id, _checked: self._mark_dirty())
        column_layout.addLayout(options_grid)

        self.preview_view = QWebEngineView(column)
        column_layout.addWidget(self.preview_view, 1)
        return column

    # --- Public API used by the main window ---

    def reload(self) -> None:
        """Re-read the bank after an import or sync and show the first question."""
        self._dirty = False
        self._rebuild_list()
        if self.course_manager.get_question_count() == 0:
            self._start_new_draft()
            self.status_label.setText("No questions yet.")
            return
        self.show_question(0)

    def show_question(self, index: int) -> None:
        self._editing_row = index
        self._fill_editor(self.course_manager.get_question_at_index(index))
        self._select_row(index)
        self.status_label.setText(f"Viewing question {index + 1} of {self.course_manager.get_question_count()}.")

    def check_unsaved_changes(self) -> bool:
        """Prompt about unsaved edits. Returns True if it is ok to proceed."""
        if not self._dirty:
            return True
        choice = check_unsaved_changes(self)
        if choice is None:
            return False
        if choice:
            self._handle_save_question()
            return not self._dirty
        self._dirty = False
        return True

    def set_status_message(self, message: str) -> None:
        self.status_label.setText(message)

    def apply_font_size(self, ui_font_size: int, preview_font_size: int) -> None:
        style = f"font-size: {ui_font_size}pt;"
        for widget in (
            self.insert_button,
            self.save_button,
            self.delete_button,
            self.prev_button,
            self.next_button,
            self.question_list,
            *self.correct_group.buttons(),
        ):
            widget.setStyleSheet(style)
        self._preview_font_size = preview_font_size
        self._refresh_preview()

    # --- List ---

    def _rebuild_list(self) -> None:
        self.question_list.blockSignals(True)
        self.question_list.clear()
        for number, question in enumerate(self.course_manager.get_questions(), start=1):
            first_line = question.text.splitlines()[0] if question.text else ""
            if len(first_line) > _LIST_PREVIEW_CHARS:
                first_line = first_line[: _LIST_PREVIEW_CHARS - 3] + "..."
            item = QListWidgetItem(f"{number}. {first_line}")
            item.setToolTip(question.text)
            self.question_list.addItem(item)
        self.question_list.blockSignals(False)
        self._refresh_pool_label()

    def _select_row(self, row: int) -> None:
        self.question_list.blockSignals(True)
        self.question_list.setCurrentRow(row)
        self.question_list.blockSignals(False)

    def _handle_row_changed(self, row: int) -> None:
        if row < 0 or row == self._editing_row:
            return
        if not self.check_unsaved_changes():
            self._select_row(self._editing_row)
            return
        self.show_question(row)

    def _step(self, offset: int) -> None:
        count = self.course_manager.get_question_count()
        if count == 0:
            return
        start = self._editing_row if self._editing_row != _NEW_ROW else count
        target = max(0, min(count - 1, start + offset))
        if target == self._editing_row or not self.check_unsaved_changes():
            return
        self.show_question(target)

    def _refresh_pool_label(self) -> None:
        count = self.course_manager.get_question_count()
        missing = STUDENT_MIN_QUESTIONS - count
        if missing > 0:
            self.pool_label.setText(f"{count} questions. Students need {missing} more before the exam opens.")
        else:
            self.pool_label.setText(f"{count} questions. Exam draws up to {MAX_EXAM_QUESTIONS} at random.")

    # --- Editing ---

    def _mark_dirty(self) -> None:
        if self._loading:
            return
        self._dirty = True
        self._refresh_preview()

    def _handle_new_question(self) -> None:
        if not self.check_unsaved_changes():
            return
        self._start_new_draft()
        self.status_label.setText("Drafting a new question.")

    def _start_new_draft(self) -> None:
        self._editing_row = _NEW_ROW
        self._select_row(-1)
        self._fill_editor(None)

    def _fill_editor(self, question: Question | None) -> None:
        self._loading = True
        try:
            self.question_input.setPlainText(question.text if question else "")
            for index, field in enumerate(self.option_inputs):
                field.setText(question.options[index] if question else "")
            self.correct_group.setExclusive(False)
            for button in self.correct_group.buttons():
                button.setChecked(False)
            self.correct_group.setExclusive(True)
            if question is not None:
                self.correct_group.button(question.correct_answer).setChecked(True)
        finally:
            self._loading = False
        self._dirty = False
        self._refresh_preview()

    def _read_editor(self) -> Question:
        correct = self.correct_group.checkedId()
        if correct < 0:
            raise ValueError("Mark the correct option before saving.")
        return Question(
            id="",
            text=self.question_input.toPlainText().strip(),
            options=[field.text().strip() for field in self.option_inputs],
            correct_answer=correct,
        )

    def _handle_save_question(self) -> None:
        try:
            draft = self._read_editor()
            if self._editing_row == _NEW_ROW:
                self.course_manager.add_question(draft)
                self._editing_row = self.course_manager.get_question_count() - 1
            else:
                self.course_manager.update_question(self._editing_row, draft)
        except ValueError as exc:
            show_warning(self, "Invalid question", str(exc))
            return
        except IndexError as exc:
            show_error(self, "Save failed", f"Could not save question: {exc}")
            return

        self._dirty = False
        self._rebuild_list()
        self._select_row(self._editing_row)
        self.status_label.setText(
            f"Saved question {self._editing_row + 1} of {self.course_manager.get_question_count()}."
        )

    def _handle_delete_question(self) -> None:
        if self._editing_row == _NEW_ROW:
            if self._dirty:
                self._fill_editor(None)
                self.status_label.setText("Discarded the unsaved draft.")
            else:
                show_info(self, "No selection", "Select a question before deleting.")
            return

        if not confirm_delete_question(self, self._editing_row + 1):
            return
        try:
            self.course_manager.delete_question(self._editing_row)
        except IndexError as exc:
            show_error(self, "Delete failed", f"Could not delete question: {exc}")
            return

        self._dirty = False
        self._rebuild_list()
        remaining = self.course_manager.get_question_count()
        if remaining == 0:
            self._start_new_draft()
            self.status_label.setText("All questions removed.")
            return
        self.show_question(min(self._editing_row, remaining - 1))

    def _refresh_preview(self) -> None:
        checked = self.correct_group.checkedId()
        html = render_question_with_options(
            self.question_input.toPlainText(),
            [field.text() for field in self.option_inputs],
            correct_answer=checked if checked >= 0 else None,
            font_size=self._preview_font_size,
        )
        self.preview_view.setHtml(html)
