"""Component for editing modules and lessons."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QCheckBox,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QStackedWidget,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from course_app.constants.ui_constants import (
    OUTLINE_ADD_LESSON_BUTTON,
    OUTLINE_ADD_MODULE_BUTTON,
    OUTLINE_DELETE_LESSON_BUTTON,
    OUTLINE_SAVE_LESSON_BUTTON,
    OUTLINE_SAVE_MODULE_BUTTON,
    PLACEHOLDER_LESSON_DESCRIPTION,
)
from course_app.core.course_manager import CourseManager
from course_app.core.models import CourseModule, Lesson
from course_app.styling import Theme
from course_app.styling.styles import Styles
from course_app.ui.dialog_helpers import confirm_delete_lesson, show_info, show_warning
from course_app.ui.question_renderer import render_lesson_description

_KIND_MODULE = "module"
_KIND_LESSON = "lesson"

_PAGE_EMPTY = 0
_PAGE_MODULE = 1
_PAGE_LESSON = 2


class CourseOutlinePanel(QWidget):
    """Tree of modules and lessons with an editor for the selected entry."""

    def __init__(self, course_manager: CourseManager, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.course_manager = course_manager
        self._theme = Theme.LIGHT
        self._preview_font_size = 14

        self._build_ui()
        self.reload()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        action_row = QHBoxLayout()
        self.add_module_button = QPushButton(OUTLINE_ADD_MODULE_BUTTON, self)
        self.add_module_button.clicked.connect(self._handle_add_module)
        action_row.addWidget(self.add_module_button)

        self.add_lesson_button = QPushButton(OUTLINE_ADD_LESSON_BUTTON, self)
        self.add_lesson_button.clicked.connect(self._handle_add_lesson)
        action_row.addWidget(self.add_lesson_button)

        self.delete_lesson_button = QPushButton(OUTLINE_DELETE_LESSON_BUTTON, self)
        self.delete_lesson_button.clicked.connect(self._handle_delete_lesson)
        action_row.addWidget(self.delete_lesson_button)
        action_row.addStretch()
        layout.addLayout(action_row)

        body_row = QHBoxLayout()
        self.tree = QTreeWidget(self)
        self.tree.setHeaderLabels(["Course outline"])
        self.tree.currentItemChanged.connect(self._handle_selection_changed)
        body_row.addWidget(self.tree, 1)

        self.editor_stack = QStackedWidget(self)
        self.editor_stack.addWidget(QLabel("Select a module or lesson to edit it.", self))
        self.editor_stack.addWidget(self._build_module_editor())
        self.editor_stack.addWidget(self._build_lesson_editor())
        body_row.addWidget(self.editor_stack, 2)
        layout.addLayout(body_row)

        self.status_label = QLabel(self)
        layout.addWidget(self.status_label)

    def _build_module_editor(self) -> QWidget:
        page = QWidget(self)
        form = QFormLayout()
        page.setLayout(form)

        self.module_title_input = QLineEdit(page)
        form.addRow("Title:", self.module_title_input)

        self.module_visible_checkbox = QCheckBox("Visible to students", page)
        form.addRow("", self.module_visible_checkbox)

        self.save_module_button = QPushButton(OUTLINE_SAVE_MODULE_BUTTON, page)
        self.save_module_button.clicked.connect(self._handle_save_module)
        form.addRow("", self.save_module_button)
        return page

    def _build_lesson_editor(self) -> QWidget:
        page = QWidget(self)
        column = QVBoxLayout()
        page.setLayout(column)

        form = QFormLayout()
        self.lesson_title_input = QLineEdit(page)
        form.addRow("Title:", self.lesson_title_input)
        self.lesson_duration_input = QLineEdit(page)
        self.lesson_duration_input.setPlaceholderText("e.g. 12:30")
        form.addRow("Duration:", self.lesson_duration_input)
        self.lesson_video_input = QLineEdit(page)
        form.addRow("Video URL:", self.lesson_video_input)
        self.lesson_thumbnail_input = QLineEdit(page)
        form.addRow("Thumbnail URL:", self.lesson_thumbnail_input)
        column.addLayout(form)

        self.lesson_description_input = QPlainTextEdit(page)
        self.lesson_description_input.setPlaceholderText(PLACEHOLDER_LESSON_DESCRIPTION)
        self.lesson_description_input.textChanged.connect(self._refresh_description_preview)
        column.addWidget(self.lesson_description_input)

        self.description_preview = QWebEngineView(page)
        column.addWidget(self.description_preview)

        self.save_lesson_button = QPushButton(OUTLINE_SAVE_LESSON_BUTTON, page)
        self.save_lesson_button.clicked.connect(self._handle_save_lesson)
        column.addWidget(self.save_lesson_button)
        return page

    # --- Tree ---

    def reload(self, select_id: str | None = None) -> None:
        """Rebuild the tree from the manager, keeping ``select_id`` selected."""
        if select_id is None:
            select_id = self._selected_id()
        self.tree.blockSignals(True)
        self.tree.clear()
        target: QTreeWidgetItem | None = None
        modules = self.course_manager.get_modules()
        for module in modules:
            module_item = QTreeWidgetItem([module.title])
            module_item.setData(0, Qt.UserRole, (_KIND_MODULE, module.id))
            if not module.is_visible:
                module_item.setText(0, f"{module.title} (hidden)")
                module_item.setForeground(0, QBrush(QColor(Styles.hidden_item_color(self._theme))))
            self.tree.addTopLevelItem(module_item)
            if module.id == select_id:
                target = module_item
            for lesson in module.lessons:
                lesson_item = QTreeWidgetItem([lesson.title])
                lesson_item.setData(0, Qt.UserRole, (_KIND_LESSON, lesson.id))
                module_item.addChild(lesson_item)
                if lesson.id == select_id:
                    target = lesson_item
        self.tree.expandAll()
        self.tree.blockSignals(False)

        lesson_count = sum(len(module.lessons) for module in modules)
        self.status_label.setText(f"{len(modules)} modules, {lesson_count} lessons.")
        if target is not None:
            self.tree.setCurrentItem(target)
        else:
            self._show_editor_for(None)

    def _selected(self) -> tuple[str, str] | None:
        item = self.tree.currentItem()
        if item is None:
            return None
        return item.data(0, Qt.UserRole)

    def _selected_id(self) -> str | None:
        selected = self._selected()
        return selected[1] if selected else None

    def _selected_module_id(self) -> str | None:
        item = self.tree.currentItem()
        if item is None:
            return None
        kind, item_id = item.data(0, Qt.UserRole)
        if kind == _KIND_MODULE:
            return item_id
        parent = item.parent()
        return parent.data(0, Qt.UserRole)[1] if parent is not None else None

    def _handle_selection_changed(self, current: QTreeWidgetItem | None, _previous: QTreeWidgetItem | None) -> None:
        self._show_editor_for(current.data(0, Qt.UserRole) if current is not None else None)

    def _show_editor_for(self, selected: tuple[str, str] | None) -> None:
        if selected is None:
            self.editor_stack.setCurrentIndex(_PAGE_EMPTY)
            return
        kind, item_id = selected
        if kind == _KIND_MODULE:
            module = self._find_module(item_id)
            if module is None:
                self.editor_stack.setCurrentIndex(_PAGE_EMPTY)
                return
            self.module_title_input.setText(module.title)
            self.module_visible_checkbox.setChecked(module.is_visible)
            self.editor_stack.setCurrentIndex(_PAGE_MODULE)
            return
        try:
            lesson = self.course_manager.get_lesson(item_id)
        except KeyError:
            self.editor_stack.setCurrentIndex(_PAGE_EMPTY)
            return
        self._populate_lesson(lesson)
        self.editor_stack.setCurrentIndex(_PAGE_LESSON)

    def _find_module(self, module_id: str) -> CourseModule | None:
        return next((m for m in self.course_manager.get_modules() if m.id == module_id), None)

    def _populate_lesson(self, lesson: Lesson) -> None:
        self.lesson_title_input.setText(lesson.title)
        self.lesson_duration_input.setText(lesson.duration)
        self.lesson_video_input.setText(lesson.video_url)
        self.lesson_thumbnail_input.setText(lesson.thumbnail)
        self.lesson_description_input.setPlainText(lesson.description)

    def _refresh_description_preview(self) -> None:
        html = render_lesson_description(self.lesson_description_input.toPlainText(), self._preview_font_size)
        self.description_preview.setHtml(html)

    # --- Actions ---

    def _handle_add_module(self) -> None:
        title, ok = QInputDialog.getText(self, "New module", "Module title:")
        if not ok:
            return
        try:
            module = self.course_manager.add_module(title)
        except ValueError as exc:
            show_warning(self, "Invalid module", str(exc))
            return
        self.reload(select_id=module.id)

    def _handle_add_lesson(self) -> None:
        module_id = self._selected_module_id()
        if module_id is None:
            show_info(self, "No module", "Select the module the lesson belongs to.")
            return
        title, ok = QInputDialog.getText(self, "New lesson", "Lesson title:")
        if not ok:
            return
        try:
            lesson = self.course_manager.add_lesson(module_id, title)
        except (ValueError, KeyError) as exc:
            show_warning(self, "Invalid lesson", str(exc))
            return
        self.reload(select_id=lesson.id)

    def _handle_save_module(self) -> None:
        selected = self._selected()
        if selected is None or selected[0] != _KIND_MODULE:
            return
        try:
            self.course_manager.update_module(
                selected[1],
                title=self.module_title_input.text(),
                is_visible=self.module_visible_checkbox.isChecked(),
            )
        except (ValueError, KeyError) as exc:
            show_warning(self, "Save failed", str(exc))
            return
        self.reload(select_id=selected[1])

    def _handle_save_lesson(self) -> None:
        selected = self._selected()
        if selected is None or selected[0] != _KIND_LESSON:
            return
        try:
            self.course_manager.update_lesson(
                selected[1],
                title=self.lesson_title_input.text(),
                description=self.lesson_description_input.toPlainText(),
                duration=self.lesson_duration_input.text().strip(),
                video_url=self.lesson_video_input.text().strip(),
                thumbnail=self.lesson_thumbnail_input.text().strip(),
            )
        except (ValueError, KeyError) as exc:
            show_warning(self, "Save failed", str(exc))
            return
        self.reload(select_id=selected[1])

    def _handle_delete_lesson(self) -> None:
        selected = self._selected()
        if selected is None or selected[0] != _KIND_LESSON:
            show_info(self, "No lesson", "Select a lesson before deleting.")
            return
        if not confirm_delete_lesson(self, self.lesson_title_input.text()):
            return
        try:
            self.course_manager.delete_lesson(selected[1])
        except KeyError as exc:
            show_warning(self, "Delete failed", str(exc))
            return
        self.reload(select_id=self._selected_module_id())

    def apply_theme(self, theme: Theme, ui_font_size: int, preview_font_size: int) -> None:
        self._theme = theme
        self._preview_font_size = preview_font_size
        style = f"font-size: {ui_font_size}pt;"
        for button in (
            self.add_module_button,
            self.add_lesson_button,
            self.delete_lesson_button,
            self.save_module_button,
            self.save_lesson_button,
        ):
            button.setStyleSheet(style)
        self.reload()
