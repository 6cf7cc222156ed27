"""Qt main window for authoring the course and its final exam."""

from __future__ import annotations

from enum import Enum, auto
from pathlib import Path

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from course_app.constants.about import (
    APP_ABOUT_TEXT,
    APP_LICENSE,
    APP_NAME,
    APP_VERSION,
    HELP_TEXT,
)
from course_app.constants.ui_constants import (
    EMPTY_BANK_MESSAGE,
    EXPORT_DIALOG_TITLE,
    EXPORT_FILE_FILTER,
    IMPORT_DIALOG_TITLE,
    IMPORT_FILE_FILTER,
    INBOX_REFRESH_INTERVAL_MS,
    MODE_BUTTON_BANK,
    MODE_BUTTON_EXPORT,
    MODE_BUTTON_IMPORT,
    MODE_BUTTON_INBOX,
    MODE_BUTTON_LIVE,
    MODE_BUTTON_OUTLINE,
    MODE_BUTTON_SYNC,
    SYNC_DISABLED_MESSAGE,
    WINDOW_TITLE,
)
from course_app.core.bank_exporter import save_bank_to_file
from course_app.core.bank_importer import BankImportError, load_bank_from_file
from course_app.core.course_manager import CourseManager
from course_app.styling import Theme
from course_app.styling.styles import Styles
from course_app.ui.components.comments_inbox_panel import CommentsInboxPanel
from course_app.ui.components.course_outline_panel import CourseOutlinePanel
from course_app.ui.components.question_bank_panel import QuestionBankPanel
from course_app.ui.dialog_helpers import (
    confirm_import_bank,
    confirm_remove_live_event,
    show_error,
    show_info,
    show_warning,
)
from course_app.ui.live_event_dialog import LiveEventDialog
from course_app.ui.settings_dialog import SettingsDialog


class AdminMode(Enum):
    """Page shown in the console."""

    QUESTION_BANK = auto()
    COURSE_OUTLINE = auto()
    COMMENTS_INBOX = auto()


class AdminMainWindow(QMainWindow):
    """Main Qt window switching between bank, outline and inbox pages."""

    def __init__(self, course_manager: CourseManager, learner_url: str | None = None) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)

        self.course_manager = course_manager
        self.learner_url = learner_url

        self._mode = AdminMode.QUESTION_BANK
        self._ui_font_size: int = 10
        self._preview_font_size: int = 14
        self._theme = Theme.LIGHT
        self._last_export_path: Path | None = None

        self._build_ui()
        self._configure_refresh_timer()
        self._apply_styles()
        self.bank_panel.reload()

        if self.learner_url:
            self.statusBar().showMessage(f"Learner API available at {self.learner_url}")

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)

        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        self._build_mode_buttons(root_layout)

        self.mode_stack = QStackedWidget(self)
        self.bank_panel = QuestionBankPanel(self.course_manager, self)
        self.outline_panel = CourseOutlinePanel(self.course_manager, self)
        self.inbox_panel = CommentsInboxPanel(self.course_manager, self)

        self.mode_stack.addWidget(self.bank_panel)
        self.mode_stack.addWidget(self.outline_panel)
        self.mode_stack.addWidget(self.inbox_panel)
        root_layout.addWidget(self.mode_stack)

        self._set_mode(AdminMode.QUESTION_BANK)

    def _build_mode_buttons(self, layout: QVBoxLayout) -> None:
        button_row = QHBoxLayout()

        self.bank_mode_button = QPushButton(MODE_BUTTON_BANK, self)
        self.bank_mode_button.setCheckable(True)
        self.bank_mode_button.clicked.connect(lambda: self._request_mode(AdminMode.QUESTION_BANK))
        button_row.addWidget(self.bank_mode_button)

        self.outline_mode_button = QPushButton(MODE_BUTTON_OUTLINE, self)
        self.outline_mode_button.setCheckable(True)
        self.outline_mode_button.clicked.connect(lambda: self._request_mode(AdminMode.COURSE_OUTLINE))
        button_row.addWidget(self.outline_mode_button)

        self.inbox_mode_button = QPushButton(MODE_BUTTON_INBOX, self)
        self.inbox_mode_button.setCheckable(True)
        self.inbox_mode_button.clicked.connect(lambda: self._request_mode(AdminMode.COMMENTS_INBOX))
        button_row.addWidget(self.inbox_mode_button)

        self.import_button = QPushButton(MODE_BUTTON_IMPORT, self)
        self.import_button.clicked.connect(self._handle_import_bank)
        button_row.addWidget(self.import_button)

        self.export_button = QPushButton(MODE_BUTTON_EXPORT, self)
        self.export_button.clicked.connect(self._handle_export_bank)
        button_row.addWidget(self.export_button)

        self.sync_button = QPushButton(MODE_BUTTON_SYNC, self)
        self.sync_button.clicked.connect(self._handle_sync)
        button_row.addWidget(self.sync_button)

        self.live_button = QPushButton(MODE_BUTTON_LIVE, self)
        self.live_button.clicked.connect(self._handle_live_event)
        button_row.addWidget(self.live_button)

        self.about_button = QPushButton(f"About {APP_NAME}", self)
        self.about_button.clicked.connect(self._handle_about)
        button_row.addWidget(self.about_button)

        self.help_button = QPushButton("Help", self)
        self.help_button.clicked.connect(self._handle_help)
        button_row.addWidget(self.help_button)

        self.settings_button = QPushButton("Settings", self)
        self.settings_button.clicked.connect(self._handle_settings)
        button_row.addWidget(self.settings_button)

        layout.addLayout(button_row)

    def _configure_refresh_timer(self) -> None:
        self.refresh_timer = QTimer(self)
        self.refresh_timer.setInterval(INBOX_REFRESH_INTERVAL_MS)
        self.refresh_timer.timeout.connect(self._refresh_inbox)
        self.refresh_timer.start()
        self._refresh_inbox()

    def _refresh_inbox(self) -> None:
        unread = self.inbox_panel.refresh()
        label = f"{MODE_BUTTON_INBOX} ({unread})" if unread else MODE_BUTTON_INBOX
        self.inbox_mode_button.setText(label)

    def _request_mode(self, mode: AdminMode) -> None:
        if self._mode == AdminMode.QUESTION_BANK and mode != AdminMode.QUESTION_BANK:
            if not self.bank_panel.check_unsaved_changes():
                self._set_mode(self._mode)
                return
        self._set_mode(mode)

    def _set_mode(self, mode: AdminMode) -> None:
        self._mode = mode
        self.bank_mode_button.setChecked(mode == AdminMode.QUESTION_BANK)
        self.outline_mode_button.setChecked(mode == AdminMode.COURSE_OUTLINE)
        self.inbox_mode_button.setChecked(mode == AdminMode.COMMENTS_INBOX)

        index_map = {
            AdminMode.QUESTION_BANK: 0,
            AdminMode.COURSE_OUTLINE: 1,
            AdminMode.COMMENTS_INBOX: 2,
        }
        self.mode_stack.setCurrentIndex(index_map[mode])

    def _handle_import_bank(self) -> None:
        if not self.bank_panel.check_unsaved_changes():
            return

        current_count = self.course_manager.get_question_count()
        if current_count and not confirm_import_bank(self, current_count):
            return

        file_path, _ = QFileDialog.getOpenFileName(
            self,
            IMPORT_DIALOG_TITLE,
            str(Path.home()),
            IMPORT_FILE_FILTER,
        )
        if not file_path:
            return

        try:
            imported = load_bank_from_file(Path(file_path))
        except (OSError, BankImportError) as exc:
            show_error(self, "Import failed", str(exc))
            return

        try:
            count = self.course_manager.replace_questions(imported.questions)
        except ValueError as exc:
            show_error(self, "Questions rejected", str(exc))
            return

        self.bank_panel.reload()
        self._set_mode(AdminMode.QUESTION_BANK)
        self.bank_panel.set_status_message(f"Imported {count} questions. Viewing question 1 of {count}.")
        show_info(self, "Questions imported", f"Successfully imported {count} questions.")

    def _handle_export_bank(self) -> None:
        if self.course_manager.get_question_count() == 0:
            show_warning(self, "Empty bank", EMPTY_BANK_MESSAGE)
            return

        if not self.bank_panel.check_unsaved_changes():
            return

        default_path = self._last_export_path or (Path.cwd() / "question_bank.txt")
        file_path, _ = QFileDialog.getSaveFileName(
            self,
            EXPORT_DIALOG_TITLE,
            str(default_path),
            EXPORT_FILE_FILTER,
        )
        if not file_path:
            return

        try:
            save_bank_to_file(Path(file_path), self.course_manager.get_questions())
        except (OSError, ValueError) as exc:
            show_error(self, "Export failed", str(exc))
            return

        self._last_export_path = Path(file_path)
        show_info(self, "Questions saved", f"Question bank exported to {file_path}.")

    def _handle_sync(self) -> None:
        if not self.course_manager.is_sync_enabled():
            show_warning(self, "Sync disabled", SYNC_DISABLED_MESSAGE)
            return
        if not self.bank_panel.check_unsaved_changes():
            return
        if not self.course_manager.sync_now():
            show_error(self, "Sync failed", "Could not read from the sync endpoint. Local data is unchanged.")
            return
        self.bank_panel.reload()
        self.outline_panel.reload()
        self._refresh_inbox()
        show_info(self, "Sync finished", "Local data now matches the sync endpoint.")

    def _handle_live_event(self) -> None:
        current = self.course_manager.get_live_event()
        dialog = LiveEventDialog(self, live_event=current)
        if not dialog.exec():
            return

        if dialog.remove_requested:
            if current is not None and confirm_remove_live_event(self, current.title):
                self.course_manager.clear_live_event()
                self.statusBar().showMessage("Live class removed.")
            return

        try:
            event = self.course_manager.save_live_event(
                dialog.get_title(),
                dialog.get_meet_url(),
                dialog.get_date(),
                dialog.get_active(),
            )
        except ValueError as exc:
            show_warning(self, "Invalid live class", str(exc))
            return
        state = "live now" if event.active else "scheduled"
        self.statusBar().showMessage(f"Live class '{event.title}' {state}.")

    def _handle_about(self) -> None:
        details = (
            f"{APP_NAME} v{APP_VERSION}\n"
            f"License: {APP_LICENSE}\n\n"
            f"{APP_ABOUT_TEXT}"
        )
        show_info(self, f"About {APP_NAME}", details)

    def _handle_help(self) -> None:
        show_info(self, f"{APP_NAME} Help", HELP_TEXT)

    def _handle_settings(self) -> None:
        dialog = SettingsDialog(
            self,
            school_settings=self.course_manager.get_school_settings(),
            ui_font_size=self._ui_font_size,
            preview_font_size=self._preview_font_size,
            dark_theme=self._theme == Theme.DARK,
        )
        if not dialog.exec():
            return

        try:
            self.course_manager.update_school_settings(dialog.get_school_settings())
        except ValueError as exc:
            show_warning(self, "Invalid settings", str(exc))

        self._ui_font_size = dialog.get_ui_font_size()
        self._preview_font_size = dialog.get_preview_font_size()
        self._theme = Theme.DARK if dialog.get_dark_theme() else Theme.LIGHT
        self._apply_styles()

    def _apply_styles(self) -> None:
        self.setStyleSheet(Styles.get_main_window_style(self._theme))

        ui_style = f"font-size: {self._ui_font_size}pt;"
        for button in (
            self.bank_mode_button,
            self.outline_mode_button,
            self.inbox_mode_button,
            self.import_button,
            self.export_button,
            self.sync_button,
            self.live_button,
            self.about_button,
            self.help_button,
            self.settings_button,
        ):
            button.setStyleSheet(ui_style)

        self.bank_panel.apply_font_size(self._ui_font_size, self._preview_font_size)
        self.outline_panel.apply_theme(self._theme, self._ui_font_size, self._preview_font_size)
        self.inbox_panel.apply_theme(self._theme, self._ui_font_size)
