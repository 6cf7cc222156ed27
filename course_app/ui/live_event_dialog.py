"""Dialog for scheduling the live class announced to learners."""

from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import QDateTime
from PySide6.QtWidgets import (
    QCheckBox,
    QDateTimeEdit,
    QDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
)

from course_app.constants.ui_constants import LIVE_EVENT_LINK_HINT
from course_app.core.models import LiveEvent


class LiveEventDialog(QDialog):
    """Edit the title, link and start time of the live class.

    ``remove_requested`` is set when the admin chose to drop the current event
    instead of saving it.
    """

    def __init__(self, parent=None, live_event: LiveEvent | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Live Class")
        self.setModal(True)
        self.setMinimumWidth(440)

        self._live_event = live_event
        self.remove_requested = False

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        hint = QLabel(LIVE_EVENT_LINK_HINT)
        hint.setWordWrap(True)
        layout.addWidget(hint)

        event_group = QGroupBox("Live class")
        event_form = QFormLayout()
        event_group.setLayout(event_form)

        event = self._live_event
        self.title_input = QLineEdit(event.title if event else "")
        self.title_input.setPlaceholderText("e.g. Q&A - Module 2")
        event_form.addRow("Title:", self.title_input)

        self.url_input = QLineEdit(event.meet_url if event else "")
        self.url_input.setPlaceholderText("https://meet.google.com/...")
        event_form.addRow("Link:", self.url_input)

        self.date_input = QDateTimeEdit()
        self.date_input.setCalendarPopup(True)
        self.date_input.setDisplayFormat("yyyy-MM-dd HH:mm")
        if event is not None:
            self.date_input.setDateTime(QDateTime.fromSecsSinceEpoch(int(event.date.timestamp())))
        else:
            self.date_input.setDateTime(QDateTime.currentDateTime())
        event_form.addRow("Starts at:", self.date_input)

        self.active_checkbox = QCheckBox("We are live now")
        self.active_checkbox.setToolTip("Highlights the class for every learner right away")
        self.active_checkbox.setChecked(event.active if event else False)
        event_form.addRow("", self.active_checkbox)

        layout.addWidget(event_group)

        button_row = QHBoxLayout()

        self.remove_button = QPushButton("Remove")
        self.remove_button.setEnabled(event is not None)
        self.remove_button.clicked.connect(self._handle_remove)
        button_row.addWidget(self.remove_button)
        button_row.addStretch()

        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.clicked.connect(self.reject)  # type: ignore[arg-type]
        button_row.addWidget(self.cancel_button)

        self.save_button = QPushButton("Save")
        self.save_button.clicked.connect(self.accept)  # type: ignore[arg-type]
        self.save_button.setDefault(True)
        button_row.addWidget(self.save_button)

        layout.addLayout(button_row)

    def _handle_remove(self) -> None:
        self.remove_requested = True
        self.accept()

    def get_title(self) -> str:
        return self.title_input.text().strip()

    def get_meet_url(self) -> str:
        return self.url_input.text().strip()

    def get_date(self) -> datetime:
        # Local wall-clock time from the editor, made timezone-aware.
        return self.date_input.dateTime().toPython().astimezone()

    def get_active(self) -> bool:
        return self.active_checkbox.isChecked()
