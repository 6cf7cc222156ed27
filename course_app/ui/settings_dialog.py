"""Settings dialog for school branding and console preferences."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

from course_app.core.models import SchoolSettings


class SettingsDialog(QDialog):
    """School details shown to learners, plus local display preferences.

    School details are saved through the manager (and pushed to the sheet when
    sync is on). Font sizes and theme only affect this console.
    """

    def __init__(
        self,
        parent=None,
        school_settings: SchoolSettings | None = None,
        ui_font_size: int = 10,
        preview_font_size: int = 14,
        dark_theme: bool = False,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.setMinimumWidth(440)

        self._school_settings = school_settings or SchoolSettings(school_name="")
        self._ui_font_size = ui_font_size
        self._preview_font_size = preview_font_size
        self._dark_theme = dark_theme

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        school_group = QGroupBox("School")
        school_form = QFormLayout()
        school_group.setLayout(school_form)

        self.school_name_input = QLineEdit(self._school_settings.school_name)
        school_form.addRow("School name:", self.school_name_input)

        self.support_email_input = QLineEdit(self._school_settings.support_email)
        school_form.addRow("Support e-mail:", self.support_email_input)

        self.support_phone_input = QLineEdit(self._school_settings.support_phone)
        school_form.addRow("Support phone:", self.support_phone_input)

        self.sidebar_label_input = QLineEdit(self._school_settings.sidebar_link_label)
        self.sidebar_label_input.setToolTip("Optional extra link shown in the learner sidebar")
        school_form.addRow("Sidebar link label:", self.sidebar_label_input)

        self.sidebar_url_input = QLineEdit(self._school_settings.sidebar_link_url)
        school_form.addRow("Sidebar link URL:", self.sidebar_url_input)

        layout.addWidget(school_group)

        display_group = QGroupBox("Display")
        display_form = QFormLayout()
        display_group.setLayout(display_form)

        self.ui_font_spinbox = QSpinBox()
        self.ui_font_spinbox.setRange(8, 24)
        self.ui_font_spinbox.setValue(self._ui_font_size)
        self.ui_font_spinbox.setSuffix(" pt")
        display_form.addRow("UI font size:", self.ui_font_spinbox)

        self.preview_font_spinbox = QSpinBox()
        self.preview_font_spinbox.setRange(10, 32)
        self.preview_font_spinbox.setValue(self._preview_font_size)
        self.preview_font_spinbox.setSuffix(" pt")
        display_form.addRow("Preview font size:", self.preview_font_spinbox)

        self.dark_theme_checkbox = QCheckBox("Use dark theme")
        self.dark_theme_checkbox.setChecked(self._dark_theme)
        display_form.addRow("", self.dark_theme_checkbox)

        layout.addWidget(display_group)

        button_row = QHBoxLayout()
        button_row.addStretch()

        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.clicked.connect(self.reject)  # type: ignore[arg-type]
        button_row.addWidget(self.cancel_button)

        self.apply_button = QPushButton("Apply")
        self.apply_button.clicked.connect(self.accept)  # type: ignore[arg-type]
        self.apply_button.setDefault(True)
        button_row.addWidget(self.apply_button)

        layout.addLayout(button_row)

    def get_school_settings(self) -> SchoolSettings:
        return SchoolSettings(
            school_name=self.school_name_input.text().strip(),
            support_email=self.support_email_input.text().strip(),
            support_phone=self.support_phone_input.text().strip(),
            sidebar_link_label=self.sidebar_label_input.text().strip(),
            sidebar_link_url=self.sidebar_url_input.text().strip(),
        )

    def get_ui_font_size(self) -> int:
        return self.ui_font_spinbox.value()

    def get_preview_font_size(self) -> int:
        return self.preview_font_spinbox.value()

    def get_dark_theme(self) -> bool:
        return self.dark_theme_checkbox.isChecked()
