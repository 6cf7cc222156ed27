"""Qt stylesheets generated from the palette."""

from .color_palette import ColorPalette, Theme


class Styles:
    """Builds stylesheets for the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.LIGHT) -> str:
        return f"""
            QMainWindow, QDialog {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
            }}
            QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: 14px;
            }}
            QPushButton {{
                background-color: {ColorPalette.BUTTON_BG.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};
            }}
            QPushButton:checked {{
                background-color: {ColorPalette.ACCENT.get(theme)};
                color: {ColorPalette.ACCENT_TEXT.get(theme)};
                border: 1px solid {ColorPalette.ACCENT.get(theme)};
            }}
            QLineEdit, QPlainTextEdit, QSpinBox, QComboBox {{
                background-color: {ColorPalette.BACKGROUND_PANEL.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 4px;
            }}
            QTreeWidget, QListWidget {{
                background-color: {ColorPalette.BACKGROUND_PANEL.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
            }}
            QTreeWidget::item:selected, QListWidget::item:selected {{
                background-color: {ColorPalette.ACCENT.get(theme)};
                color: {ColorPalette.ACCENT_TEXT.get(theme)};
            }}
            QGroupBox {{
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 6px;
                margin-top: 6px;
                padding-top: 10px;
            }}
            QGroupBox::title {{
                subcontrol-origin: margin;
                left: 10px;
                padding: 0 3px 0 3px;
            }}
        """

    @staticmethod
    def get_status_label_style(theme: Theme = Theme.LIGHT) -> str:
        return f"color: {ColorPalette.TEXT_MUTED.get(theme)};"

    @staticmethod
    def get_unread_badge_style(theme: Theme = Theme.LIGHT) -> str:
        return f"color: {ColorPalette.UNREAD_BADGE.get(theme)}; font-weight: bold;"

    @staticmethod
    def hidden_item_color(theme: Theme = Theme.LIGHT) -> str:
        return ColorPalette.HIDDEN_ITEM.get(theme)
