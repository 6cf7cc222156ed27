"""Color palette for the admin console, light and dark."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Theme(Enum):
    """Console theme options."""
    LIGHT = auto()
    DARK = auto()


@dataclass(frozen=True)
class ThemeColors:
    """One color in both themes."""
    light: str
    dark: str

    def get(self, theme: Theme) -> str:
        return self.light if theme == Theme.LIGHT else self.dark


class ColorPalette:
    """Named colors used by ``Styles``."""

    TEXT_PRIMARY = ThemeColors(light="#1F2937", dark="#F3F4F6")
    TEXT_MUTED = ThemeColors(light="#6B7280", dark="#9CA3AF")

    BACKGROUND_PRIMARY = ThemeColors(light="#FFFFFF", dark="#111827")
    BACKGROUND_PANEL = ThemeColors(light="#F9FAFB", dark="#1F2937")

    BORDER_PRIMARY = ThemeColors(light="#D1D5DB", dark="#4B5563")

    # Accent used for checked mode buttons and the selected outline row
    ACCENT = ThemeColors(light="#2563EB", dark="#60A5FA")
    ACCENT_TEXT = ThemeColors(light="#FFFFFF", dark="#0B1120")

    BUTTON_BG = ThemeColors(light="#F3F4F6", dark="#374151")
    BUTTON_HOVER_BG = ThemeColors(light="#E5E7EB", dark="#4B5563")

    # Outline rows for hidden modules, inbox badge
    HIDDEN_ITEM = ThemeColors(light="#9CA3AF", dark="#6B7280")
    UNREAD_BADGE = ThemeColors(light="#DC2626", dark="#F87171")
