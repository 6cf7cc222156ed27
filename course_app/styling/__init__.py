"""Styling module for the CourseQt admin console."""

from .color_palette import ColorPalette, Theme

__all__ = ["ColorPalette", "Theme"]
