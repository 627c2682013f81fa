"""
Theme and display preferences.

``screen_mode`` is a profile-specific setting: ``light``, ``dark`` or
``auto`` (follow the operating system).
"""

from typing import Dict

from colour import Color  # type: ignore[import-untyped]

from .constants import FONT_SIZE, ThemeColors

_APPEARANCE_MODES = {"auto": "System", "light": "Light", "dark": "Dark"}


def shift_luminance(hex_color: str, delta: float) -> str:
    """Move a colour's luminance by ``delta``, clamped to 0..1."""
    c = Color(hex_color)
    c.luminance = max(0.0, min(1.0, c.luminance + delta))
    return c.hex_l


def text_color_on(hex_color: str) -> str:
    """Readable text colour for a background."""
    if Color(hex_color).luminance > 0.5:
        return ThemeColors.TEXT_ON_LIGHT
    return ThemeColors.TEXT_ON_DARK


def resolve_effective_theme(screen_mode: str, system_mode: str = "light") -> str:
    """Theme actually applied: an explicit mode wins, otherwise follow the system."""
    mode = (screen_mode or "auto").lower()
    if mode in ("light", "dark"):
        return mode
    system = (system_mode or "").lower()
    return system if system in ("light", "dark") else "light"


def appearance_mode_for(screen_mode: str) -> str:
    """customtkinter appearance mode name for a ``screen_mode`` value."""
    return _APPEARANCE_MODES.get((screen_mode or "auto").lower(), "System")


def build_palette(theme: str) -> Dict[str, str]:
    if theme == "dark":
        bg, panel, accent = ThemeColors.DARK_BG, ThemeColors.DARK_PANEL, ThemeColors.DARK_ACCENT
        hover = shift_luminance(accent, 0.08)
        panel_hover = shift_luminance(panel, 0.06)
    else:
        bg, panel, accent = ThemeColors.LIGHT_BG, ThemeColors.LIGHT_PANEL, ThemeColors.LIGHT_ACCENT
        hover = shift_luminance(accent, -0.08)
        panel_hover = shift_luminance(panel, -0.06)

    return {
        "bg": bg,
        "panel": panel,
        "panel_hover": panel_hover,
        "accent": accent,
        "accent_hover": hover,
        "text": text_color_on(bg),
        "text_on_accent": text_color_on(accent),
        "success": ThemeColors.SUCCESS,
        "danger": ThemeColors.DANGER,
        "warning": ThemeColors.WARNING,
    }


def step_font_size(current, delta: int) -> int:
    """Move the font size by ``delta``, staying within the allowed range."""
    try:
        size = int(current)
    except (TypeError, ValueError):
        size = FONT_SIZE["default"]
    return max(FONT_SIZE["min"], min(FONT_SIZE["max"], size + delta))
