"""Terminal theming helpers."""

from zammy.ui.colors import box, progress_bar, symbols, theme

__all__ = ["box", "progress_bar", "symbols", "theme"]
