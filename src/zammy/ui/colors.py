"""Color theme, glyphs and small renderers shared by core commands and plugins.

Everything here is a pure function over strings and returns rich console
markup, ready for ``Console.print``.
"""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace

from rich.markup import escape
from rich.text import Text

PALETTE = {
    "rose": "#FF6B6B",
    "coral": "#FF8E72",
    "peach": "#FFEAA7",
    "mint": "#96CEB4",
    "teal": "#4ECDC4",
    "sky": "#45B7D1",
    "lavender": "#DDA0DD",
    "success": "#2ECC71",
    "warning": "#F39C12",
    "error": "#E74C3C",
    "dim": "#6C7A89",
}

GRADIENT_COLORS = ["rose", "coral", "peach", "mint", "teal"]


def _style(color: str) -> Callable[[str], str]:
    hex_color = PALETTE[color]

    def apply(text: str) -> str:
        return f"[{hex_color}]{escape(text)}[/]"

    apply.__name__ = color
    return apply


primary = _style("teal")
secondary = _style("lavender")
accent = _style("rose")
success = _style("success")
warning = _style("warning")
error = _style("error")
info = _style("sky")
dim = _style("dim")


def gradient(text: str) -> str:
    """Color each character in turn across the gradient palette."""
    return "".join(
        f"[{PALETTE[GRADIENT_COLORS[i % len(GRADIENT_COLORS)]]}]{escape(char)}[/]"
        for i, char in enumerate(text)
    )


theme = SimpleNamespace(
    primary=primary,
    secondary=secondary,
    accent=accent,
    success=success,
    warning=warning,
    error=error,
    info=info,
    dim=dim,
    gradient=gradient,
)

symbols = SimpleNamespace(
    check="✔",
    cross="✘",
    star="★",
    arrow="❯",
    bullet="•",
    folder="\U0001f4c1",
    file="\U0001f4c4",
    warning="⚠",
    info="ℹ",
    rocket="\U0001f680",
    sparkles="✨",
    gear="⚙",
)


def visible_width(markup: str) -> int:
    """Terminal cell width of ``markup`` once rendered."""
    return Text.from_markup(markup).cell_len


def box(content: str, title: str | None = None, padding: int = 1) -> str:
    """Draw a rounded box around ``content``.

    Args:
        content: Text or markup, may span several lines
        title: Optional title embedded in the top border
        padding: Spaces between the border and the content
    """
    lines = content.split("\n")
    pad = " " * max(0, padding)
    inner = max((visible_width(line) for line in lines), default=0) + 2 * len(pad)

    if title:
        inner = max(inner, visible_width(title) + 4)
        fill = inner - visible_width(title) - 3
        top = dim("╭─ ") + title + dim(" " + "─" * fill + "╮")
    else:
        top = dim("╭" + "─" * inner + "╮")

    out = [top]
    for line in lines:
        right = inner - len(pad) - visible_width(line)
        out.append(dim("│") + pad + line + " " * right + dim("│"))
    out.append(dim("╰" + "─" * inner + "╯"))
    return "\n".join(out)


def progress_bar(current: float, total: float, width: int = 30) -> str:
    """Render ``current`` out of ``total`` as a bar with a percentage."""
    percent = 0.0 if total <= 0 else max(0.0, min(100.0, current / total * 100))
    filled = round(percent / 100 * width)

    color = success
    if percent > 70:
        color = warning
    if percent > 90:
        color = error

    bar = (color("█" * filled) if filled else "") + dim("░" * (width - filled))
    return f"{bar} {percent:.0f}%"
