"""Apply a DecorationSet to the source text, producing a rich Text.

Marks become styles looked up by CSS-like class name in the theme;
replacements substitute the widget label.
"""

from __future__ import annotations

from typing import Mapping, Optional

from rich.text import Text

from novelscript.editor.decorations import DecorationSet, Mark
from novelscript.script.lines import iter_lines


DEFAULT_THEME: dict[str, str] = {
    "novel-scene-header": "bold reverse",
    "hide": "dim",
    "novel-comment": "italic grey50",
    "novel-property": "cyan",
    "novel-property-key": "bold cyan",
    "novel-tag": "magenta",
    "novel-tagged-action": "yellow",
    "novel-tagged-action-tag": "bold yellow",
    "novel-prompt": "green",
    "novel-speaker": "bold",
    "novel-dialogue": "",
    "parenthetical": "italic",
    "novel-action-line": "",
    "novel-wikilink": "underline blue",
    "novel-link": "underline blue",
    "novel-bold": "bold",
    "novel-italic": "italic",
    "novel-playback": "bold green",
    "selected": "",
}


def merge_theme(overrides: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    theme = dict(DEFAULT_THEME)
    if overrides:
        theme.update(overrides)
    return theme


def style_for(classes, theme: Mapping[str, str]) -> str:
    return " ".join(theme[c] for c in classes if theme.get(c))


def render_overlay(
    text: str,
    decorations: DecorationSet,
    theme: Optional[Mapping[str, str]] = None,
    start: int = 0,
    end: Optional[int] = None,
) -> Text:
    """Render lines intersecting `[start, end]` with decorations applied."""
    theme = theme if theme is not None else DEFAULT_THEME
    out = Text(no_wrap=True)
    first = True

    for line in iter_lines(text, start, end):
        if not first:
            out.append("\n")
        first = False

        line_end = line.start + len(line.text)
        replacements = [
            r for r in decorations.replacements
            if r.from_ >= line.start and r.to <= line_end
        ]
        marks = [m for m in decorations.marks if m.from_ < line_end and m.to > line.start]

        pos = line.start
        for replace in replacements:
            if replace.from_ < pos:
                continue  # nested inside an earlier replacement
            _append_raw(out, text, pos, replace.from_, marks, theme)
            out.append(replace.widget.label(), style=theme.get(replace.widget.css_class) or None)
            pos = replace.to
        _append_raw(out, text, pos, line_end, marks, theme)

    return out


def _append_raw(out: Text, text: str, a: int, b: int, marks: list[Mark], theme: Mapping[str, str]) -> None:
    if a >= b:
        return
    base = len(out)
    out.append(text[a:b])
    for mark in marks:
        lo, hi = max(mark.from_, a), min(mark.to, b)
        if lo >= hi:
            continue
        style = style_for(mark.classes, theme)
        if style:
            out.stylize(style, base + (lo - a), base + (hi - a))
