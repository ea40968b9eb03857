"""View-layer data preparation (document reads only).

Everything a view needs is derived here from the current document and
buffer and stored on the state. Views stay pure functions of state.

Usage in app.py:
    queries.refresh_editor(state)   # before EditorView.render()
    queries.refresh_scenes(state)   # before ScenesView.render()
    queries.run_query(state, expr)  # on query submit
"""

from __future__ import annotations

from novelscript.editor.decorations import SelectionRange, build_decorations
from novelscript.editor.overlay import merge_theme, render_overlay
from novelscript.outcome import Outcome
from novelscript.query.context import build_context
from novelscript.query.evaluator import EvaluationLimits, evaluate
from novelscript.script.estimates import estimate
from novelscript.script.lines import line_at, line_count, line_number
from novelscript.tui.state import AppState, CueGroup, SceneRow


PREVIEW_LINES = 30


# =============================================================================
# Editor
# =============================================================================

def visible_window(text: str, cursor: int, lines: int = PREVIEW_LINES) -> tuple[int, int]:
    """Offsets of a window of `lines` lines around the cursor."""
    total = line_count(text)
    current = line_at(text, cursor).number
    first = max(1, min(current - lines // 2, total - lines + 1))
    last = min(total, first + lines - 1)
    return line_number(text, first).start, line_number(text, last).end


def refresh_editor(state: AppState) -> None:
    """Populate state.editor.preview and status from the buffer."""
    text = state.editor.text
    cfg = state.config
    start, end = visible_window(text, state.editor.cursor)
    decorations = build_decorations(
        text,
        [(start, end)],
        selection=[SelectionRange(*sorted(state.editor.selection))],
        playable_tags=cfg.editor.playable_tags,
    )
    state.editor.preview = render_overlay(
        text, decorations, merge_theme(cfg.theme), start=start, end=end
    )

    est = estimate(state.document, cfg.estimates.seconds_per_line)
    scene = state.current_scene
    where = f"  ·  {scene.name}" if scene is not None else ""
    state.editor.status = f"{est.summary()}{where}"


# =============================================================================
# Scenes
# =============================================================================

def refresh_scenes(state: AppState) -> None:
    """Populate state.scenes.rows: every scene with its cues grouped by tag."""
    tags = state.config.cue_tags
    wanted = state.scenes.cue_filter
    rows: list[SceneRow] = []

    for scene in state.document.scenes:
        groups = []
        for tag in tags:
            if wanted is not None and tag != wanted:
                continue
            cues = scene.cues(tag)
            if cues:
                groups.append(CueGroup(tag=tag, lines=tuple(c.content.as_text() for c in cues)))
        if wanted is not None and not groups:
            continue
        rows.append(
            SceneRow(
                name=scene.name,
                summary=scene.summary,
                tags=tuple(scene.tags),
                offset=scene.from_,
                cues=tuple(groups),
            )
        )

    state.scenes.rows = rows


def next_cue_filter(state: AppState) -> str | None:
    """Cycle None -> first cue tag -> ... -> last cue tag -> None."""
    tags = list(state.config.cue_tags)
    current = state.scenes.cue_filter
    if current is None:
        return tags[0] if tags else None
    if current not in tags or current == tags[-1]:
        return None
    return tags[tags.index(current) + 1]


# =============================================================================
# Query
# =============================================================================

def run_query(state: AppState, expression: str) -> Outcome:
    cfg = state.config.query
    limits = EvaluationLimits(max_steps=cfg.max_steps, timeout_seconds=cfg.timeout_seconds)
    return evaluate(expression, build_context(state.document), limits)


def widget_at(state: AppState):
    """The read-mode widget under the cursor, as (widget, offset), if any.

    The cursor line is always shown raw, so its widgets are recomputed
    here as if it were not selected.
    """
    text = state.editor.text
    cursor = state.editor.cursor
    line = line_at(text, cursor)
    decorations = build_decorations(
        text, [(line.start, line.end)], playable_tags=state.config.editor.playable_tags
    )
    on_line = decorations.replacements
    if not on_line:
        return None
    hit = decorations.replacement_at(cursor) or on_line[0]
    return hit.widget, hit.from_
