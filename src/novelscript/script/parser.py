"""Document parser: script text -> NovelDocument.

Layout of a script:

    Title: Example          <- document property block
    Author: Someone

    == Scene 1 ==           <- scene header
    Summary: Intro          <- scene property block (contiguous)
    Once upon a time...     <- scene items
    [Alice]
    Hello.

Lines that cannot start a scene are skipped and recorded as orphans.
parse_document never raises; every local mismatch degrades.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from novelscript.outcome import Success
from novelscript.script.classifier import (
    INITIAL_STATE,
    Construct,
    ParseState,
    Property,
    SpeakerLine,
    TaggedActionLine,
    TextLine,
    classify,
    match_header,
    match_property,
)
from novelscript.script.lines import LineSpan, iter_lines
from novelscript.script.rich_text import parse_rich_text
from novelscript.script.types import (
    ActionLine,
    DialogueLine,
    Metadata,
    NovelDocument,
    NovelScene,
    SceneItem,
    Speaker,
    TaggedAction,
)


logger = logging.getLogger(__name__)


def parse_property(line: str) -> Optional[tuple[str, str]]:
    """Parse a `key: value` line. Returns None when the line is not a property."""
    prop = match_property(line)
    if prop is None:
        return None
    return prop.key, prop.value


def parse_document(text: str) -> Success[NovelDocument]:
    lines = list(iter_lines(text))
    i = 0

    # Document property block; blank lines inside it are skipped.
    pairs: list[tuple[str, str]] = []
    while i < len(lines):
        if not lines[i].text.strip():
            i += 1
            continue
        prop = parse_property(lines[i].text)
        if prop is None:
            break
        pairs.append(prop)
        i += 1

    scenes: list[NovelScene] = []
    orphans: list[SceneItem] = []
    orphan_state = INITIAL_STATE

    while i < len(lines):
        line = lines[i]
        if not line.text.strip():
            _, orphan_state = classify(line.text, orphan_state)
            i += 1
            continue

        scene, next_index = parse_scene(lines, i, len(text))
        if scene is not None:
            scenes.append(scene)
            orphan_state = INITIAL_STATE
            i = next_index
            continue

        # No header where a scene should start: skip the line.
        construct, new_state = classify(line.text, orphan_state)
        item = _item_for(construct, line, orphan_state)
        if item is not None:
            orphans.append(item)
        orphan_state = new_state
        i += 1

    document = NovelDocument(
        metadata=Metadata(pairs),
        scenes=tuple(scenes),
        orphans=tuple(orphans),
    )
    logger.debug(
        "Parsed %d chars: %d scene(s), %d orphan item(s)",
        len(text),
        len(scenes),
        len(orphans),
    )
    return Success(document)


def parse_scene(lines: Sequence[LineSpan], index: int, length: int) -> tuple[Optional[NovelScene], int]:
    """Parse the scene whose header is `lines[index]`.

    Returns (scene, index of the first line after it), or (None, index)
    when the line is not a scene header.
    """
    header_line = lines[index]
    header = match_header(header_line.text)
    if header is None:
        return None, index

    j = index + 1
    pairs: list[tuple[str, str]] = []
    while j < len(lines):
        prop = parse_property(lines[j].text)
        if prop is None:
            break
        pairs.append(prop)
        j += 1

    state = INITIAL_STATE
    items: list[SceneItem] = []
    while j < len(lines):
        line = lines[j]
        if line.text.startswith("="):
            break
        construct, new_state = classify(line.text, state)
        item = _item_for(construct, line, state)
        if item is not None:
            items.append(item)
        state = new_state
        j += 1

    scene_end = lines[j].start if j < len(lines) else length
    scene = NovelScene(
        from_=header_line.start,
        to=scene_end,
        name=header.name,
        metadata=Metadata(pairs),
        items=tuple(items),
    )
    return scene, j


def _item_for(construct: Construct, line: LineSpan, state: ParseState) -> Optional[SceneItem]:
    """Map a classified line to a scene item; None for lines that carry no item."""
    line_end = line.start + len(line.text)

    match construct:
        case TaggedActionLine(tag=tag, text=text, text_start=text_start):
            return TaggedAction(
                from_=line.start,
                to=line_end,
                tag=tag,
                content=parse_rich_text(text, line.start + text_start),
            )

        case SpeakerLine(referent=referent, alias=alias, continued=continued, resolved=resolved):
            if resolved is not None:
                referent, alias = resolved.referent, resolved.alias
            return Speaker(
                from_=line.start,
                to=line_end,
                referent=referent,
                alias=alias,
                continued=continued,
            )

        case TextLine(dialogue=dialogue):
            cls = DialogueLine if dialogue else ActionLine
            return cls(from_=line.start, to=line_end, content=parse_rich_text(line.text, line.start))

        case Property():
            # Outside a property block a `key: value` line is ordinary text.
            cls = DialogueLine if state.in_dialogue else ActionLine
            return cls(from_=line.start, to=line_end, content=parse_rich_text(line.text, line.start))

    return None
