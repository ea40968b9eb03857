"""Line classifier for script text.

classify(line, state) is a pure function returning the construct the line
represents and the parse state for the following line.

Rules, in priority order (first match wins):

    1. blank          whitespace only           -> mode = action
    2. scene header   == name ==                -> state reset
    3. comment        // text
    4. property       key: value
    5. tagged action  @TAG text
    6. prompt         %PROMPT a, "b", c
    7. speaker        [name] / [name|alias] / [&] -> mode = dialogue
    8. text           dialogue or action line, depending on mode

Both the document parser and the decoration engine go through here, so
styling and parse semantics cannot drift apart.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Union


HEADER_RE = re.compile(r"^(?P<open>==(?!=)\s*)(?P<name>[^=\s](?:.*?[^=\s])?)(?P<close>\s*(?<!=)==)\s*$")
COMMENT_RE = re.compile(r"^(?P<marker>//\s*)(?P<text>.*)$")
PROPERTY_RE = re.compile(r"^(?P<key>\w+):\s*(?P<value>.*)$")
TAGGED_ACTION_RE = re.compile(r"^@(?P<tag>\w+) (?P<text>.+)$")
SPEAKER_RE = re.compile(r"^\[\s*(?P<referent>[^\[\]|]+?)\s*(?:\|\s*(?P<alias>[^\[\]]+?)\s*)?\]$")
PARENTHETICAL_RE = re.compile(r"^\(.*\)$")

PROMPT_PREFIX = "%PROMPT "
CONTINUATION = "&"


# =============================================================================
# Parse state
# =============================================================================

Mode = Literal["action", "dialogue"]


@dataclass(frozen=True)
class SpeakerName:
    referent: str
    alias: Optional[str] = None


@dataclass(frozen=True)
class ParseState:
    """Cross-line state: dialogue mode and the last named speaker."""
    mode: Mode = "action"
    last_speaker: Optional[SpeakerName] = None

    @property
    def in_dialogue(self) -> bool:
        return self.mode == "dialogue"


INITIAL_STATE = ParseState()


# =============================================================================
# Constructs
# =============================================================================

@dataclass(frozen=True)
class Blank:
    pass


@dataclass(frozen=True)
class SceneHeader:
    name: str
    name_start: int  # column of the first name character
    name_end: int


@dataclass(frozen=True)
class Comment:
    marker_len: int
    text: str


@dataclass(frozen=True)
class Property:
    key: str
    value: str


@dataclass(frozen=True)
class TaggedActionLine:
    tag: str
    text: str
    text_start: int  # column where the free text begins


@dataclass(frozen=True)
class Prompt:
    options: tuple[str, ...]


@dataclass(frozen=True)
class SpeakerLine:
    referent: str
    alias: Optional[str]
    continued: bool
    # Speaker the line resolves to; None for a continuation with nobody before it.
    resolved: Optional[SpeakerName] = field(default=None)


@dataclass(frozen=True)
class TextLine:
    text: str
    dialogue: bool
    parenthetical: bool = False


Construct = Union[
    Blank,
    SceneHeader,
    Comment,
    Property,
    TaggedActionLine,
    Prompt,
    SpeakerLine,
    TextLine,
]


# =============================================================================
# Matchers
# =============================================================================

def match_header(line: str) -> Optional[SceneHeader]:
    m = HEADER_RE.match(line)
    if m is None:
        return None
    return SceneHeader(name=m.group("name"), name_start=m.start("name"), name_end=m.end("name"))


def match_property(line: str) -> Optional[Property]:
    m = PROPERTY_RE.match(line)
    if m is None:
        return None
    return Property(key=m.group("key"), value=m.group("value").rstrip())


def parse_prompt_options(raw: str) -> tuple[str, ...]:
    options = []
    for option in re.split(r",\s*", raw):
        option = option.strip()
        if option.startswith('"'):
            option = option[1:]
        if option.endswith('"'):
            option = option[:-1]
        options.append(option)
    return tuple(options)


# =============================================================================
# Classifier
# =============================================================================

def classify(line: str, state: ParseState = INITIAL_STATE) -> tuple[Construct, ParseState]:
    """Classify one line of script text given the state left by the previous line."""
    if not line.strip():
        return Blank(), ParseState(mode="action", last_speaker=state.last_speaker)

    header = match_header(line)
    if header is not None:
        return header, INITIAL_STATE

    m = COMMENT_RE.match(line)
    if m:
        return Comment(marker_len=len(m.group("marker")), text=m.group("text")), state

    prop = match_property(line)
    if prop is not None:
        return prop, state

    m = TAGGED_ACTION_RE.match(line)
    if m:
        return TaggedActionLine(tag=m.group("tag"), text=m.group("text"), text_start=m.start("text")), state

    if line.startswith(PROMPT_PREFIX):
        return Prompt(options=parse_prompt_options(line[len(PROMPT_PREFIX):])), state

    m = SPEAKER_RE.match(line)
    if m:
        referent, alias = m.group("referent"), m.group("alias")
        if referent == CONTINUATION:
            construct = SpeakerLine(
                referent=referent,
                alias=alias,
                continued=True,
                resolved=state.last_speaker,
            )
            return construct, ParseState(mode="dialogue", last_speaker=state.last_speaker)

        name = SpeakerName(referent=referent, alias=alias)
        construct = SpeakerLine(referent=referent, alias=alias, continued=False, resolved=name)
        return construct, ParseState(mode="dialogue", last_speaker=name)

    return (
        TextLine(
            text=line,
            dialogue=state.in_dialogue,
            parenthetical=bool(PARENTHETICAL_RE.match(line.strip())),
        ),
        state,
    )
