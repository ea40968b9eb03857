"""Line classifier: construct priority and parse-state transitions."""

import pytest

from novelscript.script.classifier import (
    INITIAL_STATE,
    Blank,
    Comment,
    ParseState,
    Prompt,
    Property,
    SceneHeader,
    SpeakerLine,
    SpeakerName,
    TaggedActionLine,
    TextLine,
    classify,
    match_header,
    parse_prompt_options,
)


DIALOGUE = ParseState(mode="dialogue", last_speaker=SpeakerName("Alice"))


# ── Constructs ───────────────────────────────────────────────────────────────


class TestConstructs:
    def test_blank(self):
        construct, _ = classify("   ")
        assert construct == Blank()

    def test_scene_header(self):
        construct, _ = classify("== Opening ==")
        assert isinstance(construct, SceneHeader)
        assert construct.name == "Opening"
        assert "== Opening =="[construct.name_start:construct.name_end] == "Opening"

    def test_header_name_with_spaces(self):
        assert match_header("==  The Long Night  ==").name == "The Long Night"

    def test_triple_equals_is_not_a_header(self):
        assert match_header("=== Nope ===") is None

    def test_comment(self):
        construct, _ = classify("// fix this later")
        assert construct == Comment(marker_len=3, text="fix this later")

    def test_property(self):
        construct, _ = classify("Summary: The heist begins  ")
        assert construct == Property(key="Summary", value="The heist begins")

    def test_tagged_action(self):
        construct, _ = classify("@BGM [[Rain Theme]]")
        assert construct == TaggedActionLine(tag="BGM", text="[[Rain Theme]]", text_start=5)

    def test_tag_without_text_is_plain_text(self):
        construct, _ = classify("@BGM")
        assert isinstance(construct, TextLine)

    def test_prompt(self):
        construct, _ = classify('%PROMPT Run, "Hide", Fight')
        assert construct == Prompt(options=("Run", "Hide", "Fight"))

    def test_speaker(self):
        construct, _ = classify("[Alice]")
        assert isinstance(construct, SpeakerLine)
        assert construct.referent == "Alice"
        assert construct.alias is None
        assert not construct.continued

    def test_speaker_with_alias(self):
        construct, _ = classify("[Alice Liddell|Alice]")
        assert construct.referent == "Alice Liddell"
        assert construct.alias == "Alice"

    def test_action_text(self):
        construct, _ = classify("The door creaks open.")
        assert construct == TextLine(text="The door creaks open.", dialogue=False)

    def test_parenthetical_in_dialogue(self):
        construct, _ = classify("(whispering)", DIALOGUE)
        assert construct == TextLine(text="(whispering)", dialogue=True, parenthetical=True)


# ── Priority ─────────────────────────────────────────────────────────────────


class TestPriority:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("== A: b ==", SceneHeader),
            ("// Key: value", Comment),
            ("Key: @TAG text", Property),
            ("@TAG [Alice]", TaggedActionLine),
            ("%PROMPT [a]", Prompt),
        ],
    )
    def test_first_matching_rule_wins(self, line, expected):
        construct, _ = classify(line)
        assert isinstance(construct, expected)

    def test_property_beats_dialogue(self):
        construct, _ = classify("Note: this is it", DIALOGUE)
        assert isinstance(construct, Property)


# ── State transitions ────────────────────────────────────────────────────────


class TestStateTransitions:
    def test_speaker_enters_dialogue(self):
        _, state = classify("[Alice]")
        assert state.in_dialogue
        assert state.last_speaker == SpeakerName("Alice")

    def test_text_keeps_dialogue_mode(self):
        construct, state = classify("Hello.", DIALOGUE)
        assert construct.dialogue
        assert state == DIALOGUE

    def test_blank_leaves_dialogue_but_remembers_speaker(self):
        _, state = classify("", DIALOGUE)
        assert state.mode == "action"
        assert state.last_speaker == SpeakerName("Alice")

    def test_header_resets_state(self):
        _, state = classify("== Next ==", DIALOGUE)
        assert state == INITIAL_STATE

    def test_continuation_resolves_previous_speaker(self):
        _, after_blank = classify("", DIALOGUE)
        construct, state = classify("[&]", after_blank)
        assert construct.continued
        assert construct.resolved == SpeakerName("Alice")
        assert state.in_dialogue
        assert state.last_speaker == SpeakerName("Alice")

    def test_continuation_without_speaker(self):
        construct, state = classify("[&]")
        assert construct.continued
        assert construct.resolved is None
        assert state.last_speaker is None

    def test_comment_does_not_change_state(self):
        _, state = classify("// aside", DIALOGUE)
        assert state == DIALOGUE


class TestPromptOptions:
    def test_strips_quotes_and_spaces(self):
        assert parse_prompt_options(' "a",b ,  "c d"') == ("a", "b", "c d")

    def test_single_option(self):
        assert parse_prompt_options("Go") == ("Go",)
