"""Document parser: scenes, properties, items, orphans."""

from novelscript.script.parser import parse_document, parse_property
from novelscript.script.types import (
    ActionLine,
    DialogueLine,
    NovelDocument,
    Speaker,
    TaggedAction,
)


SCENARIO_A = "Title: A\n\n== Scene 1 ==\nHello.\n\n@BGM Song\n"

SCRIPT = """Title: The Harbor
Author: M. Kay

== Docks ==
Summary: Night at the docks
Tags: night, exterior
Rain on the water.
@BGM [[Rain Theme]]
[Alice Liddell|Alice]
Where is he?
(quietly)
Mood: this line is just dialogue

[&]
Answer me.
// punch this up
%PROMPT Wait, "Leave"

== Warehouse ==
@SFX [[Door Slam]]
[Bob]
Over here.
"""


def parse(text: str) -> NovelDocument:
    result = parse_document(text)
    assert result.success
    return result.value


# ── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_scenario_a(self):
        doc = parse(SCENARIO_A)
        assert dict(doc.metadata) == {"Title": "A"}
        assert len(doc.scenes) == 1

        scene = doc.scenes[0]
        assert scene.name == "Scene 1"
        first, second = scene.items
        assert isinstance(first, ActionLine)
        assert first.as_text() == "Hello."
        assert isinstance(second, TaggedAction)
        assert second.tag == "BGM"
        assert second.content.as_text() == "Song"
        assert doc.orphans == ()

    def test_scenario_c_malformed_header(self):
        doc = parse("=Scene=\nHello.\n")
        assert doc.scenes == ()
        assert [type(i) for i in doc.orphans] == [ActionLine, ActionLine]
        assert [i.as_text() for i in doc.orphans] == ["=Scene=", "Hello."]


# ── Structure ────────────────────────────────────────────────────────────────


class TestStructure:
    def test_document_metadata(self):
        doc = parse(SCRIPT)
        assert doc.title == "The Harbor"
        assert doc.metadata["Author"] == "M. Kay"

    def test_scene_metadata(self):
        docks = parse(SCRIPT).scene_named("Docks")
        assert docks.summary == "Night at the docks"
        assert docks.tags == ["night", "exterior"]

    def test_item_kinds(self):
        docks = parse(SCRIPT).scene_named("Docks")
        kinds = [type(i).__name__ for i in docks.items]
        assert kinds == [
            "ActionLine",      # Rain on the water.
            "TaggedAction",    # @BGM
            "Speaker",         # [Alice Liddell|Alice]
            "DialogueLine",    # Where is he?
            "DialogueLine",    # (quietly)
            "DialogueLine",    # Mood: ... (property outside the block)
            "Speaker",         # [&]
            "DialogueLine",    # Answer me.
        ]

    def test_continuation_resolves_to_previous_speaker(self):
        docks = parse(SCRIPT).scene_named("Docks")
        speakers = [i for i in docks.items if isinstance(i, Speaker)]
        assert speakers[1].continued
        assert speakers[1].referent == "Alice Liddell"
        assert speakers[1].label == "ALICE (CONT'D)"

    def test_header_resets_speaker(self):
        doc = parse("== One ==\n[Alice]\nHi.\n== Two ==\n[&]\nHo.\n")
        speaker = doc.scene_named("Two").items[0]
        assert speaker.continued
        assert speaker.referent == "&"

    def test_scenes_sorted_and_disjoint(self):
        scenes = parse(SCRIPT).scenes
        assert [s.name for s in scenes] == ["Docks", "Warehouse"]
        for before, after in zip(scenes, scenes[1:]):
            assert before.to <= after.from_

    def test_items_ordered_within_scene(self):
        for scene in parse(SCRIPT).scenes:
            starts = [i.from_ for i in scene.items]
            assert starts == sorted(starts)
            assert all(scene.from_ <= s < scene.to for s in starts)

    def test_last_scene_runs_to_end_of_text(self):
        doc = parse(SCRIPT)
        assert doc.scenes[-1].to == len(SCRIPT)

    def test_scene_slice_round_trip(self):
        doc = parse(SCRIPT)
        docks = doc.scene_named("Docks")
        reparsed = parse(docks.slice(SCRIPT))
        assert reparsed.scenes[0].name == "Docks"
        assert [i.as_text() for i in reparsed.scenes[0].items] == [
            i.as_text() for i in docks.items
        ]

    def test_stray_equals_line_ends_scene(self):
        doc = parse("== One ==\nA.\n=oops\nB.\n")
        assert [i.as_text() for i in doc.scenes[0].items] == ["A."]
        assert [i.as_text() for i in doc.orphans] == ["=oops", "B."]

    def test_references_carry_buffer_offsets(self):
        doc = parse(SCRIPT)
        (cue,) = doc.cues("SFX")
        (ref,) = cue.content.references()
        assert ref.referent == "Door Slam"
        assert ref.slice(SCRIPT) == "[[Door Slam]]"

    def test_deterministic(self):
        assert parse(SCRIPT) == parse(SCRIPT)

    def test_empty_text(self):
        doc = parse("")
        assert doc == NovelDocument()


class TestQueries:
    def test_cues_by_tag(self):
        doc = parse(SCRIPT)
        assert [c.tag for c in doc.cues()] == ["BGM", "SFX"]
        assert [c.content.as_text() for c in doc.cues("BGM")] == ["Rain Theme"]

    def test_dialogue_and_speakers(self):
        doc = parse(SCRIPT)
        assert len(doc.dialogue()) == 5
        assert all(isinstance(d, DialogueLine) for d in doc.dialogue())
        assert [s.display for s in doc.speakers()] == ["Alice", "Alice", "Bob"]

    def test_scene_at(self):
        doc = parse(SCRIPT)
        offset = SCRIPT.index("Over here.")
        assert doc.scene_at(offset).name == "Warehouse"
        assert doc.scene_at(0) is None


class TestParseProperty:
    def test_property(self):
        assert parse_property("Key: value") == ("Key", "value")

    def test_not_a_property(self):
        assert parse_property("no colon here") is None
        assert parse_property("two words: no") is None
