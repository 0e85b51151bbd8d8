from types import SimpleNamespace

from fansite.services.timeline import (
    DEFAULT_EVENT_META,
    TimelineEvent,
    build_timeline_sections,
    event_type_meta,
    filter_events,
    group_events_by_arc,
)


def ev(id, chapter, type=None, title=None, characters=None):
    return TimelineEvent(
        id=id,
        title=title or f"Event {id}",
        chapter_number=chapter,
        type=type,
        characters=characters or [],
    )


def test_no_events_no_sections():
    assert build_timeline_sections([], "Kakerou") == []


def test_resolution_pulls_in_earlier_gamble_and_bridge_events():
    events = [
        ev(4, 30, "reveal", title="Aftermath"),
        ev(3, 15, "resolution"),
        ev(1, 10, "gamble", title="Old Maid"),
        ev(2, 12, "decision"),
    ]
    sections = build_timeline_sections(events, "Proto Poker")

    assert [s.section_type for s in sections] == ["narrative-unit-1", "transition-1"]
    unit, transition = sections
    assert unit.section_name == "Old Maid → Resolution"
    assert [e.id for e in unit.events] == [1, 2, 3]
    assert (unit.earliest_chapter, unit.latest_chapter) == (10, 15)
    assert transition.section_name == "Aftermath (Transition)"
    assert [e.id for e in transition.events] == [4]


def test_gamble_after_the_resolution_is_not_claimed():
    events = [ev(1, 15, "resolution"), ev(2, 20, "gamble")]
    sections = build_timeline_sections(events, "Tower")

    assert sections[0].section_name == "Narrative Unit 1"
    assert [e.id for e in sections[0].events] == [1]
    assert [e.id for e in sections[1].events] == [2]


def test_each_gamble_is_claimed_by_a_single_resolution():
    events = [
        ev(1, 5, "gamble", title="First"),
        ev(2, 8, "resolution"),
        ev(3, 9, "resolution"),
    ]
    sections = build_timeline_sections(events, "Tower")

    assert [s.section_name for s in sections] == ["First → Resolution", "Narrative Unit 2"]


def test_leftovers_split_into_transitions_by_chapter_gap():
    events = [ev(1, 1, "decision"), ev(2, 4, "shift"), ev(3, 20, "reveal", title="Late reveal")]
    sections = build_timeline_sections(events, "Labyrinth")

    assert [s.section_type for s in sections] == ["transition-1", "transition-2"]
    assert sections[0].section_name == "Transition Events 1"
    assert [e.id for e in sections[0].events] == [1, 2]
    assert sections[1].section_name == "Late reveal (Transition)"


def test_long_titles_are_truncated_in_section_names():
    gamble = ev(1, 1, "gamble", title="A" * 40)
    sections = build_timeline_sections([gamble, ev(2, 2, "resolution")], "Arc")
    assert sections[0].section_name == "A" * 30 + "... → Resolution"


def test_filter_events_by_type_and_character():
    events = [
        ev(1, 3, "gamble", characters=["Baku Madarame"]),
        ev(2, 1, "reveal", characters=["Marco"]),
        ev(3, 2, "gamble", characters=["Kaji Takaomi"]),
        ev(4, 4),
    ]
    assert [e.id for e in filter_events(events, ["gamble"])] == [3, 1]
    assert [e.id for e in filter_events(events, characters=["Marco", "Baku Madarame"])] == [2, 1]
    assert [e.id for e in filter_events(events, ["gamble"], ["Baku Madarame"])] == [1]
    # No filters just orders by chapter
    assert [e.id for e in filter_events(events)] == [2, 3, 1, 4]


def test_event_type_meta_falls_back_for_unknown_types():
    assert event_type_meta("gamble")["label"] == "Gamble"
    assert event_type_meta(None) == DEFAULT_EVENT_META
    assert event_type_meta("cutscene") == DEFAULT_EVENT_META


def test_group_events_by_arc_orders_arcs():
    late = SimpleNamespace(id=1, order=2)
    early = SimpleNamespace(id=2, order=1)
    events = [
        SimpleNamespace(id=10, arc=late),
        SimpleNamespace(id=11, arc=early),
        SimpleNamespace(id=12, arc=None),
        SimpleNamespace(id=13, arc=late),
    ]
    grouped = group_events_by_arc(events)

    assert [g["arc"].id for g in grouped["arcs"]] == [2, 1]
    assert [e.id for e in grouped["arcs"][1]["events"]] == [10, 13]
    assert [e.id for e in grouped["no_arc"]] == [12]
