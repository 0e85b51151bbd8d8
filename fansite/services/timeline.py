"""Arc timeline grouping.

Events of an arc are arranged into narrative units: every resolution event
anchors a unit, pulls in the closest earlier gamble not claimed by another
unit, and collects the decisions, reveals and shifts in between. Whatever is
left is grouped by chapter proximity into transition sections.

Pure display logic; nothing here touches the database.
"""

from dataclasses import dataclass, field
from typing import Iterable

# Leftover events further apart than this start a new transition group
TRANSITION_GAP = 5

EVENT_TYPE_META = {
    "gamble": {"label": "Gamble", "color": "#ff5555"},
    "decision": {"label": "Decision", "color": "#f39c12"},
    "reveal": {"label": "Reveal", "color": "#4dabf7"},
    "shift": {"label": "Shift", "color": "#a855f7"},
    "resolution": {"label": "Resolution", "color": "#51cf66"},
}
DEFAULT_EVENT_META = {"label": "Event", "color": "red"}

_BRIDGE_TYPES = frozenset({"decision", "reveal", "shift"})


@dataclass
class TimelineEvent:
    id: int
    title: str
    chapter_number: int
    type: str | None = None
    description: str | None = None
    characters: list[str] = field(default_factory=list)
    spoiler_chapter: int | None = None


@dataclass
class TimelineSection:
    section_type: str
    section_name: str
    events: list[TimelineEvent]
    earliest_chapter: int
    latest_chapter: int


def event_type_meta(event_type: str | None) -> dict:
    """Label and colour for an event type, with a generic fallback."""
    return EVENT_TYPE_META.get(event_type or "", DEFAULT_EVENT_META)


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def _by_chapter(events: Iterable[TimelineEvent]) -> list[TimelineEvent]:
    return sorted(events, key=lambda e: e.chapter_number)


def filter_events(
    events: Iterable[TimelineEvent],
    event_types: Iterable[str] | None = None,
    characters: Iterable[str] | None = None,
) -> list[TimelineEvent]:
    """Keep events of the selected types that involve any selected character."""
    types = set(event_types or ())
    names = set(characters or ())
    result = list(events)
    if types:
        result = [e for e in result if e.type and e.type in types]
    if names:
        result = [e for e in result if any(c in names for c in e.characters)]
    return _by_chapter(result)


def _section(section_type: str, name: str, events: list[TimelineEvent]) -> TimelineSection:
    chapters = [e.chapter_number for e in events]
    return TimelineSection(
        section_type=section_type,
        section_name=name,
        events=events,
        earliest_chapter=min(chapters),
        latest_chapter=max(chapters),
    )


def build_timeline_sections(events: Iterable[TimelineEvent], arc_name: str) -> list[TimelineSection]:
    """Group an arc's events into narrative-unit and transition sections.

    Sections come back ordered by their earliest chapter.
    """
    ordered = _by_chapter(events)
    if not ordered:
        return []

    sections: list[TimelineSection] = []
    used: set[int] = set()
    unit_index = 1

    for resolution in (e for e in ordered if e.type == "resolution"):
        if resolution.id in used:
            continue

        unit = [resolution]
        used.add(resolution.id)

        gamble = None
        for candidate in reversed(ordered):
            if (
                candidate.type == "gamble"
                and candidate.chapter_number <= resolution.chapter_number
                and candidate.id not in used
            ):
                gamble = candidate
                break

        name = f"Narrative Unit {unit_index}"
        if gamble is not None:
            unit.insert(0, gamble)
            used.add(gamble.id)
            for event in ordered:
                if event.id in used or event.type not in _BRIDGE_TYPES:
                    continue
                if gamble.chapter_number <= event.chapter_number <= resolution.chapter_number:
                    unit.append(event)
                    used.add(event.id)
            unit = _by_chapter(unit)
            name = f"{_truncate(gamble.title, 30)} → Resolution"

        sections.append(_section(f"narrative-unit-{unit_index}", name, unit))
        unit_index += 1

    groups: list[list[TimelineEvent]] = []
    for event in (e for e in ordered if e.id not in used):
        if groups and event.chapter_number - groups[-1][-1].chapter_number <= TRANSITION_GAP:
            groups[-1].append(event)
        else:
            groups.append([event])

    for index, group in enumerate(groups, start=1):
        if len(group) == 1:
            name = f"{_truncate(group[0].title, 25)} (Transition)"
        else:
            name = f"Transition Events {index}"
        sections.append(_section(f"transition-{index}", name, group))

    if not sections:
        sections.append(_section("all-events", f"{arc_name} Arc Events", ordered))

    return sorted(sections, key=lambda s: s.earliest_chapter or 999)


def group_events_by_arc(events: Iterable) -> dict:
    """Bucket events (ORM rows or anything with `.arc`) by arc, ordered by arc.order."""
    by_arc: dict[int, dict] = {}
    no_arc = []
    for event in events:
        arc = getattr(event, "arc", None)
        if arc is None:
            no_arc.append(event)
            continue
        by_arc.setdefault(arc.id, {"arc": arc, "events": []})["events"].append(event)
    arcs = sorted(by_arc.values(), key=lambda g: (g["arc"].order or 0, g["arc"].id))
    return {"arcs": arcs, "no_arc": no_arc}
