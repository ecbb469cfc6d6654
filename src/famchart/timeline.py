"""
Timeline layout: lifespans and dated life events packed into rows.

Years are fractional (1990-06 is 1990.417) so events within one year keep their
order on a year-scaled axis.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
import logging
import math
import re

from famchart.models import CLAIM_TYPES, COUPLE_TYPES, PARENT_CHILD, Claim, Person, Relationship

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^(\d{4})(?:-(\d{1,2})(?:-(\d{1,2}))?)?(?:[T ].*)?$")

NICE_TICK_INTERVALS = [1, 2, 5, 10, 20, 25, 50, 100, 200, 250, 500, 1000]

# Taken from the person records, never from claims
VITAL_CLAIM_TYPES = frozenset({"birth", "death"})


@dataclass(frozen=True)
class TimelineConfig:
    event_gap: float = 3.0  # years between items on one event row
    person_gap: float = 2.0  # years between lifespans on one person row
    future_buffer: int = 25
    label_chars_per_year: float = 3.0
    current_year: int | None = None  # defaults to today's year


@dataclass(frozen=True)
class TimelineFilters:
    """Which claim types and people are shown. ``person_ids=None`` shows everyone."""

    event_types: frozenset[str] = frozenset(CLAIM_TYPES)
    person_ids: frozenset[str] | None = None

    def shows_person(self, person_id: str) -> bool:
        return self.person_ids is None or person_id in self.person_ids


@dataclass
class TimelinePersonBar:
    id: str
    person: Person
    full_name: str
    start_year: float
    end_year: float
    is_ongoing: bool
    has_birth_date: bool
    row: int = 0
    birth_date_display: str | None = None
    death_date_display: str | None = None


@dataclass
class TimelineEventBar:
    id: str
    claim: Claim | None  # None for birth/death taken from the person record
    title: str
    start_year: float
    end_year: float | None  # None for point events
    is_ongoing: bool
    person_id: str
    person_name: str
    claim_type: str
    description: str | None = None
    start_date_display: str | None = None
    end_date_display: str | None = None
    row: int = 0
    person_ids: list[str] = field(default_factory=list)
    person_names: list[str] = field(default_factory=list)
    merged_count: int = 1

    @property
    def is_point(self) -> bool:
        return self.end_year is None or self.end_year == self.start_year


@dataclass
class TimelineLayout:
    events: list[TimelineEventBar]
    people: list[TimelinePersonBar]
    min_year: int
    max_year: int
    event_row_count: int
    person_row_count: int
    relationships: list[Relationship] = field(default_factory=list)


# ============================================================================
# Dates and labels
# ============================================================================


def parse_fractional_year(date_str: str | None) -> float | None:
    """
    Convert "YYYY", "YYYY-MM" or "YYYY-MM-DD" into a fractional year.

    Returns None for anything else, including out-of-range months and days.
    """
    if not date_str:
        return None

    match = DATE_PATTERN.match(date_str.strip())
    if not match:
        return None

    year = int(match.group(1))
    month = int(match.group(2)) if match.group(2) else 1
    day = int(match.group(3)) if match.group(3) else 1
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None

    return year + (month - 1) / 12 + (day - 1) / 365


def format_claim_type(claim_type: str) -> str:
    """'military_service' -> 'Military Service'."""
    return " ".join(word[:1].upper() + word[1:] for word in claim_type.split("_"))


def estimate_label_years(claim_type: str, chars_per_year: float) -> float:
    """Years of axis covered by a point event's claim-type label."""
    return math.ceil(len(format_claim_type(claim_type)) / chars_per_year)


# ============================================================================
# Row packing
# ============================================================================


def pack_into_rows(intervals: Sequence[tuple[float, float | None]], gap: float) -> list[int]:
    """
    Greedy interval-graph colouring.

    Items are taken in start order and put in the first row whose latest end
    plus ``gap`` is still before the item's start. The number of rows equals the
    largest number of gap-extended intervals overlapping at one point.

    Args:
        intervals: (start, end) pairs; an end of None is a point at start
        gap: Minimum distance between items sharing a row

    Returns:
        The row of each interval, in input order
    """
    rows: list[float] = []  # max end per row
    assignments = [0] * len(intervals)

    for i in sorted(range(len(intervals)), key=lambda i: (intervals[i][0], i)):
        start, end = intervals[i]
        end = start if end is None else end

        for row, row_end in enumerate(rows):
            if start > row_end + gap:
                rows[row] = max(row_end, end)
                break
        else:
            row = len(rows)
            rows.append(end)

        assignments[i] = row

    return assignments


# ============================================================================
# Events
# ============================================================================


def merge_events(events: Iterable[TimelineEventBar]) -> list[TimelineEventBar]:
    """
    Collapse events that describe one real-world event recorded per participant.

    Events with the same claim type, start and end (to 3 decimals) become one bar
    carrying every participant. The result does not depend on input order.
    """
    groups: dict[tuple, list[TimelineEventBar]] = {}
    for event in events:
        end_key = "null" if event.end_year is None else round(event.end_year, 3)
        key = (event.claim_type, round(event.start_year, 3), end_key)
        groups.setdefault(key, []).append(event)

    merged: list[TimelineEventBar] = []
    for group in groups.values():
        group.sort(key=lambda event: (event.person_id, event.id))
        if len(group) == 1:
            merged.append(group[0])
            continue

        names_by_id: dict[str, str] = {}
        for event in group:
            names_by_id.setdefault(event.person_id, event.person_name)
        person_ids = list(names_by_id)
        person_names = list(names_by_id.values())

        first = group[0]
        description = next((event.description for event in group if event.description), None)
        merged.append(
            TimelineEventBar(
                id=f"merged-{first.id}",
                claim=first.claim,
                title=f"{format_claim_type(first.claim_type)} - {' & '.join(person_names)}",
                start_year=first.start_year,
                end_year=first.end_year,
                is_ongoing=any(event.is_ongoing for event in group),
                person_id=first.person_id,
                person_name=first.person_name,
                claim_type=first.claim_type,
                description=description,
                start_date_display=first.start_date_display,
                end_date_display=first.end_date_display,
                person_ids=person_ids,
                person_names=person_names,
                merged_count=len(group),
            )
        )

    merged.sort(key=lambda event: (event.start_year, event.claim_type, event.id))
    return merged


def _claim_events(
    claims: Iterable[Claim],
    people_by_id: dict[str, Person],
    filters: TimelineFilters,
    current_year: int,
) -> list[TimelineEventBar]:
    events: list[TimelineEventBar] = []
    for claim in claims:
        if claim.claim_type in VITAL_CLAIM_TYPES:
            continue
        if claim.claim_type not in filters.event_types or not filters.shows_person(claim.subject_id):
            continue

        start_year = parse_fractional_year(claim.value.date)
        if start_year is None:
            if claim.value.date:
                logger.debug("Skipping claim %s with unparseable date %r", claim.id, claim.value.date)
            continue

        end_year = parse_fractional_year(claim.value.date_end)
        if end_year is None and claim.value.is_current:
            end_year = float(current_year)

        subject = people_by_id.get(claim.subject_id)
        person_name = claim.person_name or (subject.full_name if subject else "Unknown")
        events.append(
            TimelineEventBar(
                id=claim.id,
                claim=claim,
                title=f"{format_claim_type(claim.claim_type)} - {person_name}",
                start_year=start_year,
                end_year=end_year,
                is_ongoing=claim.value.is_current,
                person_id=claim.subject_id,
                person_name=person_name,
                claim_type=claim.claim_type,
                description=claim.value.description,
                start_date_display=claim.value.date,
                end_date_display=claim.value.date_end,
                person_ids=[claim.subject_id],
                person_names=[person_name],
            )
        )
    return events


def _vital_events(people: Iterable[Person], filters: TimelineFilters) -> list[TimelineEventBar]:
    """Birth and death point events taken from the person records."""
    events: list[TimelineEventBar] = []
    for person in people:
        if not filters.shows_person(person.id):
            continue
        for claim_type, date_str in (("birth", person.birth_date), ("death", person.death_date)):
            if claim_type not in filters.event_types:
                continue
            year = parse_fractional_year(date_str)
            if year is None:
                continue
            events.append(
                TimelineEventBar(
                    id=f"{person.id}-{claim_type}",
                    claim=None,
                    title=f"{format_claim_type(claim_type)} - {person.full_name}",
                    start_year=year,
                    end_year=None,
                    is_ongoing=False,
                    person_id=person.id,
                    person_name=person.full_name,
                    claim_type=claim_type,
                    start_date_display=date_str,
                    person_ids=[person.id],
                    person_names=[person.full_name],
                )
            )
    return events


def _person_bars(people: Iterable[Person], filters: TimelineFilters, current_year: int) -> list[TimelinePersonBar]:
    bars: list[TimelinePersonBar] = []
    for person in people:
        if not filters.shows_person(person.id):
            continue

        birth_year = parse_fractional_year(person.birth_date)
        if birth_year is None:
            # Can't be placed without a birth date
            continue

        death_year = parse_fractional_year(person.death_date)
        is_ongoing = person.is_living or person.is_ongoing or (death_year is None and not person.death_date)
        if death_year is not None:
            end_year = death_year
        elif is_ongoing:
            end_year = float(current_year)
        else:
            end_year = birth_year

        bars.append(
            TimelinePersonBar(
                id=person.id,
                person=person,
                full_name=person.full_name,
                start_year=birth_year,
                end_year=end_year,
                is_ongoing=is_ongoing,
                has_birth_date=True,
                birth_date_display=person.birth_date,
                death_date_display=person.death_date,
            )
        )

    bars.sort(key=lambda bar: (bar.start_year, bar.person.sort_name.casefold(), bar.id))
    return bars


def layout_timeline(
    claims: Iterable[Claim],
    people: Iterable[Person],
    relationships: Iterable[Relationship] = (),
    filters: TimelineFilters | None = None,
    config: TimelineConfig | None = None,
) -> TimelineLayout:
    """
    Build the timeline rows for visible people and life events.

    Claims with missing or malformed dates are left out; nothing here raises
    for well-formed input collections.
    """
    filters = filters or TimelineFilters()
    config = config or TimelineConfig()
    current_year = config.current_year or date.today().year
    people = list(people)
    people_by_id = {person.id: person for person in people}

    candidates = _claim_events(claims, people_by_id, filters, current_year)
    candidates.extend(_vital_events(people, filters))
    events = merge_events(candidates)

    event_intervals = []
    for event in events:
        if event.is_point:
            # Label text runs to the right of a point marker
            label_end = event.start_year + estimate_label_years(event.claim_type, config.label_chars_per_year)
            event_intervals.append((event.start_year, label_end))
        else:
            event_intervals.append((event.start_year, event.end_year))
    for event, row in zip(events, pack_into_rows(event_intervals, config.event_gap)):
        event.row = row

    person_bars = _person_bars(people, filters, current_year)
    person_rows = pack_into_rows([(bar.start_year, bar.end_year) for bar in person_bars], config.person_gap)
    for bar, row in zip(person_bars, person_rows):
        bar.row = row

    starts = [event.start_year for event in events] + [bar.start_year for bar in person_bars]
    ends = [event.end_year if event.end_year is not None else event.start_year for event in events]
    ends += [bar.end_year for bar in person_bars]
    initial_min = min(starts) if starts else current_year - 100
    initial_max = max([*ends, current_year])

    logger.debug("Timeline layout: %d events, %d people", len(events), len(person_bars))
    return TimelineLayout(
        events=events,
        people=person_bars,
        min_year=math.floor(initial_min / 10) * 10,
        max_year=math.ceil((initial_max + config.future_buffer) / 10) * 10,
        event_row_count=max((event.row for event in events), default=-1) + 1,
        person_row_count=max(person_rows, default=-1) + 1,
        relationships=list(relationships),
    )


# ============================================================================
# Axis and focus helpers
# ============================================================================


def get_focused_connections(
    focused_person_id: str | None, relationships: Iterable[Relationship]
) -> dict[str, set[str]]:
    """
    Parents, children and spouses of the focused person.

    Partners count as spouses, the same as everywhere else couples are linked.
    """
    connections: dict[str, set[str]] = {"parents": set(), "children": set(), "spouses": set()}
    if not focused_person_id:
        return connections

    for rel in relationships:
        if rel.type == PARENT_CHILD:
            if rel.person_id2 == focused_person_id:
                connections["parents"].add(rel.person_id1)
            elif rel.person_id1 == focused_person_id:
                connections["children"].add(rel.person_id2)
        elif rel.type in COUPLE_TYPES:
            if rel.person_id1 == focused_person_id:
                connections["spouses"].add(rel.person_id2)
            elif rel.person_id2 == focused_person_id:
                connections["spouses"].add(rel.person_id1)

    return connections


def year_to_x(year: float, min_year: float, max_year: float, chart_width: float, padding: float = 60) -> float:
    year_range = (max_year - min_year) or 1
    return padding + ((year - min_year) / year_range) * (chart_width - padding * 2)


def x_to_year(x: float, min_year: float, max_year: float, chart_width: float, padding: float = 60) -> float:
    year_range = (max_year - min_year) or 1
    return min_year + ((x - padding) / (chart_width - padding * 2)) * year_range


def generate_time_ticks(min_year: float, max_year: float, target_tick_count: int = 10) -> list[float]:
    """Axis ticks on a 'nice' interval (1, 2, 5, 10, 20, 25, 50, ...)."""
    raw_interval = (max_year - min_year) / target_tick_count
    interval = next((i for i in NICE_TICK_INTERVALS if i >= raw_interval), raw_interval)
    if interval <= 0:
        return [min_year]

    year = math.ceil(min_year / interval) * interval
    ticks = []
    while year <= max_year:
        ticks.append(year)
        year += interval
    return ticks
