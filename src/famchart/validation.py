"""Data diagnostics for family tree input.

Nothing reported here stops a layout: the engines resolve every one of these
conditions on their own. The warnings explain why a chart may look different
from what the data seems to say.
"""

from collections.abc import Iterable

import networkx as nx

from famchart.graph import build_graph, compute_generations
from famchart.models import PARENT_CHILD, RELATIONSHIP_TYPES, Claim, Person, Relationship
from famchart.timeline import parse_fractional_year


def find_parent_cycles(relationships: Iterable[Relationship]) -> list[list[str]]:
    """Return one cycle (as a list of person ids) if someone is recorded as their own ancestor."""
    parent_edges = [(r.person_id1, r.person_id2) for r in relationships if r.type == PARENT_CHILD]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
    except nx.NetworkXNoCycle:
        return []
    return [[edge[0] for edge in cycle]]


def find_unreachable(people: list[Person], relationships: list[Relationship], root_id: str) -> list[str]:
    """People that generation-based charts rooted at ``root_id`` will leave out."""
    reachable = compute_generations(people, relationships, root_id)
    return sorted(person.id for person in people if person.id not in reachable)


def find_malformed_dates(people: Iterable[Person], claims: Iterable[Claim]) -> list[str]:
    """Describe every date string the timeline will not be able to place."""
    problems: list[str] = []
    for person in people:
        for label, value in (("birth", person.birth_date), ("death", person.death_date)):
            if value and parse_fractional_year(value) is None:
                problems.append(f"{person.full_name}: unreadable {label} date {value!r}")
    for claim in claims:
        for label, value in (("date", claim.value.date), ("end date", claim.value.date_end)):
            if value and parse_fractional_year(value) is None:
                problems.append(f"Claim {claim.id} ({claim.claim_type}): unreadable {label} {value!r}")
    return problems


def validate_data(
    people: Iterable[Person],
    relationships: Iterable[Relationship],
    claims: Iterable[Claim] = (),
    root_id: str | None = None,
) -> list[str]:
    """
    Validate the family tree data for:
    - Cycles in parent-child relationships
    - Relationships naming unknown people or unknown types
    - People not connected to the chosen root
    - Dates the timeline cannot parse

    Returns a list of warning messages.
    """
    people = list(people)
    relationships = list(relationships)
    warnings: list[str] = []

    G = build_graph(people, relationships)
    for cycle in find_parent_cycles(relationships):
        names = [G.nodes[pid].get("person_name", pid) for pid in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {names}")

    known = {person.id for person in people}
    for rel in relationships:
        if rel.type not in RELATIONSHIP_TYPES:
            warnings.append(f"Relationship {rel.id} has unknown type {rel.type!r}")
        missing = [pid for pid in (rel.person_id1, rel.person_id2) if pid not in known]
        if missing:
            warnings.append(f"Relationship {rel.id} refers to unknown people {missing}")

    if root_id is not None and root_id in known:
        unreachable = find_unreachable(people, relationships, root_id)
        if unreachable:
            warnings.append(f"{len(unreachable)} people are not connected to {root_id}: {unreachable[:10]}")

    warnings.extend(find_malformed_dates(people, claims))
    return warnings
