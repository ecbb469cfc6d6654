"""Relationship indexing, NetworkX graph building and generation assignment."""

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
import itertools
import logging

import networkx as nx

from famchart.errors import InvalidRootError
from famchart.models import (
    COUPLE_TYPES,
    PARENT_CHILD,
    SIBLING_TYPES,
    Person,
    Relationship,
    person_sort_key,
)

logger = logging.getLogger(__name__)


@dataclass
class GraphIndex:
    """Adjacency maps derived from a flat relationship list.

    Every value list is deduplicated and sorted by id. ``spouses_by_person`` and
    ``siblings_by_person`` are symmetric.
    """

    parents_by_child: dict[str, list[str]] = field(default_factory=dict)
    children_by_parent: dict[str, list[str]] = field(default_factory=dict)
    spouses_by_person: dict[str, list[str]] = field(default_factory=dict)
    siblings_by_person: dict[str, list[str]] = field(default_factory=dict)

    def parents(self, person_id: str) -> list[str]:
        return self.parents_by_child.get(person_id, [])

    def children(self, person_id: str) -> list[str]:
        return self.children_by_parent.get(person_id, [])

    def spouses(self, person_id: str) -> list[str]:
        return self.spouses_by_person.get(person_id, [])

    def siblings(self, person_id: str) -> list[str]:
        return self.siblings_by_person.get(person_id, [])


def _link(mapping: dict[str, set[str]], key: str, value: str) -> None:
    mapping.setdefault(key, set()).add(value)


def build_graph_index(relationships: Iterable[Relationship]) -> GraphIndex:
    """
    Build parent/child/spouse/sibling lookups from relationships.

    Siblings are the explicitly recorded sibling and half_sibling pairs plus
    every pair of people sharing at least one recorded parent. Unknown person
    ids are kept as opaque keys; relationships of a person with themself are
    ignored.
    """
    parents: dict[str, set[str]] = {}
    children: dict[str, set[str]] = {}
    spouses: dict[str, set[str]] = {}
    siblings: dict[str, set[str]] = {}

    for rel in relationships:
        a, b = rel.person_id1, rel.person_id2
        if a == b:
            continue
        if rel.type == PARENT_CHILD:
            _link(parents, b, a)
            _link(children, a, b)
        elif rel.type in COUPLE_TYPES:
            _link(spouses, a, b)
            _link(spouses, b, a)
        elif rel.type in SIBLING_TYPES:
            _link(siblings, a, b)
            _link(siblings, b, a)

    # Shared parent implies sibling, even when not recorded
    for kids in children.values():
        for a, b in itertools.combinations(sorted(kids), 2):
            _link(siblings, a, b)
            _link(siblings, b, a)

    def freeze(mapping: dict[str, set[str]]) -> dict[str, list[str]]:
        return {key: sorted(values) for key, values in mapping.items()}

    return GraphIndex(
        parents_by_child=freeze(parents),
        children_by_parent=freeze(children),
        spouses_by_person=freeze(spouses),
        siblings_by_person=freeze(siblings),
    )


def build_graph(people: Iterable[Person], relationships: Iterable[Relationship]) -> nx.DiGraph:
    """Build a NetworkX directed graph from people and relationships."""
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for person in people:
        G.add_node(
            person.id,
            person_name=person.full_name,
            sex=person.sex,
            birth_date=person.birth_date,
            death_date=person.death_date,
            given_name=person.given_names,
            surname=person.surnames,
        )

    for rel in relationships:
        G.add_edge(rel.person_id1, rel.person_id2, relationship_type=rel.type)

    return G


def compute_generations(
    people: Iterable[Person],
    relationships: Iterable[Relationship],
    root_id: str,
    index: GraphIndex | None = None,
) -> dict[str, int]:
    """
    Assign a signed generation to every person reachable from ``root_id``.

    Breadth-first search over parent (-1), child (+1), spouse (0) and sibling (0)
    edges. A person keeps the generation of the first path that reaches them, so
    loops in the data (shared ancestors, relationships recorded twice) cannot
    make the walk revisit anyone. Neighbours are expanded in name order, which
    makes the result independent of the order of the input lists.

    Args:
        people: All people in the tree
        relationships: All relationships in the tree
        root_id: The person placed at generation 0
        index: A prebuilt index of ``relationships``, to avoid rebuilding it

    Returns:
        Mapping of person id to generation. Unreachable people are absent.

    Raises:
        InvalidRootError: If ``root_id`` is not one of ``people``
    """
    people_by_id = {person.id: person for person in people}
    if root_id not in people_by_id:
        raise InvalidRootError(root_id)
    if index is None:
        index = build_graph_index(relationships)

    def ordered(ids: list[str]) -> list[str]:
        return sorted(ids, key=lambda pid: person_sort_key(pid, people_by_id))

    generation_by_id: dict[str, int] = {root_id: 0}
    queue: deque[str] = deque([root_id])

    while queue:
        current_id = queue.popleft()
        generation = generation_by_id[current_id]

        steps = (
            (index.parents(current_id), -1),
            (index.children(current_id), 1),
            (index.spouses(current_id), 0),
            (index.siblings(current_id), 0),
        )
        for neighbours, delta in steps:
            for neighbour_id in ordered(neighbours):
                if neighbour_id not in generation_by_id:
                    generation_by_id[neighbour_id] = generation + delta
                    queue.append(neighbour_id)

    logger.debug("Assigned generations to %d people from root %s", len(generation_by_id), root_id)
    return generation_by_id
