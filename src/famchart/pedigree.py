"""
Pedigree chart layout: generations as columns, people stacked in each column.

Ancestors sit to the left of the root and descendants to the right. People in a
column are grouped into clusters (partners and siblings) that are ordered as a
unit by a median heuristic to reduce crossing parent links.
"""

from bisect import bisect_left, insort
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import logging
from statistics import median

import networkx as nx

from famchart.graph import GraphIndex, build_graph_index, compute_generations
from famchart.models import Person, Relationship, person_sort_key

logger = logging.getLogger(__name__)

Point = tuple[float, float]
# generation -> clusters in display order, each cluster a list of person ids
ClusterOrder = dict[int, list[list[str]]]


@dataclass(frozen=True)
class PedigreeConfig:
    node_width: float = 200.0
    node_height: float = 64.0
    horizontal_gap: float = 80.0
    row_gap: float = 18.0
    cluster_gap: float = 24.0  # added on top of row_gap between clusters
    padding: float = 100.0
    sweep_count: int = 8
    center_generations: bool = True
    spouse_curve: float = 28.0


@dataclass
class PedigreeNode:
    id: str
    person: Person
    x: float
    y: float
    generation: int
    cluster_id: str


@dataclass
class PedigreeLink:
    type: str  # "parent" or "spouse"
    source_ids: tuple[str, ...]  # parents (or the first partner)
    target_id: str  # child (or the second partner)
    paths: list[list[Point]]
    is_highlighted: bool
    junction: Point | None = None
    is_curved: bool = False


@dataclass
class PedigreeFamily:
    id: str
    parents: list[str]
    children: list[str] = field(default_factory=list)


@dataclass
class PedigreeLayout:
    root_id: str
    nodes: list[PedigreeNode]
    links: list[PedigreeLink]
    width: float
    height: float
    families: dict[str, PedigreeFamily] = field(default_factory=dict)
    family_by_child: dict[str, str] = field(default_factory=dict)
    node_width: float = PedigreeConfig.node_width
    node_height: float = PedigreeConfig.node_height

    def node(self, person_id: str) -> PedigreeNode | None:
        for node in self.nodes:
            if node.id == person_id:
                return node
        return None


# ============================================================================
# Clusters
# ============================================================================


def _order_cluster(component: set[str], index: GraphIndex, sort_key: Callable) -> list[str]:
    """Walk a cluster breadth-first from its lowest-sorting member, partners before siblings."""
    start = min(component, key=sort_key)
    ordered = [start]
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for group in (index.spouses(current), index.siblings(current)):
            for other in sorted(group, key=sort_key):
                if other in component and other not in seen:
                    seen.add(other)
                    ordered.append(other)
                    queue.append(other)
    return ordered


def build_clusters(members: Iterable[str], index: GraphIndex, sort_key: Callable) -> list[list[str]]:
    """
    Group one generation into clusters of people joined by spouse or sibling links.

    Returns the clusters sorted by their lowest-sorting member.
    """
    G = nx.Graph()
    G.add_nodes_from(members)
    for person_id in list(G.nodes):
        for other in index.spouses(person_id) + index.siblings(person_id):
            if other in G:
                G.add_edge(person_id, other)

    clusters = [_order_cluster(component, index, sort_key) for component in nx.connected_components(G)]
    clusters.sort(key=lambda cluster: sort_key(cluster[0]))
    return clusters


# ============================================================================
# Crossing minimisation
# ============================================================================


def _positions(clusters: list[list[str]]) -> dict[str, int]:
    return {person_id: i for i, person_id in enumerate(pid for cluster in clusters for pid in cluster)}


def _reorder(
    clusters: list[list[str]],
    neighbours: Callable[[str], list[str]],
    adjacent_positions: dict[str, int],
) -> list[list[str]]:
    """
    Sort clusters by the median position of their neighbours in the adjacent generation.

    Clusters without neighbours there stay in their current slot.
    """
    movable = []
    result: list[list[str] | None] = [None] * len(clusters)
    for i, cluster in enumerate(clusters):
        positions = [
            adjacent_positions[other]
            for person_id in cluster
            for other in neighbours(person_id)
            if other in adjacent_positions
        ]
        if positions:
            movable.append((median(positions), i, cluster))
        else:
            result[i] = cluster

    movable.sort(key=lambda item: (item[0], item[1]))
    free_slots = (i for i, slot in enumerate(result) if slot is None)
    for (_, _, cluster), slot in zip(movable, free_slots):
        result[slot] = cluster
    return result


def count_crossings(order: ClusterOrder, index: GraphIndex) -> int:
    """Count crossing pairs of parent links between every pair of adjacent generations."""
    total = 0
    for generation in sorted(order):
        if generation + 1 not in order:
            continue
        upper = _positions(order[generation])
        lower = _positions(order[generation + 1])
        edges = sorted(
            (upper[parent_id], lower[child_id])
            for child_id in lower
            for parent_id in index.parents(child_id)
            if parent_id in upper
        )
        # Inversions of the child positions, counted right to left
        seen: list[int] = []
        for _, child_pos in reversed(edges):
            total += bisect_left(seen, child_pos)
            insort(seen, child_pos)
    return total


def _snapshot(order: ClusterOrder) -> tuple:
    return tuple((g, tuple(tuple(c) for c in order[g])) for g in sorted(order))


def minimize_crossings(order: ClusterOrder, index: GraphIndex, sweep_count: int) -> ClusterOrder:
    """
    Reorder clusters with alternating forward/backward median sweeps.

    A local heuristic: it stops early once a sweep pair changes nothing and
    returns the ordering with the fewest crossings seen, so the result is never
    worse than the input ordering.
    """
    generations = sorted(order)
    current = {g: list(clusters) for g, clusters in order.items()}
    best = {g: list(clusters) for g, clusters in current.items()}
    best_crossings = count_crossings(current, index)

    for sweep in range(sweep_count):
        if best_crossings == 0:
            break
        before = _snapshot(current)

        for generation in generations:
            if generation - 1 in current:
                current[generation] = _reorder(
                    current[generation], index.parents, _positions(current[generation - 1])
                )
        for generation in reversed(generations):
            if generation + 1 in current:
                current[generation] = _reorder(
                    current[generation], index.children, _positions(current[generation + 1])
                )

        crossings = count_crossings(current, index)
        if crossings < best_crossings:
            best_crossings = crossings
            best = {g: list(clusters) for g, clusters in current.items()}
        if _snapshot(current) == before:
            logger.debug("Crossing minimisation converged after %d sweep pairs", sweep + 1)
            break

    logger.debug("Pedigree ordering has %d crossings", best_crossings)
    return best


# ============================================================================
# Links
# ============================================================================


def _spouse_link(a: PedigreeNode, b: PedigreeNode, adjacent: bool, root_id: str, config: PedigreeConfig):
    w, h = config.node_width, config.node_height
    highlighted = root_id in (a.id, b.id)
    upper, lower = (a, b) if a.y <= b.y else (b, a)

    if adjacent and upper.x == lower.x:
        path = [(upper.x + w / 2, upper.y + h), (lower.x + w / 2, lower.y)]
        return PedigreeLink("spouse", (a.id,), b.id, [path], highlighted)

    right = max(upper.x, lower.x) + w
    control = (right + config.spouse_curve, (upper.y + lower.y) / 2 + h / 2)
    path = [(upper.x + w, upper.y + h / 2), control, (lower.x + w, lower.y + h / 2)]
    return PedigreeLink("spouse", (a.id,), b.id, [path], highlighted, is_curved=True)


def _parent_link(parents: list[PedigreeNode], child: PedigreeNode, root_id: str, config: PedigreeConfig):
    """Route every parent of one child through a single shared junction."""
    w, h = config.node_width, config.node_height
    junction_x = child.x - config.horizontal_gap / 2
    junction_y = sum(parent.y + h / 2 for parent in parents) / len(parents)
    child_y = child.y + h / 2

    paths = []
    for parent in parents:
        # Cyclic data can put a parent in the child's column or right of it; leave from its left edge
        start_x = parent.x + w if parent.x < child.x else parent.x
        paths.append([(start_x, parent.y + h / 2), (junction_x, parent.y + h / 2), (junction_x, junction_y)])
    paths.append([(junction_x, junction_y), (junction_x, child_y), (child.x, child_y)])

    highlighted = child.id == root_id or any(parent.id == root_id for parent in parents)
    return PedigreeLink(
        "parent",
        tuple(parent.id for parent in parents),
        child.id,
        paths,
        highlighted,
        junction=(junction_x, junction_y),
    )


# ============================================================================
# Layout
# ============================================================================


def layout_pedigree(
    people: Iterable[Person],
    relationships: Iterable[Relationship],
    root_id: str,
    config: PedigreeConfig | None = None,
) -> PedigreeLayout:
    """
    Lay out the people connected to ``root_id`` as a left-to-right pedigree.

    Args:
        people: All people in the tree
        relationships: All relationships in the tree
        root_id: The person the chart is centred on
        config: Node sizes, gaps and sweep count

    Returns:
        Positioned nodes, parent/spouse links and the padded bounding box

    Raises:
        InvalidRootError: If ``root_id`` is not one of ``people``
    """
    config = config or PedigreeConfig()
    people = list(people)
    relationships = list(relationships)
    people_by_id = {person.id: person for person in people}
    index = build_graph_index(relationships)
    generation_by_id = compute_generations(people, relationships, root_id, index=index)

    def sort_key(person_id: str) -> tuple:
        return person_sort_key(person_id, people_by_id)

    members_by_generation: dict[int, list[str]] = {}
    for person_id, generation in generation_by_id.items():
        if person_id in people_by_id:
            members_by_generation.setdefault(generation, []).append(person_id)

    order: ClusterOrder = {
        generation: build_clusters(members, index, sort_key)
        for generation, members in members_by_generation.items()
    }
    order = minimize_crossings(order, index, config.sweep_count)

    # Stack each column, then centre it against the tallest column
    step_x = config.node_width + config.horizontal_gap
    column_heights: dict[int, float] = {}
    raw: dict[str, tuple[float, float, str]] = {}
    for generation, clusters in order.items():
        cursor = 0.0
        for ci, cluster in enumerate(clusters):
            if ci:
                cursor += config.cluster_gap
            cluster_id = f"g{generation}-{cluster[0]}"
            for person_id in cluster:
                raw[person_id] = (generation * step_x, cursor, cluster_id)
                cursor += config.node_height + config.row_gap
        column_heights[generation] = cursor - config.row_gap

    tallest = max(column_heights.values())
    nodes: list[PedigreeNode] = []
    for generation in sorted(order):
        offset = (tallest - column_heights[generation]) / 2 if config.center_generations else 0.0
        for cluster in order[generation]:
            for person_id in cluster:
                x, y, cluster_id = raw[person_id]
                nodes.append(
                    PedigreeNode(person_id, people_by_id[person_id], x, y + offset, generation, cluster_id)
                )

    min_x = min(node.x for node in nodes)
    min_y = min(node.y for node in nodes)
    max_x = max(node.x + config.node_width for node in nodes)
    max_y = max(node.y + config.node_height for node in nodes)
    for node in nodes:
        node.x = node.x - min_x + config.padding
        node.y = node.y - min_y + config.padding

    node_by_id = {node.id: node for node in nodes}
    column_position = {pid: pos for clusters in order.values() for pid, pos in _positions(clusters).items()}
    cluster_of = {node.id: node.cluster_id for node in nodes}

    links: list[PedigreeLink] = []
    for a_id in sorted(node_by_id, key=sort_key):
        for b_id in index.spouses(a_id):
            if b_id not in node_by_id or sort_key(b_id) <= sort_key(a_id):
                continue
            a, b = node_by_id[a_id], node_by_id[b_id]
            adjacent = (
                a.generation == b.generation
                and cluster_of[a_id] == cluster_of[b_id]
                and abs(column_position[a_id] - column_position[b_id]) == 1
            )
            links.append(_spouse_link(a, b, adjacent, root_id, config))

    families: dict[str, PedigreeFamily] = {}
    family_by_child: dict[str, str] = {}
    for child in nodes:
        parents = [node_by_id[pid] for pid in index.parents(child.id) if pid in node_by_id]
        if not parents:
            continue
        parents.sort(key=lambda node: (node.x, node.y))
        links.append(_parent_link(parents, child, root_id, config))

        parent_ids = sorted(parent.id for parent in parents)
        family_id = f"single-{parent_ids[0]}" if len(parent_ids) == 1 else "parents-" + "-".join(parent_ids)
        families.setdefault(family_id, PedigreeFamily(family_id, parent_ids)).children.append(child.id)
        family_by_child[child.id] = family_id

    logger.debug("Pedigree layout: %d nodes, %d links", len(nodes), len(links))
    return PedigreeLayout(
        root_id=root_id,
        nodes=nodes,
        links=links,
        width=max_x - min_x + 2 * config.padding,
        height=max_y - min_y + 2 * config.padding,
        families=families,
        family_by_child=family_by_child,
        node_width=config.node_width,
        node_height=config.node_height,
    )
