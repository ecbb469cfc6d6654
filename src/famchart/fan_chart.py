"""
Fan chart layout: ancestors on the upper half circle, descendants on the lower.

Angles are in radians using screen coordinates (y grows downward), so the
ancestor half [pi, 2pi) is drawn above the root and the descendant half
[0, pi) below it.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import logging
import math
import re

from famchart.errors import InvalidRootError
from famchart.graph import build_graph_index
from famchart.models import Person, Relationship, person_sort_key

logger = logging.getLogger(__name__)

ANCESTOR = "ancestor"
DESCENDANT = "descendant"

# Color palette for lineages
LINEAGE_PALETTE = [
    "#ad8aff",
    "#ff7c1e",
    "#18c8d8",
    "#ff6f59",
    "#f6b84a",
    "#8fd1a6",
    "#c9b4ff",
]


@dataclass(frozen=True)
class FanChartConfig:
    root_radius: float = 70.0
    ring_width: float = 78.0


@dataclass
class _TreeNode:
    id: str
    depth: int
    lineage_root_id: str | None
    parent_id: str | None = None
    children: list["_TreeNode"] = field(default_factory=list)
    leaf_count: int = 1
    angle_start: float = 0.0
    angle_end: float = 0.0


@dataclass
class FanChartNode:
    id: str
    person: Person
    depth: int
    side: str  # "ancestor" or "descendant"
    angle_start: float
    angle_end: float
    inner_radius: float
    outer_radius: float
    lineage_root_id: str
    parent_id: str  # tree parent; the root for depth 1

    @property
    def span(self) -> float:
        return self.angle_end - self.angle_start

    @property
    def mid_angle(self) -> float:
        return (self.angle_start + self.angle_end) / 2


@dataclass
class FanChartLayout:
    nodes: list[FanChartNode]
    root_person: Person
    max_depth: int
    root_radius: float
    ring_width: float
    lineage_ids: set[str]
    lineage_order: list[str]


def _build_tree(root_id: str, get_children: Callable[[str], list[str]], sort_key: Callable) -> _TreeNode:
    """
    Build a rooted tree following ``get_children``, visiting each person once.

    Depth first in name order: a person reachable through two paths (pedigree
    collapse) sits wherever the walk reaches them first, which may be deep in
    an earlier sibling's subtree rather than directly under the root.
    """
    visited: set[str] = set()
    root = _TreeNode(root_id, 0, None)
    # Pending (person, tree parent); popped in the order a recursive walk would reach them
    stack: list[tuple[str, _TreeNode | None]] = [(root_id, None)]
    while stack:
        person_id, parent = stack.pop()
        if person_id in visited:
            continue
        visited.add(person_id)

        if parent is None:
            node = root
        else:
            lineage_root = person_id if parent.depth == 0 else parent.lineage_root_id
            node = _TreeNode(person_id, parent.depth + 1, lineage_root, parent.id)
            parent.children.append(node)

        for child_id in sorted(get_children(person_id), key=sort_key, reverse=True):
            if child_id not in visited:
                stack.append((child_id, node))
    _count_leaves(root)
    return root


def _count_leaves(root: _TreeNode) -> None:
    for node in reversed(list(_walk(root))):
        node.leaf_count = sum(child.leaf_count for child in node.children) if node.children else 1


def _walk(root: _TreeNode):
    """Pre-order traversal."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _assign_angles(root: _TreeNode, start: float, end: float) -> None:
    root.angle_start, root.angle_end = start, end
    for node in _walk(root):
        current = node.angle_start
        for i, child in enumerate(node.children):
            span = (node.angle_end - node.angle_start) * (child.leaf_count / node.leaf_count)
            # Last child closes the span exactly so children always sum to the parent
            child_end = node.angle_end if i == len(node.children) - 1 else current + span
            child.angle_start, child.angle_end = current, child_end
            current = child_end


def layout_fan_chart(
    people: Iterable[Person],
    relationships: Iterable[Relationship],
    root_id: str,
    config: FanChartConfig | None = None,
) -> FanChartLayout:
    """
    Compute angular sectors for an ancestor/descendant fan centred on ``root_id``.

    Each node's span is its parent's span split in proportion to leaf counts;
    ring radii grow with depth.

    Raises:
        InvalidRootError: If ``root_id`` is not one of ``people``
    """
    config = config or FanChartConfig()
    people_by_id = {person.id: person for person in people}
    root_person = people_by_id.get(root_id)
    if root_person is None:
        raise InvalidRootError(root_id)

    index = build_graph_index(relationships)

    def sort_key(person_id: str) -> tuple:
        return person_sort_key(person_id, people_by_id)

    ancestor_tree = _build_tree(root_id, index.parents, sort_key)
    descendant_tree = _build_tree(root_id, index.children, sort_key)
    _assign_angles(ancestor_tree, math.pi, 2 * math.pi)
    _assign_angles(descendant_tree, 0.0, math.pi)

    nodes: list[FanChartNode] = []
    lineage_ids: set[str] = set()
    max_depth = 0
    for side, tree in ((ANCESTOR, ancestor_tree), (DESCENDANT, descendant_tree)):
        for node in _walk(tree):
            lineage_ids.add(node.id)
            max_depth = max(max_depth, node.depth)
            person = people_by_id.get(node.id)
            if node.depth == 0 or person is None:
                continue
            nodes.append(
                FanChartNode(
                    id=node.id,
                    person=person,
                    depth=node.depth,
                    side=side,
                    angle_start=node.angle_start,
                    angle_end=node.angle_end,
                    inner_radius=config.root_radius + config.ring_width * (node.depth - 1),
                    outer_radius=config.root_radius + config.ring_width * node.depth,
                    lineage_root_id=node.lineage_root_id or node.id,
                    parent_id=node.parent_id,
                )
            )

    lineage_order = list(dict.fromkeys(child.id for child in ancestor_tree.children + descendant_tree.children))

    logger.debug("Fan chart layout: %d nodes, max depth %d", len(nodes), max_depth)
    return FanChartLayout(
        nodes=nodes,
        root_person=root_person,
        max_depth=max_depth,
        root_radius=config.root_radius,
        ring_width=config.ring_width,
        lineage_ids=lineage_ids,
        lineage_order=lineage_order,
    )


# ============================================================================
# Geometry and styling helpers
# ============================================================================


def polar_to_cartesian(cx: float, cy: float, radius: float, angle: float) -> tuple[float, float]:
    return (cx + radius * math.cos(angle), cy + radius * math.sin(angle))


def build_arc_path(
    cx: float, cy: float, inner_radius: float, outer_radius: float, start_angle: float, end_angle: float
) -> str:
    """Build an SVG path for a ring segment."""
    large_arc = 1 if end_angle - start_angle > math.pi else 0
    outer_start = polar_to_cartesian(cx, cy, outer_radius, start_angle)
    outer_end = polar_to_cartesian(cx, cy, outer_radius, end_angle)
    inner_start = polar_to_cartesian(cx, cy, inner_radius, end_angle)
    inner_end = polar_to_cartesian(cx, cy, inner_radius, start_angle)

    return " ".join(
        [
            f"M {outer_start[0]} {outer_start[1]}",
            f"A {outer_radius} {outer_radius} 0 {large_arc} 1 {outer_end[0]} {outer_end[1]}",
            f"L {inner_start[0]} {inner_start[1]}",
            f"A {inner_radius} {inner_radius} 0 {large_arc} 0 {inner_end[0]} {inner_end[1]}",
            "Z",
        ]
    )


def wrap_label_text(value: str, max_chars: int, max_lines: int) -> list[str]:
    """Wrap a name into at most ``max_lines`` lines, truncating the last with '...'."""
    words = value.split()
    if not words:
        return ["Unknown"]

    lines: list[str] = []
    current = ""
    for i, word in enumerate(words):
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars:
            current = candidate
            continue

        if not current:
            # A single word longer than a line is split into chunks
            size = max(max_chars - 1, 3)
            for segment in re.findall(f".{{1,{size}}}", word):
                if len(lines) < max_lines - 1:
                    lines.append(segment)
                else:
                    current = segment
            continue

        lines.append(current)
        current = word
        if len(lines) >= max_lines - 1 and i < len(words) - 1:
            current = " ".join([current, *words[i + 1 :]])
            break

    if current:
        lines.append(current)

    if len(lines) > max_lines:
        return lines[:max_lines]
    if len(lines) == max_lines and len(lines[-1]) > max_chars:
        lines[-1] = f"{lines[-1][: max(max_chars - 3, 3)]}..."
    return lines


def label_font_size(arc_length: float) -> int:
    if arc_length < 60:
        return 10
    if arc_length < 90:
        return 11
    return 12


def label_rotation(angle: float) -> float:
    """Rotation in degrees keeping a label tangent to its ring and upright."""
    tangent = math.degrees(angle) + 90
    normalized = (tangent + 360) % 360
    flip = 90 < normalized < 270
    return tangent + 180 if flip else tangent


def _hex_to_rgb(value: str) -> tuple[int, int, int]:
    sanitized = value.lstrip("#")
    if len(sanitized) == 3:
        sanitized = "".join(char * 2 for char in sanitized)
    number = int(sanitized, 16)
    return ((number >> 16) & 255, (number >> 8) & 255, number & 255)


def mix_colors(base: str, mix: str, weight: float) -> str:
    """Blend two hex colors; ``weight`` 0 keeps ``base``, 1 gives ``mix``."""
    blended = [
        max(0, min(255, round(b + (m - b) * weight)))
        for b, m in zip(_hex_to_rgb(base), _hex_to_rgb(mix))
    ]
    return "#{:02x}{:02x}{:02x}".format(*blended)


def lineage_color(layout: FanChartLayout, node: FanChartNode) -> str:
    """Palette color of the node's lineage, lightened with depth."""
    try:
        position = layout.lineage_order.index(node.lineage_root_id)
    except ValueError:
        position = 0
    base = LINEAGE_PALETTE[position % len(LINEAGE_PALETTE)]
    return mix_colors(base, "#ffffff", min(0.5, node.depth * 0.12))
