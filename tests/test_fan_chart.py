import math

import pytest

from famchart.errors import InvalidRootError
from famchart.fan_chart import (
    ANCESTOR,
    DESCENDANT,
    LINEAGE_PALETTE,
    FanChartConfig,
    build_arc_path,
    label_font_size,
    label_rotation,
    layout_fan_chart,
    lineage_color,
    mix_colors,
    polar_to_cartesian,
    wrap_label_text,
)
from famchart.models import PARENT_CHILD, SPOUSE


def test_ancestors_and_descendants_take_opposite_halves(person, rel):
    people = [person("root"), person("parent"), person("grandparent"), person("child")]
    relationships = [
        rel(PARENT_CHILD, "parent", "root"),
        rel(PARENT_CHILD, "grandparent", "parent"),
        rel(PARENT_CHILD, "root", "child"),
    ]

    layout = layout_fan_chart(people, relationships, "root")

    by_id = {node.id: node for node in layout.nodes}
    assert set(by_id) == {"parent", "grandparent", "child"}
    assert layout.max_depth == 2
    assert layout.lineage_order == ["parent", "child"]
    assert layout.lineage_ids == {"root", "parent", "grandparent", "child"}
    assert layout.root_person.id == "root"

    for node in layout.nodes:
        if node.side == ANCESTOR:
            assert math.pi <= node.angle_start < node.angle_end <= 2 * math.pi
        else:
            assert 0 <= node.angle_start < node.angle_end <= math.pi
    assert by_id["child"].side == DESCENDANT
    assert by_id["grandparent"].lineage_root_id == "parent"
    assert by_id["grandparent"].parent_id == "parent"
    assert by_id["parent"].parent_id == "root"


def test_spans_follow_leaf_counts(person, rel):
    people = [person(pid) for pid in ("root", "a", "b", "a1", "a2")]
    relationships = [
        rel(PARENT_CHILD, "a", "root"),
        rel(PARENT_CHILD, "b", "root"),
        rel(PARENT_CHILD, "a1", "a"),
        rel(PARENT_CHILD, "a2", "a"),
    ]

    layout = layout_fan_chart(people, relationships, "root")

    by_id = {node.id: node for node in layout.nodes}
    assert by_id["a"].angle_start == pytest.approx(math.pi)
    assert by_id["a"].span == pytest.approx(2 * math.pi / 3)
    assert by_id["b"].span == pytest.approx(math.pi / 3)
    assert by_id["b"].angle_end == 2 * math.pi
    assert by_id["a1"].span == pytest.approx(math.pi / 3)
    assert by_id["a2"].angle_end == by_id["a"].angle_end


def test_child_spans_add_up_to_their_parent(person, rel):
    people = [person(pid) for pid in ("root", "f", "m", "ff", "fm", "mf", "mff", "mfm", "mfx", "k1", "k2", "g1")]
    relationships = [
        rel(PARENT_CHILD, "f", "root"),
        rel(PARENT_CHILD, "m", "root"),
        rel(PARENT_CHILD, "ff", "f"),
        rel(PARENT_CHILD, "fm", "f"),
        rel(PARENT_CHILD, "mf", "m"),
        rel(PARENT_CHILD, "mff", "mf"),
        rel(PARENT_CHILD, "mfm", "mf"),
        rel(PARENT_CHILD, "mfx", "mf"),
        rel(PARENT_CHILD, "root", "k1"),
        rel(PARENT_CHILD, "root", "k2"),
        rel(PARENT_CHILD, "k1", "g1"),
    ]

    layout = layout_fan_chart(people, relationships, "root")

    spans = {node.id: node.span for node in layout.nodes}
    children_of = {}
    for node in layout.nodes:
        children_of.setdefault(node.parent_id, []).append(node)

    for side in (ANCESTOR, DESCENDANT):
        total = sum(node.span for node in children_of["root"] if node.side == side)
        assert abs(total - math.pi) <= 1e-9
    for parent_id, children in children_of.items():
        if parent_id != "root":
            assert abs(sum(child.span for child in children) - spans[parent_id]) <= 1e-9


def test_shared_ancestor_appears_once(person, rel):
    people = [person(pid) for pid in ("root", "p1", "p2", "g")]
    relationships = [
        rel(PARENT_CHILD, "p1", "root"),
        rel(PARENT_CHILD, "p2", "root"),
        rel(PARENT_CHILD, "g", "p1"),
        rel(PARENT_CHILD, "g", "p2"),
    ]

    layout = layout_fan_chart(people, relationships, "root")

    ids = [node.id for node in layout.nodes]
    assert ids.count("g") == 1
    assert next(node for node in layout.nodes if node.id == "g").parent_id == "p1"


def test_ring_radii_grow_with_depth(person, rel):
    people = [person("root"), person("p"), person("gp")]
    relationships = [rel(PARENT_CHILD, "p", "root"), rel(PARENT_CHILD, "gp", "p")]

    layout = layout_fan_chart(people, relationships, "root", FanChartConfig(root_radius=70, ring_width=78))

    by_id = {node.id: node for node in layout.nodes}
    assert (by_id["p"].inner_radius, by_id["p"].outer_radius) == (70, 148)
    assert (by_id["gp"].inner_radius, by_id["gp"].outer_radius) == (148, 226)


def test_root_without_relatives_and_spouses_are_ignored(person, rel):
    layout = layout_fan_chart([person("root"), person("wife")], [rel(SPOUSE, "root", "wife")], "root")

    assert layout.nodes == []
    assert layout.max_depth == 0
    assert layout.lineage_order == []


def test_unknown_root_raises(person):
    with pytest.raises(InvalidRootError):
        layout_fan_chart([person("a")], [], "nobody")


def test_lineage_color_lightens_with_depth(person, rel):
    people = [person("root"), person("a"), person("b"), person("a1")]
    relationships = [
        rel(PARENT_CHILD, "a", "root"),
        rel(PARENT_CHILD, "b", "root"),
        rel(PARENT_CHILD, "a1", "a"),
    ]
    layout = layout_fan_chart(people, relationships, "root")
    by_id = {node.id: node for node in layout.nodes}

    assert lineage_color(layout, by_id["a"]) == mix_colors(LINEAGE_PALETTE[0], "#ffffff", 0.12)
    assert lineage_color(layout, by_id["a1"]) == mix_colors(LINEAGE_PALETTE[0], "#ffffff", 0.24)
    assert lineage_color(layout, by_id["b"]) == mix_colors(LINEAGE_PALETTE[1], "#ffffff", 0.12)


def test_mix_colors():
    assert mix_colors("#000000", "#ffffff", 0.5) == "#808080"
    assert mix_colors("#ad8aff", "#ffffff", 0) == "#ad8aff"
    assert mix_colors("#000", "#fff", 1) == "#ffffff"


def test_polar_to_cartesian():
    assert polar_to_cartesian(0, 0, 10, 0) == (10.0, 0.0)
    x, y = polar_to_cartesian(5, 5, 2, math.pi / 2)
    assert x == pytest.approx(5)
    assert y == pytest.approx(7)


def test_build_arc_path_flags_large_arcs():
    small = build_arc_path(0, 0, 10, 20, 0, math.pi / 2)
    large = build_arc_path(0, 0, 10, 20, 0, 1.5 * math.pi)

    assert small.startswith("M ")
    assert small.endswith("Z")
    assert "A 20 20 0 0 1" in small
    assert "A 20 20 0 1 1" in large
    assert "A 10 10 0 1 0" in large


def test_wrap_label_text():
    assert wrap_label_text("Ann Lee", 10, 2) == ["Ann Lee"]
    assert wrap_label_text("", 10, 2) == ["Unknown"]
    assert wrap_label_text("John Jacob Jingleheimer Schmidt", 10, 2) == ["John Jacob", "Jingleh..."]


def test_label_font_size_steps_with_arc_length():
    assert label_font_size(50) == 10
    assert label_font_size(75) == 11
    assert label_font_size(100) == 12


def test_label_rotation_keeps_text_upright():
    assert label_rotation(0) == pytest.approx(90)
    assert label_rotation(math.pi) == pytest.approx(270)
    assert label_rotation(math.pi / 2) == pytest.approx(360)


def test_collapsed_ancestor_sits_where_the_depth_first_walk_finds_it(person, rel):
    people = [person("r"), person("a"), person("b")]
    relationships = [
        rel(PARENT_CHILD, "a", "r"),
        rel(PARENT_CHILD, "b", "r"),
        rel(PARENT_CHILD, "b", "a"),
    ]

    layout = layout_fan_chart(people, relationships, "r")

    depths = {node.id: node.depth for node in layout.nodes}
    assert depths == {"a": 1, "b": 2}
    assert layout.lineage_order == ["a"]
    a = next(node for node in layout.nodes if node.id == "a")
    assert a.span == pytest.approx(math.pi)
