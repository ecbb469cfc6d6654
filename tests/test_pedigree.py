import random

import pytest

from famchart.errors import InvalidRootError
from famchart.graph import build_graph_index
from famchart.models import PARENT_CHILD, SIBLING, SPOUSE, person_sort_key
from famchart.pedigree import (
    PedigreeConfig,
    build_clusters,
    count_crossings,
    layout_pedigree,
    minimize_crossings,
)


@pytest.fixture
def three_generation_tree(person, rel):
    people = [person(pid) for pid in ("gp1", "gp2", "mum", "dad", "root", "sis", "wife", "kid1", "kid2", "aunt")]
    relationships = [
        rel(PARENT_CHILD, "gp1", "mum"),
        rel(PARENT_CHILD, "gp2", "mum"),
        rel(PARENT_CHILD, "gp1", "aunt"),
        rel(SPOUSE, "gp1", "gp2"),
        rel(SPOUSE, "mum", "dad"),
        rel(PARENT_CHILD, "mum", "root"),
        rel(PARENT_CHILD, "dad", "root"),
        rel(PARENT_CHILD, "mum", "sis"),
        rel(PARENT_CHILD, "dad", "sis"),
        rel(SPOUSE, "root", "wife"),
        rel(PARENT_CHILD, "root", "kid1"),
        rel(PARENT_CHILD, "wife", "kid1"),
        rel(PARENT_CHILD, "root", "kid2"),
    ]
    return people, relationships


def test_lone_root_is_a_single_padded_node(person):
    layout = layout_pedigree([person("a")], [], "a")

    assert len(layout.nodes) == 1
    assert layout.links == []
    node = layout.nodes[0]
    assert (node.x, node.y) == (100.0, 100.0)
    assert layout.width == 200.0 + 2 * 100.0
    assert layout.height == 64.0 + 2 * 100.0


def test_parent_sibling_and_spouse_links(person, rel):
    people = [person("parent"), person("root"), person("sibling"), person("spouse")]
    relationships = [
        rel(PARENT_CHILD, "parent", "root"),
        rel(PARENT_CHILD, "parent", "sibling"),
        rel(SPOUSE, "parent", "spouse"),
        rel(SIBLING, "root", "sibling"),
    ]

    layout = layout_pedigree(people, relationships, "root")

    assert len(layout.nodes) == 4
    assert len(layout.links) == 3
    assert sum(len(link.paths) for link in layout.links) == 5

    parent_links = {link.target_id: link for link in layout.links if link.type == "parent"}
    assert parent_links["root"].is_highlighted
    assert not parent_links["sibling"].is_highlighted
    spouse_link = next(link for link in layout.links if link.type == "spouse")
    assert not spouse_link.is_highlighted
    assert not spouse_link.is_curved, "partners stacked next to each other get a straight link"

    assert layout.node("parent").x == layout.node("spouse").x == 100.0
    assert layout.node("root").x == layout.node("sibling").x == 100.0 + 200.0 + 80.0


def test_all_parents_share_one_junction(person, rel):
    people = [person("child"), person("p1"), person("p2"), person("p3")]
    relationships = [rel(PARENT_CHILD, pid, "child") for pid in ("p1", "p2", "p3")]

    layout = layout_pedigree(people, relationships, "child")

    (link,) = layout.links
    assert link.source_ids == ("p1", "p2", "p3")
    assert len(link.paths) == 4
    child = layout.node("child")
    centres = [layout.node(pid).y + 32.0 for pid in ("p1", "p2", "p3")]
    assert link.junction == (child.x - 40.0, sum(centres) / 3)
    for path in link.paths[:3]:
        assert path[-1] == link.junction
    assert link.paths[3][0] == link.junction
    assert link.paths[3][-1] == (child.x, child.y + 32.0)


def test_generations_become_columns(three_generation_tree):
    people, relationships = three_generation_tree

    layout = layout_pedigree(people, relationships, "root")

    step = 200.0 + 80.0
    x_by_generation = {}
    for node in layout.nodes:
        x_by_generation.setdefault(node.generation, set()).add(node.x)
    assert sorted(x_by_generation) == [-2, -1, 0, 1]
    for generation, xs in x_by_generation.items():
        assert xs == {100.0 + (generation + 2) * step}


def test_nodes_in_a_column_do_not_overlap(three_generation_tree):
    people, relationships = three_generation_tree
    config = PedigreeConfig()

    layout = layout_pedigree(people, relationships, "root", config)

    by_generation = {}
    for node in layout.nodes:
        by_generation.setdefault(node.generation, []).append(node.y)
    for ys in by_generation.values():
        ys.sort()
        for upper, lower in zip(ys, ys[1:]):
            assert lower - upper >= config.node_height + config.row_gap

    for node in layout.nodes:
        assert node.x >= config.padding
        assert node.y >= config.padding
        assert node.x + config.node_width <= layout.width - config.padding
        assert node.y + config.node_height <= layout.height - config.padding


def test_layout_does_not_depend_on_input_order(three_generation_tree):
    people, relationships = three_generation_tree
    expected = layout_pedigree(people, relationships, "root")
    expected_positions = {node.id: (node.x, node.y) for node in expected.nodes}

    rng = random.Random(3)
    for _ in range(5):
        shuffled_people = list(people)
        shuffled_rels = list(relationships)
        rng.shuffle(shuffled_people)
        rng.shuffle(shuffled_rels)
        layout = layout_pedigree(shuffled_people, shuffled_rels, "root")
        assert {node.id: (node.x, node.y) for node in layout.nodes} == expected_positions
        assert (layout.width, layout.height) == (expected.width, expected.height)


def test_families_group_children_by_parent_set(three_generation_tree):
    people, relationships = three_generation_tree

    layout = layout_pedigree(people, relationships, "root")

    family = layout.families["parents-dad-mum"]
    assert family.parents == ["dad", "mum"]
    assert sorted(family.children) == ["root", "sis"]
    assert layout.family_by_child["kid2"] == "single-root"
    assert layout.family_by_child["kid1"] == "parents-root-wife"
    assert layout.family_by_child["aunt"] == "single-gp1"


def test_highlighted_links_touch_the_root(three_generation_tree):
    people, relationships = three_generation_tree

    layout = layout_pedigree(people, relationships, "root")

    for link in layout.links:
        touches_root = "root" in (*link.source_ids, link.target_id)
        assert link.is_highlighted == touches_root


def test_spouses_stay_next_to_each_other_in_a_cluster(person, rel):
    people = [person("a", "Alice"), person("b", "Bob"), person("s", "Sam", "Zed")]
    index = build_graph_index([rel(SPOUSE, "a", "s"), rel(SIBLING, "a", "b")])
    people_by_id = {p.id: p for p in people}

    clusters = build_clusters(["b", "s", "a"], index, lambda pid: person_sort_key(pid, people_by_id))

    assert clusters == [["a", "s", "b"]]


def test_median_sweeps_remove_a_crossing(rel):
    index = build_graph_index([rel(PARENT_CHILD, "p1", "c1"), rel(PARENT_CHILD, "p2", "c2")])
    order = {0: [["p1"], ["p2"]], 1: [["c2"], ["c1"]]}
    assert count_crossings(order, index) == 1

    result = minimize_crossings(order, index, sweep_count=4)

    assert count_crossings(result, index) == 0
    assert result[1] == [["c1"], ["c2"]]


def test_crossing_minimisation_never_gets_worse(rel):
    rng = random.Random(11)
    parents = [f"p{i}" for i in range(6)]
    children = [f"c{i}" for i in range(8)]
    relationships = [
        rel(PARENT_CHILD, rng.choice(parents), child) for child in children for _ in range(2)
    ]
    index = build_graph_index(relationships)
    order = {0: [[pid] for pid in parents], 1: [[cid] for cid in children]}

    result = minimize_crossings(order, index, sweep_count=8)

    assert count_crossings(result, index) <= count_crossings(order, index)
    assert sorted(pid for cluster in result[1] for pid in cluster) == sorted(children)


def test_unknown_root_raises(person):
    with pytest.raises(InvalidRootError):
        layout_pedigree([person("a")], [], "nobody")


def test_sweeps_move_whole_clusters(rel):
    index = build_graph_index(
        [
            rel(PARENT_CHILD, "p1", "a"),
            rel(PARENT_CHILD, "p1", "b"),
            rel(SPOUSE, "a", "s"),
            rel(PARENT_CHILD, "p2", "x"),
        ]
    )
    order = {0: [["p1"], ["p2"]], 1: [["x"], ["a", "s", "b"]]}
    assert count_crossings(order, index) == 2

    result = minimize_crossings(order, index, sweep_count=8)

    assert count_crossings(result, index) == 0
    assert result[1] == [["a", "s", "b"], ["x"]]
    assert result[0] == [["p1"], ["p2"]]


def test_layout_reorders_children_to_match_parents(person, rel):
    people = [person(pid) for pid in ("a", "b", "x", "y")]
    relationships = [
        rel(SPOUSE, "a", "b"),
        rel(PARENT_CHILD, "b", "x"),
        rel(PARENT_CHILD, "a", "y"),
    ]

    layout = layout_pedigree(people, relationships, "x")

    assert layout.node("a").y < layout.node("b").y
    assert layout.node("y").y < layout.node("x").y, "y follows its parent a above x"


def test_parent_right_of_child_leaves_from_its_left_edge(person, rel):
    people = [person("r"), person("k")]
    relationships = [rel(PARENT_CHILD, "r", "k"), rel(PARENT_CHILD, "k", "r")]

    layout = layout_pedigree(people, relationships, "r")

    r, k = layout.node("r"), layout.node("k")
    assert r.x > k.x
    link = next(link for link in layout.links if link.target_id == "k")
    parent_path = link.paths[0]
    assert parent_path[0] == (r.x, r.y + 32.0)
    assert max(x for x, _ in parent_path) == r.x
    assert link.junction[0] == k.x - 40.0
