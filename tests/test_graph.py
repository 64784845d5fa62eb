"""Tests for graph building."""

import math

from thicket.core.graph import (
    MAX_NODE_SIZE,
    MIN_NODE_SIZE,
    build_graph,
    graph_to_dict,
    graph_to_dot,
    node_position,
    node_size,
    visual_tier,
)
from thicket.core.model import Note, VisualTier


def test_alpha_beta_single_edge():
    """Test the basic two-note graph."""
    notes = [
        Note(id="a", title="Alpha", content="See [[Beta]]"),
        Note(id="b", title="Beta", content="no links"),
    ]
    graph = build_graph(notes)

    assert len(graph.nodes) == 2
    assert len(graph.edges) == 1
    edge = graph.edges[0]
    assert (edge.source, edge.target) == ("a", "b")
    assert edge.id == "a-b"
    assert graph.node("a").connection_count == 1
    assert graph.node("b").connection_count == 1


def test_missing_reference_creates_no_edge():
    """Test that [[Nowhere]] adds no edge and the note is an orphan."""
    graph = build_graph([Note(id="x", title="X", content="[[Nowhere]]")])

    assert graph.edges == []
    assert [n.id for n in graph.orphans()] == ["x"]


def test_mutual_links_dedupe_to_one_edge():
    """Test that A->B and B->A yield a single edge oriented as first seen."""
    notes = [
        Note(id="a", title="Alpha", content="[[Beta]] and again [[beta]]"),
        Note(id="b", title="Beta", content="back to [[Alpha]]"),
    ]
    graph = build_graph(notes)

    assert len(graph.edges) == 1
    assert graph.edges[0].source == "a"
    assert graph.node("a").connection_count == 1
    assert graph.node("b").connection_count == 1
    assert graph.neighbors("b") == ["a"]


def test_self_reference_ignored():
    """Test that a note referencing itself has no edge."""
    graph = build_graph([Note(id="s", title="Self", content="[[Self]]")])

    assert graph.edges == []
    assert graph.node("s").connection_count == 0


def test_edge_strength_from_total_links():
    """Test strength counts every reference in the source, capped at 5."""
    targets = [Note(id=f"t{i}", title=f"T{i}") for i in range(3)]
    many = "".join(f"[[T0]] [[Nope{i}]] " for i in range(6))
    notes = [
        Note(id="few", title="Few", content="[[T1]]"),
        Note(id="many", title="Many", content=many + "[[T2]]"),
        *targets,
    ]
    graph = build_graph(notes)
    by_source = {(e.source, e.target): e for e in graph.edges}

    assert by_source[("few", "t1")].strength == 1
    assert not by_source[("few", "t1")].emphasized
    assert by_source[("many", "t0")].strength == 5
    assert by_source[("many", "t0")].emphasized


def test_layout_is_deterministic():
    """Test that the same notes always produce the same layout."""
    notes = [Note(id=str(i), title=f"N{i}", content=f"[[N{(i + 1) % 5}]]") for i in range(5)]

    assert graph_to_dict(build_graph(notes)) == graph_to_dict(build_graph(notes))


def test_node_position_spiral():
    """Test golden-angle placement and the pull toward the center."""
    assert node_position(0, 0) == (0.0, 0.0)
    x, y = node_position(4, 0)
    assert math.isclose(math.hypot(x, y), 80.0)
    x, y = node_position(4, 2)
    assert math.isclose(math.hypot(x, y), 50.0)


def test_node_size_clamped():
    """Test node size stays within bounds."""
    assert node_size(0, 0) == MIN_NODE_SIZE
    assert node_size(400, 1) == MIN_NODE_SIZE + (2 + 3) * 4
    assert node_size(10_000, 10) == MAX_NODE_SIZE


def test_visual_tier_boundaries():
    """Test tier thresholds."""
    assert visual_tier(0) is VisualTier.NONE
    assert visual_tier(1) is VisualTier.LOW
    assert visual_tier(2) is VisualTier.LOW
    assert visual_tier(3) is VisualTier.MEDIUM
    assert visual_tier(5) is VisualTier.MEDIUM
    assert visual_tier(6) is VisualTier.HIGH


def test_dot_export():
    """Test DOT output is an undirected graph."""
    notes = [
        Note(id="a", title='Say "hi"', content="[[Beta]]"),
        Note(id="b", title="Beta"),
    ]
    dot = graph_to_dot(build_graph(notes))

    assert dot.startswith("graph garden {")
    assert '"a" -- "b" [penwidth=1];' in dot
    assert 'label="Say \\"hi\\""' in dot
    assert dot.endswith("}")
