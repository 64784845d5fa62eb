"""Note graph: deduplicated edges, connection counts and a spiral layout."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from .links import TitleLookup, extract_plain_links
from .model import Graph, GraphEdge, GraphNode, Note, VisualTier

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))
RADIUS_STEP = 40.0
CONNECTION_PULL = 15.0
MAX_STRENGTH = 5
MIN_NODE_SIZE = 80.0
MAX_NODE_SIZE = 160.0


def edge_strength(link_count: int) -> int:
    return min(link_count, MAX_STRENGTH)


def node_position(index: int, connection_count: int) -> tuple[float, float]:
    """
    Golden-angle spiral position for the node at `index`.

    Better connected nodes are pulled toward the center. The radius may go
    negative, which mirrors the point through the origin.
    """
    angle = index * GOLDEN_ANGLE
    radius = math.sqrt(index) * RADIUS_STEP - connection_count * CONNECTION_PULL
    return (math.cos(angle) * radius, math.sin(angle) * radius)


def node_size(content_length: int, connection_count: int) -> float:
    content_score = min(content_length / 200, 8)
    connection_score = connection_count * 3
    size = MIN_NODE_SIZE + (content_score + connection_score) * 4
    return max(MIN_NODE_SIZE, min(MAX_NODE_SIZE, size))


def visual_tier(connection_count: int) -> VisualTier:
    if connection_count == 0:
        return VisualTier.NONE
    if connection_count <= 2:
        return VisualTier.LOW
    if connection_count <= 5:
        return VisualTier.MEDIUM
    return VisualTier.HIGH


def build_graph(notes: Sequence[Note]) -> Graph:
    """
    Build the note graph.

    Every note becomes a node. An edge joins two distinct notes when either
    one references the other; each unordered pair yields at most one edge,
    oriented the way it was first seen. The result depends only on the notes
    and their order.
    """
    lookup = TitleLookup(notes)
    connections: dict[str, int] = {note.id: 0 for note in notes}
    seen: set[tuple[str, str]] = set()
    edges: list[GraphEdge] = []

    for note in notes:
        links = extract_plain_links(note.content)
        for link_title in links:
            target = lookup.get(link_title) if link_title else None
            if target is None or target.id == note.id:
                continue
            if (note.id, target.id) in seen or (target.id, note.id) in seen:
                continue
            seen.add((note.id, target.id))
            strength = edge_strength(len(links))
            edges.append(
                GraphEdge(
                    source=note.id,
                    target=target.id,
                    strength=strength,
                    emphasized=strength > 2,
                )
            )
            connections[note.id] = connections.get(note.id, 0) + 1
            connections[target.id] = connections.get(target.id, 0) + 1

    nodes: list[GraphNode] = []
    for index, note in enumerate(notes):
        count = connections.get(note.id, 0)
        x, y = node_position(index, count)
        nodes.append(
            GraphNode(
                id=note.id,
                title=note.title,
                index=index,
                connection_count=count,
                x=x,
                y=y,
                size=node_size(len(note.content), count),
            )
        )

    return Graph(nodes=nodes, edges=edges)


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """Export graph data for visualization."""
    return {
        "nodes": [
            {
                "id": n.id,
                "title": n.title,
                "connections": n.connection_count,
                "x": n.x,
                "y": n.y,
                "size": n.size,
                "tier": visual_tier(n.connection_count).value,
            }
            for n in graph.nodes
        ],
        "edges": [
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "strength": e.strength,
                "emphasized": e.emphasized,
            }
            for e in graph.edges
        ],
    }


def graph_to_dot(graph: Graph) -> str:
    """Graphviz DOT rendering of the graph (undirected)."""
    lines = ["graph garden {", "  node [shape=box];"]
    for n in graph.nodes:
        label = (n.title or n.id).replace('"', '\\"')
        lines.append(f'  "{n.id}" [label="{label}"];')
    for e in graph.edges:
        lines.append(f'  "{e.source}" -- "{e.target}" [penwidth={e.strength}];')
    lines.append("}")
    return "\n".join(lines)
