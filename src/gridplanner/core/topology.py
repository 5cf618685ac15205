"""Topology analysis for grid floor plans.

This module builds graphs over a project: which rooms share a wall on a
level, and which levels are joined by paired stairs.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Set

import networkx as nx

from ..geom.shapes import room_perimeter_keys
from .model import FloorGeometry, Project, Stair


def build_room_adjacency(geometry: FloorGeometry) -> nx.Graph:
    """Build a graph of rooms that share a perimeter segment.

    Creates a NetworkX graph where nodes are room ids and an edge joins two
    rooms whenever their merged perimeters contain the same segment. Each
    edge carries the shared segment keys under ``walls``.

    Args:
        geometry: The level geometry to analyze.

    Returns:
        NetworkX Graph with room adjacency.
    """
    G = nx.Graph()
    claims: Dict[tuple, List[str]] = defaultdict(list)

    for room_id, room in geometry.rooms.items():
        G.add_node(room_id, name=room.name)
        for key in room_perimeter_keys(room):
            claims[key].append(room_id)

    for key, room_ids in claims.items():
        for i, first in enumerate(room_ids):
            for second in room_ids[i + 1:]:
                if G.has_edge(first, second):
                    G.edges[first, second]["walls"].append(key)
                else:
                    G.add_edge(first, second, walls=[key])

    return G


def build_level_graph(project: Project) -> nx.Graph:
    """Build a graph of levels joined by paired stairs.

    Two levels are connected when a stair on each carries the same
    ``link_id``. Edges record the link ids under ``links``.
    """
    G = nx.Graph()
    by_link: Dict[str, Set[str]] = defaultdict(set)

    for level in project.levels:
        G.add_node(level.id, name=level.name, elevation=level.elevation)
        for stair in level.geometry.stairs.values():
            if stair.link_id:
                by_link[stair.link_id].add(level.id)

    for link_id, level_ids in by_link.items():
        ordered = sorted(level_ids)
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if G.has_edge(first, second):
                    G.edges[first, second]["links"].append(link_id)
                else:
                    G.add_edge(first, second, links=[link_id])

    return G


def unpaired_stairs(project: Project) -> List[Stair]:
    """Stairs whose target level has no stair with the same link id."""
    unpaired = []
    for level in project.levels:
        for stair in level.geometry.stairs.values():
            target = project.level(stair.target_level_id)
            if target is None or not any(
                other.link_id == stair.link_id for other in target.geometry.stairs.values()
            ):
                unpaired.append(stair)
    return unpaired
