"""
Edge Collapse
=============

Error evaluation and the collapse operation on a WorkingGraph.

Collapsing edge (v1, v2) keeps v1, moves it to the edge's collapse target
and gives it the summed quadric. v2 and the two faces spanning the edge are
removed; all other faces and edges of v2 are handed over to v1.
"""

import logging
from enum import Enum

from .graph import WorkingGraph
from .qem import compute_collapse_target

logger = logging.getLogger(__name__)


class CollapseOutcome(Enum):
    """Result of a collapse attempt."""
    COLLAPSED = "collapsed"
    ALREADY_REMOVED = "already_removed"
    TOO_LONG = "too_long"
    SUPER_TRIANGLE = "super_triangle"
    NOT_MANIFOLD = "not_manifold"
    DUPLICATE_FACE = "duplicate_face"


def calculate_edge_error(graph: WorkingGraph, handle: int):
    """
    Compute and store the collapse quadric, target and error of an edge.

    The stored error is always the summed quadric evaluated at the stored
    target.
    """
    edge = graph.edges[handle]
    v1 = graph.vertices[edge.v1]
    v2 = graph.vertices[edge.v2]

    edge.quadric = v1.quadric + v2.quadric
    edge.target, edge.error = compute_collapse_target(edge.quadric, v1.coords, v2.coords)


def _is_super_triangle(graph: WorkingGraph, v1: int, v2: int, spanning) -> bool:
    """
    True when v1 and v2 share a neighbour that no spanning face contains.

    Collapsing such an edge would fold the surrounding triangle fan onto
    itself.
    """
    covered = set()
    for fi in spanning:
        covered.update(graph.faces[fi].verts)

    common = graph.neighbors(v1) & graph.neighbors(v2)
    return any(c not in covered for c in common)


def _creates_duplicate_face(graph: WorkingGraph, keep: int, drop: int, spanning) -> bool:
    """
    True when moving a face of ``drop`` onto ``keep`` would give it the same
    vertices as a face ``keep`` already has.

    This is the tetrahedron case: collapsing any of its edges leaves two
    coincident triangles.
    """
    existing = {frozenset(graph.faces[fi].verts) for fi in graph.live_faces_of(keep)
                if fi not in spanning}
    for fi in graph.live_faces_of(drop):
        if fi in spanning:
            continue
        moved = frozenset(keep if v == drop else v for v in graph.faces[fi].verts)
        if moved in existing:
            return True
    return False


def collapse_edge(graph: WorkingGraph, handle: int, threshold: float) -> CollapseOutcome:
    """
    Attempt to collapse an edge popped from the queue.

    The edge is marked removed first, whatever the outcome, so it is never
    attempted twice.

    Args:
        graph: Working graph, mutated in place on success
        handle: Edge to collapse
        threshold: Maximum edge length that may be collapsed

    Returns:
        CollapseOutcome describing what happened
    """
    edge = graph.edges[handle]
    if edge.removed:
        return CollapseOutcome.ALREADY_REMOVED
    edge.removed = True

    if graph.edge_length(handle) > threshold:
        return CollapseOutcome.TOO_LONG

    keep, drop = edge.v1, edge.v2
    spanning = graph.faces_with(keep, drop)
    if len(spanning) != 2:
        logger.debug("Skipping edge (%d, %d): spans %d live faces", keep, drop, len(spanning))
        return CollapseOutcome.NOT_MANIFOLD

    if _is_super_triangle(graph, keep, drop, spanning):
        logger.debug("Skipping super-triangle at edge (%d, %d)", keep, drop)
        return CollapseOutcome.SUPER_TRIANGLE

    if _creates_duplicate_face(graph, keep, drop, spanning):
        logger.debug("Skipping edge (%d, %d): would duplicate a face", keep, drop)
        return CollapseOutcome.DUPLICATE_FACE

    v_keep = graph.vertices[keep]
    v_drop = graph.vertices[drop]

    # Retire every edge around both endpoints
    for eh in v_keep.edges:
        graph.edges[eh].removed = True
    for eh in v_drop.edges:
        graph.edges[eh].removed = True

    v_keep.coords = edge.target.copy()
    v_keep.quadric = edge.quadric.copy()
    v_drop.collapsed = True

    for fi in spanning:
        graph.faces[fi].collapsed = True

    for fi in v_drop.faces:
        face = graph.faces[fi]
        if face.collapsed or drop not in face.verts:
            continue
        face.verts[face.verts.index(drop)] = keep
        v_keep.faces.append(fi)

    v_keep.edges = [eh for eh in v_keep.edges if eh != handle]
    keep_neighbors = {graph.edges[eh].other(keep) for eh in v_keep.edges}

    for eh in v_drop.edges:
        if eh == handle:
            continue
        moved = graph.edges[eh]
        if moved.v1 == drop:
            moved.v1 = keep
            neighbor = moved.v2
        elif moved.v2 == drop:
            moved.v2 = keep
            neighbor = moved.v1
        else:
            raise RuntimeError(f"Edge {eh} is listed on vertex {drop} but does not reference it")

        if neighbor in keep_neighbors:
            # Would duplicate an existing edge of keep
            moved.removed = True
        else:
            v_keep.edges.append(eh)
            keep_neighbors.add(neighbor)

    v_drop.faces = []
    v_drop.edges = []

    for eh in v_keep.edges:
        calculate_edge_error(graph, eh)

    return CollapseOutcome.COLLAPSED
