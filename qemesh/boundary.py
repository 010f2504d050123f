"""
Boundary and Edge Classification
================================

Classifies the undirected edges of a triangle mesh by how many faces use
them and stitches boundary edges into closed, ordered vertex loops.

- boundary edge: used by exactly one face
- manifold edge: used by exactly two faces
- non-manifold edge: any other count
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .exceptions import MalformedBoundary

Edge = Tuple[int, int]


def edge_key(a: int, b: int) -> Edge:
    """Undirected edge key with the lower vertex index first."""
    return (a, b) if a < b else (b, a)


def edge_occurrences(faces: Iterable[Sequence[int]]) -> Dict[Edge, List[int]]:
    """
    Map every undirected edge to the indices of the faces that use it.

    Args:
        faces: Iterable of vertex index triples

    Returns:
        Dictionary of edge key -> list of face indices, in face order
    """
    occurrences: Dict[Edge, List[int]] = {}
    for fi, face in enumerate(faces):
        a, b, c = (int(v) for v in face)
        for edge in (edge_key(a, b), edge_key(b, c), edge_key(c, a)):
            occurrences.setdefault(edge, []).append(fi)
    return occurrences


def classify_edges(faces: Iterable[Sequence[int]]) -> Tuple[List[Edge], List[Edge], List[Edge]]:
    """
    Split the edges of a mesh by occurrence count.

    Returns:
        Tuple of sorted (boundary, manifold, non_manifold) edge lists
    """
    boundary, manifold, non_manifold = [], [], []
    for edge, face_ids in edge_occurrences(faces).items():
        count = len(face_ids)
        if count == 1:
            boundary.append(edge)
        elif count == 2:
            manifold.append(edge)
        else:
            non_manifold.append(edge)
    return sorted(boundary), sorted(manifold), sorted(non_manifold)


def boundary_edges(faces: Iterable[Sequence[int]]) -> List[Edge]:
    """Find all boundary edges (edges with only one adjacent face)."""
    return classify_edges(faces)[0]


def non_manifold_edges(faces: Iterable[Sequence[int]]) -> List[Edge]:
    """Find all edges shared by more than two faces."""
    return classify_edges(faces)[2]


def boundary_vertices(faces: Iterable[Sequence[int]]) -> Set[int]:
    """Vertices that touch at least one boundary edge."""
    vertices = set()
    for a, b in boundary_edges(faces):
        vertices.add(a)
        vertices.add(b)
    return vertices


def boundary_loops(edges: Iterable[Sequence[int]],
                   name: Optional[str] = None) -> List[List[int]]:
    """
    Stitch boundary edges into closed loops of vertex indices.

    The edges are normalised and sorted first, so any permutation of the same
    edge set produces the same loops in the same order. Each loop starts from
    the lowest remaining edge and is grown by the lowest remaining edge that
    touches its tail until it returns to its head.

    Args:
        edges: Undirected boundary edges as vertex index pairs
        name: Mesh name used in error messages

    Returns:
        List of loops, each a list of vertex indices without the closing repeat

    Raises:
        MalformedBoundary: if some path cannot be closed
    """
    pool = sorted({edge_key(int(a), int(b)) for a, b in edges})
    used = [False] * len(pool)

    # Incident edge positions per vertex, already in sorted order
    incident: Dict[int, List[int]] = {}
    for position, (a, b) in enumerate(pool):
        incident.setdefault(a, []).append(position)
        if b != a:
            incident.setdefault(b, []).append(position)

    loops = []
    remaining = len(pool)
    seed = 0

    while remaining > 0:
        while used[seed]:
            seed += 1
        used[seed] = True
        remaining -= 1
        path = list(pool[seed])

        while path[0] != path[-1]:
            tail = path[-1]
            next_position = None
            for position in incident.get(tail, []):
                if not used[position]:
                    next_position = position
                    break
            if next_position is None:
                raise MalformedBoundary(name, remaining)

            used[next_position] = True
            remaining -= 1
            a, b = pool[next_position]
            path.append(b if a == tail else a)

        loops.append(path[:-1])

    return loops


def identify_boundaries(faces: Iterable[Sequence[int]],
                        name: Optional[str] = None) -> List[List[int]]:
    """Closed boundary loops of a triangle mesh."""
    return boundary_loops(boundary_edges(faces), name=name)
