"""
Working Topology Graph
======================

Mutable vertex/face/edge graph used for the duration of one decimation
pass. Entities live in flat lists and refer to each other through integer
handles (list indices), so the graph never holds reference cycles.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from .boundary import edge_occurrences
from .exceptions import InvalidTopology
from .qem import Quadric, plane_quadric

logger = logging.getLogger(__name__)


@dataclass
class WorkingVertex:
    """A vertex of the working graph."""
    coords: np.ndarray
    quadric: Quadric = field(default_factory=Quadric)
    faces: List[int] = field(default_factory=list)
    edges: List[int] = field(default_factory=list)
    final_index: int = -1
    collapsed: bool = False


@dataclass
class WorkingFace:
    """A triangle of the working graph with its plane quadric."""
    verts: List[int]
    kp: Quadric
    edges: List[int] = field(default_factory=list)
    collapsed: bool = False


@dataclass
class WorkingEdge:
    """A collapsible interior edge and its cached collapse."""
    v1: int
    v2: int
    faces: List[int]
    quadric: Optional[Quadric] = None
    target: Optional[np.ndarray] = None
    error: float = 0.0
    removed: bool = False

    def other(self, vertex: int) -> int:
        """Endpoint opposite to ``vertex``."""
        if self.v1 == vertex:
            return self.v2
        if self.v2 == vertex:
            return self.v1
        raise RuntimeError(f"Edge ({self.v1}, {self.v2}) does not reference vertex {vertex}")


def _as_flat_positions(positions) -> np.ndarray:
    flat = np.asarray(positions, dtype=float).reshape(-1)
    if len(flat) % 3 != 0:
        raise InvalidTopology(
            f"Vertex buffer length {len(flat)} is not a multiple of 3")
    return flat


def _as_flat_indices(indices) -> np.ndarray:
    flat = np.asarray(indices).reshape(-1)
    if len(flat) % 3 != 0:
        raise InvalidTopology(
            f"Index buffer length {len(flat)} is not a multiple of 3")
    if len(flat) and not np.issubdtype(flat.dtype, np.integer):
        if not np.all(np.mod(flat, 1) == 0):
            raise InvalidTopology("Index buffer contains non-integer values")
    return flat.astype(np.int64)


class WorkingGraph:
    """
    Arena of working vertices, faces and edges.

    Only edges used by exactly two faces, with neither endpoint on the mesh
    boundary, become WorkingEdges. Everything else stays implicit in the
    faces and is never collapsed.
    """

    def __init__(self):
        self.vertices: List[WorkingVertex] = []
        self.faces: List[WorkingFace] = []
        self.edges: List[WorkingEdge] = []
        self.boundary_vertices: Set[int] = set()
        self.boundary_edge_count = 0
        self.non_manifold_edge_count = 0

    @classmethod
    def from_buffers(cls, positions: Sequence[float],
                     indices: Sequence[int],
                     quadrics: Optional[Sequence[Quadric]] = None) -> "WorkingGraph":
        """
        Build the graph from flat buffers.

        Args:
            positions: Flat vertex positions, 3 floats per vertex
            indices: Flat 0-based triangle indices, 3 per face
            quadrics: Accumulated quadric per vertex, carried over from an
                earlier graph. When omitted each vertex quadric is the sum of
                the plane quadrics of its faces.

        Returns:
            Populated graph (edge errors are not computed yet)

        Raises:
            InvalidTopology: on malformed buffers, out-of-range indices or a
                triangle that repeats a vertex
        """
        flat_positions = _as_flat_positions(positions)
        flat_indices = _as_flat_indices(indices)
        n_vertices = len(flat_positions) // 3
        triangles = flat_indices.reshape(-1, 3).tolist()
        if quadrics is not None and len(quadrics) != n_vertices:
            raise ValueError(
                f"Got {len(quadrics)} quadrics for {n_vertices} vertices")

        graph = cls()
        for i in range(n_vertices):
            graph.vertices.append(WorkingVertex(coords=flat_positions[i * 3:i * 3 + 3].copy()))
            if quadrics is not None:
                graph.vertices[i].quadric = quadrics[i].copy()

        for fi, (a, b, c) in enumerate(triangles):
            for vi in (a, b, c):
                if vi < 0 or vi >= n_vertices:
                    raise InvalidTopology(
                        f"Face {fi} references vertex {vi}, mesh has {n_vertices} vertices",
                        face_index=fi, vertex_index=vi)
            if a == b or b == c or a == c:
                raise InvalidTopology(
                    f"Face {fi} repeats a vertex: ({a}, {b}, {c})", face_index=fi)

            kp = plane_quadric(graph.vertices[a].coords,
                               graph.vertices[b].coords,
                               graph.vertices[c].coords)
            graph.faces.append(WorkingFace(verts=[a, b, c], kp=kp))
            for vi in (a, b, c):
                graph.vertices[vi].faces.append(fi)
                if quadrics is None:
                    graph.vertices[vi].quadric.add(kp)

        occurrences = edge_occurrences(triangles)
        for (a, b), face_ids in occurrences.items():
            if len(face_ids) == 1:
                graph.boundary_edge_count += 1
                graph.boundary_vertices.add(a)
                graph.boundary_vertices.add(b)
            elif len(face_ids) != 2:
                graph.non_manifold_edge_count += 1

        for (a, b) in sorted(occurrences):
            face_ids = occurrences[(a, b)]
            if len(face_ids) != 2:
                continue
            if a in graph.boundary_vertices or b in graph.boundary_vertices:
                continue
            handle = len(graph.edges)
            graph.edges.append(WorkingEdge(v1=a, v2=b, faces=list(face_ids)))
            for fi in face_ids:
                graph.faces[fi].edges.append(handle)
            graph.vertices[a].edges.append(handle)
            graph.vertices[b].edges.append(handle)

        logger.debug(
            "Built working graph: %d vertices, %d faces, %d collapsible edges "
            "(%d boundary, %d non-manifold edges excluded)",
            len(graph.vertices), len(graph.faces), len(graph.edges),
            graph.boundary_edge_count, graph.non_manifold_edge_count)

        return graph

    def live_face_count(self) -> int:
        """Number of faces that have not been collapsed."""
        return sum(1 for f in self.faces if not f.collapsed)

    def live_vertex_count(self) -> int:
        return sum(1 for v in self.vertices if not v.collapsed)

    def edge_length(self, handle: int) -> float:
        """Euclidean distance between the endpoints of an edge."""
        edge = self.edges[handle]
        return float(np.linalg.norm(self.vertices[edge.v1].coords - self.vertices[edge.v2].coords))

    def live_faces_of(self, vertex: int) -> List[int]:
        return [fi for fi in self.vertices[vertex].faces if not self.faces[fi].collapsed]

    def faces_with(self, a: int, b: int) -> List[int]:
        """Live faces containing both vertices."""
        return [fi for fi in self.live_faces_of(a) if b in self.faces[fi].verts]

    def neighbors(self, vertex: int) -> Set[int]:
        """Vertices sharing a live face with ``vertex``."""
        result = set()
        for fi in self.live_faces_of(vertex):
            result.update(self.faces[fi].verts)
        result.discard(vertex)
        return result

    def live_quadrics(self) -> List[Quadric]:
        """Accumulated quadrics of the live vertices, in export order."""
        return [v.quadric.copy() for v in self.vertices if not v.collapsed]

    def export(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Serialize the surviving graph.

        Live vertices get dense final indices in their original order, and
        every live face whose three vertices are live is emitted in order.

        Returns:
            Tuple of ((N, 3) float vertex array, (M, 3) int face array)
        """
        positions = []
        next_index = 0
        for v in self.vertices:
            if not v.collapsed:
                v.final_index = next_index
                positions.append(v.coords)
                next_index += 1

        triangles = []
        for f in self.faces:
            if f.collapsed:
                continue
            if any(self.vertices[vi].collapsed for vi in f.verts):
                continue
            triangles.append([self.vertices[vi].final_index for vi in f.verts])

        vertices = np.array(positions, dtype=float).reshape(-1, 3)
        faces = np.array(triangles, dtype=np.int64).reshape(-1, 3)
        return vertices, faces
