"""
Mesh Decimator
==============

Quadric edge collapse decimation driver: builds the working graph, feeds
its collapsible edges through an indexed priority queue, collapses the
cheapest ones until the face budget is spent or the queue runs dry, and
exports the surviving mesh as flat buffers.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
import trimesh

from .collapse import CollapseOutcome, calculate_edge_error, collapse_edge
from .edge_heap import EdgeHeap
from .graph import WorkingGraph
from .mesh import FlatMesh
from .qem import plane_quadric, Quadric

logger = logging.getLogger(__name__)


@dataclass
class DecimationConfig:
    """Parameters of a decimation run."""

    threshold: float = float("inf")
    target_face_count: Optional[int] = None
    target_ratio: Optional[float] = None
    safer_mode: bool = False

    def resolve_target(self, face_count: int) -> int:
        """Target face count for a mesh with ``face_count`` faces."""
        if self.target_face_count is None and self.target_ratio is None:
            raise ValueError("Must specify either target_face_count or target_ratio")
        if self.target_face_count is not None:
            if self.target_face_count < 0:
                raise ValueError("target_face_count must be >= 0")
            return int(self.target_face_count)
        return max(4, int(face_count * self.target_ratio))


@dataclass
class DecimationResult:
    """Output buffers and statistics of a decimation run."""

    vertices: np.ndarray
    faces: np.ndarray
    initial_vertex_count: int
    initial_face_count: int
    target_face_count: int
    collapses: int = 0
    attempts: int = 0
    passes: int = 0
    cancelled: bool = False
    rejections: Dict[str, int] = field(default_factory=dict)
    history: List[dict] = field(default_factory=list)

    @property
    def vertex_buffer(self) -> List[float]:
        return self.vertices.reshape(-1).tolist()

    @property
    def index_buffer(self) -> List[int]:
        return self.faces.reshape(-1).tolist()

    @property
    def reached_target(self) -> bool:
        return len(self.faces) <= self.target_face_count


def _run_pass(graph: WorkingGraph, budget: int, threshold: float,
              result: DecimationResult,
              progress_callback: Optional[Callable[[float], None]],
              should_stop: Optional[Callable[[], bool]],
              total_budget: int) -> int:
    """Collapse up to ``budget`` edges of one working graph."""
    for handle in range(len(graph.edges)):
        calculate_edge_error(graph, handle)

    queue = EdgeHeap(key=lambda h: graph.edges[h].error)
    queue.heapify(range(len(graph.edges)))

    collapsed = 0
    last_progress = 0.0
    while len(queue) > 0 and collapsed < budget:
        if should_stop is not None and should_stop():
            result.cancelled = True
            break

        handle = queue.pop()
        edge = graph.edges[handle]
        if edge.removed:
            continue

        result.attempts += 1
        keep, drop = edge.v1, edge.v2
        error = edge.error
        outcome = collapse_edge(graph, handle, threshold)

        if outcome is not CollapseOutcome.COLLAPSED:
            result.rejections[outcome.value] = result.rejections.get(outcome.value, 0) + 1
            continue

        collapsed += 1
        result.collapses += 1
        queue.update(graph.vertices[keep].edges)

        result.history.append({
            'pass': result.passes,
            'edge': (keep, drop),
            'error': error,
            'target': graph.vertices[keep].coords.copy(),
        })

        if progress_callback is not None:
            progress = result.collapses / max(1, total_budget)
            if progress - last_progress >= 0.05:  # Update every 5%
                progress_callback(min(1.0, progress))
                last_progress = progress

    return collapsed


def decimate_buffers(positions: Sequence[float], indices: Sequence[int],
                     threshold: float = float("inf"),
                     target_face_count: int = 0,
                     safer_mode: bool = False,
                     progress_callback: Optional[Callable[[float], None]] = None,
                     should_stop: Optional[Callable[[], bool]] = None) -> DecimationResult:
    """
    Quadric edge collapse decimation on flat buffers.

    Every successful collapse removes exactly two faces, so the run aims for
    (initial_faces - target_face_count) // 2 collapses. Rejected attempts do
    not count; running out of candidate edges early is not an error.

    Within a pass an edge is never revisited and both endpoints of a
    collapse retire all their edges, so each vertex takes part in at most
    one collapse per pass. With ``safer_mode`` only one pass is made;
    otherwise the surviving mesh is rebuilt, keeping each vertex's
    accumulated quadric, and decimated again while the budget is unmet and
    the previous pass made progress.

    Args:
        positions: Flat vertex positions (3 per vertex)
        indices: Flat 0-based triangle indices (3 per face)
        threshold: Maximum length of an edge that may be collapsed
        target_face_count: Desired number of faces
        safer_mode: Limit the run to a single pass
        progress_callback: Called with the fraction of the budget spent
        should_stop: Polled between collapses; returning True stops the run
            and exports the collapses made so far

    Returns:
        DecimationResult with the new buffers and run statistics

    Raises:
        InvalidTopology: if the index buffer is malformed
    """
    if target_face_count < 0:
        raise ValueError("target_face_count must be >= 0")

    graph = WorkingGraph.from_buffers(positions, indices)
    initial_faces = len(graph.faces)
    total_budget = max(0, (initial_faces - target_face_count) // 2)

    logger.info("Starting decimation: %d -> %d faces (up to %d collapses)",
                initial_faces, target_face_count, total_budget)
    logger.info("  Boundary edges: %d, non-manifold edges: %d",
                graph.boundary_edge_count, graph.non_manifold_edge_count)

    result = DecimationResult(
        vertices=np.zeros((0, 3)),
        faces=np.zeros((0, 3), dtype=np.int64),
        initial_vertex_count=len(graph.vertices),
        initial_face_count=initial_faces,
        target_face_count=target_face_count,
    )

    while True:
        budget = total_budget - result.collapses
        collapsed = 0
        if budget > 0:
            result.passes += 1
            collapsed = _run_pass(graph, budget, threshold, result,
                                  progress_callback, should_stop, total_budget)
            logger.debug("Pass %d: %d collapses", result.passes, collapsed)

        vertices, faces = graph.export()
        if (safer_mode or collapsed == 0 or result.cancelled
                or result.collapses >= total_budget):
            break
        graph = WorkingGraph.from_buffers(vertices, faces, quadrics=graph.live_quadrics())

    result.vertices = vertices
    result.faces = faces

    if result.collapses < total_budget and not result.cancelled:
        logger.info("No more valid edges to collapse")
    logger.info("Decimation complete: %d faces, %d collapses in %d pass(es)",
                len(faces), result.collapses, result.passes)

    return result


class MeshDecimator:
    """
    Mesh simplification using Quadric Error Metrics (QEM).

    Works on anything that exposes ``vertices`` (N, 3) and ``faces`` (M, 3):
    FlatMesh and trimesh.Trimesh inputs come back as the same type, any
    other object comes back as a FlatMesh.
    """

    def __init__(self, threshold: float = float("inf"), safer_mode: bool = False):
        """
        Initialize the mesh decimator.

        Args:
            threshold: Maximum edge length that may be collapsed
            safer_mode: Restrict each vertex to a single collapse per call
        """
        self.threshold = threshold
        self.safer_mode = safer_mode
        self._last_result: Optional[DecimationResult] = None

    @classmethod
    def from_config(cls, config: DecimationConfig) -> "MeshDecimator":
        return cls(threshold=config.threshold, safer_mode=config.safer_mode)

    @property
    def last_result(self) -> Optional[DecimationResult]:
        return self._last_result

    def decimate(self, mesh,
                 target_faces: Optional[int] = None,
                 target_ratio: Optional[float] = None,
                 progress_callback: Optional[Callable[[float], None]] = None,
                 should_stop: Optional[Callable[[], bool]] = None):
        """
        Decimate the mesh to target face count or ratio.

        Args:
            mesh: FlatMesh, trimesh.Trimesh or any object with vertices/faces
            target_faces: Target number of faces (mutually exclusive with target_ratio)
            target_ratio: Target ratio of faces to keep (0.0 to 1.0)
            progress_callback: Optional callback for progress updates
            should_stop: Optional cancellation check

        Returns:
            Simplified mesh
        """
        faces = np.asarray(mesh.faces)
        config = DecimationConfig(threshold=self.threshold,
                                  target_face_count=target_faces,
                                  target_ratio=target_ratio,
                                  safer_mode=self.safer_mode)
        target = config.resolve_target(len(faces))

        result = decimate_buffers(
            np.asarray(mesh.vertices, dtype=float), faces,
            threshold=self.threshold,
            target_face_count=target,
            safer_mode=self.safer_mode,
            progress_callback=progress_callback,
            should_stop=should_stop,
        )
        self._last_result = result

        if isinstance(mesh, trimesh.Trimesh):
            return trimesh.Trimesh(vertices=result.vertices, faces=result.faces, process=False)

        name = getattr(mesh, 'name', '') or ''
        return FlatMesh(name=name, vertices=result.vertices, faces=result.faces)

    def get_collapse_history(self) -> List[dict]:
        """Get the history of edge collapses performed by the last call."""
        return list(self._last_result.history) if self._last_result else []

    def get_vertex_errors(self, mesh) -> np.ndarray:
        """
        Compute the quadric error at each vertex of a mesh.

        Each vertex quadric is the sum of the plane quadrics of its faces.
        Useful for error visualization after decimation.
        """
        vertices = np.asarray(mesh.vertices, dtype=float)
        faces = np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3)

        quadrics = [Quadric() for _ in range(len(vertices))]
        for a, b, c in faces.tolist():
            kp = plane_quadric(vertices[a], vertices[b], vertices[c])
            for vi in (a, b, c):
                quadrics[vi].add(kp)

        errors = np.zeros(len(vertices))
        for i, (v, Q) in enumerate(zip(vertices, quadrics)):
            errors[i] = Q.vertex_error(*v)

        return errors
