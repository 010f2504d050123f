"""
Mesh Evaluation Module
======================

Quantitative evaluation of a decimated mesh against its original:
- Vertex/Face count statistics
- Hausdorff and Chamfer distances
- Boundary preservation metrics
"""

import logging
import numpy as np
from typing import Dict, Tuple
import trimesh
from scipy.spatial import cKDTree

from .boundary import boundary_edges, boundary_loops
from .exceptions import MalformedBoundary

logger = logging.getLogger(__name__)


def _vertices_faces(mesh) -> Tuple[np.ndarray, np.ndarray]:
    return (np.asarray(mesh.vertices, dtype=float).reshape(-1, 3),
            np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3))


class MeshEvaluator:
    """
    Evaluation tools for assessing mesh simplification quality.

    Works on FlatMesh and trimesh.Trimesh alike.
    """

    def __init__(self, sample_points: int = 10000):
        """
        Initialize evaluator.

        Args:
            sample_points: Number of surface samples for distance metrics.
                0 compares the vertex sets directly, which is deterministic.
        """
        self.sample_points = sample_points

    def compute_all_metrics(self, original, simplified) -> Dict[str, float]:
        """
        Compute all available metrics.

        Args:
            original: Original high-resolution mesh
            simplified: Simplified mesh

        Returns:
            Dictionary of metric names to values
        """
        orig_vertices, orig_faces = _vertices_faces(original)
        simp_vertices, simp_faces = _vertices_faces(simplified)

        metrics = {}
        metrics['original_faces'] = len(orig_faces)
        metrics['simplified_faces'] = len(simp_faces)
        metrics['original_vertices'] = len(orig_vertices)
        metrics['simplified_vertices'] = len(simp_vertices)
        metrics['face_reduction_ratio'] = len(simp_faces) / max(1, len(orig_faces))
        metrics['vertex_reduction_ratio'] = len(simp_vertices) / max(1, len(orig_vertices))

        hausdorff, hausdorff_forward, hausdorff_backward = self.hausdorff_distance(
            original, simplified
        )
        metrics['hausdorff_distance'] = hausdorff
        metrics['hausdorff_forward'] = hausdorff_forward
        metrics['hausdorff_backward'] = hausdorff_backward
        metrics['chamfer_distance'] = self.chamfer_distance(original, simplified)

        metrics['original_area'] = self._area(orig_vertices, orig_faces)
        metrics['simplified_area'] = self._area(simp_vertices, simp_faces)
        metrics['area_error'] = abs(metrics['simplified_area'] - metrics['original_area']) / \
            max(metrics['original_area'], 1e-10)

        metrics.update(self.boundary_preservation_metrics(original, simplified))

        return metrics

    def _area(self, vertices: np.ndarray, faces: np.ndarray) -> float:
        if len(faces) == 0:
            return 0.0
        triangles = vertices[faces]
        cross = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
        return float(np.linalg.norm(cross, axis=1).sum() / 2)

    def _sample(self, mesh) -> np.ndarray:
        vertices, faces = _vertices_faces(mesh)
        if self.sample_points <= 0 or len(faces) == 0:
            return vertices
        tm = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
        points, _ = trimesh.sample.sample_surface(tm, self.sample_points)
        return points

    def _nearest_distances(self, mesh1, mesh2) -> Tuple[np.ndarray, np.ndarray]:
        points1 = self._sample(mesh1)
        points2 = self._sample(mesh2)
        if len(points1) == 0 or len(points2) == 0:
            return np.array([np.nan]), np.array([np.nan])

        tree1 = cKDTree(points1)
        tree2 = cKDTree(points2)

        # Forward distance (mesh1 -> mesh2), backward distance (mesh2 -> mesh1)
        distances_forward, _ = tree2.query(points1)
        distances_backward, _ = tree1.query(points2)
        return distances_forward, distances_backward

    def hausdorff_distance(self, mesh1, mesh2) -> Tuple[float, float, float]:
        """
        Compute symmetric Hausdorff distance between two meshes.

        Returns:
            Tuple of (symmetric_hausdorff, forward, backward) distances
        """
        forward, backward = self._nearest_distances(mesh1, mesh2)
        hausdorff_forward = float(np.max(forward))
        hausdorff_backward = float(np.max(backward))
        return max(hausdorff_forward, hausdorff_backward), hausdorff_forward, hausdorff_backward

    def chamfer_distance(self, mesh1, mesh2) -> float:
        """
        Compute symmetric Chamfer distance between two meshes.

        Sum over both directions of the mean squared nearest-neighbour distance.
        """
        forward, backward = self._nearest_distances(mesh1, mesh2)
        return float(np.mean(forward ** 2)) + float(np.mean(backward ** 2))

    def boundary_preservation_metrics(self, original, simplified) -> Dict[str, float]:
        """
        Compute metrics for boundary preservation.

        Returns:
            Dictionary of boundary metrics
        """
        metrics = {}

        orig_vertices, orig_faces = _vertices_faces(original)
        simp_vertices, simp_faces = _vertices_faces(simplified)
        orig_boundaries = boundary_edges(orig_faces.tolist())
        simp_boundaries = boundary_edges(simp_faces.tolist())

        metrics['original_boundary_edges'] = len(orig_boundaries)
        metrics['simplified_boundary_edges'] = len(simp_boundaries)
        metrics['original_boundary_loops'] = self._count_loops(orig_boundaries)
        metrics['simplified_boundary_loops'] = self._count_loops(simp_boundaries)

        orig_length = self._compute_boundary_length(orig_vertices, orig_boundaries)
        simp_length = self._compute_boundary_length(simp_vertices, simp_boundaries)
        metrics['original_boundary_length'] = orig_length
        metrics['simplified_boundary_length'] = simp_length

        if orig_length > 0:
            metrics['boundary_length_change'] = abs(simp_length - orig_length) / orig_length
        else:
            metrics['boundary_length_change'] = 0.0

        return metrics

    def _count_loops(self, edges) -> float:
        try:
            return len(boundary_loops(edges))
        except MalformedBoundary as e:
            logger.warning("Cannot count boundary loops: %s", e)
            return np.nan

    def _compute_boundary_length(self, vertices: np.ndarray, edges) -> float:
        """Compute total length of boundary edges."""
        total_length = 0.0
        for a, b in edges:
            total_length += float(np.linalg.norm(vertices[b] - vertices[a]))
        return total_length

    def generate_report(self, metrics: Dict[str, float],
                        method_name: str = "QEM") -> str:
        """
        Generate a human-readable evaluation report.

        Args:
            metrics: Dictionary of metric values
            method_name: Name of the simplification run

        Returns:
            Formatted report string
        """
        lines = [
            "=" * 60,
            f"Mesh Simplification Report - {method_name}",
            "=" * 60,
            "",
            "MESH STATISTICS",
            "-" * 40,
            f"  Original:    {metrics.get('original_faces', 'N/A'):>8} faces, "
            f"{metrics.get('original_vertices', 'N/A'):>8} vertices",
            f"  Simplified:  {metrics.get('simplified_faces', 'N/A'):>8} faces, "
            f"{metrics.get('simplified_vertices', 'N/A'):>8} vertices",
            f"  Reduction:   {metrics.get('face_reduction_ratio', 0)*100:>7.2f}% of original faces",
            "",
            "GEOMETRIC ACCURACY",
            "-" * 40,
            f"  Hausdorff Distance:    {metrics.get('hausdorff_distance', np.nan):>12.6f}",
            f"    Forward:             {metrics.get('hausdorff_forward', np.nan):>12.6f}",
            f"    Backward:            {metrics.get('hausdorff_backward', np.nan):>12.6f}",
            f"  Chamfer Distance:      {metrics.get('chamfer_distance', np.nan):>12.6f}",
            f"  Area Error:            {metrics.get('area_error', 0)*100:>11.4f}%",
            "",
            "BOUNDARY PRESERVATION",
            "-" * 40,
            f"  Original Boundaries:   {metrics.get('original_boundary_edges', 0):>8} edges",
            f"  Simplified Boundaries: {metrics.get('simplified_boundary_edges', 0):>8} edges",
            f"  Original Loops:        {metrics.get('original_boundary_loops', 0):>8}",
            f"  Simplified Loops:      {metrics.get('simplified_boundary_loops', 0):>8}",
            f"  Length Change:         {metrics.get('boundary_length_change', 0)*100:>11.4f}%",
            "",
            "=" * 60,
        ]

        if 'runtime' in metrics:
            lines.insert(-1, f"  Runtime:               {metrics['runtime']:>11.4f} seconds")

        return "\n".join(lines)

    def print_report(self, metrics: Dict[str, float], method_name: str = "QEM"):
        """Print the evaluation report to console."""
        print(self.generate_report(metrics, method_name))
