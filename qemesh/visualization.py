"""
Mesh Visualization Module
=========================

Matplotlib plots for comparing a mesh with its decimated version and for
showing per-vertex quadric error.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from matplotlib import cm
from mpl_toolkits.mplot3d import Axes3D
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from typing import List, Optional, Tuple

from .boundary import identify_boundaries
from .exceptions import MalformedBoundary

logger = logging.getLogger(__name__)


class MeshVisualizer:
    """
    Visualization tools for mesh simplification results.

    Provides:
    - Side-by-side mesh comparison with boundary loops highlighted
    - Error heatmap visualization
    """

    def __init__(self, figsize: Tuple[int, int] = (14, 7)):
        """
        Initialize visualizer.

        Args:
            figsize: Default figure size for plots
        """
        self.figsize = figsize
        self.error_colormap = cm.RdYlGn_r
        self.boundary_color = 'red'

    def plot_mesh_comparison(self, original, simplified,
                             title: str = "Mesh Comparison",
                             show_wireframe: bool = True,
                             show_boundaries: bool = True,
                             save_path: Optional[str] = None) -> plt.Figure:
        """
        Create side-by-side comparison of original and simplified meshes.

        Args:
            original: Original mesh
            simplified: Simplified mesh
            title: Plot title
            show_wireframe: Whether to show wireframe overlay
            show_boundaries: Whether to draw boundary loops
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        fig, axes = plt.subplots(1, 2, figsize=self.figsize,
                                 subplot_kw={'projection': '3d'})

        # Both panels share the original's normalisation so they line up
        center, scale = self._normalization(np.asarray(original.vertices, dtype=float))

        for ax, mesh, label in ((axes[0], original, "Original"),
                                (axes[1], simplified, "Simplified")):
            self._plot_single_mesh(
                ax, mesh,
                f"{label}\n({len(mesh.faces)} faces, {len(mesh.vertices)} vertices)",
                show_wireframe, center=center, scale=scale)
            if show_boundaries:
                self._plot_boundaries(ax, mesh, center, scale)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Saved comparison to %s", save_path)

        return fig

    def _normalization(self, vertices: np.ndarray) -> Tuple[np.ndarray, float]:
        if len(vertices) == 0:
            return np.zeros(3), 1.0
        center = vertices.mean(axis=0)
        scale = float(np.max(np.abs(vertices - center)))
        return center, scale if scale > 0 else 1.0

    def _to_plot_space(self, points: np.ndarray, center: np.ndarray, scale: float) -> np.ndarray:
        """Normalize to the unit cube and convert to Z-up."""
        normalized = (points - center) / scale
        rotated = normalized.copy()
        rotated[..., 0] = normalized[..., 2]   # X gets Depth
        rotated[..., 1] = normalized[..., 0]   # Y gets Width
        rotated[..., 2] = normalized[..., 1]   # Z gets Height (Standard Up)
        return rotated

    def _plot_single_mesh(self, ax: Axes3D, mesh, title: str, show_wireframe: bool,
                          vertex_colors: Optional[np.ndarray] = None,
                          center: Optional[np.ndarray] = None,
                          scale: Optional[float] = None):
        """Plot a single mesh on a 3D axis."""
        vertices = np.asarray(mesh.vertices, dtype=float)
        faces = np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3)

        if center is None or scale is None:
            center, scale = self._normalization(vertices)

        if len(faces):
            triangles = self._to_plot_space(vertices[faces], center, scale)

            if vertex_colors is not None:
                # Average vertex colors for each face
                face_colors = self.error_colormap(vertex_colors[faces].mean(axis=1))
            else:
                face_colors = self._compute_face_colors(vertices, faces)

            poly = Poly3DCollection(triangles, facecolors=face_colors,
                                    edgecolors='black' if show_wireframe else 'none',
                                    linewidths=0.1 if show_wireframe else 0,
                                    alpha=0.9)
            ax.add_collection3d(poly)

        ax.set_xlim(-1, 1)
        ax.set_ylim(-1, 1)
        ax.set_zlim(-1, 1)
        ax.set_box_aspect([1, 1, 1])

        ax.set_title(title, fontsize=10)
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_zlabel('Z')

    def _plot_boundaries(self, ax: Axes3D, mesh, center: np.ndarray, scale: float) -> int:
        """Draw every boundary loop as a closed polyline. Returns the loop count."""
        vertices = np.asarray(mesh.vertices, dtype=float)
        faces = np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3)
        try:
            loops = identify_boundaries(faces.tolist(), name=getattr(mesh, 'name', None))
        except MalformedBoundary as e:
            logger.warning("Not drawing boundaries: %s", e)
            return 0

        for loop in loops:
            points = self._to_plot_space(vertices[loop + loop[:1]], center, scale)
            ax.plot(points[:, 0], points[:, 1], points[:, 2],
                    color=self.boundary_color, linewidth=1.5)
        return len(loops)

    def _compute_face_colors(self, vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
        """Compute face colors based on normals for shading."""
        light_dir = np.array([1, 1, 2])
        light_dir = light_dir / np.linalg.norm(light_dir)

        triangles = vertices[faces]
        normals = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
        lengths = np.linalg.norm(normals, axis=1)
        valid = lengths > 0
        normals[valid] = normals[valid] / lengths[valid, None]

        # Diffuse lighting
        intensity = np.clip(normals @ light_dir, 0.2, 1.0)

        # Grayscale colors with blue tint
        colors = np.zeros((len(faces), 4))
        colors[:, 0] = 0.3 + 0.4 * intensity  # R
        colors[:, 1] = 0.4 + 0.4 * intensity  # G
        colors[:, 2] = 0.6 + 0.3 * intensity  # B
        colors[:, 3] = 1.0                     # A

        return colors

    def plot_error_heatmap(self, mesh, vertex_errors: np.ndarray,
                           title: str = "Vertex Error Heatmap",
                           save_path: Optional[str] = None) -> plt.Figure:
        """
        Visualize vertex errors as a heatmap on the mesh.

        Args:
            mesh: The mesh to visualize
            vertex_errors: Per-vertex error values
            title: Plot title
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        vertex_errors = np.asarray(vertex_errors, dtype=float)
        fig = plt.figure(figsize=self.figsize)
        ax3d = fig.add_subplot(1, 1, 1, projection='3d')

        # Normalize errors to [0, 1]
        lo = float(vertex_errors.min()) if len(vertex_errors) else 0.0
        hi = float(vertex_errors.max()) if len(vertex_errors) else 0.0
        errors_normalized = vertex_errors.copy()
        if hi > lo:
            errors_normalized = (errors_normalized - lo) / (hi - lo)
        else:
            errors_normalized = np.zeros_like(vertex_errors)

        self._plot_single_mesh(ax3d, mesh, title, show_wireframe=False,
                               vertex_colors=errors_normalized)

        sm = plt.cm.ScalarMappable(cmap=self.error_colormap, norm=plt.Normalize(lo, hi))
        sm.set_array([])
        cbar = fig.colorbar(sm, ax=ax3d, shrink=0.6, aspect=20, pad=0.1)
        cbar.set_label('Quadric Error', fontsize=10)

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Saved heatmap to %s", save_path)

        return fig

    def plot_multi_resolution(self, meshes: List, labels: Optional[List[str]] = None,
                              title: str = "Multi-Resolution Comparison",
                              save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot several decimation levels of the same mesh side by side.

        Args:
            meshes: Meshes, the first one is taken as the reference
            labels: Optional labels for each mesh
            title: Plot title
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        n = len(meshes)
        cols = min(4, n)
        rows = (n + cols - 1) // cols

        fig = plt.figure(figsize=(5 * cols, 5 * rows))
        center, scale = self._normalization(np.asarray(meshes[0].vertices, dtype=float))

        for i, mesh in enumerate(meshes):
            ax = fig.add_subplot(rows, cols, i + 1, projection='3d')

            if labels and i < len(labels):
                label = labels[i]
            else:
                ratio = len(mesh.faces) / max(1, len(meshes[0].faces))
                label = f"{len(mesh.faces)} faces ({ratio*100:.1f}%)"

            self._plot_single_mesh(ax, mesh, label, show_wireframe=True,
                                   center=center, scale=scale)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Saved multi-resolution plot to %s", save_path)

        return fig
