"""Tests for the matplotlib visualizations."""
import matplotlib.pyplot as plt
import numpy as np
import pytest

from qemesh.mesh_decimator import MeshDecimator
from qemesh.visualization import MeshVisualizer


@pytest.fixture
def visualizer():
    return MeshVisualizer(figsize=(6, 3))


class TestMeshVisualizer:

    def test_comparison(self, visualizer, grid_mesh, tmp_path):
        simplified = MeshDecimator().decimate(grid_mesh, target_faces=30)
        path = tmp_path / "comparison.png"
        fig = visualizer.plot_mesh_comparison(grid_mesh, simplified, save_path=str(path))
        assert len(fig.axes) == 2
        assert path.exists()
        plt.close(fig)

    def test_boundaries_drawn(self, visualizer, open_square):
        fig = plt.figure()
        ax = fig.add_subplot(1, 1, 1, projection='3d')
        center, scale = visualizer._normalization(open_square.vertices)
        assert visualizer._plot_boundaries(ax, open_square, center, scale) == 1
        plt.close(fig)

    def test_malformed_boundaries_skipped(self, visualizer, fin_mesh):
        fig = visualizer.plot_mesh_comparison(fin_mesh, fin_mesh)
        assert len(fig.axes) == 2
        plt.close(fig)

    def test_error_heatmap(self, visualizer, sphere_mesh, tmp_path):
        errors = MeshDecimator().get_vertex_errors(sphere_mesh)
        path = tmp_path / "heatmap.png"
        fig = visualizer.plot_error_heatmap(sphere_mesh, errors, save_path=str(path))
        assert path.exists()
        plt.close(fig)

    def test_error_heatmap_constant_errors(self, visualizer, cube_mesh):
        fig = visualizer.plot_error_heatmap(cube_mesh, np.zeros(8))
        plt.close(fig)

    def test_multi_resolution(self, visualizer, sphere_mesh):
        decimator = MeshDecimator()
        meshes = [sphere_mesh] + [decimator.decimate(sphere_mesh, target_ratio=r)
                                  for r in (0.5, 0.25)]
        fig = visualizer.plot_multi_resolution(meshes, labels=["full"])
        assert len(fig.axes) == 3
        assert fig.axes[0].get_title() == "full"
        plt.close(fig)
