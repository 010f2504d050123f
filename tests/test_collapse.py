"""Tests for edge error evaluation and the collapse operator."""
import numpy as np
import pytest

from qemesh.collapse import CollapseOutcome, calculate_edge_error, collapse_edge
from qemesh.graph import WorkingGraph
from qemesh.mesh import FlatMesh


def _make_split_tetrahedron():
    """
    Tetrahedron whose base (1, 2, 3) is split at its centre vertex 4.

    Closed and manifold; vertices 1 and 2 share neighbours 0, 3 and 4 but
    only 0 and 4 lie on faces spanning the edge (1, 2).
    """
    vertices = [
        [0.0, 0.0, 1.0],
        [1.0, 0.0, 0.0],
        [-0.5, 0.866, 0.0],
        [-0.5, -0.866, 0.0],
        [0.0, 0.0, 0.0],
    ]
    faces = [[0, 1, 2], [0, 2, 3], [0, 3, 1], [1, 2, 4], [2, 3, 4], [3, 1, 4]]
    mesh = FlatMesh(name="split_tetra", vertices=vertices, faces=faces)
    return WorkingGraph.from_buffers(mesh.vertex_buffer(), mesh.index_buffer())


def _graph(mesh):
    graph = WorkingGraph.from_buffers(mesh.vertex_buffer(), mesh.index_buffer())
    for handle in range(len(graph.edges)):
        calculate_edge_error(graph, handle)
    return graph


def _handle(graph, a, b):
    for handle, edge in enumerate(graph.edges):
        if (edge.v1, edge.v2) == (a, b):
            return handle
    raise KeyError((a, b))


class TestCalculateEdgeError:

    def test_error_matches_target(self, cube_mesh):
        graph = _graph(cube_mesh)
        for edge in graph.edges:
            assert edge.error == pytest.approx(edge.quadric.vertex_error(*edge.target))
            expected = graph.vertices[edge.v1].quadric + graph.vertices[edge.v2].quadric
            assert np.allclose(edge.quadric.values, expected.values)

    def test_flat_grid_has_zero_error(self, grid_mesh):
        graph = _graph(grid_mesh)
        for edge in graph.edges:
            assert edge.error == pytest.approx(0.0, abs=1e-12)
            # Singular quadric on a plane: the first endpoint wins the tie
            assert np.allclose(edge.target, graph.vertices[edge.v1].coords)


class TestCollapseEdge:

    def test_interior_collapse(self, grid_mesh):
        graph = _graph(grid_mesh)
        handle = _handle(graph, 7, 8)
        old_edges = set(graph.vertices[7].edges) | set(graph.vertices[8].edges)

        outcome = collapse_edge(graph, handle, float("inf"))

        assert outcome is CollapseOutcome.COLLAPSED
        assert graph.vertices[8].collapsed
        assert not graph.vertices[7].collapsed
        assert np.allclose(graph.vertices[7].coords, [1.0, 1.0, 0.0])
        assert graph.live_face_count() == 48
        assert all(graph.edges[eh].removed for eh in old_edges)
        for fi in range(len(graph.faces)):
            face = graph.faces[fi]
            if not face.collapsed:
                assert 8 not in face.verts
                assert len(set(face.verts)) == 3

    def test_collapsed_graph_exports_valid_mesh(self, grid_mesh):
        graph = _graph(grid_mesh)
        collapse_edge(graph, _handle(graph, 7, 8), float("inf"))
        vertices, faces = graph.export()
        assert vertices.shape == (35, 3)
        assert faces.shape == (48, 3)
        assert faces.min() >= 0
        assert faces.max() < 35
        assert all(len(set(f)) == 3 for f in faces.tolist())

    def test_second_attempt_is_already_removed(self, grid_mesh):
        graph = _graph(grid_mesh)
        handle = _handle(graph, 7, 8)
        collapse_edge(graph, handle, float("inf"))
        assert collapse_edge(graph, handle, float("inf")) is CollapseOutcome.ALREADY_REMOVED

    def test_threshold_rejects_long_edge(self, grid_mesh):
        graph = _graph(grid_mesh)
        handle = _handle(graph, 7, 8)
        assert collapse_edge(graph, handle, 0.5) is CollapseOutcome.TOO_LONG
        assert graph.edges[handle].removed
        assert graph.live_face_count() == 50
        assert not graph.vertices[8].collapsed

    def test_threshold_is_inclusive(self, grid_mesh):
        graph = _graph(grid_mesh)
        assert collapse_edge(graph, _handle(graph, 7, 8), 1.0) is CollapseOutcome.COLLAPSED

    def test_super_triangle_rejected(self):
        graph = _make_split_tetrahedron()
        for handle in range(len(graph.edges)):
            calculate_edge_error(graph, handle)
        handle = _handle(graph, 1, 2)
        assert collapse_edge(graph, handle, float("inf")) is CollapseOutcome.SUPER_TRIANGLE
        assert graph.edges[handle].removed
        assert graph.live_face_count() == 6

    def test_valence_three_vertex_collapses(self):
        graph = _make_split_tetrahedron()
        for handle in range(len(graph.edges)):
            calculate_edge_error(graph, handle)
        outcome = collapse_edge(graph, _handle(graph, 1, 4), float("inf"))
        assert outcome is CollapseOutcome.COLLAPSED
        assert graph.live_face_count() == 4
        assert graph.vertices[4].collapsed

    def test_not_manifold_when_spanning_face_gone(self, grid_mesh):
        graph = _graph(grid_mesh)
        handle = _handle(graph, 7, 8)
        graph.faces[graph.edges[handle].faces[0]].collapsed = True
        assert collapse_edge(graph, handle, float("inf")) is CollapseOutcome.NOT_MANIFOLD
        assert not graph.vertices[8].collapsed

    def test_tetrahedron_edge_would_duplicate_face(self):
        mesh = FlatMesh(
            name="tetra",
            vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]],
            faces=[[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]],
        )
        graph = _graph(mesh)
        assert len(graph.edges) == 6
        for handle in range(len(graph.edges)):
            assert collapse_edge(graph, handle, float("inf")) is CollapseOutcome.DUPLICATE_FACE
        assert graph.live_face_count() == 4
