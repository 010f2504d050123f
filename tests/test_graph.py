"""Tests for building and exporting the working topology graph."""
import numpy as np
import pytest

from qemesh.collapse import CollapseOutcome, calculate_edge_error, collapse_edge
from qemesh.exceptions import InvalidTopology
from qemesh.graph import WorkingGraph
from qemesh.qem import Quadric


def _graph(mesh):
    return WorkingGraph.from_buffers(mesh.vertex_buffer(), mesh.index_buffer())


class TestBuildGraph:

    def test_cube_counts(self, cube_mesh):
        graph = _graph(cube_mesh)
        assert len(graph.vertices) == 8
        assert len(graph.faces) == 12
        assert len(graph.edges) == 18
        assert graph.boundary_vertices == set()
        assert graph.boundary_edge_count == 0

    def test_edges_in_sorted_pair_order(self, cube_mesh):
        graph = _graph(cube_mesh)
        pairs = [(e.v1, e.v2) for e in graph.edges]
        assert pairs == sorted(pairs)
        assert all(a < b for a, b in pairs)
        assert all(len(e.faces) == 2 for e in graph.edges)

    def test_vertex_quadric_is_sum_of_face_quadrics(self, cube_mesh):
        graph = _graph(cube_mesh)
        for vertex in graph.vertices:
            expected = Quadric()
            for fi in vertex.faces:
                expected.add(graph.faces[fi].kp)
            assert np.allclose(vertex.quadric.values, expected.values)

    def test_incidence_is_consistent(self, cube_mesh):
        graph = _graph(cube_mesh)
        for handle, edge in enumerate(graph.edges):
            assert handle in graph.vertices[edge.v1].edges
            assert handle in graph.vertices[edge.v2].edges
            for fi in edge.faces:
                assert handle in graph.faces[fi].edges
                assert edge.v1 in graph.faces[fi].verts
                assert edge.v2 in graph.faces[fi].verts

    def test_boundary_vertices_protected(self, open_square):
        graph = _graph(open_square)
        assert graph.boundary_vertices == {0, 1, 2, 3}
        assert graph.boundary_edge_count == 4
        # The shared diagonal has two faces but both ends are on the boundary
        assert graph.edges == []

    def test_non_manifold_edges_excluded(self, fin_mesh):
        graph = _graph(fin_mesh)
        assert graph.non_manifold_edge_count == 1
        assert graph.edges == []

    def test_grid_only_interior_edges(self, grid_mesh):
        graph = _graph(grid_mesh)
        for edge in graph.edges:
            assert edge.v1 not in graph.boundary_vertices
            assert edge.v2 not in graph.boundary_vertices
        assert len(graph.boundary_vertices) == 20

    def test_accepts_arrays(self, cube_mesh):
        graph = WorkingGraph.from_buffers(cube_mesh.vertices, cube_mesh.faces)
        assert len(graph.faces) == 12

    def test_empty_mesh(self):
        graph = WorkingGraph.from_buffers([], [])
        assert graph.vertices == []
        vertices, faces = graph.export()
        assert vertices.shape == (0, 3)
        assert faces.shape == (0, 3)


class TestInvalidTopology:

    def test_position_length(self):
        with pytest.raises(InvalidTopology):
            WorkingGraph.from_buffers([0.0] * 7, [])

    def test_index_length(self):
        with pytest.raises(InvalidTopology):
            WorkingGraph.from_buffers([0.0] * 9, [0, 1, 2, 0])

    def test_out_of_range_index(self):
        with pytest.raises(InvalidTopology) as exc_info:
            WorkingGraph.from_buffers([0.0] * 9, [0, 1, 2, 0, 2, 3])
        assert exc_info.value.face_index == 1
        assert exc_info.value.vertex_index == 3

    def test_negative_index(self):
        with pytest.raises(InvalidTopology):
            WorkingGraph.from_buffers([0.0] * 9, [0, -1, 2])

    def test_repeated_vertex(self):
        with pytest.raises(InvalidTopology) as exc_info:
            WorkingGraph.from_buffers([0.0] * 9, [0, 1, 1])
        assert exc_info.value.face_index == 0

    def test_non_integer_index(self):
        with pytest.raises(InvalidTopology):
            WorkingGraph.from_buffers([0.0] * 9, [0, 1.5, 2])

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            WorkingGraph.from_buffers([0.0] * 9, [0, 1, 7])


class TestQueries:

    def test_neighbors(self, cube_mesh):
        graph = _graph(cube_mesh)
        assert graph.neighbors(0) == {1, 2, 3, 4, 5}

    def test_faces_with(self, cube_mesh):
        graph = _graph(cube_mesh)
        assert sorted(graph.faces_with(0, 2)) == [0, 1]

    def test_edge_length(self, grid_mesh):
        graph = _graph(grid_mesh)
        lengths = [graph.edge_length(h) for h in range(len(graph.edges))]
        assert min(lengths) == pytest.approx(1.0)
        assert max(lengths) == pytest.approx(np.sqrt(2))

    def test_export_untouched_graph(self, cube_mesh):
        graph = _graph(cube_mesh)
        vertices, faces = graph.export()
        assert np.array_equal(vertices, cube_mesh.vertices)
        assert np.array_equal(faces, cube_mesh.faces)
        assert graph.live_face_count() == 12
        assert graph.live_vertex_count() == 8

    def test_export_reindexes_live_vertices(self, grid_mesh):
        graph = _graph(grid_mesh)
        # Drop an unused vertex by hand: vertex 0 is only in face 0
        graph.vertices[0].collapsed = True
        vertices, faces = graph.export()
        assert len(vertices) == 35
        assert len(faces) == 49
        assert faces.max() == 34
        assert graph.vertices[1].final_index == 0


class TestCarriedQuadrics:

    def test_rebuilt_graph_keeps_quadrics(self, grid_mesh):
        graph = _graph(grid_mesh)
        for handle in range(len(graph.edges)):
            calculate_edge_error(graph, handle)
        handle = next(h for h, e in enumerate(graph.edges) if (e.v1, e.v2) == (7, 8))
        collapse_edge(graph, handle, float("inf"))
        merged = graph.vertices[7].quadric.copy()

        vertices, faces = graph.export()
        quadrics = graph.live_quadrics()
        rebuilt = WorkingGraph.from_buffers(vertices, faces, quadrics=quadrics)

        assert len(quadrics) == len(vertices)
        assert rebuilt.vertices[7].quadric == merged
        for vertex, quadric in zip(rebuilt.vertices, quadrics):
            assert vertex.quadric == quadric

    def test_carried_quadric_differs_from_face_sum(self, sphere_mesh):
        graph = _graph(sphere_mesh)
        for handle in range(len(graph.edges)):
            calculate_edge_error(graph, handle)
        keep = graph.edges[0].v1
        assert collapse_edge(graph, 0, float("inf")) is CollapseOutcome.COLLAPSED

        vertices, faces = graph.export()
        carried = WorkingGraph.from_buffers(vertices, faces, quadrics=graph.live_quadrics())
        fresh = WorkingGraph.from_buffers(vertices, faces)
        index = graph.vertices[keep].final_index
        assert not np.allclose(carried.vertices[index].quadric.values,
                               fresh.vertices[index].quadric.values)

    def test_quadric_count_must_match(self, cube_mesh):
        with pytest.raises(ValueError):
            WorkingGraph.from_buffers(cube_mesh.vertices, cube_mesh.faces, quadrics=[Quadric()])
