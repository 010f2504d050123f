"""Tests for cuboids, transformations and FlatMesh geometry helpers."""
import math

import numpy as np
import pytest

from qemesh.boundary import classify_edges
from qemesh.cuboid import Cuboid
from qemesh.mesh import FlatMesh
from qemesh.transformation import Transformation


class TestCuboid:

    def test_corners_normalised(self):
        box = Cuboid(1, 5, -2, 0, 2, 3)
        assert box.origin == (0, 2, -2)
        assert box.terminus == (1, 5, 3)
        assert box.extents == (1, 3, 5)

    def test_center_and_expanded(self):
        box = Cuboid(0, 0, 0, 2, 4, 6)
        assert box.center() == (1, 2, 3)
        grown = box.expanded(1)
        assert grown.origin == (-1, -1, -1)
        assert grown.terminus == (3, 5, 7)

    def test_contains_is_inclusive(self):
        box = Cuboid(0, 0, 0, 1, 1, 1)
        assert box.contains(0.5, 0.5, 0.5)
        assert box.contains(1, 1, 1)
        assert box.contains(0, 0, 0)
        assert not box.contains(1.01, 0.5, 0.5)

    def test_intersects_requires_overlap(self):
        a = Cuboid(0, 0, 0, 1, 1, 1)
        assert a.intersects(Cuboid(0.5, 0.5, 0.5, 2, 2, 2))
        assert not a.intersects(Cuboid(1, 0, 0, 2, 1, 1))
        assert not a.intersects(Cuboid(3, 3, 3, 4, 4, 4))

    def test_union(self):
        a = Cuboid(0, 0, 0, 1, 1, 1)
        b = Cuboid(-1, 2, 0.5, 0, 3, 0.7)
        c = Cuboid(5, 0, 0, 6, 1, 1)
        assert a.union(b, c) == Cuboid(-1, 0, 0, 6, 3, 1)

    def test_immutable(self):
        box = Cuboid(0, 0, 0, 1, 1, 1)
        with pytest.raises(AttributeError):
            box.origin_x = 5


class TestTransformation:

    def test_identity(self):
        points = np.array([[1.0, 2.0, 3.0], [-4.0, 5.0, 0.5]])
        assert np.allclose(Transformation.identity().apply(points), points)

    def test_translation(self):
        t = Transformation.translation(1, 2, 3)
        assert np.allclose(t.apply([1, 1, 1]), [2, 3, 4])
        assert t.cell(3, 0) == 1
        assert t.cell(3, 2) == 3
        assert t.col(3).tolist() == [1, 2, 3, 1]
        assert t.row(0).tolist() == [1, 0, 0, 1]

    def test_scale(self):
        assert np.allclose(Transformation.scale(2).apply([1, 2, 3]), [2, 4, 6])
        assert np.allclose(Transformation.scale_dimensions(1, 2, 3).apply([1, 1, 1]), [1, 2, 3])

    def test_rotation_about_z(self):
        t = Transformation.rotation(math.pi / 2, 0, 0, 1)
        assert np.allclose(t.apply([1, 0, 0]), [0, 1, 0])

    def test_rotation_axis_normalised(self):
        a = Transformation.rotation(0.7, 0, 0, 5)
        b = Transformation.rotation(0.7, 0, 0, 1)
        assert np.allclose(a.matrix, b.matrix)

    def test_rotation_zero_axis(self):
        with pytest.raises(ValueError):
            Transformation.rotation(1.0, 0, 0, 0)

    def test_multiply_applies_right_first(self):
        t = Transformation.translation(1, 0, 0).multiply(Transformation.scale(2))
        assert np.allclose(t.apply([1, 1, 1]), [3, 2, 2])

    def test_add(self):
        t = Transformation.identity().add(Transformation.identity())
        assert np.allclose(t.matrix, 2 * np.eye(4))

    def test_homogeneous_divide(self):
        t = Transformation([1, 0, 0, 0,
                            0, 1, 0, 0,
                            0, 0, 1, 0,
                            0, 0, 0, 2])
        assert np.allclose(t.apply([2, 4, 6]), [1, 2, 3])

    def test_rejects_non_3d_points(self):
        with pytest.raises(ValueError):
            Transformation().apply([1, 2])


class TestFlatMesh:

    def test_from_buffers(self):
        mesh = FlatMesh.from_buffers([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 2], name="tri")
        assert mesh.vertex_count == 3
        assert mesh.face_count == 1
        assert mesh.vertex_buffer() == [0, 0, 0, 1, 0, 0, 0, 1, 0]
        assert mesh.index_buffer() == [0, 1, 2]

    def test_cuboid_mesh_is_closed(self, cube_mesh):
        assert cube_mesh.vertex_count == 8
        assert cube_mesh.face_count == 12
        boundary, manifold, non_manifold = classify_edges(cube_mesh.faces.tolist())
        assert (len(boundary), len(manifold), len(non_manifold)) == (0, 18, 0)
        assert cube_mesh.identify_boundaries() == []

    def test_cuboid_mesh_bounds(self):
        mesh = FlatMesh.from_cuboid(Cuboid(-1, -2, -3, 1, 2, 3))
        assert mesh.bounding_box() == Cuboid(-1, -2, -3, 1, 2, 3)

    def test_subset_bounding_box(self, grid_mesh):
        box = grid_mesh.subset_bounding_box([0, 7])
        assert box == Cuboid(0, 0, 0, 1, 1, 0)

    def test_empty_bounding_box(self):
        with pytest.raises(ValueError):
            FlatMesh().bounding_box()

    def test_transform(self, cube_mesh):
        cube_mesh.transform(Transformation.translation(1, 1, 1))
        assert cube_mesh.bounding_box() == Cuboid(1, 1, 1, 2, 2, 2)

    def test_transform_subset(self, open_square):
        open_square.transform_subset([2], Transformation.translation(0, 0, 5))
        assert open_square.vertices[2].tolist() == [1, 1, 5]
        assert open_square.vertices[0].tolist() == [0, 0, 0]

    def test_copy_is_independent(self, cube_mesh):
        clone = cube_mesh.copy()
        clone.vertices[0] = [9, 9, 9]
        assert cube_mesh.vertices[0].tolist() == [0, 0, 0]

    def test_open_square_loop(self, open_square):
        assert open_square.identify_boundaries() == [[0, 1, 2, 3]]

    def test_trimesh_round_trip(self, cube_mesh):
        tm = cube_mesh.to_trimesh()
        assert len(tm.faces) == 12
        back = FlatMesh.from_trimesh(tm, name="again")
        assert np.array_equal(back.faces, cube_mesh.faces)
