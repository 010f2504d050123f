"""
Shared test fixtures for the qemesh tests.
"""
import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest
import trimesh

from qemesh.cuboid import Cuboid
from qemesh.mesh import FlatMesh


def make_grid(rows, cols, size=1.0):
    """Flat open grid in the XY plane with two triangles per cell."""
    vertices = []
    for i in range(rows):
        for j in range(cols):
            vertices.append([j * size, i * size, 0.0])
    faces = []
    for i in range(rows - 1):
        for j in range(cols - 1):
            idx = i * cols + j
            faces.append([idx, idx + 1, idx + cols])
            faces.append([idx + 1, idx + cols + 1, idx + cols])
    return FlatMesh(name="grid", vertices=vertices, faces=faces)


@pytest.fixture
def cube_mesh():
    """Closed unit cube: 8 vertices, 12 triangles."""
    return FlatMesh.from_cuboid(Cuboid(0, 0, 0, 1, 1, 1), name="cube")


@pytest.fixture
def open_square():
    """Two triangles sharing the diagonal (0, 2); every vertex is on the boundary."""
    return FlatMesh(
        name="square",
        vertices=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
        faces=[[0, 1, 2], [0, 2, 3]],
    )


@pytest.fixture
def fin_mesh():
    """Three triangles sharing the edge (0, 1)."""
    return FlatMesh(
        name="fin",
        vertices=[[0, 0, 0], [1, 0, 0], [0.5, 1, 0], [0.5, -1, 0], [0.5, 0, 1]],
        faces=[[0, 1, 2], [0, 1, 3], [0, 1, 4]],
    )


@pytest.fixture
def grid_mesh():
    """6x6 flat grid: 36 vertices, 50 faces, 16 interior vertices."""
    return make_grid(6, 6)


@pytest.fixture
def sphere_mesh():
    return FlatMesh.from_trimesh(trimesh.creation.icosphere(subdivisions=2), name="sphere")


@pytest.fixture
def rng():
    return np.random.default_rng(42)
