"""
Flat-Buffer Mesh
================

Minimal indexed triangle mesh: an (N, 3) vertex array, an (M, 3) face
array and optional normals. This is the container the decimator reads
from and writes to; trimesh.Trimesh is accepted wherever it is.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Sequence
import trimesh

from .boundary import identify_boundaries
from .cuboid import Cuboid
from .transformation import Transformation


def _empty_vertices() -> np.ndarray:
    return np.zeros((0, 3))


def _empty_faces() -> np.ndarray:
    return np.zeros((0, 3), dtype=np.int64)


@dataclass
class FlatMesh:
    """Indexed triangle mesh backed by numpy arrays."""

    name: str = ""
    vertices: np.ndarray = field(default_factory=_empty_vertices)
    faces: np.ndarray = field(default_factory=_empty_faces)
    normals: np.ndarray = field(default_factory=_empty_vertices)

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        self.normals = np.asarray(self.normals, dtype=float).reshape(-1, 3)

    @classmethod
    def from_buffers(cls, positions: Sequence[float], indices: Sequence[int],
                     name: str = "") -> "FlatMesh":
        """Build from flat position (3N) and index (3M) buffers."""
        return cls(name=name, vertices=positions, faces=indices)

    @classmethod
    def from_trimesh(cls, mesh: trimesh.Trimesh, name: str = "") -> "FlatMesh":
        return cls(name=name, vertices=np.array(mesh.vertices), faces=np.array(mesh.faces))

    @classmethod
    def from_cuboid(cls, cuboid: Cuboid, name: str = "Cuboid") -> "FlatMesh":
        """Closed 8-vertex, 12-triangle mesh of a cuboid."""
        ox, oy, oz = cuboid.origin
        tx, ty, tz = cuboid.terminus
        vertices = [
            [ox, oy, oz],
            [tx, oy, oz],
            [tx, oy, tz],
            [ox, oy, tz],
            [ox, ty, oz],
            [tx, ty, oz],
            [tx, ty, tz],
            [ox, ty, tz],
        ]
        faces = [
            [0, 2, 1], [0, 3, 2],
            [0, 5, 1], [0, 4, 5],
            [1, 6, 2], [1, 5, 6],
            [2, 7, 3], [2, 6, 7],
            [3, 4, 0], [3, 7, 4],
            [5, 7, 6], [5, 4, 7],
        ]
        return cls(name=name, vertices=vertices, faces=faces)

    def to_trimesh(self) -> trimesh.Trimesh:
        return trimesh.Trimesh(vertices=self.vertices.copy(), faces=self.faces.copy(), process=False)

    def copy(self) -> "FlatMesh":
        return FlatMesh(name=self.name, vertices=self.vertices.copy(),
                        faces=self.faces.copy(), normals=self.normals.copy())

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def vertex_buffer(self) -> List[float]:
        return self.vertices.reshape(-1).tolist()

    def index_buffer(self) -> List[int]:
        return self.faces.reshape(-1).tolist()

    def transform(self, t: Transformation):
        """Apply ``t`` to every vertex in place."""
        if len(self.vertices):
            self.vertices = t.apply(self.vertices)

    def transform_subset(self, indices: Sequence[int], t: Transformation):
        """Apply ``t`` to the listed vertices in place."""
        indices = np.asarray(indices, dtype=np.int64)
        if len(indices):
            self.vertices[indices] = t.apply(self.vertices[indices])

    def bounding_box(self) -> Cuboid:
        """
        Axis-aligned bounding box of all vertices.

        Raises:
            ValueError: if the mesh has no vertices
        """
        return self.subset_bounding_box(np.arange(len(self.vertices)))

    def subset_bounding_box(self, indices: Sequence[int]) -> Cuboid:
        """Axis-aligned bounding box of the listed vertices."""
        points = self.vertices[np.asarray(indices, dtype=np.int64)]
        if len(points) == 0:
            raise ValueError("Cannot compute the bounding box of an empty vertex set")
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return Cuboid(lo[0], lo[1], lo[2], hi[0], hi[1], hi[2])

    def identify_boundaries(self) -> List[List[int]]:
        """Closed loops of boundary vertex indices, in a reproducible order."""
        return identify_boundaries(self.faces.tolist(), name=self.name)
