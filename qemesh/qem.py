"""
Quadric Error Metrics (QEM) Implementation
==========================================

Compact symmetric quadrics and the helpers built on them: plane quadrics
for triangles and the optimal collapse target of an edge.

Based on: "Surface Simplification Using Quadric Error Metrics"
by Michael Garland and Paul S. Heckbert (SIGGRAPH 1997)
"""

import numpy as np
from typing import Sequence, Tuple

# Upper-triangle slot of each cell of the full 4x4 matrix (row-major).
_MATRIX_SLOTS = (
    (0, 1, 2, 3),
    (1, 4, 5, 6),
    (2, 5, 7, 8),
    (3, 6, 8, 9),
)


class Quadric:
    """
    Symmetric 4x4 error quadric stored as the 10 scalars of its upper triangle.

    For a plane ax + by + cz + d = 0 the fundamental quadric is p * p^T with
    p = [a, b, c, d], stored as:

        {a², ab, ac, ad, b², bc, bd, c², cd, d²}

    The error of a point v = [x, y, z, 1]^T is v^T * Q * v, the sum of the
    squared distances from v to every plane accumulated into Q.
    """

    __slots__ = ("values",)

    def __init__(self, values: Sequence[float] = None):
        if values is None:
            self.values = np.zeros(10)
        else:
            self.values = np.array(values, dtype=float)
            if self.values.shape != (10,):
                raise ValueError("A quadric has exactly 10 components")

    @classmethod
    def from_plane(cls, a: float, b: float, c: float, d: float) -> "Quadric":
        """Fundamental quadric of the plane ax + by + cz + d = 0."""
        return cls([a * a, a * b, a * c, a * d,
                    b * b, b * c, b * d,
                    c * c, c * d,
                    d * d])

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "Quadric":
        """Build from a full symmetric 4x4 matrix (upper triangle is read)."""
        m = np.asarray(matrix, dtype=float)
        return cls(m[np.triu_indices(4)])

    def to_matrix(self) -> np.ndarray:
        """Expand to the full symmetric 4x4 matrix."""
        return self.values[np.array(_MATRIX_SLOTS)]

    def copy(self) -> "Quadric":
        return Quadric(self.values)

    def add(self, other: "Quadric") -> None:
        """Accumulate ``other`` into this quadric in place."""
        self.values += other.values

    def __add__(self, other: "Quadric") -> "Quadric":
        return Quadric(self.values + other.values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Quadric):
            return NotImplemented
        return bool(np.array_equal(self.values, other.values))

    def __repr__(self) -> str:
        return f"Quadric({self.values.tolist()})"

    def determinant(self) -> float:
        """
        Determinant of the full 4x4 matrix.

        Cofactor expansion specialised to the symmetric layout, evaluated as a
        fixed polynomial so results do not depend on pivoting order.
        """
        q = self.values.tolist()
        return (q[3]*q[5]*q[5]*q[3] - q[2]*q[6]*q[5]*q[3] - q[3]*q[4]*q[7]*q[3] + q[1]*q[6]*q[7]*q[3] +
                q[2]*q[4]*q[8]*q[3] - q[1]*q[5]*q[8]*q[3] - q[3]*q[5]*q[2]*q[6] + q[2]*q[6]*q[2]*q[6] +
                q[3]*q[1]*q[7]*q[6] - q[0]*q[6]*q[7]*q[6] - q[2]*q[1]*q[8]*q[6] + q[0]*q[5]*q[8]*q[6] +
                q[3]*q[4]*q[2]*q[8] - q[1]*q[6]*q[2]*q[8] - q[3]*q[1]*q[5]*q[8] + q[0]*q[6]*q[5]*q[8] +
                q[1]*q[1]*q[8]*q[8] - q[0]*q[4]*q[8]*q[8] - q[2]*q[4]*q[2]*q[9] + q[1]*q[5]*q[2]*q[9] +
                q[2]*q[1]*q[5]*q[9] - q[0]*q[5]*q[5]*q[9] - q[1]*q[1]*q[7]*q[9] + q[0]*q[4]*q[7]*q[9])

    def inverse(self) -> Tuple["Quadric", bool]:
        """
        Invert the quadric as adjugate / determinant.

        No tolerance is applied: only an exactly zero determinant is treated
        as singular. Callers deal with near-singular results themselves.

        Returns:
            Tuple of (inverse, can_invert). When can_invert is False the
            returned quadric is all zeros and nothing was divided.
        """
        det = self.determinant()
        if det == 0:
            return Quadric(), False

        q = self.values.tolist()
        adjugate = [
            q[5]*q[8]*q[6] - q[6]*q[7]*q[6] + q[6]*q[5]*q[8] - q[4]*q[8]*q[8] - q[5]*q[5]*q[9] + q[4]*q[7]*q[9],
            q[3]*q[7]*q[6] - q[2]*q[8]*q[6] - q[3]*q[5]*q[8] + q[1]*q[8]*q[8] + q[2]*q[5]*q[9] - q[1]*q[7]*q[9],
            q[2]*q[6]*q[6] - q[3]*q[5]*q[6] + q[3]*q[4]*q[8] - q[1]*q[6]*q[8] - q[2]*q[4]*q[9] + q[1]*q[5]*q[9],
            q[3]*q[5]*q[5] - q[2]*q[6]*q[5] - q[3]*q[4]*q[7] + q[1]*q[6]*q[7] + q[2]*q[4]*q[8] - q[1]*q[5]*q[8],
            q[2]*q[8]*q[3] - q[3]*q[7]*q[3] + q[3]*q[2]*q[8] - q[0]*q[8]*q[8] - q[2]*q[2]*q[9] + q[0]*q[7]*q[9],
            q[3]*q[5]*q[3] - q[2]*q[6]*q[3] - q[3]*q[1]*q[8] + q[0]*q[6]*q[8] + q[2]*q[1]*q[9] - q[0]*q[5]*q[9],
            q[2]*q[6]*q[2] - q[3]*q[5]*q[2] + q[3]*q[1]*q[7] - q[0]*q[6]*q[7] - q[2]*q[1]*q[8] + q[0]*q[5]*q[8],
            q[1]*q[6]*q[3] - q[3]*q[4]*q[3] + q[3]*q[1]*q[6] - q[0]*q[6]*q[6] - q[1]*q[1]*q[9] + q[0]*q[4]*q[9],
            q[3]*q[4]*q[2] - q[1]*q[6]*q[2] - q[3]*q[1]*q[5] + q[0]*q[6]*q[5] + q[1]*q[1]*q[8] - q[0]*q[4]*q[8],
            q[1]*q[5]*q[2] - q[2]*q[4]*q[2] + q[2]*q[1]*q[5] - q[0]*q[5]*q[5] - q[1]*q[1]*q[7] + q[0]*q[4]*q[7],
        ]
        return Quadric([value / det for value in adjugate]), True

    def vertex_error(self, x: float, y: float, z: float) -> float:
        """Evaluate v^T * Q * v for the homogeneous point (x, y, z, 1)."""
        q = self.values.tolist()
        return (x*x*q[0] + 2*x*y*q[1] + 2*x*z*q[2] + 2*x*q[3] +
                y*y*q[4] + 2*y*z*q[5] + 2*y*q[6] +
                z*z*q[7] + 2*z*q[8] +
                q[9])


def compute_face_plane(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    """
    Compute the plane equation coefficients for a triangle face.

    The plane equation is: ax + by + cz + d = 0
    where [a, b, c] is the unit normal and d = -dot(normal, centroid)

    Args:
        v0, v1, v2: Triangle vertices as 3D points

    Returns:
        Plane coefficients [a, b, c, d]; all zeros for a zero-area triangle
    """
    v0 = np.asarray(v0, dtype=float)
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)

    normal = np.cross(v1 - v0, v2 - v0)
    norm_length = np.linalg.norm(normal)

    if norm_length == 0 or not np.isfinite(norm_length):
        # Degenerate triangle
        return np.zeros(4)

    normal = normal / norm_length
    centroid = (v0 + v1 + v2) / 3
    d = -np.dot(normal, centroid)

    return np.array([normal[0], normal[1], normal[2], d])


def plane_quadric(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> Quadric:
    """Fundamental error quadric (Kp) of the plane supporting a triangle."""
    a, b, c, d = compute_face_plane(v0, v1, v2).tolist()
    return Quadric.from_plane(a, b, c, d)


def compute_collapse_target(Q: Quadric, v1: Sequence[float],
                            v2: Sequence[float]) -> Tuple[np.ndarray, float]:
    """
    Compute the optimal position for collapsing an edge with quadric Q.

    When Q is invertible the target is Q^-1 * [0, 0, 0, 1] taken as a
    homogeneous point, which minimises v^T * Q * v. Otherwise the endpoints
    and the midpoint are tested and the lowest error wins, ties preferring
    v1, then v2, then the midpoint.

    Args:
        Q: Combined quadric of the two endpoints
        v1, v2: Edge endpoint positions

    Returns:
        Tuple of (target_position, error) where error is Q evaluated at the
        returned target
    """
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)

    inverse, can_invert = Q.inverse()
    target = None
    if can_invert:
        inv = inverse.values
        w = inv[9]
        if w != 0:
            candidate = np.array([inv[3], inv[6], inv[8]]) / w
            if np.all(np.isfinite(candidate)):
                target = candidate

    if target is None:
        midpoint = (v1 + v2) / 2
        v1_error = Q.vertex_error(*v1)
        v2_error = Q.vertex_error(*v2)
        midpoint_error = Q.vertex_error(*midpoint)

        if v1_error <= v2_error and v1_error <= midpoint_error:
            target = v1.copy()
        elif v2_error <= midpoint_error:
            target = v2.copy()
        else:
            target = midpoint

    return target, Q.vertex_error(*target)
