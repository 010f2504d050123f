"""
Transformations
===============

4x4 affine/projective transformation matrices applied to 3D points in
homogeneous coordinates.
"""

import numpy as np
from typing import Sequence

AXIS_LENGTH_TOLERANCE = 1e-7


class Transformation:
    """
    Row-major 4x4 transformation matrix.

    Points are treated as column vectors [x, y, z, 1]; after multiplying,
    the result is divided by its fourth component.
    """

    def __init__(self, matrix: Sequence[float] = None):
        if matrix is None:
            self.matrix = np.eye(4)
        else:
            self.matrix = np.array(matrix, dtype=float).reshape(4, 4)

    def __repr__(self) -> str:
        return f"Transformation({self.matrix.reshape(-1).tolist()})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Transformation):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    def cell(self, x: int, y: int) -> float:
        """Value at column ``x`` of row ``y``."""
        return float(self.matrix[y, x])

    def row(self, y: int) -> np.ndarray:
        return self.matrix[y].copy()

    def col(self, x: int) -> np.ndarray:
        return self.matrix[:, x].copy()

    def multiply(self, *others: "Transformation") -> "Transformation":
        """Matrix product self . m1 . m2 ... as a new transformation."""
        result = self.matrix
        for other in others:
            result = result @ other.matrix
        return Transformation(result)

    def add(self, *others: "Transformation") -> "Transformation":
        """Element-wise sum as a new transformation."""
        result = self.matrix.copy()
        for other in others:
            result = result + other.matrix
        return Transformation(result)

    def apply(self, points: np.ndarray) -> np.ndarray:
        """
        Transform one point (3,) or many points (N, 3).

        Returns:
            Transformed points with the same shape as the input
        """
        points = np.asarray(points, dtype=float)
        if points.shape[-1] != 3:
            raise ValueError("Transformations can only be applied to 3D points")
        flat = points.reshape(-1, 3)
        homogeneous = np.hstack([flat, np.ones((len(flat), 1))]) @ self.matrix.T
        result = homogeneous[:, :3] / homogeneous[:, 3:4]
        return result.reshape(points.shape)

    @classmethod
    def identity(cls) -> "Transformation":
        return cls()

    @classmethod
    def translation(cls, x: float, y: float, z: float) -> "Transformation":
        return cls([1, 0, 0, x,
                    0, 1, 0, y,
                    0, 0, 1, z,
                    0, 0, 0, 1])

    @classmethod
    def scale(cls, factor: float) -> "Transformation":
        return cls.scale_dimensions(factor, factor, factor)

    @classmethod
    def scale_dimensions(cls, x: float, y: float, z: float) -> "Transformation":
        return cls([x, 0, 0, 0,
                    0, y, 0, 0,
                    0, 0, z, 0,
                    0, 0, 0, 1])

    @classmethod
    def rotation(cls, theta: float, px: float, py: float, pz: float) -> "Transformation":
        """
        Rotation by ``theta`` radians around the axis [px, py, pz].

        The axis is normalised when its length is not 1.
        """
        length = np.sqrt(px * px + py * py + pz * pz)
        if length == 0:
            raise ValueError("Rotation axis must be non-zero")
        if abs(length - 1) > AXIS_LENGTH_TOLERANCE:
            px, py, pz = px / length, py / length, pz / length

        ct = np.cos(theta)
        st = np.sin(theta)
        mct = 1 - ct
        return cls([
            ct + px * px * mct, px * py * mct - pz * st, px * pz * mct + py * st, 0,
            py * px * mct + pz * st, ct + py * py * mct, py * pz * mct - px * st, 0,
            pz * px * mct - py * st, pz * py * mct + px * st, ct + pz * pz * mct, 0,
            0, 0, 0, 1,
        ])
