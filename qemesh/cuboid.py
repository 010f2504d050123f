"""
Axis-aligned cuboids, used as 3D bounding boxes.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Cuboid:
    """
    Axis-aligned box between an origin (minimum) and terminus (maximum) corner.

    The corners may be given in any order; they are normalised so that the
    origin is never greater than the terminus on any axis.
    """

    origin_x: float
    origin_y: float
    origin_z: float
    terminus_x: float
    terminus_y: float
    terminus_z: float

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            lo = getattr(self, f"origin_{axis}")
            hi = getattr(self, f"terminus_{axis}")
            object.__setattr__(self, f"origin_{axis}", float(min(lo, hi)))
            object.__setattr__(self, f"terminus_{axis}", float(max(lo, hi)))

    @property
    def origin(self) -> Tuple[float, float, float]:
        return (self.origin_x, self.origin_y, self.origin_z)

    @property
    def terminus(self) -> Tuple[float, float, float]:
        return (self.terminus_x, self.terminus_y, self.terminus_z)

    @property
    def extents(self) -> Tuple[float, float, float]:
        return (self.terminus_x - self.origin_x,
                self.terminus_y - self.origin_y,
                self.terminus_z - self.origin_z)

    def expanded(self, distance: float) -> "Cuboid":
        """A new cuboid ``distance`` units larger in all 6 directions."""
        return Cuboid(self.origin_x - distance, self.origin_y - distance, self.origin_z - distance,
                      self.terminus_x + distance, self.terminus_y + distance, self.terminus_z + distance)

    def center(self) -> Tuple[float, float, float]:
        return (self.origin_x + (self.terminus_x - self.origin_x) / 2,
                self.origin_y + (self.terminus_y - self.origin_y) / 2,
                self.origin_z + (self.terminus_z - self.origin_z) / 2)

    def contains(self, x: float, y: float, z: float) -> bool:
        """Whether the point lies inside or on the surface of the cuboid."""
        return (self.origin_x <= x <= self.terminus_x and
                self.origin_y <= y <= self.terminus_y and
                self.origin_z <= z <= self.terminus_z)

    def intersects(self, other: "Cuboid") -> bool:
        """Whether the two cuboids share some volume. Touching is not enough."""
        return not (self.terminus_y <= other.origin_y or
                    self.origin_y >= other.terminus_y or
                    self.origin_x >= other.terminus_x or
                    self.terminus_x <= other.origin_x or
                    self.terminus_z <= other.origin_z or
                    self.origin_z >= other.terminus_z)

    def union(self, *others: "Cuboid") -> "Cuboid":
        """Bounding box of this cuboid and ``others``."""
        boxes = (self,) + others
        return Cuboid(min(b.origin_x for b in boxes),
                      min(b.origin_y for b in boxes),
                      min(b.origin_z for b in boxes),
                      max(b.terminus_x for b in boxes),
                      max(b.terminus_y for b in boxes),
                      max(b.terminus_z for b in boxes))
