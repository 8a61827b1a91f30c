import math
from typing import Sequence

import numpy as np
from monty.json import MSONable


class SpacePoint(MSONable):
    """
    A point (or displacement) in 3D space.

    SpacePoints are value objects. The coordinates are fixed at construction
    and equality compares them exactly, without any tolerance, so a point
    built from the same numbers as a body's boundary compares equal to it.

    Args:
        x (float): x coordinate
        y (float): y coordinate
        z (float): z coordinate
    """

    def __init__(self, x: float, y: float, z: float):
        self._x = float(x)
        self._y = float(y)
        self._z = float(z)

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def z(self) -> float:
        return self._z

    @classmethod
    def from_array(cls, coords: Sequence[float] | np.ndarray) -> 'SpacePoint':
        """
        Builds a point from a sequence of three coordinates.
        """
        if len(coords) != 3:
            raise ValueError(
                f'Expected 3 coordinates, got {len(coords)}')
        return cls(coords[0], coords[1], coords[2])

    def as_array(self) -> np.ndarray:
        return np.array([self._x, self._y, self._z])

    def distance_squared_to(self, other: 'SpacePoint') -> float:
        dx = self._x - other.x
        dy = self._y - other.y
        dz = self._z - other.z
        return dx * dx + dy * dy + dz * dz

    def distance_to(self, other: 'SpacePoint') -> float:
        """
        Euclidean distance between this point and another.

        Args:
            other (SpacePoint): The other point

        Returns:
            float: The distance
        """
        return math.sqrt(self.distance_squared_to(other))

    def norm(self) -> float:
        return math.sqrt(self._x * self._x + self._y * self._y +
                         self._z * self._z)

    def __add__(self, other: 'SpacePoint') -> 'SpacePoint':
        if not isinstance(other, SpacePoint):
            return NotImplemented
        return SpacePoint(self._x + other.x, self._y + other.y,
                          self._z + other.z)

    def __sub__(self, other: 'SpacePoint') -> 'SpacePoint':
        if not isinstance(other, SpacePoint):
            return NotImplemented
        return SpacePoint(self._x - other.x, self._y - other.y,
                          self._z - other.z)

    def __mul__(self, factor: float) -> 'SpacePoint':
        if not isinstance(factor, (int, float, np.number)):
            return NotImplemented
        return SpacePoint(self._x * factor, self._y * factor,
                          self._z * factor)

    __rmul__ = __mul__

    def __neg__(self) -> 'SpacePoint':
        return SpacePoint(-self._x, -self._y, -self._z)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SpacePoint):
            return NotImplemented
        return (self._x == other.x and self._y == other.y
                and self._z == other.z)

    def __hash__(self) -> int:
        return hash((self._x, self._y, self._z))

    def __iter__(self):
        return iter((self._x, self._y, self._z))

    def __str__(self) -> str:
        return f"SpacePoint(x={self._x}, y={self._y}, z={self._z})"

    def __repr__(self) -> str:
        return self.__str__()
