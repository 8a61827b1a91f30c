import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Sequence

import numpy as np
from monty.json import MSONable

from CompartmentTools.geometry.point import SpacePoint
from CompartmentTools.util.constants import SURFACE_PULL_FACTOR
from CompartmentTools.util.exceptions import InvalidArgument, InvalidGeometry
from CompartmentTools.util.random_source import RandomSource
from CompartmentTools.util.validation import check_count, check_positive

logger = logging.getLogger(__name__)


class BodyType(Enum):
    SPHERE = 'sphere'
    LAYER = 'layer'


class LayerFace(Enum):
    """
    The six faces of a layer, named by the plane they lie in and the side of
    the layer they bound. The value is (axis index, True for the upper side).
    """
    XY_TOP = (2, True)
    XY_BOTTOM = (2, False)
    YZ_LEFT = (0, False)
    YZ_RIGHT = (0, True)
    XZ_FRONT = (1, False)
    XZ_BACK = (1, True)

    @property
    def axis(self) -> int:
        return self.value[0]

    @property
    def is_upper(self) -> bool:
        return self.value[1]


def _as_point(point: SpacePoint | Sequence[float]) -> SpacePoint:
    if isinstance(point, SpacePoint):
        return point
    return SpacePoint.from_array(point)


def _check_positive(name: str, value: float) -> float:
    return check_positive(name, value, InvalidGeometry)


class CompactBody(ABC, MSONable):
    """
    Template for a compact body. This defines a closed, bounded volume used
    to place particles in a simulation box.

    A body must implement the containment test and the volume and surface
    samplers; batch sampling, input checks and the final containment
    guarantee are shared here. Bodies are immutable once built.

    Args:
        center (SpacePoint): Center of the body
    """

    body_type: BodyType = None

    def __init__(self, center: SpacePoint | Sequence[float]):
        self._center = _as_point(center)

    @property
    def center(self) -> SpacePoint:
        return self._center

    @abstractmethod
    def is_in_volume(self, point: SpacePoint) -> bool:
        """
        Checks whether a point lies in the closed volume of the body. Points
        on the surface are inside.

        Args:
            point (SpacePoint): The point to test

        Returns:
            bool: True if the point is inside or on the surface
        """
        raise NotImplementedError

    @abstractmethod
    def points_in_volume(self, coords: np.ndarray | List) -> np.ndarray:
        """
        Vectorised containment test.

        Args:
            coords (np.array, List): (n, 3) coordinates

        Returns:
            np.array: Boolean array of length n, where the i-th entry
                indicates whether the i-th point is in the closed volume.
        """
        raise NotImplementedError

    @abstractmethod
    def _sample_volume(self, n: int, random_source: RandomSource) -> np.ndarray:
        raise NotImplementedError

    @abstractmethod
    def _sample_surface(self, n: int,
                        random_source: RandomSource) -> np.ndarray:
        raise NotImplementedError

    @property
    @abstractmethod
    def volume(self) -> float:
        raise NotImplementedError

    @property
    @abstractmethod
    def surface_area(self) -> float:
        raise NotImplementedError

    @property
    @abstractmethod
    def inscribed_radius(self) -> float:
        """
        Radius of the largest sphere that fits in the body.
        """
        raise NotImplementedError

    @abstractmethod
    def bounding_box(self) -> List[float]:
        """
        Returns the full widths of the axis-aligned box that encloses the
        body.

        Returns:
            List[float]: The box widths in the form [x, y, z]
        """
        raise NotImplementedError

    @abstractmethod
    def inset(self, distance: float) -> 'CompactBody':
        """
        Returns a body of the same shape and center, shrunk by `distance`
        on every side.
        """
        raise NotImplementedError

    def random_point_in_volume(self,
                               random_source: RandomSource) -> SpacePoint:
        return self.random_points_in_volume(1, random_source)[0]

    def random_points_in_volume(
            self, n: int, random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` points distributed uniformly over the volume of the body.

        Args:
            n (int): Number of points. Zero gives an empty list.
            random_source (RandomSource): Source of the random numbers

        Returns:
            List[SpacePoint]: The points, each inside the body
        """
        n = check_count(n)
        if n == 0:
            return []
        return self._to_points(self._sample_volume(n, random_source))

    def random_point_on_surface(self,
                                random_source: RandomSource) -> SpacePoint:
        return self.random_points_on_surface(1, random_source)[0]

    def random_points_on_surface(
            self, n: int, random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` points distributed uniformly over the surface of the body.

        Args:
            n (int): Number of points. Zero gives an empty list.
            random_source (RandomSource): Source of the random numbers

        Returns:
            List[SpacePoint]: The points, each reported inside the body by
                `is_in_volume`
        """
        n = check_count(n)
        if n == 0:
            return []
        return self._to_points(self._sample_surface(n, random_source))

    def is_overlap(self, other: 'CompactBody') -> bool:
        from CompartmentTools.geometry.overlap import is_overlap
        return is_overlap(self, other)

    def _to_points(self, coords: np.ndarray) -> List[SpacePoint]:
        return [self._pull_inside(SpacePoint.from_array(c)) for c in coords]

    def _pull_inside(self, point: SpacePoint) -> SpacePoint:
        """
        Moves a sampled point toward the center until it passes the
        containment test. Only points that rounding pushed past the boundary
        are moved, and only by a few ulps.
        """
        if self.is_in_volume(point):
            return point

        offset = point - self._center
        pull = SURFACE_PULL_FACTOR
        while pull < 1:
            candidate = self._center + offset * (1 - pull)
            if self.is_in_volume(candidate):
                return candidate
            pull *= 2
        return self._center

    def __eq__(self, other) -> bool:
        if not isinstance(other, CompactBody):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    @abstractmethod
    def _key(self) -> tuple:
        raise NotImplementedError

    @abstractmethod
    def __str__(self) -> str:
        raise NotImplementedError

    def __repr__(self):
        return self.__str__()


class SphereBody(CompactBody):
    """
    A ball defined by its center and radius.

    Args:
        center (SpacePoint): Center of the sphere
        radius (float, int): Radius of the sphere, strictly positive
    """

    body_type = BodyType.SPHERE

    def __init__(self, center: SpacePoint | Sequence[float],
                 radius: float | int):
        self._radius = _check_positive('radius', radius)
        super().__init__(center)

    @classmethod
    def from_offsets(cls, origin: SpacePoint, dx: float, dy: float,
                     dz: float, radius: float | int) -> 'SphereBody':
        """
        Builds a sphere whose center is `origin` shifted by (dx, dy, dz).
        """
        return cls(_as_point(origin) + SpacePoint(dx, dy, dz), radius)

    @property
    def radius(self) -> float:
        return self._radius

    def is_in_volume(self, point: SpacePoint) -> bool:
        return _as_point(point).distance_to(self._center) <= self._radius

    def points_in_volume(self, coords: np.ndarray | List) -> np.ndarray:
        distances_from_center = np.linalg.norm(np.subtract(
            np.reshape(coords, (-1, 3)), self._center.as_array()),
                                               axis=1)
        return distances_from_center <= self._radius

    @staticmethod
    def _unit_directions(u_cos: np.ndarray, u_phi: np.ndarray) -> np.ndarray:
        # cos(declination) uniform in [-1, 1] gives an area preserving map
        cos_theta = 2.0 * u_cos - 1.0
        sin_theta = np.sqrt(np.maximum(0.0, 1.0 - cos_theta * cos_theta))
        phi = 2.0 * np.pi * u_phi
        return np.column_stack(
            (sin_theta * np.cos(phi), sin_theta * np.sin(phi), cos_theta))

    def _sample_volume(self, n: int, random_source: RandomSource) -> np.ndarray:
        u = random_source.uniform((n, 3))
        # cube root keeps the density constant per unit volume
        radial = self._radius * np.cbrt(u[:, 0])
        directions = self._unit_directions(u[:, 1], u[:, 2])
        return self._center.as_array() + directions * radial[:, np.newaxis]

    def _sample_surface(self, n: int,
                        random_source: RandomSource) -> np.ndarray:
        u = random_source.uniform((n, 2))
        directions = self._unit_directions(u[:, 0], u[:, 1])
        return self._center.as_array() + directions * self._radius

    def _sample_surface_band(self, n: int, random_source: RandomSource,
                             keep: Callable[[np.ndarray], np.ndarray]
                             ) -> List[SpacePoint]:
        n = check_count(n)
        accepted = np.empty((0, 3))
        while len(accepted) < n:
            candidates = self._sample_surface(2 * (n - len(accepted)),
                                              random_source)
            dz = np.abs(candidates[:, 2] - self._center.z)
            accepted = np.vstack((accepted, candidates[keep(dz)]))
        return self._to_points(accepted[:n])

    def random_points_on_upper_surface(
            self, n: int, random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` uniform surface points from the two polar caps, i.e. points
        whose height above or below the center is at least half the radius.
        """
        half_radius = self._radius / 2
        return self._sample_surface_band(n, random_source,
                                         lambda dz: dz >= half_radius)

    def random_points_on_middle_surface(
            self, n: int, random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` uniform surface points from the equatorial band, i.e. points
        whose height above or below the center is at most half the radius.
        """
        half_radius = self._radius / 2
        return self._sample_surface_band(n, random_source,
                                         lambda dz: dz <= half_radius)

    @property
    def volume(self) -> float:
        return 4.0 / 3.0 * math.pi * self._radius**3

    @property
    def surface_area(self) -> float:
        return 4.0 * math.pi * self._radius**2

    @property
    def inscribed_radius(self) -> float:
        return self._radius

    def bounding_box(self) -> List[float]:
        return [2 * self._radius, 2 * self._radius, 2 * self._radius]

    def inset(self, distance: float) -> 'SphereBody':
        return SphereBody(self._center, self._radius - distance)

    def _key(self) -> tuple:
        return (self._center, self._radius)

    def __str__(self) -> str:
        return f"SphereBody(center={self._center}, radius={self._radius})"


class LayerBody(CompactBody):
    """
    An axis-aligned rectangular slab.

    Each extent is the full width of the layer along its axis, so the layer
    spans [center - extent / 2, center + extent / 2] on every axis.

    Args:
        center (SpacePoint): Center of the layer
        x_extent (float, int): Width along x
        y_extent (float, int): Depth along y
        z_extent (float, int): Height along z
    """

    body_type = BodyType.LAYER

    def __init__(self, center: SpacePoint | Sequence[float],
                 x_extent: float | int, y_extent: float | int,
                 z_extent: float | int):
        self._x_extent = _check_positive('x_extent', x_extent)
        self._y_extent = _check_positive('y_extent', y_extent)
        self._z_extent = _check_positive('z_extent', z_extent)
        super().__init__(center)

        # Bounds are computed once so that containment and sampling agree
        # on the exact boundary values
        self._lower = (self._center.x - self._x_extent / 2,
                       self._center.y - self._y_extent / 2,
                       self._center.z - self._z_extent / 2)
        self._upper = (self._center.x + self._x_extent / 2,
                       self._center.y + self._y_extent / 2,
                       self._center.z + self._z_extent / 2)

    @classmethod
    def from_offsets(cls, origin: SpacePoint, dx: float, dy: float,
                     dz: float, x_extent: float | int, y_extent: float | int,
                     z_extent: float | int) -> 'LayerBody':
        """
        Builds a layer whose center is `origin` shifted by (dx, dy, dz).
        """
        return cls(_as_point(origin) + SpacePoint(dx, dy, dz), x_extent,
                   y_extent, z_extent)

    @property
    def x_extent(self) -> float:
        return self._x_extent

    @property
    def y_extent(self) -> float:
        return self._y_extent

    @property
    def z_extent(self) -> float:
        return self._z_extent

    @property
    def extents(self) -> np.ndarray:
        return np.array([self._x_extent, self._y_extent, self._z_extent])

    @property
    def lower_corner(self) -> SpacePoint:
        return SpacePoint(*self._lower)

    @property
    def upper_corner(self) -> SpacePoint:
        return SpacePoint(*self._upper)

    def is_in_volume(self, point: SpacePoint) -> bool:
        point = _as_point(point)
        return (self._lower[0] <= point.x <= self._upper[0]
                and self._lower[1] <= point.y <= self._upper[1]
                and self._lower[2] <= point.z <= self._upper[2])

    def points_in_volume(self, coords: np.ndarray | List) -> np.ndarray:
        coords = np.reshape(coords, (-1, 3))
        within_lower = coords >= np.array(self._lower)
        within_upper = coords <= np.array(self._upper)
        return np.all(within_lower & within_upper, axis=1)

    def face_area(self, face: LayerFace) -> float:
        widths = [self._x_extent, self._y_extent, self._z_extent]
        del widths[face.axis]
        return widths[0] * widths[1]

    def _sample_volume(self, n: int, random_source: RandomSource) -> np.ndarray:
        return random_source.uniform_range(np.array(self._lower),
                                           np.array(self._upper), (n, 3))

    def _sample_faces(self, faces: Sequence[LayerFace], n: int,
                      random_source: RandomSource) -> np.ndarray:
        # Faces are weighted by area so the points are uniform over their
        # union, not uniform per face
        areas = [self.face_area(face) for face in faces]
        face_indices = random_source.weighted_index(areas, n)
        coords = self._sample_volume(n, random_source)
        for i, face in enumerate(faces):
            on_face = face_indices == i
            bound = self._upper if face.is_upper else self._lower
            coords[on_face, face.axis] = bound[face.axis]
        return coords

    def _sample_surface(self, n: int,
                        random_source: RandomSource) -> np.ndarray:
        return self._sample_faces(list(LayerFace), n, random_source)

    def random_points_on_face(self, face: LayerFace, n: int,
                              random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` uniform points on a single face of the layer.
        """
        return self.random_points_on_faces([face], n, random_source)

    def random_points_on_faces(self, faces: Sequence[LayerFace], n: int,
                               random_source: RandomSource) -> List[SpacePoint]:
        """
        Draws `n` points uniformly over the union of the given faces, e.g.
        [LayerFace.XY_TOP, LayerFace.XY_BOTTOM] for the top and bottom
        surfaces.
        """
        n = check_count(n)
        faces = list(dict.fromkeys(faces))
        if len(faces) == 0:
            raise InvalidArgument('At least one face must be given')
        if n == 0:
            return []
        return self._to_points(self._sample_faces(faces, n, random_source))

    def simple_cubic_lattice_points(self, n: int,
                                    bond_length: float) -> List[SpacePoint]:
        """
        Places up to `n` points on a simple cubic lattice that fills the
        layer.

        The number of lattice planes per axis starts from the number that
        fits with the target bond length and is then adjusted one axis at a
        time (x, y, z in turn) until the lattice holds `n` sites as tightly
        as possible. The spacing along each axis is then the extent divided by
        the number of planes, so the first plane sits half a spacing inside
        the layer. Points are filled from the top z plane downwards.

        Args:
            n (int): Number of points, at least 1
            bond_length (float): Target lattice spacing

        Returns:
            List[SpacePoint]: At most `n` lattice points inside the layer
        """
        n = check_count(n, minimum=1, what='lattice points')
        bond_length = check_positive('bond_length', bond_length)
        extents = [self._x_extent, self._y_extent, self._z_extent]
        if any(bond_length > extent for extent in extents):
            raise InvalidArgument(
                f'bond_length {bond_length} exceeds an extent of the layer')

        counts = [
            math.floor((extent - bond_length) / bond_length) + 1
            for extent in extents
        ]
        axis = 0
        if math.prod(counts) > n:
            while math.prod(counts) > n:
                if counts[axis] > 1:
                    counts[axis] -= 1
                axis = (axis + 1) % 3
        else:
            while math.prod(counts) < n:
                counts[axis] += 1
                axis = (axis + 1) % 3

        spacing = [extent / count for extent, count in zip(extents, counts)]
        xs = self._lower[0] + (np.arange(counts[0]) + 0.5) * spacing[0]
        ys = self._lower[1] + (np.arange(counts[1]) + 0.5) * spacing[1]
        zs = self._upper[2] - (np.arange(counts[2]) + 0.5) * spacing[2]

        points = []
        for z in zs:
            for y in ys:
                for x in xs:
                    if len(points) == n:
                        return points
                    points.append(SpacePoint(x, y, z))
        return points

    @property
    def volume(self) -> float:
        return self._x_extent * self._y_extent * self._z_extent

    @property
    def surface_area(self) -> float:
        return 2 * sum(self.face_area(face) for face in (
            LayerFace.XY_TOP, LayerFace.YZ_LEFT, LayerFace.XZ_FRONT))

    @property
    def inscribed_radius(self) -> float:
        return min(self._x_extent, self._y_extent, self._z_extent) / 2

    def bounding_box(self) -> List[float]:
        return [self._x_extent, self._y_extent, self._z_extent]

    def inset(self, distance: float) -> 'LayerBody':
        return LayerBody(self._center, self._x_extent - 2 * distance,
                         self._y_extent - 2 * distance,
                         self._z_extent - 2 * distance)

    def _key(self) -> tuple:
        return (self._center, self._x_extent, self._y_extent, self._z_extent)

    def __str__(self) -> str:
        return (f"LayerBody(center={self._center}, "
                f"x_extent={self._x_extent}, y_extent={self._y_extent}, "
                f"z_extent={self._z_extent})")
