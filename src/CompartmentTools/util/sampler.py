import logging
from itertools import cycle, islice
from typing import List, Optional, Sequence, Tuple

from monty.json import MSONable

from CompartmentTools.geometry.bodies import CompactBody, SphereBody
from CompartmentTools.geometry.overlap import points_along_line
from CompartmentTools.geometry.point import SpacePoint
from CompartmentTools.util.constants import (DEFAULT_NUMBER_OF_TRIALS,
                                             DEFAULT_STEP_DISTANCE)
from CompartmentTools.util.exceptions import InvalidGeometry
from CompartmentTools.util.random_source import RandomSource
from CompartmentTools.util.validation import check_count, check_positive

logger = logging.getLogger(__name__)


def _in_any_sphere(point: SpacePoint, spheres: Sequence[SphereBody]) -> bool:
    return any(sphere.is_in_volume(point) for sphere in spheres)


class PlacementSampler(MSONable):
    """
    Places points and spheres in compartments while keeping them clear of
    other bodies.

    All placements are rejection samplers with a bounded number of trials.
    When the trials run out the sampler still returns a result (the last
    candidate, or an unchecked placement) and logs a warning, so a crowded
    compartment degrades the setup instead of stopping it.

    Args:
        seed (int, None): Seed of the random source. If None, the placements
            are not reproducible.
        number_of_trials (int): Maximum number of rejected candidates before
            falling back.
        step_distance (float): Step used to walk the segment between the two
            points of a pair.
    """

    def __init__(self,
                 seed: Optional[int] = None,
                 number_of_trials: Optional[int] = DEFAULT_NUMBER_OF_TRIALS,
                 step_distance: Optional[float] = DEFAULT_STEP_DISTANCE):
        self.seed = seed
        self.number_of_trials = check_count(number_of_trials,
                                            minimum=1,
                                            what='trials')
        self.step_distance = check_positive('step_distance', step_distance)

        self._random_source = None
        logger.debug('Created %s', self)

    @property
    def random_source(self) -> RandomSource:
        if self._random_source is None:
            self._random_source = RandomSource(self.seed)
        return self._random_source

    def random_points_in_volume(self, body: CompactBody,
                                n: int) -> List[SpacePoint]:
        logger.debug('Sampling %d points in %s', n, body)
        return body.random_points_in_volume(n, self.random_source)

    def random_points_on_surface(self, body: CompactBody,
                                 n: int) -> List[SpacePoint]:
        logger.debug('Sampling %d points on %s', n, body)
        return body.random_points_on_surface(n, self.random_source)

    def _random_point_excluding_spheres(
            self, body: CompactBody,
            excluded_spheres: Sequence[SphereBody]) -> SpacePoint:
        for _ in range(self.number_of_trials):
            candidate = body.random_point_in_volume(self.random_source)
            if not _in_any_sphere(candidate, excluded_spheres):
                return candidate

        logger.warning(
            'No point outside the excluded spheres found in %s after %d '
            'trials, accepting %s', body, self.number_of_trials, candidate)
        return candidate

    def random_points_excluding_spheres(
            self, body: CompactBody, n: int,
            excluded_spheres: Sequence[SphereBody]) -> List[SpacePoint]:
        """
        Draws `n` points in the volume of `body` that are outside all of the
        excluded spheres.

        Args:
            body (CompactBody): Body to sample in
            n (int): Number of points
            excluded_spheres (Sequence[SphereBody]): Spheres the points have
                to avoid

        Returns:
            List[SpacePoint]: The points. A point for which no free position
                was found within `number_of_trials` draws is the last
                candidate drawn.
        """
        n = check_count(n)
        return [
            self._random_point_excluding_spheres(body, excluded_spheres)
            for _ in range(n)
        ]

    def _last_free_point_along_line(
            self, start: SpacePoint, end: SpacePoint,
            excluded_spheres: Sequence[SphereBody]) -> Tuple[SpacePoint, int]:
        steps = 0
        last_free = start
        for point in points_along_line(start, end,
                                       self.step_distance)[1:]:
            if _in_any_sphere(point, excluded_spheres):
                break
            last_free = point
            steps += 1
        return last_free, steps

    def random_point_pairs_excluding_spheres(
        self, body: CompactBody, n: int,
        excluded_spheres: Sequence[SphereBody]
    ) -> List[Tuple[SpacePoint, SpacePoint]]:
        """
        Draws `n` pairs of points in `body` that are connected by a straight
        path clear of the excluded spheres.

        Both points of a candidate pair are drawn outside the excluded spheres.
        The segment from the first to the second point is then walked with
        `step_distance`; the second point of the pair is the last point of the
        walk before it enters an excluded sphere. A pair is accepted when the
        walk made at least one step.

        Args:
            body (CompactBody): Body to sample in
            n (int): Number of pairs
            excluded_spheres (Sequence[SphereBody]): Spheres the pairs have
                to avoid

        Returns:
            List[Tuple[SpacePoint, SpacePoint]]: The pairs
        """
        n = check_count(n, what='pairs')
        pairs = []
        for _ in range(n):
            for _ in range(self.number_of_trials):
                first = self._random_point_excluding_spheres(
                    body, excluded_spheres)
                end = self._random_point_excluding_spheres(
                    body, excluded_spheres)
                second, steps = self._last_free_point_along_line(
                    first, end, excluded_spheres)
                if steps > 0:
                    break
            else:
                logger.warning(
                    'No pair with a free path found in %s after %d trials, '
                    'accepting %s and %s', body, self.number_of_trials,
                    first, second)
            pairs.append((first, second))
        return pairs

    def non_overlapping_random_spheres(
            self,
            container: CompactBody,
            n_spheres: int,
            radius: float,
            excluded_spheres: Sequence[SphereBody] = (),
            obstacles: Sequence[CompactBody] = ()) -> List[SphereBody]:
        """
        Places `n_spheres` spheres of equal radius inside `container` so that
        they overlap neither each other nor the excluded spheres and
        obstacles.

        The radius is clipped to the inscribed radius of the container, and
        centers are drawn in the container shrunk by the radius so every
        sphere lies completely inside it. Each accepted sphere resets the
        trial counter. Once `number_of_trials` candidates in a row have been
        rejected, the remaining spheres are placed without the overlap check:
        with obstacles they reuse the centers of the accepted spheres in turn,
        otherwise they get random centers.

        Args:
            container (CompactBody): Body the spheres are placed in
            n_spheres (int): Number of spheres, at least 1
            radius (float): Radius of the spheres
            excluded_spheres (Sequence[SphereBody]): Spheres to avoid
            obstacles (Sequence[CompactBody]): Bodies of any shape to avoid,
                e.g. the other compartments of a simulation box

        Returns:
            List[SphereBody]: The placed spheres
        """
        n_spheres = check_count(n_spheres, minimum=1, what='spheres')
        radius = check_positive('radius', radius)

        radius = min(radius, container.inscribed_radius)
        try:
            center_region = container.inset(radius)
        except InvalidGeometry:
            # The sphere fills the container along at least one axis
            center_region = None
        blocking = list(excluded_spheres) + list(obstacles)

        def random_sphere() -> SphereBody:
            if center_region is None:
                return SphereBody(container.center, radius)
            return SphereBody(
                center_region.random_point_in_volume(self.random_source),
                radius)

        spheres = []
        rejected = 0
        while len(spheres) < n_spheres and rejected < self.number_of_trials:
            candidate = random_sphere()
            if any(candidate.is_overlap(body) for body in spheres) or any(
                    candidate.is_overlap(body) for body in blocking):
                rejected += 1
                continue
            spheres.append(candidate)
            rejected = 0

        n_remaining = n_spheres - len(spheres)
        if n_remaining > 0:
            logger.warning(
                'Placed %d of %d non-overlapping spheres in %s before running '
                'out of trials, placing the remaining %d without the overlap '
                'check', len(spheres), n_spheres, container, n_remaining)
            if len(obstacles) > 0 and len(spheres) > 0:
                spheres.extend(
                    SphereBody(sphere.center, radius)
                    for sphere in islice(cycle(list(spheres)), n_remaining))
            else:
                spheres.extend(random_sphere() for _ in range(n_remaining))
        return spheres

    def __str__(self) -> str:
        return (f"PlacementSampler(seed={self.seed}, "
                f"number_of_trials={self.number_of_trials}, "
                f"step_distance={self.step_distance})")

    def __repr__(self) -> str:
        return self.__str__()
