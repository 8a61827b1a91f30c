"""
Overlap tests between compact bodies, and sampling of points along a
straight line.

Two bodies overlap when their closed volumes intersect, so bodies that only
touch on their surfaces overlap. Every test is symmetric.
"""
import math
from typing import Callable, Dict, List, Tuple

from CompartmentTools.geometry.bodies import (BodyType, CompactBody,
                                              LayerBody, SphereBody)
from CompartmentTools.geometry.point import SpacePoint
from CompartmentTools.util.constants import LINE_STEP_RTOL
from CompartmentTools.util.exceptions import InvalidArgument
from CompartmentTools.util.validation import check_count, check_positive


def sphere_sphere_overlap(sphere1: SphereBody, sphere2: SphereBody) -> bool:
    distance = sphere1.center.distance_to(sphere2.center)
    return distance <= sphere1.radius + sphere2.radius


def sphere_layer_overlap(sphere: SphereBody, layer: LayerBody) -> bool:
    """
    Checks a sphere against a layer using the point of the layer closest to
    the sphere center.

    Clamping the center into the closed box gives that point; it is the center
    itself when the center is inside the box.
    """
    lower = layer.lower_corner
    upper = layer.upper_corner
    center = sphere.center
    closest = SpacePoint(min(max(center.x, lower.x), upper.x),
                         min(max(center.y, lower.y), upper.y),
                         min(max(center.z, lower.z), upper.z))
    return center.distance_to(closest) <= sphere.radius


def layer_sphere_overlap(layer: LayerBody, sphere: SphereBody) -> bool:
    return sphere_layer_overlap(sphere, layer)


def layer_layer_overlap(layer1: LayerBody, layer2: LayerBody) -> bool:
    # Compared on the same bounds that containment uses, so two layers that
    # share a point by is_in_volume always overlap
    lower1, upper1 = layer1.lower_corner, layer1.upper_corner
    lower2, upper2 = layer2.lower_corner, layer2.upper_corner
    for low1, high1, low2, high2 in zip(lower1, upper1, lower2, upper2):
        if low1 > high2 or low2 > high1:
            return False
    return True


OVERLAP_TESTS: Dict[Tuple[BodyType, BodyType],
                    Callable[[CompactBody, CompactBody], bool]] = {
    (BodyType.SPHERE, BodyType.SPHERE): sphere_sphere_overlap,
    (BodyType.SPHERE, BodyType.LAYER): sphere_layer_overlap,
    (BodyType.LAYER, BodyType.SPHERE): layer_sphere_overlap,
    (BodyType.LAYER, BodyType.LAYER): layer_layer_overlap,
}


def is_overlap(body1: CompactBody, body2: CompactBody) -> bool:
    """
    Checks whether two bodies of any supported shape overlap.

    Args:
        body1 (CompactBody): The first body
        body2 (CompactBody): The second body

    Returns:
        bool: True if the closed volumes intersect
    """
    key = (getattr(body1, 'body_type', None), getattr(body2, 'body_type',
                                                       None))
    try:
        overlap_test = OVERLAP_TESTS[key]
    except KeyError as e:
        raise InvalidArgument(
            f'No overlap test for {type(body1).__name__} and '
            f'{type(body2).__name__}') from e
    return overlap_test(body1, body2)


def points_along_line(start: SpacePoint, end: SpacePoint,
                      step_distance: float) -> List[SpacePoint]:
    """
    Walks from `start` toward `end` in steps of `step_distance`.

    The walk never passes `end`. It stops on `end` only when the length of the
    segment is a multiple of the step, up to floating point rounding, in which
    case the last point is `end` itself.

    Args:
        start (SpacePoint): First point of the walk
        end (SpacePoint): Point to walk toward
        step_distance (float): Distance between consecutive points

    Returns:
        List[SpacePoint]: The points of the walk, starting with `start`

    Example:
        >>> points = points_along_line(SpacePoint(0, 0, 0),
        ...                            SpacePoint(10, 0, 0), 2.0)
        >>> [p.x for p in points]
        [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]
    """
    step_distance = check_positive('step_distance', step_distance)
    length = start.distance_to(end)
    if length == 0:
        return [start]

    ratio = length / step_distance
    if not math.isfinite(ratio):
        raise InvalidArgument(
            f'step_distance {step_distance} is too small for a segment of '
            f'length {length}')
    nearest = round(ratio)
    reaches_end = nearest > 0 and math.isclose(
        ratio, nearest, rel_tol=LINE_STEP_RTOL)
    n_steps = nearest if reaches_end else math.floor(ratio)

    direction = (end - start) * (1 / length)
    points = [start]
    for i in range(1, n_steps + 1):
        if reaches_end and i == n_steps:
            points.append(end)
        else:
            points.append(start + direction * (i * step_distance))
    return points


def points_along_line_by_count(start: SpacePoint, end: SpacePoint,
                               n: int) -> List[SpacePoint]:
    """
    Returns `n` evenly spaced points from `start` to `end`, both included.
    """
    n = check_count(n, minimum=2)
    displacement = end - start
    points = [start + displacement * (i / (n - 1)) for i in range(n - 1)]
    points.append(end)
    return points
