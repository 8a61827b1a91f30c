from CompartmentTools.geometry.bodies import LayerBody, SphereBody
from CompartmentTools.geometry.point import SpacePoint
from CompartmentTools.util.exceptions import InvalidArgument
from CompartmentTools.util.sampler import PlacementSampler
import itertools
import logging
import numpy as np
import pytest

ORIGIN = SpacePoint(0, 0, 0)


def test_default_sampler():
    sampler = PlacementSampler(seed=0)

    assert sampler.seed == 0
    assert sampler.number_of_trials == 100
    assert sampler.step_distance == 1.0
    assert sampler._random_source is None

    random_source = sampler.random_source
    assert sampler._random_source is not None
    assert sampler.random_source is random_source
    assert random_source.seed == 0


def test_invalid_sampler():
    with pytest.raises(InvalidArgument):
        PlacementSampler(number_of_trials=0)
    with pytest.raises(InvalidArgument):
        PlacementSampler(number_of_trials=2.5)
    with pytest.raises(InvalidArgument):
        PlacementSampler(step_distance=0)
    with pytest.raises(InvalidArgument):
        PlacementSampler(step_distance=float('nan'))
    with pytest.raises(InvalidArgument):
        PlacementSampler(number_of_trials=float('nan'))
    with pytest.raises(InvalidArgument):
        PlacementSampler(number_of_trials=None)
    with pytest.raises(InvalidArgument):
        PlacementSampler(step_distance=None)


def test_sampler_as_dict():
    sampler = PlacementSampler(seed=3, number_of_trials=20, step_distance=0.5)
    sampler_dict = sampler.as_dict()
    assert sampler_dict['number_of_trials'] == 20
    assert sampler_dict['step_distance'] == pytest.approx(0.5)

    new_sampler = PlacementSampler.from_dict(sampler_dict)
    assert new_sampler.seed == 3
    assert new_sampler.number_of_trials == 20
    assert new_sampler._random_source is None


def test_reproducible_sampling():
    layer = LayerBody(ORIGIN, 10, 10, 10)
    points1 = PlacementSampler(seed=7).random_points_in_volume(layer, 50)
    points2 = PlacementSampler(seed=7).random_points_in_volume(layer, 50)
    points3 = PlacementSampler(seed=8).random_points_in_volume(layer, 50)
    assert points1 == points2
    assert points1 != points3

    sphere = SphereBody(ORIGIN, 3)
    points = PlacementSampler(seed=7).random_points_on_surface(sphere, 50)
    assert len(points) == 50
    assert np.allclose([p.norm() for p in points], 3)


def test_random_points_excluding_spheres():
    sampler = PlacementSampler(seed=0)
    layer = LayerBody(ORIGIN, 10, 10, 10)
    excluded = [
        SphereBody(ORIGIN, 3),
        SphereBody(SpacePoint(5, 5, 5), 2),
    ]

    points = sampler.random_points_excluding_spheres(layer, 500, excluded)
    assert len(points) == 500
    assert all(layer.is_in_volume(p) for p in points)
    assert not any(s.is_in_volume(p) for p in points for s in excluded)

    assert sampler.random_points_excluding_spheres(layer, 0, excluded) == []
    with pytest.raises(InvalidArgument):
        sampler.random_points_excluding_spheres(layer, -1, excluded)


def test_random_points_excluding_spheres_fallback(caplog):
    sampler = PlacementSampler(seed=0, number_of_trials=5)
    body = SphereBody(ORIGIN, 1)
    excluded = [SphereBody(ORIGIN, 2)]

    with caplog.at_level(logging.WARNING):
        points = sampler.random_points_excluding_spheres(body, 3, excluded)
    assert len(points) == 3
    assert all(body.is_in_volume(p) for p in points)
    assert 'after 5 trials' in caplog.text


def test_random_point_pairs_excluding_spheres():
    sampler = PlacementSampler(seed=1, step_distance=0.5)
    layer = LayerBody(ORIGIN, 20, 20, 20)
    excluded = [SphereBody(ORIGIN, 4)]

    pairs = sampler.random_point_pairs_excluding_spheres(layer, 100, excluded)
    assert len(pairs) == 100
    for first, second in pairs:
        assert layer.is_in_volume(first)
        assert layer.is_in_volume(second)
        assert not excluded[0].is_in_volume(first)
        assert not excluded[0].is_in_volume(second)
        assert first.distance_to(second) >= 0.5 - 1e-9

    assert sampler.random_point_pairs_excluding_spheres(layer, 0,
                                                        excluded) == []


def test_non_overlapping_random_spheres():
    sampler = PlacementSampler(seed=2)
    container = LayerBody(ORIGIN, 20, 20, 20)
    obstacle = LayerBody(SpacePoint(0, 0, 5), 20, 20, 10)

    spheres = sampler.non_overlapping_random_spheres(container,
                                                     10,
                                                     1,
                                                     obstacles=[obstacle])
    assert len(spheres) == 10
    for sphere in spheres:
        assert sphere.radius == 1
        assert container.inset(1).is_in_volume(sphere.center)
        assert not sphere.is_overlap(obstacle)
    for sphere1, sphere2 in itertools.combinations(spheres, 2):
        assert not sphere1.is_overlap(sphere2)


def test_non_overlapping_random_spheres_in_sphere():
    sampler = PlacementSampler(seed=3)
    container = SphereBody(ORIGIN, 10)
    excluded = [SphereBody(ORIGIN, 3)]

    spheres = sampler.non_overlapping_random_spheres(
        container, 15, 1.5, excluded_spheres=excluded)
    assert len(spheres) == 15
    for sphere in spheres:
        assert sphere.center.distance_to(ORIGIN) <= 8.5
        assert not sphere.is_overlap(excluded[0])
    for sphere1, sphere2 in itertools.combinations(spheres, 2):
        assert not sphere1.is_overlap(sphere2)


def test_non_overlapping_random_spheres_radius_clipped():
    sampler = PlacementSampler(seed=4, number_of_trials=3)
    container = SphereBody(SpacePoint(1, 1, 1), 2)

    spheres = sampler.non_overlapping_random_spheres(container, 1, 5)
    assert spheres == [container]


def test_non_overlapping_random_spheres_fallback(caplog):
    sampler = PlacementSampler(seed=5, number_of_trials=20)
    container = LayerBody(ORIGIN, 4, 4, 4)
    obstacle = SphereBody(SpacePoint(50, 50, 50), 1)

    with caplog.at_level(logging.WARNING):
        spheres = sampler.non_overlapping_random_spheres(container,
                                                         20,
                                                         1,
                                                         obstacles=[obstacle])
    assert len(spheres) == 20
    assert 'without the overlap check' in caplog.text

    # The first spheres are placed with the overlap check and the rest reuse
    # their centers
    n_placed = next(i for i in range(1, 20) if spheres[i] in spheres[:i])
    placed = spheres[:n_placed]
    for sphere1, sphere2 in itertools.combinations(placed, 2):
        assert not sphere1.is_overlap(sphere2)
    assert set(spheres) == set(placed)

    # Without obstacles the remaining spheres get random centers
    with caplog.at_level(logging.WARNING):
        spheres = sampler.non_overlapping_random_spheres(container, 20, 1)
    assert len(spheres) == 20
    assert all(container.inset(1).is_in_volume(s.center) for s in spheres)


def test_non_overlapping_random_spheres_invalid():
    sampler = PlacementSampler(seed=6)
    container = LayerBody(ORIGIN, 4, 4, 4)
    with pytest.raises(InvalidArgument):
        sampler.non_overlapping_random_spheres(container, 0, 1)
    with pytest.raises(InvalidArgument):
        sampler.non_overlapping_random_spheres(container, 2, 0)
    with pytest.raises(ValueError):
        sampler.non_overlapping_random_spheres(container, 2, -1)


def test_invalid_counts():
    sampler = PlacementSampler(seed=7)
    layer = LayerBody(ORIGIN, 4, 4, 4)
    excluded = [SphereBody(ORIGIN, 1)]
    for n in [float('nan'), float('inf'), None]:
        with pytest.raises(InvalidArgument):
            sampler.random_points_excluding_spheres(layer, n, excluded)
        with pytest.raises(InvalidArgument):
            sampler.random_point_pairs_excluding_spheres(layer, n, excluded)
        with pytest.raises(InvalidArgument):
            sampler.non_overlapping_random_spheres(layer, n, 1)
    with pytest.raises(InvalidArgument):
        sampler.non_overlapping_random_spheres(layer, 2, float('nan'))
