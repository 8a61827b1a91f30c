from CompartmentTools.geometry.bodies import LayerBody, SphereBody
from CompartmentTools.geometry.point import SpacePoint
from CompartmentTools.util.exceptions import InvalidArgument, InvalidGeometry
from CompartmentTools.util.sampler import PlacementSampler
from CompartmentTools.util.serialization import (dump_compartments,
                                                 load_compartments,
                                                 load_placement_settings)
import json
import pytest


def test_compartments_round_trip(tmp_path):
    bodies = [
        SphereBody(SpacePoint(0, 0, -9), 10),
        LayerBody(SpacePoint(0, 0, 10), 20, 20, 20),
    ]
    filename = tmp_path / 'compartments.json'
    dump_compartments(bodies, filename)

    loaded = load_compartments(filename)
    assert loaded == bodies
    assert loaded[0].is_overlap(loaded[1])


def test_dump_invalid_compartments(tmp_path):
    with pytest.raises(InvalidArgument):
        dump_compartments([SpacePoint(0, 0, 0)], tmp_path / 'bad.json')


def test_load_invalid_compartments(tmp_path):
    layer_dict = LayerBody(SpacePoint(0, 0, 0), 1, 1, 1).as_dict()
    layer_dict['y_extent'] = -1
    filename = tmp_path / 'invalid.json'
    filename.write_text(json.dumps([layer_dict]))
    with pytest.raises(InvalidGeometry):
        load_compartments(filename)

    filename = tmp_path / 'numbers.json'
    filename.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(InvalidArgument):
        load_compartments(filename)


def test_load_placement_settings(tmp_path):
    filename = tmp_path / 'settings.json'
    filename.write_text(json.dumps({'seed': 7, 'number_of_trials': 50}))
    sampler = load_placement_settings(filename)
    assert sampler.seed == 7
    assert sampler.number_of_trials == 50
    assert sampler.step_distance == 1.0

    filename = tmp_path / 'sampler.json'
    filename.write_text(
        json.dumps(PlacementSampler(seed=1, step_distance=0.25).as_dict()))
    sampler = load_placement_settings(filename)
    assert isinstance(sampler, PlacementSampler)
    assert sampler.step_distance == 0.25

    filename.write_text(json.dumps({'number_of_trials': 0}))
    with pytest.raises(InvalidArgument):
        load_placement_settings(filename)

    filename.write_text(json.dumps({'temperature': 300}))
    with pytest.raises(InvalidArgument):
        load_placement_settings(filename)
