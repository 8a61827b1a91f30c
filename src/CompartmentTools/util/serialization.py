import logging
from pathlib import Path
from typing import List, Sequence

from monty.json import MontyDecoder
from monty.serialization import dumpfn, loadfn

from CompartmentTools.geometry.bodies import CompactBody
from CompartmentTools.util.exceptions import InvalidArgument
from CompartmentTools.util.sampler import PlacementSampler

logger = logging.getLogger(__name__)


def dump_compartments(bodies: Sequence[CompactBody],
                      filename: str | Path) -> None:
    """
    Writes compartment bodies to a file. The format (json or yaml) is picked
    from the file extension.

    Args:
        bodies (Sequence[CompactBody]): The bodies to write
        filename (str, Path): Path of the output file
    """
    bodies = list(bodies)
    for body in bodies:
        if not isinstance(body, CompactBody):
            raise InvalidArgument(
                f'Only compact bodies can be written, got {body!r}')
    dumpfn(bodies, str(filename))
    logger.debug('Wrote %d compartments to %s', len(bodies), filename)


def load_compartments(filename: str | Path) -> List[CompactBody]:
    """
    Reads compartment bodies written by `dump_compartments`.

    Every body is rebuilt through its constructor, so a file describing an
    invalid body raises InvalidGeometry.
    """
    data = MontyDecoder().process_decoded(loadfn(str(filename)))
    if isinstance(data, CompactBody):
        data = [data]
    if not isinstance(data, list) or not all(
            isinstance(body, CompactBody) for body in data):
        raise InvalidArgument(f'{filename} does not contain compact bodies')
    logger.debug('Read %d compartments from %s', len(data), filename)
    return data


def load_placement_settings(filename: str | Path) -> PlacementSampler:
    """
    Reads a PlacementSampler from a file.

    The file holds either a serialized PlacementSampler or a plain mapping of
    its arguments, e.g. {"seed": 7, "number_of_trials": 50}.
    """
    data = MontyDecoder().process_decoded(loadfn(str(filename)))
    if isinstance(data, PlacementSampler):
        return data
    if isinstance(data, dict):
        try:
            return PlacementSampler(**data)
        except TypeError as e:
            raise InvalidArgument(
                f'Unknown placement settings in {filename}: {e}') from e
    raise InvalidArgument(f'{filename} does not contain placement settings')
