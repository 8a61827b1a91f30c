import math
from typing import Type

from CompartmentTools.util.exceptions import (CompartmentError,
                                              InvalidArgument)


def check_count(n: int, minimum: int = 0, what: str = 'points') -> int:
    """
    Checks that `n` is a whole number of at least `minimum`.

    Args:
        n (int): The count to check. Floats with an integral value are
            accepted.
        minimum (int): Smallest allowed count
        what (str): Name of the counted things, used in the error message

    Returns:
        int: The count as an int
    """
    try:
        valid = int(n) == n and n >= minimum
    except (TypeError, ValueError, OverflowError):
        valid = False
    if not valid:
        raise InvalidArgument(f'Number of {what} must be an integer of at '
                              f'least {minimum}, got {n!r}')
    return int(n)


def check_positive(name: str,
                   value: float,
                   error: Type[CompartmentError] = InvalidArgument) -> float:
    """
    Checks that `value` is a positive, finite number and returns it as a
    float. `error` is raised otherwise.
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise error(f'{name} must be a number, got {value!r}') from e
    if not math.isfinite(value) or value <= 0:
        raise error(f'{name} must be positive and finite, got {value}')
    return value
