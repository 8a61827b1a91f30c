class CompartmentError(ValueError):
    """
    Base class for errors raised while building or querying compartments.
    """


class InvalidGeometry(CompartmentError):
    """
    Raised when a body is constructed with a shape parameter that violates
    its invariant, such as a non-positive radius or extent.
    """


class InvalidArgument(CompartmentError):
    """
    Raised when an operation receives an unusable argument, such as a
    negative sample count or a non-positive step distance.
    """
