# Relative amount by which a sampled surface point is pulled toward the body
# center when rounding puts it just outside the closed volume
SURFACE_PULL_FACTOR = 1e-12

# Relative tolerance used when deciding whether a segment length is a
# multiple of the step distance
LINE_STEP_RTOL = 1e-9

# Default number of trials for rejection-based placement
DEFAULT_NUMBER_OF_TRIALS = 100

# Default step distance used when walking along a segment between two points
DEFAULT_STEP_DISTANCE = 1.0

# Record layout of the package logger, e.g.
# 12:00:01 - CompartmentTools.util.sampler - WARNING - Placed 3 of 5 ...
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'
