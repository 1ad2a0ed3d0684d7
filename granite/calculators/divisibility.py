"""
Divisibility adjustment for wholesale customer types.

A raw dimension has a fixed allowance subtracted (3" for length, 2" for
breadth) and is then stepped down one inch at a time until it is a multiple
of 3. The step loop is bounded; for whole-inch input it never runs more than
two steps, but fractional input (e.g. 1000.5) can walk all the way down and
hit the ceiling. Hitting the ceiling yields 0 and a ComputationAnomaly.
"""

import logging

from ..errors import ComputationAnomaly

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
LENGTH_ALLOWANCE = 3
BREADTH_ALLOWANCE = 2


def reduce_to_multiple_of_three(raw: float, subtrahend: float,
                                max_iterations: int = MAX_ITERATIONS) -> float:
    """
    Strict form of the adjustment. Raises ComputationAnomaly at the ceiling.

    Returns 0 (with a warning) when raw is smaller than the allowance.
    """
    if raw < subtrahend:
        logger.warning("Dimension %s is less than %s inches, result will be 0",
                       raw, subtrahend)
        return 0

    value = raw - subtrahend
    iterations = 0
    while value % 3 != 0 and value > 0 and iterations < max_iterations:
        value -= 1
        iterations += 1

    if iterations >= max_iterations:
        raise ComputationAnomaly(
            f"Divisibility adjustment exceeded {max_iterations} iterations for {raw}",
            field="dimension",
            value=raw,
            reason="iteration ceiling reached",
        )

    return max(value, 0)


def adjust_for_divisibility(raw: float, subtrahend: float, floor_fallback: float = 0,
                            max_iterations: int = MAX_ITERATIONS,
                            anomalies: list = None) -> float:
    """
    Reduce raw by subtrahend, then down to a multiple of 3.

    Never raises for the ceiling case: the anomaly is logged, appended to
    anomalies when a list is given, and floor_fallback is returned instead.
    """
    try:
        return reduce_to_multiple_of_three(raw, subtrahend, max_iterations)
    except ComputationAnomaly as e:
        logger.warning("Computation anomaly: %s", e.message)
        if anomalies is not None:
            anomalies.append(e.message)
        return floor_fallback
