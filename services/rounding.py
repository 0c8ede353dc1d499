import math


def round_half_up(value: float, digits: int = 0):
    """Round halves upward (170.5 -> 171, 0.25 -> 0.3 at one digit).

    The builtin round() sends halves to the nearest even number, which would
    shift pace and pause figures by one unit at every .5 boundary.
    """
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
