"""Shannon entropy over confidence values."""

import math
from typing import Iterable


def entropy(confidences: Iterable[float]) -> float:
    """
    Entropy in bits of the confidences renormalised into a distribution.

    Empty input or zero total mass has no uncertainty to speak of and yields 0.
    """
    values = list(confidences)
    total = sum(values)
    if not values or total <= 0:
        return 0.0

    h = 0.0
    for value in values:
        p = value / total
        if p > 0:
            h -= p * math.log2(p)
    # A one-point mass can come out as -0.0
    return max(0.0, h)
