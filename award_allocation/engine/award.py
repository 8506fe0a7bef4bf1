"""Per-applicant award computation: caps, floor handling and rounding."""

import math


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``; ``high`` wins if the bounds cross."""
    return min(max(value, low), high)


def round_to_increment(value: float, increment: float) -> float:
    """Round ``value`` half-up to the nearest multiple of ``increment``."""
    if increment <= 0:
        return value
    return math.floor(value / increment + 0.5) * increment


def compute_award(
    requested: float,
    min_award: float,
    max_award: float,
    round_to: float,
    max_percent: float,
) -> float:
    """Compute the award for one applicant in isolation.

    The cap is the tighter of ``max_award`` and ``requested * max_percent``.
    Requests below the floor are honored as-is rather than raised to it, and
    the result is re-clamped to the cap after that override and again after
    rounding.

    Parameters
    ----------
    requested : float
        Requested amount.
    min_award : float
        Award floor.
    max_award : float
        Absolute award ceiling.
    round_to : float
        Rounding increment; 0 disables rounding.
    max_percent : float
        Maximum fraction of the request that may be awarded.

    Returns
    -------
    float
        Award amount, never negative and never above the cap.
    """
    cap = max(min(max_award, requested * max_percent), 0.0)
    award = clamp(requested, min_award, cap)
    if requested < min_award:
        award = requested
    award = min(award, cap)
    if round_to > 0:
        award = round_to_increment(award, round_to)
        award = clamp(award, min_award, cap)
    return max(award, 0.0)
