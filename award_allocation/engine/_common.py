"""Shared preprocessing for the allocation engine.

Contains the eligibility filter, score normalization, need-weighted priority
blending and the deterministic ranking that every allocation pass walks.
"""

import logging

from award_allocation.models import NEED_TIERS, Applicant

logger = logging.getLogger(__name__)

NEED_BASE = {"high": 1.0, "medium": 0.5, "low": 0.0}

REASON_NON_POSITIVE_REQUEST = "requested amount must be positive"
REASON_INVALID_TIER = "invalid need tier"
REASON_LOW_SCORE = "score below minimum"


def mark_ineligible(applicant: Applicant, reason: str) -> None:
    """Flag ``applicant`` as ineligible and append ``reason`` to its message."""
    applicant.eligible = False
    if not applicant.eligibility_reason:
        applicant.eligibility_reason = reason
    else:
        applicant.eligibility_reason = f"{applicant.eligibility_reason}; {reason}"


def apply_eligibility(applicants: list[Applicant], min_score: float = 0.0) -> int:
    """Mark structurally invalid or low-scoring applicants as ineligible.

    Reasons accumulate, so an applicant failing several checks carries all of
    them. Must run exactly once per applicant list.

    Parameters
    ----------
    applicants : list[Applicant]
        Applicants to check, mutated in place.
    min_score : float
        Raw score threshold; 0 disables the check.

    Returns
    -------
    int
        Number of applicants flagged as ineligible.
    """
    flagged = 0
    for applicant in applicants:
        if not applicant.requested > 0:
            mark_ineligible(applicant, REASON_NON_POSITIVE_REQUEST)
        if applicant.need_tier not in NEED_TIERS:
            mark_ineligible(applicant, REASON_INVALID_TIER)
        if min_score > 0 and applicant.raw_score < min_score:
            mark_ineligible(applicant, REASON_LOW_SCORE)
        if not applicant.eligible:
            flagged += 1
    logger.info("Eligibility check: %d of %d applicants ineligible", flagged, len(applicants))
    return flagged


def normalize_scores(applicants: list[Applicant]) -> float:
    """Scale raw scores into [0, 1] by the population maximum.

    The maximum is taken over every applicant, eligible or not, so excluding
    the top scorer does not change the scale for everyone else.

    Returns
    -------
    float
        Denominator used (1 when every score is 0).
    """
    max_score = max((a.raw_score for a in applicants), default=0.0)
    if max_score <= 0:
        max_score = 1.0
    for applicant in applicants:
        applicant.normalized_score = applicant.raw_score / max_score
    return max_score


def need_base(tier: str) -> float:
    """Map a lowercase need tier to its base priority value; unknown tiers score 0."""
    return NEED_BASE.get(tier, 0.0)


def assign_priority(applicants: list[Applicant], score_weight: float, need_weight: float) -> None:
    """Blend normalized score and need tier into a single priority.

    Parameters
    ----------
    applicants : list[Applicant]
        Applicants with ``normalized_score`` already set.
    score_weight : float
        Weight of the normalized score.
    need_weight : float
        Weight of the need tier base value.

    Raises
    ------
    ValueError
        If the weights sum to zero.
    """
    total = score_weight + need_weight
    if total == 0:
        raise ValueError("score_weight and need_weight cannot both be zero")
    for applicant in applicants:
        need = need_weight * need_base(applicant.need_tier)
        applicant.priority = (score_weight * applicant.normalized_score + need) / total


def rank_applicants(applicants: list[Applicant]) -> list[Applicant]:
    """Sort applicants in place by priority, then raw score, both descending.

    The sort is stable: applicants equal on both keys keep their input order.

    Returns
    -------
    list[Applicant]
        The same list, now ranked.
    """
    applicants.sort(key=lambda a: (a.priority, a.raw_score), reverse=True)
    return applicants
