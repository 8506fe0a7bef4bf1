"""Post-allocation statistics: coverage, distribution and need-tier equity."""

import logging
from collections import Counter
from datetime import datetime, timezone

import numpy as np

from award_allocation.models import (
    NEED_TIERS,
    AllocationSummary,
    Applicant,
    AwardRecord,
    IneligibleRecord,
    NeedCoverage,
    NeedTotals,
    NeedUnfunded,
    ScenarioResult,
)

logger = logging.getLogger(__name__)


def percentile(values: list[float], p: float) -> float:
    """Nearest-rank percentile of ``values``.

    Parameters
    ----------
    values : list[float]
        Sample, in any order.
    p : float
        Percentile as a fraction in [0, 1].

    Returns
    -------
    float
        ``sorted(values)[ceil(p * n) - 1]``, the minimum for ``p <= 0``, the
        maximum for ``p >= 1``, or 0 for an empty sample.
    """
    if len(values) == 0:
        return 0.0
    if p <= 0:
        return float(min(values))
    if p >= 1:
        return float(max(values))
    return float(np.percentile(values, p * 100, method="inverted_cdf"))


def average(values: list[float]) -> float:
    """Arithmetic mean, 0 for an empty sample."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def _safe_div(numerator: float, denominator: float) -> float:
    """Divide, returning 0 when the denominator is 0."""
    return numerator / denominator if denominator else 0.0


def _award_record(applicant: Applicant) -> AwardRecord:
    """Flatten a funded or unfunded applicant into an export row."""
    return AwardRecord(
        applicant_id=applicant.id,
        name=applicant.name,
        need_level=applicant.need_tier,
        score=applicant.raw_score,
        requested=applicant.requested,
        awarded=applicant.awarded,
        priority=applicant.priority,
    )


def _ineligible_record(applicant: Applicant) -> IneligibleRecord:
    """Flatten an ineligible applicant, with its reasons, into an export row."""
    return IneligibleRecord(
        applicant_id=applicant.id,
        name=applicant.name,
        need_level=applicant.need_tier,
        score=applicant.raw_score,
        requested=applicant.requested,
        reason=applicant.eligibility_reason,
    )


def _need_coverage(
    tier_requested: dict[str, float],
    tier_awarded: dict[str, float],
    tier_counts: dict[str, Counter],
    requested_total: float,
    budget_used: float,
) -> dict[str, NeedCoverage]:
    """Per-tier coverage and the gap between awarded and requested budget shares.

    Parameters
    ----------
    tier_requested, tier_awarded : dict[str, float]
        Eligible requested and awarded totals per tier.
    tier_counts : dict[str, Counter]
        ``eligible``, ``awarded`` and ``unfunded`` counts per tier.
    requested_total : float
        Eligible requested total across tiers.
    budget_used : float
        Awarded total across tiers.

    Returns
    -------
    dict[str, NeedCoverage]
        One entry per tier in ``NEED_TIERS`` order.
    """
    coverage = {}
    for tier in NEED_TIERS:
        requested_share = _safe_div(tier_requested[tier], requested_total)
        awarded_share = _safe_div(tier_awarded[tier], budget_used)
        coverage[tier] = NeedCoverage(
            eligible_count=tier_counts[tier]["eligible"],
            awarded_count=tier_counts[tier]["awarded"],
            unfunded_count=tier_counts[tier]["unfunded"],
            requested_total=tier_requested[tier],
            awarded_total=tier_awarded[tier],
            coverage_rate=_safe_div(tier_awarded[tier], tier_requested[tier]),
            requested_share=requested_share,
            awarded_share=awarded_share,
            share_delta=awarded_share - requested_share,
        )
    return coverage


def summarize(
    applicants: list[Applicant],
    budget: float,
    awarded: list[Applicant],
    scenario_results: list[ScenarioResult] | None = None,
) -> AllocationSummary:
    """Aggregate a finished allocation into an :class:`AllocationSummary`.

    Parameters
    ----------
    applicants : list[Applicant]
        Every applicant of the run, eligible or not, in rank order.
    budget : float
        Total budget of the run.
    awarded : list[Applicant]
        Funded applicants in funding order. Its last entry is reported as the
        marginal (last funded) applicant.
    scenario_results : list[ScenarioResult], optional
        Alternate-budget results to attach.

    Returns
    -------
    AllocationSummary
    """
    tier_requested = {tier: 0.0 for tier in NEED_TIERS}
    tier_awarded = {tier: 0.0 for tier in NEED_TIERS}
    tier_counts = {tier: Counter() for tier in NEED_TIERS}
    unfunded_requested = {tier: 0.0 for tier in NEED_TIERS}
    ineligible_reasons: Counter = Counter()

    eligible_count = 0
    ineligible_count = 0
    unfunded_count = 0
    unfunded_amount = 0.0
    requested_total = 0.0
    fully_funded = 0
    partially_funded = 0

    for applicant in applicants:
        if not applicant.eligible:
            ineligible_count += 1
            if applicant.eligibility_reason:
                ineligible_reasons[applicant.eligibility_reason] += 1
            continue
        tier = applicant.need_tier
        eligible_count += 1
        requested_total += applicant.requested
        tier_requested[tier] += applicant.requested
        tier_counts[tier]["eligible"] += 1
        if applicant.awarded == 0:
            unfunded_count += 1
            unfunded_amount += applicant.requested
            unfunded_requested[tier] += applicant.requested
            tier_counts[tier]["unfunded"] += 1
            continue
        tier_awarded[tier] += applicant.awarded
        tier_counts[tier]["awarded"] += 1
        if applicant.awarded >= applicant.requested:
            fully_funded += 1
        else:
            partially_funded += 1

    amounts = [a.awarded for a in awarded]
    rates = [a.awarded / a.requested for a in awarded if a.requested > 0]
    budget_used = float(sum(amounts))

    by_need = {}
    for tier in NEED_TIERS:
        tier_items = [a for a in awarded if a.need_tier == tier]
        by_need[tier] = NeedTotals(
            awarded_count=len(tier_items),
            budget_used=sum(a.awarded for a in tier_items),
        )

    last = awarded[-1] if awarded else None

    summary = AllocationSummary(
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        budget=budget,
        budget_used=budget_used,
        budget_left=budget - budget_used,
        budget_required_full=requested_total,
        budget_shortfall=max(0.0, requested_total - budget),
        applicants=len(applicants),
        eligible_count=eligible_count,
        awarded_count=len(awarded),
        ineligible_count=ineligible_count,
        eligible_unfunded_count=unfunded_count,
        eligible_unfunded_amount=unfunded_amount,
        eligible_requested_total=requested_total,
        fully_funded_count=fully_funded,
        partially_funded_count=partially_funded,
        funding_gap_total=max(0.0, requested_total - budget_used),
        coverage_rate=_safe_div(budget_used, requested_total),
        full_funding_rate=_safe_div(fully_funded, eligible_count),
        average_award=_safe_div(budget_used, len(awarded)),
        award_p25=percentile(amounts, 0.25),
        award_p50=percentile(amounts, 0.50),
        award_p75=percentile(amounts, 0.75),
        award_to_request_avg=average(rates),
        min_awarded=min(amounts, default=0.0),
        max_awarded=max(amounts, default=0.0),
        last_funded_priority=last.priority if last else 0.0,
        last_funded_score=last.raw_score if last else 0.0,
        last_funded_need=last.need_tier if last else "",
        last_funded_requested=last.requested if last else 0.0,
        by_need=by_need,
        need_coverage=_need_coverage(tier_requested, tier_awarded, tier_counts, requested_total, budget_used),
        unfunded_by_need={
            tier: NeedUnfunded(count=tier_counts[tier]["unfunded"], requested=unfunded_requested[tier])
            for tier in NEED_TIERS
        },
        ineligible_reasons=dict(ineligible_reasons),
        awards=[_award_record(a) for a in awarded],
        unfunded=[_award_record(a) for a in applicants if a.eligible and a.awarded == 0],
        ineligible=[_ineligible_record(a) for a in applicants if not a.eligible],
        scenario_results=list(scenario_results or []),
    )
    logger.info(
        "Summary: %d eligible, %d awarded, budget used %.2f of %.2f (coverage %.1f%%)",
        eligible_count,
        len(awarded),
        budget_used,
        budget,
        summary.coverage_rate * 100,
    )
    return summary
