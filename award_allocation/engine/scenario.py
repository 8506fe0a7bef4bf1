"""Scenario runner: re-simulate funding under alternate budgets."""

import dataclasses
import logging

from award_allocation.config import AllocationConfig
from award_allocation.engine.allocator import allocate_budget, total_awarded
from award_allocation.engine.summary import average
from award_allocation.models import Applicant, ScenarioResult

logger = logging.getLogger(__name__)


def clone_applicants(applicants: list[Applicant]) -> list[Applicant]:
    """Copy applicants with awards reset, keeping order, scores and eligibility."""
    return [dataclasses.replace(a, awarded=0.0) for a in applicants]


def summarize_scenario(applicants: list[Applicant], awarded: list[Applicant], budget: float) -> ScenarioResult:
    """Reduced summary of one scenario run: budget, coverage and funding rates."""
    eligible_count = 0
    unfunded_count = 0
    fully_funded = 0
    partially_funded = 0
    requested_total = 0.0
    rates = []
    for applicant in applicants:
        if not applicant.eligible:
            continue
        eligible_count += 1
        requested_total += applicant.requested
        if applicant.awarded == 0:
            unfunded_count += 1
            continue
        if applicant.awarded >= applicant.requested:
            fully_funded += 1
        else:
            partially_funded += 1
        if applicant.requested > 0:
            rates.append(applicant.awarded / applicant.requested)

    budget_used = total_awarded(awarded)
    return ScenarioResult(
        budget=budget,
        budget_used=budget_used,
        budget_left=budget - budget_used,
        budget_required_full=requested_total,
        awarded_count=len(awarded),
        eligible_count=eligible_count,
        eligible_unfunded_count=unfunded_count,
        fully_funded_count=fully_funded,
        partially_funded_count=partially_funded,
        coverage_rate=budget_used / requested_total if requested_total > 0 else 0.0,
        full_funding_rate=fully_funded / eligible_count if eligible_count > 0 else 0.0,
        funding_gap_total=max(0.0, requested_total - budget_used),
        average_award=budget_used / len(awarded) if awarded else 0.0,
        award_to_request_avg=average(rates),
    )


def run_scenarios(
    applicants: list[Applicant],
    budgets: list[float] | tuple[float, ...],
    config: AllocationConfig,
) -> list[ScenarioResult]:
    """Allocate each alternate budget against an isolated copy of ``applicants``.

    Parameters
    ----------
    applicants : list[Applicant]
        Ranked applicants. Never mutated.
    budgets : sequence of float
        Alternate total budgets, each positive.
    config : AllocationConfig
        Caps, rounding and reserve shares shared by every scenario.

    Returns
    -------
    list[ScenarioResult]
        One result per budget, in the order given.
    """
    results = []
    for budget in budgets:
        clone = clone_applicants(applicants)
        awarded = allocate_budget(clone, config.with_budget(budget))
        results.append(summarize_scenario(clone, awarded, budget))
    logger.info("Ran %d budget scenarios", len(results))
    return results
