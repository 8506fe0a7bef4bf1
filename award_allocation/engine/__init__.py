"""Award allocation engine.

Provides the scoring pipeline (eligibility, normalization, priority, ranking),
the multi-pass budget allocator, the summarizer and the scenario runner.

Convenience function ``run_allocation`` chains every step for a single batch
run over a static applicant list.
"""

import logging

from award_allocation.config import AllocationConfig
from award_allocation.engine._common import (
    NEED_BASE,
    apply_eligibility,
    assign_priority,
    mark_ineligible,
    need_base,
    normalize_scores,
    rank_applicants,
)
from award_allocation.engine._types import AllocationRun, FundingStage, PassFilter
from award_allocation.engine.allocator import allocate_budget, allocate_pass, build_stages, total_awarded
from award_allocation.engine.award import clamp, compute_award, round_to_increment
from award_allocation.engine.scenario import clone_applicants, run_scenarios, summarize_scenario
from award_allocation.engine.summary import average, percentile, summarize
from award_allocation.models import Applicant

__all__ = [
    "NEED_BASE",
    "AllocationRun",
    "FundingStage",
    "PassFilter",
    "allocate_budget",
    "allocate_pass",
    "apply_eligibility",
    "assign_priority",
    "average",
    "build_stages",
    "clamp",
    "clone_applicants",
    "compute_award",
    "mark_ineligible",
    "need_base",
    "normalize_scores",
    "percentile",
    "prepare",
    "rank_applicants",
    "round_to_increment",
    "run_allocation",
    "run_scenarios",
    "summarize",
    "summarize_scenario",
    "total_awarded",
]

logger = logging.getLogger(__name__)


def prepare(applicants: list[Applicant], config: AllocationConfig) -> list[Applicant]:
    """Filter, normalize, score and rank applicants in place.

    Parameters
    ----------
    applicants : list[Applicant]
        Freshly loaded applicants.
    config : AllocationConfig
        Supplies the minimum score and the priority weights.

    Returns
    -------
    list[Applicant]
        The same list, ranked.
    """
    apply_eligibility(applicants, config.min_score)
    normalize_scores(applicants)
    assign_priority(applicants, config.score_weight, config.need_weight)
    return rank_applicants(applicants)


def run_allocation(applicants: list[Applicant], config: AllocationConfig) -> AllocationRun:
    """Run the full pipeline and summarize the outcome.

    Scenario budgets from ``config`` are simulated on copies of the ranked
    list and attached to the summary; they never touch ``applicants``.

    Parameters
    ----------
    applicants : list[Applicant]
        Freshly loaded applicants, mutated and ranked in place.
    config : AllocationConfig
        Validated run configuration.

    Returns
    -------
    AllocationRun
    """
    ranked = prepare(applicants, config)
    logger.info("Ranked %d applicants", len(ranked))
    awarded = allocate_budget(ranked, config)
    scenario_results = run_scenarios(ranked, config.scenario_budgets, config) if config.scenario_budgets else []
    summary = summarize(ranked, config.budget, awarded, scenario_results)
    return AllocationRun(applicants=ranked, awarded=awarded, summary=summary)
