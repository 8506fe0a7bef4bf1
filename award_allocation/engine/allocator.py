"""Budget allocator: reserved need-tier passes followed by a residual pass.

Each pass walks the globally ranked applicant list once, funding eligible
applicants the pass allows until its sub-budget runs out. Reserve passes run
in the fixed tier order high, medium, low; the residual pass then funds any
applicant still unfunded from whatever the reserve passes did not spend.
"""

import logging

from award_allocation.config import AllocationConfig
from award_allocation.engine._types import FundingStage, PassFilter
from award_allocation.engine.award import compute_award
from award_allocation.models import Applicant

logger = logging.getLogger(__name__)

RESIDUAL_STAGE = FundingStage(name="residual", tier=None, share=None)


def total_awarded(applicants: list[Applicant]) -> float:
    """Sum the awarded amounts of ``applicants``."""
    return sum(a.awarded for a in applicants)


def build_stages(reserves: dict[str, float]) -> list[FundingStage]:
    """Build the ordered list of funding passes.

    Parameters
    ----------
    reserves : dict[str, float]
        Reserve share per need tier, in funding order.

    Returns
    -------
    list[FundingStage]
        One reserve stage per tier with a positive share, then the residual stage.
    """
    stages = [
        FundingStage(name=f"reserve:{tier}", tier=tier, share=share)
        for tier, share in reserves.items()
        if share > 0
    ]
    stages.append(RESIDUAL_STAGE)
    return stages


def allocate_pass(
    applicants: list[Applicant],
    pass_budget: float,
    config: AllocationConfig,
    allow: PassFilter,
) -> list[Applicant]:
    """Fund applicants in rank order from a single sub-budget.

    An award larger than what is left is truncated to the remainder, unless
    the remainder is below ``config.min_award``, in which case the pass ends.
    A truncated award is therefore always the last one of its pass.

    Parameters
    ----------
    applicants : list[Applicant]
        Ranked applicants. Funded applicants have ``awarded`` set in place.
    pass_budget : float
        Budget available to this pass.
    config : AllocationConfig
        Award floor, ceiling, rounding and percent cap.
    allow : Callable[[Applicant], bool]
        Pass-specific filter applied on top of eligibility.

    Returns
    -------
    list[Applicant]
        Applicants funded by this pass, in funding order.
    """
    remaining = pass_budget
    awarded: list[Applicant] = []
    if remaining <= 0:
        return awarded
    for applicant in applicants:
        if not applicant.eligible or not allow(applicant):
            continue
        award = compute_award(
            applicant.requested,
            config.min_award,
            config.max_award,
            config.round_to,
            config.max_percent,
        )
        if award <= 0:
            continue
        if award > remaining:
            if remaining < config.min_award:
                break
            award = remaining
        applicant.awarded = award
        remaining -= award
        awarded.append(applicant)
        if remaining <= 0:
            break
    return awarded


def allocate_budget(
    applicants: list[Applicant],
    config: AllocationConfig,
) -> list[Applicant]:
    """Distribute the budget over ranked applicants, reserve passes first.

    Parameters
    ----------
    applicants : list[Applicant]
        Ranked applicants. Awards are written in place.
    config : AllocationConfig
        Total budget, caps, rounding and reserve shares.

    Returns
    -------
    list[Applicant]
        Funded applicants in funding order: reserve passes in tier order,
        then the residual pass in rank order.
    """
    budget = config.budget
    awarded: list[Applicant] = []
    reserve_spent = 0.0
    for stage in build_stages(config.reserves):
        if stage.is_reserve:
            pass_budget = budget * stage.share
        else:
            pass_budget = max(0.0, budget - reserve_spent)
        funded = allocate_pass(applicants, pass_budget, config, stage.allows)
        spent = total_awarded(funded)
        if stage.is_reserve:
            reserve_spent += spent
        logger.debug(
            "Pass %s: budget=%.2f, funded=%d, spent=%.2f",
            stage.name,
            pass_budget,
            len(funded),
            spent,
        )
        awarded.extend(funded)
    return awarded
