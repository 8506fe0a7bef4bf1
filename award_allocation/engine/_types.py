"""Type definitions for funding passes and run results."""

from collections.abc import Callable
from typing import NamedTuple

from award_allocation.models import AllocationSummary, Applicant

PassFilter = Callable[[Applicant], bool]


class FundingStage(NamedTuple):
    """One pass of the budget allocator.

    Parameters
    ----------
    name : str
        ``"reserve:<tier>"`` for reserved passes, ``"residual"`` for the open pool.
    tier : str | None
        Need tier the pass is restricted to, or ``None`` for the residual pass.
    share : float | None
        Fraction of the total budget ring-fenced for the tier, or ``None`` for
        the residual pass, whose budget depends on what earlier passes spent.
    """

    name: str
    tier: str | None
    share: float | None

    @property
    def is_reserve(self) -> bool:
        """Whether the pass spends a ring-fenced tier share."""
        return self.tier is not None

    def allows(self, applicant: Applicant) -> bool:
        """Return whether ``applicant`` may be funded in this pass."""
        if applicant.awarded != 0:
            return False
        return self.tier is None or applicant.need_tier == self.tier


class AllocationRun(NamedTuple):
    """Everything a caller needs after a full run.

    Parameters
    ----------
    applicants : list[Applicant]
        All applicants in rank order, with awards filled in.
    awarded : list[Applicant]
        Funded applicants in funding order.
    summary : AllocationSummary
        Statistics for the run, including scenario results when requested.
    """

    applicants: list[Applicant]
    awarded: list[Applicant]
    summary: AllocationSummary
