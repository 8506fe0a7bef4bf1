"""Data models for the award allocation run."""

import math
from dataclasses import dataclass, field

NEED_TIERS = ("high", "medium", "low")


@dataclass
class Applicant:
    """A single applicant competing for the award budget.

    Raw fields come from the input record; ``normalized_score``, ``priority``
    and ``awarded`` are filled in by the engine, in that order.

    Parameters
    ----------
    id : str
        Unique applicant identifier.
    need_tier : str
        One of ``"low"``, ``"medium"`` or ``"high"``. Other values are kept
        but flag the applicant as ineligible.
    raw_score : float
        Unscaled applicant score. Must be finite.
    requested : float
        Requested award amount. Must be finite.
    name : str
        Optional display name.
    """

    id: str
    need_tier: str
    raw_score: float
    requested: float
    name: str = ""
    normalized_score: float = 0.0
    priority: float = 0.0
    awarded: float = 0.0
    eligible: bool = True
    eligibility_reason: str = ""

    def __post_init__(self) -> None:
        """Reject records without an identifier or with non-finite numbers."""
        if not self.id:
            raise ValueError("applicant id must be non-empty")
        if not math.isfinite(self.raw_score):
            raise ValueError(f"applicant {self.id}: raw_score must be finite")
        if not math.isfinite(self.requested):
            raise ValueError(f"applicant {self.id}: requested must be finite")

    @property
    def label(self) -> str:
        """Display label, ``"Name (id)"`` when a name is known."""
        if not self.name:
            return self.id
        return f"{self.name} ({self.id})"


@dataclass(frozen=True)
class AwardRecord:
    """Flat view of an awarded or unfunded applicant."""

    applicant_id: str
    name: str
    need_level: str
    score: float
    requested: float
    awarded: float
    priority: float

    @property
    def label(self) -> str:
        """Display label, ``"Name (id)"`` when a name is known."""
        if not self.name:
            return self.applicant_id
        return f"{self.name} ({self.applicant_id})"


@dataclass(frozen=True)
class IneligibleRecord:
    """Flat view of an ineligible applicant with the accumulated reason."""

    applicant_id: str
    name: str
    need_level: str
    score: float
    requested: float
    reason: str


@dataclass(frozen=True)
class NeedTotals:
    """Awards granted to one need tier."""

    awarded_count: int = 0
    budget_used: float = 0.0


@dataclass(frozen=True)
class NeedCoverage:
    """Demand, funding and equity figures for one need tier.

    Parameters
    ----------
    requested_share : float
        Tier share of all eligible requested dollars.
    awarded_share : float
        Tier share of all awarded dollars.
    share_delta : float
        ``awarded_share - requested_share``; positive means the tier received
        more than its demand share.
    """

    eligible_count: int = 0
    awarded_count: int = 0
    unfunded_count: int = 0
    requested_total: float = 0.0
    awarded_total: float = 0.0
    coverage_rate: float = 0.0
    requested_share: float = 0.0
    awarded_share: float = 0.0
    share_delta: float = 0.0


@dataclass(frozen=True)
class NeedUnfunded:
    """Eligible applicants of one need tier that received nothing."""

    count: int = 0
    requested: float = 0.0


@dataclass(frozen=True)
class ScenarioResult:
    """Funding outcome of a single alternate budget."""

    budget: float
    budget_used: float
    budget_left: float
    budget_required_full: float
    awarded_count: int
    eligible_count: int
    eligible_unfunded_count: int
    fully_funded_count: int
    partially_funded_count: int
    coverage_rate: float
    full_funding_rate: float
    funding_gap_total: float
    average_award: float
    award_to_request_avg: float


@dataclass(frozen=True)
class AllocationSummary:
    """Snapshot of a completed allocation run.

    Built once by :func:`award_allocation.engine.summarize` from the final
    applicant list and the awarded list in funding order.
    """

    generated_at: str
    budget: float
    budget_used: float
    budget_left: float
    budget_required_full: float
    budget_shortfall: float
    applicants: int
    eligible_count: int
    awarded_count: int
    ineligible_count: int
    eligible_unfunded_count: int
    eligible_unfunded_amount: float
    eligible_requested_total: float
    fully_funded_count: int
    partially_funded_count: int
    funding_gap_total: float
    coverage_rate: float
    full_funding_rate: float
    average_award: float
    award_p25: float
    award_p50: float
    award_p75: float
    award_to_request_avg: float
    min_awarded: float
    max_awarded: float
    last_funded_priority: float
    last_funded_score: float
    last_funded_need: str
    last_funded_requested: float
    by_need: dict[str, NeedTotals]
    need_coverage: dict[str, NeedCoverage]
    unfunded_by_need: dict[str, NeedUnfunded]
    ineligible_reasons: dict[str, int]
    awards: list[AwardRecord] = field(default_factory=list)
    unfunded: list[AwardRecord] = field(default_factory=list)
    ineligible: list[IneligibleRecord] = field(default_factory=list)
    scenario_results: list[ScenarioResult] = field(default_factory=list)


@dataclass
class AllocateResult:
    """Funded applicants with their award amounts.

    Parameters
    ----------
    awarded_applicants : list[str]
        Applicant IDs in the order they were funded.
    budget_allocated : dict[str, float]
        Award amount for each funded applicant.
    """

    awarded_applicants: list[str]
    budget_allocated: dict[str, float]

    def __post_init__(self) -> None:
        """Validate that the allocation dict is consistent with the awarded list."""
        if len(set(self.awarded_applicants)) != len(self.awarded_applicants):
            raise ValueError("awarded_applicants must not contain duplicate IDs")
        if set(self.budget_allocated) != set(self.awarded_applicants):
            raise ValueError("budget_allocated keys must match awarded_applicants")
