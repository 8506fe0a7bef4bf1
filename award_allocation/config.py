"""Run configuration for the award allocation engine."""

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class AllocationConfig:
    """Budget, caps, weights and reserve shares for one allocation run.

    All values are validated on construction so that a bad configuration is
    rejected before any applicant is touched.

    Parameters
    ----------
    budget : float
        Total award budget. Must be positive.
    min_award : float
        Award floor. Requests below it are honored as-is.
    max_award : float
        Absolute award ceiling.
    score_weight : float
        Weight of the normalized score in the priority blend.
    need_weight : float
        Weight of the need tier in the priority blend.
    reserve_high, reserve_medium, reserve_low : float
        Share of the budget ring-fenced for each need tier, each in [0, 1]
        and summing to at most 1.
    round_to : float
        Round awards to the nearest multiple of this increment; 0 disables.
    max_percent : float
        Maximum share of the requested amount that may be awarded, in (0, 1].
    min_score : float
        Raw score below which applicants are ineligible; 0 disables.
    scenario_budgets : tuple[float, ...]
        Alternate budgets to simulate after the main run.

    Raises
    ------
    ValueError
        If any value is out of range.
    """

    budget: float
    min_award: float = 500.0
    max_award: float = 5000.0
    score_weight: float = 0.7
    need_weight: float = 0.3
    reserve_high: float = 0.0
    reserve_medium: float = 0.0
    reserve_low: float = 0.0
    round_to: float = 0.0
    max_percent: float = 1.0
    min_score: float = 0.0
    scenario_budgets: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if self.budget <= 0:
            raise ValueError("budget must be > 0")
        if self.min_award < 0 or self.max_award <= 0 or self.max_award < self.min_award:
            raise ValueError("invalid min/max award values")
        if self.score_weight < 0 or self.need_weight < 0:
            raise ValueError("weights must be non-negative")
        if self.score_weight + self.need_weight == 0:
            raise ValueError("score_weight and need_weight cannot both be zero")
        for tier, share in self.reserves.items():
            if not (0 <= share <= 1):
                raise ValueError(f"reserve_{tier} must be between 0 and 1")
        if sum(self.reserves.values()) > 1:
            raise ValueError("reserve shares must sum to 1 or less")
        if self.round_to < 0:
            raise ValueError("round_to must be >= 0")
        if not (0 < self.max_percent <= 1):
            raise ValueError("max_percent must be between 0 (exclusive) and 1")
        if self.min_score < 0:
            raise ValueError("min_score must be >= 0")
        if any(b <= 0 for b in self.scenario_budgets):
            raise ValueError("scenario budgets must be > 0")
        object.__setattr__(self, "scenario_budgets", tuple(self.scenario_budgets))

    @property
    def reserves(self) -> dict[str, float]:
        """Reserve share per need tier, in funding order."""
        return {
            "high": self.reserve_high,
            "medium": self.reserve_medium,
            "low": self.reserve_low,
        }

    def with_budget(self, budget: float) -> "AllocationConfig":
        """Return a copy of this configuration with a different budget."""
        return dataclasses.replace(self, budget=budget, scenario_budgets=())


def parse_budget_list(raw: str | None) -> tuple[float, ...]:
    """Parse a comma-separated list of scenario budgets.

    Parameters
    ----------
    raw : str or None
        Text such as ``"5000, 10000"``. Blank entries are ignored.

    Returns
    -------
    tuple[float, ...]
        Parsed budgets in the given order.

    Raises
    ------
    ValueError
        If an entry is not a number or is not positive.
    """
    if raw is None or not raw.strip():
        return ()
    budgets = []
    for part in raw.split(","):
        value = part.strip()
        if not value:
            continue
        try:
            parsed = float(value)
        except ValueError:
            raise ValueError(f"invalid scenario budget: {value}") from None
        if parsed <= 0:
            raise ValueError("scenario budgets must be > 0")
        budgets.append(parsed)
    return tuple(budgets)
