"""Need-aware award allocation for a fixed budget."""

from award_allocation.adapter import AllocateComponent
from award_allocation.config import AllocationConfig, parse_budget_list
from award_allocation.engine import prepare, run_allocation, run_scenarios, summarize
from award_allocation.loader import load_applicants
from award_allocation.models import AllocateResult, AllocationSummary, Applicant, ScenarioResult

__all__ = [
    "AllocateComponent",
    "AllocateResult",
    "AllocationConfig",
    "AllocationSummary",
    "Applicant",
    "ScenarioResult",
    "load_applicants",
    "parse_budget_list",
    "prepare",
    "run_allocation",
    "run_scenarios",
    "summarize",
]
