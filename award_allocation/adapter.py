"""ALLOCATE component: award allocation as a pipeline stage."""

import logging
from dataclasses import asdict
from typing import Any, Protocol

from award_allocation.config import AllocationConfig
from award_allocation.engine import run_allocation
from award_allocation.loader import applicant_from_mapping
from award_allocation.models import AllocateResult, Applicant

logger = logging.getLogger(__name__)


class PipelineComponent(Protocol):
    """Structural interface for pipeline stage components."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


_FIELD_MAP_IN: dict[str, str] = {
    "id": "applicant_id",
    "need_tier": "need_level",
    "raw_score": "score",
    "requested": "requested_amount",
}


def _to_record_format(applicant: dict[str, Any]) -> dict[str, Any]:
    """Map engine-style applicant keys to the external record field names.

    Parameters
    ----------
    applicant : dict[str, Any]
        Applicant dict using either naming scheme.

    Returns
    -------
    dict[str, Any]
        Applicant dict with external field names.
    """
    return {_FIELD_MAP_IN.get(key, key): value for key, value in applicant.items()}


def _check_unique_ids(applicants: list[Applicant]) -> None:
    """Raise if two applicants share an id.

    Raises
    ------
    ValueError
        Naming the first repeated id.
    """
    seen: set[str] = set()
    for applicant in applicants:
        if applicant.id in seen:
            raise ValueError(f"duplicate applicant_id: {applicant.id}")
        seen.add(applicant.id)


class AllocateComponent(PipelineComponent):
    """Rank applicants and distribute a budget between them.

    Holds every policy setting except the budget, which arrives with each
    event. The configuration is validated per event, before any applicant is
    scored.

    Parameters
    ----------
    **policy
        Keyword arguments of :class:`AllocationConfig` other than ``budget``
        and ``scenario_budgets``.
    """

    def __init__(self, **policy: float) -> None:
        for key in ("budget", "scenario_budgets"):
            if key in policy:
                raise TypeError(f"{key} is supplied per event, not per component")
        self.policy = dict(policy)

    def execute(self, event: dict) -> dict:
        """Run allocation and return an ``AllocateResult`` dict with the summary.

        Parameters
        ----------
        event : dict
            Must contain ``applicants`` (list of dicts) and ``budget``
            (float); may contain ``scenario_budgets`` (list of float).

        Returns
        -------
        dict
            Serialized ``AllocateResult`` with ``awarded_applicants`` and
            ``budget_allocated``, plus the serialized ``summary``.

        Raises
        ------
        ValueError
            If the configuration is invalid or two applicants share an id.
        """
        config = AllocationConfig(
            budget=event["budget"],
            scenario_budgets=tuple(event.get("scenario_budgets") or ()),
            **self.policy,
        )
        applicants = [applicant_from_mapping(_to_record_format(a)) for a in event["applicants"]]
        _check_unique_ids(applicants)

        run = run_allocation(applicants, config)

        if not run.awarded:
            logger.warning("No applicants funded from budget %.2f", config.budget)
        else:
            logger.info(
                "Allocation complete: awarded=%d applicants, used=%.2f",
                len(run.awarded),
                run.summary.budget_used,
            )

        result = asdict(
            AllocateResult(
                awarded_applicants=[a.id for a in run.awarded],
                budget_allocated={a.id: a.awarded for a in run.awarded},
            )
        )
        result["summary"] = asdict(run.summary)
        return result
