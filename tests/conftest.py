"""Shared fixtures for award allocation tests."""

import pytest

from award_allocation.config import AllocationConfig
from award_allocation.models import Applicant


@pytest.fixture()
def sample_records():
    """Standard set of applicant records with external field names."""
    return [
        {"applicant_id": "A", "name": "Ada", "need_level": "high", "score": 92, "requested_amount": 1500},
        {"applicant_id": "B", "name": "Ben", "need_level": "medium", "score": 88, "requested_amount": 2000},
        {"applicant_id": "C", "name": "Cy", "need_level": "low", "score": 95, "requested_amount": 1000},
        {"applicant_id": "D", "name": "Di", "need_level": "high", "score": 70, "requested_amount": 800},
        {"applicant_id": "E", "name": "Ed", "need_level": "low", "score": 60, "requested_amount": 3000},
        {"applicant_id": "F", "name": "Flo", "need_level": "urgent", "score": 99, "requested_amount": 1200},
        {"applicant_id": "G", "name": "Gus", "need_level": "medium", "score": 75, "requested_amount": 0},
    ]


@pytest.fixture()
def sample_applicants(sample_records):
    """Applicants built from ``sample_records``."""
    return [
        Applicant(
            id=r["applicant_id"],
            name=r["name"],
            need_tier=r["need_level"],
            raw_score=r["score"],
            requested=r["requested_amount"],
        )
        for r in sample_records
    ]


@pytest.fixture()
def sample_config():
    """Configuration that cannot fund every eligible applicant."""
    return AllocationConfig(budget=4000, min_award=500, max_award=2000)


@pytest.fixture()
def sample_event(sample_records):
    """Pipeline event with a budget and two scenarios."""
    return {"applicants": sample_records, "budget": 4000, "scenario_budgets": [2000, 8000]}


@pytest.fixture()
def make_applicant():
    """Factory for eligible applicants with sensible defaults."""

    def _make(applicant_id, need_tier="high", raw_score=50.0, requested=1000.0, **kwargs):
        return Applicant(id=applicant_id, need_tier=need_tier, raw_score=raw_score, requested=requested, **kwargs)

    return _make
