"""Unit tests for the multi-pass budget allocator."""

import random

import pytest

from award_allocation.config import AllocationConfig
from award_allocation.engine import (
    FundingStage,
    allocate_budget,
    allocate_pass,
    build_stages,
    prepare,
    run_allocation,
    total_awarded,
)
from award_allocation.models import Applicant


def _allow_all(applicant):
    return applicant.awarded == 0


class TestBuildStages:
    def test_residual_only(self):
        stages = build_stages({"high": 0.0, "medium": 0.0, "low": 0.0})
        assert [s.name for s in stages] == ["residual"]

    def test_reserve_order_is_fixed(self):
        stages = build_stages({"high": 0.2, "medium": 0.0, "low": 0.1})
        assert [s.name for s in stages] == ["reserve:high", "reserve:low", "residual"]
        assert stages[0].share == 0.2
        assert stages[-1].tier is None

    def test_stage_filter(self, make_applicant):
        stage = FundingStage(name="reserve:high", tier="high", share=0.5)
        assert stage.allows(make_applicant("a", need_tier="high"))
        assert not stage.allows(make_applicant("b", need_tier="low"))
        assert not stage.allows(make_applicant("c", need_tier="high", awarded=100))


class TestAllocatePass:
    def test_funds_in_rank_order(self, make_applicant):
        applicants = [make_applicant(i) for i in ("a", "b", "c")]
        config = AllocationConfig(budget=2000, min_award=100, max_award=1000)
        funded = allocate_pass(applicants, 2000, config, _allow_all)
        assert [a.id for a in funded] == ["a", "b"]
        assert applicants[2].awarded == 0

    def test_truncates_last_award_to_remainder(self, make_applicant):
        applicants = [make_applicant(i) for i in ("a", "b")]
        config = AllocationConfig(budget=1600, min_award=500, max_award=1000)
        funded = allocate_pass(applicants, 1600, config, _allow_all)
        assert [a.awarded for a in funded] == [1000, 600]

    def test_stops_when_remainder_below_floor(self, make_applicant):
        applicants = [make_applicant(i) for i in ("a", "b", "c")]
        config = AllocationConfig(budget=1200, min_award=500, max_award=1000)
        funded = allocate_pass(applicants, 1200, config, _allow_all)
        assert [a.id for a in funded] == ["a"]
        assert applicants[1].awarded == 0
        assert applicants[2].awarded == 0

    def test_below_floor_request_fits_remainder(self, make_applicant):
        applicants = [make_applicant("a", requested=1000), make_applicant("b", requested=150)]
        config = AllocationConfig(budget=1200, min_award=500, max_award=1000)
        funded = allocate_pass(applicants, 1200, config, _allow_all)
        assert [a.awarded for a in funded] == [1000, 150]

    def test_skips_ineligible(self, make_applicant):
        applicants = [make_applicant("a", eligible=False), make_applicant("b")]
        config = AllocationConfig(budget=5000, min_award=100, max_award=1000)
        funded = allocate_pass(applicants, 5000, config, _allow_all)
        assert [a.id for a in funded] == ["b"]
        assert applicants[0].awarded == 0

    def test_skips_zero_award(self, make_applicant):
        applicants = [make_applicant("a", requested=0), make_applicant("b")]
        config = AllocationConfig(budget=5000, min_award=0, max_award=1000)
        funded = allocate_pass(applicants, 5000, config, _allow_all)
        assert [a.id for a in funded] == ["b"]

    def test_zero_budget_funds_nobody(self, make_applicant):
        applicants = [make_applicant("a")]
        config = AllocationConfig(budget=1000, min_award=0, max_award=1000)
        assert allocate_pass(applicants, 0, config, _allow_all) == []


class TestAllocateBudget:
    def test_reserves_cover_each_tier_pool(self, make_applicant):
        applicants = [
            make_applicant("h1", need_tier="high", raw_score=90),
            make_applicant("h2", need_tier="high", raw_score=80),
            make_applicant("m1", need_tier="medium", raw_score=70),
            make_applicant("l1", need_tier="low", raw_score=60),
        ]
        config = AllocationConfig(
            budget=4000, min_award=1000, max_award=1000, reserve_high=0.5, reserve_medium=0.25
        )
        prepare(applicants, config)
        awarded = allocate_budget(applicants, config)
        assert len(awarded) == 4
        assert all(a.awarded == 1000 for a in applicants)

    def test_reserve_pass_then_residual(self, make_applicant):
        applicants = [
            make_applicant("a1", need_tier="high", raw_score=95, requested=300),
            make_applicant("a2", need_tier="high", raw_score=90, requested=300),
            make_applicant("a3", need_tier="low", raw_score=85, requested=300),
            make_applicant("a4", need_tier="low", raw_score=80, requested=300),
        ]
        config = AllocationConfig(budget=1000, min_award=100, max_award=300, reserve_high=0.5)
        prepare(applicants, config)
        awarded = allocate_budget(applicants, config)
        assert len(awarded) == 4
        assert total_awarded(awarded) == pytest.approx(1000)
        high_total = sum(a.awarded for a in awarded if a.need_tier == "high")
        assert high_total == pytest.approx(500)

    def test_funding_order_lists_reserve_passes_first(self, make_applicant):
        applicants = [
            make_applicant("low_top", need_tier="low", raw_score=100),
            make_applicant("med", need_tier="medium", raw_score=10),
            make_applicant("high", need_tier="high", raw_score=10),
        ]
        config = AllocationConfig(
            budget=3000, min_award=100, max_award=1000, score_weight=1, need_weight=0,
            reserve_high=0.3, reserve_medium=0.3,
        )
        prepare(applicants, config)
        assert [a.id for a in applicants] == ["low_top", "med", "high"]
        awarded = allocate_budget(applicants, config)
        assert [a.id for a in awarded] == ["high", "med", "low_top"]

    def test_unspent_reserve_flows_to_residual(self, make_applicant):
        applicants = [make_applicant("l1", need_tier="low"), make_applicant("l2", need_tier="low")]
        config = AllocationConfig(budget=2000, min_award=100, max_award=1000, reserve_high=0.5)
        prepare(applicants, config)
        awarded = allocate_budget(applicants, config)
        assert total_awarded(awarded) == pytest.approx(2000)

    def test_rebudgeted_config(self, make_applicant):
        applicants = [make_applicant(i) for i in ("a", "b", "c")]
        config = AllocationConfig(budget=3000, min_award=100, max_award=1000)
        awarded = allocate_budget(applicants, config.with_budget(1000))
        assert [a.id for a in awarded] == ["a"]

    def test_ineligible_never_awarded(self, sample_applicants):
        config = AllocationConfig(budget=100000, min_award=0, max_award=5000)
        prepare(sample_applicants, config)
        allocate_budget(sample_applicants, config)
        for applicant in sample_applicants:
            if not applicant.eligible:
                assert applicant.awarded == 0


class TestAllocationInvariants:
    @pytest.fixture()
    def population(self):
        rng = random.Random(7)
        tiers = ["high", "medium", "low", "unknown"]
        scores = rng.sample(range(1000), 60)
        return [
            {
                "id": f"app-{n}",
                "need_tier": rng.choice(tiers),
                "raw_score": score / 10,
                "requested": round(rng.uniform(-100, 4000), 2),
            }
            for n, score in enumerate(scores)
        ]

    @pytest.mark.parametrize("budget", [500, 7500, 40000, 500000])
    def test_awards_bounded(self, population, budget):
        applicants = [Applicant(**p) for p in population]
        config = AllocationConfig(
            budget=budget, min_award=250, max_award=3000, reserve_high=0.3, reserve_medium=0.2,
            round_to=50, max_percent=0.9, min_score=10,
        )
        run = run_allocation(applicants, config)
        assert total_awarded(run.awarded) <= budget + 1e-6
        for applicant in run.applicants:
            assert applicant.awarded >= 0
            if applicant.awarded > 0:
                assert applicant.eligible
                assert applicant.awarded <= applicant.requested

    def test_input_order_does_not_change_awards(self, population):
        config = AllocationConfig(budget=20000, min_award=250, max_award=3000, reserve_high=0.25)
        first = run_allocation([Applicant(**p) for p in population], config)
        shuffled = list(population)
        random.Random(3).shuffle(shuffled)
        second = run_allocation([Applicant(**p) for p in shuffled], config)
        assert {a.id: a.awarded for a in first.applicants} == {a.id: a.awarded for a in second.applicants}
        assert first.summary.budget_used == pytest.approx(second.summary.budget_used)
        assert first.summary.eligible_requested_total == pytest.approx(second.summary.eligible_requested_total)
