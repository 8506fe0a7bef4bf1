"""Unit tests for the CSV applicant loader."""

import logging

import pytest

from award_allocation.config import AllocationConfig
from award_allocation.engine import run_allocation
from award_allocation.loader import applicant_from_mapping, load_applicants


@pytest.fixture()
def write_csv(tmp_path):
    def _write(text, name="applicants.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class TestLoadApplicants:
    def test_basic_rows(self, write_csv):
        path = write_csv(
            "applicant_id,name,score,need_level,requested_amount\n"
            "A-1,Ada,91.5,High,1500\n"
            "A-2,Ben,70,low,800.25\n"
        )
        applicants, warnings = load_applicants(path)
        assert warnings == []
        assert [a.id for a in applicants] == ["A-1", "A-2"]
        first = applicants[0]
        assert first.name == "Ada"
        assert first.need_tier == "high"
        assert first.raw_score == 91.5
        assert first.requested == 1500
        assert first.awarded == 0
        assert first.eligible

    def test_headers_case_insensitive_and_any_order(self, write_csv):
        path = write_csv(
            " Requested_Amount ,NEED_LEVEL,Score,Applicant_ID\n"
            "1000,medium,80,x\n"
        )
        applicants, _ = load_applicants(path)
        assert applicants[0].id == "x"
        assert applicants[0].requested == 1000
        assert applicants[0].need_tier == "medium"

    def test_name_column_optional(self, write_csv):
        path = write_csv("applicant_id,score,need_level,requested_amount\nx,80,high,900\n")
        applicants, _ = load_applicants(path)
        assert applicants[0].name == ""
        assert applicants[0].label == "x"

    def test_missing_headers(self, write_csv):
        path = write_csv("applicant_id,score\nx,80\n")
        with pytest.raises(ValueError, match="missing required headers: need_level, requested_amount"):
            load_applicants(path)

    def test_bad_rows_skipped_with_line_numbers(self, write_csv, caplog):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "ok-1,80,high,900\n"
            ",75,low,500\n"
            "bad-score,abc,low,500\n"
            "bad-amount,60,medium,lots\n"
            "ok-2,55,medium,300\n"
        )
        with caplog.at_level(logging.WARNING, logger="award_allocation.loader"):
            applicants, warnings = load_applicants(path)
        assert [a.id for a in applicants] == ["ok-1", "ok-2"]
        assert warnings == [
            "line 3: missing applicant_id",
            "line 4: invalid score",
            "line 5: invalid requested_amount",
        ]
        assert "line 4: invalid score" in caplog.text

    def test_structural_problems_left_for_eligibility(self, write_csv):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "x,80,urgent,900\n"
            "y,70,low,0\n"
        )
        applicants, warnings = load_applicants(path)
        assert warnings == []
        assert [a.need_tier for a in applicants] == ["urgent", "low"]
        assert applicants[1].requested == 0

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-inf"])
    def test_non_finite_requested_amount_skipped(self, write_csv, value):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            f"a,99,high,{value}\n"
            "b,80,high,1000\n"
        )
        applicants, warnings = load_applicants(path)
        assert [a.id for a in applicants] == ["b"]
        assert warnings == ["line 2: invalid requested_amount"]

    def test_non_finite_score_skipped(self, write_csv):
        path = write_csv("applicant_id,score,need_level,requested_amount\na,nan,high,500\nb,80,high,1000\n")
        applicants, warnings = load_applicants(path)
        assert [a.id for a in applicants] == ["b"]
        assert warnings == ["line 2: invalid score"]

    def test_nan_request_cannot_exceed_budget(self, write_csv):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "a,99,high,nan\n"
            "b,90,high,1000\n"
            "c,80,high,1000\n"
            "d,70,high,1000\n"
        )
        applicants, _ = load_applicants(path)
        run = run_allocation(applicants, AllocationConfig(budget=1500, min_award=100, max_award=1000))
        assert run.summary.budget_used <= 1500

    def test_ragged_rows_reported_and_skipped(self, write_csv):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "a,99,high,500\n"
            "b,50,high,1000,extra\n"
            "c,70,low,800\n"
            "d,60,low\n"
            "e,65,medium,300\n"
        )
        applicants, warnings = load_applicants(path)
        assert [a.id for a in applicants] == ["a", "c", "e"]
        assert warnings == ["line 3: wrong number of fields", "line 5: wrong number of fields"]

    def test_ragged_first_row(self, write_csv):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "a,99,high,500,extra\n"
            "b,50,high,1000\n"
        )
        applicants, warnings = load_applicants(path)
        assert [a.id for a in applicants] == ["b"]
        assert applicants[0].requested == 1000
        assert warnings == ["line 2: wrong number of fields"]

    def test_duplicate_ids_keep_first(self, write_csv):
        path = write_csv(
            "applicant_id,score,need_level,requested_amount\n"
            "x,80,high,500\n"
            "y,70,low,600\n"
            "x,90,medium,700\n"
        )
        applicants, warnings = load_applicants(path)
        assert [(a.id, a.requested) for a in applicants] == [("x", 500), ("y", 600)]
        assert warnings == ["line 4: duplicate applicant_id x"]

    def test_no_valid_rows(self, write_csv):
        path = write_csv("applicant_id,score,need_level,requested_amount\n,80,high,900\n")
        with pytest.raises(ValueError, match="no valid applicants found"):
            load_applicants(path)

    def test_header_only(self, write_csv):
        path = write_csv("applicant_id,score,need_level,requested_amount\n")
        with pytest.raises(ValueError, match="no valid applicants found"):
            load_applicants(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_applicants(tmp_path / "absent.csv")


class TestApplicantFromMapping:
    def test_external_names(self):
        applicant = applicant_from_mapping(
            {"applicant_id": " z ", "need_level": "MEDIUM", "score": "88", "requested_amount": 1200}
        )
        assert applicant.id == "z"
        assert applicant.need_tier == "medium"
        assert applicant.raw_score == 88
        assert applicant.requested == 1200
        assert applicant.name == ""

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError, match="id"):
            applicant_from_mapping({"applicant_id": "", "need_level": "high", "score": 1, "requested_amount": 1})

    def test_unparsable_number_rejected(self):
        with pytest.raises(ValueError):
            applicant_from_mapping({"applicant_id": "a", "need_level": "high", "score": "n/a", "requested_amount": 1})

    def test_non_finite_number_rejected(self):
        with pytest.raises(ValueError, match="requested must be finite"):
            applicant_from_mapping({"applicant_id": "a", "need_level": "high", "score": 1, "requested_amount": "nan"})
