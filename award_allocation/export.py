"""Write allocation results to JSON, CSV and Markdown."""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import pandas as pd

from award_allocation.models import NEED_TIERS, AllocationSummary, AwardRecord, IneligibleRecord

logger = logging.getLogger(__name__)

_AWARD_COLUMNS = {
    "applicant_id": "applicant_id",
    "name": "name",
    "need_level": "need_level",
    "score": "score",
    "requested": "requested_amount",
    "awarded": "awarded_amount",
    "priority": "priority",
}
_DECIMALS = {"score": 1, "requested_amount": 2, "awarded_amount": 2, "priority": 4}


def format_currency(value: float) -> str:
    """Render an amount as dollars with cents, ``1500`` as ``"$1500.00"``."""
    return f"${value:.2f}"


def format_percent(value: float) -> str:
    """Render a fraction as a percentage with one decimal, ``0.5`` as ``"50.0%"``."""
    return f"{value * 100:.1f}%"


def limit_records(records: list, limit: int, show_all: bool = False) -> list:
    """Return the first ``limit`` records, or all of them if ``show_all`` or ``limit <= 0``."""
    if show_all or limit <= 0 or limit >= len(records):
        return records
    return records[:limit]


def ranked_reasons(reasons: dict[str, int]) -> list[tuple[str, int]]:
    """Order ineligibility reasons by count, most frequent first, then alphabetically."""
    return sorted(reasons.items(), key=lambda item: (-item[1], item[0]))


def summary_to_dict(summary: AllocationSummary) -> dict[str, Any]:
    """Serialize a summary, nested records included."""
    return asdict(summary)


def write_json(path: str | Path, summary: AllocationSummary) -> None:
    """Write ``summary`` as indented JSON."""
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(summary_to_dict(summary), handle, indent=2)
        handle.write("\n")
    logger.info("JSON written to %s", path)


def _records_frame(records: list, columns: dict[str, str]) -> pd.DataFrame:
    """Tabulate dataclass records with renamed columns and export rounding."""
    frame = pd.DataFrame([asdict(r) for r in records], columns=list(columns))
    frame = frame.rename(columns=columns)
    return frame.round({k: v for k, v in _DECIMALS.items() if k in frame.columns})


def write_awards_csv(path: str | Path, awards: list[AwardRecord]) -> None:
    """Write awarded applicants in funding order."""
    _records_frame(awards, _AWARD_COLUMNS).to_csv(path, index=False)
    logger.info("Awarded CSV written to %s", path)


def write_unfunded_csv(path: str | Path, unfunded: list[AwardRecord]) -> None:
    """Write eligible applicants that received nothing, in rank order."""
    columns = {k: v for k, v in _AWARD_COLUMNS.items() if k != "awarded"}
    _records_frame(unfunded, columns).to_csv(path, index=False)
    logger.info("Unfunded CSV written to %s", path)


def write_ineligible_csv(path: str | Path, ineligible: list[IneligibleRecord]) -> None:
    """Write ineligible applicants with their accumulated reasons."""
    columns = {
        "applicant_id": "applicant_id",
        "name": "name",
        "need_level": "need_level",
        "score": "score",
        "requested": "requested_amount",
        "reason": "eligibility_reason",
    }
    _records_frame(ineligible, columns).to_csv(path, index=False)
    logger.info("Ineligible CSV written to %s", path)


def report_lines(
    summary: AllocationSummary,
    top: int = 10,
    show_all: bool = False,
    unfunded_top: int = 10,
    show_all_unfunded: bool = False,
) -> list[str]:
    """Render a run as a Markdown report.

    Parameters
    ----------
    summary : AllocationSummary
        Finished run, with scenario results if any were requested.
    top : int
        Number of awards to tabulate; 0 or less for all.
    show_all : bool
        Tabulate every award regardless of ``top``.
    unfunded_top : int
        Number of unfunded eligible applicants to tabulate; 0 or less for all.
    show_all_unfunded : bool
        Tabulate every unfunded applicant regardless of ``unfunded_top``.

    Returns
    -------
    list[str]
        Report lines, without trailing newlines.
    """
    cur, pct = format_currency, format_percent
    lines = [
        "# Award Allocation Report",
        "",
        f"Generated: {summary.generated_at}",
        "",
        "## Budget",
        f"- Budget: {cur(summary.budget)}",
        f"- Budget used: {cur(summary.budget_used)}",
        f"- Budget left: {cur(summary.budget_left)}",
        "",
        "## Eligibility",
        f"- Applicants: {summary.applicants}",
        f"- Eligible: {summary.eligible_count}",
        f"- Awarded: {summary.awarded_count}",
        f"- Ineligible: {summary.ineligible_count}",
        f"- Eligible unfunded: {summary.eligible_unfunded_count} "
        f"({cur(summary.eligible_unfunded_amount)} requested)",
        f"- Eligible requested: {cur(summary.eligible_requested_total)}",
        f"- Coverage rate: {pct(summary.coverage_rate)}",
        f"- Fully funded: {summary.fully_funded_count} ({pct(summary.full_funding_rate)} of eligible)",
        f"- Partially funded: {summary.partially_funded_count}",
        f"- Funding gap: {cur(summary.funding_gap_total)}",
        f"- Average award: {cur(summary.average_award)}",
        f"- Award percentiles: P25 {cur(summary.award_p25)} | P50 {cur(summary.award_p50)} "
        f"| P75 {cur(summary.award_p75)}",
        f"- Avg award/request: {pct(summary.award_to_request_avg)}",
        f"- Award range: {cur(summary.min_awarded)} - {cur(summary.max_awarded)}",
    ]
    if summary.awarded_count > 0:
        lines.append(
            f"- Last funded cutoff: {summary.last_funded_priority:.2f} priority | "
            f"{summary.last_funded_score:.1f} score | {summary.last_funded_need.title()} need | "
            f"{cur(summary.last_funded_requested)} requested"
        )

    lines += ["", "## Awards"]
    awards = limit_records(summary.awards, top, show_all)
    if not awards:
        lines.append("_No awards allocated._")
    else:
        lines += [
            "| Rank | Applicant | Need | Score | Requested | Awarded | Priority |",
            "| --- | --- | --- | --- | --- | --- | --- |",
        ]
        for rank, item in enumerate(awards, start=1):
            lines.append(
                f"| {rank} | {item.label} | {item.need_level.title()} | {item.score:.1f} | "
                f"{cur(item.requested)} | {cur(item.awarded)} | {item.priority:.2f} |"
            )
        if len(awards) < len(summary.awards):
            lines += ["", f"_Showing top {len(awards)} of {len(summary.awards)} awards._"]

    lines += ["", "## Unfunded Eligible Applicants"]
    unfunded = limit_records(summary.unfunded, unfunded_top, show_all_unfunded)
    if not unfunded:
        lines.append("_No eligible unfunded applicants._")
    else:
        lines += [
            "| Rank | Applicant | Need | Score | Requested | Priority |",
            "| --- | --- | --- | --- | --- | --- |",
        ]
        for rank, item in enumerate(unfunded, start=1):
            lines.append(
                f"| {rank} | {item.label} | {item.need_level.title()} | {item.score:.1f} | "
                f"{cur(item.requested)} | {item.priority:.2f} |"
            )
        if len(unfunded) < len(summary.unfunded):
            lines += ["", f"_Showing top {len(unfunded)} of {len(summary.unfunded)} unfunded applicants._"]

    lines += [
        "",
        "## Need Coverage",
        "| Need Level | Eligible | Awarded | Unfunded | Requested | Awarded Total | Coverage |",
        "| --- | --- | --- | --- | --- | --- | --- |",
    ]
    for tier in NEED_TIERS:
        cov = summary.need_coverage[tier]
        lines.append(
            f"| {tier.title()} | {cov.eligible_count} | {cov.awarded_count} | {cov.unfunded_count} | "
            f"{cur(cov.requested_total)} | {cur(cov.awarded_total)} | {pct(cov.coverage_rate)} |"
        )

    if summary.scenario_results:
        lines += [
            "",
            "## Scenario Analysis",
            "| Budget | Awarded | Unfunded | Coverage | Full Funding | Budget Used | Budget Left |",
            "| --- | --- | --- | --- | --- | --- | --- |",
        ]
        for r in summary.scenario_results:
            lines.append(
                f"| {cur(r.budget)} | {r.awarded_count} | {r.eligible_unfunded_count} | "
                f"{pct(r.coverage_rate)} | {pct(r.full_funding_rate)} | {cur(r.budget_used)} | "
                f"{cur(r.budget_left)} |"
            )

    if summary.ineligible_reasons:
        lines += ["", "## Ineligible Reasons"]
        lines += [f"- {reason}: {count}" for reason, count in ranked_reasons(summary.ineligible_reasons)]
    return lines


def write_report(path: str | Path, summary: AllocationSummary, **options: Any) -> None:
    """Write the Markdown report; ``options`` are passed to :func:`report_lines`."""
    with open(path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(report_lines(summary, **options)))
        handle.write("\n")
    logger.info("Markdown report written to %s", path)
