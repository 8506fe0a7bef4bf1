"""Command-line entry point: ``award-allocate --input applicants.csv --budget 50000``."""

import argparse
import logging
import sys

from award_allocation import export
from award_allocation.config import AllocationConfig, parse_budget_list
from award_allocation.engine import run_allocation
from award_allocation.export import format_currency, format_percent, limit_records, ranked_reasons
from award_allocation.loader import load_applicants
from award_allocation.models import NEED_TIERS, AllocationSummary, Applicant, AwardRecord, ScenarioResult

logger = logging.getLogger(__name__)

# Ineligibility reasons listed on the console; the report lists them all.
_CONSOLE_REASONS = 3


def build_parser() -> argparse.ArgumentParser:
    """Define the command-line flags; policy defaults match :class:`AllocationConfig`."""
    parser = argparse.ArgumentParser(
        prog="award-allocate",
        description="Rank applicants and allocate an award budget.",
    )
    parser.add_argument("--input", required=True, help="Path to applicant CSV file")
    parser.add_argument("--budget", type=float, required=True, help="Total award budget")
    parser.add_argument("--min", dest="min_award", type=float, default=500.0, help="Minimum award amount")
    parser.add_argument("--max", dest="max_award", type=float, default=5000.0, help="Maximum award amount")
    parser.add_argument("--score-weight", type=float, default=0.7, help="Weight for applicant score")
    parser.add_argument("--need-weight", type=float, default=0.3, help="Weight for need level")
    parser.add_argument("--reserve-high", type=float, default=0.0, help="Budget share reserved for high need")
    parser.add_argument("--reserve-medium", type=float, default=0.0, help="Budget share reserved for medium need")
    parser.add_argument("--reserve-low", type=float, default=0.0, help="Budget share reserved for low need")
    parser.add_argument("--round", dest="round_to", type=float, default=0.0, help="Round awards to this increment")
    parser.add_argument("--max-percent", type=float, default=1.0, help="Max share of the request to award (0-1]")
    parser.add_argument("--min-score", type=float, default=0.0, help="Minimum score to be eligible")
    parser.add_argument("--scenario-budgets", default="", help="Comma-separated budgets for scenario analysis")
    parser.add_argument("--json", dest="json_path", help="Write the summary as JSON")
    parser.add_argument("--awards-csv", help="Write awarded applicants as CSV")
    parser.add_argument("--unfunded-csv", help="Write unfunded eligible applicants as CSV")
    parser.add_argument("--ineligible-csv", help="Write ineligible applicants as CSV")
    parser.add_argument("--report", dest="report_path", help="Write a Markdown allocation report")
    parser.add_argument("--top", type=int, default=10, help="Number of awarded applicants to display (0 for all)")
    parser.add_argument("--all", dest="show_all", action="store_true", help="Show all awarded applicants")
    parser.add_argument(
        "--unfunded", dest="unfunded_top", type=int, default=10,
        help="Number of unfunded eligible applicants to display (0 for all)",
    )
    parser.add_argument(
        "--unfunded-all", dest="show_all_unfunded", action="store_true",
        help="Show all unfunded eligible applicants",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _config_from_args(args: argparse.Namespace) -> AllocationConfig:
    """Build the validated run configuration from parsed flags."""
    return AllocationConfig(
        budget=args.budget,
        min_award=args.min_award,
        max_award=args.max_award,
        score_weight=args.score_weight,
        need_weight=args.need_weight,
        reserve_high=args.reserve_high,
        reserve_medium=args.reserve_medium,
        reserve_low=args.reserve_low,
        round_to=args.round_to,
        max_percent=args.max_percent,
        min_score=args.min_score,
        scenario_budgets=parse_budget_list(args.scenario_budgets),
    )


def _heading(title: str) -> list[str]:
    """Blank separator line, then an underlined section title."""
    return ["", title, "-" * len(title)]


def format_ineligible_reasons(reasons: dict[str, int]) -> list[str]:
    """Most frequent ineligibility reasons; empty when every applicant is eligible."""
    if not reasons:
        return []
    ranked = ranked_reasons(reasons)
    lines = _heading("Ineligible Reasons")
    lines += [f"{reason}: {count}" for reason, count in ranked[:_CONSOLE_REASONS]]
    if len(ranked) > _CONSOLE_REASONS:
        lines.append(f"... {len(ranked) - _CONSOLE_REASONS} more")
    return lines


def format_summary(summary: AllocationSummary) -> list[str]:
    """Render the headline figures and per-tier breakdowns of a run as plain-text lines."""
    lines = [
        "Award Allocation Summary",
        "-" * 24,
        f"Applicants:   {summary.applicants}",
        f"Eligible:     {summary.eligible_count}",
        f"Awarded:      {summary.awarded_count}",
        f"Ineligible:   {summary.ineligible_count}",
        f"Eligible Unfunded: {summary.eligible_unfunded_count} (${summary.eligible_unfunded_amount:.2f} requested)",
        f"Eligible Requested: ${summary.eligible_requested_total:.2f}",
        f"Budget Required (Full Funding): ${summary.budget_required_full:.2f}",
        f"Budget Shortfall: ${summary.budget_shortfall:.2f}",
        f"Coverage Rate: {summary.coverage_rate * 100:.1f}%",
        f"Fully Funded: {summary.fully_funded_count} ({summary.full_funding_rate * 100:.1f}% of eligible)",
        f"Partially Funded: {summary.partially_funded_count}",
        f"Funding Gap:  ${summary.funding_gap_total:.2f}",
        f"Budget Used:  ${summary.budget_used:.2f}",
        f"Budget Left:  ${summary.budget_left:.2f}",
        f"Average Award ${summary.average_award:.2f}",
        f"Award Percentiles: P25 ${summary.award_p25:.2f} | P50 ${summary.award_p50:.2f} | P75 ${summary.award_p75:.2f}",
        f"Avg Award/Request: {summary.award_to_request_avg * 100:.1f}%",
        f"Award Range:  ${summary.min_awarded:.2f} - ${summary.max_awarded:.2f}",
    ]
    if summary.awarded_count > 0:
        lines.append(
            f"Last Funded Cutoff: {summary.last_funded_priority:.2f} priority | "
            f"{summary.last_funded_score:.1f} score | {summary.last_funded_need.title()} need | "
            f"${summary.last_funded_requested:.2f} requested"
        )
    lines += format_ineligible_reasons(summary.ineligible_reasons)

    lines += _heading("By Need Level")
    for tier in NEED_TIERS:
        totals = summary.by_need[tier]
        lines.append(f"{tier.title()}: {totals.awarded_count} awarded (${totals.budget_used:.2f})")

    lines += _heading("Need Coverage")
    for tier in NEED_TIERS:
        cov = summary.need_coverage[tier]
        lines.append(
            f"{tier.title()}: {cov.eligible_count} eligible | {cov.awarded_count} awarded | "
            f"{cov.unfunded_count} unfunded | ${cov.requested_total:.2f} requested | "
            f"${cov.awarded_total:.2f} awarded | {cov.coverage_rate * 100:.1f}% coverage"
        )

    lines += _heading("Need Equity (Requested vs Awarded Share)")
    for tier in NEED_TIERS:
        cov = summary.need_coverage[tier]
        lines.append(
            f"{tier.title()}: {cov.requested_share * 100:.1f}% requested | "
            f"{cov.awarded_share * 100:.1f}% awarded | {cov.share_delta * 100:+.1f}% delta"
        )

    lines += _heading("Unfunded By Need Level")
    for tier in NEED_TIERS:
        unfunded = summary.unfunded_by_need[tier]
        lines.append(f"{tier.title()}: {unfunded.count} unfunded (${unfunded.requested:.2f} requested)")
    return lines


def format_scenarios(results: list[ScenarioResult]) -> list[str]:
    """Render scenario results as a fixed-width table."""
    if not results:
        return []
    lines = [
        "Scenario Analysis",
        "-" * 17,
        f"{'Budget':<12} | {'Awarded':<7} | {'Unfunded':<8} | {'Coverage':<9} | "
        f"{'Full Funded':<11} | {'Budget Used':<11} | {'Budget Left':<11}",
    ]
    for r in results:
        lines.append(
            f"{format_currency(r.budget):<12} | {r.awarded_count:<7d} | {r.eligible_unfunded_count:<8d} | "
            f"{format_percent(r.coverage_rate):<9} | {format_percent(r.full_funding_rate):<11} | "
            f"{format_currency(r.budget_used):<11} | {format_currency(r.budget_left):<11}"
        )
    return lines


def format_awards(awarded: list[Applicant], top: int = 10, show_all: bool = False) -> list[str]:
    """List funded applicants in funding order, limited to ``top`` unless ``show_all``."""
    if not awarded:
        return ["No awards allocated."]
    shown = limit_records(awarded, top, show_all)
    lines = ["Awarded Applicants", "-" * 18]
    for rank, item in enumerate(shown, start=1):
        lines.append(
            f"{rank}. {item.label} | Need: {item.need_tier.title()} | Score: {item.raw_score:.1f} | "
            f"Requested: ${item.requested:.2f} | Awarded: ${item.awarded:.2f} | Priority: {item.priority:.2f}"
        )
    if len(shown) < len(awarded):
        lines.append(f"... {len(awarded) - len(shown)} more")
    return lines


def format_unfunded(unfunded: list[AwardRecord], top: int = 10, show_all: bool = False) -> list[str]:
    """List eligible applicants left unfunded, in rank order."""
    if not unfunded:
        return ["No eligible unfunded applicants."]
    shown = limit_records(unfunded, top, show_all)
    lines = ["Unfunded Eligible Applicants", "-" * 28]
    for rank, item in enumerate(shown, start=1):
        lines.append(
            f"{rank}. {item.label} | Need: {item.need_level.title()} | Score: {item.score:.1f} | "
            f"Requested: ${item.requested:.2f} | Priority: {item.priority:.2f}"
        )
    if len(shown) < len(unfunded):
        lines.append(f"... {len(unfunded) - len(shown)} more")
    return lines


def main(argv: list[str] | None = None) -> int:
    """Run the allocator from the command line and return the exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_args(args)
        applicants, warnings = load_applicants(args.input)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if warnings:
        print("Warnings:")
        for warning in warnings:
            print(f"- {warning}")
        print()

    run = run_allocation(applicants, config)
    summary = run.summary

    print("\n".join(format_summary(summary)))
    scenario_lines = format_scenarios(summary.scenario_results)
    if scenario_lines:
        print()
        print("\n".join(scenario_lines))
    print()
    print("\n".join(format_awards(run.awarded, args.top, args.show_all)))
    print()
    print("\n".join(format_unfunded(summary.unfunded, args.unfunded_top, args.show_all_unfunded)))

    outputs = [
        (args.json_path, "JSON", lambda path: export.write_json(path, summary)),
        (args.awards_csv, "Awarded CSV", lambda path: export.write_awards_csv(path, summary.awards)),
        (args.unfunded_csv, "Unfunded CSV", lambda path: export.write_unfunded_csv(path, summary.unfunded)),
        (args.ineligible_csv, "Ineligible CSV", lambda path: export.write_ineligible_csv(path, summary.ineligible)),
        (
            args.report_path,
            "Markdown report",
            lambda path: export.write_report(
                path,
                summary,
                top=args.top,
                show_all=args.show_all,
                unfunded_top=args.unfunded_top,
                show_all_unfunded=args.show_all_unfunded,
            ),
        ),
    ]
    for path, kind, write in outputs:
        if not path:
            continue
        try:
            write(path)
        except OSError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(f"\n{kind} written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
