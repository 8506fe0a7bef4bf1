"""Load applicant records from CSV."""

import logging
import math
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from award_allocation.models import Applicant

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["applicant_id", "score", "need_level", "requested_amount"]


def applicant_from_mapping(record: Mapping[str, Any]) -> Applicant:
    """Build an :class:`Applicant` from a record with external field names.

    Parameters
    ----------
    record : Mapping[str, Any]
        Must contain ``applicant_id``, ``need_level``, ``score`` and
        ``requested_amount``; ``name`` is optional.

    Returns
    -------
    Applicant

    Raises
    ------
    ValueError
        If the id is empty or a numeric field is not a finite number.
    """
    return Applicant(
        id=str(record["applicant_id"]).strip(),
        name=str(record.get("name") or "").strip(),
        need_tier=str(record["need_level"]).strip().lower(),
        raw_score=float(record["score"]),
        requested=float(record["requested_amount"]),
    )


def _cell(row: Mapping[str, Any], key: str) -> str:
    """Return the stripped text of ``row[key]``, or ``""`` if the field is absent."""
    value = row.get(key)
    return value.strip() if isinstance(value, str) else ""


def _parse_number(text: str) -> float | None:
    """Parse ``text`` as a finite float; ``None`` for anything else, NaN and inf included."""
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_row(row: Mapping[str, Any], line: int) -> tuple[Applicant | None, str]:
    """Turn one CSV row into an applicant, or into a ``"line N: ..."`` warning.

    Parameters
    ----------
    row : Mapping[str, Any]
        Cell text keyed by normalized header.
    line : int
        Record number of the row, the header being line 1.

    Returns
    -------
    tuple[Applicant | None, str]
        The applicant and an empty string, or ``None`` and the warning.
    """
    applicant_id = _cell(row, "applicant_id")
    if not applicant_id:
        return None, f"line {line}: missing applicant_id"
    score = _parse_number(_cell(row, "score"))
    if score is None:
        return None, f"line {line}: invalid score"
    requested = _parse_number(_cell(row, "requested_amount"))
    if requested is None:
        return None, f"line {line}: invalid requested_amount"
    applicant = Applicant(
        id=applicant_id,
        name=_cell(row, "name"),
        need_tier=_cell(row, "need_level").lower(),
        raw_score=score,
        requested=requested,
    )
    return applicant, ""


def _keep_ragged_stub(fields: list[str]) -> list[str]:
    """Cut a row with surplus fields down to a stub so it is reported, not dropped."""
    return fields[:1]


def _read_rows(path: str | Path) -> tuple[list[str], list[Sequence[Any]]]:
    """Read the normalized header and the raw data rows of a CSV file.

    The header is read as an ordinary row so that a ragged first data row is
    never taken for an index column. Rows with too few or too many fields come
    back with missing (non-string) cells.
    """
    frame = pd.read_csv(
        path,
        header=None,
        dtype=object,
        keep_default_na=False,
        skipinitialspace=True,
        engine="python",
        on_bad_lines=_keep_ragged_stub,
    )
    rows = list(frame.itertuples(index=False, name=None))
    header = [str(c).strip().lower() for c in rows[0]]
    return header, rows[1:]


def load_applicants(path: str | Path) -> tuple[list[Applicant], list[str]]:
    """Read applicants from a CSV file.

    Headers are matched case-insensitively. Rows with the wrong number of
    fields, a missing or repeated id, or an unparsable or non-finite number are
    skipped and reported as warnings; structural problems such as a bad need
    tier are left for the eligibility filter.

    Parameters
    ----------
    path : str or Path
        CSV file with ``applicant_id``, ``score``, ``need_level``,
        ``requested_amount`` and optionally ``name`` columns.

    Returns
    -------
    tuple[list[Applicant], list[str]]
        ``(applicants, warnings)`` in file order.

    Raises
    ------
    ValueError
        If required headers are missing or no row is valid.
    """
    header, rows = _read_rows(path)

    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise ValueError(f"missing required headers: {', '.join(missing)}")

    applicants: list[Applicant] = []
    warnings: list[str] = []
    seen: set[str] = set()
    # Line 1 is the header.
    for line, values in enumerate(rows, start=2):
        if not all(isinstance(v, str) for v in values):
            applicant, warning = None, f"line {line}: wrong number of fields"
        else:
            applicant, warning = _parse_row(dict(zip(header, values)), line)
        if applicant is not None and applicant.id in seen:
            applicant, warning = None, f"line {line}: duplicate applicant_id {applicant.id}"
        if warning:
            logger.warning("Skipping applicant row: %s", warning)
            warnings.append(warning)
        if applicant is not None:
            seen.add(applicant.id)
            applicants.append(applicant)

    if not applicants:
        raise ValueError("no valid applicants found")
    logger.info("Loaded %d applicants from %s", len(applicants), path)
    return applicants, warnings
