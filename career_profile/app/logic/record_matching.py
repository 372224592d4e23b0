import logging
from datetime import date

from rapidfuzz.distance import Levenshtein

from career_profile.app.models.work_history import WorkHistory
from career_profile.app.schemas.profile import WorkExperienceFact

log = logging.getLogger(__name__)

DEFAULT_COMPANY_NAME_MAX_DISTANCE = 5


def normalize_company_name(name: str | None) -> str:
    """Lowercases a company name and strips all whitespace."""
    return "".join((name or "").lower().split())


def month_key(value: date) -> int:
    """Returns a month-granularity key for a date (year * 12 + month)."""
    return value.year * 12 + value.month


def company_names_match(
    existing_name: str | None,
    incoming_name: str | None,
    max_distance: int = DEFAULT_COMPANY_NAME_MAX_DISTANCE,
) -> bool:
    """
    Decide whether two company names refer to the same employer.

    Args:
        existing_name (str | None): The stored company name.
        incoming_name (str | None): The extracted company name.
        max_distance (int): Largest edit distance that still counts as a match.

    Returns:
        bool: True when the normalized names are within `max_distance` edits.

    """
    distance = Levenshtein.distance(
        normalize_company_name(existing_name),
        normalize_company_name(incoming_name),
    )
    return distance <= max_distance


def work_history_records_match(
    existing: WorkHistory,
    incoming: WorkExperienceFact,
    max_distance: int = DEFAULT_COMPANY_NAME_MAX_DISTANCE,
) -> bool:
    """
    Decide whether an extracted work experience fact describes a stored work history record.

    Args:
        existing (WorkHistory): The stored record. Only `company_name`, `start_date`
            and `end_date` are read, so any object with those attributes works.
        incoming (WorkExperienceFact): The extracted fact.
        max_distance (int): Largest company name edit distance that still counts as a match.

    Returns:
        bool: True only when the company name, start month and end month all agree.

    Notes:
        1. Compare company names after lowercasing and stripping whitespace; reject above `max_distance` edits.
        2. Reject when the incoming start date is missing.
        3. Reject when the start months differ.
        4. Both end dates missing means both are current positions and matches; exactly
           one missing rejects; otherwise the end months must agree.
        5. This function performs no I/O.

    """
    if not company_names_match(existing.company_name, incoming.company, max_distance):
        return False

    if incoming.start_date is None or existing.start_date is None:
        return False

    if month_key(existing.start_date) != month_key(incoming.start_date):
        return False

    if existing.end_date is None and incoming.end_date is None:
        return True

    if existing.end_date is None or incoming.end_date is None:
        return False

    return month_key(existing.end_date) == month_key(incoming.end_date)


def find_matching_record(
    existing_records: list[WorkHistory],
    incoming: WorkExperienceFact,
    max_distance: int = DEFAULT_COMPANY_NAME_MAX_DISTANCE,
) -> WorkHistory | None:
    """Returns the first stored record that matches the fact, or None."""
    for record in existing_records:
        if work_history_records_match(record, incoming, max_distance):
            _msg = f"Fact for '{incoming.company}' matched work history {record.id}"
            log.debug(_msg)
            return record
    return None
