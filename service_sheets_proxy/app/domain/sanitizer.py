"""
Row sanitization for raw sheet values.

Turns the untrusted ``values`` grid returned by the Sheets API into
``FeedbackRecord`` instances. Malformed input degrades to fewer records; it
never raises.
"""

from typing import Any, List, Sequence

from shared.logging import get_logger
from .models import FeedbackRecord


# Column order in the sheet: team, idea, average score, feedback
COLUMNS = ("team_name", "idea", "average_score", "feedback")

logger = get_logger("sheets_proxy.sanitizer")


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def sanitize_rows(raw_rows: Any) -> List[FeedbackRecord]:
    """Validate raw sheet rows, dropping the header and rows without a team."""
    if not isinstance(raw_rows, (list, tuple)) or not raw_rows:
        logger.debug("No data rows in sheet payload")
        return []

    records: List[FeedbackRecord] = []
    for position, row in enumerate(raw_rows[1:], start=2):
        if not isinstance(row, (list, tuple)):
            logger.debug("Skipping malformed row", row_number=position)
            continue

        values = {name: _cell(row, index) for index, name in enumerate(COLUMNS)}
        if not values["team_name"]:
            continue

        records.append(FeedbackRecord(**values))

    logger.debug("Sanitized sheet rows", valid_rows=len(records), total_rows=len(raw_rows))
    return records
