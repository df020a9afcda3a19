"""
CSV rendering for dashboard exports.

Column order is fixed per mode. Rows end with CRLF and fields containing a
quote, comma or line break are quoted.
"""

from io import StringIO
from typing import Iterable, List, Tuple

import pandas as pd

from passgate.services.reporting.entity_resolver import HydratedPass

OPERATIONS_COLUMNS: List[Tuple[str, str]] = [
    ("Name", "name"),
    ("College", "college"),
    ("Phone", "phone"),
    ("Email", "email"),
    ("Event", "event_name"),
    ("Pass Type", "pass_type"),
    ("Payment", "payment_label"),
    ("Registered On", "created_at"),
]

FINANCIAL_COLUMNS: List[Tuple[str, str]] = [
    ("Name", "name"),
    ("College", "college"),
    ("Phone", "phone"),
    ("Email", "email"),
    ("Event", "event_name"),
    ("Pass Type", "pass_type"),
    ("Amount", "amount"),
    ("Payment", "payment_status"),
    ("Order ID", "order_id"),
    ("Registered On", "created_at"),
]

FILENAMES = {
    "operations": "operations.csv",
    "financial": "registrations.csv",
}


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def _row(record: HydratedPass, columns: List[Tuple[str, str]]) -> List[str]:
    values = []
    for _, attr in columns:
        if attr == "payment_label":
            values.append("Confirmed")
        elif attr == "amount":
            values.append(_format_amount(record.amount))
        else:
            values.append(getattr(record, attr) or "")
    return values


def render_csv(records: Iterable[HydratedPass], mode: str) -> bytes:
    """Render hydrated records as UTF-8 CSV bytes for the given mode."""
    columns = FINANCIAL_COLUMNS if mode == "financial" else OPERATIONS_COLUMNS
    headers = [header for header, _ in columns]
    df = pd.DataFrame([_row(r, columns) for r in records], columns=headers, dtype=str)

    output = StringIO()
    df.to_csv(output, index=False, lineterminator="\r\n")
    return output.getvalue().encode("utf-8")
