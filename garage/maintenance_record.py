"""MaintenanceRecord class for service events."""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from dateutil import parser as date_parser

INVALID_HISTORY_LINE = "Maintenance with invalid date"
INVALID_SCHEDULE_LINE = "Appointment with invalid date"
MISSING_TYPE = "(Type not informed)"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a value to an aware UTC datetime, or None when unparseable.

    - date objects and bare YYYY-MM-DD strings mean midnight UTC
    - naive datetimes are local time
    - aware datetimes are converted to UTC
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            return None
        if _DATE_ONLY.match(text):
            parsed = parsed.replace(tzinfo=timezone.utc)
    else:
        return None
    try:
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def parse_cost(value: Any) -> float:
    """Coerce cost to a finite, non-negative float (anything else becomes 0)."""
    try:
        cost = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(cost) or cost < 0:
        return 0.0
    return cost


def format_money(amount: float) -> str:
    return f"R$ {amount:.2f}"


@dataclass(frozen=True)
class MaintenanceRecord:
    """A maintenance performed or scheduled. Immutable: edits are replacements."""

    when: Optional[datetime]
    service_type: str
    cost: float = 0.0
    notes: str = ""

    def __post_init__(self):
        # History is sorted by `when`, so it must always be aware UTC
        object.__setattr__(self, "when", parse_timestamp(self.when))

    @classmethod
    def create(
        cls, when: Any, service_type: Any, cost: Any = 0, notes: Any = ""
    ) -> "MaintenanceRecord":
        """Build a record from raw form input. Never raises; bad input gives an invalid record."""
        return cls(
            when=parse_timestamp(when),
            service_type=str(service_type or "").strip(),
            cost=parse_cost(cost),
            notes=str(notes or "").strip(),
        )

    def is_valid(self) -> bool:
        return (
            isinstance(self.when, datetime)
            and self.service_type != ""
            and self.cost >= 0
        )

    def format_history_line(self) -> str:
        """Past service, date only, shown in UTC so the calendar day never shifts."""
        if self.when is None:
            return INVALID_HISTORY_LINE
        day = self.when.astimezone(timezone.utc).strftime("%d/%m/%Y")
        line = f"{self.service_type or MISSING_TYPE} on {day}"
        if self.cost > 0:
            line += f" - {format_money(self.cost)}"
        if self.notes:
            line += f" ({self.notes})"
        return line

    def format_schedule_line(self) -> str:
        """Appointment, date and time in the local time zone."""
        if self.when is None:
            return INVALID_SCHEDULE_LINE
        moment = self.when.astimezone().strftime("%d/%m/%Y %H:%M")
        line = f"{self.service_type or MISSING_TYPE} scheduled for {moment}"
        if self.cost > 0:
            line += f" - Est. cost: {format_money(self.cost)}"
        if self.notes:
            line += f" (Notes: {self.notes})"
        return line

    def serialize(self) -> Optional[Dict[str, Any]]:
        """Wire form, or None when the record is invalid."""
        if not self.is_valid():
            return None
        return {
            "when": self.when.isoformat(timespec="milliseconds").replace(
                "+00:00", "Z"
            ),
            "serviceType": self.service_type,
            "cost": self.cost,
            "notes": self.notes,
        }
