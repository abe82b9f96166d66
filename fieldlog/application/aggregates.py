"""Dashboard totals over personal and coordinator records."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass

from fieldlog.schemas.records import CoordinatorRecord, PersonalRecord

# Leading decimal number, as typed into a free-text form field ("12.5 km" -> 12.5)
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(value: str | None) -> float:
    """Numeric value of a free-text amount; 0.0 when it does not start with a number."""
    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    number = float(match.group())
    return number if math.isfinite(number) else 0.0


@dataclass(frozen=True)
class RecordTotals:
    personal_count: int
    coordinator_count: int
    total_mileage: float
    total_electricity_usage: float


def summarize_records(
    personal: Iterable[PersonalRecord],
    coordinator: Iterable[CoordinatorRecord],
    project_id: str | None = None,
) -> RecordTotals:
    """Record counts plus mileage and electricity sums, optionally for one project."""
    personal = [r for r in personal if project_id is None or r.project_id == project_id]
    coordinator = [r for r in coordinator if project_id is None or r.project_id == project_id]
    return RecordTotals(
        personal_count=len(personal),
        coordinator_count=len(coordinator),
        total_mileage=sum(parse_amount(r.mileage) for r in personal),
        total_electricity_usage=sum(parse_amount(r.electricity_usage) for r in coordinator),
    )
