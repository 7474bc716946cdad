"""Derived, never-persisted figures computed over the in-memory stores."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from ..schemas import HouseWithCount, InspectionWithCount

RECENT_INSPECTIONS = 6


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None) if value.tzinfo else value


def in_same_month(value: datetime, now: datetime) -> bool:
    return value.year == now.year and value.month == now.month


def count_this_month(items: Iterable, attr: str, now: Optional[datetime] = None) -> int:
    now = _now(now)
    return sum(1 for item in items if in_same_month(getattr(item, attr), now))


@dataclass
class DashboardStats:
    total_houses: int
    total_inspections: int
    houses_this_month: int


@dataclass
class InspectionStats:
    total: int
    this_month: int
    latest_date: Optional[datetime]


def dashboard_stats(houses: Sequence[HouseWithCount], now: Optional[datetime] = None) -> DashboardStats:
    return DashboardStats(
        total_houses=len(houses),
        total_inspections=sum(h.inspection_count or 0 for h in houses),
        houses_this_month=count_this_month(houses, "created_at", now),
    )


def inspection_stats(inspections: Sequence[InspectionWithCount], now: Optional[datetime] = None) -> InspectionStats:
    # inspections arrive ordered by inspection_date, newest first
    return InspectionStats(
        total=len(inspections),
        this_month=count_this_month(inspections, "inspection_date", now),
        latest_date=inspections[0].inspection_date if inspections else None,
    )


def recent(inspections: Sequence[InspectionWithCount], limit: int = RECENT_INSPECTIONS) -> List[InspectionWithCount]:
    return list(inspections[:limit])


def date_badge(inspection_date: datetime, now: Optional[datetime] = None) -> str:
    """past, upcoming (within a week) or scheduled."""
    diff = _naive(inspection_date) - _naive(_now(now))
    days = math.ceil(diff.total_seconds() / 86400)
    if days < 0:
        return "past"
    if days <= 7:
        return "upcoming"
    return "scheduled"
