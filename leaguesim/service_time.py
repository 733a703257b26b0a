"""Service time bookkeeping.

A service year is 172 days on the active roster.  Arbitration eligibility
starts at three years, free agency at six.  "Super Two" players are the top
22% (by days) of the group with at least two but fewer than three years.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping
import math

from models.player import ARBITRATION_YEARS, SERVICE_DAYS_PER_YEAR, Player

SUPER_TWO_SHARE = 0.22


def super_two_ids(players: Iterable[Player], share: float = SUPER_TWO_SHARE) -> List[int]:
    """Return the ids of Super Two players, most service first."""

    low = 2 * SERVICE_DAYS_PER_YEAR
    high = ARBITRATION_YEARS * SERVICE_DAYS_PER_YEAR
    pool = sorted(
        (p for p in players if low <= p.service_days < high),
        key=lambda p: (-p.service_days, p.player_id),
    )
    count = math.ceil(len(pool) * share)
    return [p.player_id for p in pool[:count]]


def accrue_service(
    players: Iterable[Player], calendar_days: int, cap: int = SERVICE_DAYS_PER_YEAR
) -> Dict[int, int]:
    """Return days of service earned by each active MLB player in one season."""

    if calendar_days < 0:
        raise ValueError("calendar_days must be non-negative")
    days = min(calendar_days, cap)
    return {p.player_id: days for p in players if p.active and p.level == "MLB"}


def apply_service_time(players: Iterable[Player], accrued: Mapping[int, int]) -> List[Player]:
    """Return copies of ``players`` with ``accrued`` days added."""

    return [
        replace(p, service_days=p.service_days + accrued[p.player_id])
        if p.player_id in accrued
        else p
        for p in players
    ]


__all__ = ["SUPER_TWO_SHARE", "super_two_ids", "accrue_service", "apply_service_time"]
