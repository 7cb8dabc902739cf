"""
incentives/calculator.py

Tiered incentive amounts and salesperson attribution.

Tiers
-----
distinct departments  incentive
0 - 1                 0
2                     20
3                     40
4                     60
5 or more             80

Every salesperson linked to a visit is credited the full tier amount; the
amount is never split between co-handling salespeople.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from incentives.visits import Visit

DEFAULT_INCENTIVE_TIERS: tuple[tuple[int, int], ...] = (
    (2, 20),
    (3, 40),
    (4, 60),
    (5, 80),
)


@dataclass(frozen=True)
class BreakdownEntry:
    """
    One salesperson's credited incentive line for one visit.
    """

    salesperson: str
    customer_id: str
    customer_name: str | None
    amount: int
    departments_visited: int
    visited_departments: tuple[str, ...]
    handled_departments: tuple[str, ...]
    handled_labels: tuple[str, ...]
    visit_key: str
    date_key: str
    date_iso: date | None
    display_date: str | None


class IncentiveCalculator:
    """
    Maps distinct-department counts to payouts and builds breakdown entries.
    """

    def __init__(self, *, tiers: Sequence[tuple[int, int]] | None = None) -> None:
        ordered = tuple(sorted(tiers if tiers is not None else DEFAULT_INCENTIVE_TIERS))
        previous_amount = 0
        for threshold, amount in ordered:
            if threshold < 0 or amount < previous_amount:
                raise ValueError("Incentive tiers must have non-negative thresholds and non-decreasing amounts.")
            previous_amount = amount
        self._tiers = ordered

    @property
    def tiers(self) -> tuple[tuple[int, int], ...]:
        return self._tiers

    def incentive_for_departments(self, department_count: int) -> int:
        """
        Step function of the distinct-department count.
        """

        amount = 0
        for threshold, tier_amount in self._tiers:
            if department_count >= threshold:
                amount = tier_amount
        return amount

    def attribute(self, visit: Visit) -> list[BreakdownEntry]:
        """
        One full-amount entry per linked salesperson, or nothing.
        """

        if not visit.salespeople:
            return []

        visited = visit.departments_visited()
        amount = self.incentive_for_departments(len(visited))
        if amount == 0:
            return []

        visited_sorted = tuple(sorted(visited))
        date_info = visit.date_info
        return [
            BreakdownEntry(
                salesperson=handler.name,
                customer_id=visit.customer_id,
                customer_name=visit.customer_name,
                amount=amount,
                departments_visited=len(visited),
                visited_departments=visited_sorted,
                handled_departments=tuple(sorted(handler.departments)),
                handled_labels=tuple(sorted(handler.labels)),
                visit_key=visit.key,
                date_key=date_info.key,
                date_iso=date_info.iso,
                display_date=date_info.display,
            )
            for handler in visit.salespeople.values()
        ]


def calculate_incentive_for_departments(department_count: int) -> int:
    """
    Default-tier payout for ``department_count`` distinct departments.
    """

    return IncentiveCalculator().incentive_for_departments(department_count)
