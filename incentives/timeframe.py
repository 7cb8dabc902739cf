"""
incentives/timeframe.py

Calendar-window views over salesperson breakdowns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Sequence

from incentives.calculator import BreakdownEntry
from incentives.cells import add_days, normalize_key
from incentives.metrics import SalespersonMetric

WEEK_SPAN_DAYS = 6


class Timeframe(str, Enum):
    ALL = "all"
    DAY = "day"
    WEEK = "week"


@dataclass(frozen=True)
class FilteredMetric:
    """
    A salesperson metric restricted to the active timeframe.
    """

    metric: SalespersonMetric
    filtered_breakdown: tuple[BreakdownEntry, ...]
    filtered_total: int
    customers_count: int

    @property
    def name(self) -> str:
        return self.metric.name


@dataclass(frozen=True)
class TimeframeSummary:
    """
    Headline numbers for one filtered view.
    """

    total_incentive: int
    total_salespeople: int
    customers_covered: int
    highest_individual: int
    average_payout: float


def default_anchor(available_dates: Sequence[date]) -> date | None:
    """
    Latest observed date, used when a view does not name one.
    """

    return max(available_dates) if available_dates else None


class TimeframeFilter:
    """
    Restricts breakdowns to all time, one day, or a 7-day window.
    """

    def __init__(self, timeframe: Timeframe | str = Timeframe.ALL, anchor: date | None = None) -> None:
        self.timeframe = Timeframe(timeframe)
        self.anchor = anchor

    @property
    def window(self) -> tuple[date, date] | None:
        if self.anchor is None or self.timeframe is Timeframe.ALL:
            return None
        if self.timeframe is Timeframe.DAY:
            return self.anchor, self.anchor
        return self.anchor, add_days(self.anchor, WEEK_SPAN_DAYS)

    def predicate(self) -> Callable[[BreakdownEntry], bool]:
        if self.timeframe is Timeframe.ALL:
            return lambda entry: True

        window = self.window
        if window is None:
            return lambda entry: False

        start, end = window
        return lambda entry: entry.date_iso is not None and start <= entry.date_iso <= end

    def apply(self, metrics: Iterable[SalespersonMetric]) -> list[FilteredMetric]:
        """
        Filter every metric and re-sort by filtered total, then name.
        """

        keep = self.predicate()
        filtered: list[FilteredMetric] = []
        for metric in metrics:
            entries = tuple(entry for entry in metric.breakdown if keep(entry))
            filtered.append(
                FilteredMetric(
                    metric=metric,
                    filtered_breakdown=entries,
                    filtered_total=sum(entry.amount for entry in entries),
                    customers_count=len({normalize_key(entry.customer_id) for entry in entries}),
                )
            )
        filtered.sort(key=lambda item: (-item.filtered_total, item.name.casefold()))
        return filtered


def summarize(filtered: Sequence[FilteredMetric]) -> TimeframeSummary:
    total = sum(item.filtered_total for item in filtered)
    customers = {
        normalize_key(entry.customer_id) for item in filtered for entry in item.filtered_breakdown
    }
    highest = max((item.filtered_total for item in filtered), default=0)
    count = len(filtered)
    return TimeframeSummary(
        total_incentive=total,
        total_salespeople=count,
        customers_covered=len(customers),
        highest_individual=highest,
        average_payout=(total / count) if count else 0.0,
    )
