"""
tests/test_timeframe.py

Pytest unit tests for all/day/week views and their summary statistics.
"""

from __future__ import annotations

from datetime import date

import pytest

from incentives.calculator import BreakdownEntry
from incentives.cells import UNKNOWN_DATE_KEY
from incentives.metrics import SalespersonMetric
from incentives.timeframe import Timeframe, TimeframeFilter, default_anchor, summarize


def _entry(customer_id: str, amount: int, day: date | None) -> BreakdownEntry:
    return BreakdownEntry(
        salesperson="X",
        customer_id=customer_id,
        customer_name=None,
        amount=amount,
        departments_visited=2,
        visited_departments=("kurta", "sarees"),
        handled_departments=("kurta",),
        handled_labels=("kurta",),
        visit_key=f"{customer_id}__{day.isoformat() if day else UNKNOWN_DATE_KEY}",
        date_key=day.isoformat() if day else UNKNOWN_DATE_KEY,
        date_iso=day,
        display_date=None,
    )


@pytest.fixture()
def metrics() -> list[SalespersonMetric]:
    return [
        SalespersonMetric(
            name="X",
            departments=("kurta",),
            breakdown=(
                _entry("a", 20, date(2024, 1, 1)),
                _entry("b", 40, date(2024, 1, 7)),
                _entry("c", 60, date(2024, 1, 8)),
                _entry("d", 80, None),
            ),
        ),
        SalespersonMetric(
            name="Y",
            departments=("sarees",),
            breakdown=(_entry("a", 20, date(2024, 1, 8)),),
        ),
    ]


class TestTimeframeFilter:
    def test_all_keeps_everything_including_undated(self, metrics: list[SalespersonMetric]) -> None:
        filtered = TimeframeFilter(Timeframe.ALL).apply(metrics)
        assert [item.filtered_total for item in filtered] == [200, 20]

    def test_day_is_inclusive_of_the_anchor_only(self, metrics: list[SalespersonMetric]) -> None:
        filtered = TimeframeFilter("day", date(2024, 1, 8)).apply(metrics)

        assert [(item.name, item.filtered_total) for item in filtered] == [("X", 60), ("Y", 20)]

    def test_week_spans_start_to_start_plus_six(self, metrics: list[SalespersonMetric]) -> None:
        view = TimeframeFilter(Timeframe.WEEK, date(2024, 1, 1))

        assert view.window == (date(2024, 1, 1), date(2024, 1, 7))
        filtered = view.apply(metrics)
        by_name = {item.name: item for item in filtered}
        assert by_name["X"].filtered_total == 60
        assert by_name["X"].customers_count == 2
        assert by_name["Y"].filtered_total == 0

    def test_week_boundary_day_is_excluded_on_the_eighth_day(self, metrics: list[SalespersonMetric]) -> None:
        filtered = TimeframeFilter(Timeframe.WEEK, date(2024, 1, 2)).apply(metrics)
        x = next(item for item in filtered if item.name == "X")
        assert [entry.customer_id for entry in x.filtered_breakdown] == ["b", "c"]

    def test_missing_anchor_matches_nothing(self, metrics: list[SalespersonMetric]) -> None:
        filtered = TimeframeFilter(Timeframe.DAY, None).apply(metrics)
        assert all(item.filtered_total == 0 for item in filtered)
        assert [item.name for item in filtered] == ["X", "Y"]

    def test_unknown_timeframe_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            TimeframeFilter("month")


def test_summarize(metrics: list[SalespersonMetric]) -> None:
    summary = summarize(TimeframeFilter(Timeframe.ALL).apply(metrics))

    assert summary.total_incentive == 220
    assert summary.total_salespeople == 2
    assert summary.customers_covered == 4
    assert summary.highest_individual == 200
    assert summary.average_payout == pytest.approx(110.0)


def test_summarize_empty() -> None:
    summary = summarize([])
    assert summary.total_incentive == 0
    assert summary.average_payout == 0.0


def test_default_anchor_is_latest_date() -> None:
    assert default_anchor([date(2024, 1, 3), date(2024, 1, 9), date(2024, 1, 1)]) == date(2024, 1, 9)
    assert default_anchor([]) is None


def test_customers_are_counted_by_normalized_id() -> None:
    metrics = [
        SalespersonMetric(
            name="X",
            departments=("kurta",),
            breakdown=(
                _entry("CUST-9", 20, date(2024, 1, 1)),
                _entry("cust-9 ", 40, date(2024, 1, 2)),
            ),
        ),
        SalespersonMetric(
            name="Y",
            departments=("sarees",),
            breakdown=(_entry("Cust-9", 20, date(2024, 1, 3)),),
        ),
    ]

    filtered = TimeframeFilter(Timeframe.ALL).apply(metrics)

    assert filtered[0].customers_count == 1
    assert summarize(filtered).customers_covered == 1
