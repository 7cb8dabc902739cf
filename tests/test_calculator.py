"""
tests/test_calculator.py

Pytest unit tests for tier amounts, attribution and metric assembly.
"""

from __future__ import annotations

from datetime import date

import pytest

from incentives.calculator import IncentiveCalculator, calculate_incentive_for_departments
from incentives.cells import parse_date
from incentives.metrics import MetricsBuilder, sort_metrics
from incentives.rows import RowFact
from incentives.visits import VisitAggregator


def _fact(
    salesperson: str,
    department: str,
    customer_id: str = "9876543210",
    when: object = "2024-01-02",
    counter: str = "",
) -> RowFact:
    label = f"{department} ({counter})" if counter else department
    return RowFact(
        salesperson=salesperson,
        department=department,
        department_label=label,
        customer_id=customer_id,
        date_info=parse_date(when),
        raw_department=department,
        counter=counter,
    )


@pytest.fixture()
def calculator() -> IncentiveCalculator:
    return IncentiveCalculator()


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


class TestTiers:
    @pytest.mark.parametrize(
        "count, expected",
        [(0, 0), (1, 0), (2, 20), (3, 40), (4, 60), (5, 80), (6, 80), (12, 80)],
    )
    def test_default_tiers(self, calculator: IncentiveCalculator, count: int, expected: int) -> None:
        assert calculator.incentive_for_departments(count) == expected
        assert calculate_incentive_for_departments(count) == expected

    def test_amount_never_decreases(self, calculator: IncentiveCalculator) -> None:
        amounts = [calculator.incentive_for_departments(count) for count in range(10)]
        assert amounts == sorted(amounts)

    def test_custom_tiers_are_sorted(self) -> None:
        custom = IncentiveCalculator(tiers=[(3, 50), (2, 10)])
        assert custom.tiers == ((2, 10), (3, 50))
        assert custom.incentive_for_departments(4) == 50

    def test_decreasing_tiers_are_rejected(self) -> None:
        with pytest.raises(ValueError):
            IncentiveCalculator(tiers=[(2, 50), (3, 10)])


# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------


class TestAttribution:
    def test_each_salesperson_gets_the_full_amount(self, calculator: IncentiveCalculator) -> None:
        aggregator = VisitAggregator()
        aggregator.add(_fact("X", "kurta"))
        aggregator.add(_fact("X", "sarees"))
        visit = aggregator.add(_fact("Y", "men's ethnic"))

        entries = calculator.attribute(visit)

        assert [entry.salesperson for entry in entries] == ["X", "Y"]
        assert {entry.amount for entry in entries} == {40}
        by_name = {entry.salesperson: entry for entry in entries}
        assert by_name["X"].handled_departments == ("kurta", "sarees")
        assert by_name["Y"].handled_departments == ("men's ethnic",)
        assert by_name["X"].visited_departments == ("kurta", "men's ethnic", "sarees")
        assert by_name["X"].departments_visited == 3
        assert by_name["X"].date_iso == date(2024, 1, 2)
        assert by_name["X"].display_date == "02 Jan 2024"

    def test_single_department_visit_earns_nothing(self, calculator: IncentiveCalculator) -> None:
        aggregator = VisitAggregator()
        visit = aggregator.add(_fact("X", "kurta"))
        assert calculator.attribute(visit) == []

    def test_counter_labels_do_not_inflate_the_count(self, calculator: IncentiveCalculator) -> None:
        aggregator = VisitAggregator()
        aggregator.add(_fact("X", "kurta", counter="C1"))
        visit = aggregator.add(_fact("X", "kurta", counter="C2"))

        assert calculator.attribute(visit) == []
        assert visit.department_labels == {"kurta (C1)", "kurta (C2)"}


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class TestMetricsBuilder:
    def test_totals_and_ordering(self) -> None:
        aggregator = VisitAggregator()
        for fact in (
            _fact("Asha", "kurta", customer_id="111"),
            _fact("Asha", "sarees", customer_id="111"),
            _fact("Bala", "kurta", customer_id="222", when="2024-01-03"),
            _fact("Bala", "sarees", customer_id="222", when="2024-01-03"),
            _fact("Bala", "men's ethnic", customer_id="222", when="2024-01-03"),
            _fact("Chitra", "kurta", customer_id="333"),
        ):
            aggregator.add(fact)

        metrics = MetricsBuilder().build(
            visits=aggregator.visits.values(),
            salespeople=aggregator.salespeople,
        )

        assert [metric.name for metric in metrics] == ["Bala", "Asha", "Chitra"]
        assert [metric.total_incentive for metric in metrics] == [40, 20, 0]
        assert metrics[2].breakdown == ()
        assert metrics[0].departments == ("kurta", "men's ethnic", "sarees")

    def test_ties_break_on_name(self) -> None:
        aggregator = VisitAggregator()
        aggregator.add(_fact("zoe", "kurta"))
        aggregator.add(_fact("Adam", "sarees"))

        metrics = MetricsBuilder().build(
            visits=aggregator.visits.values(),
            salespeople=aggregator.salespeople,
        )

        assert [metric.name for metric in sort_metrics(metrics)] == ["Adam", "zoe"]
        assert all(metric.total_incentive == 20 for metric in metrics)
