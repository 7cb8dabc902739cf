"""
incentives/metrics.py

Per-salesperson incentive metrics built from visit attributions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from incentives.calculator import BreakdownEntry, IncentiveCalculator
from incentives.cells import normalize_key
from incentives.visits import SalespersonRecord, Visit


@dataclass(frozen=True)
class SalespersonMetric:
    """
    Lifetime incentive view for one salesperson.
    """

    name: str
    departments: tuple[str, ...]
    breakdown: tuple[BreakdownEntry, ...] = field(default_factory=tuple)

    @property
    def total_incentive(self) -> int:
        return sum(entry.amount for entry in self.breakdown)


def _breakdown_sort_key(entry: BreakdownEntry) -> tuple:
    # Dated entries first, newest first; then larger amounts first.
    if entry.date_iso is not None:
        return (0, -entry.date_iso.toordinal(), -entry.amount)
    return (1, 0, -entry.amount)


def sort_breakdown(entries: Iterable[BreakdownEntry]) -> list[BreakdownEntry]:
    return sorted(entries, key=_breakdown_sort_key)


def sort_metrics(metrics: Iterable[SalespersonMetric]) -> list[SalespersonMetric]:
    return sorted(metrics, key=lambda metric: (-metric.total_incentive, metric.name.casefold()))


class MetricsBuilder:
    """
    Rolls per-visit attributions into sorted ``SalespersonMetric`` objects.
    """

    def __init__(self, *, calculator: IncentiveCalculator | None = None) -> None:
        self._calculator = calculator or IncentiveCalculator()

    def build(
        self,
        *,
        visits: Iterable[Visit],
        salespeople: Mapping[str, SalespersonRecord],
    ) -> list[SalespersonMetric]:
        """
        Attribute every visit and emit one metric per known salesperson.
        """

        breakdowns: dict[str, list[BreakdownEntry]] = {}
        names: dict[str, str] = {}
        for visit in visits:
            for entry in self._calculator.attribute(visit):
                key = normalize_key(entry.salesperson)
                breakdowns.setdefault(key, []).append(entry)
                names.setdefault(key, entry.salesperson)

        metrics: list[SalespersonMetric] = []
        for key, entries in breakdowns.items():
            record = salespeople.get(key)
            metrics.append(
                SalespersonMetric(
                    name=record.name if record is not None else names[key],
                    departments=tuple(sorted(record.departments)) if record is not None else (),
                    breakdown=tuple(sort_breakdown(entries)),
                )
            )

        for key, record in salespeople.items():
            if key in breakdowns:
                continue
            metrics.append(
                SalespersonMetric(
                    name=record.name,
                    departments=tuple(sorted(record.departments)),
                    breakdown=(),
                )
            )

        return sort_metrics(metrics)
