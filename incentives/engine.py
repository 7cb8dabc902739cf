"""
incentives/engine.py

Single-pass ingestion -> aggregation -> incentive pipeline.

Each ``parse_*`` call builds its own ingestor and aggregator, so concurrent
parses of different workbooks never share mutable state. The engine does
no I/O while processing rows and never touches storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from incentives.calculator import DEFAULT_INCENTIVE_TIERS, IncentiveCalculator
from incentives.cells import is_blank
from incentives.departments import (
    DEFAULT_DEPARTMENT_VARIANTS,
    DEFAULT_MASTER_DEPARTMENTS,
    DepartmentCatalog,
)
from incentives.errors import NoDataExtractedError, StructuralError
from incentives.headers import (
    DEFAULT_FUZZY_THRESHOLD,
    DEFAULT_HEADER_ROW_NUMBER,
    HeaderResolver,
)
from incentives.metrics import MetricsBuilder, SalespersonMetric
from incentives.rows import (
    DEFAULT_ACCEPTED_SALES_TYPES,
    SKIP_MISSING_CUSTOMER,
    SKIP_MISSING_DEPARTMENT,
    SKIP_UNMATCHED_DEPARTMENT,
    IngestionDiagnostics,
    RowIngestor,
    SkippedRow,
)
from incentives.visits import CustomerInteraction, Visit, VisitAggregator
from incentives.workbook import load_first_sheet

logger = logging.getLogger(__name__)

# Rows skipped for these reasons still make their salesperson visible.
_SALESPERSON_VISIBLE_SKIPS = frozenset({SKIP_MISSING_DEPARTMENT, SKIP_UNMATCHED_DEPARTMENT})


@dataclass(frozen=True)
class EngineConfig:
    """
    Deployment-specific knobs for one engine instance.
    """

    header_row_number: int = DEFAULT_HEADER_ROW_NUMBER
    master_departments: tuple[str, ...] = DEFAULT_MASTER_DEPARTMENTS
    department_variants: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DEPARTMENT_VARIANTS)
    )
    column_aliases: Mapping[str, Sequence[str]] = field(default_factory=dict)
    accepted_sales_types: tuple[str, ...] = DEFAULT_ACCEPTED_SALES_TYPES
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD
    incentive_tiers: tuple[tuple[int, int], ...] = DEFAULT_INCENTIVE_TIERS


@dataclass(frozen=True)
class VisitSummary:
    """
    Persistence-facing projection of one customer visit.
    """

    visit_key: str
    customer_id: str
    normalized_customer_id: str
    customer_name: str | None
    date_key: str
    date_iso: date | None
    display_date: str | None
    departments_visited: tuple[str, ...]
    departments_not_visited: tuple[str, ...]
    department_labels: tuple[str, ...]
    incentive_amount: int
    salespeople: tuple[str, ...]
    voucher_nos: tuple[str, ...]

    @property
    def departments_count(self) -> int:
        return len(self.departments_visited)


@dataclass(frozen=True)
class IncentiveParseResult:
    """
    Everything one parse pass produces.
    """

    metrics: list[SalespersonMetric]
    available_dates: list[date]
    date_labels: dict[date, str]
    interactions: list[CustomerInteraction]
    visits: list[VisitSummary]
    diagnostics: IngestionDiagnostics
    master_departments: tuple[str, ...] = ()


class IncentiveEngine:
    """
    Wires header resolution, row ingestion, aggregation and metrics together.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()
        self._catalog = DepartmentCatalog(
            departments=self._config.master_departments,
            variants=self._config.department_variants,
        )
        self._resolver = HeaderResolver(
            aliases=self._config.column_aliases,
            header_row_number=self._config.header_row_number,
            fuzzy_threshold=self._config.fuzzy_threshold,
        )
        self._calculator = IncentiveCalculator(tiers=self._config.incentive_tiers)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def catalog(self) -> DepartmentCatalog:
        return self._catalog

    @property
    def calculator(self) -> IncentiveCalculator:
        return self._calculator

    def parse_workbook(self, content: bytes, *, filename: str | None = None) -> IncentiveParseResult:
        """
        Read the first sheet of ``content`` and run one parse pass over it.
        """

        return self.parse_rows(load_first_sheet(content, filename=filename))

    def parse_rows(self, rows: Sequence[Sequence[Any]]) -> IncentiveParseResult:
        """
        Run one parse pass over an in-memory cell matrix.
        """

        if not rows:
            raise StructuralError("The worksheet is empty.")

        columns = self._resolver.resolve(rows)
        data_rows = rows[columns.header_row_index + 1 :]
        if all(not row or all(is_blank(cell) for cell in row) for row in data_rows):
            raise StructuralError("The worksheet has no data rows below the header row.")

        diagnostics = IngestionDiagnostics(
            header_row_number=columns.header_row_index + 1,
            columns=columns.describe(),
        )
        ingestor = RowIngestor(
            columns=columns,
            catalog=self._catalog,
            accepted_sales_types=self._config.accepted_sales_types,
        )
        aggregator = VisitAggregator()

        for row in data_rows:
            diagnostics.rows_read += 1
            outcome = ingestor.ingest_row(row)
            if isinstance(outcome, SkippedRow):
                diagnostics.record_skip(outcome)
                if outcome.reason in _SALESPERSON_VISIBLE_SKIPS:
                    aggregator.register_salesperson(outcome.salesperson)
                continue

            aggregator.add(outcome)
            if outcome.customer_key:
                diagnostics.rows_processed += 1
            else:
                diagnostics.rows_skipped[SKIP_MISSING_CUSTOMER] += 1

        if not aggregator.visits:
            raise NoDataExtractedError(
                rows_processed=diagnostics.rows_processed,
                rows_skipped=dict(diagnostics.rows_skipped),
                unmatched_departments=sorted(diagnostics.unmatched_departments),
            )

        metrics = MetricsBuilder(calculator=self._calculator).build(
            visits=aggregator.visits.values(),
            salespeople=aggregator.salespeople,
        )
        visits = self._summarize_visits(aggregator.visits.values())

        logger.info(
            "Incentive parse complete rows_read=%s rows_processed=%s skipped=%s "
            "visits=%s salespeople=%s unmatched_departments=%s",
            diagnostics.rows_read,
            diagnostics.rows_processed,
            dict(diagnostics.rows_skipped),
            len(visits),
            len(metrics),
            len(diagnostics.unmatched_departments),
        )

        return IncentiveParseResult(
            metrics=metrics,
            available_dates=aggregator.available_dates(),
            date_labels=dict(aggregator.date_labels),
            interactions=list(aggregator.interactions),
            visits=visits,
            diagnostics=diagnostics,
            master_departments=self._catalog.departments,
        )

    def _summarize_visits(self, visits: Iterable[Visit]) -> list[VisitSummary]:
        summaries: list[VisitSummary] = []
        for visit in visits:
            visited = tuple(sorted(visit.departments_visited()))
            amount = self._calculator.incentive_for_departments(len(visited)) if visit.salespeople else 0
            summaries.append(
                VisitSummary(
                    visit_key=visit.key,
                    customer_id=visit.customer_id,
                    normalized_customer_id=visit.customer_key,
                    customer_name=visit.customer_name,
                    date_key=visit.date_info.key,
                    date_iso=visit.date_info.iso,
                    display_date=visit.date_info.display,
                    departments_visited=visited,
                    departments_not_visited=tuple(self._catalog.not_visited(visited)),
                    department_labels=tuple(sorted(visit.department_labels)),
                    incentive_amount=amount,
                    salespeople=tuple(sorted(handler.name for handler in visit.salespeople.values())),
                    voucher_nos=tuple(sorted(visit.voucher_nos)),
                )
            )
        summaries.sort(key=_visit_sort_key)
        return summaries


def _visit_sort_key(summary: VisitSummary) -> tuple:
    if summary.date_iso is not None:
        return (0, -summary.date_iso.toordinal(), summary.normalized_customer_id)
    return (1, 0, summary.normalized_customer_id)


def parse_workbook(
    content: bytes,
    *,
    filename: str | None = None,
    config: EngineConfig | None = None,
) -> IncentiveParseResult:
    return IncentiveEngine(config).parse_workbook(content, filename=filename)
