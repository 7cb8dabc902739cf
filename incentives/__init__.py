"""
Retail cross-department incentive engine.

Pure, synchronous ingestion of point-of-sale spreadsheet exports into
per-visit department coverage and per-salesperson incentive metrics.
"""

from incentives.calculator import BreakdownEntry, IncentiveCalculator, calculate_incentive_for_departments
from incentives.cells import UNKNOWN_DATE_KEY, DateInfo, normalize_key, parse_date, stringify
from incentives.departments import NO_MATCH, DepartmentCatalog
from incentives.engine import EngineConfig, IncentiveEngine, IncentiveParseResult, VisitSummary, parse_workbook
from incentives.errors import (
    IncentiveIngestionError,
    MissingColumnsError,
    NoDataExtractedError,
    StructuralError,
)
from incentives.headers import ColumnMap, HeaderResolver
from incentives.metrics import MetricsBuilder, SalespersonMetric
from incentives.rows import IngestionDiagnostics, RowFact, RowIngestor, SkippedRow
from incentives.timeframe import FilteredMetric, Timeframe, TimeframeFilter, TimeframeSummary, summarize
from incentives.visits import CustomerInteraction, Visit, VisitAggregator

__all__ = [
    "BreakdownEntry",
    "ColumnMap",
    "CustomerInteraction",
    "DateInfo",
    "DepartmentCatalog",
    "EngineConfig",
    "FilteredMetric",
    "HeaderResolver",
    "IncentiveCalculator",
    "IncentiveEngine",
    "IncentiveIngestionError",
    "IncentiveParseResult",
    "IngestionDiagnostics",
    "MetricsBuilder",
    "MissingColumnsError",
    "NO_MATCH",
    "NoDataExtractedError",
    "RowFact",
    "RowIngestor",
    "SalespersonMetric",
    "SkippedRow",
    "StructuralError",
    "Timeframe",
    "TimeframeFilter",
    "TimeframeSummary",
    "UNKNOWN_DATE_KEY",
    "Visit",
    "VisitAggregator",
    "VisitSummary",
    "calculate_incentive_for_departments",
    "normalize_key",
    "parse_date",
    "parse_workbook",
    "stringify",
]
