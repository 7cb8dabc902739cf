"""
incentives/rows.py

Per-row extraction of salesperson/department/customer facts.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from incentives.cells import UNKNOWN_DATE, DateInfo, is_blank, normalize_key, parse_date, stringify
from incentives.departments import NO_MATCH, DepartmentCatalog
from incentives.headers import (
    ACCOUNT_NAME,
    COUNTER,
    CUSTOMER_ID,
    DATE,
    DEPARTMENT,
    SALES_TYPE,
    SALESPERSON,
    VOUCHER_NO,
    ColumnMap,
)

DEFAULT_ACCEPTED_SALES_TYPES: tuple[str, ...] = ("sale", "sales")

SKIP_BLANK = "blank"
SKIP_NOT_A_SALE = "not_a_sale"
SKIP_MISSING_DEPARTMENT = "missing_department"
SKIP_UNMATCHED_DEPARTMENT = "unmatched_department"
SKIP_MISSING_CUSTOMER = "missing_customer"


@dataclass(frozen=True)
class RowFact:
    """
    One accepted data row with a canonical department.
    """

    salesperson: str
    department: str
    department_label: str
    customer_id: str
    date_info: DateInfo
    raw_department: str = ""
    counter: str = ""
    voucher_no: str | None = None
    customer_name: str | None = None

    @property
    def salesperson_key(self) -> str:
        return normalize_key(self.salesperson)

    @property
    def customer_key(self) -> str:
        return normalize_key(self.customer_id)


@dataclass(frozen=True)
class SkippedRow:
    """
    A data row that contributes no department; keeps the salesperson seen.
    """

    reason: str
    salesperson: str = ""
    raw_department: str = ""


@dataclass
class IngestionDiagnostics:
    """
    Structured account of one parse pass, returned alongside the result.
    """

    header_row_number: int = 0
    columns: dict[str, str] = field(default_factory=dict)
    rows_read: int = 0
    rows_processed: int = 0
    rows_skipped: Counter = field(default_factory=Counter)
    unmatched_departments: set[str] = field(default_factory=set)

    def record_skip(self, skipped: SkippedRow) -> None:
        self.rows_skipped[skipped.reason] += 1
        if skipped.reason == SKIP_UNMATCHED_DEPARTMENT and skipped.raw_department:
            self.unmatched_departments.add(skipped.raw_department)

    def to_dict(self) -> dict[str, Any]:
        return {
            "header_row_number": self.header_row_number,
            "columns": dict(self.columns),
            "rows_read": self.rows_read,
            "rows_processed": self.rows_processed,
            "rows_skipped": dict(self.rows_skipped),
            "unmatched_departments": sorted(self.unmatched_departments),
        }


class RowIngestor:
    """
    Turns worksheet rows into ``RowFact`` objects using a resolved column map.
    """

    def __init__(
        self,
        *,
        columns: ColumnMap,
        catalog: DepartmentCatalog,
        accepted_sales_types: Iterable[str] = DEFAULT_ACCEPTED_SALES_TYPES,
    ) -> None:
        self._columns = columns
        self._catalog = catalog
        self._accepted_sales_types = frozenset(
            normalize_key(token) for token in accepted_sales_types if normalize_key(token)
        )

    def ingest_row(self, row: Sequence[Any] | None) -> RowFact | SkippedRow:
        """
        Extract one row; never raises on malformed cells.
        """

        if not row or all(is_blank(cell) for cell in row):
            return SkippedRow(reason=SKIP_BLANK)

        cols = self._columns
        date_info = parse_date(cols.cell(row, DATE)) if cols.has(DATE) else UNKNOWN_DATE
        salesperson = stringify(cols.cell(row, SALESPERSON))

        if not self.is_sale(cols.cell(row, SALES_TYPE)):
            return SkippedRow(reason=SKIP_NOT_A_SALE, salesperson=salesperson)

        raw_department = stringify(cols.cell(row, DEPARTMENT))
        if not raw_department:
            return SkippedRow(reason=SKIP_MISSING_DEPARTMENT, salesperson=salesperson)

        department = self._catalog.canonicalize(raw_department)
        if department is NO_MATCH:
            return SkippedRow(
                reason=SKIP_UNMATCHED_DEPARTMENT,
                salesperson=salesperson,
                raw_department=raw_department,
            )

        counter = stringify(cols.cell(row, COUNTER))
        voucher_no = stringify(cols.cell(row, VOUCHER_NO))
        customer_name = stringify(cols.cell(row, ACCOUNT_NAME))

        return RowFact(
            salesperson=salesperson,
            department=department,
            department_label=self._catalog.format_with_counter(raw_department, counter),
            customer_id=stringify(cols.cell(row, CUSTOMER_ID)),
            date_info=date_info,
            raw_department=raw_department,
            counter=counter,
            voucher_no=voucher_no or None,
            customer_name=customer_name or None,
        )

    def is_sale(self, value: Any) -> bool:
        """
        Blank or absent sales-type cells count as sales.
        """

        if not self._columns.has(SALES_TYPE):
            return True
        token = normalize_key(value)
        if not token:
            return True
        return token in self._accepted_sales_types
