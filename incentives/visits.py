"""
incentives/visits.py

Groups row facts into customer visits keyed by (customer, calendar day).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from incentives.cells import DateInfo, format_display_date, normalize_key
from incentives.rows import RowFact

UNKNOWN_SALESPERSON = "Unknown Salesman"


def visit_key(customer_id: str, date_info: DateInfo) -> str:
    return f"{normalize_key(customer_id)}__{date_info.key}"


@dataclass
class VisitSalesperson:
    """
    What one salesperson handled during one visit.
    """

    name: str
    departments: set[str] = field(default_factory=set)
    labels: set[str] = field(default_factory=set)


@dataclass
class Visit:
    """
    All transactions for one customer on one calendar day.
    """

    key: str
    customer_id: str
    date_info: DateInfo
    customer_name: str | None = None
    departments: set[str] = field(default_factory=set)
    department_labels: set[str] = field(default_factory=set)
    salespeople: dict[str, VisitSalesperson] = field(default_factory=dict)
    voucher_nos: set[str] = field(default_factory=set)

    @property
    def customer_key(self) -> str:
        return normalize_key(self.customer_id)

    def departments_visited(self) -> set[str]:
        """
        Customer departments united with every handling salesperson's departments.
        """

        visited = set(self.departments)
        for handler in self.salespeople.values():
            visited |= handler.departments
        return visited


@dataclass
class SalespersonRecord:
    """
    Lifetime view of one salesperson within a parse pass.
    """

    name: str
    departments: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class CustomerInteraction:
    """
    Flat per-row record handed to the persistence layer.
    """

    customer_id: str
    normalized_customer_id: str
    voucher_no: str | None
    voucher_date_iso: date | None
    voucher_date_display: str | None
    department: str | None
    counter: str | None
    department_label: str | None
    salesperson: str
    visit_key: str = ""


class VisitAggregator:
    """
    Accumulates visits, salespeople, date labels and interactions for one parse.
    """

    def __init__(self) -> None:
        self._visits: dict[str, Visit] = {}
        self._salespeople: dict[str, SalespersonRecord] = {}
        self._date_labels: dict[date, str] = {}
        self._interactions: list[CustomerInteraction] = []

    @property
    def visits(self) -> dict[str, Visit]:
        return self._visits

    @property
    def salespeople(self) -> dict[str, SalespersonRecord]:
        return self._salespeople

    @property
    def interactions(self) -> list[CustomerInteraction]:
        return self._interactions

    @property
    def date_labels(self) -> dict[date, str]:
        return self._date_labels

    def available_dates(self) -> list[date]:
        return sorted(self._date_labels)

    def register_salesperson(self, name: str) -> SalespersonRecord | None:
        """
        Make a salesperson known even when their row carried no department.
        """

        key = normalize_key(name)
        if not key:
            return None
        record = self._salespeople.get(key)
        if record is None:
            record = SalespersonRecord(name=name)
            self._salespeople[key] = record
        return record

    def record_date(self, date_info: DateInfo) -> None:
        if date_info.iso is not None and date_info.iso not in self._date_labels:
            self._date_labels[date_info.iso] = date_info.display or format_display_date(date_info.iso)

    def add(self, fact: RowFact) -> Visit | None:
        """
        Fold one fact into the visit map; returns the touched visit, if any.
        """

        self.record_date(fact.date_info)

        record = self.register_salesperson(fact.salesperson)
        if record is not None:
            record.departments.add(fact.department_label)

        if fact.customer_id:
            self._interactions.append(self._interaction(fact))

        if not fact.customer_key:
            return None

        key = visit_key(fact.customer_id, fact.date_info)
        visit = self._visits.get(key)
        if visit is None:
            visit = Visit(key=key, customer_id=fact.customer_id, date_info=fact.date_info)
            self._visits[key] = visit

        visit.departments.add(fact.department)
        visit.department_labels.add(fact.department_label)
        if fact.voucher_no:
            visit.voucher_nos.add(fact.voucher_no)
        if fact.customer_name and not visit.customer_name:
            visit.customer_name = fact.customer_name

        salesperson_key = fact.salesperson_key
        if salesperson_key:
            handler = visit.salespeople.get(salesperson_key)
            if handler is None:
                handler = VisitSalesperson(name=fact.salesperson)
                visit.salespeople[salesperson_key] = handler
            handler.departments.add(fact.department)
            handler.labels.add(fact.department_label)

        return visit

    def _interaction(self, fact: RowFact) -> CustomerInteraction:
        iso = fact.date_info.iso
        display = self._date_labels.get(iso) if iso is not None else fact.date_info.display
        return CustomerInteraction(
            customer_id=fact.customer_id,
            normalized_customer_id=fact.customer_key,
            voucher_no=fact.voucher_no,
            voucher_date_iso=iso,
            voucher_date_display=display,
            department=fact.raw_department or None,
            counter=fact.counter or None,
            department_label=fact.department_label or None,
            salesperson=fact.salesperson or UNKNOWN_SALESPERSON,
            visit_key=visit_key(fact.customer_id, fact.date_info),
        )
