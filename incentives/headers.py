"""
incentives/headers.py

Header row location and alias-table column resolution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any, Mapping, Sequence

from incentives.cells import is_blank, normalize_key, normalize_quotes, stringify
from incentives.errors import MissingColumnsError, StructuralError

logger = logging.getLogger(__name__)

SALESPERSON = "salesperson"
DEPARTMENT = "department"
CUSTOMER_ID = "customer_id"
VOUCHER_NO = "voucher_no"
DATE = "date"
COUNTER = "counter"
ACCOUNT_NAME = "account_name"
SALES_TYPE = "sales_type"

REQUIRED_FIELDS: tuple[str, ...] = (SALESPERSON, DEPARTMENT, CUSTOMER_ID)
OPTIONAL_FIELDS: tuple[str, ...] = (VOUCHER_NO, DATE, COUNTER, ACCOUNT_NAME, SALES_TYPE)
LOGICAL_FIELDS: tuple[str, ...] = REQUIRED_FIELDS + OPTIONAL_FIELDS

DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    SALESPERSON: ("salesman name", "sales person", "salesperson", "sales man name", "salesman"),
    DEPARTMENT: ("itemgroup name", "item group name", "item group", "department", "dept"),
    CUSTOMER_ID: ("mobile1", "mobile 1", "customer id", "customer mobile", "mobile no", "phone no"),
    VOUCHER_NO: ("voucher no", "voucher number", "bill no", "invoice no"),
    DATE: ("voucher date", "bill date", "invoice date", "transaction date", "date"),
    COUNTER: ("counter name", "counter"),
    ACCOUNT_NAME: ("account name", "customer name", "party name", "account"),
    SALES_TYPE: ("sales type", "sale type", "transaction type", "txn type", "voucher type", "bill type"),
}

DEFAULT_HEADER_ROW_NUMBER = 4
DEFAULT_FUZZY_THRESHOLD = 0.84
DEFAULT_MIN_REVERSE_LENGTH = 6


def normalize_header(header: str) -> str:
    """
    Collapse a header to its alphanumeric characters for fuzzy scoring.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


def match_column(
    headers: Sequence[str],
    aliases: Sequence[str],
    *,
    claimed: frozenset[int] = frozenset(),
    strategy: str = "exact",
    min_reverse_length: int = DEFAULT_MIN_REVERSE_LENGTH,
) -> int | None:
    """
    Return the leftmost unclaimed column that any alias matches.

    ``headers`` must already be normalized with ``normalize_key``.
    """

    targets = [target for target in (normalize_key(alias) for alias in aliases) if target]
    for index, header in enumerate(headers):
        if not header or index in claimed:
            continue
        for target in targets:
            if strategy == "exact":
                if header == target:
                    return index
            elif target in header:
                return index
            elif len(header) >= min_reverse_length and header in target:
                return index
    return None


@dataclass(frozen=True)
class ColumnMap:
    """
    Resolved column positions for one worksheet.
    """

    header_row_index: int
    headers: tuple[str, ...]
    indices: dict[str, int]
    match_strategies: dict[str, str] = field(default_factory=dict)

    def index(self, logical_field: str) -> int | None:
        return self.indices.get(logical_field)

    def has(self, logical_field: str) -> bool:
        return logical_field in self.indices

    def cell(self, row: Sequence[Any], logical_field: str) -> Any:
        index = self.indices.get(logical_field)
        if index is None or index >= len(row):
            return None
        return row[index]

    def describe(self) -> dict[str, str]:
        return {name: self.headers[index] for name, index in self.indices.items()}


class HeaderResolver:
    """
    Finds the header row and maps logical fields to column positions.
    """

    def __init__(
        self,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
        header_row_number: int = DEFAULT_HEADER_ROW_NUMBER,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        min_reverse_length: int = DEFAULT_MIN_REVERSE_LENGTH,
    ) -> None:
        merged: dict[str, tuple[str, ...]] = dict(DEFAULT_COLUMN_ALIASES)
        for logical_field, values in (aliases or {}).items():
            if logical_field not in LOGICAL_FIELDS:
                raise ValueError(f"Unknown logical column {logical_field!r} in alias overrides.")
            merged[logical_field] = tuple(value for value in values if value and value.strip())
        self._aliases = merged
        self._header_row_number = max(1, header_row_number)
        self._fuzzy_threshold = max(0.0, min(1.0, fuzzy_threshold))
        self._min_reverse_length = max(1, min_reverse_length)

    @property
    def aliases(self) -> dict[str, tuple[str, ...]]:
        return dict(self._aliases)

    def locate_header_row(self, rows: Sequence[Sequence[Any]]) -> int:
        """
        Return the 0-based index of the header row.
        """

        configured = self._header_row_number - 1
        if configured < len(rows) and not _is_blank_row(rows[configured]):
            return configured

        for index, row in enumerate(rows):
            if not _is_blank_row(row):
                return index

        raise StructuralError("Unable to locate a header row in the worksheet.")

    def resolve(self, rows: Sequence[Sequence[Any]]) -> ColumnMap:
        """
        Locate the header row and resolve every logical field.
        """

        header_row_index = self.locate_header_row(rows)
        headers = tuple(normalize_quotes(stringify(cell)).strip() for cell in rows[header_row_index])
        column_map = self.resolve_headers(headers, header_row_index=header_row_index)
        logger.debug(
            "Resolved worksheet columns header_row=%s columns=%s",
            header_row_index + 1,
            column_map.describe(),
        )
        return column_map

    def resolve_headers(self, headers: Sequence[str], *, header_row_index: int = 0) -> ColumnMap:
        """
        Map logical fields onto ``headers``; raise when required ones are absent.
        """

        lookup = [normalize_key(header) for header in headers]
        indices: dict[str, int] = {}
        strategies: dict[str, str] = {}

        for strategy in ("exact", "substring"):
            for logical_field in LOGICAL_FIELDS:
                if logical_field in indices:
                    continue
                match = match_column(
                    lookup,
                    self._aliases.get(logical_field, ()),
                    claimed=frozenset(indices.values()),
                    strategy=strategy,
                    min_reverse_length=self._min_reverse_length,
                )
                if match is not None:
                    indices[logical_field] = match
                    strategies[logical_field] = strategy

        for logical_field in LOGICAL_FIELDS:
            if logical_field in indices:
                continue
            match = self._best_fuzzy_match(
                lookup,
                self._aliases.get(logical_field, ()),
                claimed=frozenset(indices.values()),
            )
            if match is not None:
                indices[logical_field] = match
                strategies[logical_field] = "fuzzy"

        missing = [name for name in REQUIRED_FIELDS if name not in indices]
        if missing:
            raise MissingColumnsError(
                missing_fields=missing,
                found_headers=[header for header in headers if header],
            )

        return ColumnMap(
            header_row_index=header_row_index,
            headers=tuple(headers),
            indices=indices,
            match_strategies=strategies,
        )

    def _best_fuzzy_match(
        self,
        lookup: Sequence[str],
        aliases: Sequence[str],
        *,
        claimed: frozenset[int],
    ) -> int | None:
        candidates = [normalize_header(alias) for alias in aliases if normalize_header(alias)]
        best_index: int | None = None
        best_score = 0.0
        for index, header in enumerate(lookup):
            if index in claimed:
                continue
            header_norm = normalize_header(header)
            if not header_norm:
                continue
            for candidate in candidates:
                score = SequenceMatcher(None, header_norm, candidate).ratio()
                if score > best_score:
                    best_score = score
                    best_index = index

        if best_index is not None and best_score >= self._fuzzy_threshold:
            return best_index
        return None


def _is_blank_row(row: Sequence[Any] | None) -> bool:
    return not row or all(is_blank(cell) for cell in row)
