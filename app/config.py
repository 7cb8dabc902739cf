"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from db.config import load_env_files
from incentives.calculator import DEFAULT_INCENTIVE_TIERS
from incentives.departments import DEFAULT_DEPARTMENT_VARIANTS, DEFAULT_MASTER_DEPARTMENTS
from incentives.engine import EngineConfig
from incentives.headers import DEFAULT_FUZZY_THRESHOLD, DEFAULT_HEADER_ROW_NUMBER
from incentives.rows import DEFAULT_ACCEPTED_SALES_TYPES

logger = logging.getLogger(__name__)

_DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank or missing values keep the default.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


def _get_json_object_env(name: str) -> dict[str, Any] | None:
    """
    Read a JSON object from the environment; malformed values are ignored.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError:
        logger.warning("Ignoring %s: value is not valid JSON.", name)
        return None
    if not isinstance(parsed, dict):
        logger.warning("Ignoring %s: value must be a JSON object.", name)
        return None
    return parsed


def _department_variants_from_env(master_departments: tuple[str, ...]) -> dict[str, str]:
    parsed = _get_json_object_env("INCENTIVE_DEPARTMENT_VARIANTS_JSON")
    if parsed is None:
        # Default variants only apply to departments still on the master list.
        master = {name.strip().lower() for name in master_departments}
        return {
            variant: target
            for variant, target in DEFAULT_DEPARTMENT_VARIANTS.items()
            if target.lower() in master
        }
    return {
        str(variant): str(target)
        for variant, target in parsed.items()
        if isinstance(target, str) and str(variant).strip() and target.strip()
    }


def _column_aliases_from_env() -> dict[str, tuple[str, ...]]:
    parsed = _get_json_object_env("INCENTIVE_COLUMN_ALIASES_JSON")
    if parsed is None:
        return {}
    aliases: dict[str, tuple[str, ...]] = {}
    for logical_field, values in parsed.items():
        if not isinstance(values, list):
            logger.warning("Ignoring column aliases for %r: expected a JSON list.", logical_field)
            continue
        aliases[str(logical_field)] = tuple(
            value for value in values if isinstance(value, str) and value.strip()
        )
    return aliases


@dataclass(frozen=True)
class IncentiveEngineSettings:
    """
    Per-deployment engine settings: taxonomy, column aliases, header layout.
    """

    header_row_number: int = DEFAULT_HEADER_ROW_NUMBER
    master_departments: tuple[str, ...] = DEFAULT_MASTER_DEPARTMENTS
    department_variants: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DEPARTMENT_VARIANTS))
    column_aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    accepted_sales_types: tuple[str, ...] = DEFAULT_ACCEPTED_SALES_TYPES
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD

    def to_engine_config(self) -> EngineConfig:
        return EngineConfig(
            header_row_number=self.header_row_number,
            master_departments=self.master_departments,
            department_variants=dict(self.department_variants),
            column_aliases=dict(self.column_aliases),
            accepted_sales_types=self.accepted_sales_types,
            fuzzy_threshold=self.fuzzy_threshold,
            incentive_tiers=DEFAULT_INCENTIVE_TIERS,
        )


@dataclass(frozen=True)
class WorkbookUploadSettings:
    """
    Runtime settings for workbook uploads.
    """

    max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES
    log_diagnostics: bool = True


@lru_cache(maxsize=1)
def get_incentive_engine_settings() -> IncentiveEngineSettings:
    """
    Return cached engine settings from environment variables.
    """

    master_departments = _get_list_env("INCENTIVE_MASTER_DEPARTMENTS", DEFAULT_MASTER_DEPARTMENTS)
    return IncentiveEngineSettings(
        header_row_number=max(1, _get_int_env("INCENTIVE_HEADER_ROW_NUMBER", DEFAULT_HEADER_ROW_NUMBER)),
        master_departments=master_departments,
        department_variants=_department_variants_from_env(master_departments),
        column_aliases=_column_aliases_from_env(),
        accepted_sales_types=_get_list_env("INCENTIVE_ACCEPTED_SALES_TYPES", DEFAULT_ACCEPTED_SALES_TYPES),
        fuzzy_threshold=min(1.0, max(0.0, _get_float_env("INCENTIVE_FUZZY_THRESHOLD", DEFAULT_FUZZY_THRESHOLD))),
    )


@lru_cache(maxsize=1)
def get_workbook_upload_settings() -> WorkbookUploadSettings:
    """
    Return cached workbook upload settings from environment variables.
    """

    return WorkbookUploadSettings(
        max_upload_bytes=max(1024, _get_int_env("INCENTIVE_MAX_UPLOAD_BYTES", _DEFAULT_MAX_UPLOAD_BYTES)),
        log_diagnostics=_get_bool_env("INCENTIVE_LOG_DIAGNOSTICS", True),
    )
