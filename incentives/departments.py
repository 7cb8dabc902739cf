"""
incentives/departments.py

Master department list and canonicalization of free-text department labels.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from incentives.cells import normalize_key, stringify

NO_MATCH = None

DEFAULT_MASTER_DEPARTMENTS: tuple[str, ...] = (
    "shutting shirting",
    "men's ethnic",
    "kurta",
    "men's readymade",
    "sarees",
    "women's ethnic",
)

DEFAULT_DEPARTMENT_VARIANTS: dict[str, str] = {
    "mens accessories": "men's ethnic",
    "men's accessories": "men's ethnic",
    "mens ethnic": "men's ethnic",
    "mens ethnics": "men's ethnic",
    "men ethnic": "men's ethnic",
    "men ethnics": "men's ethnic",
    "mens readymade": "men's readymade",
    "men readymade": "men's readymade",
    "shirting": "shutting shirting",
    "shirting shutting": "shutting shirting",
    "shutting": "shutting shirting",
    "womens ethnic": "women's ethnic",
    "womens ethnis": "women's ethnic",
    "women ethnic": "women's ethnic",
    "women ethnis": "women's ethnic",
    "saree": "sarees",
    "sari": "sarees",
    "saris": "sarees",
}


class DepartmentCatalog:
    """
    Resolves raw department labels to names from a fixed master list.

    Resolution order: exact (case/space-normalized) match, variant table,
    substring containment in either direction against each master name.
    Anything else is ``NO_MATCH``.
    """

    def __init__(
        self,
        *,
        departments: Sequence[str] | None = None,
        variants: Mapping[str, str] | None = None,
    ) -> None:
        master = tuple(
            name.strip()
            for name in (departments if departments is not None else DEFAULT_MASTER_DEPARTMENTS)
            if name and name.strip()
        )
        if not master:
            raise ValueError("DepartmentCatalog requires at least one master department.")

        self._departments = master
        self._by_key: dict[str, str] = {}
        for name in master:
            self._by_key.setdefault(normalize_key(name), name)

        self._variants: dict[str, str] = {}
        raw_variants = variants if variants is not None else DEFAULT_DEPARTMENT_VARIANTS
        for variant, target in raw_variants.items():
            canonical = self._by_key.get(normalize_key(target))
            if canonical is None:
                raise ValueError(
                    f"Department variant {variant!r} points to {target!r}, "
                    "which is not in the master department list."
                )
            self._variants[normalize_key(variant)] = canonical

    @property
    def departments(self) -> tuple[str, ...]:
        return self._departments

    def canonicalize(self, raw_name: object) -> str | None:
        """
        Return the canonical department for ``raw_name`` or ``NO_MATCH``.
        """

        key = normalize_key(raw_name)
        if not key:
            return NO_MATCH

        exact = self._by_key.get(key)
        if exact is not None:
            return exact

        variant = self._variants.get(key)
        if variant is not None:
            return variant

        for master_key, name in self._by_key.items():
            if master_key in key or key in master_key:
                return name

        return NO_MATCH

    def format_with_counter(self, raw_name: object, counter: object) -> str:
        """
        Canonicalize and suffix the counter, or return ``""`` when unmatched.
        """

        canonical = self.canonicalize(raw_name)
        if canonical is NO_MATCH:
            return ""
        counter_text = stringify(counter)
        if counter_text:
            return f"{canonical} ({counter_text})"
        return canonical

    def is_master(self, raw_name: object) -> bool:
        return self.canonicalize(raw_name) is not NO_MATCH

    def not_visited(self, visited: Iterable[str]) -> list[str]:
        """
        Master departments absent from ``visited``, in master-list order.
        """

        seen = {normalize_key(name) for name in visited}
        return [name for name in self._departments if normalize_key(name) not in seen]
