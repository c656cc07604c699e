"""Deterministic cache key derivation for drug-indication lookups.

Keys are namespaced as ``<prefix>:<category>:<discriminator>``. Every
function here is pure: the same lookup always yields the same key.
"""

from __future__ import annotations

from typing import Any, Mapping

DEFAULT_PREFIX = "drug_indication"


def by_id(indication_id: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}:id:{indication_id}"


def by_drug(drug: str, prefix: str = DEFAULT_PREFIX) -> str:
    # Case is preserved here, unlike search keys.
    return f"{prefix}:drug:{drug}"


def by_icd10(code: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}:icd10:{code}"


def search(query: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}:search:{query.lower()}"


def stats(prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}:stats"


def canonical_filters(filters: Mapping[str, Any]) -> str:
    """Collapse a filter set into an order-independent discriminator.

    Entries whose value is ``None`` or ``""`` are dropped, the rest are
    sorted by name and joined as ``name:value`` pairs with ``|``. An empty
    filter set yields ``""``.
    """
    pairs = sorted(
        ((name, value) for name, value in filters.items() if value is not None and value != ""),
        key=lambda pair: pair[0],
    )
    return "|".join(f"{name}:{_format_value(value)}" for name, value in pairs)


def list_key(filters: Mapping[str, Any], prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}:list:{canonical_filters(filters)}"


def _format_value(value: Any) -> str:
    # Enums render as their value so MappingStatus.MAPPED and "mapped" share a key.
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
