"""Token budget allocation across context sections."""

from __future__ import annotations

import math
from typing import Dict, Mapping

from .models import BudgetAllocation

WEIGHTS: Dict[str, float] = {
    "overview": 0.08,
    "structure": 0.12,
    "keyFiles": 0.25,
    "codeMap": 0.40,
    "knowledge": 0.15,
}

SECTION_KEYS = ("overview", "structure", "keyFiles", "codeMap", "knowledge")

TRUNCATION_MARKER = "\n...(truncated)"

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def allocate_budget(total: int) -> BudgetAllocation:
    """Split ``total`` tokens across sections by the fixed weight table.

    Weights are applied as whole percentages so floors are exact for inputs such
    as 1000 where float multiplication would land a hair under the integer.
    """
    return {key: total * round(WEIGHTS[key] * 100) // 100 for key in SECTION_KEYS}


def redistribute_surplus(
    allocation: Mapping[str, int], used: Mapping[str, int]
) -> BudgetAllocation:
    """Move unused tokens from under-filled sections to over-filled ones.

    Single pass: sections that used less than their share shrink to their usage
    and donate the difference; sections that wanted more receive
    ``floor(surplus * demand / total_demand)`` on top of their allocation. The
    result is not clamped back to the original total, and a section can remain
    short when demand exceeds surplus.
    """
    surplus = 0
    demand: Dict[str, int] = {}
    for key in SECTION_KEYS:
        diff = allocation.get(key, 0) - used.get(key, 0)
        if diff > 0:
            surplus += diff
        elif diff < 0:
            demand[key] = -diff

    total_demand = sum(demand.values())
    result: BudgetAllocation = dict(allocation)
    if surplus == 0 or total_demand == 0:
        return result

    for key in SECTION_KEYS:
        allocated = allocation.get(key, 0)
        actual = used.get(key, 0)
        if actual < allocated:
            result[key] = actual
        elif key in demand:
            result[key] = allocated + math.floor(demand[key] / total_demand * surplus)
    return result


def truncate_to_fit(text: str, budget: int) -> str:
    """Trim ``text`` to roughly ``budget`` tokens, appending a truncation marker."""
    if estimate_tokens(text) <= budget:
        return text
    return text[: max(budget, 0) * CHARS_PER_TOKEN] + TRUNCATION_MARKER


__all__ = [
    "SECTION_KEYS",
    "TRUNCATION_MARKER",
    "WEIGHTS",
    "allocate_budget",
    "estimate_tokens",
    "redistribute_surplus",
    "truncate_to_fit",
]
