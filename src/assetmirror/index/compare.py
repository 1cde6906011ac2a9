"""
Three-way comparison helpers and the sortable-collection utility.

Every index type orders itself through a ``compare_*`` function returning a
CompareResult. Sorting goes through ``functools.cmp_to_key`` so the result is
stable and fully determined by those comparison functions.
"""

import functools
from enum import IntEnum
from typing import Any, Callable, List, TypeVar

T = TypeVar("T")


class CompareResult(IntEnum):
    """Outcome of a three-way comparison."""

    LT = -1
    EQ = 0
    GT = 1

    @property
    def text(self) -> str:
        return {
            CompareResult.LT: "less-than",
            CompareResult.EQ: "equal-to",
            CompareResult.GT: "greater-than",
        }[self]

    def __str__(self) -> str:
        return self.text


def compare_values(a: Any, b: Any) -> CompareResult:
    """
    Compare two values of the same orderable type (int, str, IntEnum, ...).

    Returns:
        CompareResult: LT, EQ or GT.
    """
    if a == b:
        return CompareResult.EQ
    if a < b:
        return CompareResult.LT
    return CompareResult.GT


def compare_reduce(*results: CompareResult) -> CompareResult:
    """Return the first non-EQ result, or EQ when every result is EQ."""
    for result in results:
        if result != CompareResult.EQ:
            return result
    return CompareResult.EQ


def sort_list(items: List[T], compare: Callable[[T, T], CompareResult]) -> List[T]:
    """
    Sort `items` in place using a three-way comparison function.

    Parameters:
        items (List[T]): The list to sort; it is modified in place.
        compare (Callable[[T, T], CompareResult]): Total-order comparison function.

    Returns:
        List[T]: The same list object, for call chaining.
    """
    items.sort(key=functools.cmp_to_key(compare))
    return items
