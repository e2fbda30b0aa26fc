"""
Search step generators.

Binary search over a sorted sequence:

    left, right = 0, n - 1
    while left <= right:
        mid = (left + right) // 2
        compare values[mid] with target

Each comparison becomes one SearchStep. An unsuccessful search marks its
last comparison as 'not_found', so at most ceil(log2 n) + 1 steps are
produced for n elements.

Linear search is provided for side-by-side comparison.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence

from .base import Step, is_finite_number, all_finite_numbers

LESS = 'less'            # values[mid] < target, continue right
GREATER = 'greater'      # values[mid] > target, continue left
FOUND = 'found'
NOT_FOUND = 'not_found'


@dataclass(frozen=True)
class SearchStep(Step):
    """
    One binary-search comparison.

    Attributes:
        left: Lower bound of the live range (inclusive)
        right: Upper bound of the live range (inclusive)
        mid: Compared index
        value: values[mid]
        comparison: 'less', 'greater', 'found' or 'not_found'
    """
    left: int
    right: int
    mid: int
    value: float
    comparison: str

    @property
    def found(self) -> bool:
        return self.comparison == FOUND


@dataclass(frozen=True)
class LinearStep(Step):
    """One linear-search comparison."""
    index: int
    value: float
    comparison: str


def max_search_steps(n: int) -> int:
    """Upper bound on binary-search steps for n elements."""
    if n <= 0:
        return 0
    return math.ceil(math.log2(n)) + 1


def is_sorted(values: Sequence[float]) -> bool:
    return all(values[i] <= values[i + 1] for i in range(len(values) - 1))


def binary_search_steps(values: Sequence[float], target: float) -> List[SearchStep]:
    """
    Generate binary-search steps.

    Args:
        values: Sorted (non-decreasing) numbers
        target: Value to find

    Returns:
        Ordered steps; empty for empty, unsorted or non-numeric input
    """
    values = list(values)
    if not values or not is_finite_number(target) or not all_finite_numbers(values):
        return []
    if not is_sorted(values):
        return []

    steps = []
    left, right = 0, len(values) - 1
    while left <= right:
        mid = (left + right) // 2
        value = values[mid]
        if value == target:
            steps.append(SearchStep(left, right, mid, value, FOUND))
            return steps

        if value < target:
            next_left, next_right = mid + 1, right
            comparison = LESS
        else:
            next_left, next_right = left, mid - 1
            comparison = GREATER

        if next_left > next_right:
            comparison = NOT_FOUND
        steps.append(SearchStep(left, right, mid, value, comparison))
        left, right = next_left, next_right

    return steps


def search_result(steps: Sequence[SearchStep]) -> int:
    """Index found by a binary-search trace, or -1."""
    if steps and steps[-1].found:
        return steps[-1].mid
    return -1


def linear_search_steps(values: Sequence[float], target: float) -> List[LinearStep]:
    """
    Generate linear-search comparisons, stopping at the first match.

    Returns:
        Ordered steps; empty for empty or non-numeric input
    """
    values = list(values)
    if not values or not is_finite_number(target) or not all_finite_numbers(values):
        return []

    steps = []
    for i, value in enumerate(values):
        if value == target:
            steps.append(LinearStep(i, value, FOUND))
            return steps
        last = i == len(values) - 1
        steps.append(LinearStep(i, value, NOT_FOUND if last else 'mismatch'))
    return steps
