"""
Common helpers for step generators.

Step generators are pure functions ``generate(input) -> List[Step]``.
Steps are frozen dataclasses; a generator never mutates its input and
returns an empty list for degenerate input instead of raising.
"""

import math
import numbers
from dataclasses import dataclass, asdict
from typing import Any, Dict, Sequence


@dataclass(frozen=True)
class Step:
    """Base class for immutable step records."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def all_finite_numbers(values: Sequence[Any]) -> bool:
    return all(is_finite_number(v) for v in values)
