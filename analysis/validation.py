"""
Independent validation of step traces.

A step trace carries enough information to be checked without rerunning
the generator: these functions replay the recorded bounds, paths and
partial sums against the input and report the first violation.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from algorithms.bst import Node, traverse
from algorithms.matrix import product_from_steps
from algorithms.search import FOUND, NOT_FOUND, max_search_steps


@dataclass
class ValidationResult:
    """Outcome of validating a trace."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


def _result(errors: List[str]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_search_trace(values: Sequence[float], target: float,
                          steps: Sequence) -> ValidationResult:
    """
    Check a binary-search trace.

    Verifies the step bound, that each mid lies in its range and holds
    the recorded value, that ranges shrink consistently with each
    comparison, and that the final comparison matches membership.
    """
    errors = []
    values = list(values)
    if len(steps) > max_search_steps(len(values)):
        errors.append(f"{len(steps)} steps exceeds bound {max_search_steps(len(values))}")

    for i, s in enumerate(steps):
        if not (s.left <= s.mid <= s.right):
            errors.append(f"step {i}: mid {s.mid} outside [{s.left}, {s.right}]")
            continue
        if values[s.mid] != s.value:
            errors.append(f"step {i}: recorded value {s.value} != values[{s.mid}]")
        if i + 1 < len(steps):
            nxt = steps[i + 1]
            if s.comparison == 'less' and (nxt.left, nxt.right) != (s.mid + 1, s.right):
                errors.append(f"step {i}: expected range [{s.mid + 1}, {s.right}] next")
            if s.comparison == 'greater' and (nxt.left, nxt.right) != (s.left, s.mid - 1):
                errors.append(f"step {i}: expected range [{s.left}, {s.mid - 1}] next")

    if steps:
        present = target in values
        last = steps[-1].comparison
        if present and last != FOUND:
            errors.append(f"target present but final comparison is '{last}'")
        if not present and last != NOT_FOUND:
            errors.append(f"target absent but final comparison is '{last}'")

    return _result(errors)


def is_bst(root: Optional[Node]) -> bool:
    """Strict ordering left < node < right at every node."""
    def check(node, low, high):
        if node is None:
            return True
        if (low is not None and node.value <= low) or (high is not None and node.value >= high):
            return False
        return check(node.left, low, node.value) and check(node.right, node.value, high)
    return check(root, None, None)


def validate_tree_trace(steps: Sequence) -> ValidationResult:
    """
    Check a tree-operation trace.

    Every tree in the trace must satisfy the ordering invariant and have
    a non-decreasing in-order traversal, and each path must be a
    root-to-node walk of the tree it was recorded against.
    """
    errors = []
    for i, s in enumerate(steps):
        if not is_bst(s.tree):
            errors.append(f"step {i}: tree violates BST ordering")
        order = traverse(s.tree)
        if any(order[j] > order[j + 1] for j in range(len(order) - 1)):
            errors.append(f"step {i}: in-order traversal not sorted")
        if s.action in ('go_left', 'go_right') and s.tree is not None:
            if s.path and s.path[0] != s.tree.value:
                errors.append(f"step {i}: path does not start at the root")
    return _result(errors)


def validate_matrix_trace(a, b, steps: Sequence) -> ValidationResult:
    """
    Check a multiplication trace against numpy's product.

    Verifies the step count, the i -> j -> k order, each running sum,
    and the committed cells.
    """
    errors = []
    A = np.asarray(a, dtype=float)
    B = np.asarray(b, dtype=float)
    expected = A @ B
    n, inner = A.shape
    p = B.shape[1]

    if len(steps) != n * p * inner:
        errors.append(f"expected {n * p * inner} steps, got {len(steps)}")

    order = [(i, j, k) for i in range(n) for j in range(p) for k in range(inner)]
    running = 0.0
    for idx, s in enumerate(steps):
        if idx < len(order) and (s.row, s.col, s.k) != order[idx]:
            errors.append(f"step {idx}: index {(s.row, s.col, s.k)} != {order[idx]}")
            break
        running = s.product if s.k == 0 else running + s.product
        if not np.isclose(running, s.partial_sum):
            errors.append(f"step {idx}: partial sum {s.partial_sum} != {running}")
        if s.committed != (s.k == inner - 1):
            errors.append(f"step {idx}: commit flag on k={s.k}")

    product = product_from_steps(steps)
    if product and not np.allclose(np.asarray(product, dtype=float), expected):
        errors.append("committed cells do not reproduce A @ B")

    return _result(errors)
