"""
Matrix multiplication step generator.

C = A @ B is traced cell by cell:

    for i in rows(A):
        for j in cols(B):
            for k in cols(A):
                partial += A[i][k] * B[k][j]     -> one MatrixStep

The last inner step of a cell is its commit step: ``committed`` is set
and ``partial_sum`` holds the finished C[i][j]. The trace therefore has
rows(A) * cols(B) * cols(A) steps (size^3 for square input), in exactly
this i, j, k order.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .base import Step, all_finite_numbers

Matrix = Sequence[Sequence[float]]


@dataclass(frozen=True)
class MatrixStep(Step):
    """
    One multiply-accumulate of the product.

    Attributes:
        row: i
        col: j
        k: Inner index
        a: A[i][k]
        b: B[k][j]
        product: a * b
        partial_sum: Sum over 0..k
        committed: True on the last k of the cell
        expression: Dot product so far, e.g. '1×5 + 2×7' (' = 19' on commit)
    """
    row: int
    col: int
    k: int
    a: float
    b: float
    product: float
    partial_sum: float
    committed: bool
    expression: str


def _fmt(x: float) -> str:
    if float(x).is_integer():
        return str(int(x))
    return f"{x:g}"


def matrix_shape(m: Matrix) -> Optional[Tuple[int, int]]:
    """(rows, cols) of a rectangular numeric matrix, else None."""
    try:
        rows = [list(r) for r in m]
    except TypeError:
        return None
    if not rows or not rows[0]:
        return None
    cols = len(rows[0])
    for r in rows:
        if len(r) != cols or not all_finite_numbers(r):
            return None
    return len(rows), cols


def matrix_step_count(a: Matrix, b: Matrix) -> int:
    """Number of steps the product trace will have (0 if invalid)."""
    sa, sb = matrix_shape(a), matrix_shape(b)
    if sa is None or sb is None or sa[1] != sb[0]:
        return 0
    return sa[0] * sb[1] * sa[1]


def matrix_multiply_steps(a: Matrix, b: Matrix) -> List[MatrixStep]:
    """
    Generate the multiply-accumulate trace of A @ B.

    Returns:
        Ordered steps; empty for ragged, empty, non-numeric or
        dimension-mismatched input
    """
    if matrix_step_count(a, b) == 0:
        return []
    a = [list(r) for r in a]
    b = [list(r) for r in b]
    n, inner, p = len(a), len(a[0]), len(b[0])

    steps = []
    for i in range(n):
        for j in range(p):
            total = 0
            terms = []
            for k in range(inner):
                product = a[i][k] * b[k][j]
                total += product
                terms.append(f"{_fmt(a[i][k])}×{_fmt(b[k][j])}")
                committed = k == inner - 1
                expression = " + ".join(terms)
                if committed:
                    expression += f" = {_fmt(total)}"
                steps.append(MatrixStep(i, j, k, a[i][k], b[k][j], product,
                                        total, committed, expression))
    return steps


def product_from_steps(steps: Sequence[MatrixStep]) -> List[List[float]]:
    """Rebuild the product from the commit steps of a trace."""
    if not steps:
        return []
    n = max(s.row for s in steps) + 1
    p = max(s.col for s in steps) + 1
    result: List[List[Optional[float]]] = [[None] * p for _ in range(n)]
    for s in steps:
        if s.committed:
            result[s.row][s.col] = s.partial_sum
    return result


def partial_result(steps: Sequence[MatrixStep], cursor: int) -> List[List[Optional[float]]]:
    """
    Product cells committed among the first ``cursor`` steps.

    Uncommitted cells are None; used to draw the result grid mid-playback.
    """
    if not steps:
        return []
    full = product_from_steps(steps)
    result: List[List[Optional[float]]] = [[None] * len(full[0]) for _ in full]
    for s in steps[:max(0, cursor)]:
        if s.committed:
            result[s.row][s.col] = s.partial_sum
    return result
