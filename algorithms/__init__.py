"""
Step generators for algorithm playback.

Every generator is a pure function from its input to an ordered list of
immutable steps.
"""

from .base import Step
from .search import (SearchStep, LinearStep, binary_search_steps,
                     linear_search_steps, max_search_steps, search_result)
from .bst import (Node, TreeStep, insert_steps, delete_steps, search_steps,
                  traversal_steps)
from .matrix import (MatrixStep, matrix_multiply_steps, matrix_step_count,
                     product_from_steps)

__all__ = [
    'Step',
    'SearchStep',
    'LinearStep',
    'binary_search_steps',
    'linear_search_steps',
    'max_search_steps',
    'search_result',
    'Node',
    'TreeStep',
    'insert_steps',
    'delete_steps',
    'search_steps',
    'traversal_steps',
    'MatrixStep',
    'matrix_multiply_steps',
    'matrix_step_count',
    'product_from_steps',
]
