"""
Analysis tools: reference solutions and trace validation.
"""

from .reference import (rc_analytic, reference_trajectory, compare_to_reference,
                        energy_drift, steady_state_amplitude, ComparisonResult)
from .validation import (validate_search_trace, validate_tree_trace,
                         validate_matrix_trace, is_bst, ValidationResult)

__all__ = [
    'rc_analytic',
    'reference_trajectory',
    'compare_to_reference',
    'energy_drift',
    'steady_state_amplitude',
    'ComparisonResult',
    'validate_search_trace',
    'validate_tree_trace',
    'validate_matrix_trace',
    'is_bst',
    'ValidationResult',
]
