"""
Unit tests for the step generators and trace validation.

Tests verify:
1. Binary search traces (concrete cases and the ceil(log2 n) + 1 bound)
2. BST ordering after every insert/delete and successor-value deletion
3. Matrix traces in i -> j -> k order reproduce A @ B
4. Degenerate input yields an empty trace
"""

import itertools
import random
import numpy as np
import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from algorithms.search import (binary_search_steps, linear_search_steps, max_search_steps,
                               search_result, FOUND, NOT_FOUND, LESS, GREATER)
from algorithms import bst
from algorithms.matrix import (matrix_multiply_steps, matrix_step_count,
                               product_from_steps, partial_result)
from analysis.validation import (validate_search_trace, validate_tree_trace,
                                 validate_matrix_trace, is_bst)

ARRAY = [2, 5, 8, 12, 16, 23, 38, 45, 56, 72, 91]


class TestBinarySearch:
    """Tests for binary-search step generation."""

    def test_target_at_first_midpoint(self):
        """Test target at the first midpoint is found in one step."""
        steps = binary_search_steps(ARRAY, 23)

        assert len(steps) == 1
        assert steps[0].mid == 5
        assert steps[0].comparison == FOUND
        assert search_result(steps) == 5

    def test_target_at_end(self):
        """Test target at the last element takes four steps."""
        steps = binary_search_steps(ARRAY, 91)

        assert [s.mid for s in steps] == [5, 8, 9, 10]
        assert [s.comparison for s in steps] == [LESS, LESS, LESS, FOUND]
        assert steps[-1].value == 91
        assert steps[-1].found

    def test_ranges_shrink(self):
        """Test the search range shrinks every step."""
        steps = binary_search_steps(ARRAY, 91)

        assert [(s.left, s.right) for s in steps] == [(0, 10), (6, 10), (9, 10), (10, 10)]

    def test_missing_target(self):
        """Test missing target ends with not_found."""
        steps = binary_search_steps(ARRAY, 1)

        assert [s.mid for s in steps] == [5, 2, 0]
        assert [s.comparison for s in steps] == [GREATER, GREATER, NOT_FOUND]
        assert search_result(steps) == -1

    def test_single_element(self):
        """Test single-element arrays."""
        assert binary_search_steps([7], 7)[0].comparison == FOUND

        steps = binary_search_steps([7], 3)
        assert len(steps) == 1
        assert (steps[0].left, steps[0].mid, steps[0].right) == (0, 0, 0)
        assert steps[0].comparison == NOT_FOUND

    def test_degenerate_input_yields_no_steps(self):
        """Test empty or non-numeric input yields no steps."""
        assert binary_search_steps([], 5) == []
        assert binary_search_steps([3, 1, 2], 1) == []
        assert binary_search_steps([1, 2, 3], float('nan')) == []
        assert binary_search_steps([1, 'a', 3], 1) == []

    def test_step_bound_and_trace_valid(self):
        """Every trace respects the step bound and validates."""
        for n in range(1, 41):
            values = list(range(0, 2 * n, 2))
            for target in range(-1, 2 * n + 1):
                steps = binary_search_steps(values, target)
                assert 1 <= len(steps) <= max_search_steps(n)
                result = validate_search_trace(values, target, steps)
                assert result.is_valid, result.errors

    def test_max_search_steps(self):
        """Test the step bound for small and large arrays."""
        assert max_search_steps(0) == 0
        assert max_search_steps(1) == 1
        assert max_search_steps(8) == 4
        assert max_search_steps(11) == 5

    def test_steps_are_frozen(self):
        """Test steps are immutable."""
        step = binary_search_steps(ARRAY, 23)[0]
        with pytest.raises(AttributeError):
            step.mid = 0

    def test_input_not_mutated(self):
        """Test the input array is left unchanged."""
        values = list(ARRAY)
        binary_search_steps(values, 91)
        assert values == ARRAY


class TestLinearSearch:

    def test_found(self):
        """Test linear search stops at the first match."""
        steps = linear_search_steps([4, 8, 15], 15)

        assert [s.index for s in steps] == [0, 1, 2]
        assert steps[-1].comparison == FOUND

    def test_not_found(self):
        """Test linear search ends with not_found on the last element."""
        steps = linear_search_steps([4, 8, 15], 16)

        assert len(steps) == 3
        assert steps[-1].comparison == NOT_FOUND

    def test_empty(self):
        """Test linear search on an empty array."""
        assert linear_search_steps([], 1) == []


class TestTreeFunctions:
    """Tests for the persistent tree functions."""

    def test_default_tree(self):
        """Test the default tree and its traversals."""
        root = bst.from_values()

        assert bst.traverse(root, bst.INORDER) == [20, 30, 40, 50, 60, 70, 80]
        assert bst.traverse(root, bst.PREORDER) == [50, 30, 20, 40, 70, 60, 80]
        assert bst.traverse(root, bst.POSTORDER) == [20, 40, 30, 60, 80, 70, 50]
        assert bst.height(root) == 3
        assert bst.count(root) == 7
        assert bst.is_balanced(root)

    def test_unknown_traversal(self):
        """Test unknown traversal orders are rejected."""
        with pytest.raises(ValueError):
            bst.traverse(bst.from_values(), 'levelorder')

    def test_insert_does_not_mutate(self):
        """Test insert leaves the original tree intact."""
        root = bst.from_values()
        new = bst.insert(root, 35)

        assert 35 not in bst.traverse(root)
        assert 35 in bst.traverse(new)
        # untouched right subtree is shared
        assert new.right is root.right

    def test_insert_duplicate_ignored(self):
        """Test inserting an existing value returns the same tree."""
        root = bst.from_values()
        assert bst.insert(root, 40) is root

    def test_delete_two_children_copies_successor(self):
        """Test deleting a node with two children copies the successor value."""
        root = bst.from_values()
        new = bst.delete(root, 50)

        assert new.value == 60
        assert new.left is root.left
        assert new.right.value == 70
        assert new.right.left is None
        assert bst.traverse(new) == [20, 30, 40, 60, 70, 80]

    def test_delete_leaf_and_single_child(self):
        """Test deleting leaves and single-child nodes."""
        root = bst.from_values([50, 30, 20])
        root = bst.delete(root, 20)
        assert bst.traverse(root) == [30, 50]

        root = bst.delete(root, 50)
        assert root.value == 30
        assert root.left is None and root.right is None

    def test_delete_missing(self):
        """Test deleting a missing value returns the same tree."""
        root = bst.from_values()
        assert bst.delete(root, 55) is root
        assert bst.delete(root, 999) is root
        assert bst.delete(root, 1) is root

    def test_search_path(self):
        """Test search path from the root."""
        root = bst.from_values()

        assert bst.search_path(root, 60) == [50, 70, 60]
        assert bst.contains(root, 60)
        assert not bst.contains(root, 65)

    def test_random_operations_keep_ordering(self):
        """Test random inserts and deletes keep BST ordering."""
        rng = random.Random(0)
        root = None
        present = set()
        for _ in range(300):
            value = rng.randint(0, 50)
            if rng.random() < 0.6:
                root = bst.insert(root, value)
                present.add(value)
            else:
                root = bst.delete(root, value)
                present.discard(value)
            assert is_bst(root)
            assert bst.traverse(root) == sorted(present)


class TestTreeSteps:
    """Tests for tree step generators."""

    def test_insert_steps(self):
        """Test insert steps record the path and the new node."""
        steps = bst.insert_steps(bst.from_values(), 35)

        assert [s.action for s in steps] == ['go_left', 'go_right', 'go_left', 'insert']
        assert steps[-1].path == (50, 30, 40, 35)
        assert bst.contains(bst.result_tree(steps), 35)

    def test_insert_into_empty_tree(self):
        """Test insert into an empty tree."""
        steps = bst.insert_steps(None, 10)

        assert len(steps) == 1
        assert steps[0].action == 'insert'
        assert steps[0].tree == bst.Node(10)

    def test_insert_duplicate(self):
        """Test duplicate insert ends with a duplicate step."""
        root = bst.from_values()
        steps = bst.insert_steps(root, 40)

        assert steps[-1].action == 'duplicate'
        assert steps[-1].path == (50, 30, 40)
        assert bst.result_tree(steps) is root

    def test_search_found(self):
        """Test search steps ending in found."""
        steps = bst.search_steps(bst.from_values(), 60)

        assert [s.action for s in steps] == ['go_right', 'go_left', 'found']
        assert steps[-1].path == (50, 70, 60)

    def test_search_not_found(self):
        """Test search steps ending in not_found."""
        steps = bst.search_steps(bst.from_values(), 65)

        assert [s.action for s in steps] == ['go_right', 'go_left', 'go_right', 'not_found']
        assert steps[-1].path == (50, 70, 60)
        assert steps[-1].node is None

    def test_search_empty_tree(self):
        """Test search on an empty tree."""
        assert bst.search_steps(None, 5) == []

    def test_delete_leaf_steps(self):
        """Test delete steps for a leaf."""
        steps = bst.delete_steps(bst.from_values(), 20)

        assert [s.action for s in steps] == ['go_left', 'go_left', 'found', 'remove_leaf']
        assert not bst.contains(bst.result_tree(steps), 20)

    def test_delete_with_successor_steps(self):
        """Test delete steps that replace with the successor."""
        steps = bst.delete_steps(bst.from_values(), 30)

        assert [s.action for s in steps] == ['go_left', 'found', 'find_successor',
                                             'replace_with_successor']
        assert steps[2].path == (50, 30, 40)
        assert steps[-1].successor == 40
        assert bst.traverse(bst.result_tree(steps)) == [20, 40, 50, 60, 70, 80]

    def test_delete_root_steps(self):
        """Test deleting the root."""
        steps = bst.delete_steps(bst.from_values(), 50)

        assert [s.action for s in steps] == ['found', 'find_successor', 'replace_with_successor']
        assert bst.result_tree(steps).value == 60

    def test_delete_single_child_steps(self):
        """Test delete steps for a single-child node."""
        root = bst.from_values([50, 30, 20])
        steps = bst.delete_steps(root, 30)

        assert steps[-1].action == 'replace_with_child'
        assert bst.traverse(bst.result_tree(steps)) == [20, 50]

    def test_delete_missing_steps(self):
        """Test delete steps for a missing value."""
        root = bst.from_values()
        steps = bst.delete_steps(root, 55)

        assert steps[-1].action == 'not_found'
        assert steps[-1].path == (50, 70, 60)
        assert bst.result_tree(steps) is root

    def test_traversal_steps(self):
        """Test traversal steps visit every node in order."""
        root = bst.from_values()
        steps = bst.traversal_steps(root, bst.PREORDER)

        assert len(steps) == 7
        assert [s.node for s in steps] == bst.traverse(root, bst.PREORDER)
        assert list(steps[-1].path) == bst.traverse(root, bst.PREORDER)

    def test_random_traces_validate(self):
        """Test random operation traces pass validation."""
        rng = random.Random(42)
        root = bst.from_values()
        for _ in range(100):
            value = rng.randint(0, 100)
            if rng.random() < 0.5:
                steps = bst.insert_steps(root, value)
            else:
                steps = bst.delete_steps(root, value)
            result = validate_tree_trace(steps)
            assert result.is_valid, result.errors
            root = bst.result_tree(steps, default=root)

    def test_non_numeric_value(self):
        """Test non-finite values yield no steps."""
        assert bst.insert_steps(bst.from_values(), float('inf')) == []


class TestMatrixSteps:
    """Tests for matrix multiplication traces."""

    A = [[1, 2], [3, 4]]
    B = [[5, 6], [7, 8]]

    def test_two_by_two(self):
        """Test the 2x2 product trace."""
        steps = matrix_multiply_steps(self.A, self.B)

        assert len(steps) == 8
        np.testing.assert_array_equal(product_from_steps(steps), [[19, 22], [43, 50]])

    def test_expression_and_commit(self):
        """Test step expressions and the commit on the last k."""
        steps = matrix_multiply_steps(self.A, self.B)

        assert steps[0].expression == '1×5'
        assert steps[0].partial_sum == 5
        assert not steps[0].committed
        assert steps[1].expression == '1×5 + 2×7 = 19'
        assert steps[1].committed

    def test_step_order(self):
        """Test steps run in i, j, k order."""
        steps = matrix_multiply_steps(self.A, self.B)

        assert [(s.row, s.col, s.k) for s in steps] == list(itertools.product(range(2), repeat=3))

    def test_random_three_by_three(self):
        """Test random 3x3 products against numpy."""
        rng = np.random.default_rng(7)
        a = rng.integers(-9, 10, size=(3, 3)).tolist()
        b = rng.integers(-9, 10, size=(3, 3)).tolist()

        steps = matrix_multiply_steps(a, b)

        assert len(steps) == 27
        np.testing.assert_array_equal(product_from_steps(steps), np.array(a) @ np.array(b))
        result = validate_matrix_trace(a, b, steps)
        assert result.is_valid, result.errors

    def test_rectangular(self):
        """Test rectangular operands."""
        a = [[1, 2, 3], [4, 5, 6]]
        b = [[1, 0], [0, 1], [1, 1]]

        steps = matrix_multiply_steps(a, b)

        assert len(steps) == matrix_step_count(a, b) == 12
        np.testing.assert_array_equal(product_from_steps(steps), [[4, 5], [10, 11]])

    def test_degenerate_input_yields_no_steps(self):
        """Test mismatched or non-numeric operands yield no steps."""
        assert matrix_multiply_steps([[1, 2, 3], [4, 5, 6]], self.B) == []
        assert matrix_multiply_steps([[1, 2], [3]], self.B) == []
        assert matrix_multiply_steps([], self.B) == []
        assert matrix_multiply_steps([[1, float('nan')], [3, 4]], self.B) == []

    def test_partial_result(self):
        """Test the partial product at a cursor."""
        steps = matrix_multiply_steps(self.A, self.B)

        assert partial_result(steps, 0) == [[None, None], [None, None]]
        assert partial_result(steps, 2) == [[19, None], [None, None]]
        assert partial_result(steps, len(steps)) == [[19, 22], [43, 50]]


class TestValidation:
    """Validators reject corrupted traces."""

    def test_corrupted_search_trace(self):
        """Test a corrupted search trace fails validation."""
        steps = binary_search_steps(ARRAY, 91)
        bad = steps[:-1]

        assert not validate_search_trace(ARRAY, 91, bad).is_valid

    def test_corrupted_matrix_trace(self):
        """Test a corrupted matrix trace fails validation."""
        steps = matrix_multiply_steps([[1, 2], [3, 4]], [[5, 6], [7, 8]])

        assert not validate_matrix_trace([[1, 2], [3, 4]], [[5, 6], [7, 8]], steps[::-1]).is_valid

    def test_unordered_tree(self):
        """Test an unordered tree is not a BST."""
        bad = bst.Node(10, bst.Node(20), None)
        assert not is_bst(bad)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
