"""
Persistent binary search tree and its step generators.

Trees are immutable: insert and delete return a new root that shares
untouched subtrees with the old one, so every intermediate tree can be
kept in the step history.

Delete with two children copies the in-order successor's value (minimum
of the right subtree) into the node, then deletes that value from the
right subtree.

Duplicate inserts leave the tree unchanged.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .base import Step, is_finite_number

INORDER = 'inorder'
PREORDER = 'preorder'
POSTORDER = 'postorder'
TRAVERSALS = (INORDER, PREORDER, POSTORDER)

DEFAULT_VALUES = (50, 30, 70, 20, 40, 60, 80)


@dataclass(frozen=True)
class Node:
    value: float
    left: Optional['Node'] = None
    right: Optional['Node'] = None


@dataclass(frozen=True)
class TreeStep(Step):
    """
    One instant of a tree operation.

    Attributes:
        operation: 'insert', 'delete', 'search' or a traversal order
        target: Operand value (None for traversals)
        tree: Tree at this instant (the result tree on the final edit step)
        path: Node values visited so far, in order
        node: Value of the node acted on (None when falling off the tree)
        action: 'go_left', 'go_right', 'insert', 'duplicate', 'find_successor',
            'found', 'not_found', 'remove_leaf', 'replace_with_child',
            'replace_with_successor', 'visit'
        successor: Successor value used by a two-child delete
    """
    operation: str
    target: Optional[float]
    tree: Optional[Node]
    path: Tuple[float, ...]
    node: Optional[float]
    action: str
    successor: Optional[float] = None


# ----------------------------------------------------------------------
# Pure tree functions
# ----------------------------------------------------------------------

def insert(root: Optional[Node], value: float) -> Node:
    """Return a tree containing ``value``; untouched subtrees are shared."""
    if root is None:
        return Node(value)
    if value < root.value:
        left = insert(root.left, value)
        return root if left is root.left else Node(root.value, left, root.right)
    if value > root.value:
        right = insert(root.right, value)
        return root if right is root.right else Node(root.value, root.left, right)
    return root


def min_value(root: Node) -> float:
    while root.left is not None:
        root = root.left
    return root.value


def delete(root: Optional[Node], value: float) -> Optional[Node]:
    """
    Return a tree without ``value``.

    A node with two children takes its in-order successor's value and the
    successor is deleted from the right subtree. Deleting a missing value
    returns ``root`` itself.
    """
    if root is None:
        return None
    if value < root.value:
        left = delete(root.left, value)
        return root if left is root.left else Node(root.value, left, root.right)
    if value > root.value:
        right = delete(root.right, value)
        return root if right is root.right else Node(root.value, root.left, right)
    if root.left is None:
        return root.right
    if root.right is None:
        return root.left
    successor = min_value(root.right)
    return Node(successor, root.left, delete(root.right, successor))


def search_path(root: Optional[Node], value: float) -> List[float]:
    """Values visited while looking for ``value``."""
    path = []
    node = root
    while node is not None:
        path.append(node.value)
        if value == node.value:
            break
        node = node.left if value < node.value else node.right
    return path


def contains(root: Optional[Node], value: float) -> bool:
    path = search_path(root, value)
    return bool(path) and path[-1] == value


def traverse(root: Optional[Node], order: str = INORDER) -> List[float]:
    if order not in TRAVERSALS:
        raise ValueError(f"order must be one of {TRAVERSALS}, got '{order}'")
    if root is None:
        return []
    left = traverse(root.left, order)
    right = traverse(root.right, order)
    if order == INORDER:
        return left + [root.value] + right
    if order == PREORDER:
        return [root.value] + left + right
    return left + right + [root.value]


def height(root: Optional[Node]) -> int:
    if root is None:
        return 0
    return 1 + max(height(root.left), height(root.right))


def count(root: Optional[Node]) -> int:
    if root is None:
        return 0
    return 1 + count(root.left) + count(root.right)


def is_balanced(root: Optional[Node]) -> bool:
    if root is None:
        return True
    return (abs(height(root.left) - height(root.right)) <= 1
            and is_balanced(root.left) and is_balanced(root.right))


def from_values(values: Iterable[float] = DEFAULT_VALUES) -> Optional[Node]:
    root = None
    for v in values:
        root = insert(root, v)
    return root


# ----------------------------------------------------------------------
# Step generators
# ----------------------------------------------------------------------

def _walk(operation: str, root: Optional[Node], value: float) -> Tuple[List[TreeStep], Optional[Node]]:
    """
    Compare/branch steps down to the node holding ``value``.

    Returns the steps and the matching node (None if not present).
    """
    steps = []
    path: Tuple[float, ...] = ()
    node = root
    while node is not None:
        path = path + (node.value,)
        if value == node.value:
            return steps, node
        action = 'go_left' if value < node.value else 'go_right'
        steps.append(TreeStep(operation, value, root, path, node.value, action))
        node = node.left if value < node.value else node.right
    return steps, None


def insert_steps(root: Optional[Node], value: float) -> List[TreeStep]:
    """
    Steps for inserting ``value``.

    The final step is 'insert' (carrying the new tree) or 'duplicate'.
    Inserting into an empty tree yields a single 'insert' step.
    """
    if not is_finite_number(value):
        return []
    steps, match = _walk('insert', root, value)
    path = steps[-1].path if steps else ()
    if match is not None:
        steps.append(TreeStep('insert', value, root, path + (value,), value, 'duplicate'))
        return steps
    new_root = insert(root, value)
    steps.append(TreeStep('insert', value, new_root, path + (value,), value, 'insert'))
    return steps


def search_steps(root: Optional[Node], value: float) -> List[TreeStep]:
    """Steps for searching ``value``; the final step is 'found' or 'not_found'."""
    if root is None or not is_finite_number(value):
        return []
    steps, match = _walk('search', root, value)
    if match is not None:
        path = tuple(search_path(root, value))
        steps.append(TreeStep('search', value, root, path, value, 'found'))
    else:
        steps.append(TreeStep('search', value, root, steps[-1].path, None, 'not_found'))
    return steps


def delete_steps(root: Optional[Node], value: float) -> List[TreeStep]:
    """
    Steps for deleting ``value``.

    The final step names the case ('remove_leaf', 'replace_with_child',
    'replace_with_successor' or 'not_found') and carries the result tree.
    """
    if root is None or not is_finite_number(value):
        return []
    steps, match = _walk('delete', root, value)
    if match is None:
        steps.append(TreeStep('delete', value, root, steps[-1].path, None, 'not_found'))
        return steps

    path = tuple(search_path(root, value))
    steps.append(TreeStep('delete', value, root, path, value, 'found'))
    new_root = delete(root, value)

    if match.left is None and match.right is None:
        steps.append(TreeStep('delete', value, new_root, path, value, 'remove_leaf'))
    elif match.left is None or match.right is None:
        steps.append(TreeStep('delete', value, new_root, path, value, 'replace_with_child'))
    else:
        successor = min_value(match.right)
        # walk to the successor before the replacement
        succ_path = path
        node = match.right
        while node is not None:
            succ_path = succ_path + (node.value,)
            node = node.left
        steps.append(TreeStep('delete', value, root, succ_path, successor, 'find_successor',
                              successor=successor))
        steps.append(TreeStep('delete', value, new_root, path, value,
                              'replace_with_successor', successor=successor))
    return steps


def traversal_steps(root: Optional[Node], order: str = INORDER) -> List[TreeStep]:
    """One 'visit' step per node, in traversal order."""
    order_values = traverse(root, order)
    steps = []
    for i, v in enumerate(order_values):
        steps.append(TreeStep(order, None, root, tuple(order_values[:i + 1]), v, 'visit'))
    return steps


def result_tree(steps: List[TreeStep], default: Optional[Node] = None) -> Optional[Node]:
    """Tree left behind by an operation's steps."""
    if not steps:
        return default
    return steps[-1].tree
