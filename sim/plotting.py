"""
Render adapters for playback snapshots and simulation results.

These functions only read snapshots, steps and results; they never
mutate them. Discrete snapshots are drawn according to the type of the
current step.
"""

import numpy as np
import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.patches import Rectangle
from typing import Optional, List, Tuple, Dict, Sequence, Any
import os

from algorithms.search import SearchStep, LinearStep, FOUND
from algorithms.bst import Node, TreeStep
from algorithms.matrix import MatrixStep, partial_result

COLORS = {
    'idle': '#d0d7de',
    'active': '#54aeff',
    'mid': '#f0b429',
    'eliminated': '#eeeeee',
    'found': '#2da44e',
    'path': '#50c8dc',
}


def plot_states(result, labels: Optional[List[str]] = None,
                readouts: Sequence[str] = (),
                title: Optional[str] = None) -> Tuple[plt.Figure, np.ndarray]:
    """
    Plot state components (and optional readouts) over time.

    Args:
        result: SimulationResult
        labels: Labels for state components
        readouts: Readout keys to plot below the states
        title: Overall figure title

    Returns:
        Figure and axes array
    """
    n_states = result.states.shape[1]
    n_rows = n_states + len(readouts)

    fig, axes = plt.subplots(n_rows, 1, figsize=(10, 2 * n_rows), sharex=True)
    axes = np.atleast_1d(axes)

    if labels is None:
        labels = result.metadata.get('state_labels') or [f'$x_{i+1}$' for i in range(n_states)]

    for i in range(n_states):
        axes[i].plot(result.time, result.states[:, i], 'b-', linewidth=1.5)
        axes[i].set_ylabel(labels[i])
        axes[i].grid(True, alpha=0.3)

    for j, key in enumerate(readouts):
        ax = axes[n_states + j]
        ax.plot(result.time, result.series(key), 'g-', linewidth=1.5)
        ax.set_ylabel(key)
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Time (s)')

    if title:
        fig.suptitle(title)

    fig.tight_layout()
    return fig, axes


def plot_history(history, index: int = 0, ax: Optional[plt.Axes] = None,
                 label: Optional[str] = None) -> plt.Axes:
    """
    Plot the replay window of a continuous track.

    Args:
        history: Iterable of SimulationState (e.g. ContinuousTrack.history)
        index: State component to plot
        ax: Matplotlib axes (creates new if None)
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 4))
    states = list(history)
    t = [s.time for s in states]
    y = [s.values[index] for s in states]
    ax.plot(t, y, '-', linewidth=1.5, label=label)
    ax.set_xlabel('Time (s)')
    ax.grid(True, alpha=0.3)
    if label:
        ax.legend()
    return ax


def plot_phase_portrait(result, ax: Optional[plt.Axes] = None,
                        indices: Tuple[int, int] = (0, 1),
                        title: Optional[str] = None) -> plt.Axes:
    """
    Plot one state component against another (x-v or x-y).

    Args:
        result: SimulationResult
        ax: Matplotlib axes
        indices: Components for the horizontal and vertical axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    i, j = indices
    ax.plot(result.states[:, i], result.states[:, j], 'b-', linewidth=1)
    ax.plot(result.states[0, i], result.states[0, j], 'go', markersize=8, label='Start')

    labels = result.metadata.get('state_labels', [])
    if len(labels) > max(i, j):
        ax.set_xlabel(labels[i])
        ax.set_ylabel(labels[j])
    ax.grid(True, alpha=0.3)
    ax.legend()

    if title:
        ax.set_title(title)

    return ax


def search_cell_states(n: int, step: Optional[SearchStep], completed: bool = False) -> List[str]:
    """Display state of each array cell for a search step."""
    if step is None:
        return ['idle'] * n
    states = []
    for i in range(n):
        if completed and step.comparison == FOUND and i == step.mid:
            states.append('found')
        elif i == step.mid:
            states.append('mid')
        elif step.left <= i <= step.right:
            states.append('active')
        else:
            states.append('eliminated')
    return states


def plot_search_step(values: Sequence[float], step: Optional[SearchStep],
                     ax: Optional[plt.Axes] = None,
                     completed: bool = False) -> plt.Axes:
    """Draw the array as a row of cells coloured by the step."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(max(6, len(values) * 0.6), 1.5))

    _draw_cells(ax, values, search_cell_states(len(values), step, completed))
    if step is not None:
        ax.set_title(f'left={step.left} mid={step.mid} right={step.right} ({step.comparison})')
    return ax


def _draw_cells(ax: plt.Axes, values: Sequence[float], states: Sequence[str]) -> None:
    for i, (v, state) in enumerate(zip(values, states)):
        ax.add_patch(Rectangle((i, 0), 0.9, 0.9, facecolor=COLORS[state], edgecolor='black'))
        ax.text(i + 0.45, 0.45, f'{v:g}', ha='center', va='center')

    ax.set_xlim(-0.1, max(len(values), 1))
    ax.set_ylim(-0.1, 1.0)
    ax.set_aspect('equal')
    ax.axis('off')


def linear_cell_states(n: int, step: Optional[LinearStep], completed: bool = False) -> List[str]:
    """Display state of each array cell for a linear-search step."""
    if step is None:
        return ['idle'] * n
    states = []
    for i in range(n):
        if i == step.index:
            states.append('found' if completed and step.comparison == FOUND else 'mid')
        elif i < step.index:
            states.append('eliminated')
        else:
            states.append('active')
    return states


def plot_linear_step(values: Sequence[float], step: Optional[LinearStep],
                     ax: Optional[plt.Axes] = None,
                     completed: bool = False) -> plt.Axes:
    """Draw the array with the cells already compared greyed out."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(max(6, len(values) * 0.6), 1.5))

    _draw_cells(ax, values, linear_cell_states(len(values), step, completed))
    if step is not None:
        ax.set_title(f'index={step.index} ({step.comparison})')
    return ax


def tree_to_graph(root: Optional[Node]) -> nx.DiGraph:
    """Directed parent -> child graph keyed by node value."""
    graph = nx.DiGraph()
    stack = [root] if root is not None else []
    while stack:
        node = stack.pop()
        graph.add_node(node.value)
        for side, child in (('left', node.left), ('right', node.right)):
            if child is not None:
                graph.add_edge(node.value, child.value, side=side)
                stack.append(child)
    return graph


def tree_layout(root: Optional[Node], spread: float = 1.0,
                shrink: float = 0.55, level_gap: float = 1.0) -> Dict[float, Tuple[float, float]]:
    """
    Node positions: children offset by a shrinking horizontal spread.
    """
    pos = {}

    def place(node, x, y, s):
        if node is None:
            return
        pos[node.value] = (x, y)
        place(node.left, x - s, y - level_gap, s * shrink)
        place(node.right, x + s, y - level_gap, s * shrink)

    place(root, 0.0, 0.0, spread)
    return pos


def plot_tree(root: Optional[Node], ax: Optional[plt.Axes] = None,
              highlight: Sequence[float] = (),
              found: Optional[float] = None) -> plt.Axes:
    """Draw a tree with an optional highlighted path."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 5))
    ax.axis('off')

    graph = tree_to_graph(root)
    if graph.number_of_nodes() == 0:
        ax.text(0.5, 0.5, 'Empty tree', ha='center', va='center', transform=ax.transAxes)
        return ax

    pos = tree_layout(root)
    highlight = set(highlight)
    node_colors = []
    for v in graph.nodes:
        if found is not None and v == found:
            node_colors.append(COLORS['found'])
        elif v in highlight:
            node_colors.append(COLORS['path'])
        else:
            node_colors.append(COLORS['idle'])
    edge_colors = [COLORS['path'] if u in highlight and v in highlight else COLORS['idle']
                   for u, v in graph.edges]

    nx.draw_networkx(graph, pos=pos, ax=ax, node_color=node_colors,
                     edge_color=edge_colors, arrows=False, node_size=700)
    return ax


def plot_tree_step(step: TreeStep, ax: Optional[plt.Axes] = None) -> plt.Axes:
    found = step.node if step.action == 'found' else None
    ax = plot_tree(step.tree, ax=ax, highlight=step.path, found=found)
    ax.set_title(f'{step.operation} {step.target if step.target is not None else ""}: {step.action}')
    return ax


def plot_matrix_step(a, b, step: Optional[MatrixStep],
                     result: Optional[List[List[Optional[float]]]] = None,
                     ax: Optional[plt.Axes] = None) -> plt.Axes:
    """
    Draw A, B and the partially filled product, highlighting row i of A,
    column j of B and cell (i, j) of the result.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 4))
    ax.axis('off')

    a = np.asarray(a)
    b = np.asarray(b)
    blocks = [('A', a, 0.0), ('B', b, a.shape[1] + 1.0),
              ('C', result, a.shape[1] + b.shape[1] + 2.0)]

    for name, mat, x0 in blocks:
        if mat is None:
            continue
        for r, row in enumerate(mat):
            for c, v in enumerate(row):
                hot = step is not None and (
                    (name == 'A' and r == step.row and c == step.k)
                    or (name == 'B' and r == step.k and c == step.col)
                    or (name == 'C' and r == step.row and c == step.col))
                ax.add_patch(Rectangle((x0 + c, -r), 0.9, 0.9,
                                       facecolor=COLORS['mid'] if hot else COLORS['idle'],
                                       edgecolor='black'))
                text = '' if v is None else f'{v:g}'
                ax.text(x0 + c + 0.45, -r + 0.45, text, ha='center', va='center')
        ax.text(x0, 1.1, name, fontweight='bold')

    ax.set_xlim(-0.5, a.shape[1] + b.shape[1] + b.shape[1] + 3)
    ax.set_ylim(-a.shape[0] - 0.5, 1.6)
    if step is not None:
        ax.set_title(step.expression)
    return ax


def plot_snapshot(snapshot, ax: Optional[plt.Axes] = None, context: Optional[Dict[str, Any]] = None) -> plt.Axes:
    """
    Draw any controller snapshot.

    Args:
        snapshot: Snapshot from PlaybackController.snapshot()
        ax: Matplotlib axes
        context: Inputs the step alone does not carry, e.g.
            {'values': [...]} for search or {'a': A, 'b': B, 'steps': [...]}
            for matrix playback. With 'steps' the result grid holds the
            cells committed up to the snapshot cursor; a fixed 'result'
            grid is used otherwise.
    """
    context = context or {}
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 4))

    if snapshot.kind == 'continuous':
        state = snapshot.state
        ax.bar(range(len(state.values)), state.values)
        ax.set_title(f't = {state.time:.2f}s')
        return ax

    step = snapshot.step
    completed = snapshot.run_state == 'completed'
    if isinstance(step, TreeStep):
        return plot_tree_step(step, ax=ax)
    if isinstance(step, MatrixStep):
        if 'steps' in context:
            # the displayed step counts as applied
            result = partial_result(context['steps'], (snapshot.index or 0) + 1)
        else:
            result = context.get('result')
        return plot_matrix_step(context['a'], context['b'], step, result, ax=ax)
    if isinstance(step, LinearStep):
        return plot_linear_step(context.get('values', []), step, ax=ax, completed=completed)
    if isinstance(step, SearchStep) or step is None:
        return plot_search_step(context.get('values', []), step, ax=ax, completed=completed)
    raise ValueError(f"No renderer for step type {type(step).__name__}")


def save_figure(fig: plt.Figure, filename: str,
                output_dir: str = 'report/figures',
                formats: List[str] = ['png']) -> None:
    """
    Save figure to multiple formats.

    Args:
        fig: Matplotlib figure
        filename: Base filename (without extension)
        output_dir: Output directory
        formats: List of file formats
    """
    os.makedirs(output_dir, exist_ok=True)

    for fmt in formats:
        path = os.path.join(output_dir, f'{filename}.{fmt}')
        fig.savefig(path, dpi=150, bbox_inches='tight')
