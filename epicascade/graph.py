"""
Contact graph loading for the cascade simulator.

Uses NetworkX only for parsing and graph construction; the simulator itself
works on :class:`ContactGraph`, an immutable adjacency-list structure with one
read-only numpy array of neighbour ids per node.  Convention: ``links[u]``
lists the clients that provider ``u`` can reach, in edge insertion order.
Undirected graphs store every edge as two arcs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Sequence

import networkx as nx
import numpy as np


@dataclass(frozen=True)
class ContactGraph:
    """Immutable adjacency lists shared by every running trial.

    Attributes
    ----------
    n : int
        Number of nodes; ids are ``0 .. n-1``.
    m : int
        Number of edges (arcs for directed graphs).
    degrees : np.ndarray, shape (n,), dtype int64
        Out-degree per node.
    links : tuple of np.ndarray
        ``links[u]`` holds the neighbour ids of ``u``.
    directed : bool
        Whether edges were read as arcs.
    """

    n: int
    m: int
    degrees: np.ndarray
    links: tuple[np.ndarray, ...]
    directed: bool = False

    def neighbors(self, node: int) -> np.ndarray:
        return self.links[node]


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def graph_from_networkx(G: nx.Graph, n: int | None = None) -> ContactGraph:
    """Convert an integer-labelled NetworkX graph to a :class:`ContactGraph`.

    Parameters
    ----------
    G : nx.Graph or nx.DiGraph
        Graph whose node labels are non-negative integers.
    n : int or None, optional
        Node count.  Defaults to ``max(label) + 1`` so that missing labels
        become isolated nodes.

    Returns
    -------
    ContactGraph

    Raises
    ------
    ValueError
        If a label is not a non-negative integer or does not fit in ``n``.
    """
    labels = list(G.nodes)
    for label in labels:
        if not isinstance(label, (int, np.integer)) or label < 0:
            raise ValueError(f"Node label {label!r} is not a non-negative integer.")

    top = max(labels) + 1 if labels else 0
    if n is None:
        n = top
    elif top > n:
        raise ValueError(
            f"Node label {top - 1} is out of range [0, {n - 1}]."
        )

    links = []
    for u in range(n):
        if u in G:
            arr = np.fromiter(G.adj[u], dtype=np.int64)
        else:
            arr = np.empty(0, dtype=np.int64)
        arr.setflags(write=False)
        links.append(arr)

    degrees = np.array([arr.shape[0] for arr in links], dtype=np.int64)
    degrees.setflags(write=False)

    return ContactGraph(
        n=int(n),
        m=int(G.number_of_edges()),
        degrees=degrees,
        links=tuple(links),
        directed=G.is_directed(),
    )


def graph_from_edges(
    n: int,
    edge_list: Sequence[tuple[int, int]],
    directed: bool = False,
) -> ContactGraph:
    """Build a graph from an explicit edge list.

    Parameters
    ----------
    n : int
        Number of nodes (labels must be in 0..n-1).
    edge_list : sequence of (int, int)
        Edges as (source, target) pairs.  Repeated edges collapse into one.
    directed : bool, optional
        Store each pair as a single arc instead of two.

    Raises
    ------
    ValueError
        If any node index is out of range [0, n-1].
    """
    for u, v in edge_list:
        if not (0 <= u < n and 0 <= v < n):
            raise ValueError(
                f"Edge ({u}, {v}) contains a node index out of range [0, {n - 1}]."
            )

    G = nx.DiGraph() if directed else nx.Graph()
    G.add_nodes_from(range(n))
    G.add_edges_from(edge_list)
    return graph_from_networkx(G, n)


# ---------------------------------------------------------------------------
# File input
# ---------------------------------------------------------------------------


def _edge_lines(lines: Iterable[str]) -> list[str]:
    """Return ``lines`` unchanged after checking each holds at least ``u v``."""
    lines = list(lines)
    for lineno, line in enumerate(lines, start=1):
        fields = line.split("#", 1)[0].split()
        if fields and len(fields) < 2:
            raise ValueError(
                f"Malformed edge list line {lineno}: expected 'u v', got {line.strip()!r}."
            )
    return lines


def load_graph(
    source: str | Path | IO[str],
    directed: bool = False,
    n: int | None = None,
) -> ContactGraph:
    """Read a whitespace-separated edge list.

    One ``u v`` pair per line; ``#`` starts a comment and extra columns are
    ignored.

    Parameters
    ----------
    source : str, Path or text stream
        Edge-list path, or an open stream such as ``sys.stdin``.
    directed : bool, optional
        Read each line as an arc ``u -> v``.
    n : int or None, optional
        Node count; defaults to the largest id plus one.

    Raises
    ------
    FileNotFoundError
        If ``source`` is a path that does not exist.
    ValueError
        If a line holds a single field or a node id is not an integer.
    """
    if isinstance(source, (str, Path)):
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Graph file not found: {source}")
        with source.open(encoding="utf-8") as fh:
            lines = _edge_lines(fh)
    else:
        lines = _edge_lines(source)

    create_using = nx.DiGraph if directed else nx.Graph
    try:
        G = nx.parse_edgelist(
            lines, comments="#", nodetype=int, data=False, create_using=create_using
        )
    except TypeError as exc:
        raise ValueError(f"Malformed edge list {source}: {exc}") from exc

    return graph_from_networkx(G, n)
