"""Neighbor graphs and edge weights consumed by the LISA computations."""

import numpy as np
import networkx as nx

from .errors import InvalidConfigurationError, ShapeMismatchError


class NeighborGraph:
    """Read-only adjacency structure: one ordered neighbor tuple per unit.

    Parameters
    ----------
    neighbors : sequence of sequences of int
        ``neighbors[i]`` lists the 0-based neighbors of unit ``i``. An empty
        entry marks an isolate.

    Raises
    ------
    ShapeMismatchError
        If a neighbor index falls outside ``[0, n)``.
    InvalidConfigurationError
        If a unit lists itself or the same neighbor twice.
    """

    def __init__(self, neighbors):
        n = len(neighbors)
        self._n = n
        self._neighbors = []
        self._max_neighbors = 0
        out_of_range, self_loops, duplicates = [], [], []
        for i, neighs in enumerate(neighbors):
            neighs = tuple(int(j) for j in neighs)
            if any(j < 0 or j >= n for j in neighs):
                out_of_range.append(i)
            if i in neighs:
                self_loops.append(i)
            if len(set(neighs)) != len(neighs):
                duplicates.append(i)
            self._neighbors.append(neighs)
            self._max_neighbors = max(self._max_neighbors, len(neighs))

        if out_of_range:
            raise ShapeMismatchError(
                f"neighbor index outside [0, {n})", out_of_range)
        if self_loops:
            raise InvalidConfigurationError(
                "a unit cannot be its own neighbor", self_loops)
        if duplicates:
            raise InvalidConfigurationError(
                "duplicate neighbor entries", duplicates)

        self._index = [np.asarray(neighs, dtype=np.intp)
                       for neighs in self._neighbors]

    @classmethod
    def from_one_based(cls, neighbors):
        """Build from 1-based neighbor lists.

        A list holding the single entry ``0`` is the "no neighbors" marker.
        """
        converted = []
        for neighs in neighbors:
            neighs = [int(j) for j in neighs]
            if neighs == [0]:
                converted.append([])
            else:
                converted.append([j - 1 for j in neighs])
        return cls(converted)

    @classmethod
    def from_networkx(cls, G):
        """Extract adjacency from a graph whose nodes are ``0..n-1``.

        Neighbor order follows ``G.neighbors(i)``.
        """
        _check_node_labels(G)
        n = G.number_of_nodes()
        return cls([list(G.neighbors(i)) for i in range(n)])

    @property
    def n_units(self):
        return self._n

    @property
    def max_neighbors(self):
        return self._max_neighbors

    def __len__(self):
        return self._n

    def __iter__(self):
        return iter(self._neighbors)

    def __getitem__(self, i):
        return self._neighbors[i]

    def neighbors(self, i):
        """Return the neighbor tuple of unit i."""
        return self._neighbors[i]

    def index(self, i):
        """Return the neighbors of unit i as an integer array."""
        return self._index[i]

    def cardinalities(self):
        """Number of neighbors of every unit, shape (n,)."""
        return np.array([len(neighs) for neighs in self._neighbors],
                        dtype=np.intp)

    def isolates(self):
        """Indices of units without neighbors."""
        return [i for i, neighs in enumerate(self._neighbors) if not neighs]

    def __repr__(self):
        n_links = int(self.cardinalities().sum())
        return (f"NeighborGraph(n_units={self._n}, n_links={n_links}, "
                f"n_isolates={len(self.isolates())})")


class WeightScheme:
    """Edge weights parallel to a :class:`NeighborGraph`.

    Parameters
    ----------
    nb : NeighborGraph
    weights : sequence of sequences of float
        ``weights[i][k]`` weights the edge from unit ``i`` to
        ``nb.neighbors(i)[k]``.
    style : str
        Declared normalization. ``"W"`` (row-standardized) is checked: every
        non-isolate row must sum to 1. Other styles (``"B"`` binary,
        ``"C"``, ``"U"``, custom kernels...) are taken as given.
    atol : float
        Tolerance of the row-sum check.
    """

    ROW_STANDARDIZED = "W"
    BINARY = "B"

    def __init__(self, nb, weights, style=None, atol=1e-8):
        if len(weights) != nb.n_units:
            raise ShapeMismatchError(
                f"weights cover {len(weights)} units, graph has {nb.n_units}")
        self._nb = nb
        self._weights = []
        mismatched = []
        for i, w in enumerate(weights):
            w = np.array(w, dtype=float).ravel()
            if w.shape[0] != len(nb.neighbors(i)):
                mismatched.append(i)
            w.setflags(write=False)
            self._weights.append(w)
        if mismatched:
            raise ShapeMismatchError(
                "weight count differs from neighbor count", mismatched)

        self.style = style
        if style == self.ROW_STANDARDIZED and not self.is_row_standardized(atol):
            bad = [i for i, s in enumerate(self.row_sums())
                   if nb.neighbors(i) and not np.isclose(s, 1.0, atol=atol)]
            raise InvalidConfigurationError(
                "row-standardized weights must sum to 1", bad)

    @classmethod
    def binary(cls, nb):
        """Weight 1 on every edge."""
        return cls(nb, [np.ones(len(neighs)) for neighs in nb],
                   style=cls.BINARY)

    @classmethod
    def row_standardized(cls, nb):
        """Weight ``1 / k_i`` on every edge of unit ``i``."""
        weights = []
        for neighs in nb:
            k = len(neighs)
            weights.append(np.full(k, 1.0 / k) if k else np.zeros(0))
        return cls(nb, weights, style=cls.ROW_STANDARDIZED)

    @classmethod
    def from_networkx(cls, G, nb=None, weight="weight", style=None):
        """Read edge weights from ``G`` (default 1.0 when absent).

        Parameters
        ----------
        G : nx.Graph
        nb : NeighborGraph or None
            Graph defining the slot order. Built from ``G`` if None.
        weight : str
            Edge attribute holding the weight.
        style : str or None
        """
        if nb is None:
            nb = NeighborGraph.from_networkx(G)
        _check_node_labels(G)
        weights = []
        for i in range(nb.n_units):
            weights.append([G.edges[i, j].get(weight, 1.0)
                            for j in nb.neighbors(i)])
        return cls(nb, weights, style=style)

    @property
    def graph(self):
        return self._nb

    @property
    def n_units(self):
        return self._nb.n_units

    def __len__(self):
        return self._nb.n_units

    def __getitem__(self, i):
        return self._weights[i]

    def weights(self, i):
        """Return the weight array of unit i (read-only)."""
        return self._weights[i]

    def row_sums(self):
        """``w_i = sum_j w_ij`` for every unit, shape (n,)."""
        return np.array([w.sum() for w in self._weights])

    def squared_row_sums(self):
        """``w_i2 = sum_j w_ij**2`` for every unit, shape (n,)."""
        return np.array([(w * w).sum() for w in self._weights])

    def is_row_standardized(self, atol=1e-8):
        """True if every non-isolate row sums to 1 within ``atol``."""
        sums = self.row_sums()
        card = self._nb.cardinalities()
        return bool(np.all(np.isclose(sums[card > 0], 1.0, atol=atol)))

    def __repr__(self):
        return f"WeightScheme(n_units={self.n_units}, style={self.style!r})"


def _check_node_labels(G):
    if not isinstance(G, nx.Graph):
        raise InvalidConfigurationError(
            f"expected a networkx graph, got {type(G).__name__}")
    if set(G.nodes) != set(range(G.number_of_nodes())):
        raise InvalidConfigurationError(
            "graph nodes must be labelled 0..n-1; "
            "use nx.convert_node_labels_to_integers first")


def check_alignment(x, nb, wt=None):
    """Raise ShapeMismatchError unless values, graph and weights agree."""
    n = len(x)
    if nb.n_units != n:
        raise ShapeMismatchError(
            f"values have length {n}, graph has {nb.n_units} units")
    if wt is not None:
        if wt.n_units != n:
            raise ShapeMismatchError(
                f"values have length {n}, weights cover {wt.n_units} units")
        if wt.graph is not nb:
            mismatched = [i for i in range(n)
                          if wt.graph.neighbors(i) != nb.neighbors(i)]
            if mismatched:
                raise ShapeMismatchError(
                    "weights do not follow the neighbor graph", mismatched)
