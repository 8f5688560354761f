"""
Shape function tables for the linear Lagrange element family.

Each topology owns one ShapeFunctionSet: shape function values, local
derivatives and weights tabulated at the Gauss points of its reference
element. Tables are built once per process and shared by reference;
their arrays are read-only so elements on different threads can use
them concurrently.

Reference elements and node numbering:

    segment2:   0 ------- 1           xi in [-1, 1]
               -1        +1

    quad4:      3 ------- 2           (xi, eta) in [-1, 1]^2
                |         |
                |         |           counter-clockwise
                0 ------- 1

    hex8:       bottom face (zeta = -1): 0, 1, 2, 3 as quad4
                top face    (zeta = +1): 4, 5, 6, 7 above 0, 1, 2, 3

Shape functions:
    N_a(xi) = prod_k (1 + xi_k * xi_k^a) / 2

where xi^a are the reference coordinates of node a.

Table layout:
    shape_values[a, gp]          = N_a(xi_gp)
    shape_derivatives[a, k, gp]  = dN_a/dxi_k (xi_gp)
    gauss_weights[gp]            = w_gp
"""

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from ..config import GAUSS_POINTS_PER_DIRECTION
from ..errors import InvalidTopologyError
from .quadrature import gauss_tensor


SEGMENT2_NODES = np.array([
    [-1.0],
    [1.0],
])

QUAD4_NODES = np.array([
    [-1.0, -1.0],
    [1.0, -1.0],
    [1.0, 1.0],
    [-1.0, 1.0],
])

HEX8_NODES = np.array([
    [-1.0, -1.0, -1.0],
    [1.0, -1.0, -1.0],
    [1.0, 1.0, -1.0],
    [-1.0, 1.0, -1.0],
    [-1.0, -1.0, 1.0],
    [1.0, -1.0, 1.0],
    [1.0, 1.0, 1.0],
    [-1.0, 1.0, 1.0],
])

REFERENCE_NODES = {
    'segment2': SEGMENT2_NODES,
    'quad4': QUAD4_NODES,
    'hex8': HEX8_NODES,
}


def _readonly(array):
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class ShapeFunctionSet:
    """
    Tabulated shape functions of one reference topology.

    Attributes
    ----------
    topology : str
        Topology name ('segment2', 'quad4', 'hex8').
    points : ndarray, shape (n_gp, dim)
        Gauss points in reference coordinates.
    shape_values : ndarray, shape (n_nodes, n_gp)
    shape_derivatives : ndarray, shape (n_nodes, dim, n_gp)
    gauss_weights : ndarray, shape (n_gp,)
    """
    topology: str
    points: np.ndarray
    shape_values: np.ndarray
    shape_derivatives: np.ndarray
    gauss_weights: np.ndarray

    def __post_init__(self):
        for name in ('points', 'shape_values', 'shape_derivatives', 'gauss_weights'):
            object.__setattr__(self, name, _readonly(getattr(self, name)))

        n_nodes, dim, n_gp = self.shape_derivatives.shape
        if self.shape_values.shape != (n_nodes, n_gp):
            raise ValueError(
                f"shape_values shape {self.shape_values.shape} != ({n_nodes}, {n_gp})"
            )
        if self.points.shape != (n_gp, dim):
            raise ValueError(
                f"points shape {self.points.shape} != ({n_gp}, {dim})"
            )
        if self.gauss_weights.shape != (n_gp,):
            raise ValueError(
                f"gauss_weights shape {self.gauss_weights.shape} != ({n_gp},)"
            )

    @property
    def n_nodes(self):
        """Number of local nodes."""
        return self.shape_values.shape[0]

    @property
    def dim(self):
        """Reference space dimension."""
        return self.points.shape[1]

    @property
    def n_points(self):
        """Number of quadrature points."""
        return self.points.shape[0]

    def values(self):
        """Shape function values, shape (n_nodes, n_gp)."""
        return self.shape_values

    def derivatives(self):
        """Local derivatives, shape (n_nodes, dim, n_gp)."""
        return self.shape_derivatives

    def weights(self):
        """Quadrature weights, shape (n_gp,)."""
        return self.gauss_weights


def lagrange_linear(ref_nodes, xi):
    """
    Evaluate tensor-product linear Lagrange shape functions at one point.

    N_a(xi) = prod_k (1 + xi_k * xi_k^a) / 2

    Parameters
    ----------
    ref_nodes : ndarray, shape (n_nodes, dim)
        Reference coordinates of the element nodes (entries +/- 1).
    xi : array_like, shape (dim,)
        Evaluation point.

    Returns
    -------
    N : ndarray, shape (n_nodes,)
        Shape function values.
    dN_dxi : ndarray, shape (n_nodes, dim)
        dN_dxi[a, k] = dN_a/dxi_k.
    """
    xi = np.asarray(xi, dtype=np.float64)
    factors = 0.5 * (1.0 + ref_nodes * xi)    # (n_nodes, dim)
    N = np.prod(factors, axis=1)

    n_nodes, dim = ref_nodes.shape
    dN_dxi = np.empty((n_nodes, dim))
    for k in range(dim):
        others = np.delete(factors, k, axis=1)
        dN_dxi[:, k] = 0.5 * ref_nodes[:, k] * np.prod(others, axis=1)
    return N, dN_dxi


def _tabulate(topology, n_points):
    ref_nodes = REFERENCE_NODES[topology]
    n_nodes, dim = ref_nodes.shape
    points, weights = gauss_tensor(dim, n_points)
    n_gp = len(weights)

    shape_values = np.empty((n_nodes, n_gp))
    shape_derivatives = np.empty((n_nodes, dim, n_gp))
    for gp in range(n_gp):
        N, dN_dxi = lagrange_linear(ref_nodes, points[gp])
        shape_values[:, gp] = N
        shape_derivatives[:, :, gp] = dN_dxi

    return ShapeFunctionSet(
        topology=topology,
        points=points,
        shape_values=shape_values,
        shape_derivatives=shape_derivatives,
        gauss_weights=weights,
    )


def shape_function_set(topology, n_points=GAUSS_POINTS_PER_DIRECTION):
    """
    Cached shape function table for a topology.

    Parameters
    ----------
    topology : str
        'segment2', 'quad4' or 'hex8'.
    n_points : int, optional
        Gauss points per direction. Default from config (2).

    Returns
    -------
    sfs : ShapeFunctionSet
        Shared, immutable table.

    Raises
    ------
    InvalidTopologyError
        If the topology is unknown.
    """
    if topology not in REFERENCE_NODES:
        raise InvalidTopologyError(
            f"Unknown topology '{topology}'. "
            f"Use one of {sorted(REFERENCE_NODES)}."
        )
    return _cached_set(topology, int(n_points))


@lru_cache(maxsize=None)
def _cached_set(topology, n_points):
    # one entry per (topology, n_points)
    return _tabulate(topology, n_points)


def segment2():
    """Linear 2-node segment with 2-point Gauss."""
    return shape_function_set('segment2')


def quad4():
    """Bilinear 4-node quadrilateral with 2x2 Gauss."""
    return shape_function_set('quad4')


def hex8():
    """Trilinear 8-node hexahedron with 2x2x2 Gauss."""
    return shape_function_set('hex8')
