"""
Mesh data structures and structured mesh generators.

Provides:
    - Node: immutable point in D-dimensional space
    - Element: ordered local nodes plus their global indices
    - Mesh: node coordinates, connectivity, material zones, boundary groups
    - line_mesh, rectangle_mesh, box_mesh: uniform structured meshes for
      segment2, quad4 and hex8 elements

Mesh conventions:
    - Node numbering: 0-indexed
    - quad4 connectivity: counter-clockwise
    - hex8 connectivity: bottom face counter-clockwise, then top face
    - Material zones: integer IDs into a MaterialLibrary
    - Boundary tags: string labels mapped to node index arrays
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from ..errors import InvalidTopologyError


# topology -> (nodes per element, spatial dimension)
TOPOLOGIES = {
    'segment2': (2, 1),
    'quad4': (4, 2),
    'hex8': (8, 3),
}


@dataclass(frozen=True)
class Node:
    """
    A point in physical space.

    Attributes
    ----------
    coords : tuple of float
        Physical coordinates (length D).
    """
    coords: Tuple[float, ...]

    def __post_init__(self):
        coords = np.atleast_1d(np.asarray(self.coords, dtype=np.float64))
        if coords.ndim != 1 or coords.size == 0:
            raise ValueError(f"Node coordinates must be a 1D vector, got {self.coords!r}")
        object.__setattr__(self, 'coords', tuple(float(c) for c in coords))

    @property
    def dim(self):
        return len(self.coords)

    @property
    def x(self):
        return self.coords[0]

    @property
    def y(self):
        return self.coords[1]

    @property
    def z(self):
        return self.coords[2]


class Element:
    """
    Geometric and topological data of one element.

    Subclasses fix the topology through the class attributes TOPOLOGY,
    N_NODES and DIM. The base class only checks that node and index
    lists are parallel.

    Parameters
    ----------
    nodes : sequence of Node or array_like
        Local nodes in topology order. Plain coordinate vectors are
        wrapped in Node.
    node_indexes : sequence of int
        Global index of each local node.

    Raises
    ------
    InvalidTopologyError
        If the lists differ in length, do not match N_NODES, carry
        coordinates of the wrong dimension, or contain negative indices.
    """

    TOPOLOGY = None
    N_NODES = None
    DIM = None

    def __init__(self, nodes, node_indexes):
        nodes = tuple(n if isinstance(n, Node) else Node(n) for n in nodes)
        node_indexes = tuple(int(i) for i in node_indexes)
        name = self.TOPOLOGY or type(self).__name__

        if len(nodes) != len(node_indexes):
            raise InvalidTopologyError(
                f"{name}: {len(nodes)} nodes but {len(node_indexes)} node indexes"
            )
        if self.N_NODES is not None and len(nodes) != self.N_NODES:
            raise InvalidTopologyError(
                f"{name} requires {self.N_NODES} nodes, got {len(nodes)}"
            )
        if self.DIM is not None:
            for n, node in enumerate(nodes):
                if node.dim != self.DIM:
                    raise InvalidTopologyError(
                        f"{name}: node {n} has {node.dim} coordinates, "
                        f"expected {self.DIM}"
                    )
        if any(i < 0 for i in node_indexes):
            raise InvalidTopologyError(f"{name}: negative node index in {node_indexes}")

        self.nodes = nodes
        self.node_indexes = node_indexes

    @property
    def n_nodes(self):
        return len(self.nodes)

    def coordinates(self):
        """
        Node coordinates as an array.

        Returns
        -------
        coords : ndarray, shape (n_nodes, D)
        """
        return np.array([node.coords for node in self.nodes], dtype=np.float64)


@dataclass
class Mesh:
    """
    Finite element mesh data structure.

    Attributes
    ----------
    nodes : ndarray, shape (N_nodes, D)
        Nodal coordinates.
    elements : ndarray, shape (N_elem, n_per_elem)
        Element connectivity array (0-indexed node indices).
    element_type : str
        'segment2', 'quad4' or 'hex8'.
    material_ids : ndarray, shape (N_elem,)
        Integer zone IDs assigning each element to a material.
    boundary_nodes : dict
        Mapping from boundary tag (str) to ndarray of unique node indices.
    """
    nodes: np.ndarray
    elements: np.ndarray
    element_type: str
    material_ids: np.ndarray = None
    boundary_nodes: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        """Validate mesh data after initialization."""
        if self.element_type not in TOPOLOGIES:
            raise InvalidTopologyError(
                f"Unknown element_type '{self.element_type}'. "
                f"Use one of {sorted(TOPOLOGIES)}."
            )
        self.nodes = np.asarray(self.nodes, dtype=np.float64)
        if self.nodes.ndim == 1:
            self.nodes = self.nodes[:, None]
        self.elements = np.asarray(self.elements, dtype=np.int64)
        if self.material_ids is None:
            self.material_ids = np.zeros(len(self.elements), dtype=np.int64)
        self.material_ids = np.asarray(self.material_ids, dtype=np.int64)
        self.boundary_nodes = {
            tag: np.asarray(idx, dtype=np.int64)
            for tag, idx in self.boundary_nodes.items()
        }

        n_per_elem, dim = TOPOLOGIES[self.element_type]
        if self.nodes.ndim != 2 or self.nodes.shape[1] != dim:
            raise ValueError(
                f"{self.element_type} mesh needs nodes of shape (N, {dim}), "
                f"got {self.nodes.shape}"
            )
        if self.elements.ndim != 2 or self.elements.shape[1] != n_per_elem:
            raise InvalidTopologyError(
                f"{self.element_type} elements must have {n_per_elem} nodes "
                f"per element, got shape {self.elements.shape}"
            )
        if len(self.material_ids) != len(self.elements):
            raise ValueError(
                f"material_ids length ({len(self.material_ids)}) must match "
                f"number of elements ({len(self.elements)})"
            )
        if self.elements.size > 0:
            if np.max(self.elements) >= len(self.nodes):
                raise ValueError(
                    f"Element connectivity references node {np.max(self.elements)}, "
                    f"but mesh only has {len(self.nodes)} nodes (0-indexed)"
                )
            if np.min(self.elements) < 0:
                raise ValueError("Element connectivity contains negative node indices")

    @property
    def n_nodes(self):
        """Number of nodes in the mesh."""
        return self.nodes.shape[0]

    @property
    def n_elements(self):
        """Number of elements in the mesh."""
        return self.elements.shape[0]

    @property
    def dim(self):
        """Physical dimension."""
        return self.nodes.shape[1]

    def element_coords(self, e):
        """
        Physical coordinates of element e.

        Returns
        -------
        coords : ndarray, shape (n_per_elem, D)
        """
        return self.nodes[self.elements[e]]

    def element_nodes(self, e):
        """Node objects of element e, in connectivity order."""
        return [Node(xyz) for xyz in self.element_coords(e)]


def line_mesh(length, n_elements, x0=0.0, material_ids=None):
    """
    Uniform segment2 mesh of [x0, x0 + length].

    Boundary tags: 'left', 'right', 'boundary'.

    Parameters
    ----------
    length : float
        Domain length (> 0).
    n_elements : int
        Number of elements (>= 1).
    x0 : float, optional
        Left end coordinate.
    material_ids : array_like, optional
        Zone ID per element. Default all zeros.

    Returns
    -------
    mesh : Mesh
    """
    _check_divisions(length=length, n=n_elements)
    x = np.linspace(x0, x0 + length, n_elements + 1)
    elements = np.column_stack([np.arange(n_elements), np.arange(1, n_elements + 1)])
    boundary = {
        'left': np.array([0]),
        'right': np.array([n_elements]),
        'boundary': np.array([0, n_elements]),
    }
    return Mesh(x[:, None], elements, 'segment2',
                material_ids=material_ids, boundary_nodes=boundary)


def rectangle_mesh(lx, ly, nx, ny, origin=(0.0, 0.0), material_ids=None):
    """
    Uniform quad4 mesh of a rectangle.

    Node (i, j) has index j * (nx + 1) + i. Elements are numbered row by
    row and connected counter-clockwise.

    Boundary tags: 'left', 'right', 'bottom', 'top', 'boundary'.

    Parameters
    ----------
    lx, ly : float
        Side lengths.
    nx, ny : int
        Divisions along x and y.
    origin : tuple of float, optional
        Lower-left corner.
    material_ids : array_like, optional
        Zone ID per element.

    Returns
    -------
    mesh : Mesh
    """
    _check_divisions(length=lx, n=nx)
    _check_divisions(length=ly, n=ny)
    x = np.linspace(origin[0], origin[0] + lx, nx + 1)
    y = np.linspace(origin[1], origin[1] + ly, ny + 1)
    X, Y = np.meshgrid(x, y)        # (ny+1, nx+1), x fastest
    nodes = np.column_stack([X.ravel(), Y.ravel()])

    def nid(i, j):
        return j * (nx + 1) + i

    elements = np.empty((nx * ny, 4), dtype=np.int64)
    e = 0
    for j in range(ny):
        for i in range(nx):
            elements[e] = [nid(i, j), nid(i + 1, j), nid(i + 1, j + 1), nid(i, j + 1)]
            e += 1

    grid = np.arange(len(nodes)).reshape(ny + 1, nx + 1)
    boundary = {
        'left': grid[:, 0],
        'right': grid[:, -1],
        'bottom': grid[0, :],
        'top': grid[-1, :],
    }
    boundary['boundary'] = np.unique(np.concatenate(list(boundary.values())))
    return Mesh(nodes, elements, 'quad4',
                material_ids=material_ids, boundary_nodes=boundary)


def box_mesh(lx, ly, lz, nx, ny, nz, origin=(0.0, 0.0, 0.0), material_ids=None):
    """
    Uniform hex8 mesh of a box.

    Node (i, j, k) has index (k * (ny + 1) + j) * (nx + 1) + i.

    Boundary tags: 'left', 'right' (x), 'front', 'back' (y),
    'bottom', 'top' (z) and 'boundary'.

    Returns
    -------
    mesh : Mesh
    """
    for length, n in ((lx, nx), (ly, ny), (lz, nz)):
        _check_divisions(length=length, n=n)
    x = np.linspace(origin[0], origin[0] + lx, nx + 1)
    y = np.linspace(origin[1], origin[1] + ly, ny + 1)
    z = np.linspace(origin[2], origin[2] + lz, nz + 1)
    Z, Y, X = np.meshgrid(z, y, x, indexing='ij')    # x fastest
    nodes = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    def nid(i, j, k):
        return (k * (ny + 1) + j) * (nx + 1) + i

    elements = np.empty((nx * ny * nz, 8), dtype=np.int64)
    e = 0
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                elements[e] = [
                    nid(i, j, k), nid(i + 1, j, k), nid(i + 1, j + 1, k), nid(i, j + 1, k),
                    nid(i, j, k + 1), nid(i + 1, j, k + 1),
                    nid(i + 1, j + 1, k + 1), nid(i, j + 1, k + 1),
                ]
                e += 1

    grid = np.arange(len(nodes)).reshape(nz + 1, ny + 1, nx + 1)
    boundary = {
        'left': grid[:, :, 0].ravel(),
        'right': grid[:, :, -1].ravel(),
        'front': grid[:, 0, :].ravel(),
        'back': grid[:, -1, :].ravel(),
        'bottom': grid[0, :, :].ravel(),
        'top': grid[-1, :, :].ravel(),
    }
    boundary['boundary'] = np.unique(np.concatenate(list(boundary.values())))
    return Mesh(nodes, elements, 'hex8',
                material_ids=material_ids, boundary_nodes=boundary)


def _check_divisions(length, n):
    if length <= 0.0:
        raise ValueError(f"Domain length must be positive, got {length}")
    if int(n) != n or n < 1:
        raise ValueError(f"Number of divisions must be a positive integer, got {n}")
