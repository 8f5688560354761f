"""
Elemental matrices for the one-group neutron diffusion equation.

Weak form (multiply by test function N_i, integrate by parts):

    integral(D * grad(N_i) . grad(phi) + Sigma_a * N_i * phi) dV
        = (1/keff) * integral(nu*Sigma_f * N_i * phi) dV

Element matrices, integrated with Gauss quadrature over the reference
element through the isoparametric map x(xi) = sum_n N_n(xi) * x_n:

    Ae[i,j] = sum_gp (D * grad(N_i) . grad(N_j) + Sigma_a * N_i * N_j) * w_gp * detJ_gp
    Be[i,j] = sum_gp nu * Sigma_f * N_i * N_j * w_gp * detJ_gp

with
    J[i][j]    = sum_n dN_n/dxi_j * x_n[i]
    grad(N_a)  = dN_a/dxi @ J^-1

Both matrices are returned flattened row-major: entry (i, j) at n*i + j.

Element library:
    - Segment2: 2-node linear segment, 1D
    - Quad4:    4-node bilinear quadrilateral, 2D
    - Hex8:     8-node trilinear hexahedron, 3D

The accumulation is written once in DiffusionElement; the concrete
classes only fix the topology and bind their own shape function table.
"""

from abc import ABC, abstractmethod

import numpy as np

from ..errors import DegenerateGeometryError, InvalidTopologyError
from ..materials.properties import DiffusionMaterial
from ..mesh.nodes import TOPOLOGIES, Element
from . import shape_functions
from .small_matrix import SmallMatrix


class DiffusionElement(Element, ABC):
    """
    Element with one-group diffusion constants.

    Parameters
    ----------
    nodes : sequence of Node
        Local nodes in topology order.
    node_indexes : sequence of int
        Global node indices, parallel to nodes.
    xs_a : float
        Absorption cross-section.
    xs_f : float
        Fission cross-section.
    nu : float
        Neutrons per fission.
    d : float
        Diffusion coefficient.

    Raises
    ------
    InvalidTopologyError
        If the node list does not match the topology.
    InvalidMaterialError
        If a material constant is negative or not finite.
    """

    def __init__(self, nodes, node_indexes, xs_a, xs_f, nu, d):
        super().__init__(nodes, node_indexes)
        self.material = DiffusionMaterial(xs_a=xs_a, xs_f=xs_f, nu=nu, d=d)
        # Coordinates are copied once; the kernel never reads the Node objects again
        self._coords = self.coordinates()
        self._coords.setflags(write=False)

    @classmethod
    def from_material(cls, nodes, node_indexes, material):
        """Build an element from a DiffusionMaterial."""
        return cls(nodes, node_indexes, material.xs_a, material.xs_f,
                   material.nu, material.d)

    @property
    def xs_a(self):
        return self.material.xs_a

    @property
    def xs_f(self):
        return self.material.xs_f

    @property
    def nu(self):
        return self.material.nu

    @property
    def d(self):
        return self.material.d

    @classmethod
    @abstractmethod
    def shape_functions(cls):
        """Shape function table bound to this topology."""

    def compute_jacobian(self, gp):
        """
        Jacobian of the isoparametric map at quadrature point gp.

        J[i][j] = sum_n dN_n/dxi_j(gp) * x_n[i]

        Parameters
        ----------
        gp : int
            Quadrature point index.

        Returns
        -------
        jac : SmallMatrix, shape (DIM, DIM)
        """
        sfs = self.shape_functions()
        if not 0 <= gp < sfs.n_points:
            raise IndexError(
                f"Quadrature point {gp} out of range for {self.TOPOLOGY} "
                f"({sfs.n_points} points)"
            )
        dsh = sfs.derivatives()[:, :, gp]    # (n_nodes, DIM)
        return SmallMatrix(self._coords.T @ dsh)

    def compute_inverse_jacobian(self, gp):
        """
        Inverse Jacobian and its determinant at quadrature point gp.

        Parameters
        ----------
        gp : int
            Quadrature point index.

        Returns
        -------
        ijac : SmallMatrix
            Inverse Jacobian, ijac[j][k] = dxi_j/dx_k.
        det : float
            Jacobian determinant (strictly positive).

        Raises
        ------
        DegenerateGeometryError
            If the Jacobian is singular or its determinant is not
            positive (collapsed or inverted element).
        """
        jac = self.compute_jacobian(gp)
        try:
            ijac, det = jac.inverse()
        except DegenerateGeometryError as exc:
            raise DegenerateGeometryError(
                f"{self.TOPOLOGY} element with nodes {list(self.node_indexes)}: "
                f"singular Jacobian at quadrature point {gp} (det = {exc.det:.6e})",
                det=exc.det,
                gauss_point=gp,
            ) from exc
        if det <= 0.0:
            raise DegenerateGeometryError(
                f"{self.TOPOLOGY} element with nodes {list(self.node_indexes)}: "
                f"non-positive Jacobian determinant {det:.6e} at quadrature "
                f"point {gp}. Check node ordering.",
                det=det,
                gauss_point=gp,
            )
        return ijac, det

    def _integrate(self, stiffness_coeff, mass_coeff):
        sfs = self.shape_functions()
        shapes = sfs.values()
        dsh = sfs.derivatives()
        wgp = sfs.weights()
        n = self.n_nodes

        K = np.zeros((n, n))
        for gp in range(sfs.n_points):
            ijac, det = self.compute_inverse_jacobian(gp)
            dV = wgp[gp] * det
            N = shapes[:, gp]
            if stiffness_coeff != 0.0:
                grad = dsh[:, :, gp] @ ijac.data    # (n_nodes, DIM), physical
                K += stiffness_coeff * (grad @ grad.T) * dV
            if mass_coeff != 0.0:
                K += mass_coeff * np.outer(N, N) * dV
        return K

    def compute_ae_matrix(self):
        """Diffusion + absorption matrix, shape (n, n)."""
        return self._integrate(self.d, self.xs_a)

    def compute_be_matrix(self):
        """Fission source matrix, shape (n, n)."""
        return self._integrate(0.0, self.nu * self.xs_f)

    def compute_ae(self):
        """
        Elemental diffusion/absorption matrix.

        Ae[n*i + j] = integral(d * grad(N_i) . grad(N_j) + xs_a * N_i * N_j) dV

        Returns
        -------
        Ae : ndarray, shape (n*n,)
            Row-major flattened, symmetric positive semi-definite.

        Raises
        ------
        DegenerateGeometryError
            If the Jacobian is degenerate at any quadrature point.
        """
        return self.compute_ae_matrix().ravel()

    def compute_be(self):
        """
        Elemental fission source matrix.

        Be[n*i + j] = integral(nu * xs_f * N_i * N_j) dV

        Returns
        -------
        Be : ndarray, shape (n*n,)
            Row-major flattened, symmetric positive semi-definite.

        Raises
        ------
        DegenerateGeometryError
            If the Jacobian is degenerate at any quadrature point.
        """
        return self.compute_be_matrix().ravel()

    def volume(self):
        """Element length, area or volume: sum of w * detJ."""
        wgp = self.shape_functions().weights()
        return float(sum(wgp[gp] * self.compute_inverse_jacobian(gp)[1]
                         for gp in range(len(wgp))))

    def __repr__(self):
        return (f"{type(self).__name__}(node_indexes={list(self.node_indexes)}, "
                f"xs_a={self.xs_a}, xs_f={self.xs_f}, nu={self.nu}, d={self.d})")


class Segment2(DiffusionElement):
    """2-node linear segment."""
    TOPOLOGY = 'segment2'
    N_NODES, DIM = TOPOLOGIES['segment2']

    @classmethod
    def shape_functions(cls):
        return shape_functions.segment2()


class Quad4(DiffusionElement):
    """4-node bilinear quadrilateral, counter-clockwise nodes."""
    TOPOLOGY = 'quad4'
    N_NODES, DIM = TOPOLOGIES['quad4']

    @classmethod
    def shape_functions(cls):
        return shape_functions.quad4()


class Hex8(DiffusionElement):
    """8-node trilinear hexahedron."""
    TOPOLOGY = 'hex8'
    N_NODES, DIM = TOPOLOGIES['hex8']

    @classmethod
    def shape_functions(cls):
        return shape_functions.hex8()


ELEMENT_TYPES = {
    'segment2': Segment2,
    'quad4': Quad4,
    'hex8': Hex8,
}


def make_element(element_type, nodes, node_indexes, material):
    """
    Build the diffusion element for a topology name.

    Parameters
    ----------
    element_type : str
        Key of ELEMENT_TYPES.
    nodes : sequence of Node or array_like
    node_indexes : sequence of int
    material : DiffusionMaterial

    Returns
    -------
    element : DiffusionElement

    Raises
    ------
    InvalidTopologyError
        If element_type is unknown or the nodes do not fit it.
    """
    try:
        cls = ELEMENT_TYPES[element_type]
    except KeyError:
        raise InvalidTopologyError(
            f"Unknown element type '{element_type}'. "
            f"Use one of {sorted(ELEMENT_TYPES)}."
        ) from None
    return cls.from_material(nodes, node_indexes, material)
