"""
fermi - Finite element kernels for one-group neutron diffusion

Computes the elemental diffusion/absorption matrix Ae and fission
source matrix Be of isoparametric Lagrange elements, and provides the
thin assembly and power iteration layers needed to solve for keff.

Element library:
    - Segment2: 2-node linear segment (1D)
    - Quad4: 4-node bilinear quadrilateral (2D)
    - Hex8: 8-node trilinear hexahedron (3D)
"""

__version__ = "0.1.0"

from .errors import (
    FermiError,
    DegenerateGeometryError,
    InvalidTopologyError,
    InvalidMaterialError,
)
from .elements.small_matrix import SmallMatrix
from .elements.shape_functions import ShapeFunctionSet, shape_function_set
from .elements.diffusion import (
    DiffusionElement,
    Segment2,
    Quad4,
    Hex8,
    ELEMENT_TYPES,
    make_element,
)
from .mesh.nodes import Node, Element, Mesh, line_mesh, rectangle_mesh, box_mesh
from .materials.properties import DiffusionMaterial, MaterialLibrary
from .assembly.sparse_assembler import assemble_diffusion_matrices, AssembledSystem
from .solvers.eigenvalue import solve_keff, EigenvalueResult
