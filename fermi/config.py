"""
Central Configuration for the fermi diffusion element library

Numerical parameters are grouped in tiers:
  Tier 1: Geometry tolerances (Jacobian checks)
  Tier 2: Quadrature defaults
  Tier 3: Eigenvalue solver defaults
  Tier 4: Boundary tags

Usage:
    from fermi.config import SolverSettings
    settings = SolverSettings(tol_k=1e-8)
"""

from dataclasses import dataclass, field
from typing import Tuple


# =============================================================================
# TIER 1: GEOMETRY TOLERANCES
# =============================================================================

# A Jacobian is treated as singular when |det J| <= DETERMINANT_RTOL * s**D,
# where s is the largest absolute entry of J and D its dimension.
DETERMINANT_RTOL = 1e-12


# =============================================================================
# TIER 2: QUADRATURE
# =============================================================================

GAUSS_POINTS_PER_DIRECTION = 2    # exact for linear / bilinear / trilinear forms


# =============================================================================
# TIER 3: EIGENVALUE SOLVER
# =============================================================================

MAX_POWER_ITERATIONS = 500
TOL_KEFF = 1e-6                   # |dk| / k
TOL_FLUX = 1e-5                   # ||dphi|| / ||phi||
INITIAL_KEFF = 1.0


# =============================================================================
# TIER 4: BOUNDARY TAGS
# =============================================================================

# Mesh boundary groups on which phi = 0 is imposed unless told otherwise
DEFAULT_VACUUM_TAGS = ('boundary',)


@dataclass
class SolverSettings:
    """Power iteration controls.

    Attributes
    ----------
    max_iter : int
        Maximum number of power iterations.
    tol_k : float
        Convergence tolerance on the relative change of k-eff.
    tol_flux : float
        Convergence tolerance on the relative change of the flux.
    initial_keff : float
        Starting eigenvalue estimate.
    vacuum_tags : tuple of str
        Boundary tags that receive the zero flux condition.
    """
    max_iter: int = MAX_POWER_ITERATIONS
    tol_k: float = TOL_KEFF
    tol_flux: float = TOL_FLUX
    initial_keff: float = INITIAL_KEFF
    vacuum_tags: Tuple[str, ...] = field(default=DEFAULT_VACUUM_TAGS)

    def __post_init__(self):
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.tol_k <= 0.0 or self.tol_flux <= 0.0:
            raise ValueError(
                f"Tolerances must be positive, got tol_k={self.tol_k}, "
                f"tol_flux={self.tol_flux}"
            )
        if self.initial_keff <= 0.0:
            raise ValueError(
                f"initial_keff must be positive, got {self.initial_keff}"
            )
        self.vacuum_tags = tuple(self.vacuum_tags)
