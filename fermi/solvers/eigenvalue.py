"""
1-Group Finite Element Diffusion Eigenvalue Solver
===================================================

Solves the generalized eigenvalue problem assembled from the elemental
matrices:

    A * phi = (1/keff) * F * phi

where A = sum_e Ae (diffusion + absorption) and F = sum_e Be (fission).

Solution via inverse power iteration:
    1. Initialize phi_0 (flat, zero on vacuum boundaries)
    2. Compute source: s = F * phi_n
    3. Solve: A * phi_(n+1) = (1/k_n) * s
    4. Update keff from the ratio of fission source totals
    5. Normalize phi_(n+1)
    6. Check convergence on keff and flux

Boundary conditions:
    - Vacuum: phi = 0 on tagged boundary nodes (via elimination)
    - Symmetry / reflective: dphi/dn = 0 (natural BC, no action needed)

Sources:
    - Duderstadt & Hamilton, "Nuclear Reactor Analysis"
    - Lewis & Miller, "Computational Methods of Neutron Transport"
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy.sparse import lil_matrix
from scipy.sparse.linalg import splu

from ..assembly.sparse_assembler import assemble_diffusion_matrices
from ..config import SolverSettings

log = logging.getLogger(__name__)


@dataclass
class EigenvalueResult:
    """Results from the neutron diffusion eigenvalue solve.

    Attributes
    ----------
    keff : float
        Effective multiplication factor.
    flux : ndarray, shape (N_nodes,)
        Normalized neutron flux (peak = 1.0).
    iterations : int
        Number of power iterations performed.
    converged : bool
        Whether the solver achieved convergence.
    """
    keff: float
    flux: np.ndarray
    iterations: int
    converged: bool


def apply_vacuum_bc(A, F, bc_nodes):
    """Apply vacuum BC (phi=0) via row/column elimination.

    Zeroes rows and columns for BC nodes in both A and F,
    sets diagonal of A to 1.0 and leaves F zero at those DOFs.
    This preserves eigenvalue structure for the free DOFs.

    Parameters
    ----------
    A : sparse matrix
    F : sparse matrix
    bc_nodes : array_like of int
        Node indices where phi = 0.

    Returns
    -------
    A_mod : csc_matrix
    F_mod : csc_matrix
    """
    bc_nodes = np.asarray(bc_nodes, dtype=np.int64)
    A_mod = lil_matrix(A)
    F_mod = lil_matrix(F)

    for dof in bc_nodes:
        A_mod[dof, :] = 0
        A_mod[:, dof] = 0
        A_mod[dof, dof] = 1.0
        F_mod[dof, :] = 0
        F_mod[:, dof] = 0

    return A_mod.tocsc(), F_mod.tocsc()


def vacuum_nodes(mesh, tags):
    """Sorted unique node indices of the given boundary tags.

    Raises
    ------
    KeyError
        If a tag is not defined on the mesh.
    """
    bc_node_set = set()
    for tag in tags:
        if tag not in mesh.boundary_nodes:
            raise KeyError(
                f"Boundary tag '{tag}' not found in mesh. "
                f"Available: {sorted(mesh.boundary_nodes)}"
            )
        bc_node_set.update(mesh.boundary_nodes[tag].tolist())
    return np.array(sorted(bc_node_set), dtype=np.int64)


def power_iteration(A, F, bc_nodes=(), settings=None):
    """Inverse power iteration for the fundamental mode.

    Parameters
    ----------
    A : sparse matrix, shape (N, N)
        Diffusion + absorption operator, BCs already applied.
    F : sparse matrix, shape (N, N)
        Fission operator, BCs already applied.
    bc_nodes : array_like of int, optional
        Nodes held at zero flux.
    settings : SolverSettings, optional

    Returns
    -------
    result : EigenvalueResult

    Raises
    ------
    ValueError
        If F has no fission source on the free nodes.
    """
    if settings is None:
        settings = SolverSettings()
    bc_nodes = np.asarray(bc_nodes, dtype=np.int64)
    n = A.shape[0]

    phi = np.ones(n)
    phi[bc_nodes] = 0.0
    if np.sum(F @ phi) <= 0.0:
        raise ValueError(
            "Fission source is zero: no fissile material on the free nodes"
        )
    phi /= np.linalg.norm(phi)

    # Pre-factor A for repeated solves
    A_lu = splu(A.tocsc())

    keff = settings.initial_keff
    converged = False
    n_iter = 0

    for iteration in range(settings.max_iter):
        n_iter = iteration + 1

        # 1. Fission source
        source = F @ phi
        source_total = np.sum(source)

        # 2. Solve A * phi_new = source / k
        phi_new = A_lu.solve(source / keff)
        phi_new[bc_nodes] = 0.0

        # 3. Eigenvalue update from the new fission source
        new_source_total = np.sum(F @ phi_new)
        keff_new = keff * new_source_total / source_total

        # 4. Normalize
        phi_new /= np.linalg.norm(phi_new)

        # 5. Convergence
        dk_rel = abs(keff_new - keff) / max(abs(keff_new), 1e-30)
        dphi_rel = np.linalg.norm(phi_new - phi) / max(np.linalg.norm(phi_new), 1e-30)
        log.debug("iteration %d: keff=%.8f dk=%.2e dphi=%.2e",
                  n_iter, keff_new, dk_rel, dphi_rel)

        keff = keff_new
        phi = phi_new

        if dk_rel < settings.tol_k and dphi_rel < settings.tol_flux:
            converged = True
            break

    if converged:
        log.info("Power iteration converged in %d iterations: keff=%.6f", n_iter, keff)
    else:
        log.warning("Power iteration did not converge in %d iterations "
                    "(keff=%.6f)", n_iter, keff)

    # Peak flux = 1.0
    phi_max = np.max(np.abs(phi))
    if phi_max > 0:
        phi /= phi_max

    return EigenvalueResult(
        keff=float(keff),
        flux=phi,
        iterations=n_iter,
        converged=converged,
    )


def solve_keff(mesh, material_lib, vacuum_tags=None, settings=None):
    """Solve the 1-group FE diffusion eigenvalue problem on a mesh.

    Parameters
    ----------
    mesh : Mesh
        segment2, quad4 or hex8 mesh.
    material_lib : MaterialLibrary
        Material for every zone in mesh.material_ids.
    vacuum_tags : sequence of str, optional
        Boundary tags with phi = 0. Default settings.vacuum_tags.
        Pass an empty sequence for a fully reflected domain.
    settings : SolverSettings, optional

    Returns
    -------
    result : EigenvalueResult
    """
    if settings is None:
        settings = SolverSettings()
    if vacuum_tags is None:
        vacuum_tags = settings.vacuum_tags

    system = assemble_diffusion_matrices(mesh, material_lib)
    bc_nodes = vacuum_nodes(mesh, vacuum_tags)
    A_bc, F_bc = apply_vacuum_bc(system.A, system.F, bc_nodes)

    log.info("Solving k-eigenvalue problem: %d nodes, %d vacuum nodes",
             mesh.n_nodes, len(bc_nodes))
    return power_iteration(A_bc, F_bc, bc_nodes=bc_nodes, settings=settings)
