"""
Analytical Benchmarks for FEA Validation
==========================================

Bare homogeneous reactors with zero flux on the outer boundary have a
closed-form fundamental mode and eigenvalue:

    keff = nu*Sigma_f / (Sigma_a + D * B^2)

with geometric buckling
    slab  (width a):         B^2 = (pi/a)^2
    square (side a):         B^2 = 2 * (pi/a)^2
    cube  (side a):          B^2 = 3 * (pi/a)^2

Each benchmark builds a uniform mesh, solves the FE eigenvalue problem
and reports the relative keff error. Linear elements converge as O(h^2).
"""

import math

import numpy as np

from ..config import SolverSettings
from ..materials.properties import DiffusionMaterial, MaterialLibrary
from ..mesh.nodes import box_mesh, line_mesh, rectangle_mesh
from ..solvers.eigenvalue import solve_keff

# Thermal-like homogeneous fuel, lengths in cm
BENCHMARK_MATERIAL = DiffusionMaterial(xs_a=0.01, xs_f=0.005, nu=2.5, d=1.0)
BENCHMARK_WIDTH = 100.0

_GEOMETRIES = {
    'slab': 1,
    'square': 2,
    'cube': 3,
}


def analytical_keff(material, width, dim):
    """keff of a bare homogeneous slab / square / cube of side width."""
    buckling = dim * (math.pi / width) ** 2
    return material.nu_sigma_f / (material.xs_a + material.d * buckling)


def benchmark_bare_reactor(geometry='slab', n_elements=40, material=None,
                           width=BENCHMARK_WIDTH, settings=None):
    """Benchmark: bare homogeneous reactor with vacuum boundaries.

    Parameters
    ----------
    geometry : {'slab', 'square', 'cube'}
    n_elements : int
        Divisions per direction.
    material : DiffusionMaterial, optional
        Default BENCHMARK_MATERIAL.
    width : float, optional
        Side length.
    settings : SolverSettings, optional
        Default tightens tol_k to 1e-10 and tol_flux to 1e-8.

    Returns
    -------
    results : dict
        Keys: 'geometry', 'n_elements', 'keff_fe', 'keff_exact',
        'rel_error', 'iterations', 'converged', 'mesh', 'flux'.
    """
    if geometry not in _GEOMETRIES:
        raise ValueError(
            f"Unknown geometry '{geometry}'. Use one of {sorted(_GEOMETRIES)}."
        )
    if material is None:
        material = BENCHMARK_MATERIAL
    if settings is None:
        settings = SolverSettings(tol_k=1e-10, tol_flux=1e-8)

    dim = _GEOMETRIES[geometry]
    if dim == 1:
        mesh = line_mesh(width, n_elements)
    elif dim == 2:
        mesh = rectangle_mesh(width, width, n_elements, n_elements)
    else:
        mesh = box_mesh(width, width, width, n_elements, n_elements, n_elements)

    lib = MaterialLibrary({0: material})
    result = solve_keff(mesh, lib, vacuum_tags=('boundary',), settings=settings)
    k_exact = analytical_keff(material, width, dim)

    return {
        'geometry': geometry,
        'n_elements': n_elements,
        'keff_fe': result.keff,
        'keff_exact': k_exact,
        'rel_error': abs(result.keff - k_exact) / k_exact,
        'iterations': result.iterations,
        'converged': result.converged,
        'mesh': mesh,
        'flux': result.flux,
    }


def convergence_study(geometry='slab', mesh_sizes=None, **kwargs):
    """h-refinement study of a bare reactor benchmark.

    Returns
    -------
    results : dict
        Keys: 'mesh_sizes', 'errors', 'convergence_rate'.
        The rate is the least-squares slope of log(error) vs log(h).
    """
    if mesh_sizes is None:
        mesh_sizes = [10, 20, 40]
    errors = [benchmark_bare_reactor(geometry, n, **kwargs)['rel_error']
              for n in mesh_sizes]
    h = 1.0 / np.asarray(mesh_sizes, dtype=np.float64)
    rate = np.polyfit(np.log(h), np.log(errors), 1)[0]
    return {
        'mesh_sizes': list(mesh_sizes),
        'errors': errors,
        'convergence_rate': float(rate),
    }


def run_all_benchmarks(geometries=('slab', 'square', 'cube'), n_elements=None):
    """Run each benchmark and print a summary table.

    Parameters
    ----------
    geometries : sequence of str
    n_elements : int, optional
        Divisions per direction. Default 80 / 40 / 10 for
        slab / square / cube.

    Returns
    -------
    results : list of dict
    """
    default_n = {'slab': 80, 'square': 40, 'cube': 10}
    results = []

    print("=" * 70)
    print("Bare reactor k-eigenvalue benchmarks")
    print("=" * 70)
    print(f"{'geometry':<10}{'N':>6}{'keff FE':>14}{'keff exact':>14}"
          f"{'rel error':>12}{'iters':>8}")
    for geometry in geometries:
        n = n_elements if n_elements is not None else default_n[geometry]
        res = benchmark_bare_reactor(geometry, n)
        results.append(res)
        print(f"{geometry:<10}{n:>6}{res['keff_fe']:>14.8f}"
              f"{res['keff_exact']:>14.8f}{res['rel_error']:>12.2e}"
              f"{res['iterations']:>8}")
    print("=" * 70)
    return results
