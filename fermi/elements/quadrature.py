"""
Gauss-Legendre quadrature rules on the reference line, square and cube.

All rules live on the bi-unit reference domain [-1, 1]^D so that

    integral over [-1,1]^D of f dxi = sum_i w_i * f(xi_i)

and the weights sum to 2^D (the measure of the reference element).

Multi-dimensional rules are tensor products of the 1D rule. Points are
ordered with the first reference coordinate varying fastest.

An n-point rule integrates polynomials of degree 2n - 1 exactly per
direction, so the 2-point rule is exact for the mass and stiffness forms
of linear, bilinear and trilinear elements with affine geometry.

References:
    - Abramowitz, M. and Stegun, I.A. "Handbook of Mathematical
      Functions", Table 25.4.
    - Hughes, T.J.R. "The Finite Element Method", Section 3.8.
"""

import itertools

import numpy as np


def gauss_legendre_1d(n_points):
    """
    n-point Gauss-Legendre rule on [-1, 1].

    The 1- and 2-point rules are written out; higher orders use
    numpy.polynomial.legendre.leggauss.

    Parameters
    ----------
    n_points : int
        Number of quadrature points (>= 1).

    Returns
    -------
    points : ndarray, shape (n_points,)
    weights : ndarray, shape (n_points,)
    """
    if n_points < 1:
        raise ValueError(f"n_points must be >= 1, got {n_points}")
    if n_points == 1:
        return np.array([0.0]), np.array([2.0])
    if n_points == 2:
        s = 1.0 / np.sqrt(3.0)
        return np.array([-s, s]), np.array([1.0, 1.0])
    return np.polynomial.legendre.leggauss(n_points)


def gauss_tensor(dim, n_points):
    """
    Tensor-product Gauss-Legendre rule on [-1, 1]^dim.

    Parameters
    ----------
    dim : int
        Reference dimension (1, 2 or 3).
    n_points : int
        Points per direction.

    Returns
    -------
    points : ndarray, shape (n_points**dim, dim)
        Quadrature points, first coordinate varying fastest.
    weights : ndarray, shape (n_points**dim,)
    """
    if dim < 1:
        raise ValueError(f"dim must be >= 1, got {dim}")
    p1, w1 = gauss_legendre_1d(n_points)

    points = np.empty((n_points ** dim, dim))
    weights = np.empty(n_points ** dim)
    # itertools.product varies the last index fastest; reverse so xi is fastest
    for q, idx in enumerate(itertools.product(range(n_points), repeat=dim)):
        idx = idx[::-1]
        points[q] = p1[list(idx)]
        weights[q] = np.prod(w1[list(idx)])
    return points, weights


def gauss_line_2pt():
    """
    2-point rule on [-1, 1], xi = +/- 1/sqrt(3), w = 1.

    Returns
    -------
    points : ndarray, shape (2, 1)
    weights : ndarray, shape (2,)
    """
    return gauss_tensor(1, 2)


def gauss_quad_2x2():
    """
    2x2 tensor rule on [-1, 1]^2, all weights 1.

    Returns
    -------
    points : ndarray, shape (4, 2)
    weights : ndarray, shape (4,)
    """
    return gauss_tensor(2, 2)


def gauss_hex_2x2x2():
    """
    2x2x2 tensor rule on [-1, 1]^3, all weights 1.

    Returns
    -------
    points : ndarray, shape (8, 3)
    weights : ndarray, shape (8,)
    """
    return gauss_tensor(3, 2)
