"""
Fixed-size dense matrices for isoparametric mappings.

Jacobians of the shipped element families are 1x1, 2x2 or 3x3, so the
determinant and inverse are written out with cofactor formulas instead
of a general LU factorisation:

    D = 1:  det = a
    D = 2:  det = a00*a11 - a01*a10
    D = 3:  det = a00*(a11*a22 - a12*a21)
                - a01*(a10*a22 - a12*a20)
                + a02*(a10*a21 - a11*a20)

    inv(A) = adj(A) / det(A)

Larger matrices fall back to numpy.linalg.
"""

import numpy as np

from ..config import DETERMINANT_RTOL
from ..errors import DegenerateGeometryError


class SmallMatrix:
    """
    Dense D x D matrix of float64.

    Parameters
    ----------
    data : array_like, shape (D, D)
        Matrix entries. A copy is stored.

    Attributes
    ----------
    data : ndarray, shape (D, D)
    dim : int
    """

    def __init__(self, data):
        data = np.array(data, dtype=np.float64)
        if data.ndim != 2 or data.shape[0] != data.shape[1] or data.shape[0] < 1:
            raise ValueError(
                f"SmallMatrix requires a square 2D array, got shape {data.shape}"
            )
        self.data = data
        self.dim = data.shape[0]

    def __getitem__(self, key):
        return self.data[key]

    def __repr__(self):
        return f"SmallMatrix({self.data.tolist()!r})"

    def determinant(self):
        """
        Determinant by cofactor expansion.

        Returns
        -------
        det : float
        """
        a = self.data
        if self.dim == 1:
            return float(a[0, 0])
        if self.dim == 2:
            return float(a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0])
        if self.dim == 3:
            return float(
                a[0, 0] * (a[1, 1] * a[2, 2] - a[1, 2] * a[2, 1])
                - a[0, 1] * (a[1, 0] * a[2, 2] - a[1, 2] * a[2, 0])
                + a[0, 2] * (a[1, 0] * a[2, 1] - a[1, 1] * a[2, 0])
            )
        return float(np.linalg.det(a))

    def _adjugate(self):
        a = self.data
        if self.dim == 1:
            return np.array([[1.0]])
        if self.dim == 2:
            return np.array([
                [a[1, 1], -a[0, 1]],
                [-a[1, 0], a[0, 0]],
            ])
        # D = 3: transpose of the cofactor matrix
        adj = np.empty((3, 3))
        adj[0, 0] = a[1, 1] * a[2, 2] - a[1, 2] * a[2, 1]
        adj[0, 1] = a[0, 2] * a[2, 1] - a[0, 1] * a[2, 2]
        adj[0, 2] = a[0, 1] * a[1, 2] - a[0, 2] * a[1, 1]
        adj[1, 0] = a[1, 2] * a[2, 0] - a[1, 0] * a[2, 2]
        adj[1, 1] = a[0, 0] * a[2, 2] - a[0, 2] * a[2, 0]
        adj[1, 2] = a[0, 2] * a[1, 0] - a[0, 0] * a[1, 2]
        adj[2, 0] = a[1, 0] * a[2, 1] - a[1, 1] * a[2, 0]
        adj[2, 1] = a[0, 1] * a[2, 0] - a[0, 0] * a[2, 1]
        adj[2, 2] = a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0]
        return adj

    def is_singular(self, det=None):
        """
        Check whether the matrix is numerically singular.

        The test is scale aware: |det| <= DETERMINANT_RTOL * max|a_ij|**D.

        Parameters
        ----------
        det : float, optional
            Precomputed determinant.

        Returns
        -------
        singular : bool
        """
        if det is None:
            det = self.determinant()
        if not np.isfinite(det) or not np.all(np.isfinite(self.data)):
            return True
        scale = np.max(np.abs(self.data))
        if scale == 0.0:
            return True
        return abs(det) <= DETERMINANT_RTOL * scale ** self.dim

    def inverse(self):
        """
        Inverse and determinant in one pass.

        Returns
        -------
        inv : SmallMatrix
            Inverse matrix.
        det : float
            Determinant of the original matrix.

        Raises
        ------
        DegenerateGeometryError
            If the determinant is zero, not finite, or within the
            relative tolerance of zero.
        """
        det = self.determinant()
        if self.is_singular(det):
            raise DegenerateGeometryError(
                f"Singular {self.dim}x{self.dim} matrix: det = {det:.6e}",
                det=det,
            )
        if self.dim <= 3:
            inv = self._adjugate() / det
        else:
            inv = np.linalg.inv(self.data)
        return SmallMatrix(inv), det
