"""
Exceptions raised by the element kernels and their collaborators.

All of them derive from ValueError so existing callers that guard
element routines with ``except ValueError`` keep working.
"""


class FermiError(Exception):
    """Base class for fermi errors."""


class DegenerateGeometryError(FermiError, ValueError):
    """Jacobian determinant is zero, negative or not finite.

    Parameters
    ----------
    message : str
        Human readable description.
    det : float, optional
        Offending determinant.
    gauss_point : int, optional
        Quadrature point index where it was detected.
    """

    def __init__(self, message, det=None, gauss_point=None):
        super().__init__(message)
        self.det = det
        self.gauss_point = gauss_point


class InvalidTopologyError(FermiError, ValueError):
    """Node or index lists do not fit the element topology."""


class InvalidMaterialError(FermiError, ValueError):
    """Material parameters are negative or not finite."""
