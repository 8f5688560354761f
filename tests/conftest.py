"""Shared fixtures for the fermi test suite."""

import numpy as np
import pytest

from fermi.materials.properties import DiffusionMaterial, MaterialLibrary


@pytest.fixture
def fuel():
    """Homogeneous fissile material."""
    return DiffusionMaterial(xs_a=0.01, xs_f=0.005, nu=2.5, d=1.0)


@pytest.fixture
def fuel_library(fuel):
    return MaterialLibrary({0: fuel})


@pytest.fixture
def unit_square():
    """Counter-clockwise unit square nodes."""
    return np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


@pytest.fixture
def distorted_quad():
    """Convex, non-affine quadrilateral."""
    return np.array([[0.0, 0.0], [2.0, 0.3], [2.4, 1.7], [-0.2, 1.1]])


@pytest.fixture
def unit_cube():
    return np.array([
        [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 1.0],
    ])
