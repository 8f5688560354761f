"""Tests for the elemental diffusion and fission matrices."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from fermi.elements.diffusion import (
    ELEMENT_TYPES,
    Hex8,
    Quad4,
    Segment2,
    make_element,
)
from fermi.errors import (
    DegenerateGeometryError,
    InvalidMaterialError,
    InvalidTopologyError,
)
from fermi.materials.properties import DiffusionMaterial
from fermi.mesh.nodes import Node


def segment(x0, x1, xs_a=0.0, xs_f=0.0, nu=0.0, d=1.0):
    return Segment2([Node([x0]), Node([x1])], [0, 1], xs_a, xs_f, nu, d)


def is_symmetric(flat, n):
    M = flat.reshape(n, n)
    return np.allclose(M, M.T, rtol=1e-13, atol=1e-15)


class TestSegment2:

    def test_laplacian_patch(self):
        """xs_a = 0 gives the exact 1D stencil (d/L) [[1,-1],[-1,1]]."""
        L, d = 2.5, 0.7
        Ae = segment(1.0, 1.0 + L, d=d).compute_ae()
        assert np.allclose(Ae, d / L * np.array([1.0, -1.0, -1.0, 1.0]))

    def test_mass_matrix(self):
        """d = 0, xs_a = 1 gives (L/6) [[2,1],[1,2]]."""
        L = 0.4
        Ae = segment(0.0, L, xs_a=1.0, d=0.0).compute_ae()
        assert np.allclose(Ae, L / 6.0 * np.array([2.0, 1.0, 1.0, 2.0]))

    def test_fission_matrix(self):
        L, xs_f, nu = 3.0, 0.02, 2.4
        Be = segment(-1.0, -1.0 + L, xs_f=xs_f, nu=nu).compute_be()
        assert np.allclose(Be, nu * xs_f * L / 6.0 * np.array([2.0, 1.0, 1.0, 2.0]))

    def test_combined_is_sum(self):
        L, d, xs_a = 1.5, 0.9, 0.03
        Ae = segment(0.0, L, xs_a=xs_a, d=d).compute_ae()
        expected = (d / L * np.array([1.0, -1.0, -1.0, 1.0])
                    + xs_a * L / 6.0 * np.array([2.0, 1.0, 1.0, 2.0]))
        assert np.allclose(Ae, expected)

    def test_inverse_jacobian(self):
        elem = segment(2.0, 6.0)
        for gp in range(2):
            ijac, det = elem.compute_inverse_jacobian(gp)
            assert np.isclose(det, 2.0)
            assert np.isclose(ijac[0, 0], 0.5)

    def test_volume(self):
        assert np.isclose(segment(2.0, 6.0).volume(), 4.0)

    def test_no_fission_gives_zero_be(self):
        assert np.all(segment(0.0, 1.0, xs_a=1.0).compute_be() == 0.0)


class TestQuad4:

    def test_unit_square_stiffness(self, unit_square):
        """Standard Q4 Laplacian: diag 2/3, adjacent -1/6, opposite -1/3."""
        elem = Quad4(unit_square, [0, 1, 2, 3], 0.0, 0.0, 0.0, 1.0)
        a, b, c = 2.0 / 3.0, -1.0 / 6.0, -1.0 / 3.0
        expected = np.array([
            [a, b, c, b],
            [b, a, b, c],
            [c, b, a, b],
            [b, c, b, a],
        ])
        assert np.allclose(elem.compute_ae_matrix(), expected)

    def test_unit_square_mass(self, unit_square):
        elem = Quad4(unit_square, [0, 1, 2, 3], 1.0, 0.0, 0.0, 0.0)
        expected = np.array([
            [4.0, 2.0, 1.0, 2.0],
            [2.0, 4.0, 2.0, 1.0],
            [1.0, 2.0, 4.0, 2.0],
            [2.0, 1.0, 2.0, 4.0],
        ]) / 36.0
        assert np.allclose(elem.compute_ae_matrix(), expected)

    def test_rectangle_jacobian(self):
        nodes = [[0.0, 0.0], [2.0, 0.0], [2.0, 3.0], [0.0, 3.0]]
        elem = Quad4(nodes, [0, 1, 2, 3], 0.0, 0.0, 0.0, 1.0)
        for gp in range(4):
            ijac, det = elem.compute_inverse_jacobian(gp)
            assert np.isclose(det, 1.5)
            assert np.allclose(ijac.data, np.diag([1.0, 2.0 / 3.0]))
        assert np.isclose(elem.volume(), 6.0)

    def test_distorted_area(self, distorted_quad):
        elem = Quad4(distorted_quad, [0, 1, 2, 3], 0.0, 0.0, 0.0, 1.0)
        x, y = distorted_quad[:, 0], distorted_quad[:, 1]
        shoelace = 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
        assert np.isclose(elem.volume(), shoelace)

    def test_stiffness_rows_sum_to_zero(self, distorted_quad):
        """Constant flux has no gradient."""
        elem = Quad4(distorted_quad, [0, 1, 2, 3], 0.0, 0.0, 0.0, 2.0)
        assert np.allclose(elem.compute_ae_matrix().sum(axis=1), 0.0, atol=1e-13)

    def test_linear_field_has_exact_energy(self, distorted_quad):
        """phi = x gives integral |grad phi|^2 = area."""
        elem = Quad4(distorted_quad, [0, 1, 2, 3], 0.0, 0.0, 0.0, 1.0)
        phi = distorted_quad[:, 0]
        K = elem.compute_ae_matrix()
        assert np.isclose(phi @ K @ phi, elem.volume())

    def test_rotation_invariance(self, unit_square):
        theta = np.pi / 6.0
        R = np.array([[np.cos(theta), -np.sin(theta)],
                      [np.sin(theta), np.cos(theta)]])
        rotated = unit_square @ R.T + np.array([3.0, -1.0])
        a = Quad4(unit_square, [0, 1, 2, 3], 0.2, 0.1, 2.0, 1.3)
        b = Quad4(rotated, [0, 1, 2, 3], 0.2, 0.1, 2.0, 1.3)
        assert np.allclose(a.compute_ae(), b.compute_ae())
        assert np.allclose(a.compute_be(), b.compute_be())

    def test_does_not_reuse_segment_rule(self):
        assert Quad4.shape_functions().dim == 2
        assert Quad4.shape_functions() is not Segment2.shape_functions()


class TestHex8:

    def test_unit_cube(self, unit_cube):
        elem = Hex8(unit_cube, range(8), 1.0, 0.5, 2.0, 1.0)
        K = Hex8(unit_cube, range(8), 0.0, 0.0, 0.0, 1.0).compute_ae_matrix()
        assert np.isclose(elem.volume(), 1.0)
        assert np.allclose(np.diag(K), 1.0 / 3.0)
        assert np.allclose(K.sum(axis=1), 0.0, atol=1e-13)
        # sum of all mass entries = integral (sum N)^2 = volume
        assert np.isclose(elem.compute_be().sum(), 2.0 * 0.5 * 1.0)

    def test_scaled_box_jacobian(self, unit_cube):
        nodes = unit_cube * np.array([2.0, 1.0, 0.5])
        elem = Hex8(nodes, range(8), 0.0, 0.0, 0.0, 1.0)
        ijac, det = elem.compute_inverse_jacobian(3)
        assert np.isclose(det, 1.0 / 8.0)
        assert np.allclose(ijac.data, np.diag([1.0, 2.0, 4.0]))


class TestInvariants:

    @pytest.fixture
    def elements(self, distorted_quad, unit_cube):
        mat = dict(xs_a=0.03, xs_f=0.01, nu=2.43, d=1.2)
        skewed_cube = unit_cube + 0.1 * unit_cube[:, [1, 2, 0]]
        return [
            Segment2([[0.3], [1.1]], [4, 5], **mat),
            Quad4(distorted_quad, [0, 1, 2, 3], **mat),
            Hex8(skewed_cube, range(8), **mat),
        ]

    def test_symmetry(self, elements):
        for elem in elements:
            n = elem.n_nodes
            assert is_symmetric(elem.compute_ae(), n)
            assert is_symmetric(elem.compute_be(), n)

    def test_positive_semi_definite(self, elements):
        for elem in elements:
            for M in (elem.compute_ae_matrix(), elem.compute_be_matrix()):
                eig = np.linalg.eigvalsh(0.5 * (M + M.T))
                assert np.all(eig >= -1e-12 * np.max(np.abs(eig)))

    def test_flat_layout(self, elements):
        for elem in elements:
            n = elem.n_nodes
            Ae = elem.compute_ae()
            assert Ae.shape == (n * n,)
            M = elem.compute_ae_matrix()
            for i in range(n):
                for j in range(n):
                    assert Ae[n * i + j] == M[i, j]

    def test_idempotent(self, elements):
        for elem in elements:
            first = elem.compute_ae()
            first[:] = 0.0    # caller mutation must not leak into the element
            assert np.array_equal(elem.compute_ae(), elem.compute_ae())
            assert np.array_equal(elem.compute_be(), elem.compute_be())
            assert np.any(elem.compute_ae() != 0.0)

    def test_concurrent_evaluation(self, distorted_quad):
        elems = [Quad4(distorted_quad * (1.0 + 0.1 * k), [0, 1, 2, 3],
                       0.01, 0.005, 2.5, 1.0) for k in range(16)]
        serial = [e.compute_ae() for e in elems]
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = list(pool.map(lambda e: e.compute_ae(), elems))
        for a, b in zip(serial, parallel):
            assert np.array_equal(a, b)


class TestDegenerateGeometry:

    def test_collapsed_segment(self):
        elem = segment(1.0, 1.0, xs_a=1.0)
        with pytest.raises(DegenerateGeometryError) as exc:
            elem.compute_ae()
        assert exc.value.gauss_point == 0
        with pytest.raises(DegenerateGeometryError):
            elem.compute_be()

    def test_inverted_segment(self):
        with pytest.raises(DegenerateGeometryError) as exc:
            segment(1.0, 0.0).compute_ae()
        assert exc.value.det < 0.0

    def test_collapsed_quad(self):
        nodes = [[0.5, 0.5]] * 4
        elem = Quad4(nodes, [0, 1, 2, 3], 1.0, 0.0, 0.0, 1.0)
        with pytest.raises(DegenerateGeometryError):
            elem.compute_ae()

    def test_zero_area_quad(self):
        nodes = [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]]
        elem = Quad4(nodes, [0, 1, 2, 3], 1.0, 0.0, 0.0, 1.0)
        with pytest.raises(DegenerateGeometryError):
            elem.compute_ae()

    def test_clockwise_quad(self, unit_square):
        elem = Quad4(unit_square[::-1], [0, 1, 2, 3], 1.0, 0.0, 0.0, 1.0)
        with pytest.raises(DegenerateGeometryError):
            elem.compute_be()

    def test_flat_hex(self, unit_cube):
        flat = unit_cube * np.array([1.0, 1.0, 0.0])
        elem = Hex8(flat, range(8), 1.0, 0.0, 0.0, 1.0)
        with pytest.raises(DegenerateGeometryError):
            elem.compute_ae()

    def test_gauss_point_out_of_range(self):
        with pytest.raises(IndexError):
            segment(0.0, 1.0).compute_inverse_jacobian(2)


class TestConstruction:

    def test_wrong_node_count(self):
        with pytest.raises(InvalidTopologyError):
            Segment2([[0.0], [0.5], [1.0]], [0, 1, 2], 0.0, 0.0, 0.0, 1.0)

    def test_index_count_mismatch(self, unit_square):
        with pytest.raises(InvalidTopologyError):
            Quad4(unit_square, [0, 1, 2], 0.0, 0.0, 0.0, 1.0)

    def test_wrong_coordinate_dimension(self):
        with pytest.raises(InvalidTopologyError):
            Quad4([[0.0], [1.0], [2.0], [3.0]], [0, 1, 2, 3], 0.0, 0.0, 0.0, 1.0)

    def test_negative_index(self):
        with pytest.raises(InvalidTopologyError):
            Segment2([[0.0], [1.0]], [-1, 0], 0.0, 0.0, 0.0, 1.0)

    def test_topology_checked_before_material(self):
        with pytest.raises(InvalidTopologyError):
            Segment2([[0.0]], [0], -1.0, 0.0, 0.0, 1.0)

    def test_negative_material(self):
        with pytest.raises(InvalidMaterialError):
            Segment2([[0.0], [1.0]], [0, 1], -0.1, 0.0, 0.0, 1.0)

    def test_parameters_exposed(self):
        elem = Segment2([[0.0], [1.0]], [7, 8], 0.1, 0.2, 2.5, 1.4)
        assert (elem.xs_a, elem.xs_f, elem.nu, elem.d) == (0.1, 0.2, 2.5, 1.4)
        assert elem.node_indexes == (7, 8)

    def test_make_element(self, unit_square):
        mat = DiffusionMaterial(xs_a=0.1, xs_f=0.0, nu=0.0, d=1.0)
        elem = make_element('quad4', unit_square, [3, 4, 5, 6], mat)
        assert isinstance(elem, Quad4)
        assert elem.material == mat
        assert set(ELEMENT_TYPES) == {'segment2', 'quad4', 'hex8'}

    def test_make_element_unknown_type(self, unit_square):
        mat = DiffusionMaterial(xs_a=0.1, xs_f=0.0, nu=0.0, d=1.0)
        with pytest.raises(InvalidTopologyError):
            make_element('tri3', unit_square[:3], [0, 1, 2], mat)
