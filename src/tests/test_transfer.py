"""
Pytest unit tests for mensurlab.sim.transfer.
"""

import math
import cmath
import pytest
import numpy as np

from mensurlab.constants import AcousticConstants, Damping
from mensurlab.mensur import Mensur
from mensurlab.sim.transfer import (
    wavenumber,
    cylinder_matrix,
    taper_matrix,
    section_variation,
    segment_matrix,
)


def make_pipe(rows):
    men = Mensur()
    men.head = men.new_chain(rows)
    return men


def det(m):
    return m[0][0] * m[1][1] - m[0][1] * m[1][0]


LOSSLESS = AcousticConstants(temperature=24, damping=Damping.NONE)
LOSSY = AcousticConstants(temperature=24, damping=Damping.WALL)


class TestWavenumber:
    """Tests for wavenumber."""

    def test_lossless_is_real(self):
        k = wavenumber(100.0, 0.01, LOSSLESS)
        assert k == pytest.approx(2 * math.pi * 100.0 / LOSSLESS.c0)
        assert k.imag == 0

    def test_wall_losses(self):
        kw = 2 * math.pi * 100.0 / LOSSY.c0
        k = wavenumber(100.0, 0.01, LOSSY)
        assert k.real > kw
        assert k.imag < 0

    def test_losses_grow_in_narrow_tubes(self):
        assert abs(wavenumber(100.0, 0.005, LOSSY).imag) > abs(wavenumber(100.0, 0.02, LOSSY).imag)


class TestCylinderMatrix:
    """Tests for cylinder_matrix."""

    def test_symmetric_and_unimodular(self):
        k = wavenumber(300.0, 0.012, LOSSY)
        m = cylinder_matrix(k, 0.3, 0.012, LOSSY.rhoc0)
        assert m[0][0] == pytest.approx(m[1][1])
        assert det(m) == pytest.approx(1.0)

    def test_quarter_wave(self):
        length = 0.5
        freq = LOSSLESS.c0 / (4 * length)
        k = wavenumber(freq, 0.01, LOSSLESS)
        m = cylinder_matrix(k, length, 0.01, LOSSLESS.rhoc0)
        s = math.pi / 4 * 0.01 ** 2
        assert abs(m[0][0]) < 1e-12
        assert m[0][1] == pytest.approx(1j * LOSSLESS.rhoc0 / s)


class TestTaperMatrix:
    """Tests for taper_matrix."""

    def test_unimodular(self):
        k = wavenumber(250.0, 0.015, LOSSY)
        m = taper_matrix(k, 0.4, 0.01, 0.02, LOSSY.rhoc0)
        assert det(m) == pytest.approx(1.0)

    def test_nearly_cylindrical_matches_cylinder(self):
        k = wavenumber(250.0, 0.01, LOSSLESS)
        taper = taper_matrix(k, 0.4, 0.01, 0.01 * (1 + 1e-9), LOSSLESS.rhoc0)
        cyl = cylinder_matrix(k, 0.4, 0.01, LOSSLESS.rhoc0)
        assert np.allclose(taper, cyl, rtol=1e-6)


class TestSegmentMatrix:
    """Tests for segment_matrix."""

    def test_zero_length_is_identity(self):
        men = make_pipe([(0.01, 0.02, 0.0), (0.02, 0.0, 0.0)])
        for const in (LOSSY, LOSSLESS, LOSSY.copy(sec_var=True, temperature=-10)):
            for freq in (0.0, 1.0, 500.0, 20000.0):
                assert np.array_equal(segment_matrix(men, men.head, freq, const), np.eye(2))

    def test_zero_frequency_taper_falls_back(self):
        men = make_pipe([(0.01, 0.02, 0.2), (0.02, 0.0, 0.0)])
        m = segment_matrix(men, men.head, 0.0, LOSSY)
        assert np.all(np.isfinite(m))
        assert m[0][0] == pytest.approx(1.0)
        assert m[1][1] == pytest.approx(1.0)

    def test_scaled_bore_keeps_determinant(self):
        men = make_pipe([(0.01, 0.02, 0.2), (0.02, 0.0, 0.0)])
        big = men.scale(3)
        for mensur in (men, big):
            m = segment_matrix(mensur, mensur.head, 400.0, LOSSY)
            assert det(m) == pytest.approx(1.0)

    def test_cylinder_uses_cylinder_formula(self):
        men = make_pipe([(0.012, 0.012, 0.3), (0.012, 0.0, 0.0)])
        k = wavenumber(300.0, 0.012, LOSSY)
        expected = cylinder_matrix(k, 0.3, 0.012, LOSSY.rhoc0)
        assert np.allclose(segment_matrix(men, men.head, 300.0, LOSSY), expected)


class TestSectionVariation:
    """Tests for the section variation matrix."""

    def test_cylinder_has_no_variation(self):
        men = make_pipe([(0.012, 0.012, 0.3), (0.012, 0.0, 0.0)])
        assert section_variation(men, men.head) == (0.0, 0.0)

    def test_cylinder_matches_plain_matrix(self):
        men = make_pipe([(0.012, 0.012, 0.3), (0.012, 0.0, 0.0)])
        const = LOSSY.copy(sec_var=True)
        plain = segment_matrix(men, men.head, 300.0, LOSSY)
        sec_var = segment_matrix(men, men.head, 300.0, const)
        assert np.allclose(sec_var, plain)

    def test_averages_with_neighbours(self):
        men = make_pipe([(0.010, 0.010, 0.1), (0.010, 0.020, 0.1), (0.020, 0.0, 0.0)])
        second = men[men.head].next
        t1, t2 = section_variation(men, second)
        st = (0.020 - 0.010) / 2 / 0.1
        assert t1 == pytest.approx(math.pi * st * 0.010 / 2)
        assert t2 == pytest.approx(math.pi * st * 0.020 / 2)

    def test_taper_stays_finite(self):
        men = make_pipe([(0.010, 0.020, 0.2), (0.020, 0.0, 0.0)])
        const = LOSSY.copy(sec_var=True)
        m = segment_matrix(men, men.head, 300.0, const)
        assert np.all(np.isfinite(m))
        assert not cmath.isnan(det(m))
