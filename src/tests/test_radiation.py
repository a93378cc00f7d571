"""
Pytest unit tests for mensurlab.sim.radiation.
"""

import math
import pytest

from mensurlab.constants import AcousticConstants, Radiation
from mensurlab.errors import RadiationError
from mensurlab.sim.radiation import radiation_impedance


class TestRadiationImpedance:
    """Tests for radiation_impedance."""

    def test_none_is_zero(self):
        const = AcousticConstants(radiation=Radiation.NONE)
        assert radiation_impedance(500.0, 0.02, const) == 0

    def test_pipe_scales_buffle(self):
        buffle = radiation_impedance(500.0, 0.02, AcousticConstants(radiation=Radiation.BUFFLE))
        pipe = radiation_impedance(500.0, 0.02, AcousticConstants(radiation=Radiation.PIPE))
        assert pipe.real == pytest.approx(0.5 * buffle.real)
        assert pipe.imag == pytest.approx(0.7 * buffle.imag)

    def test_low_frequency_limit(self):
        const = AcousticConstants(radiation=Radiation.BUFFLE)
        d = 0.02
        a = d / 2
        ka = 0.01
        freq = ka / a * const.c0 / (2 * math.pi)
        z = radiation_impedance(freq, d, const)
        zc = const.rhoc0 / (math.pi * a * a)
        assert z.real == pytest.approx(zc * ka * ka / 2, rel=1e-3)
        assert z.imag == pytest.approx(zc * 8 * ka / (3 * math.pi), rel=1e-3)

    def test_positive_resistance(self):
        z = radiation_impedance(1000.0, 0.1, AcousticConstants())
        assert z.real > 0
        assert z.imag > 0

    def test_zero_diameter_raises(self):
        with pytest.raises(RadiationError, match="positive diameter"):
            radiation_impedance(500.0, 0.0, AcousticConstants())

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            radiation_impedance(500.0, -0.01, AcousticConstants(radiation=Radiation.NONE))
