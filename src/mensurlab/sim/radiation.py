"""
Radiation impedance of an open end.

Computed as a piston in an infinite baffle (Bessel J1 and Struve H1). The
unflanged pipe is approximated by scaling the real part by 0.5 and the
imaginary part by 0.7.
"""

import math
from scipy.special import j1, struve

from ..constants import Radiation
from ..errors import RadiationError


def radiation_impedance(freq, d, const):
    """
    Acoustic radiation impedance (p/u) of an opening with diameter d (m).

    Args:
        freq: Frequency in Hz, must be > 0.
        d: Diameter of the opening in m.
        const: AcousticConstants; `const.radiation` selects the model.

    Returns:
        complex: Radiation impedance, 0 for Radiation.NONE.

    Raises:
        RadiationError: If d is not positive.
    """
    if d <= 0:
        raise RadiationError(f"radiation impedance needs a positive diameter, got {d}")

    if const.radiation == Radiation.NONE:
        return 0j

    k = 2 * math.pi * freq / const.c0
    a = 0.5 * d
    x = k * d
    s = math.pi * a * a

    re = const.rhoc0 / s * (1 - j1(x) / (k * a))
    im = const.rhoc0 / s * struve(1, x) / (k * a)

    if const.radiation == Radiation.BUFFLE:
        return complex(re, im)
    return complex(0.5 * re, 0.7 * im)
