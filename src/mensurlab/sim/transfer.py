"""
Transfer matrix of a single bore segment.

The 2x2 matrix M maps pressure p and volume velocity u at the back face of a
segment to the front face: [p_in, u_in] = M @ [p_out, u_out].
"""

import math
import cmath
import numpy as np

from ..constants import Damping, GAMMA, PRANDTL

# below this |kL| the taper formulas divide by ~0, use the cylinder instead
X_MIN = 1.0e-10

IDENTITY = np.array([[1, 0], [0, 1]], dtype=np.complex128)


def wavenumber(freq, d, const):
    """Complex wavenumber in a tube of diameter d, including wall losses if enabled."""
    w = 2 * math.pi * freq
    kw = w / const.c0
    if const.damping == Damping.WALL:
        aa = (1 + (GAMMA - 1) / math.sqrt(PRANDTL)) * math.sqrt(2 * w * const.nu) / const.c0 / d
        return cmath.sqrt(kw * (kw - 2 * (1j - 1) * aa))
    return complex(kw)


def _sec_var_ratio1(seg):
    if seg is None or seg.length <= 0:
        return 0.0, 0.0
    st = (seg.db - seg.df) / 2 / seg.length
    return math.pi * st * seg.df, math.pi * st * seg.db


def section_variation(mensur, i):
    """Rate of change of the cross section at the front and back face of segment i."""
    seg = mensur[i]
    t01, t02 = _sec_var_ratio1(seg)

    t1 = t01
    if seg.prev is not None:
        t1 = (t01 + _sec_var_ratio1(mensur[seg.prev])[1]) / 2

    t2 = t02
    if seg.next is not None:
        t2 = (t02 + _sec_var_ratio1(mensur[seg.next])[0]) / 2

    return t1, t2


def cylinder_matrix(k, length, d, rhoc0):
    x = k * length
    s = math.pi / 4 * d * d
    c = cmath.cos(x)
    sn = cmath.sin(x)
    return np.array([
        [c, 1j * rhoc0 * sn / s],
        [1j * s * sn / rhoc0, c],
    ], dtype=np.complex128)


def taper_matrix(k, length, d1, d2, rhoc0):
    x = k * length
    r1 = d1 / 2
    r2 = d2 / 2
    dr = r2 - r1
    c = cmath.cos(x)
    sn = cmath.sin(x)
    m11 = (r2 * x * c - dr * sn) / (r1 * x)
    m12 = 1j * rhoc0 * sn / (math.pi * r1 * r2)
    m21 = -1j * math.pi * (dr * dr * x * c - (dr * dr + x * x * r1 * r2) * sn) / (k * k * length * length * rhoc0)
    m22 = (r1 * x * c + dr * sn) / (r2 * x)
    return np.array([[m11, m12], [m21, m22]], dtype=np.complex128)


def section_variation_matrix(k, length, d1, d2, t1, t2, rhoc0):
    x = k * length
    s1 = math.pi / 4 * d1 * d1
    s2 = math.pi / 4 * d2 * d2
    ss = math.sqrt(s1 * s2)
    c = cmath.cos(x)
    sn = cmath.sin(x)
    m11 = (2 * k * s2 * c - t2 * sn) / (2 * k * ss)
    m12 = 1j * rhoc0 * sn / ss
    m21 = (-2j * k * (s2 * t1 - s1 * t2) * c + 1j * (4 * k * k * s1 * s2 + t1 * t2) * sn) / (4 * rhoc0 * k * k * ss)
    m22 = (2 * k * s1 * c + t1 * sn) / (2 * k * ss)
    return np.array([[m11, m12], [m21, m22]], dtype=np.complex128)


def segment_matrix(mensur, i, freq, const):
    """
    Transfer matrix of segment i at frequency freq (Hz).

    Zero length segments are the identity. For |kL| below X_MIN the tapered
    and section variation formulas are replaced by the cylinder formula on
    the mean diameter.
    """
    seg = mensur[i]
    if seg.length == 0:
        return IDENTITY.copy()

    d = seg.mean_diameter
    k = wavenumber(freq, d, const)

    if abs(k * seg.length) < X_MIN:
        return cylinder_matrix(k, seg.length, d, const.rhoc0)

    if const.sec_var:
        t1, t2 = section_variation(mensur, i)
        return section_variation_matrix(k, seg.length, seg.df, seg.db, t1, t2, const.rhoc0)

    if seg.is_cylinder:
        return cylinder_matrix(k, seg.length, d, const.rhoc0)
    return taper_matrix(k, seg.length, seg.df, seg.db, const.rhoc0)
