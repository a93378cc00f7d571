"""
Input impedance of a branched bore at a single frequency.

The driver starts at the terminator of a chain and walks back to its head.
At every segment the downstream load (pressure, volume velocity, impedance)
is combined with a side branch if there is one and then carried through the
segment's transfer matrix. Side branches are solved recursively the same way.

All per-frequency values live in a SolveState indexed like the mensur arena,
so the geometry is never written during solving and one mensur can be shared
between independent sweeps.
"""

import cmath
import math
import numpy as np
import pandas as pd

from ..mensur import BranchKind
from .radiation import radiation_impedance
from .transfer import segment_matrix, IDENTITY
from ..constants import Radiation

# 60 dB SPL = 20e-6 Pa * 10^(60/20), the impedance does not depend on it
REFERENCE_PRESSURE = 0.02

INF = complex(math.inf, 0)


class SolveState:
    """Per-call working values, one entry per arena slot."""

    def __init__(self, n):
        self.m = np.zeros((n, 2, 2), dtype=np.complex128)
        self.m[:] = IDENTITY
        self.pi = np.zeros(n, dtype=np.complex128)
        self.ui = np.zeros(n, dtype=np.complex128)
        self.po = np.zeros(n, dtype=np.complex128)
        self.uo = np.zeros(n, dtype=np.complex128)
        self.zi = np.zeros(n, dtype=np.complex128)
        self.zo = np.zeros(n, dtype=np.complex128)
        # admittance 1/zi, 0 at a closed end
        self.y = np.ones(n, dtype=np.complex128)

    @classmethod
    def for_mensur(cls, mensur):
        return cls(len(mensur))


def _is_inf(z):
    return cmath.isinf(z) or cmath.isnan(z)


def parallel(z1, z2):
    """Parallel combination of two impedances; an infinite one is an open circuit."""
    if _is_inf(z1):
        return z2
    if _is_inf(z2):
        return z1
    if z1 + z2 == 0:
        return 0j
    return z1 * z2 / (z1 + z2)


def _load(m, zo):
    """Impedance seen through matrix m when the back face is loaded with zo."""
    if _is_inf(zo):
        # no flow leaves the back face
        if m[1][0] == 0:
            return INF
        return m[0][0] / m[1][0]
    den = m[1][0] * zo + m[1][1]
    if den == 0:
        return INF
    return (m[0][0] * zo + m[0][1]) / den


def transmission_matrix(mensur, state, start, end=None):
    """
    Product of the stored segment matrices from `start` down to `end`.

    `end` defaults to the segment in front of the chain's terminator.
    """
    pm = end
    if pm is None:
        pm = mensur[mensur.last(start)].prev
        if pm is None:
            return IDENTITY.copy()
    z = state.m[pm].copy()
    while pm != start:
        pm = mensur[pm].prev
        z = state.m[pm] @ z
    return z


def _calc_segment(freq, mensur, i, const, state):
    seg = mensur[i]
    nxt = seg.next

    po = state.pi[nxt]
    uo = state.ui[nxt]
    zo = state.zi[nxt]

    if seg.side is not None:
        z = None
        if seg.kind == BranchKind.TONEHOLE:
            z1 = input_impedance(freq, mensur, const, state, start=seg.side, e_ratio=seg.ratio)
            z = parallel(z1, state.zi[nxt])

        elif seg.kind == BranchKind.ADDON and seg.ratio > 0:
            input_impedance(freq, mensur, const, state, start=seg.side)
            m = transmission_matrix(mensur, state, seg.side)
            den = m[0][1] * m[1][0] - (1 - m[0][0]) * (1 - m[1][1])
            z1 = INF if den == 0 else m[0][1] / den
            z1 /= seg.ratio
            z2 = state.zi[nxt] / (1 - seg.ratio)
            z = parallel(z1, z2)

        elif seg.kind == BranchKind.SPLIT and seg.ratio > 0:
            input_impedance(freq, mensur, const, state, start=seg.side)
            m = transmission_matrix(mensur, state, seg.side)
            nm = mensur.join_point(i, seg.side)
            n = transmission_matrix(mensur, state, nxt, nm)

            m11, m12, m21, m22 = m[0][0], m[0][1] / (1 - seg.ratio), m[1][0] * (1 - seg.ratio), m[1][1]
            n11, n12, n21, n22 = n[0][0], n[0][1] / seg.ratio, n[1][0] * seg.ratio, n[1][1]

            after = mensur[nm].next
            z2 = state.zi[after]
            cross = (m12 + n12) * (m21 + n21) - (m11 - n11) * (m22 - n22)
            if _is_inf(z2):
                z = (m12 * n11 + m11 * n12) / cross
            else:
                z = (m12 * n12 + (m12 * n11 + m11 * n12) * z2) / (m22 * n12 + m12 * n22 + cross * z2)
            po = state.pi[after]

        if z is not None:
            if z != 0 and not _is_inf(z):
                uo = po / z
            elif _is_inf(z):
                uo = 0j
            zo = z

    state.po[i] = po
    state.uo[i] = uo
    state.zo[i] = zo

    if seg.length == 0:
        state.m[i] = IDENTITY
        state.pi[i] = po
        state.ui[i] = uo
        state.zi[i] = zo
    else:
        m = segment_matrix(mensur, i, freq, const)
        state.m[i] = m
        state.pi[i] = m[0][0] * po + m[0][1] * uo
        state.ui[i] = m[1][0] * po + m[1][1] * uo
        state.zi[i] = _load(m, zo)

    zi = state.zi[i]
    state.y[i] = 0 if _is_inf(zi) else (INF if zi == 0 else 1 / zi)


def input_impedance(freq, mensur, const, state=None, start=None, e_ratio=1.0):
    """
    Input impedance at the head of the chain containing `start`.

    Args:
        freq: Frequency in Hz (> 0).
        mensur: Normalized Mensur.
        const: AcousticConstants.
        state: SolveState to fill; a fresh one is created if None.
        start: Any segment of the chain to solve, default the backbone head.
        e_ratio: Scale of the end diameter used for the radiation impedance;
            0 closes the end (used for tone holes).

    Returns:
        complex: Acoustic impedance p/u at the head segment.
    """
    if state is None:
        state = SolveState.for_mensur(mensur)
    if start is None:
        start = mensur.head

    pm = mensur.last(start)
    tail = mensur[pm]
    p = REFERENCE_PRESSURE

    if tail.df <= 0 or e_ratio == 0:
        state.pi[pm] = p
        state.ui[pm] = 0
        state.zi[pm] = INF
        state.y[pm] = 0
    else:
        if const.radiation != Radiation.NONE:
            z = radiation_impedance(freq, tail.df * e_ratio, const)
            u = p / z
        else:
            u = 1.0
            p = 0.0
            z = 0j
        state.pi[pm] = p
        state.ui[pm] = u
        state.zi[pm] = z
        state.y[pm] = INF if z == 0 else 1 / z

    while mensur[pm].prev is not None:
        pm = mensur[pm].prev
        _calc_segment(freq, mensur, pm, const, state)

    return complex(state.zi[pm])


def pressure_transfer(mensur, state, start=None):
    """Ratio of the pressure at the terminator to the pressure at the head after a solve."""
    if start is None:
        start = mensur.head
    head = mensur.first(start)
    tail = mensur.last(start)
    if state.pi[head] == 0:
        return 0j
    return complex(state.pi[tail] / state.pi[head])


def pressure_distribution(freq, mensur, const, show_stair=False):
    """
    Sound pressure level along the backbone for a 60 dB excitation at the mouth.

    Solves the impedance first and then walks from the head to the terminator
    through the inverse segment matrices.

    Returns:
        pd.DataFrame: Columns x (mm from the mouth) and level (dB), one row per segment face.
    """
    state = SolveState.for_mensur(mensur)
    input_impedance(freq, mensur, const, state)

    levels = []
    x = 0.0
    p = complex(REFERENCE_PRESSURE)
    for i in mensur.chain():
        seg = mensur[i]
        mag = 20 * math.log10(abs(p)) if p != 0 else -math.inf
        levels.append((x * 1000, mag))
        x += seg.length
        if show_stair and seg.next is not None and seg.db != mensur[seg.next].df:
            levels.append((x * 1000, mag))
            levels.append((x * 1000, mag))

        zi = state.zi[i]
        u = 0j if _is_inf(zi) or zi == 0 else p / zi
        m = state.m[i]
        det = m[0][0] * m[1][1] - m[0][1] * m[1][0]
        p = (m[1][1] * p - m[0][1] * u) / det
    return pd.DataFrame(levels, columns=["x", "level"])
