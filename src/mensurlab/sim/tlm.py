"""
Transmission-line model (TLM) of a branched bore.

Sweeps the input impedance driver in mensurlab.sim.impedance over a set of
frequencies. One SolveState is allocated per sweep and overwritten at every
frequency.
"""

import numpy as np
from tqdm import tqdm

from ..mensur import Mensur
from ..constants import AcousticConstants
from .sim_interface import AcousticSimulationInterface
from .impedance import SolveState, input_impedance, pressure_transfer


class TransmissionLineModel(AcousticSimulationInterface):
    """
    TLM simulator for normalized mensurs.

    Args:
        const: AcousticConstants, defaults to 24 degree Celsius, PIPE radiation and wall losses.
        transfer: Return the pressure transfer ratio p_end/p_mouth instead of the impedance.
        progress: Show a tqdm progress bar.
    """

    def __init__(self, const=None, transfer=False, progress=False):
        self.const = const if const is not None else AcousticConstants()
        self.transfer = transfer
        self.progress = progress

    def get_impedance_spectrum(self, mensur: Mensur, frequencies: np.array) -> np.array:
        """Complex impedance (or transfer ratio) per frequency; 0 Hz yields 0."""
        frequencies = np.asarray(frequencies, dtype=np.float64)
        result = np.zeros(len(frequencies), dtype=np.complex128)
        state = SolveState.for_mensur(mensur)

        it = enumerate(frequencies)
        if self.progress:
            it = tqdm(it, total=len(frequencies))
        for i, f in it:
            if f == 0:
                continue
            z = input_impedance(f, mensur, self.const, state)
            if self.transfer:
                z = pressure_transfer(mensur, state)
            result[i] = z
        return result
