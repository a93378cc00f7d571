"""
Abstract interface for acoustic simulation backends in mensurlab.

Any simulator implements get_impedance_spectrum(mensur, frequencies).
"""

from abc import ABC, abstractmethod
import numpy as np

from ..mensur import Mensur


class AcousticSimulationInterface(ABC):
    """Interface for computing the input impedance spectrum of a bore."""

    @abstractmethod
    def get_impedance_spectrum(self, mensur: Mensur, frequencies: np.array) -> np.array:
        """Return complex impedance values at each frequency in Hz for the given mensur."""
        pass
