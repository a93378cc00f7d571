from .sim_interface import AcousticSimulationInterface
from .tlm import TransmissionLineModel
from .impedance import SolveState, input_impedance, transmission_matrix, pressure_distribution, pressure_transfer
from .radiation import radiation_impedance
from .transfer import segment_matrix, wavenumber
