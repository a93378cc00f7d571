"""
mensurlab: input impedance of wind instrument bores with tone holes, valves and loops.

Import from the root for the main API, e.g.::

    from mensurlab import calcimp, read_mensur, PIPE

    freq, real, imag, mag_db = calcimp("trumpet.men", max_freq=1500, step_freq=1)

Submodules (for more specific imports):

- **acoustical_simulation** – calcimp sweep, impedance tables, get_notes
- **mensur** – Segment and Mensur (bore topology)
- **rejoint** – branch normalization
- **readers** – ZMENSUR (.men) and XMENSUR (.xmen) readers
- **sim** – transfer matrices, radiation, impedance driver, TLM backend
- **constants** – AcousticConstants, radiation and damping models
- **conv** – note/frequency conversion
- **visualize** – bore and impedance plots
- **app** – application shell, config, logging
"""

from .constants import AcousticConstants, Radiation, Damping, NONE, PIPE, BUFFLE, WALL
from .errors import MensurError, MensurFormatError, TopologyError, RadiationError
from .mensur import Mensur, Segment, BranchKind, SideLink
from .rejoint import rejoint
from .readers import read_mensur, parse_zmensur, parse_xmensur
from .acoustical_simulation import (
    acoustical_simulation,
    calcimp,
    get_frequencies,
    magnitude_db,
    impedance_table,
    write_impedance,
    get_notes,
)
from .sim import (
    TransmissionLineModel,
    SolveState,
    input_impedance,
    pressure_distribution,
    radiation_impedance,
    segment_matrix,
)

__all__ = [
    "AcousticConstants",
    "Radiation",
    "Damping",
    "NONE",
    "PIPE",
    "BUFFLE",
    "WALL",
    "MensurError",
    "MensurFormatError",
    "TopologyError",
    "RadiationError",
    "Mensur",
    "Segment",
    "BranchKind",
    "SideLink",
    "rejoint",
    "read_mensur",
    "parse_zmensur",
    "parse_xmensur",
    "acoustical_simulation",
    "calcimp",
    "get_frequencies",
    "magnitude_db",
    "impedance_table",
    "write_impedance",
    "get_notes",
    "TransmissionLineModel",
    "SolveState",
    "input_impedance",
    "pressure_distribution",
    "radiation_impedance",
    "segment_matrix",
]
