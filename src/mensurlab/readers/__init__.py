"""
Bore file readers.

`read_mensur` picks the dialect by file extension (.xmen is XMENSUR, anything
else ZMENSUR), validates the topology and normalizes the branches.
"""

import os
import logging

from ..errors import MensurFormatError
from ..rejoint import rejoint
from .zmensur import read_zmensur, parse_zmensur
from .xmensur import read_xmensur, parse_xmensur
from .branches import resolve_branches


def read_mensur(path, normalize=True):
    """
    Read a .men or .xmen file into a validated Mensur.

    Args:
        path: File path.
        normalize: Apply rejoint so the result can be solved directly.

    Raises:
        MensurFormatError: The file is missing or malformed.
        TopologyError: The branches do not form a valid network.
    """
    if not os.path.isfile(path):
        raise MensurFormatError("file not found", path)

    if os.path.splitext(path)[1].lower() == ".xmen":
        mensur = read_xmensur(path)
    else:
        mensur = read_zmensur(path)

    mensur.validate()
    if normalize:
        mensur = rejoint(mensur).validate()
    logging.debug(f"{path}: {mensur.count()} backbone segments, {mensur.total_length() * 1000:.1f} mm")
    return mensur
