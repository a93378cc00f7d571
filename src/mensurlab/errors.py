"""
Exceptions raised by mensurlab.

Readers and topology helpers raise before any solving happens, so a bad bore
file never reaches the impedance driver.
"""


class MensurError(Exception):
    """Base class for all mensurlab errors."""


class MensurFormatError(MensurError):
    """A bore file cannot be read (syntax, variables, sections)."""

    def __init__(self, message, path=None, line_no=None):
        self.path = path
        self.line_no = line_no
        where = ""
        if path is not None:
            where = f"{path}"
            if line_no is not None:
                where += f":{line_no}"
            where += ": "
        super().__init__(where + message)


class TopologyError(MensurError):
    """The segment graph violates a structural invariant."""


class RadiationError(MensurError, ValueError):
    """Radiation impedance requested for a non-positive diameter."""
