"""
Temperature dependent properties of air and the calculation switches.

Every solver function receives an AcousticConstants instance instead of reading
module globals, so different sweeps can run with different temperatures.
"""

import math
from enum import IntEnum


class Radiation(IntEnum):
    """Model used for the radiation impedance at an open end."""
    NONE = 0
    PIPE = 1
    BUFFLE = 2


class Damping(IntEnum):
    """Wall loss model used for the wavenumber."""
    NONE = 0
    WALL = 3


NONE = Radiation.NONE
PIPE = Radiation.PIPE
BUFFLE = Radiation.BUFFLE
WALL = Damping.WALL

# ratio of specific heats and Prandtl number of air
GAMMA = 1.4
PRANDTL = 0.72


def _parse_radiation(value):
    if isinstance(value, str):
        try:
            return Radiation[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown radiation model \"{value}\"")
    return Radiation(value)


def _parse_damping(value):
    if isinstance(value, str):
        if value.lower() in ("true", "yes", "on"):
            return Damping.WALL
        if value.lower() in ("false", "no", "off"):
            return Damping.NONE
        try:
            return Damping[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown damping model \"{value}\"")
    # bool, int and Damping members: anything truthy switches wall losses on
    return Damping.WALL if value else Damping.NONE


class AcousticConstants:
    """
    Speed of sound, density and viscosity of air at a given temperature.

    Args:
        temperature: Air temperature in degree Celsius.
        radiation: Radiation model (Radiation member, its name or its value).
        damping: Wall loss model (Damping member, name, value or bool).
        sec_var: Use the section variation transfer matrix for tapers.
    """

    def __init__(self, temperature=24.0, radiation=Radiation.PIPE, damping=Damping.WALL, sec_var=False):
        self.temperature = float(temperature)
        self.radiation = _parse_radiation(radiation)
        self.damping = _parse_damping(damping)
        self.sec_var = bool(sec_var)

        t = self.temperature
        self.c0 = 331.45 * math.sqrt(t / 273.16 + 1)
        self.rho = 1.2929 * (273.16 / (273.16 + t))
        self.rhoc0 = self.rho * self.c0
        self.mu = (18.2 + 0.0456 * (t - 25)) * 1.0e-6
        self.nu = self.mu / self.rho

    @classmethod
    def from_config(cls, config):
        """Build constants from a config dict as returned by mensurlab.app.get_config."""
        return cls(
            temperature=config.get("temperature", 24.0),
            radiation=config.get("rad_calc", Radiation.PIPE),
            damping=config.get("dump_calc", Damping.WALL),
            sec_var=config.get("sec_var_calc", False),
        )

    def copy(self, **overrides):
        args = {
            "temperature": self.temperature,
            "radiation": self.radiation,
            "damping": self.damping,
            "sec_var": self.sec_var,
        }
        args.update(overrides)
        return AcousticConstants(**args)

    def __repr__(self):
        return (f"AcousticConstants(temperature={self.temperature}, radiation={self.radiation.name}, "
                f"damping={self.damping.name}, sec_var={self.sec_var})")
