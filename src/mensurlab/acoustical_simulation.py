"""
Acoustical simulation entry point for mensurlab.

This module provides the caller-facing sweep: read or take a Mensur, run the
transmission-line model over a frequency grid and return frequency, real and
imaginary part and magnitude in dB of the input impedance. It also turns
impedance spectra into tables of resonances (notes) and writes them to the
.imp CSV format.
"""

import logging
import numpy as np
import pandas as pd
from scipy.signal import argrelextrema

from .constants import AcousticConstants, Radiation
from .conv import freq_to_note_and_cent, note_name
from .mensur import Mensur
from .readers import read_mensur
from .rejoint import rejoint, needs_rejoint
from .sim.sim_interface import AcousticSimulationInterface

IMP_COLUMNS = ["freq", "imp.real", "imp.imag", "mag"]


def acoustical_simulation(
    mensur: Mensur,
    frequencies: np.ndarray,
    const: AcousticConstants = None,
    simulation_method: str = "tlm",
    transfer: bool = False,
):
    """
    Compute the complex input impedance of a normalized mensur at the given frequencies.

    Args:
        mensur: Normalized bore (see mensurlab.rejoint).
        frequencies: 1D array of frequencies in Hz.
        const: Acoustic constants; defaults to AcousticConstants().
        simulation_method: Backend name. Only `"tlm"` (transmission-line model) exists.
        transfer: Return the pressure transfer ratio p_end/p_mouth instead of the impedance.

    Returns:
        np.ndarray: complex values, same length as `frequencies`; 0 at 0 Hz.

    Raises:
        Exception: If `simulation_method` is unknown.

    Example:
        >>> from mensurlab.mensur import Mensur
        >>> men = Mensur()
        >>> men.head = men.new_chain([(0.015, 0.015, 0.5), (0.015, 0.0, 0.0)])
        >>> z = acoustical_simulation(men, np.array([0.0, 100.0]))
        >>> complex(z[0])
        0j
    """
    if simulation_method == "tlm":
        from .sim.tlm import TransmissionLineModel
        simulator = TransmissionLineModel(const=const, transfer=transfer)
    else:
        raise Exception(f"Unknown simulation backend \"{simulation_method}\"")
    return simulate(simulator, mensur, frequencies)


def simulate(simulator: AcousticSimulationInterface, mensur: Mensur, frequencies: np.ndarray):
    return simulator.get_impedance_spectrum(mensur, frequencies)


def get_frequencies(max_freq=2000.0, step_freq=2.5, num_freq=0):
    """
    Evenly spaced frequency grid starting at 0 Hz.

    With num_freq > 0 the step is max_freq / num_freq and the grid has
    num_freq + 1 points ending at max_freq. Otherwise it runs in steps of
    step_freq up to (and including, when it falls on the grid) max_freq.
    """
    if num_freq > 0:
        step_freq = max_freq / num_freq
        n = int(num_freq) + 1
    else:
        if step_freq <= 0:
            raise ValueError(f"step_freq must be positive, got {step_freq}")
        n = int(np.floor(max_freq / step_freq + 1e-9)) + 1
    return np.arange(n) * step_freq


def magnitude_db(z):
    """
    10*log10(re^2 + im^2) per sample.

    Samples whose squared magnitude is not positive (the 0 Hz sample) keep
    the raw squared magnitude instead of a dB value.
    """
    z = np.asarray(z, dtype=np.complex128)
    mag = z.real ** 2 + z.imag ** 2
    out = mag.copy()
    positive = mag > 0
    out[positive] = 10 * np.log10(mag[positive])
    return out


def specific_impedance(impedance, mensur: Mensur):
    """Multiply an acoustic impedance by the mouth cross section of the bore."""
    d = mensur[mensur.head].df
    return np.asarray(impedance) * np.pi * d * d / 4


def _as_mensur(source):
    if isinstance(source, Mensur):
        mensur = source.validate()
        if needs_rejoint(mensur) > 0:
            mensur = rejoint(mensur)
        return mensur
    return read_mensur(source)


def calcimp(
    source,
    max_freq=2000.0,
    step_freq=2.5,
    num_freq=0,
    temperature=24.0,
    rad_calc=Radiation.PIPE,
    dump_calc=True,
    sec_var_calc=False,
    transfer=False,
    progress=False,
):
    """
    Calculate the input impedance of a bore over a frequency sweep.

    Args:
        source: Path to a .men/.xmen file or a Mensur.
        max_freq: Maximum frequency in Hz.
        step_freq: Frequency step in Hz.
        num_freq: Number of frequency steps; overrides step_freq if > 0.
        temperature: Air temperature in degree Celsius.
        rad_calc: Radiation model, Radiation.NONE, PIPE or BUFFLE.
        dump_calc: Enable wall losses.
        sec_var_calc: Use the section variation transfer matrix.
        transfer: Compute the pressure transfer ratio instead of the impedance.
        progress: Show a tqdm progress bar.

    Returns:
        tuple: (freq, real, imag, mag_db) numpy arrays of equal length.

    Raises:
        MensurFormatError, TopologyError: The bore cannot be read or solved.

    Example:
        >>> freq, real, imag, mag_db = calcimp("trumpet.men", max_freq=1000, step_freq=5)
    """
    from .sim.tlm import TransmissionLineModel

    mensur = _as_mensur(source)
    const = AcousticConstants(temperature=temperature, radiation=rad_calc, damping=dump_calc, sec_var=sec_var_calc)
    freq = get_frequencies(max_freq, step_freq, num_freq)

    logging.info(f"calcimp: {len(freq)} frequencies up to {freq[-1]:.1f} Hz, {const}")
    simulator = TransmissionLineModel(const=const, transfer=transfer, progress=progress)
    z = simulate(simulator, mensur, freq)

    return freq, z.real.copy(), z.imag.copy(), magnitude_db(z)


def impedance_table(freq, real, imag, mag):
    """The four calcimp arrays as a DataFrame with the .imp column names."""
    return pd.DataFrame({
        "freq": freq,
        "imp.real": real,
        "imp.imag": imag,
        "mag": mag,
    }, columns=IMP_COLUMNS)


def write_impedance(path, table):
    """Write an impedance table as .imp CSV (header freq,imp.real,imp.imag,mag)."""
    table.to_csv(path, index=False, columns=IMP_COLUMNS)
    logging.info(f"wrote {len(table)} rows to {path}")


def read_impedance(path):
    return pd.read_csv(path)


# get a pandas table about the notes from the resonant spectrum
# you can pass a different base_freq for alternative, non-440 hz tuning
def get_notes(freqs, impedances, base_freq=440):
    """
    Build a table of notes from the resonant peaks of an impedance spectrum.

    Detects local maxima in the impedance magnitude, converts their
    frequencies to note names and cent deviations from the nearest semitone.

    Args:
        freqs: 1D array of frequencies in Hz.
        impedances: 1D array of impedance magnitudes or complex impedances.
        base_freq: Reference frequency in Hz for note conversion (default 440).

    Returns:
        pd.DataFrame: Columns note_name, cent_diff, note_nr, freq, impedance,
            rel_imp (impedance relative to the largest peak).
    """
    freqs = np.asarray(freqs)
    impedances = np.abs(np.asarray(impedances))
    extrema = argrelextrema(impedances, np.greater)
    peak_freqs = freqs[extrema]
    note_and_cent = [freq_to_note_and_cent(f, base_freq=base_freq) for f in peak_freqs]

    peaks = pd.DataFrame({
        "note_name": [note_name(n[0]) for n in note_and_cent],
        "cent_diff": [n[1] for n in note_and_cent],
        "note_nr": [n[0] for n in note_and_cent],
        "freq": peak_freqs,
        "impedance": impedances[extrema],
    })
    peaks["rel_imp"] = peaks.impedance / peaks.impedance.max()
    return peaks
