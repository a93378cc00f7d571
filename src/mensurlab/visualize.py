"""
Plots of bore profiles and impedance curves.

- plot_bore: half cross-section of the backbone
- plot_impedance: magnitude in dB over frequency, resonances marked
- plot_mensur_impedance: both in one figure
"""

import numpy as np
import matplotlib.pyplot as plt
from scipy.signal import argrelextrema


def plot_bore(mensur, ax=None, half_bore=True, **kwargs):
    """
    Plot the backbone of a mensur: position along the bore (mm) vs diameter (mm).

    Args:
        mensur: Mensur to draw.
        ax: Matplotlib axes. If None, the current axes are used.
        half_bore: Plot +-d/2 around the axis instead of the diameter.
        **kwargs: Passed to fill_between/plot (e.g. color, label).

    Returns:
        matplotlib axes used.
    """
    if ax is None:
        ax = plt.gca()
    x = []
    d = []
    pos = 0.0
    for df, db, length, comment in mensur.rows():
        if length == 0:
            continue
        x += [pos, pos + length]
        d += [df, db]
        pos += length
    x = np.array(x)
    d = np.array(d)
    if half_bore:
        r = d / 2
        ax.fill_between(x, -r, r, **kwargs)
        ax.vlines(x, -r, r, colors="lightgray", linewidth=0.5)
        ax.set_aspect("equal")
        ax.set_yticks([])
    else:
        ax.plot(x, d, **kwargs)
    ax.set_xlabel("Position (mm)")
    ax.set_title(mensur.comment or "Bore")
    return ax


def plot_impedance(freq, mag_db, ax=None, mark_peaks=True, **kwargs):
    """Plot an impedance magnitude curve in dB; the 0 Hz sample is skipped."""
    if ax is None:
        ax = plt.gca()
    freq = np.asarray(freq)
    mag_db = np.asarray(mag_db)
    keep = freq > 0
    ax.plot(freq[keep], mag_db[keep], **kwargs)
    if mark_peaks:
        peaks = argrelextrema(mag_db[keep], np.greater)[0]
        ax.plot(freq[keep][peaks], mag_db[keep][peaks], "x", color="red")
    ax.set_xlabel("Frequency (Hz)")
    ax.set_ylabel("|Z| (dB)")
    ax.grid(True, alpha=0.3)
    return ax


def plot_mensur_impedance(mensur, freq, mag_db, figsize=(12, 6)):
    """Figure with the bore on top and its impedance curve below."""
    fig, axes = plt.subplots(2, 1, figsize=figsize)
    plot_bore(mensur, ax=axes[0])
    plot_impedance(freq, mag_db, ax=axes[1])
    fig.tight_layout()
    return fig
