"""
Pytest unit tests for mensurlab.visualize.
"""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pytest

from mensurlab.mensur import Mensur
from mensurlab.visualize import plot_bore, plot_impedance, plot_mensur_impedance


def horn():
    men = Mensur(comment="horn")
    men.head = men.new_chain([(0.01, 0.01, 0.3), (0.01, 0.05, 0.2), (0.05, 0.0, 0.0)])
    return men


class TestPlots:
    """Smoke tests for the plotting helpers."""

    def test_plot_bore(self):
        fig, ax = plt.subplots()
        assert plot_bore(horn(), ax=ax) is ax
        assert ax.get_title() == "horn"
        plt.close(fig)

    def test_plot_bore_diameter(self):
        fig, ax = plt.subplots()
        plot_bore(horn(), ax=ax, half_bore=False)
        x, d = ax.lines[0].get_data()
        assert list(x) == pytest.approx([0.0, 300.0, 300.0, 500.0])
        assert list(d) == pytest.approx([10.0, 10.0, 10.0, 50.0])
        plt.close(fig)

    def test_plot_impedance_marks_peaks(self):
        freq = np.linspace(0, 500, 501)
        mag = 100 + 20 * np.exp(-((freq - 200) ** 2) / 50)
        fig, ax = plt.subplots()
        plot_impedance(freq, mag, ax=ax)
        px, py = ax.lines[1].get_data()
        assert list(px) == pytest.approx([200.0])
        plt.close(fig)

    def test_plot_mensur_impedance(self):
        freq = np.linspace(0, 500, 51)
        fig = plot_mensur_impedance(horn(), freq, np.ones_like(freq))
        assert len(fig.axes) == 2
        plt.close(fig)
