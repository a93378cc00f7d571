"""
Conversion between frequencies, note numbers and cents.

Note numbers count semitones relative to the reference pitch A4 (base_freq,
440 Hz by default): 0 is A4, 3 is C5, -12 is A3. Functions take scalars or
numpy arrays and return the same kind.
"""

import numpy as np

NOTE_NAMES = ["A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#"]


def _out(x):
    x = np.asarray(x)
    if x.ndim == 0:
        return x.item()
    return x


def note_to_freq(note, base_freq=440):
    return _out(base_freq * np.power(2.0, np.asarray(note, dtype=np.float64) / 12))


def freq_to_note(freq, base_freq=440):
    return _out(12 * np.log2(np.asarray(freq, dtype=np.float64) / base_freq))


def freq_to_note_and_cent(freq, base_freq=440):
    """Nearest note number and the deviation from it in cents."""
    fuzzy = 12 * np.log2(np.asarray(freq, dtype=np.float64) / base_freq)
    note = np.round(fuzzy).astype(int)
    return _out(note), _out((fuzzy - note) * 100)


def note_name(note):
    """Name with octave, e.g. 0 -> A4, 3 -> C5."""
    n = np.round(np.asarray(note, dtype=np.float64)).astype(int) + 48
    octave = (n - 3) // 12 + 1
    names = np.array([NOTE_NAMES[i % 12] + str(o) for i, o in zip(n.flat, octave.flat)]).reshape(n.shape)
    return _out(names)


def cent_diff(freq1, freq2):
    """Interval from freq1 to freq2 in cents."""
    return _out(1200 * np.log2(np.asarray(freq2, dtype=np.float64) / np.asarray(freq1, dtype=np.float64)))
