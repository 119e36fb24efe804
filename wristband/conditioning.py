"""
Signal conditioning for raw ECG/PPG sections
Biquad bandpass followed by a centred moving average
"""

import numpy as np
from scipy import signal

from .config import BANDPASS_COEFFS, QRS_BANDPASS_COEFFS, MonitorConfig


def biquad_filter(data, b0, b1, b2, a1, a2):
    """Second-order IIR section, direct form II with zero initial state.

    w[n] = x[n] - a1*w[n-1] - a2*w[n-2]
    y[n] = b0*w[n] + b1*w[n-1] + b2*w[n-2]
    """
    return signal.lfilter([b0, b1, b2], [1.0, a1, a2], np.asarray(data, dtype=float))


def bandpass_filter(data, coeffs=BANDPASS_COEFFS):
    """Baseline-wander / HF-noise bandpass; bypassed for 2 samples or fewer"""
    data = np.asarray(data, dtype=float)
    if len(data) <= 2:
        return data
    return biquad_filter(data, *coeffs)


def qrs_bandpass_filter(data, coeffs=QRS_BANDPASS_COEFFS):
    """QRS-emphasis bandpass (~5-15 Hz at 100 Hz); bypassed for 2 samples or fewer"""
    return bandpass_filter(data, coeffs)


def moving_average(data, window):
    """Centred moving average with zeroed edges.

    Output has the input's length. Each window lying fully inside the data
    writes its mean at ``start + window // 2``; positions no window is
    centred on stay 0.
    """
    data = np.asarray(data, dtype=float)
    output = np.zeros(len(data))
    if window <= 0 or len(data) < window:
        return output

    means = np.convolve(data, np.ones(window), mode='valid') / window
    half = window // 2
    output[half:half + len(means)] = means
    return output


def smooth(data, window=5):
    """Moving-average smoother; sequences no longer than the window pass through"""
    data = np.asarray(data, dtype=float)
    if len(data) <= window:
        return data
    return moving_average(data, window)


def denoise(data, config: MonitorConfig = None):
    """Bandpass then smooth one waveform"""
    config = config if config else MonitorConfig()
    return smooth(bandpass_filter(data, config.bandpass_coeffs), config.smoothing_window)


def condition(ecg, ppg, config: MonitorConfig = None):
    """Condition ECG and PPG independently; returns (filtered_ecg, filtered_ppg)"""
    return denoise(ecg, config), denoise(ppg, config)
