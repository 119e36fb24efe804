"""
Biometric Estimator
Per-frame SpO2, HR, respiratory rate, HRV, ECG morphology and PTT

Every estimator works on the conditioned sequences of a single frame and
returns a fixed fallback value on degenerate input instead of raising.
The formulas are placeholders and are not clinically validated.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import MonitorConfig
from .detectors import PanTompkinsDetector, ThresholdBeatDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ECGFeatures:
    """Mean ECG morphology over the detected beats of one frame"""
    qrs_duration: float  # seconds
    st_amplitude: float  # signal units


@dataclass(frozen=True)
class Biometrics:
    """Estimator outputs for one frame"""
    spo2: float
    heart_rate: float
    resp_rate: float
    hrv: float
    ecg_features: ECGFeatures
    ptt: float


def _config(config: Optional[MonitorConfig]) -> MonitorConfig:
    return config if config else MonitorConfig()


def heart_rate(ecg, config: Optional[MonitorConfig] = None) -> float:
    """BPM from the mean interval between threshold-detector peaks"""
    config = _config(config)
    ecg = np.asarray(ecg, dtype=float)
    if len(ecg) <= config.min_samples:
        logger.debug("Heart rate: too few samples, using fallback")
        return config.fallback_heart_rate

    peaks = ThresholdBeatDetector(config).detect(ecg)
    if len(peaks) < 2:
        logger.debug(f"Heart rate: {len(peaks)} peak(s), using fallback")
        return config.fallback_heart_rate

    avg_interval = float(np.mean(np.diff(peaks)))
    avg_rr_sec = avg_interval / config.sample_rate
    return 60.0 / avg_rr_sec


def spo2(ppg, config: Optional[MonitorConfig] = None) -> float:
    """SpO2 from the PPG AC/DC ratio: ``110 - 25 * (max - min) / mean``.

    Not clamped. A zero mean is not guarded: 0/0 gives NaN and x/0 gives
    +/-inf.
    """
    config = _config(config)
    ppg = np.asarray(ppg, dtype=float)
    if len(ppg) <= config.min_samples:
        logger.debug("SpO2: too few samples, using fallback")
        return config.fallback_spo2

    dc = np.mean(ppg)
    ac = np.max(ppg) - np.min(ppg)
    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = ac / dc
    if not np.isfinite(ratio):
        logger.warning(f"SpO2 ratio undefined (ac={ac:.3f}, dc={dc:.3f})")

    return float(110.0 - 25.0 * ratio)


def respiratory_rate(ecg, config: Optional[MonitorConfig] = None) -> float:
    """Breaths/min from the strongest spectral bin in the respiratory band.

    The FFT length is the largest power of two not exceeding the number of
    samples. At 100 Hz the band only resolves for 1024+ samples, so nominal
    100-sample frames return the fallback.
    """
    config = _config(config)
    ecg = np.asarray(ecg, dtype=float)
    n = len(ecg)
    if n <= 1:
        return config.fallback_resp_rate

    fft_size = 1 << int(math.floor(math.log2(n)))
    magnitudes = np.abs(np.fft.rfft(ecg[:fft_size]))[:fft_size // 2]

    freq_resolution = config.sample_rate / fft_size
    low, high = config.resp_band
    min_index = int(math.ceil(low / freq_resolution))
    max_index = int(math.floor(high / freq_resolution))
    if not (min_index < len(magnitudes) and max_index < len(magnitudes) and max_index > min_index):
        logger.debug(f"Respiratory band empty at FFT size {fft_size}, using fallback")
        return config.fallback_resp_rate

    band = magnitudes[min_index:max_index + 1]
    peak_freq = (int(np.argmax(band)) + min_index) * freq_resolution
    return float(peak_freq * 60.0)


def hrv_rmssd(ecg, config: Optional[MonitorConfig] = None) -> float:
    """RMSSD (ms) of Pan-Tompkins RR intervals"""
    config = _config(config)
    peaks = PanTompkinsDetector(config).detect(ecg)
    if len(peaks) < 3:
        logger.debug(f"HRV: {len(peaks)} peak(s), using fallback")
        return config.fallback_hrv

    rr_intervals = np.diff(peaks) / config.sample_rate
    successive_diffs = np.diff(rr_intervals)
    return float(math.sqrt(np.mean(successive_diffs ** 2)) * 1000.0)


def find_q_and_s(ecg, r_index: int, config: Optional[MonitorConfig] = None):
    """Locate the Q and S minima around an R-peak.

    Returns:
        Tuple of (q_index, s_index, q_value, s_value)
    """
    config = _config(config)
    search = config.samples(config.qs_search_s)

    q_index, q_value = r_index, ecg[r_index]
    for i in range(max(r_index - search, 0), r_index):
        if ecg[i] < q_value:
            q_index, q_value = i, ecg[i]

    s_index, s_value = r_index, ecg[r_index]
    for i in range(r_index, min(r_index + search, len(ecg) - 1) + 1):
        if ecg[i] < s_value:
            s_index, s_value = i, ecg[i]

    return q_index, s_index, q_value, s_value


def ecg_features(ecg, config: Optional[MonitorConfig] = None) -> ECGFeatures:
    """Mean QRS duration and ST amplitude over Pan-Tompkins beats"""
    config = _config(config)
    ecg = np.asarray(ecg, dtype=float)
    r_peaks = PanTompkinsDetector(config).detect(ecg)
    if not r_peaks:
        return ECGFeatures(qrs_duration=0.0, st_amplitude=0.0)

    st_offset = config.samples(config.st_offset_s)
    qrs_durations = []
    st_amplitudes = []
    for r_index in r_peaks:
        q_index, s_index, _, _ = find_q_and_s(ecg, r_index, config)
        qrs_durations.append((s_index - q_index) / config.sample_rate)

        st_index = s_index + st_offset
        if st_index < len(ecg):
            st_amplitudes.append(ecg[st_index])

    return ECGFeatures(
        qrs_duration=float(np.mean(qrs_durations)) if qrs_durations else 0.0,
        st_amplitude=float(np.mean(st_amplitudes)) if st_amplitudes else 0.0,
    )


def pulse_transit_time(ecg, ppg, config: Optional[MonitorConfig] = None) -> float:
    """Seconds from the first ECG R-peak to the following PPG foot"""
    config = _config(config)
    ecg = np.asarray(ecg, dtype=float)
    ppg = np.asarray(ppg, dtype=float)

    # 1) First major R-peak in the ECG
    if len(ecg) == 0 or np.max(ecg) <= 0:
        return config.fallback_ptt
    r_index = ThresholdBeatDetector(config, config.ptt_threshold_ratio).first_peak(ecg)
    if r_index is None:
        return config.fallback_ptt

    # 2) Foot of the PPG pulse: running minimum after the R-peak
    start = r_index + 1
    if len(ppg) - start <= 2:
        return config.fallback_ptt

    min_val = ppg[start]
    foot_index = start
    for i in range(start, len(ppg) - 1):
        if ppg[i] < min_val and ppg[i] < ppg[i + 1]:
            min_val = ppg[i]
            foot_index = i

    return (foot_index - r_index) / config.sample_rate


def compute_biometrics(ecg, ppg, config: Optional[MonitorConfig] = None) -> Biometrics:
    """Run every estimator on one frame's conditioned signals"""
    config = _config(config)
    return Biometrics(
        spo2=spo2(ppg, config),
        heart_rate=heart_rate(ecg, config),
        resp_rate=respiratory_rate(ecg, config),
        hrv=hrv_rmssd(ecg, config),
        ecg_features=ecg_features(ecg, config),
        ptt=pulse_transit_time(ecg, ppg, config),
    )
