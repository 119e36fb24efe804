"""
Beat detectors

Two strategies coexist and feed different estimators:
- ThresholdBeatDetector: fixed fraction of the frame maximum + refractory gap
  (heart rate, PTT R-peak)
- PanTompkinsDetector: bandpass / derivative / square / integrate with
  adaptive signal and noise levels (HRV, ECG morphology)

They are never merged: each estimator consumes only its own detector's
peaks.
"""

from typing import List, Optional

import numpy as np

from .config import MonitorConfig
from .conditioning import moving_average, qrs_bandpass_filter


class BeatDetector:
    """Finds beat (R-peak) sample indices in one frame's signal"""

    name = "base"

    def __init__(self, config: Optional[MonitorConfig] = None):
        self.config = config if config else MonitorConfig()

    def detect(self, data) -> List[int]:
        """Return strictly increasing peak indices"""
        raise NotImplementedError

    def __repr__(self):
        return f"<{self.__class__.__name__}(fs={self.config.sample_rate})>"


class ThresholdBeatDetector(BeatDetector):
    """Local maxima above ``ratio * max(signal)`` separated by a refractory gap"""

    name = "threshold"

    def __init__(self, config: Optional[MonitorConfig] = None,
                 threshold_ratio: Optional[float] = None):
        super().__init__(config)
        self.threshold_ratio = (threshold_ratio if threshold_ratio is not None
                                else self.config.hr_threshold_ratio)
        self.refractory = self.config.samples(self.config.hr_refractory_s)

    def _candidates(self, data):
        """Yield local maxima above threshold, ignoring the refractory gap"""
        if len(data) < 3:
            return
        threshold = np.max(data) * self.threshold_ratio
        for i in range(1, len(data) - 1):
            if data[i] > threshold and data[i] > data[i - 1] and data[i] > data[i + 1]:
                yield i

    def detect(self, data) -> List[int]:
        data = np.asarray(data, dtype=float)
        peaks = []
        last_peak = -self.refractory
        for i in self._candidates(data):
            if i - last_peak >= self.refractory:
                peaks.append(i)
                last_peak = i
        return peaks

    def first_peak(self, data) -> Optional[int]:
        """First local maximum above threshold, or None"""
        return next(self._candidates(np.asarray(data, dtype=float)), None)


class PanTompkinsDetector(BeatDetector):
    """Adaptive QRS detector after Pan & Tompkins (1985)"""

    name = "pan_tompkins"

    def __init__(self, config: Optional[MonitorConfig] = None):
        super().__init__(config)
        self.window = self.config.samples(self.config.pt_integration_s)
        self.refractory = self.config.samples(self.config.pt_refractory_s)

    def integrate(self, data):
        """Bandpass, 5-point derivative, square and moving-window integrate"""
        bandpassed = qrs_bandpass_filter(np.asarray(data, dtype=float),
                                         self.config.qrs_bandpass_coeffs)

        derivative = np.zeros(len(bandpassed))
        n = len(bandpassed)
        if n > 4:
            derivative[2:n - 2] = (2 * bandpassed[3:n - 1] + bandpassed[2:n - 2]
                                   - bandpassed[1:n - 3] - 2 * bandpassed[0:n - 4]) / 8.0

        squared = derivative ** 2
        return moving_average(squared, self.window)

    def detect(self, data) -> List[int]:
        integrated = self.integrate(data)
        if len(integrated) == 0:
            return []

        weight = self.config.pt_level_weight
        threshold = np.max(integrated) * self.config.pt_initial_ratio
        signal_level = threshold
        noise_level = threshold * 0.5

        peaks = []
        last_peak = -self.refractory
        for i, value in enumerate(integrated):
            if value > threshold and (i - last_peak) > self.refractory:
                peaks.append(i)
                last_peak = i
                signal_level = weight * value + (1 - weight) * signal_level
            else:
                noise_level = weight * value + (1 - weight) * noise_level
            threshold = noise_level + self.config.pt_threshold_fraction * (signal_level - noise_level)

        return peaks
