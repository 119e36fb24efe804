import numpy as np
import pytest

from wristband.config import MonitorConfig


def _join(tag, values):
    return ",".join([tag] + [str(v) for v in values])


@pytest.fixture
def config():
    return MonitorConfig()


@pytest.fixture
def make_frame():
    """Build wire text for one frame (without the trailing '*')."""
    def _make(ecg=None, ppg=None, timestamp="1000", scd="SCD,400.00,25.00,50.00"):
        ecg = [0] * 100 if ecg is None else ecg
        ppg = [0] * 100 if ppg is None else ppg
        return ";".join([str(timestamp), _join("ECG", ecg), _join("PPG", ppg), scd])
    return _make


@pytest.fixture
def spike_train():
    """Zero signal with unit spikes at the given indices."""
    def _make(length, indices, height=1.0):
        data = np.zeros(length)
        data[list(indices)] = height
        return data
    return _make
