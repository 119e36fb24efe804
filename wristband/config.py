"""
Wristband Monitor Configuration
Sampling, filtering, detector and transport parameters
"""

from dataclasses import dataclass
from typing import Optional, Tuple

# Wristband GATT identifiers (ESP32 firmware)
SERVICE_UUID = "12345678-1234-1234-1234-123456789abc"
DATA_CHAR_UUID = "abcd5678-ab12-cd34-ef56-abcdef123456"  # Notifications with frame chunks

# Wire format
FRAME_DELIMITER = b"*"
SECTION_SEPARATOR = ";"
VALUE_SEPARATOR = ","

# Biquad coefficients (b0, b1, b2, a1, a2)
BANDPASS_COEFFS = (0.095465, 0.0, -0.095465, -1.808, 0.80907)       # baseline wander + HF noise
QRS_BANDPASS_COEFFS = (0.083191, 0.0, -0.083191, -1.729012, 0.833618)  # ~5-15 Hz QRS emphasis

# Reconnection settings
RECONNECT_DELAY = 2.0  # seconds between reconnection attempts


@dataclass
class MonitorConfig:
    """
    Configuration for the wristband processing chain.

    Defaults reproduce the reference constants of the wristband host app:
    100 Hz sampling, 100 samples per waveform section and the placeholder
    fallback values returned by each estimator on degenerate input.
    """

    # Sampling
    sample_rate: float = 100.0
    nominal_samples: int = 100

    # Conditioning
    bandpass_coeffs: Tuple[float, float, float, float, float] = BANDPASS_COEFFS
    qrs_bandpass_coeffs: Tuple[float, float, float, float, float] = QRS_BANDPASS_COEFFS
    smoothing_window: int = 5

    # Threshold detector
    hr_threshold_ratio: float = 0.5
    ptt_threshold_ratio: float = 0.6
    hr_refractory_s: float = 0.15

    # Pan-Tompkins detector
    pt_integration_s: float = 0.15
    pt_refractory_s: float = 0.2
    pt_initial_ratio: float = 0.3
    pt_level_weight: float = 0.125
    pt_threshold_fraction: float = 0.25

    # ECG morphology windows
    qs_search_s: float = 0.04
    st_offset_s: float = 0.08

    # Respiratory band (Hz)
    resp_band: Tuple[float, float] = (0.1, 0.4)

    # Fallbacks
    fallback_heart_rate: float = 70.0
    fallback_spo2: float = 98.0
    fallback_resp_rate: float = 12.0
    fallback_hrv: float = 40.0
    fallback_ptt: float = 0.25
    min_samples: int = 10  # Estimators need more than this many samples

    # Reassembly
    max_buffer: int = 64 * 1024  # Bytes held without a delimiter before the partial frame is dropped

    # Transport / sink
    device_name: str = "esp32"
    device_address: Optional[str] = None
    scan_timeout: float = 5.0
    connect_timeout: float = 10.0
    stale_after: float = 3.0  # No fragments for this long => connection considered stale
    replay_chunk_size: int = 20  # Default BLE payload (23-byte ATT MTU minus header)
    log_file: str = "WristbandDataLog.txt"

    def samples(self, seconds: float) -> int:
        """Convert a duration to a whole number of samples (rounded down)."""
        return int(seconds * self.sample_rate)

    @classmethod
    def for_device(cls, name: Optional[str] = None,
                   address: Optional[str] = None) -> 'MonitorConfig':
        """
        Create a configuration for a live BLE session.

        Args:
            name:    Substring of the advertised device name to match.
            address: Known device address; skips scanning when given.

        Returns:
            MonitorConfig targeting the given wristband.
        """
        config = cls(device_address=address)
        if name:
            config.device_name = name
        return config

    @classmethod
    def for_replay(cls, chunk_size: Optional[int] = None) -> 'MonitorConfig':
        """Create a configuration for replaying a recorded byte stream."""
        config = cls()
        if chunk_size:
            config.replay_chunk_size = chunk_size
        return config
