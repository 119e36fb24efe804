"""
Wristband host-side processing
ECG/PPG/SCD41 stream reassembly and per-frame biometric estimation

Chain:
- FrameAssembler: BLE fragments -> '*'-terminated frames
- parse_frame: timestamp / ECG / PPG / SCD sections
- condition: biquad bandpass + moving average
- ThresholdBeatDetector / PanTompkinsDetector: R-peaks
- compute_biometrics + estimate_blood_pressure -> BiometricSnapshot
"""

from .config import MonitorConfig
from .framing import FrameAssembler
from .parser import EnvironmentalReading, ParsedFrame, parse_frame
from .conditioning import condition
from .detectors import BeatDetector, ThresholdBeatDetector, PanTompkinsDetector
from .biometrics import ECGFeatures, Biometrics, compute_biometrics
from .blood_pressure import BloodPressure, estimate_blood_pressure
from .pipeline import BiometricSnapshot, FrameResult, BiometricPipeline, process_frame
from .datalog import DataLogWriter, MonitorState, format_log_line

__all__ = [
    'MonitorConfig',

    # Framing / parsing
    'FrameAssembler',
    'EnvironmentalReading',
    'ParsedFrame',
    'parse_frame',

    # Signal chain
    'condition',
    'BeatDetector',
    'ThresholdBeatDetector',
    'PanTompkinsDetector',
    'ECGFeatures',
    'Biometrics',
    'compute_biometrics',
    'BloodPressure',
    'estimate_blood_pressure',

    # Orchestration / sink
    'BiometricSnapshot',
    'FrameResult',
    'BiometricPipeline',
    'process_frame',
    'DataLogWriter',
    'MonitorState',
    'format_log_line',
]

__version__ = '1.0.0'
