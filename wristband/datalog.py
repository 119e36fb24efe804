"""
Snapshot sink: latest values + append-only data log

Log line (one per accepted frame):
    timestamp,rawFrameText,spo2,heartRate,respRate,hrv,"QRS=<v>;ST=<v>",ptt,systolicBP,diastolicBP
"""

import logging
from pathlib import Path
from typing import Optional

from .parser import EnvironmentalReading
from .pipeline import BiometricSnapshot, FrameResult

logger = logging.getLogger(__name__)


def format_features(snapshot: BiometricSnapshot) -> str:
    """``QRS=<v>;ST=<v>`` with no trailing separator"""
    features = snapshot.ecg_features
    entries = [f"QRS={features.qrs_duration}", f"ST={features.st_amplitude}"]
    return ";".join(entries)


def format_log_line(snapshot: BiometricSnapshot) -> str:
    """Render one snapshot as a data log line (without newline)"""
    fields = [
        snapshot.timestamp.isoformat(),
        snapshot.raw_frame,
        str(snapshot.spo2),
        str(snapshot.heart_rate),
        str(snapshot.resp_rate),
        str(snapshot.hrv),
        f'"{format_features(snapshot)}"',
        str(snapshot.ptt),
        str(snapshot.systolic_bp),
        str(snapshot.diastolic_bp),
    ]
    return ",".join(fields)


class DataLogWriter:
    """Appends snapshot lines to a text file"""

    def __init__(self, path):
        self.path = Path(path)
        self.lines_written = 0

    def write(self, snapshot: BiometricSnapshot):
        line = format_log_line(snapshot)
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(line + "\n")
        self.lines_written += 1

    def __repr__(self):
        return f"<DataLogWriter(path={self.path}, lines={self.lines_written})>"


class MonitorState:
    """
    Consumer side of the pipeline: keeps the latest published values.

    The environmental reading only changes when a frame carries a clean SCD
    section; otherwise the previous reading stays in place.
    """

    def __init__(self, writer: Optional[DataLogWriter] = None):
        self.writer = writer
        self.latest: Optional[BiometricSnapshot] = None
        self.environment: Optional[EnvironmentalReading] = None
        self.snapshot_count = 0

    def apply(self, result: FrameResult):
        """Publish one frame result"""
        self.latest = result.snapshot
        self.snapshot_count += 1

        if result.environment is not None:
            self.environment = result.environment

        if self.writer is not None:
            try:
                self.writer.write(result.snapshot)
            except OSError as e:
                logger.error(f"Could not append to data log {self.writer.path}: {e}")

    def summary(self) -> str:
        """One-line status text"""
        snap = self.latest
        if snap is None:
            return "No data yet"

        env = self.environment
        env_str = (f"CO2 {env.co2:.0f}ppm  {env.temperature:.1f}C  {env.humidity:.0f}%RH"
                   if env else "CO2 --")
        return (
            f"HR {snap.heart_rate:.0f}  SpO2 {snap.spo2:.1f}%  RR {snap.resp_rate:.1f}  "
            f"HRV {snap.hrv:.0f}ms  QRS {snap.ecg_features.qrs_duration:.3f}s  "
            f"PTT {snap.ptt:.2f}s  BP {snap.systolic_bp:.0f}/{snap.diastolic_bp:.0f}  | {env_str}"
        )
