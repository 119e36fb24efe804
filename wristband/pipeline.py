"""
Wristband Processing Pipeline
==============================
fragment bytes -> FrameAssembler -> parse_frame -> condition
              -> compute_biometrics -> estimate_blood_pressure -> BiometricSnapshot

Usage:
    pipeline = BiometricPipeline(MonitorConfig())
    for result in pipeline.feed(fragment):
        sink.apply(result)

Failure policy:
    Nothing raised while processing a frame reaches the caller. Malformed
    frames are dropped with a warning, degenerate signals fall back to the
    estimator defaults, and unexpected errors are logged and counted.
    Frames do not share state; only the assembler's pending buffer persists.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .biometrics import ECGFeatures, compute_biometrics
from .blood_pressure import estimate_blood_pressure
from .conditioning import condition
from .config import MonitorConfig
from .framing import FrameAssembler
from .parser import EnvironmentalReading, parse_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BiometricSnapshot:
    """Everything computed from one accepted frame"""
    timestamp: datetime   # wall clock when the snapshot was created
    device_time: float    # frame timestamp field (0.0 if unparseable)
    raw_frame: str
    spo2: float
    heart_rate: float
    resp_rate: float
    hrv: float
    ecg_features: ECGFeatures
    ptt: float
    systolic_bp: float
    diastolic_bp: float


@dataclass(frozen=True)
class FrameResult:
    """Snapshot plus the environmental update carried by the same frame (if any)"""
    snapshot: BiometricSnapshot
    environment: Optional[EnvironmentalReading]


def process_frame(frame: str, config: Optional[MonitorConfig] = None) -> Optional[FrameResult]:
    """
    Turn one complete frame into a snapshot.

    Args:
        frame:  Frame text without the trailing delimiter
        config: Processing parameters

    Returns:
        FrameResult, or None if the frame was structurally rejected.
    """
    config = config if config else MonitorConfig()

    parsed = parse_frame(frame)
    if parsed is None:
        return None

    if len(parsed.ecg) != config.nominal_samples or len(parsed.ppg) != config.nominal_samples:
        logger.debug(
            f"Short frame: ecg={len(parsed.ecg)} ppg={len(parsed.ppg)} "
            f"(nominal {config.nominal_samples})"
        )

    filtered_ecg, filtered_ppg = condition(parsed.ecg, parsed.ppg, config)
    results = compute_biometrics(filtered_ecg, filtered_ppg, config)
    bp = estimate_blood_pressure(results.ptt)

    snapshot = BiometricSnapshot(
        timestamp=datetime.now(timezone.utc),
        device_time=parsed.device_time,
        raw_frame=parsed.raw,
        spo2=results.spo2,
        heart_rate=results.heart_rate,
        resp_rate=results.resp_rate,
        hrv=results.hrv,
        ecg_features=results.ecg_features,
        ptt=results.ptt,
        systolic_bp=bp.systolic,
        diastolic_bp=bp.diastolic,
    )
    return FrameResult(snapshot=snapshot, environment=parsed.environment)


class BiometricPipeline:
    """
    Owns the reassembly buffer for one connection and runs each completed
    frame through ``process_frame``.

    Single consumer: ``feed`` must be called with fragments in arrival order.
    """

    def __init__(self, config: Optional[MonitorConfig] = None):
        self.config = config if config else MonitorConfig()
        self.assembler = FrameAssembler(max_buffer=self.config.max_buffer)

        # Stats
        self.frame_count = 0     # snapshots produced
        self.rejected_count = 0  # structurally invalid frames
        self.error_count = 0     # unexpected processing errors

    def feed(self, fragment: bytes) -> List[FrameResult]:
        """Ingest one fragment; return results for every frame it completed"""
        results = []
        for frame in self.assembler.ingest(fragment):
            try:
                result = process_frame(frame, self.config)
            except Exception as e:
                self.error_count += 1
                logger.error(f"Error processing frame: {e}", exc_info=True)
                continue

            if result is None:
                self.rejected_count += 1
                continue

            self.frame_count += 1
            results.append(result)
        return results

    def reset(self):
        """Drop any partial frame (new connection)"""
        self.assembler.reset()

    def get_status(self) -> dict:
        """Counters for logging / status display"""
        return {
            'frames': self.frame_count,
            'rejected': self.rejected_count,
            'errors': self.error_count,
            'overflows': self.assembler.overflow_count,
            'pending_bytes': self.assembler.pending,
        }

    def __repr__(self):
        return (
            f"<BiometricPipeline(frames={self.frame_count}, "
            f"rejected={self.rejected_count}, errors={self.error_count})>"
        )
