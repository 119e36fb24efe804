import math
from datetime import timezone

import numpy as np
import pytest

from wristband import pipeline as pipeline_module
from wristband.biometrics import ECGFeatures
from wristband.parser import EnvironmentalReading
from wristband.pipeline import BiometricPipeline, process_frame


def realistic_frame(make_frame, timestamp="5000", seed=0):
    rng = np.random.default_rng(seed)
    t = np.arange(100)
    ecg = 512 + 5 * rng.normal(size=100)
    ecg[[15, 45, 75]] += 300
    ppg = 20000 + 400 * np.sin(2 * np.pi * t / 30) + 20 * rng.normal(size=100)
    return make_frame([int(v) for v in ecg], [int(v) for v in ppg], timestamp=timestamp)


def test_silent_frame_end_to_end(make_frame):
    result = process_frame(make_frame())
    snap = result.snapshot

    assert result.environment == EnvironmentalReading(400.0, 25.0, 50.0)
    assert snap.device_time == 1000.0
    assert snap.raw_frame == make_frame()
    assert snap.heart_rate == 70.0
    assert snap.resp_rate == 12.0
    assert snap.hrv == 40.0
    assert snap.ptt == 0.25
    assert snap.ecg_features == ECGFeatures(0.0, 0.0)
    assert (snap.systolic_bp, snap.diastolic_bp) == (120.0, 80.0)
    assert math.isnan(snap.spo2)
    assert snap.timestamp.tzinfo == timezone.utc


def test_rejected_frame_returns_none():
    assert process_frame("1000;ECG,1;PPG,2") is None


def test_realistic_frame_stays_in_range(make_frame):
    snap = process_frame(realistic_frame(make_frame)).snapshot
    assert 90.0 <= snap.systolic_bp <= 180.0
    assert 60.0 <= snap.diastolic_bp <= 120.0
    assert snap.heart_rate > 0
    assert snap.resp_rate == 12.0


class TestBiometricPipeline:

    def test_fragmented_feed_preserves_order(self, make_frame):
        stream = "".join(make_frame(timestamp=str(ts)) + "*" for ts in (1, 2, 3)).encode()
        pipeline = BiometricPipeline()
        results = []
        for i in range(0, len(stream), 37):
            results.extend(pipeline.feed(stream[i:i + 37]))

        assert [r.snapshot.device_time for r in results] == [1.0, 2.0, 3.0]
        assert pipeline.frame_count == 3
        assert pipeline.get_status()['pending_bytes'] == 0

    def test_rejected_frames_are_counted(self, make_frame):
        pipeline = BiometricPipeline()
        results = pipeline.feed(b"garbage*" + make_frame().encode() + b"*")
        assert len(results) == 1
        assert pipeline.rejected_count == 1
        assert pipeline.frame_count == 1

    def test_processing_error_is_contained(self, make_frame, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(pipeline_module, "compute_biometrics", broken)
        pipeline = BiometricPipeline()
        assert pipeline.feed(make_frame().encode() + b"*") == []
        assert pipeline.error_count == 1

    def test_reset_drops_partial_frame(self, make_frame):
        pipeline = BiometricPipeline()
        pipeline.feed(b"999;ECG,1,2")
        pipeline.reset()
        results = pipeline.feed(make_frame(timestamp="7").encode() + b"*")
        assert [r.snapshot.device_time for r in results] == [7.0]

    def test_status_and_repr(self):
        pipeline = BiometricPipeline()
        pipeline.feed(b"abc")
        status = pipeline.get_status()
        assert status == {'frames': 0, 'rejected': 0, 'errors': 0,
                          'overflows': 0, 'pending_bytes': 3}
        assert "frames=0" in repr(pipeline)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_snapshot_values_are_finite_for_realistic_input(make_frame, seed):
    snap = process_frame(realistic_frame(make_frame, seed=seed)).snapshot
    for value in (snap.spo2, snap.heart_rate, snap.hrv, snap.ptt):
        assert math.isfinite(value)
