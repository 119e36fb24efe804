"""
Blood pressure from pulse-transit-time

Naive linear model anchored at PTT = 0.25 s => 120/80 mmHg. Placeholder
only; not a validated cuffless BP method.
"""

from dataclasses import dataclass

BASE_PTT = 0.25          # seconds
SYSTOLIC_BASE = 120.0    # mmHg
DIASTOLIC_BASE = 80.0
SYSTOLIC_SLOPE = 50.0    # mmHg per second of PTT deviation
DIASTOLIC_SLOPE = 30.0

SYSTOLIC_RANGE = (90.0, 180.0)
DIASTOLIC_RANGE = (60.0, 120.0)


@dataclass(frozen=True)
class BloodPressure:
    systolic: float
    diastolic: float


def _clamp(value, bounds):
    low, high = bounds
    return max(low, min(value, high))


def estimate_blood_pressure(ptt: float) -> BloodPressure:
    """Map PTT (s) to a clamped systolic/diastolic estimate (higher PTT => lower pressure)"""
    systolic = SYSTOLIC_BASE - (ptt - BASE_PTT) * SYSTOLIC_SLOPE
    diastolic = DIASTOLIC_BASE - (ptt - BASE_PTT) * DIASTOLIC_SLOPE
    return BloodPressure(
        systolic=_clamp(systolic, SYSTOLIC_RANGE),
        diastolic=_clamp(diastolic, DIASTOLIC_RANGE),
    )
