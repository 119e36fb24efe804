"""
Frame parser: ``<timestamp>;ECG,...;PPG,...;SCD,co2,temp,hum``
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import SECTION_SEPARATOR, VALUE_SEPARATOR

logger = logging.getLogger(__name__)

SECTION_COUNT = 4
ECG_TAG = "ECG"
PPG_TAG = "PPG"
SCD_TAG = "SCD"


@dataclass(frozen=True)
class EnvironmentalReading:
    """SCD41 readout"""
    co2: float          # ppm
    temperature: float  # Celsius
    humidity: float     # %RH


@dataclass(frozen=True)
class ParsedFrame:
    """Decoded sections of one frame"""
    raw: str
    device_time: float
    ecg: np.ndarray
    ppg: np.ndarray
    environment: Optional[EnvironmentalReading]


def _to_float(token: str) -> Optional[float]:
    try:
        return float(token)
    except ValueError:
        return None


def parse_samples(section: str, tag: str) -> np.ndarray:
    """Decode a ``TAG,v0,v1,...`` section.

    Tokens that are not numbers are dropped, so the result may be shorter
    than the number of tokens. A missing or wrong tag yields an empty array.
    """
    tokens = section.split(VALUE_SEPARATOR)
    if len(tokens) < 2 or tokens[0] != tag:
        logger.warning(f"{tag} section malformed: {section[:32]!r}")
        return np.array([], dtype=float)

    values = [v for v in (_to_float(t) for t in tokens[1:]) if v is not None]
    return np.array(values, dtype=float)


def parse_environment(section: str) -> Optional[EnvironmentalReading]:
    """Decode ``SCD,co2,temp,hum``; None unless all three values parse."""
    tokens = section.split(VALUE_SEPARATOR)
    if len(tokens) != 4 or tokens[0] != SCD_TAG:
        logger.warning(f"SCD format mismatch: {section!r}")
        return None

    co2, temperature, humidity = (_to_float(t) for t in tokens[1:])
    if co2 is None or temperature is None or humidity is None:
        logger.warning("SCD parse error: co2/temp/hum not floats")
        return None

    return EnvironmentalReading(co2=co2, temperature=temperature, humidity=humidity)


def parse_frame(frame: str) -> Optional[ParsedFrame]:
    """
    Split a frame into its sections and decode them.

    Args:
        frame: Frame text without the trailing delimiter

    Returns:
        ParsedFrame, or None when the frame does not have exactly 4 sections.
    """
    parts = frame.split(SECTION_SEPARATOR)
    if len(parts) != SECTION_COUNT:
        logger.warning(f"Incorrect frame format (need {SECTION_COUNT} sections, got {len(parts)})")
        return None

    timestamp_str, ecg_part, ppg_part, scd_part = parts

    device_time = _to_float(timestamp_str)
    if device_time is None:
        device_time = 0.0

    return ParsedFrame(
        raw=frame,
        device_time=device_time,
        ecg=parse_samples(ecg_part, ECG_TAG),
        ppg=parse_samples(ppg_part, PPG_TAG),
        environment=parse_environment(scd_part),
    )
