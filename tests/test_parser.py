import numpy as np

from wristband.parser import EnvironmentalReading, parse_frame, parse_samples


def test_round_trip_nominal_frame(make_frame):
    ecg = list(range(500, 600))
    ppg = list(range(1000, 900, -1))
    parsed = parse_frame(make_frame(ecg, ppg, timestamp="123456",
                                    scd="SCD,435.12,25.76,48.20"))

    assert parsed is not None
    assert parsed.device_time == 123456.0
    np.testing.assert_array_equal(parsed.ecg, np.array(ecg, dtype=float))
    np.testing.assert_array_equal(parsed.ppg, np.array(ppg, dtype=float))
    assert parsed.environment == EnvironmentalReading(435.12, 25.76, 48.20)


def test_bad_tokens_are_dropped():
    np.testing.assert_array_equal(parse_samples("ECG,12,abc,14", "ECG"), [12.0, 14.0])


def test_lenient_frame_is_not_rejected():
    parsed = parse_frame("1;ECG,12,abc,14;PPG,1.5,2e3,;SCD,1,2,3")
    assert parsed is not None
    np.testing.assert_array_equal(parsed.ecg, [12.0, 14.0])
    np.testing.assert_array_equal(parsed.ppg, [1.5, 2000.0])


def test_wrong_section_count_rejected(make_frame):
    assert parse_frame("1000;ECG,1,2;PPG,1,2") is None
    assert parse_frame(make_frame() + ";extra") is None
    assert parse_frame("") is None


def test_wrong_tag_gives_empty_sequence():
    parsed = parse_frame("1;PPG,1,2;ECG,3,4;SCD,1,2,3")
    assert len(parsed.ecg) == 0
    assert len(parsed.ppg) == 0
    assert parsed.environment is not None


def test_bad_environment_skips_update_only(make_frame):
    parsed = parse_frame(make_frame(ecg=[1, 2, 3], scd="SCD,400,nope,50"))
    assert parsed.environment is None
    np.testing.assert_array_equal(parsed.ecg, [1.0, 2.0, 3.0])


def test_environment_needs_three_values(make_frame):
    assert parse_frame(make_frame(scd="SCD,400,25")).environment is None
    assert parse_frame(make_frame(scd="SCD,400,25,50,1")).environment is None
    assert parse_frame(make_frame(scd="XYZ,400,25,50")).environment is None


def test_unparseable_timestamp_defaults_to_zero(make_frame):
    assert parse_frame(make_frame(timestamp="now")).device_time == 0.0
