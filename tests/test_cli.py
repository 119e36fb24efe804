import pytest

from wristband.cli import build_parser, main


def test_replay_writes_log(tmp_path, make_frame):
    capture = tmp_path / "capture.bin"
    capture.write_bytes("".join(make_frame(timestamp=str(ts)) + "*" for ts in (1, 2)).encode())
    log_file = tmp_path / "out.txt"

    assert main(['replay', str(capture), '--log-file', str(log_file)]) == 0
    lines = log_file.read_text().splitlines()
    assert len(lines) == 2
    assert ',"QRS=0.0;ST=0.0",' in lines[0]


def test_replay_rejects_non_positive_chunk(tmp_path):
    capture = tmp_path / "capture.bin"
    capture.write_bytes(b"")
    assert main(['replay', str(capture), '--chunk-size', '0']) == 2


def test_parser_defaults():
    args = build_parser().parse_args(['monitor'])
    assert args.name is None
    assert args.address is None
    assert args.log_file == "WristbandDataLog.txt"
    assert not args.verbose


def test_command_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
