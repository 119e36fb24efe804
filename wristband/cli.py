"""
Wristband Biometric Monitor

Receives ECG/PPG/SCD41 frames from the ESP32 wristband over BLE notifications
and logs per-frame biometrics:
- Heart rate, SpO2, respiratory rate, HRV (RMSSD)
- ECG morphology (QRS duration, ST amplitude)
- Pulse-transit-time and a PTT-based blood pressure estimate

Usage:
    wristband-monitor scan
    wristband-monitor monitor [--name esp32] [--address ADDR]
    wristband-monitor replay capture.bin [--chunk-size 20]
"""

import argparse
import asyncio
import logging
import sys

from .config import MonitorConfig
from .datalog import DataLogWriter, MonitorState
from .diagnostics import attach_recent_log
from .pipeline import BiometricPipeline
from .streaming import run_stream
from .transport import WristbandBLEClient, replay_file, scan_devices

STATUS_INTERVAL = 2.0  # seconds between console status lines


async def print_status(state: MonitorState, pipeline: BiometricPipeline, done: asyncio.Event):
    """Print the latest values every STATUS_INTERVAL seconds"""
    while not done.is_set():
        print(f"[{pipeline.frame_count:>5} frames] {state.summary()}")
        try:
            await asyncio.wait_for(done.wait(), timeout=STATUS_INTERVAL)
        except asyncio.TimeoutError:
            pass


async def run_scan(args):
    print(f"Scanning for BLE devices for {args.timeout:.0f} seconds...")
    print("=" * 60)

    devices = await scan_devices(timeout=args.timeout)
    if not devices:
        print("No BLE devices found!")
        return 1

    for device in devices:
        print(f"Name: {device.name if device.name else '(Unknown)'}")
        print(f"Address: {device.address}")
        print("-" * 60)
    return 0


async def run_monitor(args):
    config = MonitorConfig.for_device(name=args.name, address=args.address)
    config.log_file = args.log_file
    if args.max_buffer:
        config.max_buffer = args.max_buffer

    fragments = asyncio.Queue()
    pipeline = BiometricPipeline(config)
    state = MonitorState(DataLogWriter(config.log_file))
    ble = WristbandBLEClient(fragments, config)

    done = asyncio.Event()
    stream_task = asyncio.create_task(run_stream(fragments, pipeline, state))
    status_task = asyncio.create_task(print_status(state, pipeline, done))

    print("\nMonitoring! Press Ctrl+C to stop.")
    print("Auto-reconnection is enabled.\n")

    try:
        await ble.run()
    except asyncio.CancelledError:
        print("\nStopping...")
    finally:
        await ble.disconnect()
        await stream_task
        done.set()
        await status_task

    print(f"\nLogged {state.snapshot_count} snapshots to {config.log_file}")
    print(f"Pipeline: {pipeline.get_status()}")
    return 0


async def run_replay(args):
    config = MonitorConfig.for_replay(chunk_size=args.chunk_size)
    config.log_file = args.log_file

    fragments = asyncio.Queue()
    pipeline = BiometricPipeline(config)
    state = MonitorState(DataLogWriter(config.log_file))

    await asyncio.gather(
        replay_file(args.file, fragments, chunk_size=config.replay_chunk_size),
        run_stream(fragments, pipeline, state),
    )

    print(state.summary())
    print(f"Logged {state.snapshot_count} snapshots to {config.log_file}")
    print(f"Pipeline: {pipeline.get_status()}")
    return 0 if pipeline.error_count == 0 else 1


def build_parser():
    parser = argparse.ArgumentParser(
        prog='wristband-monitor',
        description='ECG/PPG wristband biometric monitor'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--show-log', action='store_true',
                        help='Print the last diagnostic messages on exit')
    sub = parser.add_subparsers(dest='command', required=True)

    scan = sub.add_parser('scan', help='List nearby BLE devices')
    scan.add_argument('--timeout', type=float, default=10.0)

    monitor = sub.add_parser('monitor', help='Connect to the wristband and log biometrics')
    monitor.add_argument('--name', default=None, help="Device name substring (default: esp32)")
    monitor.add_argument('--address', default=None, help='Connect to this address without scanning')
    monitor.add_argument('--log-file', default=MonitorConfig.log_file)
    monitor.add_argument('--max-buffer', type=int, default=None,
                         help='Max bytes buffered without a frame delimiter')

    replay = sub.add_parser('replay', help='Process a recorded byte stream')
    replay.add_argument('file')
    replay.add_argument('--chunk-size', type=int, default=MonitorConfig.replay_chunk_size)
    replay.add_argument('--log-file', default=MonitorConfig.log_file)

    return parser


def main(argv=None):
    """Entry point"""
    args = build_parser().parse_args(argv)

    if getattr(args, 'chunk_size', 1) <= 0:
        print("--chunk-size must be positive")
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )
    recent_log = attach_recent_log()

    print("=" * 55)
    print("  Wristband Biometric Monitor")
    print("=" * 55)

    commands = {'scan': run_scan, 'monitor': run_monitor, 'replay': run_replay}
    try:
        code = asyncio.run(commands[args.command](args))
    except KeyboardInterrupt:
        print("\nExiting...")
        code = 0

    if args.show_log:
        print("\n--- Recent diagnostics ---")
        for message in recent_log.messages():
            print(message)

    return code


if __name__ == "__main__":
    sys.exit(main())
