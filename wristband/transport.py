"""
Fragment sources for the wristband pipeline

- WristbandBLEClient: notifications from the ESP32 data characteristic (bleak),
  with scanning and auto-reconnection
- replay_file: a recorded byte stream sliced into BLE-sized fragments

Both only enqueue raw bytes; all processing happens in the consumer task.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from .config import DATA_CHAR_UUID, RECONNECT_DELAY, SERVICE_UUID, MonitorConfig
from .streaming import CONNECTION_RESET

logger = logging.getLogger(__name__)


async def scan_devices(timeout: float = 10.0) -> List:
    """List discoverable BLE devices"""
    devices = await BleakScanner.discover(timeout=timeout)
    logger.info(f"Scan found {len(devices)} device(s)")
    return devices


class WristbandBLEClient:
    """Connects to the wristband and forwards notification payloads to a queue"""

    def __init__(self, fragments: asyncio.Queue, config: Optional[MonitorConfig] = None):
        self.fragments = fragments
        self.config = config if config else MonitorConfig.for_device()

        self.client = None
        self.device_name = self.config.device_name
        self.device_address = self.config.device_address
        self.connected = False
        self.should_run = True
        self.reconnecting = False
        self.connection_status = "Disconnected"

        # Stats
        self.fragment_count = 0
        self.reconnect_count = 0
        self.last_fragment_time = time.time()

    def notification_handler(self, sender, data: bytearray):
        """Handle incoming BLE notifications"""
        self.fragments.put_nowait(bytes(data))
        self.fragment_count += 1
        self.last_fragment_time = time.time()

    def disconnected_callback(self, client):
        """Called when BLE disconnects"""
        logger.warning("Disconnected from wristband")
        self.connected = False
        self.connection_status = "Disconnected - Reconnecting..."

    async def find_device(self):
        """Scan for the wristband by name"""
        logger.info(f"Scanning for BLE device '{self.device_name}'...")

        try:
            devices = await BleakScanner.discover(timeout=self.config.scan_timeout)
            for device in devices:
                name = device.name or ""
                if self.device_name.lower() in name.lower():
                    logger.info(f"Found device: {device.name} ({device.address})")
                    return device
        except BleakError as e:
            logger.error(f"Scan error: {e}")

        return None

    async def connect(self):
        """Scan and connect"""
        device = await self.find_device()
        if not device:
            return False

        self.device_address = device.address
        return await self.connect_to_address(device.address)

    async def connect_to_address(self, address):
        """Connect to a specific BLE address and subscribe to the data characteristic"""
        logger.info(f"Connecting to {address}...")
        self.connection_status = f"Connecting to {address}..."

        try:
            self.client = BleakClient(
                address,
                disconnected_callback=self.disconnected_callback
            )

            await asyncio.wait_for(self.client.connect(), timeout=self.config.connect_timeout)

            if not self.client.is_connected:
                logger.warning("Connection failed - not connected")
                return False

            service = self.client.services.get_service(SERVICE_UUID)
            if service is None:
                logger.warning(f"Wristband service {SERVICE_UUID} not found on {address}")

            # New connection, new reassembly buffer
            self.fragments.put_nowait(CONNECTION_RESET)

            await self.client.start_notify(DATA_CHAR_UUID, self.notification_handler)
            logger.info("Notifications enabled, waiting for data...")

            self.connected = True
            self.connection_status = "Connected"
            self.last_fragment_time = time.time()
            return True

        except asyncio.TimeoutError:
            logger.warning("Connection timed out")
            self.connection_status = "Connection timed out"
        except BleakError as e:
            logger.error(f"BLE error: {e}")
            self.connection_status = f"BLE error: {e}"

        return False

    async def reconnect(self):
        """Attempt to reconnect to the device"""
        if self.reconnecting:
            return False

        self.reconnecting = True
        self.reconnect_count += 1
        logger.info(f"Reconnection attempt #{self.reconnect_count}...")

        # Cleanup old connection
        if self.client:
            try:
                await self.client.disconnect()
            except BleakError as e:
                logger.debug(f"Ignoring disconnect error: {e}")
            self.client = None

        await asyncio.sleep(RECONNECT_DELAY)

        success = False
        if self.device_address:
            # Try last known address first
            success = await self.connect_to_address(self.device_address)

        if not success:
            success = await self.connect()

        self.reconnecting = False
        return success

    async def disconnect(self):
        """Disconnect and end the fragment stream"""
        self.should_run = False
        if self.client and self.client.is_connected:
            try:
                await self.client.stop_notify(DATA_CHAR_UUID)
                await self.client.disconnect()
            except BleakError as e:
                logger.debug(f"Ignoring disconnect error: {e}")
        self.connected = False
        self.fragments.put_nowait(None)

    def check_connection_health(self):
        """Connected and still receiving fragments"""
        if not self.connected:
            return False
        return (time.time() - self.last_fragment_time) < self.config.stale_after

    async def run(self):
        """Keep the link alive until ``should_run`` is cleared"""
        if self.device_address:
            connected = await self.connect_to_address(self.device_address)
        else:
            connected = await self.connect()
        if not connected:
            logger.warning("Initial connection failed. Will keep trying...")

        while self.should_run:
            if not self.check_connection_health() and not self.reconnecting:
                await self.reconnect()
            await asyncio.sleep(0.5)


async def replay_file(path, fragments: asyncio.Queue, chunk_size: int = 20,
                      delay: float = 0.0):
    """
    Feed a recorded stream into the fragment channel.

    Args:
        path:       File holding raw wire bytes
        fragments:  Fragment channel
        chunk_size: Bytes per fragment (BLE payload size)
        delay:      Seconds to wait between fragments

    Returns:
        Number of fragments sent
    """
    data = Path(path).read_bytes()
    count = 0
    for start in range(0, len(data), chunk_size):
        fragments.put_nowait(data[start:start + chunk_size])
        count += 1
        # Let the consumer run between fragments
        await asyncio.sleep(delay)

    fragments.put_nowait(None)
    logger.info(f"Replayed {len(data)} bytes as {count} fragments")
    return count
