"""
Frame reassembly for the wristband notification stream.

BLE notifications carry arbitrary slices of the text stream; a record ends at
each ``*``. The assembler owns the pending buffer for one connection.
"""

import logging
from typing import Iterator

from .config import FRAME_DELIMITER

logger = logging.getLogger(__name__)


class FrameAssembler:
    """Turns an ordered sequence of byte fragments into complete frames.

    Not safe for concurrent ``ingest`` calls; fragments must be fed in
    arrival order by a single consumer.
    """

    def __init__(self, max_buffer: int = 64 * 1024):
        self.max_buffer = max_buffer
        self.rx_buffer = bytearray()
        self.resyncing = False  # set after an overflow until the next delimiter

        # Stats
        self.frame_count = 0
        self.overflow_count = 0
        self.decode_errors = 0

    def ingest(self, fragment: bytes) -> Iterator[str]:
        """Append a fragment and yield every frame it completes."""
        self.rx_buffer.extend(fragment)

        if self.resyncing:
            # Drop the tail of the record cut by an overflow
            end_idx = self.rx_buffer.find(FRAME_DELIMITER)
            if end_idx < 0:
                self.rx_buffer.clear()
                return
            del self.rx_buffer[:end_idx + len(FRAME_DELIMITER)]
            self.resyncing = False
            logger.info("Resynchronized on frame delimiter after overflow")

        while True:
            end_idx = self.rx_buffer.find(FRAME_DELIMITER)
            if end_idx < 0:
                break

            # Extract frame, dropping the delimiter with it
            frame_bytes = bytes(self.rx_buffer[:end_idx])
            del self.rx_buffer[:end_idx + len(FRAME_DELIMITER)]

            try:
                frame = frame_bytes.decode('utf-8')
            except UnicodeDecodeError:
                self.decode_errors += 1
                logger.warning(f"Dropping frame with invalid UTF-8 ({len(frame_bytes)} bytes)")
                continue

            self.frame_count += 1
            yield frame

        if len(self.rx_buffer) > self.max_buffer:
            # No terminator in sight, discard the partial frame and
            # everything up to the next delimiter
            self.overflow_count += 1
            logger.warning(
                f"Pending buffer exceeded {self.max_buffer} bytes without a delimiter "
                f"- discarding {len(self.rx_buffer)} bytes"
            )
            self.rx_buffer.clear()
            self.resyncing = True

    def reset(self):
        """Clear the pending buffer (new connection)."""
        self.rx_buffer.clear()
        self.resyncing = False

    @property
    def pending(self) -> int:
        """Number of bytes waiting for a delimiter."""
        return len(self.rx_buffer)
