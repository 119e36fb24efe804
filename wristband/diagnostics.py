"""
In-memory diagnostic log: the last N formatted records, oldest first
"""

import logging
from collections import deque
from typing import List

DEFAULT_CAPACITY = 100


class RecentLogHandler(logging.Handler):
    """Logging handler that keeps only the most recent messages"""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, level=logging.NOTSET):
        super().__init__(level)
        self.records = deque(maxlen=capacity)

    def emit(self, record):
        try:
            self.records.append(self.format(record))
        except Exception:
            self.handleError(record)

    def messages(self) -> List[str]:
        return list(self.records)

    def clear(self):
        self.records.clear()


def attach_recent_log(logger_name: str = "wristband",
                      capacity: int = DEFAULT_CAPACITY) -> RecentLogHandler:
    """Attach a RecentLogHandler to the package logger and return it"""
    handler = RecentLogHandler(capacity)
    handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s'))
    logging.getLogger(logger_name).addHandler(handler)
    return handler
