import logging

from wristband.diagnostics import RecentLogHandler, attach_recent_log


def test_keeps_only_most_recent_messages():
    handler = RecentLogHandler(capacity=3)
    logger = logging.getLogger("wristband.test.recent")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        for i in range(5):
            logger.info(f"message {i}")
    finally:
        logger.removeHandler(handler)

    assert handler.messages() == ["message 2", "message 3", "message 4"]
    handler.clear()
    assert handler.messages() == []


def test_attached_handler_sees_package_loggers():
    handler = attach_recent_log("wristband.test.attached", capacity=10)
    try:
        logger = logging.getLogger("wristband.test.attached.child")
        logger.setLevel(logging.INFO)
        logger.info("hello")
    finally:
        logging.getLogger("wristband.test.attached").removeHandler(handler)

    assert len(handler.messages()) == 1
    assert handler.messages()[0].endswith("[INFO] hello")
