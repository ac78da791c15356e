import logging

from etl.common import LOG_FORMAT, setup_logger


def test_setup_logger_is_idempotent():
    name = "test.common.logger"
    lg = setup_logger(name, "debug")
    again = setup_logger(name, "WARNING")
    try:
        assert lg is again
        assert len(lg.handlers) == 1
        assert lg.handlers[0].formatter._fmt == LOG_FORMAT
        assert lg.level == logging.WARNING
    finally:
        lg.handlers.clear()

def test_setup_logger_unknown_level_defaults_to_info():
    name = "test.common.default"
    lg = setup_logger(name, "chatty")
    try:
        assert lg.level == logging.INFO
    finally:
        lg.handlers.clear()
