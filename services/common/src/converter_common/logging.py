import logging
import os
import sys

from pythonjsonlogger import jsonlogger

_UVICORN_LOGGERS = ["uvicorn", "uvicorn.access", "uvicorn.error"]


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configures structured JSON logging for the video converter.

    Every record carries timestamp, level, logger name, message, trace_id
    and span_id. The root logger and the Uvicorn loggers share a single
    stdout handler so request logs and pipeline logs come out in the same
    format. Calling it again only re-applies the level, which lets every
    module call it at import time.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL environment
            variable, then INFO.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)

    if any(getattr(h, "_converter_handler", False) for h in root_logger.handlers):
        return root_logger

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    stream_handler._converter_handler = True

    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in _UVICORN_LOGGERS:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level_name)
        u_logger.handlers = [stream_handler]
        u_logger.propagate = False

    return root_logger
