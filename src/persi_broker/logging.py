"""Logging setup for the broker.

Broker log lines carry their context in ``extra`` fields (``event``,
``instance_id``, ``binding_id``, ...). The JSON format emits them as
top-level keys; the text format appends them as ``key=value`` pairs.
"""

import logging
import sys
import time
from collections import OrderedDict

from pythonjsonlogger import json as jsonlogger

from persi_broker.config import LoggingConfig

# Extra fields shown by the text formatter, in this order
CONTEXT_FIELDS = ("event", "instance_id", "binding_id", "call", "error")

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_JSON_FORMAT = "%(levelname)s %(name)s %(message)s %(process)d %(filename)s %(lineno)d"


class DuplicateLogFilter(logging.Filter):
    """Drop a log line repeated within a time window.

    Lines are the same when logger, message, event and instance/binding ids
    match. ERROR and above always pass.

    Args:
        window_seconds: Minimum seconds between identical lines.
        max_keys: Number of distinct lines remembered (least recent evicted).
    """

    def __init__(self, window_seconds: float = 5.0, max_keys: int = 1000) -> None:
        super().__init__()
        self._window = window_seconds
        self._max_keys = max_keys
        self._seen: OrderedDict[tuple, float] = OrderedDict()

    @staticmethod
    def _key(record: logging.LogRecord) -> tuple:
        return (
            record.name,
            record.getMessage(),
            getattr(record, "event", None),
            getattr(record, "instance_id", None),
            getattr(record, "binding_id", None),
        )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = self._key(record)
        now = time.monotonic()
        last = self._seen.get(key)
        if last is not None and now - last < self._window:
            return False

        self._seen[key] = now
        self._seen.move_to_end(key)
        while len(self._seen) > self._max_keys:
            self._seen.popitem(last=False)
        return True


class TextFormatter(logging.Formatter):
    """Human readable lines with the broker context appended."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        return f"{line} [{context}]" if context else line


class BrokerJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line for log aggregation.

    Standard keys: timestamp (UTC ISO 8601), level, logger, message, pid,
    service. Extra fields are merged in as-is.
    """

    def __init__(self, config: LoggingConfig) -> None:
        super().__init__(
            _JSON_FORMAT,
            rename_fields={"levelname": "level", "name": "logger", "process": "pid"},
            static_fields={"service": config.service_name},
            timestamp=True,
        )


def setup_logging(config: LoggingConfig) -> None:
    """Install the broker handler on the root and uvicorn loggers."""
    if config.format == "json":
        formatter: logging.Formatter = BrokerJsonFormatter(config)
    else:
        formatter = TextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(DuplicateLogFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers[:] = [handler]
        uv_logger.propagate = False

    # Every broker operation logs its own outcome
    logging.getLogger("uvicorn.access").disabled = True

    for name in ("kubernetes_asyncio", "aiohttp"):
        logging.getLogger(name).setLevel(logging.WARNING)
