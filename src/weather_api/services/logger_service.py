import json
import logging
import os
import queue
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict

# Extra attributes copied into the JSON record when a caller passes them
# through `logger.info(..., extra={...})`.
EXTRA_FIELDS = ("kind", "location_id", "route", "status_code")

_listeners: Dict[str, QueueListener] = {}


class JsonFormatter(logging.Formatter):
    """Logging formatter that outputs JSON-formatted records.

    Besides level, message, logger name and timestamp, the formatter copies
    the request-scoped extras listed in `EXTRA_FIELDS` (error kind, location
    id, route, response status) so that failures can be filtered by
    classification in the log aggregator. Exception information, when
    present, is included under the `exception` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = str(value)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def get_logger(name: str = "weather_api") -> logging.Logger:
    """Return a logger which serializes records to JSON off the hot path.

    The first call for a given name wires a QueueHandler to a background
    QueueListener; the listener thread formats and writes the records.
    Later calls for the same name return the already configured logger
    instead of stacking another handler, which matters in warm Lambda
    containers where the handler module may be imported repeatedly.

    Args:
        name (str): Logger name (defaults to "weather_api").

    Returns:
        logging.Logger: Configured logger instance with JSON formatting.
    """
    logger = logging.getLogger(name)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    if name in _listeners:
        return logger

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter())

    listener = QueueListener(log_queue, stream_handler)
    listener.start()
    _listeners[name] = listener

    logger.addHandler(QueueHandler(log_queue))
    logger.propagate = False

    return logger
