from __future__ import annotations

import logging
from datetime import datetime, timezone
from logging import Handler, LogRecord
from typing import Any, Callable, Dict, Optional

from .config import Configuration
from .event import Event, Level
from .transport import HttpTransport

EventSender = Callable[[Dict[str, Any]], Any]

_LEVELS = {
  "DEBUG": Level.DEBUG,
  "INFO": Level.INFO,
  "WARNING": Level.WARNING,
  "ERROR": Level.ERROR,
  "CRITICAL": Level.FATAL,
}

# Standard LogRecord attributes; anything else on a record came from `extra=`.
_STANDARD_LOGRECORD_ATTRS = frozenset(
  {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "message",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
  }
)


class EventHandler(Handler):
  """
  Logging handler that turns records into events and hands them to a sender.
  """

  def __init__(self, configuration: Configuration, sender: EventSender) -> None:
    super().__init__()
    self._configuration = configuration
    self._sender = sender

  def build_event(self, record: LogRecord) -> Event:
    def configure(event: Event) -> None:
      event.logger = record.name
      event.timestamp = _record_time(record)

    event = Event(
      self._configuration,
      message=record.getMessage(),
      level=_LEVELS.get(record.levelname, record.levelname.lower()),
      extra=_extra_attributes(record),
      configure=configure,
    )

    if record.exc_info and record.exc_info[1] is not None:
      event.add_exception_interface(record.exc_info[1])
    return event

  def emit(self, record: LogRecord) -> None:
    try:
      event = self.build_event(record)
      self._sender(event.to_json_compatible())
    except Exception:
      # Never break application logging.
      self.handleError(record)


def setup_logging(
  logger: Optional[logging.Logger] = None,
  *,
  configuration: Optional[Configuration] = None,
) -> Optional[EventHandler]:
  """
  Attach an event handler to a logger (the root logger by default).

  Existing handlers are kept. Nothing is attached when no endpoint is
  configured, and a logger that already has an EventHandler is left as is.
  """
  config = configuration or Configuration.from_params_or_env()
  if not config.endpoint:
    return None

  target_logger = logger or logging.getLogger()

  # Avoid attaching duplicate handlers to the same logger.
  for existing in target_logger.handlers:
    if isinstance(existing, EventHandler):
      return existing

  transport = HttpTransport(endpoint=config.endpoint)
  handler = EventHandler(configuration=config, sender=transport.send)
  handler.setLevel(logging.ERROR)
  target_logger.addHandler(handler)
  return handler


def _extra_attributes(record: LogRecord) -> Dict[str, Any]:
  return {
    key: value
    for key, value in record.__dict__.items()
    if key not in _STANDARD_LOGRECORD_ATTRS and not key.startswith("_")
  }


def _record_time(record: LogRecord) -> datetime:
  return datetime.fromtimestamp(record.created, tz=timezone.utc)
