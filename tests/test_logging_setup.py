import dataclasses
import logging
import re
from typing import Any, Dict, List

import pytest

from tracecast.logging_setup import EventHandler, setup_logging  # type: ignore[import]


@pytest.fixture
def captured(configuration):
  events: List[Dict[str, Any]] = []
  handler = EventHandler(configuration=configuration, sender=events.append)
  logger = logging.getLogger("tracecast-test-logger")
  logger.setLevel(logging.DEBUG)
  logger.addHandler(handler)
  yield logger, events
  logger.removeHandler(handler)


def test_records_become_events(captured):
  logger, events = captured

  logger.error("payment %s failed", "p-1")

  assert len(events) == 1
  event = events[0]
  assert event["message"] == "payment p-1 failed"
  assert event["level"] == "error"
  assert event["logger"] == "tracecast-test-logger"
  assert event["tags"] == {"team": "core"}
  assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}", event["timestamp"])


@pytest.mark.parametrize(
  "method, expected",
  [("debug", "debug"), ("info", "info"), ("warning", "warning"), ("critical", "fatal")],
)
def test_levels_are_mapped(captured, method, expected):
  logger, events = captured

  getattr(logger, method)("hello")

  assert events[0]["level"] == expected


def test_exception_info_is_flattened(captured):
  logger, events = captured

  try:
    1 / 0
  except ZeroDivisionError:
    logger.exception("boom")

  values = events[0]["exception"]["values"]
  assert values[-1]["type"] == "ZeroDivisionError"
  assert values[-1]["module"] == "builtins"
  assert values[-1]["stacktrace"]["frames"][-1]["function"] == "test_exception_info_is_flattened"


def test_extra_attributes_go_to_extra(captured):
  logger, events = captured

  logger.error("with extras", extra={"order_id": 7})

  assert events[0]["extra"] == {"order_id": 7}


def test_sender_errors_are_routed_to_handle_error(configuration, monkeypatch):
  def failing_sender(payload):
    raise RuntimeError("transport exploded")

  handler = EventHandler(configuration=configuration, sender=failing_sender)
  handled = []
  monkeypatch.setattr(handler, "handleError", lambda record: handled.append(record))

  record = logging.LogRecord("x", logging.ERROR, __file__, 1, "msg", None, None)
  handler.emit(record)

  assert handled == [record]


def test_setup_logging_without_endpoint_does_nothing(configuration):
  logger = logging.getLogger("tracecast-test-no-endpoint")

  assert setup_logging(logger, configuration=configuration) is None
  assert not any(isinstance(h, EventHandler) for h in logger.handlers)


def test_setup_logging_attaches_a_single_handler(configuration):
  config = dataclasses.replace(configuration, endpoint="http://localhost:9/api/events")
  logger = logging.getLogger("tracecast-test-setup")

  try:
    first = setup_logging(logger, configuration=config)
    second = setup_logging(logger, configuration=config)

    assert first is not None
    assert first is second
    assert first.level == logging.ERROR
    assert [h for h in logger.handlers if isinstance(h, EventHandler)] == [first]
  finally:
    for handler in list(logger.handlers):
      logger.removeHandler(handler)
