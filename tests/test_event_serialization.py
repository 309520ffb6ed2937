import dataclasses
import json
import math
from datetime import datetime

import pytest

from tracecast.errors import SerializationError  # type: ignore[import]
from tracecast.event import Event, Level, to_json_compatible  # type: ignore[import]


def test_end_to_end_message_event(configuration):
  event = Event(configuration, message="boom", tags={"team": "core", "env": "prod"})

  data = event.to_hash()

  assert data["tags"] == {"team": "core", "env": "prod"}
  assert data["message"] == "boom"
  assert data["level"] == Level.ERROR
  assert data["level"] == "error"
  assert data["event_id"] == event.id
  assert data["platform"] == "python"
  assert data["server_name"] == "test-host"
  assert data["logentry"] == {"message": "boom"}


def test_falsy_scalars_are_omitted(configuration):
  config = dataclasses.replace(configuration, tags={}, release=None)
  event = Event(config, checksum="", fingerprint=[], user={}, extra={})
  event.time_spent = 0
  event.transaction = ""

  data = event.to_hash()

  for key in ("checksum", "fingerprint", "user", "extra", "tags", "time_spent",
              "transaction", "logger", "message", "modules", "release"):
    assert key not in data
  assert None not in data.values()


def test_set_scalars_are_serialized(configuration):
  event = Event(configuration, checksum="abc", fingerprint=["{{ default }}", "db"], user={"id": 1})
  event.logger = "orders"
  event.time_spent = 0.25

  data = event.to_hash()

  assert data["checksum"] == "abc"
  assert data["fingerprint"] == ["{{ default }}", "db"]
  assert data["user"] == {"id": 1}
  assert data["logger"] == "orders"
  assert data["time_spent"] == 250


def test_interfaces_appear_verbatim_under_their_alias(configuration):
  event = Event(configuration, message="boom")
  http = event.set_interface("http", {"url": "http://example.com/", "headers": {"Accept": "*/*"}})

  data = event.to_hash()

  assert data["request"] == http.to_hash()
  assert data["logentry"] == event.message_interface.to_hash()


def test_frames_omit_unset_fields(configuration):
  event = Event(configuration, backtrace=['File "<stdin>", line 1, in <module>'])

  frame = event.to_hash()["stacktrace"]["frames"][0]

  assert frame == {
    "filename": "<stdin>",
    "abs_path": "<stdin>",
    "function": "<module>",
    "lineno": 1,
    "in_app": False,
  }


def test_to_json_compatible_normalizes_values(configuration):
  event = Event(configuration, message="boom", level="warn", extra={"ids": (1, 2)})

  data = event.to_json_compatible()

  assert data["level"] == "warning"
  assert type(data["level"]) is str
  assert data["extra"] == {"ids": [1, 2]}
  assert json.loads(json.dumps(data)) == data


def test_to_json_compatible_is_idempotent(configuration):
  try:
    raise KeyError("missing")
  except KeyError as exc:
    event = Event.from_exception(exc, configuration, message="lookup failed")

  once = event.to_json_compatible()

  assert to_json_compatible(once) == once


@pytest.mark.parametrize(
  "value",
  [object(), b"bytes", {1, 2}, datetime(2024, 1, 1), math.nan],
)
def test_non_json_values_fail_loudly(configuration, value):
  event = Event(configuration, extra={"bad": value})

  with pytest.raises(SerializationError):
    event.to_json_compatible()


@pytest.mark.parametrize(
  "extra",
  [
    {1: "int-key", "1": "str-key"},
    {None: "none-key"},
    {"nested": [{True: "bool-key"}]},
  ],
)
def test_non_string_keys_fail_loudly(configuration, extra):
  event = Event(configuration, extra=extra)

  with pytest.raises(SerializationError, match="Non-string key"):
    event.to_json_compatible()
