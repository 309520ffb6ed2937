from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from importlib import metadata
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .config import Configuration
from .errors import ConfigurationError, SerializationError
from .exception_chain import build_exception_interface
from .interfaces import (
  MAX_MESSAGE_SIZE_IN_BYTES,
  ExceptionInterface,
  Frame,
  HttpInterface,
  Interface,
  InterfaceRegistry,
  MessageInterface,
  StacktraceInterface,
  default_registry,
)
from .stacktrace_builder import build_stacktrace
from .version import __version__

PLATFORM = "python"
SDK: Mapping[str, str] = {"name": "tracecast", "version": __version__}
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

__all__ = [
  "Event",
  "Level",
  "MAX_MESSAGE_SIZE_IN_BYTES",
  "PLATFORM",
  "SDK",
  "normalize_level",
  "to_json_compatible",
]

_logger = logging.getLogger("tracecast.event")

# Scalar fields copied into the payload when set, in payload key order.
_SERIALIZED_FIELDS = (
  "checksum",
  "environment",
  "event_id",
  "extra",
  "fingerprint",
  "level",
  "logger",
  "message",
  "modules",
  "platform",
  "release",
  "sdk",
  "server_name",
  "tags",
  "time_spent",
  "timestamp",
  "transaction",
  "user",
)


class Level(str, Enum):
  DEBUG = "debug"
  INFO = "info"
  WARNING = "warning"
  ERROR = "error"
  FATAL = "fatal"

  def __str__(self) -> str:
    return self.value


def normalize_level(level: Any) -> Any:
  """
  Rewrite the "warn" abbreviation to `Level.WARNING`.

  The comparison ignores case. Every other value is returned unchanged,
  including values that are not valid levels.
  """
  if str(level).lower() == "warn":
    return Level.WARNING
  return level


class Event:
  """
  One reported incident, built up from scalar fields and attached interfaces.

  An event is created per incident, adjusted during construction (through the
  `configure` callback, attribute assignment or the interface helpers) and then
  serialized with `to_hash` or `to_json_compatible`. Events are not meant to
  be shared between threads.
  """

  def __init__(
    self,
    configuration: Optional[Configuration] = None,
    *,
    message: Optional[str] = None,
    user: Optional[Dict[str, Any]] = None,
    extra: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, Any]] = None,
    backtrace: Optional[Sequence[Any]] = None,
    level: Any = Level.ERROR,
    checksum: Optional[str] = None,
    fingerprint: Optional[List[str]] = None,
    server_name: Optional[str] = None,
    release: Optional[str] = None,
    environment: Optional[str] = None,
    configure: Optional[Callable[["Event"], None]] = None,
    registry: Optional[InterfaceRegistry] = None,
  ) -> None:
    # Setters below read from the configuration, so it has to come first.
    if configuration is None:
      raise ConfigurationError("An event requires a configuration")
    self.configuration = configuration

    self._id = uuid.uuid4().hex
    self.timestamp = datetime.now(timezone.utc)
    self.platform = PLATFORM
    self.sdk = dict(SDK)

    self._registry = registry or default_registry
    self._interfaces: Dict[str, Interface] = {}

    self.user = user if user is not None else {}
    self.extra = extra if extra is not None else {}
    self.tags = {**configuration.tags, **(tags or {})}

    self.logger: Optional[str] = None
    self.transaction: Optional[str] = None
    self.modules: Dict[str, str] = {}
    self._time_spent: Optional[int] = None

    self.checksum = checksum
    self.fingerprint = fingerprint if fingerprint is not None else []
    self.server_name = server_name
    self.release = release
    self.environment = environment

    self.level = level
    if message is not None:
      self.message = message

    if configure is not None:
      configure(self)

    if backtrace:
      self.interface("stacktrace", build_stacktrace(backtrace, configuration))

    self._set_core_attributes_from_configuration()

  @classmethod
  def from_exception(
    cls,
    exc: BaseException,
    configuration: Optional[Configuration] = None,
    **kwargs: Any,
  ) -> "Event":
    event = cls(configuration, **kwargs)
    event.add_exception_interface(exc)
    return event

  @property
  def id(self) -> str:
    return self._id

  @property
  def event_id(self) -> str:
    return self._id

  @property
  def message(self) -> str:
    message_interface = self.message_interface
    return message_interface.message if message_interface is not None else ""

  @message.setter
  def message(self, message: str) -> None:
    self.interface("message", {"message": message})

  @property
  def level(self) -> Any:
    return self._level

  @level.setter
  def level(self, new_level: Any) -> None:
    self._level = normalize_level(new_level)

  @property
  def timestamp(self) -> Any:
    return self._timestamp

  @timestamp.setter
  def timestamp(self, time: Union[datetime, str]) -> None:
    self._timestamp = time.strftime(TIMESTAMP_FORMAT) if isinstance(time, datetime) else time

  @property
  def time_spent(self) -> Optional[int]:
    """Duration in milliseconds."""
    return self._time_spent

  @time_spent.setter
  def time_spent(self, duration: Union[int, float, timedelta, None]) -> None:
    # Floats and timedeltas are seconds; ints are already milliseconds.
    if isinstance(duration, timedelta):
      duration = duration.total_seconds()
    if isinstance(duration, float):
      duration = int(duration * 1000)
    self._time_spent = duration

  # -- interfaces -------------------------------------------------------------

  def interface(
    self,
    name: str,
    value: Any = None,
    configure: Optional[Callable[[Any], None]] = None,
  ) -> Optional[Interface]:
    """
    Read, and optionally replace, the interface registered under `name`.

    With a `value` or `configure` callback a new interface is built and stored
    under its wire alias, replacing any earlier one. Unknown names raise
    UnknownInterfaceError without touching attached interfaces.
    """
    interface_type = self._registry.lookup(name)
    if value is not None or configure is not None:
      self._interfaces[interface_type.wire_alias] = interface_type.build(value, configure)
    return self._interfaces.get(interface_type.wire_alias)

  def get_interface(self, name: str) -> Optional[Interface]:
    return self.interface(name)

  def set_interface(self, name: str, value: Any) -> Interface:
    if value is None:
      raise ValueError("value must not be None")
    return self.interface(name, value)  # type: ignore[return-value]

  @property
  def message_interface(self) -> Optional[MessageInterface]:
    return self.interface("message")  # type: ignore[return-value]

  @property
  def stacktrace_interface(self) -> Optional[StacktraceInterface]:
    return self.interface("stacktrace")  # type: ignore[return-value]

  @property
  def exception_interface(self) -> Optional[ExceptionInterface]:
    return self.interface("exception")  # type: ignore[return-value]

  @property
  def http_interface(self) -> Optional[HttpInterface]:
    return self.interface("http")  # type: ignore[return-value]

  def add_exception_interface(self, exc: BaseException) -> ExceptionInterface:
    return self.set_interface(  # type: ignore[return-value]
      "exception", build_exception_interface(exc, self.configuration)
    )

  def add_wsgi_context(self, environ: Mapping[str, Any]) -> HttpInterface:
    return self.set_interface("http", HttpInterface.from_wsgi(environ))  # type: ignore[return-value]

  def stacktrace_interface_from(self, backtrace: Sequence[Any]) -> List[Frame]:
    return build_stacktrace(backtrace, self.configuration).frames

  # -- serialization ----------------------------------------------------------

  def to_hash(self) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for name in _SERIALIZED_FIELDS:
      value = getattr(self, name)
      if value:
        data[name] = value

    for alias, interface in self._interfaces.items():
      data[alias] = interface.to_hash()
    return data

  def to_json_compatible(self) -> Dict[str, Any]:
    return to_json_compatible(self.to_hash())

  def _set_core_attributes_from_configuration(self) -> None:
    self.server_name = self.server_name or self.configuration.server_name
    self.release = self.release or self.configuration.release
    self.environment = self.environment or self.configuration.current_environment
    if self.configuration.send_modules:
      self.modules = _list_installed_packages()

  def __repr__(self) -> str:
    return f"<Event id={self._id} level={self._level!s}>"


def to_json_compatible(data: Mapping[str, Any]) -> Dict[str, Any]:
  """
  Round-trip a payload through JSON text.

  Values JSON cannot represent (arbitrary objects, bytes, sets, NaN) and
  mapping keys that are not strings raise SerializationError instead of being
  coerced.
  """
  _check_keys(data, "payload")
  try:
    return json.loads(json.dumps(data, allow_nan=False))
  except (TypeError, ValueError) as exc:
    raise SerializationError(f"Event payload is not JSON serializable: {exc}") from exc


def _check_keys(value: Any, path: str) -> None:
  # json.dumps would stringify these keys, merging colliding entries.
  if isinstance(value, Mapping):
    for key, item in value.items():
      if not isinstance(key, str):
        raise SerializationError(f"Non-string key {key!r} in {path}")
      _check_keys(item, f"{path}.{key}")
  elif isinstance(value, (list, tuple)):
    for index, item in enumerate(value):
      _check_keys(item, f"{path}[{index}]")


def _list_installed_packages() -> Dict[str, str]:
  packages: Dict[str, str] = {}
  try:
    for dist in metadata.distributions():
      name = dist.metadata["Name"]
      if name:
        packages[name] = dist.version
  except Exception:
    _logger.debug("Could not list installed packages", exc_info=True)
    return {}
  return packages
