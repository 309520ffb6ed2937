from __future__ import annotations


class TracecastError(Exception):
  """
  Base class for errors raised while building or serializing events.
  """


class ConfigurationError(TracecastError):
  """
  Raised when an event is built without a configuration, or when a
  configuration value cannot be used.
  """


class UnknownInterfaceError(TracecastError):
  """
  Raised when an interface name has no registered type.
  """

  def __init__(self, name: str) -> None:
    super().__init__(f"Unknown interface: {name}")
    self.name = name


class SerializationError(TracecastError):
  """
  Raised when an event payload holds a value JSON cannot represent.
  """
