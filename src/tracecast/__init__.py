"""
tracecast

Builds structured error events (messages, stack traces, exception chains,
request context) and serializes them for delivery to an error-tracking
collector.
"""

from .backtrace import current_backtrace, raw_backtrace
from .config import Configuration
from .errors import ConfigurationError, SerializationError, TracecastError, UnknownInterfaceError
from .event import PLATFORM, SDK, Event, Level, normalize_level, to_json_compatible
from .interfaces import InterfaceRegistry, default_registry
from .logging_setup import EventHandler, setup_logging
from .version import __version__

__all__ = [
  "Configuration",
  "ConfigurationError",
  "Event",
  "EventHandler",
  "InterfaceRegistry",
  "Level",
  "PLATFORM",
  "SDK",
  "SerializationError",
  "TracecastError",
  "UnknownInterfaceError",
  "__version__",
  "current_backtrace",
  "default_registry",
  "normalize_level",
  "raw_backtrace",
  "setup_logging",
  "to_json_compatible",
]
