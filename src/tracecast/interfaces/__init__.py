"""
tracecast.interfaces

Serializable sub-documents attached to an event, and the registry that maps
their short names to types. Built-in interfaces are registered on import.
"""

from .base import Interface, InterfaceRegistry, default_registry
from .exception import ExceptionInterface, SingleExceptionInterface
from .http import HttpInterface
from .message import MAX_MESSAGE_SIZE_IN_BYTES, MessageInterface, truncate_message
from .stacktrace import Frame, StacktraceInterface


def register_builtin_interfaces(registry: InterfaceRegistry) -> InterfaceRegistry:
  registry.register("message", MessageInterface)
  registry.register("stacktrace", StacktraceInterface)
  registry.register("exception", ExceptionInterface)
  registry.register("http", HttpInterface)
  return registry


register_builtin_interfaces(default_registry)

__all__ = [
  "ExceptionInterface",
  "Frame",
  "HttpInterface",
  "Interface",
  "InterfaceRegistry",
  "MAX_MESSAGE_SIZE_IN_BYTES",
  "MessageInterface",
  "SingleExceptionInterface",
  "StacktraceInterface",
  "default_registry",
  "register_builtin_interfaces",
  "truncate_message",
]
