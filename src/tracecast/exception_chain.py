from __future__ import annotations

from typing import List, Set

from .backtrace import Backtrace, BacktraceKey, raw_backtrace
from .config import Configuration
from .interfaces import ExceptionInterface, SingleExceptionInterface, StacktraceInterface
from .stacktrace_builder import frames_from_backtrace


def exception_to_array(exc: BaseException) -> List[BaseException]:
  """
  Walk a cause chain from the outermost wrapper to the root cause.

  Follows `__cause__`, falling back to `__context__` unless it was suppressed
  with `raise ... from None`. Each exception is visited once, so a cyclic
  chain terminates.
  """
  chain: List[BaseException] = []
  seen: Set[int] = set()
  current = exc
  while current is not None and id(current) not in seen:
    seen.add(id(current))
    chain.append(current)
    if current.__cause__ is not None:
      current = current.__cause__
    elif not current.__suppress_context__:
      current = current.__context__
    else:
      current = None
  return chain


def build_exception_interface(exc: BaseException, configuration: Configuration) -> ExceptionInterface:
  """
  Flatten a cause chain into an exception interface, root cause first.

  A trace is rendered only for the first entry that carries it; later
  entries with the same backtrace key get no stacktrace.
  """
  rendered: Set[BacktraceKey] = set()
  values: List[SingleExceptionInterface] = []

  for error in reversed(exception_to_array(exc)):
    single = SingleExceptionInterface(
      type=type(error).__name__,
      value=str(error),
      module=_namespace_of(type(error)),
    )

    raw = raw_backtrace(error)
    if raw:
      backtrace = Backtrace.parse(raw, configuration)
      if backtrace.key not in rendered:
        rendered.add(backtrace.key)
        single.stacktrace = StacktraceInterface(
          frames=frames_from_backtrace(backtrace, configuration)
        )

    values.append(single)

  return ExceptionInterface(values=values)


def _namespace_of(kind: type) -> str:
  qualified = f"{kind.__module__}.{kind.__qualname__}"
  return qualified.rpartition(".")[0]
