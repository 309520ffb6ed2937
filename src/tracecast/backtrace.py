from __future__ import annotations

import os
import re
import sys
import traceback
from dataclasses import dataclass
from types import FrameType
from typing import Any, List, Optional, Sequence, Tuple

from .config import Configuration

# Matches the per-frame header printed by the traceback module, e.g.
#   File "/app/main.py", line 42, in handler
# Formatted entries may carry the source line after the header; only the
# header line is matched.
_TRACEBACK_LINE = re.compile(
  r'^\s*File "(?P<file>[^"]+)", line (?P<number>\d+)(?:, in (?P<method>.+?))?\s*$'
)

BacktraceKey = Tuple[Tuple[Optional[str], Optional[int], Optional[str]], ...]


@dataclass(frozen=True)
class Line:
  """
  One parsed backtrace entry.
  """

  file: Optional[str]
  number: Optional[int]
  method: Optional[str] = None
  module_name: Optional[str] = None
  in_app: bool = False


@dataclass(frozen=True)
class Backtrace:
  """
  Parsed backtrace, kept in the raw "most recent call first" order.
  """

  lines: List[Line]

  @classmethod
  def parse(cls, backtrace: Sequence[Any], configuration: Configuration) -> "Backtrace":
    return cls(lines=[_parse_entry(entry, configuration) for entry in backtrace])

  @property
  def key(self) -> BacktraceKey:
    """
    Value-based identity of the trace.

    Two raw backtraces with the same frames in the same order share a key,
    which is what the exception chain uses to avoid rendering a trace twice.
    """
    return tuple((line.file, line.number, line.method) for line in self.lines)


def raw_backtrace(exc: BaseException) -> Optional[List[Tuple[FrameType, int]]]:
  """
  Return the traceback of an exception as (frame, lineno) pairs, most recent call first.
  """
  tb = exc.__traceback__
  if tb is None:
    return None
  return list(traceback.walk_tb(tb))[::-1]


def current_backtrace(skip: int = 0) -> List[Tuple[FrameType, int]]:
  """
  Return the caller's stack as (frame, lineno) pairs, most recent call first.

  `skip` drops that many additional innermost frames, for helpers that
  capture on behalf of their own caller.
  """
  frame = sys._getframe(1 + skip)
  return list(traceback.walk_stack(frame))


def _parse_entry(entry: Any, configuration: Configuration) -> Line:
  module_name: Optional[str] = None

  if isinstance(entry, traceback.FrameSummary):
    file, number, method = entry.filename, entry.lineno, entry.name
  elif isinstance(entry, tuple) and len(entry) == 2 and isinstance(entry[0], FrameType):
    frame, number = entry
    file = frame.f_code.co_filename
    method = frame.f_code.co_name
    module_name = frame.f_globals.get("__name__")
  elif isinstance(entry, str):
    header = entry.strip("\n").split("\n", 1)[0]
    match = _TRACEBACK_LINE.match(header)
    if not match:
      return Line(file=None, number=None)
    file, method = match.group("file"), match.group("method")
    number = int(match.group("number"))
  else:
    raise TypeError(f"Unsupported backtrace entry: {type(entry).__name__}")

  if module_name is None:
    module_name = _module_name_from_path(configuration.relative_filename(file))

  return Line(
    file=file or None,
    number=number,
    method=method or None,
    module_name=module_name,
    in_app=configuration.is_in_app(file),
  )


def _module_name_from_path(filename: Optional[str]) -> Optional[str]:
  if not filename or os.path.isabs(filename) or not filename.endswith(".py"):
    return None

  parts = filename[:-3].split(os.sep)
  if parts[-1] == "__init__":
    parts = parts[:-1]
  if not parts or not all(part.isidentifier() for part in parts):
    return None
  return ".".join(parts)
