from __future__ import annotations

import logging
import os
from typing import Any, List, Sequence

from .backtrace import Backtrace
from .config import Configuration
from .interfaces import Frame, StacktraceInterface

_logger = logging.getLogger("tracecast.stacktrace_builder")


def build_stacktrace(backtrace: Sequence[Any], configuration: Configuration) -> StacktraceInterface:
  """
  Turn a raw "most recent call first" backtrace into a stacktrace interface.
  """
  parsed = Backtrace.parse(backtrace, configuration)
  return StacktraceInterface(frames=frames_from_backtrace(parsed, configuration))


def frames_from_backtrace(backtrace: Backtrace, configuration: Configuration) -> List[Frame]:
  """
  Build frames ordered outermost call first, most recent call last.

  Frames without a filename are dropped. When `context_lines` is set, frames
  with an absolute path are enriched with surrounding source lines; a frame
  whose source cannot be read is kept without context.
  """
  frames: List[Frame] = []
  for line in reversed(backtrace.lines):
    frame = Frame(lineno=line.number, in_app=line.in_app)
    if line.file:
      frame.abs_path = line.file
      frame.filename = configuration.relative_filename(line.file)
    if line.method:
      frame.function = line.method
    if line.module_name:
      frame.module = line.module_name

    if configuration.context_lines and frame.abs_path and os.path.isabs(frame.abs_path):
      _add_context(frame, configuration)

    if frame.filename:
      frames.append(frame)
  return frames


def _add_context(frame: Frame, configuration: Configuration) -> None:
  try:
    pre, current, post = configuration.linecache.get_file_context(
      frame.abs_path, frame.lineno, configuration.context_lines
    )
  except Exception as exc:
    # Context is best-effort; the frame is kept without it.
    _logger.debug("No source context for '%s': %s", frame.abs_path, exc)
    return

  if current is None:
    return
  frame.pre_context = pre
  frame.context_line = current
  frame.post_context = post
