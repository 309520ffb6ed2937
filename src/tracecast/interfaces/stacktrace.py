from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import Interface


class Frame(Interface):
  """
  One call in a stack trace.

  `pre_context`, `context_line` and `post_context` are only set when source
  context was available for the frame.
  """

  filename: Optional[str] = None
  abs_path: Optional[str] = None
  function: Optional[str] = None
  lineno: Optional[int] = None
  in_app: bool = False
  module: Optional[str] = None
  pre_context: Optional[List[str]] = None
  context_line: Optional[str] = None
  post_context: Optional[List[str]] = None


class StacktraceInterface(Interface):
  """
  Ordered frames, outermost call first and most recent call last.
  """

  wire_alias = "stacktrace"

  frames: List[Frame] = Field(default_factory=list)
