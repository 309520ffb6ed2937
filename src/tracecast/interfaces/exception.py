from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import Interface
from .stacktrace import StacktraceInterface


class SingleExceptionInterface(Interface):
  """
  One entry in a cause chain.

  `stacktrace` is left unset when the entry had no traceback, or when the
  same trace was already rendered for an earlier entry in the chain.
  """

  type: Optional[str] = None
  value: Optional[str] = None
  module: Optional[str] = None
  stacktrace: Optional[StacktraceInterface] = None


class ExceptionInterface(Interface):
  wire_alias = "exception"

  values: List[SingleExceptionInterface] = Field(default_factory=list)
