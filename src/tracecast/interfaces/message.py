from __future__ import annotations

from typing import Any, List, Optional

from pydantic import ConfigDict, field_validator

from .base import Interface

# Server-side limit on message payloads.
MAX_MESSAGE_SIZE_IN_BYTES = 1024 * 8


def truncate_message(message: str, limit: int = MAX_MESSAGE_SIZE_IN_BYTES) -> str:
  """
  Cut a message to at most `limit` UTF-8 bytes.

  The cut is made on the byte representation; a character split by it is
  dropped rather than carried over as invalid UTF-8.
  """
  encoded = message.encode("utf-8")
  if len(encoded) <= limit:
    return message
  return encoded[:limit].decode("utf-8", errors="ignore")


class MessageInterface(Interface):
  """
  The event's log entry: a formatted message plus optional format params.
  """

  model_config = ConfigDict(extra="forbid", validate_assignment=True)

  wire_alias = "logentry"

  message: str = ""
  params: Optional[List[Any]] = None

  @field_validator("message", mode="before")
  @classmethod
  def _truncate(cls, value: Any) -> Any:
    if value is None:
      return ""
    if isinstance(value, str):
      return truncate_message(value)
    return value
