from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict
from urllib import error, request

EventPayload = Dict[str, Any]


_logger = logging.getLogger("tracecast.transport")


@dataclass
class HttpTransport:
  """
  Minimal HTTP transport that posts one serialized event to the collector.

  This uses the Python standard library only. Delivery is attempted once;
  failures are logged at WARNING level and never raise back to the caller.
  """

  endpoint: str
  timeout: float = 1.0

  def send(self, payload: EventPayload) -> bool:
    if not payload:
      return False

    data = json.dumps(payload).encode("utf-8")
    req = request.Request(
      self.endpoint,
      data=data,
      headers={"Content-Type": "application/json"},
      method="POST",
    )

    try:
      # The response body carries nothing we need.
      with request.urlopen(req, timeout=self.timeout):  # nosec B310
        return True
    except (error.URLError, error.HTTPError, TimeoutError, OSError) as exc:
      _logger.warning(
        "tracecast HTTP transport failed to deliver event %s: %s",
        payload.get("event_id"),
        exc,
      )
      return False
