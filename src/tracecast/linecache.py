from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

FileContext = Tuple[Optional[List[str]], Optional[str], Optional[List[str]]]

_NO_CONTEXT: FileContext = (None, None, None)

_logger = logging.getLogger("tracecast.linecache")


class LineCache:
  """
  Shared, read-only cache of source file lines used for frame context.

  Contents are read once per path and kept for the life of the cache. Files
  that cannot be read are remembered as missing so repeated frames from the
  same library path do not hit the filesystem again.
  """

  def __init__(self) -> None:
    self._files: Dict[str, Optional[List[str]]] = {}
    self._lock = threading.Lock()

  def get_file_context(self, path: str, line_number: Optional[int], context_count: int) -> FileContext:
    """
    Return (pre_lines, current_line, post_lines) around a 1-based line number.

    Up to `context_count` lines are returned on each side, clipped to the file
    boundaries. Unreadable files and out-of-range lines give (None, None, None).
    """
    if not path or line_number is None or line_number < 1:
      return _NO_CONTEXT

    lines = self._get_lines(path)
    if lines is None or line_number > len(lines):
      return _NO_CONTEXT

    idx = line_number - 1
    pre = lines[max(0, idx - context_count):idx]
    post = lines[idx + 1:idx + 1 + context_count]
    return pre, lines[idx], post

  def clear(self) -> None:
    with self._lock:
      self._files.clear()

  def _get_lines(self, path: str) -> Optional[List[str]]:
    with self._lock:
      if path in self._files:
        return self._files[path]

    lines = _read_lines(path)

    with self._lock:
      # First reader wins so every caller sees the same list.
      return self._files.setdefault(path, lines)


def _read_lines(path: str) -> Optional[List[str]]:
  try:
    text = Path(path).read_text(encoding="utf-8")
  except PermissionError:
    _logger.debug("Permission denied reading '%s'", path)
    return None
  except (OSError, UnicodeDecodeError) as exc:
    _logger.debug("Error reading '%s': %s", path, exc)
    return None
  return text.splitlines()
