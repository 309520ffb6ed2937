from __future__ import annotations

import logging
import os
import socket
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError
from .linecache import LineCache

CONFIG_FILE = Path("_tracecast") / "config.yaml"

DEFAULT_CONTEXT_LINES = 3
DEFAULT_ENVIRONMENT = "development"

_logger = logging.getLogger("tracecast.config")


@dataclass(frozen=True)
class Configuration:
  """
  Settings consumed while building events.

  Instances are normally created via `from_params_or_env`; constructing one
  directly uses the plain defaults below and ignores the environment.
  """

  tags: Dict[str, Any] = field(default_factory=dict)
  server_name: Optional[str] = None
  release: Optional[str] = None
  current_environment: str = DEFAULT_ENVIRONMENT
  send_modules: bool = True
  context_lines: Optional[int] = DEFAULT_CONTEXT_LINES
  project_root: Path = field(default_factory=Path.cwd)
  in_app_exclude: Tuple[str, ...] = ("site-packages", "dist-packages")
  endpoint: Optional[str] = None
  linecache: LineCache = field(default_factory=LineCache, compare=False, repr=False)

  def __post_init__(self) -> None:
    if self.endpoint is not None:
      _validate_endpoint(self.endpoint)

  @classmethod
  def from_params_or_env(
    cls,
    *,
    tags: Optional[Dict[str, Any]] = None,
    server_name: Optional[str] = None,
    release: Optional[str] = None,
    environment: Optional[str] = None,
    send_modules: Optional[bool] = None,
    context_lines: Optional[int] = None,
    project_root: Optional[Path] = None,
    endpoint: Optional[str] = None,
  ) -> "Configuration":
    """
    Build configuration from explicit parameters, falling back to the environment.

    Priority:
      1. Explicit function arguments
      2. Environment variables (TRACECAST_*)
      3. Project config file (_tracecast/config.yaml under the project root)
      4. Defaults
    """
    root = Path(project_root or os.getenv("TRACECAST_PROJECT_ROOT") or Path.cwd())
    file_cfg = load_config_file(root)

    env_context = os.getenv("TRACECAST_CONTEXT_LINES")
    if context_lines is None and env_context is not None:
      context_lines = _parse_int("TRACECAST_CONTEXT_LINES", env_context)
    if context_lines is None:
      context_lines = file_cfg.get("context_lines", DEFAULT_CONTEXT_LINES)

    if send_modules is None:
      send_modules = _get_flag("TRACECAST_SEND_MODULES")
    if send_modules is None:
      send_modules = bool(file_cfg.get("send_modules", True))

    return cls(
      tags=dict(tags if tags is not None else file_cfg.get("tags") or {}),
      server_name=(
        server_name
        or os.getenv("TRACECAST_SERVER_NAME")
        or file_cfg.get("server_name")
        or socket.gethostname()
      ),
      release=release or os.getenv("TRACECAST_RELEASE") or file_cfg.get("release"),
      current_environment=(
        environment
        or os.getenv("TRACECAST_ENVIRONMENT")
        or file_cfg.get("environment")
        or DEFAULT_ENVIRONMENT
      ),
      send_modules=send_modules,
      context_lines=context_lines,
      project_root=root,
      endpoint=endpoint or os.getenv("TRACECAST_ENDPOINT") or file_cfg.get("endpoint"),
    )

  def is_in_app(self, path: Optional[str]) -> bool:
    """
    Classify a frame path as application code.

    A path is in-app when it is absolute, lies under `project_root` and has
    no segment listed in `in_app_exclude` (installed third-party packages).
    """
    if not path or not os.path.isabs(path):
      return False

    normalized = os.path.normpath(path)
    if any(part in self.in_app_exclude for part in Path(normalized).parts):
      return False

    root = os.path.normpath(str(self.project_root))
    return normalized == root or normalized.startswith(root + os.sep)

  def relative_filename(self, path: Optional[str]) -> Optional[str]:
    """
    Strip the longest matching load path prefix from an absolute path.

    Non-absolute paths such as "<stdin>" are returned unchanged.
    """
    if not path:
      return None
    if not os.path.isabs(path):
      return path

    for prefix in self._load_paths():
      if path.startswith(prefix + os.sep):
        return path[len(prefix) + 1:]
    return path

  def _load_paths(self) -> List[str]:
    candidates = {os.path.normpath(str(self.project_root))}
    for entry in sys.path:
      if entry and os.path.isabs(entry):
        candidates.add(os.path.normpath(entry))
    return sorted(candidates, key=len, reverse=True)


def load_config_file(project_root: Path) -> Dict[str, Any]:
  """
  Read the optional project config file.

  Returns an empty mapping when the file is absent, unreadable or malformed.
  """
  config_path = project_root / CONFIG_FILE
  if not config_path.exists():
    return {}

  try:
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
  except (OSError, yaml.YAMLError) as exc:
    _logger.warning("Ignoring unreadable config file '%s': %s", config_path, exc)
    return {}

  if not isinstance(data, dict):
    _logger.warning("Ignoring config file '%s': expected a mapping", config_path)
    return {}

  section = data.get("tracecast", data)
  return section if isinstance(section, dict) else {}


def _validate_endpoint(url: str) -> None:
  parsed = urlparse(url)
  if parsed.scheme not in ("http", "https") or not parsed.netloc:
    raise ConfigurationError(
      f"Invalid TRACECAST_ENDPOINT '{url}'. "
      "Expected an http(s) URL like http://localhost:9000/api/events."
    )


def _parse_int(name: str, raw: str) -> int:
  try:
    return int(raw.strip())
  except ValueError:
    raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def _get_flag(name: str) -> Optional[bool]:
  """
  Read a boolean environment variable.

  Accepts common truthy/falsey strings; returns None when unset or unknown.
  """
  raw = os.getenv(name)
  if raw is None:
    return None

  value = raw.strip().lower()
  if value in ("1", "true", "yes", "on"):
    return True
  if value in ("0", "false", "no", "off"):
    return False
  return None
