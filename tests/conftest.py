from pathlib import Path

import pytest

from tracecast.config import Configuration  # type: ignore[import]


@pytest.fixture
def configuration(tmp_path: Path) -> Configuration:
  """Deterministic configuration rooted at a temporary project directory."""
  return Configuration(
    tags={"team": "core"},
    server_name="test-host",
    release="1.2.3",
    current_environment="test",
    send_modules=False,
    context_lines=2,
    project_root=tmp_path,
  )


@pytest.fixture
def clean_env(monkeypatch):
  """Remove every TRACECAST_* variable so env fallbacks are predictable."""
  import os

  for key in list(os.environ):
    if key.startswith("TRACECAST_"):
      monkeypatch.delenv(key, raising=False)
  return monkeypatch


@pytest.fixture
def source_file(tmp_path: Path):
  """Factory writing a source file under the temporary project root."""

  def _write(rel_path: str, lines) -> Path:
    file_path = tmp_path / rel_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text("\n".join(lines) + "\n")
    return file_path

  return _write
