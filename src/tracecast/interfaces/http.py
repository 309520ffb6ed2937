from __future__ import annotations

from http.cookies import CookieError, SimpleCookie
from typing import Any, Dict, Mapping, Optional

from .base import Interface

# Environ keys carried into the `env` section; everything else is either
# already represented elsewhere or server internals.
_ENV_KEYS = ("REMOTE_ADDR", "SERVER_NAME", "SERVER_PORT")

# CGI variables that are headers without the HTTP_ prefix.
_UNPREFIXED_HEADERS = {"CONTENT_TYPE": "Content-Type", "CONTENT_LENGTH": "Content-Length"}


class HttpInterface(Interface):
  """
  Request context for events reported while handling an HTTP request.
  """

  wire_alias = "request"

  url: Optional[str] = None
  method: Optional[str] = None
  data: Optional[Any] = None
  query_string: Optional[str] = None
  cookies: Optional[Dict[str, str]] = None
  headers: Optional[Dict[str, str]] = None
  env: Optional[Dict[str, str]] = None

  @classmethod
  def from_wsgi(cls, environ: Mapping[str, Any]) -> "HttpInterface":
    """
    Build request context from a PEP 3333 environ mapping.

    The request body is not read; `data` is left for the caller to fill.
    """
    headers = _headers_from_environ(environ)
    return cls(
      url=_url_from_environ(environ),
      method=environ.get("REQUEST_METHOD"),
      query_string=environ.get("QUERY_STRING") or None,
      cookies=_cookies_from_header(headers.get("Cookie")),
      headers=headers or None,
      env={key: str(environ[key]) for key in _ENV_KEYS if key in environ} or None,
    )


def _url_from_environ(environ: Mapping[str, Any]) -> Optional[str]:
  scheme = environ.get("wsgi.url_scheme", "http")
  host = environ.get("HTTP_HOST")
  if not host:
    server = environ.get("SERVER_NAME")
    if not server:
      return None
    port = str(environ.get("SERVER_PORT", ""))
    default_port = "443" if scheme == "https" else "80"
    host = server if not port or port == default_port else f"{server}:{port}"

  path = f"{environ.get('SCRIPT_NAME', '')}{environ.get('PATH_INFO', '')}" or "/"
  return f"{scheme}://{host}{path}"


def _headers_from_environ(environ: Mapping[str, Any]) -> Dict[str, str]:
  headers: Dict[str, str] = {}
  for key, value in environ.items():
    if key.startswith("HTTP_"):
      name = "-".join(part.capitalize() for part in key[5:].split("_"))
    elif key in _UNPREFIXED_HEADERS:
      name = _UNPREFIXED_HEADERS[key]
    else:
      continue
    if value:
      headers[name] = str(value)
  return headers


def _cookies_from_header(header: Optional[str]) -> Optional[Dict[str, str]]:
  if not header:
    return None

  jar: SimpleCookie = SimpleCookie()
  try:
    jar.load(header)
  except CookieError:
    return None
  return {name: morsel.value for name, morsel in jar.items()} or None
