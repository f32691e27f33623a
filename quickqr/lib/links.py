"""Link normalization.

Turns free-text input into a canonical absolute http(s) URL suitable for
encoding in a QR code, or rejects it.
"""

import ipaddress
import re
from urllib.parse import quote, urlsplit, urlunsplit

import idna

from quickqr.lib.errors import InvalidLinkError

ALLOWED_SCHEMES = frozenset({'http', 'https'})
DEFAULT_SCHEME = 'https'
DEFAULT_PORTS = {'http': 80, 'https': 443}

_HTTP_PREFIX = re.compile(r'^https?://', re.IGNORECASE)
# "name:" not followed by a digit is an explicit scheme ("javascript:", "ftp://");
# "host:8080" is a host with a port.
_OTHER_SCHEME = re.compile(r'^[a-z][a-z0-9+.\-]*:(?!\d)', re.IGNORECASE)

_PATH_SAFE = "/:@!$&'()*+,;=-._~%"
_QUERY_SAFE = "/?:@!$&'()*+,;=-._~%"

# Code points that may not appear in a domain host
_FORBIDDEN_HOST_CHARS = frozenset(map(chr, range(0x20))) | frozenset(' #%/:<>?@[\\]^|\x7f')


def _canonical_host(hostname: str) -> str | None:
  if not hostname or any(ch.isspace() for ch in hostname):
    return None
  if ':' in hostname:
    # IPv6 literal
    try:
      return f'[{ipaddress.IPv6Address(hostname).compressed}]'
    except ValueError:
      return None
  if hostname.isascii():
    host = hostname
  else:
    try:
      host = idna.encode(hostname, uts46=True).decode('ascii')
    except idna.IDNAError:
      return None
  host = host.lower()
  if any(ch in _FORBIDDEN_HOST_CHARS for ch in host):
    return None
  return host


def _backslashes_to_slashes(text: str) -> str:
  # Backslashes before the query act as slashes in http(s) URLs
  end = len(text)
  for marker in '?#':
    index = text.find(marker)
    if index != -1:
      end = min(end, index)
  return text[:end].replace('\\', '/') + text[end:]


def normalize_url(raw: str | None) -> str | None:
  """Validate and canonicalize user input into an absolute http(s) URL.

  Input without a scheme gets ``https://`` prepended. Any scheme other than
  http or https is rejected. Backslashes before the query are read as
  slashes, and non-ASCII hosts are encoded with UTS-46 (IDNA2008) rules.

  Args:
      raw: Text as typed by the user

  Returns:
      Canonical URL string, or None if the input is not a usable link

  Examples:
      >>> normalize_url('example.com')
      'https://example.com/'
      >>> normalize_url('javascript:alert(1)') is None
      True
  """
  if raw is None:
    return None

  text = raw.strip()
  if not text:
    return None
  text = _backslashes_to_slashes(text)

  if not _HTTP_PREFIX.match(text):
    if _OTHER_SCHEME.match(text):
      return None
    text = f'{DEFAULT_SCHEME}://{text}'

  try:
    parts = urlsplit(text)
    port = parts.port
  except ValueError:
    return None

  scheme = parts.scheme.lower()
  if scheme not in ALLOWED_SCHEMES:
    return None

  netloc_text = parts.netloc
  if not netloc_text or any(ch.isspace() for ch in netloc_text):
    return None

  host = _canonical_host(parts.hostname or '')
  if host is None:
    return None

  netloc = host
  if port is not None and port != DEFAULT_PORTS[scheme]:
    netloc = f'{host}:{port}'
  if parts.username is not None:
    userinfo = parts.username
    if parts.password is not None:
      userinfo = f'{userinfo}:{parts.password}'
    netloc = f'{userinfo}@{netloc}'

  path = quote(parts.path, safe=_PATH_SAFE) or '/'
  query = quote(parts.query, safe=_QUERY_SAFE)
  fragment = quote(parts.fragment, safe=_QUERY_SAFE)

  return urlunsplit((scheme, netloc, path, query, fragment))


def require_url(raw: str | None) -> str:
  """Like normalize_url, but raise InvalidLinkError for unusable input."""
  normalized = normalize_url(raw)
  if normalized is None:
    raise InvalidLinkError(raw)
  return normalized


def read_hostname(value: object) -> str | None:
  """Return the hostname of an absolute URL, or None if it has none.

  Used by the dashboard to tally destination domains from stored payloads,
  where the value may be missing, not a string, or not a URL at all.
  """
  if not isinstance(value, str) or not value.strip():
    return None
  try:
    hostname = urlsplit(value.strip()).hostname
  except ValueError:
    return None
  return hostname or None
