"""Exceptions shared across QuickQR services and routers."""


class QuickQRError(Exception):
  """Base class for application errors."""


class InvalidLinkError(QuickQRError):
  """Raised when user input cannot be normalized into an http(s) URL."""

  message = 'Enter a valid link. Example: https://example.com'

  def __init__(self, raw: str | None = None):
    super().__init__(self.message)
    self.raw = raw


class QRRenderError(QuickQRError):
  """Raised when the QR library fails to encode a URL.

  The message is generic; the underlying cause is on ``__cause__``.
  """

  message = 'Could not generate QR code. Try a different URL.'

  def __init__(self):
    super().__init__(self.message)


class DatabaseNotConfiguredError(QuickQRError):
  """Raised when a database session is requested but no URL is configured."""

  def __init__(self):
    super().__init__(
      'Analytics database is not configured. Set ANALYTICS_DATABASE_URL to enable event storage.'
    )
