"""Application-level exception types.

Convention:
- ``ConfigurationError`` - raised at startup when settings cannot serve
  requests (bad backend URL, insecure production setup).
- ``UpstreamTokenMissingError`` - the backend accepted a login but its body
  carries no token in any known shape. The login handler turns it into a 502
  envelope; it never reaches the global handler.

Everything else that goes wrong while proxying is converted into an error
envelope at the handler boundary (see ``kilometracker.proxy.engine``).
"""

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when the runtime configuration is unusable."""


class UpstreamTokenMissingError(Exception):
    """Raised when a successful login response does not include a token."""
