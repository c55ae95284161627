"""Exception types raised by Riverwatch.

Most out-of-range or degenerate inputs are absorbed by clamping and no-op
policies; these exceptions cover the few contract violations that can only
be reported at construction or load time.
"""

from __future__ import annotations


class RiverwatchError(Exception):
    """Base class for all Riverwatch errors."""


class InvalidImageError(RiverwatchError, ValueError):
    """Raised when a map image is empty, malformed, or unreadable."""


class ConfigError(RiverwatchError, ValueError):
    """Raised when a configuration value is out of its allowed range."""
