"""Error types raised by the scheduler and its collaborators."""

from __future__ import annotations


class InvalidConfiguration(ValueError):
    """A configuration value fell outside its accepted range."""


class ProbeUnavailable(RuntimeError):
    """The platform idle-time facility could not be queried."""


class PersistenceFailure(OSError):
    """Settings could not be read from or written to disk."""
