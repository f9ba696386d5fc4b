"""
Exception types raised by the turntable services.

None of these are fatal to the hosting process.  Configuration errors
are raised while a turntable is being set up; capture write errors are
raised by the capture helpers and handled by the orbit controller so
that a failed screenshot never stops the remaining steps of a pass.
"""

from __future__ import annotations

from pathlib import Path


class TurntableError(Exception):
    """Base class for all turntable errors."""


class ConfigurationError(TurntableError):
    """A turntable was configured with missing bindings or bad values."""


class InvalidIncrement(ConfigurationError):
    """The angular increment is not in the open range (0, 360)."""

    def __init__(self, increment: int) -> None:
        super().__init__(f"Angular increment must be between 0 and 360 degrees (exclusive), got {increment}")
        self.increment = increment


class CaptureWriteError(TurntableError):
    """A screenshot could not be written to the capture directory."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to write capture {path}: {reason}")
        self.path = path
        self.reason = reason
