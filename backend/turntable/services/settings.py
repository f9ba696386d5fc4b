"""
Configuration for turntable passes.

The defaults below reproduce the classic capture rig: a step every
quarter second, five degrees per step, an orbit three object-sizes
away and half an object-size above the target, with screenshots saved
to a ``Turntable`` folder on the user's desktop.  Each turntable may
override any of them through :class:`TurntableSettings`, which
validates its values when constructed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError, InvalidIncrement

logger = logging.getLogger(__name__)

# Seconds between two consecutive steps of a pass.
DEFAULT_STEP_INTERVAL: float = 0.25

# Degrees advanced per step.
DEFAULT_INCREMENT: int = 5

# Orbit radius and height, both as multiples of the target's bounding size.
DEFAULT_RADIUS_MULTIPLIER: float = 3.0
DEFAULT_HEIGHT_MULTIPLIER: float = 0.5

# Name of the folder (below the output root) receiving the screenshots.
DEFAULT_OUTPUT_DIR_NAME: str = "Turntable"


def default_output_root() -> Path:
    """Return the user's desktop, or the home directory if there is none."""
    home = Path.home()
    desktop = home / "Desktop"
    if desktop.is_dir():
        return desktop
    return home


def is_single_path_component(name: str) -> bool:
    """Return True if ``name`` can be used as one file or folder name."""
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


@dataclass(frozen=True)
class TurntableSettings:
    """Immutable configuration of a turntable.

    Raises:
        InvalidIncrement: If ``increment`` is not strictly between 0 and 360.
        ConfigurationError: For any other invalid value.
    """

    step_interval: float = DEFAULT_STEP_INTERVAL
    increment: int = DEFAULT_INCREMENT
    radius_multiplier: float = DEFAULT_RADIUS_MULTIPLIER
    height_multiplier: float = DEFAULT_HEIGHT_MULTIPLIER
    output_dir_name: str = DEFAULT_OUTPUT_DIR_NAME
    output_root: Path = field(default_factory=default_output_root)

    def __post_init__(self) -> None:
        if isinstance(self.increment, bool) or not isinstance(self.increment, int):
            raise ConfigurationError(f"Angular increment must be an integer, got {self.increment!r}")
        if self.increment <= 0 or self.increment >= 360:
            raise InvalidIncrement(self.increment)
        if 360 % self.increment != 0:
            # Still usable, but the last step lands short of a full turn.
            logger.warning(
                "Increment of %d degrees does not divide 360; the final capture will be at %d degrees",
                self.increment,
                (359 // self.increment) * self.increment,
            )
        if self.step_interval < 0:
            raise ConfigurationError(f"Step interval must not be negative, got {self.step_interval}")
        if self.radius_multiplier < 0:
            raise ConfigurationError(f"Radius multiplier must not be negative, got {self.radius_multiplier}")
        name = self.output_dir_name
        if not is_single_path_component(name):
            raise ConfigurationError(f"Output directory name must be a single path component, got {name!r}")
        # Accept plain strings for the root so callers need not build a Path.
        object.__setattr__(self, "output_root", Path(self.output_root))

    @property
    def capture_dir(self) -> Path:
        """Directory that receives the screenshots of every pass."""
        return self.output_root / self.output_dir_name

    @property
    def steps_per_pass(self) -> int:
        """Number of captures produced by one complete pass."""
        return -(-360 // self.increment)
