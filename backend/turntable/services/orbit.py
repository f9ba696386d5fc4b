"""
Turntable orbit controller.

The controller swings a camera around a target on a horizontal circle,
one fixed angular increment at a time, and requests a screenshot at
every step.  It is driven by the host's per-frame scheduler: the host
calls :meth:`OrbitController.tick` as often as it likes and the
controller only does real work once the configured step interval has
elapsed since the previous step.  A pass ends as soon as the angle
reaches a full revolution.

The orbit radius and height scale with the target's bounding size so
that small and large objects are framed alike.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .capture import CaptureFailure, CaptureRequest, request_capture
from .errors import CaptureWriteError, ConfigurationError
from .host import Camera, Clock, ScreenshotWriter, Target
from .settings import TurntableSettings

logger = logging.getLogger(__name__)

FULL_TURN_DEGREES = 360


class OrbitState(str, enum.Enum):
    IDLE = "idle"
    ORBITING = "orbiting"


@dataclass
class OrbitSession:
    """Mutable state of the current (or last) pass."""

    active: bool = False
    angle_degrees: int = 0
    last_step_time: float = 0.0


def orbit_position(
    center: Iterable[float],
    angle_degrees: float,
    orbit_range: float,
    height: float,
) -> Tuple[float, float, float]:
    """Return the camera position on the orbit circle.

    The circle lies in the horizontal x/z plane around ``center``, at
    ``height`` above it.  An angle of 0 places the camera on the +x
    side and 90 degrees on the +z side.

    Args:
        center: World position (x, y, z) of the orbited target.
        angle_degrees: Orbit angle in degrees.
        orbit_range: Radius of the orbit circle.
        height: Vertical offset above the target.

    Returns:
        The (x, y, z) camera position.
    """
    cx, cy, cz = center
    rad = math.radians(angle_degrees)
    x = cx + orbit_range * math.cos(rad)
    z = cz + orbit_range * math.sin(rad)
    y = cy + height
    return x, y, z


class OrbitController:
    """Runs turntable passes around one target with one camera.

    Args:
        target: Object to orbit around.
        camera: Camera that is moved and aimed at the target.
        writer: Screenshot primitive receiving one request per step.
        settings: Turntable configuration; defaults are used when omitted.
        clock: Monotonic clock used by :meth:`start` and as the default
            time for :meth:`tick`.

    Raises:
        ConfigurationError: If the target, camera or writer is missing.
    """

    def __init__(
        self,
        target: Target,
        camera: Camera,
        writer: ScreenshotWriter,
        settings: Optional[TurntableSettings] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        if target is None:
            raise ConfigurationError("Orbit controller requires a target")
        if camera is None:
            raise ConfigurationError("Orbit controller requires a camera")
        if writer is None:
            raise ConfigurationError("Orbit controller requires a screenshot writer")
        self.target = target
        self.camera = camera
        self.writer = writer
        self.settings = settings if settings is not None else TurntableSettings()
        self.clock = clock
        self._session = OrbitSession()
        self._captures: List[CaptureRequest] = []
        self._failures: List[CaptureFailure] = []

    @property
    def session(self) -> OrbitSession:
        return self._session

    @property
    def state(self) -> OrbitState:
        return OrbitState.ORBITING if self._session.active else OrbitState.IDLE

    @property
    def captures(self) -> List[CaptureRequest]:
        """Captures requested during the current (or last) pass."""
        return list(self._captures)

    @property
    def failures(self) -> List[CaptureFailure]:
        """Captures of the current (or last) pass that failed to write."""
        return list(self._failures)

    def start(self) -> None:
        """Start a new pass from angle 0.

        Calling this while a pass is running abandons it and starts over.
        """
        session = self._session
        if session.active:
            logger.warning(
                "Restarting turntable for %s; abandoning pass at %d degrees",
                self.target.name,
                session.angle_degrees,
            )
        session.active = True
        session.angle_degrees = 0
        session.last_step_time = self.clock()
        self._captures = []
        self._failures = []
        logger.info("Turntable pass started for %s", self.target.name)

    def stop(self) -> None:
        """Stop the running pass, keeping the angle it reached."""
        if not self._session.active:
            return
        self._session.active = False
        logger.info(
            "Turntable pass for %s stopped at %d degrees",
            self.target.name,
            self._session.angle_degrees,
        )

    def tick(self, now: Optional[float] = None) -> Optional[CaptureRequest]:
        """Advance the pass by one step if the step interval has elapsed.

        Args:
            now: Current clock reading.  Defaults to the controller clock.

        Returns:
            The capture requested by the executed step, or ``None`` if
            no step ran (idle, or still inside the debounce window).  A
            step whose capture failed also returns ``None``; the failure
            is recorded in :attr:`failures`.
        """
        session = self._session
        if not session.active:
            return None
        if now is None:
            now = self.clock()
        if now - session.last_step_time < self.settings.step_interval:
            return None
        session.last_step_time = now

        size = self.target.bounding_size()
        orbit_range = size * self.settings.radius_multiplier
        height = size * self.settings.height_multiplier
        self.place_camera(session.angle_degrees, orbit_range, height)

        request: Optional[CaptureRequest] = None
        try:
            request = request_capture(
                self.writer, self.settings, self.target.name, session.angle_degrees
            )
        except CaptureWriteError as exc:
            logger.exception("Capture at %d degrees failed", session.angle_degrees)
            self._failures.append(
                CaptureFailure(angle_degrees=session.angle_degrees, path=exc.path, reason=exc.reason)
            )
        else:
            self._captures.append(request)

        logger.debug("Turntable step for %s at %d degrees", self.target.name, session.angle_degrees)
        session.angle_degrees += self.settings.increment
        if session.angle_degrees >= FULL_TURN_DEGREES:
            session.active = False
            logger.info(
                "Turntable pass for %s finished with %d captures (%d failed)",
                self.target.name,
                len(self._captures),
                len(self._failures),
            )
        return request

    def place_camera(self, angle_degrees: float, orbit_range: float, height: float) -> None:
        """Move the camera onto the orbit circle and aim it at the target."""
        aimpoint = tuple(self.target.position)
        self.camera.position = orbit_position(aimpoint, angle_degrees, orbit_range, height)
        self.camera.look_at(aimpoint)
