"""
Capabilities the orbit controller needs from its host.

The controller never talks to a rendering engine directly.  Instead the
host injects objects satisfying these small protocols: something to
orbit, a camera to move, a screenshot primitive and a clock.  The
in-process implementations live in :mod:`.scene`; tests substitute
simple fakes.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence

from .capture import CaptureRequest

Vector3 = Sequence[float]

# Zero-argument monotonic clock returning seconds.
Clock = Callable[[], float]


class Target(Protocol):
    """A positioned, bounded object the camera orbits around."""

    name: str

    @property
    def position(self) -> Vector3: ...

    def bounding_size(self) -> float:
        """Scalar magnitude of the target's bounds."""
        ...


class Camera(Protocol):
    """A positioned viewpoint that can be aimed at a world position."""

    position: Vector3

    def look_at(self, point: Vector3) -> None: ...


class ScreenshotWriter(Protocol):
    """Screenshot primitive.

    ``capture`` is fire-and-forget from the controller's point of view:
    the writer may produce the file immediately or later.  It signals
    failure by raising :class:`~.errors.CaptureWriteError`.
    """

    def capture(self, request: CaptureRequest) -> None: ...
