"""
In-memory registry of hosted turntables.

Each turntable bundles an :class:`OrbitController` with the scene
objects it drives and the pending-capture writer that the remote
renderer fulfils.  Turntables live only as long as the process; orbit
state is deliberately not persisted.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from .host import Clock
from .orbit import OrbitController
from .scene import PendingCaptureWriter, SceneCamera, SceneTarget
from .settings import TurntableSettings

logger = logging.getLogger(__name__)


@dataclass
class TurntableHandle:
    """A registered turntable and the objects it owns."""

    turntable_id: str
    target: SceneTarget
    camera: SceneCamera
    writer: PendingCaptureWriter
    controller: OrbitController


# Registry keyed by turntable id.
_registry: Dict[str, TurntableHandle] = {}


def create_turntable(
    target: SceneTarget,
    settings: Optional[TurntableSettings] = None,
    autostart: bool = True,
    clock: Clock = time.monotonic,
) -> TurntableHandle:
    """Register a new turntable around ``target``.

    Args:
        target: Object to orbit.
        settings: Turntable configuration; defaults when omitted.
        autostart: Start the first pass immediately.
        clock: Clock used by the controller.

    Returns:
        The registered :class:`TurntableHandle`.
    """
    camera = SceneCamera()
    writer = PendingCaptureWriter()
    controller = OrbitController(target, camera, writer, settings=settings, clock=clock)
    handle = TurntableHandle(
        turntable_id=uuid.uuid4().hex,
        target=target,
        camera=camera,
        writer=writer,
        controller=controller,
    )
    _registry[handle.turntable_id] = handle
    logger.info("Registered turntable %s for target %s", handle.turntable_id, target.name)
    if autostart:
        controller.start()
    return handle


def get_turntable(turntable_id: str) -> Optional[TurntableHandle]:
    return _registry.get(turntable_id)


def list_turntables() -> List[TurntableHandle]:
    return list(_registry.values())


def delete_turntable(turntable_id: str) -> bool:
    """Remove a turntable; returns ``False`` if it was not registered."""
    handle = _registry.pop(turntable_id, None)
    if handle is None:
        return False
    handle.controller.stop()
    logger.info("Removed turntable %s", turntable_id)
    return True


def clear_turntables() -> None:
    """Remove every registered turntable."""
    _registry.clear()
