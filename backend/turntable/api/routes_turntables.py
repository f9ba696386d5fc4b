"""
Routes for creating and driving turntables.

A remote renderer (for example the browser viewer) acts as the host
engine: it creates a turntable around its target, calls ``tick`` once
per animation frame, renders the returned camera pose whenever a step
ran and uploads the screenshot under the requested filename.  The
controller rate-limits the steps itself, so the renderer may tick as
fast as it draws.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request, Response

from .models import (
    CameraPose,
    CaptureFailureInfo,
    CaptureUploadResponse,
    TickResponse,
    TurntableCreateRequest,
    TurntableStatus,
)
from ..services.capture import NOT_PNG_REASON
from ..services.errors import CaptureWriteError, ConfigurationError
from ..services.scene import SceneTarget
from ..services.settings import TurntableSettings
from ..services.turntables import (
    TurntableHandle,
    create_turntable as register_turntable,
    delete_turntable as unregister_turntable,
    get_turntable,
    list_turntables as registered_turntables,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_handle(turntable_id: str) -> TurntableHandle:
    handle = get_turntable(turntable_id)
    if handle is None:
        raise HTTPException(status_code=404, detail="Turntable not found")
    return handle


def _status(handle: TurntableHandle) -> TurntableStatus:
    controller = handle.controller
    session = controller.session
    camera = handle.camera
    return TurntableStatus(
        turntableId=handle.turntable_id,
        targetName=handle.target.name,
        state=controller.state.value,
        angleDegrees=session.angle_degrees,
        boundingSize=handle.target.bounding_size(),
        stepInterval=controller.settings.step_interval,
        increment=controller.settings.increment,
        captureDir=str(controller.settings.capture_dir),
        camera=CameraPose(
            position=list(camera.position),
            forward=camera.forward.tolist(),
            up=camera.up.tolist(),
            lookAt=list(handle.target.position),
        ),
        captures=[c.filename for c in controller.captures],
        pendingCaptures=[c.filename for c in handle.writer.pending],
        failures=[
            CaptureFailureInfo(angleDegrees=f.angle_degrees, filename=Path(f.path).name, reason=f.reason)
            for f in controller.failures
        ],
    )


def _build_target(body: TurntableCreateRequest) -> SceneTarget:
    if body.vertices is not None:
        return SceneTarget.from_vertices(body.name, body.vertices, position=body.position)
    if body.bboxMin is not None and body.bboxMax is not None:
        bbox_min = body.bboxMin
        bbox_max = body.bboxMax
        position = body.position
        if position is None:
            position = [(lo + hi) / 2.0 for lo, hi in zip(bbox_min, bbox_max)]
        return SceneTarget(body.name, position, bbox_min, bbox_max)
    if body.bboxMin is not None or body.bboxMax is not None:
        raise ValueError("Both bboxMin and bboxMax are required to describe the target bounds")
    position = body.position or [0.0, 0.0, 0.0]
    return SceneTarget(body.name, position, position, position)


def _build_settings(body: TurntableCreateRequest, output_root: Path) -> TurntableSettings:
    overrides = body.settings
    values = {
        "step_interval": overrides.stepInterval,
        "increment": overrides.increment,
        "radius_multiplier": overrides.radiusMultiplier,
        "height_multiplier": overrides.heightMultiplier,
        "output_dir_name": overrides.outputDirName,
    }
    return TurntableSettings(
        output_root=output_root,
        **{key: value for key, value in values.items() if value is not None},
    )


@router.post("/turntables", response_model=TurntableStatus, status_code=201)
async def create_turntable(body: TurntableCreateRequest, request: Request) -> TurntableStatus:
    """Create a turntable around the described target.

    Returns:
        TurntableStatus: State of the new turntable.  With ``autostart``
        (the default) the first pass is already running.
    """
    try:
        target = _build_target(body)
        settings = _build_settings(body, request.app.state.output_root)
    except (ConfigurationError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    handle = register_turntable(target, settings=settings, autostart=body.autostart)
    return _status(handle)


@router.get("/turntables", response_model=list[TurntableStatus])
async def list_turntables() -> list[TurntableStatus]:
    """Return the status of every registered turntable."""
    return [_status(handle) for handle in registered_turntables()]


@router.get("/turntables/{turntable_id}", response_model=TurntableStatus)
async def get_turntable_status(turntable_id: str) -> TurntableStatus:
    return _status(_get_handle(turntable_id))


@router.delete("/turntables/{turntable_id}", status_code=204)
async def delete_turntable(turntable_id: str) -> Response:
    if not unregister_turntable(turntable_id):
        raise HTTPException(status_code=404, detail="Turntable not found")
    return Response(status_code=204)


@router.post("/turntables/{turntable_id}/start", response_model=TurntableStatus)
async def start_turntable(turntable_id: str) -> TurntableStatus:
    """Start a new pass from angle 0, abandoning any running pass."""
    handle = _get_handle(turntable_id)
    handle.writer.clear()
    handle.controller.start()
    return _status(handle)


@router.post("/turntables/{turntable_id}/stop", response_model=TurntableStatus)
async def stop_turntable(turntable_id: str) -> TurntableStatus:
    handle = _get_handle(turntable_id)
    handle.controller.stop()
    return _status(handle)


@router.post("/turntables/{turntable_id}/tick", response_model=TickResponse)
async def tick_turntable(turntable_id: str) -> TickResponse:
    """Run one scheduler tick using the server clock.

    When a step ran, the response carries the filename of the
    screenshot the renderer should produce from the returned camera
    pose.
    """
    handle = _get_handle(turntable_id)
    controller = handle.controller
    angle_before = controller.session.angle_degrees
    was_active = controller.session.active
    capture = controller.tick()
    stepped = was_active and controller.session.angle_degrees != angle_before
    return TickResponse(
        stepped=stepped,
        captureFilename=capture.filename if capture is not None else None,
        captureAngle=capture.angle_degrees if capture is not None else None,
        status=_status(handle),
    )


@router.put(
    "/turntables/{turntable_id}/captures/{filename}",
    response_model=CaptureUploadResponse,
)
async def upload_capture(turntable_id: str, filename: str, request: Request) -> CaptureUploadResponse:
    """Store the rendered PNG for a pending capture.

    The request body is the raw PNG data.
    """
    handle = _get_handle(turntable_id)
    data = await request.body()
    try:
        capture = handle.writer.fulfil(filename, data)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"No pending capture named {filename}") from exc
    except CaptureWriteError as exc:
        if exc.reason == NOT_PNG_REASON:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.error("Upload of %s for turntable %s failed: %s", filename, turntable_id, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return CaptureUploadResponse(
        filename=capture.filename,
        path=str(capture.path),
        bytesWritten=len(data),
    )
