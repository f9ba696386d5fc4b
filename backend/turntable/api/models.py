"""
Pydantic data models for the turntable API.

These models define the shapes of requests and responses exchanged
with the remote renderer that hosts the turntable: creating a
turntable around a target, driving it tick by tick and reporting its
progress.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class TurntableSettingsOverrides(BaseModel):
    """Optional per-turntable overrides of the default configuration."""

    stepInterval: float | None = Field(
        default=None, ge=0.0, description="Seconds between two consecutive steps"
    )
    # Range checks for the increment happen in TurntableSettings so the
    # API reports the same error as every other caller.
    increment: int | None = Field(default=None, description="Degrees advanced per step")
    radiusMultiplier: float | None = Field(
        default=None, ge=0.0, description="Orbit radius as a multiple of the target size"
    )
    heightMultiplier: float | None = Field(
        default=None, description="Orbit height as a multiple of the target size"
    )
    outputDirName: str | None = Field(
        default=None, description="Folder below the output root receiving the screenshots"
    )


class TurntableCreateRequest(BaseModel):
    """Request body for creating a turntable.

    The target is described either by its mesh ``vertices`` or by an
    explicit bounding box.  When neither is given the target is a point
    of zero size.
    """

    name: str = Field(..., min_length=1, description="Target name used in screenshot filenames")
    vertices: List[float] | None = Field(
        default=None, description="Flat list of target vertex positions (x, y, z …)"
    )
    bboxMin: List[float] | None = Field(
        default=None, min_length=3, max_length=3, description="Minimum x, y, z of the target bounds"
    )
    bboxMax: List[float] | None = Field(
        default=None, min_length=3, max_length=3, description="Maximum x, y, z of the target bounds"
    )
    position: List[float] | None = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="World position of the target; defaults to the bounds centre",
    )
    settings: TurntableSettingsOverrides = Field(default_factory=TurntableSettingsOverrides)
    autostart: bool = Field(default=True, description="Start the first pass immediately")


class CameraPose(BaseModel):
    """Camera pose after the latest step."""

    position: List[float] = Field(..., description="Camera world position (x, y, z)")
    forward: List[float] = Field(..., description="Unit view direction")
    up: List[float] = Field(..., description="Unit up vector")
    lookAt: List[float] = Field(..., description="World position the camera is aimed at")


class CaptureFailureInfo(BaseModel):
    angleDegrees: int
    filename: str
    reason: str


class TurntableStatus(BaseModel):
    """Current state of a turntable."""

    turntableId: str = Field(..., description="Unique identifier of the turntable")
    targetName: str = Field(..., description="Name of the orbited target")
    state: Literal["idle", "orbiting"] = Field(..., description="Whether a pass is running")
    angleDegrees: int = Field(..., description="Angle of the next step")
    boundingSize: float = Field(..., description="Scalar size of the target bounds")
    stepInterval: float
    increment: int
    captureDir: str = Field(..., description="Directory receiving the screenshots")
    camera: CameraPose
    captures: List[str] = Field(
        default_factory=list, description="Filenames requested during the current pass"
    )
    pendingCaptures: List[str] = Field(
        default_factory=list, description="Requested filenames not uploaded yet"
    )
    failures: List[CaptureFailureInfo] = Field(default_factory=list)


class TickResponse(BaseModel):
    """Result of one scheduler tick."""

    stepped: bool = Field(..., description="Whether a step ran during this tick")
    captureFilename: str | None = Field(
        default=None, description="Screenshot to render and upload for this step"
    )
    captureAngle: int | None = Field(default=None, description="Orbit angle of the capture")
    status: TurntableStatus


class CaptureUploadResponse(BaseModel):
    filename: str
    path: str
    bytesWritten: int
