"""
Screenshot naming and capture directory handling.

Every step of a pass produces one screenshot named after the target
and the orbit angle, e.g. ``Teapot-0.png`` … ``Teapot-355.png``.  The
files land in a single folder below the configured output root; the
folder is checked and created right before each capture so that a user
deleting it mid-pass does not break the remaining steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import CaptureWriteError
from .settings import TurntableSettings, is_single_path_component

if TYPE_CHECKING:
    from .host import ScreenshotWriter

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
NOT_PNG_REASON = "data is not a PNG image"


@dataclass(frozen=True)
class CaptureRequest:
    """A screenshot requested for one step of a pass."""

    target_name: str
    angle_degrees: int
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class CaptureFailure:
    """A capture that raised :class:`CaptureWriteError` during a pass."""

    angle_degrees: int
    path: Path
    reason: str


def capture_filename(target_name: str, angle_degrees: int) -> str:
    """Return the screenshot filename for a target at a given angle."""
    return f"{target_name}-{angle_degrees}.png"


def ensure_capture_directory(settings: TurntableSettings) -> Path:
    """Create the capture directory if it does not exist yet.

    Only the last path component is created; the output root itself
    must already exist.

    Raises:
        CaptureWriteError: If the directory cannot be created.
    """
    directory = settings.capture_dir
    if not directory.is_dir():
        logger.info("Creating capture directory %s", directory)
        try:
            directory.mkdir(exist_ok=True)
        except OSError as exc:
            raise CaptureWriteError(directory, str(exc)) from exc
    return directory


def request_capture(
    writer: "ScreenshotWriter",
    settings: TurntableSettings,
    target_name: str,
    angle_degrees: int,
) -> CaptureRequest:
    """Ask the screenshot primitive to capture the current view.

    Args:
        writer: Screenshot primitive provided by the host.
        settings: Turntable configuration holding the output location.
        target_name: Name of the orbited target, used in the filename.
        angle_degrees: Current orbit angle, used in the filename.

    Returns:
        The :class:`CaptureRequest` handed to the writer.

    Raises:
        CaptureWriteError: If the target name is not a plain file name,
            the directory cannot be created or the writer fails.
    """
    if not is_single_path_component(target_name):
        raise CaptureWriteError(settings.capture_dir, f"target name {target_name!r} is not a plain file name")
    directory = ensure_capture_directory(settings)
    request = CaptureRequest(
        target_name=target_name,
        angle_degrees=angle_degrees,
        path=directory / capture_filename(target_name, angle_degrees),
    )
    logger.debug("Requesting capture %s", request.path)
    writer.capture(request)
    return request


def write_png(path: Path, data: bytes) -> int:
    """Write encoded PNG data to ``path`` and return the number of bytes.

    Raises:
        CaptureWriteError: If ``data`` is not a PNG image or the write fails.
    """
    if not data.startswith(PNG_SIGNATURE):
        raise CaptureWriteError(path, NOT_PNG_REASON)
    try:
        with path.open("wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise CaptureWriteError(path, str(exc)) from exc
    logger.info("Wrote capture %s (%d bytes)", path, len(data))
    return len(data)
