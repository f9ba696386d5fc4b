"""
In-process scene objects for hosting a turntable.

``SceneTarget`` describes the orbited object by its name, world
position and axis-aligned bounding box.  It can be built from raw mesh
vertices or from a compressed ``.npz`` mesh archive.  ``SceneCamera``
tracks a camera pose and computes its look-at orientation with numpy.
``PendingCaptureWriter`` is the screenshot primitive used when the
actual rendering happens in a remote viewer: capture requests are kept
pending until the viewer uploads the rendered image.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .capture import CaptureRequest, write_png
from .settings import is_single_path_component

logger = logging.getLogger(__name__)

WORLD_UP: Tuple[float, float, float] = (0.0, 1.0, 0.0)

# Up vector used when the view direction is parallel to WORLD_UP.
_FALLBACK_UP: Tuple[float, float, float] = (0.0, 0.0, 1.0)

_EPS = 1e-9


def _as_vec3(value: Iterable[float]) -> np.ndarray:
    arr = np.asarray(list(value), dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3D vector, got {arr.shape[0]} components")
    return arr


class SceneTarget:
    """A named object with a world position and an axis-aligned bounding box."""

    def __init__(
        self,
        name: str,
        position: Sequence[float],
        bbox_min: Sequence[float],
        bbox_max: Sequence[float],
    ) -> None:
        # The name becomes part of every capture filename.
        if not is_single_path_component(name):
            raise ValueError(f"Target name must be a plain file name, got {name!r}")
        self.name = name
        self._position = _as_vec3(position)
        self.bbox_min = _as_vec3(bbox_min)
        self.bbox_max = _as_vec3(bbox_max)
        if np.any(self.bbox_max < self.bbox_min):
            raise ValueError("Bounding box maximum must not be below its minimum")

    @classmethod
    def from_vertices(
        cls,
        name: str,
        vertices: Sequence[float],
        position: Optional[Sequence[float]] = None,
    ) -> "SceneTarget":
        """Build a target from a flat list of vertex coordinates.

        The bounding box is computed from the vertices.  When ``position``
        is omitted the centre of the bounding box is used.  An empty
        vertex list gives a degenerate target of zero size.
        """
        verts = np.asarray(vertices, dtype=np.float64)
        if verts.size % 3 != 0:
            raise ValueError("Vertex list length must be a multiple of 3")
        verts = verts.reshape(-1, 3)
        if verts.shape[0] == 0:
            origin = np.zeros(3) if position is None else _as_vec3(position)
            logger.warning("Target %s has no vertices; using a zero-size bounding box", name)
            return cls(name, origin, origin, origin)
        bbox_min = verts.min(axis=0)
        bbox_max = verts.max(axis=0)
        if position is None:
            position = (bbox_min + bbox_max) / 2.0
        return cls(name, position, bbox_min, bbox_max)

    @classmethod
    def from_mesh_cache(cls, name: str, path: Path) -> "SceneTarget":
        """Load a target from a compressed ``.npz`` mesh archive.

        The archive must contain a ``vertices`` array; stored
        ``bbox_min``/``bbox_max`` arrays take precedence over the box
        computed from the vertices.

        Raises:
            FileNotFoundError: If the archive does not exist.
            ValueError: If the archive has no ``vertices`` field.
        """
        if not path.exists():
            raise FileNotFoundError(f"Mesh archive not found: {path}")
        with np.load(path, allow_pickle=False) as data:
            if "vertices" not in data.files:
                raise ValueError(f"Mesh archive {path} has no 'vertices' field")
            if "bbox_min" in data.files and "bbox_max" in data.files:
                bbox_min = _as_vec3(data["bbox_min"])
                bbox_max = _as_vec3(data["bbox_max"])
                target = cls(name, (bbox_min + bbox_max) / 2.0, bbox_min, bbox_max)
            else:
                vertices = data["vertices"].astype(np.float64).reshape(-1)
                target = cls.from_vertices(name, vertices)
        logger.debug("Loaded target %s from %s", name, path)
        return target

    @property
    def position(self) -> Tuple[float, float, float]:
        x, y, z = self._position.tolist()
        return x, y, z

    @position.setter
    def position(self, value: Sequence[float]) -> None:
        self._position = _as_vec3(value)

    def bounding_size(self) -> float:
        """Length of the bounding box diagonal."""
        return float(np.linalg.norm(self.bbox_max - self.bbox_min))


class SceneCamera:
    """Camera pose with a look-at orientation.

    ``forward`` points from the camera towards what it looks at and
    ``up`` is orthogonal to it.  A fresh camera sits at the origin
    looking down +z.
    """

    def __init__(self, position: Sequence[float] = (0.0, 0.0, 0.0)) -> None:
        self._position = _as_vec3(position)
        self.forward = np.array([0.0, 0.0, 1.0])
        self.up = np.array(WORLD_UP)

    @property
    def position(self) -> Tuple[float, float, float]:
        x, y, z = self._position.tolist()
        return x, y, z

    @position.setter
    def position(self, value: Sequence[float]) -> None:
        self._position = _as_vec3(value)

    def look_at(self, point: Sequence[float], up: Sequence[float] = WORLD_UP) -> None:
        """Orient the camera so that it faces ``point``.

        If ``point`` coincides with the camera position the orientation
        is left unchanged.
        """
        direction = _as_vec3(point) - self._position
        distance = np.linalg.norm(direction)
        if distance < _EPS:
            logger.debug("look_at: view vector is zero; keeping current orientation")
            return
        forward = direction / distance
        right = np.cross(forward, _as_vec3(up))
        if np.linalg.norm(right) < _EPS:
            right = np.cross(forward, np.array(_FALLBACK_UP))
        right /= np.linalg.norm(right)
        self.forward = forward
        self.up = np.cross(right, forward)

    @property
    def right(self) -> np.ndarray:
        return np.cross(self.forward, self.up)

    def view_matrix(self) -> np.ndarray:
        """Return the 4x4 world-to-camera matrix.

        Camera space follows the OpenGL convention: x right, y up and the
        camera looking down -z.
        """
        back = -self.forward
        rot = np.eye(4)
        rot[0, :3] = self.right
        rot[1, :3] = self.up
        rot[2, :3] = back
        trans = np.eye(4)
        trans[:3, 3] = -self._position
        return rot @ trans


class PendingCaptureWriter:
    """Screenshot primitive fulfilled by a remote renderer.

    Each requested capture is kept until the renderer uploads the image
    for it.  Requests are ordered oldest first.
    """

    def __init__(self) -> None:
        self._pending: "OrderedDict[str, CaptureRequest]" = OrderedDict()
        self.written: List[Path] = []

    def capture(self, request: CaptureRequest) -> None:
        self._pending[request.filename] = request

    @property
    def pending(self) -> List[CaptureRequest]:
        return list(self._pending.values())

    def clear(self) -> None:
        self._pending.clear()

    def fulfil(self, filename: str, data: bytes) -> CaptureRequest:
        """Write the uploaded image for a pending capture.

        Raises:
            KeyError: If no capture with ``filename`` is pending.
            CaptureWriteError: If the image is not a PNG or cannot be written.
        """
        request = self._pending[filename]
        write_png(request.path, data)
        del self._pending[filename]
        self.written.append(request.path)
        return request
