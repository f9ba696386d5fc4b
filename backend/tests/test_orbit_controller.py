"""
Unit tests for the turntable orbit controller.

These tests drive ``OrbitController`` with a fake clock, target, camera
and screenshot writer so that every step of a pass can be inspected
without a rendering engine.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add backend to sys.path for importing modules
sys.path.append(str(Path(__file__).resolve().parents[1]))

from turntable.services.errors import CaptureWriteError, ConfigurationError
from turntable.services.orbit import OrbitController, OrbitState
from turntable.services.settings import TurntableSettings


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTarget:
    """Target that counts how often the controller reads it."""

    def __init__(self, name: str = "Teapot", size: float = 2.0) -> None:
        self.name = name
        self._size = size
        self.reads = 0

    @property
    def position(self):
        self.reads += 1
        return (0.0, 0.0, 0.0)

    def bounding_size(self) -> float:
        self.reads += 1
        return self._size


class FakeCamera:
    def __init__(self) -> None:
        self.position = (0.0, 0.0, 0.0)
        self.looked_at = []

    def look_at(self, point) -> None:
        self.looked_at.append(tuple(point))


class RecordingWriter:
    def __init__(self, fail_at=()) -> None:
        self.requests = []
        self.fail_at = set(fail_at)

    def capture(self, request) -> None:
        if request.angle_degrees in self.fail_at:
            raise CaptureWriteError(request.path, "disk full")
        self.requests.append(request)


def _controller(tmp_path, increment=5, interval=0.25, fail_at=()):
    clock = FakeClock()
    target = FakeTarget()
    camera = FakeCamera()
    writer = RecordingWriter(fail_at=fail_at)
    settings = TurntableSettings(step_interval=interval, increment=increment, output_root=tmp_path)
    controller = OrbitController(target, camera, writer, settings=settings, clock=clock)
    return controller, clock, target, camera, writer


def _run_pass(controller, clock, interval=0.25, max_ticks=1000):
    for _ in range(max_ticks):
        if not controller.session.active:
            break
        clock.now += interval
        controller.tick(clock.now)


@pytest.mark.parametrize("increment", [5, 45, 90, 120])
def test_full_pass_covers_every_angle_once(tmp_path, increment) -> None:
    """A pass produces 360/k captures at 0, k, ..., 360 - k."""
    controller, clock, _, _, writer = _controller(tmp_path, increment=increment)
    controller.start()
    _run_pass(controller, clock)
    angles = [r.angle_degrees for r in writer.requests]
    assert angles == list(range(0, 360, increment))
    assert len(angles) == 360 // increment
    assert controller.state is OrbitState.IDLE
    assert controller.session.angle_degrees == 360


@pytest.mark.parametrize("increment, final_angle", [(7, 364), (25, 375)])
def test_non_dividing_increment_stops_past_full_turn(tmp_path, caplog, increment, final_angle) -> None:
    """Increments that do not divide 360 warn and end on the last multiple below 360."""
    caplog.set_level(logging.WARNING)
    controller, clock, _, _, writer = _controller(tmp_path, increment=increment)
    assert "does not divide 360" in caplog.text
    assert f"final capture will be at {final_angle - increment} degrees" in caplog.text
    controller.start()
    _run_pass(controller, clock)
    angles = [r.angle_degrees for r in writer.requests]
    assert angles == list(range(0, 360, increment))
    assert angles[-1] == final_angle - increment
    assert controller.state is OrbitState.IDLE
    assert controller.session.angle_degrees == final_angle


def test_capture_filenames_follow_target_and_angle(tmp_path) -> None:
    controller, clock, _, _, writer = _controller(tmp_path, increment=90)
    controller.start()
    _run_pass(controller, clock)
    assert [r.filename for r in writer.requests] == [
        "Teapot-0.png",
        "Teapot-90.png",
        "Teapot-180.png",
        "Teapot-270.png",
    ]
    assert all(r.path.parent == tmp_path / "Turntable" for r in writer.requests)


def test_ticks_inside_debounce_window_have_no_effect(tmp_path) -> None:
    controller, clock, target, camera, writer = _controller(tmp_path)
    controller.start()
    for step in range(10):
        controller.tick(clock.now + 0.01 * step)
    assert writer.requests == []
    assert camera.position == (0.0, 0.0, 0.0)
    assert camera.looked_at == []
    assert controller.session.angle_degrees == 0
    assert target.reads == 0
    # Once the interval has elapsed the first step runs.
    request = controller.tick(clock.now + 0.25)
    assert request is not None
    assert request.angle_degrees == 0
    assert controller.session.angle_degrees == 5


def test_tick_uses_controller_clock_by_default(tmp_path) -> None:
    controller, clock, _, _, writer = _controller(tmp_path)
    controller.start()
    assert controller.tick() is None
    clock.now += 0.3
    assert controller.tick() is not None
    assert controller.session.last_step_time == clock.now


def test_ticks_after_termination_are_noops_until_restart(tmp_path) -> None:
    controller, clock, target, _, writer = _controller(tmp_path, increment=180)
    controller.start()
    _run_pass(controller, clock)
    assert len(writer.requests) == 2
    reads = target.reads
    for _ in range(5):
        clock.now += 1.0
        assert controller.tick(clock.now) is None
    assert len(writer.requests) == 2
    assert target.reads == reads
    controller.start()
    assert controller.state is OrbitState.ORBITING
    assert controller.session.angle_degrees == 0


def test_idle_tick_touches_nothing(tmp_path) -> None:
    """Ticking an idle controller never reads the target or creates the folder."""
    controller, clock, target, camera, writer = _controller(tmp_path)
    for _ in range(3):
        clock.now += 10.0
        assert controller.tick(clock.now) is None
    assert target.reads == 0
    assert camera.looked_at == []
    assert writer.requests == []
    assert not (tmp_path / "Turntable").exists()


def test_restart_discards_progress(tmp_path) -> None:
    controller, clock, _, _, writer = _controller(tmp_path, increment=45)
    controller.start()
    for _ in range(3):
        clock.now += 0.25
        controller.tick(clock.now)
    assert controller.session.angle_degrees == 135
    assert len(controller.captures) == 3
    controller.start()
    assert controller.session.angle_degrees == 0
    assert controller.session.active is True
    assert controller.session.last_step_time == clock.now
    assert controller.captures == []
    clock.now += 0.25
    request = controller.tick(clock.now)
    assert request.angle_degrees == 0


def test_stop_makes_ticks_noops(tmp_path) -> None:
    controller, clock, _, _, writer = _controller(tmp_path)
    controller.start()
    clock.now += 0.25
    controller.tick(clock.now)
    controller.stop()
    assert controller.state is OrbitState.IDLE
    assert controller.session.angle_degrees == 5
    clock.now += 1.0
    assert controller.tick(clock.now) is None
    assert len(writer.requests) == 1
    # Stopping an idle controller is harmless.
    controller.stop()


def test_failed_capture_does_not_stop_the_pass(tmp_path) -> None:
    controller, clock, _, _, writer = _controller(tmp_path, increment=90, fail_at={90})
    controller.start()
    _run_pass(controller, clock)
    assert [r.angle_degrees for r in writer.requests] == [0, 180, 270]
    failures = controller.failures
    assert len(failures) == 1
    assert failures[0].angle_degrees == 90
    assert failures[0].reason == "disk full"
    assert controller.state is OrbitState.IDLE


def test_camera_is_placed_from_target_size(tmp_path) -> None:
    controller, clock, _, camera, _ = _controller(tmp_path)
    controller.start()
    clock.now += 0.25
    controller.tick(clock.now)
    # Size 2.0 with default multipliers: range 6.0, height 1.0.
    x, y, z = camera.position
    assert pytest.approx(x) == 6.0
    assert pytest.approx(y) == 1.0
    assert pytest.approx(z, abs=1e-9) == 0.0
    assert camera.looked_at == [(0.0, 0.0, 0.0)]


def test_missing_bindings_are_rejected(tmp_path) -> None:
    settings = TurntableSettings(output_root=tmp_path)
    with pytest.raises(ConfigurationError):
        OrbitController(None, FakeCamera(), RecordingWriter(), settings=settings)
    with pytest.raises(ConfigurationError):
        OrbitController(FakeTarget(), None, RecordingWriter(), settings=settings)
    with pytest.raises(ConfigurationError):
        OrbitController(FakeTarget(), FakeCamera(), None, settings=settings)
