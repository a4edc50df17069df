import logging
import math

import monotonic
import pytest

from ros2_gremsy.core.exceptions import TimeoutError
from ros2_gremsy.driver import GremsyDriver
from ros2_gremsy.models.orientation import Vector3
from ros2_gremsy.models.status import (
    AxisInputMode,
    AxisMode,
    GimbalMode,
    GimbalStateFlag,
    GimbalStatus,
    MotorMode,
)
from ros2_gremsy.models.telemetry import MountOrientation, MountStatus, RawImu
from ros2_gremsy.parameters.config import DriverConfig


def _call_names(gimbal):
    return [call[0] for call in gimbal.calls]


def test_start_configures_running_gimbal(fake_gimbal):
    config = DriverConfig(gimbal_mode=GimbalMode.FOLLOW, roll_axis_stabilize=False, startup_timeout=3.0)
    driver = GremsyDriver(config, gimbal=fake_gimbal)

    driver.start()

    assert driver.is_started
    assert _call_names(fake_gimbal) == [
        "start",
        "wait_for_heartbeat",
        "wait_for_status_report",
        "set_gimbal_mode",
        "set_gimbal_axes_mode",
    ]
    assert fake_gimbal.calls[1] == ("wait_for_heartbeat", 3.0)
    assert fake_gimbal.calls[2] == ("wait_for_status_report", 3.0)
    assert fake_gimbal.calls[3] == ("set_gimbal_mode", GimbalMode.FOLLOW)
    assert fake_gimbal.calls[4] == (
        "set_gimbal_axes_mode",
        AxisMode(AxisInputMode.ANGLE_ABSOLUTE_FRAME, True),
        AxisMode(AxisInputMode.ANGLE_ABSOLUTE_FRAME, False),
        AxisMode(AxisInputMode.ANGLE_ABSOLUTE_FRAME, True),
    )


def test_start_turns_gimbal_on_first(fake_gimbal):
    fake_gimbal.status = GimbalStatus(state=GimbalStateFlag.OFF)
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    driver.start()

    assert _call_names(fake_gimbal)[:4] == [
        "start",
        "wait_for_heartbeat",
        "wait_for_status_report",
        "set_gimbal_motor_mode",
    ]
    assert fake_gimbal.calls[3] == ("set_gimbal_motor_mode", MotorMode.TURN_ON)
    assert "set_gimbal_mode" in _call_names(fake_gimbal)


def test_start_waits_for_reported_status(fake_gimbal):
    fake_gimbal.reports_status = False
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    with pytest.raises(TimeoutError):
        driver.start()

    assert "set_gimbal_motor_mode" not in _call_names(fake_gimbal)
    assert not driver.is_started


def test_start_gives_up_when_gimbal_stays_off(fake_gimbal):
    fake_gimbal.status = GimbalStatus(state=GimbalStateFlag.OFF)
    fake_gimbal.turns_on = False
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    with pytest.raises(TimeoutError):
        driver.start()

    assert not driver.is_started
    assert "set_gimbal_mode" not in _call_names(fake_gimbal)


def test_poll_without_telemetry(fake_gimbal):
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    frame = driver.poll_state()

    assert frame.imu is None
    assert frame.encoder is None
    assert frame.orientation_global is None
    assert frame.orientation_local is None
    assert frame.yaw_difference == 0.0


def test_poll_logs_missing_telemetry(fake_gimbal, caplog):
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    with caplog.at_level(logging.DEBUG, logger="ros2_gremsy.driver"):
        driver.poll_state()

    assert "No RAW_IMU from the gimbal yet" in caplog.text
    assert "No MOUNT_STATUS from the gimbal yet" in caplog.text
    assert "No MOUNT_ORIENTATION from the gimbal yet" in caplog.text


def test_poll_converts_telemetry(fake_gimbal):
    fake_gimbal.raw_imu = RawImu(time_usec=0, xacc=0, yacc=0, zacc=1000, xgyro=0, ygyro=500, zgyro=0)
    fake_gimbal.time_stamps.raw_imu = monotonic.monotonic()
    fake_gimbal.mount_status = MountStatus(pointing_a=-90.0, pointing_b=0.0, pointing_c=0.0)
    fake_gimbal.mount_orientation = MountOrientation(
        time_boot_ms=0, roll=0.0, pitch=0.0, yaw=0.0, yaw_absolute=90.0
    )
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    frame = driver.poll_state()

    assert frame.imu.linear_acceleration.z == pytest.approx(9.80665)
    assert frame.imu.angular_velocity.y == pytest.approx(0.5)
    assert 0.0 <= frame.imu.age < 1.0
    assert frame.encoder.y == pytest.approx(-math.pi / 2)
    assert frame.yaw_difference == pytest.approx(math.pi / 2)
    assert driver.yaw_difference == pytest.approx(math.pi / 2)
    assert frame.orientation_local.w == pytest.approx(1.0)
    assert frame.orientation_global.z == pytest.approx(math.sqrt(0.5))


def test_push_goal_waits_for_first_goal(fake_gimbal):
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)

    assert driver.push_goal() is None
    assert fake_gimbal.calls == []


def test_push_goal_uses_latest_goal(fake_gimbal):
    driver = GremsyDriver(DriverConfig(lock_yaw_to_vehicle=False), gimbal=fake_gimbal)
    driver.set_goal(Vector3(x=0.0, y=0.0, z=math.radians(10.0)))
    driver.set_goal(Vector3(x=math.radians(1.0), y=math.radians(-30.0), z=math.radians(20.0)))

    driver.push_goal()
    driver.push_goal()

    assert len(fake_gimbal.calls) == 2
    name, tilt, roll, pan = fake_gimbal.calls[-1]
    assert name == "set_gimbal_move"
    assert (tilt, roll, pan) == pytest.approx((-30.0, 1.0, 20.0))


def test_push_goal_corrects_yaw_drift(fake_gimbal):
    fake_gimbal.mount_orientation = MountOrientation(
        time_boot_ms=0, roll=0.0, pitch=0.0, yaw=5.0, yaw_absolute=15.0
    )
    driver = GremsyDriver(DriverConfig(lock_yaw_to_vehicle=True), gimbal=fake_gimbal)
    driver.poll_state()
    driver.set_goal(Vector3(z=math.radians(20.0)))

    tilt, roll, pan = driver.push_goal()

    assert pan == pytest.approx(30.0)


def test_shutdown_stops_gimbal(fake_gimbal):
    driver = GremsyDriver(DriverConfig(), gimbal=fake_gimbal)
    driver.start()

    driver.shutdown()

    assert fake_gimbal.calls[-1] == ("stop",)
    assert not driver.is_started
