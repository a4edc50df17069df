import logging
import math
import time

import pytest

from conftest import (
    GIMBAL_COMPONENT,
    GIMBAL_SYSTEM,
    gimbal_frames,
    gimbal_heartbeat,
    make_message,
    sys_status,
)
from ros2_gremsy.core.exceptions import GimbalException, TimeoutError
from ros2_gremsy.datalink.dialect import mavlink, new_mavlink
from ros2_gremsy.driver import GremsyDriver
from ros2_gremsy.gimbal.interface import (
    MAV_CMD_SET_GIMBAL_MODE,
    MAV_CMD_SET_MOTOR_MODE,
    GimbalInterface,
)
from ros2_gremsy.models.status import (
    AxisInputMode,
    AxisMode,
    GimbalMode,
    GimbalStateFlag,
    MotorMode,
)
from ros2_gremsy.parameters.config import DriverConfig


@pytest.fixture
def gimbal(connection):
    gimbal = GimbalInterface(connection)
    gimbal.start()
    yield gimbal
    gimbal.stop()


@pytest.fixture
def found_gimbal(gimbal, connection):
    connection.deliver(gimbal_heartbeat())
    return gimbal


def test_start_starts_connection(gimbal, connection):
    assert connection.started
    assert gimbal.is_running


def test_stop_closes_connection(connection):
    gimbal = GimbalInterface(connection)
    gimbal.start()
    gimbal.stop()

    assert connection.closed
    assert not gimbal.is_running


def test_heartbeat_addresses_connection(found_gimbal, connection):
    found_gimbal.wait_for_heartbeat(timeout=0.1)

    assert found_gimbal.is_connected
    assert found_gimbal.target_system == GIMBAL_SYSTEM
    assert connection.target_system == GIMBAL_SYSTEM
    assert connection.target_component == GIMBAL_COMPONENT
    assert found_gimbal.get_gimbal_time_stamps().heartbeat is not None


def test_wait_for_heartbeat_times_out(gimbal):
    with pytest.raises(TimeoutError):
        gimbal.wait_for_heartbeat(timeout=0.0)


def test_status_is_off_until_reported(found_gimbal):
    assert found_gimbal.get_gimbal_status().is_off


def test_sys_status_is_decoded(found_gimbal, connection):
    connection.deliver(sys_status(GimbalStateFlag.ON | GimbalStateFlag.FOLLOW_MODE, mode=2))

    status = found_gimbal.get_gimbal_status()
    assert status.is_on
    assert not status.is_off
    assert status.mode == GimbalMode.FOLLOW
    assert status.voltage_battery == 12000


def test_messages_from_other_components_are_ignored(found_gimbal, connection):
    connection.deliver(
        make_message(
            "MOUNT_STATUS",
            src_component=mavlink.MAV_COMP_ID_AUTOPILOT1,
            pointing_a=1,
            pointing_b=2,
            pointing_c=3,
        )
    )

    assert found_gimbal.get_gimbal_mount_status() is None


def test_telemetry_is_cached(found_gimbal, connection):
    connection.deliver(
        make_message(
            "RAW_IMU",
            time_usec=5,
            xacc=1,
            yacc=2,
            zacc=3,
            xgyro=4,
            ygyro=5,
            zgyro=6,
            xmag=0,
            ymag=0,
            zmag=0,
        )
    )
    connection.deliver(make_message("MOUNT_STATUS", pointing_a=10, pointing_b=20, pointing_c=30))
    connection.deliver(
        make_message("MOUNT_ORIENTATION", time_boot_ms=1, roll=1.0, pitch=2.0, yaw=3.0, yaw_absolute=4.0)
    )

    assert found_gimbal.get_gimbal_raw_imu().zgyro == 6
    assert found_gimbal.get_gimbal_mount_status().pointing_c == 30.0
    orientation = found_gimbal.get_gimbal_mount_orientation()
    assert (orientation.yaw, orientation.yaw_absolute) == (3.0, 4.0)
    stamps = found_gimbal.get_gimbal_time_stamps()
    assert stamps.raw_imu is not None
    assert stamps.mount_status is not None
    assert stamps.mount_orientation is not None


def test_commands_require_a_gimbal(gimbal, connection):
    with pytest.raises(GimbalException):
        gimbal.set_gimbal_move(0.0, 0.0, 0.0)
    assert connection.sent == []


def test_motor_and_gimbal_mode_commands(found_gimbal, connection):
    found_gimbal.set_gimbal_motor_mode(MotorMode.TURN_ON)
    found_gimbal.set_gimbal_mode(GimbalMode.LOCK)

    motor, mode = connection.sent
    assert motor.command == MAV_CMD_SET_MOTOR_MODE
    assert motor.param7 == MotorMode.TURN_ON
    assert mode.command == MAV_CMD_SET_GIMBAL_MODE
    assert mode.param7 == GimbalMode.LOCK
    assert motor.target_system == GIMBAL_SYSTEM
    assert motor.target_component == GIMBAL_COMPONENT


def test_axes_mode_command(found_gimbal, connection):
    found_gimbal.set_gimbal_axes_mode(
        AxisMode(AxisInputMode.ANGLE_ABSOLUTE_FRAME, True),
        AxisMode(AxisInputMode.ANGLE_BODY_FRAME, False),
        AxisMode(AxisInputMode.ANGULAR_RATE, True),
    )

    (msg,) = connection.sent
    assert msg.command == mavlink.MAV_CMD_DO_MOUNT_CONFIGURE
    assert msg.param1 == mavlink.MAV_MOUNT_MODE_MAVLINK_TARGETING
    # roll, tilt, pan stabilize then roll, tilt, pan input mode
    assert (msg.param2, msg.param3, msg.param4) == (0, 1, 1)
    assert (msg.param5, msg.param6, msg.param7) == (0, 2, 1)


def test_move_command(found_gimbal, connection):
    found_gimbal.set_gimbal_move(-45.0, 5.0, 90.0)

    (msg,) = connection.sent
    assert msg.command == mavlink.MAV_CMD_DO_MOUNT_CONTROL
    assert (msg.param1, msg.param2, msg.param3) == (-45.0, 5.0, 90.0)
    assert msg.param7 == mavlink.MAV_MOUNT_MODE_MAVLINK_TARGETING


def test_wait_for_status(found_gimbal, connection):
    connection.deliver(sys_status(GimbalStateFlag.ON))

    status = found_gimbal.wait_for_status(lambda s: s.is_on, timeout=0.1)

    assert status.state == GimbalStateFlag.ON


def test_wait_for_status_times_out(found_gimbal):
    waited = []

    with pytest.raises(TimeoutError):
        found_gimbal.wait_for_status(
            lambda s: s.is_on,
            timeout=0.05,
            interval=0.01,
            on_waiting=waited.append,
        )
    assert waited


def test_wait_for_status_report(found_gimbal, connection):
    with pytest.raises(TimeoutError):
        found_gimbal.wait_for_status_report(timeout=0.0)

    connection.deliver(sys_status(GimbalStateFlag.OFF))

    assert found_gimbal.wait_for_status_report(timeout=0.1).is_off


def test_error_state_is_logged(found_gimbal, connection, caplog):
    with caplog.at_level(logging.WARNING, logger="ros2_gremsy"):
        connection.deliver(sys_status(GimbalStateFlag.ON | GimbalStateFlag.ERROR))

    assert "Gimbal reports an error" in caplog.text


def test_heartbeat_is_sent_once_per_interval(gimbal, connection):
    assert gimbal.send_heartbeat_if_due(now=10.0)
    assert not gimbal.send_heartbeat_if_due(now=10.5)
    assert gimbal.send_heartbeat_if_due(now=11.0)

    assert connection.sent_types() == ["HEARTBEAT", "HEARTBEAT"]
    heartbeat = connection.sent[0]
    assert heartbeat.type == mavlink.MAV_TYPE_ONBOARD_CONTROLLER
    assert heartbeat.autopilot == mavlink.MAV_AUTOPILOT_INVALID
    assert heartbeat.system_status == mavlink.MAV_STATE_ACTIVE


def test_loop_sends_heartbeat_before_gimbal_is_found(gimbal, connection):
    connection.run_loop()
    connection.run_loop()

    assert gimbal.target_system is None
    assert connection.sent_types() == ["HEARTBEAT"]


def test_loop_is_inert_after_stop(connection):
    gimbal = GimbalInterface(connection)
    gimbal.start()
    gimbal.stop()

    connection.run_loop()

    assert connection.sent == []


def test_heartbeat_loss_and_recovery_are_logged(connection, caplog):
    gimbal = GimbalInterface(connection, heartbeat_timeout=0.05)
    gimbal.start()
    try:
        connection.deliver(gimbal_heartbeat())
        with caplog.at_level(logging.INFO, logger="ros2_gremsy"):
            connection.run_loop()
            assert "heartbeat lost" not in caplog.text

            time.sleep(0.1)
            connection.run_loop()
            connection.run_loop()
            assert caplog.text.count("Gimbal heartbeat lost") == 1

            connection.deliver(gimbal_heartbeat())
            connection.run_loop()
            assert "Gimbal heartbeat regained" in caplog.text
    finally:
        gimbal.stop()


def test_packed_mount_orientation_reaches_driver(connection):
    gimbal = GimbalInterface(connection)
    gimbal.start()
    parser = new_mavlink(None, 1, mavlink.MAV_COMP_ID_ONBOARD_COMPUTER)
    encoder = new_mavlink(None, GIMBAL_SYSTEM, GIMBAL_COMPONENT)
    data = gimbal_frames(
        encoder.heartbeat_encode(
            mavlink.MAV_TYPE_GIMBAL, mavlink.MAV_AUTOPILOT_INVALID, 0, 0, mavlink.MAV_STATE_ACTIVE
        ),
        encoder.mount_orientation_encode(0, 1.0, 2.0, 5.0, 15.0),
    )

    messages = parser.parse_buffer(data)
    for msg in messages:
        connection.deliver(msg)

    assert [msg.get_type() for msg in messages] == ["HEARTBEAT", "MOUNT_ORIENTATION"]
    assert gimbal.target_system == GIMBAL_SYSTEM
    frame = GremsyDriver(DriverConfig(), gimbal=gimbal).poll_state()
    assert frame.orientation_global is not None
    assert frame.orientation_local is not None
    assert frame.yaw_difference == pytest.approx(math.radians(10.0))
    gimbal.stop()


def test_driver_keeps_running_gimbal_on(gimbal, connection):
    connection.deliver(gimbal_heartbeat())
    connection.deliver(sys_status(GimbalStateFlag.ON | GimbalStateFlag.LOCK_MODE))

    GremsyDriver(DriverConfig(startup_timeout=0.5), gimbal=gimbal).start()

    commands = [msg.command for msg in connection.sent if msg.get_type() == "COMMAND_LONG"]
    assert MAV_CMD_SET_MOTOR_MODE not in commands
    assert commands == [MAV_CMD_SET_GIMBAL_MODE, mavlink.MAV_CMD_DO_MOUNT_CONFIGURE]
