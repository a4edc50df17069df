import time
from types import SimpleNamespace

import monotonic
import pytest

from ros2_gremsy.core.exceptions import TimeoutError
from ros2_gremsy.datalink.dialect import mavlink, new_mavlink
from ros2_gremsy.models.status import GimbalStateFlag, GimbalStatus
from ros2_gremsy.models.telemetry import GimbalTimeStamps

GIMBAL_SYSTEM = 1
GIMBAL_COMPONENT = mavlink.MAV_COMP_ID_GIMBAL


def make_message(msg_type, src_system=GIMBAL_SYSTEM, src_component=GIMBAL_COMPONENT, **fields):
    """A stand-in for a decoded MAVLink message."""
    msg = SimpleNamespace(**fields)
    msg.get_type = lambda: msg_type
    msg.get_srcSystem = lambda: src_system
    msg.get_srcComponent = lambda: src_component
    return msg


def gimbal_heartbeat(**kwargs):
    return make_message(
        "HEARTBEAT",
        type=mavlink.MAV_TYPE_GIMBAL,
        autopilot=mavlink.MAV_AUTOPILOT_INVALID,
        **kwargs
    )


def sys_status(state, mode=1, **kwargs):
    return make_message(
        "SYS_STATUS",
        errors_count1=int(state),
        errors_count2=mode,
        load=120,
        voltage_battery=12000,
        onboard_control_sensors_health=0,
        **kwargs
    )


class FakeConnection:
    """Records sent messages instead of writing to a serial port."""

    def __init__(self):
        self.mav = new_mavlink(None, 1, mavlink.MAV_COMP_ID_ONBOARD_COMPUTER)
        self.sent = []
        self.loop_listeners = []
        self.message_listeners = []
        self.target_system = 0
        self.target_component = GIMBAL_COMPONENT
        self.started = False
        self.closed = False

    def forward_loop(self, fn):
        self.loop_listeners.append(fn)
        return fn

    def forward_message(self, fn):
        self.message_listeners.append(fn)
        return fn

    def start(self):
        self.started = True

    def close(self):
        self.closed = True

    def send(self, message):
        self.sent.append(message)

    def deliver(self, msg):
        for fn in self.message_listeners:
            fn(self, msg)

    def run_loop(self):
        for fn in self.loop_listeners:
            fn(self)

    def sent_types(self):
        return [msg.get_type() for msg in self.sent]


class FakeGimbal:
    """Implements the gimbal call surface used by GremsyDriver."""

    def __init__(self, status=None):
        self.status = status or GimbalStatus(state=GimbalStateFlag.ON | GimbalStateFlag.LOCK_MODE)
        self.calls = []
        self.raw_imu = None
        self.mount_status = None
        self.mount_orientation = None
        self.time_stamps = GimbalTimeStamps()
        self.turns_on = True
        self.reports_status = True

    def start(self):
        self.calls.append(("start",))

    def stop(self):
        self.calls.append(("stop",))

    def wait_for_heartbeat(self, timeout=10.0):
        self.calls.append(("wait_for_heartbeat", timeout))

    def get_gimbal_status(self):
        return self.status

    def wait_for_status_report(self, timeout=10.0, interval=0.1):
        self.calls.append(("wait_for_status_report", timeout))
        if not self.reports_status:
            raise TimeoutError("no gimbal status")
        return self.status

    def wait_for_status(self, predicate, timeout=10.0, interval=0.1, on_waiting=None):
        if predicate(self.status):
            return self.status
        if on_waiting:
            on_waiting(self.status)
        raise TimeoutError("gimbal did not turn on")

    def set_gimbal_motor_mode(self, mode):
        self.calls.append(("set_gimbal_motor_mode", mode))
        if self.turns_on:
            self.status = GimbalStatus(state=GimbalStateFlag.ON)

    def set_gimbal_mode(self, mode):
        self.calls.append(("set_gimbal_mode", mode))

    def set_gimbal_axes_mode(self, tilt, roll, pan):
        self.calls.append(("set_gimbal_axes_mode", tilt, roll, pan))

    def set_gimbal_move(self, tilt, roll, pan):
        self.calls.append(("set_gimbal_move", tilt, roll, pan))

    def get_gimbal_raw_imu(self):
        return self.raw_imu

    def get_gimbal_mount_status(self):
        return self.mount_status

    def get_gimbal_mount_orientation(self):
        return self.mount_orientation

    def get_gimbal_time_stamps(self):
        return self.time_stamps


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def fake_gimbal():
    return FakeGimbal()


@pytest.fixture
def now():
    return monotonic.monotonic()


class LoopbackMaster:
    """
    Stands in for the mavutil serial file behind a MAVConnection.

    ``incoming`` bytes are decoded with whatever encoder the connection
    installs as ``mav``; written packets are kept in ``written``.
    """

    def __init__(self, incoming=b"", source_system=1, source_component=mavlink.MAV_COMP_ID_ONBOARD_COMPUTER):
        self.source_system = source_system
        self.source_component = source_component
        self.mav = None
        self.WIRE_PROTOCOL_VERSION = "1.0"
        self.incoming = [incoming] if incoming else []
        self.pending = []
        self.written = []
        self.read_error = None
        self.closed = False

    def select(self, timeout):
        time.sleep(0.001)

    def recv_msg(self):
        if self.read_error is not None:
            raise self.read_error
        if not self.pending and self.incoming:
            self.pending.extend(self.mav.parse_buffer(self.incoming.pop(0)) or [])
        return self.pending.pop(0) if self.pending else None

    def write(self, pkt):
        self.written.append(bytes(pkt))

    def close(self):
        self.closed = True

    def written_messages(self):
        parser = new_mavlink(None, GIMBAL_SYSTEM, GIMBAL_COMPONENT)
        return [msg for pkt in self.written for msg in parser.parse_buffer(pkt) or []]


def gimbal_frames(*messages):
    """Pack messages the way the gimbal sends them, as MAVLink 2 bytes."""
    encoder = new_mavlink(None, GIMBAL_SYSTEM, GIMBAL_COMPONENT)
    return b"".join(bytes(msg.pack(encoder)) for msg in messages)


def wait_until(condition, timeout=2.0):
    deadline = monotonic.monotonic() + timeout
    while not condition():
        if monotonic.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True
