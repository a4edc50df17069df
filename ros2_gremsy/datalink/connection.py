"""
MAVLink Serial Connection.

This module provides the MAVConnection class for establishing and managing
the MAVLink link to the gimbal over a serial port.
"""

from __future__ import annotations

import atexit
import logging
import time
from queue import Empty, Queue
from threading import Thread
from typing import Any, Callable

import monotonic
import serial
from pymavlink import mavutil

from ros2_gremsy.core.exceptions import LinkError
from ros2_gremsy.datalink.dialect import WIRE_PROTOCOL_VERSION, mavlink, new_mavlink

logger = logging.getLogger(__name__)

# Identity used by onboard computers talking to a Gremsy gimbal
DEFAULT_SOURCE_SYSTEM = 1
DEFAULT_SOURCE_COMPONENT = mavlink.MAV_COMP_ID_ONBOARD_COMPUTER


class MAVWriter:
    """
    Thread-safe message writer for MAVLink.

    This provides an indirection layer to ensure all messages are
    written from a single thread.
    """

    __slots__ = ("queue",)

    def __init__(self, queue: Queue[bytes]) -> None:
        self.queue = queue

    def write(self, pkt: bytes) -> None:
        """Queue a packet for writing."""
        self.queue.put(pkt)

    def read(self) -> None:
        """Read is not supported on the writer."""
        raise LinkError("writer should not have had a read request")


# Type aliases for callbacks
LoopCallback = Callable[["MAVConnection"], None]
MessageCallback = Callable[["MAVConnection", Any], None]


class MAVConnection:
    """
    MAVLink connection manager for a serial device.

    This class handles the low-level MAVLink communication including:
    - Opening the serial device
    - Message sending (through a queue drained by a writer thread)
    - Message receiving (reader thread dispatching to listeners)
    - Loop callbacks run on every iteration of the reader thread

    The link always speaks MAVLink 2.

    Args:
        device: Serial device path (e.g., "/dev/ttyUSB0")
        baud: Baud rate of the serial device
        source_system: Source system ID
        source_component: Source component ID
        use_native: Use native MAVLink implementation

    Raises:
        LinkError: If the serial device cannot be opened
    """

    __slots__ = (
        "master",
        "out_queue",
        "target_system",
        "target_component",
        "loop_listeners",
        "message_listeners",
        "_alive",
        "_death_error",
        "mavlink_thread_in",
        "mavlink_thread_out",
    )

    def __init__(
        self,
        device: str,
        baud: int = 115200,
        source_system: int = DEFAULT_SOURCE_SYSTEM,
        source_component: int = DEFAULT_SOURCE_COMPONENT,
        use_native: bool = False,
    ) -> None:
        try:
            self.master = mavutil.mavlink_connection(
                device,
                baud=baud,
                source_system=source_system,
                source_component=source_component,
                autoreconnect=False,
            )
        except (serial.SerialException, OSError) as e:
            raise LinkError(f"Unable to open {device} @ {baud}: {e}") from e

        logger.info("Serial link opened on %s @ %d baud", device, baud)

        # All writes go through the output queue
        self.out_queue: Queue[bytes] = Queue()
        self.master.mav = new_mavlink(
            MAVWriter(self.out_queue),
            self.master.source_system,
            self.master.source_component,
            use_native=use_native,
        )
        # Keeps mavutil from swapping in its own encoder on the first frame
        self.master.WIRE_PROTOCOL_VERSION = WIRE_PROTOCOL_VERSION

        # Filled in once the gimbal heartbeat has been seen
        self.target_system = 0
        self.target_component = mavlink.MAV_COMP_ID_GIMBAL

        self.loop_listeners: list[LoopCallback] = []
        self.message_listeners: list[MessageCallback] = []

        self._alive = True
        self._death_error: Exception | None = None

        self.mavlink_thread_in: Thread | None = None
        self.mavlink_thread_out: Thread | None = None

        atexit.register(self._onexit)

        self._create_threads()

    def _onexit(self) -> None:
        """Cleanup on exit."""
        self._alive = False
        self.stop_threads()

    def _create_threads(self) -> None:
        """Create the I/O threads."""
        t = Thread(target=self._mavlink_thread_in, name="gremsy-mavlink-in")
        t.daemon = True
        self.mavlink_thread_in = t

        t = Thread(target=self._mavlink_thread_out, name="gremsy-mavlink-out")
        t.daemon = True
        self.mavlink_thread_out = t

    def _die(self, error: Exception) -> None:
        if self._alive:
            self._death_error = error
            self._alive = False
            self.master.close()

    def _mavlink_thread_out(self) -> None:
        """Output thread - sends messages from queue."""
        try:
            while self._alive:
                try:
                    pkt = self.out_queue.get(True, timeout=0.01)
                except Empty:
                    continue
                self.master.write(pkt)
        except (serial.SerialException, OSError) as e:
            logger.exception("Serial write failed")
            self._die(LinkError(f"Serial write failed: {e}"))
        except Exception as e:
            logger.exception("Exception in MAVLink write loop")
            self._die(e)

    def _mavlink_thread_in(self) -> None:
        """Input thread - receives and dispatches messages."""
        try:
            while self._alive:
                for fn in self.loop_listeners:
                    try:
                        fn(self)
                    except Exception:
                        logger.exception("Exception in loop callback")

                self.master.select(0.05)

                while self._alive:
                    try:
                        msg = self.master.recv_msg()
                    except mavlink.MAVError as e:
                        logger.debug("mav recv error: %s", e)
                        msg = None

                    if not msg:
                        break

                    for fn in self.message_listeners:
                        try:
                            fn(self, msg)
                        except Exception:
                            logger.exception(
                                "Exception in message handler for %s",
                                msg.get_type(),
                            )

        except (serial.SerialException, OSError) as e:
            logger.exception("Serial read failed")
            self._die(LinkError(f"Serial read failed: {e}"))
        except Exception as e:
            logger.exception("Exception in MAVLink input loop")
            self._die(e)

    def stop_threads(self) -> None:
        """Stop the I/O threads."""
        if self.mavlink_thread_in is not None:
            if self.mavlink_thread_in.is_alive():
                self.mavlink_thread_in.join(timeout=2.0)
            self.mavlink_thread_in = None
        if self.mavlink_thread_out is not None:
            if self.mavlink_thread_out.is_alive():
                self.mavlink_thread_out.join(timeout=2.0)
            self.mavlink_thread_out = None

    @property
    def mav(self) -> Any:
        """The MAVLink encoder bound to the output queue."""
        return self.master.mav

    def fix_targets(self, message: Any) -> None:
        """Address a message to the gimbal."""
        if hasattr(message, "target_system"):
            message.target_system = self.target_system
        if hasattr(message, "target_component"):
            message.target_component = self.target_component

    def send(self, message: Any) -> None:
        """
        Queue a MAVLink message for the gimbal.

        Raises:
            LinkError: If the connection is no longer alive
        """
        if not self._alive:
            raise LinkError(
                "Cannot send %s: link is down (%s)"
                % (message.get_type(), self._death_error or "closed")
            )
        self.fix_targets(message)
        self.master.mav.send(message)

    def forward_loop(self, fn: LoopCallback) -> LoopCallback:
        """
        Decorator for event loop callbacks.

        The callback is called on each iteration of the reader thread.
        """
        self.loop_listeners.append(fn)
        return fn

    def forward_message(self, fn: MessageCallback) -> MessageCallback:
        """
        Decorator for message callbacks.

        The callback is called for each received message.
        """
        self.message_listeners.append(fn)
        return fn

    def start(self) -> None:
        """Start the I/O threads."""
        if self.mavlink_thread_in and not self.mavlink_thread_in.is_alive():
            self.mavlink_thread_in.start()
        if self.mavlink_thread_out and not self.mavlink_thread_out.is_alive():
            self.mavlink_thread_out.start()

    def close(self) -> None:
        """Drain pending writes, stop the threads and close the device."""
        timeout = monotonic.monotonic() + 2.0
        while self._alive and not self.out_queue.empty() and monotonic.monotonic() < timeout:
            time.sleep(0.01)
        self._alive = False
        self.stop_threads()
        self.master.close()
        logger.info("Serial link closed")

    @property
    def is_alive(self) -> bool:
        """Check if the connection is alive."""
        return self._alive

    @property
    def death_error(self) -> Exception | None:
        """Get the error that caused connection death, if any."""
        return self._death_error
