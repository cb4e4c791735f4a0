"""
SEKONIC spectrometer controller.

Every exchange with the device follows the same pattern: write an ASCII
command, read the 2 byte ACK frame, then read the response frame which
starts with the echoed command mnemonic. The Device serialises exchanges
with a lock; multi-command sequences such as measure() are not atomic.
"""
from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .adapters.interface import UsbAdapter
from .config import WAIT_CONNECT_TIMEOUT_S, WAIT_MEASURE_TIMEOUT_S, WAIT_POLL_INTERVAL_S
from .constants import (
    ACK,
    CMD_FIRMWARE_VERSION,
    CMD_MEASUREMENT_RESULT,
    CMD_MODEL_NAME,
    CMD_REMOTE_OFF,
    CMD_REMOTE_ON,
    CMD_SET_EXPOSURE_TIME,
    CMD_SET_FIELD_OF_VIEW,
    CMD_SET_MEASURING_MODE,
    CMD_SET_SHUTTER_SPEED,
    CMD_START_MEASURING,
    CMD_STATUS,
    CONFIGURABLE_MODELS,
    EXTENDED_CONFIG_MIN_FIRMWARE,
    KEY_BUTTON_MASK,
    KEY_RING_MASK,
    KEY_RING_SHIFT,
    MODEL_C7000,
    ST1_BUSY,
    ST1_ERROR_HARDWARE,
    ST1_OUT_OF_MEASURING_RANGE,
    ST1_REMOTE,
    ST2_DARK_CALIBRATION,
    ST2_FLASH_STANDBY,
    ST2_INITIALIZING,
    ST2_MEASURING,
    ButtonStatus,
    DeviceStatus,
    ExposureTime,
    FieldOfView,
    MeasuringMode,
    RemoteStatus,
    RingStatus,
    ShutterSpeed,
)
from .errors import (
    DataValidationError,
    PreconditionError,
    ProtocolError,
    SkreaderError,
    TransportError,
    WaitTimeoutError,
)
from .measurement import MEASUREMENT_DATA_VALID_SIZE, Measurement, decode_measurement

logger = logging.getLogger(__name__)

# busy sub-states in the order the firmware reports them
_BUSY_STATES = (
    (ST2_INITIALIZING, DeviceStatus.BUSY_INITIALIZING),
    (ST2_DARK_CALIBRATION, DeviceStatus.BUSY_DARK_CALIBRATION),
    (ST2_FLASH_STANDBY, DeviceStatus.BUSY_FLASH_STANDBY),
    (ST2_MEASURING, DeviceStatus.BUSY_MEASURING),
)


@dataclass(frozen=True)
class DeviceState:
    status: DeviceStatus
    remote: RemoteStatus
    button: ButtonStatus
    ring: RingStatus

    @classmethod
    def from_bytes(cls, st1: int, st2: int, key: int) -> "DeviceState":
        """Decode the three ``ST`` response bytes."""
        if st1 & ST1_ERROR_HARDWARE:
            status = DeviceStatus.ERROR_HARDWARE
        elif st1 & ST1_BUSY:
            # a busy flag without a known sub-state is reported as idle by the firmware
            status = DeviceStatus.IDLE
            for mask, busy in _BUSY_STATES:
                if st2 & mask:
                    status = busy
                    break
        elif st1 & ST1_OUT_OF_MEASURING_RANGE:
            status = DeviceStatus.IDLE_OUT_OF_MEASURING_RANGE
        else:
            status = DeviceStatus.IDLE

        remote = RemoteStatus.ON if st1 & ST1_REMOTE else RemoteStatus.OFF
        button = ButtonStatus(key & KEY_BUTTON_MASK)
        ring = RingStatus((key & KEY_RING_MASK) >> KEY_RING_SHIFT)
        return cls(status=status, remote=remote, button=button, ring=ring)

    def __str__(self) -> str:
        return f"Status={self.status} Remote={self.remote} Button={self.button} Ring={self.ring}"


@dataclass
class MeasurementConfig:
    measuring_mode: MeasuringMode = MeasuringMode.AMBIENT
    field_of_view: FieldOfView = FieldOfView.DEG_2
    exposure_time: ExposureTime = ExposureTime.AUTO
    shutter_speed: ShutterSpeed = ShutterSpeed.SEC_1_125


class Device:
    """
    Handle to one opened spectrometer.

    Use ``Device.connect(adapter)`` (or the module level ``connect``) to get an
    opened handle; use it as a context manager to make sure the adapter is
    released.
    """

    def __init__(
        self,
        adapter: UsbAdapter,
        config: Optional[MeasurementConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        connect_timeout: float = WAIT_CONNECT_TIMEOUT_S,
        measure_timeout: float = WAIT_MEASURE_TIMEOUT_S,
        poll_interval: float = WAIT_POLL_INTERVAL_S,
    ) -> None:
        self._adapter = adapter
        self.config = config or MeasurementConfig()
        self._clock = clock
        self._sleep = sleep
        self.connect_timeout = connect_timeout
        self.measure_timeout = measure_timeout
        self.poll_interval = poll_interval

        self.manufacturer = ""
        self.product = ""
        self._lock = threading.Lock()
        self._closed = True

    @classmethod
    def connect(cls, adapter: Optional[UsbAdapter], **kwargs) -> "Device":
        if adapter is None:
            raise TransportError("no USB adapter given")

        dev = cls(adapter, **kwargs)
        adapter.open()
        try:
            dev.manufacturer = adapter.manufacturer()
            dev.product = adapter.product()
        except Exception:
            try:
                adapter.close()
            except Exception as close_exc:
                logger.warning(f"Closing adapter after failed connect: {close_exc}")
            raise
        dev._closed = False
        logger.info(f"Connected to {dev}")
        return dev

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._adapter.close()
        logger.info(f"Disconnected from {self}")

    def __enter__(self) -> "Device":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __str__(self) -> str:
        name = " ".join(s for s in (self.manufacturer, self.product) if s)
        return name or "SEKONIC"

    # --- low level I/O -----------------------------------------------------

    def _write(self, data: bytes) -> None:
        n = self._adapter.write(data)
        if n != len(data):
            raise TransportError(f"OUT endpoint wrote {n} of {len(data)} bytes")

    def _read(self) -> bytes:
        data = self._adapter.read(MEASUREMENT_DATA_VALID_SIZE)
        if len(data) == 0:
            raise TransportError("IN endpoint returned 0 bytes")
        return data

    def exec_command(self, cmd: str, offset: int, length: int) -> bytes:
        """
        Run one command exchange and return the requested slice of the response.

        ``length == 0`` returns everything from ``offset`` on.
        """
        raw = cmd.encode("ascii")
        with self._lock:
            if self._closed:
                raise TransportError("device is closed")
            logger.debug(f"-> {cmd}")
            self._write(raw)

            ack = self._read()
            if ack != ACK:
                raise ProtocolError(f"{cmd}: expected ACK {ACK!r}, got {ack!r}")

            payload = self._read()
            logger.debug(f"<- {cmd} {len(payload)} bytes")

        if len(payload) < offset + length:
            raise DataValidationError(
                f"{cmd}: invalid response length: {len(payload)} < {offset + length} bytes"
            )
        if payload[:2] != raw[:2]:
            raise ProtocolError(f"{cmd}: wrong command echoed: {payload[:2]!r}")

        if length == 0:
            return payload[offset:]
        return payload[offset:offset + length]

    # --- queries -----------------------------------------------------------

    def model_name(self) -> str:
        data = self.exec_command(CMD_MODEL_NAME, 5, 0)
        return data.split(b"\x00", 1)[0].decode("ascii", errors="replace")

    def firmware_version(self) -> int:
        data = self.exec_command(CMD_FIRMWARE_VERSION, 13, 2)
        try:
            return int(data.decode("ascii"), 10)
        except (UnicodeDecodeError, ValueError) as e:
            raise DataValidationError(f"invalid firmware version {data!r}") from e

    def state(self) -> DeviceState:
        st1, st2, key = self.exec_command(CMD_STATUS, 2, 3)
        return DeviceState.from_bytes(st1, st2, key)

    # --- control -----------------------------------------------------------

    def set_remote_on(self) -> None:
        self.exec_command(CMD_REMOTE_ON, 0, 0)

    def set_remote_off(self) -> None:
        self.exec_command(CMD_REMOTE_OFF, 0, 0)

    def start_measuring(self) -> None:
        self.exec_command(CMD_START_MEASURING, 0, 0)

    def supports_measurement_configuration(self) -> bool:
        try:
            model = self.model_name()
        except SkreaderError as e:
            logger.debug(f"Model query failed: {e}")
            return False
        return model in CONFIGURABLE_MODELS

    def supports_extended_measurement_configuration(self) -> bool:
        try:
            if self.model_name() != MODEL_C7000:
                return False
            return self.firmware_version() > EXTENDED_CONFIG_MIN_FIRMWARE
        except SkreaderError as e:
            logger.debug(f"Model/firmware query failed: {e}")
            return False

    def _set(self, setting: str, cmd: str) -> None:
        try:
            self.exec_command(cmd, 0, 0)
        except SkreaderError as e:
            raise type(e)(f"set measurement configuration: set {setting} error: {e}") from e

    def set_measurement_configuration(self) -> None:
        if not self.supports_measurement_configuration():
            logger.info(f"{self} does not support measurement configuration")
            return

        c = self.config
        self._set("measuring mode", f"{CMD_SET_MEASURING_MODE},{int(c.measuring_mode)}")
        self._set("shutter speed", f"{CMD_SET_SHUTTER_SPEED},0,{c.shutter_speed.value}")

        if self.supports_extended_measurement_configuration():
            self._set("field of view", f"{CMD_SET_FIELD_OF_VIEW},{int(c.field_of_view)}")
            self._set("exposure time", f"{CMD_SET_EXPOSURE_TIME},{int(c.exposure_time)}")

    def measurement_result(self) -> Measurement:
        return decode_measurement(self.exec_command(CMD_MEASUREMENT_RESULT, 0, 0))

    # --- readiness ---------------------------------------------------------

    def wait_ready(self, timeout: float, poll_interval: Optional[float] = None) -> DeviceState:
        """
        Poll the device until it is idle.

        Raises PreconditionError as soon as the ring is not at Low or the
        measuring button is held, WaitTimeoutError when ``timeout`` seconds pass.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        deadline = self._clock() + timeout

        while True:
            now = self._clock()
            if now >= deadline:
                break
            self._sleep(min(interval, deadline - now))
            if self._clock() >= deadline:
                break
            try:
                st = self.state()
            except SkreaderError as e:
                logger.debug(f"Status query failed, retrying: {e}")
                continue

            if st.ring != RingStatus.LOW:
                raise PreconditionError("ring is not set to low position")
            if st.button == ButtonStatus.MEASURING:
                raise PreconditionError("measuring button is pressed")
            if st.status.is_idle:
                return st

        raise WaitTimeoutError(f"timeout waiting for device to end measuring ({timeout}s)")

    def measure(self) -> Measurement:
        """Run one complete remote ambient measurement and return the decoded result."""
        self.wait_ready(self.connect_timeout)

        try:
            self.set_remote_on()
            self.set_measurement_configuration()
            self.start_measuring()
            self.wait_ready(self.measure_timeout)
            m = self.measurement_result()
        finally:
            try:
                self.set_remote_off()
            except Exception as e:
                logger.warning(f"Could not turn remote mode off: {e}")

        logger.info(f"{self} measured {m.summary()}")
        return m


def connect(adapter: Optional[UsbAdapter], **kwargs) -> Device:
    """Open ``adapter`` and return a connected Device."""
    return Device.connect(adapter, **kwargs)
