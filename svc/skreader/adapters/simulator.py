# skreader/adapters/simulator.py
from __future__ import annotations
import logging
from collections import deque
from typing import Deque, Optional

from ..config import SIM_BUSY_POLLS
from ..constants import (
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
    ST1_BUSY,
    ST1_REMOTE,
    ST2_MEASURING,
)
from ..errors import TransportError
from ..testdata import SAMPLE_PAYLOAD
from .interface import UsbAdapter

logger = logging.getLogger(__name__)

NAK = bytes([0x15, 0x30])

# every status byte has bit 6 set on the wire
_STATUS_BASE = 0x40
# ring at Low (2 << 5), no button pressed
_KEY_RING_LOW = _STATUS_BASE | (2 << 5)

_CONFIG_COMMANDS = (
    CMD_SET_MEASURING_MODE,
    CMD_SET_SHUTTER_SPEED,
    CMD_SET_FIELD_OF_VIEW,
    CMD_SET_EXPOSURE_TIME,
)


class SimulatedAdapter(UsbAdapter):
    """
    Simulated SEKONIC C-7000 (firmware 27) speaking the USB command protocol.

    Each accepted command queues an ACK frame and its response frame. After
    ``RM0`` the device reports BusyMeasuring for ``busy_polls`` status
    queries, then Idle; ``NR`` returns the canonical ambient payload.
    """

    def __init__(
        self,
        model: str = "C-7000",
        firmware: int = 27,
        busy_polls: int = SIM_BUSY_POLLS,
        payload: bytes = SAMPLE_PAYLOAD,
        key: int = _KEY_RING_LOW,
    ) -> None:
        self.model = model
        self.firmware = firmware
        self.busy_polls = busy_polls
        self.payload = payload
        self.key = key

        self.remote = False
        self._busy_left = 0
        self._frames: Deque[bytes] = deque()
        self._open = False
        self.last_config: Optional[str] = None

    def open(self) -> None:
        self._open = True
        self._frames.clear()
        logger.info(f"Simulated {self.model} opened")

    def close(self) -> None:
        self._open = False
        self._frames.clear()

    def _require_open(self) -> None:
        if not self._open:
            raise TransportError("device is not open")

    def manufacturer(self) -> str:
        self._require_open()
        return "SEKONIC"

    def product(self) -> str:
        self._require_open()
        return self.model

    # --- protocol ----------------------------------------------------------

    def _status_frame(self) -> bytes:
        st1 = _STATUS_BASE
        st2 = _STATUS_BASE
        if self.remote:
            st1 |= ST1_REMOTE
        if self._busy_left > 0:
            self._busy_left -= 1
            st1 |= ST1_BUSY
            st2 |= ST2_MEASURING
        return CMD_STATUS.encode("ascii") + bytes([st1, st2, self.key])

    def _respond(self, cmd: str) -> Optional[bytes]:
        if cmd == CMD_MODEL_NAME:
            return b"MN@@@" + self.model.encode("ascii").ljust(11, b"\x00")
        if cmd == CMD_FIRMWARE_VERSION:
            return f"FV@@@20,C36E,{self.firmware:02d},7881,11,B216,14,50CC,17,74EC".encode("ascii")
        if cmd == CMD_STATUS:
            return self._status_frame()
        if cmd == CMD_REMOTE_ON:
            self.remote = True
            return cmd.encode("ascii")
        if cmd == CMD_REMOTE_OFF:
            self.remote = False
            return cmd.encode("ascii")
        if cmd == CMD_START_MEASURING:
            self._busy_left = self.busy_polls
            return cmd.encode("ascii")
        if cmd == CMD_MEASUREMENT_RESULT:
            return self.payload
        if cmd.startswith(_CONFIG_COMMANDS):
            self.last_config = cmd
            return cmd[:2].encode("ascii")
        return None

    def write(self, data: bytes) -> int:
        self._require_open()
        cmd = bytes(data).decode("ascii", errors="replace")
        response = self._respond(cmd)
        if response is None:
            logger.warning(f"Simulated device rejected unknown command {cmd!r}")
            self._frames.append(NAK)
        else:
            self._frames.append(ACK)
            self._frames.append(response)
        return len(data)

    def read(self, size: int) -> bytes:
        self._require_open()
        if not self._frames:
            raise TransportError("IN endpoint timed out")
        return self._frames.popleft()[:size]
