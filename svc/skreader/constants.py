from __future__ import annotations
from enum import Enum, IntEnum, IntFlag

# Command mnemonics (ASCII, optionally followed by comma separated parameters)
CMD_FIRMWARE_VERSION = "FV"
CMD_MODEL_NAME = "MN"
CMD_STATUS = "ST"
CMD_REMOTE_ON = "RT1"
CMD_REMOTE_OFF = "RT0"
CMD_SET_FIELD_OF_VIEW = "AGw"
CMD_SET_MEASURING_MODE = "MMw"
CMD_SET_EXPOSURE_TIME = "AMw"
CMD_SET_SHUTTER_SPEED = "SSw"
CMD_START_MEASURING = "RM0"
CMD_MEASUREMENT_RESULT = "NR"

# Acknowledgement frame sent by the device when a command was accepted
ACK = bytes([0x06, 0x30])

# Models with measurement configuration support
MODEL_C7000 = "C-7000"
MODEL_C800 = "C-800"
CONFIGURABLE_MODELS = (MODEL_C7000, MODEL_C800)
# C-7000 firmware above this version also accepts field of view and exposure time
EXTENDED_CONFIG_MIN_FIRMWARE = 25


class _NamedMixin:
    def __str__(self) -> str:
        return self.name.replace("_", " ").title().replace(" ", "")

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class DeviceStatus(_NamedMixin, IntEnum):
    IDLE = 0
    IDLE_OUT_OF_MEASURING_RANGE = 1
    BUSY_FLASH_STANDBY = 2
    BUSY_MEASURING = 3
    BUSY_INITIALIZING = 4
    BUSY_DARK_CALIBRATION = 5
    ERROR_HARDWARE = 6

    @property
    def is_idle(self) -> bool:
        return self in (DeviceStatus.IDLE, DeviceStatus.IDLE_OUT_OF_MEASURING_RANGE)


class RemoteStatus(_NamedMixin, IntEnum):
    OFF = 0
    ON = 1


class ButtonStatus(IntFlag):
    NONE = 0
    POWER = 0x01
    MEASURING = 0x02
    MEMORY = 0x04
    MENU = 0x08
    PANEL = 0x10

    def __str__(self) -> str:
        if self.value == 0:
            return "None"
        names = [m.name.title() for m in ButtonStatus if m.value and self.value & m.value]
        return "|".join(names)

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class RingStatus(_NamedMixin, IntEnum):
    UNPOSITIONED = 0
    CAL = 1
    LOW = 2
    HIGH = 3


class MeasuringMode(IntEnum):
    # only ambient is supported for decoding
    AMBIENT = 0
    CORDLESS_FLASH = 1
    CORD_FLASH = 2


class FieldOfView(IntEnum):
    DEG_2 = 0
    DEG_10 = 1


class ExposureTime(IntEnum):
    AUTO = 0
    MSEC_100 = 1
    SEC_1 = 2


class ShutterSpeed(str, Enum):
    SEC_1 = "01"
    SEC_2 = "02"
    SEC_4 = "03"
    SEC_8 = "04"
    SEC_15 = "05"
    SEC_30 = "06"
    SEC_1_60 = "07"
    SEC_1_125 = "08"
    SEC_1_250 = "09"
    SEC_1_500 = "10"


# Status byte masks (ST response: st1, st2, key)
ST1_BUSY = 0x01
ST1_REMOTE = 0x02
ST1_OUT_OF_MEASURING_RANGE = 0x08
ST1_ERROR_HARDWARE = 0x10

ST2_INITIALIZING = 0x01
ST2_DARK_CALIBRATION = 0x04
ST2_MEASURING = 0x08
ST2_FLASH_STANDBY = 0x10

KEY_BUTTON_MASK = 0x1F
KEY_RING_MASK = 0x60
KEY_RING_SHIFT = 5
