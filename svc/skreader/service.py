from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple

from .adapters.interface import UsbAdapter
from .adapters.pyusb_adapter import PyUsbAdapter
from .adapters.simulator import SimulatedAdapter
from .config import MODE
from .device import Device, DeviceState
from .errors import SkreaderError
from .measurement import Measurement
from .models import DeviceInfo, MeasureResponse
from .report import build_measurement_report, to_spdx_xml

logger = logging.getLogger(__name__)


class MeasurementService:
    """
    Runs device sessions for the HTTP and command-line front-ends.

    Every call opens the device, performs its work and closes it again. A
    service-level lock keeps concurrent requests from interleaving commands
    on the same spectrometer.
    """

    def __init__(self, mode: Optional[str] = None, **device_options: Any) -> None:
        self.mode = (mode or MODE).lower()
        if self.mode not in ("real", "sim"):
            raise ValueError(f"unknown mode {self.mode!r}, expected 'real' or 'sim'")
        # forwarded to Device (timeouts, poll interval, clock)
        self.device_options: Dict[str, Any] = device_options
        self._lock = threading.Lock()

    def _adapter(self, fake: bool) -> UsbAdapter:
        if fake or self.mode == "sim":
            return SimulatedAdapter()
        return PyUsbAdapter()

    @contextmanager
    def session(self, fake: bool = False) -> Iterator[Device]:
        with self._lock:
            with Device.connect(self._adapter(fake), **self.device_options) as dev:
                yield dev

    @staticmethod
    def _info(dev: Device, st: DeviceState) -> Dict[str, str]:
        # model and firmware are informational, a failed query leaves them empty
        model = firmware = ""
        try:
            model = dev.model_name()
            firmware = str(dev.firmware_version())
        except SkreaderError as e:
            logger.warning(f"Could not read model/firmware of {dev}: {e}")
        return {
            "device": str(dev),
            "model": model,
            "firmware": firmware,
            "status": str(st.status),
            "remote": str(st.remote),
            "button": str(st.button),
            "ring": str(st.ring),
        }

    def device_info(self, fake: bool = False) -> DeviceInfo:
        with self.session(fake) as dev:
            return DeviceInfo(**self._info(dev, dev.state()))

    def measure(self, fake: bool = False) -> Tuple[Measurement, Dict[str, str]]:
        """Measure once and return the result with the device info read right after."""
        with self.session(fake) as dev:
            m = dev.measure()
            info = self._info(dev, dev.state())
        logger.info(f"Measurement done on {info['device']}: {m.summary()}")
        return m, info

    def measure_report(self, name: str = "", note: str = "", fake: bool = False) -> MeasureResponse:
        m, info = self.measure(fake)
        report = build_measurement_report(m, name, note, datetime.now())
        return MeasureResponse(**info, measurements=[report])

    def measure_spdx(self, name: str = "", note: str = "", fake: bool = False) -> str:
        m, _ = self.measure(fake)
        return to_spdx_xml(m, name, note, datetime.now())
