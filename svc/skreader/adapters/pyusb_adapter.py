# skreader/adapters/pyusb_adapter.py
from __future__ import annotations
import logging
from typing import Any, Callable, Optional

import usb.core  # pip install pyusb (requires libusb on the host)
import usb.util

from ..config import (
    USB_ENDPOINT_IN,
    USB_ENDPOINT_OUT,
    USB_PRODUCT_ID,
    USB_TIMEOUT_MS,
    USB_VENDOR_ID,
)
from ..errors import TransportError
from .interface import UsbAdapter

logger = logging.getLogger(__name__)


class PyUsbAdapter(UsbAdapter):
    """
    USB transport for SEKONIC spectrometers based on pyusb.

    Bulk endpoints:
      - OUT 0x02: ASCII commands
      - IN  0x81: ACK frame followed by the command response frame

    ``finder`` defaults to ``usb.core.find`` and can be replaced to inject a
    fake device.
    """

    def __init__(
        self,
        vendor_id: int = USB_VENDOR_ID,
        product_id: int = USB_PRODUCT_ID,
        timeout_ms: int = USB_TIMEOUT_MS,
        finder: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        self.timeout_ms = timeout_ms
        self._find = finder or usb.core.find

        self._dev = None
        self._ep_in = None
        self._ep_out = None

    def __repr__(self) -> str:
        return f"PyUsbAdapter({self.vendor_id:04X}:{self.product_id:04X})"

    # --- lifecycle ---------------------------------------------------------

    def open(self) -> None:
        try:
            dev = self._find(idVendor=self.vendor_id, idProduct=self.product_id)
        except (usb.core.USBError, usb.core.NoBackendError) as e:
            raise TransportError(f"could not open a device: {e}") from e
        if dev is None:
            raise TransportError("could not open a device, is it connected?")

        try:
            dev.set_configuration()
            intf = dev.get_active_configuration()[(0, 0)]
        except usb.core.USBError as e:
            usb.util.dispose_resources(dev)
            raise TransportError(f"could not get default interface: {e}") from e

        ep_in = usb.util.find_descriptor(intf, bEndpointAddress=USB_ENDPOINT_IN)
        if ep_in is None:
            usb.util.dispose_resources(dev)
            raise TransportError(f"could not get IN endpoint 0x{USB_ENDPOINT_IN:02X}")
        ep_out = usb.util.find_descriptor(intf, bEndpointAddress=USB_ENDPOINT_OUT)
        if ep_out is None:
            usb.util.dispose_resources(dev)
            raise TransportError(f"could not get OUT endpoint 0x{USB_ENDPOINT_OUT:02X}")

        self._dev = dev
        self._ep_in = ep_in
        self._ep_out = ep_out
        logger.info(f"{self!r} opened")

    def close(self) -> None:
        if self._dev is None:
            return
        try:
            usb.util.dispose_resources(self._dev)
        except usb.core.USBError as e:
            raise TransportError(f"could not release device: {e}") from e
        finally:
            self._dev = None
            self._ep_in = None
            self._ep_out = None
        logger.info(f"{self!r} closed")

    # --- I/O ---------------------------------------------------------------

    def _require_open(self) -> None:
        if self._dev is None:
            raise TransportError("device is not open")

    def read(self, size: int) -> bytes:
        self._require_open()
        try:
            data = self._ep_in.read(size, timeout=self.timeout_ms)
        except usb.core.USBError as e:
            raise TransportError(f"IN endpoint returned an error: {e}") from e
        return bytes(data)

    def write(self, data: bytes) -> int:
        self._require_open()
        try:
            return self._ep_out.write(data, timeout=self.timeout_ms)
        except usb.core.USBError as e:
            raise TransportError(f"OUT endpoint returned an error: {e}") from e

    # --- descriptors -------------------------------------------------------

    def _string(self, index_attr: str, label: str) -> str:
        self._require_open()
        index = getattr(self._dev, index_attr, 0)
        if not index:
            return ""
        try:
            return usb.util.get_string(self._dev, index) or ""
        except (usb.core.USBError, ValueError) as e:
            raise TransportError(f"could not read {label}: {e}") from e

    def manufacturer(self) -> str:
        return self._string("iManufacturer", "Manufacturer")

    def product(self) -> str:
        return self._string("iProduct", "Product")
