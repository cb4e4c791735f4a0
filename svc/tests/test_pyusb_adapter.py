from array import array
from unittest.mock import MagicMock

import pytest
import usb.core

from skreader.adapters import pyusb_adapter
from skreader.adapters.pyusb_adapter import PyUsbAdapter
from skreader.config import USB_ENDPOINT_IN, USB_ENDPOINT_OUT
from skreader.errors import TransportError


@pytest.fixture
def usb_util(monkeypatch):
    """Replace the usb.util helpers used by the adapter."""
    ep_in = MagicMock(name="ep_in")
    ep_out = MagicMock(name="ep_out")
    endpoints = {USB_ENDPOINT_IN: ep_in, USB_ENDPOINT_OUT: ep_out}

    util = MagicMock(name="usb.util")
    util.find_descriptor.side_effect = lambda intf, bEndpointAddress: endpoints.get(bEndpointAddress)
    util.get_string.side_effect = lambda dev, index: {1: "SEKONIC", 2: "C-7000"}[index]
    monkeypatch.setattr(pyusb_adapter.usb, "util", util)
    util.endpoints = endpoints
    return util


@pytest.fixture
def usb_dev():
    dev = MagicMock(name="device")
    dev.get_active_configuration.return_value = {(0, 0): MagicMock(name="interface")}
    dev.iManufacturer = 1
    dev.iProduct = 2
    return dev


def test_open_without_device():
    adapter = PyUsbAdapter(finder=MagicMock(return_value=None))
    with pytest.raises(TransportError, match="is it connected"):
        adapter.open()


def test_open_without_usb_backend():
    finder = MagicMock(side_effect=usb.core.NoBackendError("No backend available"))
    adapter = PyUsbAdapter(finder=finder)
    with pytest.raises(TransportError, match="No backend available") as exc:
        adapter.open()
    assert isinstance(exc.value.__cause__, usb.core.NoBackendError)


def test_open_finds_vid_pid(usb_util, usb_dev):
    finder = MagicMock(return_value=usb_dev)
    adapter = PyUsbAdapter(vendor_id=0x0A41, product_id=0x7003, finder=finder)
    adapter.open()
    finder.assert_called_once_with(idVendor=0x0A41, idProduct=0x7003)
    usb_dev.set_configuration.assert_called_once()
    assert adapter.manufacturer() == "SEKONIC"
    assert adapter.product() == "C-7000"


def test_open_missing_endpoint_releases_device(usb_util, usb_dev):
    del usb_util.endpoints[USB_ENDPOINT_IN]
    adapter = PyUsbAdapter(finder=MagicMock(return_value=usb_dev))
    with pytest.raises(TransportError, match="IN endpoint"):
        adapter.open()
    usb_util.dispose_resources.assert_called_once_with(usb_dev)


def test_open_configuration_error(usb_util, usb_dev):
    usb_dev.set_configuration.side_effect = usb.core.USBError("Access denied")
    adapter = PyUsbAdapter(finder=MagicMock(return_value=usb_dev))
    with pytest.raises(TransportError, match="default interface"):
        adapter.open()
    usb_util.dispose_resources.assert_called_once_with(usb_dev)


def test_read_write(usb_util, usb_dev):
    adapter = PyUsbAdapter(timeout_ms=250, finder=MagicMock(return_value=usb_dev))
    adapter.open()
    ep_in = usb_util.endpoints[USB_ENDPOINT_IN]
    ep_out = usb_util.endpoints[USB_ENDPOINT_OUT]
    ep_in.read.return_value = array("B", [0x06, 0x30])
    ep_out.write.return_value = 2

    assert adapter.write(b"ST") == 2
    ep_out.write.assert_called_once_with(b"ST", timeout=250)
    assert adapter.read(2380) == b"\x06\x30"
    ep_in.read.assert_called_once_with(2380, timeout=250)


def test_usb_errors_are_wrapped(usb_util, usb_dev):
    adapter = PyUsbAdapter(finder=MagicMock(return_value=usb_dev))
    adapter.open()
    usb_util.endpoints[USB_ENDPOINT_IN].read.side_effect = usb.core.USBError("Operation timed out")
    with pytest.raises(TransportError, match="timed out") as exc:
        adapter.read(64)
    assert isinstance(exc.value.__cause__, usb.core.USBError)


def test_missing_string_descriptor(usb_util, usb_dev):
    usb_dev.iProduct = 0
    adapter = PyUsbAdapter(finder=MagicMock(return_value=usb_dev))
    adapter.open()
    assert adapter.product() == ""


def test_io_requires_open():
    adapter = PyUsbAdapter(finder=MagicMock(return_value=None))
    with pytest.raises(TransportError, match="not open"):
        adapter.read(2)
    with pytest.raises(TransportError, match="not open"):
        adapter.write(b"ST")


def test_close_is_idempotent(usb_util, usb_dev):
    adapter = PyUsbAdapter(finder=MagicMock(return_value=usb_dev))
    adapter.open()
    adapter.close()
    adapter.close()
    usb_util.dispose_resources.assert_called_once_with(usb_dev)
    with pytest.raises(TransportError):
        adapter.read(2)
