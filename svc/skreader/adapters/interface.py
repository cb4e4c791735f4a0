# skreader/adapters/interface.py
from __future__ import annotations
from typing import Protocol


class UsbAdapter(Protocol):
    """
    Minimal byte-level transport every spectrometer connection must implement.

    One instance represents one physical (or simulated) device. The Device
    handler serialises access, so implementations do not need to be thread safe.
    Every method raises on failure; TransportError is preferred.
    """

    def open(self) -> None:
        """Make the device ready for communication."""
        ...

    def close(self) -> None:
        """Release every resource acquired by open()."""
        ...

    def read(self, size: int) -> bytes:
        """Read one response frame of at most ``size`` bytes."""
        ...

    def write(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes actually written."""
        ...

    def manufacturer(self) -> str:
        """USB manufacturer string, possibly empty."""
        ...

    def product(self) -> str:
        """USB product string, possibly empty."""
        ...
