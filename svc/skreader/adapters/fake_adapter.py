# skreader/adapters/fake_adapter.py
from __future__ import annotations
from collections import deque
from typing import Deque, Iterable, List, Optional, Union

from ..errors import TransportError
from .interface import UsbAdapter

ReadResponse = Union[bytes, Exception]


class FakeAdapter(UsbAdapter):
    """
    In-memory adapter with scripted responses, used for deterministic protocol tests.

    ``reads`` is consumed one entry per read() call: bytes are returned as the
    frame, exceptions are raised. Every written command is recorded in
    ``written``.
    """

    def __init__(
        self,
        reads: Optional[Iterable[ReadResponse]] = None,
        manufacturer: str = "",
        product: str = "",
        open_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
        manufacturer_error: Optional[Exception] = None,
        product_error: Optional[Exception] = None,
        short_write: bool = False,
    ) -> None:
        self.reads: Deque[ReadResponse] = deque(reads or [])
        self.written: List[bytes] = []
        self._manufacturer = manufacturer
        self._product = product
        self.open_error = open_error
        self.close_error = close_error
        self.write_error = write_error
        self.manufacturer_error = manufacturer_error
        self.product_error = product_error
        self.short_write = short_write
        self.is_open = False
        self.close_calls = 0

    def queue(self, *frames: ReadResponse) -> None:
        self.reads.extend(frames)

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.is_open = True

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        if self.close_error is not None:
            raise self.close_error

    def read(self, size: int) -> bytes:
        if not self.reads:
            raise TransportError("no scripted response left")
        r = self.reads.popleft()
        if isinstance(r, Exception):
            raise r
        return bytes(r[:size])

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))
        if self.short_write:
            return len(data) - 1
        return len(data)

    def manufacturer(self) -> str:
        if self.manufacturer_error is not None:
            raise self.manufacturer_error
        return self._manufacturer

    def product(self) -> str:
        if self.product_error is not None:
            raise self.product_error
        return self._product
