import pytest

from skreader.constants import ACK

NAK = b"\x15\x30"

# status frames (st1, st2, key); key 0x40 = ring Low, no button
ST_IDLE = b"ST" + bytes([0x40, 0x40, 0x40])
ST_BUSY = b"ST" + bytes([0x41, 0x48, 0x40])


def frames(*responses):
    """ACK + response frame pairs, in command order."""
    out = []
    for r in responses:
        out.extend([ACK, r])
    return out


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
