import pytest
from fastapi.testclient import TestClient

from main import app
from skreader.errors import (
    DataValidationError,
    PreconditionError,
    ProtocolError,
    TransportError,
    WaitTimeoutError,
)
from skreader.routes import get_service
from skreader.service import MeasurementService

client = TestClient(app)


@pytest.fixture(autouse=True)
def sim_service():
    service = MeasurementService(mode="sim", poll_interval=0.0)
    app.dependency_overrides[get_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    # Verify we're running in simulator mode for tests
    assert r.json()["mode"] == "sim"


def test_index_lists_examples():
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "/measure?name=The Name&note=The Note&fake=1" in r.text


def test_device_info():
    r = client.get("/device")
    assert r.status_code == 200
    info = r.json()
    assert info["Device"] == "SEKONIC C-7000"
    assert info["Model"] == "C-7000"
    assert info["Firmware"] == "27"
    assert info["Status"] == "Idle"
    assert info["Remote"] == "Off"
    assert info["Button"] == "None"
    assert info["Ring"] == "Low"


def test_measure():
    r = client.get("/measure", params={"name": "Desk", "note": "north window"})
    assert r.status_code == 200
    body = r.json()
    assert body["Device"] == "SEKONIC C-7000"
    # remote mode is turned off again after measuring
    assert body["Remote"] == "Off"
    assert len(body["Measurements"]) == 1

    m = body["Measurements"][0]
    assert m["Name"] == "Desk"
    assert m["Note"] == "north window"
    assert m["Illuminance"]["LUX"] == 523.0
    assert m["ColorTemperature"]["CCT"] == pytest.approx(5003.0)
    assert [g["type"] for g in m["WaveLengths"]] == ["1nm", "5nm"]


def test_measure_fake_in_real_mode():
    # fake=1 uses the simulated device whatever the service mode
    app.dependency_overrides[get_service] = lambda: MeasurementService(mode="real", poll_interval=0.0)
    r = client.get("/measure", params={"fake": 1})
    assert r.status_code == 200
    assert r.json()["Model"] == "C-7000"


def test_measure_spdx():
    r = client.get("/measure/spdx", params={"name": "Desk", "fake": 1})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    assert "<Description>Desk</Description>" in r.text
    assert r.text.count("<SpectralData ") == 401


class _FailingService:
    mode = "sim"

    def __init__(self, exc):
        self.exc = exc

    def device_info(self, fake=False):
        raise self.exc

    def measure_report(self, name="", note="", fake=False):
        raise self.exc

    def measure_spdx(self, name="", note="", fake=False):
        raise self.exc


@pytest.mark.parametrize(
    "exc,status",
    [
        (PreconditionError("ring is not set to low position"), 409),
        (WaitTimeoutError("timeout waiting for device to end measuring (20s)"), 504),
        (TransportError("could not open a device, is it connected?"), 503),
        (ProtocolError("wrong command echoed"), 502),
        (DataValidationError("invalid measurement data size"), 502),
    ],
)
@pytest.mark.parametrize("path", ["/device", "/measure", "/measure/spdx"])
def test_device_errors_are_mapped(path, exc, status):
    app.dependency_overrides[get_service] = lambda: _FailingService(exc)
    r = client.get(path)
    assert r.status_code == status
    assert r.json()["detail"] == str(exc)
