import json
from datetime import datetime

import pytest

from skreader.measurement import decode_measurement
from skreader.report import build_measurement_report, build_spdx_document, to_spdx_xml
from skreader.testdata import SAMPLE_PAYLOAD, SAMPLE_PAYLOAD_UNDER

WHEN = datetime(2024, 1, 2, 3, 4, 5)


@pytest.fixture(scope="module")
def measurement():
    return decode_measurement(SAMPLE_PAYLOAD)


def test_json_report_keys(measurement):
    report = build_measurement_report(measurement, "Desk", "north window", WHEN)
    data = json.loads(report.model_dump_json(by_alias=True))

    assert data["Name"] == "Desk"
    assert data["Note"] == "north window"
    assert data["Timestamp"] == int(WHEN.timestamp())
    assert data["Illuminance"] == {"LUX": 523.0, "Fc": pytest.approx(48.6)}
    assert data["ColorTemperature"]["CCT"] == pytest.approx(5003.0)
    assert data["ColorTemperature"]["CCT DeltaUV"] == pytest.approx(0.0025)
    assert data["Tristimulus"] == {"X": 497.1234, "Y": 523.25, "Z": 412.5}
    assert set(data["CIE1931"]) == {"X", "Y"}
    assert data["CIE1976"]["Ud"] == pytest.approx(0.2134)
    assert data["DWL"]["Wavelength"] == pytest.approx(575.0)
    assert data["DWL"]["ExcitationPurity"] == pytest.approx(12.5)


def test_json_report_cri(measurement):
    report = build_measurement_report(measurement, when=WHEN)
    data = report.model_dump(by_alias=True)
    assert data["CRI"]["RA"] == pytest.approx(95.5)
    ri = data["CRI"]["Ri"]
    assert [r["Ri"] for r in ri] == list(range(1, 16))
    assert ri[0] == {"Ri": 1, "value": 90.0}
    assert ri[14]["value"] == 97.0


def test_json_report_wavelengths(measurement):
    report = build_measurement_report(measurement, when=WHEN)
    groups = report.model_dump(by_alias=True)["WaveLengths"]
    assert [g["type"] for g in groups] == ["1nm", "5nm"]

    one, five = groups[0]["waves"], groups[1]["waves"]
    assert len(one) == 401
    assert len(five) == 81
    assert one[0]["Nm"] == 380
    assert one[-1]["Nm"] == 780
    assert five[1]["Nm"] == 385
    assert five[-1]["Nm"] == 780
    assert one[175]["value"] == pytest.approx(0.0125)
    assert five[35]["value"] == one[175]["value"]


def test_json_report_accepts_field_names():
    report = build_measurement_report(decode_measurement(SAMPLE_PAYLOAD_UNDER), when=WHEN)
    assert report.illuminance.lux == 50.0
    assert report.name == ""


def test_spdx_document(measurement):
    root = build_spdx_document(measurement, "Desk", "north window", WHEN)
    assert root.tag == "IESTM2714"
    assert root.find("Header/Description").text == "Desk"
    assert root.find("Header/Comments").text == "north window"
    assert root.find("Header/Report_date").text == "2024-01-02T03:04:05"

    points = root.findall("SpectralDistribution/SpectralData")
    assert len(points) == 401
    assert points[0].get("wavelength") == "380"
    assert points[-1].get("wavelength") == "780"
    for i in (0, 175, 400):
        assert float(points[i].text) == measurement.spectral_data_1nm[i].value


def test_spdx_xml(measurement):
    xml = to_spdx_xml(measurement, "Desk", "", WHEN)
    assert xml.startswith("<?xml")
    assert "<IESTM2714>" in xml
    assert "<Report_date>2024-01-02T03:04:05</Report_date>" in xml
    assert '<SpectralData wavelength="555">' in xml
    assert xml.count("<SpectralData ") == 401
    # indented output
    assert "\n  <Header>" in xml
