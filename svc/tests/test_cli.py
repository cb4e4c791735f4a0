import json

import pytest

from skreader import cli
from skreader.errors import TransportError
from skreader.service import MeasurementService


@pytest.fixture
def service():
    return MeasurementService(mode="real", poll_interval=0.0)


def run(capsys, service, *argv):
    code = cli.main(list(argv), service=service)
    out, err = capsys.readouterr()
    return code, out, err


def test_measure_ldi_by_default(capsys, service):
    code, out, _ = run(capsys, service, "--fake-device", "measure")
    assert code == 0
    assert out.splitlines() == [
        "LUX: 523",
        "CCT: 5003",
        "CCT DeltaUv: 0.0025",
        "RA: 95.5",
        "R9: 94.0",
    ]


def test_measure_selected_groups(capsys, service):
    code, out, _ = run(capsys, service, "-f", "measure", "--illuminance", "--cri")
    assert code == 0
    lines = out.splitlines()
    assert lines[:3] == ["LUX: 523", "Fc: 48.6", "RA: 95.5"]
    assert lines[3] == "R1: 90.0"
    assert lines[-1] == "R15: 97.0"
    assert not any(line.startswith("CCT") for line in lines)


def test_measure_spectra(capsys, service):
    code, out, _ = run(capsys, service, "-f", "measure", "--spectra5nm")
    lines = out.splitlines()
    assert len(lines) == 81
    assert lines[0].startswith("380,")
    assert lines[35] == "555,0.012500"


def test_measure_verbose_titles(capsys, service):
    code, out, _ = run(capsys, service, "-f", "--verbose", "measure", "--dwl")
    assert "DominantWavelength:" in out.splitlines()
    assert "DominantWavelength: 575" in out


def test_selected_groups():
    parser = cli.build_parser()
    assert cli.selected_groups(parser.parse_args(["measure"])) == ["ldi"]
    assert cli.selected_groups(parser.parse_args(["measure", "--simple"])) == list(cli.SIMPLE_GROUPS)
    assert cli.selected_groups(parser.parse_args(["measure", "--all"])) == list(cli.GROUP_FLAGS) + ["ldi"]
    assert cli.selected_groups(parser.parse_args(["measure", "--cie1976", "--ldi"])) == ["cie1976", "ldi"]


def test_info(capsys, service):
    code, out, _ = run(capsys, service, "--fake-device", "info")
    assert code == 0
    assert "Device: SEKONIC C-7000" in out
    assert "Firmware: 27" in out
    assert "Ring: Low" in out


def test_json(capsys, service):
    code, out, _ = run(capsys, service, "-f", "json", "--name", "Desk", "--note", "north window")
    assert code == 0
    body = json.loads(out)
    assert body["Model"] == "C-7000"
    assert body["Measurements"][0]["Name"] == "Desk"
    assert body["Measurements"][0]["Illuminance"]["LUX"] == 523.0


def test_spdx(capsys, service):
    code, out, _ = run(capsys, service, "-f", "spdx", "--name", "Desk")
    assert code == 0
    assert "<Description>Desk</Description>" in out
    assert out.count("<SpectralData ") == 401


def test_device_error_exits_1(capsys, monkeypatch, service):
    def fail(*args, **kwargs):
        raise TransportError("could not open a device, is it connected?")

    monkeypatch.setattr(service, "measure", fail)
    code, out, err = run(capsys, service, "measure")
    assert code == 1
    assert out == ""
    assert "could not open a device" in err


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "skreader" in capsys.readouterr().out


def test_command_required(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2
