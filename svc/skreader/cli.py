"""Command line tool for SEKONIC spectrometers remote control."""
from __future__ import annotations
from dotenv import load_dotenv
load_dotenv()

import argparse
import logging
import sys
from typing import Iterable, List, Optional

from .config import PORT
from .errors import SkreaderError
from .measurement import WAVELENGTH_MIN_NM, Measurement
from .server import VERSION
from .service import MeasurementService

logger = logging.getLogger(__name__)

GROUP_FLAGS = (
    "illuminance",
    "color_temperature",
    "tristimulus",
    "cie1931",
    "cie1976",
    "dwl",
    "cri",
    "spectra1nm",
    "spectra5nm",
)
# groups printed by --simple
SIMPLE_GROUPS = ("illuminance", "color_temperature", "tristimulus", "cie1931", "cie1976", "dwl")


def _add_report_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--name", default="", help="Measurement name")
    p.add_argument("--note", default="", help="Measurement note")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skreader",
        description="Command line tool for SEKONIC spectrometers remote control.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "-f", "--fake-device", action="store_true",
        help="Use the simulated device instead of the USB spectrometer",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output and debug logging")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    sub.add_parser("info", help="Show connected device info")

    p = sub.add_parser("json", help="Measure and print the result as JSON")
    _add_report_args(p)

    p = sub.add_parser("spdx", help="Measure and print the spectral distribution as IES TM-27-14 XML")
    _add_report_args(p)

    p = sub.add_parser("measure", help="Measure and print the selected values")
    p.add_argument("--ldi", action="store_true", help="LUX, CCT, CCT DeltaUv, RA and R9 (default)")
    p.add_argument("--all", action="store_true", help="Every value group")
    p.add_argument("--simple", action="store_true", help="Every scalar group except CRI")
    p.add_argument("--illuminance", action="store_true", help="LUX and foot-candle")
    p.add_argument("--color-temperature", action="store_true", help="CCT and CCT DeltaUv")
    p.add_argument("--tristimulus", action="store_true", help="Tristimulus X, Y, Z")
    p.add_argument("--cie1931", action="store_true", help="CIE1931 x, y")
    p.add_argument("--cie1976", action="store_true", help="CIE1976 u', v'")
    p.add_argument("--dwl", action="store_true", help="Dominant wavelength and excitation purity")
    p.add_argument("--cri", action="store_true", help="RA and R1..R15")
    p.add_argument("--spectra1nm", action="store_true", help="Spectral data, 1nm step")
    p.add_argument("--spectra5nm", action="store_true", help="Spectral data, 5nm step")

    p = sub.add_parser("webserver", help="Serve the HTTP front-end")
    p.add_argument("--address", default="127.0.0.1", help="Listen address")
    p.add_argument("--port", type=int, default=PORT, help="Listen port")

    return parser


def selected_groups(args: argparse.Namespace) -> List[str]:
    """Return the value groups to print for ``measure``, in output order."""
    groups = []
    for g in GROUP_FLAGS:
        if getattr(args, g) or args.all or (args.simple and g in SIMPLE_GROUPS):
            groups.append(g)
    if args.ldi or args.all or not groups:
        groups.append("ldi")
    return groups


def format_measurement(m: Measurement, groups: Iterable[str], verbose: bool = False) -> List[str]:
    out: List[str] = []

    def title(text: str) -> None:
        if verbose:
            out.append("------------")
            out.append(f"{text}:")

    cri = m.color_rendition_indexes
    for g in groups:
        if g == "illuminance":
            title("Illuminance")
            out.append(f"LUX: {m.illuminance.lux}")
            out.append(f"Fc: {m.illuminance.foot_candle}")
        elif g == "color_temperature":
            title("ColorTemperature")
            out.append(f"CCT: {m.color_temperature.tcp}")
            out.append(f"CCT DeltaUv: {m.color_temperature.delta_uv}")
        elif g == "tristimulus":
            title("Tristimulus")
            out.append(f"X: {m.tristimulus.x}")
            out.append(f"Y: {m.tristimulus.y}")
            out.append(f"Z: {m.tristimulus.z}")
        elif g == "cie1931":
            title("CIE1931")
            out.append(f"X: {m.cie1931.x}")
            out.append(f"Y: {m.cie1931.y}")
        elif g == "cie1976":
            title("CIE1976")
            out.append(f"Ud: {m.cie1976.ud}")
            out.append(f"Vd: {m.cie1976.vd}")
        elif g == "dwl":
            title("DominantWavelength")
            out.append(f"DominantWavelength: {m.dwl.wavelength}")
            out.append(f"ExcitationPurity: {m.dwl.excitation_purity}")
        elif g == "cri":
            title("CRI")
            out.append(f"RA: {cri.ra}")
            out.extend(f"R{i + 1}: {v}" for i, v in enumerate(cri.ri))
        elif g == "spectra1nm":
            title("SpectralData 1nm")
            out.extend(f"{WAVELENGTH_MIN_NM + i},{v.value:f}" for i, v in enumerate(m.spectral_data_1nm))
        elif g == "spectra5nm":
            title("SpectralData 5nm")
            out.extend(f"{WAVELENGTH_MIN_NM + i * 5},{v.value:f}" for i, v in enumerate(m.spectral_data_5nm))
        elif g == "ldi":
            if verbose:
                out.append("------------")
            out.append(f"LUX: {m.illuminance.lux}")
            out.append(f"CCT: {m.color_temperature.tcp}")
            out.append(f"CCT DeltaUv: {m.color_temperature.delta_uv}")
            out.append(f"RA: {cri.ra}")
            out.append(f"R9: {cri.ri[8]}")
    return out


def cmd_info(service: MeasurementService, args: argparse.Namespace) -> None:
    info = service.device_info(fake=args.fake_device)
    for key, value in info.model_dump(by_alias=True).items():
        print(f"{key}: {value}")


def cmd_json(service: MeasurementService, args: argparse.Namespace) -> None:
    response = service.measure_report(args.name, args.note, fake=args.fake_device)
    print(response.model_dump_json(by_alias=True, indent=2))


def cmd_spdx(service: MeasurementService, args: argparse.Namespace) -> None:
    print(service.measure_spdx(args.name, args.note, fake=args.fake_device))


def cmd_measure(service: MeasurementService, args: argparse.Namespace) -> None:
    m, _ = service.measure(fake=args.fake_device)
    for line in format_measurement(m, selected_groups(args), args.verbose):
        print(line)


def cmd_webserver(service: MeasurementService, args: argparse.Namespace) -> None:
    import uvicorn
    from . import routes
    from .server import create_app

    routes.svc = service
    print(f"HTTP server starting at http://{args.address}:{args.port}")
    uvicorn.run(create_app(), host=args.address, port=args.port)


COMMANDS = {
    "info": cmd_info,
    "json": cmd_json,
    "spdx": cmd_spdx,
    "measure": cmd_measure,
    "webserver": cmd_webserver,
}


def main(argv: Optional[List[str]] = None, service: Optional[MeasurementService] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(name)s: %(message)s'
    )

    try:
        if service is None:
            service = MeasurementService()
        COMMANDS[args.command](service, args)
    except (SkreaderError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
