"""
Report builders for decoded measurements.

Two output formats are produced:
  - the JSON measurement report (MeasurementReport, raw values only)
  - IES TM-27-14 spectral power distribution documents (SPDX XML), see
    https://colour.readthedocs.io/en/v0.3.10/_modules/colour/io/ies_tm2714.html
"""
from __future__ import annotations
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Optional

from .measurement import WAVELENGTH_MIN_NM, Measurement
from .models import (
    CIE1931Report,
    CIE1976Report,
    ColorTemperatureReport,
    CRIReport,
    DWLReport,
    IlluminanceReport,
    MeasurementReport,
    RiReport,
    TristimulusReport,
    WaveLengthGroupReport,
    WaveReport,
)

SPDX_ROOT = "IESTM2714"
SPDX_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def build_measurement_report(
    m: Measurement, name: str = "", note: str = "", when: Optional[datetime] = None
) -> MeasurementReport:
    when = when or datetime.now()
    return MeasurementReport(
        name=name,
        note=note,
        timestamp=int(when.timestamp()),
        illuminance=IlluminanceReport(
            lux=m.illuminance.lux.value,
            foot_candle=m.illuminance.foot_candle.value,
        ),
        color_temperature=ColorTemperatureReport(
            cct=m.color_temperature.tcp.value,
            delta_uv=m.color_temperature.delta_uv.value,
        ),
        tristimulus=TristimulusReport(
            x=m.tristimulus.x.value,
            y=m.tristimulus.y.value,
            z=m.tristimulus.z.value,
        ),
        cie1931=CIE1931Report(x=m.cie1931.x.value, y=m.cie1931.y.value),
        cie1976=CIE1976Report(ud=m.cie1976.ud.value, vd=m.cie1976.vd.value),
        dwl=DWLReport(
            wavelength=m.dwl.wavelength.value,
            excitation_purity=m.dwl.excitation_purity.value,
        ),
        cri=CRIReport(
            ra=m.color_rendition_indexes.ra.value,
            ri=[RiReport(ri=i + 1, value=v.value) for i, v in enumerate(m.color_rendition_indexes.ri)],
        ),
        wavelengths=[
            WaveLengthGroupReport(
                type="1nm",
                waves=[WaveReport(nm=WAVELENGTH_MIN_NM + i, value=v.value) for i, v in enumerate(m.spectral_data_1nm)],
            ),
            WaveLengthGroupReport(
                type="5nm",
                waves=[WaveReport(nm=WAVELENGTH_MIN_NM + i * 5, value=v.value) for i, v in enumerate(m.spectral_data_5nm)],
            ),
        ],
    )


def build_spdx_document(
    m: Measurement, name: str = "", note: str = "", when: Optional[datetime] = None
) -> ET.Element:
    """Return the ``IESTM2714`` element holding the 1 nm spectral distribution."""
    when = when or datetime.now()
    root = ET.Element(SPDX_ROOT)

    header = ET.SubElement(root, "Header")
    ET.SubElement(header, "Description").text = name
    ET.SubElement(header, "Comments").text = note
    ET.SubElement(header, "Report_date").text = when.strftime(SPDX_DATE_FORMAT)

    dist = ET.SubElement(root, "SpectralDistribution")
    for i, v in enumerate(m.spectral_data_1nm):
        point = ET.SubElement(dist, "SpectralData", wavelength=str(WAVELENGTH_MIN_NM + i))
        point.text = repr(v.value)
    return root


def to_spdx_xml(
    m: Measurement, name: str = "", note: str = "", when: Optional[datetime] = None
) -> str:
    root = build_spdx_document(m, name, note, when)
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode", xml_declaration=True)
