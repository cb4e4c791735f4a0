"""
Canonical measurement payloads.

Builds ``NR`` response payloads with the exact binary layout a C-7000 sends
for an ambient measurement. Used by the simulated device and the test suite.
The default values describe a warm white LED at about 523 lx.
"""
from __future__ import annotations
import math
import struct
from typing import Callable, Dict, Optional, Sequence

from . import measurement as layout

SAMPLE_VALUES: Dict[str, float] = {
    "cct": 5003.0,
    "delta_uv": 0.0025,
    "lux": 523.25,
    "foot_candle": 48.625,
    "tristimulus_x": 497.1234,
    "tristimulus_y": 523.25,
    "tristimulus_z": 412.5,
    "cie1931_x": 0.3456,
    "cie1931_y": 0.3612,
    "cie1976_u": 0.2134,
    "cie1976_v": 0.5012,
    "dwl": 575.0,
    "excitation_purity": 12.5,
    "ra": 95.5,
    "ppfd": 8.5,
}

SAMPLE_PEAK_NM = 555
SAMPLE_SPECTRAL_SCALE = 0.0125
SAMPLE_SPECTRAL_WIDTH_NM = 60.0

_FLOAT32_FIELDS = {
    "cct": layout.OFFSET_CCT,
    "delta_uv": layout.OFFSET_DELTA_UV,
    "lux": layout.OFFSET_LUX,
    "foot_candle": layout.OFFSET_FOOT_CANDLE,
    "cie1931_x": layout.OFFSET_CIE1931_X,
    "cie1931_y": layout.OFFSET_CIE1931_Y,
    "cie1976_u": layout.OFFSET_CIE1976_U,
    "cie1976_v": layout.OFFSET_CIE1976_V,
    "dwl": layout.OFFSET_DWL,
    "excitation_purity": layout.OFFSET_EXCITATION_PURITY,
    "ra": layout.OFFSET_RA,
    "ppfd": layout.OFFSET_PPFD,
}

_FLOAT64_FIELDS = {
    "tristimulus_x": layout.OFFSET_TRISTIMULUS_X,
    "tristimulus_y": layout.OFFSET_TRISTIMULUS_Y,
    "tristimulus_z": layout.OFFSET_TRISTIMULUS_Z,
}


def sample_ri(index: int) -> float:
    """Ri value written for reference color ``index`` (0 based): 90.0, 90.5, ..."""
    return 90.0 + index * 0.5


def sample_spectrum(nm: float) -> float:
    """Gaussian spectral irradiance centred on SAMPLE_PEAK_NM [W/(m2 nm)]."""
    return SAMPLE_SPECTRAL_SCALE * math.exp(-(((nm - SAMPLE_PEAK_NM) / SAMPLE_SPECTRAL_WIDTH_NM) ** 2))


def build_measurement_payload(
    spectrum: Optional[Callable[[float], float]] = None,
    ri: Optional[Sequence[float]] = None,
    **overrides: float,
) -> bytes:
    """
    Return a MEASUREMENT_DATA_VALID_SIZE byte payload.

    Keyword overrides replace entries of SAMPLE_VALUES, e.g.
    ``build_measurement_payload(lux=50.0)`` for an under-range reading.
    """
    unknown = set(overrides) - set(SAMPLE_VALUES)
    if unknown:
        raise KeyError(f"unknown measurement fields: {', '.join(sorted(unknown))}")

    values = dict(SAMPLE_VALUES, **overrides)
    spectrum = spectrum or sample_spectrum
    ri = list(ri) if ri is not None else [sample_ri(i) for i in range(layout.RI_COUNT)]
    if len(ri) != layout.RI_COUNT:
        raise ValueError(f"expected {layout.RI_COUNT} Ri values, got {len(ri)}")

    buf = bytearray(layout.MEASUREMENT_DATA_VALID_SIZE)
    buf[0:5] = b"NR@@@"

    for name, offset in _FLOAT32_FIELDS.items():
        struct.pack_into(">f", buf, offset, values[name])
    for name, offset in _FLOAT64_FIELDS.items():
        struct.pack_into(">d", buf, offset, values[name])

    for i, value in enumerate(ri):
        struct.pack_into(">f", buf, layout.OFFSET_RI + i * layout.RI_STRIDE, value)

    for i in range(layout.SPECTRAL_5NM_COUNT):
        nm = layout.WAVELENGTH_MIN_NM + i * 5
        struct.pack_into(">f", buf, layout.OFFSET_SPECTRAL_5NM + i * layout.SPECTRAL_STRIDE, spectrum(nm))
    for i in range(layout.SPECTRAL_1NM_COUNT):
        nm = layout.WAVELENGTH_MIN_NM + i
        struct.pack_into(">f", buf, layout.OFFSET_SPECTRAL_1NM + i * layout.SPECTRAL_STRIDE, spectrum(nm))

    return bytes(buf)


SAMPLE_PAYLOAD = build_measurement_payload()
SAMPLE_PAYLOAD_UNDER = build_measurement_payload(lux=50.0, foot_candle=4.645)
