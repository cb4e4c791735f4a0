"""
Decoder for the SEKONIC measurement result payload (``NR`` command).

The payload is a fixed layout of big-endian IEEE-754 values. Offsets, legal
ranges and display precisions come from the vendor's C-7000 SDK and are
stable across C-700, C-800 and C-7000 devices. Only ambient measuring mode
results are supported.
"""
from __future__ import annotations
import logging
import math
import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional

from .errors import DataValidationError

logger = logging.getLogger(__name__)

MEASUREMENT_DATA_VALID_SIZE = 2380  # tested on C-7000, C-800, C-700

WAVELENGTH_MIN_NM = 380
WAVELENGTH_MAX_NM = 780
SPECTRAL_1NM_COUNT = 401
SPECTRAL_5NM_COUNT = 81
RI_COUNT = 15

# Field offsets inside the payload
OFFSET_CCT = 50
OFFSET_DELTA_UV = 55
OFFSET_LUX = 271
OFFSET_FOOT_CANDLE = 276
OFFSET_TRISTIMULUS_X = 281
OFFSET_TRISTIMULUS_Y = 290
OFFSET_TRISTIMULUS_Z = 299
OFFSET_CIE1931_X = 308
OFFSET_CIE1931_Y = 313
OFFSET_CIE1976_U = 328
OFFSET_CIE1976_V = 333
OFFSET_DWL = 338
OFFSET_EXCITATION_PURITY = 343
OFFSET_RA = 348
OFFSET_RI = 353
RI_STRIDE = 5
OFFSET_SPECTRAL_5NM = 428
OFFSET_SPECTRAL_1NM = 753
SPECTRAL_STRIDE = 4
OFFSET_PPFD = 2376

SPECTRAL_OVER_VALUE = 9999.9
LOW_LIGHT_LUX = 5


class ValueRange(IntEnum):
    """Indicates if a measured value is within, under or over the device limits."""

    OK = 0
    UNDER = 1
    OVER = 2

    def __str__(self) -> str:
        return self.name.title()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


@dataclass(frozen=True)
class DecimalValue:
    """
    A single measured scalar with its display string and validity indicator.

    When ``range`` is not OK, ``formatted`` holds the range name ("Under" or
    "Over") instead of a number.
    """

    value: float = 0.0
    formatted: str = "0"
    range: ValueRange = ValueRange.OK

    @classmethod
    def from_raw(cls, value: float, low: float, high: float, precision: int) -> "DecimalValue":
        r = ValueRange.OK
        if value < low:
            r = ValueRange.UNDER
        elif value > high:
            r = ValueRange.OVER
        formatted = f"{value:.{precision}f}" if r == ValueRange.OK else str(r)
        return cls(value=value, formatted=formatted, range=r)

    @classmethod
    def out_of_range(cls, r: ValueRange, value: float = 0.0) -> "DecimalValue":
        return cls(value=value, formatted=str(r), range=r)

    def with_range(self, r: ValueRange) -> "DecimalValue":
        if r == ValueRange.OK:
            return self
        return replace(self, formatted=str(r), range=r)

    @property
    def ok(self) -> bool:
        return self.range == ValueRange.OK

    def __str__(self) -> str:
        return self.formatted


@dataclass
class TristimulusValue:
    x: DecimalValue = field(default_factory=DecimalValue)
    y: DecimalValue = field(default_factory=DecimalValue)
    z: DecimalValue = field(default_factory=DecimalValue)


@dataclass
class ColorTemperatureValue:
    tcp: DecimalValue = field(default_factory=DecimalValue)       # correlated color temperature [K]
    delta_uv: DecimalValue = field(default_factory=DecimalValue)  # deviation from the Planckian locus


@dataclass
class IlluminanceValue:
    lux: DecimalValue = field(default_factory=DecimalValue)
    foot_candle: DecimalValue = field(default_factory=DecimalValue)


@dataclass
class CIE1931Value:
    x: DecimalValue = field(default_factory=DecimalValue)
    y: DecimalValue = field(default_factory=DecimalValue)
    z: DecimalValue = field(default_factory=DecimalValue)


@dataclass
class CIE1976Value:
    ud: DecimalValue = field(default_factory=DecimalValue)  # u'
    vd: DecimalValue = field(default_factory=DecimalValue)  # v'


@dataclass
class DominantWavelengthValue:
    wavelength: DecimalValue = field(default_factory=DecimalValue)          # nm
    excitation_purity: DecimalValue = field(default_factory=DecimalValue)   # %


@dataclass
class ColorRenditionIndexesValue:
    ra: DecimalValue = field(default_factory=DecimalValue)
    ri: List[DecimalValue] = field(default_factory=lambda: [DecimalValue() for _ in range(RI_COUNT)])


@dataclass
class Measurement:
    """One decoded ambient measurement."""

    tristimulus: TristimulusValue = field(default_factory=TristimulusValue)
    color_temperature: ColorTemperatureValue = field(default_factory=ColorTemperatureValue)
    illuminance: IlluminanceValue = field(default_factory=IlluminanceValue)
    cie1931: CIE1931Value = field(default_factory=CIE1931Value)
    cie1976: CIE1976Value = field(default_factory=CIE1976Value)
    dwl: DominantWavelengthValue = field(default_factory=DominantWavelengthValue)
    ppfd: DecimalValue = field(default_factory=DecimalValue)
    color_rendition_indexes: ColorRenditionIndexesValue = field(default_factory=ColorRenditionIndexesValue)
    spectral_data_5nm: List[DecimalValue] = field(default_factory=list)
    spectral_data_1nm: List[DecimalValue] = field(default_factory=list)
    peak_wavelength: Optional[int] = None  # 380...780 nm, None when spectra were not parsed

    def summary(self) -> str:
        return (
            f"Lux={self.illuminance.lux} x={self.cie1931.x} "
            f"y={self.cie1931.y} CCT={self.color_temperature.tcp}"
        )


# --- binary helpers ----------------------------------------------------------

def _float32(data: bytes, offset: int) -> float:
    return struct.unpack_from(">f", data, offset)[0]


def _float64(data: bytes, offset: int) -> float:
    return struct.unpack_from(">d", data, offset)[0]


def _round(value: float, precision: int) -> float:
    """Round half away from zero to ``precision`` decimals."""
    scale = 10.0 ** precision
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


def _decimal32(data: bytes, offset: int, low: float, high: float, precision: int) -> DecimalValue:
    return DecimalValue.from_raw(_float32(data, offset), low, high, precision)


def _decimal64(data: bytes, offset: int, low: float, high: float, precision: int) -> DecimalValue:
    return DecimalValue.from_raw(_float64(data, offset), low, high, precision)


def _illuminance(data: bytes, offset: int, low: float, high: float) -> DecimalValue:
    """
    Parse an illuminance value with the tiered rounding the device display uses.

    Thresholds are the float32 values of 9.95 and 99.95 as written by the SDK.
    """
    val = _float32(data, offset)

    if val < 9.9499998092651367:
        val = _round(val, 2)
    elif val < 99.949996948242188:
        val = _round(val, 1)
    elif val < 999.5:
        val = _round(val, 0)
    elif val < 9995.0:
        val = _round(val / 10.0, 0) * 10.0
    elif val < 99950.0:
        val = _round(val / 100.0, 0) * 100.0
    else:
        val = _round(val / 1000.0, 0) * 1000.0

    precision = 1 if val < 100 else 0
    return DecimalValue.from_raw(val, low, high, precision)


# --- decoding ----------------------------------------------------------------

def _parse_fields(data: bytes) -> Measurement:
    m = Measurement()

    m.color_temperature.tcp = _decimal32(data, OFFSET_CCT, 1563, 100000, 0)
    m.color_temperature.delta_uv = _decimal32(data, OFFSET_DELTA_UV, -0.1, 0.1, 4)

    m.illuminance.lux = _illuminance(data, OFFSET_LUX, 100, 200000)
    m.illuminance.foot_candle = _illuminance(data, OFFSET_FOOT_CANDLE, 0.093000002205371857, 18580.607421875)

    m.tristimulus.x = _decimal64(data, OFFSET_TRISTIMULUS_X, 0, 1000000, 4)
    m.tristimulus.y = _decimal64(data, OFFSET_TRISTIMULUS_Y, 0, 1000000, 4)
    m.tristimulus.z = _decimal64(data, OFFSET_TRISTIMULUS_Z, 0, 1000000, 4)

    m.cie1931.x = _decimal32(data, OFFSET_CIE1931_X, 0, 1, 4)
    m.cie1931.y = _decimal32(data, OFFSET_CIE1931_Y, 0, 1, 4)

    m.cie1976.ud = _decimal32(data, OFFSET_CIE1976_U, 0, 1, 4)
    m.cie1976.vd = _decimal32(data, OFFSET_CIE1976_V, 0, 1, 4)

    m.dwl.wavelength = _decimal32(data, OFFSET_DWL, -780, 780, 0)
    m.dwl.excitation_purity = _decimal32(data, OFFSET_EXCITATION_PURITY, 0, 100, 1)

    m.color_rendition_indexes.ra = _decimal32(data, OFFSET_RA, -100, 100, 1)
    m.color_rendition_indexes.ri = [
        _decimal32(data, OFFSET_RI + i * RI_STRIDE, -100, 100, 1) for i in range(RI_COUNT)
    ]

    m.ppfd = _decimal32(data, OFFSET_PPFD, 0, 9999.9, 1)
    return m


def _link_cct_to_delta_uv(m: Measurement) -> None:
    # C-800 reports a clamped Tcp (e.g. 50000) where C-7000 reports Over
    ct = m.color_temperature
    if not ct.delta_uv.ok:
        ct.tcp = ct.tcp.with_range(ct.delta_uv.range)


def _derive_cie1931_z(m: Measurement) -> None:
    c = m.cie1931
    if not c.x.ok:
        c.z = DecimalValue.out_of_range(c.x.range)
    elif not c.y.ok:
        c.z = DecimalValue.out_of_range(c.y.range)
    else:
        c.z = DecimalValue.from_raw(1.0 - c.x.value - c.y.value, 0, 1, 4)


def _apply_spectral_range(m: Measurement, data: bytes) -> None:
    lux_range = m.illuminance.lux.range

    if lux_range == ValueRange.UNDER:
        m.spectral_data_5nm = [DecimalValue.out_of_range(lux_range) for _ in range(SPECTRAL_5NM_COUNT)]
        m.spectral_data_1nm = [DecimalValue.out_of_range(lux_range) for _ in range(SPECTRAL_1NM_COUNT)]
        return

    if lux_range == ValueRange.OVER:
        m.spectral_data_5nm = [
            DecimalValue.out_of_range(lux_range, SPECTRAL_OVER_VALUE) for _ in range(SPECTRAL_5NM_COUNT)
        ]
        m.spectral_data_1nm = [
            DecimalValue.out_of_range(lux_range, SPECTRAL_OVER_VALUE) for _ in range(SPECTRAL_1NM_COUNT)
        ]
        return

    m.spectral_data_5nm = [
        _decimal32(data, OFFSET_SPECTRAL_5NM + i * SPECTRAL_STRIDE, 0, SPECTRAL_OVER_VALUE, 8)
        for i in range(SPECTRAL_5NM_COUNT)
    ]
    m.spectral_data_1nm = [
        _decimal32(data, OFFSET_SPECTRAL_1NM + i * SPECTRAL_STRIDE, 0, SPECTRAL_OVER_VALUE, 8)
        for i in range(SPECTRAL_1NM_COUNT)
    ]

    peak = WAVELENGTH_MIN_NM
    max_val = 0.0
    for i, v in enumerate(m.spectral_data_1nm):
        if v.value > 0 and v.value > max_val:
            max_val = v.value
            peak = WAVELENGTH_MIN_NM + i
    m.peak_wavelength = peak


def _apply_low_light(m: Measurement) -> None:
    # values derived from very low illuminance are unreliable even if in range
    lux = m.illuminance.lux
    if not (lux.ok and lux.value < LOW_LIGHT_LUX):
        return

    under = ValueRange.UNDER
    ct = m.color_temperature
    ct.tcp = ct.tcp.with_range(under)
    ct.delta_uv = ct.delta_uv.with_range(under)
    m.cie1931.x = m.cie1931.x.with_range(under)
    m.cie1931.y = m.cie1931.y.with_range(under)
    m.cie1931.z = m.cie1931.z.with_range(under)
    m.cie1976.ud = m.cie1976.ud.with_range(under)
    m.cie1976.vd = m.cie1976.vd.with_range(under)
    m.dwl.wavelength = m.dwl.wavelength.with_range(under)
    m.dwl.excitation_purity = m.dwl.excitation_purity.with_range(under)
    cri = m.color_rendition_indexes
    cri.ra = cri.ra.with_range(under)
    cri.ri = [ri.with_range(under) for ri in cri.ri]


def _link_cct_dependents(m: Measurement) -> None:
    tcp = m.color_temperature.tcp
    if tcp.ok:
        return
    m.color_temperature.delta_uv = m.color_temperature.delta_uv.with_range(tcp.range)
    cri = m.color_rendition_indexes
    cri.ra = cri.ra.with_range(tcp.range)
    cri.ri = [ri.with_range(tcp.range) for ri in cri.ri]


def decode_measurement(data: bytes) -> Measurement:
    """
    Decode the raw ``NR`` response payload into a Measurement.

    Range checks run as ordered passes over the parsed fields; each pass sees
    the ranges left by the previous ones:

    1. ΔUv out of range forces the same range onto Tcp.
    2. CIE1931 z inherits x's or y's range, or is computed as 1 - x - y.
    3. Lux Under/Over forces every spectral value Under/Over; otherwise the
       spectra are parsed and the peak wavelength is computed.
    4. In-range Lux below 5 forces Under onto every colorimetric value.
    5. Tcp out of range forces the same range onto ΔUv, Ra and all Ri.
    """
    if len(data) < MEASUREMENT_DATA_VALID_SIZE:
        raise DataValidationError(
            f"invalid measurement data size: {len(data)} < {MEASUREMENT_DATA_VALID_SIZE} bytes"
        )

    data = bytes(data)
    m = _parse_fields(data)
    _link_cct_to_delta_uv(m)
    _derive_cie1931_z(m)
    _apply_spectral_range(m, data)
    _apply_low_light(m)
    _link_cct_dependents(m)

    logger.debug("Decoded measurement: %s", m.summary())
    return m
