from __future__ import annotations
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field


class _Report(BaseModel):
    # report keys are the published JSON names; attributes stay snake_case
    model_config = ConfigDict(populate_by_name=True)


class IlluminanceReport(_Report):
    lux: float = Field(alias="LUX", description="Illuminance [lx]")
    foot_candle: float = Field(alias="Fc", description="Illuminance [fc]")


class ColorTemperatureReport(_Report):
    cct: float = Field(alias="CCT", description="Correlated color temperature [K]")
    delta_uv: float = Field(alias="CCT DeltaUV", description="Distance from the Planckian locus")


class TristimulusReport(_Report):
    x: float = Field(alias="X")
    y: float = Field(alias="Y")
    z: float = Field(alias="Z")


class CIE1931Report(_Report):
    x: float = Field(alias="X", description="CIE 1931 chromaticity x")
    y: float = Field(alias="Y", description="CIE 1931 chromaticity y")


class CIE1976Report(_Report):
    ud: float = Field(alias="Ud", description="CIE 1976 chromaticity u'")
    vd: float = Field(alias="Vd", description="CIE 1976 chromaticity v'")


class DWLReport(_Report):
    wavelength: float = Field(alias="Wavelength", description="Dominant wavelength [nm]")
    excitation_purity: float = Field(alias="ExcitationPurity", description="Excitation purity [%]")


class RiReport(_Report):
    ri: int = Field(alias="Ri", description="Reference color number (1-15)")
    value: float = Field(description="Special color rendering index")


class CRIReport(_Report):
    ra: float = Field(alias="RA", description="General color rendering index")
    ri: List[RiReport] = Field(default_factory=list, alias="Ri")


class WaveReport(_Report):
    nm: int = Field(alias="Nm", description="Wavelength [nm]")
    value: float = Field(description="Spectral irradiance [W/(m2 nm)]")


class WaveLengthGroupReport(_Report):
    type: Literal["1nm", "5nm"] = Field(description="Sampling step of the group")
    waves: List[WaveReport] = Field(default_factory=list)


class MeasurementReport(_Report):
    """One measurement as published by the JSON report."""
    name: str = Field(default="", alias="Name", description="Measurement name given by the caller")
    note: str = Field(default="", alias="Note", description="Free text note given by the caller")
    timestamp: int = Field(alias="Timestamp", description="Unix timestamp of the measurement")
    illuminance: IlluminanceReport = Field(alias="Illuminance")
    color_temperature: ColorTemperatureReport = Field(alias="ColorTemperature")
    tristimulus: TristimulusReport = Field(alias="Tristimulus")
    cie1931: CIE1931Report = Field(alias="CIE1931")
    cie1976: CIE1976Report = Field(alias="CIE1976")
    dwl: DWLReport = Field(alias="DWL")
    cri: CRIReport = Field(alias="CRI")
    wavelengths: List[WaveLengthGroupReport] = Field(alias="WaveLengths")


class DeviceInfo(_Report):
    """Identification and current state of the connected spectrometer."""
    device: str = Field(alias="Device", description="USB manufacturer and product string")
    model: str = Field(alias="Model", description="Model name reported by the device (e.g., C-7000)")
    firmware: str = Field(alias="Firmware", description="Firmware version")
    status: str = Field(alias="Status", description="Device status (e.g., Idle, BusyMeasuring)")
    remote: str = Field(alias="Remote", description="Remote control mode: On or Off")
    button: str = Field(alias="Button", description="Pressed buttons, None when released")
    ring: str = Field(alias="Ring", description="Ring position: Unpositioned, Cal, Low or High")


class MeasureResponse(DeviceInfo):
    """Device information together with the measurements taken in one request."""
    measurements: List[MeasurementReport] = Field(default_factory=list, alias="Measurements")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status (always 'ok' if service is running)")
    mode: str = Field(description="Current operation mode: 'sim' (simulated device) or 'real' (USB)")


class ErrorResponse(BaseModel):
    """Standard error response format."""
    detail: str = Field(description="Error message describing what went wrong")

