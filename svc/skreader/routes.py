from __future__ import annotations
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response

from .config import MODE
from .errors import (
    DataValidationError,
    PreconditionError,
    ProtocolError,
    SkreaderError,
    TransportError,
    WaitTimeoutError,
)
from .models import DeviceInfo, ErrorResponse, HealthResponse, MeasureResponse
from .service import MeasurementService

logger = logging.getLogger(__name__)

router = APIRouter()
svc: MeasurementService | None = None


def get_service() -> MeasurementService:
    global svc
    if svc is None:
        svc = MeasurementService()
    return svc


_ERROR_RESPONSES = {
    409: {"model": ErrorResponse, "description": "Ring not at Low or measuring button pressed"},
    502: {"model": ErrorResponse, "description": "Unexpected or malformed device response"},
    503: {"model": ErrorResponse, "description": "Device not connected or USB failure"},
    504: {"model": ErrorResponse, "description": "Device did not become ready in time"},
}


def _http_error(e: SkreaderError) -> HTTPException:
    if isinstance(e, PreconditionError):
        code = 409
    elif isinstance(e, WaitTimeoutError):
        code = 504
    elif isinstance(e, TransportError):
        code = 503
    elif isinstance(e, (ProtocolError, DataValidationError)):
        code = 502
    else:
        code = 500
    logger.warning(f"Device error ({code}): {e}")
    return HTTPException(status_code=code, detail=str(e))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns service health status and current operation mode (sim or real)",
    tags=["Health"]
)
def health(service: MeasurementService = Depends(get_service)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", mode=service.mode or MODE)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index() -> str:
    return (
        "<li><a href='/measure?name=The Name&note=The Note'>Measure</a></li>"
        "<li><a href='/measure?name=The Name&note=The Note&fake=1'>Measure (fake device)</a></li>"
        "<li><a href='/measure/spdx?name=The Name&note=The Note&fake=1'>Measure SPDX (fake device)</a></li>"
        "<li><a href='/device'>Device info</a></li>"
    )


@router.get(
    "/device",
    response_model=DeviceInfo,
    summary="Device info",
    description="Returns identification and current state of the connected spectrometer",
    responses=_ERROR_RESPONSES,
    tags=["Device"]
)
def device_info(
    fake: bool = Query(False, description="Use the simulated device"),
    service: MeasurementService = Depends(get_service),
) -> DeviceInfo:
    try:
        return service.device_info(fake=fake)
    except SkreaderError as e:
        raise _http_error(e)


@router.get(
    "/measure",
    response_model=MeasureResponse,
    summary="Measure",
    description="Triggers one ambient measurement and returns device state and the measurement report",
    responses=_ERROR_RESPONSES,
    tags=["Measurement"]
)
def measure(
    name: str = Query("", description="Measurement name stored in the report"),
    note: str = Query("", description="Measurement note stored in the report"),
    fake: bool = Query(False, description="Use the simulated device"),
    service: MeasurementService = Depends(get_service),
) -> MeasureResponse:
    """Run a measurement and return it as JSON."""
    try:
        return service.measure_report(name, note, fake=fake)
    except SkreaderError as e:
        raise _http_error(e)


@router.get(
    "/measure/spdx",
    response_class=Response,
    summary="Measure (SPDX)",
    description="Triggers one ambient measurement and returns the spectral distribution as IES TM-27-14 XML",
    responses={200: {"content": {"application/xml": {}}}, **_ERROR_RESPONSES},
    tags=["Measurement"]
)
def measure_spdx(
    name: str = Query("", description="Spectral distribution description"),
    note: str = Query("", description="Spectral distribution comments"),
    fake: bool = Query(False, description="Use the simulated device"),
    service: MeasurementService = Depends(get_service),
) -> Response:
    try:
        xml = service.measure_spdx(name, note, fake=fake)
    except SkreaderError as e:
        raise _http_error(e)
    return Response(content=xml, media_type="application/xml")
